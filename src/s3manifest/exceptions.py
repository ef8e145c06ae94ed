"""Domain-specific exceptions for s3-manifest."""

from __future__ import annotations


class S3ManifestError(Exception):
    """Base exception for s3-manifest errors."""
    pass


class InvalidLocationError(S3ManifestError):
    """Raised when a source or output location cannot be parsed."""
    def __init__(self, location: str, reason: str) -> None:
        self.location = location
        self.reason = reason
        super().__init__(f"Invalid location '{location}': {reason}")


class InvalidEndpointError(S3ManifestError):
    """Raised when an S3 client cannot be built for the configured endpoint."""
    def __init__(self, endpoint: str | None, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Invalid endpoint '{endpoint}': {reason}")


class ListingError(S3ManifestError):
    """Raised when listing a bucket fails after all retries."""
    def __init__(self, bucket: str, prefix: str | None, reason: str) -> None:
        self.bucket = bucket
        self.prefix = prefix
        target = f"s3://{bucket}/{prefix}" if prefix else f"s3://{bucket}"
        super().__init__(f"Failed to list {target}: {reason}")


class UploadError(S3ManifestError):
    """Raised when uploading the manifest fails after all retries."""
    def __init__(self, bucket: str, key: str, reason: str) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(f"Failed to upload manifest to s3://{bucket}/{key}: {reason}")


class ManifestWriteError(S3ManifestError):
    """Raised when the local manifest file cannot be created, written or closed."""
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to write manifest {path}: {reason}")
