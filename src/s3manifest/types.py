"""Type definitions for s3manifest."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, TypedDict, Union


# Listing entry types
class ObjectDescriptor(TypedDict, total=False):
    """Entry of a ``list_objects_v2`` ``Contents`` array."""

    Key: str
    Size: int
    LastModified: Union[str, datetime]  # boto3 returns datetime, raw APIs RFC3339 text
    ETag: str
    StorageClass: str


class ListObjectsPage(TypedDict, total=False):
    """Subset of a ``list_objects_v2`` response consumed by the lister."""

    Contents: list[ObjectDescriptor]
    IsTruncated: bool
    NextContinuationToken: str
    KeyCount: int


# Fetches one listing page: (prefix, continuation_token, max_keys) -> page
PageFetcher = Callable[[Optional[str], Optional[str], int], ListObjectsPage]


@dataclass(frozen=True)
class ManifestRecord:
    """One normalized manifest row."""

    bucket: str
    key: str
    file_name: str
    size: int
    last_modified: int  # milliseconds since epoch, UTC


@dataclass(frozen=True)
class S3Location:
    """A bucket plus an optional key or prefix."""

    bucket: str
    key: str | None = None

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}" if self.key else f"s3://{self.bucket}"


@dataclass(frozen=True)
class LocalLocation:
    """A path on the local filesystem."""

    path: str


OutputLocation = Union[S3Location, LocalLocation]


# Retry policy
@dataclass
class RetryPolicy:
    """Policy for retrying transient network failures.

    Delays grow exponentially from ``base_delay`` (seconds) and are fully
    jittered. ``max_attempts`` counts the first call.
    """

    max_attempts: int = 3
    base_delay: float = 0.1

    def __post_init__(self) -> None:
        """Validate limits."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")


# Run report
class ManifestReport(TypedDict):
    """Report from a completed manifest run."""

    bucket: str
    prefix: str | None
    output: str
    uploaded: bool
    objects: int
    batches: int
    elapsed_seconds: float
    objects_per_second: float


class WriterStats(TypedDict):
    """Counters exposed by ``ManifestWriter.stats``."""

    batches_written: int
    rows_written: int
    is_closed: bool
