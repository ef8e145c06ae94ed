"""S3 Manifest - Parquet manifests of every object under an S3 bucket/prefix."""

from __future__ import annotations

from .accumulator import RecordAccumulator, normalize_descriptor
from .exceptions import (
    InvalidEndpointError,
    InvalidLocationError,
    ListingError,
    ManifestWriteError,
    S3ManifestError,
    UploadError,
)
from .lister import ObjectLister
from .manifest import (
    MANIFEST_SCHEMA,
    build_record_batch,
    load_manifest_records,
    read_manifest,
)
from .pipeline import ManifestPipeline, PipelineState, generate_manifest
from .progress import ProgressReporter
from .retry import call_with_retry
from .settings import ManifestSettings, StorageEndpointConfig
from .sink import LocalSink, OutputSink, RemoteSink, open_sink
from .store import ObjectStore
from .types import (
    ListObjectsPage,
    LocalLocation,
    ManifestRecord,
    ManifestReport,
    ObjectDescriptor,
    OutputLocation,
    RetryPolicy,
    S3Location,
)
from .utils import (
    extract_file_name,
    parse_output_location,
    parse_s3_uri,
    to_epoch_millis,
)
from .writer import ManifestWriter

__all__ = [
    # Main classes
    "ManifestPipeline",
    "PipelineState",
    "ObjectStore",
    "ObjectLister",
    "RecordAccumulator",
    "ManifestWriter",
    "ProgressReporter",
    "generate_manifest",
    # Sinks
    "OutputSink",
    "LocalSink",
    "RemoteSink",
    "open_sink",
    # Settings
    "ManifestSettings",
    "StorageEndpointConfig",
    # Types
    "ObjectDescriptor",
    "ListObjectsPage",
    "ManifestRecord",
    "ManifestReport",
    "RetryPolicy",
    "S3Location",
    "LocalLocation",
    "OutputLocation",
    # Exceptions
    "S3ManifestError",
    "InvalidLocationError",
    "InvalidEndpointError",
    "ListingError",
    "UploadError",
    "ManifestWriteError",
    # Manifest utilities
    "MANIFEST_SCHEMA",
    "build_record_batch",
    "read_manifest",
    "load_manifest_records",
    # Utils
    "call_with_retry",
    "normalize_descriptor",
    "extract_file_name",
    "to_epoch_millis",
    "parse_s3_uri",
    "parse_output_location",
]
