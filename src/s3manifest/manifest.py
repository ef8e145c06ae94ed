"""Manifest schema, batch construction and reading."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from .types import ManifestRecord

BUCKET_COLUMN = "Bucket"
KEY_COLUMN = "Key"
FILE_NAME_COLUMN = "FileName"
SIZE_COLUMN = "Size"
LAST_MODIFIED_COLUMN = "LastModified"

MANIFEST_SCHEMA = pa.schema(
    [
        pa.field(BUCKET_COLUMN, pa.string(), nullable=False),
        pa.field(KEY_COLUMN, pa.string(), nullable=False),
        pa.field(FILE_NAME_COLUMN, pa.string(), nullable=False),
        pa.field(SIZE_COLUMN, pa.uint64(), nullable=False),
        # Milliseconds since epoch, UTC; no timezone is stored
        pa.field(LAST_MODIFIED_COLUMN, pa.timestamp("ms"), nullable=False),
    ]
)


def build_record_batch(
    buckets: Sequence[str],
    keys: Sequence[str],
    file_names: Sequence[str],
    sizes: Sequence[int],
    last_modified: Sequence[int],
) -> pa.RecordBatch:
    """Freeze five parallel columns into a batch conforming to :data:`MANIFEST_SCHEMA`.

    Raises
    ------
    ValueError
        If the columns differ in length.
    """
    lengths = {len(buckets), len(keys), len(file_names), len(sizes), len(last_modified)}
    if len(lengths) != 1:
        raise ValueError(f"Column lengths differ: {sorted(lengths)}")

    arrays = [
        pa.array(buckets, type=pa.string()),
        pa.array(keys, type=pa.string()),
        pa.array(file_names, type=pa.string()),
        pa.array(sizes, type=pa.uint64()),
        pa.array(last_modified, type=pa.timestamp("ms")),
    ]
    return pa.RecordBatch.from_arrays(arrays, schema=MANIFEST_SCHEMA)


def read_manifest(path: str | Path) -> pa.Table:
    """Read a manifest file written by :class:`ManifestWriter`."""
    return pq.read_table(path)


def load_manifest_records(path: str | Path) -> list[ManifestRecord]:
    """Load every row of a manifest as :class:`ManifestRecord` values, in file order."""
    table = read_manifest(path)
    last_modified = table.column(LAST_MODIFIED_COLUMN).cast(pa.int64()).to_pylist()
    return [
        ManifestRecord(
            bucket=bucket,
            key=key,
            file_name=file_name,
            size=size,
            last_modified=millis,
        )
        for bucket, key, file_name, size, millis in zip(
            table.column(BUCKET_COLUMN).to_pylist(),
            table.column(KEY_COLUMN).to_pylist(),
            table.column(FILE_NAME_COLUMN).to_pylist(),
            table.column(SIZE_COLUMN).to_pylist(),
            last_modified,
        )
    ]
