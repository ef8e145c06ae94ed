"""Record accumulation into fixed-capacity column buffers."""

from __future__ import annotations

import pyarrow as pa

from .manifest import build_record_batch
from .types import ManifestRecord, ObjectDescriptor
from .utils import extract_file_name, to_epoch_millis

DEFAULT_BATCH_SIZE = 1000


def normalize_descriptor(descriptor: ObjectDescriptor, bucket: str, delimiter: str = "/") -> ManifestRecord:
    """Turn a listing entry into a manifest record.

    Never fails: a missing key becomes ``""``, a missing or negative size
    becomes 0 and a missing or malformed timestamp becomes the epoch.
    """
    key = descriptor.get("Key") or ""
    size = descriptor.get("Size") or 0
    if size < 0:
        size = 0
    return ManifestRecord(
        bucket=bucket,
        key=key,
        file_name=extract_file_name(key, delimiter),
        size=size,
        last_modified=to_epoch_millis(descriptor.get("LastModified")),
    )


class RecordAccumulator:
    """Five parallel column buffers filled one record at a time.

    The buffers always have equal length; a record is appended to all of them
    or to none. Drained buffers start over empty.
    """

    def __init__(self, bucket: str, *, delimiter: str = "/", capacity: int = DEFAULT_BATCH_SIZE) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.bucket = bucket
        self.delimiter = delimiter
        self.capacity = capacity
        self._reset()

    def _reset(self) -> None:
        self._buckets: list[str] = []
        self._keys: list[str] = []
        self._file_names: list[str] = []
        self._sizes: list[int] = []
        self._last_modified: list[int] = []

    def __len__(self) -> int:
        return len(self._keys)

    def append(self, record: ManifestRecord) -> None:
        """Append one record across all five columns."""
        self._buckets.append(record.bucket)
        self._keys.append(record.key)
        self._file_names.append(record.file_name)
        self._sizes.append(record.size)
        self._last_modified.append(record.last_modified)

    def append_descriptor(self, descriptor: ObjectDescriptor) -> ManifestRecord:
        """Normalize *descriptor* against this run's bucket and delimiter, then append it."""
        record = normalize_descriptor(descriptor, self.bucket, self.delimiter)
        self.append(record)
        return record

    def should_flush(self) -> bool:
        return len(self._keys) >= self.capacity

    def drain_batch(self) -> pa.RecordBatch | None:
        """Freeze the buffered records into a batch and empty the buffers.

        Returns
        -------
        pa.RecordBatch | None
            The batch, or None if nothing was buffered.
        """
        if not self._keys:
            return None

        batch = build_record_batch(
            self._buckets,
            self._keys,
            self._file_names,
            self._sizes,
            self._last_modified,
        )
        self._reset()
        return batch
