"""ManifestWriter for streaming record batches into a Parquet file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq
from loguru import logger

from .exceptions import ManifestWriteError
from .manifest import MANIFEST_SCHEMA
from .types import WriterStats


class ManifestWriter:
    """Writer for incrementally building a manifest file.

    Each batch becomes one Parquet row group, written as soon as it is handed
    over so memory stays bounded by a single batch. :meth:`close` writes the
    footer and must be called exactly once; until then the file is not a
    readable Parquet file.

    Local I/O failures are not retried and surface as :class:`ManifestWriteError`.
    """

    def __init__(self, path: str | Path, *, compression: str = "snappy") -> None:
        """Initialize ManifestWriter and create the output file.

        Parameters
        ----------
        path : str | Path
            Local file to create (truncated if it exists).
        compression : str, optional
            Parquet compression codec. Defaults to "snappy".

        Raises
        ------
        ManifestWriteError
            If the file cannot be created.
        """
        self.path = str(path)
        self._batches_written = 0
        self._rows_written = 0
        self._closed = False

        try:
            self._writer = pq.ParquetWriter(self.path, MANIFEST_SCHEMA, compression=compression)
        except (OSError, pa.ArrowException) as e:
            raise ManifestWriteError(self.path, str(e)) from e

    def __enter__(self) -> ManifestWriter:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: Any) -> None:
        """Context manager exit.

        Closes the writer if still open. When an exception is already
        propagating, a failure while closing is logged instead of replacing it.
        """
        if self._closed:
            return
        if exc is None:
            self.close()
            return
        try:
            self.close()
        except ManifestWriteError as close_error:
            logger.warning("Could not finalize {} after failure: {}", self.path, close_error)

    def write_batch(self, batch: pa.RecordBatch) -> None:
        """Append *batch* to the file as one row group.

        Raises
        ------
        RuntimeError
            If writer is closed.
        ManifestWriteError
            If the write fails.
        """
        if self._closed:
            raise RuntimeError("ManifestWriter is closed")

        try:
            self._writer.write_batch(batch)
        except (OSError, pa.ArrowException) as e:
            raise ManifestWriteError(self.path, str(e)) from e

        self._batches_written += 1
        self._rows_written += batch.num_rows
        logger.debug(
            "Wrote batch {} ({} rows, {} total) to {}",
            self._batches_written,
            batch.num_rows,
            self._rows_written,
            self.path,
        )

    def close(self) -> None:
        """Finalize the file footer.

        Raises
        ------
        RuntimeError
            If writer is already closed.
        ManifestWriteError
            If the footer cannot be written.
        """
        if self._closed:
            raise RuntimeError("ManifestWriter is already closed")

        self._closed = True
        try:
            self._writer.close()
        except (OSError, pa.ArrowException) as e:
            raise ManifestWriteError(self.path, str(e)) from e

    @property
    def is_closed(self) -> bool:
        """Check if writer is closed."""
        return self._closed

    def stats(self) -> WriterStats:
        """Get writer statistics.

        Returns
        -------
        WriterStats
            Counts of batches and rows written so far.
        """
        return {
            "batches_written": self._batches_written,
            "rows_written": self._rows_written,
            "is_closed": self._closed,
        }
