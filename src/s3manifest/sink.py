"""Output sinks: where the manifest file is written and, if remote, uploaded."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger

from .exceptions import ManifestWriteError
from .store import ObjectStore
from .types import LocalLocation, OutputLocation, S3Location


class OutputSink:
    """Base class for manifest destinations.

    ``path`` is the local file the writer targets. :meth:`finalize` is called
    once the writer is closed; :meth:`cleanup` releases local resources and
    runs on every exit path when the sink is used as a context manager.
    """

    path: str
    is_remote = False

    def __enter__(self) -> OutputSink:
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: Any) -> None:
        self.cleanup()

    @property
    def destination(self) -> str:
        return self.path

    def finalize(self) -> None:
        pass

    def cleanup(self) -> None:
        pass


class LocalSink(OutputSink):
    """Writes the manifest straight to its final local path."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)


class RemoteSink(OutputSink):
    """Writes the manifest to a private temporary file, then uploads it.

    The upload is a single ``put_object`` of the whole file, retried by the
    destination :class:`ObjectStore`. The temporary file is removed by
    :meth:`cleanup` whether or not the upload succeeded.
    """

    is_remote = True

    def __init__(self, store: ObjectStore, key: str) -> None:
        self.store = store
        self.key = key
        try:
            fd, path = tempfile.mkstemp(prefix="s3-manifest-", suffix=".parquet")
        except OSError as e:
            raise ManifestWriteError(tempfile.gettempdir(), str(e)) from e
        os.close(fd)
        self.path = path
        self._cleaned_up = False

    @property
    def destination(self) -> str:
        return self.store.uri(self.key)

    def finalize(self) -> None:
        """Upload the closed manifest file.

        Raises
        ------
        ManifestWriteError
            If the temporary file cannot be read back.
        UploadError
            If the upload failed after all retries.
        """
        try:
            data = Path(self.path).read_bytes()
        except OSError as e:
            raise ManifestWriteError(self.path, str(e)) from e
        self.store.put_object(self.key, data)
        logger.info("Uploaded manifest to {}", self.destination)

    def cleanup(self) -> None:
        if self._cleaned_up:
            return
        self._cleaned_up = True
        try:
            Path(self.path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove temporary manifest {}: {}", self.path, e)


def open_sink(location: OutputLocation, dest_store: ObjectStore | None = None) -> OutputSink:
    """Create the sink for *location*.

    Parameters
    ----------
    location : OutputLocation
        Parsed ``--output`` value.
    dest_store : ObjectStore | None
        Store for the destination bucket; required for S3 locations.

    Returns
    -------
    OutputSink
    """
    if isinstance(location, LocalLocation):
        return LocalSink(location.path)
    if isinstance(location, S3Location):
        if dest_store is None:
            raise ValueError("A destination store is required for S3 output")
        if dest_store.bucket != location.bucket:
            raise ValueError(
                f"Destination store targets bucket {dest_store.bucket!r}, expected {location.bucket!r}"
            )
        return RemoteSink(dest_store, location.key or "")
    raise TypeError(f"Unsupported output location: {location!r}")
