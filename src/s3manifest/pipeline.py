"""ManifestPipeline: list, accumulate, write and optionally upload a manifest."""

from __future__ import annotations

import enum
from typing import Any

from loguru import logger

from .accumulator import RecordAccumulator
from .progress import ProgressReporter
from .settings import ManifestSettings
from .sink import OutputSink, open_sink
from .store import ObjectStore
from .types import LocalLocation, ManifestReport, OutputLocation, S3Location
from .utils import parse_output_location, parse_s3_uri
from .writer import ManifestWriter


class PipelineState(enum.Enum):
    IDLE = "idle"
    LISTING = "listing"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"
    FINAL_FLUSH = "final_flush"
    CLOSING = "closing"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


class ManifestPipeline:
    """A single, strictly sequential manifest run.

    Listing, accumulation and flushing happen in one control flow: the next
    page is never requested while a batch is being written. A pipeline runs
    once; an interrupted run has to start over with a new instance.
    """

    def __init__(
        self,
        source: S3Location,
        output: OutputLocation,
        *,
        source_store: ObjectStore,
        dest_store: ObjectStore | None = None,
        delimiter: str = "/",
        batch_size: int = 1000,
        page_size: int = 1000,
        show_progress: bool = True,
    ) -> None:
        """Initialize the pipeline.

        Parameters
        ----------
        source : S3Location
            Bucket and optional prefix to enumerate.
        output : OutputLocation
            Local path or S3 location of the manifest.
        source_store : ObjectStore
            Store for the source bucket.
        dest_store : ObjectStore | None
            Store for the destination bucket; required when *output* is an S3 location.
        delimiter : str
            Separator used to derive file names.
        batch_size : int
            Records per written batch.
        page_size : int
            Keys requested per listing page.
        show_progress : bool
            Display a progress bar.
        """
        if isinstance(output, S3Location) and dest_store is None:
            raise ValueError("dest_store is required for S3 output")

        self.source = source
        self.output = output
        self.source_store = source_store
        self.dest_store = dest_store
        self.delimiter = delimiter
        self.batch_size = batch_size
        self.page_size = page_size
        self.show_progress = show_progress

        self.state = PipelineState.IDLE
        self.failed_state: PipelineState | None = None
        self._batches = 0

    def _transition(self, state: PipelineState) -> None:
        if state is not self.state:
            logger.trace("Pipeline {} -> {}", self.state.value, state.value)
            self.state = state

    def run(self) -> ManifestReport:
        """Run the pipeline to completion.

        Returns
        -------
        ManifestReport

        Raises
        ------
        ListingError
            If a listing page could not be fetched.
        ManifestWriteError
            If the local manifest file could not be written.
        UploadError
            If the manifest could not be uploaded.
        RuntimeError
            If the pipeline has already run.
        """
        if self.state is not PipelineState.IDLE:
            raise RuntimeError("ManifestPipeline has already run")

        progress = ProgressReporter(enabled=self.show_progress)
        try:
            with open_sink(self.output, self.dest_store) as sink:
                logger.info("Generating manifest for {} into {}", self.source.uri, sink.destination)
                self._write_manifest(sink, progress)
                if sink.is_remote:
                    self._transition(PipelineState.UPLOADING)
                    sink.finalize()
                destination = sink.destination
        except Exception:
            self.failed_state = self.state
            self._transition(PipelineState.FAILED)
            progress.abort()
            raise

        self._transition(PipelineState.DONE)
        progress.finish()
        return {
            "bucket": self.source.bucket,
            "prefix": self.source.key,
            "output": destination,
            "uploaded": isinstance(self.output, S3Location),
            "objects": progress.count,
            "batches": self._batches,
            "elapsed_seconds": progress.elapsed,
            "objects_per_second": progress.rate,
        }

    def _write_manifest(self, sink: OutputSink, progress: ProgressReporter) -> None:
        accumulator = RecordAccumulator(self.source.bucket, delimiter=self.delimiter, capacity=self.batch_size)
        lister = self.source_store.iter_objects(
            self.source.key,
            page_size=self.page_size,
            on_accept=lambda _obj: progress.advance(),
            on_page=lambda _page: progress.refresh(),
        )

        with ManifestWriter(sink.path) as writer:
            self._transition(PipelineState.LISTING)
            for descriptor in lister:
                self._transition(PipelineState.ACCUMULATING)
                accumulator.append_descriptor(descriptor)
                if accumulator.should_flush():
                    self._transition(PipelineState.FLUSHING)
                    writer.write_batch(accumulator.drain_batch())

            self._transition(PipelineState.FINAL_FLUSH)
            remainder = accumulator.drain_batch()
            if remainder is not None:
                writer.write_batch(remainder)

            self._transition(PipelineState.CLOSING)
            writer.close()
            self._batches = writer.stats()["batches_written"]

        if lister.skipped:
            logger.info("Ignored {} listed objects outside prefix {}", lister.skipped, self.source.key)


def generate_manifest(
    source_uri: str,
    output: str,
    *,
    settings: ManifestSettings | None = None,
    source_client: Any = None,
    dest_client: Any = None,
    show_progress: bool = True,
) -> ManifestReport:
    """Generate a manifest of every object under *source_uri*.

    Both locations are parsed before any client is created or any request is
    made.

    Parameters
    ----------
    source_uri : str
        ``s3://bucket[/prefix]``.
    output : str
        Local path or ``s3://bucket/key`` for the manifest.
    settings : ManifestSettings | None
        Run settings. Loaded from the environment when None.
    source_client : Any
        S3 client for the source. Created from ``settings.source`` when None.
    dest_client : Any
        S3 client for the destination. Created from ``settings.dest`` when None.
    show_progress : bool
        Display a progress bar.

    Returns
    -------
    ManifestReport
    """
    source = parse_s3_uri(source_uri)
    output_location = parse_output_location(output)
    settings = settings or ManifestSettings()
    policy = settings.retry_policy

    source_store = ObjectStore(source_client or settings.source, source.bucket, retry_policy=policy)
    dest_store = None
    if not isinstance(output_location, LocalLocation):
        dest_store = ObjectStore(dest_client or settings.dest, output_location.bucket, retry_policy=policy)

    pipeline = ManifestPipeline(
        source,
        output_location,
        source_store=source_store,
        dest_store=dest_store,
        delimiter=settings.delimiter,
        batch_size=settings.batch_size,
        page_size=settings.page_size,
        show_progress=show_progress,
    )
    return pipeline.run()
