"""Progress display for a manifest run."""

from __future__ import annotations

import time

from loguru import logger
from tqdm import tqdm


class ProgressReporter:
    """Counts scanned objects and reports throughput.

    Purely observational: nothing in the pipeline depends on it.
    """

    def __init__(self, *, enabled: bool = True, description: str = "Objects scanned") -> None:
        self.count = 0
        self._start = time.monotonic()
        self._finished_at: float | None = None
        self._bar = tqdm(desc=description, unit="obj", total=None, disable=not enabled, dynamic_ncols=True)

    @property
    def elapsed(self) -> float:
        end = self._finished_at if self._finished_at is not None else time.monotonic()
        return end - self._start

    @property
    def rate(self) -> float:
        elapsed = self.elapsed
        return self.count / elapsed if elapsed > 0 else 0.0

    def advance(self, n: int = 1) -> None:
        self.count += n
        self._bar.update(n)

    def refresh(self) -> None:
        """Show the current objects/second (called once per listing page)."""
        self._bar.set_postfix_str(f"{self.rate:.2f} objects/sec")

    def finish(self) -> str:
        """Stop the clock, close the bar and log the summary line.

        Returns
        -------
        str
            The summary line.
        """
        if self._finished_at is None:
            self._finished_at = time.monotonic()
            self._bar.close()
        summary = f"Done. Processed {self.count} objects in {self.elapsed:.2f}s ({self.rate:.2f} objects/sec)"
        logger.info(summary)
        return summary

    def abort(self) -> None:
        """Stop the clock and close the bar without a summary."""
        if self._finished_at is None:
            self._finished_at = time.monotonic()
            self._bar.close()
