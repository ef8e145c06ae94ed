"""Lazy, paginated enumeration of the objects under a prefix."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Callable

from loguru import logger

from .exceptions import ListingError
from .types import ObjectDescriptor, PageFetcher


class ObjectLister:
    """Iterate over every object under a prefix, one listing page at a time.

    Pages are requested only as the consumer pulls descriptors, so at most one
    page is held in memory. Iterating again starts over from the first page
    and resets the counters.

    The lister knows nothing about retries: *fetch_page* is expected to retry
    on its own (see :meth:`ObjectStore.list_objects_page`).
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        bucket: str,
        *,
        prefix: str | None = None,
        page_size: int = 1000,
        on_accept: Callable[[ObjectDescriptor], None] | None = None,
        on_page: Callable[[int], None] | None = None,
    ) -> None:
        """Initialize the lister.

        Parameters
        ----------
        fetch_page : PageFetcher
            Called as ``fetch_page(prefix, continuation_token, page_size)``.
        bucket : str
            Bucket being listed (used in error messages).
        prefix : str | None, optional
            Key prefix. Returned keys that do not start with it are dropped.
        page_size : int, optional
            Keys requested per page. Defaults to 1000.
        on_accept : Callable[[ObjectDescriptor], None] | None, optional
            Called for every accepted object.
        on_page : Callable[[int], None] | None, optional
            Called with the page number after each page has been consumed.
        """
        self.fetch_page = fetch_page
        self.bucket = bucket
        self.prefix = prefix
        self.page_size = page_size
        self.on_accept = on_accept
        self.on_page = on_page

        self.accepted = 0
        self.skipped = 0
        self.pages = 0

    def _accepts(self, key: str) -> bool:
        # Some S3-compatible backends return keys outside the requested prefix
        return not self.prefix or key.startswith(self.prefix)

    def __iter__(self) -> Iterator[ObjectDescriptor]:
        self.accepted = 0
        self.skipped = 0
        self.pages = 0
        continuation_token: str | None = None

        while True:
            page = self.fetch_page(self.prefix, continuation_token, self.page_size)
            self.pages += 1

            for obj in page.get("Contents") or []:
                key = obj.get("Key") or ""
                if not self._accepts(key):
                    self.skipped += 1
                    logger.debug("Skipping {} (outside prefix {})", key, self.prefix)
                    continue

                self.accepted += 1
                if self.on_accept is not None:
                    self.on_accept(obj)
                yield obj

            if self.on_page is not None:
                self.on_page(self.pages)

            if not page.get("IsTruncated", False):
                break

            continuation_token = page.get("NextContinuationToken")
            if not continuation_token:
                raise ListingError(
                    self.bucket,
                    self.prefix,
                    f"page {self.pages} is truncated but has no continuation token",
                )
