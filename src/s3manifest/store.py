"""ObjectStore: one bucket on one S3 endpoint, with retried network calls."""

from __future__ import annotations

from typing import Any, Callable

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from .exceptions import ListingError, UploadError
from .lister import ObjectLister
from .retry import call_with_retry
from .settings import StorageEndpointConfig
from .types import ListObjectsPage, ObjectDescriptor, RetryPolicy

MAX_PAGE_SIZE = 1000


class ObjectStore:
    """Store class for the S3 calls a manifest run makes.

    Only the single network call is retried; pagination lives in
    :class:`ObjectLister`, which receives :meth:`list_objects_page` as its
    page fetcher.
    """

    def __init__(
        self,
        s3_client_or_config: Any,
        bucket: str,
        *,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the store.

        Parameters
        ----------
        s3_client_or_config : BaseClient | StorageEndpointConfig
            Boto3 S3 client or :class:`StorageEndpointConfig` (which creates one).
        bucket : str
            Bucket all calls target.
        retry_policy : RetryPolicy | None
            Retry policy for listing and uploads. Defaults to 3 attempts from 100ms.
        """
        if isinstance(s3_client_or_config, StorageEndpointConfig):
            s3_client = s3_client_or_config.create_client()
        elif s3_client_or_config is None:
            raise ValueError("s3_client must be a boto3 client or StorageEndpointConfig instance")
        else:
            s3_client = s3_client_or_config

        self.s3_client = s3_client
        self.bucket = bucket
        self.retry_policy = retry_policy or RetryPolicy()

    def uri(self, key: str | None = None) -> str:
        return f"s3://{self.bucket}/{key}" if key else f"s3://{self.bucket}"

    # ------------------------------------------------------------------ #
    #  List APIs                                                          #
    # ------------------------------------------------------------------ #

    def list_objects_page(
        self,
        prefix: str | None,
        continuation_token: str | None = None,
        max_keys: int = MAX_PAGE_SIZE,
    ) -> ListObjectsPage:
        """Fetch one ``list_objects_v2`` page, retrying transient failures.

        Parameters
        ----------
        prefix : str | None
            Key prefix, omitted from the request when ``None``.
        continuation_token : str | None
            Token from the previous page, omitted on the first request.
        max_keys : int
            Page size.

        Returns
        -------
        ListObjectsPage

        Raises
        ------
        ListingError
            If every attempt failed.
        """
        params: dict[str, Any] = {"Bucket": self.bucket, "MaxKeys": max_keys}
        if prefix:
            params["Prefix"] = prefix
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            return call_with_retry(
                self.s3_client.list_objects_v2,
                policy=self.retry_policy,
                operation=f"listing objects in {self.uri(prefix)}",
                **params,
            )
        except (BotoCoreError, ClientError) as e:
            raise ListingError(self.bucket, prefix, str(e)) from e

    def iter_objects(
        self,
        prefix: str | None = None,
        *,
        page_size: int = MAX_PAGE_SIZE,
        on_accept: Callable[[ObjectDescriptor], None] | None = None,
        on_page: Callable[[int], None] | None = None,
    ) -> ObjectLister:
        """Return a lazy lister over every object under *prefix*.

        Parameters
        ----------
        prefix : str | None
            Key prefix.
        page_size : int
            Keys requested per page.
        on_accept : Callable[[ObjectDescriptor], None] | None
            Called for each object that passes the prefix check.
        on_page : Callable[[int], None] | None
            Called with the page number after each page.

        Returns
        -------
        ObjectLister
        """
        return ObjectLister(
            self.list_objects_page,
            self.bucket,
            prefix=prefix,
            page_size=min(page_size, MAX_PAGE_SIZE),
            on_accept=on_accept,
            on_page=on_page,
        )

    # ------------------------------------------------------------------ #
    #  Write APIs                                                         #
    # ------------------------------------------------------------------ #

    def put_object(self, key: str, data: bytes) -> None:
        """Store *data* under *key* with a single retried ``put_object``.

        Raises
        ------
        UploadError
            If every attempt failed.
        """
        logger.info("Uploading {} bytes to {}", len(data), self.uri(key))
        try:
            call_with_retry(
                self.s3_client.put_object,
                policy=self.retry_policy,
                operation=f"uploading object to {self.uri(key)}",
                Bucket=self.bucket,
                Key=key,
                Body=data,
            )
        except (BotoCoreError, ClientError) as e:
            raise UploadError(self.bucket, key, str(e)) from e
