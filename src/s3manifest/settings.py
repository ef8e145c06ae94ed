from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from loguru import logger
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidEndpointError
from .types import RetryPolicy

if TYPE_CHECKING:
    import boto3


def raw_timestamp_client_factory() -> Callable[..., object]:
    """Return a boto3 client constructor whose responses keep timestamps as text.

    botocore normally parses ``LastModified`` itself and raises ``ValueError``
    on text it cannot read. With the parser replaced by the identity, the
    RFC3339 text is handed to :func:`~s3manifest.utils.to_epoch_millis`, which
    maps malformed values to 0.
    """
    import boto3
    import botocore.session

    botocore_session = botocore.session.get_session()
    botocore_session.get_component("response_parser_factory").set_parser_defaults(
        timestamp_parser=lambda value: value
    )
    return boto3.session.Session(botocore_session=botocore_session).client


class StorageEndpointConfig(BaseModel):
    """Connection settings for one side (source or destination) of a run.

    Explicit keys are used only when both are present; otherwise boto3 falls
    back to its ambient credential chain (environment, profile, instance role).
    """

    # Custom endpoint URL for S3-compatible services; None means AWS
    endpoint_url: str | None = None

    # Region name; None lets boto3 resolve it from the environment
    region: str | None = None

    # The access key ID for this endpoint
    access_key: str | None = None

    # The secret access key for this endpoint
    secret_key: str | None = None

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key)

    def create_client(self, client_factory: Callable[..., object] | None = None) -> boto3.client:
        """Create an S3 client from the settings.

        Raises
        ------
        InvalidEndpointError
            If boto3 rejects the endpoint URL or region.
        """

        from botocore.client import Config

        if client_factory is None:
            client_factory = raw_timestamp_client_factory()

        kwargs: dict[str, object] = {
            "endpoint_url": self.endpoint_url,
            "region_name": self.region,
            "config": Config(signature_version="s3v4"),
        }
        if self.has_static_credentials:
            kwargs["aws_access_key_id"] = self.access_key
            kwargs["aws_secret_access_key"] = self.secret_key
        elif self.access_key or self.secret_key:
            logger.warning(
                "Only one of access key / secret key given for {}; using the default credential chain",
                self.endpoint_url or "AWS",
            )
        try:
            return client_factory("s3", **kwargs)
        except ValueError as e:
            raise InvalidEndpointError(self.endpoint_url, str(e)) from e


class ManifestSettings(BaseSettings):
    """Settings for a manifest run.

    You can adapt the following settings in your environment variables (or using an .env file):
    - S3_MANIFEST_DELIMITER: Separator used to derive file names from keys
    - S3_MANIFEST_PAGE_SIZE: Keys requested per listing page (max 1000)
    - S3_MANIFEST_BATCH_SIZE: Rows per Parquet row group
    - S3_MANIFEST_RETRY_ATTEMPTS: Attempts per listing page or upload
    - S3_MANIFEST_RETRY_BASE_DELAY: First backoff delay in seconds
    - S3_MANIFEST_SOURCE__ENDPOINT_URL, S3_MANIFEST_SOURCE__ACCESS_KEY, ...: Source endpoint
    - S3_MANIFEST_DEST__ENDPOINT_URL, S3_MANIFEST_DEST__ACCESS_KEY, ...: Destination endpoint

    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="S3_MANIFEST_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    delimiter: str = "/"

    page_size: int = Field(default=1000, ge=1, le=1000)

    batch_size: int = Field(default=1000, ge=1)

    retry_attempts: int = Field(default=3, ge=1)

    retry_base_delay: float = Field(default=0.1, ge=0)

    log_level: str = "INFO"

    source: StorageEndpointConfig = Field(default_factory=StorageEndpointConfig)

    dest: StorageEndpointConfig = Field(default_factory=StorageEndpointConfig)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.retry_attempts, base_delay=self.retry_base_delay)
