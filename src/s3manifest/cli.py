"""Command line entry point: ``s3-manifest S3_URI --output OUTPUT``."""

from __future__ import annotations

import sys
from typing import Any

import click
from loguru import logger
from pydantic import ValidationError
from tqdm import tqdm

from .exceptions import InvalidEndpointError, InvalidLocationError, S3ManifestError
from .pipeline import generate_manifest
from .settings import ManifestSettings
from .utils import parse_output_location, parse_s3_uri

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def configure_logging(level: str) -> None:
    """Send log lines through tqdm so they don't break the progress bar."""
    logger.remove()
    logger.add(
        sink=lambda msg: tqdm.write(msg, end="", file=sys.stderr),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=level.upper(),
    )


def _endpoint_overrides(endpoint: str | None, access_key: str | None, secret_key: str | None) -> dict[str, str]:
    values = {"endpoint_url": endpoint, "access_key": access_key, "secret_key": secret_key}
    return {name: value for name, value in values.items() if value is not None}


def build_settings(
    *,
    delimiter: str | None,
    log_level: str | None,
    source_endpoint: str | None,
    source_access_key: str | None,
    source_secret_key: str | None,
    dest_endpoint: str | None,
    dest_access_key: str | None,
    dest_secret_key: str | None,
) -> ManifestSettings:
    """Build settings from the environment, overridden by the given command line values."""
    overrides: dict[str, Any] = {}
    if delimiter is not None:
        overrides["delimiter"] = delimiter
    if log_level is not None:
        overrides["log_level"] = log_level
    source = _endpoint_overrides(source_endpoint, source_access_key, source_secret_key)
    if source:
        overrides["source"] = source
    dest = _endpoint_overrides(dest_endpoint, dest_access_key, dest_secret_key)
    if dest:
        overrides["dest"] = dest
    return ManifestSettings(**overrides)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("s3_uri")
@click.option(
    "-o",
    "--output",
    required=True,
    help="Output file for the Parquet manifest (local path or S3 URI)",
)
@click.option(
    "--source-endpoint",
    default=None,
    help="Custom S3 endpoint URL for the source bucket (for S3-compatible services)",
)
@click.option(
    "--dest-endpoint",
    default=None,
    help="Custom S3 endpoint URL for the destination bucket (for S3-compatible services)",
)
@click.option(
    "-d",
    "--delimiter",
    default=None,
    help="Delimiter used to extract the file name from a key  [default: /]",
)
@click.option("--source-access-key", default=None, help="Access key ID for the source bucket")
@click.option("--source-secret-key", default=None, help="Secret access key for the source bucket")
@click.option("--dest-access-key", default=None, help="Access key ID for the destination bucket")
@click.option("--dest-secret-key", default=None, help="Secret access key for the destination bucket")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Set the logging level  [default: INFO]",
)
@click.option("--no-progress", is_flag=True, default=False, help="Hide the progress bar")
def main(
    s3_uri: str,
    output: str,
    source_endpoint: str | None,
    dest_endpoint: str | None,
    delimiter: str | None,
    source_access_key: str | None,
    source_secret_key: str | None,
    dest_access_key: str | None,
    dest_secret_key: str | None,
    log_level: str | None,
    no_progress: bool,
) -> None:
    """
    Generate a Parquet manifest of every object under S3_URI (s3://bucket[/prefix]).

    The manifest has one row per object with its bucket, key, file name, size
    and last-modified time. When --output is an s3:// URI the manifest is
    written to a temporary file and uploaded there.

    Credentials not given on the command line are resolved the usual boto3 way
    (environment, shared config, instance role).
    """
    try:
        settings = build_settings(
            delimiter=delimiter,
            log_level=log_level,
            source_endpoint=source_endpoint,
            source_access_key=source_access_key,
            source_secret_key=source_secret_key,
            dest_endpoint=dest_endpoint,
            dest_access_key=dest_access_key,
            dest_secret_key=dest_secret_key,
        )
    except ValidationError as e:
        click.echo(f"Error: invalid settings: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(settings.log_level)

    try:
        # Reject malformed locations before any client is created
        parse_s3_uri(s3_uri)
        parse_output_location(output)
    except InvalidLocationError as e:
        logger.error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        report = generate_manifest(s3_uri, output, settings=settings, show_progress=not no_progress)
    except InvalidEndpointError as e:
        logger.error(str(e))
        sys.exit(EXIT_CONFIG_ERROR)
    except S3ManifestError as e:
        logger.error(str(e))
        sys.exit(EXIT_FAILURE)

    click.echo(
        f"Wrote {report['objects']} objects in {report['batches']} batches to {report['output']}"
    )


if __name__ == "__main__":
    main()
