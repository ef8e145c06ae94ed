"""Utility functions for file-name derivation, timestamp normalization and location parsing."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from urllib.parse import urlsplit

from .exceptions import InvalidLocationError
from .types import LocalLocation, OutputLocation, S3Location

S3_SCHEME = "s3"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)
_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(?:([Zz])|([+-])(\d{2}):(\d{2}))",
    re.ASCII,
)


def extract_file_name(key: str, delimiter: str = "/") -> str:
    """Return the part of *key* after the last occurrence of *delimiter*.

    The delimiter is matched literally. When it does not occur in *key* (or
    is empty) the whole key is returned.

    Parameters
    ----------
    key : str
        Full object key.
    delimiter : str, optional
        Separator string. Defaults to ``"/"``.

    Returns
    -------
    str
        Derived file name.
    """
    if not delimiter:
        return key
    _, found, tail = key.rpartition(delimiter)
    return tail if found else key


def datetime_to_epoch_millis(value: datetime) -> int:
    """Convert a datetime to milliseconds since the Unix epoch.

    Naive datetimes are taken as UTC. Sub-millisecond precision is floored.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // _ONE_MILLISECOND


def parse_rfc3339(text: str) -> datetime | None:
    """Parse an RFC3339 timestamp, returning ``None`` if it is not one.

    Only the full ``date-time`` form is accepted: a timestamp without seconds
    or without an explicit offset (``Z`` or ``+hh:mm``) is rejected, as are
    basic and week-date ISO 8601 forms. Fractions beyond microseconds are
    truncated.
    """
    match = _RFC3339.fullmatch(text)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, zulu, sign, off_hour, off_minute = match.groups()
    if zulu:
        tz = timezone.utc
    else:
        if int(off_hour) > 23 or int(off_minute) > 59:
            return None
        offset = timedelta(hours=int(off_hour), minutes=int(off_minute))
        tz = timezone(-offset if sign == "-" else offset)
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            int((fraction or "0")[:6].ljust(6, "0")),
            tzinfo=tz,
        )
    except ValueError:
        return None


def to_epoch_millis(value: str | datetime | None) -> int:
    """Normalize a ``LastModified`` value to epoch milliseconds.

    Missing or unparseable values map to 0 so that one malformed object never
    aborts a run.

    Parameters
    ----------
    value : str | datetime | None
        RFC3339 text or a datetime as returned by boto3.

    Returns
    -------
    int
        Milliseconds since epoch, UTC.
    """
    if value is None:
        return 0
    if isinstance(value, datetime):
        return datetime_to_epoch_millis(value)
    if isinstance(value, str):
        parsed = parse_rfc3339(value)
        if parsed is not None:
            return datetime_to_epoch_millis(parsed)
    return 0


def parse_s3_uri(uri: str) -> S3Location:
    """Parse ``s3://bucket[/prefix]`` into an :class:`S3Location`.

    Parameters
    ----------
    uri : str
        Source URI.

    Returns
    -------
    S3Location
        Location whose ``key`` is the prefix, or ``None`` for the bucket root.

    Raises
    ------
    InvalidLocationError
        If the scheme is not ``s3`` or the bucket is missing.
    """
    parsed = urlsplit(uri)
    if parsed.scheme != S3_SCHEME:
        raise InvalidLocationError(uri, "Invalid S3 URI scheme. Must start with 's3://'.")
    # Host only: any userinfo and port are dropped
    bucket = parsed.netloc.rpartition("@")[2].partition(":")[0]
    if not bucket:
        raise InvalidLocationError(uri, "Missing bucket name")

    prefix = parsed.path[1:] if len(parsed.path) > 1 else None
    return S3Location(bucket=bucket, key=prefix)


def parse_output_location(output: str) -> OutputLocation:
    """Parse the ``--output`` value into a remote or local location.

    Raises
    ------
    InvalidLocationError
        If the value is empty, or an ``s3://`` output lacks a bucket or a key.
    """
    if not output.startswith(f"{S3_SCHEME}://"):
        if not output:
            raise InvalidLocationError(output, "Output path is empty")
        return LocalLocation(path=output)

    location = parse_s3_uri(output)
    key = (location.key or "").lstrip("/")
    if not key:
        raise InvalidLocationError(output, "Missing object key for the manifest")
    return S3Location(bucket=location.bucket, key=key)
