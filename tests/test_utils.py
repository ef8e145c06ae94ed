from datetime import datetime, timedelta, timezone

import pytest

from s3manifest.exceptions import InvalidLocationError
from s3manifest.types import LocalLocation, S3Location
from s3manifest.utils import (
    extract_file_name,
    parse_output_location,
    parse_s3_uri,
    to_epoch_millis,
)


@pytest.mark.parametrize(
    ("key", "delimiter", "expected"),
    [
        ("a/b/c.txt", "/", "c.txt"),
        ("readme.md", "/", "readme.md"),
        ("dir/", "/", ""),
        ("a::b::c", "::", "c"),
        ("a.b|c", ".", "b|c"),
        ("x.*y", ".*", "y"),
        ("", "/", ""),
        ("a/b", "", "a/b"),
    ],
)
def test_extract_file_name(key, delimiter, expected):
    assert extract_file_name(key, delimiter) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-01-01T00:00:00Z", 1704067200000),
        ("2024-01-01T01:00:00+01:00", 1704067200000),
        ("2023-12-31T19:00:00-05:00", 1704067200000),
        ("2024-01-01T00:00:00.123Z", 1704067200123),
        ("2024-01-01T00:00:00.123999Z", 1704067200123),
        ("2024-01-01t00:00:00z", 1704067200000),
        ("2024-01-01 00:00:00.123456789Z", 1704067200123),
        ("1970-01-01T00:00:00Z", 0),
        ("1969-12-31T23:59:59.999Z", -1),
    ],
)
def test_rfc3339_timestamps_convert_to_exact_utc_millis(value, expected):
    assert to_epoch_millis(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "yesterday",
        "not-a-date",
        "2024-13-01T00:00:00Z",
        "2024-01-01T00:00:00",
        "2024-01-01",
        "20240101T000000Z",
        "2024-01-01T00:00Z",
        "2024-01-01T00Z",
        "2024-W01-1T00:00:00Z",
        "2024-01-01T00:00:00+24:00",
    ],
)
def test_missing_or_malformed_timestamps_become_epoch(value):
    assert to_epoch_millis(value) == 0


def test_datetime_values_are_converted():
    aware = datetime(2024, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_epoch_millis(aware) == 1704067200000
    assert to_epoch_millis(datetime(2024, 1, 1)) == 1704067200000


def test_parse_s3_uri_with_prefix():
    assert parse_s3_uri("s3://bucket/logs/2024/") == S3Location(bucket="bucket", key="logs/2024/")


@pytest.mark.parametrize("uri", ["s3://user@bucket/x", "s3://bucket:9000/x", "s3://user:secret@bucket:9000/x"])
def test_parse_s3_uri_bucket_is_host_only(uri):
    assert parse_s3_uri(uri) == S3Location(bucket="bucket", key="x")


@pytest.mark.parametrize("uri", ["s3://bucket", "s3://bucket/"])
def test_parse_s3_uri_without_prefix(uri):
    location = parse_s3_uri(uri)
    assert location.bucket == "bucket"
    assert location.key is None
    assert location.uri == "s3://bucket"


@pytest.mark.parametrize("uri", ["gs://bucket/prefix", "bucket/prefix", "s3:///prefix", "s3://user@/prefix", ""])
def test_parse_s3_uri_rejects_invalid_uris(uri):
    with pytest.raises(InvalidLocationError):
        parse_s3_uri(uri)


def test_parse_output_location_local_path():
    assert parse_output_location("out/manifest.parquet") == LocalLocation(path="out/manifest.parquet")


def test_parse_output_location_s3():
    assert parse_output_location("s3://dest/manifests/run.parquet") == S3Location(
        bucket="dest", key="manifests/run.parquet"
    )


@pytest.mark.parametrize("output", ["s3://dest", "s3://dest/", "s3:///key", ""])
def test_parse_output_location_rejects_incomplete_values(output):
    with pytest.raises(InvalidLocationError):
        parse_output_location(output)
