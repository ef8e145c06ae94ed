from datetime import datetime, timedelta, timezone

import pytest
from botocore.exceptions import ClientError

from s3manifest.types import RetryPolicy


def client_error(code="SlowDown", operation="ListObjectsV2"):
    return ClientError({"Error": {"Code": code, "Message": "simulated failure"}}, operation)


class FakeS3Client:
    """In-memory stand-in for the two boto3 S3 calls the manifest run makes.

    ``list_objects_v2`` paginates over ``objects`` in the given order, using
    ``token-<offset>`` continuation tokens. Scripted errors are raised by the
    first calls, one per call.
    """

    def __init__(self, objects=(), *, list_errors=(), put_errors=(), ignore_prefix=False):
        self.objects = list(objects)
        self.list_errors = list(list_errors)
        self.put_errors = list(put_errors)
        # Emulates a backend that ignores the Prefix parameter
        self.ignore_prefix = ignore_prefix
        self.list_calls = []
        self.put_calls = []
        self.stored = {}

    def list_objects_v2(self, **kwargs):
        self.list_calls.append(dict(kwargs))
        if self.list_errors:
            raise self.list_errors.pop(0)

        prefix = kwargs.get("Prefix", "")
        max_keys = kwargs.get("MaxKeys", 1000)
        token = kwargs.get("ContinuationToken")
        start = int(token.split("-", 1)[1]) if token else 0

        if self.ignore_prefix:
            matching = self.objects
        else:
            matching = [obj for obj in self.objects if obj.get("Key", "").startswith(prefix)]

        page = matching[start:start + max_keys]
        truncated = start + max_keys < len(matching)
        response = {"KeyCount": len(page), "IsTruncated": truncated, "MaxKeys": max_keys}
        if page:
            response["Contents"] = page
        if truncated:
            response["NextContinuationToken"] = f"token-{start + max_keys}"
        return response

    def put_object(self, **kwargs):
        self.put_calls.append((kwargs["Bucket"], kwargs["Key"]))
        if self.put_errors:
            raise self.put_errors.pop(0)
        self.stored[(kwargs["Bucket"], kwargs["Key"])] = kwargs["Body"]
        return {"ETag": '"etag"'}


def make_objects(count, prefix="data/", start=None):
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        {
            "Key": f"{prefix}file-{index:05d}.bin",
            "Size": index,
            "LastModified": start + timedelta(seconds=index),
        }
        for index in range(count)
    ]


@pytest.fixture
def fast_retry():
    return RetryPolicy(max_attempts=3, base_delay=0)
