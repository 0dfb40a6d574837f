"""Pytest fixtures and configuration."""

import io
import os

import pytest
from PIL import Image

os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

from autoorient.exceptions import S3Error  # noqa: E402
from autoorient.models import StoredObject  # noqa: E402

EXIF_ORIENTATION_TAG = 0x0112


class InMemoryObjectStore:
    """Object store double that records every call in order."""

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.failures = {}

    def add(self, bucket, key, body, content_type):
        self.objects[(bucket, key)] = StoredObject(body=body, content_type=content_type)

    def fail_on(self, operation, key):
        """Make the next `operation` ("get", "put", "delete") on `key` raise."""
        self.failures[(operation, key)] = True

    def _maybe_fail(self, operation, bucket, key):
        if self.failures.pop((operation, key), False):
            raise S3Error(
                message=f"Simulated {operation} failure",
                bucket=bucket,
                key=key,
                operation={"get": "GetObject", "put": "PutObject", "delete": "DeleteObject"}[operation],
            )

    def get(self, bucket, key):
        self.calls.append(("get", bucket, key))
        self._maybe_fail("get", bucket, key)
        if (bucket, key) not in self.objects:
            raise S3Error(
                message="The specified key does not exist.",
                bucket=bucket,
                key=key,
                error_code="NoSuchKey",
            )
        return self.objects[(bucket, key)]

    def put(self, bucket, key, body, content_type):
        self.calls.append(("put", bucket, key))
        self._maybe_fail("put", bucket, key)
        self.objects[(bucket, key)] = StoredObject(body=body, content_type=content_type)

    def delete(self, bucket, key):
        self.calls.append(("delete", bucket, key))
        self._maybe_fail("delete", bucket, key)
        self.objects.pop((bucket, key), None)

    def operations(self):
        return [call[0] for call in self.calls]


class FakeTranscoder:
    """Transcoder double that tags its output so writes can be traced."""

    def __init__(self, error=None):
        self.error = error
        self.inputs = []

    def reorient(self, data):
        self.inputs.append(data)
        if self.error is not None:
            raise self.error
        return b"oriented:" + data


def make_jpeg(size=(4, 2), orientation=None, color=(200, 30, 30)):
    """Encode a small JPEG, optionally tagged with an EXIF orientation."""
    image = Image.new("RGB", size, color)
    params = {}
    if orientation is not None:
        exif = Image.Exif()
        exif[EXIF_ORIENTATION_TAG] = orientation
        params["exif"] = exif.tobytes()
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", **params)
    return buffer.getvalue()


@pytest.fixture
def store():
    """Return an empty in-memory object store."""
    return InMemoryObjectStore()


@pytest.fixture
def transcoder():
    """Return a transcoder double that always succeeds."""
    return FakeTranscoder()


@pytest.fixture
def rotated_jpeg():
    """Return a 4x2 JPEG whose EXIF says it must be rotated 90 degrees clockwise."""
    return make_jpeg(size=(4, 2), orientation=6)


@pytest.fixture
def s3_event():
    """Return a factory for S3 notification events."""

    def _build(*keys, bucket="test-bucket"):
        return {
            "Records": [
                {
                    "eventSource": "aws:s3",
                    "eventName": "ObjectCreated:Put",
                    "s3": {
                        "bucket": {"name": bucket, "arn": f"arn:aws:s3:::{bucket}"},
                        "object": {"key": key, "size": 1024, "eTag": "0123456789abcdef"},
                    },
                }
                for key in keys
            ]
        }

    return _build


@pytest.fixture
def lambda_context():
    """Return a minimal Lambda context."""

    class Context:
        aws_request_id = "req-0001"
        function_name = "autoorient"

    return Context()
