"""
Object store access over S3.

`S3ObjectStore` is the only code that talks to S3; the handler depends on the
narrow `ObjectStore` protocol so it can be exercised with an in-memory double.
"""

import logging
import os
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import S3Error
from .models import StoredObject

logger = logging.getLogger(__name__)

AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
LOCALSTACK_ENDPOINT = os.environ.get("LOCALSTACK_ENDPOINT")

# Single attempt per call: failures surface to the invocation, never retried here
boto_config = Config(
    retries={"total_max_attempts": 1, "mode": "standard"},
    connect_timeout=10,
    read_timeout=60,
)


class ObjectStore(Protocol):
    def get(self, bucket: str, key: str) -> StoredObject: ...

    def put(self, bucket: str, key: str, body: bytes, content_type: str) -> None: ...

    def delete(self, bucket: str, key: str) -> None: ...


class AWSClientFactory:
    """Factory for creating AWS clients with proper configuration."""

    _s3_client = None

    @classmethod
    def get_s3_client(cls):
        """Get or create S3 client."""
        if cls._s3_client is None:
            kwargs = {"config": boto_config, "region_name": AWS_REGION}
            if LOCALSTACK_ENDPOINT:
                kwargs["endpoint_url"] = LOCALSTACK_ENDPOINT
            cls._s3_client = boto3.client("s3", **kwargs)
        return cls._s3_client

    @classmethod
    def reset(cls):
        """Reset clients (useful for testing)."""
        cls._s3_client = None


def _error_code(error: Exception) -> Optional[str]:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


class S3ObjectStore:
    """Get, put and delete objects through a boto3 S3 client."""

    def __init__(self, client=None):
        self.s3 = client if client is not None else AWSClientFactory.get_s3_client()

    def get(self, bucket: str, key: str) -> StoredObject:
        """
        Download an object and its content type.

        Raises:
            S3Error: If the object cannot be read
        """
        try:
            response = self.s3.get_object(Bucket=bucket, Key=key)
            body = response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise S3Error(
                message=f"Failed to download from S3: {e}",
                bucket=bucket,
                key=key,
                operation="GetObject",
                error_code=_error_code(e),
                original_exception=e,
            )

        content_type = response.get("ContentType") or ""
        logger.info(
            f"Downloaded {len(body)} bytes from S3",
            extra={"s3_bucket": bucket, "s3_key": key, "content_type": content_type},
        )
        return StoredObject(body=body, content_type=content_type)

    def put(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        """
        Upload an object, overwriting any existing one.

        Raises:
            S3Error: If the write fails
        """
        kwargs = {"Bucket": bucket, "Key": key, "Body": body}
        if content_type:
            kwargs["ContentType"] = content_type
        try:
            self.s3.put_object(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise S3Error(
                message=f"Failed to upload to S3: {e}",
                bucket=bucket,
                key=key,
                operation="PutObject",
                error_code=_error_code(e),
                original_exception=e,
            )

        logger.info(
            f"Uploaded {len(body)} bytes to S3",
            extra={"s3_bucket": bucket, "s3_key": key, "content_type": content_type},
        )

    def delete(self, bucket: str, key: str) -> None:
        """
        Delete an object.

        Raises:
            S3Error: If the delete fails
        """
        try:
            self.s3.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise S3Error(
                message=f"Failed to delete from S3: {e}",
                bucket=bucket,
                key=key,
                operation="DeleteObject",
                error_code=_error_code(e),
                original_exception=e,
            )

        logger.info("Deleted source object", extra={"s3_bucket": bucket, "s3_key": key})
