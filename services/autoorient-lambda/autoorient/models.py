"""
Data models for the image auto-orient handler.
Covers the S3 notification payload, the fetched object and per-object results.
"""

from enum import Enum
from typing import Optional
from urllib.parse import unquote_plus

from pydantic import BaseModel, Field


class S3Bucket(BaseModel):
    """Bucket section of an S3 notification record."""
    name: str = Field(..., min_length=1)
    arn: Optional[str] = None


class S3Object(BaseModel):
    """Object section of an S3 notification record. The key is form-encoded."""
    key: str = Field(..., min_length=1)
    size: Optional[int] = None
    e_tag: Optional[str] = Field(None, alias="eTag")
    version_id: Optional[str] = Field(None, alias="versionId")

    class Config:
        populate_by_name = True


class S3Entity(BaseModel):
    bucket: S3Bucket
    s3_object: S3Object = Field(..., alias="object")

    class Config:
        populate_by_name = True


class S3EventRecord(BaseModel):
    """One record of an S3 event notification."""
    event_source: Optional[str] = Field(None, alias="eventSource")
    event_name: Optional[str] = Field(None, alias="eventName")
    s3: S3Entity

    class Config:
        populate_by_name = True


class StorageEvent(BaseModel):
    """
    A single object-stored notification.

    The raw key is kept exactly as delivered; `key` is the decoded form used
    for every store call.
    """
    bucket: str
    raw_key: str

    class Config:
        frozen = True

    @property
    def key(self) -> str:
        """Key with `+` read as space and percent-escapes decoded."""
        return unquote_plus(self.raw_key)

    @classmethod
    def from_record(cls, record: S3EventRecord) -> "StorageEvent":
        return cls(bucket=record.s3.bucket.name, raw_key=record.s3.s3_object.key)


class StoredObject(BaseModel):
    """Object content fetched from the store for the duration of one invocation."""
    body: bytes
    content_type: str = ""

    class Config:
        frozen = True


class Decision(str, Enum):
    """What the handler does with a fetched object."""
    TRANSCODE = "transcode"
    PASS_THROUGH = "pass_through"
    SKIP = "skip"


class ProcessingResult(BaseModel):
    """Outcome of handling one announced object."""
    bucket: str
    source_key: str
    destination_key: Optional[str] = None
    decision: Decision
    content_type: str
    source_deleted: bool = False
    bytes_in: int = 0
    bytes_out: int = 0

    def to_response(self) -> dict:
        """Convert to the camelCase shape returned to the runtime."""
        return {
            "bucket": self.bucket,
            "sourceKey": self.source_key,
            "destinationKey": self.destination_key,
            "decision": self.decision.value,
            "contentType": self.content_type,
            "sourceDeleted": self.source_deleted,
            "bytesIn": self.bytes_in,
            "bytesOut": self.bytes_out,
        }
