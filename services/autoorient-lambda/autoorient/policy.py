"""
Destination policy: where a processed object is written and whether the
announced source object is removed afterwards.
"""

from enum import Enum

from pydantic import BaseModel, field_validator, model_validator

KEY_SEPARATOR = "/"


class DestinationMode(str, Enum):
    IDENTITY = "identity"
    REWRITE = "rewrite"


class DestinationPolicy(BaseModel):
    """
    Identity writes back over the source key. Rewrite replaces the first path
    segment of the source key with `prefix` and deletes the source once the
    write has succeeded.
    """
    mode: DestinationMode = DestinationMode.REWRITE
    prefix: str = "raw"

    class Config:
        frozen = True

    @field_validator("prefix")
    @classmethod
    def _single_segment(cls, value: str) -> str:
        value = value.strip(KEY_SEPARATOR)
        if KEY_SEPARATOR in value:
            raise ValueError(f"prefix must be a single path segment, got {value!r}")
        return value

    @model_validator(mode="after")
    def _prefix_required_for_rewrite(self) -> "DestinationPolicy":
        if self.mode is DestinationMode.REWRITE and not self.prefix:
            raise ValueError("rewrite policy requires a non-empty prefix")
        return self

    @classmethod
    def identity(cls) -> "DestinationPolicy":
        return cls(mode=DestinationMode.IDENTITY, prefix="")

    @classmethod
    def rewrite(cls, prefix: str) -> "DestinationPolicy":
        return cls(mode=DestinationMode.REWRITE, prefix=prefix)

    @property
    def is_rewrite(self) -> bool:
        return self.mode is DestinationMode.REWRITE

    def destination_for(self, key: str) -> str:
        """
        Compute the destination key for a decoded source key.

        Examples:
            identity:        "uploads/a b.jpg" -> "uploads/a b.jpg"
            rewrite("raw"):  "staging/photo.jpg" -> "raw/photo.jpg"
            rewrite("raw"):  "photo.jpg" -> "raw/photo.jpg"
        """
        if not self.is_rewrite:
            return key

        segments = key.split(KEY_SEPARATOR)
        if len(segments) == 1:
            # No directory segment to replace
            return KEY_SEPARATOR.join([self.prefix, key])
        return KEY_SEPARATOR.join([self.prefix] + segments[1:])

    def should_delete_source(self, source_key: str, destination_key: str) -> bool:
        """Source is removed only under rewrite, and never when it is the destination."""
        return self.is_rewrite and source_key != destination_key
