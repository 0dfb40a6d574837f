"""
Image Auto-Orient Lambda - AWS Serverless image normalization.

This module re-orients JPEG images uploaded to S3 according to their
embedded EXIF orientation and stores the upright result.
"""

from .config import HandlerConfig, UnsupportedTypeAction
from .exceptions import (
    AutoOrientError,
    AWSServiceError,
    ConfigurationError,
    InvalidEventError,
    S3Error,
    TranscodeError,
)
from .handler import NotificationHandler, parse_event
from .models import Decision, ProcessingResult, StorageEvent, StoredObject
from .policy import DestinationMode, DestinationPolicy
from .storage import S3ObjectStore
from .transcoder import ImageTranscoder

__all__ = [
    "parse_event",
    "NotificationHandler",
    "HandlerConfig",
    "UnsupportedTypeAction",
    "DestinationMode",
    "DestinationPolicy",
    "Decision",
    "ProcessingResult",
    "StorageEvent",
    "StoredObject",
    "S3ObjectStore",
    "ImageTranscoder",
    "AutoOrientError",
    "InvalidEventError",
    "TranscodeError",
    "AWSServiceError",
    "S3Error",
    "ConfigurationError",
]

__version__ = "1.0.0"
