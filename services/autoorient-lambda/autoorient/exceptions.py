"""
Custom exceptions for the image auto-orient handler.
Provides structured error handling with rich context for debugging and monitoring.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from enum import Enum

# S3 error codes that describe a transient service condition
TRANSIENT_S3_ERROR_CODES = frozenset({
    "InternalError",
    "ServiceUnavailable",
    "SlowDown",
    "RequestTimeout",
    "Throttling",
    "ThrottlingException",
})


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for routing and handling."""
    EVENT = "event"
    TRANSCODE = "transcode"
    AWS_SERVICE = "aws_service"
    CONFIGURATION = "configuration"


@dataclass
class ErrorContext:
    """Rich context for error tracking and debugging."""
    correlation_id: Optional[str] = None
    s3_bucket: Optional[str] = None
    s3_key: Optional[str] = None
    content_type: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    additional_data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert context to dictionary for logging."""
        return {
            "correlation_id": self.correlation_id,
            "s3_bucket": self.s3_bucket,
            "s3_key": self.s3_key,
            "content_type": self.content_type,
            "timestamp": self.timestamp,
            **self.additional_data,
        }


class AutoOrientError(Exception):
    """Base exception for all auto-orient handler errors."""

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.TRANSCODE,
        retryable: bool = False,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable
        self.original_exception = original_exception

    def to_dict(self) -> dict:
        """Serialize exception for logging and monitoring."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "original_exception": str(self.original_exception) if self.original_exception else None,
        }


class InvalidEventError(AutoOrientError):
    """Raised when the storage notification cannot be interpreted."""

    def __init__(
        self,
        message: str,
        field_name: str,
        actual: Any = None,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["field_name"] = field_name
        if actual is not None:
            ctx.additional_data["actual_value"] = str(actual)

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.EVENT,
            retryable=False,
            original_exception=original_exception,
        )
        self.field_name = field_name
        self.actual = actual


class TranscodeError(AutoOrientError):
    """Raised when image data cannot be decoded, re-oriented or encoded."""

    def __init__(
        self,
        message: str,
        image_format: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        if image_format:
            ctx.additional_data["image_format"] = image_format

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.TRANSCODE,
            retryable=False,
            original_exception=original_exception,
        )
        self.image_format = image_format


class AWSServiceError(AutoOrientError):
    """Raised when AWS service calls fail."""

    def __init__(
        self,
        message: str,
        service_name: str,
        operation: str,
        retryable: bool = False,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["aws_service"] = service_name
        ctx.additional_data["operation"] = operation

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.AWS_SERVICE,
            retryable=retryable,
            original_exception=original_exception,
        )
        self.service_name = service_name
        self.operation = operation


class S3Error(AWSServiceError):
    """Raised when S3 operations fail.

    Only error codes S3 documents as transient are flagged retryable.
    """

    def __init__(
        self,
        message: str,
        bucket: str,
        key: str,
        operation: str = "GetObject",
        error_code: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.s3_bucket = bucket
        ctx.s3_key = key
        if error_code:
            ctx.additional_data["error_code"] = error_code

        super().__init__(
            message=message,
            service_name="S3",
            operation=operation,
            retryable=error_code in TRANSIENT_S3_ERROR_CODES,
            context=ctx,
            original_exception=original_exception,
        )
        self.bucket = bucket
        self.key = key
        self.error_code = error_code


class ConfigurationError(AutoOrientError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_key: str,
        context: Optional[ErrorContext] = None,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["config_key"] = config_key

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )
        self.config_key = config_key
