"""
AWS Lambda handler for image auto-orientation.
Triggered by S3 object-created events: fetches the object, re-orients JPEG
images according to their EXIF orientation and writes the result back.

Every step runs sequentially; any failure is logged once and fails the
invocation. Nothing is retried here.
"""

import os
import time
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from .config import HandlerConfig, UnsupportedTypeAction
from .exceptions import AutoOrientError, InvalidEventError, TranscodeError
from .logging_config import configure_logging, set_correlation_id
from .models import Decision, ProcessingResult, S3EventRecord, StorageEvent
from .storage import ObjectStore, S3ObjectStore
from .transcoder import ImageTranscoder

logger = configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    service_name="autoorient-lambda",
)


class Transcoder(Protocol):
    def reorient(self, data: bytes) -> bytes: ...


class NotificationHandler:
    """Runs fetch, classify, transcode, write and cleanup for one stored object."""

    def __init__(
        self,
        store: ObjectStore,
        transcoder: Transcoder,
        config: Optional[HandlerConfig] = None,
    ):
        self.store = store
        self.transcoder = transcoder
        self.config = config or HandlerConfig()

    def classify(self, content_type: str) -> Decision:
        """Decide what to do with an object of the given content type."""
        if self.config.is_allowed(content_type):
            return Decision.TRANSCODE
        if self.config.unsupported_content_type is UnsupportedTypeAction.SKIP:
            return Decision.SKIP
        return Decision.PASS_THROUGH

    def process(self, event: StorageEvent) -> ProcessingResult:
        """
        Handle one announced object.

        Args:
            event: Notification for the stored object

        Returns:
            Result describing what was written and deleted

        Raises:
            S3Error: If fetching, writing or deleting fails
            TranscodeError: If the image cannot be re-oriented
        """
        bucket = event.bucket
        source_key = event.key
        log = logger.with_object(bucket, source_key)

        stored = self.store.get(bucket, source_key)
        decision = self.classify(stored.content_type)

        if decision is Decision.SKIP:
            log.info(
                f"Content type {stored.content_type!r} not whitelisted, skipping",
                extra={"decision": decision.value, "content_type": stored.content_type},
            )
            return ProcessingResult(
                bucket=bucket,
                source_key=source_key,
                decision=decision,
                content_type=stored.content_type,
                bytes_in=len(stored.body),
            )

        body = stored.body
        if decision is Decision.TRANSCODE:
            try:
                body = self.transcoder.reorient(stored.body)
            except TranscodeError as e:
                e.context.s3_bucket = bucket
                e.context.s3_key = source_key
                e.context.content_type = stored.content_type
                raise

        destination_key = self.config.destination.destination_for(source_key)
        self.store.put(bucket, destination_key, body, stored.content_type)

        source_deleted = False
        if self.config.destination.should_delete_source(source_key, destination_key):
            self.store.delete(bucket, source_key)
            source_deleted = True

        log.info(
            f"Wrote {decision.value} result to {destination_key}",
            extra={
                "decision": decision.value,
                "destination_key": destination_key,
                "content_type": stored.content_type,
            },
        )

        return ProcessingResult(
            bucket=bucket,
            source_key=source_key,
            destination_key=destination_key,
            decision=decision,
            content_type=stored.content_type,
            source_deleted=source_deleted,
            bytes_in=len(stored.body),
            bytes_out=len(body),
        )


def parse_event(event: dict) -> list[StorageEvent]:
    """
    Extract storage events from an S3 notification.

    Raises:
        InvalidEventError: If the notification has no usable records
    """
    records = event.get("Records") if isinstance(event, dict) else None
    if not records:
        raise InvalidEventError(
            message="Invalid event structure: missing Records",
            field_name="Records",
            actual=event.get("Event") if isinstance(event, dict) else event,
        )

    events = []
    for index, raw in enumerate(records):
        try:
            record = S3EventRecord.model_validate(raw)
        except ValidationError as e:
            raise InvalidEventError(
                message=f"Invalid S3 record at index {index}: {e.error_count()} validation error(s)",
                field_name=f"Records[{index}]",
                original_exception=e,
            )
        events.append(StorageEvent.from_record(record))
    return events


_notification_handler: Optional[NotificationHandler] = None


def get_notification_handler() -> NotificationHandler:
    """Get or create the handler wired to S3, Pillow and the environment config."""
    global _notification_handler
    if _notification_handler is None:
        config = HandlerConfig.from_env()
        _notification_handler = NotificationHandler(
            store=S3ObjectStore(),
            transcoder=ImageTranscoder(jpeg_quality=config.jpeg_quality),
            config=config,
        )
    return _notification_handler


def reset_notification_handler() -> None:
    """Drop the cached handler (useful for testing)."""
    global _notification_handler
    _notification_handler = None


def handler(event: dict, context: Any) -> dict:
    """
    Main Lambda handler for the S3 trigger.

    Returning signals success to the runtime; any error is logged once and
    re-raised so the invocation is reported as failed.

    Args:
        event: S3 event notification
        context: Lambda context

    Returns:
        Processing result summary
    """
    start_time = time.perf_counter()
    correlation_id = set_correlation_id(
        getattr(context, "aws_request_id", None) if context else None
    )

    try:
        storage_events = parse_event(event)
        notification_handler = get_notification_handler()

        results = []
        for storage_event in storage_events:
            results.append(notification_handler.process(storage_event))

    except AutoOrientError as e:
        e.context.correlation_id = correlation_id
        logger.error(
            f"Auto-orient failed: {e.message}",
            extra={"error": e.to_dict()},
        )
        raise

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        raise

    return build_response(results, correlation_id, start_time)


def build_response(results: list[ProcessingResult], correlation_id: str, start_time: float) -> dict:
    """Build Lambda response with timing metadata."""
    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

    logger.info(
        "Lambda invocation complete",
        extra={
            "duration_ms": duration_ms,
            "metrics": {
                decision.value: sum(1 for r in results if r.decision is decision)
                for decision in Decision
            },
        },
    )

    return {
        "statusCode": 200,
        "body": {
            "message": "Processing complete",
            "correlationId": correlation_id,
            "results": [r.to_response() for r in results],
            "durationMs": duration_ms,
        },
    }
