"""Tests for structured logging."""

import json
import logging

from autoorient.logging_config import (
    ContextualLogger,
    StructuredJsonFormatter,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)


def make_record(**extra):
    record = logging.LogRecord(
        name="autoorient",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Uploaded %d bytes",
        args=(42,),
        exc_info=None,
    )
    for name, value in extra.items():
        setattr(record, name, value)
    return record


class TestCorrelationId:
    """Tests for correlation ID helpers."""

    def test_set_explicit_id(self):
        """Test an explicit ID is stored."""
        assert set_correlation_id("req-42") == "req-42"
        assert get_correlation_id() == "req-42"

    def test_generated_id(self):
        """Test an ID is generated when none is given."""
        cid = set_correlation_id()
        assert cid
        assert get_correlation_id() == cid


class TestStructuredJsonFormatter:
    """Tests for StructuredJsonFormatter."""

    def test_formats_known_fields(self):
        """Test object fields are emitted as top-level keys."""
        set_correlation_id("req-7")
        output = StructuredJsonFormatter("autoorient-lambda").format(
            make_record(s3_bucket="photos", s3_key="raw/a.jpg", duration_ms=1.5)
        )
        data = json.loads(output)

        assert data["message"] == "Uploaded 42 bytes"
        assert data["service"] == "autoorient-lambda"
        assert data["correlation_id"] == "req-7"
        assert data["s3_bucket"] == "photos"
        assert data["s3_key"] == "raw/a.jpg"
        assert data["duration_ms"] == 1.5

    def test_formats_error_payload(self):
        """Test serialized errors are included."""
        output = StructuredJsonFormatter().format(make_record(error={"error_type": "S3Error"}))

        assert json.loads(output)["error"] == {"error_type": "S3Error"}


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_returns_contextual_logger(self):
        """Test a contextual logger with one root handler is returned."""
        logger = configure_logging(level="debug")

        assert isinstance(logger, ContextualLogger)
        assert logging.getLogger().level == logging.DEBUG
        assert len(logging.getLogger().handlers) == 1
        configure_logging(level="INFO")

    def test_json_formatter_inside_lambda(self, monkeypatch):
        """Test JSON output is selected when running in Lambda."""
        monkeypatch.setenv("AWS_LAMBDA_FUNCTION_NAME", "autoorient")
        configure_logging()
        try:
            formatter = logging.getLogger().handlers[0].formatter
            assert isinstance(formatter, StructuredJsonFormatter)
        finally:
            monkeypatch.delenv("AWS_LAMBDA_FUNCTION_NAME")
            configure_logging()

    def test_object_logger_binds_bucket_and_key(self, caplog):
        """Test with_object attaches bucket and key to records."""
        logger = ContextualLogger(logging.getLogger("autoorient.test"), {}).with_object(
            "photos", "staging/a.jpg"
        )

        with caplog.at_level(logging.INFO):
            logger.info("hello")

        record = caplog.records[-1]
        assert record.s3_bucket == "photos"
        assert record.s3_key == "staging/a.jpg"
