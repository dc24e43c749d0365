"""Unit tests for structured logging setup."""

import logging
import logging.handlers
from unittest.mock import patch

import structlog

from imagebatch.utils.logging import (
    LoggingContext,
    get_logger,
    new_run_id,
    redact_binary_payloads,
    setup_logging,
)


def processor_names(processors):
    return [p.__name__ if hasattr(p, "__name__") else str(p) for p in processors]


class TestLoggingConfiguration:
    """Test logging configuration and utilities."""

    def test_setup_logging_json(self):
        """Test JSON logging setup."""
        with patch("structlog.configure") as mock_configure:
            setup_logging(log_level="INFO", json_logs=True)

            mock_configure.assert_called_once()
            _, kwargs = mock_configure.call_args
            assert any("JSONRenderer" in name for name in processor_names(kwargs["processors"]))

    def test_setup_logging_console(self):
        """Test console logging setup."""
        with patch("structlog.configure") as mock_configure:
            setup_logging(log_level="DEBUG", json_logs=False)

            _, kwargs = mock_configure.call_args
            names = processor_names(kwargs["processors"])
            assert any("ConsoleRenderer" in name for name in names)
            assert "redact_binary_payloads" in names

    def test_file_logging(self, temp_dir):
        with patch("structlog.configure"):
            setup_logging(log_level="INFO", enable_file_logging=True, log_dir=str(temp_dir))

        assert (temp_dir / "imagebatch.log").exists()
        root_handlers = logging.getLogger().handlers
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root_handlers)

        for handler in root_handlers:
            handler.close()
        logging.getLogger().handlers = []

    def test_noisy_loggers_quieted(self):
        with patch("structlog.configure"):
            setup_logging(log_level="DEBUG")
        assert logging.getLogger("PIL").level == logging.WARNING

    def test_get_logger(self):
        assert get_logger("imagebatch.test") is not None


class TestRedaction:
    def test_bytes_are_replaced_with_length(self):
        event = redact_binary_payloads(None, None, {"event": "x", "output": b"12345"})
        assert event == {"event": "x", "output": "***BYTES***(5)"}

    def test_nested_payloads(self):
        event = redact_binary_payloads(
            None, None, {"event": "x", "items": [{"data": bytearray(3)}], "ok": 1}
        )
        assert event["items"] == [{"data": "***BYTES***(3)"}]
        assert event["ok"] == 1


class TestLoggingContext:
    def test_binds_and_resets_context(self):
        structlog.contextvars.clear_contextvars()

        with LoggingContext(run_id="abc", mode="pdf"):
            assert structlog.contextvars.get_contextvars() == {"run_id": "abc", "mode": "pdf"}

        assert structlog.contextvars.get_contextvars() == {}

    def test_run_ids_are_short_and_unique(self):
        ids = {new_run_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(len(run_id) == 12 for run_id in ids)
