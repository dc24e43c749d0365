import logging
import logging.handlers
import os
import sys
import uuid
from typing import Any, Dict, Optional

import structlog

BINARY_PLACEHOLDER = "***BYTES***"


def redact_binary_payloads(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Replace raw image/archive bytes in log events with their length."""

    def _recursive_filter(obj: Any, depth: int = 0) -> Any:
        if depth > 10:  # Prevent infinite recursion
            return "***DEPTH_LIMIT***"

        if isinstance(obj, (bytes, bytearray, memoryview)):
            return f"{BINARY_PLACEHOLDER}({len(obj)})"
        if isinstance(obj, dict):
            return {key: _recursive_filter(value, depth + 1) for key, value in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [_recursive_filter(item, depth + 1) for item in obj]
        return obj

    return _recursive_filter(event_dict)


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    enable_file_logging: bool = False,
    log_dir: str = "./logs",
    max_log_size_mb: int = 10,
    backup_count: int = 3,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Use JSON format for logs
        enable_file_logging: Enable logging to a rotating file
        log_dir: Directory for log files
        max_log_size_mb: Maximum size of each log file in MB
        backup_count: Number of backup files to keep
    """
    handlers = []

    # Always use stderr so stdout stays free for command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, log_level.upper()))
    handlers.append(console_handler)

    if enable_file_logging:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, "imagebatch.log")

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_log_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, log_level.upper()))
        handlers.append(file_handler)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        redact_binary_payloads,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        handlers=handlers,
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    # Suppress noisy loggers
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("reportlab").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


class LoggingContext:
    """Context manager for adding context to logs."""

    def __init__(self, **kwargs) -> None:
        self.context = kwargs
        self.tokens = {}

    def __enter__(self) -> "LoggingContext":
        self.tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.reset_contextvars(**self.tokens)
