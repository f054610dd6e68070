"""
llmwire - Logging

The SDK logs through two stdlib loggers and never configures handlers on
its own:

    llmwire.http    request status, retries (WARNING per retry)
    llmwire.stream  stream completion, streams that end early

``setup_logging`` is an opt-in helper for scripts that want to see those
records, either as plain text or as one JSON object per line.

Usage:
    from llmwire.logging import setup_logging

    setup_logging(level="DEBUG")
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO, Union


ROOT_LOGGER = "llmwire"

# LogRecord attributes that are not user-supplied extras.
_RECORD_ATTRS = {
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123456+00:00",
        "level": "WARNING",
        "logger": "llmwire.http",
        "message": "Retry 1/2 after 0.50s - OverloadedError: HTTP 529",
        ... extra fields
    }

    Extra fields whose names look like credentials are replaced with
    ``[REDACTED]``.
    """

    SENSITIVE_FIELDS = {
        "api_key", "apikey", "auth_token", "authorization",
        "x-api-key", "token", "secret", "password",
    }

    def __init__(
        self,
        include_timestamp: bool = True,
        include_location: bool = False,
        redact_sensitive: bool = True,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_location = include_location
        self.redact_sensitive = redact_sensitive

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.getMessage()

        if self.include_location:
            log_data["location"] = f"{record.filename}:{record.lineno}"

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in log_data:
                continue
            if self.redact_sensitive and self._is_sensitive(key):
                value = "[REDACTED]"
            log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)

    def _is_sensitive(self, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


def setup_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    stream: Optional[TextIO] = None,
    include_location: bool = False,
) -> logging.Logger:
    """
    Attach a handler to the ``llmwire`` logger.

    Only the SDK's own loggers are touched; the root logger and the
    application's handlers are left alone. Calling it again replaces the
    handler added by the previous call.

    Args:
        level: Log level name or number
        json_output: Use JSONFormatter instead of a plain text format
        stream: Where to write records. Defaults to stderr.
        include_location: Include filename:lineno (JSON output only)

    Returns:
        The configured ``llmwire`` logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        if getattr(handler, "_llmwire_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler._llmwire_handler = True

    if json_output:
        formatter: logging.Formatter = JSONFormatter(include_location=include_location)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``llmwire`` namespace, e.g. ``get_logger("http")``."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
