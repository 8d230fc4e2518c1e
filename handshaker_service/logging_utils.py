"""Structured JSON logging utilities."""

import json
import logging
import sys
import time
from typing import Any

_ROOT_LOGGER = "fake_handshaker"


class StructuredLogger:
    """Structured JSON logger with consistent formatting."""

    def __init__(self, name: str, level: int | None = None):
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level)

    def _log(self, level: int, event: str, exc_info: Any = None, **fields: Any) -> None:
        """Internal logging method."""
        if not self.logger.isEnabledFor(level):
            return
        record = {
            "ts": round(time.time(), 3),
            "level": logging.getLevelName(level),
            "logger": self.logger.name,
            "event": event,
            **fields,
        }
        try:
            message = json.dumps(record, separators=(",", ":"), default=str)
        except (TypeError, ValueError) as err:
            message = f"LOG_SERIALIZE_ERROR event={event} error={err}"
        self.logger.log(level, message, exc_info=exc_info)

    def debug(self, event: str, **fields: Any) -> None:
        """Log debug event."""
        self._log(logging.DEBUG, event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        """Log info event."""
        self._log(logging.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        """Log warning event."""
        self._log(logging.WARNING, event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        """Log error event."""
        self._log(logging.ERROR, event, **fields)

    def critical(self, event: str, **fields: Any) -> None:
        """Log critical event."""
        self._log(logging.CRITICAL, event, **fields)


def configure_logging(level: str | int = "INFO") -> None:
    """Send fake handshaker events to stdout, one JSON object per line."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger = logging.getLogger(_ROOT_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))  # JSON output
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(level)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger under the fake handshaker namespace."""
    if not name.startswith(_ROOT_LOGGER):
        name = f"{_ROOT_LOGGER}.{name}"
    return StructuredLogger(name)
