"""
Structured Logging — JSON Output for Production

Configures Python logging to emit structured JSON logs.
Each log entry includes timestamp, level, logger name, and
any whitelisted context fields passed via `extra`.

Usage:
    from adshield.logging import get_logger
    logger = get_logger("analyzer")
    logger.info("Analysis complete", extra={"threat_level": "high", "content_type": "email"})

Context keys must not reuse LogRecord attribute names (`filename`,
`module`, `name`, ...): logging refuses to overwrite them. Uploaded file
names travel as `upload_name`.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone


LOG_LEVEL = os.getenv("ADSHIELD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("ADSHIELD_LOG_FORMAT", "json")  # "json" or "text"

# Pipeline context
_ANALYSIS_FIELDS = (
    "request_id", "threat_level", "content_type", "attack_count",
    "pii_count", "degraded", "provider",
)
# Batch context
_BATCH_FIELDS = ("upload_name", "index", "total", "failed")
# HTTP context
_HTTP_FIELDS = ("status_code", "method", "path", "duration_ms", "error", "error_type")

_EXTRA_FIELDS = _ANALYSIS_FIELDS + _BATCH_FIELDS + _HTTP_FIELDS


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for development. Context fields are appended as key=value."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in _EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        return f"{line} | {context}" if context else line


def setup_logging():
    """Configure the adshield logger tree. Call once at app startup."""
    root = logging.getLogger("adshield")
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if LOG_FORMAT == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the adshield namespace."""
    return logging.getLogger(f"adshield.{name}")
