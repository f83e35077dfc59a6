"""
ProtectPilot Logging

Structured logging for the "protectpilot" logger tree. Library modules
only call logging.getLogger(__name__); the host application calls
configure_logging() once at startup.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from .config import Settings, get_settings


ROOT_LOGGER = "protectpilot"

# Extra fields copied into JSON log lines when present on the record
EXTRA_FIELDS = (
    "catalog_dir",
    "risk_matrix_version",
    "credentials_version",
    "martyns_law_version",
    "license_number",
    "verification_status",
    "timeout_seconds",
    "tier",
    "officer_count",
    "venue_id",
    "risk_level",
    "score",
    "band",
    "rule_id",
    "duration_ms",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Attach a single stream handler to the "protectpilot" logger.

    Calling it again replaces the handler rather than adding another.
    """
    settings = settings or get_settings()

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_protectpilot", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler._protectpilot = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

    return logger
