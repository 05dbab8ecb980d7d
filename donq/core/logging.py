"""DONQ — Structured JSON Logging.

One JSON object per line on stdout. Pipeline context passed through
``extra=`` (donation id, team, counts, export path, live event) is lifted to
top-level keys so log queries can filter on it.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from donq.config import settings

CONTEXT_FIELDS = ("donation_id", "team_id", "count", "path", "event")


class JSONFormatter(logging.Formatter):
    """Renders a record as a JSON line stamped with its creation time."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        # Paths and datetimes in context fields
        return json.dumps(log_entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Return ``donq.<name>`` with the JSON handler attached once."""
    logger = logging.getLogger(f"donq.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
