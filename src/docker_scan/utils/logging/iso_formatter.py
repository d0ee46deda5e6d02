"""JSONL log formatting.

One JSON object per line with a UTC ISO 8601 timestamp first, followed by
the level and the structured fields of the message. Credential fields that
slip into a log call are masked before serialization.
"""

from __future__ import annotations

__all__ = ["ISO8601Formatter", "REDACTED_FIELDS"]

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Field names whose values are credentials, never fingerprints
REDACTED_FIELDS: frozenset[str] = frozenset({"password", "bearer", "identitytoken", "registrytoken", "auth"})


def _utc_timestamp(created: float) -> str:
    """Format a record time as YYYY-MM-DDTHH:MM:SS.sssZ."""
    return (
        datetime.fromtimestamp(created, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class ISO8601Formatter(logging.Formatter):
    """Formatter for the JSONL log file.

    Format: {"time": "2026-01-05T10:48:37.123Z", "level": "INFO", <fields>}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as one JSON line.

        Args:
            record: The log record to format.

        Returns:
            str: JSON object without trailing newline.
        """
        fields: dict[str, Any]
        if isinstance(record.msg, dict):
            fields = {
                key: "[REDACTED]" if key in REDACTED_FIELDS else value
                for key, value in record.msg.items()
            }
        else:
            fields = {"message": record.getMessage()}

        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)

        entry = {"time": _utc_timestamp(record.created), "level": record.levelname, **fields}
        return json.dumps(entry, default=str)
