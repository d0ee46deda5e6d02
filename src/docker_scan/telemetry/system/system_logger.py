"""System logger for operational events.

This module provides a singleton system logger for everything docker-scan
reports about authentication: cache hits, rejected cached tokens, Hub
negotiation and cache write failures.

Logging strategy:
- Console (stderr): WARNING and above by default, INFO/DEBUG with --verbose.
  stdout is reserved for the token itself.
- File (JSONL): Optional, everything from DEBUG, configured once via
  configure_system_logger_file().

Messages are dicts with an "event" key and a human "message" key.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "set_console_level",
]

import logging
import sys
from pathlib import Path

from docker_scan.constants import APP_NAME
from docker_scan.utils.logging.iso_formatter import ISO8601Formatter


class ConsoleFormatter(logging.Formatter):
    """Human-readable stderr formatter.

    Dict messages print their 'message' (or 'event' when there is none).
    Below WARNING the event name is shown too, so --verbose output can be
    matched against the JSONL file.
    """

    def format(self, record: logging.LogRecord) -> str:
        if not isinstance(record.msg, dict):
            return f"{record.levelname}: {record.getMessage()}"

        event = record.msg.get("event", "")
        text = record.msg.get("message") or event
        if record.levelno < logging.WARNING and event and text != event:
            return f"{record.levelname} [{event}]: {text}"
        return f"{record.levelname}: {text}"


# Module-level singleton logger - initialized on first use
_system_logger: logging.Logger | None = None
_console_handler: logging.Handler | None = None
_file_handler_configured: bool = False


def get_system_logger() -> logging.Logger:
    """Get the singleton system logger instance.

    Creates the logger on first call with a stderr handler only.

    Returns:
        logging.Logger: Configured system logger instance.

    Example:
        >>> logger = get_system_logger()
        >>> logger.warning({"event": "token_cache_corrupt", "message": "..."})
    """
    global _system_logger, _console_handler

    if _system_logger is not None:
        return _system_logger

    _system_logger = logging.getLogger(f"{APP_NAME}.system")
    _system_logger.setLevel(logging.DEBUG)
    _system_logger.propagate = False

    # Close and remove any existing handlers to avoid duplicates and resource leaks
    for handler in _system_logger.handlers:
        handler.close()
    _system_logger.handlers.clear()

    _console_handler = logging.StreamHandler(sys.stderr)
    _console_handler.setLevel(logging.WARNING)
    _console_handler.setFormatter(ConsoleFormatter())
    _system_logger.addHandler(_console_handler)

    return _system_logger


def set_console_level(level: int) -> None:
    """Change the stderr threshold (e.g. logging.DEBUG for --verbose)."""
    get_system_logger()
    if _console_handler is not None:
        _console_handler.setLevel(level)


def configure_system_logger_file(log_path: Path) -> None:
    """Add a JSONL file handler to the system logger.

    Only the first call has an effect.

    Args:
        log_path: Path to the JSONL log file.

    Raises:
        OSError: If the log directory or file cannot be created.
    """
    global _file_handler_configured

    if _file_handler_configured:
        return

    logger = get_system_logger()

    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    _file_handler_configured = True
