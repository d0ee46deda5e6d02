"""Logging utilities and helpers.

This package provides logging infrastructure for docker-scan:
- iso_formatter: ISO 8601 timestamp formatting for JSONL logs
- logging_helpers: Fingerprinting of secrets before they reach a log

Import directly from submodules to avoid circular imports:
    from docker_scan.utils.logging.iso_formatter import ISO8601Formatter
"""

__all__: list[str] = []  # Direct submodule imports required (see docstring)
