"""CLI output styling for docker-scan.

Errors and warnings go to stderr so stdout only ever carries the ScanID
(auth token) or machine-readable output (--json).
"""

from __future__ import annotations

__all__ = [
    "format_token_status",
    "style_dim",
    "style_error",
    "style_label",
    "style_success",
    "style_warning",
]

from typing import Any

import click


def style_label(label: str) -> str:
    """Cyan bold label with a colon, e.g. "Cache file:"."""
    return click.style(f"{label}:", fg="cyan", bold=True)


def style_success(message: str) -> str:
    return click.style(f"✓ {message}", fg="green")


def style_warning(message: str) -> str:
    return click.style(f"! {message}", fg="yellow")


def style_error(message: str) -> str:
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    return click.style(message, dim=True)


def format_token_status(entry: dict[str, Any]) -> str:
    """Render one 'auth status' entry as a styled line.

    Args:
        entry: Dict with "username" and "status" ("valid", "invalid" or
            "not_cached"), plus "expires_at" or "error" depending on status.

    Returns:
        Styled single line.

    Example:
        >>> format_token_status({"username": "alice", "status": "valid", "expires_at": "..."})
        ✓ alice: valid until ...
    """
    name = entry["username"]
    status = entry["status"]
    if status == "valid":
        return style_success(f"{name}: valid until {entry['expires_at']}")
    if status == "invalid":
        return style_warning(f"{name}: {entry['error']} (a new ScanID will be negotiated)")
    return style_dim(f"{name}: no cached ScanID")
