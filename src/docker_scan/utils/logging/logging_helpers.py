"""Logging helper utilities.

ScanIDs and Hub bearer tokens are credentials: they are never written to a
log. Use token_fingerprint() to correlate log lines that refer to the same
token without exposing it.
"""

from __future__ import annotations

__all__ = [
    "token_fingerprint",
]

import hashlib


def token_fingerprint(value: str, prefix_length: int = 8) -> str:
    """Hash a token for logging while preserving some identifiability.

    Args:
        value: The token to hash.
        prefix_length: Number of hex characters to keep (default: 8).

    Returns:
        str: "sha256:<prefix>" (e.g., "sha256:a1b2c3d4"), or "sha256:empty".

    Example:
        >>> token_fingerprint("")
        'sha256:empty'
    """
    if not value:
        return "sha256:empty"

    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()
    return f"sha256:{digest[:prefix_length]}"
