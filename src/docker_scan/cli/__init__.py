"""Command-line interface for docker-scan authentication.

Provides commands for obtaining, inspecting and clearing cached ScanIDs.
"""

from .main import cli, main

__all__ = ["cli", "main"]
