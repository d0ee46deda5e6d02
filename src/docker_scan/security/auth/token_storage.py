"""Local ScanID cache.

Stores the last ScanID per Docker Hub username in a single JSON object:

    {"<username>": "<scan-id>", ...}

at <docker-config-dir>/scan/tokens.json.

Reads never fail: a missing, empty or corrupt file means "nothing cached"
and the caller re-negotiates. Writes are read-modify-write through a
temp-file rename, keep the existing file mode, and never drop other users'
entries. Concurrent invocations are last-writer-wins.
"""

from __future__ import annotations

__all__ = [
    "TokenCache",
]

import json
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from docker_scan.constants import DEFAULT_TOKEN_FILE_MODE
from docker_scan.exceptions import PersistenceError
from docker_scan.telemetry.system.system_logger import get_system_logger
from docker_scan.utils.file_helpers import atomic_write_text, get_file_mode

_TOKEN_MAP: TypeAdapter[dict[str, str]] = TypeAdapter(dict[str, str])


class TokenCache:
    """File-backed mapping from Hub username to ScanID."""

    def __init__(self, path: Path, *, default_mode: int = DEFAULT_TOKEN_FILE_MODE) -> None:
        """Initialize token cache.

        Args:
            path: Cache file location.
            default_mode: Permission bits for a newly created file.
        """
        self._path = path
        self._default_mode = default_mode

    @property
    def path(self) -> Path:
        return self._path

    def _read_raw(self) -> bytes | None:
        """Read the cache file, None if it does not exist."""
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None

    def _parse(self, raw: bytes | None) -> dict[str, str]:
        """Parse cache content into a typed map.

        Anything that is not a JSON object of strings is treated as an
        empty map.
        """
        if raw is None or not raw.strip():
            return {}
        try:
            return _TOKEN_MAP.validate_json(raw)
        except ValidationError as e:
            get_system_logger().warning(
                {
                    "event": "token_cache_corrupt",
                    "path": str(self._path),
                    "error": e.errors()[0]["msg"] if e.errors() else str(e),
                    "message": f"Ignoring unreadable token cache {self._path}; it will be rewritten",
                }
            )
            return {}

    def load(self) -> dict[str, str]:
        """Return the whole cached map (empty if unavailable)."""
        try:
            raw = self._read_raw()
        except OSError as e:
            get_system_logger().warning(
                {
                    "event": "token_cache_unreadable",
                    "path": str(self._path),
                    "error": str(e),
                    "message": f"Cannot read token cache {self._path}: {e}",
                }
            )
            return {}
        return self._parse(raw)

    def get_local_token(self, username: str) -> str:
        """Return the cached ScanID for ``username``, or "" if none."""
        return self.load().get(username, "")

    def usernames(self) -> list[str]:
        """Usernames with a cached ScanID, sorted."""
        return sorted(self.load())

    def update_local_token(self, username: str, token: str) -> None:
        """Set the cached ScanID for ``username``.

        Args:
            username: Hub username.
            token: ScanID to store.

        Raises:
            PersistenceError: If the file cannot be read or written.
        """
        try:
            mode = get_file_mode(self._path, self._default_mode)
            tokens = self._parse(self._read_raw())
            tokens[username] = token
            self._write(tokens, mode)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write token cache {self._path}: {e}", path=str(self._path)
            ) from e

    def remove_local_token(self, username: str) -> bool:
        """Remove the cached ScanID for ``username``.

        Returns:
            True if an entry was removed, False if none existed.

        Raises:
            PersistenceError: If the file cannot be read or written.
        """
        try:
            tokens = self._parse(self._read_raw())
            if username not in tokens:
                return False
            mode = get_file_mode(self._path, self._default_mode)
            del tokens[username]
            self._write(tokens, mode)
            return True
        except OSError as e:
            raise PersistenceError(
                f"Failed to write token cache {self._path}: {e}", path=str(self._path)
            ) from e

    def _write(self, tokens: dict[str, str], mode: int) -> None:
        content = json.dumps(tokens, separators=(",", ":"), sort_keys=True)
        atomic_write_text(self._path, content, mode)
