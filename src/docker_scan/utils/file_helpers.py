"""Shared file utilities for docker-scan.

Provides common utilities used by the token cache and the CLI:
- get_docker_config_dir: Docker CLI configuration directory
- get_tokens_path: Location of the ScanID cache file
- get_file_mode: Permission bits of an existing file, with a default
- atomic_write_text: Write-to-temp-then-rename file replacement
"""

from __future__ import annotations

import os
import stat
import sys
import tempfile
from pathlib import Path
from typing import Mapping

from docker_scan.constants import (
    DEFAULT_TOKEN_FILE_MODE,
    DOCKER_CONFIG_ENV,
    SCAN_CONFIG_SUBDIR,
    TOKENS_FILENAME,
)

__all__ = [
    "atomic_write_text",
    "get_docker_config_dir",
    "get_file_mode",
    "get_tokens_path",
]


def get_docker_config_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Get the Docker CLI configuration directory.

    Honors $DOCKER_CONFIG like the Docker CLI does, otherwise ~/.docker.

    Args:
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Path to the Docker configuration directory.
    """
    env = os.environ if environ is None else environ
    override = env.get(DOCKER_CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".docker"


def get_tokens_path(environ: Mapping[str, str] | None = None) -> Path:
    """Get the ScanID cache path: <docker-config-dir>/scan/tokens.json."""
    return get_docker_config_dir(environ) / SCAN_CONFIG_SUBDIR / TOKENS_FILENAME


def get_file_mode(path: Path, default: int = DEFAULT_TOKEN_FILE_MODE) -> int:
    """Return the permission bits of an existing file.

    On Windows there are no meaningful POSIX mode bits, so the default is
    always returned.

    Args:
        path: File to stat.
        default: Mode used when the file does not exist.

    Returns:
        Permission bits (e.g. 0o600).

    Raises:
        OSError: If the file exists but cannot be stat'ed.
    """
    if sys.platform == "win32":
        return default
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return default


def atomic_write_text(path: Path, content: str, mode: int) -> None:
    """Replace a file's content so readers never see a partial write.

    Writes to a temporary file in the target's directory, fsyncs it, applies
    ``mode`` and renames it over the target. If the process dies mid-write
    the previous content stays in place.

    Args:
        path: Destination file.
        content: Text to write (UTF-8).
        mode: Permission bits for the resulting file.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    # Write through a symlinked cache file instead of replacing the link
    path = path.resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if sys.platform != "win32":
            tmp_path.chmod(mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
