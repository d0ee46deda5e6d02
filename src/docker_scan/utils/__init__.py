"""Utility modules for docker-scan.

Import directly from submodules:
    from docker_scan.utils.file_helpers import get_tokens_path
"""

__all__: list[str] = []  # Direct submodule imports required (see docstring)
