"""Security module for docker-scan.

This module provides:
- Authentication: ScanID negotiation, validation and caching (security/auth/)

Note: Exceptions are defined in docker_scan.exceptions
"""

from docker_scan.security.auth import (
    Authenticator,
    Identity,
    TokenValidator,
    create_authenticator,
)

__all__ = [
    "Authenticator",
    "Identity",
    "TokenValidator",
    "create_authenticator",
]
