"""ScanID authentication infrastructure.

This module provides:
- Key-set retrieval (JWKS) with optional in-process caching
- Hub client for login and ScanID negotiation
- Local token cache (tokens.json)
- ScanID validation (signature, key id, expiry with leeway)
- Authenticator orchestrating all of the above
"""

from docker_scan.security.auth.authenticator import (
    NOT_LOGGED_IN_MESSAGE,
    Authenticator,
    Identity,
    create_authenticator,
)
from docker_scan.security.auth.hub_client import HubClient
from docker_scan.security.auth.jwks import (
    KeyRecord,
    KeySet,
    KeySetResolver,
    fetch_key_set,
    parse_key_set,
)
from docker_scan.security.auth.jwt_validator import (
    TokenValidator,
    ValidatedScanId,
)
from docker_scan.security.auth.token_storage import TokenCache

__all__ = [
    # Orchestration
    "Authenticator",
    "Identity",
    "NOT_LOGGED_IN_MESSAGE",
    "create_authenticator",
    # Hub
    "HubClient",
    # Key-set
    "KeyRecord",
    "KeySet",
    "KeySetResolver",
    "fetch_key_set",
    "parse_key_set",
    # Validation
    "TokenValidator",
    "ValidatedScanId",
    # Cache
    "TokenCache",
]
