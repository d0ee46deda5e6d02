"""Custom exceptions for docker-scan.

This module contains all custom exceptions used throughout the package.
Exceptions are organized into three categories:

Recovered locally (trigger a fresh ScanID negotiation):
    - TokenValidationError and its subclasses: the cached ScanID is unusable

Surfaced to the caller (scanning must not proceed):
    - ConfigurationError: Settings cannot be resolved
    - FetchError: The JWKS document could not be retrieved or parsed
    - HubError, AuthenticationError, TokenNegotiationError: Hub calls failed

Reported but non-fatal for the current invocation:
    - PersistenceError: The fresh ScanID could not be written to the cache

Usage:
    from docker_scan.exceptions import AuthenticationError, ExpiredTokenError
"""

from __future__ import annotations

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "EmptyTokenError",
    "ExpiredTokenError",
    "FetchError",
    "HubError",
    "InvalidTokenError",
    "KeyMismatchError",
    "PersistenceError",
    "ScanAuthError",
    "SignatureError",
    "TokenNegotiationError",
    "TokenValidationError",
]


class ScanAuthError(Exception):
    """Base exception for all ScanID authentication failures.

    Attributes:
        exit_code: Process exit code used by the CLI.
        failure_type: Category string for structured logging.
    """

    exit_code: int = 1
    failure_type: str = "unknown"


class ConfigurationError(ScanAuthError):
    """Settings are invalid, e.g. an unknown Hub instance name."""

    exit_code = 2
    failure_type = "configuration_failure"


class FetchError(ScanAuthError):
    """The JWKS key-set could not be retrieved or parsed.

    Raised for network errors, non-2xx responses, empty bodies and
    malformed JSON. Never retried here; retry policy belongs to the caller.
    """

    exit_code = 3
    failure_type = "jwks_fetch_failure"


# =============================================================================
# Hub errors (surfaced to the caller)
# =============================================================================


class HubError(ScanAuthError):
    """A call to the Hub API failed.

    Attributes:
        status: HTTP status text (e.g. "401 Unauthorized") if a response
            was received, None for transport failures.
    """

    exit_code = 4
    failure_type = "hub_failure"

    def __init__(self, message: str, *, status: str | None = None) -> None:
        super().__init__(message)
        self.status = status


class AuthenticationError(HubError):
    """Hub login failed or no Hub identity is available.

    The user must log in to Docker Hub (docker login) before scanning.
    """

    failure_type = "authentication_failure"


class TokenNegotiationError(HubError):
    """Hub refused or failed to issue a ScanID for a valid bearer token."""

    failure_type = "token_negotiation_failure"


# =============================================================================
# Token validation errors (recovered by re-negotiation)
# =============================================================================


class TokenValidationError(ScanAuthError):
    """Base class for reasons a cached ScanID is rejected.

    All subclasses lead to the same recovery (negotiate a new token); they
    exist so logs and tests can tell the reasons apart.
    """

    exit_code = 5
    failure_type = "token_invalid"
    reason: str = "invalid"


class EmptyTokenError(TokenValidationError):
    """No token was supplied."""

    reason = "empty"


class InvalidTokenError(TokenValidationError):
    """The token is not a well-formed compact JWS or its claims are unusable."""

    reason = "malformed"


class KeyMismatchError(TokenValidationError):
    """The token's key identifier is missing or not in the key-set."""

    reason = "unknown_key"


class SignatureError(TokenValidationError):
    """The signature does not verify with the matched public key."""

    reason = "bad_signature"


class ExpiredTokenError(TokenValidationError):
    """The token expired longer ago than the allowed leeway."""

    reason = "expired"


# =============================================================================
# Persistence errors (reported, token still usable)
# =============================================================================


class PersistenceError(ScanAuthError):
    """The token cache could not be written.

    When raised by Authenticator.get_token, ``token`` holds the freshly
    negotiated ScanID, which is valid for the current invocation even though
    it was not cached.

    Attributes:
        path: Cache file that could not be written.
        token: Usable ScanID, if one was obtained before the failure.
    """

    exit_code = 6
    failure_type = "persistence_failure"

    def __init__(self, message: str, *, path: str | None = None, token: str | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.token = token
