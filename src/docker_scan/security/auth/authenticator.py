"""ScanID authenticator.

Composes the token cache, validator and Hub client:

    cached token -> validate -> (invalid) login -> negotiate -> persist

A cached token that fails validation for any reason is replaced by a fresh
negotiation. Hub failures are surfaced; there is no unauthenticated
fallback, because scanning without a valid ScanID is not a degraded mode.
"""

from __future__ import annotations

__all__ = [
    "Authenticator",
    "Identity",
    "NOT_LOGGED_IN_MESSAGE",
    "create_authenticator",
]

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, SecretStr

from docker_scan.exceptions import (
    AuthenticationError,
    PersistenceError,
    TokenValidationError,
)
from docker_scan.security.auth.hub_client import HubClient
from docker_scan.security.auth.jwks import KeySetResolver
from docker_scan.security.auth.jwt_validator import TokenValidator
from docker_scan.security.auth.token_storage import TokenCache
from docker_scan.telemetry.system.system_logger import get_system_logger
from docker_scan.utils.logging.logging_helpers import token_fingerprint

if TYPE_CHECKING:
    from docker_scan.config import AuthSettings

NOT_LOGGED_IN_MESSAGE = (
    "You need to be logged in to Docker Hub to use scan feature.\n"
    "please login to Docker Hub using the Docker Login command"
)


class Identity(BaseModel):
    """Docker Hub credentials for one user.

    Mirrors the Docker CLI auth config. Only non-empty fields are sent to
    the Hub login endpoint. Never persisted.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr = SecretStr("")
    auth: str | None = None
    email: str | None = None
    serveraddress: str | None = None
    identitytoken: str | None = None
    registrytoken: str | None = None

    def to_login_payload(self) -> dict[str, Any]:
        """JSON body for the Hub login request (empty fields omitted)."""
        payload: dict[str, Any] = {
            "username": self.username,
            "password": self.password.get_secret_value(),
            "auth": self.auth,
            "email": self.email,
            "serveraddress": self.serveraddress,
            "identitytoken": self.identitytoken,
            "registrytoken": self.registrytoken,
        }
        return {key: value for key, value in payload.items() if value}


class Authenticator:
    """Returns a usable ScanID, negotiating a new one when needed.

    Usage:
        authenticator = create_authenticator(settings)
        token = authenticator.get_token(identity)
    """

    def __init__(
        self,
        hub_client: HubClient,
        validator: TokenValidator,
        cache: TokenCache,
    ) -> None:
        self._hub = hub_client
        self._validator = validator
        self._cache = cache

    @property
    def cache(self) -> TokenCache:
        return self._cache

    @property
    def validator(self) -> TokenValidator:
        return self._validator

    def get_token(self, identity: Identity) -> str:
        """Return a valid ScanID for ``identity``.

        Args:
            identity: Hub credentials.

        Returns:
            ScanID token string.

        Raises:
            AuthenticationError: No username, or Hub login failed.
            TokenNegotiationError: Hub did not issue a ScanID.
            FetchError: The key-set needed to check the cached token is
                unavailable.
            PersistenceError: The fresh ScanID could not be cached. Its
                ``token`` attribute holds the ScanID, usable for this
                invocation.
        """
        logger = get_system_logger()
        username = identity.username
        if not username:
            raise AuthenticationError(NOT_LOGGED_IN_MESSAGE)

        cached = self._cache.get_local_token(username)
        if cached:
            try:
                self._validator.check_validity(cached)
            except TokenValidationError as e:
                logger.info(
                    {
                        "event": "cached_token_rejected",
                        "username": username,
                        "reason": e.reason,
                        "error": str(e),
                        "token": token_fingerprint(cached),
                        "message": f"Cached ScanID for {username} rejected ({e}), negotiating a new one",
                    }
                )
            else:
                logger.debug(
                    {
                        "event": "cached_token_used",
                        "username": username,
                        "token": token_fingerprint(cached),
                        "message": f"Using cached ScanID for {username}",
                    }
                )
                return cached

        # login() raises AuthenticationError for every failure mode
        bearer = self._hub.login(identity)
        fresh = self._hub.negotiate_scan_id(bearer)
        logger.info(
            {
                "event": "token_negotiated",
                "username": username,
                "hub": self._hub.base_url,
                "token": token_fingerprint(fresh),
                "message": f"Negotiated a new ScanID for {username}",
            }
        )

        try:
            self._cache.update_local_token(username, fresh)
        except PersistenceError as e:
            logger.warning(
                {
                    "event": "token_cache_write_failed",
                    "username": username,
                    "path": str(self._cache.path),
                    "error": str(e),
                    "message": f"ScanID could not be cached: {e}",
                }
            )
            raise PersistenceError(str(e), path=e.path, token=fresh) from e

        return fresh

    def forget(self, username: str) -> bool:
        """Drop the cached ScanID for ``username``.

        Returns:
            True if a token was removed.

        Raises:
            PersistenceError: If the cache cannot be rewritten.
        """
        removed = self._cache.remove_local_token(username)
        if removed:
            get_system_logger().info(
                {
                    "event": "cached_token_removed",
                    "username": username,
                    "message": f"Removed cached ScanID for {username}",
                }
            )
        return removed

    def close(self) -> None:
        self._hub.close()

    def __enter__(self) -> "Authenticator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_authenticator(settings: "AuthSettings") -> Authenticator:
    """Build an Authenticator wired for the configured Hub instance.

    Args:
        settings: Resolved authentication settings.

    Returns:
        Authenticator owning its HTTP clients (close it when done).
    """
    hub = settings.hub
    resolver = KeySetResolver(
        hub.jwks_url,
        embedded_jwks=hub.embedded_jwks,
        cache_ttl_seconds=settings.jwks_cache_ttl_seconds,
        timeout=settings.jwks_timeout_seconds,
    )
    return Authenticator(
        hub_client=HubClient(hub.api_base_url, timeout=settings.request_timeout_seconds),
        validator=TokenValidator(resolver.get_key_set, leeway_seconds=settings.leeway_seconds),
        cache=TokenCache(settings.tokens_path),
    )
