"""JWKS key-set retrieval for ScanID signature verification.

Fetches the Hub's public key-set (JSON Web Key Set) and turns it into
KeyRecord objects usable by PyJWT. The resolver optionally keeps the last
key-set in memory for a soft TTL so a long-running caller does not refetch
on every validation, while keys rotated on the server are still picked up
once the TTL lapses.
"""

from __future__ import annotations

__all__ = [
    "KeyRecord",
    "KeySet",
    "KeySetResolver",
    "fetch_key_set",
    "parse_key_set",
]

import json
import time
from dataclasses import dataclass, field
from typing import Any

import httpx
from jwt import PyJWK
from jwt.exceptions import InvalidKeyError, PyJWKError

from docker_scan.constants import (
    JWKS_CACHE_TTL_SECONDS,
    JWKS_FETCH_TIMEOUT_SECONDS,
    SUPPORTED_SIGNING_ALGORITHMS,
)
from docker_scan.exceptions import FetchError
from docker_scan.telemetry.system.system_logger import get_system_logger

# Default algorithm when a JWK omits "alg", keyed by (kty, crv)
_DEFAULT_ALGORITHMS: dict[tuple[str, str | None], str] = {
    ("EC", "P-256"): "ES256",
    ("EC", "P-384"): "ES384",
    ("EC", "P-521"): "ES512",
    ("RSA", None): "RS256",
    ("OKP", "Ed25519"): "EdDSA",
    ("OKP", "Ed448"): "EdDSA",
}


@dataclass(frozen=True)
class KeyRecord:
    """One public key from a JWKS document.

    Attributes:
        key_id: The 'kid' the key is published under.
        algorithm: Signing algorithm the key verifies (e.g. "ES256").
        key: Public key object accepted by jwt.decode().
    """

    key_id: str
    algorithm: str
    key: Any = field(repr=False)


@dataclass(frozen=True)
class KeySet:
    """Immutable list of public keys indexed by key identifier."""

    keys: tuple[KeyRecord, ...] = ()

    def find(self, key_id: str) -> KeyRecord | None:
        """Return the key published under ``key_id``, or None."""
        for record in self.keys:
            if record.key_id == key_id:
                return record
        return None

    @property
    def key_ids(self) -> list[str]:
        """Key identifiers in document order."""
        return [record.key_id for record in self.keys]

    def __len__(self) -> int:
        return len(self.keys)


def _default_algorithm(jwk_data: dict[str, Any]) -> str | None:
    kty = jwk_data.get("kty")
    crv = jwk_data.get("crv") if kty != "RSA" else None
    return _DEFAULT_ALGORITHMS.get((kty, crv))


def _load_key(jwk_data: dict[str, Any]) -> KeyRecord:
    """Convert one JWK dict into a KeyRecord.

    Raises:
        ValueError: If the key is unusable for ScanID verification.
    """
    key_id = jwk_data.get("kid")
    if not isinstance(key_id, str) or not key_id:
        raise ValueError("key has no 'kid'")

    use = jwk_data.get("use")
    if use is not None and use != "sig":
        raise ValueError(f"key use is '{use}', not 'sig'")

    for member in ("kty", "crv", "alg"):
        value = jwk_data.get(member)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"'{member}' must be a string, got {type(value).__name__}")

    algorithm = jwk_data.get("alg") or _default_algorithm(jwk_data)
    if algorithm not in SUPPORTED_SIGNING_ALGORITHMS:
        raise ValueError(f"unsupported algorithm {algorithm!r}")

    try:
        jwk = PyJWK(jwk_data, algorithm=algorithm)
    except (PyJWKError, InvalidKeyError) as e:
        raise ValueError(str(e)) from e

    key = jwk.key
    # A JWK carrying private material still verifies with its public half
    if hasattr(key, "public_key") and not hasattr(key, "verify"):
        key = key.public_key()

    return KeyRecord(key_id=key_id, algorithm=algorithm, key=key)


def parse_key_set(document: str | bytes) -> KeySet:
    """Parse a JWKS JSON document.

    Keys that cannot be used (missing kid, symmetric or unknown key types,
    bad coordinates) are skipped with a warning, so one odd key does not
    invalidate the whole set.

    Args:
        document: JWKS JSON text.

    Returns:
        KeySet with every usable key.

    Raises:
        FetchError: If the document is empty, not JSON, or has no 'keys' list.
    """
    if not document or not document.strip():
        raise FetchError("Invalid JWKS: empty document")

    try:
        data = json.loads(document)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FetchError(f"Invalid JWKS: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
        raise FetchError("Invalid JWKS: document has no 'keys' list")

    records: list[KeyRecord] = []
    for index, jwk_data in enumerate(data["keys"]):
        if not isinstance(jwk_data, dict):
            continue
        try:
            records.append(_load_key(jwk_data))
        except ValueError as e:
            get_system_logger().warning(
                {
                    "event": "jwks_key_skipped",
                    "key_index": index,
                    "key_id": jwk_data.get("kid"),
                    "error": str(e),
                    "message": f"Skipping unusable JWKS key #{index}: {e}",
                }
            )

    return KeySet(keys=tuple(records))


def fetch_key_set(
    url: str,
    *,
    http_client: httpx.Client | None = None,
    timeout: float = JWKS_FETCH_TIMEOUT_SECONDS,
) -> KeySet:
    """Fetch and parse a JWKS document.

    Args:
        url: HTTPS URL of the JWKS document.
        http_client: Optional httpx client (for testing).
        timeout: Request timeout in seconds (ignored if http_client is given).

    Returns:
        KeySet parsed from the response.

    Raises:
        FetchError: On network errors, non-2xx responses, empty bodies or
            malformed JSON.
    """
    client = http_client or httpx.Client(timeout=timeout)
    owns_client = http_client is None

    try:
        response = client.get(
            url,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )
    except httpx.TimeoutException as e:
        raise FetchError(f"Failed to fetch JWKS: timed out after {timeout}s ({url})") from e
    except httpx.HTTPError as e:
        raise FetchError(f"Failed to fetch JWKS: {type(e).__name__}: {e} ({url})") from e
    finally:
        if owns_client:
            client.close()

    if not 200 <= response.status_code < 300:
        raise FetchError(
            f"Failed to fetch JWKS: invalid status code {response.status_code} {response.reason_phrase} ({url})"
        )

    if not response.content:
        raise FetchError(f"Failed to fetch JWKS: empty response body ({url})")

    return parse_key_set(response.content)


@dataclass
class _CachedKeySet:
    """Cached key-set with expiration tracking."""

    key_set: KeySet
    fetched_at: float
    ttl: float = JWKS_CACHE_TTL_SECONDS

    @property
    def is_expired(self) -> bool:
        """Check if cache has expired."""
        return time.monotonic() - self.fetched_at > self.ttl


class KeySetResolver:
    """Supplies the current key-set for token validation.

    Uses an embedded JWKS document when one is configured, otherwise
    fetches jwks_url. Fetched key-sets are reused for cache_ttl_seconds.

    Usage:
        resolver = KeySetResolver(hub.jwks_url)
        validator = TokenValidator(resolver.get_key_set)
    """

    def __init__(
        self,
        jwks_url: str,
        *,
        embedded_jwks: str | None = None,
        cache_ttl_seconds: float = JWKS_CACHE_TTL_SECONDS,
        http_client: httpx.Client | None = None,
        timeout: float = JWKS_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the resolver.

        Args:
            jwks_url: URL of the JWKS document.
            embedded_jwks: JWKS JSON to use instead of fetching.
            cache_ttl_seconds: Soft TTL for fetched key-sets; 0 disables caching.
            http_client: Optional httpx client (for testing).
            timeout: Fetch timeout in seconds.
        """
        self._jwks_url = jwks_url
        self._embedded_jwks = embedded_jwks
        self._cache_ttl = cache_ttl_seconds
        self._http_client = http_client
        self._timeout = timeout
        self._cache: _CachedKeySet | None = None

    @property
    def jwks_url(self) -> str:
        return self._jwks_url

    def get_key_set(self) -> KeySet:
        """Return the current key-set.

        Raises:
            FetchError: If the key-set cannot be fetched or parsed.
        """
        if self._embedded_jwks is not None:
            return parse_key_set(self._embedded_jwks)

        if self._cache is not None and not self._cache.is_expired:
            return self._cache.key_set

        key_set = fetch_key_set(
            self._jwks_url,
            http_client=self._http_client,
            timeout=self._timeout,
        )
        get_system_logger().debug(
            {
                "event": "jwks_fetched",
                "jwks_url": self._jwks_url,
                "key_ids": key_set.key_ids,
                "message": f"Fetched {len(key_set)} signing key(s) from {self._jwks_url}",
            }
        )

        if self._cache_ttl > 0:
            self._cache = _CachedKeySet(
                key_set=key_set,
                fetched_at=time.monotonic(),
                ttl=self._cache_ttl,
            )
        return key_set

    def clear_cache(self) -> None:
        """Forget the cached key-set, e.g. after a key rotation."""
        self._cache = None
