"""ScanID validation.

A ScanID is a compact JWS signed by the Hub. Validation runs a single pass:

1. Reject empty tokens
2. Parse the header (malformed structure is rejected)
3. Require a key identifier ('kid') present in the current key-set
4. Verify the signature with the matched key and its algorithm
5. Check expiry with a leeway: a token is accepted until now - leeway
   passes its 'exp' claim

Each step raises its own TokenValidationError subclass so callers and logs
can tell why a cached token was dropped.
"""

from __future__ import annotations

__all__ = [
    "TokenValidator",
    "ValidatedScanId",
]

import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

import jwt

from docker_scan.constants import TOKEN_EXPIRY_LEEWAY_SECONDS
from docker_scan.exceptions import (
    EmptyTokenError,
    ExpiredTokenError,
    InvalidTokenError,
    KeyMismatchError,
    SignatureError,
)

if TYPE_CHECKING:
    from docker_scan.security.auth.jwks import KeySet


@dataclass
class ValidatedScanId:
    """Result of successful ScanID validation.

    Attributes:
        key_id: Key identifier the token was verified with.
        algorithm: Signing algorithm.
        expires_at: When the token expires (from 'exp' claim).
        issued_at: When the token was issued (from 'iat' claim), if present.
        claims: All token claims.
    """

    key_id: str
    algorithm: str
    expires_at: datetime
    issued_at: datetime | None
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def seconds_until_expiry(self) -> float:
        """Seconds until the token expires (negative if already past 'exp')."""
        return (self.expires_at - datetime.now(timezone.utc)).total_seconds()


def _numeric_claim(claims: dict[str, Any], name: str) -> float | None:
    value = claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidTokenError(f"invalid token: '{name}' claim must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidTokenError(f"invalid token: '{name}' claim must be finite")
    return value


def _to_datetime(timestamp: float) -> datetime:
    """UTC datetime for a claim, clamped to the representable range."""
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        bound = datetime.max if timestamp > 0 else datetime.min
        return bound.replace(tzinfo=timezone.utc)


class TokenValidator:
    """Validates ScanIDs against the Hub's key-set.

    Usage:
        validator = TokenValidator(resolver.get_key_set)
        validator.check_validity(token)  # raises TokenValidationError
    """

    def __init__(
        self,
        key_source: Callable[[], "KeySet"],
        *,
        leeway_seconds: float = TOKEN_EXPIRY_LEEWAY_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the validator.

        Args:
            key_source: Returns the current key-set. Called once per
                validation, after the token header has been parsed.
            leeway_seconds: Grace period past 'exp'.
            clock: Returns the current Unix time (for testing).
        """
        self._key_source = key_source
        self._leeway = leeway_seconds
        self._clock = clock

    def check_validity(self, token: str) -> None:
        """Check that a ScanID is usable.

        Raises:
            EmptyTokenError: Token is empty.
            InvalidTokenError: Token is malformed or its claims are unusable.
            KeyMismatchError: Key identifier missing or unknown.
            SignatureError: Signature does not verify.
            ExpiredTokenError: Token expired beyond the leeway.
            FetchError: The key-set could not be obtained.
        """
        self.validate(token)

    def validate(self, token: str) -> ValidatedScanId:
        """Validate a ScanID and return its claims.

        Raises:
            Same as check_validity().
        """
        if not token:
            raise EmptyTokenError("empty token")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"invalid token: {e}") from e

        key_id = header.get("kid")
        if not key_id:
            raise KeyMismatchError("invalid token: key identifier does not match")

        record = self._key_source().find(key_id)
        if record is None:
            raise KeyMismatchError("invalid token: key identifier does not match")

        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                record.key,
                algorithms=[record.algorithm],
                options={
                    "require": ["exp"],
                    "verify_signature": True,
                    # Time claims are checked below against the injected clock
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except jwt.InvalidAlgorithmError as e:
            raise SignatureError(
                f"invalid token: algorithm {header.get('alg')!r} not allowed for key '{key_id}'"
            ) from e
        except jwt.InvalidSignatureError as e:
            raise SignatureError("invalid token: signature does not match the content") from e
        except jwt.MissingRequiredClaimError as e:
            raise InvalidTokenError(f"invalid token: {e}") from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"invalid token: {e}") from e

        now = self._clock()

        exp = _numeric_claim(claims, "exp")
        if exp is None:
            raise InvalidTokenError("invalid token: missing 'exp' claim")
        if now - self._leeway > exp:
            raise ExpiredTokenError(
                f"token has expired: expired at {_to_datetime(exp).isoformat()}"
            )

        nbf = _numeric_claim(claims, "nbf")
        if nbf is not None and nbf > now + self._leeway:
            raise InvalidTokenError("invalid token: token is not valid yet")

        iat = _numeric_claim(claims, "iat")
        return ValidatedScanId(
            key_id=key_id,
            algorithm=record.algorithm,
            expires_at=_to_datetime(exp),
            issued_at=_to_datetime(iat) if iat is not None else None,
            claims=claims,
        )
