"""Shared fixtures for docker-scan tests.

Provides signing keys, JWKS documents and a ScanID factory so validator,
authenticator and CLI tests sign tokens the same way the Hub does (ES256
compact JWS with a 'kid' header).
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.algorithms import ECAlgorithm

from docker_scan.security.auth.jwks import KeySet, parse_key_set
from docker_scan.telemetry.system.system_logger import get_system_logger

KEY_ID = "scan-key-1"

# Fixed "now" for validator tests that inject a clock
FIXED_NOW = 1_700_000_000.0


def public_jwk(private_key: ec.EllipticCurvePrivateKey, kid: str, alg: str = "ES256") -> dict[str, Any]:
    """Public JWK dict for an EC private key."""
    jwk: dict[str, Any] = json.loads(ECAlgorithm.to_jwk(private_key.public_key()))
    jwk.update({"kid": kid, "alg": alg, "use": "sig"})
    return jwk


@pytest.fixture(scope="session", autouse=True)
def _system_logger() -> None:
    """Create the system logger before any CliRunner swaps sys.stderr."""
    get_system_logger()


@pytest.fixture
def signing_key() -> ec.EllipticCurvePrivateKey:
    """EC P-256 key the test Hub signs ScanIDs with."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def other_key() -> ec.EllipticCurvePrivateKey:
    """Unrelated EC P-256 key (for signature mismatch tests)."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def jwks_document(signing_key: ec.EllipticCurvePrivateKey) -> str:
    """JWKS JSON publishing the signing key under KEY_ID."""
    return json.dumps({"keys": [public_jwk(signing_key, KEY_ID)]})


@pytest.fixture
def key_set(jwks_document: str) -> KeySet:
    """Parsed key-set containing the signing key."""
    return parse_key_set(jwks_document)


@pytest.fixture
def make_scan_id(signing_key: ec.EllipticCurvePrivateKey) -> Callable[..., str]:
    """Factory for signed ScanIDs.

    Keyword args:
        expires_in: Seconds from ``now`` until 'exp' (default 3600).
        now: Reference time (default: current time).
        kid: Header key id (None omits the header).
        key: Private key to sign with (default: signing_key).
        claims: Extra claims.
    """

    def _make(
        *,
        expires_in: float = 3600,
        now: float | None = None,
        kid: str | None = KEY_ID,
        key: ec.EllipticCurvePrivateKey | None = None,
        claims: dict[str, Any] | None = None,
    ) -> str:
        issued = time.time() if now is None else now
        payload: dict[str, Any] = {
            "iat": int(issued),
            "exp": int(issued + expires_in),
            "sub": "hub-user",
            **(claims or {}),
        }
        headers = {"kid": kid} if kid is not None else None
        return jwt.encode(payload, key or signing_key, algorithm="ES256", headers=headers)

    return _make
