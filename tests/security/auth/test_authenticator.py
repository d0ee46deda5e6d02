"""Tests for the ScanID authenticator.

Tests cover:
- Reusing a valid cached token without network calls
- Negotiating and caching when the cached token is missing or rejected
- Hub failure propagation and the persistence fallback
- Wiring from settings
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest
from pydantic import SecretStr

from docker_scan.config import STAGING, AuthSettings
from docker_scan.exceptions import (
    AuthenticationError,
    FetchError,
    PersistenceError,
    TokenNegotiationError,
)
from docker_scan.security.auth.authenticator import (
    NOT_LOGGED_IN_MESSAGE,
    Authenticator,
    Identity,
    create_authenticator,
)
from docker_scan.security.auth.hub_client import HubClient
from docker_scan.security.auth.jwks import KeySet
from docker_scan.security.auth.jwt_validator import TokenValidator
from docker_scan.security.auth.token_storage import TokenCache


@pytest.fixture
def mock_hub() -> MagicMock:
    """HubClient stand-in that issues 'hub-bearer' and no ScanID by default."""
    hub = MagicMock(spec=HubClient)
    hub.base_url = "https://hub.example.test"
    hub.login.return_value = "hub-bearer"
    return hub


@pytest.fixture
def cache(tmp_path: Path) -> TokenCache:
    return TokenCache(tmp_path / "scan" / "tokens.json")


@pytest.fixture
def authenticator(mock_hub: MagicMock, key_set: KeySet, cache: TokenCache) -> Authenticator:
    return Authenticator(
        hub_client=mock_hub,
        validator=TokenValidator(lambda: key_set),
        cache=cache,
    )


@pytest.fixture
def identity() -> Identity:
    return Identity(username="alice", password=SecretStr("s3cret"))


# ============================================================================
# Tests: Identity
# ============================================================================


class TestIdentity:
    """Tests for Identity.to_login_payload()."""

    def test_omits_empty_fields(self) -> None:
        """Given only username and password, the payload has just those."""
        identity = Identity(username="alice", password=SecretStr("pw"))
        assert identity.to_login_payload() == {"username": "alice", "password": "pw"}

    def test_includes_optional_fields(self) -> None:
        """Given an identity token, it is included."""
        identity = Identity(username="alice", identitytoken="idt", serveraddress="index.docker.io")
        assert identity.to_login_payload() == {
            "username": "alice",
            "identitytoken": "idt",
            "serveraddress": "index.docker.io",
        }

    def test_password_hidden_in_repr(self) -> None:
        """Given a password, repr() does not reveal it."""
        assert "s3cret" not in repr(Identity(username="alice", password=SecretStr("s3cret")))


# ============================================================================
# Tests: get_token
# ============================================================================


class TestGetToken:
    """Tests for Authenticator.get_token()."""

    def test_no_cache_negotiates_and_caches(
        self,
        authenticator: Authenticator,
        mock_hub: MagicMock,
        cache: TokenCache,
        identity: Identity,
        make_scan_id: Callable[..., str],
    ) -> None:
        """Given an empty cache, logs in once, negotiates once, caches and returns the ScanID."""
        # Arrange
        fresh = make_scan_id()
        mock_hub.negotiate_scan_id.return_value = fresh

        # Act
        token = authenticator.get_token(identity)

        # Assert
        assert token == fresh
        mock_hub.login.assert_called_once_with(identity)
        mock_hub.negotiate_scan_id.assert_called_once_with("hub-bearer")
        assert cache.get_local_token("alice") == fresh

    def test_valid_cache_skips_hub(
        self,
        authenticator: Authenticator,
        mock_hub: MagicMock,
        cache: TokenCache,
        identity: Identity,
        make_scan_id: Callable[..., str],
    ) -> None:
        """Given a valid cached ScanID, returns it without calling the Hub."""
        # Arrange
        cached = make_scan_id(expires_in=3600)
        cache.update_local_token("alice", cached)

        # Act
        token = authenticator.get_token(identity)

        # Assert
        assert token == cached
        mock_hub.login.assert_not_called()
        mock_hub.negotiate_scan_id.assert_not_called()

    def test_expired_cache_renegotiates(
        self,
        authenticator: Authenticator,
        mock_hub: MagicMock,
        cache: TokenCache,
        identity: Identity,
        make_scan_id: Callable[..., str],
    ) -> None:
        """Given an expired cached ScanID, negotiates a new one and replaces it."""
        # Arrange
        cache.update_local_token("alice", make_scan_id(expires_in=-3600))
        fresh = make_scan_id(expires_in=3600, claims={"jti": "fresh"})
        mock_hub.negotiate_scan_id.return_value = fresh

        # Act
        token = authenticator.get_token(identity)

        # Assert
        assert token == fresh
        assert cache.get_local_token("alice") == fresh
        mock_hub.login.assert_called_once()

    def test_garbage_cache_renegotiates(
        self,
        authenticator: Authenticator,
        mock_hub: MagicMock,
        cache: TokenCache,
        identity: Identity,
        make_scan_id: Callable[..., str],
    ) -> None:
        """Given a malformed cached ScanID, negotiates a new one."""
        # Arrange
        cache.update_local_token("alice", "malformed token")
        fresh = make_scan_id()
        mock_hub.negotiate_scan_id.return_value = fresh

        # Act
        token = authenticator.get_token(identity)

        # Assert
        assert token == fresh

    def test_non_finite_exp_cache_renegotiates(
        self,
        authenticator: Authenticator,
        mock_hub: MagicMock,
        cache: TokenCache,
        identity: Identity,
        make_scan_id: Callable[..., str],
    ) -> None:
        """Given a signed cached ScanID with 'exp' = NaN, negotiates a new one."""
        # Arrange
        cache.update_local_token("alice", make_scan_id(claims={"exp": float("nan")}))
        fresh = make_scan_id()
        mock_hub.negotiate_scan_id.return_value = fresh

        # Act
        token = authenticator.get_token(identity)

        # Assert
        assert token == fresh
        mock_hub.login.assert_called_once()

    def test_other_users_untouched(
        self,
        authenticator: Authenticator,
        mock_hub: MagicMock,
        cache: TokenCache,
        identity: Identity,
        make_scan_id: Callable[..., str],
    ) -> None:
        """Given another user's entry, negotiation for alice keeps it."""
        # Arrange
        cache.update_local_token("bob", "bob-token")
        mock_hub.negotiate_scan_id.return_value = make_scan_id()

        # Act
        authenticator.get_token(identity)

        # Assert
        assert cache.get_local_token("bob") == "bob-token"

    def test_empty_username(self, authenticator: Authenticator, mock_hub: MagicMock) -> None:
        """Given no username, raises AuthenticationError without calling the Hub."""
        # Act & Assert
        with pytest.raises(AuthenticationError) as exc_info:
            authenticator.get_token(Identity(username=""))
        assert str(exc_info.value) == NOT_LOGGED_IN_MESSAGE
        mock_hub.login.assert_not_called()

    def test_login_failure_propagates(
        self, authenticator: Authenticator, mock_hub: MagicMock, cache: TokenCache, identity: Identity
    ) -> None:
        """Given a failed login, raises AuthenticationError and caches nothing."""
        # Arrange
        mock_hub.login.side_effect = AuthenticationError(
            "Hub login failed: bad status code '401 Unauthorized'", status="401 Unauthorized"
        )

        # Act & Assert
        with pytest.raises(AuthenticationError, match="401"):
            authenticator.get_token(identity)
        mock_hub.negotiate_scan_id.assert_not_called()
        assert cache.load() == {}

    def test_negotiation_failure_propagates(
        self, authenticator: Authenticator, mock_hub: MagicMock, cache: TokenCache, identity: Identity
    ) -> None:
        """Given a failed negotiation, raises TokenNegotiationError and caches nothing."""
        # Arrange
        mock_hub.negotiate_scan_id.side_effect = TokenNegotiationError("ScanID negotiation failed")

        # Act & Assert
        with pytest.raises(TokenNegotiationError):
            authenticator.get_token(identity)
        assert cache.load() == {}

    def test_key_set_failure_propagates(
        self,
        mock_hub: MagicMock,
        cache: TokenCache,
        identity: Identity,
        make_scan_id: Callable[..., str],
    ) -> None:
        """Given a cached token and an unreachable key-set, raises FetchError."""
        # Arrange
        cache.update_local_token("alice", make_scan_id())
        key_source = MagicMock(side_effect=FetchError("Failed to fetch JWKS"))
        authenticator = Authenticator(mock_hub, TokenValidator(key_source), cache)

        # Act & Assert
        with pytest.raises(FetchError):
            authenticator.get_token(identity)
        mock_hub.login.assert_not_called()

    def test_persistence_failure_carries_token(
        self,
        mock_hub: MagicMock,
        key_set: KeySet,
        identity: Identity,
        make_scan_id: Callable[..., str],
    ) -> None:
        """Given a cache that cannot be written, PersistenceError carries the fresh ScanID."""
        # Arrange
        fresh = make_scan_id()
        mock_hub.negotiate_scan_id.return_value = fresh
        cache = MagicMock(spec=TokenCache)
        cache.path = Path("/nonexistent/tokens.json")
        cache.get_local_token.return_value = ""
        cache.update_local_token.side_effect = PersistenceError(
            "Failed to write token cache", path="/nonexistent/tokens.json"
        )
        authenticator = Authenticator(mock_hub, TokenValidator(lambda: key_set), cache)

        # Act & Assert
        with pytest.raises(PersistenceError) as exc_info:
            authenticator.get_token(identity)
        assert exc_info.value.token == fresh
        assert exc_info.value.path == "/nonexistent/tokens.json"


# ============================================================================
# Tests: forget / lifecycle
# ============================================================================


class TestForget:
    """Tests for Authenticator.forget()."""

    def test_forget_removes_entry(self, authenticator: Authenticator, cache: TokenCache) -> None:
        """Given a cached entry, forget() removes it."""
        # Arrange
        cache.update_local_token("alice", "token")

        # Act & Assert
        assert authenticator.forget("alice") is True
        assert cache.get_local_token("alice") == ""

    def test_forget_unknown_user(self, authenticator: Authenticator) -> None:
        """Given no entry, forget() returns False."""
        assert authenticator.forget("nobody") is False

    def test_context_manager_closes_hub(self, authenticator: Authenticator, mock_hub: MagicMock) -> None:
        """Given a with-block, the Hub client is closed on exit."""
        with authenticator:
            pass
        mock_hub.close.assert_called_once()


class TestCreateAuthenticator:
    """Tests for create_authenticator()."""

    def test_wires_settings(self, tmp_path: Path) -> None:
        """Given settings, the authenticator uses their Hub and cache path."""
        # Arrange
        settings = AuthSettings(hub=STAGING, tokens_path=tmp_path / "tokens.json")

        # Act
        with create_authenticator(settings) as authenticator:
            # Assert
            assert authenticator.cache.path == tmp_path / "tokens.json"
            assert authenticator._hub.base_url == STAGING.api_base_url
