"""Docker Hub client for ScanID negotiation.

Two-step negotiation keeps long-lived registry credentials away from the
scanner:
1. login(): exchange username/password for a short-lived Hub bearer token
2. negotiate_scan_id(): exchange the bearer token for a signed ScanID

The ScanID has its own validity window and signing keys, independent of the
Hub session.
"""

from __future__ import annotations

__all__ = [
    "HubClient",
]

from typing import TYPE_CHECKING, Any

import httpx

from docker_scan.constants import (
    HUB_LOGIN_PATH,
    HUB_REQUEST_TIMEOUT_SECONDS,
    HUB_SCAN_TOKEN_PATH,
)
from docker_scan.exceptions import AuthenticationError, TokenNegotiationError

if TYPE_CHECKING:
    from docker_scan.security.auth.authenticator import Identity


def _status_text(response: httpx.Response) -> str:
    """Format a status line like "401 Unauthorized"."""
    reason = response.reason_phrase
    return f"{response.status_code} {reason}" if reason else str(response.status_code)


class HubClient:
    """Synchronous client for the Hub login and ScanID endpoints.

    Usage:
        with HubClient("https://hub.docker.com") as hub:
            bearer = hub.login(identity)
            scan_id = hub.negotiate_scan_id(bearer)
    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.Client | None = None,
        timeout: float = HUB_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize Hub client.

        Args:
            base_url: Hub API root (e.g. "https://hub.docker.com").
            http_client: Optional httpx client (for testing). Not closed by close().
            timeout: Timeout per request in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    def login(self, identity: "Identity") -> str:
        """Log in to Hub and return the bearer token.

        Args:
            identity: Registry credentials.

        Returns:
            Hub bearer token.

        Raises:
            AuthenticationError: On transport errors, non-200 responses, or a
                body without a token.
        """
        url = f"{self._base_url}{HUB_LOGIN_PATH}"
        try:
            response = self._client.post(
                url,
                json=identity.to_login_payload(),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Hub login failed: {type(e).__name__}: {e}") from e

        if response.status_code != 200:
            status = _status_text(response)
            raise AuthenticationError(f"Hub login failed: bad status code {status!r}", status=status)

        try:
            data: Any = response.json()
        except ValueError as e:
            raise AuthenticationError(f"Hub login failed: invalid response body: {e}") from e

        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthenticationError("Hub login failed: response does not contain a token")
        return token

    def negotiate_scan_id(self, bearer_token: str) -> str:
        """Ask Hub to issue a ScanID for an authenticated user.

        Args:
            bearer_token: Token returned by login().

        Returns:
            The ScanID, exactly as sent in the response body.

        Raises:
            TokenNegotiationError: On transport errors or non-200 responses.
        """
        url = f"{self._base_url}{HUB_SCAN_TOKEN_PATH}"
        try:
            response = self._client.get(
                url,
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {bearer_token}",
                },
            )
        except httpx.HTTPError as e:
            raise TokenNegotiationError(f"ScanID negotiation failed: {type(e).__name__}: {e}") from e

        if response.status_code != 200:
            status = _status_text(response)
            raise TokenNegotiationError(
                f"ScanID negotiation failed: bad status code {status!r}", status=status
            )
        return response.text

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
