"""Configuration for docker-scan authentication.

Defines the Hub instances docker-scan can talk to and the settings that
drive one authentication attempt. Settings are resolved once at startup and
passed explicitly to the components; nothing here is mutable global state.

Example usage:
    settings = AuthSettings.from_environment()
    authenticator = create_authenticator(settings)
"""

from __future__ import annotations

__all__ = [
    "PROD",
    "STAGING",
    "AuthSettings",
    "HubInstance",
    "resolve_hub_instance",
]

import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from docker_scan.constants import (
    HUB_INSTANCE_ENV,
    HUB_REQUEST_TIMEOUT_SECONDS,
    JWKS_CACHE_TTL_SECONDS,
    JWKS_FETCH_TIMEOUT_SECONDS,
    TOKEN_EXPIRY_LEEWAY_SECONDS,
)
from docker_scan.exceptions import ConfigurationError
from docker_scan.utils.file_helpers import get_tokens_path


# =============================================================================
# Hub instances
# =============================================================================


class HubInstance(BaseModel):
    """Everything needed to talk to one Docker Hub deployment.

    Attributes:
        name: Instance name ("prod" or "staging").
        api_base_url: Hub API root, without trailing slash.
        jwks_url: JWKS document used to verify ScanID signatures.
        registry_name: Registry index name whose credentials identify the user.
        embedded_jwks: Optional JWKS JSON shipped with the client; when set,
            it is used instead of fetching jwks_url.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    api_base_url: str = Field(min_length=1)
    jwks_url: str = Field(min_length=1)
    registry_name: str = Field(min_length=1)
    embedded_jwks: str | None = None


PROD = HubInstance(
    name="prod",
    api_base_url="https://hub.docker.com",
    jwks_url="https://jwt.docker.com/scan/.well-known/jwks.json",
    registry_name="index.docker.io",
)

STAGING = HubInstance(
    name="staging",
    api_base_url="https://hub-stage.docker.com",
    jwks_url="https://jwt-stage.docker.com/scan/.well-known/jwks.json",
    registry_name="index-stage.docker.io",
)

_INSTANCES: dict[str, HubInstance] = {
    PROD.name: PROD,
    STAGING.name: STAGING,
}


def resolve_hub_instance(name: str | None, *, strict: bool = False) -> HubInstance:
    """Look up a Hub instance by name.

    An unset or empty name selects production. Unknown names also select
    production unless ``strict`` is set (used for explicit CLI options).

    Args:
        name: Instance name, typically from $DOCKER_SCAN_HUB_INSTANCE.
        strict: Raise instead of falling back for unknown names.

    Returns:
        The matching HubInstance.

    Raises:
        ConfigurationError: If strict and the name is unknown.
    """
    if not name:
        return PROD
    instance = _INSTANCES.get(name)
    if instance is not None:
        return instance
    if strict:
        known = ", ".join(sorted(_INSTANCES))
        raise ConfigurationError(f"Unknown Hub instance '{name}' (expected one of: {known})")
    return PROD


# =============================================================================
# Authentication settings
# =============================================================================


class AuthSettings(BaseModel):
    """Settings for one authentication attempt.

    Attributes:
        hub: Hub instance to authenticate against.
        tokens_path: Location of the ScanID cache file.
        leeway_seconds: Grace period past token expiry (clock skew).
        request_timeout_seconds: Timeout for each Hub request.
        jwks_timeout_seconds: Timeout for the JWKS fetch.
        jwks_cache_ttl_seconds: Soft TTL for the in-process key-set cache
            (0 disables caching).
    """

    model_config = ConfigDict(frozen=True)

    hub: HubInstance = PROD
    tokens_path: Path
    leeway_seconds: int = Field(default=TOKEN_EXPIRY_LEEWAY_SECONDS, ge=0)
    request_timeout_seconds: float = Field(default=HUB_REQUEST_TIMEOUT_SECONDS, gt=0)
    jwks_timeout_seconds: float = Field(default=JWKS_FETCH_TIMEOUT_SECONDS, gt=0)
    jwks_cache_ttl_seconds: int = Field(default=JWKS_CACHE_TTL_SECONDS, ge=0)

    @classmethod
    def from_environment(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        hub_instance: str | None = None,
    ) -> "AuthSettings":
        """Build settings from the process environment.

        Args:
            environ: Environment mapping (defaults to os.environ).
            hub_instance: Explicit instance name; overrides the environment
                and must be a known name.

        Returns:
            AuthSettings for the selected Hub instance.

        Raises:
            ConfigurationError: If hub_instance is given but unknown.
        """
        env = os.environ if environ is None else environ
        if hub_instance is not None:
            hub = resolve_hub_instance(hub_instance, strict=True)
        else:
            hub = resolve_hub_instance(env.get(HUB_INSTANCE_ENV))
        return cls(hub=hub, tokens_path=get_tokens_path(env))
