"""Application-wide constants for docker-scan.

Constants that define application behavior.
For settings resolved per invocation, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    # Environment variables
    "DOCKER_CONFIG_ENV",
    "HUB_INSTANCE_ENV",
    "PASSWORD_ENV",
    # Local storage
    "SCAN_CONFIG_SUBDIR",
    "TOKENS_FILENAME",
    "DEFAULT_TOKEN_FILE_MODE",
    # Hub endpoints
    "HUB_LOGIN_PATH",
    "HUB_SCAN_TOKEN_PATH",
    "HUB_REQUEST_TIMEOUT_SECONDS",
    # Token validation
    "TOKEN_EXPIRY_LEEWAY_SECONDS",
    "SUPPORTED_SIGNING_ALGORITHMS",
    # JWKS
    "JWKS_FETCH_TIMEOUT_SECONDS",
    "JWKS_CACHE_TTL_SECONDS",
]

# ============================================================================
# Application Identity
# ============================================================================

APP_NAME: str = "docker-scan"

# ============================================================================
# Environment Variables
# ============================================================================

# Overrides the Docker CLI configuration directory (default: ~/.docker)
DOCKER_CONFIG_ENV: str = "DOCKER_CONFIG"

# Selects the Hub instance: "prod" (default) or "staging"
HUB_INSTANCE_ENV: str = "DOCKER_SCAN_HUB_INSTANCE"

# Non-interactive password source for the auth CLI
PASSWORD_ENV: str = "DOCKER_SCAN_PASSWORD"

# ============================================================================
# Local Token Storage
# ============================================================================

# Tokens are stored at <docker-config-dir>/scan/tokens.json
SCAN_CONFIG_SUBDIR: str = "scan"
TOKENS_FILENAME: str = "tokens.json"

# Mode for a newly created tokens file; an existing file keeps its own mode
DEFAULT_TOKEN_FILE_MODE: int = 0o644

# ============================================================================
# Hub Endpoints
# ============================================================================

HUB_LOGIN_PATH: str = "/v2/users/login"
HUB_SCAN_TOKEN_PATH: str = "/api/scan/v1/provider/token"

# Upper bound for a single Hub request (connect + read)
HUB_REQUEST_TIMEOUT_SECONDS: float = 30.0

# ============================================================================
# Token Validation
# ============================================================================

# Tokens are accepted up to this long past their expiry (clock skew allowance)
TOKEN_EXPIRY_LEEWAY_SECONDS: int = 60

# Asymmetric algorithms only; HMAC and "none" are never accepted for ScanIDs
SUPPORTED_SIGNING_ALGORITHMS: tuple[str, ...] = (
    "ES256",
    "ES384",
    "ES512",
    "RS256",
    "RS384",
    "RS512",
    "PS256",
    "PS384",
    "PS512",
    "EdDSA",
)

# ============================================================================
# JWKS
# ============================================================================

# Timeout for JWKS fetch - fail fast if the key server is unreachable
JWKS_FETCH_TIMEOUT_SECONDS: float = 10.0

# Soft TTL for an in-process JWKS cache (rotated keys are picked up after this)
JWKS_CACHE_TTL_SECONDS: int = 600
