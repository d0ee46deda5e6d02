"""Authentication commands for docker-scan CLI.

Commands:
    auth token   - Print a usable ScanID for a Hub user
    auth status  - Show cached ScanIDs and their validity
    auth logout  - Remove the cached ScanID of a Hub user
"""

from __future__ import annotations

__all__ = ["auth"]

import json as json_module
import os
from typing import TYPE_CHECKING, Any

import click
from pydantic import SecretStr

from docker_scan.constants import PASSWORD_ENV
from docker_scan.exceptions import (
    PersistenceError,
    ScanAuthError,
    TokenValidationError,
)
from docker_scan.security.auth.authenticator import Identity, create_authenticator

from ..styling import (
    format_token_status,
    style_dim,
    style_error,
    style_label,
    style_success,
    style_warning,
)

if TYPE_CHECKING:
    from docker_scan.config import AuthSettings


def _fail(ctx: click.Context, error: ScanAuthError) -> None:
    """Print an error and exit with the error's exit code."""
    click.echo(style_error(str(error)), err=True)
    ctx.exit(error.exit_code)


def _read_password(password_stdin: bool) -> str:
    """Get the Hub password from stdin, the environment, or a prompt."""
    if password_stdin:
        return click.get_text_stream("stdin").read().rstrip("\r\n")
    from_env = os.environ.get(PASSWORD_ENV)
    if from_env:
        return from_env
    return str(click.prompt("Password", hide_input=True, err=True))


@click.group()
def auth() -> None:
    """ScanID authentication commands."""
    pass


@auth.command()
@click.option("--username", "-u", required=True, help="Docker Hub username")
@click.option(
    "--password-stdin",
    is_flag=True,
    help=f"Read the password from stdin (default: ${PASSWORD_ENV} or prompt)",
)
@click.pass_context
def token(ctx: click.Context, username: str, password_stdin: bool) -> None:
    """Print a valid ScanID for USERNAME.

    Uses the cached ScanID when it is still valid; otherwise logs in to
    Docker Hub, negotiates a new one and caches it. Only the token is
    written to stdout.
    """
    settings: "AuthSettings" = ctx.obj
    identity = Identity(username=username, password=SecretStr(_read_password(password_stdin)))

    with create_authenticator(settings) as authenticator:
        try:
            scan_id = authenticator.get_token(identity)
        except PersistenceError as e:
            if e.token is None:
                _fail(ctx, e)
                return
            click.echo(style_warning(f"ScanID was not cached: {e}"), err=True)
            scan_id = e.token
        except ScanAuthError as e:
            _fail(ctx, e)
            return

    click.echo(scan_id)


@auth.command()
@click.option("--username", "-u", default=None, help="Only show this user")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, username: str | None, as_json: bool) -> None:
    """Show cached ScanIDs and whether they are still valid.

    Validation needs the Hub key-set, so this command may fetch the JWKS
    document. It never logs in or negotiates.
    """
    settings: "AuthSettings" = ctx.obj
    entries: list[dict[str, Any]] = []

    with create_authenticator(settings) as authenticator:
        cache = authenticator.cache
        usernames = [username] if username else cache.usernames()

        for name in usernames:
            entry: dict[str, Any] = {"username": name}
            cached = cache.get_local_token(name)
            if not cached:
                entry["status"] = "not_cached"
                entries.append(entry)
                continue
            try:
                validated = authenticator.validator.validate(cached)
            except TokenValidationError as e:
                entry["status"] = "invalid"
                entry["reason"] = e.reason
                entry["error"] = str(e)
            except ScanAuthError as e:
                _fail(ctx, e)
                return
            else:
                entry["status"] = "valid"
                entry["expires_at"] = validated.expires_at.isoformat()
                entry["key_id"] = validated.key_id
            entries.append(entry)

    if as_json:
        result = {
            "hub": settings.hub.name,
            "cache_file": str(settings.tokens_path),
            "tokens": entries,
        }
        click.echo(json_module.dumps(result, indent=2))
        return

    click.echo(f"{style_label('Hub')} {settings.hub.name} ({settings.hub.api_base_url})")
    click.echo(f"{style_label('Cache file')} {settings.tokens_path}")
    click.echo()

    if not entries:
        click.echo(style_dim("No cached ScanIDs"))
        return

    for entry in entries:
        click.echo(format_token_status(entry))


@auth.command()
@click.option("--username", "-u", required=True, help="Docker Hub username")
@click.pass_context
def logout(ctx: click.Context, username: str) -> None:
    """Remove the cached ScanID for USERNAME."""
    settings: "AuthSettings" = ctx.obj

    with create_authenticator(settings) as authenticator:
        try:
            removed = authenticator.forget(username)
        except ScanAuthError as e:
            _fail(ctx, e)
            return

    if removed:
        click.echo(style_success(f"Removed cached ScanID for {username}"))
    else:
        click.echo(style_dim(f"No cached ScanID for {username}"))
