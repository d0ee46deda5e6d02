"""Main CLI entry point for docker-scan authentication.

Commands:
    auth token   - Print a usable ScanID (negotiating one if needed)
    auth status  - Show cached ScanIDs and whether they are still valid
    auth logout  - Remove a cached ScanID

Subcommand help:
    docker-scan-auth COMMAND -h
"""

from __future__ import annotations

__all__ = ["cli", "main"]

import logging
import sys
from pathlib import Path

import click

from docker_scan import __version__
from docker_scan.config import AuthSettings
from docker_scan.exceptions import ConfigurationError
from docker_scan.telemetry.system.system_logger import (
    configure_system_logger_file,
    set_console_level,
)

from .commands.auth import auth
from .styling import style_error


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--hub-instance",
    type=click.Choice(["prod", "staging"]),
    default=None,
    help="Hub instance (default: $DOCKER_SCAN_HUB_INSTANCE or prod)",
)
@click.option("--verbose", is_flag=True, help="Log authentication steps to stderr")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Append structured JSONL logs to this file",
)
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    hub_instance: str | None,
    verbose: bool,
    log_file: Path | None,
) -> None:
    """docker-scan: ScanID authentication for docker scan."""
    if version:
        click.echo(f"docker-scan {__version__}")
        sys.exit(0)

    if verbose:
        set_console_level(logging.DEBUG)
    if log_file is not None:
        configure_system_logger_file(log_file)

    try:
        ctx.obj = AuthSettings.from_environment(hub_instance=hub_instance)
    except ConfigurationError as e:
        click.echo(style_error(str(e)), err=True)
        ctx.exit(e.exit_code)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(auth)


def main() -> None:
    """CLI entry point."""
    cli()
