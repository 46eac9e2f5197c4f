"""Login command for the studiohelper CLI.

Commands:
- login: Log in and store the session token
"""

from __future__ import annotations

import asyncio
import sys

import click

from studiohelper.client.cli.config import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    load_config,
    parse_studio_config,
)
from studiohelper.client.cli.output import setup_logging


@click.command()
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Project file with the Studio host.",
)
@click.option("--username", default=None, help="Studio user name.")
def login(config_path: str, username: str | None) -> None:
    """Log in to Studio and store the session token.

    The token is saved encrypted to the credentials file and used by
    later commands until Studio expires it.
    """
    from studiohelper.client.results import Ok
    from studiohelper.client.studio import StudioHelper

    setup_logging()

    try:
        config = parse_studio_config(load_config(config_path))
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if username is None:
        username = click.prompt("Username")
    password = click.prompt("Password", hide_input=True)
    token = click.prompt("Yubikey token", default="", show_default=False)

    async def run() -> bool:
        async with StudioHelper(config) as studio:
            result = await studio.login(username, password, token)
        return isinstance(result, Ok) and isinstance(result.result, dict) and "authToken" in result.result

    try:
        logged_in = asyncio.run(run())
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not logged_in:
        sys.exit(1)
    click.echo(f"Credentials saved to {config.credentials_file}")
