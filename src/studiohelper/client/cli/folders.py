"""Folder listing command for the studiohelper CLI.

Commands:
- folders: List child folders of a Studio folder
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
@click.argument("folder_id", required=False, default="")
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Project file with the Studio host.",
)
def folders(folder_id: str, config_path: str) -> None:
    """List child folders of FOLDER_ID (top level folders if omitted)."""
    from studiohelper.client.results import StudioError
    from studiohelper.client.studio import StudioHelper
    from studiohelper.client.sync.types import RemoteFolder

    logger = setup_logging()

    try:
        config = parse_studio_config(load_config(config_path))
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    async def run() -> list[RemoteFolder]:
        async with StudioHelper(config) as studio:
            result = await studio.get_folders(folder_id or None)
        return [RemoteFolder.from_dict(entry) for entry in result.unwrap() or []]

    try:
        children = asyncio.run(run())
    except StudioError as e:
        logger.error(str(e))
        sys.exit(1)

    if not children:
        click.echo("No folders")
        return
    for child in children:
        click.echo(f"{child.id}  {child.name}")
