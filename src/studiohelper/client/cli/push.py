"""Push command for the studiohelper CLI.

Commands:
- push: Upload new and changed files of the configured folders
"""

from __future__ import annotations

import asyncio
import sys

import click

from studiohelper.client.cli.config import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    load_config,
    parse_folder_specs,
    parse_studio_config,
)
from studiohelper.client.cli.output import ProgressPrinter, setup_logging


@click.command()
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Project file with the Studio host and folders.",
)
@click.option(
    "--concurrent-uploads",
    type=int,
    default=None,
    help="Files transferred at the same time (1-5).",
)
@click.option("--no-progress", is_flag=True, help="Disable chunk progress output.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output.")
def push(config_path: str, concurrent_uploads: int | None, no_progress: bool, verbose: bool) -> None:
    """Push local folders to Studio.

    Creates Studio folders for local sub folders, uploads new files and
    replaces files changed since their last upload. Files found only in
    Studio are reported, never deleted.
    """
    from studiohelper.client.results import StudioError
    from studiohelper.client.studio import StudioHelper
    from studiohelper.client.sync.types import PushResultSet

    logger = setup_logging(verbose)

    try:
        data = load_config(config_path)
        config = parse_studio_config(data, concurrent_uploads)
        folders = parse_folder_specs(data)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not folders:
        click.echo(f"Error: No folders configured in {config_path}", err=True)
        sys.exit(1)

    progress = None if no_progress else ProgressPrinter()

    async def run() -> PushResultSet:
        async with StudioHelper(config) as studio:
            return await studio.push(folders, progress)

    try:
        results = asyncio.run(run())
    except StudioError as e:
        logger.error(str(e))
        sys.exit(1)

    transferred = len(results) - len(results.failed)
    click.echo(f"{transferred} files transferred")
    if results.remote_only_files:
        click.echo(f"{len(results.remote_only_files)} files only in Studio")
    if results.failed:
        click.echo(f"{len(results.failed)} files failed:", err=True)
        for failed in results.failed:
            click.echo(f"  {failed.local_path}: {failed.error}", err=True)
        sys.exit(1)
