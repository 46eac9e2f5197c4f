"""Command-line interface for studiohelper.

This module provides the main CLI entry point and assembles all commands.

Commands:
- login: Log in and store the session token
- push: Push local folders to Studio
- folders: List child folders of a Studio folder
"""

from __future__ import annotations

import click

from studiohelper.client.cli.config import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    load_config,
    parse_folder_specs,
    parse_studio_config,
)
from studiohelper.client.cli.folders import folders
from studiohelper.client.cli.login import login
from studiohelper.client.cli.push import push


@click.group()
@click.version_option(package_name="studiohelper")
def cli() -> None:
    """studiohelper - Push local folders to Studio."""


# Session commands
cli.add_command(login)

# Sync commands
cli.add_command(push)
cli.add_command(folders)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "DEFAULT_CONFIG_FILE",
    "ConfigError",
    "load_config",
    "parse_folder_specs",
    "parse_studio_config",
]
