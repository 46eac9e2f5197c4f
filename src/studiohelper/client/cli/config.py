"""Configuration file handling for the studiohelper CLI.

This module reads the JSON project file (studio.json by default):

    {
        "studio": {"studioHost": "xyz.studio.crasman.fi", "concurrentUploads": 3},
        "folders": [
            {
                "folderId": "5b3f...",
                "localFolder": "dist",
                "includeSubFolders": true,
                "createdFolderSettings": {"images$": {"fileCacheMaxAge": 3600}},
                "fileHeaders": {"\\\\.js$": {"Content-Type": "text/javascript"}}
            }
        ]
    }

Rule objects are matched in the order their keys appear in the file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from studiohelper.client.sync.types import FolderSpec, PathRule
from studiohelper.core.config import CREDENTIALS_FILE, IGNORE_FILE, StudioConfig

DEFAULT_CONFIG_FILE = "studio.json"


class ConfigError(Exception):
    """Project file is missing or invalid."""


def load_config(path: Path | str = DEFAULT_CONFIG_FILE) -> dict[str, Any]:
    """Load the project file.

    Raises:
        ConfigError: If the file cannot be read or is not a JSON object.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except ValueError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return data


def parse_studio_config(data: dict[str, Any], concurrent_uploads: int | None = None) -> StudioConfig:
    """Build StudioConfig from the "studio" section.

    Args:
        data: The whole project file.
        concurrent_uploads: Overrides the configured value if given.

    Raises:
        ConfigError: If the host is missing.
    """
    studio = data.get("studio") or {}
    try:
        return StudioConfig(
            studio_host=studio.get("studioHost", ""),
            proxy=studio.get("proxy"),
            strict_ssl=bool(studio.get("strictSSL", True)),
            credentials_file=studio.get("credentialsFile", CREDENTIALS_FILE),
            ignore_file=studio.get("ignoreFile", IGNORE_FILE),
            concurrent_uploads=(
                concurrent_uploads
                if concurrent_uploads is not None
                else int(studio.get("concurrentUploads", 1))
            ),
            login_prompt_enabled=bool(studio.get("loginPromptEnabled", True)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid studio settings: {e}") from e


def _parse_rules(rules: Any, key: str) -> list[PathRule[Any]]:
    if rules is None:
        return []
    if not isinstance(rules, dict):
        raise ConfigError(f"{key} must map patterns to values")
    return [PathRule(pattern=pattern, value=value) for pattern, value in rules.items()]


def parse_folder_specs(data: dict[str, Any]) -> list[FolderSpec]:
    """Build FolderSpecs from the "folders" section.

    Raises:
        ConfigError: If a folder entry is not an object or lacks folderId
            or localFolder.
    """
    folders = data.get("folders") or []
    if not isinstance(folders, list):
        raise ConfigError("folders must be a list")

    specs = []
    for index, entry in enumerate(folders):
        if not isinstance(entry, dict):
            raise ConfigError(f"folders[{index}] must be an object")
        if not entry.get("folderId") or not entry.get("localFolder"):
            raise ConfigError(f"folders[{index}] needs folderId and localFolder")
        specs.append(
            FolderSpec(
                folder_id=str(entry["folderId"]),
                local_folder=entry["localFolder"],
                include_sub_folders=bool(entry.get("includeSubFolders", False)),
                add_if_exists=bool(entry.get("addIfExists", True)),
                cache=bool(entry.get("cache", True)),
                folder_settings=_parse_rules(entry.get("createdFolderSettings"), "createdFolderSettings"),
                file_headers=_parse_rules(entry.get("fileHeaders"), "fileHeaders"),
            )
        )
    return specs
