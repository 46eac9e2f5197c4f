"""Local filesystem access for sync operations.

This module provides:
- LocalFileSystem: Directory listing, stat and content reads
- round_mtime: Modification time rounded to whole seconds
"""

from __future__ import annotations

import logging
import math
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING

from studiohelper.client.results import LocalIOError
from studiohelper.client.sync.types import LocalFileInfo
from studiohelper.core.crypto import compute_sha1

if TYPE_CHECKING:
    from studiohelper.client.ignore import IgnorePatterns

logger = logging.getLogger(__name__)

EMPTY_FILE_PLACEHOLDER = b" "
DEFAULT_MIME_TYPE = "application/octet-stream"


def round_mtime(mtime: float) -> int:
    """Round a modification time to the nearest second."""
    return math.floor(mtime + 0.5)


class LocalFileSystem:
    """Reads the local tree pushed to Studio."""

    def __init__(self, ignore: IgnorePatterns | None = None, base_path: Path | None = None) -> None:
        """Initialize the filesystem adapter.

        Args:
            ignore: Optional ignore patterns for file listings.
            base_path: Directory ignore patterns are relative to (default: cwd).
        """
        self._ignore = ignore
        self._base_path = base_path

    def list_subfolders(self, folder: str | Path) -> list[str]:
        """List names of the immediate sub folders.

        Raises:
            LocalIOError: If the folder cannot be read.
        """
        folder = Path(folder)
        try:
            return sorted(entry.name for entry in folder.iterdir() if entry.is_dir())
        except OSError as e:
            raise LocalIOError(f"Cannot read folder {folder}: {e}") from e

    def list_files(self, folder: str | Path) -> list[str]:
        """List names of regular files, without ignored ones.

        Symlinks are not followed.

        Raises:
            LocalIOError: If the folder cannot be read.
        """
        folder = Path(folder)
        base_path = self._base_path or Path.cwd()
        names: list[str] = []
        try:
            for entry in sorted(folder.iterdir()):
                if entry.is_symlink() or not entry.is_file():
                    continue
                if self._ignore and self._ignore.should_ignore(entry.absolute(), base_path):
                    logger.debug(f"Ignoring {entry}")
                    continue
                names.append(entry.name)
        except OSError as e:
            raise LocalIOError(f"Cannot read folder {folder}: {e}") from e
        return names

    def changed_at(self, path: str | Path) -> int:
        """Get the modification time of a file in whole seconds.

        Raises:
            LocalIOError: If the file cannot be stat'ed.
        """
        try:
            return round_mtime(Path(path).stat().st_mtime)
        except OSError as e:
            raise LocalIOError(f"Cannot stat {path}: {e}") from e

    def file_info(self, path: str | Path) -> LocalFileInfo:
        """Read a file and collect what a transfer needs.

        Raises:
            LocalIOError: If the file cannot be read.
        """
        path = Path(path)
        try:
            changed_at = round_mtime(path.stat().st_mtime)
            data = path.read_bytes()
        except OSError as e:
            raise LocalIOError(f"Cannot read {path}: {e}") from e

        if not data:
            data = EMPTY_FILE_PLACEHOLDER

        mime_type, _ = mimetypes.guess_type(path.name)
        return LocalFileInfo(
            type=mime_type or DEFAULT_MIME_TYPE,
            size=len(data),
            changed_at=changed_at,
            sha1=compute_sha1(data),
            data=data,
        )
