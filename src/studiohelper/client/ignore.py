"""Ignore patterns for pushed files.

This module provides:
- IgnorePatterns: Gitignore-style filter for pushed files
- load_ignore_patterns: Build IgnorePatterns from the configured ignore file
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import NamedTuple

from studiohelper.core.config import CREDENTIALS_FILE, IGNORE_FILE

logger = logging.getLogger(__name__)


class _Rule(NamedTuple):
    """One parsed ignore line."""

    source: str
    glob: str
    anchored: bool
    directory: bool

    @classmethod
    def parse(cls, line: str) -> _Rule:
        glob = line.lstrip("/")
        directory = glob.endswith("/")
        return cls(
            source=line,
            glob=glob.rstrip("/"),
            anchored=line.startswith("/"),
            directory=directory,
        )

    def matches(self, rel_str: str, name: str) -> bool:
        if self.directory:
            # Any folder above the file, or only the top one when anchored
            folders = rel_str.split("/")[:-1]
            if self.anchored:
                folders = folders[:1]
            return any(fnmatch.fnmatch(folder, self.glob) for folder in folders)
        if self.anchored or "/" in self.glob:
            return fnmatch.fnmatch(rel_str, self.glob)
        return fnmatch.fnmatch(name, self.glob)


class IgnorePatterns:
    """Gitignore-style filter for files found in pushed folders.

    Supported forms: "name" or "*.ext" (file name at any depth),
    "dir/" (anything below a folder of that name), "a/b*" (path
    relative to the base) and a leading "/" anchoring to the base.
    Negation is not supported.
    """

    def __init__(self, patterns: list[str] | None = None) -> None:
        self._rules: list[_Rule] = []
        for pattern in patterns or []:
            self.add_pattern(pattern)

    @property
    def patterns(self) -> list[str]:
        """Get the patterns in the order they were added."""
        return [rule.source for rule in self._rules]

    def add_pattern(self, pattern: str) -> None:
        """Add an ignore pattern."""
        self._rules.append(_Rule.parse(pattern))

    def load_from_file(self, path: Path) -> None:
        """Add the patterns of an ignore file; a missing file adds nothing.

        Blank lines and lines starting with "#" are skipped.
        """
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return
        patterns = [line.strip() for line in lines]
        for pattern in patterns:
            if pattern and not pattern.startswith("#"):
                self.add_pattern(pattern)
        logger.debug(f"Loaded {len(self._rules)} ignore patterns from {path}")

    def should_ignore(self, path: Path, base_path: Path) -> bool:
        """Check if a file should be left out of a push.

        Args:
            path: File to check.
            base_path: Directory patterns are relative to. Paths outside
                it are matched as given.
        """
        try:
            rel_str = path.relative_to(base_path).as_posix()
        except ValueError:
            rel_str = path.as_posix()
        return any(rule.matches(rel_str, path.name) for rule in self._rules)


def load_ignore_patterns(
    ignore_file: str | None,
    credentials_file: str = CREDENTIALS_FILE,
) -> IgnorePatterns:
    """Build the patterns used by a push.

    The ignore file and the credentials file are never pushed, even
    without an ignore file on disk.

    Args:
        ignore_file: Path of the ignore file (None to use none).
        credentials_file: Path of the credentials file.
    """
    ignore = IgnorePatterns([Path(credentials_file).name, Path(ignore_file or IGNORE_FILE).name])
    if ignore_file:
        ignore.load_from_file(Path(ignore_file))
    return ignore
