"""Shared types and dataclasses for sync operations.

This module provides:
- RemoteFile: A file as listed by Studio
- LocalFileInfo: Content and metadata of a local file, ready for transfer
- UploadAction, ReplaceAction: The two kinds of TransferAction
- PathRule, FolderSpec: Push configuration
- FolderJob, FolderCreateResult: Folder mirroring input and output
- ChangeSet, TransferResult, PushResultSet: Sync results
- SyncProgress: Progress tracking dataclass
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


@dataclass
class RemoteFile:
    """File metadata from a Studio folder listing."""

    id: str
    name: str
    created_at: int
    size: int = 0
    sha1: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteFile:
        """Create from a listing entry.

        createdAt may arrive as a number or a numeric string.
        """
        details = data.get("details") or {}
        return cls(
            id=str(data["id"]),
            name=data["name"],
            created_at=_to_int(data.get("createdAt")),
            size=_to_int(data.get("size")),
            sha1=details.get("sha1") if isinstance(details, dict) else None,
        )


@dataclass
class RemoteFolder:
    """Folder metadata from a Studio folder listing."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteFolder:
        """Create from a listing entry."""
        return cls(id=str(data["id"]), name=data["name"])


@dataclass
class LocalFileInfo:
    """Local file content prepared for transfer.

    Studio rejects empty uploads, so an empty file is read as a single
    space and reported with size 1.
    """

    type: str
    size: int
    changed_at: int
    sha1: str
    data: bytes


@dataclass
class UploadAction:
    """Upload a new file into a folder."""

    name: str
    folder_id: str
    local_folder: str
    type: str
    size: int
    sha1: str
    data: bytes = field(repr=False)
    headers: dict[str, str] | None = None

    @property
    def local_path(self) -> str:
        return f"{self.local_folder}/{self.name}"


@dataclass
class ReplaceAction:
    """Replace the content of an existing file."""

    id: str
    name: str
    local_folder: str
    type: str
    size: int
    sha1: str
    data: bytes = field(repr=False)
    create_new_version: bool = True
    headers: dict[str, str] | None = None

    @property
    def local_path(self) -> str:
        return f"{self.local_folder}/{self.name}"


TransferAction = UploadAction | ReplaceAction


def normalize_path(path: str | Path) -> str:
    """Join-normalize a local path and use forward slashes on every OS."""
    return Path(path).as_posix()


@dataclass(frozen=True)
class PathRule(Generic[T]):
    """A value applied to local paths matching a regular expression."""

    pattern: str
    value: T

    def matches(self, path: str | Path) -> bool:
        """Check if the pattern is found in the forward-slash path."""
        return re.search(self.pattern, normalize_path(path)) is not None


def first_match(rules: Sequence[PathRule[T]], path: str | Path) -> T | None:
    """Return the value of the first rule matching path, in declaration order."""
    for rule in rules:
        if rule.matches(path):
            return rule.value
    return None


@dataclass
class FolderSpec:
    """One local folder mapped to a Studio folder in a push.

    Attributes:
        folder_id: Studio folder id.
        local_folder: Local folder path.
        include_sub_folders: Mirror and push sub folders too.
        add_if_exists: Create sub folders without looking them up first.
        cache: Memoize the mirrored folder list for this folder id.
        folder_settings: Settings applied to newly created sub folders.
        file_headers: HTTP headers applied to pushed files.
    """

    folder_id: str
    local_folder: str
    include_sub_folders: bool = False
    add_if_exists: bool = True
    cache: bool = True
    folder_settings: list[PathRule[dict[str, Any]]] = field(default_factory=list)
    file_headers: list[PathRule[dict[str, str]]] = field(default_factory=list)


@dataclass
class FolderJob:
    """A local sub folder to create or look up under a Studio folder."""

    parent_id: str
    name: str
    base_local_folder: str
    local_folder: str
    add_if_exists: bool = True
    folder_settings: dict[str, Any] | None = None
    file_headers: dict[str, str] | None = None

    @property
    def local_path(self) -> str:
        """Get the local path of the sub folder itself."""
        return normalize_path(Path(self.local_folder, self.name))


@dataclass
class FolderCreateResult:
    """A Studio folder matching a local sub folder.

    Attributes:
        id: Studio folder id.
        name: Folder name.
        local_folder: Local path of the folder.
        base_local_folder: Local folder of the FolderSpec that produced it.
        created: True if made by this call, False if it already existed.
        file_headers: Headers matched for files of this folder, if any.
    """

    id: str
    name: str
    local_folder: str
    base_local_folder: str
    created: bool
    file_headers: dict[str, str] | None = None


@dataclass
class ChangeSet:
    """Actions needed to bring one Studio folder up to date."""

    actions: list[TransferAction] = field(default_factory=list)
    remote_only_files: list[RemoteFile] = field(default_factory=list)


@dataclass
class TransferResult:
    """Outcome of one transfer in a batch."""

    action: TransferAction
    success: bool
    result: Any = None
    error: str | None = None

    @property
    def local_path(self) -> str:
        return self.action.local_path


@dataclass
class PushResultSet:
    """Per-file results of a push, in transfer order.

    remote_only_files lists files present in Studio but not locally. It
    is diagnostic output and not counted by len().
    """

    results: list[TransferResult] = field(default_factory=list)
    remote_only_files: list[RemoteFile] = field(default_factory=list)

    def __iter__(self) -> Iterator[TransferResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> TransferResult:
        return self.results[index]

    def extend(self, other: PushResultSet) -> None:
        """Append another result set."""
        self.results.extend(other.results)
        self.remote_only_files.extend(other.remote_only_files)

    @property
    def failed(self) -> list[TransferResult]:
        """Get results of transfers that failed."""
        return [r for r in self.results if not r.success]


@dataclass
class SyncProgress:
    """Progress information for a transfer."""

    file_path: str
    file_size: int
    current_chunk: int
    total_chunks: int
    bytes_transferred: int
    operation: str  # "upload" or "replace"

    @property
    def percent(self) -> float:
        """Get progress percentage."""
        if self.total_chunks == 0:
            return 100.0
        return (self.current_chunk / self.total_chunks) * 100


# Type alias for progress callback
ProgressCallback = Callable[[SyncProgress], None]
