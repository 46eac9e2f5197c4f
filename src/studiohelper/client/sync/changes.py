"""Change detection between a local folder and a Studio folder.

This module provides:
- ChangeDetector: Decides which local files to upload or replace

Decision table, per local file:

| Remote file | Local newer | SHA-1 | Action  |
|-------------|-------------|-------|---------|
| missing     | -           | -     | Upload  |
| present     | no          | -     | none    |
| present     | yes         | same  | none    |
| present     | yes         | diff  | Replace |

Remote files without a local counterpart are reported, never deleted.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from studiohelper.client.results import LocalIOError
from studiohelper.client.sync.local import LocalFileSystem
from studiohelper.client.sync.types import (
    ChangeSet,
    PathRule,
    RemoteFile,
    ReplaceAction,
    UploadAction,
    first_match,
    normalize_path,
)

logger = logging.getLogger(__name__)

# Returns the SHA-1 Studio has for a file id, or None if unknown
FetchSha1 = Callable[[str], Awaitable[str | None]]


class ChangeDetector:
    """Compares a folder listing with local files."""

    def __init__(self, fs: LocalFileSystem, fetch_sha1: FetchSha1 | None = None) -> None:
        """Initialize the detector.

        Args:
            fs: Local filesystem adapter.
            fetch_sha1: Looks up the remote SHA-1 when the listing lacks it.
        """
        self._fs = fs
        self._fetch_sha1 = fetch_sha1

    async def _remote_sha1(self, remote: RemoteFile) -> str | None:
        if remote.sha1 or self._fetch_sha1 is None:
            return remote.sha1
        return await self._fetch_sha1(remote.id)

    async def detect_changes(
        self,
        remote_files: Sequence[RemoteFile],
        local_file_names: Sequence[str],
        local_dir: str,
        folder_id: str,
        header_rules: Sequence[PathRule[dict[str, str]]] = (),
        folder_headers: dict[str, str] | None = None,
    ) -> ChangeSet:
        """Compute the transfers that bring a Studio folder up to date.

        Args:
            remote_files: Files listed in the Studio folder.
            local_file_names: Names of regular files in local_dir.
            local_dir: Local folder the names belong to.
            folder_id: Studio folder id for uploads.
            header_rules: Header rules matched against each local file path.
            folder_headers: Headers used when no rule matches.

        Returns:
            ChangeSet with replace actions first (in listing order), then
            uploads (in local order), plus remote-only files.
        """
        local_dir = normalize_path(local_dir)
        pending = list(local_file_names)
        changes = ChangeSet()

        def headers_for(name: str) -> dict[str, str] | None:
            return first_match(header_rules, f"{local_dir}/{name}") or folder_headers

        for remote in remote_files:
            if remote.name not in pending:
                changes.remote_only_files.append(remote)
                continue
            pending.remove(remote.name)

            path = Path(local_dir, remote.name)
            try:
                if self._fs.changed_at(path) <= remote.created_at:
                    continue
                info = self._fs.file_info(path)
            except LocalIOError as e:
                logger.error(str(e))
                continue

            if info.sha1 == await self._remote_sha1(remote):
                logger.debug(f"Unchanged content: {path}")
                continue

            changes.actions.append(
                ReplaceAction(
                    id=remote.id,
                    name=remote.name,
                    local_folder=local_dir,
                    type=info.type,
                    size=info.size,
                    sha1=info.sha1,
                    data=info.data,
                    create_new_version=True,
                    headers=headers_for(remote.name),
                )
            )

        for name in pending:
            try:
                info = self._fs.file_info(Path(local_dir, name))
            except LocalIOError as e:
                logger.error(str(e))
                continue
            changes.actions.append(
                UploadAction(
                    name=name,
                    folder_id=folder_id,
                    local_folder=local_dir,
                    type=info.type,
                    size=info.size,
                    sha1=info.sha1,
                    data=info.data,
                    headers=headers_for(name),
                )
            )

        return changes
