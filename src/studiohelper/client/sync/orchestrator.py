"""Push of local folders to Studio.

This module provides:
- SyncOrchestrator: Mirrors folders, detects changes and runs the transfers
- all_ok: Aggregate per-item results into one

Push steps:
1. Mirror every FolderSpec with include_sub_folders (concurrently)
2. Build the folder list: mirrored sub folders first, then the specs
3. For each folder in order: list local files, list Studio files,
   detect changes, transfer
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from studiohelper.client.results import (
    ApiResult,
    LocalIOError,
    Ok,
    aggregate_failure,
)
from studiohelper.client.sync.changes import ChangeDetector
from studiohelper.client.sync.throttle import throttled_map
from studiohelper.client.sync.types import (
    FolderSpec,
    ProgressCallback,
    PushResultSet,
    RemoteFile,
    RemoteFolder,
)

if TYPE_CHECKING:
    from studiohelper.client.api import StudioApiClient
    from studiohelper.client.session import SessionGate
    from studiohelper.client.sync.folders import FolderMirror
    from studiohelper.client.sync.local import LocalFileSystem
    from studiohelper.client.sync.transfer import TransferEngine

logger = logging.getLogger(__name__)

# Deletes are issued one at a time
DELETE_CONCURRENCY = 1


def all_ok(results: Sequence[ApiResult]) -> ApiResult:
    """Collapse per-item results into Ok(True) or the aggregate failure."""
    if all(isinstance(result, Ok) for result in results):
        return Ok(result=True)
    return aggregate_failure()


def parse_sha1(details: Any) -> str | None:
    """Extract the SHA-1 from a file details result."""
    if not isinstance(details, dict):
        return None
    nested = details.get("details")
    if isinstance(nested, dict) and nested.get("sha1"):
        return nested["sha1"]
    return details.get("sha1") or None


class SyncOrchestrator:
    """Runs pushes and batch deletes."""

    def __init__(
        self,
        gate: SessionGate,
        api: StudioApiClient,
        fs: LocalFileSystem,
        mirror: FolderMirror,
        engine: TransferEngine,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            gate: Session gate every call goes through.
            api: Studio API client.
            fs: Local filesystem adapter.
            mirror: Folder mirror (owns the folder cache).
            engine: Transfer engine.
        """
        self._gate = gate
        self._api = api
        self._fs = fs
        self._mirror = mirror
        self._engine = engine
        self._detector = ChangeDetector(fs, fetch_sha1=self._fetch_sha1)

    async def _fetch_sha1(self, file_id: str) -> str | None:
        result = await self._gate.call(lambda: self._api.get_file_details(file_id))
        if isinstance(result, Ok):
            return parse_sha1(result.result)
        logger.warning(f"Could not get details of file {file_id}: {result.message}")
        return None

    async def push(
        self, folders: Sequence[FolderSpec], progress: ProgressCallback | None = None
    ) -> PushResultSet:
        """Push local folders to their Studio folders.

        Args:
            folders: Folder mappings, in the order they are pushed.
            progress: Called after every acknowledged chunk.

        Returns:
            Results of every transfer, plus Studio files missing locally.
        """
        with_sub_folders = [spec for spec in folders if spec.include_sub_folders]
        mirrored = await asyncio.gather(*(self._mirror.mirror(spec) for spec in with_sub_folders))

        jobs: list[tuple[FolderSpec, dict[str, str] | None]] = []
        for spec, created in zip(with_sub_folders, mirrored):
            for folder in created:
                sub_spec = FolderSpec(
                    folder_id=folder.id,
                    local_folder=folder.local_folder,
                    file_headers=spec.file_headers,
                )
                jobs.append((sub_spec, folder.file_headers))
        jobs.extend((spec, None) for spec in folders)

        return await self._upload_folders(jobs, progress)

    async def upload_files_in_folders(
        self, folders: Sequence[FolderSpec], progress: ProgressCallback | None = None
    ) -> PushResultSet:
        """Push files of the given folders without mirroring sub folders."""
        return await self._upload_folders([(spec, None) for spec in folders], progress)

    async def _upload_folders(
        self,
        jobs: Sequence[tuple[FolderSpec, dict[str, str] | None]],
        progress: ProgressCallback | None,
    ) -> PushResultSet:
        results = PushResultSet()
        for spec, folder_headers in jobs:
            results.extend(await self._upload_folder(spec, folder_headers, progress))
        return results

    async def _upload_folder(
        self,
        spec: FolderSpec,
        folder_headers: dict[str, str] | None,
        progress: ProgressCallback | None,
    ) -> PushResultSet:
        try:
            local_names = self._fs.list_files(spec.local_folder)
        except LocalIOError as e:
            logger.error(str(e))
            return PushResultSet()

        listing = await self._gate.call(lambda: self._api.get_files(spec.folder_id))
        entries = listing.unwrap() or []
        remote_files = [RemoteFile.from_dict(entry) for entry in entries]

        changes = await self._detector.detect_changes(
            remote_files,
            local_names,
            spec.local_folder,
            spec.folder_id,
            header_rules=spec.file_headers,
            folder_headers=folder_headers,
        )
        logger.debug(
            f"{spec.local_folder}: {len(changes.actions)} to transfer, "
            f"{len(changes.remote_only_files)} only in Studio"
        )

        transferred = await self._engine.batch(changes.actions, progress)
        return PushResultSet(results=transferred, remote_only_files=changes.remote_only_files)

    async def delete_files(self, file_ids: Sequence[str]) -> ApiResult:
        """Delete files one at a time.

        Returns:
            Ok(True) if every delete succeeded, else the aggregate failure.
        """

        async def delete(file_id: str) -> ApiResult:
            return await self._gate.call(lambda: self._api.delete_file(file_id))

        return all_ok(await throttled_map(delete, file_ids, DELETE_CONCURRENCY))

    async def delete_child_folders(self, folder_id: str) -> ApiResult:
        """Delete every child folder of a folder, one at a time.

        Returns:
            Ok(True) if every delete succeeded, else the aggregate failure.
        """
        listing = await self._gate.call(lambda: self._api.get_folders(folder_id))
        if not isinstance(listing, Ok):
            logger.error(f"Could not list folders of {folder_id}: {listing.message}")
            return aggregate_failure()
        children = [RemoteFolder.from_dict(entry) for entry in listing.result or []]

        async def delete(folder: RemoteFolder) -> ApiResult:
            return await self._gate.call(lambda: self._api.delete_folder(folder.id))

        return all_ok(await throttled_map(delete, children, DELETE_CONCURRENCY))
