"""Mirroring of a local directory tree as Studio folders.

This module provides:
- FolderMirror: Creates (or finds) a Studio folder for every local sub folder
- DirectoryFolderCache: Mirrored folder lists memoized by top-level folder id
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from studiohelper.client.results import ApiError, LocalIOError, NetworkError, Ok
from studiohelper.client.sync.types import (
    FolderCreateResult,
    FolderJob,
    FolderSpec,
    RemoteFolder,
    first_match,
    normalize_path,
)

if TYPE_CHECKING:
    from studiohelper.client.api import StudioApiClient
    from studiohelper.client.session import SessionGate
    from studiohelper.client.sync.local import LocalFileSystem

logger = logging.getLogger(__name__)

DirectoryFolderCache = dict[str, list[FolderCreateResult]]


def parse_folder_id(result: Any) -> str | None:
    """Extract a folder id from a create folder result."""
    if isinstance(result, dict):
        result = result.get("id")
    if result is None or result == "" or isinstance(result, bool):
        return None
    return str(result)


class FolderMirror:
    """Mirrors local sub folders under a Studio folder."""

    def __init__(
        self,
        gate: SessionGate,
        api: StudioApiClient,
        fs: LocalFileSystem,
        cache: DirectoryFolderCache | None = None,
    ) -> None:
        """Initialize the mirror.

        Args:
            gate: Session gate every call goes through.
            api: Studio API client.
            fs: Local filesystem adapter.
            cache: Folder cache shared with the owner (new dict if None).
        """
        self._gate = gate
        self._api = api
        self._fs = fs
        self._cache: DirectoryFolderCache = cache if cache is not None else {}
        self._settings_tasks: set[asyncio.Task[None]] = set()

    @property
    def cache(self) -> DirectoryFolderCache:
        """Get the folder cache."""
        return self._cache

    async def mirror(self, spec: FolderSpec) -> list[FolderCreateResult]:
        """Create or find a Studio folder for every local sub folder of spec.

        Returns:
            A flat list: the results of one level, then the subtree of
            each result in sibling order. Sub folders whose creation failed
            are left out together with everything below them.
        """
        if spec.cache and spec.folder_id in self._cache:
            logger.debug(f"Using cached folders for {spec.folder_id}")
            return self._cache[spec.folder_id]

        base_local_folder = normalize_path(spec.local_folder)
        try:
            results = await self._mirror_level(spec, spec.folder_id, base_local_folder)
        finally:
            await self._drain_settings_updates()

        if spec.cache:
            self._cache[spec.folder_id] = results
        return results

    async def _mirror_level(
        self, spec: FolderSpec, parent_id: str, local_folder: str
    ) -> list[FolderCreateResult]:
        try:
            names = self._fs.list_subfolders(local_folder)
        except LocalIOError as e:
            logger.error(str(e))
            return []

        jobs = []
        for name in names:
            job = FolderJob(
                parent_id=parent_id,
                name=name,
                base_local_folder=normalize_path(spec.local_folder),
                local_folder=local_folder,
                add_if_exists=spec.add_if_exists,
            )
            job.folder_settings = first_match(spec.folder_settings, job.local_path)
            job.file_headers = first_match(spec.file_headers, job.local_path)
            jobs.append(job)

        created = await asyncio.gather(*(self.create_or_get(job) for job in jobs))
        level = [result for result in created if result is not None]
        if not spec.include_sub_folders:
            return level

        subtrees = await asyncio.gather(
            *(self._mirror_level(spec, folder.id, folder.local_folder) for folder in level)
        )
        results = list(level)
        for subtree in subtrees:
            results.extend(subtree)
        return results

    async def create_or_get(self, job: FolderJob) -> FolderCreateResult | None:
        """Create the Studio folder for one local sub folder.

        With add_if_exists the folder is always created, Studio answers with
        the existing id for a taken name. Otherwise the parent is listed
        first and an exact name match is returned as is.

        Returns:
            The folder, or None if Studio refused to create it.
        """
        if not job.add_if_exists:
            existing = await self._find_child(job.parent_id, job.name)
            if existing is not None:
                return FolderCreateResult(
                    id=existing.id,
                    name=job.name,
                    local_folder=job.local_path,
                    base_local_folder=job.base_local_folder,
                    created=False,
                    file_headers=job.file_headers,
                )

        result = await self._gate.call(lambda: self._api.create_folder(job.parent_id, job.name))
        folder_id = parse_folder_id(result.result) if isinstance(result, Ok) else None
        if folder_id is None:
            message = result.message if isinstance(result, ApiError | NetworkError) else result
            logger.error(f"Could not create folder {job.local_path}: {message}")
            return None

        logger.debug(f"Created folder: {job.name} ({folder_id})")
        if job.folder_settings:
            self._schedule_settings_update(folder_id, job.folder_settings)

        return FolderCreateResult(
            id=folder_id,
            name=job.name,
            local_folder=job.local_path,
            base_local_folder=job.base_local_folder,
            created=True,
            file_headers=job.file_headers,
        )

    async def _find_child(self, parent_id: str, name: str) -> RemoteFolder | None:
        # Only the first listing page is scanned
        result = await self._gate.call(lambda: self._api.get_folders(parent_id))
        match result:
            case Ok(result=list(entries)):
                for entry in entries:
                    folder = RemoteFolder.from_dict(entry)
                    if folder.name == name:
                        return folder
            case Ok():
                pass
            case _:
                logger.warning(f"Could not list folders of {parent_id}: {result.message}")
        return None

    def _schedule_settings_update(self, folder_id: str, settings: dict[str, Any]) -> None:
        task = asyncio.ensure_future(self._update_settings(folder_id, settings))
        self._settings_tasks.add(task)
        task.add_done_callback(self._settings_tasks.discard)

    async def _update_settings(self, folder_id: str, settings: dict[str, Any]) -> None:
        try:
            result = await self._gate.call(
                lambda: self._api.update_folder_settings(folder_id, settings)
            )
        except Exception as e:
            logger.error(f"Could not update settings of folder {folder_id}: {e}")
            return
        if not isinstance(result, Ok):
            logger.error(f"Could not update settings of folder {folder_id}: {result.message}")

    async def _drain_settings_updates(self) -> None:
        while self._settings_tasks:
            await asyncio.gather(*list(self._settings_tasks))
