"""StudioHelper, the entry point of the library.

This module provides:
- StudioHelper: Owns the session, the folder cache and the sync components
- FolderSettings: Folder cache, versioning and visibility flags

Example:
    async with StudioHelper(StudioConfig(studio_host="xyz.studio.crasman.fi")) as studio:
        results = await studio.push([FolderSpec(folder_id="5b3f...", local_folder="dist")])
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from studiohelper.client.api import StudioApiClient
from studiohelper.client.credentials import Credentials, CredentialStore
from studiohelper.client.ignore import load_ignore_patterns
from studiohelper.client.prompt import ClickLoginPrompt, LoginPrompt
from studiohelper.client.results import ApiResult, Ok
from studiohelper.client.session import SessionGate
from studiohelper.client.sync.folders import DirectoryFolderCache, FolderMirror
from studiohelper.client.sync.local import LocalFileSystem
from studiohelper.client.sync.orchestrator import SyncOrchestrator
from studiohelper.client.sync.transfer import TransferEngine
from studiohelper.client.sync.types import (
    FolderCreateResult,
    FolderSpec,
    ProgressCallback,
    PushResultSet,
    ReplaceAction,
    TransferResult,
    UploadAction,
    normalize_path,
)
from studiohelper.core.config import StudioConfig

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> int:
    """Read a flag or number Studio may return as bool, int or string."""
    if isinstance(value, str):
        value = value.strip().lower()
        if value in ("true", "yes"):
            return 1
        if value in ("", "false", "no", "null"):
            return 0
        try:
            return int(float(value))
        except ValueError:
            return 0
    if value is None:
        return 0
    return int(value)


@dataclass
class FolderSettings:
    """Settings of a Studio folder.

    Studio stores the values as strings, so "0", 0 and False all read
    as the same flag.

    Attributes:
        file_cache_max_age: Cache time in seconds.
        file_cache_protected: Cache time cannot be changed.
        api_folder: Folder cannot be modified in the Studio GUI.
        noversioning: Replaced files keep no old versions.
        public: Folder is publicly reachable.
    """

    file_cache_max_age: int = 0
    file_cache_protected: bool = False
    api_folder: bool = False
    noversioning: bool = False
    public: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FolderSettings:
        """Create from a folderSettings result."""
        return cls(
            file_cache_max_age=_to_int(data.get("fileCacheMaxAge")),
            file_cache_protected=bool(_to_int(data.get("fileCacheProtected"))),
            api_folder=bool(_to_int(data.get("apiFolder"))),
            noversioning=bool(_to_int(data.get("noversioning"))),
            public=bool(_to_int(data.get("public"))),
        )

    def to_dict(self) -> dict[str, int]:
        """Convert to the update payload, flags as 0 or 1."""
        return {
            "fileCacheMaxAge": self.file_cache_max_age,
            "fileCacheProtected": int(self.file_cache_protected),
            "apiFolder": int(self.api_folder),
            "noversioning": int(self.noversioning),
            "public": int(self.public),
        }


class StudioHelper:
    """Client for one Studio instance.

    The auth token and the folder cache belong to the instance; two
    instances never share them.
    """

    def __init__(
        self,
        config: StudioConfig,
        *,
        api: StudioApiClient | None = None,
        credentials: CredentialStore | None = None,
        prompt: LoginPrompt | None = None,
        fs: LocalFileSystem | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the helper and load the stored session token.

        Args:
            config: Studio connection settings.
            api: API client (built from config if None).
            credentials: Credential store (config.credentials_file if None).
            prompt: Login prompt (terminal prompt if None and enabled).
            fs: Local filesystem adapter (ignore file applied if None).
            transport: Optional httpx transport for the default API client.
        """
        self.config = config
        self.api = api or StudioApiClient(config, transport=transport)
        self.credentials = credentials or CredentialStore(config.credentials_file)
        if prompt is None and config.login_prompt_enabled:
            prompt = ClickLoginPrompt()
        self.fs = fs or LocalFileSystem(
            load_ignore_patterns(config.ignore_file, config.credentials_file)
        )

        stored = self.credentials.get()
        if stored:
            self.api.set_auth_token(stored.auth_token)

        self.gate = SessionGate(
            self.api,
            self.credentials,
            prompt,
            login_prompt_enabled=config.login_prompt_enabled,
        )
        self.folder_cache: DirectoryFolderCache = {}
        self.mirror = FolderMirror(self.gate, self.api, self.fs, self.folder_cache)
        self.engine = TransferEngine(
            self.gate, self.api, concurrent_uploads=config.concurrent_uploads
        )
        self.orchestrator = SyncOrchestrator(
            self.gate, self.api, self.fs, self.mirror, self.engine
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.api.close()

    async def __aenter__(self) -> StudioHelper:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    # === Session ===

    async def login(
        self,
        username: str,
        password: str,
        token: str | None = None,
        long_session: bool = True,
    ) -> ApiResult:
        """Log in without the session gate and store the new token.

        A successful login also allows the login prompt again if the
        user cancelled it earlier.

        Raises:
            ValueError: If username or password is empty.
        """
        result = await self.api.login(username, password, token, long_session)
        match result:
            case Ok(result={"authToken": str(auth_token)}):
                self.api.set_auth_token(auth_token)
                self.credentials.put(Credentials(auth_token=auth_token, username=username))
                self.gate.resume()
                logger.info(f"Logged in as {username}")
            case Ok():
                logger.error("Login response did not contain an auth token")
            case _:
                logger.error(result.message)
        return result

    # === Push ===

    async def push(
        self, folders: Sequence[FolderSpec], progress: ProgressCallback | None = None
    ) -> PushResultSet:
        """Mirror sub folders and push changed files of every folder."""
        return await self.orchestrator.push(folders, progress)

    async def upload_files_in_folders(
        self, folders: Sequence[FolderSpec], progress: ProgressCallback | None = None
    ) -> PushResultSet:
        """Push changed files of every folder, sub folders excluded."""
        return await self.orchestrator.upload_files_in_folders(folders, progress)

    async def create_directory_folders(self, spec: FolderSpec) -> list[FolderCreateResult]:
        """Create a Studio folder for every local sub folder of spec."""
        return await self.mirror.mirror(spec)

    async def upload_files(
        self,
        paths: Sequence[str | Path],
        folder_id: str,
        progress: ProgressCallback | None = None,
    ) -> list[TransferResult]:
        """Upload local files into a folder as new files.

        Raises:
            ValueError: If folder_id is empty.
            LocalIOError: If a file cannot be read.
        """
        if not folder_id:
            raise ValueError("upload_files requires a folder id")
        actions = []
        for path in paths:
            path = Path(path)
            info = self.fs.file_info(path)
            actions.append(
                UploadAction(
                    name=path.name,
                    folder_id=folder_id,
                    local_folder=normalize_path(path.parent),
                    type=info.type,
                    size=info.size,
                    sha1=info.sha1,
                    data=info.data,
                )
            )
        return await self.engine.batch(actions, progress)

    async def replace_files(
        self,
        files: Sequence[tuple[str, str | Path]],
        progress: ProgressCallback | None = None,
    ) -> list[TransferResult]:
        """Replace the content of existing files.

        Args:
            files: (file id, local path) pairs.
            progress: Called after every acknowledged chunk.

        Raises:
            LocalIOError: If a file cannot be read.
        """
        actions = []
        for file_id, path in files:
            path = Path(path)
            info = self.fs.file_info(path)
            actions.append(
                ReplaceAction(
                    id=file_id,
                    name=path.name,
                    local_folder=normalize_path(path.parent),
                    type=info.type,
                    size=info.size,
                    sha1=info.sha1,
                    data=info.data,
                    create_new_version=True,
                )
            )
        return await self.engine.batch(actions, progress)

    # === Files ===

    async def get_files(self, folder_id: str) -> ApiResult:
        """List files of a folder."""
        return await self.gate.call(lambda: self.api.get_files(folder_id))

    async def get_file_details(self, file_id: str) -> ApiResult:
        """Get details of a file."""
        return await self.gate.call(lambda: self.api.get_file_details(file_id))

    async def delete_files(self, file_ids: Sequence[str]) -> ApiResult:
        """Delete files; Ok(True) only if every delete succeeded."""
        return await self.orchestrator.delete_files(file_ids)

    # === Folders ===

    async def get_folders(self, parent_id: str | None = None) -> ApiResult:
        """List child folders."""
        return await self.gate.call(lambda: self.api.get_folders(parent_id))

    async def create_folder(self, parent_id: str | None, name: str) -> ApiResult:
        """Create a folder, or get the id of the existing one."""
        return await self.gate.call(lambda: self.api.create_folder(parent_id, name))

    async def delete_folder(self, folder_id: str) -> ApiResult:
        """Delete a folder."""
        return await self.gate.call(lambda: self.api.delete_folder(folder_id))

    async def delete_child_folders(self, folder_id: str) -> ApiResult:
        """Delete every child folder; Ok(True) only if every delete succeeded."""
        return await self.orchestrator.delete_child_folders(folder_id)

    async def get_folder_settings(self, folder_id: str) -> ApiResult:
        """Get folder settings; an Ok payload is a FolderSettings."""
        result = await self.gate.call(lambda: self.api.get_folder_settings(folder_id))
        if isinstance(result, Ok) and isinstance(result.result, dict):
            return Ok(result=FolderSettings.from_dict(result.result), code=result.code)
        return result

    async def update_folder_settings(
        self, folder_id: str, settings: FolderSettings | dict[str, Any]
    ) -> ApiResult:
        """Update folder settings."""
        payload = settings.to_dict() if isinstance(settings, FolderSettings) else settings
        return await self.gate.call(lambda: self.api.update_folder_settings(folder_id, payload))

    # === File headers ===

    async def get_headers(self, file_id: str) -> ApiResult:
        """Get the HTTP headers of a file; an empty map reads as None."""
        result = await self.gate.call(lambda: self.api.get_headers(file_id))
        if isinstance(result, Ok) and not result.result:
            return Ok(result=None, code=result.code)
        return result

    async def set_header(self, file_id: str, key: str, value: str) -> ApiResult:
        """Set one HTTP header of a file."""
        return await self.gate.call(lambda: self.api.set_header(file_id, key, value))
