"""HTTP client for the Studio API.

This module provides:
- StudioApiClient: Async HTTP client issuing Studio API calls
- Every call returns an ApiResult envelope instead of raising

The client only speaks HTTP. Session renewal, retries and result
interpretation live in SessionGate and the sync components.
"""

from __future__ import annotations

import logging
from json import JSONDecodeError
from typing import Any

import httpx

from studiohelper.client.results import (
    AGGREGATE_FAILURE_CODE,
    ApiError,
    ApiResult,
    NetworkError,
    from_envelope,
)
from studiohelper.core.config import StudioConfig

logger = logging.getLogger(__name__)

AUTH_HEADER = "X-authToken"
LOGIN_TIMEOUT = 10.0


class StudioApiClient:
    """Async HTTP client for the Studio API."""

    def __init__(
        self,
        config: StudioConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            config: Studio connection settings.
            transport: Optional custom httpx transport.
        """
        self._config = config
        self._auth_token = ""
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            proxy=config.proxy or None,
            verify=config.strict_ssl,
            timeout=None,
            transport=transport,
        )

    @property
    def auth_token(self) -> str:
        """Get the token sent with every request."""
        return self._auth_token

    def set_auth_token(self, token: str) -> None:
        """Set the token sent with every request."""
        self._auth_token = token

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> StudioApiClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    @staticmethod
    def _path(action: str, *args: str) -> str:
        parts = [action.strip("/"), *(str(a) for a in args if a is not None)]
        return "/".join(parts)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        data: dict[str, Any] | None = None,
        content: bytes | None = None,
        timeout: float | None = None,
    ) -> ApiResult:
        """Send a request and turn the response into an ApiResult."""
        try:
            response = await self._client.request(
                method,
                path,
                data=data,
                content=content,
                headers={AUTH_HEADER: self._auth_token},
                timeout=timeout,
            )
        except httpx.HTTPError as e:
            logger.debug(f"{method} {path} failed: {e}")
            return NetworkError(cause=e)

        try:
            body = response.json()
        except (JSONDecodeError, UnicodeDecodeError):
            return ApiError(
                code=AGGREGATE_FAILURE_CODE,
                result=f"Invalid response ({response.status_code}): {response.text[:200]}",
            )
        return from_envelope(body)

    async def _get(self, action: str, *args: str) -> ApiResult:
        return await self._request("GET", self._path(action, *args))

    async def _post(
        self,
        action: str,
        *args: str,
        data: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ApiResult:
        return await self._request("POST", self._path(action, *args), data=data, timeout=timeout)

    async def _put(self, action: str, *args: str, content: bytes) -> ApiResult:
        return await self._request("PUT", self._path(action, *args), content=content)

    async def _delete(self, action: str, *args: str) -> ApiResult:
        return await self._request("DELETE", self._path(action, *args))

    # === Session ===

    async def login(
        self,
        username: str,
        password: str,
        token: str | None = None,
        long_session: bool = True,
    ) -> ApiResult:
        """Log in and obtain an auth token.

        Args:
            username: Studio user name.
            password: Studio password.
            token: Optional one-time (Yubikey) token.
            long_session: Ask for a long-lived session.

        Returns:
            Ok whose result holds "authToken", or the failure.
        """
        if not username or not password:
            raise ValueError("login requires username and password")
        return await self._post(
            "login",
            data={
                "username": username,
                "password": password,
                "token": token or "",
                "longSession": 1 if long_session else 0,
            },
            timeout=LOGIN_TIMEOUT,
        )

    # === Files ===

    async def get_files(self, folder_id: str) -> ApiResult:
        """List files of a folder."""
        return await self._get("files", folder_id)

    async def get_file_details(self, file_id: str) -> ApiResult:
        """Get details (including sha1) of a file."""
        return await self._get("filedetails", file_id)

    async def delete_file(self, file_id: str) -> ApiResult:
        """Delete a file."""
        return await self._delete("file", file_id)

    # === Folders ===

    async def get_folders(self, parent_id: str | None = None) -> ApiResult:
        """List child folders of a folder (top level when parent_id is None)."""
        return await self._get("folders", parent_id or "")

    async def create_folder(self, parent_id: str | None, name: str) -> ApiResult:
        """Create a folder; Studio returns the existing id for a taken name."""
        return await self._post("folders", parent_id or "", data={"name": name})

    async def delete_folder(self, folder_id: str) -> ApiResult:
        """Delete a folder."""
        return await self._delete("folders", folder_id)

    async def get_folder_settings(self, folder_id: str) -> ApiResult:
        """Get cache, versioning and visibility settings of a folder."""
        return await self._get("folderSettings", folder_id)

    async def update_folder_settings(self, folder_id: str, settings: dict[str, Any]) -> ApiResult:
        """Update folder settings."""
        return await self._post("folderSettings", folder_id, data=settings)

    # === File headers ===

    async def get_headers(self, file_id: str) -> ApiResult:
        """Get the HTTP headers Studio serves a file with."""
        return await self._get("headers", file_id)

    async def set_header(self, file_id: str, key: str, value: str) -> ApiResult:
        """Set one HTTP header of a file."""
        return await self._post("headers", file_id, data={"key": key, "value": value})

    # === Transfers ===

    async def begin_upload(
        self, folder_id: str, filename: str, filetype: str, filesize: int, sha1: str
    ) -> ApiResult:
        """Start a new file upload; the result holds "uploadToken"."""
        return await self._post(
            "upload",
            folder_id,
            data={"filename": filename, "filetype": filetype, "filesize": filesize, "sha1": sha1},
        )

    async def upload_chunk(self, folder_id: str, upload_token: str, data: bytes) -> ApiResult:
        """Append a chunk to an upload."""
        return await self._put("upload", folder_id, upload_token, content=data)

    async def finish_upload(self, folder_id: str, upload_token: str) -> ApiResult:
        """Complete an upload."""
        return await self._post("upload", folder_id, upload_token)

    async def begin_replace(
        self, file_id: str, filetype: str, filesize: int, sha1: str, create_new_version: bool
    ) -> ApiResult:
        """Start replacing the content of a file; the result holds "uploadToken"."""
        return await self._post(
            "replace",
            file_id,
            data={
                "filetype": filetype,
                "filesize": filesize,
                "sha1": sha1,
                "createNewVersion": 1 if create_new_version else 0,
            },
        )

    async def replace_chunk(self, file_id: str, upload_token: str, data: bytes) -> ApiResult:
        """Append a chunk to a replace."""
        return await self._put("replace", file_id, upload_token, content=data)

    async def finish_replace(self, file_id: str, upload_token: str) -> ApiResult:
        """Complete a replace."""
        return await self._post("replace", file_id, upload_token)
