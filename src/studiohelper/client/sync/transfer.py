"""Chunked upload and replace of file content.

This module provides:
- TransferEngine: Runs TransferActions against the Studio upload API

A transfer is a begin call returning an upload token, the content PUT in
CHUNK_SIZE pieces in offset order, and a finish call. Headers are set
afterwards, one key at a time.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

from studiohelper.client.results import (
    ApiResult,
    Ok,
    StudioError,
    TransferIncompleteError,
)
from studiohelper.client.sync.throttle import throttled_map
from studiohelper.client.sync.types import (
    ProgressCallback,
    ReplaceAction,
    SyncProgress,
    TransferAction,
    TransferResult,
    UploadAction,
)
from studiohelper.core.chunking import CHUNK_SIZE, Chunk, count_chunks, split_chunks
from studiohelper.core.config import MAX_CONCURRENT_UPLOADS

if TYPE_CHECKING:
    from studiohelper.client.api import StudioApiClient
    from studiohelper.client.session import SessionGate

logger = logging.getLogger(__name__)

# Simultaneous chunk requests per transfer
MAX_CONCURRENT_CONNECTIONS = 1


def parse_file_id(result: Any) -> str | None:
    """Extract the new file id from a finish upload result."""
    if isinstance(result, dict):
        result = result.get("id")
    if result is None or result == "" or isinstance(result, bool):
        return None
    return str(result)


class TransferEngine:
    """Uploads new files and replaces existing ones."""

    def __init__(
        self,
        gate: SessionGate,
        api: StudioApiClient,
        concurrent_uploads: int = 1,
        chunk_connections: int = MAX_CONCURRENT_CONNECTIONS,
        chunk_size: int = CHUNK_SIZE,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            gate: Session gate every call goes through.
            api: Studio API client.
            concurrent_uploads: Files transferred at the same time in a batch.
            chunk_connections: Chunk requests in flight per file.
            chunk_size: Bytes per chunk.
            progress: Called after every acknowledged chunk.
        """
        self._gate = gate
        self._api = api
        self._concurrent_uploads = max(1, min(concurrent_uploads, MAX_CONCURRENT_UPLOADS))
        self._chunk_connections = max(1, chunk_connections)
        self._chunk_size = chunk_size
        self.progress = progress

    @property
    def concurrent_uploads(self) -> int:
        """Get the number of files transferred at the same time."""
        return self._concurrent_uploads

    async def upload(self, action: UploadAction, progress: ProgressCallback | None = None) -> Ok:
        """Upload a new file.

        Returns:
            The finish call result; its payload is the new file id.

        Raises:
            TransferIncompleteError: If no upload token was issued.
            RemoteRejectedError: If a later step was rejected.
            StudioNetworkError: If a later step failed in transport.
        """
        begin = await self._gate.call(
            lambda: self._api.begin_upload(
                action.folder_id, action.name, action.type, action.size, action.sha1
            )
        )
        token = self._upload_token(begin, action.local_path)

        await self._send_chunks(
            action,
            "upload",
            lambda data: self._api.upload_chunk(action.folder_id, token, data),
            progress,
        )
        finish = self._unwrap(
            await self._gate.call(lambda: self._api.finish_upload(action.folder_id, token))
        )

        if action.headers:
            file_id = parse_file_id(finish.result)
            if file_id is None:
                logger.warning(f"No file id for {action.local_path}, headers not set")
            else:
                await self.apply_headers(file_id, action.headers)

        logger.info(f"Uploaded: {action.local_path}")
        return finish

    async def replace(
        self, action: ReplaceAction, progress: ProgressCallback | None = None
    ) -> Ok:
        """Replace the content of an existing file.

        Returns:
            The finish call result.

        Raises:
            TransferIncompleteError: If no upload token was issued.
            RemoteRejectedError: If a later step was rejected.
            StudioNetworkError: If a later step failed in transport.
        """
        begin = await self._gate.call(
            lambda: self._api.begin_replace(
                action.id, action.type, action.size, action.sha1, action.create_new_version
            )
        )
        token = self._upload_token(begin, action.local_path)

        await self._send_chunks(
            action,
            "replace",
            lambda data: self._api.replace_chunk(action.id, token, data),
            progress,
        )
        finish = self._unwrap(
            await self._gate.call(lambda: self._api.finish_replace(action.id, token))
        )

        if action.headers:
            await self.apply_headers(action.id, action.headers)

        logger.info(f"Updated: {action.local_path}")
        return finish

    async def transfer(
        self, action: TransferAction, progress: ProgressCallback | None = None
    ) -> Ok:
        """Run one action."""
        match action:
            case UploadAction():
                return await self.upload(action, progress)
            case ReplaceAction():
                return await self.replace(action, progress)
        raise TypeError(f"Unknown transfer action: {action!r}")

    async def batch(
        self,
        actions: Sequence[TransferAction],
        progress: ProgressCallback | None = None,
    ) -> list[TransferResult]:
        """Run actions, concurrent_uploads at a time.

        A failing transfer is logged and reported in its TransferResult;
        it does not stop the others.

        Returns:
            One result per action, in input order.
        """

        async def run(action: TransferAction) -> TransferResult:
            try:
                result = await self.transfer(action, progress)
            except StudioError as e:
                logger.error(f"Failed: {action.local_path}: {e}")
                return TransferResult(action=action, success=False, result=e.result, error=str(e))
            return TransferResult(action=action, success=True, result=result)

        return await throttled_map(run, actions, self._concurrent_uploads)

    async def apply_headers(self, file_id: str, headers: dict[str, str]) -> None:
        """Set HTTP headers of a file, one key after the other.

        Studio stores headers as a flat map updated key by key, so
        concurrent updates could overwrite each other.
        """
        for key, value in headers.items():
            self._unwrap(
                await self._gate.call(
                    lambda key=key, value=value: self._api.set_header(file_id, key, value)
                )
            )

    @staticmethod
    def _upload_token(begin: ApiResult, local_path: str) -> str:
        if isinstance(begin, Ok) and isinstance(begin.result, dict):
            token = begin.result.get("uploadToken")
            if token:
                return str(token)
        raise TransferIncompleteError(f"No upload token for {local_path}", begin)

    @staticmethod
    def _unwrap(result: ApiResult) -> Ok:
        if not isinstance(result, Ok):
            result.unwrap()
        return result

    async def _send_chunks(
        self,
        action: TransferAction,
        operation: str,
        send: Callable[[bytes], Awaitable[ApiResult]],
        progress: ProgressCallback | None = None,
    ) -> None:
        progress = progress or self.progress
        total = count_chunks(len(action.data), self._chunk_size)
        sent = 0

        async def put(chunk: Chunk) -> None:
            nonlocal sent
            self._unwrap(await self._gate.call(lambda: send(chunk.data)))
            sent += 1
            if progress:
                progress(
                    SyncProgress(
                        file_path=action.local_path,
                        file_size=action.size,
                        current_chunk=sent,
                        total_chunks=total,
                        bytes_transferred=chunk.offset + chunk.size,
                        operation=operation,
                    )
                )

        await throttled_map(put, split_chunks(action.data, self._chunk_size), self._chunk_connections)
