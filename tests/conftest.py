"""Shared fixtures: an in-memory Studio service and its collaborators."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from studiohelper.client.credentials import CredentialStore
from studiohelper.client.prompt import LoginAnswers
from studiohelper.client.results import ApiError, ApiResult, Ok
from studiohelper.core.crypto import compute_sha1

# Newer than any file written by a test
REMOTE_NOW = 4_000_000_000


@dataclass
class StoredFile:
    """A file held by FakeStudio."""

    id: str
    folder_id: str
    name: str
    data: bytes
    created_at: int
    versions: int = 1

    @property
    def sha1(self) -> str:
        return compute_sha1(self.data)


@dataclass
class PendingTransfer:
    """An upload or replace between begin and finish."""

    target: str
    name: str
    chunks: list[bytes] = field(default_factory=list)


class FakeStudio:
    """In-memory stand-in for StudioApiClient.

    Every call is recorded in calls as (method, *args). Setting
    require_auth makes every call except login fail with an auth code
    until a token issued by login is used.
    """

    password = "secret"

    def __init__(self) -> None:
        self.auth_token = ""
        self.calls: list[tuple[Any, ...]] = []
        self.folders: dict[str, dict[str, str]] = {}
        self.files: dict[str, StoredFile] = {}
        self.folder_settings: dict[str, dict[str, Any]] = {}
        self.headers: dict[str, dict[str, str]] = {}
        self.require_auth = False
        self.valid_tokens: set[str] = set()
        self.failures: dict[str, ApiResult] = {}
        self.now = REMOTE_NOW
        self.closed = False
        self._ids = itertools.count(1)
        self._pending: dict[str, PendingTransfer] = {}

    # === Helpers for tests ===

    def add_folder(self, name: str, parent_id: str = "") -> str:
        folder_id = f"folder-{next(self._ids)}"
        self.folders[folder_id] = {"name": name, "parent": parent_id}
        return folder_id

    def add_file(self, folder_id: str, name: str, data: bytes, created_at: int) -> str:
        file_id = f"file-{next(self._ids)}"
        self.files[file_id] = StoredFile(file_id, folder_id, name, data, created_at)
        return file_id

    def calls_to(self, method: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == method]

    def child_folders(self, parent_id: str) -> dict[str, str]:
        return {
            folder["name"]: folder_id
            for folder_id, folder in self.folders.items()
            if folder["parent"] == parent_id
        }

    def files_in(self, folder_id: str) -> dict[str, StoredFile]:
        return {f.name: f for f in self.files.values() if f.folder_id == folder_id}

    # === Session ===

    def set_auth_token(self, token: str) -> None:
        self.auth_token = token

    async def close(self) -> None:
        self.closed = True

    def _record(self, method: str, *args: Any) -> ApiResult | None:
        self.calls.append((method, *args))
        if method in self.failures:
            return self.failures[method]
        if self.require_auth and self.auth_token not in self.valid_tokens:
            return ApiError(code=10, result="Session expired")
        return None

    async def login(
        self, username: str, password: str, token: str | None = None, long_session: bool = True
    ) -> ApiResult:
        self.calls.append(("login", username, password, token))
        if not username or not password:
            raise ValueError("login requires username and password")
        if password != self.password:
            return ApiError(code=3, result="Wrong username or password")
        auth_token = f"token-{next(self._ids)}"
        self.valid_tokens.add(auth_token)
        return Ok(result={"authToken": auth_token})

    # === Files ===

    async def get_files(self, folder_id: str) -> ApiResult:
        if failure := self._record("get_files", folder_id):
            return failure
        return Ok(
            result=[
                {
                    "id": f.id,
                    "name": f.name,
                    "createdAt": str(f.created_at),
                    "size": len(f.data),
                }
                for f in self.files.values()
                if f.folder_id == folder_id
            ]
        )

    async def get_file_details(self, file_id: str) -> ApiResult:
        if failure := self._record("get_file_details", file_id):
            return failure
        stored = self.files.get(file_id)
        if stored is None:
            return ApiError(code=4, result="File not found")
        return Ok(result={"id": stored.id, "name": stored.name, "details": {"sha1": stored.sha1}})

    async def delete_file(self, file_id: str) -> ApiResult:
        if failure := self._record("delete_file", file_id):
            return failure
        if self.files.pop(file_id, None) is None:
            return ApiError(code=4, result=False)
        return Ok(result=True)

    # === Folders ===

    async def get_folders(self, parent_id: str | None = None) -> ApiResult:
        if failure := self._record("get_folders", parent_id):
            return failure
        return Ok(
            result=[
                {"id": folder_id, "name": name}
                for name, folder_id in self.child_folders(parent_id or "").items()
            ]
        )

    async def create_folder(self, parent_id: str | None, name: str) -> ApiResult:
        if failure := self._record("create_folder", parent_id, name):
            return failure
        existing = self.child_folders(parent_id or "").get(name)
        if existing:
            return Ok(result=existing)
        return Ok(result=self.add_folder(name, parent_id or ""))

    async def delete_folder(self, folder_id: str) -> ApiResult:
        if failure := self._record("delete_folder", folder_id):
            return failure
        if self.folders.pop(folder_id, None) is None:
            return ApiError(code=4, result=False)
        return Ok(result=True)

    async def get_folder_settings(self, folder_id: str) -> ApiResult:
        if failure := self._record("get_folder_settings", folder_id):
            return failure
        return Ok(result=self.folder_settings.get(folder_id, {}))

    async def update_folder_settings(self, folder_id: str, settings: dict[str, Any]) -> ApiResult:
        if failure := self._record("update_folder_settings", folder_id, settings):
            return failure
        # Studio stores every value as a string
        self.folder_settings[folder_id] = {k: str(v) for k, v in settings.items()}
        return Ok(result=True)

    # === File headers ===

    async def get_headers(self, file_id: str) -> ApiResult:
        if failure := self._record("get_headers", file_id):
            return failure
        return Ok(result=dict(self.headers.get(file_id, {})))

    async def set_header(self, file_id: str, key: str, value: str) -> ApiResult:
        if failure := self._record("set_header", file_id, key, value):
            return failure
        self.headers.setdefault(file_id, {})[key] = value
        return Ok(result=True)

    # === Transfers ===

    def _begin(self, target: str, name: str) -> ApiResult:
        token = f"upload-{next(self._ids)}"
        self._pending[token] = PendingTransfer(target=target, name=name)
        return Ok(result={"uploadToken": token})

    def _chunk(self, token: str, data: bytes) -> ApiResult:
        pending = self._pending.get(token)
        if pending is None:
            return ApiError(code=5, result="Unknown upload token")
        pending.chunks.append(data)
        return Ok(result=True)

    async def begin_upload(
        self, folder_id: str, filename: str, filetype: str, filesize: int, sha1: str
    ) -> ApiResult:
        if failure := self._record("begin_upload", folder_id, filename, filetype, filesize, sha1):
            return failure
        return self._begin(folder_id, filename)

    async def upload_chunk(self, folder_id: str, upload_token: str, data: bytes) -> ApiResult:
        if failure := self._record("upload_chunk", folder_id, upload_token, data):
            return failure
        return self._chunk(upload_token, data)

    async def finish_upload(self, folder_id: str, upload_token: str) -> ApiResult:
        if failure := self._record("finish_upload", folder_id, upload_token):
            return failure
        pending = self._pending.pop(upload_token)
        file_id = self.add_file(folder_id, pending.name, b"".join(pending.chunks), self.now)
        return Ok(result=file_id)

    async def begin_replace(
        self, file_id: str, filetype: str, filesize: int, sha1: str, create_new_version: bool
    ) -> ApiResult:
        if failure := self._record(
            "begin_replace", file_id, filetype, filesize, sha1, create_new_version
        ):
            return failure
        if file_id not in self.files:
            return ApiError(code=4, result="File not found")
        return self._begin(file_id, self.files[file_id].name)

    async def replace_chunk(self, file_id: str, upload_token: str, data: bytes) -> ApiResult:
        if failure := self._record("replace_chunk", file_id, upload_token, data):
            return failure
        return self._chunk(upload_token, data)

    async def finish_replace(self, file_id: str, upload_token: str) -> ApiResult:
        if failure := self._record("finish_replace", file_id, upload_token):
            return failure
        pending = self._pending.pop(upload_token)
        stored = self.files[file_id]
        stored.data = b"".join(pending.chunks)
        stored.created_at = self.now
        stored.versions += 1
        return Ok(result=True)


class FakePrompt:
    """LoginPrompt answering from a list; None answers mean the user aborted."""

    def __init__(
        self, answers: list[LoginAnswers | None] | None = None, delay: float = 0.02
    ) -> None:
        self.answers = list(answers or [])
        self.delay = delay
        self.asked = 0
        self.default_usernames: list[str] = []

    async def ask(self, default_username: str = "") -> LoginAnswers | None:
        self.asked += 1
        self.default_usernames.append(default_username)
        # The user takes a while to type, other calls keep running meanwhile
        await asyncio.sleep(self.delay)
        if not self.answers:
            return None
        return self.answers.pop(0)


@pytest.fixture
def studio_api() -> FakeStudio:
    """Create an empty in-memory Studio."""
    return FakeStudio()


@pytest.fixture
def credential_store(tmp_path: Path) -> CredentialStore:
    """Create a credential store in a temporary directory."""
    return CredentialStore(tmp_path / ".studio-credentials", secret="test-secret")


@pytest.fixture
def good_login() -> LoginAnswers:
    """Answers FakeStudio accepts."""
    return LoginAnswers(username="alice", password=FakeStudio.password, token="")


@pytest.fixture
def make_prompt() -> type[FakePrompt]:
    """Give tests the FakePrompt class."""
    return FakePrompt
