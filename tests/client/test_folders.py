"""Tests for FolderMirror."""

import logging
from pathlib import Path
from typing import Any

import pytest

from studiohelper.client.credentials import CredentialStore
from studiohelper.client.results import ApiError
from studiohelper.client.session import SessionGate
from studiohelper.client.sync.folders import FolderMirror, parse_folder_id
from studiohelper.client.sync.local import LocalFileSystem
from studiohelper.client.sync.types import FolderSpec, PathRule, normalize_path


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """A 3-level local tree with 4 sub folders: a, a/x, a/x/deep, b."""
    root = tmp_path / "site"
    (root / "a" / "x" / "deep").mkdir(parents=True)
    (root / "b").mkdir()
    (root / "index.html").write_text("<html></html>")
    return root


@pytest.fixture
def mirror(studio_api: Any, credential_store: CredentialStore) -> FolderMirror:
    """Mirror over the in-memory Studio."""
    gate = SessionGate(studio_api, credential_store, None, login_prompt_enabled=False)
    return FolderMirror(gate, studio_api, LocalFileSystem())


class TestParseFolderId:
    """Tests for parse_folder_id."""

    @pytest.mark.parametrize(
        ("result", "expected"),
        [("abc", "abc"), (12, "12"), ({"id": "abc"}, "abc"), (None, None), ("", None), (False, None)],
    )
    def test_parse(self, result: object, expected: str | None) -> None:
        """Should accept plain and wrapped ids."""
        assert parse_folder_id(result) == expected


class TestMirror:
    """Tests for mirroring a local tree."""

    @pytest.mark.asyncio
    async def test_single_level(self, mirror: FolderMirror, studio_api: Any, tree: Path) -> None:
        """Without include_sub_folders only direct sub folders are mirrored."""
        root_id = studio_api.add_folder("site")

        results = await mirror.mirror(FolderSpec(folder_id=root_id, local_folder=str(tree)))

        assert [r.name for r in results] == ["a", "b"]
        assert all(r.created for r in results)
        assert results[0].local_folder == normalize_path(tree / "a")
        assert results[0].base_local_folder == normalize_path(tree)
        assert set(studio_api.child_folders(root_id)) == {"a", "b"}

    @pytest.mark.asyncio
    async def test_three_levels_four_creates(
        self, mirror: FolderMirror, studio_api: Any, tree: Path
    ) -> None:
        """4 sub folders in 3 levels should give 4 creates, parents first."""
        root_id = studio_api.add_folder("site")

        results = await mirror.mirror(
            FolderSpec(folder_id=root_id, local_folder=str(tree), include_sub_folders=True)
        )

        creates = [(parent, name) for _, parent, name in studio_api.calls_to("create_folder")]
        assert len(creates) == 4
        names = [name for _, name in creates]
        assert names.index("a") < names.index("x") < names.index("deep")

        a_id = studio_api.child_folders(root_id)["a"]
        x_id = studio_api.child_folders(a_id)["x"]
        assert (root_id, "a") in creates
        assert (a_id, "x") in creates
        assert (x_id, "deep") in creates

        assert [r.name for r in results] == ["a", "b", "x", "deep"]
        assert results[3].local_folder == normalize_path(tree / "a" / "x" / "deep")
        assert {r.base_local_folder for r in results} == {normalize_path(tree)}

    @pytest.mark.asyncio
    async def test_idempotent(self, mirror: FolderMirror, studio_api: Any, tree: Path) -> None:
        """Mirroring twice should give the same ids and no duplicate folders."""
        root_id = studio_api.add_folder("site")
        spec = FolderSpec(
            folder_id=root_id, local_folder=str(tree), include_sub_folders=True, cache=False
        )

        first = await mirror.mirror(spec)
        second = await mirror.mirror(spec)

        assert {r.id for r in first} == {r.id for r in second}
        assert len(studio_api.folders) == 5

    @pytest.mark.asyncio
    async def test_cached(self, mirror: FolderMirror, studio_api: Any, tree: Path) -> None:
        """A cached folder id should make no remote calls and read no folders."""
        root_id = studio_api.add_folder("site")
        spec = FolderSpec(folder_id=root_id, local_folder=str(tree), include_sub_folders=True)

        first = await mirror.mirror(spec)
        calls = len(studio_api.calls)
        (tree / "c").mkdir()
        second = await mirror.mirror(spec)

        assert second == first
        assert len(studio_api.calls) == calls
        assert mirror.cache[root_id] == first

    @pytest.mark.asyncio
    async def test_add_if_exists_false_finds_existing(
        self, mirror: FolderMirror, studio_api: Any, tree: Path
    ) -> None:
        """Existing folders are looked up instead of created."""
        root_id = studio_api.add_folder("site")
        existing_id = studio_api.add_folder("a", root_id)

        results = await mirror.mirror(
            FolderSpec(folder_id=root_id, local_folder=str(tree), add_if_exists=False)
        )

        by_name = {r.name: r for r in results}
        assert by_name["a"].id == existing_id
        assert by_name["a"].created is False
        assert by_name["b"].created is True
        assert [name for _, _, name in studio_api.calls_to("create_folder")] == ["b"]

    @pytest.mark.asyncio
    async def test_unreadable_folder(
        self, mirror: FolderMirror, studio_api: Any, tmp_path: Path
    ) -> None:
        """A missing local folder contributes nothing."""
        results = await mirror.mirror(
            FolderSpec(folder_id="root", local_folder=str(tmp_path / "missing"))
        )

        assert results == []
        assert studio_api.calls == []


class TestFolderSettings:
    """Tests for settings of created folders."""

    @pytest.mark.asyncio
    async def test_first_matching_rule_applied(
        self, mirror: FolderMirror, studio_api: Any, tree: Path
    ) -> None:
        """Settings of the first matching rule go to the created folder."""
        root_id = studio_api.add_folder("site")
        spec = FolderSpec(
            folder_id=root_id,
            local_folder=str(tree),
            include_sub_folders=True,
            folder_settings=[
                PathRule(r"/site/a/x$", {"fileCacheMaxAge": 60}),
                PathRule(r"/site/a", {"fileCacheMaxAge": 3600}),
            ],
        )

        await mirror.mirror(spec)

        a_id = studio_api.child_folders(root_id)["a"]
        x_id = studio_api.child_folders(a_id)["x"]
        deep_id = studio_api.child_folders(x_id)["deep"]
        b_id = studio_api.child_folders(root_id)["b"]
        assert studio_api.folder_settings[a_id] == {"fileCacheMaxAge": "3600"}
        assert studio_api.folder_settings[x_id] == {"fileCacheMaxAge": "60"}
        assert studio_api.folder_settings[deep_id] == {"fileCacheMaxAge": "3600"}
        assert b_id not in studio_api.folder_settings

    @pytest.mark.asyncio
    async def test_settings_failure_does_not_change_results(
        self,
        mirror: FolderMirror,
        studio_api: Any,
        tree: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A failed settings update is logged only."""
        root_id = studio_api.add_folder("site")
        studio_api.failures["update_folder_settings"] = ApiError(code=2, result="Denied")
        spec = FolderSpec(
            folder_id=root_id,
            local_folder=str(tree),
            folder_settings=[PathRule(r".*", {"public": 1})],
        )

        with caplog.at_level(logging.ERROR):
            results = await mirror.mirror(spec)

        assert [r.name for r in results] == ["a", "b"]
        assert "Denied" in caplog.text

    @pytest.mark.asyncio
    async def test_file_headers_resolved(
        self, mirror: FolderMirror, studio_api: Any, tree: Path
    ) -> None:
        """Header rules are matched against the sub folder path."""
        root_id = studio_api.add_folder("site")
        spec = FolderSpec(
            folder_id=root_id,
            local_folder=str(tree),
            file_headers=[PathRule(r"/b$", {"Cache-Control": "no-cache"})],
        )

        results = await mirror.mirror(spec)

        by_name = {r.name: r for r in results}
        assert by_name["a"].file_headers is None
        assert by_name["b"].file_headers == {"Cache-Control": "no-cache"}


class TestCreateFailure:
    """Tests for refused folder creation."""

    @pytest.mark.asyncio
    async def test_failed_create_omitted(
        self,
        mirror: FolderMirror,
        studio_api: Any,
        tree: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A refused create is logged and the folder left out with its subtree."""
        studio_api.failures["create_folder"] = ApiError(code=2, result="No rights")

        with caplog.at_level(logging.ERROR):
            results = await mirror.mirror(
                FolderSpec(folder_id="root", local_folder=str(tree), include_sub_folders=True)
            )

        assert results == []
        assert len(studio_api.calls_to("create_folder")) == 2
        assert "No rights" in caplog.text
