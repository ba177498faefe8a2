"""Tests for GithubFileManager using an in-memory contents API."""

from __future__ import annotations

import pytest

from file_manager_services import (
    FileManagerError,
    GithubAPIError,
    GithubFileManager,
    NotFoundError,
    PathError,
    UpdateError,
)
from file_manager_services.github_backend import parse_repo_url
from tests.fakes import FakeGithubClient


@pytest.fixture
def client() -> FakeGithubClient:
    """Provide an empty fake repository."""
    return FakeGithubClient()


@pytest.fixture
def manager(client: FakeGithubClient) -> GithubFileManager:
    """Provide a file manager bound to the fake repository."""
    return GithubFileManager(
        {
            "repo_url": "https://github.com/acme/notes",
            "root_dir": "/vault",
            "branch": "main",
            "committer_name": "Bot",
            "committer_email": "bot@example.com",
        },
        client=client,
    )


class TestConfiguration:
    """Constructor validation."""

    def test_connection_info_must_be_mapping(self) -> None:
        """A non-mapping configuration is rejected."""
        with pytest.raises(TypeError):
            GithubFileManager("https://github.com/acme/notes")  # type: ignore[arg-type]

    def test_repo_url_is_required(self) -> None:
        """The repository URL is mandatory."""
        with pytest.raises(ValueError, match="repo_url"):
            GithubFileManager({}, client=FakeGithubClient())

    def test_owner_and_repo(self, manager: GithubFileManager) -> None:
        """Owner and repository names come from the URL."""
        assert (manager.owner, manager.repo) == ("acme", "notes")

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://github.com/acme/notes", ("acme", "notes")),
            ("https://github.com/acme/notes.git", ("acme", "notes")),
            ("git@github.com:acme/notes.git", ("acme", "notes")),
            ("https://github.com/acme/notes/tree/main/docs", ("acme", "notes")),
        ],
    )
    def test_parse_repo_url(self, url: str, expected: tuple[str, str]) -> None:
        """Several URL spellings are accepted."""
        assert parse_repo_url(url) == expected

    def test_parse_invalid_repo_url(self) -> None:
        """Other hosts are rejected."""
        with pytest.raises(ValueError, match="Invalid GitHub repository URL"):
            parse_repo_url("https://gitlab.com/acme/notes")


class TestAddressResolution:
    """sha tracking and the 404 create path."""

    @pytest.mark.asyncio
    async def test_missing_file_is_created(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """A 404 on metadata turns the upsert into a create."""
        await manager.update_text_file("/todo.md", "- ship")

        assert client.files == {"vault/todo.md": b"- ship"}
        assert client.commits[-1]["action"] == "create"
        assert client.commits[-1]["message"] == "Create '/todo.md'"

    @pytest.mark.asyncio
    async def test_existing_file_is_updated_with_sha(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """A second write sends the current sha."""
        await manager.update_text_file("/todo.md", "- ship")
        await manager.update_text_file("/todo.md", "- shipped")

        assert client.files["vault/todo.md"] == b"- shipped"
        assert [commit["action"] for commit in client.commits] == ["create", "update"]

    @pytest.mark.asyncio
    async def test_commits_carry_branch_and_committer(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Branch and committer settings reach every commit."""
        await manager.update_binary_file("/a.bin", b"\x00")
        commit = client.commits[-1]
        assert commit["branch"] == "main"
        assert commit["committer"] == {"name": "Bot", "email": "bot@example.com"}

    @pytest.mark.asyncio
    async def test_stale_sha_conflict(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """A conflicting sha surfaces as UpdateError."""
        await manager.update_text_file("/todo.md", "- ship")
        client.fail_next("put_contents", GithubAPIError(409, "does not match"))

        with pytest.raises(UpdateError) as excinfo:
            await manager.update_text_file("/todo.md", "- conflict")
        assert excinfo.value.details == "does not match"

    @pytest.mark.asyncio
    async def test_metadata_failure_is_update_error(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Only 404 is translated; other metadata errors fail the write."""
        client.fail_next("get_contents", GithubAPIError(401, "Bad credentials"))
        with pytest.raises(UpdateError):
            await manager.update_text_file("/todo.md", "- ship")
        assert client.files == {}


class TestReads:
    """get_file_content behaviour."""

    @pytest.mark.asyncio
    async def test_read_missing_file(self, manager: GithubFileManager) -> None:
        """A missing file raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await manager.get_file_content("/missing.md")

    @pytest.mark.asyncio
    async def test_read_large_file_through_blob_api(self, client: FakeGithubClient) -> None:
        """Files without inline content are fetched as blobs."""
        client.inline_limit = 4
        manager = GithubFileManager({"repo_url": "https://github.com/acme/notes"}, client=client)
        await manager.update_binary_file("/big.bin", b"0123456789")

        assert await manager.get_file_content("/big.bin") == b"0123456789"
        assert client.requests[-1][0] == "get_blob"

    @pytest.mark.asyncio
    async def test_read_failure_is_base_error(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Transport failures on read are not reported as missing files."""
        await manager.update_text_file("/todo.md", "- ship")
        client.fail_next("get_contents", GithubAPIError(500, "Server Error"))

        with pytest.raises(FileManagerError) as excinfo:
            await manager.get_file_content("/todo.md")
        assert type(excinfo.value) is FileManagerError

    @pytest.mark.asyncio
    async def test_read_directory_as_file(self, manager: GithubFileManager) -> None:
        """A directory path does not resolve to a file."""
        await manager.update_text_file("/dir/a.md", "a")
        with pytest.raises(NotFoundError):
            await manager.get_file_content("/dir")


class TestDirectories:
    """Marker files, listings and recursive deletion."""

    @pytest.mark.asyncio
    async def test_create_directory_writes_marker(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Directories are materialised by a hidden marker file."""
        await manager.create_directory("/drafts/")
        await manager.create_directory("/drafts/")

        assert client.files == {"vault/drafts/.gitkeep": b""}
        assert len(client.commits) == 1
        assert await manager.list_directory_content("/drafts/") == []

    @pytest.mark.asyncio
    async def test_create_root_directory_is_noop(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """The root needs no marker."""
        await manager.create_directory("/")
        assert client.commits == []

    @pytest.mark.asyncio
    async def test_listing_strips_root_dir(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Repository paths are reported relative to the root directory."""
        client.files["vault/a/b.md"] = b"b"
        client.files["vault/c.md"] = b"c"
        client.files["outside.md"] = b"x"

        entries = await manager.list_directory_content("/", recursive=True)
        assert [entry.path for entry in entries] == ["/a/", "/c.md", "/a/b.md"]

    @pytest.mark.asyncio
    async def test_empty_repository_root(self, client: FakeGithubClient) -> None:
        """The root of an empty repository lists as empty."""
        manager = GithubFileManager({"repo_url": "https://github.com/acme/notes"}, client=client)
        assert await manager.list_directory_content("/") == []

    @pytest.mark.asyncio
    async def test_list_file_as_directory(self, manager: GithubFileManager) -> None:
        """Listing a file path is a path error."""
        await manager.update_text_file("/a.md", "a")
        with pytest.raises(PathError):
            await manager.list_directory_content("/a.md/")

    @pytest.mark.asyncio
    async def test_delete_directory_one_commit_per_file(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Every file below the directory is deleted, marker included."""
        await manager.create_directory("/drafts/")
        await manager.update_text_file("/drafts/a.md", "a")
        await manager.update_text_file("/drafts/deep/b.md", "b")
        await manager.update_text_file("/keep.md", "k")

        await manager.delete_directory("/drafts/")

        assert client.files == {"vault/keep.md": b"k"}
        deletes = [commit["path"] for commit in client.commits if commit["action"] == "delete"]
        assert sorted(deletes) == [
            "vault/drafts/.gitkeep",
            "vault/drafts/a.md",
            "vault/drafts/deep/b.md",
        ]

    @pytest.mark.asyncio
    async def test_emptied_parent_stays_listable(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Deleting the only subdirectory leaves a marker in the parent."""
        await manager.create_directory("/tests/newDir/")
        await manager.update_text_file("/tests/newDir/file.txt", "x")

        await manager.delete_directory("/tests/newDir/")

        assert client.files == {"vault/tests/.gitkeep": b""}
        assert await manager.list_directory_content("/tests/") == []
        assert [entry.path for entry in await manager.list_directory_content("/")] == ["/tests/"]

    @pytest.mark.asyncio
    async def test_deleting_last_file_keeps_parent(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Deleting the last file of a directory keeps the directory."""
        await manager.update_text_file("/notes/a.md", "a")

        await manager.delete_file("/notes/a.md")

        assert client.files == {"vault/notes/.gitkeep": b""}
        assert await manager.list_directory_content("/notes/") == []

    @pytest.mark.asyncio
    async def test_non_empty_parent_gets_no_marker(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """A parent that still holds files needs no marker."""
        await manager.update_text_file("/notes/a.md", "a")
        await manager.update_text_file("/notes/b.md", "b")

        await manager.delete_file("/notes/a.md")

        assert client.files == {"vault/notes/b.md": b"b"}
        assert client.commits[-1]["action"] == "delete"

    @pytest.mark.asyncio
    async def test_delete_missing_directory_is_noop(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """A missing directory has nothing to delete."""
        await manager.delete_directory("/missing/")
        assert client.commits == []

    @pytest.mark.asyncio
    async def test_delete_missing_file_is_noop(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """Deleting a missing file succeeds without a commit."""
        await manager.delete_file("/missing.md")
        assert client.commits == []

    @pytest.mark.asyncio
    async def test_delete_rejected(
        self,
        manager: GithubFileManager,
        client: FakeGithubClient,
    ) -> None:
        """A refused deletion surfaces as UpdateError."""
        await manager.update_text_file("/a.md", "a")
        client.fail_next("delete_contents", GithubAPIError(403, "Forbidden"))
        with pytest.raises(UpdateError):
            await manager.delete_file("/a.md")
        assert "vault/a.md" in client.files
