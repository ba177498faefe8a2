"""Tests for the URI-based file manager factory."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from file_manager_services import (
    FileManager,
    GithubFileManager,
    GoogleDriveFileManager,
    InMemoryFileManager,
    LocalFileManager,
    NotFoundError,
)
from file_manager_services.factory import (
    FileManagerFactory,
    create_file_manager,
    register_file_manager_factory,
)
from tests.fakes import FakeDriveClient, FakeGithubClient

# ruff: noqa: S101  # pytest assertions are ok in tests


class TestParseUri:
    """Test FileManagerFactory.parse_uri."""

    def test_factory_initialization(self) -> None:
        """Test factory initializes with built-in schemes."""
        factory = FileManagerFactory()
        assert set(factory._factories) == {"memory", "file", "https", "gdrive"}

    def test_parse_uri_file_scheme(self) -> None:
        """Test parsing file:// URIs."""
        factory = FileManagerFactory()

        assert factory.parse_uri("file:///tmp/data") == ("file", "/tmp/data", {})
        assert factory.parse_uri("file://data/files") == ("file", "data/files", {})

    def test_parse_uri_with_query_params(self) -> None:
        """Test parsing URIs with query parameters."""
        factory = FileManagerFactory()
        scheme, path, params = factory.parse_uri("file:///data?create_root=false")
        assert scheme == "file"
        assert path == "/data"
        assert params == {"create_root": "false"}

    def test_parse_uri_github(self) -> None:
        """Test parsing GitHub URLs."""
        factory = FileManagerFactory()
        scheme, path, params = factory.parse_uri(
            "https://github.com/acme/notes?branch=dev&root_dir=/docs",
        )
        assert scheme == "https"
        assert path == "github.com/acme/notes"
        assert params == {"branch": "dev", "root_dir": "/docs"}

    def test_parse_uri_memory(self) -> None:
        """The memory scheme needs no path."""
        assert FileManagerFactory().parse_uri("memory:") == ("memory", "", {})

    def test_parse_uri_missing_scheme(self) -> None:
        """Test error on missing URI scheme."""
        with pytest.raises(ValueError, match="missing scheme"):
            FileManagerFactory().parse_uri("/tmp/data")

    def test_parse_uri_missing_path(self) -> None:
        """Test error on missing path component."""
        with pytest.raises(ValueError, match="missing path"):
            FileManagerFactory().parse_uri("file://")


class TestResolve:
    """Test adapter selection."""

    def test_resolve_memory(self) -> None:
        """memory: gives a fresh in-memory file manager."""
        first = create_file_manager("memory:")
        second = create_file_manager("memory:")
        assert isinstance(first, InMemoryFileManager)
        assert first is not second

    def test_resolve_local(self, tmp_path: Path) -> None:
        """file: URIs give a local file manager rooted at the path."""
        manager = create_file_manager(f"file://{tmp_path}")
        assert isinstance(manager, LocalFileManager)
        assert manager.root == tmp_path.resolve()

    def test_resolve_local_without_create(self, tmp_path: Path) -> None:
        """create_root=false refuses a missing root."""
        with pytest.raises(NotFoundError):
            create_file_manager(f"file://{tmp_path / 'missing'}?create_root=false")

    def test_resolve_local_creates_root(self, tmp_path: Path) -> None:
        """The root is created by default."""
        create_file_manager(f"file://{tmp_path / 'created'}")
        assert (tmp_path / "created").is_dir()

    def test_resolve_github(self) -> None:
        """github.com URLs give a GitHub file manager."""
        manager = create_file_manager(
            "https://github.com/acme/notes?root_dir=/docs",
            client=FakeGithubClient(),
        )
        assert isinstance(manager, GithubFileManager)
        assert (manager.owner, manager.repo) == ("acme", "notes")

    def test_resolve_github_connection_info(self) -> None:
        """Query parameters and options become connection settings."""
        with patch("file_manager_services.github_backend.GithubFileManager") as mock_github:
            create_file_manager(
                "https://github.com/acme/notes?branch=dev&token=from-query",
                token="from-option",
            )

        connection_info = mock_github.call_args[0][0]
        assert connection_info["repo_url"] == "https://github.com/acme/notes"
        assert connection_info["branch"] == "dev"
        assert connection_info["token"] == "from-option"
        assert mock_github.call_args[1] == {"client": None}

    def test_resolve_github_token_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """GITHUB_TOKEN is the last fallback for the token."""
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        with patch("file_manager_services.github_backend.GithubFileManager") as mock_github:
            create_file_manager("https://github.com/acme/notes")

        assert mock_github.call_args[0][0]["token"] == "from-env"

    def test_resolve_other_https_host(self) -> None:
        """Only github.com is served over https."""
        with pytest.raises(ValueError, match="only github.com"):
            create_file_manager("https://gitlab.com/acme/notes")

    def test_resolve_gdrive(self) -> None:
        """gdrive: URIs give a Drive file manager rooted at the folder path."""
        with patch("file_manager_services.gdrive_backend.GoogleDriveFileManager") as mock_drive:
            create_file_manager("gdrive://Apps/notes?root_id=0AAbc", access_token="ya29.token")

        connection_info = mock_drive.call_args[0][0]
        assert connection_info == {
            "root_dir": "Apps/notes",
            "root_id": "0AAbc",
            "access_token": "ya29.token",
        }

    def test_resolve_gdrive_token_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """GOOGLE_DRIVE_ACCESS_TOKEN is the last fallback for the token."""
        monkeypatch.setenv("GOOGLE_DRIVE_ACCESS_TOKEN", "ya29.env")
        manager = create_file_manager("gdrive:")
        assert isinstance(manager, GoogleDriveFileManager)

    @pytest.mark.asyncio
    async def test_resolve_gdrive_with_client(self) -> None:
        """An injected client is handed to the Drive file manager."""
        client = FakeDriveClient()
        manager = create_file_manager("gdrive://Apps", client=client)
        await manager.update_text_file("/a.md", "a")
        assert client.find("Apps", "a.md") is not None

    def test_unsupported_scheme(self) -> None:
        """Unknown schemes are rejected with the supported list."""
        with pytest.raises(ValueError, match="Unsupported URI scheme: 's3'"):
            create_file_manager("s3://bucket/prefix")


class TestRegister:
    """Test custom scheme registration."""

    def test_register_custom_factory(self) -> None:
        """A registered scheme resolves through the custom factory."""
        calls: list[tuple[str, dict[str, Any]]] = []

        def custom_factory(path: str, params: dict[str, Any]) -> FileManager:
            calls.append((path, params))
            return InMemoryFileManager()

        factory = FileManagerFactory()
        factory.register("custom", custom_factory)
        manager = factory.resolve("custom://bucket/prefix?region=eu", flag=True)

        assert isinstance(manager, InMemoryFileManager)
        assert calls == [("bucket/prefix", {"region": "eu", "flag": True})]

    def test_register_rejects_non_callable(self) -> None:
        """Only callables can be registered."""
        with pytest.raises(TypeError, match="must be callable"):
            FileManagerFactory().register("bad", "not callable")  # type: ignore[arg-type]

    def test_register_on_default_factory(self) -> None:
        """The module-level helper registers on the default factory."""
        register_file_manager_factory("scratch", lambda path, params: InMemoryFileManager())
        assert isinstance(create_file_manager("scratch://anything"), InMemoryFileManager)
