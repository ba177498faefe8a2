"""File manager factory for URI-based adapter resolution and instantiation.

This module creates ``FileManager`` instances from store URIs. It supports
several URI schemes and allows registration of custom factories.

Supported URI Schemes:
    - memory: - InMemoryFileManager
    - file:///path - LocalFileManager rooted at the path
    - https://github.com/owner/repo - GithubFileManager
    - gdrive://folder/path - GoogleDriveFileManager rooted at the folder

Query parameters become adapter settings. Keyword options given to
``create_file_manager`` override them, and credentials fall back to the
``GITHUB_TOKEN`` and ``GOOGLE_DRIVE_ACCESS_TOKEN`` environment variables.

Example:
    >>> from file_manager_services.factory import create_file_manager
    >>> manager = create_file_manager("memory:")
    >>> manager = create_file_manager("file:///data/files?create_root=false")
    >>> manager = create_file_manager(
    ...     "https://github.com/acme/notes?branch=main",
    ...     token="ghp_xxx",
    ... )
    >>> manager = create_file_manager("gdrive://Apps/notes?access_token=ya29.xxx")

"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, Callable
from urllib.parse import parse_qs, urlparse

if TYPE_CHECKING:
    from typing import TypeAlias

    from .interfaces import FileManager

    FileManagerFactoryFunc: TypeAlias = Callable[[str, dict[str, Any]], FileManager]

GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
GOOGLE_DRIVE_TOKEN_ENV = "GOOGLE_DRIVE_ACCESS_TOKEN"

# Schemes whose URI may omit the path entirely.
_PATHLESS_SCHEMES = frozenset({"memory", "gdrive"})


class FileManagerFactory:
    """Factory for creating file managers from store URIs."""

    def __init__(self) -> None:
        """Initialize the factory with built-in URI scheme handlers."""
        self._factories: dict[str, FileManagerFactoryFunc] = {
            "memory": self._create_memory_manager,
            "file": self._create_local_manager,
            "https": self._create_github_manager,
            "gdrive": self._create_gdrive_manager,
        }

    def parse_uri(self, uri: str) -> tuple[str, str, dict[str, str]]:
        """Parse a URI into scheme, path, and query parameters.

        Args:
            uri: URI string to parse

        Returns:
            Tuple of (scheme, path, params) where params is a dict of query parameters

        Raises:
            ValueError: If URI format is invalid

        """
        parsed = urlparse(uri)

        if not parsed.scheme:
            msg = f"Invalid URI: missing scheme in '{uri}'"
            raise ValueError(msg)

        # file://relative keeps its first segment in netloc, file:///abs does not
        path = f"{parsed.netloc}{parsed.path}"

        if not path and parsed.scheme not in _PATHLESS_SCHEMES:
            msg = f"Invalid URI: missing path in '{uri}'"
            raise ValueError(msg)

        params: dict[str, str] = {}
        if parsed.query:
            params = {key: values[0] for key, values in parse_qs(parsed.query).items()}

        return parsed.scheme, path, params

    def resolve(self, uri: str, **options: Any) -> FileManager:
        """Create a file manager from a URI string.

        Args:
            uri: URI string specifying the store
            **options: Adapter settings overriding the query parameters, such
                as ``token`` or an injected ``client``

        Returns:
            FileManager instance

        Raises:
            ValueError: If the URI is malformed or its scheme is unsupported

        """
        scheme, path, params = self.parse_uri(uri)

        if scheme not in self._factories:
            supported = ", ".join(sorted(self._factories.keys()))
            msg = (
                f"Unsupported URI scheme: '{scheme}'. "
                f"Supported schemes: {supported}"
            )
            raise ValueError(msg)

        factory_func = self._factories[scheme]
        return factory_func(path, {**params, **options})

    def register(
        self,
        scheme: str,
        factory_func: FileManagerFactoryFunc,
    ) -> None:
        """Register a custom file manager factory for a URI scheme.

        Args:
            scheme: URI scheme to register (e.g., "s3", "dropbox")
            factory_func: Callable that takes (path, params) and returns a FileManager

        """
        if not callable(factory_func):
            msg = "factory_func must be callable"
            raise TypeError(msg)
        self._factories[scheme] = factory_func

    def _create_memory_manager(
        self,
        path: str,
        params: dict[str, Any],
    ) -> FileManager:
        """Create an empty InMemoryFileManager; path and params are ignored."""
        from .memory import InMemoryFileManager

        return InMemoryFileManager()

    def _create_local_manager(
        self,
        path: str,
        params: dict[str, Any],
    ) -> FileManager:
        """Create a LocalFileManager from URI components.

        Args:
            path: Root directory
            params: Query parameters (create_root)

        Returns:
            LocalFileManager instance

        """
        from .local import LocalFileManager

        create_root = _as_bool(params.get("create_root", True))
        return LocalFileManager(root=path, create_root=create_root)

    def _create_github_manager(
        self,
        path: str,
        params: dict[str, Any],
    ) -> FileManager:
        """Create a GithubFileManager from an https URI.

        URI format: https://github.com/owner/repo?token=ghp_xxx&root_dir=/docs&branch=main

        Args:
            path: Host and repository path (e.g., github.com/owner/repo)
            params: Adapter settings (token, root_dir, branch, api_url,
                timeout, committer_name, committer_email, client)

        Returns:
            GithubFileManager instance

        Raises:
            ValueError: If the URL does not point to github.com

        """
        from .github_backend import GithubFileManager

        if not path.startswith("github.com/"):
            msg = f"Unsupported https store: 'https://{path}' (only github.com is supported)"
            raise ValueError(msg)

        connection_info = {key: value for key, value in params.items() if key != "client"}
        connection_info["repo_url"] = f"https://{path}"
        client = params.get("client")
        if client is None and not connection_info.get("token"):
            token = os.environ.get(GITHUB_TOKEN_ENV)
            if token:
                connection_info["token"] = token

        return GithubFileManager(connection_info, client=client)

    def _create_gdrive_manager(
        self,
        path: str,
        params: dict[str, Any],
    ) -> FileManager:
        """Create a GoogleDriveFileManager from a gdrive URI.

        URI format: gdrive://Apps/notes?access_token=ya29.xxx&root_id=0AAbc

        Args:
            path: Folder path used as the root directory (may be empty)
            params: Adapter settings (access_token, root_id, timeout, client)

        Returns:
            GoogleDriveFileManager instance

        """
        from .gdrive_backend import GoogleDriveFileManager

        connection_info = {key: value for key, value in params.items() if key != "client"}
        connection_info.setdefault("root_dir", path)
        client = params.get("client")
        if client is None and not connection_info.get("access_token"):
            access_token = os.environ.get(GOOGLE_DRIVE_TOKEN_ENV)
            if access_token:
                connection_info["access_token"] = access_token

        return GoogleDriveFileManager(connection_info, client=client)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


# Global default factory instance
_default_factory = FileManagerFactory()


def create_file_manager(uri: str, **options: Any) -> FileManager:
    """Create a file manager from a URI using the default factory.

    Args:
        uri: URI string specifying the store
        **options: Adapter settings overriding the URI's query parameters

    Returns:
        FileManager instance

    Raises:
        ValueError: If the URI is malformed or its scheme is unsupported

    Example:
        >>> manager = create_file_manager("memory:")
        >>> manager = create_file_manager("file:///data/files")
        >>> manager = create_file_manager("https://github.com/acme/notes", token="ghp_xxx")

    """
    return _default_factory.resolve(uri, **options)


def register_file_manager_factory(
    scheme: str,
    factory_func: FileManagerFactoryFunc,
) -> None:
    """Register a custom file manager factory for a URI scheme.

    Args:
        scheme: URI scheme to register (e.g., "s3", "dropbox")
        factory_func: Callable that takes (path, params) and returns a FileManager

    Example:
        >>> def my_s3_factory(path: str, params: dict) -> FileManager:
        ...     return S3FileManager(bucket=path, **params)
        >>> register_file_manager_factory("s3", my_s3_factory)

    """
    _default_factory.register(scheme, factory_func)
