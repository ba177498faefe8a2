"""File manager services for multi-backend file storage.

This package exposes one asynchronous file storage contract implemented by
several backends: an in-memory store, the local filesystem, a GitHub
repository and a Google Drive folder tree. Every backend is addressed with the
same canonical paths, described by ``ResourceInfo``.

Core Components:
    - FileManager: Abstract contract all adapters implement
    - ResourceInfo: Canonical path descriptor (name, extension, parent, kind)
    - InMemoryFileManager: Flat dictionary store, handy for tests
    - LocalFileManager: Direct filesystem storage below a root directory
    - GithubFileManager: Files committed through the GitHub contents API
    - GoogleDriveFileManager: Files stored in a Google Drive folder tree

Quick Start:

    >>> import asyncio
    >>> from file_manager_services import create_file_manager
    >>>
    >>> async def main():
    ...     manager = create_file_manager("file:///data/files")
    ...     await manager.update_text_file("/notes/todo.md", "- write docs")
    ...     return await manager.get_file_content("/notes/todo.md")
    >>>
    >>> asyncio.run(main())
    '- write docs'

Exception Handling:

    >>> from file_manager_services import NotFoundError
    >>> try:
    ...     asyncio.run(manager.get_file_content("/missing.txt"))
    ... except NotFoundError:
    ...     print("File not found")

Supported Operations:
    - get_file_content() - Read a file as text or bytes
    - update_text_file() - Create or overwrite a text file
    - update_binary_file() - Create or overwrite a binary file
    - delete_file() - Remove a file
    - list_directory_content() - List a directory, optionally recursively
    - create_directory() - Create a directory and its ancestors
    - delete_directory() - Remove a directory tree
    - get_info() - Describe a path without any I/O
    - checksum() - Compute a file checksum

"""

from .errors import (
    EmptyPathError,
    FileManagerError,
    NotFoundError,
    PathError,
    UpdateError,
)
from .factory import (
    FileManagerFactory,
    create_file_manager,
    register_file_manager_factory,
)
from .gdrive_backend import GoogleDriveFileManager
from .gdrive_client import GoogleDriveAPIError, GoogleDriveClient
from .github_backend import GithubFileManager
from .github_client import GithubAPIError, GithubContentsClient
from .interfaces import FileManager, PathLike
from .local import LocalFileManager
from .memory import InMemoryFileManager
from .path_utils import normalize_path, split_path
from .resource_info import (
    TEXT_EXTENSIONS,
    FolderContent,
    ResourceInfo,
    ResourceType,
    files_and_folders,
)
from .utils import ChecksumAlgorithm

__all__ = [
    "TEXT_EXTENSIONS",
    "ChecksumAlgorithm",
    "EmptyPathError",
    "FileManager",
    "FileManagerError",
    "FileManagerFactory",
    "FolderContent",
    "GithubAPIError",
    "GithubContentsClient",
    "GithubFileManager",
    "GoogleDriveAPIError",
    "GoogleDriveClient",
    "GoogleDriveFileManager",
    "InMemoryFileManager",
    "LocalFileManager",
    "NotFoundError",
    "PathError",
    "PathLike",
    "ResourceInfo",
    "ResourceType",
    "UpdateError",
    "create_file_manager",
    "files_and_folders",
    "normalize_path",
    "register_file_manager_factory",
    "split_path",
]
