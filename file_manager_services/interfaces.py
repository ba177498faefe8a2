"""The contract every file manager implementation fulfils.

A file manager creates, reads, updates and deletes files on a storage backend,
lists directories and creates or removes them. Every instance works below a
root directory it can never escape: all resource paths start from that root,
whatever leading slashes the caller supplies.

All operations are coroutines. Implementations push blocking I/O to a worker
thread with ``asyncio.to_thread()`` so the event loop stays responsive.

Example:

    >>> import asyncio
    >>> from file_manager_services import InMemoryFileManager
    >>>
    >>> async def main():
    ...     manager = InMemoryFileManager()
    ...     await manager.update_text_file("/notes/todo.md", "- write tests")
    ...     entries = await manager.list_directory_content("/", recursive=True)
    ...     return [entry.path for entry in entries]
    >>>
    >>> asyncio.run(main())
    ['/notes/', '/notes/todo.md']

"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import PurePath
from typing import TYPE_CHECKING, BinaryIO, Union

from .errors import PathError
from .path_utils import detect_path_traversal
from .resource_info import ResourceInfo
from .utils import ChecksumAlgorithm, compute_checksum_from_bytes

if TYPE_CHECKING:
    from .resource_info import ResourceType

PathLike = Union[str, PurePath]


class FileManager(ABC):
    """Standardised asynchronous interface for file storage backends."""

    def get_info(self, path: PathLike) -> ResourceInfo:
        """Return the canonical description of ``path`` without any I/O.

        Args:
            path: Path of the file or directory relative to the root.

        """
        return ResourceInfo(_raw_path(path))

    @abstractmethod
    async def get_file_content(
        self,
        path: PathLike,
        *,
        binary: bool | None = None,
    ) -> bytes | str:
        """Retrieve the content of a file.

        Args:
            path: Path of the file relative to the root.
            binary: True returns bytes, False decodes UTF-8 text, None decodes
                files with a known text extension and returns bytes otherwise.

        Raises:
            NotFoundError: If no file exists at the path.

        """

    @abstractmethod
    async def update_text_file(self, path: PathLike, content: str) -> None:
        """Create or overwrite a text file.

        Raises:
            UpdateError: If the backend rejects the write.

        """

    @abstractmethod
    async def update_binary_file(
        self,
        path: PathLike,
        content: bytes | bytearray | BinaryIO,
    ) -> None:
        """Create or overwrite a binary file.

        Raises:
            UpdateError: If the backend rejects the write.

        """

    @abstractmethod
    async def delete_file(self, path: PathLike) -> None:
        """Delete a file.

        Raises:
            UpdateError: If the backend rejects the deletion.
            NotFoundError: If the file is missing and the backend cannot treat
                the deletion as a no-op.

        """

    @abstractmethod
    async def list_directory_content(
        self,
        path: PathLike = "/",
        *,
        recursive: bool = False,
    ) -> list[ResourceInfo]:
        """List the content of a directory.

        Args:
            path: Path of the directory to scan.
            recursive: Also scan every child directory. Entries of a directory
                come first, followed by the subtree of each child directory.

        Raises:
            NotFoundError: If the directory does not exist.

        """

    @abstractmethod
    async def create_directory(self, path: PathLike) -> None:
        """Create a directory, including its missing ancestors.

        Raises:
            UpdateError: If the backend rejects the creation.

        """

    @abstractmethod
    async def delete_directory(self, path: PathLike) -> None:
        """Delete a directory and everything below it.

        Raises:
            UpdateError: If the backend rejects the deletion.

        """

    async def checksum(
        self,
        path: PathLike,
        *,
        algorithm: ChecksumAlgorithm = "sha256",
    ) -> str:
        """Compute the checksum of a file's content.

        Args:
            path: Path of the file relative to the root.
            algorithm: One of md5, sha1, sha256, sha512 or blake3.

        Returns:
            Hexadecimal digest of the file content.

        """
        payload = await self.get_file_content(path, binary=True)
        return compute_checksum_from_bytes(payload, algorithm=algorithm)

    @staticmethod
    def _resource(path: PathLike, kind: ResourceType) -> ResourceInfo:
        """Return the canonical resource for a caller supplied path.

        Raises:
            EmptyPathError: If the path is empty.
            PathError: If a segment climbs above the root.

        """
        resource = ResourceInfo(_raw_path(path), type=kind)
        if detect_path_traversal(resource.segments):
            raise PathError.path_outside_root(resource.path)
        return resource


def _raw_path(path: PathLike | None) -> str | None:
    """Return the POSIX string form of a caller supplied path."""
    if isinstance(path, PurePath):
        return path.as_posix()
    return path
