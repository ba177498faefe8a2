"""In-memory file manager backed by a flat mapping.

Every resource is stored under its canonical path. Directories are marker keys
(ending with a slash) holding empty content; they are created for every
missing ancestor whenever a file or directory is written, so listings behave
like a real hierarchy. Useful for tests and debugging.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO

from .errors import NotFoundError, UpdateError
from .interfaces import FileManager, PathLike
from .utils import coerce_to_bytes, decode_content, walk_directory

if TYPE_CHECKING:
    from .resource_info import ResourceInfo


class InMemoryFileManager(FileManager):
    """File manager storing every resource in a dictionary."""

    def __init__(self) -> None:
        """Initialise an empty store."""
        self._store: dict[str, bytes] = {}

    async def get_file_content(
        self,
        path: PathLike,
        *,
        binary: bool | None = None,
    ) -> bytes | str:
        """Return the stored content of a file."""
        resource = self._resource(path, "file")
        payload = self._store.get(resource.path) if resource.is_file else None
        if payload is None:
            raise NotFoundError(resource.path)
        return decode_content(payload, resource, binary=binary)

    async def update_text_file(self, path: PathLike, content: str) -> None:
        """Create or overwrite a text file."""
        self._write(self._resource(path, "file"), content.encode("utf-8"))

    async def update_binary_file(
        self,
        path: PathLike,
        content: bytes | bytearray | BinaryIO,
    ) -> None:
        """Create or overwrite a binary file."""
        self._write(self._resource(path, "file"), coerce_to_bytes(content))

    async def delete_file(self, path: PathLike) -> None:
        """Remove a file from the store."""
        resource = self._resource(path, "file")
        if not resource.is_file or resource.path not in self._store:
            raise NotFoundError(resource.path)
        del self._store[resource.path]

    async def list_directory_content(
        self,
        path: PathLike = "/",
        *,
        recursive: bool = False,
    ) -> list[ResourceInfo]:
        """List the keys located below a directory."""
        directory = self._resource(path, "dir")
        if recursive:
            return await walk_directory(self._children, directory)
        return await self._children(directory)

    async def create_directory(self, path: PathLike) -> None:
        """Add marker keys for the directory and its missing ancestors."""
        directory = self._resource(path, "dir")
        if directory.is_root:
            return
        self._ensure_ancestors(directory)
        if directory.path.rstrip("/") in self._store:
            raise UpdateError(directory.path, "A file exists with the same name")
        self._store.setdefault(directory.path, b"")

    async def delete_directory(self, path: PathLike) -> None:
        """Remove every key whose path starts with the directory path."""
        directory = self._resource(path, "dir")
        if directory.is_root:
            self._store.clear()
            return

        doomed = [key for key in self._store if key.startswith(directory.path)]
        if not doomed:
            raise NotFoundError(directory.path)
        for key in doomed:
            del self._store[key]

    async def _children(self, directory: ResourceInfo) -> list[ResourceInfo]:
        """Return the immediate children of a directory, in insertion order."""
        prefix = directory.path
        if not directory.is_root and prefix not in self._store:
            raise NotFoundError(prefix)

        children = []
        for key in self._store:
            if not key.startswith(prefix):
                continue
            relative = key[len(prefix) :]
            if relative and "/" not in relative.rstrip("/"):
                kind = "dir" if key.endswith("/") else "file"
                children.append(self._resource(key, kind))
        return children

    def _write(self, resource: ResourceInfo, payload: bytes) -> None:
        """Store a file payload after creating its ancestors."""
        if resource.is_directory:
            raise UpdateError(resource.path, "Cannot write content to a directory")
        if f"{resource.path}/" in self._store:
            raise UpdateError(resource.path, "A directory exists with the same name")
        self._ensure_ancestors(resource)
        self._store[resource.path] = payload

    def _ensure_ancestors(self, resource: ResourceInfo) -> None:
        """Create marker keys for every missing ancestor directory."""
        missing = []
        parent = resource.parent
        while parent is not None and not parent.is_root:
            if parent.path.rstrip("/") in self._store:
                raise UpdateError(resource.path, "Parent path is not a directory")
            if parent.path in self._store:
                break
            missing.append(parent.path)
            parent = parent.parent
        for marker in reversed(missing):
            self._store[marker] = b""
