"""Local filesystem implementation of FileManager.

All files are stored below a root directory with path traversal protection.
Blocking filesystem calls run in a worker thread via ``asyncio.to_thread()``.

Path Validation:
    Caller paths are always relative to the root: leading slashes are ignored
    and ``..`` segments are rejected. On Windows backslashes in caller strings
    are read as separators. The joined path is then resolved (following
    symlinks) and must still lie within the root, otherwise a ``PathError`` is
    raised.

Listing:
    Entries are read with ``os.walk`` (top-down, names sorted) and each native
    entry becomes a ``ResourceInfo`` with an explicit type, the root prefix
    stripped from its absolute path.

Example:

    >>> import asyncio
    >>> from file_manager_services import LocalFileManager
    >>>
    >>> async def main():
    ...     manager = LocalFileManager(root="/data/files")
    ...     await manager.update_text_file("/document.txt", "Hello, world!")
    ...     return await manager.get_file_content("/document.txt")
    >>>
    >>> asyncio.run(main())
    'Hello, world!'

"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from .errors import FileManagerError, NotFoundError, PathError, UpdateError
from .interfaces import FileManager, PathLike
from .path_utils import normalize_windows_path
from .resource_info import ResourceInfo
from .utils import coerce_to_bytes, decode_content

if TYPE_CHECKING:
    from .resource_info import ResourceType

logger = logging.getLogger(__name__)

_BACKSLASH_IS_SEPARATOR = os.sep == "\\"


class LocalFileManager(FileManager):
    """File manager backed by the local filesystem."""

    def __init__(
        self,
        root: PathLike | None = None,
        *,
        create_root: bool = True,
    ) -> None:
        """Initialise the file manager rooted at the given filesystem path.

        Args:
            root: Root directory (defaults to the current working directory).
            create_root: Create the root directory if it doesn't exist.

        Raises:
            NotFoundError: If the root is missing and ``create_root`` is False.

        """
        base = Path(root or Path.cwd()).expanduser()
        self._root = base.resolve(strict=False)
        if create_root:
            self._root.mkdir(parents=True, exist_ok=True)
        elif not self._root.is_dir():
            raise NotFoundError(str(self._root))
        self._root_dir = self._root.as_posix()

    @property
    def root(self) -> Path:
        """Absolute path used as the file manager root."""
        return self._root

    async def get_file_content(
        self,
        path: PathLike,
        *,
        binary: bool | None = None,
    ) -> bytes | str:
        """Return file contents as bytes or text."""
        resource, target = self._locate(path, "file")
        payload = await asyncio.to_thread(self._read_file, resource, target)
        return decode_content(payload, resource, binary=binary)

    async def update_text_file(self, path: PathLike, content: str) -> None:
        """Create or overwrite a text file."""
        resource, target = self._locate(path, "file")
        await asyncio.to_thread(
            self._write_file,
            resource,
            target,
            content.encode("utf-8"),
        )

    async def update_binary_file(
        self,
        path: PathLike,
        content: bytes | bytearray | BinaryIO,
    ) -> None:
        """Create or overwrite a binary file."""
        resource, target = self._locate(path, "file")
        await asyncio.to_thread(
            self._write_file,
            resource,
            target,
            coerce_to_bytes(content),
        )

    async def delete_file(self, path: PathLike) -> None:
        """Remove a file from disk."""
        resource, target = self._locate(path, "file")
        await asyncio.to_thread(self._delete_file, resource, target)

    async def list_directory_content(
        self,
        path: PathLike = "/",
        *,
        recursive: bool = False,
    ) -> list[ResourceInfo]:
        """List a directory, optionally descending into child directories."""
        resource, target = self._locate(path, "dir")
        entries = await asyncio.to_thread(
            self._list_directory,
            resource,
            target,
            recursive,
        )
        logger.debug("Listed %d entries under %s", len(entries), resource.path)
        return entries

    async def create_directory(self, path: PathLike) -> None:
        """Create a directory and its missing ancestors."""
        resource, target = self._locate(path, "dir")
        await asyncio.to_thread(self._create_directory, resource, target)

    async def delete_directory(self, path: PathLike) -> None:
        """Remove a directory tree; the root itself is emptied, not removed."""
        resource, target = self._locate(path, "dir")
        await asyncio.to_thread(self._delete_directory, resource, target)

    def _read_file(self, resource: ResourceInfo, target: Path) -> bytes:
        if not target.is_file():
            raise NotFoundError(resource.path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(resource.path) from exc
        except OSError as exc:
            raise FileManagerError.read_failed(resource.path, str(exc)) from exc

    def _write_file(self, resource: ResourceInfo, target: Path, payload: bytes) -> None:
        if target.is_dir():
            raise UpdateError(resource.path, "A directory exists with the same name")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as fh:
                fh.write(payload)
        except OSError as exc:
            raise UpdateError(resource.path, str(exc)) from exc

    def _delete_file(self, resource: ResourceInfo, target: Path) -> None:
        if not target.is_file():
            raise NotFoundError(resource.path)
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise NotFoundError(resource.path) from exc
        except OSError as exc:
            raise UpdateError(resource.path, str(exc)) from exc

    def _list_directory(
        self,
        resource: ResourceInfo,
        target: Path,
        recursive: bool,
    ) -> list[ResourceInfo]:
        if not target.is_dir():
            raise NotFoundError(resource.path)

        entries: list[ResourceInfo] = []
        for dirpath, dirnames, filenames in os.walk(target):
            dirnames.sort()
            parent = Path(dirpath)
            directories = set(dirnames)
            for name in sorted(directories.union(filenames)):
                kind: ResourceType = "dir" if name in directories else "file"
                entries.append(self._to_resource(parent / name, kind))
            if not recursive:
                break
        return entries

    def _create_directory(self, resource: ResourceInfo, target: Path) -> None:
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise UpdateError(resource.path, str(exc)) from exc

    def _delete_directory(self, resource: ResourceInfo, target: Path) -> None:
        if not target.is_dir():
            raise NotFoundError(resource.path)
        try:
            if target == self._root:
                for child in target.iterdir():
                    if child.is_dir() and not child.is_symlink():
                        shutil.rmtree(child)
                    else:
                        child.unlink()
            else:
                shutil.rmtree(target)
        except OSError as exc:
            raise UpdateError(resource.path, str(exc)) from exc

    def _to_resource(self, native_path: Path, kind: ResourceType) -> ResourceInfo:
        """Wrap a native entry, stripping the root prefix from its path."""
        return ResourceInfo(
            native_path.as_posix(),
            type=kind,
            root_dir=self._root_dir,
        )

    def _locate(self, path: PathLike, kind: ResourceType) -> tuple[ResourceInfo, Path]:
        """Resolve a caller path to its resource and native location.

        The path is joined below the root and resolved (symlinks followed, so
        ``strict=False`` allows paths that do not exist yet). A result outside
        the root is rejected.

        Raises:
            PathError: If the path escapes the root, including via symlinks.

        """
        if _BACKSLASH_IS_SEPARATOR and isinstance(path, str):
            path = normalize_windows_path(path)
        resource = self._resource(path, kind)
        candidate = self._root.joinpath(*resource.segments).resolve(strict=False)
        try:
            candidate.relative_to(self._root)
        except ValueError as exc:
            raise PathError.path_outside_root(resource.path) from exc
        return resource, candidate
