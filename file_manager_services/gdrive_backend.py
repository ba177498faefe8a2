"""Google Drive implementation of FileManager.

Drive addresses files and folders by opaque IDs linked through parent IDs, so
every canonical path has to be resolved to an ID before any call.

Address Resolution:
    Folder paths are walked segment by segment from the root ID, querying the
    children of the current folder for the next segment's name. Missing
    folders are created only when the caller asks for it (``create_directory``
    and writes); otherwise a missing segment raises ``NotFoundError``. File
    paths resolve their parent folder (never creating it) and then query the
    leaf name.

ID Cache:
    Every resolved ID is memoised in a per-instance dict keyed by canonical
    path (including the configured root directory). The cache is advisory: an
    ID that went stale out of band produces a 404 from Drive, which evicts the
    cached entries below that path and surfaces as ``NotFoundError``.

Example:

    >>> import asyncio
    >>> from file_manager_services import GoogleDriveFileManager
    >>>
    >>> async def main():
    ...     manager = GoogleDriveFileManager(
    ...         {"access_token": "ya29....", "root_dir": "/Apps/notes"},
    ...     )
    ...     await manager.create_directory("/drafts/")
    ...     await manager.update_text_file("/drafts/idea.md", "# Idea")
    ...     return await manager.list_directory_content("/drafts/")
    >>>
    >>> asyncio.run(main())

"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, BinaryIO

from .errors import FileManagerError, NotFoundError, UpdateError
from .gdrive_client import (
    DEFAULT_TIMEOUT,
    FOLDER_MIME_TYPE,
    GoogleDriveAPIError,
    GoogleDriveClient,
    escape_query_value,
)
from .interfaces import FileManager, PathLike
from .path_utils import path_segments
from .resource_info import ResourceInfo
from .utils import coerce_to_bytes, decode_content, walk_directory

if TYPE_CHECKING:
    from .resource_info import ResourceType

logger = logging.getLogger(__name__)

DEFAULT_ROOT_ID = "root"


class GoogleDriveFileManager(FileManager):
    """File manager storing files in a Google Drive folder tree."""

    def __init__(
        self,
        connection_info: Mapping[str, Any] | None = None,
        *,
        client: Any | None = None,
    ) -> None:
        """Initialise the file manager from Drive connection parameters.

        Args:
            connection_info: Mapping with ``access_token`` (required when no
                client is given) and the optional ``root_dir``, ``root_id``
                and ``timeout`` keys.
            client: Object exposing the ``GoogleDriveClient`` methods.

        Raises:
            TypeError: If connection_info is not a mapping.
            ValueError: If neither a client nor an access token is provided.

        """
        if connection_info is None:
            connection_info = {}
        if not isinstance(connection_info, Mapping):
            message = "connection_info must be a mapping"
            raise TypeError(message)

        self._root_segments = path_segments(str(connection_info.get("root_dir") or ""))
        self._root_id = str(connection_info.get("root_id") or DEFAULT_ROOT_ID)
        self._ids: dict[str, str] = {"/": self._root_id}

        if client is not None:
            self._client = client
        else:
            access_token = connection_info.get("access_token")
            if not access_token:
                message = "Missing 'access_token' in connection_info"
                raise ValueError(message)
            self._client = GoogleDriveClient(
                str(access_token),
                timeout=float(connection_info.get("timeout", DEFAULT_TIMEOUT)),
            )

    async def get_file_content(
        self,
        path: PathLike,
        *,
        binary: bool | None = None,
    ) -> bytes | str:
        """Download a file's content."""
        resource = self._resource(path, "file")
        try:
            file_id = await self._get_file_id(resource)
            payload = await asyncio.to_thread(self._client.download, file_id)
        except GoogleDriveAPIError as exc:
            if exc.is_not_found:
                self._evict_stale(resource)
                raise NotFoundError(resource.path) from exc
            raise FileManagerError.read_failed(resource.path, exc.message) from exc
        return decode_content(payload, resource, binary=binary)

    async def update_text_file(self, path: PathLike, content: str) -> None:
        """Create or overwrite a text file."""
        await self._upsert(self._resource(path, "file"), content.encode("utf-8"))

    async def update_binary_file(
        self,
        path: PathLike,
        content: bytes | bytearray | BinaryIO,
    ) -> None:
        """Create or overwrite a binary file."""
        await self._upsert(self._resource(path, "file"), coerce_to_bytes(content))

    async def delete_file(self, path: PathLike) -> None:
        """Delete a file; a missing file raises ``NotFoundError``."""
        resource = self._resource(path, "file")
        try:
            file_id = await self._get_file_id(resource)
            await asyncio.to_thread(self._client.delete, file_id)
        except GoogleDriveAPIError as exc:
            if exc.is_not_found:
                self._evict_stale(resource)
                raise NotFoundError(resource.path) from exc
            raise UpdateError(resource.path, exc.message) from exc
        self._forget(resource)

    async def list_directory_content(
        self,
        path: PathLike = "/",
        *,
        recursive: bool = False,
    ) -> list[ResourceInfo]:
        """List a folder, walking child folders depth-first when recursive."""
        directory = self._resource(path, "dir")
        try:
            if recursive:
                return await walk_directory(self._children, directory)
            return await self._children(directory)
        except GoogleDriveAPIError as exc:
            if exc.is_not_found:
                self._evict_stale(directory)
                raise NotFoundError(directory.path) from exc
            raise FileManagerError.read_failed(directory.path, exc.message) from exc

    async def create_directory(self, path: PathLike) -> None:
        """Create the folder chain leading to ``path``."""
        directory = self._resource(path, "dir")
        try:
            await self._get_folder_id(directory, create_if_not_exist=True)
        except GoogleDriveAPIError as exc:
            if exc.is_not_found:
                self._evict_stale(directory)
                raise NotFoundError(directory.path) from exc
            raise UpdateError(directory.path, exc.message) from exc

    async def delete_directory(self, path: PathLike) -> None:
        """Delete a folder with its descendants; the root is only emptied."""
        directory = self._resource(path, "dir")
        try:
            folder_id = await self._get_folder_id(directory)
            if directory.is_root:
                children = await asyncio.to_thread(
                    self._client.list_files,
                    f"'{folder_id}' in parents and trashed=false",
                    fields="files(id)",
                )
                for child in children:
                    await asyncio.to_thread(self._client.delete, child["id"])
            else:
                await asyncio.to_thread(self._client.delete, folder_id)
        except GoogleDriveAPIError as exc:
            if exc.is_not_found:
                self._evict_stale(directory)
                raise NotFoundError(directory.path) from exc
            raise UpdateError(directory.path, exc.message) from exc
        self._forget(directory)

    async def _upsert(self, resource: ResourceInfo, payload: bytes) -> None:
        """Update the file when it resolves, create it (and its parents) otherwise."""
        mime_type = _guess_mime_type(resource)
        try:
            try:
                file_id = await self._get_file_id(resource)
            except NotFoundError:
                parent_id = await self._get_folder_id(
                    resource.parent,
                    create_if_not_exist=True,
                )
                logger.debug("Create %s in folder %s", resource.path, parent_id)
                self._ids[self._key(resource)] = await asyncio.to_thread(
                    self._client.create_file,
                    resource.fullname,
                    parent_id,
                    payload,
                    mime_type=mime_type,
                )
                return
            logger.debug("Update %s (id=%s)", resource.path, file_id)
            await asyncio.to_thread(
                self._client.update_file_content,
                file_id,
                payload,
                mime_type=mime_type,
            )
        except GoogleDriveAPIError as exc:
            if exc.is_not_found:
                self._evict_stale(resource)
                raise NotFoundError(resource.path) from exc
            raise UpdateError(resource.path, exc.message) from exc

    async def _children(self, directory: ResourceInfo) -> list[ResourceInfo]:
        """List one folder level and memoise the IDs of its children."""
        folder_id = await self._get_folder_id(directory)
        files = await asyncio.to_thread(
            self._client.list_files,
            f"'{folder_id}' in parents and trashed=false",
            fields="files(id, name, mimeType)",
        )
        entries = []
        for item in files:
            kind: ResourceType = "dir" if item.get("mimeType") == FOLDER_MIME_TYPE else "file"
            child = directory.child(item["name"], type=kind)
            self._ids[self._key(child)] = item["id"]
            entries.append(child)
        logger.debug("Listed %d entries under %s", len(entries), directory.path)
        return entries

    async def _get_folder_id(
        self,
        directory: ResourceInfo,
        *,
        create_if_not_exist: bool = False,
    ) -> str:
        """Resolve a folder path to its ID, segment by segment.

        Args:
            directory: Folder to resolve.
            create_if_not_exist: Create missing folders instead of failing.

        Raises:
            NotFoundError: If a segment is missing and creation was not
                requested.

        """
        segments = self._root_segments + directory.segments
        cached = self._ids.get(_folder_key(segments))
        if cached is not None:
            return cached

        folder_id = self._root_id
        for depth, name in enumerate(segments, start=1):
            key = _folder_key(segments[:depth])
            cached = self._ids.get(key)
            if cached is not None:
                folder_id = cached
                continue

            matches = await asyncio.to_thread(
                self._client.list_files,
                f"'{folder_id}' in parents and name='{escape_query_value(name)}' "
                f"and mimeType='{FOLDER_MIME_TYPE}' and trashed=false",
                fields="files(id, name)",
            )
            if matches:
                folder_id = matches[0]["id"]
            elif create_if_not_exist:
                folder_id = await asyncio.to_thread(self._client.create_folder, name, folder_id)
                logger.debug("Created folder %s (id=%s)", key, folder_id)
            else:
                message = f"Folder '{directory.path}' does not exist"
                raise NotFoundError(directory.path, message)
            self._ids[key] = folder_id
        return folder_id

    async def _get_file_id(self, resource: ResourceInfo) -> str:
        """Resolve a file path to its ID without creating any folder.

        Raises:
            NotFoundError: If the parent folder or the file is missing.

        """
        key = self._key(resource)
        cached = self._ids.get(key)
        if cached is not None:
            logger.debug("ID cache hit for %s", key)
            return cached

        parent_id = await self._get_folder_id(resource.parent)
        matches = await asyncio.to_thread(
            self._client.list_files,
            f"'{parent_id}' in parents and name='{escape_query_value(resource.fullname)}' "
            f"and mimeType!='{FOLDER_MIME_TYPE}' and trashed=false",
            fields="files(id)",
        )
        if not matches:
            message = f"File '{resource.path}' does not exist"
            raise NotFoundError(resource.path, message)
        self._ids[key] = matches[0]["id"]
        return self._ids[key]

    def _key(self, resource: ResourceInfo) -> str:
        """Cache key of a resource: its canonical path below the Drive root."""
        segments = self._root_segments + resource.segments
        if resource.is_directory:
            return _folder_key(segments)
        return "/" + "/".join(segments)

    def _forget(self, resource: ResourceInfo) -> None:
        """Evict the cached IDs of a resource and everything below it."""
        key = self._key(resource)
        if resource.is_file:
            self._ids.pop(key, None)
            return
        # The root folder survives its own deletion, only its children go.
        kept = {"/", key} if resource.is_root else {"/"}
        for cached in [cached for cached in self._ids if cached.startswith(key)]:
            if cached not in kept:
                logger.debug("Evict cached ID of %s", cached)
                del self._ids[cached]

    def _evict_stale(self, resource: ResourceInfo) -> None:
        """Forget a resource after a 404, along with its cached ancestors.

        Any folder on the path may be the stale one, so the whole subtree of
        the top-level ancestor is dropped and resolved again on next use.
        """
        segments = resource.segments
        if len(segments) > 1:
            resource = ResourceInfo(f"/{segments[0]}/", type="dir")
        self._forget(resource)


def _folder_key(segments: list[str]) -> str:
    return "/" + "".join(f"{segment}/" for segment in segments)


def _guess_mime_type(resource: ResourceInfo) -> str:
    mime_type, _ = mimetypes.guess_type(resource.fullname)
    if mime_type:
        return mime_type
    return "text/plain" if resource.is_text else "application/octet-stream"
