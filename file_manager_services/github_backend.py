"""GitHub repository implementation of FileManager.

Files live in a repository and are addressed through the REST contents API
by ``(owner, repo, repo_path, sha)``.

Address Resolution:
    Every read, update or delete first fetches the current file metadata to
    learn its blob ``sha``. A 404 at that step is not an error: it describes a
    file that does not exist yet (``sha=None``), so an update of a missing file
    transparently becomes a create. Mutations always send the known sha; when
    it is stale GitHub answers with a conflict, surfaced as ``UpdateError``.

Directories:
    Git has no empty directories. ``create_directory`` writes a ``.gitkeep``
    marker inside the directory; the marker is hidden from listings and removed
    with the directory. A deletion that empties its parent directory commits
    a marker there, so the parent stays listable. The contents API only lists
    one level, so recursive listings fan out over sibling subdirectories
    concurrently.

Example:

    >>> import asyncio
    >>> from file_manager_services import GithubFileManager
    >>>
    >>> async def main():
    ...     manager = GithubFileManager(
    ...         {
    ...             "repo_url": "https://github.com/acme/notes",
    ...             "token": "ghp_...",
    ...             "root_dir": "/vault",
    ...         },
    ...     )
    ...     await manager.update_text_file("/todo.md", "- ship it")
    ...     return await manager.list_directory_content("/", recursive=True)
    >>>
    >>> asyncio.run(main())

See Also:
    - GithubContentsClient: REST client used when no client is injected

"""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, BinaryIO

from .errors import FileManagerError, NotFoundError, PathError, UpdateError
from .github_client import DEFAULT_API_URL, DEFAULT_TIMEOUT, GithubAPIError, GithubContentsClient
from .interfaces import FileManager, PathLike
from .path_utils import path_segments
from .resource_info import ResourceInfo
from .utils import coerce_to_bytes, decode_content

if TYPE_CHECKING:
    from .resource_info import ResourceType

logger = logging.getLogger(__name__)

MARKER_FILE = ".gitkeep"

_REPO_URL_PATTERN = re.compile(r"github\.com[/:]([^/]+)/([^/?#]+)")


@dataclass(frozen=True)
class _BlobAddress:
    """Native address of a file: its repository path and current blob sha."""

    repo_path: str
    sha: str | None = None
    content: str | None = None
    encoding: str | None = None
    size: int = 0

    @property
    def exists(self) -> bool:
        return self.sha is not None


def parse_repo_url(url: str) -> tuple[str, str]:
    """Extract the owner and repository names from a GitHub URL.

    Example:

        >>> parse_repo_url("https://github.com/acme/notes.git")
        ('acme', 'notes')

    Raises:
        ValueError: If the URL does not point to a GitHub repository.

    """
    match = _REPO_URL_PATTERN.search(url)
    if not match:
        message = f"Invalid GitHub repository URL: '{url}'"
        raise ValueError(message)
    owner, repo = match.groups()
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo


class GithubFileManager(FileManager):
    """File manager storing files in a GitHub repository."""

    def __init__(
        self,
        connection_info: Mapping[str, Any],
        *,
        client: Any | None = None,
    ) -> None:
        """Initialise the file manager from GitHub connection parameters.

        Args:
            connection_info: Mapping with ``repo_url`` (required) and the
                optional ``token``, ``root_dir``, ``branch``, ``api_url``,
                ``timeout``, ``committer_name`` and ``committer_email`` keys.
            client: Object exposing the ``GithubContentsClient`` methods. A
                new ``GithubContentsClient`` is built when omitted.

        Raises:
            TypeError: If connection_info is not a mapping.
            ValueError: If the repository URL is missing or invalid.

        """
        if not isinstance(connection_info, Mapping):
            message = "connection_info must be a mapping"
            raise TypeError(message)
        if "repo_url" not in connection_info:
            message = "Missing 'repo_url' in connection_info"
            raise ValueError(message)

        self._owner, self._repo = parse_repo_url(str(connection_info["repo_url"]))
        self._root_segments = path_segments(str(connection_info.get("root_dir") or ""))
        self._root_dir = "/".join(self._root_segments)
        self._branch = connection_info.get("branch") or None

        committer_name = connection_info.get("committer_name")
        committer_email = connection_info.get("committer_email")
        self._committer = (
            {"name": str(committer_name), "email": str(committer_email)}
            if committer_name and committer_email
            else None
        )

        if client is not None:
            self._client = client
        else:
            self._client = GithubContentsClient(
                connection_info.get("token"),
                api_url=str(connection_info.get("api_url") or DEFAULT_API_URL),
                timeout=float(connection_info.get("timeout", DEFAULT_TIMEOUT)),
            )

    @property
    def owner(self) -> str:
        """Owner of the repository."""
        return self._owner

    @property
    def repo(self) -> str:
        """Name of the repository."""
        return self._repo

    async def get_file_content(
        self,
        path: PathLike,
        *,
        binary: bool | None = None,
    ) -> bytes | str:
        """Download a file from the repository."""
        resource = self._resource(path, "file")
        try:
            address = await self._fetch_address(resource)
            if not address.exists:
                raise NotFoundError(resource.path)
            payload = await self._download(address)
        except GithubAPIError as exc:
            raise FileManagerError.read_failed(resource.path, exc.message) from exc
        return decode_content(payload, resource, binary=binary)

    async def update_text_file(self, path: PathLike, content: str) -> None:
        """Create or update a text file with a single commit."""
        await self._upsert(self._resource(path, "file"), content.encode("utf-8"))

    async def update_binary_file(
        self,
        path: PathLike,
        content: bytes | bytearray | BinaryIO,
    ) -> None:
        """Create or update a binary file with a single commit."""
        await self._upsert(self._resource(path, "file"), coerce_to_bytes(content))

    async def delete_file(self, path: PathLike) -> None:
        """Delete a file; deleting a missing file does nothing."""
        resource = self._resource(path, "file")
        try:
            address = await self._fetch_address(resource)
            if not address.exists:
                logger.debug("Nothing to delete at %s", address.repo_path)
                return
            await self._delete_blob(address.repo_path, address.sha)
        except GithubAPIError as exc:
            raise UpdateError(resource.path, exc.message) from exc
        await self._keep_parent(resource)

    async def list_directory_content(
        self,
        path: PathLike = "/",
        *,
        recursive: bool = False,
    ) -> list[ResourceInfo]:
        """List a directory of the repository.

        Recursive listings query sibling subdirectories concurrently; the
        order inside each directory is the order GitHub returns.
        """
        directory = self._resource(path, "dir")
        items = await self._read_directory(directory)
        entries = [
            self._to_resource(item)
            for item in items
            if not _is_marker(item) and item.get("type") in ("file", "dir", "symlink")
        ]
        logger.debug("Listing of %s: %s", directory.path, [str(entry) for entry in entries])
        if not recursive:
            return entries

        subtrees = await asyncio.gather(
            *(
                self.list_directory_content(entry.path, recursive=True)
                for entry in entries
                if entry.is_directory
            ),
        )
        for subtree in subtrees:
            entries.extend(subtree)
        return entries

    async def create_directory(self, path: PathLike) -> None:
        """Create a directory by committing a marker file inside it."""
        directory = self._resource(path, "dir")
        if directory.is_root:
            return
        marker = directory.child(MARKER_FILE, type="file")
        try:
            address = await self._fetch_address(marker)
            if address.exists:
                return
            await self._put_blob(marker, address, b"")
        except GithubAPIError as exc:
            raise UpdateError(directory.path, exc.message) from exc

    async def delete_directory(self, path: PathLike) -> None:
        """Delete every file below a directory, one commit per file."""
        directory = self._resource(path, "dir")
        try:
            blobs = await self._collect_blobs(directory)
        except NotFoundError:
            logger.debug("Nothing to delete at %s", directory.path)
            return
        except PathError:
            raise
        except FileManagerError as exc:
            raise UpdateError(directory.path, exc.details) from exc

        # Commits on one branch must be serialised.
        for repo_path, sha in blobs:
            try:
                await self._delete_blob(repo_path, sha)
            except GithubAPIError as exc:
                raise UpdateError(directory.path, exc.message) from exc
        await self._keep_parent(directory)

    async def _keep_parent(self, resource: ResourceInfo) -> None:
        """Commit a marker into the parent when a deletion emptied it.

        Git drops a directory with its last file; the marker keeps the parent
        listable as an empty directory.
        """
        parent = resource.parent
        if parent is None or parent.is_root:
            return
        try:
            await self._read_directory(parent)
        except NotFoundError:
            marker = parent.child(MARKER_FILE, type="file")
            logger.debug("Keeping emptied directory %s", parent.path)
            try:
                await self._put_blob(marker, _BlobAddress(self._repo_path(marker)), b"")
            except GithubAPIError as exc:
                raise UpdateError(resource.path, exc.message) from exc
        except FileManagerError as exc:
            raise UpdateError(resource.path, exc.details) from exc

    async def _upsert(self, resource: ResourceInfo, payload: bytes) -> None:
        """Create the file when its sha is unknown, update it otherwise."""
        try:
            address = await self._fetch_address(resource)
            await self._put_blob(resource, address, payload)
        except GithubAPIError as exc:
            raise UpdateError(resource.path, exc.message) from exc

    async def _put_blob(
        self,
        resource: ResourceInfo,
        address: _BlobAddress,
        payload: bytes,
    ) -> None:
        verb = "Update" if address.exists else "Create"
        logger.debug("%s %s (sha=%s)", verb, address.repo_path, address.sha)
        await asyncio.to_thread(
            self._client.put_contents,
            self._owner,
            self._repo,
            address.repo_path,
            message=f"{verb} '{resource.path}'",
            content=base64.b64encode(payload).decode("ascii"),
            sha=address.sha,
            branch=self._branch,
            committer=self._committer,
        )

    async def _delete_blob(self, repo_path: str, sha: str | None) -> None:
        logger.debug("Delete %s (sha=%s)", repo_path, sha)
        await asyncio.to_thread(
            self._client.delete_contents,
            self._owner,
            self._repo,
            repo_path,
            message=f"Delete '/{repo_path}'",
            sha=sha,
            branch=self._branch,
            committer=self._committer,
        )

    async def _fetch_address(self, resource: ResourceInfo) -> _BlobAddress:
        """Fetch the current metadata of a file.

        A 404 is translated into an address without sha: the file does not
        exist yet. Paths pointing at a directory are reported the same way.

        Raises:
            GithubAPIError: For any other API failure.

        """
        repo_path = self._repo_path(resource)
        try:
            data = await asyncio.to_thread(
                self._client.get_contents,
                self._owner,
                self._repo,
                repo_path,
                ref=self._branch,
            )
        except GithubAPIError as exc:
            if not exc.is_not_found:
                raise
            logger.debug("No file at %s yet", repo_path)
            return _BlobAddress(repo_path)

        if not isinstance(data, Mapping) or data.get("type") != "file":
            return _BlobAddress(repo_path)
        return _BlobAddress(
            repo_path,
            sha=data.get("sha"),
            content=data.get("content"),
            encoding=data.get("encoding"),
            size=int(data.get("size") or 0),
        )

    async def _download(self, address: _BlobAddress) -> bytes:
        """Decode inline content, or fetch the blob when it was omitted."""
        if address.encoding == "base64" and address.content is not None:
            return base64.b64decode(address.content)
        if address.size == 0:
            return b""
        blob = await asyncio.to_thread(
            self._client.get_blob,
            self._owner,
            self._repo,
            address.sha,
        )
        return base64.b64decode(blob.get("content") or "")

    async def _read_directory(self, directory: ResourceInfo) -> list[dict[str, Any]]:
        """Return the raw entries of one directory level.

        Raises:
            NotFoundError: If the directory does not exist. The root of an
                empty repository is listed as empty instead.
            PathError: If the path points at a file.

        """
        repo_path = self._repo_path(directory)
        try:
            data = await asyncio.to_thread(
                self._client.get_contents,
                self._owner,
                self._repo,
                repo_path,
                ref=self._branch,
            )
        except GithubAPIError as exc:
            if exc.is_not_found:
                if directory.is_root:
                    return []
                raise NotFoundError(directory.path) from exc
            raise FileManagerError.read_failed(directory.path, exc.message) from exc

        if not isinstance(data, list):
            raise PathError.not_a_directory(directory.path)
        return data

    async def _collect_blobs(self, directory: ResourceInfo) -> list[tuple[str, str]]:
        """Return ``(repo_path, sha)`` of every file below a directory."""
        items = await self._read_directory(directory)
        blobs = [
            (item["path"], item["sha"])
            for item in items
            if item.get("type") in ("file", "symlink")
        ]
        nested = await asyncio.gather(
            *(
                self._collect_blobs(self._to_resource(item))
                for item in items
                if item.get("type") == "dir"
            ),
        )
        for subtree in nested:
            blobs.extend(subtree)
        return blobs

    def _to_resource(self, item: Mapping[str, Any]) -> ResourceInfo:
        """Wrap a contents API entry, stripping the root directory."""
        kind: ResourceType = "dir" if item.get("type") == "dir" else "file"
        return ResourceInfo(item["path"], type=kind, root_dir=self._root_dir)

    def _repo_path(self, resource: ResourceInfo) -> str:
        """Join the root directory and the resource path, without leading slash."""
        return "/".join(self._root_segments + resource.segments)


def _is_marker(item: Mapping[str, Any]) -> bool:
    return item.get("type") == "file" and item.get("name") == MARKER_FILE
