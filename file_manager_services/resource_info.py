"""Canonical description of a file system resource.

``ResourceInfo`` enforces the path rules shared by every file manager:

- each path starts with a slash and is relative to the file manager root,
- directory paths always end with a trailing slash,
- file paths never end with a slash.

Every other attribute (name, extension, parent, kind) is derived from the
canonical path alone, so two instances with the same path are interchangeable.

Example:

    >>> info = ResourceInfo("/data/exports/archive.tar.gz", root_dir="/data")
    >>> info.path
    '/exports/archive.tar.gz'
    >>> info.name, info.ext
    ('archive', 'tar.gz')
    >>> info.parent.path
    '/exports/'
    >>> info.as_dict()["type"]
    'file'

"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Literal, NamedTuple

from .errors import EmptyPathError
from .path_utils import normalize_path, path_segments

if TYPE_CHECKING:
    from collections.abc import Iterable

ResourceType = Literal["file", "dir"]

ROOT_NAME = "<root>"

# A trailing ".ext" whose first character is a letter marks a file.
_FILE_EXTENSION_PATTERN = re.compile(r"\.[A-Za-z]+$")

TEXT_EXTENSIONS: frozenset[str] = frozenset(
    {
        # documents
        "txt", "text", "md", "markdown", "rst", "adoc", "csv", "tsv", "log", "tex",
        # markup
        "html", "htm", "xhtml", "xml", "svg",
        # styles
        "css", "scss", "sass", "less",
        # code
        "js", "mjs", "cjs", "jsx", "ts", "mts", "cts", "tsx", "vue", "svelte",
        "py", "pyi", "rb", "php", "go", "rs", "java", "kt", "kts", "scala",
        "c", "h", "cc", "cpp", "hpp", "cs", "swift", "m", "lua", "pl", "r",
        "sh", "bash", "zsh", "fish", "ps1", "bat", "sql", "graphql", "gql",
        # config
        "json", "jsonc", "json5", "yml", "yaml", "toml", "ini", "cfg", "conf",
        "env", "properties", "lock",
    },
)


class ResourceInfo:
    """Immutable descriptor of one resource's canonical path."""

    __slots__ = ("_path",)

    def __init__(
        self,
        path: str | None,
        *,
        type: ResourceType | None = None,  # noqa: A002
        root_dir: str | None = None,
    ) -> None:
        """Build the canonical path of a resource.

        Args:
            path: Raw path of the resource.
            type: Declared kind of the resource. Inferred from the path when
                omitted: a trailing slash or a missing extension means a
                directory, a trailing ``.ext`` means a file.
            root_dir: Root directory prefix to strip from ``path``. Only whole
                leading segments are stripped.

        Raises:
            EmptyPathError: If ``path`` is empty or None.

        """
        if not path:
            raise EmptyPathError

        if type is None:
            if path.endswith("/") or not _FILE_EXTENSION_PATTERN.search(path):
                type = "dir"  # noqa: A001
            else:
                type = "file"  # noqa: A001

        segments = path_segments(path)
        if root_dir:
            root_segments = path_segments(root_dir)
            if root_segments and segments[: len(root_segments)] == root_segments:
                segments = segments[len(root_segments) :]

        self._path = normalize_path(
            "/" + "/".join(segments),
            add_leading_slash=True,
            add_trailing_slash=type == "dir",
        )

    @property
    def path(self) -> str:
        """Canonical path; directories end with a trailing slash."""
        return self._path

    @property
    def segments(self) -> list[str]:
        """Non-empty segments of the canonical path."""
        return path_segments(self._path)

    @property
    def is_directory(self) -> bool:
        """Return True if the resource is a directory."""
        return self._path.endswith("/")

    @property
    def is_file(self) -> bool:
        """Return True if the resource is a file."""
        return not self._path.endswith("/")

    @property
    def is_root(self) -> bool:
        """Return True for the root directory."""
        return self._path == "/"

    @property
    def type(self) -> ResourceType:
        """Kind of the resource, ``"file"`` or ``"dir"``."""
        return "file" if self.is_file else "dir"

    @property
    def fullname(self) -> str:
        """Last path segment including its extension, or ``<root>``."""
        segments = self.segments
        return segments[-1] if segments else ROOT_NAME

    @property
    def name(self) -> str:
        """Name of the resource without its extension."""
        if self.is_directory:
            return self.fullname
        return self.fullname.split(".", 1)[0]

    @property
    def ext(self) -> str:
        """Lowercase extension after the first dot; empty for directories."""
        if self.is_directory:
            return ""
        _, dot, extension = self.fullname.partition(".")
        return extension.lower() if dot else ""

    @property
    def parent(self) -> ResourceInfo | None:
        """Parent directory, or None for the root."""
        segments = self.segments
        if not segments:
            return None
        return ResourceInfo("/" + "/".join(segments[:-1]), type="dir")

    @property
    def is_text(self) -> bool:
        """Return True when the extension is a known text format."""
        ext = self.ext
        return bool(ext) and ext.rsplit(".", 1)[-1] in TEXT_EXTENSIONS

    def child(self, name: str, *, type: ResourceType) -> ResourceInfo:  # noqa: A002
        """Return the resource named ``name`` inside this directory."""
        if self.is_file:
            message = f"{self._path} is not a directory"
            raise ValueError(message)
        return ResourceInfo(self._path + name, type=type)

    def as_dict(self) -> dict[str, Any]:
        """Return the JSON projection of the resource."""
        if self.is_directory:
            return {"name": self.name, "path": self._path, "type": "folder"}
        return {
            "name": self.name,
            "ext": self.ext,
            "path": self._path,
            "type": "file",
            "isText": self.is_text,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceInfo):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"ResourceInfo({self._path!r})"


class FolderContent(NamedTuple):
    """A directory listing split into files and folders."""

    files: list[ResourceInfo]
    folders: list[ResourceInfo]


def files_and_folders(resources: Iterable[ResourceInfo]) -> FolderContent:
    """Split resources into files and folders, keeping their order."""
    content = FolderContent(files=[], folders=[])
    for resource in resources:
        if resource.is_file:
            content.files.append(resource)
        else:
            content.folders.append(resource)
    return content
