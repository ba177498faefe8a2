"""Path normalisation utilities.

Pure string helpers used by ``ResourceInfo`` and every adapter to produce the
canonical slash convention: one leading slash, a trailing slash for
directories, no empty segments.

Example:

    >>> normalize_path("//docs///notes/", add_leading_slash=True)
    '/docs/notes'
    >>> normalize_path("docs/notes", add_leading_slash=True, add_trailing_slash=True)
    '/docs/notes/'
    >>> split_path("/docs/notes/todo.md")
    ('/docs/notes/', 'todo.md')

"""

from __future__ import annotations


def path_segments(path: str) -> list[str]:
    """Return the non-empty segments of a slash separated path."""
    return [segment for segment in path.split("/") if segment]


def normalize_path(
    path: str | None,
    *,
    add_leading_slash: bool = False,
    add_trailing_slash: bool = False,
) -> str:
    """Collapse repeated slashes and apply the leading/trailing slash flags.

    Args:
        path: Raw path, possibly with repeated, leading or trailing slashes.
        add_leading_slash: Prefix the result with exactly one slash.
        add_trailing_slash: Suffix the result with exactly one slash.

    Returns:
        The normalised path. Empty input always yields an empty string. The
        trailing slash is only added to a non-empty path, so a path made only
        of slashes yields ``"/"`` with the leading flag and ``""`` otherwise.

    """
    if not path:
        return ""

    trimmed = "/".join(path_segments(path))
    leading = "/" if add_leading_slash else ""
    trailing = "/" if trimmed and add_trailing_slash else ""
    return f"{leading}{trimmed}{trailing}"


def split_path(path: str) -> tuple[str, str]:
    """Split a path into its parent prefix and leaf name.

    The parent keeps its trailing slash. When the path holds no slash the
    parent is empty and the leaf is the whole input.

    Example:

        >>> split_path("/a/b.txt")
        ('/a/', 'b.txt')
        >>> split_path("b.txt")
        ('', 'b.txt')

    """
    position = path.rfind("/") + 1
    return path[:position], path[position:]


def detect_path_traversal(segments: list[str] | tuple[str, ...]) -> bool:
    """Return True when any segment would climb to a parent directory.

    Example:

        >>> detect_path_traversal(["..", "etc", "passwd"])
        True
        >>> detect_path_traversal(["valid", "relative", "path"])
        False

    """
    return any(segment == ".." for segment in segments)


def normalize_windows_path(path_str: str) -> str:
    """Normalize Windows backslashes to forward slashes.

    Example:

        >>> normalize_windows_path("dir\\\\subdir\\\\file.txt")
        'dir/subdir/file.txt'

    """
    return path_str.replace("\\", "/")
