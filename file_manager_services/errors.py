"""Error taxonomy shared by every file manager implementation.

Callers only ever see the exceptions defined here, whatever the backend.
Backend specific failures (HTTP errors, ``OSError``...) are caught once at the
adapter boundary and re-raised as one of these types with the canonical path
attached.
"""

from __future__ import annotations


class FileManagerError(RuntimeError):
    """Base exception for file manager operations."""

    code = 500

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: str | None = None,
        code: int | None = None,
    ) -> None:
        """Initialise the error with optional path and backend details."""
        detail = message if path is None else ": ".join((message, path))
        if details:
            detail = f"{detail} ({details})"
        super().__init__(detail)
        self.message = message
        self.path = path
        self.details = details
        if code is not None:
            self.code = code

    @classmethod
    def read_failed(cls, path: str, details: str | None = None) -> FileManagerError:
        """Return an error describing a failed read that is not a missing file."""
        return cls("Failed to read resource", path=path, details=details)


class PathError(FileManagerError):
    """Raised when a resource path is invalid."""

    code = 400

    @classmethod
    def path_outside_root(cls, path: str) -> PathError:
        """Return an error showing the path escapes the file manager root."""
        return cls("Path escapes file manager root", path=path)

    @classmethod
    def not_a_directory(cls, path: str) -> PathError:
        """Return an error when a directory operation targets a file."""
        return cls("Path is not a directory", path=path)


class EmptyPathError(PathError):
    """Raised when a resource is built from an empty path."""

    def __init__(self) -> None:
        """Create the error; there is no path to report."""
        super().__init__("Empty path specified for resource")


class NotFoundError(FileManagerError):
    """Raised when an expected file, directory or path segment is missing."""

    code = 404

    def __init__(self, path: str, message: str = "Path not found") -> None:
        """Create a not-found error for the provided path."""
        super().__init__(message, path=path)


class UpdateError(FileManagerError):
    """Raised when the backend rejects a write, delete or create."""

    def __init__(self, path: str, details: str | None = None) -> None:
        """Wrap the backend failure message for the given path."""
        super().__init__("Failed to update resource", path=path, details=details)
