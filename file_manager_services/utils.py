"""Shared utility functions for file manager implementations.

Key utilities:
- Data type coercion (bytes, bytearray, BinaryIO)
- Content decoding driven by the resource's extension
- Checksum computation with a hasher factory for multiple algorithms
- Depth-first directory walking on top of a one-level listing coroutine

Example usage:
    >>> from file_manager_services.utils import coerce_to_bytes
    >>> coerce_to_bytes(bytearray(b"abc"))
    b'abc'

    >>> from file_manager_services.utils import compute_checksum_from_bytes
    >>> compute_checksum_from_bytes(b"", algorithm="md5")
    'd41d8cd98f00b204e9800998ecf8427e'
"""

from __future__ import annotations

import hashlib
import io
from typing import TYPE_CHECKING, Any, BinaryIO, Literal

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .resource_info import ResourceInfo

ChecksumAlgorithm = Literal["md5", "sha1", "sha256", "sha512", "blake3"]


def get_hasher(algorithm: ChecksumAlgorithm) -> Any:
    """Get a hasher instance for the specified algorithm.

    Args:
        algorithm: The checksum algorithm to use ('md5', 'sha1', 'sha256',
            'sha512', 'blake3')

    Returns:
        A hasher instance with update() and hexdigest() methods

    Raises:
        ImportError: If blake3 is requested but not installed.
        ValueError: If algorithm is not supported.

    """
    if algorithm == "blake3":
        try:
            import blake3
        except ImportError as exc:
            message = "blake3 is not installed. Install it with: pip install blake3"
            raise ImportError(message) from exc
        return blake3.blake3()
    if algorithm in ("md5", "sha1", "sha256", "sha512"):
        return hashlib.new(algorithm)
    message = f"Unsupported checksum algorithm: {algorithm}"
    raise ValueError(message)


def compute_checksum_from_bytes(
    payload: bytes,
    algorithm: ChecksumAlgorithm = "sha256",
) -> str:
    """Compute checksum of binary payload.

    Args:
        payload: Binary data to checksum
        algorithm: Checksum algorithm to use

    Returns:
        Hexadecimal checksum string.

    """
    hasher = get_hasher(algorithm)
    hasher.update(payload)
    return hasher.hexdigest()


def coerce_to_bytes(data: bytes | bytearray | str | BinaryIO) -> bytes:
    """Coerce supported input types to raw bytes.

    Handles bytes, bytearray, strings (UTF-8 encoded) and file-like objects.

    Raises:
        TypeError: If data type is not supported.

    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, bytearray):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")

    if hasattr(data, "read"):
        result = data.read()

        # Rewind seekable streams so callers can reuse them
        if hasattr(data, "seek"):
            try:
                data.seek(0)
            except (OSError, io.UnsupportedOperation):
                pass

        if isinstance(result, str):
            return result.encode("utf-8")
        if isinstance(result, (bytes, bytearray)):
            return bytes(result)
        message = f"Unsupported stream payload type: {type(result).__name__}"
        raise TypeError(message)

    message = f"Unsupported data type: {type(data).__name__}"
    raise TypeError(message)


def decode_content(
    payload: bytes,
    resource: ResourceInfo,
    *,
    binary: bool | None,
) -> bytes | str:
    """Return file content in the representation requested by the caller.

    Args:
        payload: Raw file content.
        resource: The file the payload was read from.
        binary: True keeps bytes, False decodes UTF-8 (undecodable bytes are
            replaced), None decodes only text files whose content is valid
            UTF-8.

    """
    if binary:
        return payload
    if binary is False:
        return payload.decode("utf-8", errors="replace")
    if not resource.is_text:
        return payload
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError:
        return payload


async def walk_directory(
    list_children: Callable[[ResourceInfo], Awaitable[list[ResourceInfo]]],
    directory: ResourceInfo,
) -> list[ResourceInfo]:
    """Return the full subtree of ``directory``, depth-first.

    The entries of a directory come first, in listing order, followed by the
    subtree of each of its child directories.

    Args:
        list_children: Coroutine function listing the immediate children of a
            directory.
        directory: Directory to walk.

    """
    entries = await list_children(directory)
    subtree = list(entries)
    for entry in entries:
        if entry.is_directory:
            subtree.extend(await walk_directory(list_children, entry))
    return subtree
