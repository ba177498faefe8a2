"""Minimal client for the Google Drive v3 REST API.

Drive is an ID-addressed graph: every file and folder has an opaque ID and a
list of parent IDs. This client only wraps the calls the Drive file manager
needs (query children, create nodes, upload, download, delete) and takes an
OAuth access token obtained elsewhere.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

import requests

logger = logging.getLogger(__name__)

API_URL = "https://www.googleapis.com/drive/v3"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DEFAULT_TIMEOUT = 30.0
_PAGE_SIZE = 1000


class GoogleDriveAPIError(Exception):
    """Raised when the Drive API answers with an error status."""

    def __init__(self, status_code: int, message: str) -> None:
        """Keep the HTTP status next to the Drive error message."""
        super().__init__(f"Google Drive API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        """Return True for a 404 answer."""
        return self.status_code == 404


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside a quoted Drive query string.

    Example:

        >>> escape_query_value("Bob's files")
        "Bob\\\\'s files"

    """
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient:
    """Thin wrapper over ``requests.Session`` for the Drive ``files`` API."""

    def __init__(
        self,
        access_token: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Prepare a session authenticated with an OAuth access token."""
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["Authorization"] = f"Bearer {access_token}"

    def list_files(
        self,
        query: str,
        *,
        fields: str = "files(id, name, mimeType)",
    ) -> list[dict[str, Any]]:
        """Return every file matching a Drive search query, following pages."""
        files: list[dict[str, Any]] = []
        params: dict[str, Any] = {
            "q": query,
            "fields": f"nextPageToken, {fields}",
            "pageSize": _PAGE_SIZE,
            "spaces": "drive",
        }
        while True:
            payload = self._request("GET", f"{API_URL}/files", params=params).json()
            files.extend(payload.get("files", []))
            page_token = payload.get("nextPageToken")
            if not page_token:
                return files
            params["pageToken"] = page_token

    def create_folder(self, name: str, parent_id: str) -> str:
        """Create a folder under ``parent_id`` and return its ID."""
        metadata = {"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]}
        response = self._request(
            "POST",
            f"{API_URL}/files",
            params={"fields": "id"},
            json=metadata,
        )
        return response.json()["id"]

    def create_file(
        self,
        name: str,
        parent_id: str,
        content: bytes,
        *,
        mime_type: str = "application/octet-stream",
    ) -> str:
        """Upload a new file under ``parent_id`` and return its ID."""
        boundary = uuid.uuid4().hex
        metadata = json.dumps({"name": name, "parents": [parent_id]}).encode("utf-8")
        body = b"".join(
            (
                f"--{boundary}\r\n".encode("ascii"),
                b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
                metadata,
                f"\r\n--{boundary}\r\n".encode("ascii"),
                f"Content-Type: {mime_type}\r\n\r\n".encode("ascii"),
                content,
                f"\r\n--{boundary}--\r\n".encode("ascii"),
            ),
        )
        response = self._request(
            "POST",
            f"{UPLOAD_URL}/files",
            params={"uploadType": "multipart", "fields": "id"},
            data=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
        )
        return response.json()["id"]

    def update_file_content(
        self,
        file_id: str,
        content: bytes,
        *,
        mime_type: str = "application/octet-stream",
    ) -> None:
        """Replace the content of an existing file."""
        self._request(
            "PATCH",
            f"{UPLOAD_URL}/files/{file_id}",
            params={"uploadType": "media"},
            data=content,
            headers={"Content-Type": mime_type},
        )

    def download(self, file_id: str) -> bytes:
        """Return the raw content of a file."""
        return self._request(
            "GET",
            f"{API_URL}/files/{file_id}",
            params={"alt": "media"},
        ).content

    def delete(self, file_id: str) -> None:
        """Permanently delete a file or a folder with its descendants."""
        self._request("DELETE", f"{API_URL}/files/{file_id}")

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Send a request, raising ``GoogleDriveAPIError`` on failure."""
        logger.debug("Drive %s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise GoogleDriveAPIError(0, str(exc)) from exc

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            error = payload.get("error") if isinstance(payload, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            raise GoogleDriveAPIError(response.status_code, message or response.text)
        return response
