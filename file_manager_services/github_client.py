"""Minimal client for the GitHub REST contents API.

Only the endpoints the GitHub file manager needs are wrapped:

- ``GET    /repos/{owner}/{repo}/contents/{path}``
- ``PUT    /repos/{owner}/{repo}/contents/{path}``
- ``DELETE /repos/{owner}/{repo}/contents/{path}``
- ``GET    /repos/{owner}/{repo}/git/blobs/{sha}``

Every non-2xx response raises ``GithubAPIError`` carrying the HTTP status, so
callers can tell a missing file (404) from a stale sha (409) or an auth
failure (401/403).
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
USER_AGENT = "file-manager-services/github"


class GithubAPIError(Exception):
    """Raised when the GitHub API answers with an error status."""

    def __init__(self, status_code: int, message: str) -> None:
        """Keep the HTTP status next to GitHub's error message."""
        super().__init__(f"GitHub API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        """Return True for a 404 answer."""
        return self.status_code == 404


class GithubContentsClient:
    """Thin wrapper over ``requests.Session`` for the contents API."""

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Prepare an authenticated session.

        Args:
            token: Personal access or application token. Anonymous when None.
            api_url: Base URL of the API, for GitHub Enterprise installations.
            timeout: Timeout in seconds applied to every request.
            session: Pre-configured session to use instead of a new one.

        """
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def get_contents(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        ref: str | None = None,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Return file metadata (a dict) or a directory listing (a list)."""
        params = {"ref": ref} if ref else None
        return self._request("GET", self._contents_url(owner, repo, path), params=params)

    def put_contents(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        message: str,
        content: str,
        sha: str | None = None,
        branch: str | None = None,
        committer: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Create (no sha) or update (sha given) a file.

        Args:
            owner: Repository owner.
            repo: Repository name.
            path: File path inside the repository, without a leading slash.
            message: Commit message.
            content: Base64 encoded file content.
            sha: Blob sha of the file being replaced; None creates the file.
            branch: Target branch; the default branch when None.
            committer: Optional ``{"name": ..., "email": ...}`` mapping.

        """
        body: dict[str, Any] = {"message": message, "content": content}
        if sha is not None:
            body["sha"] = sha
        if branch:
            body["branch"] = branch
        if committer:
            body["committer"] = committer
        return self._request("PUT", self._contents_url(owner, repo, path), json=body)

    def delete_contents(
        self,
        owner: str,
        repo: str,
        path: str,
        *,
        message: str,
        sha: str,
        branch: str | None = None,
        committer: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Delete the file whose current blob sha is ``sha``."""
        body: dict[str, Any] = {"message": message, "sha": sha}
        if branch:
            body["branch"] = branch
        if committer:
            body["committer"] = committer
        return self._request("DELETE", self._contents_url(owner, repo, path), json=body)

    def get_blob(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        """Return a git blob; used for files too large for inline content."""
        url = f"{self._api_url}/repos/{owner}/{repo}/git/blobs/{sha}"
        return self._request("GET", url)

    def _contents_url(self, owner: str, repo: str, path: str) -> str:
        return f"{self._api_url}/repos/{owner}/{repo}/contents/{quote(path)}"

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON answer.

        Raises:
            GithubAPIError: For error statuses and transport failures (status 0).

        """
        logger.debug("GitHub %s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise GithubAPIError(0, str(exc)) from exc

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = payload.get("message") if isinstance(payload, dict) else None
            raise GithubAPIError(response.status_code, message or response.text)
        if not response.content:
            return {}
        return response.json()
