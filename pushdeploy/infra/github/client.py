"""GitHub REST API client.

Covers the handful of calls the platform makes on behalf of a user: checking
who owns the token, listing repositories and branches, resolving the head
commit of a branch, managing the push webhook, checking for a Dockerfile and
downloading source archives.
Every call is authenticated with the user's access token.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any

import httpx
from loguru import logger

from pushdeploy.app.runtime.config.config_data import GitHubSettings

GITHUB_API_VERSION = "2022-11-28"
PAGE_SIZE = 100


class GitHubError(Exception):
    """Raised when the GitHub API answers with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class Repository:
    id: int
    full_name: str
    name: str
    owner: str
    private: bool
    default_branch: str
    description: str | None = None
    language: str | None = None
    updated_at: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Repository:
        return cls(
            id=data["id"],
            full_name=data["full_name"],
            name=data["name"],
            owner=(data.get("owner") or {}).get("login", ""),
            private=bool(data.get("private")),
            default_branch=data.get("default_branch") or "main",
            description=data.get("description"),
            language=data.get("language"),
            updated_at=data.get("updated_at") or "",
        )


@dataclass(frozen=True)
class CommitInfo:
    sha: str
    message: str


class GitHubClient:
    """Synchronous GitHub client; use as a context manager to close the pool."""

    def __init__(
        self,
        access_token: str,
        *,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=api_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # =========================================================================
    # Account
    # =========================================================================

    def get_authenticated_user(self) -> str:
        """Login of the account the token belongs to; raises GitHubError if rejected."""
        return self._request("GET", "/user").json()["login"]

    # =========================================================================
    # Repositories
    # =========================================================================

    def list_repositories(self) -> list[Repository]:
        """All repositories the token can see, most recently updated first."""
        items = self._paginate(
            "/user/repos", {"sort": "updated", "visibility": "all"}
        )
        return [Repository.from_api(item) for item in items]

    def get_repository(self, owner: str, repo: str) -> Repository:
        return Repository.from_api(self._request("GET", f"/repos/{owner}/{repo}").json())

    def list_branches(self, owner: str, repo: str) -> list[str]:
        items = self._paginate(f"/repos/{owner}/{repo}/branches", {})
        return [item["name"] for item in items]

    def get_latest_commit(self, owner: str, repo: str, branch: str) -> CommitInfo:
        data = self._request("GET", f"/repos/{owner}/{repo}/commits/{branch}").json()
        return CommitInfo(sha=data["sha"], message=data["commit"]["message"])

    def has_dockerfile(self, owner: str, repo: str, ref: str) -> bool:
        """Whether a ``Dockerfile`` exists at the repository root on ``ref``."""
        try:
            self._request(
                "GET", f"/repos/{owner}/{repo}/contents/Dockerfile", params={"ref": ref}
            )
        except GitHubError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    def download_tarball(self, owner: str, repo: str, ref: str) -> bytes:
        """Download a gzipped source snapshot of ``ref``."""
        return self._request("GET", f"/repos/{owner}/{repo}/tarball/{ref}").content

    # =========================================================================
    # Webhooks
    # =========================================================================

    def create_webhook(self, owner: str, repo: str, url: str, secret: str) -> int:
        response = self._request(
            "POST",
            f"/repos/{owner}/{repo}/hooks",
            json={
                "name": "web",
                "config": {"url": url, "content_type": "json", "secret": secret},
                "events": ["push"],
                "active": True,
            },
        )
        hook_id = int(response.json()["id"])
        logger.info(f"Created webhook {hook_id} on {owner}/{repo}")
        return hook_id

    def delete_webhook(self, owner: str, repo: str, hook_id: int) -> None:
        self._request("DELETE", f"/repos/{owner}/{repo}/hooks/{hook_id}")
        logger.info(f"Deleted webhook {hook_id} from {owner}/{repo}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubError(f"GitHub request {method} {path} failed: {e}") from e

        if response.is_error:
            detail = ""
            try:
                detail = response.json().get("message", "")
            except ValueError:
                detail = response.text[:200]
            raise GitHubError(
                f"GitHub API error {response.status_code} for {method} {path}: {detail}",
                status_code=response.status_code,
            )
        return response

    def _paginate(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        url: str | None = path
        query: dict[str, Any] | None = {**params, "per_page": PAGE_SIZE}

        while url:
            response = self._request("GET", url, params=query)
            items.extend(response.json())
            url = response.links.get("next", {}).get("url")
            query = None  # the next link already carries the query string

        return items


class GitHubClientFactory:
    """Creates per-user clients bound to the configured API endpoint."""

    def __init__(self, settings: GitHubSettings) -> None:
        self._settings = settings

    def __call__(self, access_token: str) -> GitHubClient:
        return GitHubClient(
            access_token,
            api_url=self._settings.api_url,
            timeout=self._settings.timeout_seconds,
        )
