"""Unit tests for the GitHub client using httpx.MockTransport."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from pushdeploy.app.runtime.config.config_data import GitHubSettings
from pushdeploy.infra.github.client import GitHubClient, GitHubClientFactory, GitHubError

API = "https://api.github.test"


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> GitHubClient:
    return GitHubClient("gho_token", api_url=API, transport=httpx.MockTransport(handler))


def _repo(repo_id: int, name: str) -> dict:
    return {
        "id": repo_id,
        "full_name": f"acme/{name}",
        "name": name,
        "owner": {"login": "acme"},
        "private": repo_id % 2 == 0,
        "default_branch": "main",
        "description": None,
        "language": "Python",
        "updated_at": "2024-05-01T10:00:00Z",
    }


class TestRequests:
    def test_sends_auth_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"sha": "abc", "commit": {"message": "m"}})

        with _client(handler) as github:
            github.get_latest_commit("acme", "web", "main")

        assert seen[0].headers["Authorization"] == "Bearer gho_token"
        assert seen[0].headers["Accept"] == "application/vnd.github+json"
        assert seen[0].url.path == "/repos/acme/web/commits/main"

    def test_error_status_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"message": "Resource not accessible"})

        with _client(handler) as github, pytest.raises(GitHubError) as excinfo:
            github.get_repository("acme", "web")

        assert excinfo.value.status_code == 403
        assert "Resource not accessible" in excinfo.value.message

    def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler) as github, pytest.raises(GitHubError) as excinfo:
            github.list_branches("acme", "web")

        assert excinfo.value.status_code is None


class TestAccount:
    def test_authenticated_user(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/user"
            return httpx.Response(200, json={"login": "ada", "id": 1})

        with _client(handler) as github:
            assert github.get_authenticated_user() == "ada"

    def test_rejected_token(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "Bad credentials"})

        with _client(handler) as github, pytest.raises(GitHubError) as excinfo:
            github.get_authenticated_user()

        assert excinfo.value.status_code == 401


class TestRepositories:
    def test_list_repositories_follows_pagination(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json=[_repo(3, "docs")])
            assert request.url.params["per_page"] == "100"
            return httpx.Response(
                200,
                json=[_repo(1, "web"), _repo(2, "api")],
                headers={"Link": f'<{API}/user/repos?page=2&per_page=100>; rel="next"'},
            )

        with _client(handler) as github:
            repos = github.list_repositories()

        assert [r.full_name for r in repos] == ["acme/web", "acme/api", "acme/docs"]
        assert repos[0].owner == "acme"
        assert repos[1].private is True

    def test_list_branches(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"name": "main"}, {"name": "develop"}])

        with _client(handler) as github:
            assert github.list_branches("acme", "web") == ["main", "develop"]

    def test_latest_commit(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"sha": "abc1234", "commit": {"message": "Fix bug"}}
            )

        with _client(handler) as github:
            commit = github.get_latest_commit("acme", "web", "main")

        assert (commit.sha, commit.message) == ("abc1234", "Fix bug")


class TestDockerfileAndSource:
    def test_has_dockerfile(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/repos/acme/web/contents/Dockerfile"
            assert request.url.params["ref"] == "main"
            return httpx.Response(200, json={"name": "Dockerfile"})

        with _client(handler) as github:
            assert github.has_dockerfile("acme", "web", "main") is True

    def test_missing_dockerfile(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Not Found"})

        with _client(handler) as github:
            assert github.has_dockerfile("acme", "web", "main") is False

    def test_dockerfile_check_propagates_other_errors(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="oops")

        with _client(handler) as github, pytest.raises(GitHubError):
            github.has_dockerfile("acme", "web", "main")

    def test_download_tarball_follows_redirect(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "codeload.github.test":
                return httpx.Response(200, content=b"archive-bytes")
            return httpx.Response(
                302, headers={"Location": "https://codeload.github.test/acme/web/tar.gz/abc"}
            )

        with _client(handler) as github:
            assert github.download_tarball("acme", "web", "abc") == b"archive-bytes"


class TestWebhooks:
    def test_create_webhook(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"id": 987})

        with _client(handler) as github:
            hook_id = github.create_webhook(
                "acme", "web", "https://deploy.example.com/api/webhooks/github", "s3cret"
            )

        assert hook_id == 987
        assert bodies[0]["events"] == ["push"]
        assert bodies[0]["config"] == {
            "url": "https://deploy.example.com/api/webhooks/github",
            "content_type": "json",
            "secret": "s3cret",
        }

    def test_delete_webhook(self) -> None:
        seen: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(204)

        with _client(handler) as github:
            github.delete_webhook("acme", "web", 987)

        assert seen == [("DELETE", "/repos/acme/web/hooks/987")]


def test_factory_uses_settings() -> None:
    factory = GitHubClientFactory(GitHubSettings(api_url=API, timeout_seconds=5))
    with factory("gho_token") as github:
        assert isinstance(github, GitHubClient)
