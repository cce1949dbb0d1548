"""Tests for repository discovery endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from pushdeploy.app.entities.user.table import User
from pushdeploy.infra.github.client import GitHubError, Repository


def test_list_repositories(api: TestClient, github_client: MagicMock, user: User) -> None:
    github_client.list_repositories.return_value = [
        Repository(
            id=7,
            full_name="acme/web",
            name="web",
            owner="acme",
            private=True,
            default_branch="main",
            language="TypeScript",
        )
    ]

    response = api.get("/api/github/repositories", params={"user_id": user.id})

    assert response.status_code == 200
    repo = response.json()[0]
    assert repo["fullName"] == "acme/web"
    assert repo["defaultBranch"] == "main"


def test_list_branches(
    api: TestClient, github_factory: MagicMock, github_client: MagicMock, user: User
) -> None:
    github_client.list_branches.return_value = ["main", "develop"]

    response = api.get(
        "/api/github/repositories/acme/web/branches", params={"user_id": user.id}
    )

    assert response.json() == ["main", "develop"]
    github_factory.assert_called_with("gho_test_token")
    github_client.list_branches.assert_called_once_with("acme", "web")


def test_upstream_failure_maps_to_bad_gateway(
    api: TestClient, github_client: MagicMock, user: User
) -> None:
    github_client.list_repositories.side_effect = GitHubError("GitHub API returned 503")

    response = api.get("/api/github/repositories", params={"user_id": user.id})

    assert response.status_code == 502
    assert response.json() == {"error": "GitHub API returned 503"}
