"""Tests for user registration and credential settings endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from pushdeploy.app.api.http.app_data import ApplicationDependencies
from pushdeploy.app.entities.user.table import User
from pushdeploy.infra.cloudflare.dns import TokenVerification, Zone
from pushdeploy.infra.github.client import GitHubError


class TestRegistration:
    def test_register(self, api: TestClient, deps: ApplicationDependencies) -> None:
        response = api.post("/api/users", json={"name": "Grace", "email": "grace@example.com"})

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "grace@example.com"
        assert data["hasGithubToken"] is False
        assert deps.users.get(data["id"]) is not None

    def test_duplicate_email(self, api: TestClient, user: User) -> None:
        response = api.post("/api/users", json={"email": "ada@example.com"})

        assert response.status_code == 409

    def test_invalid_email(self, api: TestClient) -> None:
        assert api.post("/api/users", json={"email": "not-an-email"}).status_code == 422


class TestSettings:
    def test_get_never_returns_tokens(self, api: TestClient, user: User) -> None:
        response = api.get(f"/api/users/{user.id}/settings")

        assert response.status_code == 200
        data = response.json()
        assert data["hasGithubToken"] is True
        assert data["githubUsername"] == "ada"
        assert "gho_test_token" not in response.text

    def test_unknown_user(self, api: TestClient) -> None:
        assert api.get("/api/users/missing/settings").status_code == 404

    def test_update_profile(self, api: TestClient, user: User) -> None:
        response = api.patch(f"/api/users/{user.id}/settings", json={"name": "Ada King"})

        assert response.status_code == 200
        assert response.json()["name"] == "Ada King"

    def test_empty_name_rejected(self, api: TestClient, user: User) -> None:
        response = api.patch(f"/api/users/{user.id}/settings", json={"name": ""})

        assert response.status_code == 422


class TestGitHubToken:
    def test_connect(
        self,
        api: TestClient,
        deps: ApplicationDependencies,
        github_client: MagicMock,
        user: User,
    ) -> None:
        github_client.get_authenticated_user.return_value = "ada-l"

        response = api.put(f"/api/users/{user.id}/github", json={"token": "gho_new"})

        assert response.status_code == 200
        assert response.json()["githubUsername"] == "ada-l"
        assert deps.users.get(user.id).github_access_token == "gho_new"

    def test_rejected_token(
        self, api: TestClient, deps: ApplicationDependencies, github_client: MagicMock, user: User
    ) -> None:
        github_client.get_authenticated_user.side_effect = GitHubError(
            "Bad credentials", status_code=401
        )

        response = api.put(f"/api/users/{user.id}/github", json={"token": "gho_bad"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid GitHub token"
        assert deps.users.get(user.id).github_access_token == "gho_test_token"

    def test_disconnect(self, api: TestClient, deps: ApplicationDependencies, user: User) -> None:
        response = api.delete(f"/api/users/{user.id}/github")

        assert response.status_code == 204
        assert deps.users.get(user.id).github_access_token is None


class TestCloudflare:
    def test_validate_lists_zones(
        self, api: TestClient, dns_publisher: MagicMock, user: User
    ) -> None:
        dns_publisher.verify_token = AsyncMock(
            return_value=TokenVerification(
                valid=True, zones=[Zone(id="z1", name="example.com")]
            )
        )

        response = api.post(f"/api/users/{user.id}/cloudflare/validate", json={"token": "cf"})

        assert response.status_code == 200
        assert response.json() == {
            "valid": True,
            "zones": [{"id": "z1", "name": "example.com"}],
            "error": None,
        }

    def test_save_verified_token(
        self,
        api: TestClient,
        deps: ApplicationDependencies,
        dns_publisher: MagicMock,
        user: User,
    ) -> None:
        dns_publisher.verify_token = AsyncMock(return_value=TokenVerification(valid=True))

        response = api.put(
            f"/api/users/{user.id}/cloudflare", json={"token": "cf_token", "zoneId": "z1"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["hasCloudflareToken"] is True
        assert data["cloudflareZone"] == "z1"
        assert deps.users.get(user.id).cloudflare_token == "cf_token"

    def test_invalid_token_not_saved(
        self,
        api: TestClient,
        deps: ApplicationDependencies,
        dns_publisher: MagicMock,
        user: User,
    ) -> None:
        dns_publisher.verify_token = AsyncMock(
            return_value=TokenVerification(
                valid=False, error="Invalid token"
            )
        )

        response = api.put(f"/api/users/{user.id}/cloudflare", json={"token": "bad"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid Cloudflare token", "details": "Invalid token"}
        assert deps.users.get(user.id).cloudflare_token is None

    def test_remove(self, api: TestClient, deps: ApplicationDependencies, user: User) -> None:
        deps.users.update(user.id, cloudflare_token="cf", cloudflare_zone="z1")

        response = api.put(f"/api/users/{user.id}/cloudflare", json={"remove": True})

        assert response.status_code == 200
        assert response.json()["hasCloudflareToken"] is False
        assert response.json()["cloudflareZone"] is None
