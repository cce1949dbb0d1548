"""Unit tests for registration and credential settings."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from pushdeploy.app.api.http.app_data import ApplicationDependencies
from pushdeploy.app.core.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
)
from pushdeploy.app.core.services.users.models import CloudflareUpdate, UserCreate
from pushdeploy.app.entities.user.table import User
from pushdeploy.infra.cloudflare.dns import TokenVerification, Zone
from pushdeploy.infra.github.client import GitHubError


class TestRegister:
    def test_register(self, deps: ApplicationDependencies) -> None:
        user = deps.user_settings.register(
            UserCreate.model_validate({"email": "grace@example.com", "githubUsername": "grace"})
        )

        assert deps.users.get(user.id).github_username == "grace"
        assert user.github_access_token is None

    def test_email_must_be_unique(self, deps: ApplicationDependencies, user: User) -> None:
        with pytest.raises(ConflictError):
            deps.user_settings.register(UserCreate(email="ada@example.com"))

    def test_unknown_user(self, deps: ApplicationDependencies) -> None:
        with pytest.raises(NotFoundError):
            deps.user_settings.get("missing")


class TestGitHub:
    @pytest.mark.asyncio
    async def test_verified_token_is_stored(
        self,
        deps: ApplicationDependencies,
        github_factory: MagicMock,
        github_client: MagicMock,
        user: User,
    ) -> None:
        github_client.get_authenticated_user.return_value = "ada-l"

        updated = await deps.user_settings.connect_github(user.id, "gho_new")

        github_factory.assert_called_with("gho_new")
        assert updated.github_username == "ada-l"
        assert deps.users.get(user.id).github_access_token == "gho_new"

    @pytest.mark.asyncio
    async def test_rejected_token_is_not_stored(
        self, deps: ApplicationDependencies, github_client: MagicMock, user: User
    ) -> None:
        github_client.get_authenticated_user.side_effect = GitHubError(
            "Bad credentials", status_code=401
        )

        with pytest.raises(InvalidCredentialsError):
            await deps.user_settings.connect_github(user.id, "gho_bad")

        assert deps.users.get(user.id).github_access_token == "gho_test_token"

    def test_disconnect(self, deps: ApplicationDependencies, user: User) -> None:
        deps.user_settings.disconnect_github(user.id)

        assert deps.users.get(user.id).github_access_token is None


class TestCloudflare:
    @pytest.mark.asyncio
    async def test_token_verified_before_saving(
        self, deps: ApplicationDependencies, dns_publisher: MagicMock, user: User
    ) -> None:
        dns_publisher.verify_token = AsyncMock(
            return_value=TokenVerification(
                valid=True, zones=[Zone(id="z1", name="example.com")]
            )
        )

        updated = await deps.user_settings.update_cloudflare(
            user.id, CloudflareUpdate(token="cf_token", zone_id="z1")
        )

        dns_publisher.verify_token.assert_awaited_once_with("cf_token")
        assert updated.cloudflare_token == "cf_token"
        assert updated.cloudflare_zone == "z1"

    @pytest.mark.asyncio
    async def test_invalid_token_is_rejected(
        self, deps: ApplicationDependencies, dns_publisher: MagicMock, user: User
    ) -> None:
        dns_publisher.verify_token = AsyncMock(
            return_value=TokenVerification(
                valid=False, error="Invalid token"
            )
        )

        with pytest.raises(InvalidCredentialsError) as excinfo:
            await deps.user_settings.update_cloudflare(user.id, CloudflareUpdate(token="bad"))

        assert excinfo.value.details == "Invalid token"
        assert deps.users.get(user.id).cloudflare_token is None

    @pytest.mark.asyncio
    async def test_zone_only_skips_verification(
        self, deps: ApplicationDependencies, dns_publisher: MagicMock, user: User
    ) -> None:
        updated = await deps.user_settings.update_cloudflare(
            user.id, CloudflareUpdate(zone_id="z2")
        )

        dns_publisher.verify_token.assert_not_called()
        assert updated.cloudflare_zone == "z2"

    @pytest.mark.asyncio
    async def test_remove_clears_token_and_zone(
        self, deps: ApplicationDependencies, user: User
    ) -> None:
        deps.users.update(user.id, cloudflare_token="cf", cloudflare_zone="z1")

        updated = await deps.user_settings.update_cloudflare(
            user.id, CloudflareUpdate(remove=True)
        )

        assert updated.cloudflare_token is None
        assert updated.cloudflare_zone is None
