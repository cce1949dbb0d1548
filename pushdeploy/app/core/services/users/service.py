"""Account registration and the credentials the pipeline acts with.

Tokens are checked against the provider that issued them before they are
stored, so a project never starts deploying with a credential known to be bad.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from pushdeploy.app.core.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
)
from pushdeploy.app.core.services.users.models import (
    CloudflareUpdate,
    ProfileUpdate,
    UserCreate,
)
from pushdeploy.app.core.services.users.repository import UserRepository
from pushdeploy.app.entities.user.table import User
from pushdeploy.infra.cloudflare.dns import DnsPublisher, TokenVerification
from pushdeploy.infra.github.client import GitHubClient, GitHubError


class UserSettingsService:
    def __init__(
        self,
        users: UserRepository,
        github_factory: Callable[[str], GitHubClient],
        dns: DnsPublisher,
    ) -> None:
        self._users = users
        self._github_factory = github_factory
        self._dns = dns

    def register(self, data: UserCreate) -> User:
        if self._users.email_taken(data.email):
            raise ConflictError(f"Email {data.email} is already registered")
        user = self._users.add(
            User(name=data.name, email=data.email, github_username=data.github_username)
        )
        logger.info(f"Registered user {user.id}")
        return user

    def get(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def update_profile(self, user_id: str, data: ProfileUpdate) -> User:
        return self._save(user_id, name=data.name)

    # GitHub

    async def connect_github(self, user_id: str, token: str) -> User:
        self.get(user_id)

        def login() -> str:
            with self._github_factory(token) as github:
                return github.get_authenticated_user()

        try:
            username = await asyncio.to_thread(login)
        except GitHubError as e:
            raise InvalidCredentialsError("Invalid GitHub token", details=str(e)) from e

        logger.info(f"Connected GitHub account {username} to user {user_id}")
        return self._save(user_id, github_access_token=token, github_username=username)

    def disconnect_github(self, user_id: str) -> User:
        return self._save(user_id, github_access_token=None)

    # Cloudflare

    async def validate_cloudflare(self, token: str) -> TokenVerification:
        return await self._dns.verify_token(token)

    async def update_cloudflare(self, user_id: str, data: CloudflareUpdate) -> User:
        self.get(user_id)
        if data.remove:
            logger.info(f"Removing Cloudflare credentials of user {user_id}")
            return self._save(user_id, cloudflare_token=None, cloudflare_zone=None)

        values: dict[str, str] = {}
        if data.token:
            verification = await self._dns.verify_token(data.token)
            if not verification.valid:
                raise InvalidCredentialsError(
                    "Invalid Cloudflare token", details=verification.error
                )
            values["cloudflare_token"] = data.token
        if data.zone_id:
            values["cloudflare_zone"] = data.zone_id
        return self._save(user_id, **values)

    def _save(self, user_id: str, **values: str | None) -> User:
        user = self._users.update(user_id, **values)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user
