"""User settings schemas. Stored tokens are never returned, only whether one is set."""

from __future__ import annotations

from datetime import datetime

from pushdeploy.app.api.http.schemas.deployments import CamelModel
from pushdeploy.app.entities.user.table import User
from pushdeploy.infra.cloudflare.dns import TokenVerification


class UserSettingsResponse(CamelModel):
    id: str
    name: str | None = None
    email: str | None = None
    github_username: str | None = None
    cloudflare_zone: str | None = None
    has_github_token: bool
    has_cloudflare_token: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserSettingsResponse:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            github_username=user.github_username,
            cloudflare_zone=user.cloudflare_zone,
            has_github_token=bool(user.github_access_token),
            has_cloudflare_token=bool(user.cloudflare_token),
            created_at=user.created_at,
        )


class ZoneResponse(CamelModel):
    id: str
    name: str


class TokenVerificationResponse(CamelModel):
    valid: bool
    zones: list[ZoneResponse] = []
    error: str | None = None

    @classmethod
    def from_verification(cls, result: TokenVerification) -> TokenVerificationResponse:
        return cls(
            valid=result.valid,
            zones=[ZoneResponse(id=z.id, name=z.name) for z in result.zones],
            error=result.error,
        )
