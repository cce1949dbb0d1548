"""Input models for account registration and credential settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None, max_length=100)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    github_username: str | None = Field(default=None, alias="githubUsername")


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class GitHubConnect(BaseModel):
    token: str = Field(min_length=1)


class CloudflareToken(BaseModel):
    token: str = Field(min_length=1)


class CloudflareUpdate(BaseModel):
    """Store a new token and/or zone, or clear both with ``remove``."""

    model_config = ConfigDict(populate_by_name=True)

    token: str | None = Field(default=None, min_length=1)
    zone_id: str | None = Field(default=None, alias="zoneId")
    remove: bool = False
