"""Project API schemas."""

from __future__ import annotations

from datetime import datetime

from pushdeploy.app.api.http.schemas.deployments import CamelModel


class ProjectResponse(CamelModel):
    """Project as returned by read endpoints; never carries the webhook secret."""

    id: str
    name: str
    slug: str
    subdomain: str
    repo_full_name: str
    branch: str
    port: int
    cpu_request: str
    cpu_limit: str
    memory_request: str
    memory_limit: str
    replicas: int
    node_affinity: str | None = None
    custom_domain: str | None = None
    env_vars: dict[str, str] = {}
    webhook_id: str | None = None
    user_id: str
    created_at: datetime
    updated_at: datetime


class ProjectCreatedResponse(ProjectResponse):
    """Returned once, by the create call."""

    webhook_secret: str


class RepositoryResponse(CamelModel):
    id: int
    full_name: str
    name: str
    owner: str
    private: bool
    default_branch: str
    description: str | None = None
    language: str | None = None
    updated_at: str = ""
