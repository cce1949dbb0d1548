"""Deployment API schemas.

Field names are serialised in camelCase (``commitSha``, ``imageTag`` ...).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class DeploymentResponse(CamelModel):
    id: str
    project_id: str
    status: str
    commit_sha: str
    commit_msg: str | None = None
    build_logs: str | None = None
    logs: str | None = None
    image_tag: str | None = None
    error: str | None = None
    created_at: datetime
    finished_at: datetime | None = None


class DeploymentSummary(CamelModel):
    """List entry without the (potentially large) log fields."""

    id: str
    status: str
    commit_sha: str
    commit_msg: str | None = None
    image_tag: str | None = None
    error: str | None = None
    created_at: datetime
    finished_at: datetime | None = None


class DeploymentListResponse(CamelModel):
    items: list[DeploymentSummary]
    next_cursor: str | None = Field(
        default=None, description="Pass as ``cursor`` to fetch the next page"
    )


class DeploymentLogsResponse(CamelModel):
    build_logs: str | None = None
    logs: str | None = None
    status: str
