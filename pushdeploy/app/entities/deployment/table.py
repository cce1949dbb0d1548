from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from pushdeploy.app.entities.common import new_id, utcnow

COMMIT_MESSAGE_MAX_LENGTH = 500


class DeploymentStatus(str, Enum):
    """Lifecycle of a single build-and-deploy attempt.

    ``live`` and ``failed`` are terminal; retries and rollbacks create a new
    record instead of reviving an old one.
    """

    PENDING = "pending"
    BUILDING = "building"
    DEPLOYING = "deploying"
    LIVE = "live"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DeploymentStatus.LIVE, DeploymentStatus.FAILED)


class Deployment(SQLModel, table=True):
    __tablename__ = "deployments"

    id: str = Field(default_factory=new_id, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True, ondelete="CASCADE")
    commit_sha: str
    commit_msg: str | None = None
    status: str = Field(default=DeploymentStatus.PENDING.value, index=True)
    logs: str | None = Field(default=None, sa_column=Column(Text))
    build_logs: str | None = Field(default=None, sa_column=Column(Text))
    image_tag: str | None = None
    error: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(default_factory=utcnow, index=True)
    finished_at: datetime | None = None
