from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from pushdeploy.app.entities.common import utcnow


class InfraState(SQLModel, table=True):
    """Last successfully reconciled cluster state of a project."""

    __tablename__ = "infra_states"

    project_slug: str = Field(primary_key=True)
    namespace: str
    image: str
    hosts: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    resources: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    updated_at: datetime = Field(default_factory=utcnow)
