from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from pushdeploy.app.entities.common import new_id, utcnow


class Project(SQLModel, table=True):
    """A deployable unit bound to one repository and branch.

    ``slug`` and ``subdomain`` are unique and never change after creation.
    ``webhook_secret`` is generated once and only returned by the create call.
    """

    __tablename__ = "projects"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    slug: str = Field(unique=True, index=True)
    subdomain: str = Field(unique=True, index=True)
    repo_full_name: str = Field(index=True)
    branch: str = "main"
    port: int = 3000
    cpu_request: str = "100m"
    cpu_limit: str = "500m"
    memory_request: str = "128Mi"
    memory_limit: str = "512Mi"
    replicas: int = 1
    node_affinity: str | None = None
    custom_domain: str | None = None
    env_vars: dict[str, str] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    webhook_secret: str
    webhook_id: str | None = None
    user_id: str = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def owner(self) -> str:
        return self.repo_full_name.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.repo_full_name.split("/", 1)[1]
