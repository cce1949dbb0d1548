from datetime import datetime

from sqlmodel import Field, SQLModel

from pushdeploy.app.entities.common import new_id, utcnow


class User(SQLModel, table=True):
    """Account owning projects.

    Only the credentials the pipeline needs are stored here; sign-in and
    session handling live outside this service.
    """

    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str | None = None
    email: str | None = Field(default=None, unique=True)
    github_username: str | None = None
    github_access_token: str | None = None
    cloudflare_token: str | None = None
    cloudflare_zone: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
