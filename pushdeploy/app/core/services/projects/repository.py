"""Persistence for projects."""

from __future__ import annotations

from typing import Any

from sqlmodel import col, select

from pushdeploy.app.core.services.database.db_session import DbSessionService
from pushdeploy.app.entities.common import utcnow
from pushdeploy.app.entities.project.table import Project


class ProjectRepository:
    def __init__(self, db: DbSessionService) -> None:
        self._db = db

    def get(self, project_id: str) -> Project | None:
        with self._db.session() as session:
            return session.get(Project, project_id)

    def find_by_repository(self, repo_full_name: str, branch: str) -> Project | None:
        """The project tracking ``branch`` of ``repo_full_name``, if any.

        Several projects may track the same branch; the oldest one wins.
        """
        with self._db.session() as session:
            stmt = (
                select(Project)
                .where(Project.repo_full_name == repo_full_name, Project.branch == branch)
                .order_by(col(Project.created_at))
                .limit(1)
            )
            return session.exec(stmt).first()

    def list_for_user(self, user_id: str) -> list[Project]:
        with self._db.session() as session:
            stmt = (
                select(Project)
                .where(Project.user_id == user_id)
                .order_by(col(Project.updated_at).desc())
            )
            return list(session.exec(stmt).all())

    def slug_taken(self, slug: str) -> bool:
        with self._db.session() as session:
            return session.exec(select(Project.id).where(Project.slug == slug)).first() is not None

    def subdomain_taken(self, subdomain: str) -> bool:
        with self._db.session() as session:
            stmt = select(Project.id).where(Project.subdomain == subdomain)
            return session.exec(stmt).first() is not None

    def add(self, project: Project) -> Project:
        with self._db.session() as session:
            session.add(project)
            session.flush()
            session.refresh(project)
            return project

    def update(self, project_id: str, **values: Any) -> Project | None:
        with self._db.session() as session:
            project = session.get(Project, project_id)
            if project is None:
                return None
            for key, value in values.items():
                setattr(project, key, value)
            project.updated_at = utcnow()
            session.add(project)
            session.flush()
            session.refresh(project)
            return project

    def delete(self, project_id: str) -> bool:
        """Delete a project; its deployments go with it via ON DELETE CASCADE."""
        with self._db.session() as session:
            project = session.get(Project, project_id)
            if project is None:
                return False
            session.delete(project)
            return True
