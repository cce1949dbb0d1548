"""Persistence for deployment records."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import and_, or_, update
from sqlalchemy.sql import ColumnElement
from sqlmodel import col, select

from pushdeploy.app.core.services.database.db_session import DbSessionService
from pushdeploy.app.entities.deployment.table import Deployment, DeploymentStatus


class DeploymentRepository:
    """Thin data-access layer over the ``deployments`` table.

    Status changes go through ``transition`` which is a compare-and-set: the
    UPDATE only matches while the row is still in one of the allowed source
    states, so a cancel racing the orchestrator can never be overwritten.
    """

    def __init__(self, db: DbSessionService) -> None:
        self._db = db

    def get(self, deployment_id: str) -> Deployment | None:
        with self._db.session() as session:
            return session.get(Deployment, deployment_id)

    def add(self, deployment: Deployment) -> Deployment:
        with self._db.session() as session:
            session.add(deployment)
            session.flush()
            session.refresh(deployment)
            return deployment

    def list_for_project(
        self, project_id: str, *, limit: int = 20, cursor: str | None = None
    ) -> tuple[list[Deployment], str | None]:
        """Return newest-first deployments and the cursor for the next page."""
        with self._db.session() as session:
            stmt = select(Deployment).where(Deployment.project_id == project_id)

            if cursor:
                cursor_row = session.get(Deployment, cursor)
                if cursor_row is not None:
                    created_at = col(Deployment.created_at)
                    stmt = stmt.where(
                        or_(
                            created_at < cursor_row.created_at,
                            and_(
                                created_at == cursor_row.created_at,
                                col(Deployment.id) < cursor_row.id,
                            ),
                        )
                    )

            # id breaks ties between rows created in the same instant
            stmt = stmt.order_by(
                col(Deployment.created_at).desc(), col(Deployment.id).desc()
            ).limit(limit + 1)
            items = list(session.exec(stmt).all())

        next_cursor = None
        if len(items) > limit:
            items.pop()
            next_cursor = items[-1].id
        return items, next_cursor

    def list_by_status(self, status: DeploymentStatus) -> list[Deployment]:
        with self._db.session() as session:
            stmt = (
                select(Deployment)
                .where(Deployment.status == status.value)
                .order_by(col(Deployment.created_at))
            )
            return list(session.exec(stmt).all())

    def transition(
        self,
        deployment_id: str,
        allowed_from: Iterable[DeploymentStatus],
        to: DeploymentStatus,
        *,
        conditions: Iterable[ColumnElement[bool]] = (),
        **values: Any,
    ) -> bool:
        """Atomically move a deployment to ``to`` if it is still in ``allowed_from``.

        Any extra column ``values`` are written in the same statement.

        Returns:
            True if the row was updated, False if it was in another state
        """
        stmt = (
            update(Deployment)
            .where(
                col(Deployment.id) == deployment_id,
                col(Deployment.status).in_([s.value for s in allowed_from]),
                *conditions,
            )
            .values(status=to.value, **values)
        )
        with self._db.session() as session:
            result = session.connection().execute(stmt)
            return result.rowcount == 1

    def update_fields(self, deployment_id: str, **values: Any) -> None:
        stmt = update(Deployment).where(col(Deployment.id) == deployment_id).values(**values)
        with self._db.session() as session:
            session.connection().execute(stmt)
