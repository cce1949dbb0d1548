"""SQL-backed store for the provisioner's infrastructure-state records."""

from __future__ import annotations

from pushdeploy.app.core.services.database.db_session import DbSessionService
from pushdeploy.app.entities.infra_state.table import InfraState
from pushdeploy.infra.k8s.provisioner import InfraStateRecord, InfraStateStore


class SqlInfraStateStore(InfraStateStore):
    def __init__(self, db: DbSessionService) -> None:
        self._db = db

    def get(self, project_slug: str) -> InfraStateRecord | None:
        with self._db.session() as session:
            row = session.get(InfraState, project_slug)
            if row is None:
                return None
            return InfraStateRecord(
                project_slug=row.project_slug,
                namespace=row.namespace,
                image=row.image,
                hosts=list(row.hosts),
                resources=list(row.resources),
                updated_at=row.updated_at,
            )

    def save(self, record: InfraStateRecord) -> None:
        with self._db.session() as session:
            row = session.get(InfraState, record.project_slug)
            if row is None:
                row = InfraState(project_slug=record.project_slug, namespace="", image="")
            row.namespace = record.namespace
            row.image = record.image
            row.hosts = list(record.hosts)
            row.resources = list(record.resources)
            row.updated_at = record.updated_at
            session.add(row)

    def delete(self, project_slug: str) -> None:
        with self._db.session() as session:
            row = session.get(InfraState, project_slug)
            if row is not None:
                session.delete(row)
