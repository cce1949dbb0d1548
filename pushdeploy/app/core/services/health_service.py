"""Health checks for the service's dependencies.

Keeps the check logic out of the HTTP layer so the CLI can reuse it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from pushdeploy.app.api.http.schemas.health import (
    AllServicesHealth,
    ClusterHealth,
    DatabaseHealth,
    OverallStatus,
    ReadinessResponse,
    ServiceStatus,
)

if TYPE_CHECKING:
    from pushdeploy.app.api.http.app_data import ApplicationDependencies
    from pushdeploy.app.runtime.config.config_data import ConfigData


class HealthCheckService:
    """Checks the database and the cluster API.

    Example:
        ```python
        health_service = HealthCheckService(app_deps, config)
        result = await health_service.check_all()
        ```
    """

    def __init__(self, app_deps: ApplicationDependencies, config: ConfigData) -> None:
        self._app_deps = app_deps
        self._config = config

    async def check_all(self) -> ReadinessResponse:
        database = await self.check_database()
        cluster = await self.check_cluster()

        ready = (
            database.status == ServiceStatus.HEALTHY.value
            and cluster.status == ServiceStatus.HEALTHY.value
        )
        return ReadinessResponse(
            status=OverallStatus.READY if ready else OverallStatus.NOT_READY,
            environment=self._config.app.environment,
            checks=AllServicesHealth(database=database, cluster=cluster),
        )

    async def check_database(self) -> DatabaseHealth:
        db_type = "sqlite" if self._config.database.url.startswith("sqlite") else "postgresql"
        if self._app_deps.database_service.health_check():
            return DatabaseHealth(status=ServiceStatus.HEALTHY, type=db_type)
        return DatabaseHealth(
            status=ServiceStatus.UNHEALTHY, type=db_type, error="Database unreachable"
        )

    async def check_cluster(self) -> ClusterHealth:
        controller = self._app_deps.cluster_controller
        namespace = self._config.kubernetes.namespace
        try:
            reachable = await controller.is_reachable()
            context = await controller.get_current_context()
        except Exception as e:
            logger.warning(f"Cluster health check failed: {e}")
            return ClusterHealth(
                status=ServiceStatus.UNHEALTHY, namespace=namespace, error=str(e)
            )

        if not reachable:
            return ClusterHealth(
                status=ServiceStatus.UNHEALTHY,
                namespace=namespace,
                context=context,
                error="Cluster API unreachable",
            )
        return ClusterHealth(status=ServiceStatus.HEALTHY, namespace=namespace, context=context)
