"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from pushdeploy.app.api.http.app_data import ApplicationDependencies, build_dependencies
from pushdeploy.app.api.http.errors import register_exception_handlers
from pushdeploy.app.api.http.routers import (
    deployments,
    github,
    health,
    projects,
    users,
    webhooks,
)
from pushdeploy.app.core.services.database.db_manage import DbManageService
from pushdeploy.app.runtime.config.config_data import ConfigData
from pushdeploy.app.runtime.context import get_config
from pushdeploy.app.runtime.logging_setup import configure_logging


def create_app(
    config: ConfigData | None = None,
    *,
    dependencies: ApplicationDependencies | None = None,
    recover_pending: bool = True,
) -> FastAPI:
    """Build the application.

    Args:
        config: Configuration to use instead of ``get_config()``
        dependencies: Pre-built services (tests inject fakes this way)
        recover_pending: Resubmit pending deployments on startup
    """
    config = config or (dependencies.config if dependencies else get_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(config.logging)
        deps = dependencies or build_dependencies(config)
        DbManageService(deps.database_service).create_all()
        app.state.app_dependencies = deps

        logger.info(f"pushdeploy starting ({config.app.environment})")
        logger.info(f"   Platform domain: {config.app.platform_domain}")
        logger.info(f"   Registry: {config.registry.url}")
        logger.info(f"   Namespace: {config.kubernetes.namespace}")

        if recover_pending:
            await deps.orchestrator.recover_pending()

        yield

        logger.info("pushdeploy shutting down, waiting for running deployments")
        await deps.orchestrator.drain()

    app = FastAPI(
        title="pushdeploy",
        description="Push-to-deploy for Kubernetes",
        version="0.1.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(webhooks.router)
    app.include_router(deployments.router)
    app.include_router(projects.router)
    app.include_router(github.router)
    app.include_router(users.router)
    return app
