"""Health check endpoints.

Endpoint Summary:
    GET /health         - Liveness probe (app is running)
    GET /health/ready   - Readiness probe (database and cluster reachable)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse

from pushdeploy.app.api.http.app_data import ApplicationDependencies
from pushdeploy.app.api.http.schemas.health import (
    LivenessResponse,
    OverallStatus,
    ReadinessResponse,
)
from pushdeploy.app.core.services.health_service import HealthCheckService

router = APIRouter(prefix="/health", tags=["health"])


def get_health_service(request: Request) -> HealthCheckService:
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return HealthCheckService(app_deps, app_deps.config)


@router.get(
    "",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Basic health check - returns 200 if the application process is running.",
)
async def health() -> LivenessResponse:
    return LivenessResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All services are ready"},
        503: {
            "description": "One or more services are not ready",
            "model": ReadinessResponse,
        },
    },
    summary="Readiness probe",
)
async def readiness(
    health_service: HealthCheckService = Depends(get_health_service),
) -> ReadinessResponse | JSONResponse:
    """Returns 200 when the database and the cluster API answer, 503 otherwise."""
    result = await health_service.check_all()

    if result.status == OverallStatus.NOT_READY:
        return JSONResponse(status_code=503, content=result.model_dump(mode="json"))

    return result
