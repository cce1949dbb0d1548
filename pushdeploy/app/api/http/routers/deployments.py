"""Deployment history, logs, cancellation and rollback.

Endpoint Summary:
    GET  /api/projects/{id}/deployments - Paginated deployment history
    GET  /api/deployments/{id}          - One deployment with its logs
    GET  /api/deployments/{id}/logs     - Build and deploy logs only
    POST /api/deployments/{id}/cancel   - Cancel a pending or building deployment
    POST /api/deployments/{id}/rollback - Redeploy the image of a live deployment
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pushdeploy.app.api.http.deps import (
    get_deployment_repository,
    get_orchestrator,
    get_project_service,
    get_state_machine,
)
from pushdeploy.app.api.http.schemas.deployments import (
    DeploymentListResponse,
    DeploymentLogsResponse,
    DeploymentResponse,
    DeploymentSummary,
)
from pushdeploy.app.core.exceptions import NotFoundError
from pushdeploy.app.core.services.deployments.orchestrator import DeploymentOrchestrator
from pushdeploy.app.core.services.deployments.repository import DeploymentRepository
from pushdeploy.app.core.services.deployments.state_machine import DeploymentStateMachine
from pushdeploy.app.core.services.projects.service import ProjectService
from pushdeploy.app.entities.deployment.table import Deployment

router = APIRouter(prefix="/api", tags=["deployments"])


def _require(repository: DeploymentRepository, deployment_id: str) -> Deployment:
    deployment = repository.get(deployment_id)
    if deployment is None:
        raise NotFoundError(f"Deployment {deployment_id} not found")
    return deployment


@router.get(
    "/projects/{project_id}/deployments",
    response_model=DeploymentListResponse,
    summary="List deployments of a project, newest first",
)
async def list_deployments(
    project_id: str,
    limit: int = Query(default=20, ge=1, le=100),
    cursor: str | None = Query(default=None),
    projects: ProjectService = Depends(get_project_service),
    repository: DeploymentRepository = Depends(get_deployment_repository),
) -> DeploymentListResponse:
    projects.get(project_id)
    items, next_cursor = repository.list_for_project(project_id, limit=limit, cursor=cursor)
    return DeploymentListResponse(
        items=[DeploymentSummary.model_validate(d) for d in items],
        next_cursor=next_cursor,
    )


@router.get("/deployments/{deployment_id}", response_model=DeploymentResponse)
async def get_deployment(
    deployment_id: str,
    repository: DeploymentRepository = Depends(get_deployment_repository),
) -> DeploymentResponse:
    return DeploymentResponse.model_validate(_require(repository, deployment_id))


@router.get("/deployments/{deployment_id}/logs", response_model=DeploymentLogsResponse)
async def get_deployment_logs(
    deployment_id: str,
    repository: DeploymentRepository = Depends(get_deployment_repository),
) -> DeploymentLogsResponse:
    return DeploymentLogsResponse.model_validate(_require(repository, deployment_id))


@router.post(
    "/deployments/{deployment_id}/cancel",
    response_model=DeploymentResponse,
    responses={400: {"description": "Deployment is already deploying or finished"}},
)
async def cancel_deployment(
    deployment_id: str,
    state_machine: DeploymentStateMachine = Depends(get_state_machine),
) -> DeploymentResponse:
    return DeploymentResponse.model_validate(state_machine.cancel(deployment_id))


@router.post(
    "/deployments/{deployment_id}/rollback",
    response_model=DeploymentResponse,
    status_code=201,
    responses={400: {"description": "Deployment is not live or has no image"}},
)
async def rollback_deployment(
    deployment_id: str,
    state_machine: DeploymentStateMachine = Depends(get_state_machine),
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> DeploymentResponse:
    """Create a new deployment reusing the source's image; the build is skipped."""
    deployment = state_machine.rollback(deployment_id)
    orchestrator.submit(deployment.id)
    return DeploymentResponse.model_validate(deployment)
