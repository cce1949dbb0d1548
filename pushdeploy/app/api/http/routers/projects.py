"""Project endpoints needed by the deployment pipeline.

Endpoint Summary:
    POST   /api/projects              - Create a project (returns the webhook secret once)
    GET    /api/projects?user_id=     - List a user's projects
    GET    /api/projects/{id}         - Project details
    PATCH  /api/projects/{id}         - Change settings (slug and subdomain are fixed)
    POST   /api/projects/{id}/deploy  - Deploy the head of the tracked branch
    DELETE /api/projects/{id}         - Tear down and delete
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from pushdeploy.app.api.http.deps import get_orchestrator, get_project_service
from pushdeploy.app.api.http.schemas.deployments import DeploymentResponse
from pushdeploy.app.api.http.schemas.projects import (
    ProjectCreatedResponse,
    ProjectResponse,
)
from pushdeploy.app.core.services.deployments.orchestrator import DeploymentOrchestrator
from pushdeploy.app.core.services.projects.models import ProjectCreate, ProjectUpdate
from pushdeploy.app.core.services.projects.service import ProjectService

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.post("", response_model=ProjectCreatedResponse, status_code=201)
async def create_project(
    data: ProjectCreate,
    user_id: str = Query(description="Owner of the new project"),
    service: ProjectService = Depends(get_project_service),
) -> ProjectCreatedResponse:
    project = await service.create(user_id, data)
    return ProjectCreatedResponse.model_validate(project)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    user_id: str = Query(),
    service: ProjectService = Depends(get_project_service),
) -> list[ProjectResponse]:
    return [ProjectResponse.model_validate(p) for p in service.list_for_user(user_id)]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return ProjectResponse.model_validate(service.get(project_id))


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    changes: ProjectUpdate,
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return ProjectResponse.model_validate(service.update(project_id, changes))


@router.post("/{project_id}/deploy", response_model=DeploymentResponse, status_code=201)
async def trigger_deploy(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> DeploymentResponse:
    deployment = await service.trigger_deploy(project_id)
    orchestrator.submit(deployment.id)
    return DeploymentResponse.model_validate(deployment)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> Response:
    await service.delete(project_id)
    return Response(status_code=204)
