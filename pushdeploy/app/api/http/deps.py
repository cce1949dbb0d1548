"""FastAPI dependency providers backed by ``app.state.app_dependencies``."""

from __future__ import annotations

from fastapi import Request

from pushdeploy.app.api.http.app_data import ApplicationDependencies
from pushdeploy.app.core.services.deployments.orchestrator import DeploymentOrchestrator
from pushdeploy.app.core.services.deployments.repository import DeploymentRepository
from pushdeploy.app.core.services.deployments.state_machine import DeploymentStateMachine
from pushdeploy.app.core.services.projects.repository import ProjectRepository
from pushdeploy.app.core.services.projects.service import ProjectService
from pushdeploy.app.core.services.users.service import UserSettingsService


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_deployment_repository(request: Request) -> DeploymentRepository:
    return get_app_dependencies(request).deployments


def get_project_repository(request: Request) -> ProjectRepository:
    return get_app_dependencies(request).projects


def get_state_machine(request: Request) -> DeploymentStateMachine:
    return get_app_dependencies(request).state_machine


def get_orchestrator(request: Request) -> DeploymentOrchestrator:
    return get_app_dependencies(request).orchestrator


def get_project_service(request: Request) -> ProjectService:
    return get_app_dependencies(request).project_service


def get_user_settings_service(request: Request) -> UserSettingsService:
    return get_app_dependencies(request).user_settings
