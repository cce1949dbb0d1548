"""Core services exports."""

# Database Service
from .database.db_session import DbSessionService

# Deployment Services
from .deployments.orchestrator import DeploymentOrchestrator
from .deployments.repository import DeploymentRepository
from .deployments.state_machine import DeploymentStateMachine

# Project Services
from .projects.repository import ProjectRepository
from .projects.service import ProjectService

# User Services
from .users.repository import UserRepository

__all__ = [
    "DbSessionService",
    "DeploymentOrchestrator",
    "DeploymentRepository",
    "DeploymentStateMachine",
    "ProjectRepository",
    "ProjectService",
    "UserRepository",
]
