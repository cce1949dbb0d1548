"""API schema definitions for HTTP endpoints.

Modules:
    health: Health check response models
    deployments: Deployment responses (camelCase)
    projects: Project and repository responses
    users: User settings and token verification responses
"""

from pushdeploy.app.api.http.schemas.deployments import (
    DeploymentListResponse,
    DeploymentLogsResponse,
    DeploymentResponse,
    DeploymentSummary,
)
from pushdeploy.app.api.http.schemas.health import (
    AllServicesHealth,
    ClusterHealth,
    DatabaseHealth,
    LivenessResponse,
    OverallStatus,
    ReadinessResponse,
    ServiceHealthBase,
    ServiceStatus,
)
from pushdeploy.app.api.http.schemas.projects import (
    ProjectCreatedResponse,
    ProjectResponse,
    RepositoryResponse,
)
from pushdeploy.app.api.http.schemas.users import (
    TokenVerificationResponse,
    UserSettingsResponse,
    ZoneResponse,
)

__all__ = [
    # Health schemas
    "ServiceStatus",
    "OverallStatus",
    "ServiceHealthBase",
    "DatabaseHealth",
    "ClusterHealth",
    "AllServicesHealth",
    "ReadinessResponse",
    "LivenessResponse",
    # Deployment schemas
    "DeploymentResponse",
    "DeploymentSummary",
    "DeploymentListResponse",
    "DeploymentLogsResponse",
    # Project schemas
    "ProjectResponse",
    "ProjectCreatedResponse",
    "RepositoryResponse",
    # User schemas
    "UserSettingsResponse",
    "TokenVerificationResponse",
    "ZoneResponse",
]
