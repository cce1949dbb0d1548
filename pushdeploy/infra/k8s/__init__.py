"""Kubernetes infrastructure layer.

Provides the cluster controller abstraction (kr8s backend), manifest
rendering and the provisioner that reconciles a project's resources.

Example:
    from pushdeploy.infra.k8s import Kr8sController, run_sync

    controller = Kr8sController()
    nodes = run_sync(controller.get_node_metrics())
"""

from .controller import ClusterController, CommandResult, NodeMetrics
from .kr8s_controller import ClusterConnection, Kr8sController, resolve_cluster_connection
from .manifests import DesiredState, ResourceProfile
from .provisioner import (
    InfraStateRecord,
    InfraStateStore,
    InMemoryInfraStateStore,
    InfrastructureProvisioner,
    ProvisionResult,
)
from .utils import run_sync

__all__ = [
    # Controller classes
    "ClusterController",
    "Kr8sController",
    "ClusterConnection",
    "resolve_cluster_connection",
    # Data classes
    "CommandResult",
    "NodeMetrics",
    "DesiredState",
    "ResourceProfile",
    # Provisioning
    "InfrastructureProvisioner",
    "InfraStateRecord",
    "InfraStateStore",
    "InMemoryInfraStateStore",
    "ProvisionResult",
    # Utilities
    "run_sync",
]
