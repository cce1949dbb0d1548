"""Kr8s-based implementation of ClusterController.

Uses the kr8s library for native async Kubernetes operations.
"""

from __future__ import annotations

import os
from collections import Counter
from dataclasses import dataclass
from typing import Any

import kr8s
from kr8s.asyncio.objects import (
    APIObject,
    Deployment,
    Ingress,
    Namespace,
    Node,
    Pod,
    Secret,
    Service,
    new_class,
)
from loguru import logger

from pushdeploy.app.runtime.config.config_data import KubernetesSettings

from .controller import ClusterController, CommandResult, Manifest, NodeMetrics
from .quantities import parse_resource_value

OBJECT_CLASSES: dict[str, type[APIObject]] = {
    "Namespace": Namespace,
    "Secret": Secret,
    "Deployment": Deployment,
    "Service": Service,
    "Ingress": Ingress,
}

NodeUsage = new_class(
    "NodeMetrics",
    version="metrics.k8s.io/v1beta1",
    namespaced=False,
    plural="nodes",
)


@dataclass(frozen=True)
class ClusterConnection:
    """How to reach the cluster, resolved once at process start."""

    kubeconfig: str | None = None
    context: str | None = None
    serviceaccount: str | None = None
    source: str = "default"


def resolve_cluster_connection(settings: KubernetesSettings) -> ClusterConnection:
    """Pick the cluster credentials in order of precedence.

    1. ``kubernetes.kubeconfig`` from config.yaml
    2. ``KUBECONFIG`` environment variable
    3. The pod's service account when running inside a cluster
    4. The default kubeconfig (``~/.kube/config``)
    """
    if settings.kubeconfig:
        connection = ClusterConnection(
            kubeconfig=settings.kubeconfig, context=settings.context, source="config"
        )
    elif os.getenv("KUBECONFIG"):
        connection = ClusterConnection(
            kubeconfig=os.environ["KUBECONFIG"], context=settings.context, source="env"
        )
    elif os.getenv("KUBERNETES_SERVICE_HOST"):
        connection = ClusterConnection(
            serviceaccount="/var/run/secrets/kubernetes.io/serviceaccount",
            source="in-cluster",
        )
    else:
        connection = ClusterConnection(context=settings.context)

    logger.info(f"Using {connection.source} cluster configuration")
    return connection


class Kr8sController(ClusterController):
    """Cluster controller using the kr8s library.

    Note: The kr8s API client is NOT cached because it's tied to the event loop
    that was running when created. CLI commands go through run_sync() which
    creates a fresh loop per call.
    """

    def __init__(self, connection: ClusterConnection | None = None) -> None:
        self._connection = connection or ClusterConnection()

    async def _get_api(self) -> Any:  # Returns kr8s._api.Api
        conn = self._connection
        return await kr8s.asyncio.api(
            kubeconfig=conn.kubeconfig,
            serviceaccount=conn.serviceaccount,
            context=conn.context,
        )

    @staticmethod
    def _object_class(kind: str) -> type[APIObject]:
        try:
            return OBJECT_CLASSES[kind]
        except KeyError:
            raise ValueError(f"Unsupported resource kind: {kind}") from None

    # =========================================================================
    # Cluster Context
    # =========================================================================

    async def get_current_context(self) -> str:
        try:
            api = await self._get_api()
            return api.auth.active_context or "unknown"
        except Exception:
            return "unknown"

    async def is_reachable(self) -> bool:
        try:
            api = await self._get_api()
            await api.version()
            return True
        except Exception as e:
            logger.warning(f"Cluster is not reachable: {e}")
            return False

    # =========================================================================
    # Objects
    # =========================================================================

    async def apply(self, manifest: Manifest) -> CommandResult:
        kind = manifest["kind"]
        name = manifest["metadata"]["name"]
        try:
            api = await self._get_api()
            obj = self._object_class(kind)(manifest, api=api)
            if await obj.exists():
                await obj.patch(manifest, type="merge")
                return CommandResult(success=True, stdout=f"{kind}/{name} configured")
            await obj.create()
            return CommandResult(success=True, stdout=f"{kind}/{name} created")
        except kr8s.ServerError as e:
            detail = e.response.text if e.response is not None else str(e)
            return CommandResult(success=False, stderr=detail, returncode=1)
        except Exception as e:
            return CommandResult(success=False, stderr=str(e), returncode=1)

    async def exists(self, kind: str, name: str, namespace: str | None = None) -> bool:
        try:
            api = await self._get_api()
            await self._object_class(kind).get(name, namespace=namespace, api=api)
            return True
        except kr8s.NotFoundError:
            return False

    async def delete(
        self, kind: str, name: str, namespace: str | None = None
    ) -> CommandResult:
        try:
            api = await self._get_api()
            obj = await self._object_class(kind).get(name, namespace=namespace, api=api)
            await obj.delete()
            return CommandResult(success=True, stdout=f"{kind}/{name} deleted")
        except kr8s.NotFoundError:
            return CommandResult(success=True, stdout=f"{kind}/{name} not found")
        except Exception as e:
            return CommandResult(success=False, stderr=str(e), returncode=1)

    # =========================================================================
    # Metrics
    # =========================================================================

    async def get_node_metrics(self) -> list[NodeMetrics]:
        api = await self._get_api()

        usage: dict[str, dict[str, str]] = {}
        try:
            async for item in NodeUsage.list(api=api):
                usage[item.name] = item.raw.get("usage", {})
        except Exception as e:
            logger.warning(f"Failed to get node metrics from metrics-server: {e}")

        running = Counter[str]()
        async for pod in Pod.list(
            namespace=kr8s.ALL, field_selector="status.phase=Running", api=api
        ):
            node_name = pod.raw.get("spec", {}).get("nodeName")
            if node_name:
                running[node_name] += 1

        metrics: list[NodeMetrics] = []
        async for node in Node.list(api=api):
            status = node.raw.get("status", {})
            capacity = status.get("capacity", {})
            allocatable = status.get("allocatable", {})
            ready = any(
                c.get("type") == "Ready" and c.get("status") == "True"
                for c in status.get("conditions", [])
            )
            node_usage = usage.get(node.name)

            metrics.append(
                NodeMetrics(
                    name=node.name,
                    ready=ready,
                    cpu_capacity=parse_resource_value(capacity.get("cpu", "0")),
                    memory_capacity=parse_resource_value(capacity.get("memory", "0")),
                    cpu_allocatable=parse_resource_value(allocatable.get("cpu", "0")),
                    memory_allocatable=parse_resource_value(
                        allocatable.get("memory", "0")
                    ),
                    cpu_usage=(
                        parse_resource_value(node_usage.get("cpu", "0"))
                        if node_usage
                        else None
                    ),
                    memory_usage=(
                        parse_resource_value(node_usage.get("memory", "0"))
                        if node_usage
                        else None
                    ),
                    pod_count=running[node.name],
                )
            )
        return metrics
