"""Manifest rendering for a project's workload.

Every function returns a plain dict ready for ``ClusterController.apply``.
Optional fields that are not wanted are rendered as explicit ``None`` so a
JSON merge patch removes values left over from an earlier apply.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .controller import Manifest

MANAGED_BY = "pushdeploy"
CONTAINER_NAME = "app"
PORT_NAME = "http"
SERVICE_PORT = 80
AFFINITY_WEIGHT = 100
HOSTNAME_LABEL = "kubernetes.io/hostname"


@dataclass(frozen=True)
class ResourceProfile:
    cpu_request: str = "100m"
    cpu_limit: str = "500m"
    memory_request: str = "128Mi"
    memory_limit: str = "512Mi"


@dataclass(frozen=True)
class DesiredState:
    """Everything needed to reconcile one project's cluster resources."""

    project_slug: str
    image: str
    port: int
    subdomain: str
    platform_domain: str
    ingress_class: str = "nginx"
    replicas: int = 1
    resources: ResourceProfile = field(default_factory=ResourceProfile)
    node_affinity: str | None = None
    custom_domain: str | None = None
    env_vars: dict[str, str] = field(default_factory=dict)

    @property
    def hosts(self) -> list[str]:
        hosts = [f"{self.subdomain}.{self.platform_domain}"]
        if self.custom_domain:
            hosts.append(self.custom_domain)
        return hosts


def labels_for(slug: str) -> dict[str, str]:
    return {"app": slug, "managed-by": MANAGED_BY}


def env_secret_name(slug: str) -> str:
    return f"{slug}-env"


def namespace_manifest(namespace: str) -> Manifest:
    return {
        "apiVersion": "v1",
        "kind": "Namespace",
        "metadata": {"name": namespace, "labels": {"managed-by": MANAGED_BY}},
    }


def secret_manifest(desired: DesiredState, namespace: str) -> Manifest:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "type": "Opaque",
        "metadata": {
            "name": env_secret_name(desired.project_slug),
            "namespace": namespace,
            "labels": labels_for(desired.project_slug),
        },
        # Clearing data drops keys removed since the last apply
        "data": None,
        "stringData": dict(desired.env_vars),
    }


def _affinity(node: str | None) -> dict | None:
    if not node:
        return None
    return {
        "nodeAffinity": {
            "preferredDuringSchedulingIgnoredDuringExecution": [
                {
                    "weight": AFFINITY_WEIGHT,
                    "preference": {
                        "matchExpressions": [
                            {"key": HOSTNAME_LABEL, "operator": "In", "values": [node]}
                        ]
                    },
                }
            ]
        }
    }


def _probe(initial_delay: int, period: int) -> dict:
    return {
        "httpGet": {"path": "/", "port": PORT_NAME},
        "initialDelaySeconds": initial_delay,
        "periodSeconds": period,
    }


def deployment_manifest(desired: DesiredState, namespace: str) -> Manifest:
    slug = desired.project_slug
    labels = labels_for(slug)
    env_from = (
        [{"secretRef": {"name": env_secret_name(slug)}}] if desired.env_vars else None
    )

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": slug, "namespace": namespace, "labels": labels},
        "spec": {
            "replicas": desired.replicas,
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "affinity": _affinity(desired.node_affinity),
                    "containers": [
                        {
                            "name": CONTAINER_NAME,
                            "image": desired.image,
                            "ports": [
                                {"containerPort": desired.port, "name": PORT_NAME}
                            ],
                            "envFrom": env_from,
                            "resources": {
                                "requests": {
                                    "cpu": desired.resources.cpu_request,
                                    "memory": desired.resources.memory_request,
                                },
                                "limits": {
                                    "cpu": desired.resources.cpu_limit,
                                    "memory": desired.resources.memory_limit,
                                },
                            },
                            "livenessProbe": _probe(30, 10),
                            "readinessProbe": _probe(5, 5),
                        }
                    ],
                },
            },
        },
    }


def service_manifest(desired: DesiredState, namespace: str) -> Manifest:
    slug = desired.project_slug
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": slug, "namespace": namespace, "labels": labels_for(slug)},
        "spec": {
            "type": "ClusterIP",
            "selector": labels_for(slug),
            "ports": [
                {"name": PORT_NAME, "port": SERVICE_PORT, "targetPort": desired.port}
            ],
        },
    }


def ingress_manifest(desired: DesiredState, namespace: str) -> Manifest:
    slug = desired.project_slug
    rules = [
        {
            "host": host,
            "http": {
                "paths": [
                    {
                        "path": "/",
                        "pathType": "Prefix",
                        "backend": {
                            "service": {"name": slug, "port": {"number": SERVICE_PORT}}
                        },
                    }
                ]
            },
        }
        for host in desired.hosts
    ]
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {
            "name": slug,
            "namespace": namespace,
            "labels": labels_for(slug),
            "annotations": {"kubernetes.io/ingress.class": desired.ingress_class},
        },
        "spec": {"ingressClassName": desired.ingress_class, "rules": rules},
    }


def render_manifests(desired: DesiredState, namespace: str) -> list[Manifest]:
    """All manifests in apply order; later objects reference earlier ones."""
    manifests = [namespace_manifest(namespace)]
    if desired.env_vars:
        manifests.append(secret_manifest(desired, namespace))
    manifests.extend(
        [
            deployment_manifest(desired, namespace),
            service_manifest(desired, namespace),
            ingress_manifest(desired, namespace),
        ]
    )
    return manifests
