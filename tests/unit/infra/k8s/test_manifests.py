"""Unit tests for manifest rendering."""

from __future__ import annotations

from dataclasses import replace

import pytest

from pushdeploy.infra.k8s.manifests import (
    DesiredState,
    ResourceProfile,
    deployment_manifest,
    ingress_manifest,
    render_manifests,
    secret_manifest,
    service_manifest,
)

NAMESPACE = "apps"


@pytest.fixture
def desired() -> DesiredState:
    return DesiredState(
        project_slug="web-app",
        image="registry.test/web-app:abc1234",
        port=8080,
        subdomain="web-app",
        platform_domain="apps.example.com",
        replicas=2,
        resources=ResourceProfile(cpu_request="200m", memory_limit="1Gi"),
    )


class TestRenderManifests:
    def test_order_without_env_vars(self, desired: DesiredState) -> None:
        kinds = [m["kind"] for m in render_manifests(desired, NAMESPACE)]
        assert kinds == ["Namespace", "Deployment", "Service", "Ingress"]

    def test_order_with_env_vars(self, desired: DesiredState) -> None:
        desired = replace(desired, env_vars={"DATABASE_URL": "postgres://db"})
        kinds = [m["kind"] for m in render_manifests(desired, NAMESPACE)]
        assert kinds == ["Namespace", "Secret", "Deployment", "Service", "Ingress"]

    def test_labels(self, desired: DesiredState) -> None:
        for manifest in render_manifests(desired, NAMESPACE)[1:]:
            assert manifest["metadata"]["labels"] == {
                "app": "web-app",
                "managed-by": "pushdeploy",
            }
            assert manifest["metadata"]["namespace"] == NAMESPACE


class TestDeploymentManifest:
    def test_container(self, desired: DesiredState) -> None:
        spec = deployment_manifest(desired, NAMESPACE)["spec"]
        container = spec["template"]["spec"]["containers"][0]

        assert spec["replicas"] == 2
        assert container["name"] == "app"
        assert container["image"] == "registry.test/web-app:abc1234"
        assert container["ports"] == [{"containerPort": 8080, "name": "http"}]
        assert container["resources"] == {
            "requests": {"cpu": "200m", "memory": "128Mi"},
            "limits": {"cpu": "500m", "memory": "1Gi"},
        }

    def test_probes(self, desired: DesiredState) -> None:
        container = deployment_manifest(desired, NAMESPACE)["spec"]["template"]["spec"][
            "containers"
        ][0]
        liveness = container["livenessProbe"]
        readiness = container["readinessProbe"]

        assert liveness["httpGet"] == {"path": "/", "port": "http"}
        assert (liveness["initialDelaySeconds"], liveness["periodSeconds"]) == (30, 10)
        assert (readiness["initialDelaySeconds"], readiness["periodSeconds"]) == (5, 5)

    def test_absent_optionals_are_explicit_nulls(self, desired: DesiredState) -> None:
        """Nulls make a merge patch drop affinity and envFrom from earlier applies."""
        pod = deployment_manifest(desired, NAMESPACE)["spec"]["template"]["spec"]
        assert "affinity" in pod and pod["affinity"] is None
        assert pod["containers"][0]["envFrom"] is None

    def test_soft_node_affinity(self, desired: DesiredState) -> None:
        desired = replace(desired, node_affinity="worker-2")
        affinity = deployment_manifest(desired, NAMESPACE)["spec"]["template"]["spec"][
            "affinity"
        ]
        term = affinity["nodeAffinity"]["preferredDuringSchedulingIgnoredDuringExecution"][0]

        assert term["weight"] == 100
        assert term["preference"]["matchExpressions"] == [
            {"key": "kubernetes.io/hostname", "operator": "In", "values": ["worker-2"]}
        ]

    def test_env_from_secret(self, desired: DesiredState) -> None:
        desired = replace(desired, env_vars={"DEBUG": "1"})
        container = deployment_manifest(desired, NAMESPACE)["spec"]["template"]["spec"][
            "containers"
        ][0]
        assert container["envFrom"] == [{"secretRef": {"name": "web-app-env"}}]


class TestSecretManifest:
    def test_string_data_replaces_data(self, desired: DesiredState) -> None:
        desired = replace(desired, env_vars={"DEBUG": "1"})
        secret = secret_manifest(desired, NAMESPACE)

        assert secret["metadata"]["name"] == "web-app-env"
        assert secret["stringData"] == {"DEBUG": "1"}
        assert secret["data"] is None


class TestServiceAndIngress:
    def test_service(self, desired: DesiredState) -> None:
        spec = service_manifest(desired, NAMESPACE)["spec"]
        assert spec["type"] == "ClusterIP"
        assert spec["ports"] == [{"name": "http", "port": 80, "targetPort": 8080}]

    def test_ingress_platform_host(self, desired: DesiredState) -> None:
        ingress = ingress_manifest(desired, NAMESPACE)

        assert ingress["metadata"]["annotations"] == {"kubernetes.io/ingress.class": "nginx"}
        assert ingress["spec"]["ingressClassName"] == "nginx"
        rules = ingress["spec"]["rules"]
        assert [r["host"] for r in rules] == ["web-app.apps.example.com"]
        path = rules[0]["http"]["paths"][0]
        assert path["path"] == "/"
        assert path["pathType"] == "Prefix"
        assert path["backend"] == {"service": {"name": "web-app", "port": {"number": 80}}}

    def test_ingress_custom_domain(self, desired: DesiredState) -> None:
        desired = replace(desired, custom_domain="www.acme.io")
        hosts = [r["host"] for r in ingress_manifest(desired, NAMESPACE)["spec"]["rules"]]
        assert hosts == ["web-app.apps.example.com", "www.acme.io"]
