"""Unit tests for the infrastructure provisioner against a fake cluster."""

from __future__ import annotations

from dataclasses import replace

import pytest

from pushdeploy.app.core.services.database.db_session import DbSessionService
from pushdeploy.app.core.services.projects.infra_state_store import SqlInfraStateStore
from pushdeploy.infra.k8s.manifests import DesiredState
from pushdeploy.infra.k8s.provisioner import (
    InfraStateRecord,
    InfrastructureProvisioner,
    InMemoryInfraStateStore,
    PlannedChange,
)
from tests.fixtures import FakeClusterController

NAMESPACE = "apps"


@pytest.fixture
def store() -> InMemoryInfraStateStore:
    return InMemoryInfraStateStore()


@pytest.fixture
def provisioner(
    cluster: FakeClusterController, store: InMemoryInfraStateStore
) -> InfrastructureProvisioner:
    return InfrastructureProvisioner(cluster, store, NAMESPACE)


@pytest.fixture
def desired() -> DesiredState:
    return DesiredState(
        project_slug="web-app",
        image="registry.test/web-app:abc1234",
        port=3000,
        subdomain="web-app",
        platform_domain="apps.example.com",
        env_vars={"DEBUG": "1"},
    )


class TestProvision:
    @pytest.mark.asyncio
    async def test_creates_resources_and_records_state(
        self,
        provisioner: InfrastructureProvisioner,
        cluster: FakeClusterController,
        store: InMemoryInfraStateStore,
        desired: DesiredState,
    ) -> None:
        result = await provisioner.provision(desired)

        assert result.success
        assert result.error is None
        assert result.outputs == {
            "deploymentName": "web-app",
            "serviceName": "web-app",
            "ingressName": "web-app",
            "hosts": ["web-app.apps.example.com"],
        }
        assert [call[1] for call in cluster.calls] == [
            "Namespace",
            "Secret",
            "Deployment",
            "Service",
            "Ingress",
        ]

        state = store.get("web-app")
        assert state is not None
        assert state.namespace == NAMESPACE
        assert state.image == desired.image
        assert state.resources == [
            "Namespace/apps",
            "Secret/web-app-env",
            "Deployment/web-app",
            "Service/web-app",
            "Ingress/web-app",
        ]

    @pytest.mark.asyncio
    async def test_second_run_updates_in_place(
        self,
        provisioner: InfrastructureProvisioner,
        cluster: FakeClusterController,
        desired: DesiredState,
    ) -> None:
        """Provisioning is idempotent: a rerun updates the same objects."""
        await provisioner.provision(desired)
        objects_after_first = set(cluster.objects)
        cluster.calls.clear()

        result = await provisioner.provision(replace(desired, image="registry.test/web-app:def5678"))

        assert result.success
        assert set(cluster.objects) == objects_after_first
        assert {action for action, _, _ in cluster.calls} == {"configured"}
        deployment = cluster.objects[("Deployment", NAMESPACE, "web-app")]
        assert (
            deployment["spec"]["template"]["spec"]["containers"][0]["image"]
            == "registry.test/web-app:def5678"
        )

    @pytest.mark.asyncio
    async def test_removes_stale_env_secret(
        self,
        provisioner: InfrastructureProvisioner,
        cluster: FakeClusterController,
        desired: DesiredState,
    ) -> None:
        await provisioner.provision(desired)
        assert ("Secret", NAMESPACE, "web-app-env") in cluster.objects

        result = await provisioner.provision(replace(desired, env_vars={}))

        assert result.success
        assert ("Secret", NAMESPACE, "web-app-env") not in cluster.objects

    @pytest.mark.asyncio
    async def test_first_failure_aborts(
        self,
        provisioner: InfrastructureProvisioner,
        cluster: FakeClusterController,
        store: InMemoryInfraStateStore,
        desired: DesiredState,
    ) -> None:
        cluster.fail_apply.add("Deployment")

        result = await provisioner.provision(desired)

        assert not result.success
        assert result.error == "Failed to apply Deployment web-app: admission webhook denied"
        assert cluster.kinds() == {"Namespace", "Secret"}
        assert store.get("web-app") is None


class TestTeardown:
    @pytest.mark.asyncio
    async def test_deletes_project_objects_but_not_namespace(
        self,
        provisioner: InfrastructureProvisioner,
        cluster: FakeClusterController,
        store: InMemoryInfraStateStore,
        desired: DesiredState,
    ) -> None:
        await provisioner.provision(desired)

        result = await provisioner.teardown("web-app")

        assert result.success
        assert cluster.kinds() == {"Namespace"}
        assert store.get("web-app") is None

    @pytest.mark.asyncio
    async def test_missing_objects_are_fine(
        self, provisioner: InfrastructureProvisioner
    ) -> None:
        result = await provisioner.teardown("never-deployed")
        assert result.success

    @pytest.mark.asyncio
    async def test_failure_keeps_state(
        self,
        provisioner: InfrastructureProvisioner,
        cluster: FakeClusterController,
        store: InMemoryInfraStateStore,
        desired: DesiredState,
    ) -> None:
        await provisioner.provision(desired)
        cluster.fail_delete.add("Service")

        result = await provisioner.teardown("web-app")

        assert not result.success
        assert "Failed to delete Service web-app" in (result.error or "")
        assert store.get("web-app") is not None
        # The remaining kinds are still attempted
        assert ("Deployment", NAMESPACE, "web-app") not in cluster.objects


class TestPreview:
    @pytest.mark.asyncio
    async def test_preview_before_and_after(
        self,
        provisioner: InfrastructureProvisioner,
        cluster: FakeClusterController,
        desired: DesiredState,
    ) -> None:
        before = await provisioner.preview(desired)
        assert {c.action for c in before} == {"create"}
        assert cluster.objects == {}

        await provisioner.provision(desired)
        after = await provisioner.preview(replace(desired, env_vars={}))

        assert PlannedChange("Deployment", "web-app", "update") in after
        assert PlannedChange("Secret", "web-app-env", "delete") in after


class TestSqlInfraStateStore:
    def test_save_update_and_delete(self, db: DbSessionService) -> None:
        store = SqlInfraStateStore(db)
        store.save(
            InfraStateRecord(
                project_slug="web-app",
                namespace="apps",
                image="registry.test/web-app:1",
                hosts=["web-app.apps.example.com"],
                resources=["Deployment/web-app"],
            )
        )
        store.save(
            InfraStateRecord(
                project_slug="web-app",
                namespace="apps",
                image="registry.test/web-app:2",
                hosts=["web-app.apps.example.com", "www.acme.io"],
            )
        )

        record = store.get("web-app")
        assert record is not None
        assert record.image == "registry.test/web-app:2"
        assert record.hosts == ["web-app.apps.example.com", "www.acme.io"]
        assert record.resources == []

        store.delete("web-app")
        assert store.get("web-app") is None
        store.delete("web-app")
