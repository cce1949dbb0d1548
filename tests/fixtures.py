"""Shared fixtures: a file-backed SQLite database, a fake cluster and mocked
external services wired through ``build_dependencies``."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest

from pushdeploy.app.api.http.app_data import ApplicationDependencies, build_dependencies
from pushdeploy.app.core.services.database.db_manage import DbManageService
from pushdeploy.app.core.services.database.db_session import DbSessionService
from pushdeploy.app.entities.project.table import Project
from pushdeploy.app.entities.user.table import User
from pushdeploy.app.runtime.config.config_data import (
    AppSettings,
    BuilderSettings,
    ConfigData,
    DatabaseSettings,
    RegistrySettings,
)
from pushdeploy.builder.image_builder import BuildResult, ImageBuilder
from pushdeploy.infra.cloudflare.dns import DnsPublisher, DnsRecord
from pushdeploy.infra.k8s.controller import (
    ClusterController,
    CommandResult,
    Manifest,
    NodeMetrics,
)

__all__ = [
    "FakeClusterController",
    "app_config",
    "cluster",
    "db",
    "deps",
    "dns_publisher",
    "github_client",
    "github_factory",
    "image_builder",
    "project",
    "user",
]

BUILT_IMAGE = "registry.test/web-app:abc1234"


class FakeClusterController(ClusterController):
    """In-memory cluster keyed by (kind, namespace, name)."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str | None, str], Manifest] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.fail_apply: set[str] = set()
        self.fail_delete: set[str] = set()
        self.nodes: list[NodeMetrics] = []

    @staticmethod
    def _key(kind: str, name: str, namespace: str | None) -> tuple[str, str | None, str]:
        return (kind, None if kind == "Namespace" else namespace, name)

    async def get_current_context(self) -> str:
        return "test-cluster"

    async def is_reachable(self) -> bool:
        return True

    async def apply(self, manifest: Manifest) -> CommandResult:
        kind = manifest["kind"]
        name = manifest["metadata"]["name"]
        if kind in self.fail_apply:
            self.calls.append(("apply-failed", kind, name))
            return CommandResult(success=False, stderr="admission webhook denied", returncode=1)

        key = self._key(kind, name, manifest["metadata"].get("namespace"))
        action = "configured" if key in self.objects else "created"
        self.objects[key] = manifest
        self.calls.append((action, kind, name))
        return CommandResult(success=True, stdout=f"{kind.lower()}/{name} {action}")

    async def exists(self, kind: str, name: str, namespace: str | None = None) -> bool:
        return self._key(kind, name, namespace) in self.objects

    async def delete(
        self, kind: str, name: str, namespace: str | None = None
    ) -> CommandResult:
        if kind in self.fail_delete:
            self.calls.append(("delete-failed", kind, name))
            return CommandResult(success=False, stderr="forbidden", returncode=1)
        removed = self.objects.pop(self._key(kind, name, namespace), None)
        self.calls.append(("deleted" if removed else "absent", kind, name))
        return CommandResult(success=True, stdout=f"{kind.lower()}/{name} deleted")

    async def get_node_metrics(self) -> list[NodeMetrics]:
        return list(self.nodes)

    def kinds(self) -> set[str]:
        return {kind for kind, _, _ in self.objects}


@pytest.fixture
def app_config(tmp_path) -> ConfigData:
    """Configuration pointing the database and build directories at tmp_path.

    A file-backed SQLite database is used because every connection to
    ``:memory:`` would see its own empty database.
    """
    return ConfigData(
        app=AppSettings(
            environment="test",
            public_url="https://deploy.example.com",
            platform_domain="apps.example.com",
            ingress_ip="203.0.113.10",
        ),
        database=DatabaseSettings(url=f"sqlite:///{tmp_path / 'pushdeploy.db'}"),
        registry=RegistrySettings(url="registry.test"),
        builder=BuilderSettings(work_dir=str(tmp_path / "builds")),
    )


@pytest.fixture
def db(app_config: ConfigData) -> Iterator[DbSessionService]:
    service = DbSessionService(app_config.database.url)
    DbManageService(service).create_all()
    yield service
    service.engine.dispose()


@pytest.fixture
def cluster() -> FakeClusterController:
    return FakeClusterController()


@pytest.fixture
def github_client() -> MagicMock:
    """A GitHub client mock that also works as its own context manager."""
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = None
    client.create_webhook.return_value = 4242
    client.get_latest_commit.return_value = MagicMock(
        sha="abc1234def5678", message="Fix the login page"
    )
    return client


@pytest.fixture
def github_factory(github_client: MagicMock) -> MagicMock:
    return MagicMock(return_value=github_client)


@pytest.fixture
def dns_publisher() -> MagicMock:
    dns = MagicMock(spec=DnsPublisher)
    dns.publish = AsyncMock(
        side_effect=lambda token, zone, hostname, address: DnsRecord(
            id="rec-1", type="A", name=hostname, content=address
        )
    )
    dns.remove = AsyncMock(return_value=1)
    return dns


@pytest.fixture
def image_builder() -> MagicMock:
    builder = MagicMock(spec=ImageBuilder)
    builder.build.return_value = BuildResult(
        success=True,
        image_tag=BUILT_IMAGE,
        logs="=== Docker Build ===\nSuccessfully built\n\n=== Docker Push ===\npushed",
    )
    return builder


@pytest.fixture
def deps(
    app_config: ConfigData,
    db: DbSessionService,
    cluster: FakeClusterController,
    github_factory: MagicMock,
    dns_publisher: MagicMock,
    image_builder: MagicMock,
) -> ApplicationDependencies:
    return build_dependencies(
        app_config,
        database_service=db,
        cluster_controller=cluster,
        github_factory=github_factory,
        dns_publisher=dns_publisher,
        image_builder=image_builder,
    )


@pytest.fixture
def user(deps: ApplicationDependencies) -> User:
    return deps.users.add(
        User(
            name="Ada Lovelace",
            email="ada@example.com",
            github_username="ada",
            github_access_token="gho_test_token",
        )
    )


@pytest.fixture
def project(deps: ApplicationDependencies, user: User) -> Project:
    return deps.projects.add(
        Project(
            name="Web App",
            slug="web-app",
            subdomain="web-app",
            repo_full_name="acme/web",
            branch="main",
            port=8080,
            webhook_secret="webhook-secret",
            user_id=user.id,
        )
    )
