"""Declarative reconciliation of a project's cluster resources.

The provisioner applies namespace, env secret, workload, service and ingress
in that order with create-or-update semantics, so running it repeatedly with
the same desired state converges on the same objects. Teardown deletes the
project's objects by name and leaves the shared namespace alone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from .controller import ClusterController, CommandResult, Manifest
from .manifests import DesiredState, env_secret_name, render_manifests

# Teardown order is the reverse of the apply order; the namespace is shared
TEARDOWN_KINDS = ("Ingress", "Service", "Deployment", "Secret")


@dataclass
class InfraStateRecord:
    """What the provisioner last applied for a project."""

    project_slug: str
    namespace: str
    image: str
    hosts: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class ProvisionResult:
    success: bool
    outputs: dict[str, Any] = field(default_factory=dict)
    logs: str = ""
    error: str | None = None


@dataclass(frozen=True)
class PlannedChange:
    kind: str
    name: str
    action: str  # "create", "update" or "delete"


class InfraStateStore(ABC):
    """Persistence for ``InfraStateRecord``s, keyed by project slug."""

    @abstractmethod
    def get(self, project_slug: str) -> InfraStateRecord | None: ...

    @abstractmethod
    def save(self, record: InfraStateRecord) -> None: ...

    @abstractmethod
    def delete(self, project_slug: str) -> None: ...


class InMemoryInfraStateStore(InfraStateStore):
    """Process-local store used by the CLI preview and by tests."""

    def __init__(self) -> None:
        self._records: dict[str, InfraStateRecord] = {}

    def get(self, project_slug: str) -> InfraStateRecord | None:
        return self._records.get(project_slug)

    def save(self, record: InfraStateRecord) -> None:
        self._records[record.project_slug] = record

    def delete(self, project_slug: str) -> None:
        self._records.pop(project_slug, None)


def _resource_id(manifest: Manifest) -> str:
    return f"{manifest['kind']}/{manifest['metadata']['name']}"


class InfrastructureProvisioner:
    """Reconciles desired project state against the cluster."""

    def __init__(
        self,
        controller: ClusterController,
        state_store: InfraStateStore,
        namespace: str,
    ) -> None:
        self._controller = controller
        self._state_store = state_store
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    def render(self, desired: DesiredState) -> list[Manifest]:
        return render_manifests(desired, self._namespace)

    async def provision(self, desired: DesiredState) -> ProvisionResult:
        """Apply every manifest in order; the first failure aborts the run.

        Objects applied before the failure are left in place. A later
        successful run or a teardown reconciles them.
        """
        slug = desired.project_slug
        log_lines: list[str] = []
        applied: list[str] = []

        for manifest in self.render(desired):
            resource = _resource_id(manifest)
            result = await self._controller.apply(manifest)
            if not result.success:
                error = (
                    f"Failed to apply {manifest['kind']} "
                    f"{manifest['metadata']['name']}: {result.stderr.strip()}"
                )
                log_lines.append(error)
                logger.error(f"Provisioning {slug} aborted: {error}")
                return ProvisionResult(
                    success=False, logs="\n".join(log_lines), error=error
                )
            log_lines.append(result.stdout or f"{resource} applied")
            applied.append(resource)

        if not desired.env_vars:
            # Env vars were removed since the last deploy
            result = await self._controller.delete(
                "Secret", env_secret_name(slug), self._namespace
            )
            if not result.success:
                logger.warning(f"Could not remove stale env secret for {slug}: {result.stderr}")

        self._state_store.save(
            InfraStateRecord(
                project_slug=slug,
                namespace=self._namespace,
                image=desired.image,
                hosts=desired.hosts,
                resources=applied,
            )
        )

        outputs = {
            "deploymentName": slug,
            "serviceName": slug,
            "ingressName": slug,
            "hosts": desired.hosts,
        }
        logger.info(f"Provisioned {slug} ({desired.image}) on {', '.join(desired.hosts)}")
        return ProvisionResult(success=True, outputs=outputs, logs="\n".join(log_lines))

    async def teardown(self, project_slug: str) -> ProvisionResult:
        """Delete the project's objects. Missing objects are not an error."""
        names = {
            "Ingress": project_slug,
            "Service": project_slug,
            "Deployment": project_slug,
            "Secret": env_secret_name(project_slug),
        }
        log_lines: list[str] = []
        errors: list[str] = []

        for kind in TEARDOWN_KINDS:
            result: CommandResult = await self._controller.delete(
                kind, names[kind], self._namespace
            )
            if result.success:
                log_lines.append(result.stdout)
            else:
                errors.append(f"Failed to delete {kind} {names[kind]}: {result.stderr}")

        if errors:
            logger.error(f"Teardown of {project_slug} incomplete: {errors}")
            return ProvisionResult(
                success=False,
                logs="\n".join(log_lines + errors),
                error="; ".join(errors),
            )

        self._state_store.delete(project_slug)
        logger.info(f"Tore down {project_slug}")
        return ProvisionResult(success=True, logs="\n".join(log_lines))

    def status(self, project_slug: str) -> InfraStateRecord | None:
        return self._state_store.get(project_slug)

    async def preview(self, desired: DesiredState) -> list[PlannedChange]:
        """Report what ``provision`` would do without changing anything."""
        changes: list[PlannedChange] = []
        for manifest in self.render(desired):
            kind = manifest["kind"]
            name = manifest["metadata"]["name"]
            namespace = manifest["metadata"].get("namespace")
            exists = await self._controller.exists(kind, name, namespace)
            changes.append(PlannedChange(kind, name, "update" if exists else "create"))

        if not desired.env_vars:
            secret = env_secret_name(desired.project_slug)
            if await self._controller.exists("Secret", secret, self._namespace):
                changes.append(PlannedChange("Secret", secret, "delete"))
        return changes
