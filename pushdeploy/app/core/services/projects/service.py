"""Project lifecycle: creation, settings, manual deploys and removal."""

from __future__ import annotations

import asyncio
import re
import secrets
from collections.abc import Callable

from loguru import logger

from pushdeploy.app.core.exceptions import (
    DeploymentPreconditionError,
    InfrastructureError,
    MissingCredentialsError,
    NotFoundError,
)
from pushdeploy.app.core.services.deployments.state_machine import DeploymentStateMachine
from pushdeploy.app.core.services.projects.models import ProjectCreate, ProjectUpdate
from pushdeploy.app.core.services.projects.locks import ProjectLocks
from pushdeploy.app.core.services.projects.repository import ProjectRepository
from pushdeploy.app.core.services.users.repository import UserRepository
from pushdeploy.app.entities.deployment.table import Deployment
from pushdeploy.app.entities.project.table import Project
from pushdeploy.app.entities.user.table import User
from pushdeploy.app.runtime.config.config_data import AppSettings
from pushdeploy.infra.cloudflare.dns import DnsPublisher
from pushdeploy.infra.github.client import GitHubClient
from pushdeploy.infra.k8s.provisioner import InfrastructureProvisioner
from pushdeploy.infra.k8s.quantities import parse_resource_value

WEBHOOK_PATH = "/api/webhooks/github"
CLEARABLE_FIELDS = frozenset({"node_affinity", "custom_domain"})


def slugify(name: str) -> str:
    """Lowercase ``name`` and collapse anything outside ``[a-z0-9]`` into dashes."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def project_hostnames(project: Project, platform_domain: str) -> list[str]:
    hosts = [f"{project.subdomain}.{platform_domain}"]
    if project.custom_domain:
        hosts.append(project.custom_domain)
    return hosts


class ProjectService:
    def __init__(
        self,
        projects: ProjectRepository,
        users: UserRepository,
        state_machine: DeploymentStateMachine,
        github_factory: Callable[[str], GitHubClient],
        provisioner: InfrastructureProvisioner,
        dns: DnsPublisher,
        settings: AppSettings,
        locks: ProjectLocks | None = None,
    ) -> None:
        self._projects = projects
        self._users = users
        self._state_machine = state_machine
        self._github_factory = github_factory
        self._provisioner = provisioner
        self._dns = dns
        self._settings = settings
        self._locks = locks or ProjectLocks()

    @property
    def locks(self) -> ProjectLocks:
        return self._locks

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    def list_for_user(self, user_id: str) -> list[Project]:
        return self._projects.list_for_user(user_id)

    def github_token(self, user_id: str) -> str:
        """The user's GitHub access token, or MissingCredentialsError."""
        user = self._require_user(user_id)
        if not user.github_access_token:
            raise MissingCredentialsError("GitHub account not connected")
        return user.github_access_token

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create(self, user_id: str, data: ProjectCreate) -> Project:
        """Create a project and register its push webhook.

        Webhook registration is best-effort; a project without a webhook can
        still be deployed manually.
        """
        token = self.github_token(user_id)

        slug = self._unique_slug(data.name)
        subdomain = slug
        while self._projects.subdomain_taken(subdomain):
            subdomain = f"{slug}-{secrets.token_hex(4)}"

        project = self._projects.add(
            Project(
                name=data.name,
                slug=slug,
                subdomain=subdomain,
                repo_full_name=data.repo_full_name,
                branch=data.branch,
                port=data.port,
                cpu_request=data.cpu_request,
                cpu_limit=data.cpu_limit,
                memory_request=data.memory_request,
                memory_limit=data.memory_limit,
                replicas=data.replicas,
                node_affinity=data.node_affinity,
                custom_domain=data.custom_domain,
                env_vars=dict(data.env_vars),
                webhook_secret=secrets.token_hex(32),
                user_id=user_id,
            )
        )
        logger.info(f"Created project {project.slug} for {project.repo_full_name}")

        try:
            hook_id = await asyncio.to_thread(self._create_webhook, token, project)
        except Exception as e:
            logger.warning(f"Failed to create webhook for {project.slug}: {e}")
            return project

        return self._projects.update(project.id, webhook_id=str(hook_id)) or project

    def update(self, project_id: str, changes: ProjectUpdate) -> Project:
        project = self.get(project_id)
        # Only the optional placement fields may be cleared with an explicit null
        values = {
            key: value
            for key, value in changes.model_dump(exclude_unset=True).items()
            if value is not None or key in CLEARABLE_FIELDS
        }

        cpu = (
            values.get("cpu_request", project.cpu_request),
            values.get("cpu_limit", project.cpu_limit),
        )
        memory = (
            values.get("memory_request", project.memory_request),
            values.get("memory_limit", project.memory_limit),
        )
        for resource, (request, limit) in (("CPU", cpu), ("Memory", memory)):
            if parse_resource_value(request) > parse_resource_value(limit):
                raise DeploymentPreconditionError(
                    f"{resource} request {request} exceeds limit {limit}"
                )

        updated = self._projects.update(project_id, **values)
        if updated is None:
            raise NotFoundError(f"Project {project_id} not found")
        return updated

    async def trigger_deploy(self, project_id: str) -> Deployment:
        """Create a pending deployment for the head of the tracked branch."""
        project = self.get(project_id)
        token = self.github_token(project.user_id)

        def latest_commit():
            with self._github_factory(token) as github:
                return github.get_latest_commit(project.owner, project.repo, project.branch)

        commit = await asyncio.to_thread(latest_commit)
        return self._state_machine.create_pending(project.id, commit.sha, commit.message)

    async def delete(self, project_id: str) -> None:
        """Tear down cluster resources, DNS and webhook, then delete the record.

        DNS and webhook removal are best-effort. A failed teardown keeps the
        project so the deletion can be retried. Runs under the project lock, so
        a deployment that is provisioning finishes before anything is removed.
        """
        if self._locks.is_locked(project_id):
            logger.info(f"Waiting for the running deployment of {project_id} before deleting")

        async with self._locks.for_project(project_id):
            await self._delete_locked(project_id)

    async def _delete_locked(self, project_id: str) -> None:
        project = self.get(project_id)
        user = self._users.get(project.user_id)

        result = await self._provisioner.teardown(project.slug)
        if not result.success:
            raise InfrastructureError(
                f"Failed to tear down project {project.slug}", details=result.error
            )

        if user and user.cloudflare_token and user.cloudflare_zone:
            for hostname in project_hostnames(project, self._settings.platform_domain):
                try:
                    await self._dns.remove(user.cloudflare_token, user.cloudflare_zone, hostname)
                except Exception as e:
                    logger.warning(f"Failed to remove DNS for {hostname}: {e}")

        if project.webhook_id and user and user.github_access_token:
            try:
                await asyncio.to_thread(
                    self._delete_webhook, user.github_access_token, project
                )
            except Exception as e:
                logger.warning(f"Failed to delete webhook for {project.slug}: {e}")

        self._projects.delete(project_id)
        logger.info(f"Deleted project {project.slug}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _unique_slug(self, name: str) -> str:
        base = slugify(name) or "project"
        slug = base
        suffix = 0
        while self._projects.slug_taken(slug):
            suffix += 1
            slug = f"{base}-{suffix}"
        return slug

    def _create_webhook(self, token: str, project: Project) -> int:
        with self._github_factory(token) as github:
            return github.create_webhook(
                project.owner,
                project.repo,
                f"{self._settings.public_url}{WEBHOOK_PATH}",
                project.webhook_secret,
            )

    def _delete_webhook(self, token: str, project: Project) -> None:
        with self._github_factory(token) as github:
            github.delete_webhook(project.owner, project.repo, int(project.webhook_id or 0))
