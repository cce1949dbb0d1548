"""Runs deployments through build, provisioning and DNS publication.

Pipelines for the same project are serialised with a per-project lock. Builds
run in worker threads and at most ``builder.max_concurrent_builds`` of them
run at once. Every phase change is persisted through the state machine
before the next phase starts, so a crash leaves the record visibly stuck
rather than lost.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from pushdeploy.app.core.services.deployments.repository import DeploymentRepository
from pushdeploy.app.core.services.deployments.state_machine import DeploymentStateMachine
from pushdeploy.app.core.services.projects.locks import ProjectLocks
from pushdeploy.app.core.services.projects.repository import ProjectRepository
from pushdeploy.app.core.services.projects.service import project_hostnames
from pushdeploy.app.core.services.users.repository import UserRepository
from pushdeploy.app.entities.deployment.table import Deployment, DeploymentStatus
from pushdeploy.app.entities.project.table import Project
from pushdeploy.app.entities.user.table import User
from pushdeploy.app.runtime.config.config_data import AppSettings
from pushdeploy.builder.image_builder import BuildRequest, ImageBuilder
from pushdeploy.infra.cloudflare.dns import DnsPublisher
from pushdeploy.infra.k8s.manifests import DesiredState, ResourceProfile
from pushdeploy.infra.k8s.provisioner import InfrastructureProvisioner

MISSING_GITHUB_TOKEN = "GitHub access token not found"


def desired_state_for(project: Project, image: str, settings: AppSettings) -> DesiredState:
    return DesiredState(
        project_slug=project.slug,
        image=image,
        port=project.port,
        subdomain=project.subdomain,
        platform_domain=settings.platform_domain,
        ingress_class=settings.ingress_class,
        replicas=project.replicas,
        resources=ResourceProfile(
            cpu_request=project.cpu_request,
            cpu_limit=project.cpu_limit,
            memory_request=project.memory_request,
            memory_limit=project.memory_limit,
        ),
        node_affinity=project.node_affinity,
        custom_domain=project.custom_domain,
        env_vars=dict(project.env_vars or {}),
    )


class DeploymentOrchestrator:
    """Drives pending deployments to a terminal state."""

    def __init__(
        self,
        deployments: DeploymentRepository,
        projects: ProjectRepository,
        users: UserRepository,
        state_machine: DeploymentStateMachine,
        builder: ImageBuilder,
        provisioner: InfrastructureProvisioner,
        dns: DnsPublisher,
        settings: AppSettings,
        *,
        max_concurrent_builds: int = 2,
        locks: ProjectLocks | None = None,
    ) -> None:
        self._deployments = deployments
        self._projects = projects
        self._users = users
        self._state_machine = state_machine
        self._builder = builder
        self._provisioner = provisioner
        self._dns = dns
        self._settings = settings
        self._locks = locks or ProjectLocks()
        self._build_slots = asyncio.Semaphore(max_concurrent_builds)
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def locks(self) -> ProjectLocks:
        return self._locks

    # =========================================================================
    # Scheduling
    # =========================================================================

    def submit(self, deployment_id: str) -> asyncio.Task[None]:
        """Schedule ``process`` on the running loop and keep the task alive."""
        task = asyncio.create_task(self.process(deployment_id), name=f"deploy-{deployment_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def recover_pending(self) -> int:
        """Resubmit deployments left pending by a previous process."""
        pending = self._deployments.list_by_status(DeploymentStatus.PENDING)
        for deployment in pending:
            self.submit(deployment.id)
        if pending:
            logger.info(f"Resubmitted {len(pending)} pending deployment(s)")
        return len(pending)

    async def drain(self) -> None:
        """Wait for every submitted pipeline to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def process(self, deployment_id: str) -> None:
        """Run one deployment to completion; pipeline errors mark it failed."""
        deployment = self._deployments.get(deployment_id)
        if deployment is None:
            logger.error(f"Deployment {deployment_id} not found")
            return

        async with self._locks.for_project(deployment.project_id):
            try:
                await self._run(deployment_id)
            except Exception as e:
                logger.exception(f"Deployment {deployment_id} failed unexpectedly")
                self._state_machine.mark_failed(deployment_id, str(e) or type(e).__name__)

    async def _run(self, deployment_id: str) -> None:
        # Re-read under the lock; it may have been cancelled while waiting
        deployment = self._deployments.get(deployment_id)
        if deployment is None or deployment.status != DeploymentStatus.PENDING.value:
            logger.info(f"Skipping deployment {deployment_id}: no longer pending")
            return

        project = self._projects.get(deployment.project_id)
        if project is None:
            self._state_machine.mark_failed(deployment_id, "Project not found")
            return
        user = self._users.get(project.user_id)

        if deployment.image_tag:
            image = deployment.image_tag
            if not self._state_machine.start_prebuilt_deploy(deployment_id):
                self._lost(deployment_id, "deploying")
                return
            logger.info(f"Deployment {deployment_id} reuses {image}, skipping build")
        else:
            if user is None or not user.github_access_token:
                self._state_machine.mark_failed(deployment_id, MISSING_GITHUB_TOKEN)
                logger.warning(f"Deployment {deployment_id} failed: {MISSING_GITHUB_TOKEN}")
                return
            built = await self._build(deployment, project, user.github_access_token)
            if built is None:
                return
            image = built

        await self._deploy(deployment_id, project, user, image)

    async def _build(
        self, deployment: Deployment, project: Project, token: str
    ) -> str | None:
        """Build phase; returns the image, or None when the pipeline must stop."""
        if not self._state_machine.start_build(deployment.id):
            self._lost(deployment.id, "building")
            return None

        request = BuildRequest(
            access_token=token,
            owner=project.owner,
            repo=project.repo,
            branch=project.branch,
            commit_sha=deployment.commit_sha,
            project_slug=project.slug,
        )
        async with self._build_slots:
            result = await asyncio.to_thread(self._builder.build, request)

        self._state_machine.record_build_logs(deployment.id, result.logs)

        if not result.success:
            self._state_machine.mark_failed(deployment.id, result.error or "Build failed")
            logger.warning(f"Deployment {deployment.id} build failed: {result.error}")
            return None

        if not self._state_machine.start_deploy(deployment.id, result.image_tag):
            self._lost(deployment.id, "deploying")
            return None
        return result.image_tag

    async def _deploy(
        self, deployment_id: str, project: Project, user: User | None, image: str
    ) -> None:
        desired = desired_state_for(project, image, self._settings)
        result = await self._provisioner.provision(desired)

        if not result.success:
            self._state_machine.mark_failed(
                deployment_id, result.error or "Deployment failed", logs=result.logs
            )
            return

        logs = [result.logs]
        if user and user.cloudflare_token and user.cloudflare_zone:
            logs.extend(await self._publish_dns(project, user))

        if self._state_machine.mark_live(deployment_id, logs="\n".join(filter(None, logs))):
            logger.success(f"Deployment {deployment_id} is live ({image})")
        else:
            self._lost(deployment_id, "live")

    async def _publish_dns(self, project: Project, user: User) -> list[str]:
        """Best-effort DNS; failures are logged and never fail the deployment."""
        lines: list[str] = []
        for hostname in project_hostnames(project, self._settings.platform_domain):
            try:
                await self._dns.publish(
                    user.cloudflare_token or "",
                    user.cloudflare_zone or "",
                    hostname,
                    self._settings.ingress_ip,
                )
                lines.append(f"DNS {hostname} -> {self._settings.ingress_ip}")
            except Exception as e:
                logger.error(f"Failed to set up DNS for {hostname}: {e}")
                lines.append(f"DNS {hostname} failed: {e}")
        return lines

    @staticmethod
    def _lost(deployment_id: str, target: str) -> None:
        logger.info(
            f"Deployment {deployment_id} changed concurrently, not moving to {target}"
        )
