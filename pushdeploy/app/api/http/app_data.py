from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from pushdeploy.app.core.services.database.db_session import DbSessionService
from pushdeploy.app.core.services.deployments.orchestrator import DeploymentOrchestrator
from pushdeploy.app.core.services.deployments.repository import DeploymentRepository
from pushdeploy.app.core.services.deployments.state_machine import DeploymentStateMachine
from pushdeploy.app.core.services.projects.infra_state_store import SqlInfraStateStore
from pushdeploy.app.core.services.projects.locks import ProjectLocks
from pushdeploy.app.core.services.projects.repository import ProjectRepository
from pushdeploy.app.core.services.projects.service import ProjectService
from pushdeploy.app.core.services.users.crypto import CredentialCipher
from pushdeploy.app.core.services.users.repository import UserRepository
from pushdeploy.app.core.services.users.service import UserSettingsService
from pushdeploy.app.runtime.config.config_data import ConfigData
from pushdeploy.builder.image_builder import ImageBuilder
from pushdeploy.builder.shell_commands import BuildCommands
from pushdeploy.infra.cloudflare.dns import DnsPublisher
from pushdeploy.infra.github.client import GitHubClient, GitHubClientFactory
from pushdeploy.infra.k8s.controller import ClusterController
from pushdeploy.infra.k8s.kr8s_controller import Kr8sController, resolve_cluster_connection
from pushdeploy.infra.k8s.provisioner import InfrastructureProvisioner


@dataclass
class ApplicationDependencies:
    config: ConfigData
    database_service: DbSessionService
    cluster_controller: ClusterController
    github_factory: Callable[[str], GitHubClient]
    dns_publisher: DnsPublisher
    users: UserRepository
    projects: ProjectRepository
    deployments: DeploymentRepository
    state_machine: DeploymentStateMachine
    provisioner: InfrastructureProvisioner
    project_service: ProjectService
    orchestrator: DeploymentOrchestrator
    user_settings: UserSettingsService


def build_dependencies(
    config: ConfigData,
    *,
    database_service: DbSessionService | None = None,
    cluster_controller: ClusterController | None = None,
    github_factory: Callable[[str], GitHubClient] | None = None,
    dns_publisher: DnsPublisher | None = None,
    image_builder: ImageBuilder | None = None,
) -> ApplicationDependencies:
    """Wire every service from configuration.

    External collaborators can be passed in to replace the real ones.
    """
    db = database_service or DbSessionService(config.database.url, echo=config.database.echo)
    controller = cluster_controller or Kr8sController(
        resolve_cluster_connection(config.kubernetes)
    )
    github = github_factory or GitHubClientFactory(config.github)
    dns = dns_publisher or DnsPublisher(
        api_url=config.cloudflare.api_url, timeout=config.cloudflare.timeout_seconds
    )

    users = UserRepository(db, CredentialCipher(config.security.secret_key))
    projects = ProjectRepository(db)
    deployments = DeploymentRepository(db)
    state_machine = DeploymentStateMachine(deployments)
    provisioner = InfrastructureProvisioner(
        controller, SqlInfraStateStore(db), config.kubernetes.namespace
    )
    # One lock set, so removing a project waits for its running deployment.
    locks = ProjectLocks()
    builder = image_builder or ImageBuilder(
        github, BuildCommands(), config.registry, config.builder
    )

    return ApplicationDependencies(
        config=config,
        database_service=db,
        cluster_controller=controller,
        github_factory=github,
        dns_publisher=dns,
        users=users,
        projects=projects,
        deployments=deployments,
        state_machine=state_machine,
        provisioner=provisioner,
        project_service=ProjectService(
            projects, users, state_machine, github, provisioner, dns, config.app, locks=locks
        ),
        orchestrator=DeploymentOrchestrator(
            deployments,
            projects,
            users,
            state_machine,
            builder,
            provisioner,
            dns,
            config.app,
            max_concurrent_builds=config.builder.max_concurrent_builds,
            locks=locks,
        ),
        user_settings=UserSettingsService(users, github, dns),
    )
