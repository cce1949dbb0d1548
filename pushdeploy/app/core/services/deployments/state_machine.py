"""Deployment lifecycle state machine.

States::

    pending ──► building ──► deploying ──► live
       │  └──────────(rollback)──►│
       └──────────┴──────────────┴──► failed

``live`` and ``failed`` are terminal. Every mutation is expressed as a
conditional transition on the repository so the persisted record is the
single source of truth, even when a user cancels while the orchestrator is
working on the same deployment.
"""

from __future__ import annotations

from loguru import logger
from sqlmodel import col

from pushdeploy.app.core.exceptions import DeploymentPreconditionError, NotFoundError
from pushdeploy.app.core.services.deployments.repository import DeploymentRepository
from pushdeploy.app.entities.common import utcnow
from pushdeploy.app.entities.deployment.table import (
    COMMIT_MESSAGE_MAX_LENGTH,
    Deployment,
    DeploymentStatus,
)

CANCELLED_BY_USER = "Cancelled by user"

ALLOWED_TRANSITIONS: dict[DeploymentStatus, frozenset[DeploymentStatus]] = {
    DeploymentStatus.PENDING: frozenset(
        {DeploymentStatus.BUILDING, DeploymentStatus.DEPLOYING, DeploymentStatus.FAILED}
    ),
    DeploymentStatus.BUILDING: frozenset(
        {DeploymentStatus.DEPLOYING, DeploymentStatus.FAILED}
    ),
    DeploymentStatus.DEPLOYING: frozenset(
        {DeploymentStatus.LIVE, DeploymentStatus.FAILED}
    ),
    DeploymentStatus.LIVE: frozenset(),
    DeploymentStatus.FAILED: frozenset(),
}

CANCELLABLE_STATES = (DeploymentStatus.PENDING, DeploymentStatus.BUILDING)


def can_transition(source: DeploymentStatus, target: DeploymentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[source]


def sources_for(target: DeploymentStatus) -> tuple[DeploymentStatus, ...]:
    """All states from which ``target`` may be entered."""
    return tuple(s for s, targets in ALLOWED_TRANSITIONS.items() if target in targets)


class DeploymentStateMachine:
    """Applies lifecycle transitions to persisted deployments.

    Methods used by the orchestrator return ``False`` when the transition was
    lost to a concurrent writer (for example a cancel); the caller must stop
    working on that deployment. Methods used by API callers raise
    ``DeploymentPreconditionError`` instead.
    """

    def __init__(self, repository: DeploymentRepository) -> None:
        self._repository = repository

    # =========================================================================
    # Creation
    # =========================================================================

    def create_pending(
        self,
        project_id: str,
        commit_sha: str,
        commit_msg: str | None = None,
        *,
        image_tag: str | None = None,
    ) -> Deployment:
        deployment = Deployment(
            project_id=project_id,
            commit_sha=commit_sha,
            commit_msg=commit_msg[:COMMIT_MESSAGE_MAX_LENGTH] if commit_msg else None,
            status=DeploymentStatus.PENDING.value,
            image_tag=image_tag,
        )
        return self._repository.add(deployment)

    def rollback(self, deployment_id: str) -> Deployment:
        """Create a new pending deployment that reuses a live deployment's image."""
        source = self._require(deployment_id)

        if source.status != DeploymentStatus.LIVE.value or not source.image_tag:
            raise DeploymentPreconditionError(
                "Can only rollback to successful deployments with an image",
                details=f"Deployment {deployment_id} is {source.status}",
            )

        rollback = self.create_pending(
            source.project_id,
            source.commit_sha,
            f"Rollback to {source.commit_sha[:7]}",
            image_tag=source.image_tag,
        )
        logger.info(
            f"Created rollback deployment {rollback.id} from {deployment_id} "
            f"({source.image_tag})"
        )
        return rollback

    # =========================================================================
    # Pipeline transitions
    # =========================================================================

    def start_build(self, deployment_id: str) -> bool:
        return self._repository.transition(
            deployment_id, (DeploymentStatus.PENDING,), DeploymentStatus.BUILDING
        )

    def record_build_logs(self, deployment_id: str, logs: str) -> None:
        self._repository.update_fields(deployment_id, build_logs=logs)

    def start_deploy(self, deployment_id: str, image_tag: str) -> bool:
        """building → deploying, publishing the image tag in the same write."""
        return self._repository.transition(
            deployment_id,
            (DeploymentStatus.BUILDING,),
            DeploymentStatus.DEPLOYING,
            image_tag=image_tag,
        )

    def start_prebuilt_deploy(self, deployment_id: str) -> bool:
        """pending → deploying for records whose image is already resolved."""
        return self._repository.transition(
            deployment_id,
            (DeploymentStatus.PENDING,),
            DeploymentStatus.DEPLOYING,
            conditions=(col(Deployment.image_tag).is_not(None),),
        )

    def mark_live(self, deployment_id: str, logs: str | None = None) -> bool:
        values: dict[str, object] = {"finished_at": utcnow()}
        if logs is not None:
            values["logs"] = logs
        return self._repository.transition(
            deployment_id,
            (DeploymentStatus.DEPLOYING,),
            DeploymentStatus.LIVE,
            **values,
        )

    def mark_failed(
        self, deployment_id: str, error: str, logs: str | None = None
    ) -> bool:
        values: dict[str, object] = {"error": error, "finished_at": utcnow()}
        if logs is not None:
            values["logs"] = logs
        return self._repository.transition(
            deployment_id,
            sources_for(DeploymentStatus.FAILED),
            DeploymentStatus.FAILED,
            **values,
        )

    # =========================================================================
    # User requests
    # =========================================================================

    def cancel(self, deployment_id: str) -> Deployment:
        """Cancel a deployment that has not started provisioning yet."""
        deployment = self._require(deployment_id)

        if deployment.status not in {s.value for s in CANCELLABLE_STATES}:
            raise DeploymentPreconditionError(
                "Cannot cancel deployment in current state",
                details=f"Deployment {deployment_id} is {deployment.status}",
            )

        cancelled = self._repository.transition(
            deployment_id,
            CANCELLABLE_STATES,
            DeploymentStatus.FAILED,
            error=CANCELLED_BY_USER,
            finished_at=utcnow(),
        )
        if not cancelled:
            # The orchestrator moved it on between our read and our write
            current = self._require(deployment_id)
            raise DeploymentPreconditionError(
                "Cannot cancel deployment in current state",
                details=f"Deployment {deployment_id} is {current.status}",
            )

        logger.info(f"Deployment {deployment_id} cancelled by user")
        return self._require(deployment_id)

    def _require(self, deployment_id: str) -> Deployment:
        deployment = self._repository.get(deployment_id)
        if deployment is None:
            raise NotFoundError(f"Deployment {deployment_id} not found")
        return deployment
