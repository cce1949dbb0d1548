"""GitHub webhook receiver.

Endpoint Summary:
    POST /api/webhooks/github - Receive a push event and trigger a deployment
    GET  /api/webhooks/github - Liveness probe for webhook delivery checks
"""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Header, Request
from loguru import logger
from starlette.responses import JSONResponse

from pushdeploy.app.api.http.deps import (
    get_orchestrator,
    get_project_repository,
    get_state_machine,
)
from pushdeploy.app.core.services.deployments.orchestrator import DeploymentOrchestrator
from pushdeploy.app.core.services.deployments.state_machine import DeploymentStateMachine
from pushdeploy.app.core.services.projects.repository import ProjectRepository
from pushdeploy.app.core.services.webhooks.events import extract_branch, parse_push_event
from pushdeploy.app.core.services.webhooks.signature import verify_signature

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/github", summary="Receive a GitHub push event")
async def github_webhook(
    request: Request,
    x_github_event: str | None = Header(default=None),
    x_hub_signature_256: str | None = Header(default=None),
    projects: ProjectRepository = Depends(get_project_repository),
    state_machine: DeploymentStateMachine = Depends(get_state_machine),
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Verify and act on a push notification.

    The project is located from the payload, then the signature is checked
    against the raw body bytes with that project's secret. Anything that is
    not an actionable push gets a 200 with an explanatory message so GitHub
    does not keep retrying.
    """
    body = await request.body()

    if x_github_event != "push":
        return JSONResponse({"message": "Event ignored"})

    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return JSONResponse({"message": "Invalid payload"})

    event = parse_push_event(payload)
    if event is None:
        return JSONResponse({"message": "Invalid payload"})

    branch = extract_branch(event.ref)
    if branch is None:
        return JSONResponse({"message": "Not a branch push"})

    project = projects.find_by_repository(event.repository_full_name, branch)
    if project is None:
        return JSONResponse({"message": "No matching project found"})

    if not verify_signature(body, x_hub_signature_256, project.webhook_secret):
        logger.warning(f"Rejected webhook for {project.slug}: invalid signature")
        return JSONResponse({"error": "Invalid signature"}, status_code=401)

    deployment = state_machine.create_pending(
        project.id, event.after, event.head_commit_message
    )
    orchestrator.submit(deployment.id)
    logger.info(
        f"Push to {event.repository_full_name}@{branch} ({event.after[:7]}) "
        f"triggered deployment {deployment.id}"
    )

    return JSONResponse({"message": "Deployment triggered", "deploymentId": deployment.id})


@router.get("/github", summary="Webhook endpoint liveness")
async def github_webhook_probe() -> dict[str, str]:
    return {"status": "ok"}
