"""Tests for the GitHub webhook receiver."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from pushdeploy.app.api.http.app_data import ApplicationDependencies
from pushdeploy.app.core.services.webhooks.signature import sign_payload
from pushdeploy.app.entities.deployment.table import DeploymentStatus
from pushdeploy.app.entities.project.table import Project

HEAD_SHA = "9f8e7d6c5b4a3928171605f4e3d2c1b0a9f8e7d6"


def push_body(
    ref: str = "refs/heads/main", repository: str = "acme/web", after: str = HEAD_SHA
) -> bytes:
    return json.dumps(
        {
            "ref": ref,
            "after": after,
            "repository": {"full_name": repository},
            "head_commit": {"message": "Add health endpoint"},
            "pusher": {"name": "ada"},
        }
    ).encode()


def deliver(
    api: TestClient,
    body: bytes,
    *,
    secret: str = "webhook-secret",
    event: str = "push",
    signature: str | None = None,
):
    return api.post(
        "/api/webhooks/github",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-GitHub-Event": event,
            "X-Hub-Signature-256": signature or sign_payload(body, secret),
        },
    )


class TestPushDelivery:
    def test_signed_push_creates_pending_deployment(
        self,
        api: TestClient,
        deps: ApplicationDependencies,
        orchestrator: MagicMock,
        project: Project,
    ) -> None:
        response = deliver(api, push_body())

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Deployment triggered"

        deployment = deps.deployments.get(data["deploymentId"])
        assert deployment is not None
        assert deployment.project_id == project.id
        assert deployment.commit_sha == HEAD_SHA
        assert deployment.commit_msg == "Add health endpoint"
        assert deployment.status == DeploymentStatus.PENDING.value
        orchestrator.submit.assert_called_once_with(deployment.id)

    def test_invalid_signature_is_rejected(
        self,
        api: TestClient,
        deps: ApplicationDependencies,
        orchestrator: MagicMock,
        project: Project,
    ) -> None:
        response = deliver(api, push_body(), secret="someone-else")

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid signature"}
        assert deps.deployments.list_for_project(project.id)[0] == []
        orchestrator.submit.assert_not_called()

    def test_signature_is_checked_against_raw_bytes(
        self, api: TestClient, orchestrator: MagicMock, project: Project
    ) -> None:
        body = push_body()
        # Same JSON document, different bytes
        reformatted = json.dumps(json.loads(body), indent=2).encode()

        response = deliver(api, reformatted, signature=sign_payload(body, "webhook-secret"))

        assert response.status_code == 401
        orchestrator.submit.assert_not_called()

    def test_missing_signature_is_rejected(self, api: TestClient, project: Project) -> None:
        response = api.post(
            "/api/webhooks/github",
            content=push_body(),
            headers={"X-GitHub-Event": "push"},
        )

        assert response.status_code == 401


class TestIgnoredDeliveries:
    @pytest.mark.parametrize("event", ["ping", "pull_request", "release"])
    def test_non_push_events_are_ignored(
        self, api: TestClient, orchestrator: MagicMock, project: Project, event: str
    ) -> None:
        response = deliver(api, push_body(), event=event)

        assert response.status_code == 200
        assert response.json() == {"message": "Event ignored"}
        orchestrator.submit.assert_not_called()

    def test_invalid_json(self, api: TestClient, project: Project) -> None:
        response = deliver(api, b"{not json")

        assert response.status_code == 200
        assert response.json() == {"message": "Invalid payload"}

    def test_payload_without_required_fields(self, api: TestClient, project: Project) -> None:
        response = deliver(api, json.dumps({"zen": "Keep it logically awesome."}).encode())

        assert response.json() == {"message": "Invalid payload"}

    def test_tag_push(self, api: TestClient, project: Project) -> None:
        response = deliver(api, push_body(ref="refs/tags/v1.0.0"))

        assert response.status_code == 200
        assert response.json() == {"message": "Not a branch push"}

    def test_unknown_repository(self, api: TestClient, project: Project) -> None:
        response = deliver(api, push_body(repository="acme/other"))

        assert response.json() == {"message": "No matching project found"}

    def test_untracked_branch(self, api: TestClient, project: Project) -> None:
        response = deliver(api, push_body(ref="refs/heads/feature/login"))

        assert response.json() == {"message": "No matching project found"}


def test_probe(api: TestClient) -> None:
    response = api.get("/api/webhooks/github")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
