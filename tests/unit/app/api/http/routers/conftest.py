"""Fixtures running the full application against the shared test dependencies."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from pushdeploy.app.api.http.app_data import ApplicationDependencies
from pushdeploy.app.core.services.deployments.orchestrator import DeploymentOrchestrator
from pushdeploy.app.main import create_app


@pytest.fixture
def orchestrator(deps: ApplicationDependencies) -> MagicMock:
    """Replace the orchestrator so requests only enqueue work."""
    mock = MagicMock(spec=DeploymentOrchestrator)
    mock.drain = AsyncMock()
    mock.recover_pending = AsyncMock(return_value=0)
    deps.orchestrator = mock
    return mock


@pytest.fixture
def api(deps: ApplicationDependencies, orchestrator: MagicMock) -> Iterator[TestClient]:
    app = create_app(dependencies=deps, recover_pending=False)
    with TestClient(app) as client:
        yield client
