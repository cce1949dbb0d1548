"""Tests for mapping domain exceptions onto HTTP responses."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from pushdeploy.app.api.http.errors import domain_error_handler
from pushdeploy.app.core.exceptions import (
    ConflictError,
    InfrastructureError,
    InvalidCredentialsError,
    MissingCredentialsError,
    NotFoundError,
)


@pytest.fixture
def request_() -> MagicMock:
    request = MagicMock()
    request.method = "POST"
    request.url.path = "/api/users"
    return request


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("exc", "status_code"),
    [
        (NotFoundError("User u1 not found"), 404),
        (InvalidCredentialsError("Invalid GitHub token"), 400),
        (MissingCredentialsError("GitHub account not connected"), 401),
        (ConflictError("Email taken"), 409),
        (InfrastructureError("Teardown failed"), 502),
    ],
)
async def test_status_codes(request_: MagicMock, exc: Exception, status_code: int) -> None:
    response = await domain_error_handler(request_, exc)

    assert response.status_code == status_code
    assert json.loads(response.body) == {"error": exc.message}


@pytest.mark.asyncio
async def test_details_are_included(request_: MagicMock) -> None:
    exc = InvalidCredentialsError("Invalid Cloudflare token", details="Invalid token")

    response = await domain_error_handler(request_, exc)

    assert json.loads(response.body) == {
        "error": "Invalid Cloudflare token",
        "details": "Invalid token",
    }


@pytest.mark.asyncio
async def test_other_exceptions_propagate(request_: MagicMock) -> None:
    with pytest.raises(RuntimeError, match="unexpected"):
        await domain_error_handler(request_, RuntimeError("unexpected"))
