"""Maps domain exceptions onto HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from loguru import logger
from starlette.responses import JSONResponse

from pushdeploy.app.core.exceptions import (
    ConflictError,
    DeploymentPreconditionError,
    InfrastructureError,
    InvalidCredentialsError,
    MissingCredentialsError,
    NotFoundError,
    PushDeployError,
)
from pushdeploy.infra.cloudflare.dns import CloudflareError
from pushdeploy.infra.github.client import GitHubError

STATUS_CODES: dict[type[PushDeployError], int] = {
    NotFoundError: 404,
    DeploymentPreconditionError: 400,
    InvalidCredentialsError: 400,
    MissingCredentialsError: 401,
    ConflictError: 409,
    InfrastructureError: 502,
}


def _error_body(message: str, details: str | None = None) -> dict[str, str]:
    body = {"error": message}
    if details:
        body["details"] = details
    return body


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, PushDeployError):
        raise exc
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 500
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(_error_body(exc.message, exc.details), status_code=status_code)


async def upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path}: upstream error: {exc}")
    return JSONResponse(_error_body(str(exc)), status_code=502)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PushDeployError, domain_error_handler)
    app.add_exception_handler(GitHubError, upstream_error_handler)
    app.add_exception_handler(CloudflareError, upstream_error_handler)
