"""Repository discovery for project creation.

Endpoint Summary:
    GET /api/github/repositories?user_id=                        - Repositories visible to the user
    GET /api/github/repositories/{owner}/{repo}/branches?user_id= - Branch names
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query

from pushdeploy.app.api.http.app_data import ApplicationDependencies
from pushdeploy.app.api.http.deps import get_app_dependencies
from pushdeploy.app.api.http.schemas.projects import RepositoryResponse

router = APIRouter(prefix="/api/github", tags=["github"])


@router.get("/repositories", response_model=list[RepositoryResponse])
async def list_repositories(
    user_id: str = Query(),
    deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> list[RepositoryResponse]:
    token = deps.project_service.github_token(user_id)

    def fetch():
        with deps.github_factory(token) as github:
            return github.list_repositories()

    repositories = await asyncio.to_thread(fetch)
    return [RepositoryResponse.model_validate(r) for r in repositories]


@router.get("/repositories/{owner}/{repo}/branches", response_model=list[str])
async def list_branches(
    owner: str,
    repo: str,
    user_id: str = Query(),
    deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> list[str]:
    token = deps.project_service.github_token(user_id)

    def fetch():
        with deps.github_factory(token) as github:
            return github.list_branches(owner, repo)

    return await asyncio.to_thread(fetch)
