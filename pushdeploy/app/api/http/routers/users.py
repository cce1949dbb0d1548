"""Accounts and the credentials deployments run with.

Endpoint Summary:
    POST   /api/users                               - Register a user
    GET    /api/users/{id}/settings                 - Profile and which credentials are set
    PATCH  /api/users/{id}/settings                 - Change the display name
    PUT    /api/users/{id}/github                   - Verify and store a GitHub token
    DELETE /api/users/{id}/github                   - Forget the GitHub token
    POST   /api/users/{id}/cloudflare/validate      - Check a Cloudflare token, list its zones
    PUT    /api/users/{id}/cloudflare               - Verify and store token/zone, or remove both
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from pushdeploy.app.api.http.deps import get_user_settings_service
from pushdeploy.app.api.http.schemas.users import (
    TokenVerificationResponse,
    UserSettingsResponse,
)
from pushdeploy.app.core.services.users.models import (
    CloudflareToken,
    CloudflareUpdate,
    GitHubConnect,
    ProfileUpdate,
    UserCreate,
)
from pushdeploy.app.core.services.users.service import UserSettingsService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserSettingsResponse, status_code=201)
async def register_user(
    data: UserCreate,
    service: UserSettingsService = Depends(get_user_settings_service),
) -> UserSettingsResponse:
    return UserSettingsResponse.from_user(service.register(data))


@router.get("/{user_id}/settings", response_model=UserSettingsResponse)
async def get_settings(
    user_id: str,
    service: UserSettingsService = Depends(get_user_settings_service),
) -> UserSettingsResponse:
    return UserSettingsResponse.from_user(service.get(user_id))


@router.patch("/{user_id}/settings", response_model=UserSettingsResponse)
async def update_profile(
    user_id: str,
    data: ProfileUpdate,
    service: UserSettingsService = Depends(get_user_settings_service),
) -> UserSettingsResponse:
    return UserSettingsResponse.from_user(service.update_profile(user_id, data))


@router.put("/{user_id}/github", response_model=UserSettingsResponse)
async def connect_github(
    user_id: str,
    data: GitHubConnect,
    service: UserSettingsService = Depends(get_user_settings_service),
) -> UserSettingsResponse:
    return UserSettingsResponse.from_user(await service.connect_github(user_id, data.token))


@router.delete("/{user_id}/github", status_code=204)
async def disconnect_github(
    user_id: str,
    service: UserSettingsService = Depends(get_user_settings_service),
) -> Response:
    service.disconnect_github(user_id)
    return Response(status_code=204)


@router.post("/{user_id}/cloudflare/validate", response_model=TokenVerificationResponse)
async def validate_cloudflare(
    user_id: str,
    data: CloudflareToken,
    service: UserSettingsService = Depends(get_user_settings_service),
) -> TokenVerificationResponse:
    service.get(user_id)
    result = await service.validate_cloudflare(data.token)
    return TokenVerificationResponse.from_verification(result)


@router.put("/{user_id}/cloudflare", response_model=UserSettingsResponse)
async def update_cloudflare(
    user_id: str,
    data: CloudflareUpdate,
    service: UserSettingsService = Depends(get_user_settings_service),
) -> UserSettingsResponse:
    return UserSettingsResponse.from_user(await service.update_cloudflare(user_id, data))
