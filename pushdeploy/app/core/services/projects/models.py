"""Input models for project creation and settings changes."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pushdeploy.infra.k8s.quantities import parse_resource_value

REPO_FULL_NAME = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
ENV_VAR_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _validate_env_vars(value: dict[str, str] | None) -> dict[str, str] | None:
    if value:
        invalid = [key for key in value if not ENV_VAR_NAME.match(key)]
        if invalid:
            raise ValueError(f"Invalid environment variable names: {', '.join(invalid)}")
    return value


def _check_request_within_limit(request: str, limit: str, resource: str) -> None:
    if parse_resource_value(request) > parse_resource_value(limit):
        raise ValueError(f"{resource} request {request} exceeds limit {limit}")


class _ProjectSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @field_validator(
        "cpu_request", "cpu_limit", "memory_request", "memory_limit", check_fields=False
    )
    @classmethod
    def _valid_quantity(cls, value: str | None) -> str | None:
        if value is not None:
            parse_resource_value(value)
        return value

    @field_validator("env_vars", check_fields=False)
    @classmethod
    def _valid_env_vars(cls, value: dict[str, str] | None) -> dict[str, str] | None:
        return _validate_env_vars(value)


class ProjectCreate(_ProjectSettings):
    name: str = Field(min_length=1, max_length=100)
    repo_full_name: str = Field(alias="repoFullName", pattern=REPO_FULL_NAME.pattern)
    branch: str = "main"
    port: int = Field(default=3000, ge=1, le=65535)
    cpu_request: str = Field(default="100m", alias="cpuRequest")
    cpu_limit: str = Field(default="500m", alias="cpuLimit")
    memory_request: str = Field(default="128Mi", alias="memoryRequest")
    memory_limit: str = Field(default="512Mi", alias="memoryLimit")
    replicas: int = Field(default=1, ge=1, le=10)
    node_affinity: str | None = Field(default=None, alias="nodeAffinity")
    custom_domain: str | None = Field(default=None, alias="customDomain")
    env_vars: dict[str, str] = Field(default_factory=dict, alias="envVars")

    @model_validator(mode="after")
    def _requests_within_limits(self) -> ProjectCreate:
        _check_request_within_limit(self.cpu_request, self.cpu_limit, "CPU")
        _check_request_within_limit(self.memory_request, self.memory_limit, "Memory")
        return self


class ProjectUpdate(_ProjectSettings):
    """Partial settings change; slug and subdomain can never be changed."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    branch: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)
    cpu_request: str | None = Field(default=None, alias="cpuRequest")
    cpu_limit: str | None = Field(default=None, alias="cpuLimit")
    memory_request: str | None = Field(default=None, alias="memoryRequest")
    memory_limit: str | None = Field(default=None, alias="memoryLimit")
    replicas: int | None = Field(default=None, ge=1, le=10)
    node_affinity: str | None = Field(default=None, alias="nodeAffinity")
    custom_domain: str | None = Field(default=None, alias="customDomain")
    env_vars: dict[str, str] | None = Field(default=None, alias="envVars")
