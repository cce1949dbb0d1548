"""Typed configuration model for the deployment service.

The YAML file loaded by ``config_loader.load_config`` is validated into
``ConfigData``. Every section has defaults so a minimal ``config.yaml`` (or
none at all, in tests) produces a usable configuration.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_SECRET_KEY = "dev-insecure-secret-key"


class AppSettings(BaseModel):
    """Platform-wide settings."""

    environment: Literal["development", "production", "test"] = "development"
    host: str = "0.0.0.0"
    port: int = 8000
    public_url: str = Field(
        default="http://localhost:8000",
        description="Externally reachable base URL, used for webhook registration",
    )
    platform_domain: str = "localhost"
    ingress_class: str = "nginx"
    ingress_ip: str = Field(
        default="127.0.0.1",
        description="Address of the ingress controller that DNS records point at",
    )

    @field_validator("public_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class DatabaseSettings(BaseModel):
    url: str = "sqlite:///./data/pushdeploy.db"
    echo: bool = False


class RegistrySettings(BaseModel):
    """Container registry the builder publishes to.

    Username and password are optional; anonymous local registries skip login.
    """

    url: str = "localhost:5000"
    username: str = ""
    password: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


class BuilderSettings(BaseModel):
    work_dir: str = "/tmp/pushdeploy-builds"
    builder_image: str = "paketobuildpacks/builder-jammy-full:latest"
    max_concurrent_builds: int = Field(default=2, ge=1)


class KubernetesSettings(BaseModel):
    namespace: str = "pushdeploy"
    kubeconfig: str | None = None
    context: str | None = None


class GitHubSettings(BaseModel):
    api_url: str = "https://api.github.com"
    timeout_seconds: float = 30.0


class CloudflareSettings(BaseModel):
    api_url: str = "https://api.cloudflare.com/client/v4"
    timeout_seconds: float = 30.0


class SecuritySettings(BaseModel):
    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        min_length=16,
        description="Secret that stored GitHub and Cloudflare tokens are encrypted with",
    )


class LoggingSettings(BaseModel):
    level: str = "INFO"
    serialize: bool = Field(
        default=False, description="Emit JSON log lines instead of text"
    )


class ConfigData(BaseModel):
    """Root configuration object (the ``config:`` section of config.yaml)."""

    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    builder: BuilderSettings = Field(default_factory=BuilderSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    cloudflare: CloudflareSettings = Field(default_factory=CloudflareSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def _require_secret_in_production(self) -> ConfigData:
        insecure = self.security.secret_key == DEFAULT_SECRET_KEY
        if insecure and self.app.environment == "production":
            raise ValueError("security.secret_key must be set in production")
        return self
