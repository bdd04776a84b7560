"""
Shared configuration management for the Taskflow backend.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings.

    Every field can be set from the environment with the ``TASKFLOW_``
    prefix, e.g. ``TASKFLOW_POSTGRES_DSN``.
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKFLOW_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Storage
    postgres_dsn: str = Field(default="postgres://localhost:5432/taskflow")
    storage_min_pool_size: int = Field(default=2)
    storage_max_pool_size: int = Field(default=10)
    storage_command_timeout: float = Field(default=30.0)

    # Identity provider
    jwks_url: str = Field(default="http://localhost:8080/realms/taskflow/protocol/openid-connect/certs")
    identity_issuer: Optional[str] = Field(default=None)
    identity_audience: Optional[str] = Field(default=None)
    identity_admin_url: str = Field(default="http://localhost:8080/admin/realms/taskflow/users")
    identity_admin_token: Optional[str] = Field(default=None)
    identity_timeout: float = Field(default=10.0)
    jwks_cache_ttl: int = Field(default=3600)
    identity_failure_threshold: int = Field(default=5)
    identity_recovery_timeout: float = Field(default=30.0)

    # Observability
    enable_tracing: bool = Field(default=False)
    otel_exporter: str = Field(default="http://localhost:4317")
    enable_console_tracing: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
