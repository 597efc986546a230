"""
Engine configuration using Pydantic Settings.

All fields read from environment variables prefixed with ``RBAC_``
(or a local ``.env`` file), e.g. ``RBAC_ROLE_STORE=file``.
"""

from functools import lru_cache
from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RBACSettings(BaseSettings):
    """Authorization engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="RBAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Role store
    role_store: str = Field(
        default="memory",
        description="Role store backend: memory, file, database",
    )
    roles_file: Path | None = Field(
        default=None,
        description="JSON role definitions (file store)",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./rbac.db",
        description="Async SQLAlchemy URL (database store)",
    )
    database_echo: bool = Field(default=False, description="Echo SQL queries")

    # Caching
    cache_enabled: bool = Field(
        default=True,
        description="Memoize resolved permission sets",
    )
    cache_ttl: int = Field(
        default=300,
        ge=0,
        description="Resolved permission cache TTL (seconds, 0 = no expiry)",
    )
    role_cache_ttl: int = Field(
        default=0,
        ge=0,
        description="Role lookup cache TTL in front of the store (0 = off)",
    )

    # Permission matching
    wildcard_permissions: bool = Field(
        default=False,
        description="Honour '*' and 'namespace.*' grants",
    )
    permission_separator: str = Field(default=".", min_length=1)

    # Identity
    roles_field: str = Field(
        default="roles",
        description="Attribute holding role ids on non-Identity actors",
    )

    validate_on_startup: bool = Field(
        default=True,
        description="Reject cyclic or dangling hierarchies when building the service",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or text")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"json", "text"}
        if v not in allowed:
            raise ValueError(f"log_format must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v


@lru_cache
def get_settings() -> RBACSettings:
    """Get cached settings instance."""
    return RBACSettings()
