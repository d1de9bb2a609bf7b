"""
Settings for the family-vault delegation engine.

All values can be overridden with ``FAMILY_VAULT_``-prefixed environment
variables or a ``.env`` file in the working directory.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DatabaseSchemas, DelegationLimits


class VaultSettings(BaseSettings):
    """Application settings for the delegation engine and its API."""

    model_config = SettingsConfigDict(
        env_prefix="FAMILY_VAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Core Application Settings
    app_name: str = Field(default="family-vault")
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8010)

    # Database Configuration
    database_url: Optional[str] = Field(default=None)
    db_schema: str = Field(default=DatabaseSchemas.DEFAULT)
    db_pool_min_size: int = Field(default=2, ge=1)
    db_pool_max_size: int = Field(default=10, ge=1)
    db_command_timeout: int = Field(default=30, ge=1)

    # Redis Cache Configuration
    redis_url: Optional[str] = Field(default=None)
    dashboard_cache_ttl: int = Field(default=300, ge=1)  # 5 minutes

    # Delegation rules
    reason_max_length: int = Field(default=DelegationLimits.REASON_MAX_LENGTH, ge=1)
    expiring_soon_days: int = Field(default=DelegationLimits.EXPIRING_SOON_DAYS, ge=1)
    audit_access_denied: bool = Field(default=True)

    # Event bus
    event_queue_size: int = Field(default=1000, ge=0)

    # Logging Configuration
    log_verbosity: str = Field(default="NORMAL")
    log_format: str = Field(default="simple")

    @field_validator("db_schema")
    @classmethod
    def validate_schema(cls, v: str) -> str:
        """Schema names are interpolated into SQL, keep them identifier-safe."""
        if not v.replace("_", "").isalnum():
            raise ValueError("db_schema must contain only letters, digits and underscores")
        return v

    @property
    def uses_database(self) -> bool:
        return bool(self.database_url)


@lru_cache()
def get_settings() -> VaultSettings:
    """Get cached settings instance."""
    return VaultSettings()
