"""Pydantic models for database profiles and import settings."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ============================================================================
# Connection Profiles
# ============================================================================


class DatabaseProfile(BaseModel):
    """Destination store connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: Literal["postgres", "supabase"] = "postgres"
    api_key: str | None = None  # Supabase service key
    jsonb_columns: list[str] = Field(default_factory=list)


# ============================================================================
# Import Settings
# ============================================================================


class ImportSettings(BaseSettings):
    """Tunable import policy.

    Read from ``TENANT_IMPORT_*`` environment variables.  Values from the
    ``[import]`` table of db.toml are passed as init kwargs and win over
    the environment.
    """

    model_config = SettingsConfigDict(env_prefix="TENANT_IMPORT_", extra="ignore")

    supported_version: str = "1.0"
    batch_size: int = Field(default=50, ge=1)
    max_row_warnings: int = Field(default=5, ge=0)
    validation_sample_limit: int = Field(default=100, ge=1)
    success_policy: Literal["lenient", "strict"] = "lenient"


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile]
    settings: ImportSettings = Field(default_factory=ImportSettings)
