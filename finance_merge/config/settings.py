"""
Configuration Management for Finance Merge

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The merge core itself takes explicit arguments; only the orchestrator and
the resolution defaults read from settings.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from finance_merge.models.merge import COLLECTION_KEYS, ResolutionChoice


class ReconciliationSettings(BaseSettings):
    """
    Reconciliation settings.

    Loads configuration from FINANCE_MERGE_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_MERGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Resolution
    default_resolution: ResolutionChoice = Field(
        default=ResolutionChoice.LOCAL,
        description="Version kept for conflicts the user did not decide"
    )

    # Document shape
    year_map_key: str = Field(
        default="years",
        min_length=1,
        description="Document key holding per-year collections"
    )

    # Audit
    log_conflict_details: bool = Field(
        default=True,
        description="Attach conflict ids and reasons to audit events"
    )

    @field_validator('default_resolution')
    @classmethod
    def validate_default_resolution(cls, v: ResolutionChoice) -> ResolutionChoice:
        """A manual edit cannot be a blanket default."""
        if v == ResolutionChoice.MANUAL:
            raise ValueError("default_resolution must be 'external' or 'local'")
        return v

    @field_validator('year_map_key')
    @classmethod
    def validate_year_map_key(cls, v: str) -> str:
        if v in COLLECTION_KEYS:
            raise ValueError(f"year_map_key cannot shadow collection key '{v}'")
        return v


@lru_cache()
def get_settings() -> ReconciliationSettings:
    """
    Get reconciliation settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return ReconciliationSettings()
