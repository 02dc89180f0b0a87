"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Connex Tracker"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Database (Turso)
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)

    # Audit policy
    recompletion_policy: Literal["record", "suppress"] = Field(
        default="record",
        description="Whether re-completing a task or meeting records another Action",
    )
    record_task_assignment: bool = Field(
        default=True,
        description="Record a task_assigned Action when a task is created",
    )
    status_transition_policy: Literal["permissive", "strict"] = Field(
        default="permissive",
        description="Enforce the task/meeting status state machines when strict",
    )

    # Listing caps
    timeline_limit: int = Field(default=50, ge=1, le=500)
    action_list_limit: int = Field(default=100, ge=1, le=500)
    meeting_history_limit: int = Field(default=50, ge=1, le=500)

    # Progress recalculation
    recalc_max_attempts: int = Field(
        default=5,
        ge=1,
        description="Compare-and-swap attempts before a recalculation gives up",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
