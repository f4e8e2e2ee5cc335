# Settings: environment-driven configuration for the StudySwaps auth client.
# Created: 2026-10-05

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from ``STUDYSWAPS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STUDYSWAPS_",
        env_file=".env",
        extra="ignore",
    )

    base_url: str = "http://localhost:5000"
    request_timeout: float = Field(default=15.0, gt=0)
    app_root: str = "/"
    log_level: str = "INFO"

    # OAuth state is single-use and expires 10 minutes after creation
    oauth_state_ttl_seconds: int = Field(default=600, gt=0)

    # None keeps "local storage" in memory for the lifetime of the process
    local_storage_path: Path | None = None

    # Fail-closed logout on 401. Empty session_paths means every path.
    logout_on_401: bool = True
    session_paths: list[str] = Field(default_factory=list)

    # Server endpoints
    generate_token_path: str = "/api/auth/oauth/generate-token"
    register_state_path: str = "/api/auth/register-state"
    validate_state_path: str = "/api/auth/oauth/validate-state"
    clear_state_path: str = "/api/auth/oauth/clear-state"
    initiate_path: str = "/api/auth/initiate"
    csrf_path: str = "/api/auth/csrf/generate"
    session_path: str = "/api/auth/session"
    logout_path: str = "/api/auth/logout"

    @classmethod
    def load(cls, **overrides) -> Settings:
        """Build settings from the environment, applying explicit overrides."""
        return cls(**{k: v for k, v in overrides.items() if v is not None})


@lru_cache
def get_settings() -> Settings:
    return Settings.load()
