"""
Reviews - Configuration and settings.

Settings are read from the environment (and .env in development).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Supabase credentials are required; everything else has a working default
    for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str

    # OpenAI (voice note transcription, optional)
    openai_api_key: str | None = None
    transcription_model: str = "whisper-1"

    # Application
    reviews_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )

    # Session cookies
    access_cookie_name: str = "sb-access-token"
    refresh_cookie_name: str = "sb-refresh-token"
    access_token_max_age_seconds: int = 60 * 60
    refresh_token_max_age_days: int = 30

    # Navigation targets
    onboarding_entry_path: str = "/onboarding"
    home_path: str = "/discover"

    @property
    def is_development(self) -> bool:
        return self.reviews_env == "development"

    @property
    def is_production(self) -> bool:
        return self.reviews_env == "production"

    @property
    def refresh_token_max_age_seconds(self) -> int:
        return self.refresh_token_max_age_days * 24 * 60 * 60


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: Settings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
