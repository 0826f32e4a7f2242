"""
Pulse - Configuration and settings.

Settings are read from the environment (and `.env`). Nothing here is required:
without an OpenAI key the follow-up provider runs in placeholder mode.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (optional - follow-up questions fall back to placeholders)
    openai_api_key: str | None = None
    follow_up_model: str | None = None  # Overrides the model router when set

    # Application
    pulse_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Prompt logging
    # PULSE_LOG_PROMPTS=1 - log to local files (dev only)
    pulse_log_prompts: bool = False

    # Preference persistence
    preferences_dir: Path = Path(".pulse")
    profile_key: str = "userPreferences"

    @property
    def is_development(self) -> bool:
        return self.pulse_env == "development"

    @property
    def is_production(self) -> bool:
        return self.pulse_env == "production"

    @property
    def has_llm_backend(self) -> bool:
        key = (self.openai_api_key or "").strip()
        return bool(key) and key != "mock_api_key_placeholder"


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
