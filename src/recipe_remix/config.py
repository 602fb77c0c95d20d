"""
Recipe Remix - Configuration and settings.

Everything is read from environment variables (or .env). Nothing is loaded
at import time; use get_settings() or the lazy `settings` proxy.
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

    # OpenAI (only required once an AI call is made)
    openai_api_key: str | None = None

    # Supabase (persistence of saved recipes)
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    saved_recipes_table: str = "saved_recipes"

    # Application
    remix_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Prompt logging
    # REMIX_LOG_PROMPTS=1 - write prompts/responses to prompt_logs/ (dev only)
    remix_log_prompts: bool = False

    # Durable local storage for the process-wide session identity
    session_id_path: Path = Path.home() / ".recipe_remix" / "session_id"

    # Chat: 20 messages = 10 user/assistant exchanges
    chat_history_limit: int = 20

    # Web UI
    cors_origins: list[str] = [
        "http://localhost:5173",  # Vite dev server
        "http://127.0.0.1:5173",
    ]

    @property
    def is_development(self) -> bool:
        return self.remix_env == "development"

    @property
    def is_production(self) -> bool:
        return self.remix_env == "production"


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
