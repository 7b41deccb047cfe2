"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Smart Task Planner"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://planner@localhost:5432/taskplanner"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Generative backend. Gemini is reached through its OpenAI-compatible endpoint.
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    gemini_max_tokens: int = 2000
    gemini_temperature: float = 0.7

    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "taskplanner"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
