"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import List, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "FitCoach Planner Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://fitcoach@localhost:5432/fitcoach"
    cors_allow_origins: List[str] = ["*"]
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "fitcoach"

    ai_default_provider: str = "openai"
    ai_default_model: str = "gpt-4o"
    ai_max_tokens: int = 2000
    ai_reasoning_max_completion_tokens: int = 16000
    ai_temperature: float = 0.7
    ai_reasoning_model_prefixes: Tuple[str, ...] = ("o1", "o3")
    ai_request_timeout_seconds: float = 120.0

    context_recent_sessions: int = 5
    prompt_exercise_limit: int = 50

    card_fetch_timeout_seconds: float = 15.0
    card_user_agent: str = "FitnessCoachAssistant/1.0"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
