"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_HOURS: float = 3.0
    INTERVIEW_TTL_HOURS: float = 24.0
    ALLOW_RAW_ID_LOGIN_LINKS: bool = True

    MAX_CONVERSATION_TURNS: int = 15
    COMPLETION_SENTINEL: str = "INTERVIEW_COMPLETE"
    DUPLICATE_PREFIX_CHARS: int = 50

    MIN_ANSWER_CHARS: int = 10
    MIN_TRANSCRIPT_CHARS: int = 50
    PASS_THRESHOLD: float = 75.0

    LLM_BASE_URL: str = "https://api.openai.com"
    LLM_ENDPOINT: str = "/v1/chat/completions"
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT_S: float = 30.0
    LLM_API_KEY_ENV: str | None = "OPENAI_API_KEY"
    LLM_TEMPERATURE: float | None = None
    LLM_SEQUENTIAL: bool = False

    CLIENT_ORIGIN: str = "http://localhost:9000"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
