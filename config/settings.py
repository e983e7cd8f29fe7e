"""Application settings and configuration management."""
from __future__ import annotations

from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interviews.db")

    # Hosted provider; disabled when no key is present
    PRIMARY_API_KEY: Optional[str] = None
    PRIMARY_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    PRIMARY_MODEL: str = "gemini-1.5-flash"
    PRIMARY_TIMEOUT_S: float = 20.0

    # Self-hosted model server
    MODEL_SERVER_URL: str = "http://localhost:11434"
    MODEL_SERVER_PROBE_TIMEOUT_S: float = 3.0
    MODEL_SERVER_SEQUENTIAL: bool = False
    GENERAL_MODEL: str = "llama2"
    ANALYTICAL_MODEL: str = "llama2"
    CREATIVE_MODEL: str = "llama2"
    CODING_MODEL: str = "llama2"
    GATEWAY_CONFIG_PATH: Optional[str] = None

    DEFAULT_TIME_LIMIT_MINUTES: int = 40
    MIN_TIME_LIMIT_MINUTES: int = 10
    MAX_TIME_LIMIT_MINUTES: int = 60
    SHORT_ANSWER_CHARS: int = 20
    SCORE_WINDOW: int = 5
    FOLLOW_UP_CONTEXT_TURNS: int = 3

    LOG_LEVEL: str = "INFO"
    ENABLE_FILE_LOGS: bool = False
    LOG_FILE: str = "logs/interview.log"
    LOG_MAX_BYTES: int = 5242880
    LOG_BACKUP_COUNT: int = 5

    CORS_ORIGINS: str = "*"
    EXPOSE_ERROR_DETAILS: bool = False

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")

    def task_models(self) -> Dict[str, str]:
        """Map generation task hints to preferred model names."""

        return {
            "analytical": self.ANALYTICAL_MODEL,
            "creative": self.CREATIVE_MODEL,
            "coding": self.CODING_MODEL,
            "technical": self.CODING_MODEL,
            "general": self.GENERAL_MODEL,
            "behavioral": self.CREATIVE_MODEL,
            "problem_solving": self.ANALYTICAL_MODEL,
            "introduction": self.CREATIVE_MODEL,
        }


settings = Settings()
