"""Application configuration using Pydantic Settings"""

import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable support (``TRIVIA_*``)"""

    model_config = SettingsConfigDict(
        env_prefix="TRIVIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Question supplier
    trivia_api_url: str = Field(default="https://opentdb.com", description="Open Trivia DB base URL")
    http_timeout: float = Field(default=10.0, gt=0, description="Timeout for trivia API requests")

    # Room timing (seconds)
    tick_interval: float = Field(default=1.0, gt=0, description="Countdown tick length")
    retry_delay: float = Field(default=5.0, ge=0, description="Wait before re-requesting a question after a failure")
    next_question_delay: float = Field(default=5.0, ge=0, description="Pause between grading and the next question")

    # Default room created at startup
    create_default_room: bool = Field(default=True)
    default_room_name: str = Field(default="The Any Room")
    default_room_can_skip: bool = Field(default=True)

    nickname_max_length: int = Field(default=16, ge=1)

    # Server
    log_level: str = Field(default="INFO", description="Logging level")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
