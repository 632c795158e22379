"""
Configuration and settings for the planner service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.constants import (
    DEFAULT_TOTAL_BUDGET,
    MIN_PASSWORD_LENGTH,
    SIGNIN_CLOSE_DELAY_SECONDS,
    SIGNUP_CLOSE_DELAY_SECONDS,
)


class Settings(BaseSettings):
    """Environment-backed settings for the planner."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None, env="DATABASE_URL")

    # Hosted backend (PostgREST + GoTrue compatible, e.g. Supabase)
    hosted_url: Optional[str] = Field(default=None, env="HOSTED_URL")
    hosted_api_key: Optional[str] = Field(default=None, env="HOSTED_API_KEY")
    request_timeout: float = Field(default=30, env="REQUEST_TIMEOUT")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "PLANNER_USE_IN_MEMORY_BACKENDS", "USE_IN_MEMORY_BACKENDS"
        ),
    )

    # Access tokens issued by the local identity services
    jwt_secret: str = Field(
        default="change-me-to-a-long-random-secret", env="JWT_SECRET"
    )
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(
        default=60, env="ACCESS_TOKEN_EXPIRE_MINUTES"
    )
    min_password_length: int = Field(default=MIN_PASSWORD_LENGTH)

    # Planning defaults
    total_budget: float = Field(default=DEFAULT_TOTAL_BUDGET, env="TOTAL_BUDGET")
    signin_close_delay: float = Field(default=SIGNIN_CLOSE_DELAY_SECONDS)
    signup_close_delay: float = Field(default=SIGNUP_CLOSE_DELAY_SECONDS)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
