import json
from functools import lru_cache
from typing import Annotated, List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    PROJECT_NAME: str = "PGB Event Scheduler API"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "local"
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"
    # MONGODB_URI is accepted so existing deployment env files keep working,
    # the value must still be an SQLAlchemy URL.
    DATABASE_URL: str = Field(
        default="sqlite:///./event_portal.db",
        validation_alias=AliasChoices("DATABASE_URL", "MONGODB_URI"),
    )
    JWT_SECRET: str = "changeme"
    JWT_EXPIRES_IN: str = "7d"
    JWT_ALGORITHM: str = "HS256"
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Redis configuration
    REDIS_URL: str = "redis://localhost:6379/0"
    REALTIME_BACKPLANE_ENABLED: bool = False
    REALTIME_CHANNEL: str = "realtime"

    # Celery configuration
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    # Daily cleanup of past resource availability rows
    CLEANUP_TIMEZONE: str = "Asia/Manila"
    CLEANUP_HOUR: int = 0
    CLEANUP_MINUTE: int = 0

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: List[str] | str) -> List[str]:
        """Allow comma-separated strings, JSON arrays and list inputs."""
        if isinstance(value, str) and value.strip().startswith("["):
            return json.loads(value)
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
