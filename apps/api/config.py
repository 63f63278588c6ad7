"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/content.db"

    # Redis (rate limiting when RATE_LIMIT_BACKEND=redis)
    REDIS_URL: str = "redis://localhost:6379"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3001
    PUBLIC_VIEW_PATH: str = "/view"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Shared content
    CONTENT_UPLOAD_DIR: str = "./uploads"
    CONTENT_MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    CONTENT_ALLOWED_MIME_TYPES: List[str] = ["image/jpeg", "image/png", "image/gif", "image/webp"]
    CONTENT_DEFAULT_DELETE_AFTER_MINUTES: int = 1
    REAPER_INTERVAL_SECONDS: int = 30

    # Rate limiting (graph + AI endpoints)
    RATE_LIMIT_BACKEND: str = "memory"  # memory, redis
    RATE_LIMIT_MAX_REQUESTS: int = 20
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Security
    JWT_SECRET: str = "change_me_in_production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24 * 7
    AUTO_CREATE_DB_SCHEMA: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
