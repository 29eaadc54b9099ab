"""Task Manager Configuration Settings."""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(BASE_DIR, ".."))
DEFAULT_DB_PATH = os.path.join(PROJECT_ROOT, "taskmanager.db")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Database
    DATABASE_URL: Optional[str] = None

    # JWT
    JWT_SECRET_KEY: str = Field(default="dev-secret-key-change-me")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Application
    APP_NAME: str = "Task Management API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Rate limiting (per client address, on /api routes)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_MS: int = 15 * 60 * 1000
    RATE_LIMIT_MAX_REQUESTS: int = 100

    # Responses at least this large are gzip-compressed
    GZIP_MINIMUM_SIZE: int = 1000

    # Attachments
    UPLOAD_PATH: str = "./uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    MAX_ATTACHMENTS_PER_TASK: int = 3

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    @property
    def database_url(self) -> str:
        """Return the configured database URL, defaulting to a local SQLite file."""

        return self.DATABASE_URL or f"sqlite:///{DEFAULT_DB_PATH}"

    @property
    def rate_limit(self) -> str:
        """Return the limit in the `limits` notation, e.g. ``100 per 900 seconds``."""

        window_seconds = max(1, self.RATE_LIMIT_WINDOW_MS // 1000)
        return f"{self.RATE_LIMIT_MAX_REQUESTS} per {window_seconds} seconds"

    @property
    def cors_origins_list(self) -> List[str]:
        """Return the configured CORS origins as a sanitized list."""

        if not self.CORS_ORIGINS:
            return []

        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
