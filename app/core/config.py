from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_NAME: str = "Video Curator"
    APP_ENV: Literal["development", "production"] = "production"

    REDIS_URL: str = "redis://redis:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_KEY_PREFIX: str = "curator:"
    # "memory" keeps everything in-process; only useful for development
    STORE_BACKEND: Literal["redis", "memory"] = "redis"
    TOKEN_SALT: str = "change-me"
    # Shared with the sign-in layer; POST /users is open when unset
    REGISTRATION_SECRET: str | None = None

    YOUTUBE_API_BASE_URL: str = "https://www.googleapis.com/youtube/v3"
    YOUTUBE_TIMEOUT_SECONDS: float = 10.0

    SUBSCRIPTION_DAYS: int = 7
    SUBSCRIPTION_VIDEO_LIMIT: int = 50
    POPULAR_REGION: str = "US"
    CURATION_TARGET: int = 10
    MAX_DAILY_REFRESHES: int = 5
    MAX_USERS: int = 5
    REJECTION_CONTEXT_LIMIT: int = 20
    REJECTION_HISTORY_LIMIT: int = 100

    # AI
    DEFAULT_GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_API_KEY: str | None = None


settings = Settings()

APP_VERSION = __version__
