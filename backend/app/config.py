"""Configuration settings for the Wakeful backend."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment (``WAKEFUL_`` prefix)."""

    # Storage
    db_path: str | None = None  # None falls back to ~/.wakeful/observations.db

    # App
    debug: bool = False
    log_level: str = "INFO"
    # CORS: Allowed origins for cross-origin requests
    cors_origins: list[str] = ["*"]

    # Rate limits (slowapi syntax)
    wake_rate_limit: str = "120/minute"
    write_rate_limit: str = "60/minute"

    class Config:
        env_prefix = "WAKEFUL_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars not in model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
