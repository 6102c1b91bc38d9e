"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage
    STORAGE_BACKEND: Literal["memory", "database"] = "memory"
    DATABASE_URL: str = "sqlite+aiosqlite:///./profiles.db"
    AUTO_CREATE_DB_SCHEMA: bool = True

    # Redis (rate limit counters)
    REDIS_URL: str = "redis://localhost:6379"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Uploads
    UPLOAD_DIR: str = "public/uploads"
    UPLOAD_PUBLIC_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
    UPLOAD_ORPHAN_RETENTION_HOURS: int = 24
    UPLOAD_ORPHAN_SWEEP_INTERVAL_MINUTES: int = 0

    # Credential log forwarding
    WEBHOOK_URL: str = ""
    WEBHOOK_TIMEOUT_SECONDS: float = 10.0

    # Authenticated variant
    PROFILE_AUTH_REQUIRED: bool = False
    JWT_SECRET: str = "change_me_in_production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24
    SESSION_COOKIE_NAME: str = "profile_session"
    SESSION_COOKIE_SECURE: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()


def webhook_url() -> str:
    """Return the configured webhook URL, or an empty string when forwarding is off."""
    return (settings.WEBHOOK_URL or "").strip()


def validate_security_settings() -> None:
    """Fail fast when sessions are enabled with an insecure default secret."""
    if not settings.PROFILE_AUTH_REQUIRED:
        return
    insecure_values = {
        "",
        "change_me_in_production",
        "your_jwt_secret_change_in_production",
    }
    jwt_secret = (settings.JWT_SECRET or "").strip()
    if jwt_secret in insecure_values or len(jwt_secret) < 24:
        raise ValueError("JWT_SECRET is insecure. Configure a strong non-default secret (>=24 chars).")
