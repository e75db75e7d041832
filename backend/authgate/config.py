"""
AuthGate configuration using pydantic-settings.

All settings can be overridden via environment variables or a .env file.
The signing key is read once per process; rotating it invalidates every
token issued under the previous key.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Project root is two levels above this file: backend/authgate/config.py -> project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Runtime configuration for the AuthGate service."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------- JWT ----------
    JWT_SECRET_KEY: str = Field(..., min_length=1)  # required, no default
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_DAYS: int = Field(default=1, ge=1)

    # ---------- Password hashing ----------
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=31)

    # ---------- Database ----------
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "authgate"
    DB_PASSWORD: str = "authgate"
    DB_NAME: str = "authgate"
    DB_AUTO_CREATE: bool = False

    # ---------- CORS ----------
    ALLOWED_ORIGINS: List[str] = ["*"]

    # ---------- Logging ----------
    LOG_LEVEL: str = "INFO"
    AUDIT_LOG_EMAILS: bool = False

    @property
    def database_url(self) -> str:
        """Return DATABASE_URL if set, else a PostgreSQL string for psycopg2."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide Settings instance."""
    return Settings()
