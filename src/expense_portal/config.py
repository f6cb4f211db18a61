"""
Expense Portal Configuration

Settings are read from the environment (and an optional .env file).
"""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str = "change-this-in-production"
    SESSION_COOKIE: str = "expense_session"

    # Backend
    API_BASE_URL: str = "http://localhost:5000/api"
    REQUEST_TIMEOUT: float = Field(default=30.0, gt=0)

    # Upload / listing
    MAX_UPLOAD_MB: int = Field(default=10, gt=0)
    DEFAULT_PAGE_SIZE: int = Field(default=20, ge=1, le=200)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    # CLI
    CLI_SESSION_FILE: Path = Field(default=Path("~/.expense_portal/session.json"), validate_default=True)

    @field_validator("API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError(f"LOG_FORMAT must be 'console' or 'json', got {v!r}")
        return v

    @field_validator("CLI_SESSION_FILE", mode="before")
    @classmethod
    def expand_session_file(cls, v):
        return Path(v).expanduser()

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
