from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class AppSettings(BaseSettings):
    """Application settings read from ``SERVICELIFE_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="SERVICELIFE_", extra="ignore")

    app_name: str = "Service lifetimes"
    debug: bool = False
    """Show tracebacks instead of the error page for unhandled exceptions."""
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value
