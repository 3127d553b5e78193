"""Environment-driven configuration for the Worklog service.

Every tunable lives on ``AppSettings`` so there is exactly one place to look
when asking which environment variables the service reads. Values come from
the process environment first and then from ``.env`` / ``.env.local`` files
sitting next to the working directory.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Worklog"
    API_PREFIX: str = "/api"

    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")

    # Empty means "derive from DATA_DIR" (see ``get_settings``).
    DB_URL: str = Field(default="", validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))

    # ---- Bearer tokens
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_TTL_MINUTES: int = 60 * 24 * 7

    # ---- Password hashing
    BCRYPT_ROUNDS: int = 12

    # ---- Session listing
    DEFAULT_PAGE_LIMIT: int = 30
    MAX_PAGE_LIMIT: int = 100

    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = Field(default_factory=list)
    LOG_LEVEL: str = "INFO"
    # "logger=LEVEL" pairs, comma separated. The access log duplicates request.completed.
    LOG_LEVELS: Annotated[dict[str, str], NoDecode] = Field(default_factory=lambda: {"uvicorn.access": "WARNING"})

    HOST: str = "0.0.0.0"
    PORT: int = 8089

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")

    @field_validator("LOG_LEVELS", mode="before")
    @classmethod
    def parse_log_levels(cls, value: Any) -> dict[str, str]:
        if value in (None, "", {}):
            return {}
        if isinstance(value, dict):
            return {str(name).strip(): str(level).strip().upper() for name, level in value.items()}
        if isinstance(value, str):
            levels: dict[str, str] = {}
            for item in value.split(","):
                if not item.strip():
                    continue
                name, sep, level = item.partition("=")
                if not sep or not name.strip() or not level.strip():
                    raise ValueError(f"LOG_LEVELS entry must look like logger=LEVEL: {item!r}")
                levels[name.strip()] = level.strip().upper()
            return levels
        raise TypeError("LOG_LEVELS must be a comma separated string or mapping")

    @field_validator("API_PREFIX")
    @classmethod
    def normalise_prefix(cls, value: str) -> str:
        value = (value or "").strip().rstrip("/")
        if value and not value.startswith("/"):
            value = f"/{value}"
        return value


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if not settings.DB_URL:
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
        settings.DB_URL = f"sqlite:///{settings.DATA_DIR / 'worklog.db'}"
    return settings


settings = get_settings()
