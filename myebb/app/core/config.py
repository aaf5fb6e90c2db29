from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "http://127.0.0.1:9090/api/v1"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/myebb.db"


def normalize_database_url(raw_url: str | None) -> str:
    """Force the async SQLite driver and make sure the file's directory exists."""

    url = str(raw_url) if raw_url else DEFAULT_DATABASE_URL
    if url.startswith("sqlite://") and "+aiosqlite" not in url:
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    if url.startswith("sqlite+aiosqlite:///"):
        db_path = url.split("///", maxsplit=1)[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return url


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, alias="API_BASE_URL")
    google_client_id: str = Field(default="", alias="GOOGLE_CLIENT_ID")
    database_url: str = Field(default=DEFAULT_DATABASE_URL, alias="DATABASE_URL")
    log_file: Path = Field(default=Path("logs/myebb.log"))
    request_timeout_seconds: float = Field(default=10.0)
    history_limit: int = Field(default=30, alias="HISTORY_LIMIT")

    version: str = Field(default_factory=lambda: Settings._load_version())

    @staticmethod
    def _load_version() -> str:
        version_env = os.getenv("VERSION")
        if version_env:
            return version_env
        version_file = Path("VERSION")
        if version_file.exists():
            return version_file.read_text(encoding="utf-8").strip()
        return "0.0.0"

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _validate_api_base_url(cls, value: str | None) -> str:
        if not value:
            return DEFAULT_API_BASE_URL
        return str(value).rstrip("/")

    @field_validator("google_client_id", mode="before")
    @classmethod
    def _strip_client_id(cls, value: str | None) -> str:
        return str(value).strip() if value else ""

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Path | str) -> Path:
        path = Path(value)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("history_limit", mode="before")
    @classmethod
    def _validate_history_limit(cls, value: int | str | None) -> int:
        if value is None or value == "":
            return 30
        return max(int(value), 1)

    @field_validator("database_url", mode="before")
    @classmethod
    def _validate_database_url(cls, value: str | None) -> str:
        return normalize_database_url(value)


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()
