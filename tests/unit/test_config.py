from __future__ import annotations

from pathlib import Path

import pytest

from myebb.app.core.config import DEFAULT_API_BASE_URL, get_settings


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "API_BASE_URL",
        "DATABASE_URL",
        "GOOGLE_CLIENT_ID",
        "HISTORY_LIMIT",
        "LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("VERSION", "9.9.9")
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.version == "9.9.9"
    assert settings.api_base_url == DEFAULT_API_BASE_URL
    assert settings.google_client_id == ""
    assert settings.history_limit == 30
    assert settings.database_url == "sqlite+aiosqlite:///./data/myebb.db"
    assert (tmp_path / "data").is_dir()
    assert settings.log_file.parent.exists()


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("API_BASE_URL", "https://api.myebb.app/api/v1/")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", " client-123 ")
    monkeypatch.setenv("HISTORY_LIMIT", "0")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cache' / 'client.db'}")

    settings = get_settings()

    assert settings.api_base_url == "https://api.myebb.app/api/v1"
    assert settings.google_client_id == "client-123"
    assert settings.history_limit == 1
    assert settings.database_url.startswith("sqlite+aiosqlite:///")
    assert (tmp_path / "cache").is_dir()


def test_settings_fallback_to_version_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _clear_env(monkeypatch)
    version_file = tmp_path / "VERSION"
    version_file.write_text("1.2.3", encoding="utf-8")
    monkeypatch.delenv("VERSION", raising=False)
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.version == "1.2.3"
