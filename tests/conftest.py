from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from datetime import date, datetime, time
from pathlib import Path
from uuid import uuid4

import pytest

from myebb.app.core import config
from myebb.app.schemas.auth import UserProfile
from myebb.app.schemas.mood import MoodEntry, MoodState
from myebb.db import create_engine, create_session_factory, init_db


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


@pytest.fixture()
async def temp_session_factory(tmp_path: Path, anyio_backend: str) -> AsyncIterator:
    db_path = tmp_path / f"unit_{uuid4().hex}.db"
    engine = create_engine(f"sqlite+aiosqlite:///{db_path}")
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, "test")
    try:
        yield session_factory
    finally:
        await engine.dispose()


@pytest.fixture()
def user() -> UserProfile:
    return UserProfile(
        id=7,
        email="nari@example.com",
        name="Nari",
        provider="google",
        provider_id="g-123",
        avatar_url=None,
        created_at=datetime(2025, 11, 17, 8, 30),
    )


@pytest.fixture()
def make_entry() -> Callable[..., MoodEntry]:
    counter = iter(range(1, 10_000))

    def _make(
        day: date,
        state: MoodState | int,
        intensity: int = 3,
        *,
        hour: int = 12,
    ) -> MoodEntry:
        entry_id = next(counter)
        stamp = datetime.combine(day, time(hour=hour))
        return MoodEntry(
            id=entry_id,
            user_id=7,
            date=day,
            state=MoodState(state),
            intensity=intensity,
            timestamp=stamp,
            created_at=stamp,
        )

    return _make
