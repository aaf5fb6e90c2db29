"""Local SQLite cache: engine construction and schema bootstrap."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from myebb.app.core.config import normalize_database_url
from myebb.app.db.models import Base, SettingEntry

SCHEMA_VERSION_KEY = "schema_version"


def create_engine(database_url: str | None) -> AsyncEngine:
    return create_async_engine(normalize_database_url(database_url), echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(
    engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    version: str,
) -> None:
    """Create missing tables and stamp the cache with the client version."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        stamp = await session.get(SettingEntry, SCHEMA_VERSION_KEY)
        if stamp is None:
            session.add(SettingEntry(key=SCHEMA_VERSION_KEY, value=version))
        else:
            stamp.value = version
        await session.commit()


__all__ = [
    "SCHEMA_VERSION_KEY",
    "create_engine",
    "create_session_factory",
    "init_db",
]
