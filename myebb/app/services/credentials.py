from __future__ import annotations

from collections.abc import Mapping

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..db.models import CredentialEntry

TOKEN_KEY = "auth_token"
USER_KEY = "current_user"


class CredentialStorage:
    """Durable key-value slots backing the cached session."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        async with self._session_factory() as session:
            entry = await session.scalar(
                select(CredentialEntry).where(CredentialEntry.key == key)
            )
            return entry.value if entry else None

    async def set(self, key: str, value: str) -> None:
        await self.set_many({key: value})

    async def set_many(self, values: Mapping[str, str]) -> None:
        """Write several slots in a single transaction."""

        async with self._session_factory() as session:
            for key, value in values.items():
                entry = await session.get(CredentialEntry, key)
                if entry is None:
                    session.add(CredentialEntry(key=key, value=value))
                else:
                    entry.value = value
            await session.commit()

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        async with self._session_factory() as session:
            await session.execute(
                delete(CredentialEntry).where(CredentialEntry.key.in_(keys))
            )
            await session.commit()


__all__ = ["CredentialStorage", "TOKEN_KEY", "USER_KEY"]
