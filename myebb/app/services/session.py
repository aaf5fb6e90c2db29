from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..metrics import SESSION_TRANSITIONS
from ..schemas.auth import UserProfile
from .credentials import TOKEN_KEY, USER_KEY, CredentialStorage

logger = logging.getLogger(__name__)

AuthObserver = Callable[[bool], None]


@dataclass(frozen=True)
class Session:
    token: str | None = None
    user: UserProfile | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)


class SessionStore:
    """Single writer of the cached credential and the authenticated flag.

    The in-memory :class:`Session` snapshot is replaced in one assignment,
    after persistence succeeded, so a reader never observes a cleared token
    with the flag still raised. Observers are called synchronously, in
    subscription order, whenever the flag changes.

    Usage::

        store = await SessionStore.open(CredentialStorage(session_factory))
        unsubscribe = store.subscribe(lambda authenticated: ...)
        await store.login(token, user)
    """

    def __init__(self, storage: CredentialStorage) -> None:
        self._storage = storage
        self._session = Session()
        self._observers: list[AuthObserver] = []
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, storage: CredentialStorage) -> SessionStore:
        store = cls(storage)
        await store.restore()
        return store

    @property
    def session(self) -> Session:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def current_user(self) -> UserProfile | None:
        return self._session.user

    def current_credential(self) -> str | None:
        return self._session.token or None

    def subscribe(self, observer: AuthObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    async def restore(self) -> Session:
        """Rebuild the session from storage, failing closed on any problem."""

        async with self._lock:
            restored = Session()
            try:
                token = await self._storage.get(TOKEN_KEY)
                raw_user = await self._storage.get(USER_KEY) if token else None
            except (SQLAlchemyError, OSError):
                logger.warning("credential storage unreadable, starting logged out", exc_info=True)
                token = raw_user = None

            if token and raw_user:
                try:
                    restored = Session(token=token, user=UserProfile.model_validate_json(raw_user))
                except ValidationError:
                    logger.warning("cached user record is corrupt, starting logged out")
            elif token:
                logger.info("cached token has no user record, starting logged out")

            self._apply(restored, "restore")
            return restored

    async def login(self, token: str, user: UserProfile) -> None:
        async with self._lock:
            await self._storage.set_many(
                {TOKEN_KEY: token, USER_KEY: user.model_dump_json()}
            )
            self._apply(Session(token=token, user=user), "login")

    async def update_user(self, user: UserProfile) -> None:
        async with self._lock:
            await self._storage.set(USER_KEY, user.model_dump_json())
            self._apply(Session(token=self._session.token, user=user), "update_user")

    async def logout(self) -> None:
        async with self._lock:
            await self._storage.delete(TOKEN_KEY, USER_KEY)
            self._apply(Session(), "logout")

    def _apply(self, session: Session, event: str) -> None:
        was_authenticated = self._session.is_authenticated
        self._session = session
        SESSION_TRANSITIONS.labels(event=event).inc()
        logger.info(
            "session %s",
            event,
            extra={"event": event, "extra_fields": {"authenticated": session.is_authenticated}},
        )
        if session.is_authenticated != was_authenticated:
            self._notify(session.is_authenticated)

    def _notify(self, authenticated: bool) -> None:
        for observer in list(self._observers):
            try:
                observer(authenticated)
            except Exception:
                logger.exception("session observer failed")


__all__ = ["AuthObserver", "Session", "SessionStore"]
