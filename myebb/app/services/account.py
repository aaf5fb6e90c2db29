from __future__ import annotations

import logging

from ..core.errors import APIError, MissingConfiguration, ServerError, Unauthorized
from ..schemas.auth import UserProfile
from .api_client import APIClient
from .session import SessionStore

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Session expired. Please log in again."
NOT_LOGGED_IN_MESSAGE = "Not logged in. Please log in first."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class AccountService:
    """Auth flows and the mapping of API failures to user-facing messages."""

    def __init__(
        self,
        api: APIClient,
        session: SessionStore,
        *,
        google_client_id: str = "",
    ) -> None:
        self._api = api
        self._session = session
        self._google_client_id = google_client_id

    async def sign_in(self, email: str, password: str) -> UserProfile:
        result = await self._api.login(email, password)
        await self._session.login(result.token, result.user)
        return result.user

    async def register(self, email: str, password: str, name: str) -> UserProfile:
        result = await self._api.register(email, password, name)
        await self._session.login(result.token, result.user)
        return result.user

    async def sign_in_with_google(self, id_token: str) -> UserProfile:
        if not self._google_client_id:
            raise MissingConfiguration("Google Client ID")
        result = await self._api.login_with_google(id_token)
        await self._session.login(result.token, result.user)
        return result.user

    async def sign_out(self) -> None:
        await self._session.logout()

    async def describe_error(
        self,
        exc: Exception,
        *,
        fallback: str,
        session_required: bool = True,
    ) -> str:
        """Return the message to show for ``exc``.

        A 401 while a session is required forces a logout; during sign-in it
        means the credentials were rejected. Nothing is retried.
        """

        if isinstance(exc, Unauthorized):
            if not session_required:
                return INVALID_CREDENTIALS_MESSAGE
            if not self._session.is_authenticated:
                return NOT_LOGGED_IN_MESSAGE
            logger.info("session rejected by server, logging out")
            await self._session.logout()
            return SESSION_EXPIRED_MESSAGE
        if isinstance(exc, ServerError):
            return exc.message
        if isinstance(exc, MissingConfiguration):
            return str(exc)
        if not isinstance(exc, APIError):
            logger.warning("request failed: %s", exc)
        return fallback


__all__ = [
    "AccountService",
    "INVALID_CREDENTIALS_MESSAGE",
    "NOT_LOGGED_IN_MESSAGE",
    "SESSION_EXPIRED_MESSAGE",
]
