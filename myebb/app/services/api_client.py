from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..core.config import Settings
from ..core.errors import DecodingError, InvalidResponse, InvalidURL, ServerError, Unauthorized
from ..middleware import RequestLogger
from ..schemas.analytics import DashboardRange, DashboardStats
from ..schemas.auth import (
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    SocialLoginRequest,
    UserProfile,
)
from ..schemas.mood import MoodEntry, MoodRequest, MoodState
from .session import SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MOOD_HISTORY = TypeAdapter(list[MoodEntry])
_MISSING_ENTRY_MARKERS = ("state not found", "mood not found")


class APIClient:
    """Async wrapper over the Myebb REST API.

    Every call maps a non-2xx status to the error taxonomy in
    :mod:`myebb.app.core.errors`; nothing is retried. Calls that need a
    session read the bearer token from the injected :class:`SessionStore`
    and fail with :class:`Unauthorized` before any I/O when there is none.
    """

    def __init__(
        self,
        session: SessionStore,
        *,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        request_logger: RequestLogger | None = None,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._request_logger = request_logger or RequestLogger()
        self._clock = clock or date.today
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            event_hooks=self._request_logger.event_hooks(),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session: SessionStore,
        **kwargs: Any,
    ) -> APIClient:
        return cls(
            session,
            base_url=settings.api_base_url,
            timeout=settings.request_timeout_seconds,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> APIClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- authentication ---------------------------------------------------
    async def register(self, email: str, password: str, name: str) -> LoginResponse:
        body = RegisterRequest(email=email, password=password, name=name)
        response = await self._send("POST", "/auth/register", body=body, authenticated=False)
        self._raise_for_status(response, "Registration failed")
        return self._decode(response, LoginResponse)

    async def login(self, email: str, password: str) -> LoginResponse:
        body = LoginRequest(email=email, password=password)
        response = await self._send("POST", "/auth/login", body=body, authenticated=False)
        self._raise_for_status(response, "Login failed")
        return self._decode(response, LoginResponse)

    async def login_with_google(self, id_token: str) -> LoginResponse:
        return await self._social_login("/auth/google", id_token)

    async def _social_login(self, path: str, token: str) -> LoginResponse:
        body = SocialLoginRequest(token=token)
        response = await self._send("POST", path, body=body, authenticated=False)
        self._raise_for_status(response, "Login failed")
        return self._decode(response, LoginResponse)

    # -- profile ----------------------------------------------------------
    async def get_profile(self) -> UserProfile:
        response = await self._send("GET", "/profile")
        self._raise_for_status(response, "Failed to load profile")
        user = self._decode(response, UserProfile)
        await self._session.update_user(user)
        return user

    async def update_profile(
        self,
        name: str | None = None,
        avatar_data_url: str | None = None,
    ) -> UserProfile:
        body = ProfileUpdateRequest(
            name=_blank_to_none(name),
            avatar_url=_blank_to_none(avatar_data_url),
        )
        response = await self._send("PUT", "/profile", body=body)
        self._raise_for_status(response, "Failed to update profile")
        user = self._decode(response, UserProfile)
        await self._session.update_user(user)
        return user

    # -- mood entries -----------------------------------------------------
    async def log_mood(
        self,
        state: MoodState | int,
        intensity: int,
        *,
        day: date | None = None,
        note: str | None = None,
        weather: str | None = None,
    ) -> MoodEntry:
        body = MoodRequest(
            state=MoodState(state),
            intensity=intensity,
            date=day.isoformat() if day else None,
            note=note,
            weather=weather,
        )
        response = await self._send("POST", "/states", body=body)
        self._raise_for_status(response, "Failed to log state")
        return self._decode(response, MoodEntry)

    async def get_mood_for_date(self, day: date) -> MoodEntry | None:
        response = await self._send("GET", f"/states/date/{day.isoformat()}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        try:
            self._raise_for_status(response, "Failed to get today's state")
        except ServerError as exc:
            if _is_missing_entry(exc.message):
                return None
            raise
        return self._decode(response, MoodEntry)

    async def get_today_mood(self) -> MoodEntry | None:
        return await self.get_mood_for_date(self._clock())

    async def get_mood_history(self, limit: int = 30) -> list[MoodEntry]:
        response = await self._send("GET", "/states", params={"limit": limit})
        self._raise_for_status(response, "Failed to get state history")
        return self._decode_with(response, _MOOD_HISTORY.validate_json)

    # -- analytics --------------------------------------------------------
    async def get_dashboard_stats(
        self,
        range: DashboardRange = DashboardRange.MONTHLY,
    ) -> DashboardStats:
        response = await self._send(
            "GET",
            "/analytics/dashboard",
            params={"range": DashboardRange(range).value},
        )
        self._raise_for_status(response, "Failed to load dashboard")
        return self._decode(response, DashboardStats)

    # -- transport helpers ------------------------------------------------
    def _url(self, path: str) -> httpx.URL:
        try:
            url = httpx.URL(f"{self._base_url}{path}")
        except httpx.InvalidURL as exc:
            raise InvalidURL(f"{self._base_url}{path}") from exc
        if url.scheme not in {"http", "https"} or not url.host:
            raise InvalidURL(str(url))
        return url

    async def _send(
        self,
        method: str,
        path: str,
        *,
        body: BaseModel | None = None,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        headers: dict[str, str] = {}
        if authenticated:
            token = self._session.current_credential()
            if not token:
                raise Unauthorized("no active session")
            headers["Authorization"] = f"Bearer {token}"

        request = self._client.build_request(
            method,
            self._url(path),
            params=params,
            headers=headers,
            json=body.model_dump(mode="json", exclude_none=True) if body is not None else None,
        )
        try:
            return await self._client.send(request)
        except (httpx.ProtocolError, httpx.DecodingError) as exc:
            self._request_logger.record_failure(request, exc)
            raise InvalidResponse(str(exc)) from exc
        except httpx.TransportError as exc:
            self._request_logger.record_failure(request, exc)
            raise

    @staticmethod
    def _raise_for_status(response: httpx.Response, default_message: str) -> None:
        if response.is_success:
            return
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise Unauthorized()
        try:
            payload = response.json()
        except ValueError:
            payload = None
        message = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(message, str) and message:
            raise ServerError(message, status_code=response.status_code)
        raise ServerError(default_message, status_code=response.status_code)

    @staticmethod
    def _decode(response: httpx.Response, model: type[T]) -> T:
        return APIClient._decode_with(response, model.model_validate_json)  # type: ignore[attr-defined]

    @staticmethod
    def _decode_with(response: httpx.Response, parse: Callable[[bytes], T]) -> T:
        try:
            return parse(response.content)
        except ValidationError as exc:
            logger.warning(
                "undecodable response body",
                extra={"path": response.request.url.path, "status": response.status_code},
            )
            raise DecodingError(str(exc)) from exc


def _is_missing_entry(message: str) -> bool:
    # Some deployments answer an empty day with an error body instead of 404.
    normalized = message.lower()
    return any(marker in normalized for marker in _MISSING_ENTRY_MARKERS)


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


__all__ = ["APIClient"]
