"""Failures surfaced by the API client.

Every error the client raises for an HTTP exchange derives from
:class:`APIError`, so callers can map the whole family to a message in one
``except`` clause. Transport failures from httpx (connection refused,
timeouts) are not wrapped and reach the caller unchanged.
"""

from __future__ import annotations


class APIError(Exception):
    """Base class for API client failures."""


class InvalidURL(APIError):
    """The request URL could not be built from the configured base URL."""


class InvalidResponse(APIError):
    """The server answered with something that is not a usable HTTP response."""


class Unauthorized(APIError):
    """HTTP 401, or a call that needs a session made while logged out."""

    def __init__(self, message: str = "authentication required") -> None:
        super().__init__(message)


class ServerError(APIError):
    """Non-2xx response, carrying the server's message or a per-call default."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DecodingError(APIError):
    """A 2xx body that does not match the expected payload."""


class MissingConfiguration(Exception):
    """A feature was used without the setting it depends on."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} is not configured")
        self.name = name


__all__ = [
    "APIError",
    "DecodingError",
    "InvalidResponse",
    "InvalidURL",
    "MissingConfiguration",
    "ServerError",
    "Unauthorized",
]
