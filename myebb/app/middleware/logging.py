from __future__ import annotations

import logging
import re
import time
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import uuid4

import httpx

from ..metrics import API_REQUEST_COUNT, API_REQUEST_ERRORS, API_REQUEST_LATENCY

_STARTED_KEY = "myebb.started"
_DAY_SEGMENT = re.compile(r"/\d{4}-\d{2}-\d{2}(?=/|$)")
_ID_SEGMENT = re.compile(r"/\d+(?=/|$)")


class RequestLogger:
    """httpx event hooks that log outgoing requests and feed Prometheus metrics."""

    def __init__(self) -> None:
        self._logger = logging.getLogger("myebb.request")
        if self._logger.level == logging.NOTSET:
            self._logger.setLevel(logging.INFO)
        self._logger.propagate = True

    def event_hooks(self) -> dict[str, list[Callable[[Any], Awaitable[None]]]]:
        return {"request": [self.on_request], "response": [self.on_response]}

    async def on_request(self, request: httpx.Request) -> None:
        request.headers["X-Request-ID"] = str(uuid4())
        request.extensions[_STARTED_KEY] = time.perf_counter()

    async def on_response(self, response: httpx.Response) -> None:
        request = response.request
        duration_ms = _elapsed_ms(request)
        path = _resolve_path_template(request)
        status = response.status_code
        _observe_metrics(request.method, path, status, duration_ms)
        self._logger.info(
            "request complete",
            extra={
                "request_id": request.headers.get("X-Request-ID"),
                "path": path,
                "method": request.method,
                "status": status,
                "duration_ms": round(duration_ms, 3),
            },
        )

    def record_failure(self, request: httpx.Request, exc: Exception) -> None:
        """Log a request that never produced a response."""

        duration_ms = _elapsed_ms(request)
        path = _resolve_path_template(request)
        API_REQUEST_COUNT.labels(method=request.method, path=path, status="error").inc()
        API_REQUEST_ERRORS.labels(method=request.method, path=path, status="error").inc()
        API_REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration_ms / 1000)
        self._logger.error(
            "request error",
            extra={
                "request_id": request.headers.get("X-Request-ID"),
                "path": path,
                "method": request.method,
                "duration_ms": round(duration_ms, 3),
                "extra_fields": {"error": type(exc).__name__},
            },
        )


def _elapsed_ms(request: httpx.Request) -> float:
    started = request.extensions.get(_STARTED_KEY)
    if started is None:
        return 0.0
    return (time.perf_counter() - started) * 1000


def _resolve_path_template(request: httpx.Request) -> str:
    path = _DAY_SEGMENT.sub("/{day}", request.url.path)
    return _ID_SEGMENT.sub("/{id}", path)


def _observe_metrics(method: str, path: str, status: int, duration_ms: float) -> None:
    status_str = str(status)
    API_REQUEST_COUNT.labels(method=method, path=path, status=status_str).inc()
    API_REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
    if status >= 500:
        API_REQUEST_ERRORS.labels(method=method, path=path, status=status_str).inc()
