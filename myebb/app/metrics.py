from __future__ import annotations

from prometheus_client import Counter, Histogram

API_REQUEST_COUNT = Counter(
    "myebb_api_requests_total",
    "Total API requests issued by the Myebb client",
    ("method", "path", "status"),
)

API_REQUEST_LATENCY = Histogram(
    "myebb_api_request_latency_seconds",
    "API request latency in seconds",
    ("method", "path"),
)

API_REQUEST_ERRORS = Counter(
    "myebb_api_request_errors_total",
    "API requests that failed in transport or returned a server error",
    ("method", "path", "status"),
)

SESSION_TRANSITIONS = Counter(
    "myebb_session_transitions_total",
    "Session store transitions by event",
    ("event",),
)

__all__ = [
    "API_REQUEST_COUNT",
    "API_REQUEST_ERRORS",
    "API_REQUEST_LATENCY",
    "SESSION_TRANSITIONS",
]
