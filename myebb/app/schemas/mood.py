from __future__ import annotations

import datetime as dt
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class MoodState(IntEnum):
    NEGATIVE = 0
    POSITIVE = 1


class MoodEntry(BaseModel):
    """One logged day as returned by ``/states``."""

    id: int
    user_id: int
    date: dt.date
    state: MoodState
    intensity: int
    timestamp: dt.datetime
    note: str | None = None
    weather: str | None = None
    is_edited: bool = False
    edited_at: dt.datetime | None = None
    created_at: dt.datetime

    @field_validator("date", mode="before")
    @classmethod
    def _calendar_day(cls, value: Any) -> Any:
        # The server sends either ``yyyy-mm-dd`` or a full RFC 3339 timestamp.
        if isinstance(value, str) and len(value) > 10:
            return value[:10]
        if isinstance(value, dt.datetime):
            return value.date()
        return value

    @field_validator("timestamp", "created_at", "edited_at")
    @classmethod
    def _assume_utc(cls, value: dt.datetime | None) -> dt.datetime | None:
        # Offsetless stamps are UTC so entries stay comparable.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value

    @property
    def is_positive(self) -> bool:
        return self.state == MoodState.POSITIVE

    @property
    def date_only(self) -> str:
        return self.date.isoformat()


class MoodRequest(BaseModel):
    state: MoodState
    intensity: int = Field(..., ge=1, le=5)
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    note: str | None = None
    weather: str | None = None
