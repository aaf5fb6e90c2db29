from __future__ import annotations

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field


class DashboardRange(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def days(self) -> int:
        return _RANGE_DAYS[self]

    @property
    def label(self) -> str:
        return _RANGE_LABELS[self]


_RANGE_DAYS = {
    DashboardRange.WEEKLY: 7,
    DashboardRange.MONTHLY: 30,
    DashboardRange.YEARLY: 365,
}
_RANGE_LABELS = {
    DashboardRange.WEEKLY: "Week",
    DashboardRange.MONTHLY: "Month",
    DashboardRange.YEARLY: "Year",
}


class PerformanceOutcome(IntEnum):
    NO_ENTRY = -1
    LOSS = 0
    WIN = 1


class DailyPerformancePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    label: str
    outcome: PerformanceOutcome
    intensity: int | None = None


class DashboardStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    range: str
    total_entries: int = Field(..., ge=0)
    wins: int = Field(..., ge=0)
    losses: int = Field(..., ge=0)
    win_rate: float
    current_streak: int = Field(..., ge=0)
    longest_streak: int = Field(..., ge=0)
    mmr_score: int
    avg_up_intensity: float
    avg_down_intensity: float
    recent_performance: list[DailyPerformancePoint]

    @property
    def win_rate_formatted(self) -> str:
        return f"{self.win_rate:.0f}%"

    @property
    def momentum_text(self) -> str:
        if self.win_rate >= 70:
            return "On fire"
        if self.win_rate >= 50:
            return "Steady"
        return "Reset in progress"
