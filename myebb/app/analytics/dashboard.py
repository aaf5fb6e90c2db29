"""Dashboard statistics derived from a user's mood history.

The reduction mirrors the server's ``/analytics/dashboard`` endpoint so the
client can rebuild the same bundle from ``/states`` history:

* counts, win rate and per-state average intensity over the window;
* current and longest run of consecutive positive days;
* the momentum ("mmr") score, the win fraction plus 1% per streak day
  (bonus capped at 10%, total capped at 100%), 50 when nothing is logged;
* one performance point per calendar day of the window, oldest first.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from itertools import pairwise

from ..schemas.analytics import (
    DailyPerformancePoint,
    DashboardRange,
    DashboardStats,
    PerformanceOutcome,
)
from ..schemas.mood import MoodEntry, MoodState

MIN_INTENSITY = 1
MAX_INTENSITY = 5
NEUTRAL_MOMENTUM = 50
STREAK_BONUS_PER_DAY = 0.01
MAX_STREAK_BONUS = 0.1


@dataclass(frozen=True)
class EnergySplit:
    up: float
    down: float


@dataclass(frozen=True)
class FocusPercentages:
    up_days: int
    down_intensity: int


class AnalyticsAggregator:
    """Build :class:`DashboardStats` from raw entries, anchored at the clock's day."""

    def __init__(self, clock: Callable[[], date] | None = None) -> None:
        self._clock = clock or date.today

    def aggregate(
        self,
        entries: Iterable[MoodEntry],
        range: DashboardRange | str = DashboardRange.MONTHLY,
    ) -> DashboardStats:
        return compute_dashboard_stats(entries, range, today=self._clock())


def compute_dashboard_stats(
    entries: Iterable[MoodEntry],
    range: DashboardRange | str,
    *,
    today: date,
) -> DashboardStats:
    dashboard_range = DashboardRange(range)
    window = window_days(dashboard_range, today)
    window_start, window_end = window[0], window[-1]
    filtered = [entry for entry in entries if window_start <= entry.date <= window_end]

    up_intensities = [
        _clamp_intensity(entry.intensity)
        for entry in filtered
        if entry.state == MoodState.POSITIVE
    ]
    down_intensities = [
        _clamp_intensity(entry.intensity)
        for entry in filtered
        if entry.state == MoodState.NEGATIVE
    ]
    wins = len(up_intensities)
    losses = len(down_intensities)

    by_day = _latest_entry_per_day(filtered)
    current_streak = _compute_current_streak(by_day)

    return DashboardStats(
        range=dashboard_range.value,
        total_entries=len(filtered),
        wins=wins,
        losses=losses,
        win_rate=100 * wins / max(1, wins + losses),
        current_streak=current_streak,
        longest_streak=_compute_longest_streak(by_day),
        mmr_score=_momentum(wins, losses, current_streak),
        avg_up_intensity=_mean(up_intensities),
        avg_down_intensity=_mean(down_intensities),
        recent_performance=[
            _performance_point(day, by_day.get(day), dashboard_range) for day in window
        ],
    )


def window_days(dashboard_range: DashboardRange, today: date) -> list[date]:
    """Calendar days covered by ``dashboard_range``, oldest first, ending today."""

    days = dashboard_range.days
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


# -- presentation values ----------------------------------------------------
def balance_score(stats: DashboardStats) -> float:
    return stats.wins / max(1, stats.wins + stats.losses)


def energy_split(stats: DashboardStats) -> EnergySplit:
    total = max(1, stats.wins + stats.losses)
    return EnergySplit(up=stats.wins / total, down=stats.losses / total)


def momentum_score(stats: DashboardStats) -> int:
    return _momentum(stats.wins, stats.losses, stats.current_streak)


def momentum_score_display(stats: DashboardStats) -> str:
    return f"{momentum_score(stats)}%"


def momentum_description(stats: DashboardStats) -> str:
    total = stats.wins + stats.losses
    if total == 0:
        return "Track more days to see momentum"
    win_fraction = stats.wins / total
    if win_fraction >= 0.7:
        return "Strong positive momentum"
    if win_fraction >= 0.5:
        return "Balanced momentum"
    return "Building momentum"


def vibe_label(stats: DashboardStats) -> str:
    score = balance_score(stats)
    if score >= 0.75:
        return "radiant"
    if score >= 0.55:
        return "steady"
    return "reflective"


def streak_ratio(stats: DashboardStats) -> float:
    """Current streak as a fraction of the best run, capped at 1."""

    return min(1.0, stats.current_streak / max(1, stats.longest_streak))


def focus_percentages(stats: DashboardStats) -> FocusPercentages:
    # Whole percents, truncated.
    return FocusPercentages(
        up_days=int(energy_split(stats).up * 100),
        down_intensity=int(stats.avg_down_intensity / MAX_INTENSITY * 100),
    )


# -- internals --------------------------------------------------------------
def _momentum(wins: int, losses: int, current_streak: int) -> int:
    total = wins + losses
    if total == 0:
        return NEUTRAL_MOMENTUM
    base = wins / max(1, total)
    streak_bonus = min(MAX_STREAK_BONUS, current_streak * STREAK_BONUS_PER_DAY)
    return round(100 * min(1.0, base + streak_bonus))


def _clamp_intensity(value: int) -> int:
    return max(MIN_INTENSITY, min(MAX_INTENSITY, value))


def _mean(values: list[int]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _latest_entry_per_day(entries: Iterable[MoodEntry]) -> dict[date, MoodEntry]:
    # Later timestamps overwrite earlier ones for the same calendar day.
    ordered = sorted(entries, key=lambda entry: (entry.timestamp, entry.created_at, entry.id))
    return {entry.date: entry for entry in ordered}


def _compute_current_streak(by_day: Mapping[date, MoodEntry]) -> int:
    if not by_day:
        return 0
    streak = 0
    current = max(by_day)
    while current in by_day and by_day[current].is_positive:
        streak += 1
        current -= timedelta(days=1)
    return streak


def _compute_longest_streak(by_day: Mapping[date, MoodEntry]) -> int:
    positive_days = sorted(day for day, entry in by_day.items() if entry.is_positive)
    if not positive_days:
        return 0
    streak = 1
    longest = 1
    for previous, current in pairwise(positive_days):
        if current == previous + timedelta(days=1):
            streak += 1
            longest = max(longest, streak)
        else:
            streak = 1
    return longest


def _performance_point(
    day: date,
    entry: MoodEntry | None,
    dashboard_range: DashboardRange,
) -> DailyPerformancePoint:
    if dashboard_range is DashboardRange.WEEKLY:
        label = day.strftime("%a")
    else:
        label = f"{day:%b} {day.day}"

    if entry is None:
        return DailyPerformancePoint(
            date=day.isoformat(),
            label=label,
            outcome=PerformanceOutcome.NO_ENTRY,
        )
    return DailyPerformancePoint(
        date=day.isoformat(),
        label=label,
        outcome=PerformanceOutcome.WIN if entry.is_positive else PerformanceOutcome.LOSS,
        intensity=_clamp_intensity(entry.intensity),
    )


__all__ = [
    "AnalyticsAggregator",
    "EnergySplit",
    "FocusPercentages",
    "balance_score",
    "compute_dashboard_stats",
    "energy_split",
    "focus_percentages",
    "momentum_description",
    "momentum_score",
    "momentum_score_display",
    "streak_ratio",
    "vibe_label",
    "window_days",
]
