from .dashboard import (
    AnalyticsAggregator,
    EnergySplit,
    FocusPercentages,
    balance_score,
    compute_dashboard_stats,
    energy_split,
    focus_percentages,
    momentum_description,
    momentum_score,
    momentum_score_display,
    streak_ratio,
    vibe_label,
    window_days,
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
