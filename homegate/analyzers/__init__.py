"""Analysis of router bandwidth measurements."""

from homegate.analyzers.usage import (
    DayUsage,
    analyze_day,
    compute_active_periods,
    compute_daily_activity,
    compute_hourly_totals,
    compute_timeline,
    find_series,
    intervals_since_midnight,
    render_timeline,
)

__all__ = [
    "DayUsage",
    "analyze_day",
    "compute_active_periods",
    "compute_daily_activity",
    "compute_hourly_totals",
    "compute_timeline",
    "find_series",
    "intervals_since_midnight",
    "render_timeline",
]
