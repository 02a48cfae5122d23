"""Usage analysis of per-device bandwidth series.

The router reports receive ("rcv_") and send ("snd_") rates in byte/s per
sampling interval, oldest sample first. The day subset holds 96 samples of
15 minutes each; the hour subset holds 60-second samples.

An interval counts as active when either direction strictly exceeds the
activity threshold. A day's activity only counts the samples since local
midnight (the "daily window"), even though the series reaches back 24 hours.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Sequence

from homegate.errors import DeviceNotFoundError
from homegate.router.models import SubsetData

DAY_INTERVAL_MINUTES = 15
DAY_INTERVALS = 96
TIMELINE_INTERVALS = 48  # 12 hours

RCV_PREFIX = "rcv_"
SND_PREFIX = "snd_"


@dataclass
class DayUsage:
    """Activity derived from a day subset for one device."""

    daily_active_count: int
    daily_active_minutes: int
    timeline: list[bool] = field(default_factory=list)
    boundary_position: int = 0
    active_periods: list[str] = field(default_factory=list)

    @property
    def timeline_active_count(self) -> int:
        return sum(self.timeline)

    @property
    def timeline_active_minutes(self) -> int:
        return self.timeline_active_count * DAY_INTERVAL_MINUTES


def find_series(data: Sequence[SubsetData], normalized_mac: str) -> tuple[list[float], list[float]]:
    """Locate the receive and send series of a device.

    Raises:
        DeviceNotFoundError: If either direction is missing
    """
    rcv: list[float] | None = None
    snd: list[float] | None = None

    for source in data:
        name = source.data_source_name
        if not name.endswith(normalized_mac):
            continue
        if name.startswith(RCV_PREFIX):
            rcv = source.measurements
        elif name.startswith(SND_PREFIX):
            snd = source.measurements

    if rcv is None or snd is None:
        raise DeviceNotFoundError(f"no measurements for {normalized_mac}")
    return rcv, snd


def _is_active(rcv: Sequence[float], snd: Sequence[float], i: int, threshold: float) -> bool:
    sent = snd[i] if i < len(snd) else 0.0
    return rcv[i] > threshold or sent > threshold


def intervals_since_midnight(now: datetime) -> int:
    """Number of completed 15-minute intervals since local midnight."""
    return (now.hour * 60 + now.minute) // DAY_INTERVAL_MINUTES


def compute_hourly_totals(
    rcv: Sequence[float],
    snd: Sequence[float],
    interval_seconds: float,
) -> tuple[int, int]:
    """Total downstream and upstream bytes.

    Each sample is truncated to whole bytes before summing.
    """
    downstream = sum(int(value * interval_seconds) for value in rcv)
    upstream = sum(int(value * interval_seconds) for value in snd)
    return downstream, upstream


def compute_daily_activity(
    rcv: Sequence[float],
    snd: Sequence[float],
    threshold: float,
    since_midnight: int,
) -> tuple[int, int]:
    """Active minutes and active interval count within the daily window.

    Returns:
        Tuple of (daily_active_minutes, daily_active_count)
    """
    start = max(0, len(rcv) - since_midnight)
    count = sum(1 for i in range(start, len(rcv)) if _is_active(rcv, snd, i, threshold))
    return count * DAY_INTERVAL_MINUTES, count


def compute_timeline(
    rcv: Sequence[float],
    snd: Sequence[float],
    threshold: float,
    since_midnight: int,
    window_size: int = TIMELINE_INTERVALS,
) -> tuple[list[bool], int]:
    """Activity flags for the most recent intervals.

    The window shrinks when the series is shorter than window_size. The
    boundary position marks local midnight inside the window and may fall
    outside of it.

    Returns:
        Tuple of (activity flags oldest first, boundary position)
    """
    start = len(rcv) - window_size
    if start < 0:
        start = 0
        window_size = len(rcv)

    activity = [_is_active(rcv, snd, i, threshold) for i in range(start, len(rcv))]
    return activity, window_size - since_midnight


def render_timeline(activity: Sequence[bool], boundary_position: int) -> str:
    """Render activity as "*" (active) and "." (idle) with "|" at midnight."""
    chars = []
    for i, active in enumerate(activity):
        if i == boundary_position:
            chars.append("|")
        else:
            chars.append("*" if active else ".")
    return "".join(chars)


def iso_duration(minutes: int) -> str:
    """Format minutes as an ISO 8601 duration: 45 -> "PT45M", 75 -> "PT1H15M"."""
    hours, mins = divmod(minutes, 60)
    if not hours and not mins:
        return "PT0M"
    return "PT" + (f"{hours}H" if hours else "") + (f"{mins}M" if mins else "")


def compute_active_periods(
    rcv: Sequence[float],
    snd: Sequence[float],
    threshold: float,
    now: datetime,
) -> list[str]:
    """Contiguous active runs of today as "<start>/<duration>" tokens.

    Example: ["10:00+02:00/PT45M", "14:15+02:00/PT1H"]

    Start offsets follow now's tzinfo: a zone with DST rules gives each start
    the offset valid at that wall time, a fixed offset is applied throughout.
    """
    since_midnight = intervals_since_midnight(now)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start = max(0, len(rcv) - since_midnight)

    periods = []
    run_start: int | None = None
    for i in range(start, len(rcv) + 1):
        active = i < len(rcv) and _is_active(rcv, snd, i, threshold)
        if active and run_start is None:
            run_start = i
        elif not active and run_start is not None:
            # Sample i sits (len - i) intervals before the current one
            slot = since_midnight - (len(rcv) - run_start)
            begins = midnight + timedelta(minutes=slot * DAY_INTERVAL_MINUTES)
            length = (i - run_start) * DAY_INTERVAL_MINUTES
            clock_time = begins.isoformat(timespec="minutes").partition("T")[2]
            periods.append(f"{clock_time}/{iso_duration(length)}")
            run_start = None

    return periods


def analyze_day(
    rcv: Sequence[float],
    snd: Sequence[float],
    threshold: float,
    now: datetime,
) -> DayUsage:
    """Run all day-mode computations for one device."""
    since_midnight = intervals_since_midnight(now)
    minutes, count = compute_daily_activity(rcv, snd, threshold, since_midnight)
    timeline, boundary = compute_timeline(rcv, snd, threshold, since_midnight)
    return DayUsage(
        daily_active_count=count,
        daily_active_minutes=minutes,
        timeline=timeline,
        boundary_position=boundary,
        active_periods=compute_active_periods(rcv, snd, threshold, now),
    )
