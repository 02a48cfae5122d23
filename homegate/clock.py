"""Clock abstraction so "now" can be injected in tests."""

from datetime import datetime, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from homegate.errors import ConfigError


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current local time as an aware datetime."""
        ...


def load_timezone(name: str) -> tzinfo:
    """Resolve an IANA timezone name, e.g. "Europe/Berlin".

    Raises:
        ConfigError: If the name is not a known timezone
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {name}") from e


class SystemClock:
    """Wall clock in the configured timezone, or the system's local one.

    With a named timezone, datetimes carry its DST rules, so times derived
    from "now" get the offset valid at that time. The system fallback is a
    fixed offset.
    """

    def __init__(self, timezone: str = "") -> None:
        self.timezone = timezone

    def now(self) -> datetime:
        if self.timezone:
            return datetime.now(load_timezone(self.timezone))
        return datetime.now().astimezone()
