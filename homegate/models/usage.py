"""Run summary models published to status readers."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional


@dataclass
class DeviceUsage:
    """Usage of one target device in a run.

    Attributes:
        mac: Normalized MAC address (lowercase, no colons)
        name: Friendly name (or the MAC as given on the command line)
        daily_active_minutes: Active minutes since local midnight (day mode)
        active: Active periods as "HH:MM+ZZ:ZZ/<ISO 8601 duration>" tokens
        downstream_bytes: Bytes received in the last hour (hour mode)
        upstream_bytes: Bytes sent in the last hour (hour mode)
    """

    mac: str
    name: str
    daily_active_minutes: int = 0
    active: list[str] = field(default_factory=list)
    downstream_bytes: Optional[int] = None
    upstream_bytes: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "mac": self.mac,
            "name": self.name,
            "daily_active_minutes": self.daily_active_minutes,
            "active": list(self.active),
        }
        if self.downstream_bytes is not None:
            data["downstream_bytes"] = self.downstream_bytes
            data["upstream_bytes"] = self.upstream_bytes
        return data


@dataclass
class Summary:
    """Outcome of one monitoring run."""

    devices_checked: int = 0
    users_fetched: int = 0
    errors: list[str] = field(default_factory=list)
    start_time: Optional[datetime] = None
    duration: timedelta = field(default_factory=timedelta)
    devices: list[DeviceUsage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation for status endpoints."""
        return {
            "devices_checked": self.devices_checked,
            "users_fetched": self.users_fetched,
            "errors": list(self.errors),
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "duration_seconds": self.duration.total_seconds(),
            "devices": [d.to_dict() for d in self.devices],
        }
