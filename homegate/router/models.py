"""Data models for Fritz!Box REST payloads."""

from dataclasses import dataclass, field
from typing import Any


def normalize_mac(mac: str) -> str:
    """Normalize a MAC address for lookups: "00:11:AA:.." -> "0011aa.."."""
    return mac.replace(":", "").lower()


def _text(data: dict[str, Any], key: str) -> str:
    # JSON null reads as an empty string, like a missing key
    value = data.get(key)
    return "" if value is None else str(value)


def _number(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    return 0.0 if value is None else float(value)


@dataclass(frozen=True)
class Landevice:
    """A device known to the router.

    Attributes:
        uid: Router-assigned unique identifier (e.g. "landevice1234")
        friendly_name: Display name
        mac: MAC address as reported by the router
        active: "1" if currently online
        user_uids: Owning user profile identifier(s), may be empty
        blocked: "1" if internet access is currently blocked
    """

    uid: str = ""
    friendly_name: str = ""
    mac: str = ""
    active: str = ""
    user_uids: str = ""
    blocked: str = ""

    @property
    def normalized_mac(self) -> str:
        return normalize_mac(self.mac)

    @property
    def is_blocked(self) -> bool:
        return self.blocked == "1"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Landevice":
        return cls(
            uid=_text(data, "UID"),
            friendly_name=_text(data, "friendly_name"),
            mac=_text(data, "mac"),
            active=_text(data, "active"),
            user_uids=_text(data, "user_UIDs"),
            blocked=_text(data, "blocked"),
        )


@dataclass(frozen=True)
class MonitorConfig:
    """Online monitor configuration."""

    display_homenet_devices: str = ""

    @property
    def device_uids(self) -> list[str]:
        return self.display_homenet_devices.split(",")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MonitorConfig":
        return cls(display_homenet_devices=_text(data, "displayHomenetDevices"))


@dataclass(frozen=True)
class DataSource:
    landevice_uid: str = ""
    type: str = ""
    data_source_name: str = ""
    unit: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataSource":
        return cls(
            landevice_uid=_text(data, "landeviceUid"),
            type=_text(data, "type"),
            data_source_name=_text(data, "dataSourceName"),
            unit=_text(data, "unit"),
        )


@dataclass(frozen=True)
class Subset:
    """A time-series bucket at one sampling granularity."""

    uid: str = ""
    duration: float = 0.0
    sample_interval: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Subset":
        return cls(
            uid=_text(data, "UID"),
            duration=_number(data, "duration"),
            sample_interval=_number(data, "sampleInterval"),
        )


@dataclass(frozen=True)
class Dataset:
    uid: str = ""
    type: str = ""
    data_sources: list[DataSource] = field(default_factory=list)
    subsets: list[Subset] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Dataset":
        return cls(
            uid=_text(data, "UID"),
            type=_text(data, "type"),
            data_sources=[DataSource.from_dict(d) for d in data.get("dataSources") or []],
            subsets=[Subset.from_dict(s) for s in data.get("subsets") or []],
        )


@dataclass(frozen=True)
class SubsetData:
    """Measurements of one data source, oldest first (byte/s)."""

    data_source_name: str
    measurements: list[float] = field(default_factory=list)
    timestamp: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubsetData":
        return cls(
            data_source_name=_text(data, "dataSourceName"),
            measurements=[float(v) for v in data.get("measurements") or []],
            timestamp=_text(data, "timestamp"),
        )
