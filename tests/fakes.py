"""Test doubles for the router client and clock."""

from dataclasses import dataclass, field
from datetime import datetime

from homegate.router.models import Dataset, Landevice, MonitorConfig, SubsetData


@dataclass
class FixedClock:
    current: datetime

    def now(self) -> datetime:
        return self.current


@dataclass
class FakeRouterClient:
    """In-memory router that records every call."""

    landevices: list[Landevice] = field(default_factory=list)
    monitor_config: MonitorConfig = field(default_factory=MonitorConfig)
    datasets: list[Dataset] = field(default_factory=list)
    data: list[SubsetData] = field(default_factory=list)

    connect_error: Exception | None = None
    landevices_error: Exception | None = None
    monitor_config_error: Exception | None = None
    data_error: Exception | None = None
    block_error: Exception | None = None

    calls: list[str] = field(default_factory=list)
    data_requests: list[tuple[str, str]] = field(default_factory=list)
    block_calls: list[tuple[str, bool]] = field(default_factory=list)
    closed: bool = False

    def connect(self) -> None:
        self.calls.append("connect")
        if self.connect_error:
            raise self.connect_error

    def get_landevices(self) -> list[Landevice]:
        self.calls.append("get_landevices")
        if self.landevices_error:
            raise self.landevices_error
        return list(self.landevices)

    def get_monitor_config(self) -> MonitorConfig:
        self.calls.append("get_monitor_config")
        if self.monitor_config_error:
            raise self.monitor_config_error
        return self.monitor_config

    def get_monitor_datasets(self) -> list[Dataset]:
        self.calls.append("get_monitor_datasets")
        return list(self.datasets)

    def get_monitor_data(self, dataset: str, subset: str) -> list[SubsetData]:
        self.calls.append("get_monitor_data")
        self.data_requests.append((dataset, subset))
        if self.data_error:
            raise self.data_error
        return list(self.data)

    def block_device(self, user_uid: str, block: bool) -> None:
        self.calls.append("block_device")
        self.block_calls.append((user_uid, block))
        if self.block_error:
            raise self.block_error

    def close(self) -> None:
        self.closed = True


def day_series(active: set[int] | None = None, value: float = 100.0, length: int = 96) -> list[float]:
    """A day subset series with the given sample indices active."""
    active = active or set()
    return [value if i in active else 0.0 for i in range(length)]


def subset_data(mac: str, rcv: list[float], snd: list[float]) -> list[SubsetData]:
    return [
        SubsetData(data_source_name=f"rcv_{mac}", measurements=rcv),
        SubsetData(data_source_name=f"snd_{mac}", measurements=snd),
    ]
