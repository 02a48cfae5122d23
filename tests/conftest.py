"""Shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from homegate.monitor import MonitorOptions
from homegate.router.models import Landevice
from tests.fakes import FakeRouterClient, FixedClock

CEST = timezone(timedelta(hours=2))


@pytest.fixture()
def clock() -> FixedClock:
    """Monday 2023-01-02 23:45, 95 intervals past midnight."""
    return FixedClock(datetime(2023, 1, 2, 23, 45, tzinfo=CEST))


@pytest.fixture()
def device() -> Landevice:
    return Landevice(
        uid="uid1",
        friendly_name="Device1",
        mac="00:11:22:33:44:55",
        user_uids="user1",
        blocked="0",
    )


@pytest.fixture()
def router(device: Landevice) -> FakeRouterClient:
    return FakeRouterClient(landevices=[device])


@pytest.fixture()
def options() -> MonitorOptions:
    return MonitorOptions(username="admin", password="secret", period="day")
