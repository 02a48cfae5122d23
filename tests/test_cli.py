"""Tests for the command-line interface."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from homegate.cli import main
from homegate.router.models import Dataset, Landevice, Subset
from tests.fakes import FakeRouterClient, subset_data

NO_ENV = {"FRITZBOX_USERNAME": None, "FRITZBOX_PASSWORD": None}


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "homegate.toml"
    path.write_text('[router]\nurl = "http://fritz.test"\n')
    return path


def invoke(config_file: Path, *args: str):
    return CliRunner().invoke(main, ["--config", str(config_file), *args], env=NO_ENV)


def test_monitor_requires_credentials(config_file: Path) -> None:
    result = invoke(config_file, "monitor")
    assert result.exit_code == 1
    assert "username and password are required" in result.output


def test_monitor_hour_report(config_file, router, monkeypatch) -> None:
    router.data = subset_data("001122334455", [1.0, 2.0], [0.5, 1.0])
    monkeypatch.setattr("homegate.monitor.FritzboxClient", lambda config: router)

    result = invoke(
        config_file, "monitor", "--username", "admin", "--password", "secret",
        "--mac", "00:11:22:33:44:55", "--period", "hour",
    )

    assert result.exit_code == 0, result.output
    assert "Downstream: 180 bytes" in result.output
    assert "Upstream: 90 bytes" in result.output
    assert "Monitoring done" in result.output
    assert router.closed


def test_monitor_rejects_unknown_period(config_file: Path) -> None:
    result = invoke(config_file, "monitor", "--period", "week")
    assert result.exit_code == 2


def test_watch_rejects_non_positive_interval(config_file: Path) -> None:
    result = invoke(config_file, "watch", "--username", "u", "--password", "p", "--interval", "0")
    assert result.exit_code == 1
    assert "Interval must be positive" in result.output


def test_datasets_table(config_file, monkeypatch) -> None:
    router = FakeRouterClient(
        datasets=[Dataset(uid="macaddrs", type="bandwidth", subsets=[Subset("subset0002", 86400, 900)])]
    )
    monkeypatch.setattr("homegate.cli.make_client", lambda cfg: router)

    result = invoke(config_file, "datasets", "--username", "u", "--password", "p")

    assert result.exit_code == 0, result.output
    assert "macaddrs" in result.output
    assert "subset0002" in result.output
    assert router.calls == ["connect", "get_monitor_datasets"]


def test_block_uses_user_uid(config_file, router, monkeypatch) -> None:
    monkeypatch.setattr("homegate.cli.make_client", lambda cfg: router)
    result = invoke(config_file, "block", "00:11:22:33:44:55", "--username", "u", "--password", "p")

    assert result.exit_code == 0, result.output
    assert router.block_calls == [("user1", True)]
    assert router.closed


def test_unblock_needs_user_uid(config_file, monkeypatch) -> None:
    router = FakeRouterClient(landevices=[Landevice(uid="uid1", friendly_name="Tablet", mac="00:11:22:33:44:55")])
    monkeypatch.setattr("homegate.cli.make_client", lambda cfg: router)
    result = invoke(config_file, "unblock", "00:11:22:33:44:55", "--username", "u", "--password", "p")

    assert result.exit_code == 1
    assert "No user UID found for Tablet" in result.output
    assert router.block_calls == []


def test_block_unknown_device(config_file, router, monkeypatch) -> None:
    monkeypatch.setattr("homegate.cli.make_client", lambda cfg: router)
    result = invoke(config_file, "block", "AA:BB:CC:DD:EE:FF", "--username", "u", "--password", "p")

    assert result.exit_code == 1
    assert "not known to the router" in result.output
