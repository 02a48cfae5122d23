"""Monitoring run: fetch usage from the router, check policy, enforce.

A run walks through these states:

    CONNECTING -> AUTHENTICATED -> DEVICES_FETCHED -> POLICY_PARSED | NO_POLICY
    -> TARGETS_RESOLVED -> DATA_FETCHED -> PER_DEVICE_PROCESSING -> COMPLETED

The policy string is parsed during preflight, before CONNECTING, so a
malformed policy fails the run without contacting the router. POLICY_PARSED
and NO_POLICY only record the outcome once the device list is in.

Configuration and router failures move the run to FAILED and stop it. A
device without measurements or a failed block/unblock is recorded in the
summary and the run continues with the next device.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional, TextIO

from homegate.analyzers import analyze_day, compute_hourly_totals, find_series, render_timeline
from homegate.analyzers.usage import DAY_INTERVALS
from homegate.clock import Clock, SystemClock, load_timezone
from homegate.errors import (
    CollaboratorError,
    ConfigError,
    DeviceNotFoundError,
    EnforcementError,
    HomegateError,
)
from homegate.models import DeviceUsage, Summary
from homegate.policies import PolicyManager
from homegate.router import FritzboxClient, FritzboxConfig, Landevice, RouterClient, normalize_mac
from homegate.router.models import SubsetData

logger = logging.getLogger(__name__)

MONITOR_DATASET = "macaddrs"

# period -> (subset UID, sample interval in seconds)
PERIOD_SUBSETS: dict[str, tuple[str, float]] = {
    "hour": ("subset0001", 60.0),
    "day": ("subset0002", 900.0),
}


class RunState(Enum):
    """Progress of a monitoring run."""

    IDLE = "idle"
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    DEVICES_FETCHED = "devices_fetched"
    POLICY_PARSED = "policy_parsed"
    NO_POLICY = "no_policy"
    TARGETS_RESOLVED = "targets_resolved"
    DATA_FETCHED = "data_fetched"
    PER_DEVICE_PROCESSING = "per_device_processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MonitorOptions:
    """Options for a monitoring run."""

    username: str = ""
    password: str = ""

    # Single device to check; empty means the router's configured devices
    mac: str = ""

    # "hour" (byte totals) or "day" (activity and policy)
    period: str = "day"

    # Byte/s an interval must exceed to count as active
    activity_threshold: float = 0.0

    # Policy string, e.g. "MO-TH90FR120SA-SU180"; empty disables policy checks
    policy: str = ""

    # Block/unblock devices according to the policy
    enforce: bool = False

    router_url: str = "http://192.168.2.1"
    router_timeout: float = 10.0
    verify_tls: bool = True

    # IANA timezone for the daily window, e.g. "Europe/Berlin"; empty uses the system offset
    timezone: str = ""


@dataclass
class Target:
    """A device selected for this run."""

    mac: str  # normalized
    name: str
    device: Landevice = field(default_factory=Landevice)


def build_user_index(devices: list[Landevice]) -> dict[str, str]:
    """Map normalized MAC -> user UID for devices with an owning user."""
    return {d.normalized_mac: d.user_uids for d in devices if d.user_uids}


def resolve_user_uid(
    device: Landevice,
    user_index: dict[str, str],
    mac: str,
    fallback_to_device_uid: bool = False,
) -> str:
    """Find the identifier to pass to the router's block call.

    Order: the device's own user UID, the MAC index, then (only if
    fallback_to_device_uid) the device UID. Returns "" if nothing resolves.
    """
    uid = device.user_uids or user_index.get(mac, "")
    if not uid and fallback_to_device_uid:
        uid = device.uid
    return uid


class Monitor:
    """Runs one fetch -> analyze -> report -> enforce pass.

    Usage:
        monitor = Monitor(MonitorOptions(username="u", password="p"))
        summary = monitor.run()
        if monitor.state is RunState.FAILED:
            ...
    """

    def __init__(
        self,
        options: MonitorOptions,
        client: Optional[RouterClient] = None,
        clock: Optional[Clock] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            options: Run options
            client: Router client; a FritzboxClient is created if None
            clock: Source of "now" for policy and daily window
            out: Stream for the human-readable report (discarded if None)
        """
        self.options = options
        self.client = client
        self.clock = clock or SystemClock(options.timezone)
        self.out = out

        self.state = RunState.IDLE
        self.failure: Optional[HomegateError] = None
        self.summary = Summary()
        self._owned_client: Optional[FritzboxClient] = None

    def _ensure_client(self) -> RouterClient:
        if self.client is None:
            self._owned_client = FritzboxClient(
                FritzboxConfig(
                    username=self.options.username,
                    password=self.options.password,
                    base_url=self.options.router_url,
                    timeout=self.options.router_timeout,
                    verify_tls=self.options.verify_tls,
                )
            )
            self.client = self._owned_client
        return self.client

    def _set_state(self, state: RunState) -> None:
        logger.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state

    def _write(self, line: str = "") -> None:
        if self.out is not None:
            print(line, file=self.out)

    def _soft_error(self, error: HomegateError) -> None:
        logger.warning(str(error))
        self.summary.errors.append(str(error))

    def _call(self, step: str, func: Callable[..., Any], *args: Any) -> Any:
        """Invoke a router capability, wrapping any failure with the step."""
        try:
            return func(*args)
        except Exception as e:
            raise CollaboratorError(f"failed to {step}: {e}") from e

    def run(self) -> Summary:
        """Execute one monitoring run.

        Returns:
            The run summary, partial if the run failed
        """
        started = time.monotonic()
        self.summary = Summary(start_time=datetime.now().astimezone())
        self.failure = None
        self.state = RunState.IDLE

        try:
            self._run()
        except (ConfigError, CollaboratorError) as e:
            logger.error(f"Monitoring run failed: {e}")
            self.failure = e
            self.summary.errors.append(str(e))
            self._set_state(RunState.FAILED)
        finally:
            if self._owned_client is not None:
                self._owned_client.close()
                self._owned_client = None
                self.client = None
            self.summary.duration = timedelta(seconds=time.monotonic() - started)

        return self.summary

    def _preflight(self) -> Optional[PolicyManager]:
        """Validate options before talking to the router."""
        opts = self.options
        if not opts.username or not opts.password:
            raise ConfigError("username and password are required")
        if opts.period not in PERIOD_SUBSETS:
            raise ConfigError(f"invalid period: {opts.period}. Use 'hour' or 'day'")
        if opts.timezone:
            load_timezone(opts.timezone)
        if opts.policy:
            return PolicyManager(opts.policy, self.clock)
        return None

    def _run(self) -> None:
        policy = self._preflight()
        client = self._ensure_client()

        self._set_state(RunState.CONNECTING)
        self._write("Connecting to router")
        self._call("connect", client.connect)
        self._set_state(RunState.AUTHENTICATED)
        self._write("Connected")

        self._write("Fetching landevices")
        devices: list[Landevice] = self._call("fetch landevices", client.get_landevices)
        self._write(f"Fetched {len(devices)} devices")
        self.summary.devices_checked = len(devices)
        user_index = build_user_index(devices)
        self.summary.users_fetched = len(user_index)
        self._set_state(RunState.DEVICES_FETCHED)

        self._set_state(RunState.POLICY_PARSED if policy else RunState.NO_POLICY)

        targets = self._resolve_targets(client, devices)
        self._set_state(RunState.TARGETS_RESOLVED)

        subset, interval_seconds = PERIOD_SUBSETS[self.options.period]
        data: list[SubsetData] = self._call(
            "fetch monitor data", client.get_monitor_data, MONITOR_DATASET, subset
        )
        self._set_state(RunState.DATA_FETCHED)

        self._set_state(RunState.PER_DEVICE_PROCESSING)
        for target in targets:
            self._process_target(client, target, data, interval_seconds, policy, user_index)
            self._write()

        self._set_state(RunState.COMPLETED)

    def _resolve_targets(self, client: RouterClient, devices: list[Landevice]) -> list[Target]:
        by_mac = {}
        for device in devices:
            by_mac.setdefault(device.normalized_mac, device)

        if self.options.mac:
            mac = normalize_mac(self.options.mac)
            return [Target(mac=mac, name=self.options.mac, device=by_mac.get(mac, Landevice()))]

        self._write("No MAC specified, fetching configured devices")
        config = self._call("fetch monitor config", client.get_monitor_config)
        uids = config.device_uids
        self._write(f"Configured UIDs: {uids}")

        by_uid = {}
        for device in devices:
            by_uid.setdefault(device.uid, device)

        targets = []
        for uid in uids:
            device = by_uid.get(uid)
            if device is None:
                continue
            target = Target(mac=device.normalized_mac, name=device.friendly_name, device=device)
            targets.append(target)
            self._write(f"Added device: {target.name} ({target.mac})")
        self._write(f"Total target devices: {len(targets)}")
        return targets

    def _process_target(
        self,
        client: RouterClient,
        target: Target,
        data: list[SubsetData],
        interval_seconds: float,
        policy: Optional[PolicyManager],
        user_index: dict[str, str],
    ) -> None:
        try:
            rcv, snd = find_series(data, target.mac)
        except DeviceNotFoundError:
            self._write(f"MAC {target.name} not found in data")
            self._soft_error(DeviceNotFoundError(f"MAC {target.name} not found in data"))
            return

        if self.options.period == "hour":
            downstream, upstream = compute_hourly_totals(rcv, snd, interval_seconds)
            self._write(f"{target.name} usage in last hour:")
            self._write(f"Downstream: {downstream} bytes")
            self._write(f"Upstream: {upstream} bytes")
            self.summary.devices.append(
                DeviceUsage(
                    mac=target.mac,
                    name=target.name,
                    downstream_bytes=downstream,
                    upstream_bytes=upstream,
                )
            )
            return

        usage = analyze_day(rcv, snd, self.options.activity_threshold, self.clock.now())
        self._write(f"{target.name} activity in last 12 hours:")
        self._write(
            f"Active: {usage.timeline_active_minutes} minutes "
            f"({usage.timeline_active_count}/{len(usage.timeline)} intervals)"
        )
        self._write(
            f"Daily total: {usage.daily_active_minutes} minutes "
            f"({usage.daily_active_count}/{DAY_INTERVALS} intervals)"
        )
        self.summary.devices.append(
            DeviceUsage(
                mac=target.mac,
                name=target.name,
                daily_active_minutes=usage.daily_active_minutes,
                active=usage.active_periods,
            )
        )

        if policy is not None:
            within = usage.daily_active_minutes < policy.allowed_today()
            self._write("Within policy" if within else "Exceeded policy")
            if self.options.enforce:
                self._enforce(client, target, within, user_index)

        self._write(f"Timeline: {render_timeline(usage.timeline, usage.boundary_position)}")

    def _enforce(self, client: RouterClient, target: Target, within: bool, user_index: dict[str, str]) -> None:
        """Unblock a blocked device within policy, (re-)block one that exceeded it."""
        if within and not target.device.is_blocked:
            return

        block = not within
        action = "block" if block else "unblock"
        # Only blocking may fall back to the device UID
        uid = resolve_user_uid(target.device, user_index, target.mac, fallback_to_device_uid=block)
        if not uid:
            self._write(f"No user UID found for device, cannot {action}")
            self._soft_error(EnforcementError(f"cannot {action} {target.name}, no user UID for device"))
            return

        if block:
            self._write(f"Blocking using UID: {uid}")
        try:
            client.block_device(uid, block)
        except Exception as e:
            self._write(f"Failed to {action} device: {e}")
            self._soft_error(EnforcementError(f"failed to {action} device {target.name}: {e}"))
            return

        logger.info(f"{'Blocked' if block else 'Unblocked'} {target.name} ({uid})")
        self._write("Device blocked" if block else "Device unblocked")
