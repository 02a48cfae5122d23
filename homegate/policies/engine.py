"""Weekday budget policies.

A policy string is a run of KEY+MINUTES tokens, e.g. "MO-TH90FR120SA-SU180":
Monday to Thursday 90 minutes, Friday 120, Saturday and Sunday 180.
"""

import logging
import re
from datetime import date

from homegate.clock import Clock, SystemClock
from homegate.errors import InvalidPolicyError
from homegate.policies.models import PolicyTable

logger = logging.getLogger(__name__)

# Day codes in weekday order (Monday=0)
DAY_CODES = ["MO", "TU", "WE", "TH", "FR", "SA", "SU"]
DAY_INDEX = {code: i for i, code in enumerate(DAY_CODES)}

POLICY_TOKEN = re.compile(r"([A-Z-]+)(\d+)")


def parse_policy(policy_str: str) -> PolicyTable:
    """Parse a policy string into a PolicyTable.

    Characters between tokens are ignored. A repeated key keeps its last value.

    Raises:
        InvalidPolicyError: If no KEY+MINUTES token is found
    """
    entries: dict[str, int] = {}
    for key, minutes in POLICY_TOKEN.findall(policy_str):
        entries[key] = int(minutes)

    if not entries:
        raise InvalidPolicyError(f"no valid policy entries found in {policy_str!r}")

    logger.debug(f"Parsed policy {policy_str!r}: {entries}")
    return PolicyTable(entries)


def _range_contains(key: str, weekday: int) -> bool:
    """Check if a "START-END" key covers the weekday. Never wraps past Sunday."""
    parts = key.split("-")
    if len(parts) != 2:
        return False
    start, end = DAY_INDEX.get(parts[0]), DAY_INDEX.get(parts[1])
    if start is None or end is None:
        return False
    return start <= weekday <= end


def allowed_minutes_for(table: PolicyTable, day: date) -> int:
    """Resolve the allowed minutes for a date.

    Single-day keys take precedence over ranges; among ranges the first
    matching one in table order wins. Returns 0 if nothing matches.
    """
    weekday = day.weekday()
    day_code = DAY_CODES[weekday]

    if day_code in table.entries:
        return table.entries[day_code]

    for key, minutes in table.entries.items():
        if "-" in key and _range_contains(key, weekday):
            return minutes

    return 0


def is_within_policy(table: PolicyTable, day: date, active_minutes: int) -> bool:
    return active_minutes <= allowed_minutes_for(table, day)


class PolicyManager:
    """Binds a parsed policy to a clock for "today" lookups."""

    def __init__(self, policy_str: str, clock: Clock | None = None) -> None:
        """Initialize policy manager.

        Args:
            policy_str: Policy string, e.g. "MO-FR60SA-SU120"
            clock: Source of the current date (defaults to the system clock)

        Raises:
            InvalidPolicyError: If the policy string is malformed
        """
        self.table = parse_policy(policy_str)
        self.clock = clock or SystemClock()

    def allowed_today(self) -> int:
        return allowed_minutes_for(self.table, self.clock.now().date())

    def is_within_policy(self, active_minutes: int) -> bool:
        return is_within_policy(self.table, self.clock.now().date(), active_minutes)
