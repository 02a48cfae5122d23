"""Weekday usage policies for homegate."""

from homegate.policies.models import PolicyTable
from homegate.policies.engine import (
    DAY_CODES,
    PolicyManager,
    allowed_minutes_for,
    is_within_policy,
    parse_policy,
)

__all__ = [
    "PolicyTable",
    "DAY_CODES",
    "PolicyManager",
    "allowed_minutes_for",
    "is_within_policy",
    "parse_policy",
]
