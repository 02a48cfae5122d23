"""Data models for homegate run results."""

from homegate.models.usage import DeviceUsage, Summary

__all__ = [
    "DeviceUsage",
    "Summary",
]
