"""Storage backends for homegate."""

from homegate.storage.state import StateStore

__all__ = ["StateStore"]
