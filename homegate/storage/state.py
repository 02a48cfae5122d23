"""In-memory store for the latest monitoring summary.

A single slot: every update replaces the previous summary, nothing is
persisted. Safe to read from a status handler while the monitor loop writes.
"""

import copy
import threading

from homegate.models import Summary


class StateStore:
    """Latest-wins cache of the most recent run summary."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest = Summary()

    def update(self, summary: Summary) -> None:
        """Replace the stored summary."""
        snapshot = copy.deepcopy(summary)
        with self._lock:
            self._latest = snapshot

    def get(self) -> Summary:
        """Return the latest summary (an empty Summary before the first update)."""
        with self._lock:
            return copy.deepcopy(self._latest)

    def reset(self) -> None:
        with self._lock:
            self._latest = Summary()
