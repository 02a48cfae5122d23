"""Background polling loop.

Runs a monitoring pass every `interval` seconds and publishes each summary to
the state store. Shutdown is cooperative: the stop flag is checked before each
run and while waiting. A run in progress always finishes.
"""

import asyncio
import logging
import signal
from typing import Callable, Optional

from homegate.models import Summary
from homegate.monitor import Monitor, RunState
from homegate.storage import StateStore

logger = logging.getLogger(__name__)

MonitorFactory = Callable[[], Monitor]
SummaryCallback = Callable[[Summary, Monitor], None]


class MonitorLoop:
    """Repeatedly runs the monitor until stopped."""

    def __init__(
        self,
        monitor_factory: MonitorFactory,
        store: StateStore,
        interval: float = 300.0,
        on_summary: Optional[SummaryCallback] = None,
    ) -> None:
        """Initialize the loop.

        Args:
            monitor_factory: Creates a fresh Monitor for each run
            store: Receives every run's summary
            interval: Seconds to wait between runs
            on_summary: Optional callback after each published summary
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.monitor_factory = monitor_factory
        self.store = store
        self.interval = interval
        self.on_summary = on_summary
        self.runs = 0
        self._stopping = False
        self._stop_event: Optional[asyncio.Event] = None

    def stop(self) -> None:
        """Request shutdown after the current run or wait."""
        self._stopping = True
        if self._stop_event is not None:
            self._stop_event.set()

    @property
    def is_stopping(self) -> bool:
        return self._stopping

    async def run_once(self) -> Summary:
        """Run one monitoring pass in a worker thread and publish the result."""
        monitor = self.monitor_factory()
        logger.info("Starting monitoring run")
        summary = await asyncio.to_thread(monitor.run)
        self.store.update(summary)
        self.runs += 1

        seconds = summary.duration.total_seconds()
        if monitor.state is RunState.FAILED:
            logger.warning(
                f"Finished run with errors: checked {summary.devices_checked} devices, "
                f"fetched {summary.users_fetched} users, duration {seconds:.2f}s"
            )
            for error in summary.errors:
                logger.warning(f"  error: {error}")
        else:
            logger.info(
                f"Finished run: checked {summary.devices_checked} devices, "
                f"fetched {summary.users_fetched} users, duration {seconds:.2f}s"
            )

        if self.on_summary:
            self.on_summary(summary, monitor)
        return summary

    async def run_forever(self, handle_signals: bool = True) -> None:
        """Run until stop() is called or SIGINT/SIGTERM is received."""
        loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        if self._stopping:
            self._stop_event.set()

        def signal_handler() -> None:
            logger.info("Shutdown signal received")
            self.stop()

        if handle_signals:
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.add_signal_handler(sig, signal_handler)
                except NotImplementedError:
                    # Signal handlers not supported on this platform (e.g., Windows)
                    pass

        try:
            while not self._stop_event.is_set():
                await self.run_once()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            if handle_signals:
                for sig in (signal.SIGINT, signal.SIGTERM):
                    try:
                        loop.remove_signal_handler(sig)
                    except (NotImplementedError, ValueError):
                        pass
            logger.info(f"Monitor loop stopped after {self.runs} runs")
