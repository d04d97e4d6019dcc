"""
Control channel shared between the strategy loop and remote listeners.
"""

import logging
import threading


logger = logging.getLogger(__name__)


class TradingSwitch:
    """
    Lock-guarded trading-enabled flag plus a shutdown request.

    Writers (remote listeners) may toggle the flag at any time. The strategy
    engine only reads it through checkpoint() at cycle boundaries, so a
    change takes effect before the next cycle starts and never interrupts a
    swap already in flight.
    """

    def __init__(self, enabled: bool = True):
        self._lock = threading.Lock()
        self._enabled = enabled
        self._shutdown = threading.Event()

    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def enable(self) -> bool:
        """
        Allow new cycles to start.

        Returns:
            The previous state of the flag
        """
        with self._lock:
            previous = self._enabled
            self._enabled = True
        if not previous:
            logger.info("Trading enabled")
        return previous

    def disable(self) -> bool:
        """
        Stop new cycles from starting.

        Returns:
            The previous state of the flag
        """
        with self._lock:
            previous = self._enabled
            self._enabled = False
        if previous:
            logger.info("Trading disabled; the current cycle will finish")
        return previous

    def checkpoint(self) -> bool:
        """Read the flag at a cycle boundary. True means the next cycle may run."""
        return self.is_enabled() and not self.shutdown_requested

    def request_shutdown(self) -> None:
        """Ask the strategy loop to exit at the next cycle boundary."""
        self._shutdown.set()
        logger.info("Shutdown requested")

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def wait(self, seconds: float) -> bool:
        """
        Sleep for up to `seconds`, waking early on shutdown.

        Returns:
            True if shutdown was requested
        """
        return self._shutdown.wait(seconds)
