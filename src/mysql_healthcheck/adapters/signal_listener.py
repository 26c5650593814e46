"""OS signal listener for the daemon.

Lifecycle signals are blocked process-wide and received with sigwait() on
one dedicated thread, which forwards them to the daemon control loop as
LifecycleEvent messages. No Python signal handler runs on the main thread.
"""

from __future__ import annotations

import logging
import queue
import signal
import threading

from mysql_healthcheck.domain.lifecycle import LifecycleEvent

logger = logging.getLogger(__name__)

SIGNAL_EVENTS: dict[signal.Signals, LifecycleEvent] = {
    signal.SIGHUP: LifecycleEvent.RELOAD,
    signal.SIGINT: LifecycleEvent.TERMINATE,
    signal.SIGTERM: LifecycleEvent.TERMINATE,
}


def block_lifecycle_signals() -> None:
    """Block lifecycle signals for the calling thread.

    Called on the main thread before any other thread starts, every thread
    inherits the mask and the signals are only delivered through sigwait().
    """
    signal.pthread_sigmask(signal.SIG_BLOCK, set(SIGNAL_EVENTS))


class SignalListener:
    """Translates SIGHUP/SIGINT/SIGTERM into lifecycle events.

    Example:
        >>> events: queue.Queue[LifecycleEvent] = queue.Queue()
        >>> listener = SignalListener(events)
        >>> listener.start()
        >>> # kill -HUP <pid>  ->  events.get() is LifecycleEvent.RELOAD
    """

    def __init__(self, events: queue.Queue[LifecycleEvent]) -> None:
        """Initialize the listener.

        Args:
            events: Queue consumed by the daemon control loop.
        """
        self._events = events
        self._closed = threading.Event()
        self._ready = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def ident(self) -> int | None:
        """Thread identifier of the listening thread, once started."""
        return self._thread.ident if self._thread is not None else None

    def start(self) -> None:
        """Start the listening thread. Idempotent."""
        if self._thread is not None:
            return

        self._thread = threading.Thread(
            target=self._listen, name="signal-listener", daemon=True
        )
        self._thread.start()
        # Signals must be blocked on the thread before anyone may target it
        self._ready.wait()

    def close(self) -> None:
        """Stop the listening thread."""
        self._closed.set()
        if self._thread is not None and self._thread.is_alive():
            # Wake sigwait() up; the signal is discarded since we are closed
            signal.pthread_kill(self._thread.ident, signal.SIGHUP)  # type: ignore[arg-type]
            self._thread.join()

    def _listen(self) -> None:
        block_lifecycle_signals()
        self._ready.set()

        while not self._closed.is_set():
            received = signal.Signals(signal.sigwait(SIGNAL_EVENTS.keys()))
            if self._closed.is_set():
                return

            logger.debug(f"Received {received.name} signal")
            self._events.put(SIGNAL_EVENTS[received])
