"""DaemonSupervisor use case for the HTTP daemon lifecycle.

Each reload cycle builds its own CycleContext (settings, connection handle,
health service), serves it over HTTP until a lifecycle event arrives, then
shuts the server down gracefully and closes the connection handle.
"""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from mysql_healthcheck.adapters.ports import ConnectionHandlePort, HealthServerPort
from mysql_healthcheck.domain.exceptions import ServerStartError
from mysql_healthcheck.domain.lifecycle import DaemonState, LifecycleEvent
from mysql_healthcheck.domain.settings import ConnectionSettings, HealthcheckSettings
from mysql_healthcheck.usecases.health_service import HealthService
from mysql_healthcheck.usecases.status_evaluator import StatusEvaluator

if TYPE_CHECKING:
    from mysql_healthcheck.adapters.metrics_port import MetricsPort

logger = logging.getLogger(__name__)

# Timeout period when gracefully shutting down the HTTP server
HTTP_SHUTDOWN_TIMEOUT = 30.0  # seconds
# How often the control loop checks that the server is still alive
SERVER_POLL_INTERVAL = 1.0  # seconds


@dataclass(frozen=True)
class CycleContext:
    """Everything owned by one daemon reload cycle.

    The connection handle is exclusively owned by the cycle and is closed
    only after the cycle's HTTP server has fully stopped.

    Attributes:
        settings: Configuration loaded at the start of the cycle.
        connection: Connection handle opened for the cycle.
        service: Health service answering the cycle's requests.
    """

    settings: HealthcheckSettings
    connection: ConnectionHandlePort
    service: HealthService


SettingsLoader = Callable[[], HealthcheckSettings]
ConnectionFactory = Callable[[ConnectionSettings], ConnectionHandlePort]
ServerFactory = Callable[[CycleContext], HealthServerPort]


class DaemonSupervisor:
    """Runs reload cycles until told to terminate.

    State machine:
        IDLE -> STARTING -> SERVING -> STOPPING -> STARTING (RELOAD)
                                                -> TERMINATED (TERMINATE)

    Lifecycle events arrive on a queue fed by the signal listener; the
    supervisor's control loop is the only consumer. A TERMINATE received
    while a reload is stopping wins, and further TERMINATE events have no
    additional effect.

    Fatal conditions raise and end run(): configuration errors, listener
    start failures, a listener dying while serving, shutdown timeouts and
    connection close failures.

    Thread safety:
        run() must be called from a single thread. Any thread may put
        events on the queue.
    """

    def __init__(
        self,
        load_settings: SettingsLoader,
        open_connection: ConnectionFactory,
        create_server: ServerFactory,
        events: queue.Queue[LifecycleEvent] | None = None,
        metrics: MetricsPort | None = None,
        shutdown_timeout: float = HTTP_SHUTDOWN_TIMEOUT,
        poll_interval: float = SERVER_POLL_INTERVAL,
    ) -> None:
        """Initialize the daemon supervisor.

        Args:
            load_settings: Loads fresh settings at the start of every cycle.
            open_connection: Opens the connection handle for a cycle.
            create_server: Creates the HTTP server for a cycle.
            events: Queue of lifecycle events. A new one is created if not provided.
            metrics: Optional metrics port shared by every cycle's evaluator.
            shutdown_timeout: Seconds allowed for a graceful HTTP shutdown.
            poll_interval: Seconds between server liveness checks while serving.
        """
        self._load_settings = load_settings
        self._open_connection = open_connection
        self._create_server = create_server
        self._events: queue.Queue[LifecycleEvent] = (
            events if events is not None else queue.Queue()
        )
        self._metrics = metrics
        self._shutdown_timeout = shutdown_timeout
        self._poll_interval = poll_interval
        self._state = DaemonState.IDLE
        self._cycles = 0

    @property
    def events(self) -> queue.Queue[LifecycleEvent]:
        """Queue the control loop reads lifecycle events from."""
        return self._events

    @property
    def state(self) -> DaemonState:
        """Current lifecycle state."""
        return self._state

    @property
    def cycles(self) -> int:
        """Number of cycles that reached SERVING."""
        return self._cycles

    def request(self, event: LifecycleEvent) -> None:
        """Send a lifecycle event to the control loop.

        Args:
            event: RELOAD or TERMINATE.
        """
        self._events.put(event)

    def run(self) -> None:
        """Run reload cycles until a TERMINATE event has been handled.

        Raises:
            ConfigError: If the configuration cannot be loaded.
            ServerStartError: If the HTTP listener fails to start or dies.
            ShutdownTimeoutError: If graceful shutdown exceeds the timeout.
            ConnectionCloseError: If a cycle's connection cannot be closed.
        """
        event = LifecycleEvent.RELOAD
        while event is LifecycleEvent.RELOAD:
            event = self._run_cycle()

        self._transition(DaemonState.TERMINATED)
        logger.info("Health check daemon terminated.")

    def _run_cycle(self) -> LifecycleEvent:
        self._transition(DaemonState.STARTING)
        context = self._build_context()
        server = self._create_server(context)

        try:
            server.start()
        except ServerStartError:
            context.connection.close()
            raise

        self._cycles += 1
        self._transition(DaemonState.SERVING)

        event = self._wait_for_event(server)

        self._transition(DaemonState.STOPPING)
        if event is LifecycleEvent.RELOAD:
            logger.info("Triggering reload of config, database connections and HTTP server...")

        server.stop(self._shutdown_timeout)
        logger.info("HTTP server stopped.")

        # The connection is only closed once the server has fully drained
        context.connection.close()

        if event is LifecycleEvent.RELOAD and self._drain_pending_events():
            event = LifecycleEvent.TERMINATE

        return event

    def _build_context(self) -> CycleContext:
        settings = self._load_settings()
        logger.info(f"Using configuration from {settings.source or 'built-in defaults'}")
        connection = self._open_connection(settings.connection)
        evaluator = StatusEvaluator(connection, settings.options, metrics=self._metrics)

        return CycleContext(
            settings=settings,
            connection=connection,
            service=HealthService(evaluator),
        )

    def _wait_for_event(self, server: HealthServerPort) -> LifecycleEvent:
        while True:
            try:
                return self._events.get(timeout=self._poll_interval)
            except queue.Empty:
                if not server.is_running():
                    raise ServerStartError("HTTP server stopped unexpectedly") from None

    def _drain_pending_events(self) -> bool:
        """Consume queued events. Returns True if any of them was TERMINATE."""
        terminate = False
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return terminate
            if event is LifecycleEvent.TERMINATE:
                terminate = True

    def _transition(self, state: DaemonState) -> None:
        logger.debug(f"Daemon state {self._state.value} -> {state.value}")
        self._state = state
