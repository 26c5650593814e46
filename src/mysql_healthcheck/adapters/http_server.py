"""HTTP delivery of health checks.

create_health_app() builds the FastAPI responder; UvicornHealthServer runs
it on a background thread so the daemon control loop can start and stop it
once per reload cycle.
"""

from __future__ import annotations

import functools
import logging
import socket
import threading
import time
from typing import TYPE_CHECKING, Awaitable, Callable

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from mysql_healthcheck.domain.exceptions import ServerStartError, ShutdownTimeoutError
from mysql_healthcheck.domain.status import NodeStatus

if TYPE_CHECKING:
    from prometheus_client import CollectorRegistry

    from mysql_healthcheck.domain.settings import HTTPSettings
    from mysql_healthcheck.usecases.health_service import HealthService

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "Unknown error encountered running health check."
STARTUP_POLL_INTERVAL = 0.01  # seconds


def create_health_app(
    service: HealthService,
    path: str = "/",
    metrics_registry: CollectorRegistry | None = None,
    metrics_path: str | None = None,
) -> FastAPI:
    """Create the FastAPI application answering health check requests.

    Any HTTP method on the health check path runs one evaluation and answers
    with the status message: 200 when the node is available, 503 otherwise.
    Any other path answers 404. Every response carries "Connection: close"
    so that no client keeps a socket open across a reload.

    Args:
        service: Health service of the current cycle.
        path: URI path of the health check endpoint.
        metrics_registry: Optional registry exposed in Prometheus text format.
        metrics_path: URI path for the metrics endpoint. Required to expose
                      metrics_registry.

    Returns:
        FastAPI application.
    """
    app = FastAPI(
        redirect_slashes=False,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.middleware("http")
    async def close_connection(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers["Connection"] = "close"
        return response

    def health_check(request: Request) -> Response:
        client = request.client.host if request.client else "unknown"
        logger.debug(f"Processing health check request from {client}")

        try:
            result = service.run_check()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return PlainTextResponse(
                UNKNOWN_ERROR_MESSAGE,
                status_code=NodeStatus.UNAVAILABLE.http_status,
            )

        return PlainTextResponse(result.message, status_code=result.http_status)

    logger.debug(f"Registering health check endpoint at URI path {path}")
    # No methods filter: every HTTP method reaches the health check
    app.add_route(path, health_check)

    if metrics_registry is not None and metrics_path is not None:
        registry = metrics_registry

        def metrics(request: Request) -> Response:
            return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

        logger.debug(f"Registering metrics endpoint at URI path {metrics_path}")
        app.add_route(metrics_path, metrics, methods=["GET"])

    return app


class UvicornHealthServer:
    """Runs a health check application with uvicorn on a background thread.

    Implements HealthServerPort. uvicorn does not install signal handlers
    outside the main thread, so OS signals stay with the daemon supervisor.
    """

    def __init__(self, app: FastAPI, host: str, port: int) -> None:
        """Initialize the server.

        Args:
            app: ASGI application to serve.
            host: Listen address.
            port: Listen port.
        """
        self._host = host
        self._port = port
        self._server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=host,
                port=port,
                lifespan="off",
                access_log=False,
                log_config=None,
            )
        )
        self._thread: threading.Thread | None = None
        self._socket: socket.socket | None = None

    @property
    def address(self) -> str:
        """Listen address in host:port form."""
        if ":" in self._host:
            return f"[{self._host}]:{self._port}"
        return f"{self._host}:{self._port}"

    def start(self) -> None:
        """Start serving and wait until the socket is bound.

        Raises:
            ServerStartError: If the listener exits before it starts serving.
        """
        logger.info("Starting HTTP server.")

        sockets = None
        if ":" in self._host:
            self._socket = self._bind_dual_stack()
            sockets = [self._socket]

        self._thread = threading.Thread(
            target=functools.partial(self._server.run, sockets=sockets),
            name="health-http-server",
            daemon=True,
        )
        self._thread.start()

        while not self._server.started:
            if not self._thread.is_alive():
                self._close_socket()
                raise ServerStartError(f"Error opening HTTP socket on {self.address}")
            time.sleep(STARTUP_POLL_INTERVAL)

        logger.debug(f"HTTP server listening on {self.address}")

    def _bind_dual_stack(self) -> socket.socket:
        """Bind an IPv6 listener that also accepts IPv4-mapped clients.

        uvicorn binds IPv6 hosts with the platform default for IPV6_V6ONLY,
        which is on for many systems, so "::" would refuse IPv4 clients.

        Raises:
            ServerStartError: If the socket cannot be bound.
        """
        sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
            sock.bind((self._host, self._port))
            sock.listen(socket.SOMAXCONN)
        except OSError as e:
            sock.close()
            raise ServerStartError(f"Error opening HTTP socket on {self.address}: {e}") from e
        return sock

    def _close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def is_running(self) -> bool:
        """Return True while the server thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def stop(self, timeout: float) -> None:
        """Stop accepting connections and wait for in-flight requests.

        Args:
            timeout: Maximum seconds to wait for the server to finish.

        Raises:
            ShutdownTimeoutError: If the server is still running after timeout.
        """
        if self._thread is None:
            return

        self._server.should_exit = True
        self._thread.join(timeout)

        if self._thread.is_alive():
            raise ShutdownTimeoutError(
                f"HTTP server did not shut down within {timeout} seconds"
            )

        self._close_socket()


def build_health_server(
    settings: HTTPSettings,
    service: HealthService,
    metrics_registry: CollectorRegistry | None = None,
) -> UvicornHealthServer:
    """Create the HTTP server for one daemon cycle.

    Args:
        settings: HTTP listener settings of the cycle.
        service: Health service of the cycle.
        metrics_registry: Optional registry served at settings.metrics_path.

    Returns:
        A server ready to be started.
    """
    app = create_health_app(
        service,
        path=settings.path,
        metrics_registry=metrics_registry,
        metrics_path=settings.metrics_path,
    )
    return UvicornHealthServer(app, host=settings.addr, port=settings.port)
