"""Command line entry point for mysql-healthcheck.

Standalone mode runs one health check and exits with its status code.
Daemon mode (-d) serves health checks over HTTP until SIGINT/SIGTERM and
reloads configuration, database connections and HTTP server on SIGHUP.
"""

from __future__ import annotations

import argparse
import logging
import os
import platform
import sys
from typing import Sequence

from mysql_healthcheck import __version__
from mysql_healthcheck.adapters.http_server import (
    UvicornHealthServer,
    build_health_server,
)
from mysql_healthcheck.adapters.prometheus_metrics import PrometheusMetricsAdapter
from mysql_healthcheck.adapters.signal_listener import (
    SignalListener,
    block_lifecycle_signals,
)
from mysql_healthcheck.adapters.sqlalchemy_connection import open_connection
from mysql_healthcheck.domain.exceptions import HealthcheckError, ShutdownTimeoutError
from mysql_healthcheck.usecases.config_loader import ConfigLoader
from mysql_healthcheck.usecases.daemon_supervisor import CycleContext, DaemonSupervisor
from mysql_healthcheck.usecases.health_service import HealthService, run_standalone_check
from mysql_healthcheck.usecases.status_evaluator import StatusEvaluator

logger = logging.getLogger(__name__)

APP_NAME = "mysql-healthcheck"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# Exit status for fatal errors in either mode
EXIT_FATAL = 1


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Health check for Galera cluster MySQL/MariaDB nodes.",
    )
    parser.add_argument(
        "-d",
        action="store_true",
        dest="daemon",
        help="Run as a daemon and listen for HTTP connections on a socket",
    )
    parser.add_argument(
        "-v",
        action="store_true",
        dest="verbose",
        help="Verbose (debug) logging",
    )
    parser.add_argument(
        "-V",
        action="store_true",
        dest="version",
        help="Print version and exit",
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config_file",
        default=None,
        help="Config file to use instead of searching the default locations",
    )
    return parser


def version_string() -> str:
    """Return the version line printed by -V."""
    return (
        f"{APP_NAME} version {__version__}, running on "
        f"{platform.system().lower()} {platform.machine()} "
        f"using Python {platform.python_version()}"
    )


def configure_logging(verbose: bool) -> None:
    """Configure root logging on stderr.

    Args:
        verbose: Log at DEBUG instead of INFO.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def run_standalone(config_file: str | None = None) -> int:
    """Run a single health check against the configured node.

    Args:
        config_file: Optional explicit config file.

    Returns:
        Exit code of the verdict.
    """
    settings = ConfigLoader(config_file).load()
    logger.debug(f"Using configuration from {settings.source or 'built-in defaults'}")
    connection = open_connection(settings.connection)

    try:
        service = HealthService(StatusEvaluator(connection, settings.options))
        return run_standalone_check(service)
    finally:
        connection.close()


def run_daemon(config_file: str | None = None) -> int:
    """Serve health checks over HTTP until terminated.

    Args:
        config_file: Optional explicit config file.

    Returns:
        0 after a graceful termination.
    """
    # Must happen before any thread starts so every thread inherits the mask
    block_lifecycle_signals()

    metrics = PrometheusMetricsAdapter()
    loader = ConfigLoader(config_file)

    def create_server(context: CycleContext) -> UvicornHealthServer:
        return build_health_server(
            context.settings.http, context.service, metrics_registry=metrics.registry
        )

    supervisor = DaemonSupervisor(
        load_settings=loader.load,
        open_connection=open_connection,
        create_server=create_server,
        metrics=metrics,
    )

    listener = SignalListener(supervisor.events)
    listener.start()
    try:
        supervisor.run()
    finally:
        listener.close()

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and run the selected mode.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    if args.version:
        print(version_string())
        return 0

    configure_logging(args.verbose)

    try:
        if args.daemon:
            return run_daemon(args.config_file)
        return run_standalone(args.config_file)
    except ShutdownTimeoutError as e:
        logger.critical(f"Could not gracefully shutdown the HTTP server: {e}")
        logging.shutdown()
        # Request threads may still be blocked on the database
        os._exit(EXIT_FATAL)
    except HealthcheckError as e:
        logger.critical(str(e))
        return EXIT_FATAL


def entrypoint() -> None:
    """Console script entry point."""
    sys.exit(main())
