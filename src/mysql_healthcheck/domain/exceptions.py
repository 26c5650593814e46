"""Domain exceptions.

Exception hierarchy:
- HealthcheckError: Base exception for everything raised by this package.
  - ConfigError: Configuration file or values are invalid.
  - ConnectionUnavailableError: The database node could not be pinged.
  - ProbeQueryError: A probe query could not be prepared, executed or read.
  - DaemonError: Fatal daemon lifecycle failure.
    - ServerStartError: HTTP listener could not bind or stopped unexpectedly.
    - ShutdownTimeoutError: Graceful shutdown did not finish in time.
    - ConnectionCloseError: The connection handle could not be closed.

Connectivity and probe errors are absorbed by the status evaluator into
conservative verdicts. Configuration and daemon errors are fatal.
"""


class HealthcheckError(Exception):
    """Base exception for all mysql-healthcheck errors."""

    pass


class ConfigError(HealthcheckError):
    """Raised when the healthcheck configuration is invalid.

    Raised by settings value objects during validation and by the config
    loader when a config file exists but cannot be parsed.
    """

    pass


class ConnectionUnavailableError(HealthcheckError):
    """Raised when the database node does not answer a ping."""

    pass


class ProbeQueryError(HealthcheckError):
    """Raised when a probe query fails.

    Attributes:
        query: The query that failed.
        original_error: The underlying driver exception (optional).
    """

    def __init__(
        self,
        message: str,
        query: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize ProbeQueryError.

        Args:
            message: Human-readable error description.
            query: The query that failed.
            original_error: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.message = message
        self.query = query
        self.original_error = original_error


class DaemonError(HealthcheckError):
    """Base exception for fatal daemon lifecycle failures."""

    pass


class ServerStartError(DaemonError):
    """Raised when the HTTP listener fails to bind or dies while serving."""

    pass


class ShutdownTimeoutError(DaemonError):
    """Raised when the HTTP server does not stop within the shutdown timeout."""

    pass


class ConnectionCloseError(DaemonError):
    """Raised when the connection handle of a cycle cannot be closed."""

    pass
