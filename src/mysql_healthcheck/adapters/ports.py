"""Port interfaces for mysql-healthcheck.

Ports define the contracts that adapters must implement.
These are Protocol classes (structural subtyping) for flexible testing.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class PreparedStatementPort(Protocol):
    """Port interface for a scoped, single-use query resource.

    Contract:
        - Used as a context manager; the resource is released on exit,
          whether the body returned normally or raised
        - query_row() executes the statement and returns exactly one row
        - Failures raise ProbeQueryError
    """

    def query_row(self) -> tuple[Any, ...]:
        """Execute the statement and return its single row.

        Returns:
            The row as a tuple of column values.

        Raises:
            ProbeQueryError: If execution fails or the result is not exactly one row.
        """
        ...

    def close(self) -> None:
        """Release the statement and any connection it holds. Idempotent."""
        ...

    def __enter__(self) -> PreparedStatementPort: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


@runtime_checkable
class ConnectionHandlePort(Protocol):
    """Port interface for a pooled connection to one database node.

    Implementations must be safe for concurrent use by several request
    handlers. Every call is a single attempt: no retries.

    Contract:
        - ping() returns None if the node answers, raises
          ConnectionUnavailableError otherwise
        - prepare(query) returns a PreparedStatementPort; raises
          ProbeQueryError if the statement cannot be prepared
        - close() releases all pooled connections
    """

    def ping(self) -> None:
        """Check that the node accepts connections.

        Raises:
            ConnectionUnavailableError: If the node cannot be reached.
        """
        ...

    def prepare(self, query: str) -> PreparedStatementPort:
        """Prepare a query for single execution.

        Args:
            query: SQL text to run.

        Returns:
            A scoped statement to be used as a context manager.

        Raises:
            ProbeQueryError: If the statement cannot be prepared.
        """
        ...

    def close(self) -> None:
        """Close the handle and every pooled connection."""
        ...


@runtime_checkable
class HealthServerPort(Protocol):
    """Port interface for the HTTP listener of one daemon cycle.

    Contract:
        - start() returns once the listener is bound and accepting, or
          raises ServerStartError
        - is_running() is False once the listener has exited for any reason
        - stop(timeout) stops accepting connections, lets in-flight requests
          finish and returns when fully stopped; raises
          ShutdownTimeoutError if that takes longer than timeout seconds
    """

    def start(self) -> None:
        """Start serving in the background.

        Raises:
            ServerStartError: If the listener cannot be bound.
        """
        ...

    def is_running(self) -> bool:
        """Return True while the listener is serving."""
        ...

    def stop(self, timeout: float) -> None:
        """Gracefully stop the listener.

        Args:
            timeout: Maximum seconds to wait for in-flight requests.

        Raises:
            ShutdownTimeoutError: If the listener is still running after timeout.
        """
        ...
