"""Probe result value objects."""

from dataclasses import dataclass

from mysql_healthcheck.domain.status import ReplicationState


@dataclass(frozen=True)
class ReplicationProbeResult:
    """Result of the replication state probe.

    A failed probe reports JOINING so that an unknown state is never
    treated as healthy. The error field tells a degraded JOINING apart
    from a node that is genuinely joining.

    Attributes:
        state: Replication state reported by the node (or JOINING on failure).
        error: Error message if the probe failed.
    """

    state: ReplicationState
    error: str | None = None

    @property
    def failed(self) -> bool:
        """True if the probe failed and state is the fallback value."""
        return self.error is not None


@dataclass(frozen=True)
class ReadOnlyProbeResult:
    """Result of the read-only flag probe.

    A failed probe reports read_only=True.

    Attributes:
        read_only: True unless the node reported read_only=OFF.
        error: Error message if the probe failed.
    """

    read_only: bool
    error: str | None = None

    @property
    def failed(self) -> bool:
        """True if the probe failed and read_only is the fallback value."""
        return self.error is not None


@dataclass(frozen=True)
class CustomQueryProbeResult:
    """Result of an operator-configured custom query check.

    Attributes:
        matched: True if the query returned the expected result.
        actual: First column of the first row, if any row was returned.
        error: Error message if the query failed.
    """

    matched: bool
    actual: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        """True if the query itself failed."""
        return self.error is not None
