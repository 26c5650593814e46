"""Healthcheck settings domain entities."""

from dataclasses import dataclass, field

from mysql_healthcheck.domain.exceptions import ConfigError


def _validate_port(name: str, port: int) -> None:
    if isinstance(port, bool) or not isinstance(port, int):
        raise ConfigError(f"{name} must be an integer, got: {port!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"{name} must be between 1 and 65535, got: {port}")


@dataclass(frozen=True)
class TLSSettings:
    """TLS options for the database connection.

    Precedence when building the connection follows the order of the
    fields: required enables verified TLS, a custom CA replaces it with a
    custom profile, skip_verify overrides both with unverified TLS.

    Attributes:
        required: Require TLS with full certificate verification.
        skip_verify: Use TLS but do not verify the server certificate.
        ca: Path to a PEM CA bundle for a custom TLS profile.
        cert: Path to a PEM client certificate.
        key: Path to the PEM private key of the client certificate.
    """

    required: bool = False
    skip_verify: bool = False
    ca: str | None = None
    cert: str | None = None
    key: str | None = None

    @property
    def enabled(self) -> bool:
        """True if any TLS profile applies."""
        return self.required or self.skip_verify or self.ca is not None


@dataclass(frozen=True)
class ConnectionSettings:
    """Database connection settings.

    Attributes:
        host: Database hostname. Ignored when unix_socket is set.
        port: Database TCP port. None leaves the driver default.
        user: Username, if any.
        password: Password, if any.
        unix_socket: Path to a unix socket. Takes precedence over host/port.
        tls: TLS options.
    """

    host: str = "localhost"
    port: int | None = 3306
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    unix_socket: str | None = None
    tls: TLSSettings = field(default_factory=TLSSettings)

    def __post_init__(self) -> None:
        """Validate connection settings."""
        if self.unix_socket is None and not self.host.strip():
            raise ConfigError("connection.host cannot be empty")
        if self.port is not None:
            _validate_port("connection.port", self.port)


@dataclass(frozen=True)
class HTTPSettings:
    """HTTP listener settings for daemon mode.

    Attributes:
        addr: Listen address. Defaults to "::" (all interfaces).
        port: Listen port. Defaults to 5678.
        path: URI path of the health check endpoint. Must start with "/".
        metrics_path: Optional URI path serving Prometheus metrics.
    """

    addr: str = "::"
    port: int = 5678
    path: str = "/"
    metrics_path: str | None = None

    def __post_init__(self) -> None:
        """Validate HTTP settings."""
        _validate_port("http.port", self.port)
        if not self.path.startswith("/"):
            raise ConfigError(f"http.path must start with '/', got: {self.path!r}")
        if self.metrics_path is not None:
            if not self.metrics_path.startswith("/"):
                raise ConfigError(
                    f"http.metrics_path must start with '/', got: {self.metrics_path!r}"
                )
            if self.metrics_path == self.path:
                raise ConfigError("http.metrics_path cannot be the same as http.path")


@dataclass(frozen=True)
class EvaluationConfig:
    """Policy knobs for node status evaluation.

    Immutable for the lifetime of a health service; replaced wholesale on
    reload.

    Attributes:
        available_when_donor: Treat a DONOR node like a SYNCED one.
        available_when_readonly: Report a read-only node as AVAILABLE.
        custom_query: Optional query replacing the replication checks.
        custom_result: Expected first column of the custom query's first row.
    """

    available_when_donor: bool = False
    available_when_readonly: bool = False
    custom_query: str | None = None
    custom_result: str | None = None

    @property
    def uses_custom_query(self) -> bool:
        """True if both custom_query and custom_result are configured."""
        return self.custom_query is not None and self.custom_result is not None


@dataclass(frozen=True)
class HealthcheckSettings:
    """Complete configuration for one standalone run or daemon cycle.

    Attributes:
        connection: Database connection settings.
        http: HTTP listener settings.
        options: Evaluation policy.
        source: Path of the config file used, or None when running on defaults.
    """

    connection: ConnectionSettings = field(default_factory=ConnectionSettings)
    http: HTTPSettings = field(default_factory=HTTPSettings)
    options: EvaluationConfig = field(default_factory=EvaluationConfig)
    source: str | None = None
