"""Allow running as ``python -m mysql_healthcheck``."""

from mysql_healthcheck.cli import entrypoint

entrypoint()
