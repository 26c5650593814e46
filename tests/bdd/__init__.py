"""BDD scenarios for mysql-healthcheck."""
