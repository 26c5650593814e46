"""Unit tests for mysql-healthcheck."""
