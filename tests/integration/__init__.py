"""Integration tests with real HTTP listeners."""
