"""Config loader use case for mysql-healthcheck.

Reads the YAML config file, merges it over the defaults and builds the
HealthcheckSettings domain object. The file is re-read on every daemon
reload cycle.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from mysql_healthcheck.domain.exceptions import ConfigError
from mysql_healthcheck.domain.settings import (
    ConnectionSettings,
    EvaluationConfig,
    HealthcheckSettings,
    HTTPSettings,
    TLSSettings,
)

logger = logging.getLogger(__name__)

CONFIG_NAME = "mysql-healthcheck"
CONFIG_EXTENSIONS = (".yaml", ".yml")
CONFIG_SEARCH_PATHS = (
    Path("/etc/sysconfig"),
    Path("/etc/default"),
    Path("~/.config"),
    Path("."),
)

DEFAULTS: dict[str, Any] = {
    "connection": {
        "host": "localhost",
        "port": 3306,
        "tls": {
            "required": False,
            "skip-verify": False,
        },
    },
    "http": {
        "addr": "::",
        "port": 5678,
        "path": "/",
    },
    "options": {
        "available_when_donor": False,
        "available_when_readonly": False,
    },
}

# Top-level keys accepted from configs written for earlier releases
LEGACY_KEYS = {
    "options.custom_query": "customQuery",
    "options.custom_result": "customResult",
}

_TRUE_STRINGS = frozenset(["1", "t", "true", "y", "yes", "on"])
_FALSE_STRINGS = frozenset(["0", "f", "false", "n", "no", "off", ""])


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigProvider:
    """Dotted-key view over a nested configuration mapping.

    Example:
        >>> provider = ConfigProvider({"http": {"port": 8080}})
        >>> provider.get_int("http.port")
        8080
        >>> provider.is_set("http.addr")
        False
    """

    def __init__(self, values: Mapping[str, Any]) -> None:
        """Initialize the provider.

        Args:
            values: Nested mapping of configuration values.
        """
        self._values = values

    def _lookup(self, key: str) -> tuple[bool, Any]:
        node: Any = self._values
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return False, None
            node = node[part]
        return True, node

    def is_set(self, key: str) -> bool:
        """Return True if key has a non-null value."""
        found, value = self._lookup(key)
        return found and value is not None

    def get(self, key: str) -> Any:
        """Return the raw value for key, or None if unset."""
        return self._lookup(key)[1]

    def get_string(self, key: str) -> str:
        """Return key as a string ("" if unset)."""
        value = self.get(key)
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (Mapping, Sequence)) and not isinstance(value, str):
            raise ConfigError(f"{key} must be a scalar value, got: {value!r}")
        return str(value)

    def get_bool(self, key: str) -> bool:
        """Return key as a boolean (False if unset).

        Raises:
            ConfigError: If the value cannot be read as a boolean.
        """
        value = self.get(key)
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return value != 0
        text = str(value).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ConfigError(f"{key} must be a boolean, got: {value!r}")

    def get_int(self, key: str) -> int:
        """Return key as an integer (0 if unset).

        Raises:
            ConfigError: If the value cannot be read as an integer.
        """
        value = self.get(key)
        if value is None:
            return 0
        if isinstance(value, bool):
            raise ConfigError(f"{key} must be an integer, got: {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{key} must be an integer, got: {value!r}") from e

    def get_optional_string(self, key: str) -> str | None:
        """Return key as a string, or None if unset."""
        return self.get_string(key) if self.is_set(key) else None


class ConfigLoader:
    """Locates, parses and validates the healthcheck configuration."""

    def __init__(
        self,
        config_file: str | Path | None = None,
        search_paths: Sequence[Path] = CONFIG_SEARCH_PATHS,
    ) -> None:
        """Initialize the config loader.

        Args:
            config_file: Explicit config file. When given, the search path is
                         not used and the file must exist.
            search_paths: Directories searched for mysql-healthcheck.yaml/.yml.
        """
        self._config_file = Path(config_file) if config_file is not None else None
        self._search_paths = tuple(search_paths)

    def find_config_file(self) -> Path | None:
        """Return the config file to use, or None if there is none.

        Raises:
            ConfigError: If an explicit config file does not exist.
        """
        if self._config_file is not None:
            if not self._config_file.is_file():
                raise ConfigError(f"Config file not found: {self._config_file}")
            return self._config_file

        for directory in self._search_paths:
            for extension in CONFIG_EXTENSIONS:
                candidate = directory.expanduser() / f"{CONFIG_NAME}{extension}"
                if candidate.is_file():
                    return candidate

        return None

    def parse(self, yaml_str: str) -> dict[str, Any]:
        """Parse YAML text into a configuration mapping.

        Args:
            yaml_str: YAML document.

        Returns:
            Mapping of configuration values (empty for an empty document).

        Raises:
            ConfigError: If the YAML is invalid or not a mapping.
        """
        try:
            config = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e

        if config is None:
            return {}

        if not isinstance(config, dict):
            raise ConfigError("Config must be a dictionary")

        return config

    def load_provider(self) -> tuple[ConfigProvider, Path | None]:
        """Read the config file (if any) and merge it over the defaults.

        Returns:
            Tuple of (provider, path of the file used or None).

        Raises:
            ConfigError: If the file exists but cannot be read or parsed.
        """
        path = self.find_config_file()

        if path is None:
            logger.warning("No config file found.  Using default configuration!")
            return ConfigProvider(copy.deepcopy(DEFAULTS)), None

        try:
            yaml_str = path.read_text()
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e

        values = self.parse(yaml_str)
        logger.debug(f"Config loaded from {path}")

        return ConfigProvider(_merge(DEFAULTS, values)), path

    def load(self) -> HealthcheckSettings:
        """Load the configuration and build the settings domain object.

        Returns:
            HealthcheckSettings for one standalone run or daemon cycle.

        Raises:
            ConfigError: If the file cannot be parsed or a value is invalid.
        """
        provider, path = self.load_provider()
        return build_settings(provider, source=str(path) if path else None)


def _get_with_legacy_key(provider: ConfigProvider, key: str) -> str | None:
    value = provider.get_optional_string(key)
    legacy_key = LEGACY_KEYS[key]
    if value is None and provider.is_set(legacy_key):
        logger.warning(f"Config key {legacy_key} is deprecated; use {key}")
        value = provider.get_optional_string(legacy_key)
    return value


def _normalize_path(path: str) -> str:
    # HTTP path must contain a leading slash
    return path if path.startswith("/") else f"/{path}"


def build_settings(
    provider: ConfigProvider, source: str | None = None
) -> HealthcheckSettings:
    """Build HealthcheckSettings from a config provider.

    Args:
        provider: Configuration values.
        source: Path of the config file the values came from.

    Returns:
        Validated HealthcheckSettings.

    Raises:
        ConfigError: If a value is missing or invalid.
    """
    tls = TLSSettings(
        required=provider.get_bool("connection.tls.required"),
        skip_verify=provider.get_bool("connection.tls.skip-verify"),
        ca=provider.get_optional_string("connection.tls.ca"),
        cert=provider.get_optional_string("connection.tls.cert"),
        key=provider.get_optional_string("connection.tls.key"),
    )

    connection = ConnectionSettings(
        host=provider.get_string("connection.host"),
        port=provider.get_int("connection.port") if provider.is_set("connection.port") else None,
        user=provider.get_optional_string("connection.user"),
        password=provider.get_optional_string("connection.password"),
        unix_socket=provider.get_optional_string("connection.unix_socket"),
        tls=tls,
    )

    metrics_path = provider.get_optional_string("http.metrics_path")
    http = HTTPSettings(
        addr=provider.get_string("http.addr"),
        port=provider.get_int("http.port"),
        path=_normalize_path(provider.get_string("http.path")),
        metrics_path=_normalize_path(metrics_path) if metrics_path else None,
    )

    custom_query = _get_with_legacy_key(provider, "options.custom_query")
    custom_result = _get_with_legacy_key(provider, "options.custom_result")
    if custom_query is not None and custom_result is not None:
        logger.info("Custom query and result configured")
    elif custom_query is not None or custom_result is not None:
        logger.warning(
            "Both options.custom_query and options.custom_result are required; "
            "custom query check disabled"
        )
        custom_query = None
        custom_result = None

    options = EvaluationConfig(
        available_when_donor=provider.get_bool("options.available_when_donor"),
        available_when_readonly=provider.get_bool("options.available_when_readonly"),
        custom_query=custom_query,
        custom_result=custom_result,
    )

    return HealthcheckSettings(
        connection=connection, http=http, options=options, source=source
    )
