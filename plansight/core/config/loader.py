"""TOML configuration loader for plansight."""

from __future__ import annotations

import os
import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, cast

from plansight.core.config.models import EnrichmentConfig, LoggingConfig, PlanSightConfig
from plansight.core.exceptions import ConfigurationError
from plansight.core.logging import get_logger

# Constants for boolean environment variable parsing
_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

_ENRICHMENT_TUPLE_KEYS = ("row_count_metric_names", "wrapper_node_names")
_ENRICHMENT_STR_KEYS = ("codegen_marker", "cache_scan_node_name")

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Parameters
    ----------
    value : str
        Environment variable value

    Returns
    -------
    bool
        Parsed boolean value

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = _TRUTHY_VALUES | _FALSY_VALUES
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> PlanSightConfig:
    """Cached configuration loader."""
    loader = ConfigLoader()
    return loader._load_and_parse(Path(path_str))


class ConfigLoader:
    """Loads and processes plansight configuration from TOML files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load_from_toml(self, path: str | Path | None = None) -> PlanSightConfig:
        """Load configuration from TOML file.

        Parameters
        ----------
        path : str | Path | None
            Path to TOML file. If None, searches for plansight.toml or pyproject.toml

        Returns
        -------
        PlanSightConfig
            Parsed configuration with environment variables substituted
        """
        config_path = self._find_config_file(path)
        return _load_and_parse_cached(str(config_path.absolute()))

    def _load_and_parse(self, config_path: Path) -> PlanSightConfig:
        """Load and parse configuration file."""
        logger.info("Loading configuration from {path}", path=config_path)

        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(str(config_path), f"invalid TOML: {e}") from e

        if config_path.name == "pyproject.toml":
            plansight_data = data.get("tool", {}).get("plansight", {})
            if not plansight_data:
                logger.warning("No [tool.plansight] section in pyproject.toml, using defaults")
                return get_default_config()
        elif "tool" in data and "plansight" in data.get("tool", {}):
            plansight_data = data["tool"]["plansight"]
        else:
            # Flat format (top-level keys)
            plansight_data = data

        plansight_data = self._substitute_env_vars(plansight_data)
        return self._parse_config(plansight_data)

    def _find_config_file(self, path: str | Path | None) -> Path:
        """Find configuration file.

        Parameters
        ----------
        path : str | Path | None
            Explicit path or None to search

        Returns
        -------
        Path
            Path to configuration file

        Raises
        ------
        FileNotFoundError
            If no configuration file is found
        """
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return config_path

        if env_path := os.getenv("PLANSIGHT_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.exists():
                logger.debug("Using config from PLANSIGHT_CONFIG_PATH: {path}", path=config_path)
                return config_path
            logger.warning(
                "PLANSIGHT_CONFIG_PATH set but file not found: {path}", path=config_path
            )

        search_paths = [
            Path("plansight.toml"),
            Path(".plansight.toml"),
            Path("pyproject.toml"),
        ]

        for search_path in search_paths:
            if search_path.exists():
                return search_path

        raise FileNotFoundError(
            "No configuration file found. Searched for: plansight.toml, .plansight.toml, "
            "pyproject.toml"
        )

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute ${VAR} environment references in configuration."""
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    logger.debug(
                        "Environment variable {name} not found, keeping placeholder",
                        name=var_name,
                    )
                    return match.group(0)
                return value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def _parse_config(self, data: dict[str, Any]) -> PlanSightConfig:
        """Parse configuration data into PlanSightConfig."""
        return PlanSightConfig(
            logging=self._parse_logging_config(data.get("logging", {})),
            enrichment=self._parse_enrichment_config(data.get("enrichment", {})),
        )

    def _parse_enrichment_config(self, enrichment_data: dict[str, Any]) -> EnrichmentConfig:
        """Parse the [enrichment] table, keeping defaults for absent keys.

        Raises
        ------
        ConfigurationError
            If a key holds a value of the wrong shape
        """
        kwargs: dict[str, Any] = {}
        for key in _ENRICHMENT_TUPLE_KEYS:
            if key in enrichment_data:
                value = enrichment_data[key]
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise ConfigurationError("enrichment", f"'{key}' must be a list of strings")
                kwargs[key] = tuple(value)
        for key in _ENRICHMENT_STR_KEYS:
            if key in enrichment_data:
                value = enrichment_data[key]
                if not isinstance(value, str):
                    raise ConfigurationError("enrichment", f"'{key}' must be a string")
                kwargs[key] = value

        unknown = set(enrichment_data) - set(_ENRICHMENT_TUPLE_KEYS) - set(_ENRICHMENT_STR_KEYS)
        if unknown:
            logger.warning("Ignoring unknown enrichment keys: {keys}", keys=sorted(unknown))

        return EnrichmentConfig(**kwargs)

    def _parse_logging_config(self, logging_data: dict[str, Any]) -> LoggingConfig:
        """Parse logging configuration with environment variable overrides.

        Environment variables take precedence over TOML configuration:
        - PLANSIGHT_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - PLANSIGHT_LOG_FORMAT: Output format (console, json, structured, rich)
        - PLANSIGHT_LOG_FILE: Optional file path for log output
        - PLANSIGHT_LOG_COLOR: Use color output (true/false)
        - PLANSIGHT_LOG_RICH: Use Rich library for console output (true/false)

        Parameters
        ----------
        logging_data : dict[str, Any]
            Logging section from TOML config

        Returns
        -------
        LoggingConfig
            Parsed logging configuration with env overrides applied
        """
        level = logging_data.get("level", "INFO")
        format_type = logging_data.get("format", "structured")
        output_file = logging_data.get("output_file")
        use_color = logging_data.get("use_color", True)
        include_timestamp = logging_data.get("include_timestamp", True)
        use_rich = logging_data.get("use_rich", False)
        enable_stdlib_bridge = logging_data.get("enable_stdlib_bridge", False)
        backtrace = logging_data.get("backtrace", True)
        diagnose = logging_data.get("diagnose", True)

        if env_level := os.getenv("PLANSIGHT_LOG_LEVEL"):
            level = env_level.upper()
            logger.debug("Overriding log level from env: {level}", level=level)

        if env_format := os.getenv("PLANSIGHT_LOG_FORMAT"):
            format_type = env_format.lower()
            logger.debug("Overriding log format from env: {format}", format=format_type)

        if env_file := os.getenv("PLANSIGHT_LOG_FILE"):
            output_file = env_file
            logger.debug("Overriding log file from env: {file}", file=output_file)

        if env_color := os.getenv("PLANSIGHT_LOG_COLOR"):
            try:
                use_color = _parse_bool_env(env_color)
            except ValueError as e:
                logger.warning("Invalid PLANSIGHT_LOG_COLOR value: {error}", error=str(e))

        if env_rich := os.getenv("PLANSIGHT_LOG_RICH"):
            try:
                use_rich = _parse_bool_env(env_rich)
            except ValueError as e:
                logger.warning("Invalid PLANSIGHT_LOG_RICH value: {error}", error=str(e))

        return LoggingConfig(
            level=cast("Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']", level),
            format=cast("Literal['console', 'json', 'structured', 'rich']", format_type),
            output_file=output_file,
            use_color=use_color,
            include_timestamp=include_timestamp,
            use_rich=use_rich,
            enable_stdlib_bridge=enable_stdlib_bridge,
            backtrace=backtrace,
            diagnose=diagnose,
        )


def load_config(path: str | Path | None = None) -> PlanSightConfig:
    """Load configuration from TOML file or return defaults.

    Parameters
    ----------
    path : str | Path | None
        Path to configuration file or None to search

    Returns
    -------
    PlanSightConfig
        Loaded configuration or defaults if no file found
    """
    try:
        loader = ConfigLoader()
        return loader.load_from_toml(path)
    except FileNotFoundError:
        logger.info("No configuration file found, using defaults")
        return get_default_config()


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when configuration files have been modified.
    """
    _load_and_parse_cached.cache_clear()


def get_default_config() -> PlanSightConfig:
    """Get default configuration."""
    return PlanSightConfig()
