"""Configuration loading and management for plansight."""

from plansight.core.config.loader import (
    ConfigLoader,
    clear_config_cache,
    get_default_config,
    load_config,
)
from plansight.core.config.models import EnrichmentConfig, LoggingConfig, PlanSightConfig

__all__ = [
    "ConfigLoader",
    "EnrichmentConfig",
    "LoggingConfig",
    "PlanSightConfig",
    "clear_config_cache",
    "get_default_config",
    "load_config",
]
