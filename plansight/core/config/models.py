"""Configuration data models for plansight."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from plansight.core.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for plansight.

    Attributes
    ----------
    level : str, default="INFO"
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    use_rich : bool, default=False
        Use Rich library for console output
    enable_stdlib_bridge : bool, default=False
        Enable interception of stdlib logging for third-party libraries
    backtrace : bool, default=True
        Enable backtrace for debugging
    diagnose : bool, default=True
        Enable diagnose mode with variable values

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.plansight.logging]
    level = "DEBUG"
    format = "rich"
    ```

    Environment variable overrides:

    ```bash
    export PLANSIGHT_LOG_LEVEL=DEBUG
    export PLANSIGHT_LOG_FORMAT=json
    export PLANSIGHT_LOG_FILE=/var/log/plansight/engine.log
    ```
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True
    use_rich: bool = False
    enable_stdlib_bridge: bool = False
    backtrace: bool = True
    diagnose: bool = True


@dataclass(frozen=True, slots=True)
class EnrichmentConfig:
    """Names the engine relies on when classifying nodes and reading metrics.

    Attributes
    ----------
    row_count_metric_names : tuple[str, ...]
        Metric names (case-insensitive) treated as a node's row-count counter
    wrapper_node_names : tuple[str, ...]
        Operators never picked as the fallback output node
    codegen_marker : str
        Substring identifying code-generation wrapper nodes
    cache_scan_node_name : str
        Operator name that receives cached-storage info
    """

    row_count_metric_names: tuple[str, ...] = ("number of output rows", "rows", "output rows")
    wrapper_node_names: tuple[str, ...] = ("AdaptiveSparkPlan", "ResultQueryStage")
    codegen_marker: str = "WholeStageCodegen"
    cache_scan_node_name: str = "InMemoryTableScan"

    def __post_init__(self) -> None:
        """Validate enrichment settings.

        Raises
        ------
        ValidationError
            If no row-count metric name is configured or the codegen marker is empty
        """
        if not self.row_count_metric_names:
            raise ValidationError("row_count_metric_names", "cannot be empty")
        if not self.codegen_marker:
            raise ValidationError("codegen_marker", "cannot be empty")
        object.__setattr__(
            self,
            "row_count_metric_names",
            tuple(name.lower() for name in self.row_count_metric_names),
        )


@dataclass(slots=True)
class PlanSightConfig:
    """Complete plansight configuration.

    Attributes
    ----------
    logging : LoggingConfig
        Logging sinks and format
    enrichment : EnrichmentConfig
        Engine naming conventions
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
