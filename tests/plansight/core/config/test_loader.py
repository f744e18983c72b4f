"""Tests for the config loader module.

This module tests TOML configuration loading for plansight.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from plansight.core.config.loader import (
    ConfigLoader,
    _parse_bool_env,
    clear_config_cache,
    get_default_config,
    load_config,
)
from plansight.core.config.models import EnrichmentConfig, PlanSightConfig
from plansight.core.exceptions import ConfigurationError, ValidationError

if TYPE_CHECKING:
    from pathlib import Path


class TestParseBoolEnv:
    """Tests for _parse_bool_env function."""

    def test_truthy_values(self) -> None:
        """Test parsing truthy values."""
        for value in ["true", "True", "1", "yes", "on", "enabled"]:
            assert _parse_bool_env(value) is True

    def test_falsy_values(self) -> None:
        """Test parsing falsy values."""
        for value in ["false", "FALSE", "0", "no", "off", "disabled"]:
            assert _parse_bool_env(value) is False

    def test_invalid_value_raises_error(self) -> None:
        """Test that invalid values raise ValueError."""
        with pytest.raises(ValueError, match="Invalid boolean value"):
            _parse_bool_env("maybe")


class TestEnrichmentConfig:
    """Tests for EnrichmentConfig defaults and validation."""

    def test_defaults(self) -> None:
        """Test default naming conventions."""
        config = EnrichmentConfig()
        assert config.row_count_metric_names == ("number of output rows", "rows", "output rows")
        assert config.wrapper_node_names == ("AdaptiveSparkPlan", "ResultQueryStage")
        assert config.codegen_marker == "WholeStageCodegen"
        assert config.cache_scan_node_name == "InMemoryTableScan"

    def test_row_names_are_lowercased(self) -> None:
        """Test row-count metric names are normalized to lower case."""
        config = EnrichmentConfig(row_count_metric_names=("Number Of Output Rows",))
        assert config.row_count_metric_names == ("number of output rows",)

    def test_empty_row_names_rejected(self) -> None:
        """Test an empty row-count name list is invalid."""
        with pytest.raises(ValidationError):
            EnrichmentConfig(row_count_metric_names=())

    def test_empty_codegen_marker_rejected(self) -> None:
        """Test an empty codegen marker is invalid."""
        with pytest.raises(ValidationError):
            EnrichmentConfig(codegen_marker="")


class TestConfigLoader:
    """Tests for ConfigLoader class."""

    def test_env_var_pattern(self) -> None:
        """Test environment variable pattern matching."""
        loader = ConfigLoader()
        assert loader.ENV_VAR_PATTERN.match("${MY_VAR}")
        assert not loader.ENV_VAR_PATTERN.match("$MY_VAR")

    def test_substitute_env_vars_nested(self, monkeypatch) -> None:
        """Test substitution in nested dicts and lists."""
        monkeypatch.setenv("ROWS_NAME", "rows written")
        loader = ConfigLoader()
        data = {"a": ["${ROWS_NAME}", "x"], "b": {"c": "${ROWS_NAME}"}}
        result = loader._substitute_env_vars(data)
        assert result == {"a": ["rows written", "x"], "b": {"c": "rows written"}}

    def test_missing_env_var_keeps_placeholder(self, monkeypatch) -> None:
        """Test an unset variable leaves the placeholder untouched."""
        monkeypatch.delenv("PLANSIGHT_UNSET_VAR", raising=False)
        loader = ConfigLoader()
        assert loader._substitute_env_vars("${PLANSIGHT_UNSET_VAR}") == "${PLANSIGHT_UNSET_VAR}"

    def test_load_plansight_toml(self, tmp_path: Path) -> None:
        """Test loading a flat plansight.toml file."""
        config_file = tmp_path / "plansight.toml"
        config_file.write_text(
            "[enrichment]\n"
            'row_count_metric_names = ["Rows Out"]\n'
            'codegen_marker = "CodegenStage"\n'
            "[logging]\n"
            'level = "DEBUG"\n'
        )

        config = ConfigLoader().load_from_toml(config_file)

        assert isinstance(config, PlanSightConfig)
        assert config.enrichment.row_count_metric_names == ("rows out",)
        assert config.enrichment.codegen_marker == "CodegenStage"
        assert config.enrichment.cache_scan_node_name == "InMemoryTableScan"
        assert config.logging.level == "DEBUG"

    def test_load_pyproject_tool_table(self, tmp_path: Path) -> None:
        """Test reading the [tool.plansight] table of pyproject.toml."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text(
            '[project]\nname = "demo"\n\n'
            '[tool.plansight.enrichment]\nwrapper_node_names = ["Root"]\n'
        )

        config = ConfigLoader().load_from_toml(config_file)

        assert config.enrichment.wrapper_node_names == ("Root",)

    def test_pyproject_without_table_uses_defaults(self, tmp_path: Path) -> None:
        """Test pyproject.toml without a plansight table yields defaults."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text('[project]\nname = "demo"\n')

        config = ConfigLoader().load_from_toml(config_file)

        assert config.enrichment == EnrichmentConfig()

    def test_env_substitution_in_file(self, tmp_path: Path, monkeypatch) -> None:
        """Test ${VAR} references in the file are expanded."""
        monkeypatch.setenv("CACHE_SCAN", "CachedScan")
        config_file = tmp_path / "plansight.toml"
        config_file.write_text('[enrichment]\ncache_scan_node_name = "${CACHE_SCAN}"\n')

        config = ConfigLoader().load_from_toml(config_file)

        assert config.enrichment.cache_scan_node_name == "CachedScan"

    def test_logging_env_overrides(self, tmp_path: Path, monkeypatch) -> None:
        """Test PLANSIGHT_LOG_* variables override file values."""
        monkeypatch.setenv("PLANSIGHT_LOG_LEVEL", "error")
        monkeypatch.setenv("PLANSIGHT_LOG_FORMAT", "JSON")
        monkeypatch.setenv("PLANSIGHT_LOG_COLOR", "off")
        config_file = tmp_path / "plansight.toml"
        config_file.write_text('[logging]\nlevel = "DEBUG"\nformat = "rich"\n')

        config = ConfigLoader().load_from_toml(config_file)

        assert config.logging.level == "ERROR"
        assert config.logging.format == "json"
        assert config.logging.use_color is False

    def test_invalid_bool_env_keeps_file_value(self, tmp_path: Path, monkeypatch) -> None:
        """Test an unparseable boolean override is ignored."""
        monkeypatch.setenv("PLANSIGHT_LOG_RICH", "sometimes")
        config_file = tmp_path / "plansight.toml"
        config_file.write_text("[logging]\nuse_rich = true\n")

        config = ConfigLoader().load_from_toml(config_file)

        assert config.logging.use_rich is True

    def test_invalid_toml_raises_configuration_error(self, tmp_path: Path) -> None:
        """Test malformed TOML is reported as a ConfigurationError."""
        config_file = tmp_path / "plansight.toml"
        config_file.write_text("[enrichment\n")

        with pytest.raises(ConfigurationError, match="invalid TOML"):
            ConfigLoader().load_from_toml(config_file)

    def test_wrong_value_shape_raises(self, tmp_path: Path) -> None:
        """Test a non-list row-count setting is rejected."""
        config_file = tmp_path / "plansight.toml"
        config_file.write_text('[enrichment]\nrow_count_metric_names = "rows"\n')

        with pytest.raises(ConfigurationError, match="list of strings"):
            ConfigLoader().load_from_toml(config_file)

    def test_explicit_missing_path_raises(self, tmp_path: Path) -> None:
        """Test an explicit path that does not exist raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load_from_toml(tmp_path / "missing.toml")

    def test_search_order_prefers_plansight_toml(self, tmp_path: Path, monkeypatch) -> None:
        """Test plansight.toml wins over pyproject.toml in the working directory."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("PLANSIGHT_CONFIG_PATH", raising=False)
        (tmp_path / "plansight.toml").write_text('[enrichment]\ncodegen_marker = "Own"\n')
        (tmp_path / "pyproject.toml").write_text(
            '[tool.plansight.enrichment]\ncodegen_marker = "Pyproject"\n'
        )

        config = ConfigLoader().load_from_toml()

        assert config.enrichment.codegen_marker == "Own"

    def test_config_path_env_var(self, tmp_path: Path, monkeypatch) -> None:
        """Test PLANSIGHT_CONFIG_PATH points the search at a file."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text('[enrichment]\ncodegen_marker = "FromEnv"\n')
        monkeypatch.setenv("PLANSIGHT_CONFIG_PATH", str(config_file))

        config = ConfigLoader().load_from_toml()

        assert config.enrichment.codegen_marker == "FromEnv"


class TestLoadConfig:
    """Tests for the module-level helpers."""

    def test_defaults_when_nothing_found(self, tmp_path: Path, monkeypatch) -> None:
        """Test load_config falls back to defaults without any file."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("PLANSIGHT_CONFIG_PATH", raising=False)

        config = load_config()

        assert config.enrichment == get_default_config().enrichment

    def test_cache_is_cleared(self, tmp_path: Path) -> None:
        """Test clear_config_cache picks up file changes."""
        config_file = tmp_path / "plansight.toml"
        config_file.write_text('[enrichment]\ncodegen_marker = "First"\n')
        assert load_config(config_file).enrichment.codegen_marker == "First"

        config_file.write_text('[enrichment]\ncodegen_marker = "Second"\n')
        assert load_config(config_file).enrichment.codegen_marker == "First"

        clear_config_cache()
        assert load_config(config_file).enrichment.codegen_marker == "Second"
