"""Tests for the plansight CLI."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from plansight import __version__
from plansight.cli.main import app

runner = CliRunner()


def _bundle() -> dict:
    nodes = [
        {"nodeId": 0, "nodeName": "Scan parquet", "metrics": [{"name": "rows", "value": "100"}]},
        {"nodeId": 1, "nodeName": "Filter", "metrics": [{"name": "rows", "value": "40"}]},
        {"nodeId": 2, "nodeName": "Project"},
        {"nodeId": 3, "nodeName": "CollectLimit", "metrics": [{"name": "rows", "value": "40"}]},
    ]
    return {
        "executions": [
            {
                "id": 7,
                "status": "COMPLETED",
                "description": "select * from sales where qty > 3",
                "nodes": nodes,
                "edges": [
                    {"fromId": 0, "toId": 1},
                    {"fromId": 1, "toId": 2},
                    {"fromId": 2, "toId": 3},
                ],
            }
        ]
    }


@pytest.fixture
def bundle_file(tmp_path):
    """A JSON bundle with one completed execution."""
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps(_bundle()))
    return path


class TestRoot:
    """Tests for global options."""

    def test_version(self):
        """Test --version prints the package version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_log_level(self, bundle_file):
        """Test an unknown log level is rejected."""
        result = runner.invoke(app, ["--log-level", "loud", "enrich", str(bundle_file)])

        assert result.exit_code == 1
        assert "Unknown log level" in result.output


class TestEnrich:
    """Tests for the enrich command."""

    def test_io_tier_table(self, bundle_file):
        """Test the default tier shows only input and output nodes."""
        result = runner.invoke(app, ["enrich", str(bundle_file)])

        assert result.exit_code == 0
        assert "Execution 7" in result.output
        assert "Scan parquet" in result.output
        assert "CollectLimit" in result.output
        assert "Filter" not in result.output
        assert "0 → 3" in result.output

    def test_basic_tier_shows_derived_metrics(self, bundle_file):
        """Test the basic tier includes transformations and their ratios."""
        result = runner.invoke(app, ["enrich", str(bundle_file), "--tier", "basic"])

        assert result.exit_code == 0
        assert "Filter" in result.output
        assert "60.00%" in result.output

    def test_yaml_bundle(self, tmp_path):
        """Test YAML bundles are read as well."""
        path = tmp_path / "bundle.yaml"
        path.write_text(yaml.safe_dump(_bundle()))

        result = runner.invoke(app, ["enrich", str(path)])

        assert result.exit_code == 0
        assert "Execution 7" in result.output

    def test_json_output(self, bundle_file):
        """Test --json prints the serialized store."""
        result = runner.invoke(app, ["enrich", str(bundle_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        execution = data["executions"][0]
        assert execution["id"] == "7"
        assert execution["status"] == "COMPLETED"
        assert execution["filter_tiers"]["io"]["visible_node_ids"] == [0, 3]

    def test_execution_filter(self, bundle_file):
        """Test --execution selects one execution."""
        result = runner.invoke(app, ["enrich", str(bundle_file), "--execution", "7", "--json"])

        assert result.exit_code == 0
        assert len(json.loads(result.stdout)["executions"]) == 1

    def test_unknown_execution(self, bundle_file):
        """Test a missing execution id is an error."""
        result = runner.invoke(app, ["enrich", str(bundle_file), "--execution", "99"])

        assert result.exit_code == 1
        assert "Execution not found" in result.output

    def test_unknown_tier(self, bundle_file):
        """Test an unknown tier name is an error."""
        result = runner.invoke(app, ["enrich", str(bundle_file), "--tier", "expert"])

        assert result.exit_code == 1
        assert "Unknown tier" in result.output

    def test_missing_file(self, tmp_path):
        """Test a missing bundle file is reported."""
        result = runner.invoke(app, ["enrich", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "✗" in result.output

    def test_invalid_bundle(self, tmp_path):
        """Test malformed JSON is reported as an invalid bundle."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        result = runner.invoke(app, ["enrich", str(path)])

        assert result.exit_code == 1
        assert "Invalid bundle" in result.output

    def test_empty_bundle(self, tmp_path):
        """Test a bundle without executions prints a notice."""
        path = tmp_path / "empty.json"
        path.write_text("{}")

        result = runner.invoke(app, ["enrich", str(path)])

        assert result.exit_code == 0
        assert "No executions" in result.output


class TestTiers:
    """Tests for the tiers command."""

    def test_tier_counts(self, bundle_file):
        """Test node and edge counts per tier are listed."""
        result = runner.invoke(app, ["tiers", str(bundle_file)])

        assert result.exit_code == 0
        assert "Filter Tiers" in result.output
        assert "7" in result.output

    def test_config_is_applied(self, bundle_file, tmp_path):
        """Test --config is loaded and a bad enrichment table is reported."""
        config = tmp_path / "plansight.toml"
        config.write_text("[enrichment]\ncodegen_marker = 5\n")

        result = runner.invoke(app, ["tiers", str(bundle_file), "--config", str(config)])

        assert result.exit_code == 1
        assert "Configuration Error" in result.output
