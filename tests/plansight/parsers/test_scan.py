"""Tests for plansight.parsers.scan."""

import pytest

from plansight.core.exceptions import PlanParseError
from plansight.parsers.scan import parse_file_scan

SCAN_TEXT = (
    "FileScan parquet db.sales[id#1,amount#2] Batched: true, "
    "DataFilters: [isnotnull(amount#2)], Format: Parquet, "
    "Location: InMemoryFileIndex(1 paths)[s3://bucket/sales], PartitionFilters: [], "
    "PushedFilters: [IsNotNull(amount)], ReadSchema: struct<id:int,amount:double>"
)


class TestParseFileScan:
    """Tests for parse_file_scan."""

    def test_sections(self):
        """Test every section of a parquet scan."""
        plan = parse_file_scan(SCAN_TEXT, "Scan parquet db.sales")
        assert plan.format == "Parquet"
        assert plan.table_name == "db.sales"
        assert plan.location == "s3://bucket/sales"
        assert plan.path_count == 1
        assert plan.data_filters == ["isnotnull(amount)"]
        assert plan.partition_filters == []
        assert plan.pushed_filters == ["IsNotNull(amount)"]
        assert plan.read_schema == "struct<id:int,amount:double>"
        assert plan.size_in_bytes is None
        assert plan.row_count is None

    def test_statistics_clause(self):
        """Test size and row count are normalized from the Statistics clause."""
        plan = parse_file_scan(
            SCAN_TEXT + ", Statistics(sizeInBytes=12.3 MiB, rowCount=1,234)",
            "Scan parquet db.sales",
        )
        assert plan.size_in_bytes == 12897484
        assert plan.row_count == 1234
        assert plan.read_schema == "struct<id:int,amount:double>"

    def test_format_from_node_name(self):
        """Test the format falls back to the node name when the text has none."""
        plan = parse_file_scan("FileScan csv [a#1] ReadSchema: struct<a:int>", "Scan csv")
        assert plan.format == "csv"
        assert plan.table_name is None

    def test_statistics_only(self):
        """Test a Statistics clause alone is enough to parse."""
        plan = parse_file_scan("Scan Statistics(sizeInBytes=1.0 KiB)", "Scan json")
        assert plan.size_in_bytes == 1024
        assert plan.format == "json"

    def test_garbage_text_with_named_format(self):
        """Test text without scan details is rejected even when the name has a format."""
        with pytest.raises(PlanParseError):
            parse_file_scan("nothing useful here", "Scan parquet db.t")

    def test_unparseable(self):
        """Test a scan with neither sections nor a named format is rejected."""
        with pytest.raises(PlanParseError):
            parse_file_scan("InMemoryTableScan [id#1], false", "InMemoryTableScan")
