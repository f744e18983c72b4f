"""Tests for plansight.parsers.write."""

import pytest

from plansight.core.exceptions import PlanParseError
from plansight.parsers.write import parse_write_to_hdfs

INSERT_COMMAND = (
    "Execute InsertIntoHadoopFsRelationCommand s3://bucket/out, false, [dt#10], Parquet, "
    "[path=s3://bucket/out], Append, `spark_catalog`.`db`.`events`, "
    "org.apache.spark.sql.execution.datasources.InMemoryFileIndex(s3://bucket/out), "
    "[id, name, dt]"
)


class TestParseWriteToHdfs:
    """Tests for parse_write_to_hdfs."""

    def test_catalog_table_insert(self):
        """Test every field of a partitioned insert into a catalog table."""
        plan = parse_write_to_hdfs(INSERT_COMMAND)
        assert plan.location == "s3://bucket/out"
        assert plan.format == "Parquet"
        assert plan.partition_keys == ["dt"]
        assert plan.mode == "Append"
        assert plan.table_name == "spark_catalog.db.events"
        assert plan.output_columns == ["id", "name", "dt"]

    def test_path_only_insert(self):
        """Test an insert to a bare path without table or partitions."""
        plan = parse_write_to_hdfs(
            "Execute InsertIntoHadoopFsRelationCommand /tmp/out, false, CSV, "
            "[header=true, path=/tmp/out], Overwrite, [a, b]"
        )
        assert plan.location == "/tmp/out"
        assert plan.format == "CSV"
        assert plan.partition_keys == []
        assert plan.mode == "Overwrite"
        assert plan.table_name is None
        assert plan.output_columns == ["a", "b"]

    def test_other_command_rejected(self):
        """Test other commands are rejected."""
        with pytest.raises(PlanParseError):
            parse_write_to_hdfs("Execute CreateViewCommand v")

    def test_missing_format_rejected(self):
        """Test a command without a known file format is rejected."""
        with pytest.raises(PlanParseError):
            parse_write_to_hdfs("Execute InsertIntoHadoopFsRelationCommand /tmp/out, false")
