"""Tests for plansight.parsers.projection."""

import pytest

from plansight.core.exceptions import PlanParseError
from plansight.parsers.projection import parse_filter, parse_project


class TestParseFilter:
    """Tests for parse_filter."""

    def test_condition_without_outer_parens(self):
        """Test the predicate is returned without ids and outer parentheses."""
        plan = parse_filter("Filter (isnotnull(age#3) AND (age#3 > 21))")
        assert plan.condition == "isnotnull(age) AND (age > 21)"

    def test_accelerated_variant(self):
        """Test an engine-prefixed Filter parses the same way."""
        assert parse_filter("GpuFilter (a#1 = 1)").condition == "a = 1"

    @pytest.mark.parametrize("text", ["Filter", "Project [a#1]"])
    def test_unparseable(self, text):
        """Test a missing predicate or another operator is rejected."""
        with pytest.raises(PlanParseError):
            parse_filter(text)


class TestParseProject:
    """Tests for parse_project."""

    def test_fields(self):
        """Test output expressions are split at top level."""
        plan = parse_project(
            "Project [id#1, (amount#2 * 2) AS double_amount#9, concat(a#3, b#4) AS c#10]"
        )
        assert plan.fields == ["id", "(amount * 2) AS double_amount", "concat(a, b) AS c"]

    def test_missing_list(self):
        """Test text without a field list is rejected."""
        with pytest.raises(PlanParseError):
            parse_project("Project id#1")
