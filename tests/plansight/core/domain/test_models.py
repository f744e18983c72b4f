"""Tests for plansight.core.domain.models."""

import pytest

from plansight.core.domain.models import (
    ExecutionStatus,
    FilterTiers,
    Metric,
    NodeCategory,
    PlanNode,
    TierView,
)


class TestExecutionStatus:
    """Tests for ExecutionStatus."""

    def test_case_insensitive_lookup(self):
        """Test statuses are accepted in any case."""
        assert ExecutionStatus("completed") is ExecutionStatus.COMPLETED
        assert ExecutionStatus("Failed") is ExecutionStatus.FAILED

    def test_unknown_status(self):
        """Test unknown statuses raise ValueError."""
        with pytest.raises(ValueError):
            ExecutionStatus("PAUSED")

    def test_terminal(self):
        """Test only RUNNING is non-terminal."""
        assert not ExecutionStatus.RUNNING.is_terminal
        assert ExecutionStatus.COMPLETED.is_terminal
        assert ExecutionStatus.FAILED.is_terminal


class TestPlanNode:
    """Tests for PlanNode."""

    def test_metric_lookup_is_case_insensitive(self):
        """Test metric() finds values regardless of name case."""
        node = PlanNode(
            node_id=1,
            node_name="Filter",
            category=NodeCategory.TRANSFORMATION,
            display_name="Filter",
            metrics=(Metric("number of output rows", "10"),),
        )
        assert node.metric("Number Of Output Rows") == "10"
        assert node.metric("duration") is None


class TestFilterTiers:
    """Tests for FilterTiers."""

    def test_get_by_name(self):
        """Test tiers are reachable by name and unknown names raise KeyError."""
        io = TierView(frozenset({1}), ())
        basic = TierView(frozenset({1, 2}), ())
        tiers = FilterTiers(io=io, basic=basic, advanced=basic)

        assert tiers.get("io") is io
        assert tiers.get("advanced") is basic
        with pytest.raises(KeyError):
            tiers.get("everything")
