"""Tests for plansight.enrichment.metrics."""

import pytest

from plansight.core.config.models import EnrichmentConfig
from plansight.core.domain.dag import PlanGraph
from plansight.core.domain.models import Metric, NodeCategory, PlanNode
from plansight.enrichment.metrics import (
    CROSS_JOIN_SCANNED_ROWS,
    JOIN_ROWS_FILTERED,
    JOIN_ROWS_INCREASE_RATIO,
    ROWS_FILTERED,
    broadcast_duration,
    codegen_duration,
    enrich_metrics,
    exchange_metrics,
    find_node_with_rows,
    rows_from_metrics,
)


def _rows(count):
    return (Metric("number of output rows", str(count)),)


def _node(node_id, name, rows=None, display_name=None):
    return PlanNode(
        node_id=node_id,
        node_name=name,
        category=NodeCategory.OTHER,
        display_name=display_name or name,
        metrics=_rows(rows) if rows is not None else (),
    )


def _derived(node, nodes, edges):
    graph = PlanGraph.from_edges(edges, [n.node_id for n in nodes])
    by_id = {n.node_id: n for n in nodes}
    return dict(
        (metric.name, metric.value)
        for metric in enrich_metrics(node, node.metrics, graph, by_id)[len(node.metrics) :]
    )


class TestRowCounts:
    """Tests for row-count lookup."""

    def test_names_are_case_insensitive(self):
        """Test the configured names match in any case."""
        assert rows_from_metrics([Metric("Number Of Output Rows", "1,234")]) == 1234.0

    def test_non_numeric_value(self):
        """Test a non-numeric row counter yields None."""
        assert rows_from_metrics([Metric("rows", "lots")]) is None

    def test_custom_names(self):
        """Test configured row-count names are honoured."""
        names = EnrichmentConfig(row_count_metric_names=("Records Out",)).row_count_metric_names
        assert rows_from_metrics([Metric("records out", "5")], names) == 5.0
        assert rows_from_metrics([Metric("number of output rows", "5")], names) is None

    def test_upstream_walk_follows_first_predecessor(self):
        """Test the walk skips nodes without rows until one has them."""
        nodes = [_node(0, "Scan", 100), _node(1, "Project"), _node(2, "Filter", 10)]
        graph = PlanGraph.from_edges([(0, 1), (1, 2)])
        found = find_node_with_rows(2, graph, {n.node_id: n for n in nodes})
        assert found is nodes[0]

    def test_upstream_walk_stops_at_boundary(self):
        """Test a node without upstream rows yields None."""
        nodes = [_node(0, "Project"), _node(1, "Filter", 10)]
        graph = PlanGraph.from_edges([(0, 1)])
        assert find_node_with_rows(1, graph, {n.node_id: n for n in nodes}) is None

    def test_upstream_walk_terminates_on_cycle(self):
        """Test a cyclic graph does not loop forever."""
        nodes = [_node(0, "Project"), _node(1, "Filter")]
        graph = PlanGraph.from_edges([(0, 1), (1, 0)])
        assert find_node_with_rows(1, graph, {n.node_id: n for n in nodes}) is None


class TestFilterRatio:
    """Tests for Rows Filtered on filter and distinct nodes."""

    def test_filter(self):
        """Test the filtered percentage against the upstream row count."""
        scan, filter_node = _node(0, "Scan", 1000), _node(1, "Filter", 250)
        assert _derived(filter_node, [scan, filter_node], [(0, 1)]) == {ROWS_FILTERED: "75.00%"}

    def test_accelerated_filter(self):
        """Test prefixed filter names qualify."""
        scan, filter_node = _node(0, "Scan", 1000), _node(1, "GpuFilter", 1000)
        assert _derived(filter_node, [scan, filter_node], [(0, 1)]) == {ROWS_FILTERED: "0.00%"}

    def test_distinct(self):
        """Test a Distinct aggregate gets the filter metric."""
        scan = _node(0, "Scan", 200)
        distinct = _node(1, "HashAggregate", 50, display_name="Distinct")
        assert _derived(distinct, [scan, distinct], [(0, 1)]) == {ROWS_FILTERED: "75.00%"}

    def test_zero_input_rows_omits_metric(self):
        """Test zero upstream rows emit nothing."""
        scan, filter_node = _node(0, "Scan", 0), _node(1, "Filter", 0)
        assert _derived(filter_node, [scan, filter_node], [(0, 1)]) == {}

    def test_no_upstream_rows_omits_metric(self):
        """Test a filter without any upstream row count emits nothing."""
        filter_node = _node(1, "Filter", 5)
        assert _derived(filter_node, [filter_node], []) == {}


class TestCrossJoin:
    """Tests for nested-loop and cartesian join metrics."""

    def test_scanned_rows_and_filtered(self):
        """Test scanned rows are the product and the filtered share its complement."""
        left, right = _node(0, "Scan", 10), _node(1, "Scan", 20)
        join = _node(2, "BroadcastNestedLoopJoin", 50)
        assert _derived(join, [left, right, join], [(0, 2), (1, 2)]) == {
            CROSS_JOIN_SCANNED_ROWS: "200",
            ROWS_FILTERED: "75.00%",
        }

    def test_input_without_rows_omits_metrics(self):
        """Test both inputs must carry their own row count."""
        left, right = _node(0, "Scan", 10), _node(1, "Project")
        join = _node(2, "CartesianProduct", 50)
        assert _derived(join, [left, right, join], [(0, 2), (1, 2)]) == {}

    def test_wrong_number_of_inputs(self):
        """Test a cross join with one input emits nothing."""
        left, join = _node(0, "Scan", 10), _node(2, "CartesianProduct", 5)
        assert _derived(join, [left, join], [(0, 2)]) == {}


class TestKeyedJoin:
    """Tests for key-based join metrics."""

    @pytest.fixture
    def inputs(self):
        return [_node(0, "Scan", 100), _node(1, "Scan", 200)]

    def test_filtered_branch(self, inputs):
        """Test output below the larger input yields join rows filtered."""
        join = _node(2, "SortMergeJoin", 50)
        derived = _derived(join, [*inputs, join], [(0, 2), (1, 2)])
        assert derived == {JOIN_ROWS_FILTERED: "25.00%"}

    def test_increase_branch(self, inputs):
        """Test output above the larger input yields the increase ratio."""
        join = _node(2, "BroadcastHashJoin", 500)
        derived = _derived(join, [*inputs, join], [(0, 2), (1, 2)])
        assert derived == {JOIN_ROWS_INCREASE_RATIO: "2.5X"}

    def test_inputs_looked_up_upstream(self):
        """Test an input without rows uses the nearest upstream row count."""
        nodes = [
            _node(0, "Scan", 100),
            _node(1, "Exchange"),
            _node(2, "Scan", 200),
            _node(3, "ShuffledHashJoin", 300),
        ]
        derived = _derived(nodes[3], nodes, [(0, 1), (1, 3), (2, 3)])
        assert derived == {JOIN_ROWS_INCREASE_RATIO: "1.5X"}

    def test_zero_input_rows(self):
        """Test zero rows on both inputs report zero percent."""
        nodes = [_node(0, "Scan", 0), _node(1, "Scan", 0), _node(2, "SortMergeJoin", 0)]
        derived = _derived(nodes[2], nodes, [(0, 2), (1, 2)])
        assert derived == {JOIN_ROWS_FILTERED: "0.00%"}

    def test_raw_metrics_come_first(self, inputs):
        """Test raw metrics are returned unchanged ahead of derived ones."""
        join = _node(2, "SortMergeJoin", 50)
        graph = PlanGraph.from_edges([(0, 2), (1, 2)])
        by_id = {n.node_id: n for n in [*inputs, join]}
        result = enrich_metrics(join, join.metrics, graph, by_id)
        assert result[: len(join.metrics)] == join.metrics
        assert len(result) == len(join.metrics) + 1


class TestDurations:
    """Tests for exchange, broadcast and codegen durations."""

    def test_exchange_split_is_additive(self):
        """Test write plus read equals the exchange duration."""
        metrics = [
            Metric("shuffle write time", "1.5 s"),
            Metric("fetch wait time", "200 ms"),
            Metric("remote reqs duration", "total (min, med, max)\n300 ms (1 ms, 2 ms, 3 ms)"),
        ]
        split = exchange_metrics("Exchange", metrics)
        assert split.write_duration == 1500.0
        assert split.read_duration == 500.0
        assert split.duration == split.write_duration + split.read_duration

    def test_exchange_missing_components_are_zero(self):
        """Test absent metrics count as zero."""
        split = exchange_metrics("Exchange", [])
        assert (split.write_duration, split.read_duration, split.duration) == (0.0, 0.0, 0.0)

    def test_exchange_only_for_exchange_nodes(self):
        """Test other operators get no exchange split."""
        assert exchange_metrics("BroadcastExchange", [Metric("shuffle write time", "1 s")]) is None

    def test_broadcast_is_broadcast_time_only(self):
        """Test build and collect times are not part of the broadcast duration."""
        metrics = [
            Metric("time to broadcast", "2 s"),
            Metric("time to build", "1 s"),
            Metric("time to collect", "3 s"),
        ]
        assert broadcast_duration("BroadcastExchange", metrics) == 2000.0
        assert broadcast_duration("Exchange", metrics) is None

    def test_codegen_duration(self):
        """Test the statistics total of the duration metric."""
        metrics = [Metric("duration", "total (min, med, max)\n5.0 s (1 s, 2 s, 2 s)")]
        assert codegen_duration(metrics) == 5000.0
        assert codegen_duration([]) is None
