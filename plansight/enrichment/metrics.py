"""Metric enricher: derived metrics computed from raw counters and the plan graph.

Every derivation here degrades to "no metric" on missing or malformed input:
a wrong number of inputs, an absent row counter or a non-numeric value
simply omits the derived metric.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

from plansight.core.config.models import EnrichmentConfig
from plansight.core.domain.models import ExchangeMetrics, Metric, PlanNode
from plansight.core.logging import get_logger
from plansight.core.utils.units import (
    calculate_percentage,
    extract_statistics_total,
    parse_duration_ms,
    parse_number,
)

if TYPE_CHECKING:
    from plansight.core.domain.dag import PlanGraph

logger = get_logger(__name__)

ROWS_FILTERED = "Rows Filtered"
CROSS_JOIN_SCANNED_ROWS = "Cross Join Scanned Rows"
JOIN_ROWS_INCREASE_RATIO = "join rows increase ratio"
JOIN_ROWS_FILTERED = "join rows filtered"

_CROSS_JOIN_OPERATORS = frozenset({"BroadcastNestedLoopJoin", "CartesianProduct"})
_KEYED_JOIN_OPERATORS = frozenset(
    {"BroadcastHashJoin", "SortMergeJoin", "ShuffleHashJoin", "ShuffledHashJoin"}
)

_DEFAULT_ROW_METRICS = EnrichmentConfig().row_count_metric_names


def _format_count(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)


def rows_from_metrics(
    metrics: Iterable[Metric], row_metric_names: Sequence[str] = _DEFAULT_ROW_METRICS
) -> float | None:
    """Return the node's row count, or None when absent or not numeric.

    Parameters
    ----------
    metrics : Iterable[Metric]
        Metrics of one node
    row_metric_names : Sequence[str]
        Lower-case metric names holding a row count

    Examples
    --------
    >>> rows_from_metrics([Metric("number of output rows", "1,234")])
    1234.0
    """
    for metric in metrics:
        if metric.name.lower() in row_metric_names:
            return parse_number(metric.value)
    return None


def find_node_with_rows(
    node_id: int,
    graph: PlanGraph,
    nodes_by_id: Mapping[int, PlanNode],
    row_metric_names: Sequence[str] = _DEFAULT_ROW_METRICS,
) -> PlanNode | None:
    """Walk upstream from ``node_id`` to the nearest node exposing a row count.

    The walk follows the first predecessor of each node and stops at the
    graph boundary. It takes at most as many steps as the graph has nodes, so
    a malformed (cyclic) graph cannot make it loop forever.
    """
    current = node_id
    for _ in range(len(graph)):
        if current not in graph:
            return None
        predecessors = graph.predecessors(current)
        if not predecessors:
            return None
        current = predecessors[0]
        candidate = nodes_by_id.get(current)
        if candidate is None:
            continue
        if rows_from_metrics(candidate.metrics, row_metric_names) is not None:
            return candidate
    return None


def metric_duration(name: str, metrics: Iterable[Metric]) -> float | None:
    """Return the duration metric ``name`` in milliseconds.

    Statistics-style values contribute their total.
    """
    for metric in metrics:
        if metric.name == name:
            return parse_duration_ms(extract_statistics_total(metric.value))
    return None


def exchange_metrics(node_name: str, metrics: Sequence[Metric]) -> ExchangeMetrics | None:
    """Split an Exchange node's time into shuffle write and shuffle read.

    Only nodes literally named ``Exchange`` qualify. Missing components count
    as zero.
    """
    if node_name != "Exchange":
        return None
    write_duration = metric_duration("shuffle write time", metrics) or 0.0
    read_duration = (
        (metric_duration("fetch wait time", metrics) or 0.0)
        + (metric_duration("remote reqs duration", metrics) or 0.0)
        + (metric_duration("remote merged reqs duration", metrics) or 0.0)
    )
    return ExchangeMetrics(
        write_duration=write_duration,
        read_duration=read_duration,
        duration=write_duration + read_duration,
    )


def broadcast_duration(node_name: str, metrics: Sequence[Metric]) -> float | None:
    """Return the broadcast time of a ``BroadcastExchange`` node in milliseconds.

    The build and collect times are read as well but are not part of the
    returned duration.
    """
    if node_name != "BroadcastExchange":
        return None
    duration = metric_duration("time to broadcast", metrics) or 0.0
    build_and_collect = (metric_duration("time to build", metrics) or 0.0) + (
        metric_duration("time to collect", metrics) or 0.0
    )
    logger.trace(
        "Broadcast build and collect time {ms} ms not counted in duration", ms=build_and_collect
    )
    return duration


def codegen_duration(metrics: Sequence[Metric]) -> float | None:
    """Return the ``duration`` metric total of a code-generation wrapper node."""
    return metric_duration("duration", metrics)


def filter_ratio_metric(
    node: PlanNode,
    metrics: Sequence[Metric],
    graph: PlanGraph,
    nodes_by_id: Mapping[int, PlanNode],
    row_metric_names: Sequence[str] = _DEFAULT_ROW_METRICS,
) -> Metric | None:
    """Derive ``Rows Filtered`` for filter and distinct nodes.

    Input rows come from the nearest upstream node with a row count; with no
    such node, or zero input rows, nothing is emitted.
    """
    if "Filter" not in node.node_name and node.display_name != "Distinct":
        return None

    input_node = find_node_with_rows(node.node_id, graph, nodes_by_id, row_metric_names)
    input_rows = 0.0
    if input_node is not None:
        input_rows = rows_from_metrics(input_node.metrics, row_metric_names) or 0.0
    if input_rows == 0:
        return None

    output_rows = rows_from_metrics(metrics, row_metric_names)
    if output_rows is None:
        return None

    percentage = calculate_percentage(input_rows - output_rows, input_rows)
    return Metric(ROWS_FILTERED, f"{percentage:.2f}%")


def _input_node_ids(node_id: int, graph: PlanGraph) -> list[int] | None:
    in_edges = graph.in_edges(node_id)
    if in_edges is None or len(in_edges) != 2:
        return None
    return [source for source, _ in in_edges]


def cross_join_metrics(
    node: PlanNode,
    metrics: Sequence[Metric],
    graph: PlanGraph,
    nodes_by_id: Mapping[int, PlanNode],
    row_metric_names: Sequence[str] = _DEFAULT_ROW_METRICS,
) -> list[Metric]:
    """Derive scanned rows and ``Rows Filtered`` for nested-loop and cartesian joins.

    Each of the two inputs must carry its own row count.
    """
    if node.node_name not in _CROSS_JOIN_OPERATORS:
        return []
    input_ids = _input_node_ids(node.node_id, graph)
    if input_ids is None:
        return []

    input_rows: list[float] = []
    for input_id in input_ids:
        input_node = nodes_by_id.get(input_id)
        rows = rows_from_metrics(input_node.metrics, row_metric_names) if input_node else None
        if rows is not None:
            input_rows.append(rows)
    output_rows = rows_from_metrics(metrics, row_metric_names)
    if len(input_rows) != 2 or output_rows is None:
        return []

    scanned_rows = input_rows[0] * input_rows[1]
    filtered = 100.0 - calculate_percentage(output_rows, scanned_rows)
    return [
        Metric(CROSS_JOIN_SCANNED_ROWS, _format_count(scanned_rows)),
        Metric(ROWS_FILTERED, f"{filtered:.2f}%"),
    ]


def join_metrics(
    node: PlanNode,
    metrics: Sequence[Metric],
    graph: PlanGraph,
    nodes_by_id: Mapping[int, PlanNode],
    row_metric_names: Sequence[str] = _DEFAULT_ROW_METRICS,
) -> list[Metric]:
    """Derive the join amplification (``X``) or the join filter percentage.

    An input without its own row count is looked up upstream, since join
    inputs are often pass-through nodes.
    """
    if node.node_name not in _KEYED_JOIN_OPERATORS:
        return []
    input_ids = _input_node_ids(node.node_id, graph)
    if input_ids is None:
        return []

    input_rows: list[float] = []
    for input_id in input_ids:
        input_node = nodes_by_id.get(input_id)
        rows = rows_from_metrics(input_node.metrics, row_metric_names) if input_node else None
        if rows is None:
            upstream = find_node_with_rows(input_id, graph, nodes_by_id, row_metric_names)
            rows = rows_from_metrics(upstream.metrics, row_metric_names) if upstream else None
        if rows is not None:
            input_rows.append(rows)
    output_rows = rows_from_metrics(metrics, row_metric_names)
    if len(input_rows) != 2 or output_rows is None:
        return []

    max_input_rows = max(input_rows)
    ratio = output_rows / max_input_rows if max_input_rows != 0 else 0
    if ratio > 1:
        return [Metric(JOIN_ROWS_INCREASE_RATIO, f"{ratio:.1f}X")]
    percentage = calculate_percentage(output_rows, max_input_rows)
    return [Metric(JOIN_ROWS_FILTERED, f"{percentage:.2f}%")]


def enrich_metrics(
    node: PlanNode,
    raw_metrics: Sequence[Metric],
    graph: PlanGraph,
    nodes_by_id: Mapping[int, PlanNode],
    config: EnrichmentConfig | None = None,
) -> tuple[Metric, ...]:
    """Return ``raw_metrics`` followed by the node's derived metrics.

    Parameters
    ----------
    node : PlanNode
        The node being enriched (its name, display name and id are used)
    raw_metrics : Sequence[Metric]
        The node's fresh raw metrics; never modified
    graph : PlanGraph
        Graph of the execution
    nodes_by_id : Mapping[int, PlanNode]
        Graph nodes whose metrics serve as upstream row counts
    config : EnrichmentConfig | None
        Row-count metric names; defaults when omitted

    Returns
    -------
    tuple[Metric, ...]
        Raw metrics plus zero or more derived metrics
    """
    names = (config or EnrichmentConfig()).row_count_metric_names
    derived: list[Metric] = []
    filter_ratio = filter_ratio_metric(node, raw_metrics, graph, nodes_by_id, names)
    if filter_ratio is not None:
        derived.append(filter_ratio)
    derived.extend(cross_join_metrics(node, raw_metrics, graph, nodes_by_id, names))
    derived.extend(join_metrics(node, raw_metrics, graph, nodes_by_id, names))
    return (*raw_metrics, *derived)
