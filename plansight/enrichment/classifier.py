"""Node classifier: operator name to category and display name.

``classify`` is a pure function of the operator name. The forced-output rule,
which needs the whole node sequence and the graph, lives in
:func:`force_output_node`.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from plansight.core.domain.models import NodeCategory, PlanNode
from plansight.core.logging import get_logger
from plansight.parsers.models import (
    ExchangePlan,
    FileScanPlan,
    HashAggregatePlan,
    JoinPlan,
    WriteToHDFSPlan,
)
from plansight.parsers.registry import WRITE_COMMAND, canonical_operator_name

if TYPE_CHECKING:
    from plansight.core.domain.dag import PlanGraph
    from plansight.parsers.models import ParsedPlan

logger = get_logger(__name__)

_OUTPUT_OPERATORS = frozenset(
    {
        WRITE_COMMAND,
        "Execute InsertIntoHiveTable",
        "Execute CreateDataSourceTableAsSelectCommand",
        "Execute CreateHiveTableAsSelectCommand",
        "Execute SaveIntoDataSourceCommand",
        "AppendData",
        "OverwriteByExpression",
        "OverwritePartitionsDynamic",
        "ReplaceData",
        "WriteDelta",
        "CollectLimit",
        "CollectTail",
        "TakeOrderedAndProject",
    }
)

_TRANSFORMATION_OPERATORS = frozenset(
    {
        "Filter",
        "HashAggregate",
        "ObjectHashAggregate",
        "SortAggregate",
        "Exchange",
        "BroadcastExchange",
        "Sort",
        "Window",
        "WindowGroupLimit",
        "Expand",
        "Generate",
        "Coalesce",
        "GlobalLimit",
        "LocalLimit",
    }
)

_JOIN_OPERATORS = frozenset({"CartesianProduct", "Union"})
_INPUT_OPERATORS = frozenset({"Range"})

_DISPLAY_NAMES: MappingProxyType[str, str] = MappingProxyType(
    {
        "HashAggregate": "Aggregate",
        "ObjectHashAggregate": "Aggregate",
        "SortAggregate": "Aggregate",
        "Exchange": "Repartition",
        "BroadcastExchange": "Broadcast",
        "TakeOrderedAndProject": "Take Ordered",
        "CollectLimit": "Collect",
        "GlobalLimit": "Limit",
        "LocalLimit": "Limit",
        "Project": "Select",
        WRITE_COMMAND: "Write To HDFS",
        "Execute InsertIntoHiveTable": "Write To Hive",
        "InMemoryTableScan": "Read Cache",
        "LocalTableScan": "Read In-Memory Table",
        "BroadcastHashJoin": "Join (Broadcast Hash)",
        "SortMergeJoin": "Join (Sort Merge)",
        "ShuffledHashJoin": "Join (Shuffled Hash)",
        "BroadcastNestedLoopJoin": "Join (Broadcast Nested Loop)",
        "CartesianProduct": "Join (Cartesian Product)",
    }
)

_PARTITIONING_NAMES: MappingProxyType[str, str] = MappingProxyType(
    {
        "hashpartitioning": "Repartition By Hash",
        "rangepartitioning": "Repartition By Range",
        "RoundRobinPartitioning": "Repartition By Round Robin",
        "SinglePartition": "Repartition To Single Partition",
    }
)

_JOIN_STRATEGY_NAMES: MappingProxyType[str, str] = MappingProxyType(
    {
        "SortMerge": "Join (Sort Merge)",
        "BroadcastHash": "Join (Broadcast Hash)",
        "ShuffledHash": "Join (Shuffled Hash)",
        "BroadcastNestedLoop": "Join (Broadcast Nested Loop)",
        "Cartesian": "Join (Cartesian Product)",
    }
)

_CODEGEN_ID_PATTERN = re.compile(r"\((\d+)\)")


def classify(node_name: str) -> NodeCategory:
    """Map an operator name to its coarse category.

    Accelerated-engine aliases classify like their vanilla operator. Exact
    operator rules win over the ``Join``/``Scan`` substring rules.

    Examples
    --------
    >>> classify("Scan parquet db.sales")
    <NodeCategory.INPUT: 'input'>
    >>> classify("GpuFilter")
    <NodeCategory.TRANSFORMATION: 'transformation'>
    >>> classify("Project")
    <NodeCategory.OTHER: 'other'>
    """
    canonical = canonical_operator_name(node_name)
    if canonical in _OUTPUT_OPERATORS:
        return NodeCategory.OUTPUT
    if canonical in _TRANSFORMATION_OPERATORS:
        return NodeCategory.TRANSFORMATION
    if canonical in _JOIN_OPERATORS or "Join" in canonical:
        return NodeCategory.JOIN
    if canonical in _INPUT_OPERATORS or "Scan" in canonical:
        return NodeCategory.INPUT
    return NodeCategory.OTHER


def display_name(node_name: str, parsed_plan: ParsedPlan | None = None) -> str:
    """Return the analyst-facing name of a node.

    The parsed plan refines the name when it says more than the operator
    name does (a grouping with no aggregate functions is a ``Distinct``).
    """
    match parsed_plan:
        case HashAggregatePlan(functions=[]):
            return "Distinct"
        case ExchangePlan(partitioning=partitioning) if partitioning in _PARTITIONING_NAMES:
            return _PARTITIONING_NAMES[partitioning]
        case JoinPlan(join_side_type=strategy) if strategy in _JOIN_STRATEGY_NAMES:
            return _JOIN_STRATEGY_NAMES[strategy]
        case FileScanPlan(format=str() as source_format):
            return f"Read {source_format}"
        case WriteToHDFSPlan():
            return "Write To HDFS"
    canonical = canonical_operator_name(node_name)
    return _DISPLAY_NAMES.get(canonical, canonical)


def is_codegen_node(node_name: str, marker: str = "WholeStageCodegen") -> bool:
    return marker in node_name


def codegen_group_id(node_name: str) -> int | None:
    """Extract ``N`` from ``WholeStageCodegen (N)``."""
    match = _CODEGEN_ID_PATTERN.search(node_name)
    return int(match.group(1)) if match else None


def force_output_node(
    nodes: Sequence[PlanNode],
    graph: PlanGraph,
    wrapper_node_names: Sequence[str] = ("AdaptiveSparkPlan", "ResultQueryStage"),
) -> list[PlanNode]:
    """Make sure exactly one node is the output when none classified as one.

    When no node is ``output``, the last node that is not a wrapper operator
    becomes the output. The rule only applies to a single connected plan;
    otherwise the nodes are returned unchanged. A lone node is promoted
    whatever its name, unless it is a wrapper.

    Parameters
    ----------
    nodes : Sequence[PlanNode]
        Graph-visible nodes in the engine's order
    graph : PlanGraph
        Graph over the same nodes
    wrapper_node_names : Sequence[str]
        Operators never chosen as the output

    Returns
    -------
    list[PlanNode]
        The nodes, with at most one category replaced
    """
    result = list(nodes)
    if not result or any(node.category is NodeCategory.OUTPUT for node in result):
        return result
    if not graph.is_weakly_connected():
        logger.debug("Plan graph is not connected, leaving output classification as is")
        return result

    for index in range(len(result) - 1, -1, -1):
        if result[index].node_name not in wrapper_node_names:
            result[index] = replace(result[index], category=NodeCategory.OUTPUT)
            break
    return result
