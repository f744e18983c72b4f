"""Operator-name registry: aliases, parser dispatch and the per-node parse boundary."""

from __future__ import annotations

from collections.abc import Callable
from types import MappingProxyType
from typing import TYPE_CHECKING

from plansight.core.exceptions import PlanParseError
from plansight.core.logging import get_logger
from plansight.parsers.aggregate import parse_hash_aggregate
from plansight.parsers.exchange import parse_exchange
from plansight.parsers.join import parse_join
from plansight.parsers.limit import (
    parse_coalesce,
    parse_collect_limit,
    parse_take_ordered_and_project,
)
from plansight.parsers.ordering import parse_sort, parse_window
from plansight.parsers.projection import parse_filter, parse_project
from plansight.parsers.scan import parse_file_scan
from plansight.parsers.write import parse_write_to_hdfs

if TYPE_CHECKING:
    from plansight.parsers.models import ParsedPlan

logger = get_logger(__name__)

WRITE_COMMAND = "Execute InsertIntoHadoopFsRelationCommand"

# Accelerated-engine operator names and the vanilla operator they stand for
OPERATOR_ALIASES: MappingProxyType[str, str] = MappingProxyType(
    {
        "PhotonGroupingAgg": "HashAggregate",
        "GpuHashAggregate": "HashAggregate",
        "!CometGpuHashAggregate": "HashAggregate",
        "CometHashAggregate": "HashAggregate",
        "PhotonFilter": "Filter",
        "GpuFilter": "Filter",
        "CometFilter": "Filter",
        "CometExchange": "Exchange",
        "CometColumnarExchange": "Exchange",
        "GpuColumnarExchange": "Exchange",
        "PhotonProject": "Project",
        "GpuProject": "Project",
        "CometProject": "Project",
        "GpuSort": "Sort",
        "CometSort": "Sort",
        "PhotonSort": "Sort",
        "GpuCoalesce": "Coalesce",
        "GpuBroadcastExchange": "BroadcastExchange",
        "CometBroadcastExchange": "BroadcastExchange",
        "PhotonBroadcastHashJoin": "BroadcastHashJoin",
        "GpuBroadcastHashJoin": "BroadcastHashJoin",
        "CometBroadcastHashJoin": "BroadcastHashJoin",
        "PhotonShuffledHashJoin": "ShuffledHashJoin",
        "GpuShuffledHashJoin": "ShuffledHashJoin",
        "CometSortMergeJoin": "SortMergeJoin",
        "GpuBroadcastNestedLoopJoin": "BroadcastNestedLoopJoin",
        "GpuCartesianProduct": "CartesianProduct",
    }
)

PlanParser = Callable[[str, str], "ParsedPlan"]


def _ignoring_name(parser: Callable[[str], ParsedPlan]) -> PlanParser:
    def parse(text: str, node_name: str) -> ParsedPlan:
        return parser(text)

    parse.__name__ = parser.__name__
    return parse


_PARSERS: MappingProxyType[str, PlanParser] = MappingProxyType(
    {
        "HashAggregate": _ignoring_name(parse_hash_aggregate),
        "TakeOrderedAndProject": _ignoring_name(parse_take_ordered_and_project),
        "CollectLimit": _ignoring_name(parse_collect_limit),
        "Coalesce": _ignoring_name(parse_coalesce),
        WRITE_COMMAND: _ignoring_name(parse_write_to_hdfs),
        "Filter": _ignoring_name(parse_filter),
        "Exchange": _ignoring_name(parse_exchange),
        "Project": _ignoring_name(parse_project),
        "Sort": _ignoring_name(parse_sort),
        "Window": _ignoring_name(parse_window),
        "CartesianProduct": _ignoring_name(parse_join),
    }
)


def canonical_operator_name(node_name: str) -> str:
    """Map an accelerated-engine alias to its vanilla operator name.

    Names without an alias are returned unchanged.

    Examples
    --------
    >>> canonical_operator_name("PhotonGroupingAgg")
    'HashAggregate'
    >>> canonical_operator_name("SortMergeJoin")
    'SortMergeJoin'
    """
    return OPERATOR_ALIASES.get(node_name, node_name)


def find_parser(node_name: str) -> PlanParser | None:
    """Return the parser responsible for ``node_name``, if any.

    Exact (alias-normalized) names win; otherwise names containing ``Scan``
    go to the file-scan parser and names containing ``Join`` to the join parser.
    """
    canonical = canonical_operator_name(node_name)
    if (parser := _PARSERS.get(canonical)) is not None:
        return parser
    if "Scan" in node_name:
        return parse_file_scan
    if "Join" in node_name:
        return _ignoring_name(parse_join)
    return None


def parse_node_plan(
    node_name: str, plan_description: str, execution_id: str | None = None
) -> ParsedPlan | None:
    """Parse one node's plan description, never raising.

    This is the per-node failure boundary: a parser that rejects the text
    results in a logged warning and ``None``, and sibling nodes are unaffected.

    Parameters
    ----------
    node_name : str
        Raw operator name of the node
    plan_description : str
        The node's plan-description text
    execution_id : str | None
        Included in the log context when parsing fails

    Returns
    -------
    ParsedPlan | None
        The parsed variant, or None when no parser applies or parsing failed
    """
    parser = find_parser(node_name)
    if parser is None:
        return None
    try:
        return parser(plan_description, node_name)
    except (PlanParseError, ValueError, IndexError, KeyError) as e:
        logger.warning(
            "Failed to parse plan for node type {node_name}: {error}",
            node_name=node_name,
            error=str(e),
            execution_id=execution_id,
        )
        return None
