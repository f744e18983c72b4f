"""Operator parsers: structured fields from plan-description text."""

from plansight.parsers.aggregate import parse_hash_aggregate
from plansight.parsers.exchange import parse_exchange
from plansight.parsers.join import parse_join
from plansight.parsers.limit import (
    parse_coalesce,
    parse_collect_limit,
    parse_take_ordered_and_project,
)
from plansight.parsers.models import (
    CoalescePlan,
    CollectLimitPlan,
    ExchangePlan,
    FileScanPlan,
    FilterPlan,
    HashAggregatePlan,
    JoinPlan,
    ParsedPlan,
    ProjectPlan,
    SortPlan,
    TakeOrderedAndProjectPlan,
    WindowPlan,
    WriteToHDFSPlan,
)
from plansight.parsers.ordering import parse_sort, parse_window
from plansight.parsers.projection import parse_filter, parse_project
from plansight.parsers.registry import (
    OPERATOR_ALIASES,
    canonical_operator_name,
    find_parser,
    parse_node_plan,
)
from plansight.parsers.scan import parse_file_scan
from plansight.parsers.write import parse_write_to_hdfs

__all__ = [
    "OPERATOR_ALIASES",
    "CoalescePlan",
    "CollectLimitPlan",
    "ExchangePlan",
    "FileScanPlan",
    "FilterPlan",
    "HashAggregatePlan",
    "JoinPlan",
    "ParsedPlan",
    "ProjectPlan",
    "SortPlan",
    "TakeOrderedAndProjectPlan",
    "WindowPlan",
    "WriteToHDFSPlan",
    "canonical_operator_name",
    "find_parser",
    "parse_coalesce",
    "parse_collect_limit",
    "parse_exchange",
    "parse_file_scan",
    "parse_filter",
    "parse_hash_aggregate",
    "parse_join",
    "parse_node_plan",
    "parse_project",
    "parse_sort",
    "parse_take_ordered_and_project",
    "parse_window",
    "parse_write_to_hdfs",
]
