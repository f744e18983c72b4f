"""plansight: plan parsing and DAG enrichment for distributed query executions.

Turns raw execution snapshots (plan-node graphs, plan-description text and
runtime metrics) into enriched executions with typed operator plans, derived
metrics and three contracted graph tiers.

Examples
--------
>>> from plansight import SqlAggregator, ExecutionStore
>>> aggregator = SqlAggregator()
>>> store = aggregator.calculate_store(ExecutionStore(), snapshots=[], plans=[])
>>> len(store)
0
"""

from plansight.core.domain import (
    Execution,
    ExecutionStatus,
    ExecutionStore,
    NodeCategory,
    PlanEdge,
    PlanGraph,
    PlanNode,
    SnapshotBundle,
)
from plansight.enrichment import classify, contract
from plansight.parsers import parse_node_plan
from plansight.store import SqlAggregator

__version__ = "0.3.0"

__all__ = [
    "Execution",
    "ExecutionStatus",
    "ExecutionStore",
    "NodeCategory",
    "PlanEdge",
    "PlanGraph",
    "PlanNode",
    "SnapshotBundle",
    "SqlAggregator",
    "classify",
    "contract",
    "parse_node_plan",
]
