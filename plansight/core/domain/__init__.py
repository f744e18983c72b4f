"""Domain values and the plan graph."""

from plansight.core.domain.dag import PlanGraph, build_graph
from plansight.core.domain.inputs import (
    CommitInfo,
    ExecutionPlan,
    ExecutionSnapshot,
    NodeMetricsUpdate,
    NodePlanText,
    RawEdge,
    RawMetric,
    RawNode,
    RddStorageInfo,
    SnapshotBundle,
    StageStorage,
)
from plansight.core.domain.models import (
    ExchangeMetrics,
    Execution,
    ExecutionStatus,
    ExecutionStore,
    FilterTiers,
    Metric,
    NodeCategory,
    PlanEdge,
    PlanNode,
    TierView,
)

__all__ = [
    "CommitInfo",
    "ExchangeMetrics",
    "Execution",
    "ExecutionPlan",
    "ExecutionSnapshot",
    "ExecutionStatus",
    "ExecutionStore",
    "FilterTiers",
    "Metric",
    "NodeCategory",
    "NodeMetricsUpdate",
    "NodePlanText",
    "PlanEdge",
    "PlanGraph",
    "PlanNode",
    "RawEdge",
    "RawMetric",
    "RawNode",
    "RddStorageInfo",
    "SnapshotBundle",
    "StageStorage",
    "TierView",
    "build_graph",
]
