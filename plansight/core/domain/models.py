"""Enriched domain values produced by the engine.

Every value here is an immutable slotted dataclass. Updates go through
:func:`dataclasses.replace`, so an unchanged node keeps its identity across
incremental metric passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plansight.core.domain.inputs import CommitInfo, RddStorageInfo
    from plansight.parsers.models import ParsedPlan


class NodeCategory(StrEnum):
    """Coarse operator category used for tier filtering."""

    INPUT = "input"
    OUTPUT = "output"
    JOIN = "join"
    TRANSFORMATION = "transformation"
    OTHER = "other"


class ExecutionStatus(StrEnum):
    """Lifecycle status of a query execution."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @classmethod
    def _missing_(cls, value: object) -> ExecutionStatus | None:
        if isinstance(value, str):
            upper = value.upper()
            for member in cls:
                if member.value == upper:
                    return member
        return None

    @property
    def is_terminal(self) -> bool:
        """Return True for statuses after which snapshots are no longer applied."""
        return self is not ExecutionStatus.RUNNING


@dataclass(frozen=True, slots=True)
class Metric:
    """A named metric value as displayed (raw counter or derived)."""

    name: str
    value: str


@dataclass(frozen=True, slots=True)
class ExchangeMetrics:
    """Shuffle read/write split of an Exchange node, in milliseconds."""

    write_duration: float
    read_duration: float
    duration: float


@dataclass(frozen=True, slots=True)
class PlanEdge:
    """Directed edge between two plan nodes of the same execution."""

    from_id: int
    to_id: int


@dataclass(frozen=True, slots=True)
class PlanNode:
    """One enriched operator node.

    Attributes
    ----------
    node_id : int
        Unique within the execution, never reassigned
    node_name : str
        Raw operator label as emitted by the engine
    category : NodeCategory
        Coarse category after aliasing and the forced-output rule
    display_name : str
        Analyst-facing name, derived from the parsed plan when available
    parsed_plan : ParsedPlan | None
        Structured operator fields, None when the text could not be parsed
    metrics : tuple[Metric, ...]
        Raw metrics followed by derived metrics
    is_codegen_node : bool
        True for code-generation wrapper nodes
    codegen_group_id : int | None
        Wrapper id for codegen nodes, owning wrapper id for regular nodes
    """

    node_id: int
    node_name: str
    category: NodeCategory
    display_name: str
    parsed_plan: ParsedPlan | None = None
    metrics: tuple[Metric, ...] = ()
    is_codegen_node: bool = False
    codegen_group_id: int | None = None
    stage_id: int | None = None
    rdd_scope_id: str | None = None
    exchange_metrics: ExchangeMetrics | None = None
    broadcast_duration: float | None = None
    codegen_duration: float | None = None
    commit_info: CommitInfo | None = None
    storage_info: RddStorageInfo | None = None
    is_single_node: bool = False

    def metric(self, name: str) -> str | None:
        """Return the first metric value with ``name`` (case-insensitive)."""
        lowered = name.lower()
        for item in self.metrics:
            if item.name.lower() == lowered:
                return item.value
        return None


@dataclass(frozen=True, slots=True)
class TierView:
    """Visible nodes of one detail tier and the contracted edges between them."""

    visible_node_ids: frozenset[int]
    edges: tuple[PlanEdge, ...]


@dataclass(frozen=True, slots=True)
class FilterTiers:
    """The three contraction tiers of an execution graph."""

    io: TierView
    basic: TierView
    advanced: TierView

    def get(self, name: str) -> TierView:
        """Return a tier by name (``io``, ``basic`` or ``advanced``).

        Raises
        ------
        KeyError
            If ``name`` is not a tier name
        """
        if name not in ("io", "basic", "advanced"):
            raise KeyError(f"Unknown tier: {name!r}")
        tier: TierView = getattr(self, name)
        return tier


@dataclass(frozen=True, slots=True)
class Execution:
    """One enriched query execution.

    ``stable_unique_id`` is assigned once, when the execution is first
    materialized. ``metric_revision_id`` changes on every metric update.
    """

    id: str
    status: ExecutionStatus
    nodes: tuple[PlanNode, ...]
    edges: tuple[PlanEdge, ...]
    filter_tiers: FilterTiers
    codegen_nodes: tuple[PlanNode, ...]
    stable_unique_id: str
    metric_revision_id: str
    description: str = ""
    duration: int | None = None
    submission_time: str | None = None
    submission_time_epoch: int | None = None
    running_job_ids: tuple[int, ...] = ()
    failed_job_ids: tuple[int, ...] = ()
    success_job_ids: tuple[int, ...] = ()
    original_num_of_nodes: int = 0
    is_sql_command: bool = False

    def node(self, node_id: int) -> PlanNode | None:
        """Return the plan or codegen node with ``node_id``, if any."""
        for candidate in (*self.nodes, *self.codegen_nodes):
            if candidate.node_id == node_id:
                return candidate
        return None


@dataclass(frozen=True, slots=True)
class ExecutionStore:
    """Executions ordered by numeric id."""

    executions: tuple[Execution, ...] = field(default_factory=tuple)

    def get(self, execution_id: str) -> Execution | None:
        """Return the execution with ``execution_id``, if tracked."""
        for execution in self.executions:
            if execution.id == execution_id:
                return execution
        return None

    def __len__(self) -> int:
        return len(self.executions)
