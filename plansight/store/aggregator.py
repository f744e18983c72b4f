"""Plan/SQL aggregator: the full enrichment pipeline and the store merge state machine."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace

from plansight.core.config.models import EnrichmentConfig
from plansight.core.domain.dag import PlanGraph, build_graph
from plansight.core.domain.inputs import (
    CommitInfo,
    ExecutionPlan,
    ExecutionSnapshot,
    NodeMetricsUpdate,
    NodePlanText,
    RawNode,
    StageStorage,
)
from plansight.core.domain.models import (
    Execution,
    ExecutionStore,
    FilterTiers,
    Metric,
    NodeCategory,
    PlanEdge,
    PlanNode,
    TierView,
)
from plansight.core.logging import get_logger
from plansight.core.utils.units import parse_submission_time
from plansight.enrichment.classifier import (
    classify,
    codegen_group_id,
    display_name,
    force_output_node,
    is_codegen_node,
)
from plansight.enrichment.contraction import contract
from plansight.enrichment.metrics import (
    broadcast_duration,
    codegen_duration,
    enrich_metrics,
    exchange_metrics,
)
from plansight.enrichment.storage import attach_storage_info
from plansight.parsers.registry import parse_node_plan
from plansight.store.updates import (
    IdFactory,
    apply_metrics,
    new_identity,
    to_metrics,
    update_store_metrics,
)

logger = get_logger(__name__)

_IO_CATEGORIES = frozenset({NodeCategory.INPUT, NodeCategory.OUTPUT, NodeCategory.JOIN})
_BASIC_CATEGORIES = _IO_CATEGORIES | {NodeCategory.TRANSFORMATION}


def _execution_key(execution_id: str) -> int:
    return int(execution_id)


def _attach_commit(nodes: Sequence[PlanNode], commit: CommitInfo) -> list[PlanNode]:
    """Attach ``commit`` to the last output node, or to the sole node of a single-node plan."""
    result = list(nodes)
    for index in range(len(result) - 1, -1, -1):
        node = result[index]
        if node.category is NodeCategory.OUTPUT or node.is_single_node:
            result[index] = replace(node, commit_info=commit)
            break
    return result


class SqlAggregator:
    """Runs the enrichment pipeline and merges polling cycles into a store.

    Parameters
    ----------
    config : EnrichmentConfig | None
        Naming conventions; defaults when omitted
    id_factory : Callable[[], str] | None
        Produces stable and revision identities; random UUIDs by default.
        Tests pass a deterministic counter.

    Examples
    --------
    >>> from itertools import count
    >>> ids = count(1)
    >>> aggregator = SqlAggregator(id_factory=lambda: f"id-{next(ids)}")
    >>> aggregator.calculate_store(ExecutionStore(), snapshots=[]).executions
    ()
    """

    def __init__(
        self,
        config: EnrichmentConfig | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self.config = config or EnrichmentConfig()
        self.id_factory: IdFactory = id_factory or new_identity

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    def calculate_execution(
        self,
        snapshot: ExecutionSnapshot,
        plan: ExecutionPlan | None = None,
        commit: CommitInfo | None = None,
        stages: Sequence[StageStorage] = (),
        stable_unique_id: str | None = None,
    ) -> Execution:
        """Classify, parse, contract and enrich one execution snapshot.

        Parameters
        ----------
        snapshot : ExecutionSnapshot
            Raw nodes, edges and status of the execution
        plan : ExecutionPlan | None
            Plan-description texts keyed by node id
        commit : CommitInfo | None
            Engine-commit metadata for the execution
        stages : Sequence[StageStorage]
            Cached storage per stage
        stable_unique_id : str | None
            Identity to keep when re-materializing a known execution; a fresh
            one is generated when omitted

        Returns
        -------
        Execution
            The fully enriched execution
        """
        plan_texts = {node_plan.id: node_plan for node_plan in plan.nodes_plan} if plan else {}
        is_single_node = len(snapshot.nodes) == 1

        typed_nodes = [
            self._type_node(raw_node, plan_texts, snapshot.id, is_single_node)
            for raw_node in snapshot.nodes
        ]
        codegen_nodes = tuple(
            replace(node, codegen_duration=codegen_duration(node.metrics))
            for node in typed_nodes
            if node.is_codegen_node
        )
        graph_nodes = [node for node in typed_nodes if not node.is_codegen_node]
        graph_node_ids = [node.node_id for node in graph_nodes]
        edges = tuple(PlanEdge(edge.from_id, edge.to_id) for edge in snapshot.edges)
        graph = build_graph(edges, graph_node_ids)

        graph_nodes = force_output_node(graph_nodes, graph, self.config.wrapper_node_names)
        if commit is not None:
            graph_nodes = _attach_commit(graph_nodes, commit)

        enriched_nodes = self._enrich_nodes(graph_nodes, graph)
        enriched_nodes = attach_storage_info(
            enriched_nodes, stages, self.config.cache_scan_node_name
        )

        filter_tiers = self._filter_tiers(enriched_nodes, edges, graph_node_ids)
        if stable_unique_id is None:
            stable_unique_id = self.id_factory()

        return Execution(
            id=snapshot.id,
            status=snapshot.status,
            nodes=enriched_nodes,
            edges=edges,
            filter_tiers=filter_tiers,
            codegen_nodes=codegen_nodes,
            stable_unique_id=stable_unique_id,
            metric_revision_id=self.id_factory(),
            description=snapshot.description,
            duration=snapshot.duration,
            submission_time=snapshot.submission_time,
            submission_time_epoch=parse_submission_time(snapshot.submission_time),
            running_job_ids=tuple(snapshot.running_job_ids),
            failed_job_ids=tuple(snapshot.failed_job_ids),
            success_job_ids=tuple(snapshot.success_job_ids),
            original_num_of_nodes=len(snapshot.nodes),
            is_sql_command=not (
                snapshot.running_job_ids or snapshot.failed_job_ids or snapshot.success_job_ids
            ),
        )

    def _type_node(
        self,
        raw_node: RawNode,
        plan_texts: Mapping[int, NodePlanText],
        execution_id: str,
        is_single_node: bool,
    ) -> PlanNode:
        node_plan = plan_texts.get(raw_node.node_id)
        parsed_plan = (
            parse_node_plan(raw_node.node_name, node_plan.plan_description, execution_id)
            if node_plan is not None
            else None
        )
        codegen = is_codegen_node(raw_node.node_name, self.config.codegen_marker)
        return PlanNode(
            node_id=raw_node.node_id,
            node_name=raw_node.node_name,
            category=classify(raw_node.node_name),
            display_name=display_name(raw_node.node_name, parsed_plan),
            parsed_plan=parsed_plan,
            metrics=to_metrics(raw_node.metrics),
            is_codegen_node=codegen,
            codegen_group_id=(
                codegen_group_id(raw_node.node_name)
                if codegen
                else raw_node.whole_stage_codegen_id
            ),
            stage_id=raw_node.stage_id,
            rdd_scope_id=node_plan.rdd_scope_id if node_plan is not None else None,
            is_single_node=is_single_node,
        )

    def _enrich_nodes(self, nodes: Sequence[PlanNode], graph: PlanGraph) -> tuple[PlanNode, ...]:
        nodes_by_id = {node.node_id: node for node in nodes}
        return tuple(
            replace(
                node,
                metrics=enrich_metrics(node, node.metrics, graph, nodes_by_id, self.config),
                exchange_metrics=exchange_metrics(node.node_name, node.metrics),
                broadcast_duration=broadcast_duration(node.node_name, node.metrics),
            )
            for node in nodes
        )

    def _filter_tiers(
        self,
        nodes: Sequence[PlanNode],
        edges: Sequence[PlanEdge],
        graph_node_ids: Sequence[int],
    ) -> FilterTiers:
        def tier(categories: Callable[[NodeCategory], bool]) -> TierView:
            visible = frozenset(node.node_id for node in nodes if categories(node.category))
            return TierView(
                visible_node_ids=visible,
                edges=contract(edges, graph_node_ids, visible),
            )

        return FilterTiers(
            io=tier(lambda category: category in _IO_CATEGORIES),
            basic=tier(lambda category: category in _BASIC_CATEGORIES),
            advanced=tier(lambda category: category is not NodeCategory.OTHER),
        )

    # ------------------------------------------------------------------
    # Store merge
    # ------------------------------------------------------------------

    def calculate_store(
        self,
        store: ExecutionStore,
        snapshots: Sequence[ExecutionSnapshot],
        plans: Sequence[ExecutionPlan] = (),
        commits: Sequence[CommitInfo] = (),
        stages: Sequence[StageStorage] = (),
    ) -> ExecutionStore:
        """Merge one polling cycle of snapshots into ``store``.

        Executions with an id below the smallest id of the batch are kept
        untouched. For each snapshot in the batch:

        - unknown id: the full pipeline runs with a fresh stable identity
        - stored execution completed or failed: kept as is
        - snapshot completed or failed: the full pipeline re-runs
        - node count changed: the full pipeline re-runs
        - otherwise only duration and job-id lists are copied over

        Re-runs keep the stored stable identity. The result is ordered by id.
        An empty batch returns ``store`` unchanged.
        """
        if not snapshots:
            return store

        min_id = min(_execution_key(snapshot.id) for snapshot in snapshots)
        merged: dict[str, Execution] = {
            execution.id: execution
            for execution in store.executions
            if _execution_key(execution.id) < min_id
        }
        plans_by_id = {plan.execution_id: plan for plan in plans}
        commits_by_id = {commit.execution_id: commit for commit in commits}

        for snapshot in snapshots:
            if snapshot.id in merged:
                continue
            current = store.get(snapshot.id)
            plan = plans_by_id.get(snapshot.id)
            commit = commits_by_id.get(snapshot.id)

            if current is None:
                logger.debug("Materializing execution {execution_id}", execution_id=snapshot.id)
                merged[snapshot.id] = self.calculate_execution(snapshot, plan, commit, stages)
            elif current.status.is_terminal:
                merged[snapshot.id] = current
            elif snapshot.status.is_terminal:
                logger.debug(
                    "Execution {execution_id} finished with {status}, recomputing",
                    execution_id=snapshot.id,
                    status=snapshot.status.value,
                )
                merged[snapshot.id] = self.calculate_execution(
                    snapshot, plan, commit, stages, current.stable_unique_id
                )
            elif current.original_num_of_nodes != len(snapshot.nodes):
                logger.debug(
                    "Execution {execution_id} node count changed {before} -> {after}, recomputing",
                    execution_id=snapshot.id,
                    before=current.original_num_of_nodes,
                    after=len(snapshot.nodes),
                )
                merged[snapshot.id] = self.calculate_execution(
                    snapshot, plan, commit, stages, current.stable_unique_id
                )
            else:
                merged[snapshot.id] = replace(
                    current,
                    duration=snapshot.duration,
                    running_job_ids=tuple(snapshot.running_job_ids),
                    failed_job_ids=tuple(snapshot.failed_job_ids),
                    success_job_ids=tuple(snapshot.success_job_ids),
                )

        ordered = sorted(merged.values(), key=lambda execution: _execution_key(execution.id))
        return ExecutionStore(executions=tuple(ordered))

    # ------------------------------------------------------------------
    # Incremental metrics
    # ------------------------------------------------------------------

    def apply_metrics(
        self,
        execution: Execution,
        metrics_by_node_id: Mapping[int, Sequence[Metric]],
        stages: Sequence[StageStorage] = (),
    ) -> Execution:
        """Merge fresh raw metrics into ``execution``; see :func:`apply_metrics`."""
        return apply_metrics(
            execution, metrics_by_node_id, stages, config=self.config, id_factory=self.id_factory
        )

    def update_store_metrics(
        self,
        store: ExecutionStore,
        execution_id: str,
        updates: Sequence[NodeMetricsUpdate],
        stages: Sequence[StageStorage] = (),
    ) -> ExecutionStore:
        """Merge per-node metric pushes into one execution of ``store``."""
        return update_store_metrics(
            store,
            execution_id,
            updates,
            stages,
            config=self.config,
            id_factory=self.id_factory,
        )
