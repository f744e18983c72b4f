"""Incremental metric updates for already materialized executions.

Structure is never touched here: categories, parsed plans and tiers stay as
they are, only metrics and metric-derived fields are recomputed.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import replace

from plansight.core.config.models import EnrichmentConfig
from plansight.core.domain.dag import build_graph
from plansight.core.domain.inputs import NodeMetricsUpdate, RawMetric, StageStorage
from plansight.core.domain.models import Execution, ExecutionStore, Metric, PlanNode
from plansight.core.logging import get_logger
from plansight.enrichment.metrics import (
    broadcast_duration,
    codegen_duration,
    enrich_metrics,
    exchange_metrics,
)
from plansight.enrichment.storage import attach_storage_info

logger = get_logger(__name__)

IdFactory = Callable[[], str]


def new_identity() -> str:
    """Return a fresh opaque identity token."""
    return str(uuid.uuid4())


def to_metrics(raw_metrics: Iterable[RawMetric]) -> tuple[Metric, ...]:
    return tuple(Metric(raw.name, raw.value) for raw in raw_metrics)


def apply_metrics(
    execution: Execution,
    metrics_by_node_id: Mapping[int, Sequence[Metric]],
    stages: Sequence[StageStorage] = (),
    *,
    config: EnrichmentConfig | None = None,
    id_factory: IdFactory = new_identity,
) -> Execution:
    """Merge fresh raw metrics into an execution.

    Nodes with new metrics get their derived metrics, exchange split and
    broadcast duration recomputed. Code-generation nodes only recompute their
    duration. Every other node is returned as the same object. Cached storage
    is re-attached afterwards. When anything changed the execution receives a
    new ``metric_revision_id``; otherwise ``execution`` itself is returned.

    Parameters
    ----------
    execution : Execution
        A materialized execution
    metrics_by_node_id : Mapping[int, Sequence[Metric]]
        Fresh raw metrics per node id
    stages : Sequence[StageStorage]
        Cached storage per stage
    config : EnrichmentConfig | None
        Naming conventions; defaults when omitted
    id_factory : Callable[[], str]
        Source of the new revision identity

    Returns
    -------
    Execution
        The updated execution
    """
    config = config or EnrichmentConfig()
    graph = build_graph(execution.edges, (node.node_id for node in execution.nodes))

    # Upstream row lookups see this cycle's counters where a node has them
    lookup_nodes = {
        node.node_id: (
            replace(node, metrics=tuple(metrics_by_node_id[node.node_id]))
            if node.node_id in metrics_by_node_id
            else node
        )
        for node in execution.nodes
    }

    nodes: list[PlanNode] = []
    for node in execution.nodes:
        raw_metrics = metrics_by_node_id.get(node.node_id)
        if raw_metrics is None:
            nodes.append(node)
            continue
        nodes.append(
            replace(
                node,
                metrics=enrich_metrics(node, raw_metrics, graph, lookup_nodes, config),
                exchange_metrics=exchange_metrics(node.node_name, raw_metrics),
                broadcast_duration=broadcast_duration(node.node_name, raw_metrics),
            )
        )
    enriched_nodes = attach_storage_info(nodes, stages, config.cache_scan_node_name)

    codegen_nodes = tuple(
        replace(node, codegen_duration=codegen_duration(metrics_by_node_id[node.node_id]))
        if node.node_id in metrics_by_node_id
        else node
        for node in execution.codegen_nodes
    )

    changed = any(
        new is not old
        for new, old in zip(
            (*enriched_nodes, *codegen_nodes),
            (*execution.nodes, *execution.codegen_nodes),
            strict=True,
        )
    )
    if not changed:
        return execution

    return replace(
        execution,
        nodes=enriched_nodes,
        codegen_nodes=codegen_nodes,
        metric_revision_id=id_factory(),
    )


def update_store_metrics(
    store: ExecutionStore,
    execution_id: str,
    updates: Sequence[NodeMetricsUpdate],
    stages: Sequence[StageStorage] = (),
    *,
    config: EnrichmentConfig | None = None,
    id_factory: IdFactory = new_identity,
) -> ExecutionStore:
    """Apply per-node metric pushes to one execution of the store.

    An execution id that is not tracked is a no-op: late or out-of-order
    pushes for executions already dropped return ``store`` unchanged.
    """
    execution = store.get(execution_id)
    if execution is None:
        logger.debug(
            "Ignoring metric update for unknown execution {execution_id}",
            execution_id=execution_id,
        )
        return store

    metrics_by_node_id: dict[int, Sequence[Metric]] = {}
    for update in updates:
        metrics_by_node_id.setdefault(update.id, to_metrics(update.metrics))

    updated = apply_metrics(
        execution, metrics_by_node_id, stages, config=config, id_factory=id_factory
    )
    if updated is execution:
        return store
    return ExecutionStore(
        executions=tuple(
            updated if candidate.id == execution_id else candidate
            for candidate in store.executions
        )
    )
