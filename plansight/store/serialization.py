"""JSON-safe dictionaries for executions and stores."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from plansight.core.domain.models import (
    Execution,
    ExecutionStore,
    PlanEdge,
    PlanNode,
    TierView,
)


def _edge_to_dict(edge: PlanEdge) -> dict[str, int]:
    return {"from_id": edge.from_id, "to_id": edge.to_id}


def _tier_to_dict(tier: TierView) -> dict[str, Any]:
    return {
        "visible_node_ids": sorted(tier.visible_node_ids),
        "edges": [_edge_to_dict(edge) for edge in tier.edges],
    }


def node_to_dict(node: PlanNode) -> dict[str, Any]:
    """Serialize one node; parsed plans and raw collaborator models via ``model_dump``."""
    return {
        "node_id": node.node_id,
        "node_name": node.node_name,
        "category": node.category.value,
        "display_name": node.display_name,
        "parsed_plan": node.parsed_plan.model_dump() if node.parsed_plan is not None else None,
        "metrics": [{"name": metric.name, "value": metric.value} for metric in node.metrics],
        "is_codegen_node": node.is_codegen_node,
        "codegen_group_id": node.codegen_group_id,
        "stage_id": node.stage_id,
        "rdd_scope_id": node.rdd_scope_id,
        "exchange_metrics": asdict(node.exchange_metrics) if node.exchange_metrics else None,
        "broadcast_duration": node.broadcast_duration,
        "codegen_duration": node.codegen_duration,
        "commit_info": node.commit_info.model_dump() if node.commit_info is not None else None,
        "storage_info": node.storage_info.model_dump() if node.storage_info is not None else None,
        "is_single_node": node.is_single_node,
    }


def execution_to_dict(execution: Execution) -> dict[str, Any]:
    """Serialize an execution to plain dicts, lists and scalars.

    Sets become sorted lists and enums their values, so the result can go
    straight to ``json.dumps``.
    """
    tiers = execution.filter_tiers
    return {
        "id": execution.id,
        "status": execution.status.value,
        "description": execution.description,
        "duration": execution.duration,
        "submission_time": execution.submission_time,
        "submission_time_epoch": execution.submission_time_epoch,
        "running_job_ids": list(execution.running_job_ids),
        "failed_job_ids": list(execution.failed_job_ids),
        "success_job_ids": list(execution.success_job_ids),
        "is_sql_command": execution.is_sql_command,
        "original_num_of_nodes": execution.original_num_of_nodes,
        "stable_unique_id": execution.stable_unique_id,
        "metric_revision_id": execution.metric_revision_id,
        "nodes": [node_to_dict(node) for node in execution.nodes],
        "codegen_nodes": [node_to_dict(node) for node in execution.codegen_nodes],
        "edges": [_edge_to_dict(edge) for edge in execution.edges],
        "filter_tiers": {
            "io": _tier_to_dict(tiers.io),
            "basic": _tier_to_dict(tiers.basic),
            "advanced": _tier_to_dict(tiers.advanced),
        },
    }


def store_to_dict(store: ExecutionStore) -> dict[str, Any]:
    return {"executions": [execution_to_dict(execution) for execution in store.executions]}
