"""Attach cached-storage info to cache-scan nodes."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from plansight.core.domain.inputs import RddStorageInfo, StageStorage
from plansight.core.domain.models import PlanNode


def node_storage_info(
    nodes: Iterable[PlanNode],
    stages: Iterable[StageStorage],
    cache_scan_node_name: str = "InMemoryTableScan",
) -> dict[int, RddStorageInfo | None]:
    """Map cache-scan node ids to the cached dataset they read.

    Within a stage, cache-scan nodes are matched to the stage's cached
    datasets by position; nodes beyond the end of the list map to None.
    """
    node_list = list(nodes)
    assignments: dict[int, RddStorageInfo | None] = {}
    for stage in stages:
        cache_nodes = [
            node
            for node in node_list
            if node.node_name == cache_scan_node_name and node.stage_id == stage.stage_id
        ]
        for index, node in enumerate(cache_nodes):
            cached = stage.cached_storage
            assignments[node.node_id] = cached[index] if index < len(cached) else None
    return assignments


def attach_storage_info(
    nodes: Sequence[PlanNode],
    stages: Iterable[StageStorage],
    cache_scan_node_name: str = "InMemoryTableScan",
) -> tuple[PlanNode, ...]:
    """Return ``nodes`` with storage info set on matched cache-scan nodes.

    Nodes without a match, or whose storage info is already current, are
    returned as the same objects.
    """
    assignments = node_storage_info(nodes, stages, cache_scan_node_name)
    updated: list[PlanNode] = []
    for node in nodes:
        storage_info = assignments.get(node.node_id)
        if storage_info is None or storage_info == node.storage_info:
            updated.append(node)
        else:
            updated.append(replace(node, storage_info=storage_info))
    return tuple(updated)
