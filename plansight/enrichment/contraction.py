"""DAG contractor: remove invisible nodes while keeping reachability."""

from __future__ import annotations

from collections.abc import Iterable

from plansight.core.domain.dag import build_graph
from plansight.core.domain.models import PlanEdge
from plansight.core.exceptions import GraphError
from plansight.core.logging import get_logger

logger = get_logger(__name__)


def contract(
    edges: Iterable[PlanEdge],
    all_node_ids: Iterable[int],
    visible_node_ids: Iterable[int],
) -> tuple[PlanEdge, ...]:
    """Contract the graph onto ``visible_node_ids``.

    Each invisible node is removed in turn; the sources of its incoming edges
    are reconnected to the target of its first outgoing edge. An invisible
    node without outgoing edges is dropped together with its incoming edges.
    Only the first outgoing edge is followed, so a removed node with several
    successors keeps reachability to the first of them only.

    Parameters
    ----------
    edges : Iterable[PlanEdge]
        Edges of the full graph
    all_node_ids : Iterable[int]
        Every node taking part in contraction, in removal order
    visible_node_ids : Iterable[int]
        Nodes that must survive

    Returns
    -------
    tuple[PlanEdge, ...]
        Edges whose endpoints are both visible

    Examples
    --------
    >>> edges = [PlanEdge(0, 1), PlanEdge(1, 2), PlanEdge(2, 3)]
    >>> contract(edges, [0, 1, 2, 3], [0, 3])
    (PlanEdge(from_id=0, to_id=3),)
    """
    node_ids = list(all_node_ids)
    visible = frozenset(visible_node_ids)
    graph = build_graph(edges, node_ids)

    for node_id in node_ids:
        if node_id in visible:
            continue
        try:
            in_edges = graph.in_edges(node_id)
            if in_edges is None:
                logger.debug("Node {node_id} already gone, skipping", node_id=node_id)
                continue
            out_edges = graph.out_edges(node_id) or []
            if out_edges:
                target = out_edges[0][1]
                for source, _ in in_edges:
                    if source != target:
                        graph.set_edge(source, target)
            graph.remove_node(node_id)
        except GraphError as e:
            logger.debug(
                "Skipping contraction of node {node_id}: {error}", node_id=node_id, error=str(e)
            )

    return tuple(
        PlanEdge(from_id, to_id)
        for from_id, to_id in graph.edges()
        if from_id in visible and to_id in visible
    )
