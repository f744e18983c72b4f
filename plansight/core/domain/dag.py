"""PlanGraph: the mutable directed graph used by contraction and metric derivation.

A graph is built fresh from the current node/edge set on every enrichment
pass and thrown away afterwards. Between any ordered pair of nodes it keeps at
most one edge; parallel edges in the input collapse into one.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from plansight.core.exceptions import NodeNotFoundError
from plansight.core.logging import get_logger

if TYPE_CHECKING:
    from plansight.core.domain.models import PlanEdge

logger = get_logger(__name__)


class PlanGraph:
    """A directed graph over integer node ids.

    Adjacency is stored in insertion-ordered dicts, so ``out_edges`` lists
    successors in the order their edges were added.

    Examples
    --------
    >>> graph = PlanGraph.from_edges([(0, 1), (1, 2)])
    >>> graph.out_edges(1)
    [(1, 2)]
    >>> graph.remove_node(1)
    >>> graph.edges()
    []
    """

    def __init__(self, node_ids: Iterable[int] = ()) -> None:
        # node -> successors / predecessors, dict used as an ordered set
        self._forward_edges: dict[int, dict[int, None]] = {}
        self._reverse_edges: dict[int, dict[int, None]] = {}
        for node_id in node_ids:
            self.add_node(node_id)

    @classmethod
    def from_edges(
        cls, edges: Iterable[tuple[int, int]], node_ids: Iterable[int] = ()
    ) -> PlanGraph:
        """Build a graph from ``(from, to)`` pairs and an optional node list.

        Nodes named by edges are added implicitly. Self-loops are dropped.
        """
        graph = cls(node_ids)
        for from_id, to_id in edges:
            if from_id == to_id:
                logger.warning("Dropping self-loop edge on node {node_id}", node_id=from_id)
                continue
            graph.set_edge(from_id, to_id)
        return graph

    def add_node(self, node_id: int) -> None:
        """Add ``node_id`` if it is not already present."""
        self._forward_edges.setdefault(node_id, {})
        self._reverse_edges.setdefault(node_id, {})

    def set_edge(self, from_id: int, to_id: int) -> None:
        """Add the edge ``from_id -> to_id``, adding missing endpoints."""
        self.add_node(from_id)
        self.add_node(to_id)
        self._forward_edges[from_id][to_id] = None
        self._reverse_edges[to_id][from_id] = None

    def remove_edge(self, from_id: int, to_id: int) -> None:
        """Remove the edge ``from_id -> to_id`` if present."""
        self._forward_edges.get(from_id, {}).pop(to_id, None)
        self._reverse_edges.get(to_id, {}).pop(from_id, None)

    def remove_node(self, node_id: int) -> None:
        """Remove ``node_id`` together with all its incident edges.

        Raises
        ------
        NodeNotFoundError
            If the node is not in the graph
        """
        if node_id not in self._forward_edges:
            raise NodeNotFoundError(node_id)
        for successor in self._forward_edges.pop(node_id):
            self._reverse_edges[successor].pop(node_id, None)
        for predecessor in self._reverse_edges.pop(node_id):
            self._forward_edges[predecessor].pop(node_id, None)

    def in_edges(self, node_id: int) -> list[tuple[int, int]] | None:
        """Return the edges entering ``node_id``, or None if it is not in the graph."""
        predecessors = self._reverse_edges.get(node_id)
        if predecessors is None:
            return None
        return [(predecessor, node_id) for predecessor in predecessors]

    def out_edges(self, node_id: int) -> list[tuple[int, int]] | None:
        """Return the edges leaving ``node_id``, or None if it is not in the graph."""
        successors = self._forward_edges.get(node_id)
        if successors is None:
            return None
        return [(node_id, successor) for successor in successors]

    def predecessors(self, node_id: int) -> list[int]:
        """Return predecessor ids in insertion order.

        Raises
        ------
        NodeNotFoundError
            If the node is not in the graph
        """
        if node_id not in self._reverse_edges:
            raise NodeNotFoundError(node_id)
        return list(self._reverse_edges[node_id])

    def successors(self, node_id: int) -> list[int]:
        """Return successor ids in insertion order.

        Raises
        ------
        NodeNotFoundError
            If the node is not in the graph
        """
        if node_id not in self._forward_edges:
            raise NodeNotFoundError(node_id)
        return list(self._forward_edges[node_id])

    def nodes(self) -> list[int]:
        return list(self._forward_edges)

    def edges(self) -> list[tuple[int, int]]:
        """Enumerate all edges, grouped by source node."""
        return [
            (from_id, to_id)
            for from_id, successors in self._forward_edges.items()
            for to_id in successors
        ]

    def is_weakly_connected(self) -> bool:
        """Return True if the graph, ignoring direction, forms a single component.

        An empty graph is not connected.
        """
        if not self._forward_edges:
            return False
        start = next(iter(self._forward_edges))
        seen = {start}
        stack = [start]
        while stack:
            current = stack.pop()
            for neighbour in (*self._forward_edges[current], *self._reverse_edges[current]):
                if neighbour not in seen:
                    seen.add(neighbour)
                    stack.append(neighbour)
        return len(seen) == len(self._forward_edges)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._forward_edges

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._forward_edges)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._forward_edges))

    def __repr__(self) -> str:
        return f"PlanGraph(nodes={len(self)}, edges={len(self.edges())})"


def build_graph(edges: Iterable[PlanEdge], node_ids: Iterable[int] = ()) -> PlanGraph:
    """Build a :class:`PlanGraph` from plan edges and node ids.

    Parameters
    ----------
    edges : Iterable[PlanEdge]
        Directed edges of one execution
    node_ids : Iterable[int]
        Node ids to include even when they have no edges

    Returns
    -------
    PlanGraph
        A fresh graph; callers should not keep it across structural changes
    """
    return PlanGraph.from_edges(((edge.from_id, edge.to_id) for edge in edges), node_ids)
