# src/pipecanvas/core/graph/graph.py
"""PipelineGraph: the single in-memory representation shared by the
validator, simulator, preview engine and history manager.

Mutations are synchronous and total: they never fail on an illegal graph
state. Dangling edges and cycles are representable so that an editor can
hold transient invalid states (e.g. while a connection is being dragged);
they are reported by the validation engine, not prevented here.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator
from typing import Any

from pipecanvas.contracts.errors import DuplicateNodeError
from pipecanvas.core.graph.models import Edge, Node


class PipelineGraph:
    """Ordered collection of nodes and edges.

    Nodes are kept in insertion order (a dict keyed by id); edges in a list.
    Insertion order is part of the determinism contract: validation results
    and preview output follow it.
    """

    def __init__(self, nodes: Iterable[Node] = (), edges: Iterable[Edge] = ()) -> None:
        self._nodes: dict[str, Node] = {}
        self._edges: list[Edge] = []
        for node in nodes:
            self.add_node(node)
        for edge in edges:
            self.add_edge(edge)

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        """Number of edges in the graph."""
        return len(self._edges)

    @property
    def nodes(self) -> list[Node]:
        """All nodes in insertion order (live objects, not copies)."""
        return list(self._nodes.values())

    @property
    def edges(self) -> list[Edge]:
        """All edges in insertion order (live objects, not copies)."""
        return list(self._edges)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def has_node(self, node_id: str) -> bool:
        """Check if node exists."""
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Node:
        """Get a node by id.

        Raises:
            KeyError: If node doesn't exist
        """
        if node_id not in self._nodes:
            raise KeyError(f"Node not found: {node_id}")
        return self._nodes[node_id]

    def get_edge(self, edge_id: str) -> Edge:
        """Get an edge by id.

        Raises:
            KeyError: If edge doesn't exist
        """
        for edge in self._edges:
            if edge.id == edge_id:
                return edge
        raise KeyError(f"Edge not found: {edge_id}")

    # ===== MUTATIONS =====

    def add_node(self, node: Node) -> None:
        """Insert a node.

        Raises:
            DuplicateNodeError: If a node with the same id exists. Node ids
                are caller-supplied, so a collision is a caller bug rather
                than a graph state.
        """
        if node.id in self._nodes:
            raise DuplicateNodeError(node.id)
        self._nodes[node.id] = node

    def remove_node(self, node_id: str) -> list[Edge]:
        """Remove a node and every edge touching it.

        Removing an unknown id is a no-op.

        Returns:
            The edges removed by the cascade.
        """
        if self._nodes.pop(node_id, None) is None:
            return []
        removed = [edge for edge in self._edges if node_id in (edge.source, edge.target)]
        self._edges = [edge for edge in self._edges if node_id not in (edge.source, edge.target)]
        return removed

    def add_edge(self, edge: Edge) -> bool:
        """Insert an edge unless one with the same (source, target) exists.

        Endpoints are not checked: a dangling edge is accepted and reported
        later by the validator.

        Returns:
            True if the edge was inserted, False if it was suppressed as a
            duplicate of an existing (source, target) pair.
        """
        if any(existing.source == edge.source and existing.target == edge.target for existing in self._edges):
            return False
        self._edges.append(edge)
        return True

    def remove_edge(self, edge_id: str) -> Edge | None:
        """Remove an edge by id.

        Returns:
            The removed edge, or None if no edge had that id.
        """
        for index, edge in enumerate(self._edges):
            if edge.id == edge_id:
                return self._edges.pop(index)
        return None

    def update_node_properties(self, node_id: str, patch: dict[str, Any]) -> Node | None:
        """Shallow-merge a property patch into a node.

        Returns:
            The updated node, or None if no node had that id.
        """
        node = self._nodes.get(node_id)
        if node is None:
            return None
        node.properties = {**node.properties, **patch}
        return node

    def rename_node(self, node_id: str, name: str) -> Node | None:
        """Change a node's display name. Unknown ids are a no-op."""
        node = self._nodes.get(node_id)
        if node is None:
            return None
        node.name = name
        return node

    def replace(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        """Swap in a complete node/edge set (undo, redo, load).

        Edges are taken verbatim, including duplicates present in the
        incoming set.
        """
        self._nodes = {}
        for node in nodes:
            self.add_node(node)
        self._edges = list(edges)

    def clear(self) -> None:
        self._nodes = {}
        self._edges = []

    # ===== QUERIES =====

    def incoming_edges(self, node_id: str) -> list[Edge]:
        """Get all edges pointing TO this node."""
        return [edge for edge in self._edges if edge.target == node_id]

    def outgoing_edges(self, node_id: str) -> list[Edge]:
        """Get all edges leaving this node."""
        return [edge for edge in self._edges if edge.source == node_id]

    def dangling_edges(self) -> list[Edge]:
        """Edges whose source or target does not name an existing node."""
        return [edge for edge in self._edges if edge.source not in self._nodes or edge.target not in self._nodes]

    def copy(self) -> PipelineGraph:
        """Deep copy: the result shares no mutable state with this graph."""
        clone = PipelineGraph()
        clone._nodes = {node_id: copy.deepcopy(node) for node_id, node in self._nodes.items()}
        clone._edges = [copy.deepcopy(edge) for edge in self._edges]
        return clone
