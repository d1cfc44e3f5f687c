# src/pipecanvas/core/graph/analysis.py
"""Cycle detection and upstream/downstream reachability.

Two independent primitives over the same edge list:

- Cycle detection: depth-first search with a visited set and an on-stack
  (recursion) set. Reaching a node that is still on the stack is a cycle.
  A self-loop is the smallest cycle.
- Reachability: breadth-first walks backwards (ancestors) or forwards
  (descendants), each guarded by its own visited set so they stay finite on
  cyclic graphs.

Only resolved edges (both endpoints exist) take part; dangling edges are
the validator's concern.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Collection, Iterable, Iterator
from dataclasses import dataclass

import networkx as nx

from pipecanvas.core.graph.models import Edge


@dataclass(frozen=True, slots=True)
class Cycle:
    """One cyclic component: its nodes (graph order) and the edges inside it."""

    node_ids: tuple[str, ...]
    edge_ids: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FlowHighlights:
    """Everything connected to a selected node, split by direction."""

    upstream: frozenset[str]
    downstream: frozenset[str]


class GraphAnalyzer:
    """Adjacency index over one frame of (node ids, edges).

    Build once per validation pass; every query is then O(V+E) at worst.
    """

    def __init__(self, node_ids: Iterable[str], edges: Iterable[Edge]) -> None:
        self._order: dict[str, int] = {node_id: index for index, node_id in enumerate(node_ids)}
        self._edges: list[Edge] = [edge for edge in edges if edge.source in self._order and edge.target in self._order]
        self._forward: dict[str, list[str]] = {node_id: [] for node_id in self._order}
        self._backward: dict[str, list[str]] = {node_id: [] for node_id in self._order}
        for edge in self._edges:
            self._forward[edge.source].append(edge.target)
            self._backward[edge.target].append(edge.source)

    @property
    def resolved_edges(self) -> list[Edge]:
        return list(self._edges)

    def successors(self, node_id: str) -> list[str]:
        return list(self._forward.get(node_id, ()))

    def predecessors(self, node_id: str) -> list[str]:
        return list(self._backward.get(node_id, ()))

    def has_cycle_from(self, start: str) -> bool:
        """Depth-first cycle search from one start node.

        Iterative so long chains never hit the interpreter recursion limit.
        Unknown start ids have no cycle.
        """
        if start not in self._forward:
            return False

        visited: set[str] = {start}
        on_stack: set[str] = {start}
        stack: list[tuple[str, Iterator[str]]] = [(start, iter(self._forward[start]))]
        while stack:
            current, neighbours = stack[-1]
            advanced = False
            for neighbour in neighbours:
                if neighbour in on_stack:
                    return True
                if neighbour not in visited:
                    visited.add(neighbour)
                    on_stack.add(neighbour)
                    stack.append((neighbour, iter(self._forward[neighbour])))
                    advanced = True
                    break
            if not advanced:
                on_stack.discard(current)
                stack.pop()
        return False

    def find_cycles(self) -> list[Cycle]:
        """Return every cyclic component exactly once.

        A component is cyclic when it is strongly connected with more than
        one node, or is a single node wired to itself. Components come back
        ordered by the graph position of their first node.
        """
        graph: nx.DiGraph[str] = nx.DiGraph()
        graph.add_nodes_from(self._order)
        graph.add_edges_from((edge.source, edge.target) for edge in self._edges)

        cycles: list[Cycle] = []
        for component in nx.strongly_connected_components(graph):
            if len(component) == 1:
                (only,) = component
                if not graph.has_edge(only, only):
                    continue
            members = sorted(component, key=self._order.__getitem__)
            if not self.has_cycle_from(members[0]):
                # Strongly connected components always cycle; guard against
                # the two primitives ever disagreeing.
                continue
            edge_ids = tuple(edge.id for edge in self._edges if edge.source in component and edge.target in component)
            cycles.append(Cycle(node_ids=tuple(members), edge_ids=edge_ids))

        cycles.sort(key=lambda cycle: self._order[cycle.node_ids[0]])
        return cycles

    def upstream(self, node_id: str) -> set[str]:
        """All ancestors of a node (start node excluded)."""
        return self._walk(node_id, self._backward)

    def downstream(self, node_id: str) -> set[str]:
        """All descendants of a node (start node excluded)."""
        return self._walk(node_id, self._forward)

    def has_path_to(self, node_id: str, targets: Collection[str]) -> bool:
        """True if any target is reachable from node_id by a non-empty path,
        or node_id is itself a target."""
        if node_id in targets:
            return True
        return not self.downstream(node_id).isdisjoint(targets)

    def reaching(self, targets: Collection[str]) -> set[str]:
        """Every node with a directed path to some target, targets included.

        One multi-source backward walk, so checking all nodes against the
        same target set stays O(V+E).
        """
        seen: set[str] = set()
        queue: deque[str] = deque(target for target in targets if target in self._backward)
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(self._backward[current])
        return seen

    def flow_highlights(self, node_id: str) -> FlowHighlights:
        return FlowHighlights(upstream=frozenset(self.upstream(node_id)), downstream=frozenset(self.downstream(node_id)))

    def topological_order(self) -> tuple[list[str], list[str]]:
        """Kahn's algorithm over resolved edges.

        Returns:
            (ordered, blocked): nodes in dependency order, and nodes that
            could not be ordered because they sit on or behind a cycle.
        """
        in_degree = {node_id: len(self._backward[node_id]) for node_id in self._order}
        queue = deque(node_id for node_id in self._order if in_degree[node_id] == 0)
        ordered: list[str] = []
        while queue:
            current = queue.popleft()
            ordered.append(current)
            for neighbour in self._forward[current]:
                in_degree[neighbour] -= 1
                if in_degree[neighbour] == 0:
                    queue.append(neighbour)
        placed = set(ordered)
        blocked = [node_id for node_id in self._order if node_id not in placed]
        return ordered, blocked

    def _walk(self, start: str, adjacency: dict[str, list[str]]) -> set[str]:
        seen: set[str] = set()
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(adjacency.get(current, ()))
        seen.discard(start)
        return seen


# ===== FUNCTIONAL FACADE =====


def _node_ids_of(edges: Iterable[Edge]) -> list[str]:
    ids: dict[str, None] = {}
    for edge in edges:
        ids.setdefault(edge.source)
        ids.setdefault(edge.target)
    return list(ids)


def has_cycle_from(start: str, edges: Iterable[Edge]) -> bool:
    """DFS cycle check from start over a bare edge list."""
    edge_list = list(edges)
    return GraphAnalyzer(_node_ids_of(edge_list), edge_list).has_cycle_from(start)


def upstream(node_id: str, edges: Iterable[Edge]) -> set[str]:
    """Ancestors of node_id over a bare edge list."""
    edge_list = list(edges)
    return GraphAnalyzer(_node_ids_of(edge_list), edge_list).upstream(node_id)


def downstream(node_id: str, edges: Iterable[Edge]) -> set[str]:
    """Descendants of node_id over a bare edge list."""
    edge_list = list(edges)
    return GraphAnalyzer(_node_ids_of(edge_list), edge_list).downstream(node_id)


def flow_highlights(node_id: str, edges: Iterable[Edge]) -> FlowHighlights:
    """Upstream and downstream sets for the editor's highlight feature."""
    edge_list = list(edges)
    return GraphAnalyzer(_node_ids_of(edge_list), edge_list).flow_highlights(node_id)


def find_cycles(node_ids: Iterable[str], edges: Iterable[Edge]) -> list[Cycle]:
    """Every cyclic component over (node_ids, edges), each exactly once."""
    return GraphAnalyzer(node_ids, edges).find_cycles()


def has_path_to(node_id: str, edges: Iterable[Edge], targets: Collection[str]) -> bool:
    """Forward search: can node_id reach any of targets?"""
    edge_list = list(edges)
    return GraphAnalyzer(_node_ids_of(edge_list), edge_list).has_path_to(node_id, targets)
