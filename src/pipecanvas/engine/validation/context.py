# src/pipecanvas/engine/validation/context.py
"""Per-frame view of the graph handed to every rule function.

A RuleContext is built once per validate() call. It resolves edges,
indexes adjacency, and exposes the small query vocabulary rules are
written in (inputs, outputs, upstream nodes). Dangling edges are kept
out of every index: once reported, a dangling edge plays no further part
in the pass.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pipecanvas.contracts.enums import Severity
from pipecanvas.contracts.results import ValidationResult
from pipecanvas.core.graph.analysis import GraphAnalyzer
from pipecanvas.core.graph.models import Edge, Node


class RuleContext:
    """Read-only indexes over one (nodes, edges) frame."""

    def __init__(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> None:
        self.nodes: dict[str, Node] = {}
        for node in nodes:
            # First occurrence wins; PipelineGraph never holds duplicates
            self.nodes.setdefault(node.id, node)
        self.edges: list[Edge] = list(edges)
        self.dangling: list[Edge] = [
            edge for edge in self.edges if edge.source not in self.nodes or edge.target not in self.nodes
        ]
        dangling_ids = {id(edge) for edge in self.dangling}
        self.resolved: list[Edge] = [edge for edge in self.edges if id(edge) not in dangling_ids]
        self.analyzer = GraphAnalyzer(self.nodes, self.resolved)

        self._incoming: dict[str, list[Edge]] = {node_id: [] for node_id in self.nodes}
        self._outgoing: dict[str, list[Edge]] = {node_id: [] for node_id in self.nodes}
        for edge in self.resolved:
            self._outgoing[edge.source].append(edge)
            self._incoming[edge.target].append(edge)
        self._reaching: dict[frozenset[str], set[str]] = {}

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def node(self, node_id: str) -> Node:
        return self.nodes[node_id]

    def inputs(self, node: Node) -> list[Edge]:
        """Resolved incoming edges of a node, in edge order."""
        return list(self._incoming[node.id])

    def outputs(self, node: Node) -> list[Edge]:
        """Resolved outgoing edges of a node, in edge order."""
        return list(self._outgoing[node.id])

    def upstream_nodes(self, node: Node) -> list[Node]:
        """Direct predecessors, one entry per incoming edge."""
        return [self.nodes[edge.source] for edge in self._incoming[node.id]]

    def downstream_nodes(self, node: Node) -> list[Node]:
        """Direct successors, one entry per outgoing edge."""
        return [self.nodes[edge.target] for edge in self._outgoing[node.id]]

    def nodes_reaching(self, kinds: Iterable[str]) -> set[str]:
        """Ids of nodes with a path to a node of one of the given kinds (memoized per pass)."""
        key = frozenset(kinds)
        if key not in self._reaching:
            targets = [node_id for node_id, node in self.nodes.items() if node.kind in key]
            self._reaching[key] = self.analyzer.reaching(targets)
        return self._reaching[key]

    def of_category(self, *categories: str) -> list[Node]:
        return [node for node in self.nodes.values() if node.category in categories]

    def of_kind(self, *kinds: str) -> list[Node]:
        return [node for node in self.nodes.values() if node.kind in kinds]


# ===== RESULT BUILDERS =====


def make_result(
    severity: Severity,
    target_id: str,
    message: str,
    suggestion: str | None,
    nodes: Iterable[str],
    edges: Iterable[str],
) -> ValidationResult:
    return ValidationResult(
        edge_or_node_id=target_id,
        is_valid=severity != Severity.ERROR,
        severity=severity,
        message=message,
        suggestion=suggestion,
        affected_node_ids=tuple(nodes),
        affected_edge_ids=tuple(edges),
    )


def error(
    target_id: str,
    message: str,
    *,
    suggestion: str | None = None,
    nodes: Iterable[str] = (),
    edges: Iterable[str] = (),
) -> ValidationResult:
    """Blocking result."""
    return make_result(Severity.ERROR, target_id, message, suggestion, nodes, edges)


def warning(
    target_id: str,
    message: str,
    *,
    suggestion: str | None = None,
    nodes: Iterable[str] = (),
    edges: Iterable[str] = (),
) -> ValidationResult:
    return make_result(Severity.WARNING, target_id, message, suggestion, nodes, edges)


def info(
    target_id: str,
    message: str,
    *,
    suggestion: str | None = None,
    nodes: Iterable[str] = (),
    edges: Iterable[str] = (),
) -> ValidationResult:
    return make_result(Severity.INFO, target_id, message, suggestion, nodes, edges)
