# src/pipecanvas/engine/editor.py
"""PipelineEditor: the engine context object.

One editor owns one live graph, its undo history and the latest validation
results. Several editors never share state, so independent documents (and
tests) can run side by side.

Every mutation is one logical step:

    mutate graph -> save snapshot -> full revalidation -> write-back

Write-back is the only place that sets the derived fields: Node.has_error,
Node.error_message, Edge.is_valid and Edge.validation_result. Mutations
that change nothing (duplicate edge, unknown id) skip the snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pipecanvas.contracts.enums import BranchTag, Platform, parse_platform
from pipecanvas.contracts.errors import GraphNotRunnableError
from pipecanvas.contracts.results import PerformanceAnalysis, SimulationResult, ValidationResult
from pipecanvas.contracts.types import SampleRow
from pipecanvas.core.catalog import get_entry
from pipecanvas.core.config import EngineSettings
from pipecanvas.core.graph import Edge, FlowHighlights, GraphAnalyzer, Node, PipelineGraph
from pipecanvas.core.history import HistoryEntry, HistoryManager, HistorySnapshot
from pipecanvas.core.logging import get_logger
from pipecanvas.engine.performance_analysis import analyze_performance
from pipecanvas.engine.preview import preview
from pipecanvas.engine.simulation import simulate
from pipecanvas.engine.validation import blocking_results, validate

logger = get_logger(__name__)

LOADED_ACTION = "Loaded pipeline"


class PipelineEditor:
    """Mutable editing session over a single pipeline graph.

    Example:
        editor = PipelineEditor(Platform.SSIS)
        editor.create_node("OLEDBSource", "src")
        editor.create_node("OLEDBDestination", "dst")
        editor.connect("src", "dst")
        editor.undo()
    """

    def __init__(self, platform: Platform | str | None = None, settings: EngineSettings | None = None) -> None:
        self._settings = settings or EngineSettings()
        self._platform = parse_platform(platform) if platform is not None else self._settings.platform
        self._graph = PipelineGraph()
        self._history = HistoryManager(capacity=self._settings.history_capacity)
        self._results: list[ValidationResult] = []

    @property
    def platform(self) -> Platform:
        return self._platform

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def graph(self) -> PipelineGraph:
        """The live graph. Mutate it through the editor so history and results stay in step."""
        return self._graph

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def results(self) -> list[ValidationResult]:
        """Results of the latest validation pass."""
        return list(self._results)

    @property
    def is_runnable(self) -> bool:
        return not blocking_results(self._results)

    # ===== MUTATIONS =====

    def create_node(self, category: str, node_id: str, name: str | None = None) -> Node:
        """Create a node from the platform catalog and add it.

        Raises:
            KeyError: If the platform catalog has no such category.
            DuplicateNodeError: If node_id is taken.
        """
        entry = get_entry(self._platform, category)
        if entry is None:
            raise KeyError(f"Unknown {self._platform.value} category: {category}")
        node = Node(
            id=node_id,
            kind=entry.kind,
            category=entry.category,
            name=name if name is not None else entry.display_name,
            properties=entry.fresh_properties(),
            data_shape=entry.data_shape,
        )
        return self.add_node(node)

    def add_node(self, node: Node) -> Node:
        """Add a prepared node.

        Raises:
            DuplicateNodeError: If a node with the same id exists.
        """
        self._graph.add_node(node)
        self._commit(f"Add {node.name or node.category}")
        return node

    def remove_node(self, node_id: str) -> list[Edge]:
        """Delete a node and its edges. Unknown ids are a no-op.

        Returns:
            The edges removed along with the node.
        """
        if not self._graph.has_node(node_id):
            return []
        node = self._graph.get_node(node_id)
        removed = self._graph.remove_node(node_id)
        self._commit(f"Delete {node.name or node.category}")
        return removed

    def connect(
        self,
        source: str,
        target: str,
        *,
        edge_id: str | None = None,
        branch: BranchTag | str | None = None,
    ) -> Edge | None:
        """Draw an edge between two node ids.

        Returns:
            The new edge, or None when the (source, target) pair already
            had one.
        """
        edge = Edge(id=edge_id or f"e-{source}-{target}", source=source, target=target, branch=branch)
        return edge if self.add_edge(edge) else None

    def add_edge(self, edge: Edge) -> bool:
        """Add a prepared edge; False when suppressed as a duplicate."""
        if not self._graph.add_edge(edge):
            logger.debug("Duplicate edge suppressed", source=edge.source, target=edge.target)
            return False
        self._commit(f"Connect {edge.source} -> {edge.target}")
        return True

    def remove_edge(self, edge_id: str) -> Edge | None:
        removed = self._graph.remove_edge(edge_id)
        if removed is not None:
            self._commit(f"Delete connection {removed.source} -> {removed.target}")
        return removed

    def update_properties(self, node_id: str, patch: dict[str, Any]) -> Node | None:
        """Shallow-merge a property patch into a node.

        Returns:
            The updated node, or None for an unknown id (nothing is
            recorded in history).
        """
        node = self._graph.update_node_properties(node_id, patch)
        if node is None:
            return None
        self._commit(f"Update {node.name or node.category}")
        return node

    def rename(self, node_id: str, name: str) -> Node | None:
        """Returns None, and records nothing, for an unknown id."""
        node = self._graph.rename_node(node_id, name)
        if node is None:
            return None
        self._commit(f"Rename {node_id} to {name}")
        return node

    def undo(self) -> bool:
        """Restore the previous snapshot; False at the oldest entry."""
        label = self._history.undo_label()
        snapshot = self._history.undo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        logger.info("Undo", action=label)
        return True

    def redo(self) -> bool:
        """Re-apply the next snapshot; False at the newest entry."""
        snapshot = self._history.redo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        logger.info("Redo", action=snapshot.action)
        return True

    def load(self, graph: PipelineGraph, action: str = LOADED_ACTION) -> None:
        """Replace the session with a loaded graph.

        History restarts with the loaded state as its baseline.
        """
        loaded = graph.copy()
        self._graph.replace(loaded.nodes, loaded.edges)
        self._history.clear(HistorySnapshot.capture(self._graph.nodes, self._graph.edges, action))
        self.validate_all()
        logger.info("Pipeline loaded", nodes=self._graph.node_count, edges=self._graph.edge_count)

    def clear(self) -> None:
        """Empty the graph and the history."""
        self._graph.clear()
        self._history.clear()
        self.validate_all()
        logger.info("Pipeline cleared")

    def history_entries(self) -> list[HistoryEntry]:
        return self._history.entries()

    # ===== ANALYSIS =====

    def validate_all(self) -> list[ValidationResult]:
        """Run a full validation pass and write derived state back."""
        self._results = validate(self._graph.nodes, self._graph.edges, self._platform)
        self._write_back(self._results)
        return list(self._results)

    def blocking_errors(self) -> list[ValidationResult]:
        return blocking_results(self._results)

    def simulate(self, rows: int | None = None, seed: int | None = None) -> SimulationResult:
        """Estimate one run of the current graph.

        Raises:
            GraphNotRunnableError: While any blocking error exists.
        """
        blocking = self.blocking_errors()
        if blocking:
            raise GraphNotRunnableError(blocking)
        row_count = rows if rows is not None else self._settings.default_row_count
        return simulate(self._graph.nodes, self._graph.edges, row_count, self._platform, self._settings, seed)

    def preview(self, sample_size: int | None = None) -> dict[str, list[SampleRow]]:
        size = sample_size if sample_size is not None else self._settings.preview_sample_size
        return preview(self._graph.nodes, self._graph.edges, size)

    def analyze_performance(self) -> PerformanceAnalysis:
        return analyze_performance(self._graph.nodes, self._graph.edges)

    def flow_highlights(self, node_id: str) -> FlowHighlights:
        """Every node upstream and downstream of node_id."""
        return GraphAnalyzer([node.id for node in self._graph.nodes], self._graph.edges).flow_highlights(node_id)

    # ===== INTERNALS =====

    def _commit(self, action: str) -> None:
        self._history.save(self._graph.nodes, self._graph.edges, action)
        self.validate_all()
        logger.info(
            "Graph mutated",
            action=action,
            nodes=self._graph.node_count,
            edges=self._graph.edge_count,
            errors=len(self.blocking_errors()),
        )

    def _restore(self, snapshot: HistorySnapshot) -> None:
        self._graph.replace(snapshot.nodes, snapshot.edges)
        self.validate_all()

    def _write_back(self, results: Iterable[ValidationResult]) -> None:
        # Every message touching a node is shown; only blocking ones set has_error
        node_messages: dict[str, list[str]] = {}
        errored: set[str] = set()
        invalid_edges: set[str] = set()
        edge_results: dict[str, ValidationResult] = {}

        for result in results:
            target = result.edge_or_node_id
            touched = dict.fromkeys([target, *result.affected_node_ids])
            for node_id in touched:
                node_messages.setdefault(node_id, []).append(result.message)
            if result.is_blocking:
                errored.update(touched)
                invalid_edges.add(target)
                invalid_edges.update(result.affected_edge_ids)
            current = edge_results.get(target)
            if current is None or (result.is_blocking and not current.is_blocking):
                edge_results[target] = result

        for node in self._graph.nodes:
            node.has_error = node.id in errored
            node.error_message = "; ".join(node_messages.get(node.id, []))

        for edge in self._graph.edges:
            edge.is_valid = edge.id not in invalid_edges
            edge.validation_result = edge_results.get(edge.id)
