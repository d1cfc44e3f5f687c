# tests/unit/core/test_graph.py
"""Tests for PipelineGraph mutations and queries."""

from __future__ import annotations

import pytest

from pipecanvas.contracts.enums import NodeKind
from pipecanvas.contracts.errors import DuplicateNodeError
from pipecanvas.core.graph import Edge, PipelineGraph
from tests.helpers.graphs import make_edge, raw_node


@pytest.fixture
def graph() -> PipelineGraph:
    return PipelineGraph(
        nodes=[
            raw_node("src", NodeKind.SOURCE),
            raw_node("t", NodeKind.TRANSFORMATION),
            raw_node("dst", NodeKind.DESTINATION),
        ],
        edges=[make_edge("src", "t"), make_edge("t", "dst")],
    )


class TestNodes:
    """Node insertion, removal and lookup."""

    def test_nodes_keep_insertion_order(self, graph: PipelineGraph) -> None:
        assert [node.id for node in graph.nodes] == ["src", "t", "dst"]
        assert graph.node_count == 3
        assert len(graph) == 3
        assert "t" in graph

    def test_duplicate_node_raises(self, graph: PipelineGraph) -> None:
        with pytest.raises(DuplicateNodeError) as exc_info:
            graph.add_node(raw_node("t", NodeKind.TRANSFORMATION))
        assert exc_info.value.node_id == "t"
        assert graph.node_count == 3

    def test_get_unknown_node_raises_key_error(self, graph: PipelineGraph) -> None:
        with pytest.raises(KeyError):
            graph.get_node("missing")

    def test_remove_node_cascades_edges(self, graph: PipelineGraph) -> None:
        removed = graph.remove_node("t")

        assert {edge.id for edge in removed} == {"src->t", "t->dst"}
        assert graph.edge_count == 0
        assert not graph.has_node("t")

    def test_remove_unknown_node_is_noop(self, graph: PipelineGraph) -> None:
        assert graph.remove_node("missing") == []
        assert graph.node_count == 3
        assert graph.edge_count == 2

    def test_update_properties_is_shallow_merge(self, graph: PipelineGraph) -> None:
        graph.update_node_properties("src", {"a": 1, "nested": {"x": 1}})
        graph.update_node_properties("src", {"b": 2, "nested": {"y": 2}})

        assert graph.get_node("src").properties == {"a": 1, "b": 2, "nested": {"y": 2}}

    def test_rename(self, graph: PipelineGraph) -> None:
        graph.rename_node("src", "Customers")
        assert graph.get_node("src").name == "Customers"

    def test_edits_to_unknown_node_are_noops(self, graph: PipelineGraph) -> None:
        before = graph.copy()

        assert graph.update_node_properties("missing", {"a": 1}) is None
        assert graph.rename_node("missing", "Name") is None

        assert graph.nodes == before.nodes
        assert graph.edges == before.edges


class TestEdges:
    """Edge insertion, suppression and dangling references."""

    def test_duplicate_source_target_pair_is_suppressed(self, graph: PipelineGraph) -> None:
        inserted = graph.add_edge(Edge(id="other-id", source="src", target="t"))

        assert inserted is False
        assert graph.edge_count == 2

    def test_reverse_direction_is_not_a_duplicate(self, graph: PipelineGraph) -> None:
        assert graph.add_edge(make_edge("t", "src")) is True

    def test_dangling_edge_is_accepted_and_reported(self, graph: PipelineGraph) -> None:
        assert graph.add_edge(make_edge("t", "ghost")) is True
        assert [edge.id for edge in graph.dangling_edges()] == ["t->ghost"]

    def test_remove_edge_returns_removed(self, graph: PipelineGraph) -> None:
        removed = graph.remove_edge("src->t")

        assert removed is not None
        assert removed.source == "src"
        assert graph.remove_edge("src->t") is None

    def test_get_edge(self, graph: PipelineGraph) -> None:
        assert graph.get_edge("t->dst").target == "dst"
        with pytest.raises(KeyError):
            graph.get_edge("nope")

    def test_incoming_and_outgoing(self, graph: PipelineGraph) -> None:
        assert [edge.id for edge in graph.incoming_edges("t")] == ["src->t"]
        assert [edge.id for edge in graph.outgoing_edges("t")] == ["t->dst"]


class TestCopyAndReplace:
    """Deep copy and wholesale replacement."""

    def test_copy_shares_no_state(self, graph: PipelineGraph) -> None:
        clone = graph.copy()
        clone.update_node_properties("src", {"changed": True})
        clone.get_edge("src->t").is_valid = False

        assert "changed" not in graph.get_node("src").properties
        assert graph.get_edge("src->t").is_valid is True

    def test_replace_swaps_everything(self, graph: PipelineGraph) -> None:
        graph.replace([raw_node("only", NodeKind.SOURCE)], [make_edge("only", "only"), make_edge("only", "only")])

        assert [node.id for node in graph.nodes] == ["only"]
        # Edges are taken verbatim
        assert graph.edge_count == 2

    def test_clear(self, graph: PipelineGraph) -> None:
        graph.clear()
        assert graph.node_count == 0
        assert graph.edge_count == 0


class TestNodeHelpers:
    """Node.prop and Node.has_prop."""

    @pytest.mark.parametrize("value", [None, "", "   ", [], {}])
    def test_blank_values_count_as_missing(self, value: object) -> None:
        node = raw_node("n", NodeKind.SOURCE, key=value)
        assert node.has_prop("key") is False

    @pytest.mark.parametrize("value", [0, False, "x", [1], {"a": 1}])
    def test_present_values(self, value: object) -> None:
        node = raw_node("n", NodeKind.SOURCE, key=value)
        assert node.has_prop("key") is True

    def test_raw_tags_are_coerced(self) -> None:
        node = raw_node("n", "source")  # type: ignore[arg-type]
        edge = Edge(id="e", source="a", target="b", branch="failure")  # type: ignore[arg-type]

        assert node.kind is NodeKind.SOURCE
        assert edge.branch is not None
        assert edge.branch.value == "failure"
        assert Edge(id="loop", source="a", target="a").is_self_loop
