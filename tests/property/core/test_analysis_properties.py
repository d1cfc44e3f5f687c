# tests/property/core/test_analysis_properties.py
"""Property tests for cycle detection and reachability."""

from __future__ import annotations

from hypothesis import given

from pipecanvas.core.graph import Edge, GraphAnalyzer, Node
from tests.helpers.graphs import graphs
from tests.property.settings import STANDARD_SETTINGS


def _analyzer(graph: tuple[list[Node], list[Edge]]) -> GraphAnalyzer:
    nodes, edges = graph
    return GraphAnalyzer([node.id for node in nodes], edges)


class TestReachabilityProperties:
    """Upstream and downstream are mirror images."""

    @given(graph=graphs())
    @STANDARD_SETTINGS
    def test_upstream_downstream_symmetry(self, graph: tuple[list[Node], list[Edge]]) -> None:
        analyzer = _analyzer(graph)
        node_ids = [node.id for node in graph[0]]

        for a in node_ids:
            for b in analyzer.downstream(a):
                assert a in analyzer.upstream(b)

    @given(graph=graphs())
    @STANDARD_SETTINGS
    def test_start_excluded_unless_on_cycle(self, graph: tuple[list[Node], list[Edge]]) -> None:
        analyzer = _analyzer(graph)

        for node in graph[0]:
            assert node.id not in analyzer.downstream(node.id)
            assert node.id not in analyzer.upstream(node.id)

    @given(graph=graphs())
    @STANDARD_SETTINGS
    def test_reaching_matches_per_node_search(self, graph: tuple[list[Node], list[Edge]]) -> None:
        analyzer = _analyzer(graph)
        node_ids = [node.id for node in graph[0]]
        targets = node_ids[::2]

        reaching = analyzer.reaching(targets)

        assert reaching == {node_id for node_id in node_ids if analyzer.has_path_to(node_id, targets)}


class TestCycleProperties:
    """Cycle detection agrees with topological ordering."""

    @given(graph=graphs())
    @STANDARD_SETTINGS
    def test_cycles_iff_blocked_nodes(self, graph: tuple[list[Node], list[Edge]]) -> None:
        analyzer = _analyzer(graph)

        cycles = analyzer.find_cycles()
        ordered, blocked = analyzer.topological_order()

        assert bool(cycles) == bool(blocked)
        assert len(ordered) + len(blocked) == len(graph[0])
        for cycle in cycles:
            assert set(cycle.node_ids) <= set(blocked)

    @given(graph=graphs())
    @STANDARD_SETTINGS
    def test_each_node_in_at_most_one_cycle(self, graph: tuple[list[Node], list[Edge]]) -> None:
        members = [node_id for cycle in _analyzer(graph).find_cycles() for node_id in cycle.node_ids]

        assert len(members) == len(set(members))

    @given(graph=graphs())
    @STANDARD_SETTINGS
    def test_dfs_agrees_with_components(self, graph: tuple[list[Node], list[Edge]]) -> None:
        analyzer = _analyzer(graph)

        has_any = any(analyzer.has_cycle_from(node.id) for node in graph[0])

        assert has_any == bool(analyzer.find_cycles())

    @given(graph=graphs())
    @STANDARD_SETTINGS
    def test_topological_order_respects_edges(self, graph: tuple[list[Node], list[Edge]]) -> None:
        analyzer = _analyzer(graph)
        ordered, _ = analyzer.topological_order()
        position = {node_id: index for index, node_id in enumerate(ordered)}

        for edge in analyzer.resolved_edges:
            if edge.source in position and edge.target in position:
                assert position[edge.source] < position[edge.target]
