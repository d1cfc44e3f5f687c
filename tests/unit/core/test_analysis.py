# tests/unit/core/test_analysis.py
"""Tests for cycle detection and reachability."""

from __future__ import annotations

from pipecanvas.core.graph import GraphAnalyzer, downstream, find_cycles, flow_highlights, has_cycle_from, has_path_to, upstream
from tests.helpers.graphs import chain, make_edge


class TestCycleDetection:
    """DFS cycle check and component enumeration."""

    def test_acyclic_chain(self) -> None:
        edges = chain("a", "b", "c")
        assert has_cycle_from("a", edges) is False
        assert find_cycles(["a", "b", "c"], edges) == []

    def test_self_loop_is_a_cycle(self) -> None:
        edges = [make_edge("a", "a")]
        assert has_cycle_from("a", edges) is True

        (cycle,) = find_cycles(["a"], edges)
        assert cycle.node_ids == ("a",)
        assert cycle.edge_ids == ("a->a",)

    def test_three_node_cycle_reported_once(self) -> None:
        edges = [*chain("a", "b", "c"), make_edge("c", "a")]
        cycles = find_cycles(["a", "b", "c"], edges)

        assert len(cycles) == 1
        assert cycles[0].node_ids == ("a", "b", "c")
        assert set(cycles[0].edge_ids) == {"a->b", "b->c", "c->a"}

    def test_cycle_members_follow_graph_order(self) -> None:
        edges = [make_edge("b", "a"), make_edge("a", "b")]
        (cycle,) = find_cycles(["b", "a"], edges)
        assert cycle.node_ids == ("b", "a")

    def test_separate_cycles_each_reported(self) -> None:
        edges = [make_edge("a", "b"), make_edge("b", "a"), make_edge("c", "c"), make_edge("b", "c")]
        cycles = find_cycles(["a", "b", "c"], edges)

        assert [cycle.node_ids for cycle in cycles] == [("a", "b"), ("c",)]
        # The bridge b->c belongs to no cycle
        assert all("b->c" not in cycle.edge_ids for cycle in cycles)

    def test_cycle_reachable_from_start_but_not_containing_it(self) -> None:
        edges = [make_edge("start", "x"), make_edge("x", "y"), make_edge("y", "x")]
        assert has_cycle_from("start", edges) is True

    def test_unknown_start_has_no_cycle(self) -> None:
        assert has_cycle_from("nobody", chain("a", "b")) is False

    def test_deep_chain_does_not_hit_recursion_limit(self) -> None:
        ids = [f"n{index}" for index in range(5000)]
        edges = [*chain(*ids), make_edge(ids[-1], ids[0])]
        assert has_cycle_from(ids[0], edges) is True

    def test_dangling_edges_are_ignored(self) -> None:
        analyzer = GraphAnalyzer(["a"], [make_edge("a", "ghost"), make_edge("ghost", "a")])
        assert analyzer.find_cycles() == []
        assert analyzer.resolved_edges == []


class TestReachability:
    """Upstream/downstream walks."""

    def test_upstream_and_downstream_exclude_start(self) -> None:
        edges = [*chain("a", "b", "c"), make_edge("x", "b")]

        assert upstream("b", edges) == {"a", "x"}
        assert downstream("b", edges) == {"c"}
        assert upstream("a", edges) == set()

    def test_walks_terminate_on_cycles(self) -> None:
        edges = [*chain("a", "b", "c"), make_edge("c", "a")]

        assert downstream("a", edges) == {"b", "c"}
        assert upstream("a", edges) == {"b", "c"}

    def test_flow_highlights(self) -> None:
        highlights = flow_highlights("b", chain("a", "b", "c", "d"))

        assert highlights.upstream == frozenset({"a"})
        assert highlights.downstream == frozenset({"c", "d"})

    def test_has_path_to(self) -> None:
        edges = chain("a", "b", "c")

        assert has_path_to("a", edges, {"c"}) is True
        assert has_path_to("c", edges, {"a"}) is False
        assert has_path_to("c", edges, {"c"}) is True

    def test_reaching_includes_targets(self) -> None:
        analyzer = GraphAnalyzer(["a", "b", "c", "lonely"], chain("a", "b", "c"))
        assert analyzer.reaching(["c"]) == {"a", "b", "c"}


class TestTopologicalOrder:
    """Kahn ordering used by the simulator."""

    def test_order_respects_edges(self) -> None:
        analyzer = GraphAnalyzer(["c", "b", "a"], chain("a", "b", "c"))
        ordered, blocked = analyzer.topological_order()

        assert ordered == ["a", "b", "c"]
        assert blocked == []

    def test_cycle_members_and_descendants_are_blocked(self) -> None:
        edges = [make_edge("a", "b"), make_edge("b", "a"), make_edge("b", "c"), make_edge("s", "t")]
        ordered, blocked = GraphAnalyzer(["a", "b", "c", "s", "t"], edges).topological_order()

        assert ordered == ["s", "t"]
        assert blocked == ["a", "b", "c"]
