# tests/property/engine/test_validation_properties.py
"""Property tests for the validation engine.

Validation must be total (never raises on a graph), deterministic, and
report each structural defect exactly once.
"""

from __future__ import annotations

import copy

from hypothesis import given
from hypothesis import strategies as st

from pipecanvas.contracts.enums import Platform
from pipecanvas.core.graph import GraphAnalyzer
from pipecanvas.engine.validation import validate
from tests.helpers.graphs import graphs
from tests.property.settings import DETERMINISM_SETTINGS, STANDARD_SETTINGS

platforms = st.sampled_from(list(Platform))


class TestValidationDeterminism:
    """Same frame in, same results out."""

    @given(data=st.data(), platform=platforms)
    @DETERMINISM_SETTINGS
    def test_repeatable(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))

        assert validate(nodes, edges, platform) == validate(nodes, edges, platform)

    @given(data=st.data(), platform=platforms)
    @DETERMINISM_SETTINGS
    def test_equal_on_independent_copies(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))
        twin_nodes, twin_edges = copy.deepcopy(nodes), copy.deepcopy(edges)

        assert validate(nodes, edges, platform) == validate(twin_nodes, twin_edges, platform)

    @given(data=st.data(), platform=platforms)
    @STANDARD_SETTINGS
    def test_edges_and_properties_untouched(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))
        before_edges = copy.deepcopy(edges)
        before_props = [copy.deepcopy(node.properties) for node in nodes]

        validate(nodes, edges, platform)

        assert edges == before_edges
        assert [node.properties for node in nodes] == before_props


class TestStructuralReporting:
    """Dangling edges and cycles are reported exactly once."""

    @given(data=st.data(), platform=platforms)
    @STANDARD_SETTINGS
    def test_one_result_per_dangling_edge(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))
        node_ids = {node.id for node in nodes}

        results = validate(nodes, edges, platform)

        for edge in edges:
            if edge.source in node_ids and edge.target in node_ids:
                continue
            attached = [result for result in results if result.edge_or_node_id == edge.id]
            assert len(attached) == 1
            assert attached[0].is_blocking
            assert not any(edge.id in result.affected_edge_ids for result in results if result is not attached[0])

    @given(data=st.data(), platform=platforms)
    @STANDARD_SETTINGS
    def test_one_error_per_cycle(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))
        cycles = GraphAnalyzer([node.id for node in nodes], edges).find_cycles()

        results = validate(nodes, edges, platform)

        cycle_results = [result for result in results if result.edge_or_node_id.startswith("cycle:")]
        assert len(cycle_results) == len(cycles)
        assert all(result.is_blocking for result in cycle_results)

    @given(data=st.data(), platform=platforms)
    @STANDARD_SETTINGS
    def test_validity_flag_tracks_severity(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))

        for result in validate(nodes, edges, platform):
            assert result.is_valid == (not result.is_blocking)
