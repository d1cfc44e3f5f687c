# tests/property/engine/test_preview_properties.py
"""Property tests for sample-data preview traversal."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from pipecanvas.contracts.enums import Platform
from pipecanvas.core.graph import GraphAnalyzer
from pipecanvas.engine.preview import preview
from tests.helpers.graphs import graphs
from tests.property.settings import DETERMINISM_SETTINGS, STANDARD_SETTINGS

platforms = st.sampled_from(list(Platform))


class TestPreviewTraversal:
    """Preview visits exactly the orderable nodes, upstream first."""

    @given(data=st.data(), platform=platforms)
    @STANDARD_SETTINGS
    def test_covers_orderable_nodes(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))
        ordered, blocked = GraphAnalyzer([node.id for node in nodes], edges).topological_order()

        samples = preview(nodes, edges)

        assert set(samples) == set(ordered)
        assert set(samples).isdisjoint(blocked)

    @given(data=st.data(), platform=platforms)
    @STANDARD_SETTINGS
    def test_upstream_processed_first(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))
        analyzer = GraphAnalyzer([node.id for node in nodes], edges)

        position = {node_id: index for index, node_id in enumerate(preview(nodes, edges))}

        for edge in analyzer.resolved_edges:
            if edge.target in position:
                assert position[edge.source] < position[edge.target]

    @given(data=st.data(), platform=platforms, sample_size=st.integers(min_value=1, max_value=10))
    @STANDARD_SETTINGS
    def test_samples_bounded(self, data: st.DataObject, platform: Platform, sample_size: int) -> None:
        nodes, edges = data.draw(graphs(platform=platform))

        for rows in preview(nodes, edges, sample_size=sample_size).values():
            assert len(rows) <= sample_size

    @given(data=st.data(), platform=platforms)
    @DETERMINISM_SETTINGS
    def test_deterministic(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))

        assert preview(nodes, edges) == preview(nodes, edges)
