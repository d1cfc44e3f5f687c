# tests/property/engine/test_simulation_properties.py
"""Property tests for run simulation."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from pipecanvas.contracts.enums import Platform
from pipecanvas.engine.simulation import simulate
from tests.helpers.graphs import graphs
from tests.property.settings import STANDARD_SETTINGS

platforms = st.sampled_from(list(Platform))
seeds = st.none() | st.integers(min_value=0, max_value=2**32)


class TestSimulationProperties:
    @given(data=st.data(), platform=platforms, seed=seeds, rows=st.integers(min_value=0, max_value=10_000_000))
    @STANDARD_SETTINGS
    def test_bottleneck_is_longest_node(self, data: st.DataObject, platform: Platform, seed: int | None, rows: int) -> None:
        nodes, edges = data.draw(graphs(platform=platform))

        result = simulate(nodes, edges, rows, platform, seed=seed)

        if not result.node_metrics:
            assert result.bottleneck_node_id is None
            assert result.total_duration == 0.0
            return
        longest = max(metric.duration for metric in result.node_metrics)
        flagged = [metric for metric in result.node_metrics if metric.is_bottleneck]
        assert len(flagged) == 1
        assert flagged[0].node_id == result.bottleneck_node_id
        assert flagged[0].duration == longest
        assert result.total_duration >= longest

    @given(data=st.data(), platform=platforms, seed=st.integers(min_value=0, max_value=2**32))
    @STANDARD_SETTINGS
    def test_seeded_runs_reproduce(self, data: st.DataObject, platform: Platform, seed: int) -> None:
        nodes, edges = data.draw(graphs(platform=platform))

        assert simulate(nodes, edges, 50_000, platform, seed=seed) == simulate(nodes, edges, 50_000, platform, seed=seed)

    @given(data=st.data(), platform=platforms)
    @STANDARD_SETTINGS
    def test_metrics_sorted_longest_first(self, data: st.DataObject, platform: Platform) -> None:
        nodes, edges = data.draw(graphs(platform=platform))

        durations = [metric.duration for metric in simulate(nodes, edges, 10_000, platform).node_metrics]

        assert durations == sorted(durations, reverse=True)
