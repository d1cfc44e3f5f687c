"""Pipeline graph model and its structural analysis.

Re-exports the graph, its records and the analyzer.
"""

from pipecanvas.core.graph.analysis import (
    Cycle,
    FlowHighlights,
    GraphAnalyzer,
    downstream,
    find_cycles,
    flow_highlights,
    has_cycle_from,
    has_path_to,
    upstream,
)
from pipecanvas.core.graph.graph import PipelineGraph
from pipecanvas.core.graph.models import Edge, Node

__all__ = [
    "Cycle",
    "Edge",
    "FlowHighlights",
    "GraphAnalyzer",
    "Node",
    "PipelineGraph",
    "downstream",
    "find_cycles",
    "flow_highlights",
    "has_cycle_from",
    "has_path_to",
    "upstream",
]
