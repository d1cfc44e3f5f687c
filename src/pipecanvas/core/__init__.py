# src/pipecanvas/core/__init__.py
"""Core infrastructure: Graph, Catalog, History, Persistence, Configuration, Logging."""

from pipecanvas.core.catalog import (
    CatalogEntry,
    allowed_kinds,
    categories,
    get_entry,
)
from pipecanvas.core.config import (
    EngineSettings,
    load_settings,
)
from pipecanvas.core.graph import (
    Cycle,
    Edge,
    FlowHighlights,
    GraphAnalyzer,
    Node,
    PipelineGraph,
)
from pipecanvas.core.history import (
    HistoryEntry,
    HistoryManager,
    HistorySnapshot,
)
from pipecanvas.core.logging import (
    configure_logging,
    get_logger,
)
from pipecanvas.core.persistence import (
    FORMAT_VERSION,
    decode_share_link,
    dumps_snapshot,
    encode_share_link,
    load_snapshot_file,
    loads_snapshot,
    save_snapshot_file,
)

__all__ = [
    "FORMAT_VERSION",
    "CatalogEntry",
    "Cycle",
    "Edge",
    "EngineSettings",
    "FlowHighlights",
    "GraphAnalyzer",
    "HistoryEntry",
    "HistoryManager",
    "HistorySnapshot",
    "Node",
    "PipelineGraph",
    "allowed_kinds",
    "categories",
    "configure_logging",
    "decode_share_link",
    "dumps_snapshot",
    "encode_share_link",
    "get_entry",
    "get_logger",
    "load_settings",
    "load_snapshot_file",
    "loads_snapshot",
    "save_snapshot_file",
]
