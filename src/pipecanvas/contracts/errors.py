"""Exception hierarchy.

Graph problems (dangling edges, cycles, missing properties) are never
raised: they are reported as ValidationResult records. Exceptions are
reserved for programming errors and for failures at the persistence
boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipecanvas.contracts.results import ValidationResult


class PipelineCanvasError(Exception):
    """Base class for all pipecanvas exceptions."""


class DuplicateNodeError(PipelineCanvasError, ValueError):
    """Raised when a node is inserted with an id that already exists."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node already exists: '{node_id}'")
        self.node_id = node_id


class UnknownPlatformError(PipelineCanvasError, ValueError):
    """Raised when a platform tag does not name a known rule table."""

    def __init__(self, platform: str) -> None:
        super().__init__(f"Unknown platform: '{platform}'. Expected one of: ssis, adf, databricks")
        self.platform = platform


class SnapshotLoadError(PipelineCanvasError):
    """Raised when a persisted snapshot cannot be loaded.

    No migration and no partial load is ever attempted; the caller is
    expected to reset to an empty graph.

    Reason codes:
        malformed: not parseable as JSON
        schema: JSON does not match the persisted snapshot shape
        version: formatVersion differs from the supported version
        corrupt: contents are invalid for the active platform
    """

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class GraphNotRunnableError(PipelineCanvasError):
    """Raised when a simulation is requested for a graph with blocking errors."""

    def __init__(self, blocking: list[ValidationResult]) -> None:
        summary = "; ".join(result.message for result in blocking[:3])
        more = f" (+{len(blocking) - 3} more)" if len(blocking) > 3 else ""
        super().__init__(f"Graph has {len(blocking)} blocking error(s): {summary}{more}")
        self.blocking = blocking
