"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings classes are NOT re-exported here - import them from
pipecanvas.core.config.
"""

from pipecanvas.contracts.enums import (
    BranchTag,
    DataShape,
    IssueSeverity,
    MemoryImpact,
    NodeKind,
    Platform,
    Severity,
    parse_platform,
)
from pipecanvas.contracts.errors import (
    DuplicateNodeError,
    GraphNotRunnableError,
    PipelineCanvasError,
    SnapshotLoadError,
    UnknownPlatformError,
)
from pipecanvas.contracts.results import (
    AnalysisSummary,
    NodeMetric,
    PerformanceAnalysis,
    PerformanceIssue,
    SimulationResult,
    ValidationResult,
)
from pipecanvas.contracts.types import EdgeID, NodeID, NodeProperties, SampleRow

__all__ = [
    "AnalysisSummary",
    "BranchTag",
    "DataShape",
    "DuplicateNodeError",
    "EdgeID",
    "GraphNotRunnableError",
    "IssueSeverity",
    "MemoryImpact",
    "NodeID",
    "NodeKind",
    "NodeMetric",
    "NodeProperties",
    "PerformanceAnalysis",
    "PerformanceIssue",
    "PipelineCanvasError",
    "Platform",
    "SampleRow",
    "Severity",
    "SimulationResult",
    "SnapshotLoadError",
    "UnknownPlatformError",
    "ValidationResult",
    "parse_platform",
]
