"""Result records returned by the validation, simulation and analysis engines.

All records are frozen: a result list handed to the editor or the CLI can
be shared freely without defensive copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pipecanvas.contracts.enums import IssueSeverity, MemoryImpact, Platform, Severity


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """One diagnostic for an edge, a node, or the graph as a whole.

    edge_or_node_id is the id of the edge or node the result is attached
    to, or a stable synthetic id (e.g. 'cycle:a,b,c', 'global:row-count')
    for results that span several elements.
    """

    edge_or_node_id: str
    is_valid: bool
    severity: Severity
    message: str
    suggestion: str | None = None
    affected_node_ids: tuple[str, ...] = ()
    affected_edge_ids: tuple[str, ...] = ()

    @property
    def is_blocking(self) -> bool:
        """Only error severity blocks export or simulation."""
        return self.severity == Severity.ERROR


@dataclass(frozen=True, slots=True)
class NodeMetric:
    """Simulated cost of one node."""

    node_id: str
    name: str
    duration: float
    rows_processed: float
    memory_impact: MemoryImpact
    is_bottleneck: bool = False
    cost: float | None = None


@dataclass(frozen=True, slots=True)
class SimulationResult:
    """Outcome of one simulation run.

    node_metrics are ordered by descending duration. estimated_cost is only
    populated by cost-bearing platforms.
    """

    platform: Platform
    total_duration: float
    memory_mb: float
    bottleneck_node_id: str | None
    node_metrics: tuple[NodeMetric, ...]
    throughput: float
    estimated_cost: float | None = None

    def metric_for(self, node_id: str) -> NodeMetric:
        """Look up the metric of a node.

        Raises:
            KeyError: If the node was not part of the run
        """
        for metric in self.node_metrics:
            if metric.node_id == node_id:
                return metric
        raise KeyError(f"No metric for node: {node_id}")


@dataclass(frozen=True, slots=True)
class PerformanceIssue:
    """A single finding of the Databricks performance analyzer."""

    issue_id: str
    severity: IssueSeverity
    node_id: str
    node_name: str
    issue: str
    impact: str
    recommendation: str
    estimated_improvement: str | None = None


@dataclass(frozen=True, slots=True)
class AnalysisSummary:
    shuffle_operations: int = 0
    data_skew: bool = False
    caching_opportunities: int = 0
    broadcast_join_opportunities: int = 0
    z_ordering_opportunities: int = 0


@dataclass(frozen=True, slots=True)
class PerformanceAnalysis:
    """Score (0-100) plus the issues that reduced it."""

    score: int
    issues: tuple[PerformanceIssue, ...] = ()
    summary: AnalysisSummary = field(default_factory=AnalysisSummary)
