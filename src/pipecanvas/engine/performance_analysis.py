# src/pipecanvas/engine/performance_analysis.py
"""Databricks performance analysis.

Scores a Databricks graph from 100 downwards. Each detector inspects node
properties (notebook code, DataFrame transform settings, cluster and
warehouse configuration, Delta sink layout) and subtracts a fixed penalty
when it fires. The score never drops below zero.

Pipeline-wide findings carry an empty node id and the node name
"Pipeline".
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from pipecanvas.contracts.enums import IssueSeverity, NodeKind
from pipecanvas.contracts.results import AnalysisSummary, PerformanceAnalysis, PerformanceIssue
from pipecanvas.core.graph.analysis import GraphAnalyzer
from pipecanvas.core.graph.models import Edge, Node
from pipecanvas.core.logging import get_logger
from pipecanvas.engine.validation.databricks import aqe_enabled

logger = get_logger(__name__)

PERFECT_SCORE = 100
PIPELINE_NAME = "Pipeline"

SHUFFLE_LIMIT = 5
SKEW_GROUP_BY_LIMIT = 2
CACHING_PENALTY_CAP = 3

_SHUFFLE_KEYWORDS = re.compile(r"groupBy|join|orderBy|distinct|repartition|coalesce", re.IGNORECASE)

_DATABRICKS_KINDS = frozenset(
    {
        NodeKind.NOTEBOOK,
        NodeKind.DATA_SOURCE,
        NodeKind.TRANSFORMATION,
        NodeKind.OUTPUT,
        NodeKind.ORCHESTRATION,
        NodeKind.CLUSTER,
    }
)


def _code(node: Node) -> str:
    code = node.prop("code")
    return code if isinstance(code, str) else ""


def _non_empty_list(value: object) -> bool:
    return isinstance(value, list) and len(value) > 0


def _groups(node: Node) -> bool:
    return node.category == "DataFrameTransform" and _non_empty_list(node.prop("groupByColumns"))


def count_shuffle_operations(nodes: list[Node]) -> int:
    """Shuffle-inducing operations in notebook code and DataFrame transforms."""
    count = 0
    for node in nodes:
        count += len(_SHUFFLE_KEYWORDS.findall(_code(node)))
        if node.category == "DataFrameTransform":
            if _groups(node):
                count += 1
            if node.has_prop("joinType"):
                count += 1
    return count


def detect_data_skew(nodes: list[Node]) -> bool:
    return sum(1 for node in nodes if _groups(node)) > SKEW_GROUP_BY_LIMIT


def count_caching_opportunities(nodes: list[Node], analyzer: GraphAnalyzer) -> int:
    """Transformations whose output feeds more than one consumer."""
    return sum(
        1 for node in nodes if node.kind == NodeKind.TRANSFORMATION and len(analyzer.successors(node.id)) > 1
    )


def count_broadcast_join_opportunities(nodes: list[Node]) -> int:
    return sum(
        1
        for node in nodes
        if node.category == "DataFrameTransform" and node.has_prop("joinType") and node.prop("joinType") != "broadcast"
    )


def count_z_ordering_opportunities(nodes: list[Node]) -> int:
    return sum(
        1 for node in nodes if node.category == "DeltaTableSink" and not _non_empty_list(node.prop("zOrderColumns"))
    )


def _aqe_disabled(cluster: Node) -> bool:
    runtime = cluster.prop("runtimeVersion")
    if not isinstance(runtime, str) or "13." not in runtime:
        return False
    return not aqe_enabled(cluster)


def analyze_performance(nodes: Iterable[Node], edges: Iterable[Edge]) -> PerformanceAnalysis:
    """Score a Databricks graph and list what lowers the score.

    Nodes of other platforms' kinds are ignored; a graph without any
    Databricks node scores a clean 100.
    """
    candidates = [node for node in nodes if node.kind in _DATABRICKS_KINDS]
    if not candidates:
        return PerformanceAnalysis(score=PERFECT_SCORE)

    analyzer = GraphAnalyzer([node.id for node in candidates], edges)
    issues: list[PerformanceIssue] = []
    score = PERFECT_SCORE

    shuffles = count_shuffle_operations(candidates)
    if shuffles > SHUFFLE_LIMIT:
        score -= 10
        issues.append(
            PerformanceIssue(
                issue_id="shuffle-excessive",
                severity=IssueSeverity.WARNING,
                node_id="",
                node_name=PIPELINE_NAME,
                issue=f"Excessive shuffle operations detected ({shuffles})",
                impact="High network overhead and slower execution",
                recommendation="Reduce joins and groupBy operations. Consider bucketing for frequently joined tables.",
                estimated_improvement="20-30% faster execution",
            )
        )

    skew = detect_data_skew(candidates)
    if skew:
        score -= 15
        issues.append(
            PerformanceIssue(
                issue_id="data-skew",
                severity=IssueSeverity.WARNING,
                node_id="",
                node_name=PIPELINE_NAME,
                issue="Potential data skew detected in groupBy operations",
                impact="Uneven workload distribution, some tasks take much longer",
                recommendation="Consider salting keys or using different partitioning strategy",
                estimated_improvement="30-50% faster execution",
            )
        )

    caching = count_caching_opportunities(candidates, analyzer)
    if caching > 0:
        score -= 5 * min(caching, CACHING_PENALTY_CAP)
        issues.append(
            PerformanceIssue(
                issue_id="caching-opportunity",
                severity=IssueSeverity.INFO,
                node_id="",
                node_name=PIPELINE_NAME,
                issue=f"{caching} DataFrame(s) reused multiple times without caching",
                impact="Repeated computation of same data",
                recommendation="Cache DataFrames that are used multiple times using df.cache() or df.persist()",
                estimated_improvement="10-20% faster execution",
            )
        )

    broadcast = count_broadcast_join_opportunities(candidates)
    if broadcast > 0:
        score -= 5
        issues.append(
            PerformanceIssue(
                issue_id="broadcast-join",
                severity=IssueSeverity.INFO,
                node_id="",
                node_name=PIPELINE_NAME,
                issue=f"{broadcast} join(s) could use broadcast for small tables",
                impact="Unnecessary shuffle operations for small lookup tables",
                recommendation='Use broadcast joins for tables < 2GB. Add .hint("broadcast") to join operations',
                estimated_improvement="15-25% faster execution",
            )
        )

    z_ordering = count_z_ordering_opportunities(candidates)
    if z_ordering > 0:
        score -= 5
        issues.append(
            PerformanceIssue(
                issue_id="z-ordering",
                severity=IssueSeverity.INFO,
                node_id="",
                node_name=PIPELINE_NAME,
                issue=f"{z_ordering} Delta table(s) missing Z-ordering on filtered columns",
                impact="Slower query performance on filtered columns",
                recommendation="Add Z-ordering on frequently filtered columns using OPTIMIZE ZORDER BY",
                estimated_improvement="20-40% faster queries",
            )
        )

    for cluster in candidates:
        if cluster.kind == NodeKind.CLUSTER and _aqe_disabled(cluster):
            score -= 10
            issues.append(
                PerformanceIssue(
                    issue_id="aqe-missing",
                    severity=IssueSeverity.WARNING,
                    node_id=cluster.id,
                    node_name=cluster.name,
                    issue="Adaptive Query Execution (AQE) not enabled",
                    impact="Missing automatic query optimization",
                    recommendation="Enable AQE by setting spark.sql.adaptive.enabled=true in Spark config",
                    estimated_improvement="10-30% faster execution",
                )
            )

    for warehouse in candidates:
        if warehouse.category == "SQLWarehouse" and not warehouse.prop("enablePhoton"):
            score -= 15
            issues.append(
                PerformanceIssue(
                    issue_id="photon-missing",
                    severity=IssueSeverity.WARNING,
                    node_id=warehouse.id,
                    node_name=warehouse.name,
                    issue="Photon engine not enabled for SQL warehouse",
                    impact="Missing 2-3x performance improvement for SQL workloads",
                    recommendation="Enable Photon in SQL warehouse settings (requires runtime 11.3 LTS+)",
                    estimated_improvement="2-3x faster SQL queries",
                )
            )

    for sink in candidates:
        if sink.category == "DeltaTableSink" and not _non_empty_list(sink.prop("partitionBy")):
            score -= 5
            issues.append(
                PerformanceIssue(
                    issue_id="partitioning-missing",
                    severity=IssueSeverity.INFO,
                    node_id=sink.id,
                    node_name=sink.name,
                    issue="Delta table missing partitioning strategy",
                    impact="Full table scans on filtered queries",
                    recommendation="Add partitioning on columns used in WHERE clauses",
                    estimated_improvement="30-50% faster queries",
                )
            )

    with_udfs = [node for node in candidates if "udf" in _code(node)]
    if with_udfs:
        score -= 10
        issues.append(
            PerformanceIssue(
                issue_id="udf-inefficient",
                severity=IssueSeverity.WARNING,
                node_id=with_udfs[0].id,
                node_name=with_udfs[0].name,
                issue="Inefficient UDFs detected",
                impact="UDFs are slower than built-in Spark functions",
                recommendation="Replace UDFs with built-in Spark functions or use pandas UDFs for better performance",
                estimated_improvement="20-40% faster execution",
            )
        )

    analysis = PerformanceAnalysis(
        score=max(0, score),
        issues=tuple(issues),
        summary=AnalysisSummary(
            shuffle_operations=shuffles,
            data_skew=skew,
            caching_opportunities=caching,
            broadcast_join_opportunities=broadcast,
            z_ordering_opportunities=z_ordering,
        ),
    )
    logger.debug("Performance analysis complete", score=analysis.score, issues=len(issues))
    return analysis
