# src/pipecanvas/engine/simulation.py
"""Performance/cost simulator.

Nothing is executed: every figure comes from per-category cost tables.

Row counts propagate along a topological order of the resolved edges.
Nodes without inputs start from the nominal row count, union categories
add their inputs up, every other node takes its largest input, and
aggregations shrink what flows downstream. Nodes the ordering cannot place
(on or behind a cycle) fall back to the nominal count.

Each platform combines node durations with its own model, and the models
are deliberately not unified:

- SSIS (streaming): the bottleneck dominates; every other node adds 10%
  of its duration (partial backpressure).
- ADF (batch activities): strict sum of activity durations.
- Databricks (cost-bearing): strict sum of task durations plus a DBU
  cost per task.
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterable
from dataclasses import dataclass, replace

from pipecanvas.contracts.enums import MemoryImpact, NodeKind, Platform, parse_platform
from pipecanvas.contracts.results import NodeMetric, SimulationResult
from pipecanvas.core.config import EngineSettings
from pipecanvas.core.graph.analysis import GraphAnalyzer
from pipecanvas.core.graph.models import Edge, Node
from pipecanvas.core.logging import get_logger

logger = get_logger(__name__)

NODE_OVERHEAD_SECONDS = 0.1
BACKPRESSURE_FACTOR = 0.1
AGGREGATE_REDUCTION = 0.1
JITTER = 0.2

UNION_CATEGORIES = frozenset({"UnionAll"})
AGGREGATE_CATEGORIES = frozenset({"Aggregate"})

# Memory added to the running estimate per impact class (batch platforms)
_IMPACT_MEMORY_MB = {MemoryImpact.LOW: 0.0, MemoryImpact.MEDIUM: 256.0, MemoryImpact.HIGH: 1024.0}


@dataclass(frozen=True, slots=True)
class NodeCost:
    """Cost of one node at a given input row count."""

    duration: float
    memory_impact: MemoryImpact
    memory_mb: float = 0.0
    cost: float | None = None


def _number(node: Node, key: str, default: float) -> float:
    """Numeric property, or default when unset, non-numeric or negative."""
    value = node.prop(key)
    if isinstance(value, bool) or not isinstance(value, int | float) or value < 0:
        return default
    return float(value)


# ===== SSIS =====

SSIS_SPEEDS: dict[str, float] = {
    "SOURCE_DB": 15_000,
    "SOURCE_FILE": 25_000,
    "TRANSFORM_SIMPLE": 100_000,
    "TRANSFORM_COMPLEX": 40_000,
    "TRANSFORM_BLOCKING": 5_000,
    "DESTINATION_DB": 8_000,
    "DESTINATION_FILE": 15_000,
    "MULTICAST": 80_000,
    "UNION": 90_000,
    "MERGE_JOIN": 20_000,
}


def sort_speed(rows: float) -> float:
    """Blocking sort slows logarithmically with volume, floored at 1000 rows/s."""
    return max(1000.0, SSIS_SPEEDS["TRANSFORM_BLOCKING"] - math.log(max(rows, 1.0)) * 100)


def ssis_node_cost(node: Node, rows: float) -> NodeCost:
    speed = SSIS_SPEEDS["TRANSFORM_SIMPLE"]
    impact = MemoryImpact.LOW
    memory = 0.0

    if node.kind == NodeKind.SOURCE:
        speed = SSIS_SPEEDS["SOURCE_FILE"] if "File" in node.category else SSIS_SPEEDS["SOURCE_DB"]
    elif node.kind == NodeKind.DESTINATION:
        speed = SSIS_SPEEDS["DESTINATION_FILE"] if "File" in node.category else SSIS_SPEEDS["DESTINATION_DB"]
    elif node.category == "Sort":
        speed = sort_speed(rows)
        impact = MemoryImpact.HIGH
        memory = rows * 0.001
    elif node.category == "Aggregate":
        speed = SSIS_SPEEDS["TRANSFORM_BLOCKING"]
        impact = MemoryImpact.MEDIUM
        memory = rows * 0.0005
    elif node.category == "Lookup":
        speed = SSIS_SPEEDS["TRANSFORM_COMPLEX"]
        impact = MemoryImpact.MEDIUM
        memory = _number(node, "cacheSizeMb", 50.0)
    elif node.category == "MergeJoin":
        speed = SSIS_SPEEDS["MERGE_JOIN"]
        impact = MemoryImpact.MEDIUM
    elif node.category == "Multicast":
        speed = SSIS_SPEEDS["MULTICAST"]
    elif node.category == "UnionAll":
        speed = SSIS_SPEEDS["UNION"]
    elif node.category == "ConditionalSplit":
        speed = SSIS_SPEEDS["TRANSFORM_COMPLEX"]

    return NodeCost(duration=rows / speed + NODE_OVERHEAD_SECONDS, memory_impact=impact, memory_mb=memory)


# ===== ADF =====

# category -> (fixed overhead seconds, rows/second or None, memory impact)
ADF_ACTIVITY_COSTS: dict[str, tuple[float, float | None, MemoryImpact]] = {
    "CopyData": (15.0, 50_000, MemoryImpact.LOW),
    "MappingDataFlow": (240.0, 100_000, MemoryImpact.HIGH),
    "DatabricksNotebook": (120.0, 80_000, MemoryImpact.MEDIUM),
    "ForEach": (2.0, None, MemoryImpact.LOW),
    "IfCondition": (1.0, None, MemoryImpact.LOW),
    "Switch": (1.0, None, MemoryImpact.LOW),
    "ExecutePipeline": (10.0, None, MemoryImpact.LOW),
    "WebActivity": (3.0, None, MemoryImpact.LOW),
    "SetVariable": (1.0, None, MemoryImpact.LOW),
    "Validation": (5.0, None, MemoryImpact.LOW),
    "GetMetadata": (3.0, None, MemoryImpact.LOW),
    "Filter": (1.0, None, MemoryImpact.LOW),
}
ADF_DEFAULT_COST: tuple[float, float | None, MemoryImpact] = (5.0, None, MemoryImpact.LOW)
DEFAULT_WAIT_SECONDS = 5.0


def adf_node_cost(node: Node, rows: float) -> NodeCost:
    if node.category == "Wait":
        wait = _number(node, "waitTimeInSeconds", DEFAULT_WAIT_SECONDS)
        return NodeCost(duration=wait + NODE_OVERHEAD_SECONDS, memory_impact=MemoryImpact.LOW)

    overhead, speed, impact = ADF_ACTIVITY_COSTS.get(node.category, ADF_DEFAULT_COST)
    duration = overhead + (rows / speed if speed else 0.0)
    return NodeCost(duration=duration, memory_impact=impact, memory_mb=_IMPACT_MEMORY_MB[impact])


# ===== DATABRICKS =====

# category -> (startup seconds, rows/second, memory impact, base DBU)
DATABRICKS_TASK_COSTS: dict[str, tuple[float, float, MemoryImpact, float]] = {
    "KafkaStream": (0.5, 100_000, MemoryImpact.LOW, 0.05),
    "DataFrameTransform": (0.5, 300_000, MemoryImpact.MEDIUM, 0.15),
    "DeltaLakeMerge": (1.0, 100_000, MemoryImpact.HIGH, 0.2),
    "SparkSQLQuery": (0.5, 250_000, MemoryImpact.MEDIUM, 0.15),
    "MLflowModelTraining": (30.0, 50_000, MemoryImpact.HIGH, 0.3),
}
# kind fallbacks when the category has no entry of its own
DATABRICKS_KIND_COSTS: dict[NodeKind, tuple[float, float, MemoryImpact, float]] = {
    NodeKind.DATA_SOURCE: (1.0, 200_000, MemoryImpact.LOW, 0.1),
    NodeKind.OUTPUT: (0.5, 150_000, MemoryImpact.LOW, 0.1),
    NodeKind.NOTEBOOK: (2.0, 250_000, MemoryImpact.MEDIUM, 0.3),
}
DATABRICKS_DEFAULT_COST: tuple[float, float, MemoryImpact, float] = (0.5, 250_000, MemoryImpact.LOW, 0.1)
DBU_SCALE_ROWS = 1_000_000


def databricks_node_cost(node: Node, rows: float, dbu_price_usd: float) -> NodeCost:
    entry = DATABRICKS_TASK_COSTS.get(node.category) or DATABRICKS_KIND_COSTS.get(node.kind) or DATABRICKS_DEFAULT_COST
    startup, speed, impact, base_dbu = entry
    dbu = base_dbu * max(1.0, rows / DBU_SCALE_ROWS)
    return NodeCost(
        duration=startup + rows / speed,
        memory_impact=impact,
        memory_mb=_IMPACT_MEMORY_MB[impact],
        cost=dbu * dbu_price_usd,
    )


# Infrastructure nodes describe where tasks run, not tasks themselves
_NON_TASK_KINDS: dict[Platform, frozenset[NodeKind]] = {
    Platform.SSIS: frozenset(),
    Platform.ADF: frozenset(),
    Platform.DATABRICKS: frozenset({NodeKind.CLUSTER}),
}


def propagate_rows(analyzer: GraphAnalyzer, nodes: dict[str, Node], nominal: float) -> dict[str, tuple[float, float]]:
    """Rows processed and rows emitted per node.

    Returns:
        node id -> (rows_in, rows_out), for every node.
    """
    ordered, blocked = analyzer.topological_order()
    flows: dict[str, tuple[float, float]] = {}
    for node_id in ordered:
        node = nodes[node_id]
        upstream = [flows[source][1] for source in analyzer.predecessors(node_id)]
        if not upstream:
            rows_in = nominal
        elif node.category in UNION_CATEGORIES:
            rows_in = sum(upstream)
        else:
            rows_in = max(upstream)
        rows_out = rows_in * AGGREGATE_REDUCTION if node.category in AGGREGATE_CATEGORIES else rows_in
        flows[node_id] = (rows_in, rows_out)
    for node_id in blocked:
        flows[node_id] = (nominal, nominal)
    return flows


def simulate(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    nominal_row_count: int,
    platform: Platform | str,
    settings: EngineSettings | None = None,
    seed: int | None = None,
) -> SimulationResult:
    """Estimate duration, memory/cost and the bottleneck of one run.

    Args:
        nodes: Graph nodes (never mutated).
        edges: Graph edges; dangling edges are ignored.
        nominal_row_count: Rows entering every node without inputs.
        platform: Selects the cost model.
        settings: Memory baseline/cap and DBU price. Defaults apply when None.
        seed: When given, every node duration is scaled by a reproducible
            factor in [0.8, 1.2].

    Raises:
        ValueError: If nominal_row_count is negative.
    """
    if nominal_row_count < 0:
        raise ValueError(f"nominal_row_count must be >= 0, got {nominal_row_count}")
    platform = parse_platform(platform)
    settings = settings or EngineSettings()
    rng = random.Random(seed) if seed is not None else None

    node_map = {node.id: node for node in nodes if node.kind not in _NON_TASK_KINDS[platform]}
    analyzer = GraphAnalyzer(node_map, edges)
    flows = propagate_rows(analyzer, node_map, float(nominal_row_count))

    metrics: list[NodeMetric] = []
    memory = settings.base_memory_mb
    bottleneck: NodeMetric | None = None
    for node in node_map.values():
        rows_in, _ = flows[node.id]
        if platform == Platform.SSIS:
            cost = ssis_node_cost(node, rows_in)
        elif platform == Platform.ADF:
            cost = adf_node_cost(node, rows_in)
        else:
            cost = databricks_node_cost(node, rows_in, settings.dbu_price_usd)
        duration = cost.duration * rng.uniform(1 - JITTER, 1 + JITTER) if rng else cost.duration
        memory += cost.memory_mb
        metric = NodeMetric(
            node_id=node.id,
            name=node.name or node.category,
            duration=duration,
            rows_processed=rows_in,
            memory_impact=cost.memory_impact,
            cost=cost.cost,
        )
        metrics.append(metric)
        if bottleneck is None or metric.duration > bottleneck.duration:
            bottleneck = metric

    total = _total_duration(platform, [metric.duration for metric in metrics])
    if bottleneck is not None:
        metrics = [replace(metric, is_bottleneck=metric.node_id == bottleneck.node_id) for metric in metrics]
    metrics.sort(key=lambda metric: metric.duration, reverse=True)

    estimated_cost = sum(metric.cost or 0.0 for metric in metrics) if platform == Platform.DATABRICKS else None
    result = SimulationResult(
        platform=platform,
        total_duration=total,
        memory_mb=min(memory, settings.memory_cap_mb),
        bottleneck_node_id=bottleneck.node_id if bottleneck else None,
        node_metrics=tuple(metrics),
        throughput=nominal_row_count / total if total > 0 else 0.0,
        estimated_cost=estimated_cost,
    )
    logger.debug(
        "Simulation complete",
        platform=platform.value,
        nodes=len(metrics),
        total_duration=round(total, 3),
        bottleneck=result.bottleneck_node_id,
    )
    return result


def _total_duration(platform: Platform, durations: list[float]) -> float:
    if not durations:
        return 0.0
    if platform == Platform.SSIS:
        # Streaming: the slowest node dominates, the rest add backpressure
        ranked = sorted(durations, reverse=True)
        return ranked[0] + BACKPRESSURE_FACTOR * sum(ranked[1:])
    return sum(durations)
