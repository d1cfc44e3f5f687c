# src/pipecanvas/engine/validation/engine.py
"""validate(): the single entry point of the validation engine.

Contract:
    - Always returns. Graph problems become ValidationResult records.
    - Deterministic: the same (nodes, edges, platform) yields an equal
      result list on every call, in a stable order (edge results in edge
      order, node results in node order, then graph-level results).
    - The only write to the model is the Sort rule's is_sorted flag,
      which is idempotent.
"""

from __future__ import annotations

from collections.abc import Iterable

from pipecanvas.contracts.enums import Platform, parse_platform
from pipecanvas.contracts.results import ValidationResult
from pipecanvas.core.graph.models import Edge, Node
from pipecanvas.core.logging import get_logger
from pipecanvas.engine.validation.adf import ADF_TABLE
from pipecanvas.engine.validation.context import RuleContext
from pipecanvas.engine.validation.databricks import DATABRICKS_TABLE
from pipecanvas.engine.validation.ssis import SSIS_TABLE
from pipecanvas.engine.validation.structural import validate_cycles, validate_edge, validate_node_structure
from pipecanvas.engine.validation.table import RuleTable

logger = get_logger(__name__)

RULE_TABLES: dict[Platform, RuleTable] = {
    Platform.SSIS: SSIS_TABLE,
    Platform.ADF: ADF_TABLE,
    Platform.DATABRICKS: DATABRICKS_TABLE,
}


def get_rule_table(platform: Platform | str) -> RuleTable:
    """Rule table for a platform tag.

    Raises:
        UnknownPlatformError: If the tag names no platform.
    """
    return RULE_TABLES[parse_platform(platform)]


def validate(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    platform: Platform | str,
) -> list[ValidationResult]:
    """Produce the complete result list for one frame.

    Args:
        nodes: Nodes of the graph, in graph order.
        edges: Edges of the graph, in graph order. Edges may dangle.
        platform: Selects the rule table.

    Returns:
        Every diagnostic for the frame. Errors are blocking; warnings and
        info never are.
    """
    table = get_rule_table(platform)
    ctx = RuleContext(list(nodes), list(edges))

    results: list[ValidationResult] = []
    for edge in ctx.edges:
        results.extend(validate_edge(edge, ctx, table))

    for node in ctx.nodes.values():
        results.extend(validate_node_structure(node, ctx, table))
        for rule in table.rules_for(node):
            results.extend(rule(node, ctx))

    results.extend(validate_cycles(ctx))
    for graph_rule in table.graph_rules:
        results.extend(graph_rule(ctx))

    logger.debug(
        "Validation pass complete",
        platform=table.platform.value,
        nodes=ctx.node_count,
        edges=len(ctx.edges),
        errors=sum(1 for result in results if result.is_blocking),
        total=len(results),
    )
    return results


def blocking_results(results: Iterable[ValidationResult]) -> list[ValidationResult]:
    """Error-severity results only."""
    return [result for result in results if result.is_blocking]
