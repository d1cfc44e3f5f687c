# src/pipecanvas/engine/validation/structural.py
"""Structural rules shared by every platform.

Dangling references and cycles are always errors. Degree limits and the
reachability/isolation checks are parameterized by the platform's
RuleTable (which kinds are sources, sinks, single-input, ...).
"""

from __future__ import annotations

from pipecanvas.contracts.results import ValidationResult
from pipecanvas.core.graph.models import Edge, Node
from pipecanvas.engine.validation.context import RuleContext, error, make_result, warning
from pipecanvas.engine.validation.table import RuleTable


def validate_edge(edge: Edge, ctx: RuleContext, table: RuleTable) -> list[ValidationResult]:
    """Edge-level results: dangling reference, then cross-type compatibility."""
    missing = [endpoint for endpoint in (edge.source, edge.target) if endpoint not in ctx.nodes]
    if missing:
        names = ", ".join(f"'{node_id}'" for node_id in dict.fromkeys(missing))
        return [
            error(
                edge.id,
                f"Invalid component references: edge points to missing node(s) {names}",
                suggestion="Delete the connection or restore the missing node",
                nodes=[endpoint for endpoint in (edge.source, edge.target) if endpoint in ctx.nodes],
                edges=[edge.id],
            )
        ]

    source = ctx.node(edge.source)
    target = ctx.node(edge.target)
    verdict = table.compatibility.get((source.category, target.category))
    if verdict is None:
        return []
    return [make_result(verdict.severity, edge.id, verdict.message, verdict.suggestion, [source.id, target.id], [edge.id])]


def validate_cycles(ctx: RuleContext) -> list[ValidationResult]:
    """One error per cyclic component, naming all of its nodes and edges."""
    results: list[ValidationResult] = []
    for cycle in ctx.analyzer.find_cycles():
        members = " -> ".join(cycle.node_ids)
        if len(cycle.node_ids) == 1:
            message = f"Circular dependency detected: '{cycle.node_ids[0]}' is connected to itself. Data flow must be acyclic."
        else:
            message = f"Circular dependency detected between {members}. Data flow must be acyclic."
        results.append(
            error(
                "cycle:" + ",".join(cycle.node_ids),
                message,
                suggestion="Remove one of the connections that closes the loop",
                nodes=cycle.node_ids,
                edges=cycle.edge_ids,
            )
        )
    return results


def validate_node_structure(node: Node, ctx: RuleContext, table: RuleTable) -> list[ValidationResult]:
    """Degree limits, reachability and isolation for one node."""
    results: list[ValidationResult] = []
    inputs = ctx.inputs(node)
    outputs = ctx.outputs(node)
    label = node.category or node.kind.value

    if node.kind in table.source_kinds and inputs:
        results.append(
            error(
                node.id,
                "Source components cannot receive input connections",
                nodes=[node.id],
                edges=[edge.id for edge in inputs],
            )
        )

    if node.kind in table.sink_kinds:
        if outputs:
            results.append(
                error(
                    node.id,
                    "Destination components cannot send output connections",
                    nodes=[node.id],
                    edges=[edge.id for edge in outputs],
                )
            )
        if not inputs:
            results.append(
                warning(
                    node.id,
                    "Destination has no input connection; nothing will be written to it",
                    suggestion="Connect a source or transformation to this destination",
                    nodes=[node.id],
                )
            )

    if node.kind in table.requires_io_kinds:
        if not inputs:
            results.append(error(node.id, "Transformation needs at least one input", nodes=[node.id]))
        if not outputs:
            results.append(warning(node.id, "Transformation should have at least one output", nodes=[node.id]))

    if node.kind in table.single_output_kinds and node.category not in table.multi_output_categories and len(outputs) > 1:
        results.append(
            error(
                node.id,
                f"{label} can only have one output connection. "
                "Use Multicast if you need to send data to multiple destinations.",
                nodes=[node.id],
                edges=[edge.id for edge in outputs],
            )
        )

    if node.kind in table.single_input_kinds and node.category not in table.multi_input_categories and len(inputs) > 1:
        allowed = ", ".join(sorted(table.multi_input_categories)) or "none"
        results.append(
            error(
                node.id,
                f"{label} cannot accept multiple inputs. Categories that accept multiple inputs: {allowed}.",
                nodes=[node.id],
                edges=[edge.id for edge in inputs],
            )
        )

    if node.kind in table.flow_kinds and table.sink_kinds:
        if node.id not in ctx.nodes_reaching(table.sink_kinds):
            results.append(
                warning(
                    node.id,
                    "This component has no path to a destination. Data will not be loaded anywhere.",
                    nodes=[node.id],
                )
            )

    if ctx.node_count > 1 and not inputs and not outputs:
        results.append(
            warning(
                node.id,
                "Component is isolated (no inputs or outputs).",
                suggestion="Connect it to the pipeline or remove it",
                nodes=[node.id],
            )
        )

    return results
