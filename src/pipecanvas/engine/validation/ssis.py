# src/pipecanvas/engine/validation/ssis.py
"""SSIS data-flow rule table."""

from __future__ import annotations

from types import MappingProxyType

from pipecanvas.contracts.enums import NodeKind, Platform, Severity
from pipecanvas.contracts.results import ValidationResult
from pipecanvas.core.graph.models import Node
from pipecanvas.engine.validation.context import RuleContext, error, info, warning
from pipecanvas.engine.validation.table import Compatibility, RuleTable

_DATA_FLOW_KINDS = frozenset({NodeKind.SOURCE, NodeKind.TRANSFORMATION, NodeKind.DESTINATION})

_GENERIC_SOURCE_NAMES = frozenset({"OLE DB Source", "Flat File Source", "Excel Source", "JSON Source", "XML Source"})

_ERROR_OUTPUT_CATEGORIES = ("Lookup", "OLEDBSource", "OLEDBDestination", "FlatFileSource", "FlatFileDestination")

_CLEANSING_TOKENS = ("trim", "ltrim", "rtrim", "upper", "lower", "replace")


def _is_sorted_feed(node: Node) -> bool:
    return node.category == "Sort" or node.is_sorted


def _expression(node: Node) -> str:
    value = node.prop("expression")
    return value if isinstance(value, str) else ""


# ===== KIND RULES =====


def generic_source_name(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if node.name not in _GENERIC_SOURCE_NAMES:
        return []
    return [
        info(
            node.id,
            'Consider renaming to describe the data source (e.g., "Customer Master Table" instead of "OLE DB Source")',
            nodes=[node.id],
        )
    ]


def hardcoded_connection_string(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    connection = node.prop("connectionString")
    if not isinstance(connection, str) or "Data Source=" not in connection:
        return []
    return [
        warning(
            node.id,
            "Connection string appears to be hardcoded. Consider using connection managers "
            "or configuration files for better maintainability.",
            suggestion="Use SSIS Connection Managers or configuration files instead of hardcoded strings",
            nodes=[node.id],
        )
    ]


# ===== CATEGORY RULES =====


def lookup_reference(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    """A Lookup needs a reference input: configured, or wired as a second input."""
    if node.has_prop("referenceInput") or len(ctx.inputs(node)) >= 2:
        return []
    return [
        error(
            node.id,
            "Lookup requires a reference input (configure referenceInput or connect a reference dataset)",
            suggestion="Set the referenceInput property or connect the reference table as a second input",
            nodes=[node.id],
        )
    ]


def sequential_lookups(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if not any(upstream.category == "Lookup" for upstream in ctx.upstream_nodes(node)):
        return []
    return [
        warning(
            node.id,
            "Multiple lookups in sequence detected. Consider using Merge Join for better "
            "performance when joining large datasets.",
            suggestion="Replace sequential lookups with Merge Join if both inputs are large",
            nodes=[node.id],
        )
    ]


def merge_join_inputs(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    """Exactly two inputs, each a Sort or already marked sorted."""
    inputs = ctx.inputs(node)
    if len(inputs) != 2:
        return [
            error(
                node.id,
                f"Merge Join requires exactly 2 input connections (found {len(inputs)})",
                nodes=[node.id],
                edges=[edge.id for edge in inputs],
            )
        ]

    results: list[ValidationResult] = []
    for edge in inputs:
        upstream = ctx.node(edge.source)
        if _is_sorted_feed(upstream):
            continue
        results.append(
            error(
                node.id,
                f"Merge Join inputs must be sorted: input '{upstream.id}' ({upstream.category}) is not sorted. "
                f"ADD: Sort transformation between '{upstream.id}' and this Merge Join.",
                suggestion=f"Add Sort transformation after '{upstream.id}'",
                nodes=[node.id, upstream.id],
                edges=[edge.id],
            )
        )
    return results


def union_all_shapes(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    upstream = ctx.upstream_nodes(node)
    if len(upstream) < 2:
        return []
    shapes = {source.data_shape for source in upstream}
    if len(shapes) == 1:
        return []
    return [
        error(
            node.id,
            "Union All requires all inputs to have the same column structure "
            f"(found: {', '.join(sorted(shape.value for shape in shapes))})",
            nodes=[node.id, *(source.id for source in upstream)],
        )
    ]


def conditional_split_outputs(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if ctx.outputs(node):
        return []
    return [warning(node.id, "Conditional Split should have at least one output condition", nodes=[node.id])]


def sort_marks_sorted(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    """Marks the node sorted for downstream merge joins (idempotent)."""
    node.is_sorted = True
    return [
        info(
            node.id,
            "Sort component output is marked as sorted for downstream Merge Join",
            nodes=[node.id],
        )
    ]


def multicast_fan_out(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    outputs = ctx.outputs(node)
    if len(outputs) <= 3:
        return []
    return [
        warning(
            node.id,
            f"Multicast is sending data to {len(outputs)} destinations. This multiplies data in memory. "
            "Consider if all outputs are necessary.",
            suggestion="Review if all multicast outputs are required for performance",
            nodes=[node.id],
        )
    ]


def aggregate_hints(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    if ctx.outputs(node):
        results.append(
            info(node.id, "Remember to configure GROUP BY columns in Aggregate component properties", nodes=[node.id])
        )
    upstream = ctx.upstream_nodes(node)
    if upstream and not any(_is_sorted_feed(source) for source in upstream):
        results.append(
            info(
                node.id,
                "Aggregate performance can be improved by sorting input data by GROUP BY columns first.",
                suggestion="Add Sort transformation before Aggregate, sorted by GROUP BY columns",
                nodes=[node.id],
            )
        )
    return results


def data_conversion_hints(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    upstream = ctx.upstream_nodes(node)
    downstream = ctx.downstream_nodes(node)
    if downstream:
        results.append(
            info(
                node.id,
                "Configure target data types in Data Conversion to match destination schema",
                nodes=[node.id],
            )
        )
    if upstream and downstream and upstream[0].data_shape == downstream[0].data_shape:
        results.append(
            warning(
                node.id,
                "Data Conversion may be unnecessary if source and destination already have compatible data types.",
                suggestion="Verify if Data Conversion is required for this transformation",
                nodes=[node.id],
            )
        )
    results.append(
        info(
            node.id,
            "Ensure target data types have sufficient precision and scale to avoid data truncation "
            "(e.g., DECIMAL(18,2) vs DECIMAL(10,2)).",
            suggestion="Verify precision and scale match source data requirements",
            nodes=[node.id],
        )
    )
    return results


def derived_column_hints(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    if ctx.outputs(node):
        results.append(
            info(
                node.id,
                "Use Derived Column for simple calculations. For complex transformations, consider Script Component.",
                nodes=[node.id],
            )
        )

    expression = _expression(node).lower()
    if not expression:
        return results

    handles_nulls = any(token in expression for token in ("isnull", "coalesce", "??"))
    if not handles_nulls and any(operator in expression for operator in "+/*"):
        results.append(
            warning(
                node.id,
                "Derived Column expression may produce NULL values. Consider using ISNULL or COALESCE to handle nulls.",
                suggestion="Add null handling: ISNULL([Column], defaultValue) or COALESCE([Col1], [Col2], defaultValue)",
                nodes=[node.id],
            )
        )
    if any(token in expression for token in ("date", "convert")):
        results.append(
            info(
                node.id,
                "Date format conversions detected. Ensure consistent date formats across all sources "
                "to avoid parsing errors.",
                suggestion="Standardize date formats using CONVERT or FORMAT functions consistently",
                nodes=[node.id],
            )
        )
    return results


def row_count_audit(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    return [
        info(
            node.id,
            "Row Count stores the count in a variable. Ensure you log this variable for audit purposes.",
            nodes=[node.id],
        )
    ]


# ===== GRAPH RULES =====


def best_practices(ctx: RuleContext) -> list[ValidationResult]:
    """Pipeline-wide advisories, emitted once per pass.

    Only data-flow nodes count, and pipelines with fewer than three of them
    get no advice at all.
    """
    data_flow = [node for node in ctx.nodes.values() if node.kind in _DATA_FLOW_KINDS]
    if len(data_flow) < 3:
        return []

    results: list[ValidationResult] = []
    categories = {node.category for node in data_flow}

    if "RowCount" not in categories:
        results.append(
            info(
                "global:row-count",
                "Consider adding Row Count component for auditing and tracking record counts through the pipeline.",
                suggestion="Add Row Count component to track data flow metrics",
            )
        )

    has_validation = any(
        node.category in ("ConditionalSplit", "Lookup")
        or (node.category == "DerivedColumn" and "ISNULL" in _expression(node))
        for node in data_flow
    )
    if not has_validation:
        results.append(
            info(
                "global:data-validation",
                "Consider adding data validation steps (Conditional Split, Lookup, or Derived Column with "
                "validation logic) to ensure data quality.",
                suggestion="Add validation transformations to check data quality before loading",
            )
        )

    if not _has_incremental_pattern(data_flow):
        results.append(
            info(
                "global:incremental-load",
                "For large datasets, consider implementing incremental load strategy using date filters "
                "or change detection.",
                suggestion="Add date-based filtering or CDC pattern for incremental loads",
            )
        )

    has_cleansing = any(
        node.category == "DerivedColumn" and any(token in _expression(node).lower() for token in _CLEANSING_TOKENS)
        for node in data_flow
    )
    if not has_cleansing and "FlatFileSource" in categories:
        results.append(
            info(
                "global:cleansing",
                "Flat File sources may contain inconsistent data. Consider adding data cleansing steps "
                "(TRIM, UPPER, LOWER) in Derived Column.",
                suggestion="Add Derived Column with TRIM, UPPER, or data standardization expressions",
            )
        )

    has_deduplication = any(
        ctx.node(edge.source).category == "Sort" and ctx.node(edge.target).category == "Aggregate"
        for edge in ctx.resolved
    )
    if not has_deduplication:
        results.append(
            info(
                "global:deduplication",
                "Consider adding duplicate detection logic (Sort + Aggregate) if source data may contain duplicates.",
                suggestion="Add Sort followed by Aggregate to remove duplicates based on business key",
            )
        )

    unfiltered_sorts = [
        node
        for node in data_flow
        if node.category == "Sort"
        and ctx.inputs(node)
        and not any(upstream.category == "ConditionalSplit" for upstream in ctx.upstream_nodes(node))
    ]
    if unfiltered_sorts:
        results.append(
            warning(
                "global:sort-prefilter",
                f"Some Sort components ({len(unfiltered_sorts)} total) are operating on large datasets without "
                "pre-filtering. Consider filtering data before sorting to reduce memory usage.",
                suggestion="Add Conditional Split or filter in source query before Sort",
                nodes=[node.id for node in unfiltered_sorts],
            )
        )

    memory_heavy = [
        node for node in data_flow if node.category in ("Aggregate", "MergeJoin") and len(ctx.inputs(node)) > 1
    ]
    if memory_heavy:
        results.append(
            warning(
                "global:memory-intensive",
                f"Some components ({len(memory_heavy)} total: {', '.join(node.category for node in memory_heavy)}) "
                "are memory-intensive. Monitor buffer memory usage, especially with large datasets.",
                suggestion="Consider increasing buffer memory or processing data in smaller batches",
                nodes=[node.id for node in memory_heavy],
            )
        )

    missing_error_output = [
        node for node in data_flow if node.category in _ERROR_OUTPUT_CATEGORIES and len(ctx.outputs(node)) <= 1
    ]
    if missing_error_output:
        results.append(
            warning(
                "global:error-output",
                f"Some components ({len(missing_error_output)} total) support error output but it's not configured. "
                "Configure error output to handle data quality issues and connection failures gracefully.",
                suggestion="Configure error output path to log or handle failed rows separately",
                nodes=[node.id for node in missing_error_output],
            )
        )

    return results


def _has_incremental_pattern(data_flow: list[Node]) -> bool:
    for node in data_flow:
        reference = node.prop("referenceInput")
        if node.category == "Lookup" and isinstance(reference, str) and "last-load" in reference:
            return True
        if node.prop("incrementalLoad") is True:
            return True
        query = node.prop("query")
        if isinstance(query, str) and "WHERE" in query and ("Date" in query or "Modified" in query):
            return True
    return False


SSIS_TABLE = RuleTable(
    platform=Platform.SSIS,
    source_kinds=frozenset({NodeKind.SOURCE}),
    sink_kinds=frozenset({NodeKind.DESTINATION}),
    flow_kinds=frozenset({NodeKind.SOURCE, NodeKind.TRANSFORMATION}),
    requires_io_kinds=frozenset({NodeKind.TRANSFORMATION}),
    single_input_kinds=frozenset({NodeKind.TRANSFORMATION}),
    single_output_kinds=frozenset({NodeKind.TRANSFORMATION}),
    multi_input_categories=frozenset({"UnionAll", "MergeJoin", "Lookup"}),
    multi_output_categories=frozenset({"Multicast", "ConditionalSplit"}),
    skip_kinds=frozenset({NodeKind.CONTROL_FLOW_TASK}),
    compatibility=MappingProxyType(
        {
            ("FlatFileSource", "OLEDBDestination"): Compatibility(
                Severity.ERROR,
                "Cannot connect CSV directly to OLEDB Destination. CSV outputs text data, "
                "but OLEDB expects typed columns.",
                "ADD: Data Conversion transformation between them.",
            ),
            ("OLEDBSource", "ExcelDestination"): Compatibility(
                Severity.WARNING,
                "Warning: Excel has a 65,536 row limit. This may truncate your data.",
                "Consider using CSV Destination instead.",
            ),
            ("ExcelSource", "OLEDBDestination"): Compatibility(
                Severity.ERROR,
                "Excel columns may have mixed types.",
                "ADD: Data Conversion to ensure type consistency.",
            ),
            ("JSONSource", "OLEDBDestination"): Compatibility(
                Severity.ERROR,
                "JSON has nested structures.",
                "ADD: Derived Column to flatten data first.",
            ),
        }
    ),
    kind_rules=MappingProxyType(
        {
            NodeKind.SOURCE: (generic_source_name, hardcoded_connection_string),
            NodeKind.DESTINATION: (hardcoded_connection_string,),
        }
    ),
    category_rules=MappingProxyType(
        {
            "Lookup": (lookup_reference, sequential_lookups),
            "MergeJoin": (merge_join_inputs,),
            "UnionAll": (union_all_shapes,),
            "ConditionalSplit": (conditional_split_outputs,),
            "Sort": (sort_marks_sorted,),
            "Multicast": (multicast_fan_out,),
            "Aggregate": (aggregate_hints,),
            "DataConversion": (data_conversion_hints,),
            "DerivedColumn": (derived_column_hints,),
            "RowCount": (row_count_audit,),
        }
    ),
    graph_rules=(best_practices,),
)
