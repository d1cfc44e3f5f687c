# src/pipecanvas/engine/validation/adf.py
"""Azure Data Factory activity rule table.

ADF activities have no source/sink roles, so only the shared dangling,
cycle and isolation rules apply structurally. Everything else is presence
and shape checks on activity properties.
"""

from __future__ import annotations

from types import MappingProxyType

from pipecanvas.contracts.enums import Platform
from pipecanvas.contracts.results import ValidationResult
from pipecanvas.core.graph.models import Node
from pipecanvas.engine.validation.context import RuleContext, error, warning
from pipecanvas.engine.validation.table import NodeRule, RuleTable


def activity_name(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    if node.name.strip():
        return []
    return [error(node.id, "Activity name is required.", nodes=[node.id])]


def _required(key: str, message: str, *, blocking: bool = True) -> NodeRule:
    """Build a presence rule for one property."""

    def rule(node: Node, ctx: RuleContext) -> list[ValidationResult]:
        if node.has_prop(key):
            return []
        build = error if blocking else warning
        return [build(node.id, message, nodes=[node.id])]

    rule.__name__ = f"require_{key}"
    return rule


def wait_time_non_negative(node: Node, ctx: RuleContext) -> list[ValidationResult]:
    wait_time = node.prop("waitTimeInSeconds")
    if isinstance(wait_time, bool) or not isinstance(wait_time, int | float):
        return []
    if wait_time >= 0:
        return []
    return [
        error(
            node.id,
            f"Wait time cannot be negative (got {wait_time}).",
            suggestion="Set waitTimeInSeconds to 0 or more",
            nodes=[node.id],
        )
    ]


ADF_TABLE = RuleTable(
    platform=Platform.ADF,
    node_rules=(activity_name,),
    category_rules=MappingProxyType(
        {
            # Copy sources and sinks are configured through a linked service
            "CopyData": (_required("linkedService", "Linked Service should be defined.", blocking=False),),
            "WebActivity": (
                _required("url", "URL is required for Web Activity."),
                _required("method", "HTTP Method is required for Web Activity."),
            ),
            "Wait": (wait_time_non_negative,),
            "ForEach": (_required("items", "Items property is required for ForEach activity."),),
            "IfCondition": (_required("expression", "Expression is required for If Condition."),),
            "Switch": (_required("on", "On property (expression) is required for Switch activity."),),
            "ExecutePipeline": (
                _required(
                    "pipelineReference",
                    "Pipeline Reference is required for Execute Pipeline activity.",
                    blocking=False,
                ),
            ),
            "SetVariable": (_required("variableName", "Variable Name is required."),),
        }
    ),
)
