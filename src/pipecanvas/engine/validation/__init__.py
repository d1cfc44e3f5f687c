"""Validation engine: shared structural rules plus one rule table per platform."""

from pipecanvas.engine.validation.context import RuleContext
from pipecanvas.engine.validation.engine import RULE_TABLES, blocking_results, get_rule_table, validate
from pipecanvas.engine.validation.table import Compatibility, GraphRule, NodeRule, RuleTable

__all__ = [
    "RULE_TABLES",
    "Compatibility",
    "GraphRule",
    "NodeRule",
    "RuleContext",
    "RuleTable",
    "blocking_results",
    "get_rule_table",
    "validate",
]
