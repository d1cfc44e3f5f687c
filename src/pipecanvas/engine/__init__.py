"""Engine: validation, simulation, preview, performance analysis and the editor."""

from pipecanvas.engine.editor import PipelineEditor
from pipecanvas.engine.performance_analysis import analyze_performance
from pipecanvas.engine.preview import preview, sample_for
from pipecanvas.engine.simulation import simulate
from pipecanvas.engine.validation import RULE_TABLES, RuleTable, blocking_results, get_rule_table, validate

__all__ = [
    "RULE_TABLES",
    "PipelineEditor",
    "RuleTable",
    "analyze_performance",
    "blocking_results",
    "get_rule_table",
    "preview",
    "sample_for",
    "simulate",
    "validate",
]
