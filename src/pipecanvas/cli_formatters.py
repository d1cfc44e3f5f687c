# src/pipecanvas/cli_formatters.py
"""CLI report formatter factories.

Each factory returns a dict mapping a report type to the handler that
prints it, one map for console (human-readable) and one for JSON
(structured) output. Commands build a report and hand it to ``emit``.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

import typer

from pipecanvas.contracts.enums import Severity
from pipecanvas.contracts.results import PerformanceAnalysis, SimulationResult, ValidationResult
from pipecanvas.contracts.types import SampleRow

Formatters: TypeAlias = dict[type, Callable[[Any], None]]

_SEVERITY_SYMBOLS = {Severity.ERROR: "✗", Severity.WARNING: "⚠", Severity.INFO: "ℹ"}


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Results of one validation pass plus the graph size they cover."""

    results: list[ValidationResult]
    node_count: int
    edge_count: int

    @property
    def error_count(self) -> int:
        return sum(1 for result in self.results if result.is_blocking)

    @property
    def warning_count(self) -> int:
        return sum(1 for result in self.results if result.severity == Severity.WARNING)


@dataclass(frozen=True, slots=True)
class PreviewReport:
    """Preview samples keyed by node id, with display names."""

    samples: dict[str, list[SampleRow]]
    names: dict[str, str]
    skipped: list[str]


def format_duration(seconds: float) -> str:
    """Render seconds as ``12.3s``, ``4m 5s`` or ``1h 2m``."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = math.floor(seconds / 60)
    remaining_seconds = math.floor(seconds % 60)
    if minutes < 60:
        return f"{minutes}m {remaining_seconds}s"
    return f"{minutes // 60}h {minutes % 60}m"


def format_megabytes(megabytes: float) -> str:
    """Render a memory figure as ``512 MB`` or ``1.50 GB``."""
    if megabytes < 1024:
        return f"{round(megabytes)} MB"
    return f"{megabytes / 1024:.2f} GB"


def validation_result_to_dict(result: ValidationResult) -> dict[str, Any]:
    return {
        "id": result.edge_or_node_id,
        "severity": result.severity.value,
        "is_valid": result.is_valid,
        "message": result.message,
        "suggestion": result.suggestion,
        "affected_node_ids": list(result.affected_node_ids),
        "affected_edge_ids": list(result.affected_edge_ids),
    }


def simulation_to_dict(result: SimulationResult) -> dict[str, Any]:
    return {
        "platform": result.platform.value,
        "total_duration": result.total_duration,
        "memory_mb": result.memory_mb,
        "throughput": result.throughput,
        "bottleneck": result.bottleneck_node_id,
        "estimated_cost": result.estimated_cost,
        "nodes": [
            {
                "id": metric.node_id,
                "name": metric.name,
                "duration": metric.duration,
                "rows_processed": metric.rows_processed,
                "memory_impact": metric.memory_impact.value,
                "is_bottleneck": metric.is_bottleneck,
                "cost": metric.cost,
            }
            for metric in result.node_metrics
        ],
    }


def analysis_to_dict(analysis: PerformanceAnalysis) -> dict[str, Any]:
    return {
        "score": analysis.score,
        "issues": [
            {
                "id": issue.issue_id,
                "severity": issue.severity.value,
                "node_id": issue.node_id,
                "node_name": issue.node_name,
                "issue": issue.issue,
                "impact": issue.impact,
                "recommendation": issue.recommendation,
                "estimated_improvement": issue.estimated_improvement,
            }
            for issue in analysis.issues
        ],
        "summary": {
            "shuffle_operations": analysis.summary.shuffle_operations,
            "data_skew": analysis.summary.data_skew,
            "caching_opportunities": analysis.summary.caching_opportunities,
            "broadcast_join_opportunities": analysis.summary.broadcast_join_opportunities,
            "z_ordering_opportunities": analysis.summary.z_ordering_opportunities,
        },
    }


def create_console_formatters() -> Formatters:
    """Create console formatters for human-readable CLI output."""

    def _format_validation(report: ValidationReport) -> None:
        for result in report.results:
            symbol = _SEVERITY_SYMBOLS[result.severity]
            typer.echo(f"{symbol} [{result.severity.value.upper()}] {result.edge_or_node_id}: {result.message}")
            if result.suggestion:
                typer.echo(f"    Suggestion: {result.suggestion}")
        status = "✅ Pipeline valid" if report.error_count == 0 else "❌ Pipeline has blocking errors"
        typer.echo(
            f"\n{status}: {report.node_count} nodes, {report.edge_count} edges | "
            f"{report.error_count} error(s), {report.warning_count} warning(s), "
            f"{len(report.results)} result(s) total"
        )

    def _format_simulation(result: SimulationResult) -> None:
        typer.echo(f"Platform: {result.platform.value}")
        typer.echo(f"Estimated duration: {format_duration(result.total_duration)}")
        typer.echo(f"Estimated memory: {format_megabytes(result.memory_mb)}")
        typer.echo(f"Throughput: {result.throughput:,.0f} rows/sec")
        if result.estimated_cost is not None:
            typer.echo(f"Estimated cost: ${result.estimated_cost:.2f}")
        if result.bottleneck_node_id is not None:
            typer.echo(f"Bottleneck: {result.bottleneck_node_id}")
        for metric in result.node_metrics:
            marker = " ← bottleneck" if metric.is_bottleneck else ""
            typer.echo(
                f"  {metric.name} ({metric.node_id}): {format_duration(metric.duration)} | "
                f"{metric.rows_processed:,.0f} rows | memory {metric.memory_impact.value}{marker}"
            )

    def _format_preview(report: PreviewReport) -> None:
        for node_id, rows in report.samples.items():
            typer.echo(f"== {report.names.get(node_id, node_id)} ({node_id}): {len(rows)} row(s)")
            for row in rows:
                typer.echo("  " + ", ".join(f"{key}={value}" for key, value in row.items()))
        if report.skipped:
            typer.echo(f"\nNot previewed (cycle or unreachable): {', '.join(report.skipped)}")

    def _format_analysis(analysis: PerformanceAnalysis) -> None:
        typer.echo(f"Performance score: {analysis.score}/100")
        for issue in analysis.issues:
            typer.echo(f"  [{issue.severity.value.upper()}] {issue.node_name}: {issue.issue}")
            typer.echo(f"    Impact: {issue.impact}")
            typer.echo(f"    Recommendation: {issue.recommendation}")
            if issue.estimated_improvement:
                typer.echo(f"    Estimated improvement: {issue.estimated_improvement}")

    return {
        ValidationReport: _format_validation,
        SimulationResult: _format_simulation,
        PreviewReport: _format_preview,
        PerformanceAnalysis: _format_analysis,
    }


def create_json_formatters() -> Formatters:
    """Create JSON formatters for structured CLI output."""

    def _format_validation_json(report: ValidationReport) -> None:
        typer.echo(
            json.dumps(
                {
                    "valid": report.error_count == 0,
                    "nodes": report.node_count,
                    "edges": report.edge_count,
                    "results": [validation_result_to_dict(result) for result in report.results],
                }
            )
        )

    def _format_simulation_json(result: SimulationResult) -> None:
        typer.echo(json.dumps(simulation_to_dict(result)))

    def _format_preview_json(report: PreviewReport) -> None:
        typer.echo(json.dumps({"samples": report.samples, "skipped": report.skipped}))

    def _format_analysis_json(analysis: PerformanceAnalysis) -> None:
        typer.echo(json.dumps(analysis_to_dict(analysis)))

    return {
        ValidationReport: _format_validation_json,
        SimulationResult: _format_simulation_json,
        PreviewReport: _format_preview_json,
        PerformanceAnalysis: _format_analysis_json,
    }


def emit(report: object, formatters: Formatters) -> None:
    """Print a report with the handler registered for its type.

    Raises:
        KeyError: If no handler is registered for the report type.
    """
    formatters[type(report)](report)
