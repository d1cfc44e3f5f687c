# src/pipecanvas/cli.py
"""pipecanvas Command Line Interface.

Entry point for the pipecanvas CLI tool. Every command reads a persisted
snapshot file, loads it into a PipelineEditor and reports on it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from pipecanvas import __version__
from pipecanvas.cli_formatters import (
    Formatters,
    PreviewReport,
    ValidationReport,
    create_console_formatters,
    create_json_formatters,
    emit,
)
from pipecanvas.contracts.enums import Platform
from pipecanvas.contracts.errors import GraphNotRunnableError, SnapshotLoadError, UnknownPlatformError
from pipecanvas.core.config import EngineSettings, load_settings
from pipecanvas.core.persistence import encode_share_link, loads_snapshot
from pipecanvas.engine.editor import PipelineEditor

__all__ = ["app"]

OutputFormat = Literal["console", "json"]

app = typer.Typer(
    name="pipecanvas",
    help="pipecanvas: validate, simulate and preview visual data pipelines.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pipecanvas version {__version__}")
        raise typer.Exit()


def _format_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    panel = Panel(
        content,
        title=f"[red bold]❌ {title}[/]",
        border_style="red",
        padding=(0, 1),
    )
    console.print(panel)


def _load_engine_settings(settings_path: Path | None) -> EngineSettings:
    if settings_path is None:
        return EngineSettings()
    try:
        return load_settings(settings_path.expanduser())
    except (YamlParserError, YamlScannerError) as e:
        _format_error(
            title="YAML Syntax Error",
            message=f"Failed to parse {settings_path.name}",
            details=[str(e.problem)] if hasattr(e, "problem") else None,
            hint="Check for unclosed brackets, incorrect indentation, or invalid characters.",
        )
        raise typer.Exit(1) from None
    except FileNotFoundError:
        _format_error(
            title="File Not Found",
            message=f"Settings file does not exist: {settings_path}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        details = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            details.append(f"{loc}: {error['msg']}")
        _format_error(
            title="Configuration Validation Failed",
            message=f"Invalid settings in {settings_path.name}",
            details=details,
            hint="Check field names, types, and allowed values.",
        )
        raise typer.Exit(1) from None


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """pipecanvas: validate, simulate and preview visual data pipelines."""
    from pipecanvas.core.logging import configure_logging

    engine_settings = _load_engine_settings(settings)
    log_level = "DEBUG" if verbose else engine_settings.log_level
    configure_logging(json_output=json_logs or engine_settings.json_logs, level=log_level)
    ctx.obj = engine_settings


def _open_editor(ctx: typer.Context, file: Path, platform: str | None) -> PipelineEditor:
    """Load a snapshot file into a fresh editor, exiting 1 on any load failure."""
    settings: EngineSettings = ctx.obj if ctx.obj is not None else EngineSettings()
    try:
        editor = PipelineEditor(platform or settings.platform, settings)
    except UnknownPlatformError as e:
        _format_error(title="Unknown Platform", message=str(e))
        raise typer.Exit(1) from None

    try:
        # Read directly: a CLI never deletes the user's input file
        graph = loads_snapshot(file.expanduser().read_bytes(), editor.platform)
    except FileNotFoundError:
        _format_error(
            title="File Not Found",
            message=f"Pipeline file does not exist: {file}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except SnapshotLoadError as e:
        _format_error(
            title="Pipeline Load Failed",
            message=str(e),
            details=[f"reason: {e.reason}"],
            hint="The file must be a pipecanvas snapshot saved for this platform.",
        )
        raise typer.Exit(1) from None

    editor.load(graph)
    return editor


def _formatters(output_format: OutputFormat) -> Formatters:
    return create_json_formatters() if output_format == "json" else create_console_formatters()


@app.command()
def validate(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Pipeline snapshot (JSON)."),
    platform: str | None = typer.Option(None, "--platform", "-p", help="ssis, adf or databricks."),
    output_format: OutputFormat = typer.Option("console", "--format", "-f", help="'console' or 'json'."),
) -> None:
    """Validate a pipeline and list every diagnostic.

    Exits 1 when any blocking error is found.
    """
    editor = _open_editor(ctx, file, platform)
    report = ValidationReport(
        results=editor.results,
        node_count=editor.graph.node_count,
        edge_count=editor.graph.edge_count,
    )
    emit(report, _formatters(output_format))
    if report.error_count:
        raise typer.Exit(1)


@app.command()
def simulate(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Pipeline snapshot (JSON)."),
    rows: int | None = typer.Option(None, "--rows", "-r", min=0, help="Nominal input row count."),
    platform: str | None = typer.Option(None, "--platform", "-p", help="ssis, adf or databricks."),
    seed: int | None = typer.Option(None, "--seed", help="Seed for reproducible duration jitter."),
    output_format: OutputFormat = typer.Option("console", "--format", "-f", help="'console' or 'json'."),
) -> None:
    """Estimate duration, memory/cost and the bottleneck of one run."""
    editor = _open_editor(ctx, file, platform)
    try:
        result = editor.simulate(rows, seed=seed)
    except GraphNotRunnableError as e:
        _format_error(
            title="Pipeline Not Runnable",
            message=f"{len(e.blocking)} blocking error(s) must be fixed first",
            details=[f"{result.edge_or_node_id}: {result.message}" for result in e.blocking],
            hint="Run 'pipecanvas validate' for the full list of diagnostics.",
        )
        raise typer.Exit(1) from None
    emit(result, _formatters(output_format))


@app.command()
def preview(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Pipeline snapshot (JSON)."),
    platform: str | None = typer.Option(None, "--platform", "-p", help="ssis, adf or databricks."),
    sample_size: int | None = typer.Option(None, "--sample-size", "-n", min=1, help="Rows per source node."),
    output_format: OutputFormat = typer.Option("console", "--format", "-f", help="'console' or 'json'."),
) -> None:
    """Show the sample rows each node would produce."""
    editor = _open_editor(ctx, file, platform)
    samples = editor.preview(sample_size)
    report = PreviewReport(
        samples=samples,
        names={node.id: node.name or node.category for node in editor.graph.nodes},
        skipped=[node.id for node in editor.graph.nodes if node.id not in samples],
    )
    emit(report, _formatters(output_format))


@app.command()
def analyze(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Databricks pipeline snapshot (JSON)."),
    output_format: OutputFormat = typer.Option("console", "--format", "-f", help="'console' or 'json'."),
) -> None:
    """Score a Databricks pipeline for common performance problems."""
    editor = _open_editor(ctx, file, Platform.DATABRICKS.value)
    emit(editor.analyze_performance(), _formatters(output_format))


@app.command()
def share(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Pipeline snapshot (JSON)."),
    platform: str | None = typer.Option(None, "--platform", "-p", help="ssis, adf or databricks."),
) -> None:
    """Print a URL-safe share token for a pipeline."""
    editor = _open_editor(ctx, file, platform)
    typer.echo(encode_share_link(editor.graph))


if __name__ == "__main__":
    app()
