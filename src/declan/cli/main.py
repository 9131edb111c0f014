"""CLI entry point for declan.

Invoked as::

    declan [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m declan.cli.main

Commands
--------
analyze     Run the pipeline over parsed-declaration documents
evaluate    Statically evaluate one expression document
handlers    List registered handlers in run order
version     Show version information
"""
from __future__ import annotations

import dataclasses
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
import yaml
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from declan.ast.nodes import ParsedFile
    from declan.diagnostics import Diagnostic
    from declan.pipeline.results import AnalyzedFile

console = Console()
err_console = Console(stderr=True)


def _load_or_exit(path: str) -> "ParsedFile":
    """Load a parsed-declaration document, exiting on error."""
    from declan.ast.serializer import DeclarationSourceError, load_parsed_file

    try:
        return load_parsed_file(path)
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {path}")
        sys.exit(1)
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {path}: {exc}")
        sys.exit(1)
    except DeclarationSourceError as exc:
        err_console.print(f"[red]Error:[/red] {path}: {exc}")
        sys.exit(1)


def _severity_color(severity_name: str) -> str:
    """Map a DiagnosticSeverity name to a Rich color string."""
    return {"ERROR": "red", "WARNING": "yellow"}.get(severity_name, "white")


def _diagnostics_table(title: str, diagnostics: list["Diagnostic"]) -> Table:
    table = Table(title=title, show_lines=True)
    table.add_column("Severity", style="bold", min_width=10)
    table.add_column("Code", min_width=8)
    table.add_column("Location", min_width=10)
    table.add_column("Handler")
    table.add_column("Message")
    for d in diagnostics:
        color = _severity_color(d.severity.name)
        table.add_row(
            f"[{color}]{d.severity.name}[/{color}]",
            d.code,
            str(d.location),
            d.handler or "",
            d.message + (f"\n[dim]hint: {d.suggestion}[/dim]" if d.suggestion else ""),
        )
    return table


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="declan")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log pipeline steps")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write debug logs to this file",
)
def cli(verbose: bool, log_file: Path | None) -> None:
    """Pluggable analysis and code generation for annotated declarations."""
    from declan.logging import configure_logging

    configure_logging(verbose=verbose, log_file=log_file)


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from declan import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]declan[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# handlers command
# ---------------------------------------------------------------------------


@cli.command(name="handlers")
@click.option("--entrypoints/--no-entrypoints", default=True, help="Include installed third-party handlers")
def handlers_command(entrypoints: bool) -> None:
    """List registered handlers in the order they run."""
    from declan.handlers import default_registry

    if entrypoints:
        default_registry.load_entrypoints()

    table = Table(title="Registered handlers")
    table.add_column("#", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Exclusivity")
    table.add_column("Class")
    for index, name in enumerate(default_registry.names(), start=1):
        cls = default_registry.get(name)
        table.add_row(str(index), name, cls.exclusivity.name.lower(), cls.__qualname__)
    console.print(table)


# ---------------------------------------------------------------------------
# evaluate command
# ---------------------------------------------------------------------------


@cli.command(name="evaluate")
@click.argument("expression")
@click.option("--partial", is_flag=True, default=False, help="Keep partly resolvable composites")
def evaluate_command(expression: str, partial: bool) -> None:
    """Statically evaluate an expression document.

    EXPRESSION is a JSON expression node, e.g. '{"kind": "string", "value": "x"}'.
    """
    from declan.ast.serializer import DeclarationSourceError, ParsedFileSerializer
    from declan.evaluator import evaluate, is_unknown

    try:
        node = ParsedFileSerializer().expr_from_dict(json.loads(expression))
    except (json.JSONDecodeError, DeclarationSourceError) as exc:
        err_console.print(f"[red]Error:[/red] Invalid expression: {exc}")
        sys.exit(1)

    value = evaluate(node, partial=partial)
    if is_unknown(value):
        console.print("[yellow]UNKNOWN[/yellow]")
        sys.exit(2)
    console.print_json(json.dumps(value, default=repr))


# ---------------------------------------------------------------------------
# analyze command
# ---------------------------------------------------------------------------


@cli.command(name="analyze")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=False))
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to declan.yml (defaults to ./declan.yml)",
)
@click.option("--strict", is_flag=True, default=False, help="Treat warnings as errors")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "yaml"], case_sensitive=False),
    default="table",
    help="Output format",
)
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
def analyze_command(
    files: tuple[str, ...],
    config_path: Path | None,
    strict: bool,
    output_format: str,
    output: str | None,
) -> None:
    """Analyze parsed-declaration documents.

    FILES are JSON or YAML documents produced by a front-end parser.
    """
    from declan.config import ConfigError, load_config
    from declan.pipeline import Analyzer, analyzed_file_to_dict
    from declan.plugins.registry import PluginNotFoundError

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        err_console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)
    if strict:
        config = dataclasses.replace(config, strict=True)

    parsed_files = [_load_or_exit(path) for path in files]
    try:
        analyzer = Analyzer.from_config(config, parsed_files)
    except PluginNotFoundError as exc:
        err_console.print(f"[red]Config error:[/red] {exc.args[0]}")
        sys.exit(1)

    results = analyzer.analyze_files(parsed_files)
    has_errors = any(r.has_errors for r in results)

    if output_format == "table":
        for analyzed in results:
            _print_table_report(analyzed)
    else:
        data = [analyzed_file_to_dict(r) for r in results]
        if output_format == "json":
            text = json.dumps(data, indent=2, ensure_ascii=False)
        else:
            text = yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
        if output:
            Path(output).write_text(text, encoding="utf-8")
            console.print(f"[green]Report written to[/green] {output}")
        else:
            click.echo(text)

    if has_errors:
        sys.exit(1)


def _print_table_report(analyzed: "AnalyzedFile") -> None:
    path = analyzed.source_file.path

    table = Table(title=f"Analysis: {path}", show_lines=True)
    table.add_column("Declaration", style="bold")
    table.add_column("Handlers")
    table.add_column("Artifacts")
    for item in analyzed.declarations:
        table.add_row(
            item.name,
            ", ".join(item.handler_names),
            ", ".join(a.name for a in item.artifacts),
        )
    if analyzed.declarations:
        console.print(table)
    else:
        console.print(f"[dim]{path}: no annotated declarations[/dim]")

    diagnostics = analyzed.all_diagnostics
    if diagnostics:
        console.print(_diagnostics_table(f"Diagnostics: {path}", diagnostics))
    errors = [d for d in diagnostics if d.is_error]
    console.print(
        f"[bold]Summary:[/bold] {len(analyzed.declarations)} declaration(s), "
        f"{len(errors)} error(s), {len(diagnostics) - len(errors)} warning(s)\n"
    )


if __name__ == "__main__":
    cli()
