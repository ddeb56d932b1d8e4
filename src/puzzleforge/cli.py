"""PuzzleForge CLI - typer application entry point."""

from __future__ import annotations

import atexit
import json
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from puzzleforge.observability import close_file_logging, configure_logging

if TYPE_CHECKING:
    from puzzleforge.config import ValidationConfig
    from puzzleforge.models.document import ProjectDocument
    from puzzleforge.validation.types import Diagnostic

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="pf",
    help="PuzzleForge: validate and export stage/puzzle/presentation projects.",
    no_args_is_help=True,
)
console = Console()

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False

LEVEL_STYLES = {
    "error": "[red]✗ error[/red]",
    "warning": "[yellow]! warning[/yellow]",
}

ProjectFileArg = Annotated[
    Path,
    typer.Argument(help="Project file (.puzzle.json) or export bundle."),
]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log: Annotated[
        bool,
        typer.Option(
            "--log",
            help="Enable file logging to {project dir}/logs/validation.jsonl.",
        ),
    ] = False,
) -> None:
    """PuzzleForge: validate and export stage/puzzle/presentation projects."""
    global _verbose, _log_enabled
    _verbose = verbose
    _log_enabled = log

    # File logging is configured later, once the project directory is known
    configure_logging(verbosity=verbose)


def _configure_project_logging(project_dir: Path) -> None:
    """Configure file logging if --log flag was set."""
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_to_file=True, project_path=project_dir)
        atexit.register(close_file_logging)


def _load(project_file: Path) -> tuple[ProjectDocument, ValidationConfig]:
    """Load the project and its validation config, exiting with code 2 on failure."""
    from puzzleforge.config import ValidationConfigError, load_validation_config
    from puzzleforge.loader import ProjectLoadError, load_project

    project_dir = project_file.parent
    _configure_project_logging(project_dir)

    try:
        document = load_project(project_file)
        config = load_validation_config(project_dir)
    except (ProjectLoadError, ValidationConfigError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2) from e
    return document, config


def _diagnostics_table(title: str, diagnostics: list[Diagnostic]) -> Table:
    # Names, asset names and messages are user text; keep them out of markup.
    table = Table(title=escape(title))
    table.add_column("Level", style="bold", no_wrap=True)
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Location", style="dim")
    table.add_column("Message")
    for diag in diagnostics:
        level = LEVEL_STYLES.get(str(diag.level), str(diag.level))
        table.add_row(level, str(diag.code), escape(diag.location), escape(diag.message))
    return table


@app.command()
def version() -> None:
    """Show version information."""
    from puzzleforge import __version__

    console.print(f"PuzzleForge v{__version__}")


@app.command()
def validate(
    project_file: ProjectFileArg,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON instead of a table."),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as blocking."),
    ] = False,
) -> None:
    """Validate a project and list its diagnostics.

    Exits with code 1 when blocking diagnostics exist (errors, or warnings
    with --strict), and 2 when the project or config cannot be loaded.
    """
    from puzzleforge.validation import build_report

    document, config = _load(project_file)
    if strict:
        config = replace(config, fail_on_warnings=True)

    report = build_report(document, config)
    blocking = report.has_errors or (config.fail_on_warnings and report.has_warnings)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        if report.diagnostics:
            console.print()
            table = _diagnostics_table(f"Validation: {document.meta.name}", report.diagnostics)
            console.print(table)
        console.print()
        icon = "[red]✗[/red]" if blocking else "[green]✓[/green]"
        console.print(f"{icon} {escape(document.meta.name)}: {report.summary}")

    if blocking:
        raise typer.Exit(1)


@app.command()
def export(
    project_file: ProjectFileArg,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Directory to write the bundle to (default: next to the project file).",
        ),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Refuse to export with warnings."),
    ] = False,
) -> None:
    """Validate a project and write its runtime export bundle."""
    from puzzleforge.export import export_project
    from puzzleforge.validation import ExportBlockedError

    document, config = _load(project_file)
    if strict:
        config = replace(config, fail_on_warnings=True)

    try:
        path = export_project(document, output or project_file.parent, config)
    except ExportBlockedError as e:
        console.print(_diagnostics_table("Export blocked", e.diagnostics))
        console.print(f"[red]✗[/red] Export failed: {escape(str(e))}")
        raise typer.Exit(1) from e

    console.print(f"[green]✓[/green] Exported [bold]{escape(document.meta.name)}[/bold]")
    console.print(f"  Bundle: [cyan]{escape(str(path))}[/cyan]")


@app.command("next-id")
def next_id(
    project_file: ProjectFileArg,
    kind: Annotated[
        str,
        typer.Argument(
            help="Resource kind: VAR, EVENT, SCRIPT, GRAPH, FSM, STATE, TRANS, STAGE, NODE, PNODE."
        ),
    ],
) -> None:
    """Print the next free id for a resource kind."""
    from puzzleforge.ids import next_resource_id, parse_kind

    document, _ = _load(project_file)
    try:
        resolved = parse_kind(kind)
    except ValueError as e:
        console.print(f"[red]Error:[/red] Unknown resource kind '{escape(kind)}'")
        raise typer.Exit(2) from e

    typer.echo(next_resource_id(document, resolved))


@app.command()
def refs(
    project_file: ProjectFileArg,
    resource_id: Annotated[
        str,
        typer.Argument(help="Id of a script, event, presentation graph or variable."),
    ],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the usages as JSON instead of a table."),
    ] = False,
) -> None:
    """List every place that uses a resource, e.g. before marking it for delete."""
    from puzzleforge.validation.usages import UnknownResourceError, find_resource_references

    document, _ = _load(project_file)
    try:
        sites = find_resource_references(document, resource_id)
    except UnknownResourceError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2) from e

    if as_json:
        typer.echo(json.dumps([site.to_dict() for site in sites], indent=2, ensure_ascii=False))
        return

    if not sites:
        console.print(f"[green]✓[/green] {escape(resource_id)} is not used anywhere")
        return

    table = Table(title=f"Usages of {escape(resource_id)}")
    table.add_column("Object", style="cyan", no_wrap=True)
    table.add_column("Id", no_wrap=True)
    table.add_column("Location")
    for site in sites:
        table.add_row(str(site.object_type), escape(site.object_id), escape(site.location))
    console.print(table)
    console.print(f"{len(sites)} usage(s) of {escape(resource_id)}")


if __name__ == "__main__":
    app()
