"""dialoguegraph CLI - typer application entry point."""

from __future__ import annotations

import atexit
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from dialoguegraph.config import EditorConfig, EditorConfigError, load_config
from dialoguegraph.graph.errors import ExportSerializationError, GraphSerializationError
from dialoguegraph.graph.store import GraphStore
from dialoguegraph.graph.types import NodeType
from dialoguegraph.observability import close_file_logging, configure_logging, get_logger

if TYPE_CHECKING:
    from dialoguegraph.graph.validation_types import ValidationIssue

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="dg",
    help="Build, validate and export branching dialogue graphs.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

DEFAULT_LOG_DIR = Path("logs")

_config: EditorConfig = EditorConfig()


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
    log_to_file: Annotated[
        bool,
        typer.Option(
            "--log",
            help="Also write every log event to ./logs/debug.jsonl.",
        ),
    ] = False,
) -> None:
    """Build, validate and export branching dialogue graphs."""
    global _config
    try:
        _config = load_config(Path.cwd())
    except EditorConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    configure_logging(
        verbosity=max(verbose, _config.verbosity),
        log_to_file=log_to_file,
        log_dir=DEFAULT_LOG_DIR if log_to_file else None,
    )
    if log_to_file:
        atexit.register(close_file_logging)


# =============================================================================
# Helpers
# =============================================================================


def _load_store(file: Path) -> GraphStore:
    """Load a graph file into a fresh store.

    Raises:
        typer.Exit: If the file is missing or malformed.
    """
    if not file.exists():
        console.print(f"[red]Error:[/red] File '{file}' not found")
        raise typer.Exit(1)

    store = GraphStore(default_name=_config.default_graph_name)
    try:
        store.load_graph(file.read_text(encoding="utf-8"))
    except GraphSerializationError as e:
        console.print(f"[red]Error:[/red] {e.message} ({file})")
        for detail in e.details[:10]:
            console.print(f"  [dim]{detail}[/dim]")
        raise typer.Exit(1) from None
    return store


def _save_store(store: GraphStore, file: Path) -> None:
    file.write_text(store.save_graph(pretty=_config.export_pretty), encoding="utf-8")
    log.info("graph_saved", path=str(file))


def _issue_rows(table: Table, issues: list[ValidationIssue], style: str) -> None:
    for issue in issues:
        table.add_row(
            f"[{style}]{issue.severity}[/{style}]",
            str(issue.code),
            issue.node_id or issue.connection_id or "-",
            issue.message,
        )


# =============================================================================
# CLI Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from dialoguegraph import __version__

    console.print(f"dialoguegraph v{__version__}")


@app.command()
def init(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory to write dialoguegraph.yaml into."),
    ] = Path(),
) -> None:
    """Write a starter dialoguegraph.yaml."""
    from dialoguegraph.config import CONFIG_FILE_NAME, create_default_config

    if (directory / CONFIG_FILE_NAME).exists():
        console.print(f"[red]Error:[/red] '{directory / CONFIG_FILE_NAME}' already exists")
        raise typer.Exit(1)

    path = create_default_config(directory)
    console.print(f"[green]✓[/green] Created config: {path}")


@app.command()
def new(
    name: Annotated[str | None, typer.Argument(help="Graph name")] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Graph file (default: <technical_name>.json)."),
    ] = None,
) -> None:
    """Create a new, empty dialogue graph file."""
    store = GraphStore(default_name=_config.default_graph_name)
    graph = store.new_graph(name or _config.default_graph_name)

    file = output if output is not None else Path(f"{graph.technical_name or 'graph'}.json")
    if file.exists():
        console.print(f"[red]Error:[/red] File '{file}' already exists")
        raise typer.Exit(1)

    file.parent.mkdir(parents=True, exist_ok=True)
    _save_store(store, file)
    console.print(f"[green]✓[/green] Created graph: [bold]{graph.name}[/bold]")
    console.print(f"  Location: {file.absolute()}")


@app.command()
def info(
    file: Annotated[Path, typer.Argument(help="Graph file")],
) -> None:
    """Show a summary of a graph file."""
    graph = _load_store(file).get_graph()

    table = Table(title=f"Graph: {graph.name}")
    table.add_column("Item", style="cyan")
    table.add_column("Count", style="bold", justify="right")

    by_type = Counter(node.node_type for node in graph.nodes)
    table.add_row("Nodes", str(len(graph.nodes)))
    for node_type in NodeType:
        if by_type[node_type]:
            table.add_row(f"  {node_type.display_name}", str(by_type[node_type]))
    table.add_row("Connections", str(len(graph.connections)))
    table.add_row("Variable namespaces", str(len(graph.variables)))
    table.add_row("Variables", str(sum(len(ns.variables) for ns in graph.variables)))
    table.add_row("Characters", str(len(graph.characters)))

    console.print()
    console.print(table)
    console.print(f"  Id: [dim]{graph.id}[/dim]  Technical name: [dim]{graph.technical_name}[/dim]")


@app.command()
def validate(
    file: Annotated[Path, typer.Argument(help="Graph file")],
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as failures."),
    ] = False,
) -> None:
    """Validate a graph file and list its issues."""
    report = _load_store(file).validate()

    if report.errors or report.warnings:
        table = Table(title=f"Validation: {file.name}")
        table.add_column("Severity", style="bold")
        table.add_column("Code", style="cyan")
        table.add_column("Subject", style="dim")
        table.add_column("Message")
        _issue_rows(table, report.errors, "red")
        _issue_rows(table, report.warnings, "yellow")
        console.print(table)

    if not report.is_valid:
        console.print(f"[red]✗[/red] Graph is {report.summary}")
        raise typer.Exit(1)
    if strict and report.has_warnings:
        console.print(f"[yellow]✗[/yellow] Graph is {report.summary} (strict)")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Graph is {report.summary}")


@app.command()
def export(
    file: Annotated[Path, typer.Argument(help="Graph file")],
    format_name: Annotated[
        str,
        typer.Option("--format", "-f", help="Export format: engine or json."),
    ] = "engine",
    pretty: Annotated[
        bool | None,
        typer.Option("--pretty/--compact", help="Indent the output (default: from config)."),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output directory (default: next to FILE)."),
    ] = None,
) -> None:
    """Export a graph file."""
    from dialoguegraph.export import EngineExporter, get_exporter

    try:
        exporter = get_exporter(format_name)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None
    if isinstance(exporter, EngineExporter):
        exporter.package_name = _config.package_name

    graph = _load_store(file).get_graph()
    target_dir = output_dir if output_dir is not None else file.parent
    use_pretty = _config.export_pretty if pretty is None else pretty

    try:
        output_file = exporter.export(graph, target_dir, pretty=use_pretty)
    except ExportSerializationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    log.info("graph_exported", format=format_name, path=str(output_file))
    console.print(f"[green]✓[/green] Exported to {output_file}")


@app.command("add-node")
def add_node(
    file: Annotated[Path, typer.Argument(help="Graph file")],
    node_type: Annotated[NodeType, typer.Argument(help="Node type", metavar="TYPE")],
    x: Annotated[float, typer.Option("--x", help="Canvas x position.")] = 0.0,
    y: Annotated[float, typer.Option("--y", help="Canvas y position.")] = 0.0,
) -> None:
    """Add a node to a graph file."""
    store = _load_store(file)
    node = store.add_node(node_type, x, y)
    _save_store(store, file)
    label = node.node_type.display_name
    console.print(f"[green]✓[/green] Added {label} node: [bold]{node.id}[/bold]")


@app.command()
def connect(
    file: Annotated[Path, typer.Argument(help="Graph file")],
    from_node: Annotated[str, typer.Argument(help="Source node id", metavar="FROM")],
    to_node: Annotated[str, typer.Argument(help="Target node id", metavar="TO")],
    from_port: Annotated[int, typer.Option("--from-port", help="Source output port.")] = 0,
    to_port: Annotated[int, typer.Option("--to-port", help="Target input port.")] = 0,
) -> None:
    """Connect an output port of one node to an input port of another."""
    store = _load_store(file)
    connection = store.add_connection(from_node, from_port, to_node, to_port)
    if connection is None:
        reason = store.get_graph().check_connection(from_node, from_port, to_node, to_port)
        console.print(f"[red]Error:[/red] Connection refused ({reason})")
        raise typer.Exit(1)

    _save_store(store, file)
    console.print(f"[green]✓[/green] Connected: [bold]{connection.id}[/bold]")


@app.command("add-character")
def add_character(
    file: Annotated[Path, typer.Argument(help="Graph file")],
    display_name: Annotated[str, typer.Argument(help="Character name", metavar="NAME")],
    color: Annotated[
        str | None,
        typer.Option("--color", help="Hex color (default: from config)."),
    ] = None,
) -> None:
    """Add a speaking character to a graph file."""
    store = _load_store(file)
    character = store.add_character(display_name, color or _config.character_color)
    _save_store(store, file)
    name = character.technical_name
    console.print(f"[green]✓[/green] Added character [bold]{name}[/bold]: {character.id}")


if __name__ == "__main__":
    app()
