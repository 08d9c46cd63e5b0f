"""JSON export formats.

``EngineExporter`` writes the versioned engine export document;
``GraphJsonExporter`` writes the graph itself in its persisted form.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic_core import PydanticSerializationError

from dialoguegraph.export.base import DEFAULT_PACKAGE_NAME
from dialoguegraph.export.context import build_export_document
from dialoguegraph.graph.errors import ExportSerializationError

if TYPE_CHECKING:
    from pathlib import Path

    from dialoguegraph.graph.graph import DialogueGraph


def render_engine_export(
    graph: DialogueGraph,
    *,
    pretty: bool = True,
    package_name: str = DEFAULT_PACKAGE_NAME,
) -> str:
    """Render the engine export document as JSON text.

    Raises:
        ExportSerializationError: If the document cannot be serialized.
    """
    document = build_export_document(graph, package_name=package_name)
    try:
        return document.model_dump_json(by_alias=True, indent=2 if pretty else None)
    except PydanticSerializationError as e:
        raise ExportSerializationError(f"Failed to serialize export: {e}") from e


def render_graph_json(graph: DialogueGraph, *, pretty: bool = True) -> str:
    """Render the graph in its persisted JSON form.

    Raises:
        ExportSerializationError: If free-form metadata cannot be serialized.
    """
    try:
        return graph.to_json(pretty=pretty)
    except PydanticSerializationError as e:
        raise ExportSerializationError(f"Failed to serialize graph: {e}") from e


def _output_stem(graph: DialogueGraph) -> str:
    return graph.technical_name or "graph"


class EngineExporter:
    """Export the graph as a versioned engine document."""

    format_name = "engine"

    def __init__(self, package_name: str = DEFAULT_PACKAGE_NAME) -> None:
        self.package_name = package_name

    def render(self, graph: DialogueGraph, *, pretty: bool = True) -> str:
        return render_engine_export(graph, pretty=pretty, package_name=self.package_name)

    def export(self, graph: DialogueGraph, output_dir: Path, *, pretty: bool = True) -> Path:
        """Write ``<technical_name>.export.json`` into *output_dir*.

        Returns:
            Path to the generated file.
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / f"{_output_stem(graph)}.export.json"
        output_file.write_text(self.render(graph, pretty=pretty), encoding="utf-8")
        return output_file


class GraphJsonExporter:
    """Export the graph as plain graph JSON."""

    format_name = "json"

    def render(self, graph: DialogueGraph, *, pretty: bool = True) -> str:
        return render_graph_json(graph, pretty=pretty)

    def export(self, graph: DialogueGraph, output_dir: Path, *, pretty: bool = True) -> Path:
        """Write ``<technical_name>.json`` into *output_dir*."""
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / f"{_output_stem(graph)}.json"
        output_file.write_text(self.render(graph, pretty=pretty), encoding="utf-8")
        return output_file
