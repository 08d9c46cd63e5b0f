"""Export format handlers (engine document, plain graph JSON)."""

from __future__ import annotations

from dialoguegraph.export.base import (
    DEFAULT_PACKAGE_NAME,
    FORMAT_VERSION,
    ExportCharacter,
    ExportConnection,
    ExportDocument,
    Exporter,
    ExportObject,
    ExportPackage,
    ExportPin,
    ExportVariable,
    ExportVariableNamespace,
    ProjectInfo,
)
from dialoguegraph.export.context import EXTERNAL_NODE_TYPES, build_export_document
from dialoguegraph.export.json_exporter import (
    EngineExporter,
    GraphJsonExporter,
    render_engine_export,
    render_graph_json,
)

_EXPORTERS: dict[str, type[EngineExporter | GraphJsonExporter]] = {
    "engine": EngineExporter,
    "json": GraphJsonExporter,
}


def get_exporter(format_name: str) -> EngineExporter | GraphJsonExporter:
    """Get an exporter instance by format name.

    Args:
        format_name: Export format ("engine" or "json").

    Returns:
        Exporter instance.

    Raises:
        ValueError: If the format is not supported.
    """
    cls = _EXPORTERS.get(format_name)
    if cls is None:
        supported = ", ".join(sorted(_EXPORTERS))
        msg = f"Unknown export format '{format_name}'. Supported: {supported}"
        raise ValueError(msg)
    return cls()


__all__ = [
    "DEFAULT_PACKAGE_NAME",
    "EXTERNAL_NODE_TYPES",
    "FORMAT_VERSION",
    "EngineExporter",
    "ExportCharacter",
    "ExportConnection",
    "ExportDocument",
    "ExportObject",
    "ExportPackage",
    "ExportPin",
    "ExportVariable",
    "ExportVariableNamespace",
    "Exporter",
    "GraphJsonExporter",
    "ProjectInfo",
    "build_export_document",
    "get_exporter",
    "render_engine_export",
    "render_graph_json",
]
