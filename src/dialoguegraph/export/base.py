"""Export data models and Exporter protocol.

The export document is a renamed, versioned projection of a dialogue graph
for game engines. Field names are camelCase on the wire; nodes become
"objects", ports become "pins".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from pydantic import Field

from dialoguegraph.graph.types import CamelModel, Position

if TYPE_CHECKING:
    from pathlib import Path

    from dialoguegraph.graph.graph import DialogueGraph

FORMAT_VERSION = "1.0"
DEFAULT_PACKAGE_NAME = "Main"


class ProjectInfo(CamelModel):
    name: str
    technical_name: str
    guid: str


class ExportVariable(CamelModel):
    name: str
    type: str
    default_value: Any
    description: str | None = None


class ExportVariableNamespace(CamelModel):
    name: str
    description: str | None = None
    variables: list[ExportVariable] = Field(default_factory=list)


class ExportCharacter(CamelModel):
    id: str
    technical_name: str
    display_name: str
    color: str


class ExportPin(CamelModel):
    id: str
    index: int
    label: str | None = None


class ExportObject(CamelModel):
    """A node as seen by the engine."""

    id: str
    technical_name: str
    type: str
    position: Position
    properties: dict[str, Any]
    input_pins: list[ExportPin] = Field(default_factory=list)
    output_pins: list[ExportPin] = Field(default_factory=list)


class ExportConnection(CamelModel):
    id: str
    source_id: str
    source_pin: int
    target_id: str
    target_pin: int


class ExportPackage(CamelModel):
    name: str = DEFAULT_PACKAGE_NAME
    is_default_package: bool = True
    objects: list[ExportObject] = Field(default_factory=list)
    connections: list[ExportConnection] = Field(default_factory=list)


class ExportDocument(CamelModel):
    """Top-level export document."""

    format_version: str = FORMAT_VERSION
    project: ProjectInfo
    global_variables: list[ExportVariableNamespace] = Field(default_factory=list)
    characters: list[ExportCharacter] = Field(default_factory=list)
    packages: list[ExportPackage] = Field(default_factory=list)


class Exporter(Protocol):
    """Protocol for graph export format handlers."""

    format_name: str

    def render(self, graph: DialogueGraph, *, pretty: bool = True) -> str:
        """Render the graph in this format.

        Args:
            graph: Graph to export. It is not modified.
            pretty: Indent the output for humans.

        Returns:
            The serialized document.
        """
        ...

    def export(self, graph: DialogueGraph, output_dir: Path, *, pretty: bool = True) -> Path:
        """Write the rendered graph into *output_dir*.

        Returns:
            Path to the written file.
        """
        ...
