"""Build an ExportDocument from a dialogue graph.

The transformer does no validation. It runs on graphs that may have
dangling connections or missing jump targets and projects them as they are;
the only failure is a payload that cannot be serialized.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic_core import PydanticSerializationError

from dialoguegraph.export.base import (
    DEFAULT_PACKAGE_NAME,
    FORMAT_VERSION,
    ExportCharacter,
    ExportConnection,
    ExportDocument,
    ExportObject,
    ExportPackage,
    ExportPin,
    ExportVariable,
    ExportVariableNamespace,
    ProjectInfo,
)
from dialoguegraph.graph.errors import ExportSerializationError
from dialoguegraph.graph.types import Node, NodeType, Port

if TYPE_CHECKING:
    from dialoguegraph.graph.graph import DialogueGraph

# Engine object type for each node type. Branches are hubs to the engine.
EXTERNAL_NODE_TYPES: dict[NodeType, str] = {
    NodeType.DIALOGUE: "Dialogue",
    NodeType.DIALOGUE_FRAGMENT: "DialogueFragment",
    NodeType.FLOW_FRAGMENT: "FlowFragment",
    NodeType.BRANCH: "Hub",
    NodeType.CONDITION: "Condition",
    NodeType.INSTRUCTION: "Instruction",
    NodeType.HUB: "Hub",
    NodeType.JUMP: "Jump",
}


def build_export_document(
    graph: DialogueGraph,
    package_name: str = DEFAULT_PACKAGE_NAME,
) -> ExportDocument:
    """Project a graph into the engine export schema.

    Args:
        graph: Graph to export. It is not modified.
        package_name: Name of the single, default package.

    Returns:
        The export document.

    Raises:
        ExportSerializationError: If a node payload cannot be serialized.
    """
    return ExportDocument(
        format_version=FORMAT_VERSION,
        project=ProjectInfo(
            name=graph.name,
            technical_name=graph.technical_name,
            guid=graph.id,
        ),
        global_variables=[
            ExportVariableNamespace(
                name=ns.name,
                description=ns.description,
                variables=[
                    ExportVariable(
                        name=v.name,
                        type=v.variable_type.label,
                        default_value=v.default_value,
                        description=v.description,
                    )
                    for v in ns.variables
                ],
            )
            for ns in graph.variables
        ],
        characters=[
            ExportCharacter(
                id=c.id,
                technical_name=c.technical_name,
                display_name=c.display_name,
                color=c.color,
            )
            for c in graph.characters
        ],
        packages=[
            ExportPackage(
                name=package_name,
                is_default_package=True,
                objects=[_export_object(node) for node in graph.nodes],
                connections=[
                    ExportConnection(
                        id=c.id,
                        source_id=c.from_node_id,
                        source_pin=c.from_port_index,
                        target_id=c.to_node_id,
                        target_pin=c.to_port_index,
                    )
                    for c in graph.connections
                ],
            )
        ],
    )


def _export_object(node: Node) -> ExportObject:
    return ExportObject(
        id=node.id,
        technical_name=node.technical_name,
        type=EXTERNAL_NODE_TYPES[node.node_type],
        position=node.position.model_copy(),
        properties=_payload_properties(node),
        input_pins=[_export_pin(p) for p in node.input_ports],
        output_pins=[_export_pin(p) for p in node.output_ports],
    )


def _export_pin(port: Port) -> ExportPin:
    return ExportPin(id=port.id, index=port.index, label=port.label)


def _payload_properties(node: Node) -> dict[str, Any]:
    """Serialize a node payload into an open property bag."""
    try:
        return node.data.model_dump(by_alias=True, mode="json")
    except PydanticSerializationError as e:
        raise ExportSerializationError(f"Failed to serialize payload: {e}", node_id=node.id) from e
