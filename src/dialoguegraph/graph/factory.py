"""Node construction policy.

Every node type has a fixed default size, initial payload, port layout and
color. Nodes should only be created through :func:`create_node` so a new
node always satisfies the ``Node`` invariants.
"""

from __future__ import annotations

from dialoguegraph.graph.ids import generate_id
from dialoguegraph.graph.types import (
    Node,
    NodeType,
    Port,
    Position,
    PortType,
    Size,
    default_payload,
)

NODE_SIZES: dict[NodeType, tuple[float, float]] = {
    NodeType.DIALOGUE: (280.0, 120.0),
    NodeType.DIALOGUE_FRAGMENT: (260.0, 100.0),
    NodeType.FLOW_FRAGMENT: (300.0, 140.0),
    NodeType.BRANCH: (160.0, 80.0),
    NodeType.CONDITION: (200.0, 80.0),
    NodeType.INSTRUCTION: (200.0, 70.0),
    NodeType.HUB: (140.0, 60.0),
    NodeType.JUMP: (160.0, 60.0),
}

DEFAULT_INPUT_PORTS = 1

CONDITION_PORT_LABELS = ("True", "False")


def default_output_count(node_type: NodeType) -> int:
    """Number of output ports a new node of *node_type* starts with."""
    if node_type == NodeType.JUMP:
        return 0
    if node_type in (NodeType.BRANCH, NodeType.CONDITION):
        return 2
    return 1


def node_technical_name(node_type: NodeType, node_id: str) -> str:
    """Readable, low-collision name: lower-cased type name plus an id prefix."""
    return f"{node_type.display_name.replace(' ', '_').lower()}_{node_id[:8]}"


def create_node(node_type: NodeType | str, position: Position | None = None) -> Node:
    """Build a node of *node_type* with its default ports and payload.

    Args:
        node_type: Variant to create.
        position: Canvas position (origin if omitted).

    Returns:
        The new node, not yet attached to any graph.
    """
    node_type = NodeType(node_type)
    node_id = generate_id()
    width, height = NODE_SIZES[node_type]

    input_ports = [
        Port(id=generate_id(), node_id=node_id, port_type=PortType.INPUT, index=i)
        for i in range(DEFAULT_INPUT_PORTS)
    ]
    output_ports = [
        Port(
            id=generate_id(),
            node_id=node_id,
            port_type=PortType.OUTPUT,
            index=i,
            label=CONDITION_PORT_LABELS[i] if node_type == NodeType.CONDITION else None,
        )
        for i in range(default_output_count(node_type))
    ]

    return Node(
        id=node_id,
        technical_name=node_technical_name(node_type, node_id),
        node_type=node_type,
        position=position or Position(),
        size=Size(width=width, height=height),
        input_ports=input_ports,
        output_ports=output_ports,
        data=default_payload(node_type),
        color=node_type.default_color,
    )
