"""Pydantic models for the dialogue graph.

All models serialize with lower-camel-case field names and enums serialize as
their camel-case tag, so ``model_dump(by_alias=True, mode="json")`` yields the
persisted document shape directly.

Node payloads form a tagged union keyed on ``type``. Each payload variant is
its own model and ``Node`` refuses a payload whose tag disagrees with its
``node_type``; ``default_payload`` is the only place a payload is chosen for
a type.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from dialoguegraph.graph.ids import CompositeId


class CamelModel(BaseModel):
    """Base model serializing field names in lower camel case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using the persisted field names."""
        return self.model_dump(by_alias=True, mode="json")


# -------------------------------------------------------------------------
# Enumerations
# -------------------------------------------------------------------------


class NodeType(StrEnum):
    """Closed set of node variants."""

    DIALOGUE = "dialogue"
    DIALOGUE_FRAGMENT = "dialogueFragment"
    FLOW_FRAGMENT = "flowFragment"
    BRANCH = "branch"
    CONDITION = "condition"
    INSTRUCTION = "instruction"
    HUB = "hub"
    JUMP = "jump"

    @property
    def display_name(self) -> str:
        """Human-readable type name (e.g. "Dialogue Fragment")."""
        return _NODE_DISPLAY_NAMES[self]

    @property
    def default_color(self) -> str:
        """Hex color given to new nodes of this type."""
        return _NODE_COLORS[self]


_NODE_DISPLAY_NAMES: dict[NodeType, str] = {
    NodeType.DIALOGUE: "Dialogue",
    NodeType.DIALOGUE_FRAGMENT: "Dialogue Fragment",
    NodeType.FLOW_FRAGMENT: "Flow Fragment",
    NodeType.BRANCH: "Branch",
    NodeType.CONDITION: "Condition",
    NodeType.INSTRUCTION: "Instruction",
    NodeType.HUB: "Hub",
    NodeType.JUMP: "Jump",
}

_NODE_COLORS: dict[NodeType, str] = {
    NodeType.DIALOGUE: "#3b82f6",
    NodeType.DIALOGUE_FRAGMENT: "#3b82f6",
    NodeType.FLOW_FRAGMENT: "#6366f1",
    NodeType.BRANCH: "#f59e0b",
    NodeType.CONDITION: "#10b981",
    NodeType.INSTRUCTION: "#8b5cf6",
    NodeType.HUB: "#06b6d4",
    NodeType.JUMP: "#8b5cf6",
}


class PortType(StrEnum):
    """Direction of a port."""

    INPUT = "input"
    OUTPUT = "output"


class ConnectionType(StrEnum):
    """Kind of edge between two ports."""

    FLOW = "flow"
    DATA = "data"


class VariableType(StrEnum):
    """Value type of a global variable."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"

    @property
    def label(self) -> str:
        """Variant name as shown to external tools ("String", "Number", ...)."""
        return self.value.capitalize()

    def accepts(self, value: Any) -> bool:
        """Check whether *value* is a valid default for this type."""
        if self is VariableType.STRING:
            return isinstance(value, str)
        if self is VariableType.BOOLEAN:
            return isinstance(value, bool)
        return isinstance(value, int | float) and not isinstance(value, bool)


# -------------------------------------------------------------------------
# Geometry
# -------------------------------------------------------------------------


class Position(CamelModel):
    x: float = 0.0
    y: float = 0.0


class Size(CamelModel):
    width: float = 200.0
    height: float = 100.0


# -------------------------------------------------------------------------
# Ports
# -------------------------------------------------------------------------


class Port(CamelModel):
    """Attachment point on a node. ``index`` is dense per direction."""

    id: str
    node_id: str
    port_type: PortType = Field(alias="type")
    index: int = Field(ge=0)
    label: str | None = None


# -------------------------------------------------------------------------
# Node payloads
# -------------------------------------------------------------------------


class ScriptFragment(CamelModel):
    """Script text attached to condition and instruction nodes."""

    expression: str = ""
    is_condition: bool = False


class DialogueData(CamelModel):
    speaker: str | None = None
    speaker_id: CompositeId | None = None
    text: str = ""
    menu_text: str | None = None
    stage_directions: str | None = None
    auto_transition: bool = False


class ScriptData(CamelModel):
    script: ScriptFragment = Field(default_factory=ScriptFragment)


class HubData(CamelModel):
    display_name: str | None = None


class JumpData(CamelModel):
    target_node_id: str | None = None
    target_pin_index: int | None = Field(default=None, ge=0)


class FlowFragmentData(CamelModel):
    display_name: str = "Flow Fragment"
    text: str | None = None


class DialoguePayload(CamelModel):
    type: Literal["dialogue"] = "dialogue"
    data: DialogueData = Field(default_factory=DialogueData)


class DialogueFragmentPayload(CamelModel):
    type: Literal["dialogueFragment"] = "dialogueFragment"
    data: DialogueData = Field(default_factory=DialogueData)


class FlowFragmentPayload(CamelModel):
    type: Literal["flowFragment"] = "flowFragment"
    data: FlowFragmentData = Field(default_factory=FlowFragmentData)


class BranchPayload(CamelModel):
    """Branch nodes carry no data; serialized as ``{"type": "branch"}``."""

    type: Literal["branch"] = "branch"


class ConditionPayload(CamelModel):
    type: Literal["condition"] = "condition"
    data: ScriptData = Field(
        default_factory=lambda: ScriptData(script=ScriptFragment(is_condition=True))
    )


class InstructionPayload(CamelModel):
    type: Literal["instruction"] = "instruction"
    data: ScriptData = Field(default_factory=ScriptData)


class HubPayload(CamelModel):
    type: Literal["hub"] = "hub"
    data: HubData = Field(default_factory=HubData)


class JumpPayload(CamelModel):
    type: Literal["jump"] = "jump"
    data: JumpData = Field(default_factory=JumpData)


NodeData = Annotated[
    DialoguePayload
    | DialogueFragmentPayload
    | FlowFragmentPayload
    | BranchPayload
    | ConditionPayload
    | InstructionPayload
    | HubPayload
    | JumpPayload,
    Field(discriminator="type"),
]

_PAYLOAD_TYPES: dict[NodeType, type[BaseModel]] = {
    NodeType.DIALOGUE: DialoguePayload,
    NodeType.DIALOGUE_FRAGMENT: DialogueFragmentPayload,
    NodeType.FLOW_FRAGMENT: FlowFragmentPayload,
    NodeType.BRANCH: BranchPayload,
    NodeType.CONDITION: ConditionPayload,
    NodeType.INSTRUCTION: InstructionPayload,
    NodeType.HUB: HubPayload,
    NodeType.JUMP: JumpPayload,
}


def default_payload(node_type: NodeType) -> NodeData:
    """Build the initial payload for a freshly created node of *node_type*."""
    payload: NodeData = _PAYLOAD_TYPES[node_type]()  # type: ignore[assignment]
    return payload


# -------------------------------------------------------------------------
# Graph entities
# -------------------------------------------------------------------------


class Node(CamelModel):
    """A typed vertex of the dialogue graph."""

    id: str
    technical_name: str
    node_type: NodeType
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)
    input_ports: list[Port] = Field(default_factory=list)
    output_ports: list[Port] = Field(default_factory=list)
    data: NodeData
    color: str | None = None
    parent_id: str | None = None
    metadata: Any | None = None

    @model_validator(mode="after")
    def _check_invariants(self) -> Node:
        if self.data.type != self.node_type:
            raise ValueError(
                f"Node '{self.id}' of type '{self.node_type}' has a "
                f"'{self.data.type}' payload"
            )
        for ports, direction in (
            (self.input_ports, PortType.INPUT),
            (self.output_ports, PortType.OUTPUT),
        ):
            for position, port in enumerate(ports):
                if port.index != position:
                    raise ValueError(
                        f"Node '{self.id}' {direction} port at position {position} "
                        f"has index {port.index}"
                    )
                if port.port_type != direction:
                    raise ValueError(
                        f"Node '{self.id}' has a {port.port_type} port among its "
                        f"{direction} ports"
                    )
                if port.node_id != self.id:
                    raise ValueError(
                        f"Port '{port.id}' belongs to '{port.node_id}', not '{self.id}'"
                    )
        return self

    def ports(self, port_type: PortType) -> list[Port]:
        """Return the input or output port list."""
        return self.input_ports if port_type == PortType.INPUT else self.output_ports

    def add_input_port(self, port_id: str, label: str | None = None) -> Port:
        """Append an input port at the next dense index."""
        return self._append_port(PortType.INPUT, port_id, label)

    def add_output_port(self, port_id: str, label: str | None = None) -> Port:
        """Append an output port at the next dense index."""
        return self._append_port(PortType.OUTPUT, port_id, label)

    def _append_port(self, port_type: PortType, port_id: str, label: str | None) -> Port:
        ports = self.ports(port_type)
        port = Port(
            id=port_id,
            node_id=self.id,
            port_type=port_type,
            index=len(ports),
            label=label,
        )
        ports.append(port)
        return port


class Connection(CamelModel):
    """Directed edge from an output port to an input port."""

    id: str
    from_node_id: str
    from_port_index: int = Field(ge=0)
    to_node_id: str
    to_port_index: int = Field(ge=0)
    connection_type: ConnectionType = ConnectionType.FLOW
    label: str | None = None


class Variable(CamelModel):
    """A global variable with a typed default value."""

    id: str
    namespace: str
    name: str
    variable_type: VariableType
    default_value: Any
    description: str | None = None

    @model_validator(mode="after")
    def _check_default_value(self) -> Variable:
        if not self.variable_type.accepts(self.default_value):
            raise ValueError(
                f"Default value {self.default_value!r} is not a valid "
                f"{self.variable_type.label} for variable '{self.name}'"
            )
        return self


class VariableNamespace(CamelModel):
    name: str
    description: str | None = None
    variables: list[Variable] = Field(default_factory=list)


class Character(CamelModel):
    """A speaking character, identified externally by a composite id."""

    id: str
    articy_id: CompositeId
    technical_name: str
    display_name: str
    color: str
    preview_image: str | None = None
