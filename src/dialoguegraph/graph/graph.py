"""The dialogue graph aggregate root.

The graph exclusively owns its nodes, connections, variable namespaces and
characters. Every mutation that changes observable state refreshes
``modified_at`` via :meth:`DialogueGraph.touch`.

Missing entities and refused connections are reported through return values
(``None`` / ``False``), never exceptions. Lookups are linear scans, which
is adequate for graphs of a few hundred nodes.
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import Field, ValidationError, model_validator

from dialoguegraph.graph.errors import ConnectionRejection, GraphSerializationError
from dialoguegraph.graph.factory import create_node
from dialoguegraph.graph.ids import CompositeId, generate_id, to_technical_name
from dialoguegraph.graph.types import (
    CamelModel,
    Character,
    Connection,
    ConnectionType,
    Node,
    NodeType,
    Port,
    PortType,
    Position,
    Variable,
    VariableNamespace,
    VariableType,
)
from dialoguegraph.graph.updates import CharacterUpdate, NodeUpdate
from dialoguegraph.observability.logging import get_logger

log = get_logger(__name__)


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class DialogueGraph(CamelModel):
    """A branching dialogue graph.

    Attributes:
        id: Graph id, used as the external GUID on export.
        name: Display name.
        technical_name: Sanitized form of ``name``.
        nodes: Vertices, in creation order.
        connections: Directed edges, in creation order.
        variables: Variable namespaces.
        characters: Speaking characters.
        created_at: Creation time (epoch ms).
        modified_at: Time of the last mutation (epoch ms).
        metadata: Free-form metadata.
    """

    id: str
    name: str
    technical_name: str
    nodes: list[Node] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    variables: list[VariableNamespace] = Field(default_factory=list)
    characters: list[Character] = Field(default_factory=list)
    created_at: int
    modified_at: int
    metadata: Any | None = None

    @model_validator(mode="after")
    def _check_unique_ids(self) -> DialogueGraph:
        for label, ids in (
            ("node", [n.id for n in self.nodes]),
            ("connection", [c.id for c in self.connections]),
        ):
            seen: set[str] = set()
            for entity_id in ids:
                if entity_id in seen:
                    raise ValueError(f"Duplicate {label} id '{entity_id}'")
                seen.add(entity_id)
        return self

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @classmethod
    def create(cls, name: str) -> DialogueGraph:
        """Create an empty graph with a fresh id and current timestamps."""
        now = now_millis()
        graph = cls(
            id=generate_id(),
            name=name,
            technical_name=to_technical_name(name),
            created_at=now,
            modified_at=now,
        )
        log.debug("graph_created", graph_id=graph.id, name=name)
        return graph

    def touch(self) -> None:
        """Mark the graph as modified now."""
        self.modified_at = max(now_millis(), self.modified_at)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def get_node(self, node_id: str) -> Node | None:
        """Find a node by id."""
        return next((n for n in self.nodes if n.id == node_id), None)

    def has_node(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None

    def add_node(self, node_type: NodeType | str, position: Position | None = None) -> Node:
        """Create a node of *node_type* per the construction policy and append it."""
        node = create_node(node_type, position)
        self.nodes.append(node)
        self.touch()
        log.debug("node_added", node_id=node.id, node_type=str(node.node_type))
        return node

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and every connection that starts or ends at it.

        Returns:
            True if the node existed, False otherwise.
        """
        node = self.get_node(node_id)
        if node is None:
            return False

        before = len(self.connections)
        self.connections = [
            c for c in self.connections if node_id not in (c.from_node_id, c.to_node_id)
        ]
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.touch()
        log.debug(
            "node_removed",
            node_id=node_id,
            connections_removed=before - len(self.connections),
        )
        return True

    def update_node(self, node_id: str, update: NodeUpdate) -> Node | None:
        """Apply the fields set in *update* to a node.

        A payload whose variant does not match the node's type is ignored;
        the remaining fields still apply.

        Returns:
            The updated node, or None if no such node exists.
        """
        node = self.get_node(node_id)
        if node is None:
            return None

        if update.position is not None:
            node.position = update.position.model_copy()
        if update.technical_name is not None:
            node.technical_name = update.technical_name
        if update.color is not None:
            node.color = update.color
        if update.data is not None:
            if update.data.type == node.node_type:
                node.data = update.data.model_copy(deep=True)
            else:
                log.debug(
                    "node_update_payload_ignored",
                    node_id=node_id,
                    node_type=str(node.node_type),
                    payload_type=update.data.type,
                )

        self.touch()
        return node

    def clone_node(self, node_id: str, offset: Position | None = None) -> Node | None:
        """Duplicate a node with fresh node and port ids.

        The copy's technical name gets a ``_copy`` suffix and its position is
        shifted by *offset*. Connections are not copied.

        Returns:
            The new node, or None if the original does not exist.
        """
        original = self.get_node(node_id)
        if original is None:
            return None

        offset = offset or Position()
        clone = original.model_copy(deep=True)
        clone.id = generate_id()
        clone.technical_name = f"{original.technical_name}_copy"
        clone.position = Position(
            x=original.position.x + offset.x,
            y=original.position.y + offset.y,
        )
        for port in (*clone.input_ports, *clone.output_ports):
            port.id = generate_id()
            port.node_id = clone.id

        self.nodes.append(clone)
        self.touch()
        log.debug("node_cloned", source_id=node_id, node_id=clone.id)
        return clone

    def add_port(self, node_id: str, port_type: PortType, label: str | None = None) -> Port | None:
        """Append a port to a node at the next dense index.

        Returns:
            The new port, or None if the node does not exist.
        """
        node = self.get_node(node_id)
        if node is None:
            return None
        if port_type == PortType.INPUT:
            port = node.add_input_port(generate_id(), label)
        else:
            port = node.add_output_port(generate_id(), label)
        self.touch()
        return port

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def get_connection(self, connection_id: str) -> Connection | None:
        return next((c for c in self.connections if c.id == connection_id), None)

    def node_connections(self, node_id: str) -> list[Connection]:
        """Return connections that start or end at *node_id*."""
        return [c for c in self.connections if node_id in (c.from_node_id, c.to_node_id)]

    def check_connection(
        self,
        from_node_id: str,
        from_port_index: int,
        to_node_id: str,
        to_port_index: int,
    ) -> ConnectionRejection | None:
        """Check whether a connection would be legal.

        Rules: no self-loop; both nodes exist; both port indices in range;
        no identical connection exists; the target input is not already fed.

        Returns:
            The first rule that fails, or None if the connection is legal.
        """
        if from_node_id == to_node_id:
            return ConnectionRejection.SELF_LOOP

        from_node = self.get_node(from_node_id)
        to_node = self.get_node(to_node_id)
        if from_node is None or to_node is None:
            return ConnectionRejection.NODE_NOT_FOUND

        if not 0 <= from_port_index < len(from_node.output_ports):
            return ConnectionRejection.OUTPUT_PORT_OUT_OF_RANGE
        if not 0 <= to_port_index < len(to_node.input_ports):
            return ConnectionRejection.INPUT_PORT_OUT_OF_RANGE

        for c in self.connections:
            if (
                c.from_node_id == from_node_id
                and c.from_port_index == from_port_index
                and c.to_node_id == to_node_id
                and c.to_port_index == to_port_index
            ):
                return ConnectionRejection.DUPLICATE_CONNECTION

        if any(
            c.to_node_id == to_node_id and c.to_port_index == to_port_index
            for c in self.connections
        ):
            return ConnectionRejection.INPUT_OCCUPIED

        return None

    def can_connect(
        self,
        from_node_id: str,
        from_port_index: int,
        to_node_id: str,
        to_port_index: int,
    ) -> bool:
        """True if :meth:`check_connection` finds no violated rule."""
        return (
            self.check_connection(from_node_id, from_port_index, to_node_id, to_port_index)
            is None
        )

    def add_connection(
        self,
        from_node_id: str,
        from_port_index: int,
        to_node_id: str,
        to_port_index: int,
    ) -> Connection | None:
        """Connect an output port to an input port with a flow connection.

        Returns:
            The new connection, or None if the request is not legal. The
            graph is left untouched on refusal.
        """
        rejection = self.check_connection(
            from_node_id, from_port_index, to_node_id, to_port_index
        )
        if rejection is not None:
            log.debug(
                "connection_rejected",
                from_node_id=from_node_id,
                from_port_index=from_port_index,
                to_node_id=to_node_id,
                to_port_index=to_port_index,
                reason=str(rejection),
            )
            return None

        connection = Connection(
            id=generate_id(),
            from_node_id=from_node_id,
            from_port_index=from_port_index,
            to_node_id=to_node_id,
            to_port_index=to_port_index,
            connection_type=ConnectionType.FLOW,
        )
        self.connections.append(connection)
        self.touch()
        log.debug("connection_added", connection_id=connection.id)
        return connection

    def remove_connection(self, connection_id: str) -> bool:
        """Remove a connection by id. Returns False if it does not exist."""
        connection = self.get_connection(connection_id)
        if connection is None:
            return False
        self.connections = [c for c in self.connections if c.id != connection_id]
        self.touch()
        return True

    def remove_port_connections(
        self, node_id: str, port_type: PortType | str, port_index: int
    ) -> int:
        """Remove connections attached to one port of a node.

        Returns:
            Number of connections removed.
        """
        if port_type == PortType.OUTPUT:
            keep = [
                c
                for c in self.connections
                if not (c.from_node_id == node_id and c.from_port_index == port_index)
            ]
        else:
            keep = [
                c
                for c in self.connections
                if not (c.to_node_id == node_id and c.to_port_index == port_index)
            ]
        removed = len(self.connections) - len(keep)
        if removed:
            self.connections = keep
            self.touch()
        return removed

    # -------------------------------------------------------------------------
    # Characters
    # -------------------------------------------------------------------------

    def get_character(self, character_id: str) -> Character | None:
        return next((c for c in self.characters if c.id == character_id), None)

    def add_character(self, display_name: str, color: str) -> Character:
        """Create a character with fresh short and composite ids."""
        character = Character(
            id=generate_id(),
            articy_id=CompositeId.new(),
            technical_name=to_technical_name(display_name),
            display_name=display_name,
            color=color,
        )
        self.characters.append(character)
        self.touch()
        log.debug("character_added", character_id=character.id)
        return character

    def update_character(self, character_id: str, update: CharacterUpdate) -> Character | None:
        """Apply the fields set in *update*; a new display name re-derives the technical name."""
        character = self.get_character(character_id)
        if character is None:
            return None
        if update.display_name is not None:
            character.display_name = update.display_name
            character.technical_name = to_technical_name(update.display_name)
        if update.color is not None:
            character.color = update.color
        self.touch()
        return character

    def remove_character(self, character_id: str) -> bool:
        character = self.get_character(character_id)
        if character is None:
            return False
        self.characters = [c for c in self.characters if c.id != character_id]
        self.touch()
        return True

    # -------------------------------------------------------------------------
    # Variables
    # -------------------------------------------------------------------------

    def get_variable_namespace(self, name: str) -> VariableNamespace | None:
        return next((ns for ns in self.variables if ns.name == name), None)

    def add_variable_namespace(
        self, name: str, description: str | None = None
    ) -> VariableNamespace:
        namespace = VariableNamespace(name=name, description=description)
        self.variables.append(namespace)
        self.touch()
        return namespace

    def add_variable(
        self,
        namespace: str,
        name: str,
        variable_type: VariableType,
        default_value: Any,
        description: str | None = None,
    ) -> Variable | None:
        """Add a variable to an existing namespace.

        Returns:
            The new variable, or None if the namespace does not exist.

        Raises:
            ValueError: If *default_value* does not match *variable_type*.
        """
        ns = self.get_variable_namespace(namespace)
        if ns is None:
            log.debug("variable_namespace_not_found", namespace=namespace)
            return None
        variable = Variable(
            id=generate_id(),
            namespace=ns.name,
            name=name,
            variable_type=variable_type,
            default_value=default_value,
            description=description,
        )
        ns.variables.append(variable)
        self.touch()
        return variable

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_json(self, *, pretty: bool = True) -> str:
        """Serialize to the persisted JSON document."""
        return self.model_dump_json(by_alias=True, indent=2 if pretty else None)

    @classmethod
    def from_json(cls, text: str | bytes) -> DialogueGraph:
        """Parse a persisted JSON document.

        Raises:
            GraphSerializationError: If the text is not valid JSON or does
                not describe a well-formed graph.
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            details = [
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            ]
            raise GraphSerializationError("Failed to parse graph", details=details) from e

    def __repr__(self) -> str:
        return (
            f"DialogueGraph(name={self.name!r}, nodes={len(self.nodes)}, "
            f"connections={len(self.connections)})"
        )
