"""Shared, lock-guarded holder of the current dialogue graph.

GraphStore is the single-writer resource that a dispatch layer (RPC
handlers, a CLI, an editor bridge) calls into. It owns exactly one
:class:`DialogueGraph` behind one exclusive lock: every method holds the
lock for its whole duration and releases it on return, and nothing blocks
while holding it.

Results are deep copies, so callers can never mutate the stored graph
except through these methods.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

from dialoguegraph.export.json_exporter import render_engine_export, render_graph_json
from dialoguegraph.graph.graph import DialogueGraph
from dialoguegraph.graph.types import NodeType, PortType, Position
from dialoguegraph.graph.updates import CharacterUpdate, NodeUpdate
from dialoguegraph.graph.validation import validate
from dialoguegraph.observability.logging import get_logger, graph_log_context

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dialoguegraph.graph.types import (
        Character,
        Connection,
        Node,
        Port,
        Variable,
        VariableNamespace,
        VariableType,
    )
    from dialoguegraph.graph.validation_types import ValidationReport

log = get_logger(__name__)

DEFAULT_GRAPH_NAME = "Untitled"


T = TypeVar("T", bound=BaseModel)


def _copy(value: T | None) -> T | None:
    """Detach a result from the stored graph."""
    if value is None:
        return None
    return value.model_copy(deep=True)


class GraphStore:
    """Thread-safe owner of the current graph.

    Operations that look up a missing entity return ``None`` or ``False``;
    a refused connection returns ``None``. ``load_graph`` raises
    :class:`GraphSerializationError` on malformed input and keeps the current
    graph in that case.
    """

    def __init__(
        self,
        graph: DialogueGraph | None = None,
        *,
        default_name: str = DEFAULT_GRAPH_NAME,
    ) -> None:
        self._lock = threading.RLock()
        self._graph = graph if graph is not None else DialogueGraph.create(default_name)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the lock; events logged meanwhile carry the current graph id."""
        with self._lock, graph_log_context(self._graph.id):
            yield

    # -------------------------------------------------------------------------
    # Whole-graph operations
    # -------------------------------------------------------------------------

    def new_graph(self, name: str) -> DialogueGraph:
        """Replace the current graph with an empty one."""
        with self._locked():
            self._graph = DialogueGraph.create(name)
            log.info("graph_replaced", graph_id=self._graph.id, source="new")
            return _copy(self._graph)

    def load_graph(self, text: str | bytes) -> DialogueGraph:
        """Replace the current graph with one parsed from JSON.

        Raises:
            GraphSerializationError: If *text* is not a valid graph document.
        """
        graph = DialogueGraph.from_json(text)
        with self._locked():
            self._graph = graph
            log.info("graph_replaced", graph_id=graph.id, source="load")
            return _copy(self._graph)

    def save_graph(self, *, pretty: bool = True) -> str:
        """Serialize the current graph to its persisted JSON form."""
        with self._locked():
            return render_graph_json(self._graph, pretty=pretty)

    def get_graph(self) -> DialogueGraph:
        with self._locked():
            return _copy(self._graph)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def add_node(self, node_type: NodeType | str, x: float = 0.0, y: float = 0.0) -> Node:
        with self._locked():
            return _copy(self._graph.add_node(NodeType(node_type), Position(x=x, y=y)))

    def remove_node(self, node_id: str) -> bool:
        with self._locked():
            return self._graph.remove_node(node_id)

    def update_node(self, node_id: str, updates: NodeUpdate | dict[str, Any]) -> Node | None:
        """Apply a partial update; dict input is coerced, unknown keys ignored."""
        if not isinstance(updates, NodeUpdate):
            updates = NodeUpdate.from_sparse(updates)
        with self._locked():
            return _copy(self._graph.update_node(node_id, updates))

    def clone_node(
        self, node_id: str, offset_x: float = 0.0, offset_y: float = 0.0
    ) -> Node | None:
        with self._locked():
            return _copy(self._graph.clone_node(node_id, Position(x=offset_x, y=offset_y)))

    def add_port(
        self, node_id: str, port_type: PortType | str, label: str | None = None
    ) -> Port | None:
        with self._locked():
            return _copy(self._graph.add_port(node_id, PortType(port_type), label))

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def add_connection(
        self,
        from_node_id: str,
        from_port_index: int,
        to_node_id: str,
        to_port_index: int,
    ) -> Connection | None:
        with self._locked():
            return _copy(
                self._graph.add_connection(
                    from_node_id, from_port_index, to_node_id, to_port_index
                )
            )

    def remove_connection(self, connection_id: str) -> bool:
        with self._locked():
            return self._graph.remove_connection(connection_id)

    # -------------------------------------------------------------------------
    # Validation & export
    # -------------------------------------------------------------------------

    def validate(self) -> ValidationReport:
        with self._locked():
            return validate(self._graph)

    def export_engine(self, *, pretty: bool = True) -> str:
        """Render the engine export document for the current graph."""
        with self._locked():
            return render_engine_export(self._graph, pretty=pretty)

    def export_json(self, *, pretty: bool = True) -> str:
        """Render the current graph as plain JSON."""
        with self._locked():
            return render_graph_json(self._graph, pretty=pretty)

    # -------------------------------------------------------------------------
    # Variables
    # -------------------------------------------------------------------------

    def add_variable_namespace(
        self, name: str, description: str | None = None
    ) -> VariableNamespace:
        with self._locked():
            return _copy(self._graph.add_variable_namespace(name, description))

    def add_variable(
        self,
        namespace: str,
        name: str,
        variable_type: VariableType,
        default_value: Any,
    ) -> Variable | None:
        with self._locked():
            return _copy(self._graph.add_variable(namespace, name, variable_type, default_value))

    # -------------------------------------------------------------------------
    # Characters
    # -------------------------------------------------------------------------

    def add_character(self, display_name: str, color: str) -> Character:
        with self._locked():
            return _copy(self._graph.add_character(display_name, color))

    def update_character(
        self, character_id: str, updates: CharacterUpdate | dict[str, Any]
    ) -> Character | None:
        if not isinstance(updates, CharacterUpdate):
            updates = CharacterUpdate.from_sparse(updates)
        with self._locked():
            return _copy(self._graph.update_character(character_id, updates))

    def remove_character(self, character_id: str) -> bool:
        with self._locked():
            return self._graph.remove_character(character_id)
