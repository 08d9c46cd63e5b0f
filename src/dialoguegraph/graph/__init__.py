"""Graph package - in-memory dialogue graph model.

The graph owns nodes, connections, variables and characters; validation and
cycle detection read it without modifying it.

``GraphStore`` lives in :mod:`dialoguegraph.graph.store` and is not
re-exported here, because it depends on the export package, which in turn
depends on the types defined here.
"""

from dialoguegraph.graph.algorithms import build_adjacency, detect_cycles
from dialoguegraph.graph.errors import (
    ConnectionRejection,
    DialogueGraphError,
    ExportSerializationError,
    GraphSerializationError,
    InvalidCompositeIdError,
)
from dialoguegraph.graph.factory import create_node
from dialoguegraph.graph.graph import DialogueGraph
from dialoguegraph.graph.ids import CompositeId, generate_id, to_technical_name
from dialoguegraph.graph.types import (
    Character,
    Connection,
    ConnectionType,
    Node,
    NodeType,
    Port,
    PortType,
    Position,
    Size,
    Variable,
    VariableNamespace,
    VariableType,
)
from dialoguegraph.graph.updates import CharacterUpdate, NodeUpdate
from dialoguegraph.graph.validation import validate
from dialoguegraph.graph.validation_types import (
    IssueCode,
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)

__all__ = [
    "Character",
    "CharacterUpdate",
    "CompositeId",
    "Connection",
    "ConnectionRejection",
    "ConnectionType",
    "DialogueGraph",
    "DialogueGraphError",
    "ExportSerializationError",
    "GraphSerializationError",
    "InvalidCompositeIdError",
    "IssueCode",
    "Node",
    "NodeType",
    "NodeUpdate",
    "Port",
    "PortType",
    "Position",
    "Size",
    "ValidationIssue",
    "ValidationReport",
    "ValidationSeverity",
    "Variable",
    "VariableNamespace",
    "VariableType",
    "build_adjacency",
    "create_node",
    "detect_cycles",
    "generate_id",
    "to_technical_name",
    "validate",
]
