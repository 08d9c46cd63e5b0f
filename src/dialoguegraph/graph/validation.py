"""Structural and semantic validation of a dialogue graph.

Validation never mutates the graph and never raises for a defective graph:
defects are returned as data in a :class:`ValidationReport`. Passes run in a
fixed order, each appending to the report:

1. Orphaned nodes (only when the graph has more than one node)
2. Per-node semantic checks, in node order
3. Cycle detection
4. Connection referential integrity

Errors make the graph invalid; warnings never do. Cycles are warnings
because hub loops are legitimate, but authors should know about them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dialoguegraph.graph.algorithms import detect_cycles
from dialoguegraph.graph.types import (
    ConditionPayload,
    DialogueFragmentPayload,
    DialoguePayload,
    InstructionPayload,
    JumpPayload,
    Node,
)
from dialoguegraph.graph.validation_types import (
    IssueCode,
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)
from dialoguegraph.observability.logging import get_logger

if TYPE_CHECKING:
    from dialoguegraph.graph.graph import DialogueGraph

log = get_logger(__name__)

__all__ = [
    "check_connections",
    "check_cycles",
    "check_node",
    "check_orphans",
    "validate",
]


def _warning(code: IssueCode, message: str, *, node_id: str | None = None) -> ValidationIssue:
    return ValidationIssue(
        node_id=node_id,
        severity=ValidationSeverity.WARNING,
        message=message,
        code=code,
    )


def _error(
    code: IssueCode,
    message: str,
    *,
    node_id: str | None = None,
    connection_id: str | None = None,
) -> ValidationIssue:
    return ValidationIssue(
        node_id=node_id,
        connection_id=connection_id,
        severity=ValidationSeverity.ERROR,
        message=message,
        code=code,
    )


def check_orphans(graph: DialogueGraph) -> list[ValidationIssue]:
    """Warn about nodes that no connection touches.

    A lone node is not an orphan, so graphs with one node yield nothing.
    """
    if len(graph.nodes) <= 1:
        return []

    connected: set[str] = set()
    for conn in graph.connections:
        connected.add(conn.from_node_id)
        connected.add(conn.to_node_id)

    return [
        _warning(
            IssueCode.ORPHANED_NODE,
            f"Node '{node.technical_name}' is not connected to any other nodes",
            node_id=node.id,
        )
        for node in graph.nodes
        if node.id not in connected
    ]


def check_node(
    node: Node, node_ids: set[str]
) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
    """Run the semantic checks for a single node.

    Args:
        node: Node to check.
        node_ids: Ids of every node in the graph, for jump target lookup.

    Returns:
        Tuple of (errors, warnings).
    """
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    payload = node.data

    if isinstance(payload, DialoguePayload | DialogueFragmentPayload):
        if not payload.data.speaker and not payload.data.text:
            warnings.append(
                _warning(
                    IssueCode.EMPTY_DIALOGUE,
                    f"Dialogue node '{node.technical_name}' has no speaker or text",
                    node_id=node.id,
                )
            )
    elif isinstance(payload, JumpPayload):
        target = payload.data.target_node_id
        if target is None:
            warnings.append(
                _warning(
                    IssueCode.MISSING_JUMP_TARGET,
                    f"Jump node '{node.technical_name}' has no target set",
                    node_id=node.id,
                )
            )
        elif target not in node_ids:
            errors.append(
                _error(
                    IssueCode.INVALID_JUMP_TARGET,
                    f"Jump node '{node.technical_name}' references non-existent target",
                    node_id=node.id,
                )
            )
    elif isinstance(payload, ConditionPayload):
        if not payload.data.script.expression.strip():
            warnings.append(
                _warning(
                    IssueCode.EMPTY_CONDITION,
                    f"Condition node '{node.technical_name}' has empty expression",
                    node_id=node.id,
                )
            )
    elif isinstance(payload, InstructionPayload):
        if not payload.data.script.expression.strip():
            warnings.append(
                _warning(
                    IssueCode.EMPTY_INSTRUCTION,
                    f"Instruction node '{node.technical_name}' has empty script",
                    node_id=node.id,
                )
            )

    return errors, warnings


def check_cycles(graph: DialogueGraph) -> list[ValidationIssue]:
    """Warn once per node flagged by cycle detection, in node order."""
    cycle_nodes = detect_cycles(graph)
    return [
        _warning(
            IssueCode.CYCLE_DETECTED,
            f"Node '{node.technical_name}' is part of a cycle - may cause infinite loops",
            node_id=node.id,
        )
        for node in graph.nodes
        if node.id in cycle_nodes
    ]


def check_connections(graph: DialogueGraph, node_ids: set[str]) -> list[ValidationIssue]:
    """Report connections whose source or target node does not exist."""
    errors: list[ValidationIssue] = []
    for conn in graph.connections:
        if conn.from_node_id not in node_ids:
            errors.append(
                _error(
                    IssueCode.INVALID_CONNECTION_SOURCE,
                    f"Connection references non-existent source node '{conn.from_node_id}'",
                    connection_id=conn.id,
                )
            )
        if conn.to_node_id not in node_ids:
            errors.append(
                _error(
                    IssueCode.INVALID_CONNECTION_TARGET,
                    f"Connection references non-existent target node '{conn.to_node_id}'",
                    connection_id=conn.id,
                )
            )
    return errors


def validate(graph: DialogueGraph) -> ValidationReport:
    """Validate a dialogue graph.

    Args:
        graph: Graph to check. It is not modified.

    Returns:
        Report with errors and warnings; ``is_valid`` is True iff there
        are no errors.
    """
    node_ids = {node.id for node in graph.nodes}
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    warnings.extend(check_orphans(graph))

    for node in graph.nodes:
        node_errors, node_warnings = check_node(node, node_ids)
        errors.extend(node_errors)
        warnings.extend(node_warnings)

    warnings.extend(check_cycles(graph))
    errors.extend(check_connections(graph, node_ids))

    report = ValidationReport(is_valid=not errors, errors=errors, warnings=warnings)
    log.info(
        "graph_validated",
        graph_id=graph.id,
        errors=len(errors),
        warnings=len(warnings),
    )
    return report
