"""Error types for dialogue graph operations.

Missing entities and rejected connections are not errors: those operations
return ``None`` or ``False``. Exceptions are reserved for input that cannot
be represented at all, such as malformed JSON on load or a payload that
cannot be serialized on export.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class DialogueGraphError(Exception):
    """Base class for dialogue graph failures surfaced to callers."""


@dataclass
class GraphSerializationError(DialogueGraphError):
    """Raised when a graph document cannot be parsed or produced.

    Attributes:
        message: Short description of what failed.
        details: Individual problems (e.g. one per schema violation).
    """

    message: str
    details: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        lines = [self.message]
        for detail in self.details[:10]:
            lines.append(f"  - {detail}")
        if len(self.details) > 10:
            lines.append(f"  - ... and {len(self.details) - 10} more")
        return "\n".join(lines)


@dataclass
class ExportSerializationError(DialogueGraphError):
    """Raised when the export document cannot be serialized.

    Attributes:
        message: Description of the failure.
        node_id: Node whose payload failed, when known.
    """

    message: str
    node_id: str | None = None

    def __post_init__(self) -> None:
        msg = self.message
        if self.node_id:
            msg += f" (node '{self.node_id}')"
        super().__init__(msg)


class InvalidCompositeIdError(ValueError):
    """Raised when a composite id string is not 32 hex digits."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"Invalid composite id {text!r}: {reason}")


class ConnectionRejection(StrEnum):
    """Why a connection request was refused.

    ``DialogueGraph.add_connection`` only reports that a request was
    refused; ``DialogueGraph.check_connection`` reports which rule fired.
    """

    SELF_LOOP = "self_loop"
    NODE_NOT_FOUND = "node_not_found"
    OUTPUT_PORT_OUT_OF_RANGE = "output_port_out_of_range"
    INPUT_PORT_OUT_OF_RANGE = "input_port_out_of_range"
    DUPLICATE_CONNECTION = "duplicate_connection"
    INPUT_OCCUPIED = "input_occupied"
