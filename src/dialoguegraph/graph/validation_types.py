"""Validation report types shared by the validator and its callers."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from dialoguegraph.graph.types import CamelModel


class ValidationSeverity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCode(StrEnum):
    """Stable machine-readable codes for validation issues."""

    ORPHANED_NODE = "ORPHANED_NODE"
    EMPTY_DIALOGUE = "EMPTY_DIALOGUE"
    MISSING_JUMP_TARGET = "MISSING_JUMP_TARGET"
    INVALID_JUMP_TARGET = "INVALID_JUMP_TARGET"
    EMPTY_CONDITION = "EMPTY_CONDITION"
    EMPTY_INSTRUCTION = "EMPTY_INSTRUCTION"
    CYCLE_DETECTED = "CYCLE_DETECTED"
    INVALID_CONNECTION_SOURCE = "INVALID_CONNECTION_SOURCE"
    INVALID_CONNECTION_TARGET = "INVALID_CONNECTION_TARGET"


class ValidationIssue(CamelModel):
    """A single structural or semantic problem found in a graph.

    Attributes:
        node_id: Node the issue concerns, if any.
        connection_id: Connection the issue concerns, if any.
        severity: Error, warning or info.
        message: Human-readable description.
        code: Stable machine-readable code.
    """

    node_id: str | None = None
    connection_id: str | None = None
    severity: ValidationSeverity
    message: str
    code: IssueCode


class ValidationReport(CamelModel):
    """Aggregated result of a validation pass.

    Warnings never affect ``is_valid``.
    """

    is_valid: bool = True
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def issues_with_code(self, code: IssueCode) -> list[ValidationIssue]:
        """Return errors and warnings carrying *code*, errors first."""
        return [issue for issue in (*self.errors, *self.warnings) if issue.code == code]

    @property
    def summary(self) -> str:
        """Human-readable summary of the report."""
        if not self.errors and not self.warnings:
            return "valid, no issues"
        parts = ["valid" if self.is_valid else "invalid"]
        if self.errors:
            parts.append(f"{len(self.errors)} error(s)")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warning(s)")
        return ", ".join(parts)
