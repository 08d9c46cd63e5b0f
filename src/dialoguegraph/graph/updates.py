"""Partial update records for nodes and characters.

Each record has one optional field per updatable attribute. Fields left as
``None`` are not applied, and unknown keys in a sparse dict are dropped when
the dict is coerced into a record.
"""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, ValidationError

from dialoguegraph.graph.types import CamelModel, NodeData, Position
from dialoguegraph.observability.logging import get_logger

log = get_logger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_full_position(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and _is_number(value.get("x"))
        and _is_number(value.get("y"))
    )


class NodeUpdate(CamelModel):
    """Fields of a node that may be changed after creation."""

    model_config = ConfigDict(extra="ignore")

    position: Position | None = None
    technical_name: str | None = None
    color: str | None = None
    data: NodeData | None = None

    @classmethod
    def from_sparse(cls, updates: dict[str, Any]) -> NodeUpdate:
        """Build an update from a sparse camelCase dict.

        Each recognized field is validated on its own, so a malformed value
        is skipped without discarding the rest of the update. A position is
        only taken when it carries both ``x`` and ``y`` as numbers; a partial
        position would otherwise fall back to the model defaults.
        """
        accepted: dict[str, Any] = {}
        for name, field_info in cls.model_fields.items():
            key = field_info.alias or name
            if key not in updates:
                continue
            if key == "position" and not _is_full_position(updates[key]):
                log.debug("node_update_field_ignored", field=key, error="needs numeric x and y")
                continue
            try:
                cls.model_validate({key: updates[key]})
            except ValidationError as e:
                log.debug("node_update_field_ignored", field=key, error=str(e))
                continue
            accepted[key] = updates[key]
        return cls.model_validate(accepted)


class CharacterUpdate(CamelModel):
    """Fields of a character that may be changed after creation."""

    model_config = ConfigDict(extra="ignore")

    display_name: str | None = None
    color: str | None = None

    @classmethod
    def from_sparse(cls, updates: dict[str, Any]) -> CharacterUpdate:
        """Build an update from a sparse camelCase dict, skipping bad values."""
        accepted: dict[str, Any] = {}
        for name, field_info in cls.model_fields.items():
            key = field_info.alias or name
            if isinstance(updates.get(key), str):
                accepted[key] = updates[key]
        return cls.model_validate(accepted)
