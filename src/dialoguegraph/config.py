"""Editor configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

from dialoguegraph.export.base import DEFAULT_PACKAGE_NAME
from dialoguegraph.graph.store import DEFAULT_GRAPH_NAME

CONFIG_FILE_NAME = "dialoguegraph.yaml"

DEFAULT_CHARACTER_COLOR = "#4A90D9"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _parse_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
    return default


@dataclass
class EditorConfig:
    """Settings shared by the CLI and any other front end.

    Resolution order for each overridable field:
    1. Environment variable (``DG_DEFAULT_GRAPH_NAME``, ``DG_EXPORT_PRETTY``,
       ``DG_CHARACTER_COLOR``)
    2. ``dialoguegraph.yaml``
    3. Built-in default

    Attributes:
        default_graph_name: Name given to graphs created without one.
        character_color: Color for characters created without one.
        export_pretty: Whether exports are indented by default.
        package_name: Name of the single package in engine exports.
        verbosity: Console log verbosity (0=WARNING, 1=INFO, 2+=DEBUG).
    """

    default_graph_name: str = DEFAULT_GRAPH_NAME
    character_color: str = DEFAULT_CHARACTER_COLOR
    export_pretty: bool = True
    package_name: str = DEFAULT_PACKAGE_NAME
    verbosity: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditorConfig:
        """Create config from a dictionary, falling back to defaults.

        Args:
            data: Dictionary with optional ``graph``, ``characters``,
                ``export`` and ``logging`` sections.
        """
        graph_data = data.get("graph") or {}
        character_data = data.get("characters") or {}
        export_data = data.get("export") or {}
        logging_data = data.get("logging") or {}

        return cls(
            default_graph_name=str(graph_data.get("default_name", DEFAULT_GRAPH_NAME)),
            character_color=str(character_data.get("default_color", DEFAULT_CHARACTER_COLOR)),
            export_pretty=_parse_bool(export_data.get("pretty"), True),
            package_name=str(export_data.get("package_name", DEFAULT_PACKAGE_NAME)),
            verbosity=int(logging_data.get("verbosity", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Inverse of :meth:`from_dict`."""
        return {
            "graph": {"default_name": self.default_graph_name},
            "characters": {"default_color": self.character_color},
            "export": {"pretty": self.export_pretty, "package_name": self.package_name},
            "logging": {"verbosity": self.verbosity},
        }

    def apply_env_overrides(self) -> EditorConfig:
        """Overlay ``DG_*`` environment variables onto this config."""
        name = os.getenv("DG_DEFAULT_GRAPH_NAME")
        if name:
            self.default_graph_name = name
        color = os.getenv("DG_CHARACTER_COLOR")
        if color:
            self.character_color = color
        pretty = os.getenv("DG_EXPORT_PRETTY")
        if pretty is not None:
            self.export_pretty = _parse_bool(pretty, self.export_pretty)
        return self


class EditorConfigError(Exception):
    """Raised when the configuration file cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config at {path}: {reason}")


def load_config(directory: Path) -> EditorConfig:
    """Load ``dialoguegraph.yaml`` from *directory*, then apply env overrides.

    A missing file is not an error: defaults are used.

    Raises:
        EditorConfigError: If the file exists but cannot be parsed.
    """
    config_path = directory / CONFIG_FILE_NAME
    if not config_path.exists():
        return EditorConfig().apply_env_overrides()

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except Exception as e:
        raise EditorConfigError(config_path, str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise EditorConfigError(config_path, "Top level must be a mapping")

    try:
        config = EditorConfig.from_dict(dict(data))
    except (TypeError, ValueError, AttributeError) as e:
        raise EditorConfigError(config_path, str(e)) from e
    return config.apply_env_overrides()


def create_default_config(directory: Path) -> Path:
    """Write a starter ``dialoguegraph.yaml`` into *directory*.

    Returns:
        Path to the written file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    config_path = directory / CONFIG_FILE_NAME

    yaml_writer = YAML()
    yaml_writer.default_flow_style = False
    with config_path.open("w", encoding="utf-8") as f:
        yaml_writer.dump(EditorConfig().to_dict(), f)
    return config_path
