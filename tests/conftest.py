"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from dialoguegraph.graph.graph import DialogueGraph
from dialoguegraph.graph.store import GraphStore


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep DG_* overrides from the developer's shell out of tests."""
    for name in ("DG_DEFAULT_GRAPH_NAME", "DG_EXPORT_PRETTY", "DG_CHARACTER_COLOR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def graph() -> DialogueGraph:
    """An empty graph."""
    return DialogueGraph.create("Test Graph")


@pytest.fixture
def store() -> GraphStore:
    """A store holding an empty graph."""
    return GraphStore()
