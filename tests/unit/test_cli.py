"""Test CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dialoguegraph import __version__
from dialoguegraph.cli import app
from dialoguegraph.config import CONFIG_FILE_NAME, DEFAULT_CHARACTER_COLOR
from dialoguegraph.graph.graph import DialogueGraph
from dialoguegraph.graph.types import NodeType
from dialoguegraph.observability import close_file_logging
from tests.fixtures.graph_fixtures import add_chain, make_dangling_graph

runner = CliRunner()


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write(graph: DialogueGraph, path: Path) -> Path:
    path.write_text(graph.to_json(), encoding="utf-8")
    return path


def _read(path: Path) -> DialogueGraph:
    return DialogueGraph.from_json(path.read_text(encoding="utf-8"))


def test_version_command() -> None:
    """Test dg version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"v{__version__}" in result.output


def test_no_args_shows_help() -> None:
    """No arguments prints usage."""
    result = runner.invoke(app, [])
    assert result.exit_code in (0, 2)
    assert "Usage" in result.output


# --- new / info ---


class TestNew:
    """Tests for dg new."""

    def test_new_creates_file(self, tmp_path: Path) -> None:
        """The file is named after the technical name."""
        result = runner.invoke(app, ["new", "My Story"])

        assert result.exit_code == 0, result.output
        graph = _read(tmp_path / "My_Story.json")
        assert graph.name == "My Story"
        assert graph.nodes == []

    def test_new_with_output(self, tmp_path: Path) -> None:
        """-o chooses the file."""
        target = tmp_path / "graphs" / "intro.json"

        result = runner.invoke(app, ["new", "Intro", "-o", str(target)])

        assert result.exit_code == 0, result.output
        assert _read(target).name == "Intro"

    def test_new_refuses_to_overwrite(self, tmp_path: Path) -> None:
        """An existing file is left alone."""
        existing = tmp_path / "Story.json"
        existing.write_text("keep")

        result = runner.invoke(app, ["new", "Story"])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert existing.read_text() == "keep"

    def test_new_uses_configured_default_name(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without a name, the configured default is used."""
        monkeypatch.setenv("DG_DEFAULT_GRAPH_NAME", "Draft")

        result = runner.invoke(app, ["new"])

        assert result.exit_code == 0, result.output
        assert _read(tmp_path / "Draft.json").name == "Draft"


class TestInfo:
    """Tests for dg info."""

    def test_info_shows_counts(self, tmp_path: Path) -> None:
        """Counts are listed per item."""
        graph = DialogueGraph.create("Info")
        add_chain(graph, 2)
        path = _write(graph, tmp_path / "info.json")

        result = runner.invoke(app, ["info", str(path)])

        assert result.exit_code == 0, result.output
        assert "Nodes" in result.output
        assert "Connections" in result.output

    def test_missing_file(self) -> None:
        """A missing file is reported."""
        result = runner.invoke(app, ["info", "nope.json"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_malformed_file(self, tmp_path: Path) -> None:
        """A file that is not a graph is reported."""
        path = tmp_path / "bad.json"
        path.write_text('{"id": 1}')

        result = runner.invoke(app, ["info", str(path)])

        assert result.exit_code == 1
        assert "Failed to parse graph" in result.output


# --- editing ---


class TestEditing:
    """Tests for add-node, connect and add-character."""

    def test_add_node(self, tmp_path: Path) -> None:
        """A node of the given type is saved at the given position."""
        path = _write(DialogueGraph.create("Edit"), tmp_path / "edit.json")

        result = runner.invoke(app, ["add-node", str(path), "dialogue", "--x", "10", "--y", "20"])

        assert result.exit_code == 0, result.output
        nodes = _read(path).nodes
        assert len(nodes) == 1
        assert nodes[0].node_type is NodeType.DIALOGUE
        assert (nodes[0].position.x, nodes[0].position.y) == (10.0, 20.0)

    def test_add_node_unknown_type(self, tmp_path: Path) -> None:
        """An unknown type is a usage error."""
        path = _write(DialogueGraph.create("Edit"), tmp_path / "edit.json")

        result = runner.invoke(app, ["add-node", str(path), "portal"])

        assert result.exit_code == 2
        assert _read(path).nodes == []

    def test_connect(self, tmp_path: Path) -> None:
        """Two nodes can be connected."""
        graph = DialogueGraph.create("Edit")
        a = graph.add_node(NodeType.BRANCH)
        b = graph.add_node(NodeType.DIALOGUE)
        path = _write(graph, tmp_path / "edit.json")

        result = runner.invoke(app, ["connect", str(path), a.id, b.id, "--from-port", "1"])

        assert result.exit_code == 0, result.output
        connections = _read(path).connections
        assert len(connections) == 1
        assert connections[0].from_port_index == 1

    def test_connect_refused(self, tmp_path: Path) -> None:
        """A refused connection names the rule and changes nothing."""
        graph = DialogueGraph.create("Edit")
        a = graph.add_node(NodeType.DIALOGUE)
        path = _write(graph, tmp_path / "edit.json")
        before = path.read_text()

        result = runner.invoke(app, ["connect", str(path), a.id, a.id])

        assert result.exit_code == 1
        assert "self_loop" in result.output
        assert path.read_text() == before

    def test_add_character_uses_default_color(self, tmp_path: Path) -> None:
        """Without --color the configured color is used."""
        path = _write(DialogueGraph.create("Cast"), tmp_path / "cast.json")

        result = runner.invoke(app, ["add-character", str(path), "Old Sailor"])

        assert result.exit_code == 0, result.output
        character = _read(path).characters[0]
        assert character.technical_name == "Old_Sailor"
        assert character.color == DEFAULT_CHARACTER_COLOR

    def test_add_character_with_color(self, tmp_path: Path) -> None:
        """--color overrides the default."""
        path = _write(DialogueGraph.create("Cast"), tmp_path / "cast.json")

        runner.invoke(app, ["add-character", str(path), "Ann", "--color", "#010203"])

        assert _read(path).characters[0].color == "#010203"


# --- validate ---


class TestValidate:
    """Tests for dg validate."""

    def test_clean_graph_passes(self, tmp_path: Path) -> None:
        """A graph with no issues exits 0."""
        path = _write(DialogueGraph.create("Clean"), tmp_path / "clean.json")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 0, result.output
        assert "no issues" in result.output

    def test_warnings_pass_unless_strict(self, tmp_path: Path) -> None:
        """Warnings only fail with --strict."""
        graph = DialogueGraph.create("Warn")
        graph.add_node(NodeType.DIALOGUE)
        path = _write(graph, tmp_path / "warn.json")

        lenient = runner.invoke(app, ["validate", str(path)])
        strict = runner.invoke(app, ["validate", str(path), "--strict"])

        assert lenient.exit_code == 0, lenient.output
        assert "1 warning(s)" in lenient.output
        assert strict.exit_code == 1

    def test_errors_fail(self, tmp_path: Path) -> None:
        """Errors always fail."""
        path = _write(make_dangling_graph(), tmp_path / "dangling.json")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "invalid" in result.output


# --- export ---


class TestExport:
    """Tests for dg export."""

    def test_engine_export_next_to_file(self, tmp_path: Path) -> None:
        """By default the export is written beside the graph file."""
        graph = DialogueGraph.create("Tavern")
        add_chain(graph, 2)
        path = _write(graph, tmp_path / "tavern.json")

        result = runner.invoke(app, ["export", str(path)])

        assert result.exit_code == 0, result.output
        data = json.loads((tmp_path / "Tavern.export.json").read_text())
        assert data["formatVersion"] == "1.0"
        assert len(data["packages"][0]["objects"]) == 2

    def test_json_export_compact_to_dir(self, tmp_path: Path) -> None:
        """--format json --compact -o DIR writes compact graph JSON."""
        path = _write(DialogueGraph.create("Plain"), tmp_path / "plain.json")
        out = tmp_path / "out"

        result = runner.invoke(
            app, ["export", str(path), "--format", "json", "--compact", "-o", str(out)]
        )

        assert result.exit_code == 0, result.output
        text = (out / "Plain.json").read_text()
        assert "\n" not in text
        assert _read(out / "Plain.json").name == "Plain"

    def test_package_name_from_config(self, tmp_path: Path) -> None:
        """The engine package name comes from dialoguegraph.yaml."""
        (tmp_path / CONFIG_FILE_NAME).write_text("export:\n  package_name: Act1\n")
        path = _write(DialogueGraph.create("Pkg"), tmp_path / "pkg.json")

        result = runner.invoke(app, ["export", str(path)])

        assert result.exit_code == 0, result.output
        data = json.loads((tmp_path / "Pkg.export.json").read_text())
        assert data["packages"][0]["name"] == "Act1"

    def test_unknown_format(self, tmp_path: Path) -> None:
        """Unknown formats are rejected."""
        path = _write(DialogueGraph.create("X"), tmp_path / "x.json")

        result = runner.invoke(app, ["export", str(path), "--format", "xml"])

        assert result.exit_code == 1
        assert "Unknown export format" in result.output


# --- init / logging ---


class TestInitAndLogging:
    """Tests for dg init and global options."""

    def test_init_writes_config(self, tmp_path: Path) -> None:
        """init creates dialoguegraph.yaml once."""
        first = runner.invoke(app, ["init"])
        second = runner.invoke(app, ["init"])

        assert first.exit_code == 0, first.output
        assert (tmp_path / CONFIG_FILE_NAME).exists()
        assert second.exit_code == 1

    def test_broken_config_is_reported(self, tmp_path: Path) -> None:
        """A malformed config file stops every command."""
        (tmp_path / CONFIG_FILE_NAME).write_text("- not a mapping\n")

        result = runner.invoke(app, ["version"])

        assert result.exit_code == 1
        assert "Failed to load config" in result.output

    def test_log_flag_writes_jsonl(self, tmp_path: Path) -> None:
        """--log appends events to logs/debug.jsonl."""
        path = _write(DialogueGraph.create("Logged"), tmp_path / "logged.json")

        try:
            result = runner.invoke(app, ["--log", "validate", str(path)])
        finally:
            close_file_logging()

        assert result.exit_code == 0, result.output
        log_file = tmp_path / "logs" / "debug.jsonl"
        events = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert "graph_validated" in {e["message"] for e in events}
