"""Tests for graph validation."""

from __future__ import annotations

from dialoguegraph.graph.graph import DialogueGraph
from dialoguegraph.graph.types import (
    ConditionPayload,
    DialogueData,
    DialogueFragmentPayload,
    DialoguePayload,
    InstructionPayload,
    JumpData,
    JumpPayload,
    NodeType,
    ScriptData,
    ScriptFragment,
)
from dialoguegraph.graph.updates import NodeUpdate
from dialoguegraph.graph.validation import check_node, check_orphans, validate
from dialoguegraph.graph.validation_types import (
    IssueCode,
    ValidationReport,
    ValidationSeverity,
)
from tests.fixtures.graph_fixtures import (
    add_chain,
    make_dangling_graph,
    make_ring_graph,
)


def _dialogue(speaker: str | None = None, text: str = "") -> DialoguePayload:
    return DialoguePayload(data=DialogueData(speaker=speaker, text=text))


class TestValidationReport:
    """Tests for the report model."""

    def test_summary(self) -> None:
        """Summary reflects validity and counts."""
        assert ValidationReport().summary == "valid, no issues"

    def test_empty_graph_is_valid(self) -> None:
        """An empty graph has nothing to report."""
        report = validate(DialogueGraph.create("Empty"))

        assert report.is_valid
        assert report.errors == []
        assert report.warnings == []


class TestOrphans:
    """Tests for orphaned node warnings."""

    def test_single_node_is_not_orphan(self, graph: DialogueGraph) -> None:
        """A lone node is never reported as orphaned."""
        graph.add_node(NodeType.HUB)
        assert check_orphans(graph) == []

    def test_unconnected_node_in_larger_graph(self, graph: DialogueGraph) -> None:
        """With two or more nodes, unconnected ones are orphans."""
        a, b = add_chain(graph, 2)
        loner = graph.add_node(NodeType.HUB)

        issues = check_orphans(graph)

        assert [i.node_id for i in issues] == [loner.id]
        assert issues[0].code is IssueCode.ORPHANED_NODE
        assert issues[0].severity is ValidationSeverity.WARNING
        assert a.id not in {i.node_id for i in issues}
        assert b.id not in {i.node_id for i in issues}

    def test_orphan_and_empty_dialogue_stay_valid(self, graph: DialogueGraph) -> None:
        """Warnings alone never make a graph invalid."""
        graph.add_node(NodeType.DIALOGUE)
        graph.add_node(NodeType.HUB)

        report = validate(graph)

        assert report.is_valid
        assert report.errors == []
        assert len(report.issues_with_code(IssueCode.ORPHANED_NODE)) == 2
        assert len(report.issues_with_code(IssueCode.EMPTY_DIALOGUE)) == 1
        assert report.summary == "valid, 3 warning(s)"


class TestNodeChecks:
    """Tests for per-node semantic checks."""

    def test_empty_dialogue_warns(self, graph: DialogueGraph) -> None:
        """Dialogue with neither speaker nor text is flagged."""
        node = graph.add_node(NodeType.DIALOGUE)

        errors, warnings = check_node(node, {node.id})

        assert errors == []
        assert [w.code for w in warnings] == [IssueCode.EMPTY_DIALOGUE]

    def test_dialogue_with_only_speaker_is_fine(self, graph: DialogueGraph) -> None:
        """A speaker alone is enough."""
        node = graph.add_node(NodeType.DIALOGUE)
        graph.update_node(node.id, NodeUpdate(data=_dialogue(speaker="Ann")))

        assert check_node(node, {node.id}) == ([], [])

    def test_dialogue_fragment_with_text_is_fine(self, graph: DialogueGraph) -> None:
        """Text alone is enough, for fragments as well."""
        node = graph.add_node(NodeType.DIALOGUE_FRAGMENT)
        graph.update_node(
            node.id,
            NodeUpdate(data=DialogueFragmentPayload(data=DialogueData(text="Hello"))),
        )

        assert check_node(node, {node.id}) == ([], [])

    def test_empty_fragment_warns(self, graph: DialogueGraph) -> None:
        """Fragments are checked like dialogues."""
        node = graph.add_node(NodeType.DIALOGUE_FRAGMENT)

        _errors, warnings = check_node(node, {node.id})

        assert [w.code for w in warnings] == [IssueCode.EMPTY_DIALOGUE]

    def test_jump_without_target_warns(self, graph: DialogueGraph) -> None:
        """An unset jump target is a warning."""
        node = graph.add_node(NodeType.JUMP)

        errors, warnings = check_node(node, {node.id})

        assert errors == []
        assert [w.code for w in warnings] == [IssueCode.MISSING_JUMP_TARGET]

    def test_jump_to_missing_node_is_error(self, graph: DialogueGraph) -> None:
        """A jump to a node that does not exist makes the graph invalid."""
        node = graph.add_node(NodeType.JUMP)
        graph.update_node(
            node.id, NodeUpdate(data=JumpPayload(data=JumpData(target_node_id="ghost")))
        )

        report = validate(graph)

        assert not report.is_valid
        assert [e.code for e in report.errors] == [IssueCode.INVALID_JUMP_TARGET]
        assert report.errors[0].node_id == node.id
        assert report.errors[0].severity is ValidationSeverity.ERROR

    def test_jump_to_existing_node(self, graph: DialogueGraph) -> None:
        """A jump to a real node is fine."""
        target = graph.add_node(NodeType.HUB)
        node = graph.add_node(NodeType.JUMP)
        graph.update_node(
            node.id, NodeUpdate(data=JumpPayload(data=JumpData(target_node_id=target.id)))
        )

        assert check_node(node, {node.id, target.id}) == ([], [])

    def test_blank_condition_warns(self, graph: DialogueGraph) -> None:
        """Whitespace-only conditions count as empty."""
        node = graph.add_node(NodeType.CONDITION)
        graph.update_node(
            node.id,
            NodeUpdate(
                data=ConditionPayload(data=ScriptData(script=ScriptFragment(expression="  ")))
            ),
        )

        _errors, warnings = check_node(node, {node.id})

        assert [w.code for w in warnings] == [IssueCode.EMPTY_CONDITION]

    def test_empty_instruction_warns(self, graph: DialogueGraph) -> None:
        """Instructions without a script are flagged."""
        node = graph.add_node(NodeType.INSTRUCTION)

        _errors, warnings = check_node(node, {node.id})

        assert [w.code for w in warnings] == [IssueCode.EMPTY_INSTRUCTION]

    def test_filled_instruction_is_fine(self, graph: DialogueGraph) -> None:
        """A scripted instruction passes."""
        node = graph.add_node(NodeType.INSTRUCTION)
        graph.update_node(
            node.id,
            NodeUpdate(
                data=InstructionPayload(data=ScriptData(script=ScriptFragment(expression="x = 1")))
            ),
        )

        assert check_node(node, {node.id}) == ([], [])

    def test_other_types_have_no_checks(self, graph: DialogueGraph) -> None:
        """Hubs, branches and flow fragments have no semantic checks."""
        for node_type in (NodeType.HUB, NodeType.BRANCH, NodeType.FLOW_FRAGMENT):
            node = graph.add_node(node_type)
            assert check_node(node, {node.id}) == ([], [])


class TestCyclesAndConnections:
    """Tests for graph-level checks."""

    def test_cycle_warns_per_node(self) -> None:
        """Each node of a ring gets one cycle warning, in node order."""
        graph = make_ring_graph("A", "B", "C")

        report = validate(graph)

        assert report.is_valid
        cycle = report.issues_with_code(IssueCode.CYCLE_DETECTED)
        assert [i.node_id for i in cycle] == ["A", "B", "C"]

    def test_dangling_connection_is_error(self) -> None:
        """A connection to a missing node is an error naming the connection."""
        report = validate(make_dangling_graph())

        assert not report.is_valid
        assert [e.code for e in report.errors] == [IssueCode.INVALID_CONNECTION_TARGET]
        assert report.errors[0].connection_id == "c2"
        assert report.errors[0].node_id is None

    def test_missing_source_and_target_both_reported(self) -> None:
        """A connection missing both ends yields two errors."""
        graph = make_dangling_graph()
        graph.connections[1].from_node_id = "NOBODY"

        report = validate(graph)

        assert [e.code for e in report.errors] == [
            IssueCode.INVALID_CONNECTION_SOURCE,
            IssueCode.INVALID_CONNECTION_TARGET,
        ]

    def test_pass_order(self) -> None:
        """Warnings are grouped by pass: orphans, node checks, then cycles."""
        graph = make_ring_graph("A", "B")
        orphan = graph.add_node(NodeType.DIALOGUE)

        report = validate(graph)

        assert [w.code for w in report.warnings] == [
            IssueCode.ORPHANED_NODE,
            IssueCode.EMPTY_DIALOGUE,
            IssueCode.CYCLE_DETECTED,
            IssueCode.CYCLE_DETECTED,
        ]
        assert report.warnings[0].node_id == orphan.id

    def test_validate_does_not_modify_graph(self) -> None:
        """Validation is read-only."""
        graph = make_dangling_graph()
        before = graph.model_copy(deep=True)

        validate(graph)

        assert graph == before
