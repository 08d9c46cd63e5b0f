"""Graph algorithms over a dialogue graph.

Pure functions that read the graph without modifying it.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dialoguegraph.graph.graph import DialogueGraph


def build_adjacency(graph: DialogueGraph) -> dict[str, list[str]]:
    """Map each node id to the ids its connections lead to.

    Keys follow node order. Connections whose source is not a node in the
    graph are skipped; targets are kept as-is even if dangling.
    """
    adjacency: dict[str, list[str]] = {node.id: [] for node in graph.nodes}
    for conn in graph.connections:
        successors = adjacency.get(conn.from_node_id)
        if successors is not None:
            successors.append(conn.to_node_id)
    return adjacency


def detect_cycles(graph: DialogueGraph) -> set[str]:
    """Find nodes that take part in a cycle.

    Depth-first search from every unvisited node (in node order), tracking
    the nodes currently on the search path. Reaching a node that is still
    on the path marks both ends of that back edge, and the search then
    unwinds, marking every node on the path down to the back edge. Each
    root stops exploring once it has found a cycle.

    The search uses an explicit stack, so long chains do not run into the
    interpreter's recursion limit.

    Args:
        graph: Graph to inspect.

    Returns:
        Ids of the nodes flagged as cycle participants.
    """
    adjacency = build_adjacency(graph)
    visited: set[str] = set()
    on_path: set[str] = set()
    cycle_nodes: set[str] = set()

    for root in adjacency:
        if root in visited:
            continue

        visited.add(root)
        on_path.add(root)
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(adjacency[root]))]
        unwinding = False

        while stack:
            node, successors = stack[-1]
            if unwinding:
                cycle_nodes.add(node)
                on_path.discard(node)
                stack.pop()
                continue

            for neighbor in successors:
                if neighbor not in visited:
                    visited.add(neighbor)
                    on_path.add(neighbor)
                    stack.append((neighbor, iter(adjacency.get(neighbor, ()))))
                    break
                if neighbor in on_path:
                    cycle_nodes.add(neighbor)
                    unwinding = True
                    break
            else:
                on_path.discard(node)
                stack.pop()

    return cycle_nodes
