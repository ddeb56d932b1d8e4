"""Graph traversal helpers shared by the structural checks.

Pure functions over id-keyed adjacency. Traversals keep their own work
stack and visited sets, so deep or cyclic documents never exhaust the
interpreter's recursion limit.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable


def find_cycle_entries(
    node_ids: Iterable[str],
    successors: Callable[[str], Iterable[str]],
) -> list[tuple[str, str]]:
    """Find back edges with an iterative depth-first search.

    Each start node is scanned in the given order unless an earlier scan
    already visited it. A successor that is still on the current path is a
    cycle: the edge ``(current, successor)`` is recorded once, at the
    re-entry point, and the scan from that start stops there.

    Args:
        node_ids: Nodes to start from, in scan order.
        successors: Returns the outgoing neighbours of a node. Callers
            filter out ids that do not exist.

    Returns:
        List of ``(from_id, reentered_id)`` edges, one per detected cycle.
    """
    visited: set[str] = set()
    entries: list[tuple[str, str]] = []

    for start in node_ids:
        if start in visited:
            continue
        visited.add(start)
        in_stack: set[str] = {start}
        stack = [(start, iter(successors(start)))]

        while stack:
            current, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                in_stack.discard(current)
                continue
            if child in in_stack:
                entries.append((current, child))
                break
            if child in visited:
                continue
            visited.add(child)
            in_stack.add(child)
            stack.append((child, iter(successors(child))))

    return entries


def compute_in_degrees(
    node_ids: Iterable[str],
    edges: Iterable[tuple[str, str]],
) -> dict[str, int]:
    """Count incoming edges per node. Edges to unknown nodes are ignored."""
    degrees = dict.fromkeys(node_ids, 0)
    for _, target in edges:
        if target in degrees:
            degrees[target] += 1
    return degrees
