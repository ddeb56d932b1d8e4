"""Resource id generation.

Ids have the form ``{PREFIX}_{N}`` (``VAR_1``, ``TRANS_12``). The next id
is a pure function of the ids already in use: one more than the largest
counter found for the prefix. Deleting a resource therefore never frees
its number while a higher one exists, and no process-wide counter is kept.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from puzzleforge.models.document import ProjectDocument


class ResourceKind(StrEnum):
    """Resource kinds with generated ids. Values are the id prefixes."""

    VARIABLE = "VAR"
    EVENT = "EVENT"
    SCRIPT = "SCRIPT"
    GRAPH = "GRAPH"
    STATE_MACHINE = "FSM"
    STATE = "STATE"
    TRANSITION = "TRANS"
    STAGE = "STAGE"
    NODE = "NODE"
    PRESENTATION_NODE = "PNODE"


def parse_kind(value: str) -> ResourceKind:
    """Accept a kind by member name (``state_machine``) or prefix (``FSM``).

    Raises:
        ValueError: If ``value`` names no kind.
    """
    normalized = value.strip().upper().replace("-", "_")
    if normalized in ResourceKind.__members__:
        return ResourceKind[normalized]
    return ResourceKind(normalized)


def max_counter(existing_ids: Iterable[str], prefix: str) -> int:
    """Largest numeric suffix among ids matching ``^{prefix}_(\\d+)$``; 0 if none."""
    pattern = re.compile(rf"^{re.escape(prefix)}_(\d+)$")
    highest = 0
    for existing in existing_ids:
        match = pattern.match(existing)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def generate_resource_id(kind: ResourceKind | str, existing_ids: Iterable[str]) -> str:
    """Return the next free id for ``kind`` given the ids in use."""
    prefix = ResourceKind(kind).value
    return f"{prefix}_{max_counter(existing_ids, prefix) + 1}"


def existing_ids(document: ProjectDocument, kind: ResourceKind) -> Iterator[str]:
    """Yield every id of ``kind`` present in the document.

    Variables cover globals and all stage and node locals. States,
    transitions and presentation nodes are collected across all machines
    and graphs, so generated ids stay unique project-wide.
    """
    match kind:
        case ResourceKind.VARIABLE:
            yield from document.blackboard.global_variables
            for stage in document.stage_tree.stages.values():
                yield from stage.local_variables
            for node in document.nodes.values():
                yield from node.local_variables
        case ResourceKind.EVENT:
            yield from document.blackboard.events
        case ResourceKind.SCRIPT:
            yield from document.scripts
        case ResourceKind.GRAPH:
            yield from document.presentation_graphs
        case ResourceKind.STATE_MACHINE:
            yield from document.state_machines
        case ResourceKind.STATE:
            for fsm in document.state_machines.values():
                yield from fsm.states
        case ResourceKind.TRANSITION:
            for fsm in document.state_machines.values():
                yield from fsm.transitions
        case ResourceKind.STAGE:
            yield from document.stage_tree.stages
        case ResourceKind.NODE:
            yield from document.nodes
        case ResourceKind.PRESENTATION_NODE:
            for graph in document.presentation_graphs.values():
                yield from graph.nodes


def next_resource_id(document: ProjectDocument, kind: ResourceKind | str) -> str:
    """Return the next free id of ``kind`` for ``document``."""
    resolved = ResourceKind(kind)
    return generate_resource_id(resolved, existing_ids(document, resolved))
