"""Location helpers shared by the checkers.

Each helper builds the Site a checker attaches its diagnostics to, so that
the same object is described with the same breadcrumb everywhere.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from puzzleforge.validation.types import ObjectType, Site

if TYPE_CHECKING:
    from puzzleforge.models.document import (
        PresentationGraph,
        PresentationNode,
        ProjectDocument,
        PuzzleNode,
        Stage,
        State,
        StateMachine,
        Transition,
    )


def label(entity: object) -> str:
    """Display label of an entity: its name, or its id when unnamed."""
    return getattr(entity, "name", "") or getattr(entity, "id", "")


def stage_site(stage: Stage) -> Site:
    return Site(ObjectType.STAGE, stage.id, f"Stage: {label(stage)}")


def node_site(node: PuzzleNode) -> Site:
    return Site(ObjectType.NODE, node.id, f"Node: {label(node)}")


def state_site(node: PuzzleNode, state: State) -> Site:
    return Site(
        ObjectType.STATE,
        state.id,
        f"Node: {label(node)} > State: {label(state)}",
        context_id=node.id,
    )


def machine_site(document: ProjectDocument, fsm: StateMachine) -> Site:
    """Site for a state machine, described through its owning node when it has one."""
    owner = document.owner_of_state_machine(fsm.id)
    location = f"Node: {label(owner)}" if owner else f"FSM: {fsm.id}"
    return Site(
        ObjectType.STATE_MACHINE,
        fsm.id,
        location,
        context_id=owner.id if owner else None,
    )


def graph_site(graph: PresentationGraph) -> Site:
    return Site(ObjectType.PRESENTATION_GRAPH, graph.id, f"Presentation Graph: {label(graph)}")


def graph_node_site(graph: PresentationGraph, pnode: PresentationNode) -> Site:
    """Site for a node inside a presentation graph.

    Diagnostics attach to the graph; the node id is folded into the id key
    so diagnostics of sibling nodes do not collide.
    """
    return Site(
        ObjectType.PRESENTATION_GRAPH,
        graph.id,
        f"Presentation Graph: {label(graph)} > Node: {label(pnode)}",
        key=f"{graph.id}-{pnode.id}",
    )


def transition_sites(
    node: PuzzleNode | None, fsm: StateMachine
) -> Iterator[tuple[Transition, Site]]:
    """Yield every transition of ``fsm`` with its site.

    Transitions are numbered per source state (``Transition #2`` is the
    second transition leaving that state). A transition whose source state
    does not resolve is described by its own id.
    """
    owner = f"Node: {label(node)}" if node else f"FSM: {fsm.id}"
    counters: dict[str, int] = {}
    for trans in fsm.transitions.values():
        source = fsm.states.get(trans.from_state_id or "")
        if source is None:
            location = f"{owner} > Transition: {label(trans)}"
        else:
            counters[source.id] = counters.get(source.id, 0) + 1
            location = f"{owner} > State: {label(source)} > Transition #{counters[source.id]}"
        yield trans, Site(
            ObjectType.TRANSITION,
            trans.id,
            location,
            context_id=node.id if node else None,
        )


def node_machines(document: ProjectDocument) -> Iterator[tuple[PuzzleNode, StateMachine]]:
    """Yield each puzzle node together with its resolvable state machine."""
    for node in document.nodes.values():
        if not node.state_machine_id:
            continue
        fsm = document.state_machines.get(node.state_machine_id)
        if fsm is not None:
            yield node, fsm
