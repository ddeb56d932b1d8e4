"""Structural integrity checks.

Three independent passes over the three graph shapes of a project:

- the stage tree (root, parent/child links, cycles);
- each state machine (initial state, transition endpoints, reachability);
- each presentation graph (start node, edges, branch arity, reachability,
  loops) plus loops between graphs through sub-graph bindings.

Cycles are errors in the stage tree and warnings in presentation graphs,
where looped playback can be intentional.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from puzzleforge.models.expressions import GraphBinding
from puzzleforge.models.lifecycle import is_marked_for_delete
from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.graph_walk import compute_in_degrees, find_cycle_entries
from puzzleforge.validation.sites import (
    graph_node_site,
    graph_site,
    label,
    machine_site,
    node_site,
    stage_site,
    state_site,
    transition_sites,
)
from puzzleforge.validation.types import Diagnostic, DiagnosticCode, ObjectType, Site

if TYPE_CHECKING:
    from collections.abc import Iterator

    from puzzleforge.models.document import (
        PresentationGraph,
        ProjectDocument,
        StateMachine,
    )

log = get_logger(__name__)

_STAGE_TREE_SITE = Site(ObjectType.STAGE, "", "Stage Tree", key="tree")


def check_structure(document: ProjectDocument) -> list[Diagnostic]:
    """Run all structural checks.

    Args:
        document: Project snapshot.

    Returns:
        Diagnostics for the stage tree, nodes, state machines and
        presentation graphs, in that order.
    """
    diagnostics = [
        *_check_stage_tree(document),
        *_check_nodes(document),
        *_check_state_machines(document),
        *_check_presentation_graphs(document),
        *_check_graph_references(document),
    ]
    log.debug("structure_checked", diagnostic_count=len(diagnostics))
    return diagnostics


# ---------------------------------------------------------------------------
# Stage tree
# ---------------------------------------------------------------------------


def _check_stage_tree(document: ProjectDocument) -> Iterator[Diagnostic]:
    tree = document.stage_tree
    stages = tree.stages

    if not stages:
        yield _STAGE_TREE_SITE.error(
            "err-stagetree-empty",
            "Project has no stages.",
            DiagnosticCode.MISSING_FIELD,
        )
    if not tree.root_id:
        yield _STAGE_TREE_SITE.error(
            "err-stagetree-no-root",
            "Stage tree has no root stage (rootId is not set).",
            DiagnosticCode.MISSING_FIELD,
        )
    elif tree.root_id not in stages:
        yield _STAGE_TREE_SITE.error(
            "err-stagetree-root-missing",
            f"Stage tree root references missing stage: {tree.root_id}",
            DiagnosticCode.MISSING_REFERENCE,
        )

    for stage in stages.values():
        site = stage_site(stage)

        if stage.parent_id:
            parent = stages.get(stage.parent_id)
            if parent is None:
                yield site.error(
                    site.diag_id("err", "parent-missing", stage.parent_id),
                    f'Stage "{label(stage)}" references missing parent stage: {stage.parent_id}',
                    DiagnosticCode.MISSING_REFERENCE,
                )
            elif is_marked_for_delete(parent):
                yield site.error(
                    site.diag_id("err", "parent-del", stage.parent_id),
                    f'Stage "{label(stage)}" has a parent stage marked for delete: {label(parent)}',
                    DiagnosticCode.DELETED_REFERENCE,
                )
        elif stage.id != tree.root_id:
            yield site.error(
                site.diag_id("err", "no-parent"),
                f'Stage "{label(stage)}" is not the root but has no parent stage.',
                DiagnosticCode.INVALID_STRUCTURE,
            )

        for child_id in stage.children_ids:
            child = stages.get(child_id)
            if child is None:
                yield site.error(
                    site.diag_id("err", "child-missing", child_id),
                    f'Stage "{label(stage)}" references missing child stage: {child_id}',
                    DiagnosticCode.MISSING_REFERENCE,
                )
            elif is_marked_for_delete(child):
                yield site.error(
                    site.diag_id("err", "child-del", child_id),
                    f'Stage "{label(stage)}" references child stage marked for delete: {label(child)}',
                    DiagnosticCode.DELETED_REFERENCE,
                )

    # Root first so a cycle is reported where the tree walk re-enters it.
    order = [tree.root_id] if tree.root_id in stages else []
    order.extend(sid for sid in stages if sid != tree.root_id)

    def children(stage_id: str) -> list[str]:
        return [cid for cid in stages[stage_id].children_ids if cid in stages]

    for from_id, to_id in find_cycle_entries(order, children):
        reentered = stages[to_id]
        site = stage_site(reentered)
        yield site.error(
            site.diag_id("err", "cycle", from_id),
            f'Stage "{label(stages[from_id])}" lists its ancestor "{label(reentered)}" '
            "as a child, forming a cycle.",
            DiagnosticCode.STRUCTURAL_CYCLE,
        )


# ---------------------------------------------------------------------------
# Puzzle nodes
# ---------------------------------------------------------------------------


def _check_nodes(document: ProjectDocument) -> Iterator[Diagnostic]:
    stages = document.stage_tree.stages
    for node in document.nodes.values():
        site = node_site(node)

        if not node.stage_id:
            yield site.error(
                site.diag_id("err", "no-stage"),
                f'Puzzle Node "{label(node)}" does not belong to any stage.',
                DiagnosticCode.MISSING_FIELD,
            )
        else:
            stage = stages.get(node.stage_id)
            if stage is None:
                yield site.error(
                    site.diag_id("err", "stage-missing"),
                    f'Puzzle Node "{label(node)}" belongs to missing stage: {node.stage_id}',
                    DiagnosticCode.MISSING_REFERENCE,
                )
            elif is_marked_for_delete(stage):
                yield site.error(
                    site.diag_id("err", "stage-del"),
                    f'Puzzle Node "{label(node)}" belongs to stage marked for delete: {label(stage)}',
                    DiagnosticCode.DELETED_REFERENCE,
                )

        if node.state_machine_id and node.state_machine_id not in document.state_machines:
            yield site.error(
                site.diag_id("err", "no-fsm"),
                f'Puzzle Node "{label(node)}" references missing state machine: '
                f"{node.state_machine_id}",
                DiagnosticCode.MISSING_REFERENCE,
            )


# ---------------------------------------------------------------------------
# State machines
# ---------------------------------------------------------------------------


def _check_state_machines(document: ProjectDocument) -> Iterator[Diagnostic]:
    for fsm in document.state_machines.values():
        if fsm.states:
            yield from _check_machine(document, fsm)


def _check_machine(document: ProjectDocument, fsm: StateMachine) -> Iterator[Diagnostic]:
    site = machine_site(document, fsm)
    owner = document.owner_of_state_machine(fsm.id)

    initial = fsm.states.get(fsm.initial_state_id) if fsm.initial_state_id else None
    if not fsm.initial_state_id:
        yield site.error(
            site.diag_id("err", "no-initial"),
            "State Machine has states but no Initial State set.",
            DiagnosticCode.MISSING_FIELD,
        )
    elif initial is None:
        yield site.error(
            site.diag_id("err", "dangling-initial"),
            f"State Machine Initial State references missing state: {fsm.initial_state_id}",
            DiagnosticCode.MISSING_REFERENCE,
        )
    elif is_marked_for_delete(initial):
        yield site.error(
            site.diag_id("err", "del-initial"),
            f"State Machine Initial State references state marked for delete: {label(initial)}",
            DiagnosticCode.DELETED_REFERENCE,
        )

    valid_edges: list[tuple[str, str]] = []
    for trans, trans_site in transition_sites(owner, fsm):
        endpoints_ok = True
        for end, state_id in (("source", trans.from_state_id), ("target", trans.to_state_id)):
            if not state_id:
                endpoints_ok = False
                yield trans_site.error(
                    trans_site.diag_id("err", f"no-{end}"),
                    f'Transition "{label(trans)}" has no {end} state.',
                    DiagnosticCode.MISSING_FIELD,
                )
            elif state_id not in fsm.states:
                endpoints_ok = False
                yield trans_site.error(
                    trans_site.diag_id("err", f"{end}-missing", state_id),
                    f'Transition "{label(trans)}" points to missing {end} state: {state_id}',
                    DiagnosticCode.MISSING_REFERENCE,
                )
        if endpoints_ok:
            valid_edges.append((trans.from_state_id, trans.to_state_id))

    degrees = compute_in_degrees(fsm.states, valid_edges)
    for state in fsm.states.values():
        if state.id == fsm.initial_state_id or degrees[state.id] > 0:
            continue
        if owner is not None:
            s_site = state_site(owner, state)
        else:
            s_site = Site(ObjectType.STATE, state.id, f"FSM: {fsm.id} > State: {label(state)}")
        yield s_site.warning(
            s_site.diag_id("warn", "unreachable"),
            f'State "{label(state)}" is unreachable: no transition leads to it.',
            DiagnosticCode.UNREACHABLE_NODE,
        )


# ---------------------------------------------------------------------------
# Presentation graphs
# ---------------------------------------------------------------------------


def _check_presentation_graphs(document: ProjectDocument) -> Iterator[Diagnostic]:
    for graph in document.presentation_graphs.values():
        if graph.nodes:
            yield from _check_graph(graph)


def _check_graph(graph: PresentationGraph) -> Iterator[Diagnostic]:
    site = graph_site(graph)
    nodes = graph.nodes

    if not graph.start_node_id:
        yield site.error(
            site.diag_id("err", "no-start"),
            f'Presentation Graph "{label(graph)}" has nodes but no Start Node.',
            DiagnosticCode.MISSING_FIELD,
        )
    elif graph.start_node_id not in nodes:
        yield site.error(
            site.diag_id("err", "dangling-start"),
            f'Presentation Graph "{label(graph)}" start node references missing node: '
            f"{graph.start_node_id}",
            DiagnosticCode.MISSING_REFERENCE,
        )

    edges: list[tuple[str, str]] = []
    for pnode in nodes.values():
        node_site_ = graph_node_site(graph, pnode)
        outgoing = [nid for nid in pnode.next_ids if nid]
        valid = [nid for nid in outgoing if nid in nodes]
        edges.extend((pnode.id, nid) for nid in valid)

        for next_id in outgoing:
            if next_id not in nodes:
                yield node_site_.error(
                    node_site_.diag_id("err", "edge-missing", next_id),
                    f'Presentation Node "{label(pnode)}" connects to missing node: {next_id}',
                    DiagnosticCode.MISSING_REFERENCE,
                )

        if pnode.type == "Branch":
            if len(outgoing) > 2:
                yield node_site_.error(
                    node_site_.diag_id("err", "branch-paths"),
                    f'Branch Node "{label(pnode)}" has {len(outgoing)} paths; '
                    "branch nodes can only have 2 paths (True/False).",
                    DiagnosticCode.INVALID_STRUCTURE,
                )
            elif len(valid) < 2:
                yield node_site_.warning(
                    node_site_.diag_id("warn", "branch-arity"),
                    f'Branch Node "{label(pnode)}" has {len(valid)} valid outgoing edges; '
                    "expected 2 (True/False).",
                    DiagnosticCode.INVALID_STRUCTURE,
                )
            if pnode.condition is None:
                yield node_site_.warning(
                    node_site_.diag_id("warn", "branch-no-cond"),
                    f'Branch Node "{label(pnode)}" has no condition defined (defaults to True).',
                    DiagnosticCode.MISSING_FIELD,
                )
        elif pnode.type != "Parallel" and len(outgoing) > 1:
            yield node_site_.warning(
                node_site_.diag_id("warn", "multi-out"),
                f'Presentation Node "{label(pnode)}" has {len(outgoing)} outgoing edges; '
                "only the first edge will be executed.",
                DiagnosticCode.INVALID_STRUCTURE,
            )

    degrees = compute_in_degrees(nodes, edges)
    for pnode in nodes.values():
        if pnode.id != graph.start_node_id and degrees[pnode.id] == 0:
            node_site_ = graph_node_site(graph, pnode)
            yield node_site_.warning(
                node_site_.diag_id("warn", "unreachable"),
                f'Presentation Node "{label(pnode)}" is unreachable: no incoming connections.',
                DiagnosticCode.UNREACHABLE_NODE,
            )

    order = [graph.start_node_id] if graph.start_node_id in nodes else []
    order.extend(nid for nid in nodes if nid != graph.start_node_id)

    def successors(node_id: str) -> list[str]:
        return [nid for nid in nodes[node_id].next_ids if nid in nodes]

    for from_id, to_id in find_cycle_entries(order, successors):
        loop_site = graph_node_site(graph, nodes[from_id])
        yield loop_site.warning(
            loop_site.diag_id("warn", "cycle", to_id),
            f'Presentation Node "{label(nodes[from_id])}" loops back to '
            f'"{label(nodes[to_id])}"; playback will repeat.',
            DiagnosticCode.STRUCTURAL_CYCLE,
        )


def _check_graph_references(document: ProjectDocument) -> Iterator[Diagnostic]:
    """Warn about loops between graphs formed by sub-graph bindings."""
    graphs = document.presentation_graphs

    def nested(graph_id: str) -> list[str]:
        found: list[str] = []
        for pnode in graphs[graph_id].nodes.values():
            binding = pnode.presentation
            if isinstance(binding, GraphBinding) and binding.graph_id in graphs:
                found.append(binding.graph_id)
        return found

    for from_id, to_id in find_cycle_entries(list(graphs), nested):
        site = graph_site(graphs[from_id])
        yield site.warning(
            site.diag_id("warn", "graph-cycle", to_id),
            f'Presentation Graph "{label(graphs[from_id])}" binds "{label(graphs[to_id])}", '
            "which leads back to it; playback can recurse.",
            DiagnosticCode.STRUCTURAL_CYCLE,
        )
