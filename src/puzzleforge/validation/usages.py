"""Reverse reference lookup.

Lists every place in a project that uses a given script, event,
presentation graph or variable, so an editor can show the designer what
breaks before a resource is marked for delete. Usage sites are described
with the same breadcrumbs as diagnostics (``"Stage: Cellar > Unlock
Condition > Sub #2"``).

Variable lookups only match references declared with the variable's own
scope. Presentation graphs are scanned in full for every variable kind: a
shared graph may be played from any stage or node, so a local reference
inside it counts as a usage wherever the graph is bound.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from puzzleforge.models.expressions import GraphBinding, ScriptBinding, VariableScope
from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.sites import (
    label,
    node_machines,
    node_site,
    stage_site,
    state_site,
    transition_sites,
)
from puzzleforge.validation.types import ObjectType, Site
from puzzleforge.validation.walker import (
    listener_references,
    modifier_references,
    walk_references,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from puzzleforge.models.document import (
        PresentationGraph,
        PresentationNode,
        ProjectDocument,
        PuzzleNode,
        Stage,
        StateMachine,
        Transition,
    )
    from puzzleforge.models.expressions import (
        EventListener,
        PresentationBinding,
        Trigger,
    )
    from puzzleforge.validation.walker import Reference, Walkable

log = get_logger(__name__)


class UnknownResourceError(LookupError):
    """Raised when an id names no script, event, graph or variable of the project."""

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(f"Unknown resource id: {resource_id}")


@dataclass(frozen=True)
class ReferenceSite:
    """One place that uses a resource.

    Attributes:
        object_type: Kind of the object holding the reference.
        object_id: Id of that object.
        location: Breadcrumb down to the referencing field.
        context_id: Owning node for states and transitions, owning graph
            for presentation nodes.
    """

    object_type: ObjectType
    object_id: str
    location: str
    context_id: str | None = None

    @classmethod
    def at(cls, site: Site, path: str) -> ReferenceSite:
        return cls(site.object_type, site.object_id, f"{site.location} > {path}", site.context_id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "objectType": str(self.object_type),
            "objectId": self.object_id,
            "location": self.location,
        }
        if self.context_id is not None:
            data["contextId"] = self.context_id
        return data


class _UsageCollector:
    """Accumulates usage sites while a document is scanned."""

    def __init__(self, matches: Callable[[Reference], bool]) -> None:
        self._matches = matches
        self.sites: list[ReferenceSite] = []

    def add(self, site: Site, path: str) -> None:
        self.sites.append(ReferenceSite.at(site, path))

    def walk(self, root: Walkable | None, site: Site, origin: str) -> None:
        walk_references(root, origin, lambda ref: self._visit(ref, site))

    def scan(self, refs: Iterable[Reference], site: Site) -> None:
        for ref in refs:
            self._visit(ref, site)

    def _visit(self, ref: Reference, site: Site) -> None:
        if self._matches(ref):
            self.add(site, ref.path)


def _graph_node_site(graph: PresentationGraph, pnode: PresentationNode) -> Site:
    return Site(
        ObjectType.PRESENTATION_NODE,
        pnode.id,
        f"Presentation Graph: {label(graph)} > Node: {label(pnode)}",
        context_id=graph.id,
    )


def _graph_nodes(document: ProjectDocument) -> Iterator[tuple[PresentationNode, Site]]:
    for graph in document.presentation_graphs.values():
        for pnode in graph.nodes.values():
            yield pnode, _graph_node_site(graph, pnode)


def _machines(document: ProjectDocument) -> dict[str, StateMachine]:
    return {node.id: fsm for node, fsm in node_machines(document)}


def _add_trigger_usages(
    collector: _UsageCollector,
    triggers: Iterable[Trigger],
    site: Site,
    trigger_type: str,
    target_id: str,
) -> None:
    for idx, trigger in enumerate(triggers, start=1):
        if trigger.type != trigger_type:
            continue
        ref_id = trigger.event_id if trigger_type == "OnEvent" else trigger.script_id
        if ref_id == target_id:
            collector.add(site, f"Trigger #{idx}")


def _add_listener_usages(
    collector: _UsageCollector, listeners: Iterable[EventListener], site: Site, event_id: str
) -> None:
    for idx, listener in enumerate(listeners, start=1):
        if listener.event_id == event_id:
            collector.add(site, f"Event Listener #{idx}")


def _script_bound(binding: PresentationBinding | None, script_id: str) -> bool:
    return isinstance(binding, ScriptBinding) and binding.script_id == script_id


def _graph_bound(binding: PresentationBinding | None, graph_id: str) -> bool:
    return isinstance(binding, GraphBinding) and binding.graph_id == graph_id


# ---------------------------------------------------------------------------
# Scripts, events and graphs
# ---------------------------------------------------------------------------


def find_script_references(document: ProjectDocument, script_id: str) -> list[ReferenceSite]:
    """Find every use of a script.

    Covers lifecycle scripts of stages, nodes and states, ``CustomScript``
    triggers, ``ScriptRef`` conditions and script presentation bindings of
    stages, transitions and presentation nodes.
    """
    collector = _UsageCollector(lambda ref: ref.kind == "script" and ref.target_id == script_id)

    for stage in document.stage_tree.stages.values():
        site = stage_site(stage)
        if stage.lifecycle_script_id == script_id:
            collector.add(site, "Lifecycle Script")
        _add_trigger_usages(collector, stage.unlock_triggers, site, "CustomScript", script_id)
        collector.walk(stage.unlock_condition, site, "Unlock Condition")
        if _script_bound(stage.on_enter_presentation, script_id):
            collector.add(site, "OnEnter Presentation")
        if _script_bound(stage.on_exit_presentation, script_id):
            collector.add(site, "OnExit Presentation")

    machines = _machines(document)
    for node in document.nodes.values():
        if node.lifecycle_script_id == script_id:
            collector.add(node_site(node), "Lifecycle Script")
        fsm = machines.get(node.id)
        if fsm is None:
            continue
        for state in fsm.states.values():
            if state.lifecycle_script_id == script_id:
                collector.add(state_site(node, state), "Lifecycle Script")
        for trans, t_site in transition_sites(node, fsm):
            _add_trigger_usages(collector, trans.triggers, t_site, "CustomScript", script_id)
            collector.walk(trans.condition, t_site, "Condition")
            if _script_bound(trans.presentation, script_id):
                collector.add(t_site, "Presentation")

    for pnode, site in _graph_nodes(document):
        if _script_bound(pnode.presentation, script_id):
            collector.add(site, "Presentation")
        collector.walk(pnode.condition, site, "Condition")

    log.debug("usages_found", resource_id=script_id, count=len(collector.sites))
    return collector.sites


def find_event_references(document: ProjectDocument, event_id: str) -> list[ReferenceSite]:
    """Find every use of an event.

    Covers event listeners of stages, nodes and states, ``OnEvent`` triggers
    of stages and transitions, and events a transition invokes.
    """
    collector = _UsageCollector(lambda ref: False)

    for stage in document.stage_tree.stages.values():
        site = stage_site(stage)
        _add_listener_usages(collector, stage.event_listeners, site, event_id)
        _add_trigger_usages(collector, stage.unlock_triggers, site, "OnEvent", event_id)

    machines = _machines(document)
    for node in document.nodes.values():
        _add_listener_usages(collector, node.event_listeners, node_site(node), event_id)
        fsm = machines.get(node.id)
        if fsm is None:
            continue
        for state in fsm.states.values():
            _add_listener_usages(
                collector, state.event_listeners, state_site(node, state), event_id
            )
        for trans, t_site in transition_sites(node, fsm):
            _add_trigger_usages(collector, trans.triggers, t_site, "OnEvent", event_id)
            for idx, invoked in enumerate(trans.invoke_event_ids, start=1):
                if invoked == event_id:
                    collector.add(t_site, f"Invoke Event #{idx}")

    log.debug("usages_found", resource_id=event_id, count=len(collector.sites))
    return collector.sites


def find_presentation_graph_references(
    document: ProjectDocument, graph_id: str
) -> list[ReferenceSite]:
    """Find every graph binding that plays ``graph_id``.

    Covers stage enter/exit presentations, transition presentations and
    presentation nodes binding another graph.
    """
    collector = _UsageCollector(lambda ref: False)

    for stage in document.stage_tree.stages.values():
        site = stage_site(stage)
        if _graph_bound(stage.on_enter_presentation, graph_id):
            collector.add(site, "OnEnter Presentation")
        if _graph_bound(stage.on_exit_presentation, graph_id):
            collector.add(site, "OnExit Presentation")

    for node, fsm in node_machines(document):
        for trans, t_site in transition_sites(node, fsm):
            if _graph_bound(trans.presentation, graph_id):
                collector.add(t_site, "Presentation")

    for pnode, site in _graph_nodes(document):
        if _graph_bound(pnode.presentation, graph_id):
            collector.add(site, "Presentation")

    log.debug("usages_found", resource_id=graph_id, count=len(collector.sites))
    return collector.sites


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------


def _variable_usages(
    document: ProjectDocument,
    variable_id: str,
    scope: VariableScope,
    stages: Iterable[Stage],
    nodes: Iterable[PuzzleNode],
) -> list[ReferenceSite]:
    collector = _UsageCollector(
        lambda ref: ref.kind == "variable" and ref.target_id == variable_id and ref.scope == scope
    )

    for stage in stages:
        site = stage_site(stage)
        collector.walk(stage.unlock_condition, site, "Unlock Condition")
        collector.walk(stage.on_enter_presentation, site, "OnEnter Presentation")
        collector.walk(stage.on_exit_presentation, site, "OnExit Presentation")
        collector.scan(listener_references(stage.event_listeners), site)

    machines = _machines(document)
    for node in nodes:
        collector.scan(listener_references(node.event_listeners), node_site(node))
        fsm = machines.get(node.id)
        if fsm is None:
            continue
        for state in fsm.states.values():
            collector.scan(listener_references(state.event_listeners), state_site(node, state))
        for trans, t_site in transition_sites(node, fsm):
            _walk_transition(collector, trans, t_site)

    for pnode, site in _graph_nodes(document):
        collector.walk(pnode.presentation, site, "Presentation")
        collector.walk(pnode.condition, site, "Condition")

    log.debug("usages_found", resource_id=variable_id, count=len(collector.sites))
    return collector.sites


def _walk_transition(collector: _UsageCollector, trans: Transition, site: Site) -> None:
    collector.walk(trans.condition, site, "Condition")
    collector.walk(trans.presentation, site, "Presentation")
    collector.scan(modifier_references(trans.parameter_modifiers, "Parameter Modifiers"), site)


def _stage_subtree(document: ProjectDocument, stage_id: str) -> list[Stage]:
    """The stage and all its descendants, parents first. Tolerates cyclic trees."""
    stages = document.stage_tree.stages
    subtree: list[Stage] = []
    seen: set[str] = set()
    stack = [stage_id]
    while stack:
        current = stack.pop()
        if current in seen or current not in stages:
            continue
        seen.add(current)
        stage = stages[current]
        subtree.append(stage)
        stack.extend(reversed(stage.children_ids))
    return subtree


def find_global_variable_references(
    document: ProjectDocument, variable_id: str
) -> list[ReferenceSite]:
    """Find every ``Global``-scoped use of a variable across the whole project."""
    return _variable_usages(
        document,
        variable_id,
        VariableScope.GLOBAL,
        document.stage_tree.stages.values(),
        document.nodes.values(),
    )


def find_stage_variable_references(
    document: ProjectDocument, stage_id: str, variable_id: str
) -> list[ReferenceSite]:
    """Find ``StageLocal`` uses of a stage's variable.

    Scans the stage, its descendant stages, the nodes they own and every
    presentation graph. An unknown stage has no usages.
    """
    subtree = _stage_subtree(document, stage_id)
    if not subtree:
        return []
    stage_ids = {stage.id for stage in subtree}
    nodes = [node for node in document.nodes.values() if node.stage_id in stage_ids]
    return _variable_usages(document, variable_id, VariableScope.STAGE_LOCAL, subtree, nodes)


def find_node_variable_references(
    document: ProjectDocument, node_id: str, variable_id: str
) -> list[ReferenceSite]:
    """Find ``NodeLocal`` uses of a node's variable.

    Scans the node, its state machine and every presentation graph. An
    unknown node has no usages.
    """
    node = document.nodes.get(node_id)
    if node is None:
        return []
    return _variable_usages(document, variable_id, VariableScope.NODE_LOCAL, [], [node])


def find_resource_references(document: ProjectDocument, resource_id: str) -> list[ReferenceSite]:
    """Find usages of any script, event, graph or variable by id.

    Variables are looked up among globals first, then stage locals, then
    node locals, and searched with the scope they are declared in.

    Raises:
        UnknownResourceError: If no such resource exists.
    """
    if resource_id in document.scripts:
        return find_script_references(document, resource_id)
    if resource_id in document.blackboard.events:
        return find_event_references(document, resource_id)
    if resource_id in document.presentation_graphs:
        return find_presentation_graph_references(document, resource_id)
    if resource_id in document.blackboard.global_variables:
        return find_global_variable_references(document, resource_id)
    for stage in document.stage_tree.stages.values():
        if resource_id in stage.local_variables:
            return find_stage_variable_references(document, stage.id, resource_id)
    for node in document.nodes.values():
        if resource_id in node.local_variables:
            return find_node_variable_references(document, node.id, resource_id)
    raise UnknownResourceError(resource_id)
