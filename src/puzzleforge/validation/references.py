"""Reference integrity checks.

Validates every script, event, trigger, graph and parameter-modifier
reference held by stages, nodes, states, transitions and presentation
graph nodes, including references to soft-deleted resources. Variable
references are resolved by the variable checker; this module only checks
that they are filled in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from puzzleforge.models.expressions import (
    GraphBinding,
    InvokeScriptAction,
    ModifyParameterAction,
    ScriptBinding,
    VariableSource,
)
from puzzleforge.models.lifecycle import is_marked_for_delete
from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.sites import (
    graph_node_site,
    label,
    node_machines,
    node_site,
    stage_site,
    state_site,
    transition_sites,
)
from puzzleforge.validation.types import Diagnostic, DiagnosticCode, ObjectType, Site
from puzzleforge.validation.walker import condition_references

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from puzzleforge.models.document import ProjectDocument
    from puzzleforge.models.expressions import (
        ConditionExpression,
        EventListener,
        ParameterModifier,
        PresentationBinding,
        Trigger,
    )

log = get_logger(__name__)

LIFECYCLE_CATEGORY = "Lifecycle"


def check_references(document: ProjectDocument) -> list[Diagnostic]:
    """Run all reference checks.

    Args:
        document: Project snapshot.

    Returns:
        Diagnostics for script definitions, then stages, nodes (with their
        states and transitions) and presentation graphs.
    """
    diagnostics = [
        *_check_script_definitions(document),
        *_check_stages(document),
        *_check_nodes(document),
        *_check_graphs(document),
    ]
    log.debug("references_checked", diagnostic_count=len(diagnostics))
    return diagnostics


# ---------------------------------------------------------------------------
# Script definitions
# ---------------------------------------------------------------------------


def _check_script_definitions(document: ProjectDocument) -> Iterator[Diagnostic]:
    for script in document.scripts.values():
        site = Site(ObjectType.SCRIPT, script.id, f"Script: {label(script)}")
        if not script.category.strip():
            yield site.warning(
                f"warn-script-no-category-{script.id}",
                f'Script "{label(script)}" has empty category.',
                DiagnosticCode.MISSING_FIELD,
            )
        if script.category == LIFECYCLE_CATEGORY and not script.lifecycle_type:
            yield site.error(
                f"err-script-no-lifecycle-type-{script.id}",
                f'Lifecycle script "{label(script)}" missing lifecycleType.',
                DiagnosticCode.MISSING_FIELD,
            )


# ---------------------------------------------------------------------------
# Host objects
# ---------------------------------------------------------------------------


def _check_stages(document: ProjectDocument) -> Iterator[Diagnostic]:
    for stage in document.stage_tree.stages.values():
        site = stage_site(stage)
        yield from _check_lifecycle_script(document, stage.lifecycle_script_id, "Stage", site)
        yield from _check_triggers(document, stage.unlock_triggers, site)
        yield from _check_condition(document, stage.unlock_condition, site, "Unlock Condition")
        yield from _check_binding(document, stage.on_enter_presentation, site, "OnEnter Presentation")
        yield from _check_binding(document, stage.on_exit_presentation, site, "OnExit Presentation")
        yield from _check_listeners(document, stage.event_listeners, site, stage.lifecycle_script_id)


def _check_nodes(document: ProjectDocument) -> Iterator[Diagnostic]:
    machines = {node.id: fsm for node, fsm in node_machines(document)}
    for node in document.nodes.values():
        site = node_site(node)
        yield from _check_lifecycle_script(document, node.lifecycle_script_id, "Node", site)
        yield from _check_listeners(document, node.event_listeners, site, node.lifecycle_script_id)

        fsm = machines.get(node.id)
        if fsm is None:
            continue

        for state in fsm.states.values():
            s_site = state_site(node, state)
            yield from _check_lifecycle_script(document, state.lifecycle_script_id, "State", s_site)
            yield from _check_listeners(
                document, state.event_listeners, s_site, state.lifecycle_script_id
            )

        for trans, t_site in transition_sites(node, fsm):
            yield from _check_triggers(document, trans.triggers, t_site)
            yield from _check_condition(document, trans.condition, t_site, "Condition")
            yield from _check_binding(document, trans.presentation, t_site, "Presentation")
            yield from _check_invoked_events(document, trans.invoke_event_ids, t_site)
            yield from _check_modifiers(trans.parameter_modifiers, t_site, "Transition")


def _check_graphs(document: ProjectDocument) -> Iterator[Diagnostic]:
    for graph in document.presentation_graphs.values():
        for pnode in graph.nodes.values():
            site = graph_node_site(graph, pnode)
            yield from _check_binding(document, pnode.presentation, site, "Presentation")
            yield from _check_condition(document, pnode.condition, site, "Condition")


# ---------------------------------------------------------------------------
# Reference helpers
# ---------------------------------------------------------------------------


def _check_script_id(
    document: ProjectDocument,
    script_id: str | None,
    site: Site,
    description: str,
    *extra: object,
) -> Iterator[Diagnostic]:
    if not script_id:
        return
    script = document.scripts.get(script_id)
    if script is None:
        yield site.error(
            site.diag_id("err", "script-missing", *extra, script_id),
            f"{description} references missing script: {script_id}",
            DiagnosticCode.MISSING_REFERENCE,
        )
    elif is_marked_for_delete(script):
        yield site.error(
            site.diag_id("err", "script-del", *extra, script_id),
            f"{description} uses script marked for delete: {label(script)}",
            DiagnosticCode.DELETED_REFERENCE,
        )


def _check_event_id(
    document: ProjectDocument,
    event_id: str,
    site: Site,
    description: str,
    kind: str,
    idx: int,
) -> Iterator[Diagnostic]:
    event = document.blackboard.events.get(event_id)
    if event is None:
        yield site.error(
            site.diag_id("err", kind, idx),
            f"{description} references missing event: {event_id}",
            DiagnosticCode.MISSING_REFERENCE,
        )
    elif is_marked_for_delete(event):
        yield site.error(
            site.diag_id("err", f"{kind}-del", idx),
            f"{description} uses event marked for delete: {label(event)}",
            DiagnosticCode.DELETED_REFERENCE,
        )


def _check_lifecycle_script(
    document: ProjectDocument, script_id: str | None, host_kind: str, site: Site
) -> Iterator[Diagnostic]:
    yield from _check_script_id(document, script_id, site, "Lifecycle Script")
    script = document.scripts.get(script_id) if script_id else None
    if script is not None and script.lifecycle_type and script.lifecycle_type != host_kind:
        yield site.warning(
            site.diag_id("warn", "lifecycle-kind", script_id),
            f'Lifecycle script "{label(script)}" is written for {script.lifecycle_type} '
            f"hosts but is bound to a {host_kind}.",
            DiagnosticCode.INVALID_STRUCTURE,
        )


def _check_triggers(
    document: ProjectDocument, triggers: Iterable[Trigger], site: Site
) -> Iterator[Diagnostic]:
    for idx, trigger in enumerate(triggers):
        number = idx + 1
        if not trigger.type:
            yield site.error(
                site.diag_id("err", "trigger-no-type", idx),
                f"Trigger #{number} type is empty.",
                DiagnosticCode.MISSING_FIELD,
            )
        elif trigger.type == "OnEvent":
            if not trigger.event_id:
                yield site.error(
                    site.diag_id("err", "trigger-no-evt", idx),
                    f"Trigger #{number} (OnEvent) missing eventId.",
                    DiagnosticCode.MISSING_FIELD,
                )
            else:
                yield from _check_event_id(
                    document, trigger.event_id, site, f"Trigger #{number}", "trigger-evt", idx
                )
        elif trigger.type == "CustomScript":
            if not trigger.script_id:
                yield site.error(
                    site.diag_id("err", "trigger-no-script", idx),
                    f"Trigger #{number} (CustomScript) missing scriptId.",
                    DiagnosticCode.MISSING_FIELD,
                )
            else:
                yield from _check_script_id(
                    document, trigger.script_id, site, f"Trigger #{number}", idx
                )


def _check_condition(
    document: ProjectDocument,
    condition: ConditionExpression | None,
    site: Site,
    description: str,
) -> Iterator[Diagnostic]:
    for idx, ref in enumerate(condition_references(condition, description)):
        if ref.kind == "script":
            if not ref.target_id:
                yield site.error(
                    site.diag_id("err", "cond-no-scriptid", idx),
                    f"{ref.path} (ScriptRef) missing scriptId.",
                    DiagnosticCode.MISSING_FIELD,
                )
            else:
                yield from _check_script_id(document, ref.target_id, site, ref.path, idx)
        elif not ref.target_id:
            yield site.error(
                site.diag_id("err", "vs-no-varid", idx),
                f"{ref.path} (VariableRef) missing variableId.",
                DiagnosticCode.MISSING_FIELD,
            )


def _check_binding(
    document: ProjectDocument,
    binding: PresentationBinding | None,
    site: Site,
    description: str,
) -> Iterator[Diagnostic]:
    # Ids carry the binding slot so enter and exit bindings of a stage differ.
    slot = description.split()[0].lower()
    if isinstance(binding, ScriptBinding):
        if not binding.script_id:
            yield site.error(
                site.diag_id("err", "pres-no-scriptid", slot),
                f"{description} (Script) missing scriptId.",
                DiagnosticCode.MISSING_FIELD,
            )
        else:
            yield from _check_script_id(document, binding.script_id, site, description, slot)
        for param in binding.parameters:
            if isinstance(param.source, VariableSource) and not param.source.variable_id:
                yield site.error(
                    site.diag_id("err", "param-no-varid", slot, param.param_name),
                    f"{description} (Param: {param.param_name}) VariableRef missing variableId.",
                    DiagnosticCode.MISSING_FIELD,
                )
    elif isinstance(binding, GraphBinding):
        if not binding.graph_id:
            yield site.error(
                site.diag_id("err", "pres-no-graphid", slot),
                f"{description} (Graph) missing graphId.",
                DiagnosticCode.MISSING_FIELD,
            )
        elif binding.graph_id not in document.presentation_graphs:
            yield site.error(
                site.diag_id("err", "pres-graph", slot, binding.graph_id),
                f"{description} references missing Presentation Graph: {binding.graph_id}",
                DiagnosticCode.MISSING_REFERENCE,
            )


def _check_listeners(
    document: ProjectDocument,
    listeners: Iterable[EventListener],
    site: Site,
    host_lifecycle_script_id: str | None,
) -> Iterator[Diagnostic]:
    for idx, listener in enumerate(listeners):
        number = idx + 1
        if listener.event_id:
            yield from _check_event_id(
                document, listener.event_id, site, f"Event Listener #{number}", "listener", idx
            )
        else:
            yield site.error(
                site.diag_id("err", "listener-no-evt", idx),
                f"Event Listener #{number} has no event.",
                DiagnosticCode.MISSING_FIELD,
            )

        action = listener.action
        if isinstance(action, InvokeScriptAction) and not host_lifecycle_script_id:
            yield site.error(
                site.diag_id("err", "listener-invoke-fail", idx),
                f"Event Listener #{number} tries to Invoke Script, "
                "but host object has no Lifecycle Script assigned.",
                DiagnosticCode.MISSING_REFERENCE,
            )
        elif isinstance(action, ModifyParameterAction):
            yield from _check_modifiers(
                action.modifiers, site, f"Event Listener #{number}", f"listener{idx}"
            )


def _check_invoked_events(
    document: ProjectDocument, event_ids: Iterable[str], site: Site
) -> Iterator[Diagnostic]:
    for idx, event_id in enumerate(event_ids):
        yield from _check_event_id(document, event_id, site, "Transition Invoke", "invoke", idx)


def _check_modifiers(
    modifiers: Iterable[ParameterModifier],
    site: Site,
    description: str,
    slot: str = "trans",
) -> Iterator[Diagnostic]:
    for idx, modifier in enumerate(modifiers):
        number = idx + 1
        if not modifier.target_variable_id:
            yield site.error(
                site.diag_id("err", "mod-no-target", slot, idx),
                f"{description} ParameterModifier #{number} missing targetVariableId.",
                DiagnosticCode.MISSING_FIELD,
            )
        if not modifier.operation:
            yield site.error(
                site.diag_id("err", "mod-no-op", slot, idx),
                f"{description} ParameterModifier #{number} missing operation.",
                DiagnosticCode.MISSING_FIELD,
            )
        if isinstance(modifier.source, VariableSource) and not modifier.source.variable_id:
            yield site.error(
                site.diag_id("err", "mod-src-no-varid", slot, idx),
                f"{description} ParameterModifier #{number} source (VariableRef) "
                "missing variableId.",
                DiagnosticCode.MISSING_FIELD,
            )
