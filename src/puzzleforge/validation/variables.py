"""Variable reference checks and usage-context propagation.

Stages and puzzle nodes know their own scope, so their variable
references are resolved directly. Presentation graphs are shared: a
StageLocal or NodeLocal reference inside a graph only means something
relative to whichever stage or node plays the graph. Those references are
checked in three phases:

1. Collection: every ``Graph`` binding met while checking stages (stage
   enter/exit) and nodes (transition presentations) records the binding
   site's UsageContext under the bound graph id.
2. Propagation: a graph that binds another graph passes all of its
   contexts on to it, transitively. Contexts are merged by identity, which
   keeps lists bounded on diamond-shaped graph references.
3. Validation: each local reference inside a graph must resolve in every
   context that reaches the graph. A graph no context reaches is reported
   as orphaned, and its local references cannot be resolved at all.

By default a failing reference is reported once, for the first context
where it fails. The ``"all"`` policy reports every failing context.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from puzzleforge.models.expressions import GraphBinding, VariableScope
from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.scope import ResolutionStatus, UsageContext, resolve_variable
from puzzleforge.validation.sites import (
    graph_node_site,
    graph_site,
    label,
    node_machines,
    node_site,
    stage_site,
    state_site,
    transition_sites,
)
from puzzleforge.validation.types import Diagnostic, DiagnosticCode
from puzzleforge.validation.walker import (
    Reference,
    binding_references,
    condition_references,
    listener_references,
    modifier_references,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from puzzleforge.config import ContextFailurePolicy
    from puzzleforge.models.document import PresentationGraph, ProjectDocument
    from puzzleforge.models.expressions import PresentationBinding
    from puzzleforge.validation.scope import VariableResolution
    from puzzleforge.validation.types import Site

log = get_logger(__name__)

GraphContexts = dict[str, list[UsageContext]]


def check_variables(
    document: ProjectDocument, policy: ContextFailurePolicy = "first"
) -> list[Diagnostic]:
    """Check every variable reference in the project.

    Args:
        document: Project snapshot.
        policy: ``"first"`` reports a broken graph reference for the first
            failing usage context only; ``"all"`` reports every one.

    Returns:
        Diagnostics for stages, nodes, then presentation graphs.
    """
    checker = _VariableChecker(document, policy)
    diagnostics = checker.run()
    log.debug(
        "variables_checked",
        diagnostic_count=len(diagnostics),
        bound_graphs=len(checker.direct_contexts),
    )
    return diagnostics


def propagate_contexts(document: ProjectDocument, direct: GraphContexts) -> GraphContexts:
    """Pass usage contexts down through nested graph bindings.

    Args:
        document: Project snapshot.
        direct: Contexts recorded at direct binding sites, keyed by graph id.

    Returns:
        A new mapping with every graph's inherited contexts merged in.
        ``direct`` is not modified.
    """
    contexts: GraphContexts = {gid: list(ctxs) for gid, ctxs in direct.items()}
    graphs = document.presentation_graphs

    for root_id in list(direct):
        visited = {root_id}
        stack = [root_id]
        while stack:
            graph_id = stack.pop()
            graph = graphs.get(graph_id)
            if graph is None:
                continue
            for nested_id in _nested_graph_ids(graph):
                _merge(contexts.setdefault(nested_id, []), contexts.get(graph_id, []))
                if nested_id not in visited:
                    visited.add(nested_id)
                    stack.append(nested_id)

    return contexts


def _nested_graph_ids(graph: PresentationGraph) -> list[str]:
    return [
        pnode.presentation.graph_id
        for pnode in graph.nodes.values()
        if isinstance(pnode.presentation, GraphBinding) and pnode.presentation.graph_id
    ]


def _merge(target: list[UsageContext], incoming: Iterable[UsageContext]) -> None:
    """Append contexts not already present (by identity)."""
    for ctx in list(incoming):
        if not any(existing is ctx for existing in target):
            target.append(ctx)


class _VariableChecker:
    """One pass of the variable checks over a document."""

    def __init__(self, document: ProjectDocument, policy: ContextFailurePolicy) -> None:
        self.document = document
        self.policy = policy
        self.direct_contexts: GraphContexts = {}
        self.diagnostics: list[Diagnostic] = []

    def run(self) -> list[Diagnostic]:
        self._check_stages()
        self._check_nodes()
        contexts = propagate_contexts(self.document, self.direct_contexts)
        for graph in self.document.presentation_graphs.values():
            self._check_graph(graph, contexts.get(graph.id, []))
        return self.diagnostics

    # -- collection -----------------------------------------------------------

    def _record(self, binding: PresentationBinding | None, ctx: UsageContext) -> None:
        if isinstance(binding, GraphBinding) and binding.graph_id:
            _merge(self.direct_contexts.setdefault(binding.graph_id, []), [ctx])

    # -- stages and nodes -----------------------------------------------------

    def _check_stages(self) -> None:
        for stage in self.document.stage_tree.stages.values():
            site = stage_site(stage)
            ctx = UsageContext(stage=stage, location=site.location)
            self._record(stage.on_enter_presentation, ctx)
            self._record(stage.on_exit_presentation, ctx)
            refs = [
                *condition_references(stage.unlock_condition, "Unlock Condition"),
                *binding_references(stage.on_enter_presentation, "OnEnter Presentation"),
                *binding_references(stage.on_exit_presentation, "OnExit Presentation"),
                *listener_references(stage.event_listeners),
            ]
            self._check_in_context(refs, site, ctx)

    def _check_nodes(self) -> None:
        stages = self.document.stage_tree.stages
        machines = {node.id: fsm for node, fsm in node_machines(self.document)}
        for node in self.document.nodes.values():
            site = node_site(node)
            stage = stages.get(node.stage_id) if node.stage_id else None
            ctx = UsageContext(stage=stage, node=node, location=site.location)
            self._check_in_context(list(listener_references(node.event_listeners)), site, ctx)

            fsm = machines.get(node.id)
            if fsm is None:
                continue
            for state in fsm.states.values():
                refs = list(listener_references(state.event_listeners))
                self._check_in_context(refs, state_site(node, state), ctx)
            for trans, t_site in transition_sites(node, fsm):
                self._record(trans.presentation, ctx)
                refs = [
                    *condition_references(trans.condition, "Condition"),
                    *binding_references(trans.presentation, "Presentation"),
                    *modifier_references(trans.parameter_modifiers, "Parameter Modifiers"),
                ]
                self._check_in_context(refs, t_site, ctx)

    def _check_in_context(
        self, refs: list[Reference], site: Site, ctx: UsageContext
    ) -> None:
        for idx, ref in enumerate(refs):
            if ref.kind != "variable":
                continue
            result = resolve_variable(self.document, ref.target_id, ref.scope, ctx)
            if not result.ok:
                self.diagnostics.append(_unresolved(site, ref, result, idx))

    # -- presentation graphs --------------------------------------------------

    def _check_graph(self, graph: PresentationGraph, contexts: list[UsageContext]) -> None:
        if not contexts:
            site = graph_site(graph)
            self.diagnostics.append(
                site.warning(
                    site.diag_id("warn", "orphaned"),
                    f'Presentation Graph "{label(graph)}" is not used by any stage, '
                    "transition or other graph.",
                    DiagnosticCode.ORPHANED_GRAPH,
                )
            )

        for pnode in graph.nodes.values():
            site = graph_node_site(graph, pnode)
            refs = [
                *binding_references(pnode.presentation, "Presentation"),
                *condition_references(pnode.condition, "Condition"),
            ]
            for idx, ref in enumerate(refs):
                if ref.kind != "variable" or not ref.target_id or not ref.scope:
                    continue
                self._check_graph_reference(site, ref, idx, contexts)

    def _check_graph_reference(
        self, site: Site, ref: Reference, idx: int, contexts: list[UsageContext]
    ) -> None:
        scope = ref.scope
        if scope is VariableScope.TEMPORARY:
            return

        if scope is VariableScope.GLOBAL:
            result = resolve_variable(self.document, ref.target_id, scope)
            if not result.ok:
                self.diagnostics.append(_unresolved(site, ref, result, idx))
            return

        if not contexts:
            self.diagnostics.append(
                site.error(
                    site.diag_id("err", "var-no-context", ref.target_id, idx),
                    f"{ref.path} references {scope} variable {ref.target_id} in an unused "
                    "graph; there is no context to resolve it.",
                    DiagnosticCode.MISSING_REFERENCE,
                )
            )
            return

        for ctx in contexts:
            result = resolve_variable(self.document, ref.target_id, scope, ctx)
            if result.ok:
                continue
            self.diagnostics.append(
                _unresolved(replace(site, context_id=ctx.owner_id or None), ref, result, idx, ctx)
            )
            if self.policy == "first":
                break


def _unresolved(
    site: Site,
    ref: Reference,
    result: VariableResolution,
    idx: int,
    ctx: UsageContext | None = None,
) -> Diagnostic:
    """Build the diagnostic for a reference that did not resolve."""
    extra: list[object] = [ref.target_id, idx]
    suffix = ""
    if ctx is not None:
        extra.append(ctx.owner_id)
        suffix = f" when the graph is used from {ctx.location}"

    if result.status is ResolutionStatus.DELETED:
        return site.error(
            site.diag_id("err", "var-del", *extra),
            f"{ref.path} uses {ref.scope} variable marked for delete: "
            f"{label(result.variable)}{suffix}",
            DiagnosticCode.DELETED_REFERENCE,
        )
    return site.error(
        site.diag_id("err", "var-missing", *extra),
        f"{ref.path} references missing {ref.scope} variable: {ref.target_id}{suffix}",
        DiagnosticCode.MISSING_REFERENCE,
    )
