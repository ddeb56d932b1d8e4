"""Temporary parameter consistency.

A ``Temporary`` parameter is a value created at a script call site. The
runtime generates one typed field per (script, parameter name), so every
call site must declare a usable name and a supported type, and all sites
must agree on that type.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from puzzleforge.models.expressions import ScriptBinding
from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.names import is_valid_asset_name
from puzzleforge.validation.sites import (
    graph_node_site,
    label,
    node_machines,
    stage_site,
    transition_sites,
)
from puzzleforge.validation.types import Diagnostic, DiagnosticCode, ObjectType, Site

if TYPE_CHECKING:
    from collections.abc import Iterator

    from puzzleforge.models.document import ProjectDocument
    from puzzleforge.models.expressions import PresentationBinding

log = get_logger(__name__)

TEMPORARY_KIND = "Temporary"
ALLOWED_TEMP_TYPES = ("boolean", "integer", "float", "string")


@dataclass(frozen=True)
class _Declaration:
    script_id: str
    script_name: str
    param_name: str
    type: str
    location: str


def check_temporary_params(document: ProjectDocument) -> list[Diagnostic]:
    """Validate Temporary parameters at every script call site.

    Args:
        document: Project snapshot.

    Returns:
        Per-site errors in site order, then one ``type-conflict`` error per
        (script, parameter) declared with different types.
    """
    diagnostics: list[Diagnostic] = []
    declarations: list[_Declaration] = []

    for binding, site in _call_sites(document):
        diagnostics.extend(_check_binding(document, binding, site, declarations))

    diagnostics.extend(_check_conflicts(declarations))
    log.debug(
        "temporary_params_checked",
        declarations=len(declarations),
        diagnostic_count=len(diagnostics),
    )
    return diagnostics


def _call_sites(document: ProjectDocument) -> Iterator[tuple[PresentationBinding | None, Site]]:
    for stage in document.stage_tree.stages.values():
        site = stage_site(stage)
        yield stage.on_enter_presentation, replace(site.at("OnEnter"), key=f"{stage.id}-onenter")
        yield stage.on_exit_presentation, replace(site.at("OnExit"), key=f"{stage.id}-onexit")

    for node, fsm in node_machines(document):
        for trans, t_site in transition_sites(node, fsm):
            yield trans.presentation, t_site

    for graph in document.presentation_graphs.values():
        for pnode in graph.nodes.values():
            yield pnode.presentation, graph_node_site(graph, pnode)


def _check_binding(
    document: ProjectDocument,
    binding: PresentationBinding | None,
    site: Site,
    declarations: list[_Declaration],
) -> list[Diagnostic]:
    if not isinstance(binding, ScriptBinding):
        return []
    params = [p for p in binding.parameters if p.kind == TEMPORARY_KIND]
    if not params:
        return []

    script_id = binding.script_id or ""
    script = document.scripts.get(script_id)
    script_name = label(script) if script else script_id

    diagnostics: list[Diagnostic] = []
    for idx, param in enumerate(params):
        name = param.param_name.strip()
        if not name:
            diagnostics.append(
                site.error(
                    site.diag_id("err", "temp-empty-name", idx),
                    f'Temporary parameter name is empty in script "{script_name}".',
                    DiagnosticCode.MISSING_FIELD,
                )
            )
            continue

        if not is_valid_asset_name(name):
            diagnostics.append(
                site.error(
                    site.diag_id("err", "temp-invalid-name", name),
                    f'Temporary parameter name "{name}" is not a valid identifier '
                    f'(script: "{script_name}").',
                    DiagnosticCode.INVALID_FORMAT,
                )
            )

        temp_type = param.temp_variable.type if param.temp_variable else None
        if not temp_type:
            diagnostics.append(
                site.error(
                    site.diag_id("err", "temp-no-type", name),
                    f'Temporary parameter "{name}" has no type (script: "{script_name}").',
                    DiagnosticCode.MISSING_FIELD,
                )
            )
            continue

        if temp_type not in ALLOWED_TEMP_TYPES:
            diagnostics.append(
                site.error(
                    site.diag_id("err", "temp-bad-type", name),
                    f'Temporary parameter "{name}" has unsupported type "{temp_type}" '
                    f'(script: "{script_name}"). Allowed: {", ".join(ALLOWED_TEMP_TYPES)}.',
                    DiagnosticCode.INVALID_FORMAT,
                )
            )

        declarations.append(_Declaration(script_id, script_name, name, temp_type, site.location))

    return diagnostics


def _check_conflicts(declarations: list[_Declaration]) -> list[Diagnostic]:
    groups: dict[tuple[str, str], list[_Declaration]] = {}
    for decl in declarations:
        groups.setdefault((decl.script_id, decl.param_name), []).append(decl)

    diagnostics: list[Diagnostic] = []
    for (script_id, param_name), decls in groups.items():
        types = list(dict.fromkeys(d.type for d in decls))
        if len(types) < 2:
            continue
        first = decls[0]
        site = Site(
            ObjectType.SCRIPT,
            script_id,
            f"Script: {first.script_name} > Param: {param_name}",
        )
        diagnostics.append(
            site.error(
                f"err-temp-type-conflict-{script_id}-{param_name}",
                f'Conflicting Temporary parameter type for script="{first.script_name}", '
                f'param="{param_name}": {" vs ".join(types)}. '
                f"Used in: {'; '.join(d.location for d in decls)}",
                DiagnosticCode.TYPE_CONFLICT,
            )
        )
    return diagnostics
