"""Lifecycle script uniqueness.

A lifecycle script drives exactly one host object. Binding the same
script to several stages, nodes or states is an error reported on every
offending host, each diagnostic listing all of them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.sites import label, node_machines, node_site, stage_site, state_site
from puzzleforge.validation.types import Diagnostic, DiagnosticCode

if TYPE_CHECKING:
    from puzzleforge.models.document import ProjectDocument
    from puzzleforge.validation.types import Site

log = get_logger(__name__)


def check_lifecycle_uniqueness(document: ProjectDocument) -> list[Diagnostic]:
    """Report lifecycle scripts bound to more than one host.

    Args:
        document: Project snapshot.

    Returns:
        One ``uniqueness-violation`` error per usage of each reused script.
    """
    usages: dict[str, list[Site]] = {}

    def record(script_id: str | None, site: Site) -> None:
        if script_id:
            usages.setdefault(script_id, []).append(site)

    for stage in document.stage_tree.stages.values():
        record(stage.lifecycle_script_id, stage_site(stage))

    machines = {node.id: fsm for node, fsm in node_machines(document)}
    for node in document.nodes.values():
        record(node.lifecycle_script_id, node_site(node))
        fsm = machines.get(node.id)
        if fsm is not None:
            for state in fsm.states.values():
                record(state.lifecycle_script_id, state_site(node, state))

    diagnostics: list[Diagnostic] = []
    for script_id, sites in usages.items():
        if len(sites) < 2:
            continue
        script = document.scripts.get(script_id)
        script_name = label(script) if script else script_id
        locations = "; ".join(site.location for site in sites)
        for site in sites:
            diagnostics.append(
                site.error(
                    f"err-lifecycle-dup-{site.object_type.lower()}-{site.object_id}-{script_id}",
                    f'Lifecycle script "{script_name}" is reused in multiple locations '
                    f"({len(sites)}). It must be unique.\nUsed in: {locations}",
                    DiagnosticCode.UNIQUENESS_VIOLATION,
                )
            )

    log.debug("lifecycle_uniqueness_checked", diagnostic_count=len(diagnostics))
    return diagnostics
