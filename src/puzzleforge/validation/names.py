"""Asset name validation.

``assetName`` is the identifier generated runtime code refers to a
resource by. Within each category (global variables, events, scripts,
stages, nodes, and the states of one state machine) it must be present,
be a valid identifier, and be unique. The display ``name`` is not checked.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol

from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.sites import label, node_machines
from puzzleforge.validation.types import Diagnostic, DiagnosticCode, ObjectType, Site

if TYPE_CHECKING:
    from collections.abc import Iterable

    from puzzleforge.models.document import ProjectDocument

log = get_logger(__name__)

ASSET_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class _Named(Protocol):
    id: str
    name: str
    asset_name: str | None


def is_valid_asset_name(value: str) -> bool:
    """True if ``value`` can be used as a generated identifier."""
    return bool(ASSET_NAME_PATTERN.match(value))


def check_names(document: ProjectDocument) -> list[Diagnostic]:
    """Validate asset names in every category.

    Args:
        document: Project snapshot.

    Returns:
        Diagnostics in category order: global variables, events, scripts,
        stages, nodes, then states per node.
    """
    diagnostics: list[Diagnostic] = []
    blackboard = document.blackboard

    diagnostics += _check_category(
        blackboard.global_variables.values(), ObjectType.VARIABLE, "Global Variable"
    )
    diagnostics += _check_category(blackboard.events.values(), ObjectType.EVENT, "Event")
    diagnostics += _check_category(document.scripts.values(), ObjectType.SCRIPT, "Script")
    diagnostics += _check_category(
        document.stage_tree.stages.values(), ObjectType.STAGE, "Stage"
    )
    diagnostics += _check_category(document.nodes.values(), ObjectType.NODE, "Node")
    for node, fsm in node_machines(document):
        diagnostics += _check_category(
            fsm.states.values(),
            ObjectType.STATE,
            "State",
            location_prefix=f"Node: {label(node)} > ",
            context_id=node.id,
        )

    log.debug("names_checked", diagnostic_count=len(diagnostics))
    return diagnostics


def _check_category(
    items: Iterable[_Named],
    object_type: ObjectType,
    human_type: str,
    location_prefix: str = "",
    context_id: str | None = None,
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    by_name: dict[str, list[tuple[_Named, Site]]] = {}
    kind = object_type.lower()

    for item in items:
        site = Site(
            object_type,
            item.id,
            f"{location_prefix}{human_type}: [{item.id}] {item.name}",
            context_id=context_id,
        )
        asset_name = (item.asset_name or "").strip()
        if not asset_name:
            diagnostics.append(
                site.error(
                    f"err-{kind}-no-asset-name-{item.id}",
                    f"{human_type} has no resource name (assetName).",
                    DiagnosticCode.MISSING_FIELD,
                )
            )
            continue

        if not is_valid_asset_name(asset_name):
            diagnostics.append(
                site.error(
                    f"err-{kind}-invalid-name-fmt-{item.id}",
                    f'{human_type} resource name "{asset_name}" is invalid. '
                    f"Must match /{ASSET_NAME_PATTERN.pattern}/.",
                    DiagnosticCode.INVALID_FORMAT,
                )
            )
        by_name.setdefault(asset_name, []).append((item, site))

    for asset_name, holders in by_name.items():
        if len(holders) < 2:
            continue
        for item, site in holders:
            diagnostics.append(
                site.error(
                    f"err-{kind}-dup-asset-name-{item.id}",
                    f'{human_type} resource name "{asset_name}" is duplicated.',
                    DiagnosticCode.DUPLICATE_NAME,
                )
            )

    return diagnostics
