"""Scope-aware variable resolution.

Visibility rules:

- ``Global`` variables live on the blackboard and are visible everywhere.
- ``StageLocal`` variables are visible to the declaring stage and all of
  its descendants. Lookup walks from the usage stage up through its
  ancestors and stops at the first stage declaring the id.
- ``NodeLocal`` variables are visible only inside the owning node.
- ``Temporary`` variables are bound at the call site and never checked.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from puzzleforge.models.expressions import VariableScope
from puzzleforge.models.lifecycle import is_marked_for_delete

if TYPE_CHECKING:
    from puzzleforge.models.document import ProjectDocument, PuzzleNode, Stage, Variable


@dataclass(frozen=True, eq=False)
class UsageContext:
    """Where a variable reference is evaluated from.

    Contexts compare by identity: the same stage bound twice records one
    context object, and merging lists keeps each object once.

    Attributes:
        stage: Stage whose ancestor chain answers StageLocal lookups.
        node: Node whose locals answer NodeLocal lookups.
        location: Breadcrumb of the binding site, quoted in diagnostics.
    """

    stage: Stage | None = None
    node: PuzzleNode | None = None
    location: str = ""

    @property
    def owner_id(self) -> str:
        """Id of the most specific owner (node, else stage)."""
        if self.node is not None:
            return self.node.id
        if self.stage is not None:
            return self.stage.id
        return ""


class ResolutionStatus(StrEnum):
    OK = "ok"
    MISSING = "missing"
    DELETED = "deleted"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class VariableResolution:
    """Outcome of resolving one variable reference."""

    status: ResolutionStatus
    variable: Variable | None = None

    @property
    def ok(self) -> bool:
        return self.status in (ResolutionStatus.OK, ResolutionStatus.SKIPPED)


_SKIPPED = VariableResolution(ResolutionStatus.SKIPPED)
_MISSING = VariableResolution(ResolutionStatus.MISSING)


def resolve_variable(
    document: ProjectDocument,
    variable_id: str | None,
    scope: VariableScope | str | None,
    context: UsageContext | None = None,
) -> VariableResolution:
    """Resolve a variable reference against the scope rules.

    Args:
        document: Project snapshot.
        variable_id: Referenced variable id.
        scope: Declared scope of the reference. References without id or
            scope are skipped; the reference checker reports those.
        context: Usage context for StageLocal / NodeLocal lookups.

    Returns:
        VariableResolution with status ok, missing, deleted or skipped.
    """
    if not variable_id or not scope:
        return _SKIPPED
    try:
        scope = VariableScope(scope)
    except ValueError:
        return _MISSING

    variable: Variable | None = None
    if scope is VariableScope.TEMPORARY:
        return _SKIPPED
    if scope is VariableScope.GLOBAL:
        variable = document.blackboard.global_variables.get(variable_id)
    elif scope is VariableScope.NODE_LOCAL:
        if context is not None and context.node is not None:
            variable = context.node.local_variables.get(variable_id)
    elif scope is VariableScope.STAGE_LOCAL:
        if context is not None and context.stage is not None:
            variable = _find_in_stage_chain(document, context.stage, variable_id)

    if variable is None:
        return _MISSING
    if is_marked_for_delete(variable):
        return VariableResolution(ResolutionStatus.DELETED, variable)
    return VariableResolution(ResolutionStatus.OK, variable)


def _find_in_stage_chain(
    document: ProjectDocument, stage: Stage, variable_id: str
) -> Variable | None:
    """Walk from ``stage`` up to the root, returning the first declaration found.

    The visited set stops the walk on a corrupt parent cycle.
    """
    stages = document.stage_tree.stages
    visited: set[str] = set()
    current: Stage | None = stage
    while current is not None and current.id not in visited:
        visited.add(current.id)
        found = current.local_variables.get(variable_id)
        if found is not None:
            return found
        current = stages.get(current.parent_id) if current.parent_id else None
    return None
