"""Resource lifecycle and soft-delete state machine.

Every blackboard resource (variables, events, scripts) and every authored
host object (stages, puzzle nodes, states) carries a lifecycle state:

    Draft → Implemented → MarkedForDelete

Deleting a Draft or MarkedForDelete resource removes it immediately. An
Implemented resource is soft-deleted first (moved to MarkedForDelete), so
that validation can flag every place that still references it before the
runtime loses it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class ResourceState(StrEnum):
    """Lifecycle state of a resource."""

    DRAFT = "Draft"
    IMPLEMENTED = "Implemented"
    MARKED_FOR_DELETE = "MarkedForDelete"


ALLOWED_TRANSITIONS: dict[ResourceState, frozenset[ResourceState]] = {
    ResourceState.DRAFT: frozenset(
        {ResourceState.DRAFT, ResourceState.IMPLEMENTED, ResourceState.MARKED_FOR_DELETE}
    ),
    ResourceState.IMPLEMENTED: frozenset(
        {ResourceState.IMPLEMENTED, ResourceState.MARKED_FOR_DELETE}
    ),
    ResourceState.MARKED_FOR_DELETE: frozenset({ResourceState.MARKED_FOR_DELETE}),
}


class HasResourceState(Protocol):
    """Anything carrying a lifecycle state (variables, scripts, stages, ...)."""

    @property
    def resource_state(self) -> ResourceState: ...


@dataclass(frozen=True)
class DeleteResolution:
    """Outcome of a delete request.

    Attributes:
        next_state: State the resource should hold after the request.
        should_remove: True if the resource can be removed from the document.
    """

    next_state: ResourceState
    should_remove: bool


def can_transition_resource_state(current: ResourceState | str, target: ResourceState | str) -> bool:
    """Return True if moving from ``current`` to ``target`` is allowed.

    Unknown state names are never allowed to transition.
    """
    try:
        source = ResourceState(current)
        dest = ResourceState(target)
    except ValueError:
        return False
    return dest in ALLOWED_TRANSITIONS[source]


def resolve_delete_action(current: ResourceState | str) -> DeleteResolution:
    """Compute what a delete request does to a resource in ``current`` state.

    - Draft: removed immediately.
    - Implemented: soft-deleted (MarkedForDelete), kept in the document.
    - MarkedForDelete: removed (the soft delete is applied).
    """
    state = ResourceState(current)
    if state is ResourceState.IMPLEMENTED:
        return DeleteResolution(next_state=ResourceState.MARKED_FOR_DELETE, should_remove=False)
    return DeleteResolution(next_state=state, should_remove=True)


def normalize_resource_state_update(
    current: ResourceState | str, target: ResourceState | str | None = None
) -> ResourceState:
    """Apply a requested state change, keeping ``current`` if it is not allowed."""
    state = ResourceState(current)
    if target is None:
        return state
    if can_transition_resource_state(state, target):
        return ResourceState(target)
    return state


def is_marked_for_delete(resource: HasResourceState | None) -> bool:
    """True if the resource exists and has been soft-deleted."""
    return resource is not None and resource.resource_state == ResourceState.MARKED_FOR_DELETE
