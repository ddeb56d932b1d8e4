"""Project document models.

The document is the editor's whole business model, stored flat: every
collection is a map keyed by id, and cross references are plain id
strings. Nothing here guarantees referential integrity; that is what the
validation pass reports on.

Maps keep insertion order, which fixes the order in which validators
visit entities and therefore the order of the diagnostics they return.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, model_validator

from puzzleforge.models.expressions import (
    ConditionExpression,
    DocumentModel,
    EventListener,
    ParameterModifier,
    PresentationBinding,
    Trigger,
    VariableScope,
    VariableType,
)
from puzzleforge.models.lifecycle import ResourceState

# ---------------------------------------------------------------------------
# Blackboard resources
# ---------------------------------------------------------------------------


class Variable(DocumentModel):
    """A blackboard variable (global, stage-local or node-local)."""

    id: str
    name: str = ""
    asset_name: str | None = None
    type: VariableType | None = None
    default_value: Any = None
    scope: VariableScope = VariableScope.GLOBAL
    resource_state: ResourceState = Field(default=ResourceState.DRAFT, alias="state")


class Event(DocumentModel):
    """A named blackboard event."""

    id: str
    name: str = ""
    asset_name: str | None = None
    description: str = ""
    resource_state: ResourceState = Field(default=ResourceState.DRAFT, alias="state")


class ScriptParameterDefinition(DocumentModel):
    """A parameter declared by a script definition."""

    name: str
    type: str
    required: bool = False
    default_value: Any = None


LifecycleHost = Literal["Stage", "Node", "State"]


class Script(DocumentModel):
    """A script definition from the project's script manifest."""

    id: str
    name: str = ""
    asset_name: str | None = None
    category: str = ""
    lifecycle_type: LifecycleHost | None = None
    description: str = ""
    parameters: list[ScriptParameterDefinition] = Field(default_factory=list)
    resource_state: ResourceState = Field(default=ResourceState.DRAFT, alias="state")


class Blackboard(DocumentModel):
    """Project-wide variables and events."""

    global_variables: dict[str, Variable] = Field(default_factory=dict)
    events: dict[str, Event] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Stage tree
# ---------------------------------------------------------------------------


class Stage(DocumentModel):
    """A node of the stage tree."""

    id: str
    name: str = ""
    asset_name: str | None = None
    description: str = ""
    parent_id: str | None = None
    children_ids: list[str] = Field(default_factory=list)
    local_variables: dict[str, Variable] = Field(default_factory=dict)
    unlock_triggers: list[Trigger] = Field(default_factory=list)
    unlock_condition: ConditionExpression | None = None
    lifecycle_script_id: str | None = None
    on_enter_presentation: PresentationBinding | None = None
    on_exit_presentation: PresentationBinding | None = None
    event_listeners: list[EventListener] = Field(default_factory=list)
    resource_state: ResourceState = Field(default=ResourceState.DRAFT, alias="state")


class StageTree(DocumentModel):
    """Flat storage of the stage hierarchy."""

    root_id: str | None = None
    stages: dict[str, Stage] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Puzzle nodes and state machines
# ---------------------------------------------------------------------------


class PuzzleNode(DocumentModel):
    """A puzzle unit owned by a stage, driven by at most one state machine."""

    id: str
    name: str = ""
    asset_name: str | None = None
    description: str = ""
    stage_id: str | None = None
    state_machine_id: str | None = None
    local_variables: dict[str, Variable] = Field(default_factory=dict)
    lifecycle_script_id: str | None = None
    event_listeners: list[EventListener] = Field(default_factory=list)
    resource_state: ResourceState = Field(default=ResourceState.DRAFT, alias="state")


class State(DocumentModel):
    """A state of a puzzle node's state machine."""

    id: str
    name: str = ""
    asset_name: str | None = None
    description: str = ""
    lifecycle_script_id: str | None = None
    event_listeners: list[EventListener] = Field(default_factory=list)
    resource_state: ResourceState = Field(default=ResourceState.DRAFT, alias="state")


class Transition(DocumentModel):
    """A directed edge between two states of the same machine."""

    id: str
    name: str = ""
    from_state_id: str | None = None
    to_state_id: str | None = None
    priority: int = 0
    triggers: list[Trigger] = Field(default_factory=list)
    condition: ConditionExpression | None = None
    presentation: PresentationBinding | None = None
    parameter_modifiers: list[ParameterModifier] = Field(default_factory=list)
    invoke_event_ids: list[str] = Field(default_factory=list)


class StateMachine(DocumentModel):
    """States and transitions behind one puzzle node."""

    id: str
    name: str = ""
    states: dict[str, State] = Field(default_factory=dict)
    transitions: dict[str, Transition] = Field(default_factory=dict)
    initial_state_id: str | None = None


# ---------------------------------------------------------------------------
# Presentation graphs
# ---------------------------------------------------------------------------

PresentationNodeType = Literal["ScriptCall", "Wait", "Branch", "Parallel", "SubGraph"]


class PresentationNode(DocumentModel):
    """One playback step of a presentation graph."""

    id: str
    name: str = ""
    type: PresentationNodeType = "ScriptCall"
    presentation: PresentationBinding | None = None
    condition: ConditionExpression | None = None
    duration: float | None = None
    next_ids: list[str] = Field(default_factory=list)


class PresentationGraph(DocumentModel):
    """A reusable, cutscene-like sequence bindable from many sites."""

    id: str
    name: str = ""
    description: str = ""
    start_node_id: str | None = None
    nodes: dict[str, PresentationNode] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


class ProjectMeta(DocumentModel):
    """Project identity carried into exports."""

    id: str = ""
    name: str = "Untitled"
    description: str = ""
    version: str = "1.0.0"
    export_file_name: str | None = None


class ProjectDocument(DocumentModel):
    """An immutable snapshot of a whole project."""

    meta: ProjectMeta = Field(default_factory=ProjectMeta)
    blackboard: Blackboard = Field(default_factory=Blackboard)
    scripts: dict[str, Script] = Field(default_factory=dict)
    stage_tree: StageTree = Field(default_factory=StageTree)
    nodes: dict[str, PuzzleNode] = Field(default_factory=dict)
    state_machines: dict[str, StateMachine] = Field(default_factory=dict)
    presentation_graphs: dict[str, PresentationGraph] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def unwrap_scripts_manifest(cls, data: Any) -> Any:
        """Accept the editor's ``{"version": ..., "scripts": {...}}`` manifest form."""
        if isinstance(data, dict):
            scripts = data.get("scripts")
            if isinstance(scripts, dict) and isinstance(scripts.get("scripts"), dict):
                data = {**data, "scripts": scripts["scripts"]}
        return data

    def owner_of_state_machine(self, fsm_id: str) -> PuzzleNode | None:
        """Return the first node driven by the given state machine."""
        for node in self.nodes.values():
            if node.state_machine_id == fsm_id:
                return node
        return None
