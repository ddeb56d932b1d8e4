"""Project document models for PuzzleForge."""

from puzzleforge.models.document import (
    Blackboard,
    Event,
    ProjectDocument,
    ProjectMeta,
    PresentationGraph,
    PresentationNode,
    PuzzleNode,
    Script,
    ScriptParameterDefinition,
    Stage,
    StageTree,
    State,
    StateMachine,
    Transition,
    Variable,
)
from puzzleforge.models.expressions import (
    AndCondition,
    ComparisonCondition,
    ConditionExpression,
    ConstantSource,
    EventListener,
    GraphBinding,
    InvokeScriptAction,
    LiteralCondition,
    ModifyParameterAction,
    NotCondition,
    OrCondition,
    ParameterBinding,
    ParameterModifier,
    PresentationBinding,
    ScriptBinding,
    ScriptRefCondition,
    TemporaryVariable,
    Trigger,
    ValueSource,
    VariableRefCondition,
    VariableScope,
    VariableSource,
)
from puzzleforge.models.lifecycle import (
    DeleteResolution,
    ResourceState,
    can_transition_resource_state,
    is_marked_for_delete,
    normalize_resource_state_update,
    resolve_delete_action,
)

__all__ = [
    "AndCondition",
    "Blackboard",
    "ComparisonCondition",
    "ConditionExpression",
    "ConstantSource",
    "DeleteResolution",
    "Event",
    "EventListener",
    "GraphBinding",
    "InvokeScriptAction",
    "LiteralCondition",
    "ModifyParameterAction",
    "NotCondition",
    "OrCondition",
    "ParameterBinding",
    "ParameterModifier",
    "PresentationBinding",
    "PresentationGraph",
    "PresentationNode",
    "ProjectDocument",
    "ProjectMeta",
    "PuzzleNode",
    "ResourceState",
    "Script",
    "ScriptBinding",
    "ScriptParameterDefinition",
    "ScriptRefCondition",
    "Stage",
    "StageTree",
    "State",
    "StateMachine",
    "TemporaryVariable",
    "Transition",
    "Trigger",
    "ValueSource",
    "Variable",
    "VariableRefCondition",
    "VariableScope",
    "VariableSource",
    "can_transition_resource_state",
    "is_marked_for_delete",
    "normalize_resource_state_update",
    "resolve_delete_action",
]
