"""Expression and binding trees used throughout the project document.

Condition expressions, value sources, presentation bindings and listener
actions are tagged unions discriminated on ``type``. Each variant is its
own model, so checkers dispatch with ``isinstance`` / ``match`` and a new
variant shows up wherever it is not handled.

Every child field is optional: editors save half-built trees, and the
validators report on them instead of refusing to load them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """Base for all document models: camelCase on the wire, immutable in memory."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class VariableScope(StrEnum):
    """Where a blackboard variable lives."""

    GLOBAL = "Global"
    STAGE_LOCAL = "StageLocal"
    NODE_LOCAL = "NodeLocal"
    TEMPORARY = "Temporary"


VariableType = Literal["boolean", "integer", "float", "string"]
ComparisonOperator = Literal["==", "!=", ">", "<", ">=", "<="]

# ---------------------------------------------------------------------------
# Value sources
# ---------------------------------------------------------------------------


class ConstantSource(DocumentModel):
    """A literal value."""

    type: Literal["Constant"] = "Constant"
    value: Any = None


class VariableSource(DocumentModel):
    """A reference to a blackboard variable, resolved by scope."""

    type: Literal["VariableRef"] = "VariableRef"
    variable_id: str | None = None
    scope: VariableScope | None = Field(
        default=None, validation_alias=AliasChoices("scope", "variableScope")
    )


ValueSource = Annotated[ConstantSource | VariableSource, Field(discriminator="type")]

# ---------------------------------------------------------------------------
# Condition expressions
# ---------------------------------------------------------------------------


class AndCondition(DocumentModel):
    """All children must hold."""

    type: Literal["And"] = "And"
    children: list[ConditionExpression] = Field(default_factory=list)


class OrCondition(DocumentModel):
    """At least one child must hold."""

    type: Literal["Or"] = "Or"
    children: list[ConditionExpression] = Field(default_factory=list)


class NotCondition(DocumentModel):
    """Negates its operand."""

    type: Literal["Not"] = "Not"
    operand: ConditionExpression | None = None


class ComparisonCondition(DocumentModel):
    """Compares two value sources."""

    type: Literal["Comparison"] = "Comparison"
    left: ValueSource | None = None
    operator: ComparisonOperator | None = None
    right: ValueSource | None = None


class ScriptRefCondition(DocumentModel):
    """Delegates the decision to a condition script."""

    type: Literal["ScriptRef"] = "ScriptRef"
    script_id: str | None = None


class LiteralCondition(DocumentModel):
    """A constant true/false."""

    type: Literal["Literal"] = "Literal"
    value: Any = None


class VariableRefCondition(DocumentModel):
    """A boolean variable used directly as a condition."""

    type: Literal["VariableRef"] = "VariableRef"
    variable_id: str | None = None
    scope: VariableScope | None = Field(
        default=None, validation_alias=AliasChoices("scope", "variableScope")
    )


ConditionExpression = Annotated[
    AndCondition
    | OrCondition
    | NotCondition
    | ComparisonCondition
    | ScriptRefCondition
    | LiteralCondition
    | VariableRefCondition,
    Field(discriminator="type"),
]

# ---------------------------------------------------------------------------
# Parameters, modifiers and presentation bindings
# ---------------------------------------------------------------------------


class TemporaryVariable(DocumentModel):
    """Type declaration for a call-site temporary parameter."""

    type: str | None = None


class ParameterBinding(DocumentModel):
    """An argument passed to a script at a call site.

    ``kind == "Temporary"`` marks a parameter whose value is created at the
    call site; its type comes from ``temp_variable``.
    """

    param_name: str = ""
    source: ValueSource | None = None
    kind: str | None = None
    temp_variable: TemporaryVariable | None = None


ModifierOperation = Literal["Set", "Add", "Subtract", "Multiply", "Divide", "Toggle"]


class ParameterModifier(DocumentModel):
    """Writes a value into a blackboard variable when a transition fires."""

    target_variable_id: str | None = None
    target_scope: VariableScope | None = None
    operation: ModifierOperation | None = None
    source: ValueSource | None = None


class ScriptBinding(DocumentModel):
    """Presentation played by calling a performance script."""

    type: Literal["Script"] = "Script"
    script_id: str | None = None
    parameters: list[ParameterBinding] = Field(default_factory=list)


class GraphBinding(DocumentModel):
    """Presentation played by running a presentation graph."""

    type: Literal["Graph"] = "Graph"
    graph_id: str | None = None


PresentationBinding = Annotated[ScriptBinding | GraphBinding, Field(discriminator="type")]

# ---------------------------------------------------------------------------
# Triggers and event listeners
# ---------------------------------------------------------------------------


class Trigger(DocumentModel):
    """What makes a transition fire or a stage unlock.

    ``type`` is open-ended (``OnEvent``, ``CustomScript``, ``Always``, engine
    triggers such as ``ON_INTERACT``); only the first two carry references.
    """

    type: str = ""
    event_id: str | None = None
    script_id: str | None = None


class InvokeScriptAction(DocumentModel):
    """Call the host object's lifecycle script."""

    type: Literal["InvokeScript"] = "InvokeScript"


class ModifyParameterAction(DocumentModel):
    """Apply parameter modifiers."""

    type: Literal["ModifyParameter"] = "ModifyParameter"
    modifiers: list[ParameterModifier] = Field(default_factory=list)


ListenerAction = Annotated[
    InvokeScriptAction | ModifyParameterAction, Field(discriminator="type")
]


class EventListener(DocumentModel):
    """Reacts to a blackboard event on a stage, node or state."""

    event_id: str | None = None
    action: ListenerAction | None = None


AndCondition.model_rebuild()
OrCondition.model_rebuild()
NotCondition.model_rebuild()
