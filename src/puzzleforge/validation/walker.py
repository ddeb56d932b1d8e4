"""Expression walker.

Extracts variable and script references from condition trees, value
sources, presentation bindings and parameter modifiers. Each reference is
reported together with a breadcrumb path built while descending, e.g.
``"Condition > Sub #2 > Left"``.

Absent children are skipped. A half-built tree yields fewer references,
never an exception.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Literal

from puzzleforge.models.expressions import (
    AndCondition,
    ComparisonCondition,
    ConditionExpression,
    EventListener,
    GraphBinding,
    ModifyParameterAction,
    NotCondition,
    OrCondition,
    ParameterBinding,
    ParameterModifier,
    PresentationBinding,
    ScriptBinding,
    ScriptRefCondition,
    ValueSource,
    VariableRefCondition,
    VariableScope,
    VariableSource,
)


@dataclass(frozen=True)
class Reference:
    """A variable or script reference found in an expression tree.

    Attributes:
        kind: ``"variable"`` or ``"script"``.
        target_id: Referenced id; None when the author left it blank.
        scope: Declared scope for variable references.
        path: Breadcrumb of where the reference sits.
    """

    kind: Literal["variable", "script"]
    target_id: str | None
    path: str
    scope: VariableScope | None = None


Visitor = Callable[[Reference], None]


def condition_references(expr: ConditionExpression | None, origin: str) -> Iterator[Reference]:
    """Yield every reference in a condition tree, depth-first, in child order."""
    if expr is None:
        return
    match expr:
        case AndCondition(children=children) | OrCondition(children=children):
            for idx, child in enumerate(children, start=1):
                yield from condition_references(child, f"{origin} > Sub #{idx}")
        case NotCondition(operand=operand):
            yield from condition_references(operand, f"{origin} > NOT")
        case ComparisonCondition(left=left, right=right):
            yield from value_source_references(left, f"{origin} > Left")
            yield from value_source_references(right, f"{origin} > Right")
        case ScriptRefCondition(script_id=script_id):
            yield Reference("script", script_id, origin)
        case VariableRefCondition(variable_id=variable_id, scope=scope):
            yield Reference("variable", variable_id, origin, scope)
        case _:
            # Literal
            return


def value_source_references(source: ValueSource | None, origin: str) -> Iterator[Reference]:
    """Yield the reference held by a value source, if it is a variable reference."""
    if isinstance(source, VariableSource):
        yield Reference("variable", source.variable_id, origin, source.scope)


def parameter_references(
    parameters: Iterable[ParameterBinding], origin: str
) -> Iterator[Reference]:
    """Yield references from script call parameters (``"<origin> (Param: name)"``)."""
    for param in parameters:
        yield from value_source_references(param.source, f"{origin} (Param: {param.param_name})")


def binding_references(binding: PresentationBinding | None, origin: str) -> Iterator[Reference]:
    """Yield references from a presentation binding's parameters.

    Graph bindings carry no parameters; their graph id is checked by the
    reference checker and followed by context propagation.
    """
    if isinstance(binding, ScriptBinding):
        yield from parameter_references(binding.parameters, origin)


def modifier_references(
    modifiers: Iterable[ParameterModifier], origin: str
) -> Iterator[Reference]:
    """Yield target and source references of parameter modifiers.

    A modifier without a target id yields nothing for its target; the
    reference checker reports the missing field.
    """
    for idx, modifier in enumerate(modifiers, start=1):
        if modifier.target_variable_id:
            yield Reference(
                "variable",
                modifier.target_variable_id,
                f"{origin} (Modifier #{idx} Target)",
                modifier.target_scope,
            )
        yield from value_source_references(modifier.source, f"{origin} (Modifier #{idx} Source)")


def listener_references(listeners: Iterable[EventListener]) -> Iterator[Reference]:
    """Yield modifier references of ``ModifyParameter`` listeners (``"Listener #n"``)."""
    for idx, listener in enumerate(listeners, start=1):
        if isinstance(listener.action, ModifyParameterAction):
            yield from modifier_references(listener.action.modifiers, f"Listener #{idx}")


Walkable = ConditionExpression | PresentationBinding | ParameterModifier | VariableSource


def walk_references(root: Walkable | None, origin: str, visit: Visitor) -> None:
    """Call ``visit`` once for every variable or script reference under ``root``.

    Args:
        root: A condition expression, presentation binding, parameter
            modifier or value source. None is accepted and visits nothing,
            as is a graph binding.
        origin: Breadcrumb prefix for the root.
        visit: Callback receiving each Reference.
    """
    if root is None:
        return
    refs: Iterator[Reference]
    if isinstance(root, ScriptBinding | GraphBinding):
        refs = binding_references(root, origin)
    elif isinstance(root, ParameterModifier):
        refs = modifier_references([root], origin)
    elif isinstance(root, VariableSource):
        refs = value_source_references(root, origin)
    else:
        refs = condition_references(root, origin)
    for ref in refs:
        visit(ref)
