"""Shared diagnostic types used by every checker."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any


class DiagnosticLevel(StrEnum):
    """Severity of a diagnostic. Errors block export, warnings do not."""

    ERROR = "error"
    WARNING = "warning"


class ObjectType(StrEnum):
    """Kind of document object a diagnostic or usage site is attached to."""

    STAGE = "STAGE"
    NODE = "NODE"
    STATE = "STATE"
    STATE_MACHINE = "STATE_MACHINE"
    TRANSITION = "TRANSITION"
    PRESENTATION_GRAPH = "PRESENTATION_GRAPH"
    PRESENTATION_NODE = "PRESENTATION_NODE"
    SCRIPT = "SCRIPT"
    VARIABLE = "VARIABLE"
    EVENT = "EVENT"


class DiagnosticCode(StrEnum):
    """Category of problem a diagnostic reports."""

    MISSING_REFERENCE = "missing-reference"
    DELETED_REFERENCE = "deleted-reference"
    STRUCTURAL_CYCLE = "structural-cycle"
    UNREACHABLE_NODE = "unreachable-node"
    DUPLICATE_NAME = "duplicate-name"
    INVALID_FORMAT = "invalid-format"
    UNIQUENESS_VIOLATION = "uniqueness-violation"
    TYPE_CONFLICT = "type-conflict"
    MISSING_FIELD = "missing-field"
    INVALID_STRUCTURE = "invalid-structure"
    ORPHANED_GRAPH = "orphaned-graph"


@dataclass(frozen=True)
class Diagnostic:
    """One reported issue.

    Attributes:
        id: Stable id derived from object type, object id and problem kind.
            Two passes over the same document produce the same ids.
        level: Severity.
        message: Human-readable description.
        object_type: Kind of the offending object.
        object_id: Id of the offending object.
        location: Breadcrumb such as ``"Node: Door > State: Locked"``.
        code: Problem category.
        context_id: Owning object for nested entities (the node that owns a
            state or transition).
    """

    id: str
    level: DiagnosticLevel
    message: str
    object_type: ObjectType
    object_id: str
    location: str
    code: DiagnosticCode
    context_id: str | None = None

    @property
    def is_error(self) -> bool:
        return self.level is DiagnosticLevel.ERROR

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase shape consumed by editors."""
        data: dict[str, Any] = {
            "id": self.id,
            "level": str(self.level),
            "message": self.message,
            "objectType": str(self.object_type),
            "objectId": self.object_id,
            "location": self.location,
            "code": str(self.code),
        }
        if self.context_id is not None:
            data["contextId"] = self.context_id
        return data


@dataclass(frozen=True)
class Site:
    """The object a checker attaches diagnostics to.

    Attributes:
        object_type: Kind of the object.
        object_id: Id of the object.
        location: Breadcrumb describing the object.
        context_id: Owning object, if any.
        key: Id fragment used in diagnostic ids; defaults to ``object_id``.
    """

    object_type: ObjectType
    object_id: str
    location: str
    context_id: str | None = None
    key: str | None = None

    def at(self, suffix: str) -> Site:
        """Return the same site with ``suffix`` appended to the location."""
        return replace(self, location=f"{self.location} > {suffix}")

    def diag_id(self, severity: str, kind: str, *extra: object) -> str:
        """Build a deterministic diagnostic id.

        ``site.diag_id("err", "script-missing", "SCRIPT_3")`` on a stage site
        gives ``"err-stage-script-missing-STAGE_1-SCRIPT_3"``.
        """
        parts = [severity, self.object_type.lower(), kind, self.key or self.object_id]
        parts.extend(str(e) for e in extra)
        return "-".join(parts)

    def error(self, diag_id: str, message: str, code: DiagnosticCode) -> Diagnostic:
        return self._make(diag_id, DiagnosticLevel.ERROR, message, code)

    def warning(self, diag_id: str, message: str, code: DiagnosticCode) -> Diagnostic:
        return self._make(diag_id, DiagnosticLevel.WARNING, message, code)

    def _make(
        self, diag_id: str, level: DiagnosticLevel, message: str, code: DiagnosticCode
    ) -> Diagnostic:
        return Diagnostic(
            id=diag_id,
            level=level,
            message=message,
            object_type=self.object_type,
            object_id=self.object_id,
            location=self.location,
            code=code,
            context_id=self.context_id,
        )


@dataclass
class ValidationReport:
    """Aggregated diagnostics of one validation pass.

    Attributes:
        diagnostics: Diagnostics in checker order.
    """

    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level is DiagnosticLevel.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level is DiagnosticLevel.WARNING]

    @property
    def has_errors(self) -> bool:
        """True if any diagnostic is an error."""
        return any(d.level is DiagnosticLevel.ERROR for d in self.diagnostics)

    @property
    def has_warnings(self) -> bool:
        """True if any diagnostic is a warning."""
        return any(d.level is DiagnosticLevel.WARNING for d in self.diagnostics)

    @property
    def summary(self) -> str:
        """Human-readable summary of the pass."""
        errors = len(self.errors)
        warnings = len(self.warnings)
        if not errors and not warnings:
            return "no issues"
        parts: list[str] = []
        if errors:
            parts.append(f"{errors} errors")
        if warnings:
            parts.append(f"{warnings} warnings")
        return ", ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "hasErrors": self.has_errors,
            "hasWarnings": self.has_warnings,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
