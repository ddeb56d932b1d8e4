"""Project validation: checkers, diagnostics, usage lookup and the export gate."""

from puzzleforge.validation.orchestrator import (
    ExportBlockedError,
    build_report,
    ensure_exportable,
    validate_project,
)
from puzzleforge.validation.scope import (
    ResolutionStatus,
    UsageContext,
    VariableResolution,
    resolve_variable,
)
from puzzleforge.validation.types import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticLevel,
    ObjectType,
    ValidationReport,
)
from puzzleforge.validation.usages import (
    ReferenceSite,
    UnknownResourceError,
    find_event_references,
    find_global_variable_references,
    find_node_variable_references,
    find_presentation_graph_references,
    find_resource_references,
    find_script_references,
    find_stage_variable_references,
)
from puzzleforge.validation.walker import Reference, walk_references

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticLevel",
    "ExportBlockedError",
    "ObjectType",
    "Reference",
    "ReferenceSite",
    "ResolutionStatus",
    "UnknownResourceError",
    "UsageContext",
    "ValidationReport",
    "VariableResolution",
    "build_report",
    "ensure_exportable",
    "find_event_references",
    "find_global_variable_references",
    "find_node_variable_references",
    "find_presentation_graph_references",
    "find_resource_references",
    "find_script_references",
    "find_stage_variable_references",
    "resolve_variable",
    "validate_project",
    "walk_references",
]
