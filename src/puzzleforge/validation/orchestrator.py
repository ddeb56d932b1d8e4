"""Validation orchestrator and export gate.

Runs every checker in a fixed order and concatenates their diagnostics:

    Naming -> Structure -> References -> Variables -> Lifecycle uniqueness
    -> Temporary parameters

Order only groups the output; each checker is independent. The pass never
mutates the document and never raises on malformed data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from puzzleforge.config import ValidationConfig
from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.lifecycle_unique import check_lifecycle_uniqueness
from puzzleforge.validation.names import check_names
from puzzleforge.validation.references import check_references
from puzzleforge.validation.structure import check_structure
from puzzleforge.validation.temporary_params import check_temporary_params
from puzzleforge.validation.types import Diagnostic, ValidationReport
from puzzleforge.validation.variables import check_variables

if TYPE_CHECKING:
    from puzzleforge.models.document import ProjectDocument

log = get_logger(__name__)


class ExportBlockedError(Exception):
    """Raised when a project cannot be exported because validation failed.

    Attributes:
        diagnostics: The diagnostics that block the export.
    """

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        super().__init__(f"Export blocked by {len(diagnostics)} validation issue(s)")


def validate_project(
    document: ProjectDocument, config: ValidationConfig | None = None
) -> list[Diagnostic]:
    """Run the full validation pass.

    Args:
        document: Project snapshot.
        config: Validation settings; defaults when omitted.

    Returns:
        Diagnostics in checker order. Equal documents give equal lists.
    """
    config = config or ValidationConfig()
    diagnostics = [
        *check_names(document),
        *check_structure(document),
        *check_references(document),
        *check_variables(document, config.context_failure_policy),
        *check_lifecycle_uniqueness(document),
        *check_temporary_params(document),
    ]
    log.debug(
        "validation_pass_complete",
        project=document.meta.name,
        errors=sum(1 for d in diagnostics if d.is_error),
        warnings=sum(1 for d in diagnostics if not d.is_error),
    )
    return diagnostics


def build_report(
    document: ProjectDocument, config: ValidationConfig | None = None
) -> ValidationReport:
    """Validate and wrap the result in a ValidationReport."""
    return ValidationReport(diagnostics=validate_project(document, config))


def ensure_exportable(
    document: ProjectDocument, config: ValidationConfig | None = None
) -> ValidationReport:
    """Validate before export and refuse on blocking diagnostics.

    Errors always block. Warnings block only with ``fail_on_warnings``.

    Returns:
        The report, when nothing blocks.

    Raises:
        ExportBlockedError: If blocking diagnostics exist.
    """
    config = config or ValidationConfig()
    report = build_report(document, config)
    blocking = report.errors
    if config.fail_on_warnings:
        blocking = blocking + report.warnings
    if blocking:
        log.info("export_blocked", project=document.meta.name, blocking=len(blocking))
        raise ExportBlockedError(blocking)
    return report
