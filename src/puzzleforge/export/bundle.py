"""Runtime export bundle.

The bundle holds only the data a game engine needs (no editor state),
wrapped with the project identity and an export timestamp. Writing a
bundle is gated by validation: a project with blocking diagnostics is
never written.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from puzzleforge.observability.logging import get_logger
from puzzleforge.validation.orchestrator import ensure_exportable

if TYPE_CHECKING:
    from pathlib import Path

    from puzzleforge.config import ValidationConfig
    from puzzleforge.models.document import ProjectDocument

log = get_logger(__name__)

EXPORT_FILE_TYPE = "puzzle-export"
MANIFEST_VERSION = "1.0.0"


def build_export_bundle(
    document: ProjectDocument, exported_at: datetime | None = None
) -> dict[str, Any]:
    """Build the ``puzzle-export`` mapping for a project.

    Args:
        document: Project snapshot.
        exported_at: Timestamp to record; now (UTC) when omitted.

    Returns:
        JSON-ready dict with camelCase keys.
    """
    exported_at = exported_at or datetime.now(UTC)
    data = document.model_dump(by_alias=True, mode="json", exclude={"meta"})
    data["scripts"] = {"version": MANIFEST_VERSION, "scripts": data["scripts"]}
    return {
        "fileType": EXPORT_FILE_TYPE,
        "manifestVersion": MANIFEST_VERSION,
        "exportedAt": exported_at.isoformat(),
        "projectName": document.meta.name,
        "projectVersion": document.meta.version,
        "data": data,
    }


def export_file_name(document: ProjectDocument) -> str:
    """File name for a project's bundle.

    Uses the project's configured name when set (``.export.json`` is added
    when it has no ``.json`` suffix), else ``<project name>.export.json``.
    """
    name = document.meta.export_file_name
    if not name:
        return f"{document.meta.name or 'project'}.export.json"
    if name.lower().endswith(".json"):
        return name
    if not name.lower().endswith(".export"):
        name += ".export"
    return f"{name}.json"


class BundleExporter:
    """Write validated projects as runtime bundles."""

    def __init__(self, config: ValidationConfig | None = None) -> None:
        self.config = config

    def export(
        self,
        document: ProjectDocument,
        output_dir: Path,
        exported_at: datetime | None = None,
    ) -> Path:
        """Validate, then write the bundle.

        Args:
            document: Project snapshot.
            output_dir: Directory to write the bundle into; created if needed.
            exported_at: Timestamp to record in the bundle.

        Returns:
            Path to the written bundle.

        Raises:
            ExportBlockedError: If validation reports blocking diagnostics.
        """
        report = ensure_exportable(document, self.config)
        if report.has_warnings:
            log.warning("export_with_warnings", warnings=len(report.warnings))

        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / export_file_name(document)
        bundle = build_export_bundle(document, exported_at)
        output_file.write_text(json.dumps(bundle, indent=2, ensure_ascii=False), encoding="utf-8")

        log.info("project_exported", path=str(output_file))
        return output_file


def export_project(
    document: ProjectDocument,
    output_dir: Path,
    config: ValidationConfig | None = None,
) -> Path:
    """Export a project, refusing when validation blocks it.

    Raises:
        ExportBlockedError: If validation reports blocking diagnostics.
    """
    return BundleExporter(config).export(document, output_dir)
