"""Runtime bundle export."""

from __future__ import annotations

from puzzleforge.export.bundle import (
    BundleExporter,
    build_export_bundle,
    export_file_name,
    export_project,
)

__all__ = [
    "BundleExporter",
    "build_export_bundle",
    "export_file_name",
    "export_project",
]
