"""Project file loading.

Accepts the three JSON shapes the editor writes:

- a project file ``{"fileType": "puzzle-project", "project": {...}}``;
- an export bundle ``{"fileType": "puzzle-export", "data": {...}}``, whose
  project identity is rebuilt from ``projectName`` / ``projectVersion``;
- a bare project document.
"""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from pydantic import ValidationError

from puzzleforge.models.document import ProjectDocument
from puzzleforge.observability.logging import get_logger

log = get_logger(__name__)

PROJECT_FILE_TYPE = "puzzle-project"
EXPORT_FILE_TYPE = "puzzle-export"


class ProjectLoadError(Exception):
    """Raised when a project file cannot be read or is not a valid project."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project at {path}: {reason}")


def extract_project_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the bare project mapping held by any supported file shape."""
    file_type = payload.get("fileType")
    if file_type == PROJECT_FILE_TYPE:
        return dict(payload.get("project") or {})
    if file_type == EXPORT_FILE_TYPE:
        meta = {
            "name": payload.get("projectName") or "Imported Project",
            "version": payload.get("projectVersion") or "1.0.0",
        }
        return {"meta": meta, **(payload.get("data") or {})}
    return payload


def parse_project(payload: dict[str, Any]) -> ProjectDocument:
    """Validate a decoded project file into a ProjectDocument.

    Raises:
        pydantic.ValidationError: If the payload does not fit the model.
    """
    return ProjectDocument.model_validate(extract_project_payload(payload))


def load_project(path: Path) -> ProjectDocument:
    """Load a project file from disk.

    Args:
        path: Path to a ``.puzzle.json`` project file or export bundle.

    Returns:
        The project snapshot.

    Raises:
        ProjectLoadError: If the file is missing, is not JSON, or does not
            describe a project.
    """
    if not path.exists():
        raise ProjectLoadError(path, "File not found")

    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ProjectLoadError(path, str(e)) from e

    if not isinstance(payload, dict):
        raise ProjectLoadError(path, "Top level must be a JSON object")

    try:
        document = parse_project(payload)
    except ValidationError as e:
        raise ProjectLoadError(path, f"{e.error_count()} invalid field(s): {e}") from e

    log.debug(
        "project_loaded",
        path=str(path),
        stages=len(document.stage_tree.stages),
        nodes=len(document.nodes),
        graphs=len(document.presentation_graphs),
    )
    return document
