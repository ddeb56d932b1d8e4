"""Tests for the validation orchestrator and export gate."""

from __future__ import annotations

from typing import Any

import pytest

from puzzleforge.config import ValidationConfig
from puzzleforge.models import ProjectDocument
from puzzleforge.validation import (
    DiagnosticLevel,
    ExportBlockedError,
    build_report,
    ensure_exportable,
    validate_project,
)


def _broken_project(data: dict[str, Any]) -> ProjectDocument:
    """Issues from several checkers at once."""
    del data["blackboard"]["globalVariables"]["VAR_1"]["assetName"]
    data["nodes"]["NODE_1"]["stageId"] = "STAGE_9"
    data["scripts"]["scripts"]["SCRIPT_2"]["category"] = ""
    return ProjectDocument.model_validate(data)


class TestValidateProject:
    def test_valid_project(self, project: ProjectDocument) -> None:
        assert validate_project(project) == []

    def test_empty_project_reports_only_the_stage_tree(self) -> None:
        diagnostics = validate_project(ProjectDocument())

        assert len(diagnostics) == 2
        assert all(d.level is DiagnosticLevel.ERROR for d in diagnostics)
        assert [d.id for d in diagnostics] == ["err-stagetree-empty", "err-stagetree-no-root"]

    def test_checker_order(self, project_data: dict[str, Any]) -> None:
        diagnostics = validate_project(_broken_project(project_data))
        assert [d.id for d in diagnostics] == [
            "err-variable-no-asset-name-VAR_1",
            "err-node-stage-missing-NODE_1",
            "warn-script-no-category-SCRIPT_2",
        ]

    def test_repeated_runs_are_identical(self, project_data: dict[str, Any]) -> None:
        document = _broken_project(project_data)
        assert validate_project(document) == validate_project(document)

    def test_document_is_not_modified(self, project_data: dict[str, Any]) -> None:
        document = _broken_project(project_data)
        before = document.model_dump()
        validate_project(document)
        assert document.model_dump() == before

    def test_dangling_transition_target_is_a_single_error(
        self, project_data: dict[str, Any]
    ) -> None:
        transitions = project_data["stateMachines"]["FSM_1"]["transitions"]
        transitions["TRANS_1"]["toStateId"] = "STATE_9"

        diagnostics = validate_project(ProjectDocument.model_validate(project_data))
        errors = [d for d in diagnostics if d.is_error]

        assert [d.id for d in errors] == ["err-transition-target-missing-TRANS_1-STATE_9"]

    def test_context_policy_is_passed_through(self, project_data: dict[str, Any]) -> None:
        stages = project_data["stageTree"]["stages"]
        stages["STAGE_2"].pop("localVariables")
        stages["STAGE_1"]["onExitPresentation"] = {"type": "Graph", "graphId": "GRAPH_1"}
        document = ProjectDocument.model_validate(project_data)

        first = validate_project(document, ValidationConfig(context_failure_policy="first"))
        every = validate_project(document, ValidationConfig(context_failure_policy="all"))

        assert len(every) == len(first) + 1


class TestReport:
    def test_summary_and_flags(self, project_data: dict[str, Any]) -> None:
        report = build_report(_broken_project(project_data))

        assert report.has_errors
        assert report.has_warnings
        assert len(report.errors) == 2
        assert len(report.warnings) == 1
        assert report.summary == "2 errors, 1 warnings"

    def test_clean_report(self, project: ProjectDocument) -> None:
        report = build_report(project)
        assert report.summary == "no issues"
        assert not report.has_errors

    def test_to_dict_uses_camel_case(self, project_data: dict[str, Any]) -> None:
        data = build_report(_broken_project(project_data)).to_dict()

        assert data["hasErrors"] is True
        first = data["diagnostics"][0]
        assert first == {
            "id": "err-variable-no-asset-name-VAR_1",
            "level": "error",
            "message": "Global Variable has no resource name (assetName).",
            "objectType": "VARIABLE",
            "objectId": "VAR_1",
            "location": "Global Variable: [VAR_1] Score",
            "code": "missing-field",
        }

    def test_context_id_serialized_when_set(self, project_data: dict[str, Any]) -> None:
        del project_data["stateMachines"]["FSM_1"]["initialStateId"]
        data = build_report(ProjectDocument.model_validate(project_data)).to_dict()
        assert data["diagnostics"][0]["contextId"] == "NODE_1"


class TestEnsureExportable:
    def test_errors_block(self, project_data: dict[str, Any]) -> None:
        with pytest.raises(ExportBlockedError) as exc_info:
            ensure_exportable(_broken_project(project_data))

        assert [d.id for d in exc_info.value.diagnostics] == [
            "err-variable-no-asset-name-VAR_1",
            "err-node-stage-missing-NODE_1",
        ]
        assert "2 validation issue(s)" in str(exc_info.value)

    def test_warnings_pass_by_default(self, project_data: dict[str, Any]) -> None:
        project_data["scripts"]["scripts"]["SCRIPT_2"]["category"] = ""
        document = ProjectDocument.model_validate(project_data)

        report = ensure_exportable(document)

        assert report.has_warnings

    def test_warnings_block_when_configured(self, project_data: dict[str, Any]) -> None:
        project_data["scripts"]["scripts"]["SCRIPT_2"]["category"] = ""
        document = ProjectDocument.model_validate(project_data)

        with pytest.raises(ExportBlockedError) as exc_info:
            ensure_exportable(document, ValidationConfig(fail_on_warnings=True))

        assert [d.id for d in exc_info.value.diagnostics] == ["warn-script-no-category-SCRIPT_2"]
