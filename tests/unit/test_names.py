"""Tests for asset name validation."""

from __future__ import annotations

from typing import Any

import pytest

from puzzleforge.models import ProjectDocument
from puzzleforge.validation.names import check_names, is_valid_asset_name
from puzzleforge.validation.types import DiagnosticCode, ObjectType


def _ids(data: dict[str, Any]) -> list[str]:
    return [d.id for d in check_names(ProjectDocument.model_validate(data))]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("door", True),
        ("_private", True),
        ("Door2", True),
        ("2door", False),
        ("door-open", False),
        ("door open", False),
        ("", False),
    ],
)
def test_is_valid_asset_name(value: str, expected: bool) -> None:
    assert is_valid_asset_name(value) is expected


class TestCheckNames:
    def test_valid_project_has_no_issues(self, project: ProjectDocument) -> None:
        assert check_names(project) == []

    def test_missing_asset_name(self, project_data: dict[str, Any]) -> None:
        del project_data["blackboard"]["globalVariables"]["VAR_1"]["assetName"]

        diagnostics = check_names(ProjectDocument.model_validate(project_data))

        assert [d.id for d in diagnostics] == ["err-variable-no-asset-name-VAR_1"]
        assert diagnostics[0].location == "Global Variable: [VAR_1] Score"
        assert diagnostics[0].code is DiagnosticCode.MISSING_FIELD

    def test_blank_asset_name_counts_as_missing(self, project_data: dict[str, Any]) -> None:
        project_data["stageTree"]["stages"]["STAGE_1"]["assetName"] = "   "
        assert _ids(project_data) == ["err-stage-no-asset-name-STAGE_1"]

    def test_invalid_format(self, project_data: dict[str, Any]) -> None:
        project_data["blackboard"]["events"]["EVENT_1"]["assetName"] = "1door"
        assert _ids(project_data) == ["err-event-invalid-name-fmt-EVENT_1"]

    def test_duplicates_within_category(self, project_data: dict[str, Any]) -> None:
        scripts = project_data["scripts"]["scripts"]
        scripts["SCRIPT_2"]["assetName"] = "cellar_lifecycle"

        diagnostics = check_names(ProjectDocument.model_validate(project_data))

        assert [d.id for d in diagnostics] == [
            "err-script-dup-asset-name-SCRIPT_1",
            "err-script-dup-asset-name-SCRIPT_2",
        ]
        assert all(d.code is DiagnosticCode.DUPLICATE_NAME for d in diagnostics)

    def test_same_name_in_different_categories(self, project_data: dict[str, Any]) -> None:
        project_data["stageTree"]["stages"]["STAGE_2"]["assetName"] = "door"
        assert _ids(project_data) == []

    def test_invalid_and_duplicated_are_both_reported(
        self, project_data: dict[str, Any]
    ) -> None:
        events = project_data["blackboard"]["events"]
        events["EVENT_1"]["assetName"] = "bad name"
        events["EVENT_2"] = {"id": "EVENT_2", "name": "Other", "assetName": "bad name"}

        assert _ids(project_data) == [
            "err-event-invalid-name-fmt-EVENT_1",
            "err-event-invalid-name-fmt-EVENT_2",
            "err-event-dup-asset-name-EVENT_1",
            "err-event-dup-asset-name-EVENT_2",
        ]

    def test_states_are_checked_per_node(self, project_data: dict[str, Any]) -> None:
        states = project_data["stateMachines"]["FSM_1"]["states"]
        states["STATE_2"]["assetName"] = "locked"

        diagnostics = check_names(ProjectDocument.model_validate(project_data))

        assert [d.id for d in diagnostics] == [
            "err-state-dup-asset-name-STATE_1",
            "err-state-dup-asset-name-STATE_2",
        ]
        assert diagnostics[0].object_type is ObjectType.STATE
        assert diagnostics[0].context_id == "NODE_1"
        assert diagnostics[0].location == "Node: Door > State: [STATE_1] Locked"

    def test_local_variables_are_not_checked(self, project_data: dict[str, Any]) -> None:
        # Stage and node locals have no asset names in the fixture.
        assert _ids(project_data) == []
