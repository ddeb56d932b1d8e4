"""Tests for project document models."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from puzzleforge.models import (
    AndCondition,
    ComparisonCondition,
    ConstantSource,
    GraphBinding,
    ProjectDocument,
    ResourceState,
    ScriptBinding,
    Variable,
    VariableScope,
    VariableSource,
)


class TestDocumentParsing:
    """Tests for loading camelCase project data."""

    def test_parses_collections_by_id(self, project: ProjectDocument) -> None:
        assert list(project.stage_tree.stages) == ["STAGE_1", "STAGE_2"]
        assert project.stage_tree.root_id == "STAGE_1"
        assert project.nodes["NODE_1"].state_machine_id == "FSM_1"
        assert project.meta.version == "1.2.0"

    def test_state_field_maps_to_resource_state(self, project: ProjectDocument) -> None:
        assert project.blackboard.global_variables["VAR_1"].resource_state is (
            ResourceState.IMPLEMENTED
        )
        assert project.blackboard.events["EVENT_1"].resource_state is ResourceState.DRAFT

    def test_scripts_manifest_is_unwrapped(self, project: ProjectDocument) -> None:
        assert set(project.scripts) == {"SCRIPT_1", "SCRIPT_2"}
        assert project.scripts["SCRIPT_1"].lifecycle_type == "Stage"

    def test_plain_scripts_mapping_is_accepted(self) -> None:
        document = ProjectDocument.model_validate(
            {"scripts": {"SCRIPT_1": {"id": "SCRIPT_1", "category": "Logic"}}}
        )
        assert document.scripts["SCRIPT_1"].category == "Logic"

    def test_presentation_binding_is_discriminated(self, project: ProjectDocument) -> None:
        stage = project.stage_tree.stages["STAGE_2"]
        transition = project.state_machines["FSM_1"].transitions["TRANS_1"]

        assert isinstance(stage.on_enter_presentation, GraphBinding)
        assert isinstance(transition.presentation, ScriptBinding)
        assert transition.presentation.parameters[0].temp_variable is not None
        assert transition.presentation.parameters[0].temp_variable.type == "float"

    def test_condition_tree_is_discriminated(self, project: ProjectDocument) -> None:
        condition = project.state_machines["FSM_1"].transitions["TRANS_1"].condition
        assert isinstance(condition, ComparisonCondition)
        assert isinstance(condition.left, VariableSource)
        assert condition.left.scope is VariableScope.GLOBAL
        assert isinstance(condition.right, ConstantSource)

    def test_nested_conditions_parse(self) -> None:
        data: dict[str, Any] = {
            "type": "And",
            "children": [
                {"type": "Not", "operand": {"type": "Literal", "value": True}},
                {"type": "Or", "children": [{"type": "ScriptRef", "scriptId": "SCRIPT_1"}]},
            ],
        }
        condition = AndCondition.model_validate(data)
        assert len(condition.children) == 2

    def test_variable_scope_alias_is_accepted(self) -> None:
        source = VariableSource.model_validate(
            {"type": "VariableRef", "variableId": "VAR_1", "variableScope": "NodeLocal"}
        )
        assert source.scope is VariableScope.NODE_LOCAL

    def test_unknown_fields_are_ignored(self) -> None:
        document = ProjectDocument.model_validate({"editorLayout": {"zoom": 2}})
        assert document.nodes == {}

    def test_half_built_trees_load(self) -> None:
        document = ProjectDocument.model_validate(
            {
                "stateMachines": {
                    "FSM_1": {
                        "id": "FSM_1",
                        "transitions": {
                            "TRANS_1": {
                                "id": "TRANS_1",
                                "condition": {"type": "Comparison"},
                                "presentation": {"type": "Script"},
                            },
                        },
                    },
                },
            }
        )
        transition = document.state_machines["FSM_1"].transitions["TRANS_1"]
        assert transition.from_state_id is None
        assert isinstance(transition.condition, ComparisonCondition)
        assert transition.condition.left is None

    def test_unknown_condition_type_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AndCondition.model_validate({"children": [{"type": "Xor"}]})


class TestDocumentBehaviour:
    """Tests for document helpers and immutability."""

    def test_models_are_frozen(self) -> None:
        variable = Variable(id="VAR_1")
        with pytest.raises(ValidationError):
            variable.name = "renamed"  # type: ignore[misc]

    def test_populate_by_field_name(self) -> None:
        variable = Variable(id="VAR_1", resource_state=ResourceState.MARKED_FOR_DELETE)
        assert variable.resource_state is ResourceState.MARKED_FOR_DELETE

    def test_owner_of_state_machine(self, project: ProjectDocument) -> None:
        owner = project.owner_of_state_machine("FSM_1")
        assert owner is not None
        assert owner.id == "NODE_1"
        assert project.owner_of_state_machine("FSM_9") is None

    def test_dump_uses_camel_case(self, project: ProjectDocument) -> None:
        data = project.model_dump(by_alias=True, mode="json")
        assert "stageTree" in data
        assert data["stageTree"]["stages"]["STAGE_2"]["parentId"] == "STAGE_1"
        assert data["blackboard"]["globalVariables"]["VAR_1"]["state"] == "Implemented"
