"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from puzzleforge.models import ProjectDocument


@pytest.fixture(autouse=True)
def clear_validation_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep PF_* overrides from the developer's shell out of the tests."""
    monkeypatch.delenv("PF_FAIL_ON_WARNINGS", raising=False)
    monkeypatch.delenv("PF_CONTEXT_POLICY", raising=False)


@pytest.fixture
def project_data() -> dict[str, Any]:
    """A small, fully valid project in its on-disk camelCase form.

    Root stage "Root" has one child stage "Cellar" holding the "Door" node.
    The door's state machine goes Locked -> Open on an event, guarded by a
    global variable, and sets a node-local flag. Entering the cellar plays
    the "Torch Intro" graph, which reads a cellar-local variable.
    """
    return {
        "meta": {"id": "proj-1", "name": "Puzzle", "version": "1.2.0"},
        "blackboard": {
            "globalVariables": {
                "VAR_1": {
                    "id": "VAR_1",
                    "name": "Score",
                    "assetName": "score",
                    "type": "integer",
                    "defaultValue": 0,
                    "scope": "Global",
                    "state": "Implemented",
                },
            },
            "events": {
                "EVENT_1": {"id": "EVENT_1", "name": "Door Opened", "assetName": "door_opened"},
            },
        },
        "scripts": {
            "version": "1.0.0",
            "scripts": {
                "SCRIPT_1": {
                    "id": "SCRIPT_1",
                    "name": "Cellar Lifecycle",
                    "assetName": "cellar_lifecycle",
                    "category": "Lifecycle",
                    "lifecycleType": "Stage",
                },
                "SCRIPT_2": {
                    "id": "SCRIPT_2",
                    "name": "Play Animation",
                    "assetName": "play_animation",
                    "category": "Performance",
                },
            },
        },
        "stageTree": {
            "rootId": "STAGE_1",
            "stages": {
                "STAGE_1": {
                    "id": "STAGE_1",
                    "name": "Root",
                    "assetName": "root_stage",
                    "childrenIds": ["STAGE_2"],
                },
                "STAGE_2": {
                    "id": "STAGE_2",
                    "name": "Cellar",
                    "assetName": "cellar",
                    "parentId": "STAGE_1",
                    "lifecycleScriptId": "SCRIPT_1",
                    "localVariables": {
                        "VAR_2": {
                            "id": "VAR_2",
                            "name": "Torch Lit",
                            "type": "boolean",
                            "scope": "StageLocal",
                        },
                    },
                    "onEnterPresentation": {"type": "Graph", "graphId": "GRAPH_1"},
                },
            },
        },
        "nodes": {
            "NODE_1": {
                "id": "NODE_1",
                "name": "Door",
                "assetName": "door",
                "stageId": "STAGE_2",
                "stateMachineId": "FSM_1",
                "localVariables": {
                    "VAR_3": {
                        "id": "VAR_3",
                        "name": "Was Opened",
                        "type": "boolean",
                        "scope": "NodeLocal",
                    },
                },
            },
        },
        "stateMachines": {
            "FSM_1": {
                "id": "FSM_1",
                "initialStateId": "STATE_1",
                "states": {
                    "STATE_1": {"id": "STATE_1", "name": "Locked", "assetName": "locked"},
                    "STATE_2": {"id": "STATE_2", "name": "Open", "assetName": "open"},
                },
                "transitions": {
                    "TRANS_1": {
                        "id": "TRANS_1",
                        "fromStateId": "STATE_1",
                        "toStateId": "STATE_2",
                        "triggers": [{"type": "OnEvent", "eventId": "EVENT_1"}],
                        "condition": {
                            "type": "Comparison",
                            "left": {"type": "VariableRef", "variableId": "VAR_1", "scope": "Global"},
                            "operator": ">=",
                            "right": {"type": "Constant", "value": 1},
                        },
                        "presentation": {
                            "type": "Script",
                            "scriptId": "SCRIPT_2",
                            "parameters": [
                                {
                                    "paramName": "speed",
                                    "source": {"type": "Constant", "value": 1.5},
                                    "kind": "Temporary",
                                    "tempVariable": {"type": "float"},
                                },
                            ],
                        },
                        "parameterModifiers": [
                            {
                                "targetVariableId": "VAR_3",
                                "targetScope": "NodeLocal",
                                "operation": "Set",
                                "source": {"type": "Constant", "value": True},
                            },
                        ],
                    },
                },
            },
        },
        "presentationGraphs": {
            "GRAPH_1": {
                "id": "GRAPH_1",
                "name": "Torch Intro",
                "startNodeId": "PNODE_1",
                "nodes": {
                    "PNODE_1": {
                        "id": "PNODE_1",
                        "name": "Light",
                        "type": "ScriptCall",
                        "presentation": {
                            "type": "Script",
                            "scriptId": "SCRIPT_2",
                            "parameters": [
                                {
                                    "paramName": "lit",
                                    "source": {
                                        "type": "VariableRef",
                                        "variableId": "VAR_2",
                                        "scope": "StageLocal",
                                    },
                                },
                            ],
                        },
                        "nextIds": ["PNODE_2"],
                    },
                    "PNODE_2": {"id": "PNODE_2", "name": "Pause", "type": "Wait", "duration": 1.0},
                },
            },
        },
    }


@pytest.fixture
def project(project_data: dict[str, Any]) -> ProjectDocument:
    """The valid project as a document."""
    return ProjectDocument.model_validate(project_data)


@pytest.fixture
def write_project(tmp_path: Path):
    """Return a helper writing a project mapping as a ``.puzzle.json`` file."""

    def _write(data: dict[str, Any], name: str = "game.puzzle.json") -> Path:
        path = tmp_path / name
        payload = {"fileType": "puzzle-project", "project": data}
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
