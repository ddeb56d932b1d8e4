"""Test CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.errors import MarkupError
from typer.testing import CliRunner

from puzzleforge import __version__
from puzzleforge.cli import app

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner()


def test_version_command() -> None:
    """Test pf version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"v{__version__}" in result.stdout


# --- Validate Command Tests ---


class TestValidateCommand:
    def test_clean_project(self, project_data: dict[str, Any], write_project) -> None:
        result = runner.invoke(app, ["validate", str(write_project(project_data))])

        assert result.exit_code == 0
        assert "no issues" in result.stdout

    def test_errors_exit_with_one(self, project_data: dict[str, Any], write_project) -> None:
        del project_data["stageTree"]["rootId"]

        result = runner.invoke(app, ["validate", str(write_project(project_data))])

        assert result.exit_code == 1
        assert "errors" in result.stdout

    def test_json_output(self, project_data: dict[str, Any], write_project) -> None:
        project_data["scripts"]["scripts"]["SCRIPT_2"]["category"] = ""

        result = runner.invoke(app, ["validate", "--json", str(write_project(project_data))])

        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["hasErrors"] is False
        assert [d["id"] for d in report["diagnostics"]] == ["warn-script-no-category-SCRIPT_2"]

    def test_strict_blocks_on_warnings(self, project_data: dict[str, Any], write_project) -> None:
        project_data["scripts"]["scripts"]["SCRIPT_2"]["category"] = ""
        result = runner.invoke(app, ["validate", "--strict", str(write_project(project_data))])
        assert result.exit_code == 1

    def test_config_file_is_honoured(
        self, project_data: dict[str, Any], write_project, tmp_path: Path
    ) -> None:
        project_data["scripts"]["scripts"]["SCRIPT_2"]["category"] = ""
        (tmp_path / "puzzleforge.yaml").write_text("validation:\n  fail_on_warnings: true\n")

        result = runner.invoke(app, ["validate", str(write_project(project_data))])

        assert result.exit_code == 1

    def test_missing_file_exits_with_two(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.puzzle.json")])
        assert result.exit_code == 2
        assert "Error" in result.stdout

    def test_bad_config_exits_with_two(
        self, project_data: dict[str, Any], write_project, tmp_path: Path
    ) -> None:
        (tmp_path / "puzzleforge.yaml").write_text("validation:\n  fail_on_warnings: sure\n")
        result = runner.invoke(app, ["validate", str(write_project(project_data))])
        assert result.exit_code == 2

    def test_bracketed_user_text_is_printed_verbatim(
        self, project_data: dict[str, Any], write_project
    ) -> None:
        project_data["blackboard"]["events"]["EVENT_1"]["assetName"] = "door[/b]"

        result = runner.invoke(app, ["validate", str(write_project(project_data))])

        assert not isinstance(result.exception, MarkupError)
        assert result.exit_code == 1
        assert "door[/b]" in result.stdout


# --- Export Command Tests ---


class TestExportCommand:
    def test_exports_bundle(
        self, project_data: dict[str, Any], write_project, tmp_path: Path
    ) -> None:
        out_dir = tmp_path / "dist"

        result = runner.invoke(
            app, ["export", str(write_project(project_data)), "--output", str(out_dir)]
        )

        assert result.exit_code == 0
        assert "Exported" in result.stdout
        bundle = json.loads((out_dir / "Puzzle.export.json").read_text(encoding="utf-8"))
        assert bundle["fileType"] == "puzzle-export"

    def test_defaults_to_project_directory(
        self, project_data: dict[str, Any], write_project, tmp_path: Path
    ) -> None:
        result = runner.invoke(app, ["export", str(write_project(project_data))])
        assert result.exit_code == 0
        assert (tmp_path / "Puzzle.export.json").exists()

    def test_blocked_export(
        self, project_data: dict[str, Any], write_project, tmp_path: Path
    ) -> None:
        project_data["nodes"]["NODE_1"]["stageId"] = "STAGE_9"

        result = runner.invoke(app, ["export", str(write_project(project_data))])

        assert result.exit_code == 1
        assert "Export failed" in result.stdout
        assert not (tmp_path / "Puzzle.export.json").exists()

    def test_log_flag_writes_log_file(
        self, project_data: dict[str, Any], write_project, tmp_path: Path
    ) -> None:
        result = runner.invoke(app, ["--log", "export", str(write_project(project_data))])

        assert result.exit_code == 0
        assert (tmp_path / "logs" / "validation.jsonl").exists()


# --- Next-id Command Tests ---


class TestNextIdCommand:
    def test_prints_next_id(self, project_data: dict[str, Any], write_project) -> None:
        result = runner.invoke(app, ["next-id", str(write_project(project_data)), "VAR"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "VAR_4"

    def test_accepts_kind_names(self, project_data: dict[str, Any], write_project) -> None:
        result = runner.invoke(
            app, ["next-id", str(write_project(project_data)), "presentation_node"]
        )
        assert result.stdout.strip() == "PNODE_3"

    def test_unknown_kind(self, project_data: dict[str, Any], write_project) -> None:
        result = runner.invoke(app, ["next-id", str(write_project(project_data)), "widget"])
        assert result.exit_code == 2
        assert "Unknown resource kind" in result.stdout


# --- Refs Command Tests ---


class TestRefsCommand:
    def test_lists_usages(self, project_data: dict[str, Any], write_project) -> None:
        result = runner.invoke(app, ["refs", str(write_project(project_data)), "VAR_3"])

        assert result.exit_code == 0
        assert "TRANS_1" in result.stdout
        assert "1 usage(s) of VAR_3" in result.stdout

    def test_json_output(self, project_data: dict[str, Any], write_project) -> None:
        result = runner.invoke(
            app, ["refs", "--json", str(write_project(project_data)), "SCRIPT_2"]
        )

        assert result.exit_code == 0
        usages = json.loads(result.stdout)
        assert [u["objectId"] for u in usages] == ["TRANS_1", "PNODE_1"]
        assert usages[1]["contextId"] == "GRAPH_1"

    def test_unused_resource(self, project_data: dict[str, Any], write_project) -> None:
        project_data["stateMachines"]["FSM_1"]["transitions"]["TRANS_1"]["triggers"] = []

        result = runner.invoke(app, ["refs", str(write_project(project_data)), "EVENT_1"])

        assert result.exit_code == 0
        assert "not used anywhere" in result.stdout

    def test_unknown_id(self, project_data: dict[str, Any], write_project) -> None:
        result = runner.invoke(app, ["refs", str(write_project(project_data)), "VAR_9"])
        assert result.exit_code == 2
        assert "Unknown resource id" in result.stdout
