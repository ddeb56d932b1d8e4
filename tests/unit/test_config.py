"""Tests for validation configuration loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from puzzleforge.config import (
    CONFIG_FILENAME,
    ValidationConfig,
    ValidationConfigError,
    load_validation_config,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestValidationConfig:
    def test_defaults(self) -> None:
        config = ValidationConfig()
        assert config.fail_on_warnings is False
        assert config.context_failure_policy == "first"

    def test_from_dict(self) -> None:
        config = ValidationConfig.from_dict(
            {"fail_on_warnings": True, "context_failure_policy": "all"}
        )
        assert config.fail_on_warnings is True
        assert config.context_failure_policy == "all"

    def test_from_dict_rejects_non_boolean(self) -> None:
        with pytest.raises(ValueError, match="fail_on_warnings must be a boolean"):
            ValidationConfig.from_dict({"fail_on_warnings": "yes"})

    def test_from_dict_rejects_unknown_policy(self) -> None:
        with pytest.raises(ValueError, match="context_failure_policy"):
            ValidationConfig.from_dict({"context_failure_policy": "some"})


class TestEnvOverrides:
    def test_fail_on_warnings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PF_FAIL_ON_WARNINGS", "True")
        assert ValidationConfig().with_env_overrides().fail_on_warnings is True

    def test_env_can_switch_off(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PF_FAIL_ON_WARNINGS", "0")
        config = ValidationConfig(fail_on_warnings=True).with_env_overrides()
        assert config.fail_on_warnings is False

    def test_policy_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PF_CONTEXT_POLICY", "ALL")
        assert ValidationConfig().with_env_overrides().context_failure_policy == "all"

    def test_invalid_env_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PF_FAIL_ON_WARNINGS", "maybe")
        with pytest.raises(ValidationConfigError, match="PF_FAIL_ON_WARNINGS"):
            ValidationConfig().with_env_overrides()

        monkeypatch.delenv("PF_FAIL_ON_WARNINGS")
        monkeypatch.setenv("PF_CONTEXT_POLICY", "random")
        with pytest.raises(ValidationConfigError, match="unknown policy"):
            ValidationConfig().with_env_overrides()


class TestLoadValidationConfig:
    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_validation_config(tmp_path) == ValidationConfig()

    def test_reads_validation_section(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            "validation:\n  fail_on_warnings: true\n  context_failure_policy: all\n"
        )
        config = load_validation_config(tmp_path)
        assert config == ValidationConfig(fail_on_warnings=True, context_failure_policy="all")

    def test_missing_section_gives_defaults(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("export:\n  pretty: true\n")
        assert load_validation_config(tmp_path) == ValidationConfig()

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert load_validation_config(tmp_path) == ValidationConfig()

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("validation:\n  fail_on_warnings: true\n")
        monkeypatch.setenv("PF_FAIL_ON_WARNINGS", "false")

        assert load_validation_config(tmp_path).fail_on_warnings is False
        assert load_validation_config(tmp_path, apply_env=False).fail_on_warnings is True

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("validation: [unclosed\n")
        with pytest.raises(ValidationConfigError):
            load_validation_config(tmp_path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("- a\n- b\n")
        with pytest.raises(ValidationConfigError, match="Top level must be a mapping"):
            load_validation_config(tmp_path)

    def test_invalid_value_names_the_file(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("validation:\n  context_failure_policy: 3\n")
        with pytest.raises(ValidationConfigError) as exc_info:
            load_validation_config(tmp_path)
        assert exc_info.value.path == tmp_path / CONFIG_FILENAME
