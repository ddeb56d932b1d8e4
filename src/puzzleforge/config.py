"""Validation configuration loading.

Settings come from ``puzzleforge.yaml`` next to the project file:

.. code-block:: yaml

    validation:
      fail_on_warnings: false
      context_failure_policy: first   # or "all"

Resolution order for each setting:
1. Environment variable (PF_FAIL_ON_WARNINGS, PF_CONTEXT_POLICY)
2. puzzleforge.yaml
3. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any, Literal, get_args

from ruamel.yaml import YAML

from puzzleforge.observability.logging import get_logger

log = get_logger(__name__)

CONFIG_FILENAME = "puzzleforge.yaml"

ContextFailurePolicy = Literal["first", "all"]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class ValidationConfigError(Exception):
    """Raised when validation configuration cannot be loaded."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load validation config at {path}: {reason}")


@dataclass(frozen=True)
class ValidationConfig:
    """Settings for a validation pass.

    Attributes:
        fail_on_warnings: Treat warnings as blocking when exporting.
        context_failure_policy: For a broken local-variable reference inside
            a shared presentation graph, report only the first usage context
            where it fails (``"first"``) or every failing context (``"all"``).
    """

    fail_on_warnings: bool = False
    context_failure_policy: ContextFailurePolicy = "first"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationConfig:
        """Create config from a ``validation`` mapping.

        Raises:
            ValueError: If a value has the wrong type or is not recognised.
        """
        fail_on_warnings = data.get("fail_on_warnings", False)
        if not isinstance(fail_on_warnings, bool):
            msg = f"fail_on_warnings must be a boolean, got {fail_on_warnings!r}"
            raise ValueError(msg)

        policy = data.get("context_failure_policy", "first")
        if policy not in get_args(ContextFailurePolicy):
            msg = f"context_failure_policy must be 'first' or 'all', got {policy!r}"
            raise ValueError(msg)

        return cls(fail_on_warnings=fail_on_warnings, context_failure_policy=policy)

    def with_env_overrides(self) -> ValidationConfig:
        """Apply PF_FAIL_ON_WARNINGS / PF_CONTEXT_POLICY over this config.

        Raises:
            ValidationConfigError: If an environment value is not recognised.
        """
        fail_on_warnings = self.fail_on_warnings
        policy = self.context_failure_policy

        raw = os.getenv("PF_FAIL_ON_WARNINGS")
        if raw is not None:
            lowered = raw.strip().lower()
            if lowered in _TRUE_VALUES:
                fail_on_warnings = True
            elif lowered in _FALSE_VALUES:
                fail_on_warnings = False
            else:
                raise ValidationConfigError("PF_FAIL_ON_WARNINGS", f"not a boolean: {raw!r}")

        raw = os.getenv("PF_CONTEXT_POLICY")
        if raw:
            lowered = raw.strip().lower()
            if lowered not in get_args(ContextFailurePolicy):
                raise ValidationConfigError("PF_CONTEXT_POLICY", f"unknown policy: {raw!r}")
            policy = lowered  # type: ignore[assignment]

        return ValidationConfig(fail_on_warnings=fail_on_warnings, context_failure_policy=policy)


def load_validation_config(project_dir: Path, *, apply_env: bool = True) -> ValidationConfig:
    """Load validation configuration for a project directory.

    Args:
        project_dir: Directory holding the project file.
        apply_env: Apply environment variable overrides.

    Returns:
        ValidationConfig; defaults when no config file exists.

    Raises:
        ValidationConfigError: If the config file exists but cannot be read
            or contains invalid values.
    """
    config_path = project_dir / CONFIG_FILENAME
    config = ValidationConfig()

    if config_path.exists():
        yaml = YAML(typ="safe")
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.load(f)
        except Exception as e:
            raise ValidationConfigError(config_path, str(e)) from e

        if data is not None:
            if not isinstance(data, dict):
                raise ValidationConfigError(config_path, "Top level must be a mapping")
            section = data.get("validation") or {}
            if not isinstance(section, dict):
                raise ValidationConfigError(config_path, "'validation' must be a mapping")
            try:
                config = ValidationConfig.from_dict(dict(section))
            except ValueError as e:
                raise ValidationConfigError(config_path, str(e)) from e
        log.debug("validation_config_loaded", path=str(config_path))

    if apply_env:
        config = config.with_env_overrides()
    return config
