"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

import puzzleforge.observability.logging as log_module
from puzzleforge.observability import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    yield
    close_file_logging()
    configure_logging()


def test_configure_logging_default_is_warning() -> None:
    """Default verbosity keeps the root logger at WARNING."""
    configure_logging(verbosity=0)
    assert logging.getLogger().level == logging.WARNING


@pytest.mark.parametrize("verbosity", [1, 2])
def test_configure_logging_verbose_opens_root(verbosity: int) -> None:
    """Any verbosity lets DEBUG through the root; the console handler filters."""
    configure_logging(verbosity=verbosity)

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    expected = logging.INFO if verbosity == 1 else logging.DEBUG
    assert root.handlers[0].level == expected


def test_get_logger_auto_configures() -> None:
    """get_logger configures logging if not already done."""
    log_module._configured = False

    logger = get_logger("test")

    assert log_module._configured is True
    assert hasattr(logger, "debug")


def test_file_logging_requires_project_path() -> None:
    with pytest.raises(ValueError, match="project_path is required"):
        configure_logging(log_to_file=True)


def test_no_logs_dir_without_file_logging(tmp_path: Path) -> None:
    configure_logging(project_path=tmp_path)
    assert not (tmp_path / "logs").exists()
    assert get_logs_dir() is None


def test_file_logging_writes_json_lines(tmp_path: Path) -> None:
    """Events land in logs/validation.jsonl with their fields lifted."""
    configure_logging(log_to_file=True, project_path=tmp_path)
    assert get_logs_dir() == tmp_path / "logs"

    get_logger("puzzleforge.test").info("project_loaded", stages=3)
    close_file_logging()

    lines = (tmp_path / "logs" / "validation.jsonl").read_text(encoding="utf-8").splitlines()
    entry = json.loads(lines[-1])
    assert entry["event"] == "project_loaded"
    assert entry["stages"] == 3
    assert entry["level"] == "INFO"
    assert entry["logger"] == "puzzleforge.test"


def test_reconfiguring_closes_previous_file(tmp_path: Path) -> None:
    configure_logging(log_to_file=True, project_path=tmp_path)
    first = log_module._file_handler
    assert first is not None

    configure_logging(log_to_file=True, project_path=tmp_path)

    assert first.stream is None or first.stream.closed
    assert log_module._file_handler is not first


def test_close_file_logging_is_idempotent(tmp_path: Path) -> None:
    configure_logging(log_to_file=True, project_path=tmp_path)
    close_file_logging()
    close_file_logging()
    assert get_logs_dir() is None
