"""Structured logging for PuzzleForge.

Console output goes through rich on stderr, filtered by ``-v``. With
``--log`` every event is also appended as one JSON object per line to
``{project dir}/logs/validation.jsonl``, regardless of verbosity, so a
failing validation run can be inspected after the fact.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LOG_FILENAME = "validation.jsonl"

_VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}

_configured = False
_file_handler: logging.FileHandler | None = None
_logs_dir: Path | None = None


class JSONLFileHandler(logging.FileHandler):
    """Append each record as a single JSON line."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.to_entry(record), default=str)
            if self.stream is None:
                self.stream = self._open()
            self.stream.write(line + "\n")
            self.flush()
        except Exception:
            self.handleError(record)

    @staticmethod
    def to_entry(record: logging.LogRecord) -> dict[str, Any]:
        """Flatten a record into a JSON-ready mapping.

        structlog hands its event dict over as ``record.msg``; its keys are
        lifted to the top level next to the standard fields.
        """
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, dict):
            fields = {k: v for k, v in record.msg.items() if k not in ("level", "timestamp")}
            entry["event"] = fields.pop("event", "")
            entry.update(fields)
        else:
            entry["event"] = record.getMessage()
        return entry


def _console_handler(verbosity: int) -> RichHandler:
    return RichHandler(
        console=Console(stderr=True),
        level=_VERBOSITY_LEVELS.get(verbosity, logging.DEBUG),
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        rich_tracebacks=True,
        markup=False,
    )


def _open_file_handler(project_path: Path) -> JSONLFileHandler:
    global _logs_dir
    _logs_dir = project_path / "logs"
    _logs_dir.mkdir(parents=True, exist_ok=True)
    handler = JSONLFileHandler(str(_logs_dir / LOG_FILENAME), mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    return handler


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    project_path: Path | None = None,
) -> None:
    """Configure stdlib logging and structlog.

    Safe to call repeatedly; a previously opened log file is closed first.

    Args:
        verbosity: 0 shows warnings, 1 adds info, 2 or more adds debug.
        log_to_file: Also write every event to the project's log file.
        project_path: Project directory; required with ``log_to_file``.

    Raises:
        ValueError: If ``log_to_file`` is set without ``project_path``.
    """
    global _configured, _file_handler

    if log_to_file and project_path is None:
        raise ValueError("project_path is required when log_to_file=True")

    close_file_logging()

    handlers: list[logging.Handler] = [_console_handler(verbosity)]
    if log_to_file and project_path is not None:
        _file_handler = _open_file_handler(project_path)
        handlers.append(_file_handler)

    # The root logger must pass DEBUG through whenever some handler wants it.
    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(level=root_level, format="%(message)s", handlers=handlers, force=True)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    logger: FilteringBoundLogger = structlog.get_logger(name)
    return logger


def get_logs_dir() -> Path | None:
    """Directory of the active log file, or None when file logging is off."""
    return _logs_dir


def close_file_logging() -> None:
    """Close the log file, if one is open."""
    global _file_handler, _logs_dir
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None
        _logs_dir = None
