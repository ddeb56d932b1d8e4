"""Observability module for PuzzleForge.

Provides structured logging for the validation pass and the CLI.
"""

from puzzleforge.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

__all__ = [
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
]
