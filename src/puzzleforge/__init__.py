"""PuzzleForge: validation engine for stage/puzzle/presentation projects."""

__version__ = "0.1.0"
