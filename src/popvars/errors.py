"""Exceptions raised while compiling and rendering templates."""

from __future__ import annotations


def line_and_column(text: str, position: int) -> tuple[int, int]:
    """Convert a character offset into a 1-based ``(line, column)`` pair."""
    line = text.count("\n", 0, position) + 1
    last_nl = text.rfind("\n", 0, position)
    column = position + 1 if last_nl == -1 else position - last_nl
    return line, column


class TemplateSyntaxError(SyntaxError):
    """A template could not be parsed.

    Carries the 0-based character ``position`` of the offending input along
    with its 1-based ``line`` and ``column``.
    """

    def __init__(self, message: str, position: int, text: str = "") -> None:
        self.position = position
        self.line, self.column = line_and_column(text, position)
        self.reason = message
        super().__init__(f"{message} at line {self.line}, column {self.column} (position {position})")


class ResolutionError(LookupError):
    """A reference in a template could not be resolved against the data."""


class RenderError(Exception):
    """Rendering one record of a batch failed.

    ``row`` is the 1-based index of the failing record in the vars table.
    """

    def __init__(self, row: int, cause: Exception) -> None:
        self.row = row
        self.cause = cause
        super().__init__(f"row {row} failed: {cause}")
