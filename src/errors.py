"""
Exceptions shared by the annotator and the inline edit runtime.

Components raise these internally; their public entry points catch them,
log, and report an unchanged / empty result instead.
"""

from typing import Optional


class InlineEditError(Exception):
    """Base class for inline editing failures."""


class MarkupParseError(InlineEditError):
    """Source text could not be parsed into an element tree."""
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class SubmissionError(InlineEditError):
    """The apply-edit service could not be reached or answered with garbage."""
    def __init__(self, message: str, edit_id: str, status_code: Optional[int] = None):
        self.edit_id = edit_id
        self.status_code = status_code
        super().__init__(message)
