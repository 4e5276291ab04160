"""
Edit identifiers: ``<file-relative-path>:<line>:<column>``.

Line and column are 1-based and point at the ``<`` of the element's opening
tag. The path may itself contain ``:``, so parsing splits on the last two.
"""

from dataclasses import dataclass
from typing import Optional

EDIT_ID_ATTRIBUTE = 'data-edit-id'
EDIT_DISABLED_ATTRIBUTE = 'data-edit-disabled'


@dataclass(frozen=True)
class EditLocation:
    file_path: str
    line: int
    column: int


def format_edit_id(file_path: str, line: int, column: int) -> str:
    """Build an identifier from a 1-based line and a 0-based column."""
    return f"{file_path}:{line}:{column + 1}"


def parse_edit_id(edit_id: Optional[str]) -> Optional[EditLocation]:
    """Split an identifier into its parts; ``None`` when it is malformed."""
    if not edit_id:
        return None
    parts = edit_id.split(':')
    if len(parts) < 3:
        return None
    try:
        line = int(parts[-2])
        column = int(parts[-1])
    except ValueError:
        return None
    file_path = ':'.join(parts[:-2])
    if not file_path:
        return None
    return EditLocation(file_path=file_path, line=line, column=column)
