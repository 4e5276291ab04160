"""
Build-time annotator for JSX/TSX sources.

Parses a file, classifies every element, and inserts either an edit id
(``data-edit-id="src/pages/Home.tsx:10:4"``) or a disabled marker
(``data-edit-disabled="true"``) right after the element's last attribute.
All other text is left byte-identical; a ``PositionMap`` records the
insertions so positions in the output can be traced back to the source.

The public entry points never raise: parse failures and unexpected errors
are logged and reported as "unchanged" (``None``).
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from src.errors import MarkupParseError
from src.markup.classifier import EDITABLE_TAGS, Editability, classify
from src.markup.edit_id import (
    EDIT_DISABLED_ATTRIBUTE,
    EDIT_ID_ATTRIBUTE,
    format_edit_id,
    parse_edit_id,
)
from src.markup.nodes import iter_elements
from src.markup.parser import MarkupParser

logger = logging.getLogger(__name__)

MARKUP_FILE_PATTERN = re.compile(r'\.(jsx|tsx)$')
EXCLUDED_DIR = 'node_modules'


@dataclass
class PositionMap:
    """Insertions made into the original text, sorted by original offset.

    Each entry is ``(original_offset, inserted_length)``.
    """
    source_file: str
    insertions: List[Tuple[int, int]] = field(default_factory=list)

    def to_generated(self, offset: int) -> int:
        """Map an offset in the original text to the annotated text."""
        shift = 0
        for at, length in self.insertions:
            # text inserted at `at` lands before the original character at `at`
            if at <= offset:
                shift += length
            else:
                break
        return offset + shift

    def to_original(self, offset: int) -> int:
        """Map an offset in the annotated text back to the original.

        Offsets that fall inside inserted text map to the insertion point.
        """
        shift = 0
        for at, length in self.insertions:
            generated_at = at + shift
            if offset < generated_at:
                break
            if offset < generated_at + length:
                return at
            shift += length
        return offset - shift

    def to_dict(self) -> Dict:
        return {
            'version': 1,
            'file': self.source_file,
            'insertions': [list(item) for item in self.insertions],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class AnnotationResult:
    code: str
    position_map: PositionMap
    editable_ids: List[str] = field(default_factory=list)
    disabled_count: int = 0


def annotate_source(code: str, relative_path: str,
                    editable_tags: Iterable[str] = EDITABLE_TAGS) -> Optional[AnnotationResult]:
    """Annotate ``code`` whose identifiers are rooted at ``relative_path``.

    Returns ``None`` when nothing was marked or the source could not be parsed.
    """
    try:
        roots = MarkupParser(code).parse()
    except MarkupParseError as e:
        logger.error(f"[inline-edit] Could not parse {relative_path}: {e}")
        return None
    except Exception as e:
        logger.error(f"[inline-edit] Unexpected error parsing {relative_path}: {e}")
        return None

    insertions: List[Tuple[int, str]] = []
    editable_ids: List[str] = []
    disabled_count = 0

    for element in iter_elements(roots):
        existing = element.get_attribute(EDIT_ID_ATTRIBUTE)
        if existing is not None and (existing.is_expression or parse_edit_id(existing.value) is None):
            logger.warning(
                f"[inline-edit] Ignoring malformed {EDIT_ID_ATTRIBUTE} "
                f"{existing.value!r} in {relative_path}:{element.position.line}"
            )

        decision = classify(element, editable_tags)
        if decision is Editability.DISABLED:
            insertions.append((element.attributes_end, f' {EDIT_DISABLED_ATTRIBUTE}="true"'))
            disabled_count += 1
        elif decision is Editability.EDITABLE:
            edit_id = format_edit_id(relative_path, element.position.line, element.position.column)
            insertions.append((element.attributes_end, f' {EDIT_ID_ATTRIBUTE}="{edit_id}"'))
            editable_ids.append(edit_id)

    if not insertions:
        return None

    # stable sort keeps document order for markers sharing an offset
    insertions.sort(key=lambda item: item[0])
    pieces = []
    cursor = 0
    position_map = PositionMap(source_file=relative_path)
    for offset, text in insertions:
        pieces.append(code[cursor:offset])
        pieces.append(text)
        position_map.insertions.append((offset, len(text)))
        cursor = offset
    pieces.append(code[cursor:])

    logger.debug(
        f"[inline-edit] {relative_path}: {len(editable_ids)} editable, {disabled_count} disabled"
    )
    return AnnotationResult(
        code=''.join(pieces),
        position_map=position_map,
        editable_ids=editable_ids,
        disabled_count=disabled_count,
    )


def is_in_scope(file_id: Union[str, Path], project_root: Union[str, Path]) -> bool:
    """Only project-owned .jsx/.tsx files are annotated."""
    path = Path(file_id)
    if not MARKUP_FILE_PATTERN.search(path.name):
        return False
    if EXCLUDED_DIR in path.parts:
        return False
    try:
        path.resolve().relative_to(Path(project_root).resolve())
    except ValueError:
        return False
    return True


def relative_web_path(file_id: Union[str, Path], project_root: Union[str, Path]) -> str:
    relative = os.path.relpath(Path(file_id).resolve(), Path(project_root).resolve())
    return relative.replace(os.sep, '/')


def transform(code: str, file_id: Union[str, Path], project_root: Union[str, Path],
              editable_tags: Iterable[str] = EDITABLE_TAGS) -> Optional[AnnotationResult]:
    """Per-file build hook: annotate ``code`` if ``file_id`` is in scope."""
    if not is_in_scope(file_id, project_root):
        return None
    try:
        return annotate_source(code, relative_web_path(file_id, project_root), editable_tags)
    except Exception as e:
        logger.error(f"[inline-edit] Error annotating {file_id}: {e}")
        return None


def annotate_tree(root: Union[str, Path], project_root: Optional[Union[str, Path]] = None,
                  write: bool = False,
                  editable_tags: Iterable[str] = EDITABLE_TAGS) -> Dict[str, AnnotationResult]:
    """Annotate every in-scope file under ``root``.

    Returns results keyed by identifier path. With ``write=True`` the annotated
    text replaces the file contents.
    """
    root = Path(root)
    project_root = Path(project_root) if project_root else root
    results: Dict[str, AnnotationResult] = {}

    for path in sorted(root.rglob('*')):
        if not path.is_file() or not is_in_scope(path, project_root):
            continue
        try:
            code = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"[inline-edit] Skipping unreadable file {path}: {e}")
            continue

        result = transform(code, path, project_root, editable_tags)
        if result is None:
            continue
        results[relative_web_path(path, project_root)] = result
        if write:
            path.write_text(result.code, encoding='utf-8')
            logger.info(f"[inline-edit] Annotated {path} ({len(result.editable_ids)} editable)")

    return results
