"""
Build-time markup annotation.

This package instruments JSX/TSX sources so the inline editor can find them:
- MarkupParser: error-recovering scanner producing the element tree
- classify: editability policy for a single element
- annotate_source / transform / annotate_tree: marker injection

Usage:
    from src.markup import transform
    result = transform(code, file_path, project_root)
"""

from src.markup.edit_id import (
    EDIT_ID_ATTRIBUTE,
    EDIT_DISABLED_ATTRIBUTE,
    EditLocation,
    format_edit_id,
    parse_edit_id,
)
from src.markup.parser import MarkupParser, parse_markup
from src.markup.classifier import EDITABLE_TAGS, Editability, classify, is_editable_tag
from src.markup.annotator import (
    AnnotationResult,
    PositionMap,
    annotate_source,
    annotate_tree,
    is_in_scope,
    transform,
)

__all__ = [
    'EDIT_ID_ATTRIBUTE',
    'EDIT_DISABLED_ATTRIBUTE',
    'EditLocation',
    'format_edit_id',
    'parse_edit_id',
    'MarkupParser',
    'parse_markup',
    'EDITABLE_TAGS',
    'Editability',
    'classify',
    'is_editable_tag',
    'AnnotationResult',
    'PositionMap',
    'annotate_source',
    'annotate_tree',
    'is_in_scope',
    'transform',
]
