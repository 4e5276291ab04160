"""
Inline editing runtime for an embedded preview page.

This package provides click-to-edit for annotated markup:
- InlineEditController: edit mode, edit session and tooltip state
- InlineEditOverlay: DOM side effects through the page script
- CrossFrameProtocol: postMessage exchange with the hosting frame
- EditSubmissionClient: apply-edit service client
- OverlayStyleInjector: one-time stylesheet injection
- handlers: NiceGUI event wiring for app.py

Usage:
    from src.inline_edit import attach_inline_editor
    controller = attach_inline_editor()
"""

from src.inline_edit.assets import OverlayStyleInjector, runtime_script
from src.inline_edit.controller import (
    InlineEditController,
    EditSession,
    PointerEvent,
    InterceptDecision,
    Rect,
    Viewport,
    TooltipPosition,
    compute_tooltip_position,
)
from src.inline_edit.overlay import InlineEditOverlay
from src.inline_edit.protocol import CrossFrameProtocol, InboundMessage, parse_inbound
from src.inline_edit.submission import (
    ApplyEditResult,
    EditSubmissionClient,
    escape_edit_text,
    unescape_edit_text,
)
from src.inline_edit.handlers import attach_inline_editor, setup_inline_edit_handlers

__all__ = [
    'InlineEditController',
    'EditSession',
    'PointerEvent',
    'InterceptDecision',
    'Rect',
    'Viewport',
    'TooltipPosition',
    'compute_tooltip_position',
    'InlineEditOverlay',
    'OverlayStyleInjector',
    'runtime_script',
    'CrossFrameProtocol',
    'InboundMessage',
    'parse_inbound',
    'ApplyEditResult',
    'EditSubmissionClient',
    'escape_edit_text',
    'unescape_edit_text',
    'attach_inline_editor',
    'setup_inline_edit_handlers',
]
