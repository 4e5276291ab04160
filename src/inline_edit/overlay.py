"""
Inline Edit Overlay - DOM side effects for the edit popup and tooltip.

Every method forwards to the ``window.inlineEditor`` helpers installed by
the page script (see assets.runtime_script). The overlay holds no state of
its own; InlineEditController decides when each call happens.
"""

import json
from typing import Callable, Dict, Optional

from nicegui import ui


class InlineEditOverlay:
    """Renders edit mode, popup and tooltip changes on the client page."""

    def __init__(self, run_javascript: Optional[Callable[[str], object]] = None):
        self._run = run_javascript or ui.run_javascript

    def _call(self, method: str, *args) -> None:
        arguments = ', '.join(json.dumps(arg) for arg in args)
        self._run(f'window.inlineEditor && window.inlineEditor.{method}({arguments});')

    def set_edit_mode(self, enabled: bool) -> None:
        """Mirror the edit-mode flag onto the root node."""
        self._call('setEditMode', enabled)

    def set_translations(self, translations: Dict[str, str]) -> None:
        self._call('setTranslations', translations)

    def install_listeners(self) -> None:
        self._call('installListeners')

    def remove_listeners(self) -> None:
        self._call('removeListeners')

    def attach_disabled_hover(self) -> None:
        self._call('attachDisabledHover')

    def detach_disabled_hover(self) -> None:
        self._call('detachDisabledHover')

    def show_popup(self, text: str, translations: Dict[str, str]) -> None:
        self._call('showPopup', text, translations)

    def hide_popup(self) -> None:
        self._call('hidePopup')

    def set_submitting(self, busy: bool) -> None:
        self._call('setSubmitting', busy)

    def show_tooltip(self, text: str, left: float, top: float) -> None:
        self._call('showTooltip', text, left, top)

    def hide_tooltip(self) -> None:
        self._call('hideTooltip')
