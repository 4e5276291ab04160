"""
Inline Edit Controller - Single source of truth for inline editing state.

One controller per client page. It owns:
- the edit-mode flag (Disabled / Enabled)
- the single EditSession (which element is being edited)
- the translation table used for popup labels and the tooltip

and coordinates the overlay (DOM side effects), the cross-frame protocol
and the apply-edit client. The page script applies the same interception
rule in the browser; handle_pointer_event is the reference for it.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from nicegui import run

from src.inline_edit.assets import OverlayStyleInjector
from src.inline_edit.constants import DEFAULT_TRANSLATIONS, MSG_DISABLE, MSG_ENABLE, TOOLTIP_MARGIN
from src.inline_edit.protocol import CrossFrameProtocol, InboundMessage
from src.inline_edit.submission import ApplyEditResult, EditSubmissionClient
from src.markup.edit_id import parse_edit_id

logger = logging.getLogger(__name__)


@dataclass
class EditSession:
    """The element currently being edited."""
    edit_id: str
    original_text: str
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
    submitting: bool = False


@dataclass
class PointerEvent:
    """A captured pointerdown / mousedown / click as reported by the page."""
    type: str
    edit_id: Optional[str] = None  # None when no editable ancestor was found
    text: str = ''
    inside_popup: bool = False

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'PointerEvent':
        return cls(
            type=args.get('type', 'click'),
            edit_id=args.get('editId'),
            text=args.get('text') or '',
            inside_popup=bool(args.get('insidePopup')),
        )


@dataclass(frozen=True)
class InterceptDecision:
    prevent_default: bool
    stop_propagation: bool


PASS_THROUGH = InterceptDecision(prevent_default=False, stop_propagation=False)
BLOCK = InterceptDecision(prevent_default=True, stop_propagation=True)


@dataclass
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass
class Viewport:
    scroll_x: float
    scroll_y: float
    width: float
    height: float


@dataclass
class TooltipPosition:
    left: float
    top: float


def compute_tooltip_position(rect: Rect, tooltip_width: float, tooltip_height: float,
                             viewport: Viewport, margin: float = TOOLTIP_MARGIN) -> TooltipPosition:
    """
    Centre the tooltip below ``rect`` and keep it inside the viewport.

    ``rect`` is in viewport coordinates; the result is in page coordinates.
    Horizontally the tooltip is clamped to ``margin`` from either edge; it
    flips above the element when it would overflow the bottom edge.
    """
    left = rect.left + viewport.scroll_x + rect.width / 2 - tooltip_width / 2
    top = rect.bottom + viewport.scroll_y + margin

    max_left = viewport.scroll_x + viewport.width - tooltip_width - margin
    min_left = viewport.scroll_x + margin
    if left > max_left:
        left = max_left
    if left < min_left:
        left = min_left

    if top + tooltip_height > viewport.scroll_y + viewport.height - margin:
        top = rect.top + viewport.scroll_y - tooltip_height - margin
    if top < viewport.scroll_y + margin:
        top = viewport.scroll_y + margin

    return TooltipPosition(left=left, top=top)


class InlineEditController:
    """Manages edit mode, the edit session and the popup/tooltip lifecycle."""

    def __init__(self,
                 overlay,
                 protocol: CrossFrameProtocol,
                 client: EditSubmissionClient,
                 injector: Optional[OverlayStyleInjector] = None,
                 io_bound: Optional[Callable[..., Awaitable[Any]]] = None,
                 translations: Optional[Dict[str, str]] = None):
        self._overlay = overlay
        self._protocol = protocol
        self._client = client
        self._injector = injector or OverlayStyleInjector()
        self._io_bound = io_bound or run.io_bound
        self._translations: Dict[str, str] = dict(DEFAULT_TRANSLATIONS)
        if translations:
            self.update_translations(translations)

        self._enabled = False
        self._listeners_installed = False
        self._session: Optional[EditSession] = None
        self._tooltip_visible = False
        self._initialized = False

    # --- Lifecycle ---

    def initialize(self) -> None:
        """Start listening to the hosting frame."""
        if self._initialized:
            return
        self._protocol.on(MSG_ENABLE, self._on_enable_message)
        self._protocol.on(MSG_DISABLE, self._on_disable_message)
        self._initialized = True

    def teardown(self, client_gone: bool = False) -> None:
        """
        Leave edit mode and stop listening. Safe to call more than once.

        With ``client_gone`` the page no longer exists, so state is reset
        without touching the overlay.
        """
        if client_gone:
            self._enabled = False
            self._session = None
            self._listeners_installed = False
            self._tooltip_visible = False
        elif self._enabled:
            self.disable()
        self._protocol.off(MSG_ENABLE, self._on_enable_message)
        self._protocol.off(MSG_DISABLE, self._on_disable_message)
        self._initialized = False

    def _on_enable_message(self, message: InboundMessage) -> None:
        self.enable(message.translations)

    def _on_disable_message(self, message: InboundMessage) -> None:
        self.disable()

    # --- State ---

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def protocol(self) -> CrossFrameProtocol:
        return self._protocol

    @property
    def session(self) -> Optional[EditSession]:
        return self._session

    @property
    def translations(self) -> Dict[str, str]:
        return dict(self._translations)

    @property
    def tooltip_visible(self) -> bool:
        return self._tooltip_visible

    def update_translations(self, overrides: Dict[str, str]) -> None:
        """Merge ``overrides`` over the current table; unknown keys are ignored."""
        for key, value in overrides.items():
            if key in DEFAULT_TRANSLATIONS and value is not None:
                self._translations[key] = value

    # --- Edit mode ---

    def enable(self, translations: Optional[Dict[str, str]] = None) -> None:
        if translations:
            self.update_translations(translations)

        self._enabled = True
        self._overlay.set_edit_mode(True)
        self._overlay.set_translations(self._translations)
        self._injector.ensure_injected()

        if not self._listeners_installed:
            self._overlay.install_listeners()
            self._listeners_installed = True

        # re-attach so elements mounted since the last enable are covered
        self._overlay.attach_disabled_hover()
        logger.info("Inline edit mode enabled")

    def disable(self) -> None:
        self._enabled = False
        self._overlay.set_edit_mode(False)

        self.close_session()
        self.hide_tooltip()

        if self._listeners_installed:
            self._overlay.remove_listeners()
            self._listeners_installed = False
        self._overlay.detach_disabled_hover()
        logger.info("Inline edit mode disabled")

    # --- Input ---

    def handle_pointer_event(self, event: PointerEvent) -> InterceptDecision:
        """
        Decide what happens to a captured pointer event.

        While enabled, everything outside the popup is blocked. A click on an
        element with a valid edit id additionally opens a session for it.
        """
        if not self._enabled:
            return PASS_THROUGH
        if event.inside_popup:
            return PASS_THROUGH

        if event.type == 'click' and event.edit_id is not None:
            if parse_edit_id(event.edit_id) is None:
                logger.warning(f"[inline-edit] Clicked element has invalid edit id: {event.edit_id!r}")
            else:
                self.open_session(event.edit_id, event.text)
        return BLOCK

    # --- Session / popup ---

    def open_session(self, edit_id: str, text: str) -> EditSession:
        if self._session is not None:
            self.close_session()

        self._session = EditSession(edit_id=edit_id, original_text=text)
        self._overlay.show_popup(text, self._translations)
        self._protocol.notify_edit_enter()
        return self._session

    def close_session(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._overlay.hide_popup()

    def cancel(self) -> None:
        if self._session is None:
            return
        self._protocol.notify_edit_cancel()
        self.close_session()

    async def save(self, text: str) -> Optional[ApplyEditResult]:
        """
        Submit ``text`` for the current session, then close it.

        The result is only reported to the hosting frame if the session that
        started the request is still the current one when it completes.
        """
        session = self._session
        if session is None:
            return None
        if session.submitting:
            logger.debug(f"Save already in progress for {session.edit_id}")
            return None

        session.submitting = True
        self._overlay.set_submitting(True)
        try:
            result = await self._io_bound(self._client.submit, session.edit_id, text)
        finally:
            is_current = self._session is not None and self._session.token == session.token
            if is_current:
                self.close_session()

        if not is_current:
            logger.debug(f"Discarding result for closed session {session.edit_id}")
            return None

        if result is not None:
            self._protocol.notify_edit_applied(
                session.edit_id,
                result.new_file_content,
                result.before_code,
                result.after_code,
            )
        return result

    # --- Disabled-element tooltip ---

    def show_tooltip(self, rect: Rect, tooltip_width: float, tooltip_height: float,
                     viewport: Viewport) -> Optional[TooltipPosition]:
        if not self._enabled:
            return None
        position = compute_tooltip_position(rect, tooltip_width, tooltip_height, viewport)
        self._overlay.show_tooltip(self._translations['disabledTooltipText'], position.left, position.top)
        self._tooltip_visible = True
        return position

    def hide_tooltip(self) -> None:
        self._overlay.hide_tooltip()
        self._tooltip_visible = False
