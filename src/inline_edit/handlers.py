"""
Inline Edit Handlers - Wires the page script to InlineEditController.

Keeps app.py down to routing and layout: everything the editor needs on a
client page (script, controller, event bindings) is set up here.
"""

import logging
from typing import Any, Dict, Optional

from nicegui import ui

from src.config import EditorSettings, get_settings
from src.inline_edit.assets import OverlayStyleInjector, runtime_script
from src.inline_edit.constants import (
    ALLOWED_PARENT_ORIGINS,
    EVENT_CANCEL,
    EVENT_CLICK,
    EVENT_HOVER,
    EVENT_LEAVE,
    EVENT_MESSAGE,
    EVENT_SAVE,
)
from src.inline_edit.controller import PASS_THROUGH, InlineEditController, PointerEvent, Rect, Viewport
from src.inline_edit.overlay import InlineEditOverlay
from src.inline_edit.protocol import CrossFrameProtocol
from src.inline_edit.submission import EditSubmissionClient

logger = logging.getLogger(__name__)


def _args(event) -> Dict[str, Any]:
    raw = event.args if hasattr(event, 'args') else event
    return raw if isinstance(raw, dict) else {}


def _page_origin() -> str:
    request = getattr(ui.context.client, 'request', None)
    return str(request.base_url) if request is not None else ''


def build_controller(settings: EditorSettings, page_origin: str = '') -> InlineEditController:
    """
    Create a controller with the NiceGUI-backed overlay, protocol and client.

    Without a configured ``api_url`` the apply-edit endpoint is resolved
    against ``page_origin``, the server that rendered the page.
    """
    client = EditSubmissionClient(base_url=settings.api_url or page_origin, timeout=settings.timeout)
    return InlineEditController(
        overlay=InlineEditOverlay(),
        protocol=CrossFrameProtocol(allowed_origins=settings.allowed_origins or ALLOWED_PARENT_ORIGINS),
        client=client,
        injector=OverlayStyleInjector(),
    )


def setup_inline_edit_handlers(controller: InlineEditController) -> Dict[str, Any]:
    """
    Build the event handlers for a controller.

    Args:
        controller: InlineEditController for the current client page

    Returns:
        Dict with handler functions, keyed by the event they serve
    """
    protocol = controller.protocol

    def handle_message(event):
        """Command posted by the hosting frame."""
        raw = event.args if hasattr(event, 'args') else event
        protocol.handle_inbound(raw)

    def handle_click(event):
        decision = controller.handle_pointer_event(PointerEvent.from_args(_args(event)))
        if decision == PASS_THROUGH:
            # the page blocked input the controller lets through: bring it back in line
            logger.warning("Page intercepted a click outside edit mode, resetting it")
            controller.disable()

    def handle_hover(event):
        args = _args(event)
        try:
            rect = Rect(**args['rect'])
            tooltip = args['tooltip']
            view = args['viewport']
            viewport = Viewport(
                scroll_x=view['scrollX'],
                scroll_y=view['scrollY'],
                width=view['width'],
                height=view['height'],
            )
        except (KeyError, TypeError) as e:
            logger.debug(f"Ignoring malformed hover payload: {e}")
            return
        controller.show_tooltip(rect, tooltip['width'], tooltip['height'], viewport)

    def handle_leave(event):
        controller.hide_tooltip()

    async def handle_save(event):
        await controller.save(_args(event).get('text', ''))

    def handle_cancel(event):
        controller.cancel()

    async def resolve_origin():
        """Ask the page where it is embedded; outbound messages need this."""
        try:
            info = await ui.run_javascript(
                'return window.inlineEditor ? window.inlineEditor.originInfo() : null;'
            )
        except Exception as e:
            logger.warning(f"Could not read embedding origin: {e}")
            return None
        info = info or {}
        return protocol.set_origin_info(info.get('ancestorOrigins'), info.get('referrer'))

    return {
        EVENT_MESSAGE: handle_message,
        EVENT_CLICK: handle_click,
        EVENT_HOVER: handle_hover,
        EVENT_LEAVE: handle_leave,
        EVENT_SAVE: handle_save,
        EVENT_CANCEL: handle_cancel,
        'resolve_origin': resolve_origin,
    }


def attach_inline_editor(settings: Optional[EditorSettings] = None) -> InlineEditController:
    """
    Attach the inline editor to the current NiceGUI client page.

    Must be called inside a page function. The editor stays disabled until
    the hosting frame sends ``enable-edit-mode``.
    """
    settings = settings or get_settings()
    ui.add_body_html(runtime_script())

    controller = build_controller(settings, page_origin=_page_origin())
    controller.initialize()

    handlers = setup_inline_edit_handlers(controller)
    for name in (EVENT_MESSAGE, EVENT_CLICK, EVENT_HOVER, EVENT_LEAVE, EVENT_SAVE, EVENT_CANCEL):
        ui.on(name, handlers[name])

    ui.timer(0.1, handlers['resolve_origin'], once=True)
    ui.context.client.on_disconnect(lambda: controller.teardown(client_gone=True))
    return controller
