"""
Cross-frame messaging with the hosting frame.

Inbound commands arrive through ``window.postMessage`` and are forwarded to
Python by the page script; they are not origin-checked. Outbound
notifications are only posted when the resolved parent origin is in the
allowlist, otherwise they are logged and dropped.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from src.inline_edit.constants import (
    ALLOWED_PARENT_ORIGINS,
    DEFAULT_TRANSLATIONS,
    MSG_DISABLE,
    MSG_EDIT_APPLIED,
    MSG_EDIT_CANCEL,
    MSG_EDIT_ENTER,
    MSG_ENABLE,
)

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {'http': 80, 'https': 443}


@dataclass
class InboundMessage:
    type: str
    translations: Optional[Dict[str, str]] = None


def parse_inbound(data: Any) -> Optional[InboundMessage]:
    """Validate a raw ``MessageEvent.data`` payload. Unknown messages give ``None``."""
    if not isinstance(data, dict):
        return None
    message_type = data.get('type')
    if message_type not in (MSG_ENABLE, MSG_DISABLE):
        return None

    translations = None
    raw = data.get('translations')
    if message_type == MSG_ENABLE and isinstance(raw, dict):
        translations = {
            key: str(value) for key, value in raw.items()
            if key in DEFAULT_TRANSLATIONS and value is not None
        }
    return InboundMessage(type=message_type, translations=translations)


def origin_from_url(url: Optional[str]) -> Optional[str]:
    """``scheme://host[:port]`` of ``url``, or ``None`` when it has no usable origin."""
    if not url:
        return None
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        logger.warning(f"Invalid referrer URL: {url}")
        return None
    if not parts.scheme or not parts.hostname:
        logger.warning(f"Invalid referrer URL: {url}")
        return None

    scheme = parts.scheme.lower()
    origin = f"{scheme}://{parts.hostname.lower()}"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        origin += f":{port}"
    return origin


def resolve_parent_origin(ancestor_origins: Optional[Sequence[str]] = None,
                          referrer: Optional[str] = None) -> Optional[str]:
    """Prefer ``location.ancestorOrigins[0]``, fall back to the referrer's origin."""
    if ancestor_origins:
        return ancestor_origins[0]
    return origin_from_url(referrer)


def _post_via_browser(message: Dict[str, Any], target_origin: str) -> None:
    from nicegui import ui
    ui.run_javascript(
        f'window.parent.postMessage({json.dumps(message)}, {json.dumps(target_origin)});'
    )


class CrossFrameProtocol:
    """
    Message channel between the page and its hosting frame.

    ``post`` performs the actual ``postMessage``; it receives the message
    and the exact target origin. The default runs JavaScript on the current
    NiceGUI client.
    """

    def __init__(self,
                 allowed_origins: Iterable[str] = ALLOWED_PARENT_ORIGINS,
                 post: Optional[Callable[[Dict[str, Any], str], None]] = None):
        self._allowed_origins = tuple(allowed_origins)
        self._post = post or _post_via_browser
        self._parent_origin: Optional[str] = None
        self._callbacks: Dict[str, List[Callable]] = {
            MSG_ENABLE: [],
            MSG_DISABLE: [],
        }

    @property
    def parent_origin(self) -> Optional[str]:
        return self._parent_origin

    @property
    def allowed_origins(self) -> tuple:
        return self._allowed_origins

    def set_origin_info(self, ancestor_origins: Optional[Sequence[str]] = None,
                        referrer: Optional[str] = None) -> Optional[str]:
        """Record what the page reports about its embedding context."""
        self._parent_origin = resolve_parent_origin(ancestor_origins, referrer)
        logger.debug(f"Resolved parent origin: {self._parent_origin}")
        return self._parent_origin

    def is_allowed(self, origin: Optional[str]) -> bool:
        return origin is not None and origin in self._allowed_origins

    # --- Inbound ---

    def on(self, message_type: str, callback: Callable) -> None:
        """Register a callback for ``enable-edit-mode`` or ``disable-edit-mode``."""
        if message_type in self._callbacks:
            self._callbacks[message_type].append(callback)

    def off(self, message_type: str, callback: Callable) -> None:
        if message_type in self._callbacks and callback in self._callbacks[message_type]:
            self._callbacks[message_type].remove(callback)

    def handle_inbound(self, data: Any) -> Optional[InboundMessage]:
        """Route a raw message from the hosting frame to the registered callbacks."""
        message = parse_inbound(data)
        if message is None:
            return None
        for callback in self._callbacks[message.type]:
            try:
                callback(message)
            except Exception as e:
                logger.error(f"Error in callback for {message.type}: {e}")
        return message

    # --- Outbound ---

    def send(self, message: Dict[str, Any]) -> bool:
        """Post ``message`` to the parent frame if its origin is trusted."""
        origin = self._parent_origin
        if not self.is_allowed(origin):
            logger.error(f"Unauthorized parent origin: {origin} (dropping {message.get('type')})")
            return False
        self._post(message, origin)
        return True

    def notify_edit_enter(self) -> bool:
        return self.send({'type': MSG_EDIT_ENTER})

    def notify_edit_cancel(self) -> bool:
        return self.send({'type': MSG_EDIT_CANCEL})

    def notify_edit_applied(self, edit_id: str, file_content: Optional[str],
                            before_code: Optional[str], after_code: Optional[str]) -> bool:
        return self.send({
            'type': MSG_EDIT_APPLIED,
            'payload': {
                'editId': edit_id,
                'fileContent': file_content,
                'beforeCode': before_code,
                'afterCode': after_code,
            },
        })
