"""
Preview server for the inline editor.

Serves the application's built page (already carrying edit markers from
scripts/annotate_sources.py) inside ``#root`` and attaches the inline
editor to every client. The editor stays dormant until the hosting frame
sends ``enable-edit-mode``.
"""

import logging
import os
import sys

from nicegui import ui
from dotenv import load_dotenv
load_dotenv()

from src.config import get_settings
from src.inline_edit.constants import ROOT_ELEMENT_ID
from src.inline_edit.handlers import attach_inline_editor

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

PLACEHOLDER_HTML = '''
<main style="font-family: system-ui, sans-serif; padding: 32px">
    <h1 data-edit-id="preview/Placeholder:3:5">No preview build found</h1>
    <p data-edit-id="preview/Placeholder:4:5">Set INLINE_EDIT_PREVIEW_HTML to the built index.html.</p>
</main>
'''


def load_preview_html(settings) -> str:
    """Body markup of the built page, or a placeholder if it is missing."""
    path = settings.preview_html
    if path is None or not path.exists():
        logger.warning(f"Preview page not found at {path}, serving placeholder")
        return PLACEHOLDER_HTML
    try:
        return path.read_text(encoding='utf-8')
    except OSError as e:
        logger.error(f"Could not read preview page {path}: {e}")
        return PLACEHOLDER_HTML


@ui.page('/')
def preview_page():
    settings = get_settings()
    ui.add_body_html(f'<div id="{ROOT_ELEMENT_ID}">{load_preview_html(settings)}</div>')
    attach_inline_editor(settings)


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Inline Editor Preview',
        port=int(os.environ.get('PORT', 8081)),
        reload=not getattr(sys, 'frozen', False),
    )
