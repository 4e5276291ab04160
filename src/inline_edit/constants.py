"""
Shared constants for the inline editing runtime.

These values are used by both Python (controller, protocol) and the
JavaScript injected by assets.py. Keep them in sync!
"""

from src.markup.edit_id import EDIT_ID_ATTRIBUTE, EDIT_DISABLED_ATTRIBUTE

APPLY_EDIT_API_PATH = '/api/apply-edit'

# Hosting frames allowed to receive outbound messages
ALLOWED_PARENT_ORIGINS = (
    'https://horizons.hostinger.com',
    'https://horizons.hostinger.dev',
    'https://horizons-frontend-local.hostinger.dev',
    'http://localhost:4000',
)

DEFAULT_TRANSLATIONS = {
    'cancel': 'Cancel',
    'save': 'Save',
    'addText': 'Add text',
    'disabledTooltipText': 'This text can be changed only through chat.',
}

# Root node carrying the edit-mode flag
ROOT_ELEMENT_ID = 'root'
EDIT_MODE_ATTRIBUTE = 'data-edit-mode-enabled'

POPUP_ELEMENT_ID = 'inline-editor-popup'
TOOLTIP_ELEMENT_ID = 'inline-editor-disabled-tooltip'
STYLE_ELEMENT_ID = 'inline-editor-styles'

# Events captured on the document while edit mode is on
INTERCEPTED_EVENTS = ('pointerdown', 'mousedown', 'click')

# Distance in pixels between tooltip and element / viewport edges
TOOLTIP_MARGIN = 5

# Inbound (hosting frame -> page)
MSG_ENABLE = 'enable-edit-mode'
MSG_DISABLE = 'disable-edit-mode'

# Outbound (page -> hosting frame)
MSG_EDIT_ENTER = 'editEnter'
MSG_EDIT_CANCEL = 'editCancel'
MSG_EDIT_APPLIED = 'editApplied'

# NiceGUI events emitted by the page script
EVENT_MESSAGE = 'inline_edit_message'
EVENT_CLICK = 'inline_edit_click'
EVENT_HOVER = 'inline_edit_hover'
EVENT_LEAVE = 'inline_edit_leave'
EVENT_SAVE = 'inline_edit_save'
EVENT_CANCEL = 'inline_edit_cancel'
