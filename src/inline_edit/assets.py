"""
Presentation assets for the inline editor: popup/tooltip CSS, popup HTML
and the page script that captures input and talks to the hosting frame.

The page script only does what has to happen synchronously in the browser
(capture-phase preventDefault, reading the clicked element, measuring the
tooltip). Every decision with state behind it is made by
InlineEditController in Python, reached through NiceGUI's ``emitEvent``.
"""

import json
from typing import Callable, Optional

from src.inline_edit.constants import (
    EDIT_DISABLED_ATTRIBUTE,
    EDIT_ID_ATTRIBUTE,
    EDIT_MODE_ATTRIBUTE,
    EVENT_CANCEL,
    EVENT_CLICK,
    EVENT_HOVER,
    EVENT_LEAVE,
    EVENT_MESSAGE,
    EVENT_SAVE,
    INTERCEPTED_EVENTS,
    POPUP_ELEMENT_ID,
    ROOT_ELEMENT_ID,
    STYLE_ELEMENT_ID,
    TOOLTIP_ELEMENT_ID,
)

POPUP_STYLES = f'''
#{POPUP_ELEMENT_ID} {{
    position: fixed;
    left: 50%;
    bottom: 24px;
    transform: translateX(-50%);
    z-index: 2147483647;
    display: none;
    flex-direction: column;
    gap: 8px;
    width: min(480px, calc(100vw - 32px));
    padding: 12px;
    border-radius: 8px;
    background: #0f172a;
    color: #f8fafc;
    box-shadow: 0 10px 30px rgba(0, 0, 0, 0.35);
    font-family: system-ui, sans-serif;
}}
#{POPUP_ELEMENT_ID}.is-active {{
    display: flex;
}}
#{POPUP_ELEMENT_ID} textarea {{
    width: 100%;
    min-height: 80px;
    box-sizing: border-box;
    padding: 8px;
    border: 1px solid #334155;
    border-radius: 6px;
    background: #1e293b;
    color: inherit;
    font: inherit;
    resize: vertical;
}}
#{POPUP_ELEMENT_ID} .button-row {{
    display: flex;
    justify-content: flex-end;
    gap: 8px;
}}
#{POPUP_ELEMENT_ID} button {{
    padding: 6px 14px;
    border: none;
    border-radius: 6px;
    cursor: pointer;
    font: inherit;
}}
#{POPUP_ELEMENT_ID} .cancel-button {{
    background: transparent;
    color: #cbd5e1;
}}
#{POPUP_ELEMENT_ID} .save-button {{
    background: #6366f1;
    color: white;
}}
#{POPUP_ELEMENT_ID} .save-button:disabled {{
    opacity: 0.5;
    cursor: wait;
}}
#{TOOLTIP_ELEMENT_ID} {{
    position: absolute;
    z-index: 2147483647;
    display: none;
    max-width: 260px;
    padding: 6px 10px;
    border-radius: 6px;
    background: rgba(0, 0, 0, 0.85);
    color: white;
    font: 12px system-ui, sans-serif;
    pointer-events: none;
}}
#{TOOLTIP_ELEMENT_ID}.tooltip-active {{
    display: block;
}}
#{TOOLTIP_ELEMENT_ID}.tooltip-measuring {{
    display: block;
    visibility: hidden;
}}
#{ROOT_ELEMENT_ID}[{EDIT_MODE_ATTRIBUTE}] [{EDIT_ID_ATTRIBUTE}] {{
    cursor: pointer;
    outline: 1px dashed rgba(99, 102, 241, 0.6);
}}
#{ROOT_ELEMENT_ID}[{EDIT_MODE_ATTRIBUTE}] [{EDIT_ID_ATTRIBUTE}]:hover {{
    outline: 2px solid #6366f1;
}}
#{ROOT_ELEMENT_ID}[{EDIT_MODE_ATTRIBUTE}] [{EDIT_DISABLED_ATTRIBUTE}] {{
    cursor: not-allowed;
    outline: 1px dashed rgba(148, 163, 184, 0.6);
}}
'''


def popup_html(save_label: str, cancel_label: str) -> str:
    """Inner HTML of the popup container."""
    return (
        '<textarea></textarea>'
        '<div class="button-row">'
        f'<button type="button" class="cancel-button">{cancel_label}</button>'
        f'<button type="button" class="save-button">{save_label}</button>'
        '</div>'
    )


def runtime_script() -> str:
    """The page script, with Python constants injected."""
    constants = json.dumps({
        'rootId': ROOT_ELEMENT_ID,
        'modeAttr': EDIT_MODE_ATTRIBUTE,
        'editIdAttr': EDIT_ID_ATTRIBUTE,
        'disabledAttr': EDIT_DISABLED_ATTRIBUTE,
        'popupId': POPUP_ELEMENT_ID,
        'tooltipId': TOOLTIP_ELEMENT_ID,
        'styleId': STYLE_ELEMENT_ID,
        'events': list(INTERCEPTED_EVENTS),
        'popupTemplate': popup_html('Save', 'Cancel'),
        'emit': {
            'message': EVENT_MESSAGE,
            'click': EVENT_CLICK,
            'hover': EVENT_HOVER,
            'leave': EVENT_LEAVE,
            'save': EVENT_SAVE,
            'cancel': EVENT_CANCEL,
        },
    })
    return f'''
<script>
(function() {{
    if (window.inlineEditor) return;
    const C = {constants};
    const st = {{ handlersInstalled: false, tooltipText: '', popup: null, tooltip: null }};

    function emit(name, payload) {{
        if (typeof emitEvent === 'function') emitEvent(C.emit[name], payload);
    }}

    function isEnabled() {{
        const root = document.getElementById(C.rootId);
        return !!(root && root.getAttribute(C.modeAttr));
    }}

    // Capture phase: the application never sees input while editing
    function handleGlobalEvent(event) {{
        if (!isEnabled()) return;
        const target = event.target;
        if (target && target.closest && target.closest('#' + C.popupId)) return;
        event.preventDefault();
        event.stopPropagation();
        event.stopImmediatePropagation();
        if (event.type !== 'click') return;
        const editable = target && target.closest ? target.closest('[' + C.editIdAttr + ']') : null;
        if (!editable) return;
        emit('click', {{
            type: event.type,
            editId: editable.getAttribute(C.editIdAttr),
            text: editable.textContent || '',
            insidePopup: false,
        }});
    }}

    function handleDisabledHover(event) {{
        const tip = ensureTooltip();
        tip.textContent = st.tooltipText;
        // measured while hidden; only showTooltip makes it visible
        tip.classList.add('tooltip-measuring');
        const size = {{ width: tip.offsetWidth, height: tip.offsetHeight }};
        tip.classList.remove('tooltip-measuring');
        const r = event.currentTarget.getBoundingClientRect();
        emit('hover', {{
            rect: {{ left: r.left, top: r.top, width: r.width, height: r.height }},
            tooltip: size,
            viewport: {{
                scrollX: window.scrollX, scrollY: window.scrollY,
                width: window.innerWidth, height: window.innerHeight,
            }},
        }});
    }}

    function handleDisabledLeave() {{
        emit('leave', {{}});
    }}

    function ensurePopup() {{
        if (st.popup) return st.popup;
        const popup = document.createElement('div');
        popup.id = C.popupId;
        popup.innerHTML = C.popupTemplate;
        document.body.appendChild(popup);
        popup.querySelector('.save-button').addEventListener('click', () => {{
            emit('save', {{ text: popup.querySelector('textarea').value }});
        }});
        popup.querySelector('.cancel-button').addEventListener('click', () => {{
            emit('cancel', {{}});
        }});
        st.popup = popup;
        return popup;
    }}

    function ensureTooltip() {{
        if (!st.tooltip) {{
            st.tooltip = document.createElement('div');
            st.tooltip.id = C.tooltipId;
        }}
        if (!st.tooltip.isConnected) document.body.appendChild(st.tooltip);
        return st.tooltip;
    }}

    window.inlineEditor = {{
        injectStyles(css) {{
            if (document.getElementById(C.styleId)) return;
            const style = document.createElement('style');
            style.id = C.styleId;
            style.textContent = css;
            document.head.appendChild(style);
        }},
        setEditMode(enabled) {{
            const root = document.getElementById(C.rootId);
            if (!root) return;
            if (enabled) root.setAttribute(C.modeAttr, 'true');
            else root.removeAttribute(C.modeAttr);
        }},
        setTranslations(t) {{
            st.tooltipText = t.disabledTooltipText || '';
        }},
        installListeners() {{
            if (st.handlersInstalled) return;
            C.events.forEach(type => document.addEventListener(type, handleGlobalEvent, true));
            st.handlersInstalled = true;
        }},
        removeListeners() {{
            C.events.forEach(type => document.removeEventListener(type, handleGlobalEvent, true));
            st.handlersInstalled = false;
        }},
        attachDisabledHover() {{
            document.querySelectorAll('[' + C.disabledAttr + ']').forEach(el => {{
                el.removeEventListener('mouseenter', handleDisabledHover);
                el.addEventListener('mouseenter', handleDisabledHover);
                el.removeEventListener('mouseleave', handleDisabledLeave);
                el.addEventListener('mouseleave', handleDisabledLeave);
            }});
        }},
        detachDisabledHover() {{
            document.querySelectorAll('[' + C.disabledAttr + ']').forEach(el => {{
                el.removeEventListener('mouseenter', handleDisabledHover);
                el.removeEventListener('mouseleave', handleDisabledLeave);
            }});
        }},
        showPopup(text, t) {{
            const popup = ensurePopup();
            const textarea = popup.querySelector('textarea');
            const save = popup.querySelector('.save-button');
            popup.querySelector('.cancel-button').textContent = t.cancel;
            save.textContent = t.save;
            save.style.display = 'inline-block';
            save.disabled = false;
            textarea.placeholder = t.addText + '...';
            textarea.style.display = 'block';
            textarea.value = text;
            textarea.disabled = false;
            popup.classList.add('is-active');
            textarea.focus();
        }},
        hidePopup() {{
            if (!st.popup) return;
            st.popup.classList.remove('is-active');
            st.popup.querySelector('textarea').style.display = 'none';
            st.popup.querySelector('.save-button').style.display = 'none';
        }},
        setSubmitting(busy) {{
            if (!st.popup) return;
            st.popup.querySelector('textarea').disabled = busy;
            st.popup.querySelector('.save-button').disabled = busy;
        }},
        showTooltip(text, left, top) {{
            const tip = ensureTooltip();
            tip.textContent = text;
            tip.classList.add('tooltip-active');
            tip.style.left = left + 'px';
            tip.style.top = top + 'px';
        }},
        hideTooltip() {{
            if (st.tooltip) st.tooltip.classList.remove('tooltip-active');
        }},
        originInfo() {{
            const ancestors = window.location.ancestorOrigins ? Array.from(window.location.ancestorOrigins) : [];
            return {{ ancestorOrigins: ancestors, referrer: document.referrer || '' }};
        }},
    }};

    window.addEventListener('message', (event) => {{
        emit('message', event.data);
    }});
}})();
</script>
'''


class OverlayStyleInjector:
    """Adds the popup/tooltip stylesheet to the page, once."""

    def __init__(self, run_javascript: Optional[Callable[[str], object]] = None):
        self._run = run_javascript
        self._injected = False

    @property
    def injected(self) -> bool:
        return self._injected

    def ensure_injected(self) -> bool:
        """Inject the styles unless already done. Returns True when it injected."""
        if self._injected:
            return False
        self._js(f'window.inlineEditor && window.inlineEditor.injectStyles({json.dumps(POPUP_STYLES)});')
        self._injected = True
        return True

    def _js(self, code: str) -> None:
        if self._run is not None:
            self._run(code)
            return
        from nicegui import ui
        ui.run_javascript(code)
