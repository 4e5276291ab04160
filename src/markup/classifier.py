"""
Editability policy for markup elements.

Decides, per element, whether the operator may replace its text inline.
The checks run in a fixed order and the first match wins:

1. already carries an edit id or disabled marker  -> SKIP
2. tag not in the editable allowlist              -> SKIP
3. has an expression child or a ``{...props}``    -> DISABLED
4. has a direct child that is itself editable     -> DISABLED
5. has a direct child that is not in the allowlist -> DISABLED
6. sits inside an editable ancestor               -> SKIP
7. otherwise                                      -> EDITABLE

Ambiguous cases lean towards DISABLED: the element gets a visible marker
instead of an id whose text replacement could drop markup or bindings.
"""

from enum import Enum
from typing import Iterable, FrozenSet

from src.markup.edit_id import EDIT_ID_ATTRIBUTE, EDIT_DISABLED_ATTRIBUTE
from src.markup.nodes import Element, ExpressionContainer, SpreadAttribute

EDITABLE_TAGS: FrozenSet[str] = frozenset(
    ['a', 'Button', 'button', 'p', 'span', 'h1', 'h2', 'h3', 'h4']
)

# Spreading the component's own props may inject `children` at runtime
PROPS_SPREAD_ARGUMENT = 'props'


class Editability(Enum):
    EDITABLE = 'editable'
    DISABLED = 'disabled'
    SKIP = 'skip'


def is_editable_tag(element: Element, editable_tags: Iterable[str] = EDITABLE_TAGS) -> bool:
    """Allowlist check. Member tags (``motion.p``) match on their last segment."""
    if element.is_namespaced:
        return False
    return element.tag_parts[-1] in editable_tags


def classify(element: Element, editable_tags: Iterable[str] = EDITABLE_TAGS) -> Editability:
    """Apply the editability rules to ``element`` within its tree."""
    editable_tags = frozenset(editable_tags)

    if element.has_attribute(EDIT_ID_ATTRIBUTE) or element.has_attribute(EDIT_DISABLED_ATTRIBUTE):
        return Editability.SKIP

    if not is_editable_tag(element, editable_tags):
        return Editability.SKIP

    has_dynamic_child = any(isinstance(child, ExpressionContainer) for child in element.children)
    has_props_spread = any(
        isinstance(attr, SpreadAttribute) and attr.argument == PROPS_SPREAD_ARGUMENT
        for attr in element.attributes
    )
    if has_dynamic_child or has_props_spread:
        return Editability.DISABLED

    child_elements = element.child_elements()
    if any(is_editable_tag(child, editable_tags) for child in child_elements):
        return Editability.DISABLED

    if any(not is_editable_tag(child, editable_tags) for child in child_elements):
        return Editability.DISABLED

    if any(is_editable_tag(ancestor, editable_tags) for ancestor in element.ancestors()):
        return Editability.SKIP

    return Editability.EDITABLE
