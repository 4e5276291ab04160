"""
Element tree produced by the markup parser.

Nodes are plain dataclasses. The tree is owned top-down (``children`` and
``attributes``); ``parent`` is a lookup-only back reference used when walking
ancestors and is excluded from comparison and repr.

Offsets are 0-based character offsets into the parsed source text.
Lines are 1-based, columns 0-based and counted in UTF-16 code units (the
same convention Babel and the annotator's identifiers build on).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class Position:
    """Location of a node's first character."""
    offset: int
    line: int
    column: int


@dataclass
class Attribute:
    """``name``, ``name="value"``, ``name='value'`` or ``name={expression}``."""
    name: str
    value: Optional[str] = None
    is_expression: bool = False
    start: int = 0
    end: int = 0
    elements: List['Node'] = field(default_factory=list)


@dataclass
class SpreadAttribute:
    """``{...argument}`` inside an opening tag."""
    argument: str
    start: int = 0
    end: int = 0


@dataclass
class Text:
    value: str
    start: int = 0
    end: int = 0
    parent: Optional['Node'] = field(default=None, repr=False, compare=False)


@dataclass
class ExpressionContainer:
    """``{ ... }`` child. Elements written inside the expression are kept in ``elements``."""
    source: str
    start: int = 0
    end: int = 0
    elements: List['Node'] = field(default_factory=list)
    parent: Optional['Node'] = field(default=None, repr=False, compare=False)


@dataclass
class Element:
    """A JSX element: ``<tag attrs>children</tag>`` or ``<tag attrs />``."""
    tag: str
    position: Position
    attributes: List[Union[Attribute, SpreadAttribute]] = field(default_factory=list)
    children: List['Node'] = field(default_factory=list)
    self_closing: bool = False
    # Offset right after the last attribute (or the tag name); markers are inserted here.
    attributes_end: int = 0
    end: int = 0
    parent: Optional['Node'] = field(default=None, repr=False, compare=False)

    @property
    def tag_parts(self) -> List[str]:
        return self.tag.split('.')

    @property
    def is_namespaced(self) -> bool:
        return ':' in self.tag

    def get_attribute(self, name: str) -> Optional[Attribute]:
        for attr in self.attributes:
            if isinstance(attr, Attribute) and attr.name == name:
                return attr
        return None

    def has_attribute(self, name: str) -> bool:
        return self.get_attribute(name) is not None

    def child_elements(self) -> List['Element']:
        """Direct child elements (fragments and expression contents excluded)."""
        return [child for child in self.children if isinstance(child, Element)]

    def ancestors(self):
        """Yield enclosing elements, nearest first, crossing expressions and fragments."""
        node = self.parent
        while node is not None:
            if isinstance(node, Element):
                yield node
            node = node.parent

    def text_content(self) -> str:
        parts = []
        for child in self.children:
            if isinstance(child, Text):
                parts.append(child.value)
            elif isinstance(child, (Element, Fragment)):
                parts.append(child.text_content())
        return ''.join(parts)


@dataclass
class Fragment:
    """``<>children</>``."""
    position: Position
    children: List['Node'] = field(default_factory=list)
    end: int = 0
    parent: Optional['Node'] = field(default=None, repr=False, compare=False)

    def text_content(self) -> str:
        return ''.join(
            child.value if isinstance(child, Text) else child.text_content()
            for child in self.children
            if isinstance(child, (Text, Element, Fragment))
        )


Node = Union[Element, Fragment, Text, ExpressionContainer]


def iter_elements(nodes):
    """Depth-first, document-order walk over every Element reachable from ``nodes``.

    Descends into children, expression containers and attribute values.
    """
    for node in nodes:
        if isinstance(node, Element):
            yield node
            for attr in node.attributes:
                if isinstance(attr, Attribute) and attr.elements:
                    yield from iter_elements(attr.elements)
            yield from iter_elements(node.children)
        elif isinstance(node, Fragment):
            yield from iter_elements(node.children)
        elif isinstance(node, ExpressionContainer):
            yield from iter_elements(node.elements)
