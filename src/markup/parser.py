"""
Error-recovering JSX/TSX markup scanner.

This is not a JavaScript parser. It walks the source text, skips strings,
template literals, comments and regex literals, and parses every JSX element
or fragment it finds into the tree defined in ``src.markup.nodes``. Code
between elements is only looked at to decide whether a ``<`` starts markup
(``return <p/>``, ``cond && <p/>``) or is an operator / type argument
(``a < b``, ``useState<string>()``).

Recovery rules:
- a ``<`` that does not form a valid opening tag is treated as code (or as
  literal text inside element children);
- a closing tag that matches an outer open element closes the inner ones
  implicitly;
- a stray closing tag matching nothing is skipped.

Anything else (end of input inside an element or expression, a malformed
closing tag) raises ``MarkupParseError``.
"""

import bisect
import logging
import re
from typing import List, Optional, Tuple

from src.errors import MarkupParseError
from src.markup.nodes import (
    Attribute,
    Element,
    ExpressionContainer,
    Fragment,
    Node,
    Position,
    SpreadAttribute,
    Text,
)

logger = logging.getLogger(__name__)

_TAG_NAME = re.compile(r'[A-Za-z_$][\w$\-]*(?:[.:][A-Za-z_$][\w$\-]*)*')
_ATTR_NAME = re.compile(r'[A-Za-z_$][\w$\-]*(?::[A-Za-z_$][\w$\-]*)?')
_WORD = re.compile(r'[\w$]+')

# Tokens after which an operand (and therefore markup or a regex) may follow
_OPERAND_PUNCTUATION = frozenset('([{,;:?=!&|~+-*%^') | {'=>'}
_OPERAND_KEYWORDS = frozenset({
    'return', 'yield', 'await', 'case', 'default', 'else', 'do',
    'in', 'of', 'typeof', 'void', 'delete', 'throw',
})

_VALUE = ('value', '')


class _Backtrack(Exception):
    """The ``<`` under the cursor does not open markup."""


class MarkupParser:
    """Parses one source file. Create a new instance per file."""

    def __init__(self, source: str):
        self.source = source
        self.length = len(source)
        self._line_starts = [0]
        for index, char in enumerate(source):
            if char == '\n':
                self._line_starts.append(index + 1)

    def parse(self) -> List[Node]:
        """Return the top-level elements and fragments in document order."""
        _, roots = self._scan_code(0, stop_at_brace=False, parent=None)
        return roots

    # --- Positions ---

    def position(self, offset: int) -> Position:
        index = bisect.bisect_right(self._line_starts, offset) - 1
        line_start = self._line_starts[index]
        # columns count UTF-16 code units, like Babel and the browser
        column = len(self.source[line_start:offset].encode('utf-16-le')) // 2
        return Position(offset=offset, line=index + 1, column=column)

    def _error(self, message: str, offset: int) -> MarkupParseError:
        pos = self.position(min(offset, self.length))
        return MarkupParseError(message, pos.line, pos.column)

    # --- Code scanning ---

    def _scan_code(self, pos: int, stop_at_brace: bool, parent: Optional[Node]) -> Tuple[int, List[Node]]:
        """Scan JavaScript until end of input, or the ``}`` closing the current expression.

        Returns the offset of the closing ``}`` (or end of input) and the markup found.
        """
        src = self.source
        found: List[Node] = []
        depth = 0
        prev: Optional[Tuple[str, str]] = None

        while pos < self.length:
            char = src[pos]
            if char.isspace():
                pos += 1
                continue
            if src.startswith('//', pos) or src.startswith('/*', pos):
                pos = self._skip_comment(pos)
                continue
            if char in '"\'':
                pos = self._skip_string(pos)
                prev = _VALUE
                continue
            if char == '`':
                pos = self._scan_template(pos, parent, found)
                prev = _VALUE
                continue
            if char == '/' and self._expects_operand(prev):
                pos = self._skip_regex(pos)
                prev = _VALUE
                continue
            if char == '<' and self._expects_operand(prev) and self._looks_like_tag(pos):
                try:
                    node, pos = self._parse_element(pos, parent, ())
                except _Backtrack:
                    pos += 1
                    prev = ('punct', '<')
                    continue
                found.append(node)
                prev = _VALUE
                continue

            if char == '{':
                depth += 1
            elif char == '}':
                if stop_at_brace and depth == 0:
                    return pos, found
                depth -= 1

            word = _WORD.match(src, pos)
            if word:
                prev = ('word', word.group())
                pos = word.end()
            elif src.startswith('=>', pos):
                prev = ('punct', '=>')
                pos += 2
            else:
                prev = _VALUE if char in ')]' else ('punct', char)
                pos += 1

        if stop_at_brace:
            raise self._error('Unterminated expression', pos)
        return pos, found

    @staticmethod
    def _expects_operand(prev: Optional[Tuple[str, str]]) -> bool:
        if prev is None:
            return True
        kind, text = prev
        if kind == 'punct':
            return text in _OPERAND_PUNCTUATION
        if kind == 'word':
            return text in _OPERAND_KEYWORDS
        return False

    def _looks_like_tag(self, pos: int) -> bool:
        nxt = self.source[pos + 1:pos + 2]
        return nxt == '>' or bool(nxt) and (nxt.isalpha() or nxt in '_$')

    def _skip_comment(self, pos: int) -> int:
        if self.source.startswith('//', pos):
            end = self.source.find('\n', pos)
            return self.length if end == -1 else end + 1
        end = self.source.find('*/', pos + 2)
        if end == -1:
            raise self._error('Unterminated comment', pos)
        return end + 2

    def _skip_string(self, pos: int) -> int:
        src = self.source
        quote = src[pos]
        i = pos + 1
        while i < self.length:
            char = src[i]
            if char == '\\':
                i += 2
                continue
            if char == quote:
                return i + 1
            if char == '\n':
                # unterminated literal, resume on the next line
                return i
            i += 1
        return self.length

    def _scan_template(self, pos: int, parent: Optional[Node], found: List[Node]) -> int:
        src = self.source
        i = pos + 1
        while i < self.length:
            char = src[i]
            if char == '\\':
                i += 2
                continue
            if char == '`':
                return i + 1
            if src.startswith('${', i):
                end, nested = self._scan_code(i + 2, stop_at_brace=True, parent=parent)
                found.extend(nested)
                i = end + 1
                continue
            i += 1
        raise self._error('Unterminated template literal', pos)

    def _skip_regex(self, pos: int) -> int:
        src = self.source
        i = pos + 1
        in_class = False
        while i < self.length:
            char = src[i]
            if char == '\\':
                i += 2
                continue
            if char == '\n':
                # not a regex after all
                return pos + 1
            if in_class:
                if char == ']':
                    in_class = False
            elif char == '[':
                in_class = True
            elif char == '/':
                flags = _WORD.match(src, i + 1)
                return flags.end() if flags else i + 1
            i += 1
        return pos + 1

    def _skip_trivia(self, pos: int) -> int:
        src = self.source
        while pos < self.length:
            if src[pos].isspace():
                pos += 1
            elif src.startswith('//', pos) or src.startswith('/*', pos):
                pos = self._skip_comment(pos)
            else:
                break
        return pos

    # --- Markup ---

    def _parse_element(self, pos: int, parent: Optional[Node], open_tags: Tuple[str, ...]):
        src = self.source
        position = self.position(pos)
        pos += 1

        if src.startswith('>', pos):
            fragment = Fragment(position=position, parent=parent)
            fragment.end = self._parse_children(fragment, pos + 1, '', open_tags)
            return fragment, fragment.end

        name = _TAG_NAME.match(src, pos)
        if not name:
            raise _Backtrack()
        element = Element(tag=name.group(), position=position, parent=parent)
        pos = element.attributes_end = name.end()

        while True:
            pos = self._skip_trivia(pos)
            if pos >= self.length:
                raise _Backtrack()
            if src.startswith('/>', pos):
                element.self_closing = True
                element.end = pos + 2
                return element, element.end
            if src[pos] == '>':
                break
            if src[pos] == '{':
                spread, pos = self._parse_spread(pos, element)
                element.attributes.append(spread)
            else:
                attr, pos = self._parse_attribute(pos, element, open_tags)
                if attr.name == 'extends' and not element.attributes:
                    # `<T extends Base>` type parameter
                    raise _Backtrack()
                element.attributes.append(attr)
            element.attributes_end = pos

        if not element.attributes and src.startswith('(', pos + 1):
            # `<T>(value: T) => T` is a generic function type unless a closing tag follows
            try:
                element.end = self._parse_children(element, pos + 1, element.tag, open_tags)
            except MarkupParseError:
                raise _Backtrack()
            return element, element.end

        element.end = self._parse_children(element, pos + 1, element.tag, open_tags)
        return element, element.end

    def _parse_spread(self, pos: int, element: Element) -> Tuple[SpreadAttribute, int]:
        inner = self._skip_trivia(pos + 1)
        if not self.source.startswith('...', inner):
            raise _Backtrack()
        end, _ = self._scan_code(inner + 3, stop_at_brace=True, parent=element)
        argument = self.source[inner + 3:end].strip()
        return SpreadAttribute(argument=argument, start=pos, end=end + 1), end + 1

    def _parse_attribute(self, pos: int, element: Element, open_tags: Tuple[str, ...]) -> Tuple[Attribute, int]:
        src = self.source
        name = _ATTR_NAME.match(src, pos)
        if not name:
            raise _Backtrack()
        attr = Attribute(name=name.group(), start=pos)
        pos = attr.end = name.end()

        equals = self._skip_trivia(pos)
        if not src.startswith('=', equals):
            return attr, pos

        pos = self._skip_trivia(equals + 1)
        if pos >= self.length:
            raise _Backtrack()
        char = src[pos]
        if char in '"\'':
            close = src.find(char, pos + 1)
            if close == -1:
                raise _Backtrack()
            attr.value = src[pos + 1:close]
            pos = close + 1
        elif char == '{':
            end, nested = self._scan_code(pos + 1, stop_at_brace=True, parent=element)
            attr.value = src[pos + 1:end]
            attr.is_expression = True
            attr.elements = nested
            pos = end + 1
        elif char == '<':
            node, end = self._parse_element(pos, element, open_tags)
            attr.value = src[pos:end]
            attr.is_expression = True
            attr.elements = [node]
            pos = end
        else:
            raise _Backtrack()
        attr.end = pos
        return attr, pos

    def _parse_children(self, owner, pos: int, closing_name: str, open_tags: Tuple[str, ...]) -> int:
        """Parse children of ``owner`` and return the offset after its closing tag."""
        src = self.source
        inner_tags = open_tags + (closing_name,)

        while True:
            if pos >= self.length:
                label = f'<{closing_name}>' if closing_name else 'fragment'
                raise self._error(f'Unclosed {label}', owner.position.offset)

            char = src[pos]
            if char == '{':
                container = ExpressionContainer(source='', start=pos, parent=owner)
                end, nested = self._scan_code(pos + 1, stop_at_brace=True, parent=container)
                container.source = src[pos + 1:end]
                container.elements = nested
                container.end = end + 1
                owner.children.append(container)
                pos = container.end
                continue

            if char == '<':
                after = self._skip_trivia(pos + 1)
                if src.startswith('/', after):
                    name_start = self._skip_trivia(after + 1)
                    name = _TAG_NAME.match(src, name_start)
                    tag = name.group() if name else ''
                    close = self._skip_trivia(name.end() if name else name_start)
                    if not src.startswith('>', close):
                        raise self._error('Malformed closing tag', pos)
                    if tag == closing_name:
                        return close + 1
                    if tag in open_tags:
                        logger.debug(f"Implicitly closing <{closing_name}> at line {self.position(pos).line}")
                        return pos
                    logger.debug(f"Ignoring stray </{tag}> at line {self.position(pos).line}")
                    pos = close + 1
                    continue
                try:
                    node, pos = self._parse_element(pos, owner, inner_tags)
                except _Backtrack:
                    owner.children.append(Text('<', pos, pos + 1, parent=owner))
                    pos += 1
                    continue
                owner.children.append(node)
                continue

            end = pos
            while end < self.length and src[end] not in '{<':
                end += 1
            owner.children.append(Text(src[pos:end], pos, end, parent=owner))
            pos = end


def parse_markup(source: str) -> List[Node]:
    """Parse ``source`` and return its top-level markup nodes."""
    return MarkupParser(source).parse()
