"""
Tree reducer: folds Lark's tagged span tree into a Value tree.

The walk is iterative. A work stack holds one frame per partially visited
node: the iterator over its remaining children, the arena index of the
container that receives values found there, and whether the frame belongs
to a pair. Containers are stored in an arena list and addressed by index,
so the current container is always arena[stack[-1].container] and is never
a scalar.

Recognized tags (see Tag) attach values. Every other tag is a transparent
wrapper: its children are visited, but it adds nothing itself. In strict
mode such wrappers raise ContractError instead.
"""
import re
from typing import Callable, List, Optional

from lark import Tree

from instant_json.config import Settings
from instant_json.errors import (
    ContractError,
    EncodingError,
    NumberFormatError,
    RootTypeError,
    get_line_context,
    line_and_column,
)
from instant_json.log import debug_log
from instant_json.tags import Tag
from instant_json.value import (
    ArrayValue,
    BoolValue,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    Value,
)

_NUMBER_RE = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')

_SIMPLE_ESCAPES = {
    '"': '"',
    '\\': '\\',
    '/': '/',
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
}

_HEX_DIGITS = frozenset('0123456789abcdefABCDEF')

_DONE = object()


class _Frame:
    __slots__ = ('children', 'container', 'is_pair')

    def __init__(self, children, container, is_pair=False):
        self.children = iter(children)
        self.container = container
        self.is_pair = is_pair


class TreeReducer:
    """Reduce one span tree. Instances are cheap and hold no state between calls."""

    def __init__(self, settings: Optional[Settings] = None, tag_of: Callable[[str], Tag] = Tag.classify,
                 schema_name: Optional[str] = None):
        self.settings = settings if settings is not None else Settings()
        self.tag_of = tag_of
        self.schema_name = schema_name

    def reduce(self, tree, text: Optional[str] = None) -> Value:
        """Fold tree into a Value. text is the parsed input, used to recover span text."""
        root_node, root_tag = self._find_root(tree, text)
        root = ObjectValue() if root_tag is Tag.OBJECT else ArrayValue()

        arena: List[Value] = [root]
        stack = [_Frame(root_node.children, 0)]
        key_pending = False
        pending_key = None
        count = 1

        while stack:
            frame = stack[-1]
            child = next(frame.children, _DONE)
            if child is _DONE:
                stack.pop()
                if frame.is_pair and (key_pending or pending_key is not None):
                    self._contract_drift("pair ended without a value for its key", root_node, text)
                    key_pending, pending_key = False, None
                continue
            # Tokens belong to their parent's span; None is an unmatched [optional]
            if not isinstance(child, Tree):
                continue

            tag = self.tag_of(child.data)
            container = arena[frame.container]

            if tag is Tag.PAIR:
                if isinstance(container, ArrayValue):
                    self._contract_drift("pair inside an array", child, text)
                stack.append(_Frame(child.children, frame.container, is_pair=True))
                key_pending, pending_key = True, None
                continue

            if tag is Tag.STRING and key_pending:
                pending_key = self._string(child, text)
                key_pending = False
                continue

            if tag is Tag.UNRECOGNIZED:
                if self.settings.strict_tags:
                    raise self._error(ContractError, f"Unrecognized rule {str(child.data)!r}", child, text)
                stack.append(_Frame(child.children, frame.container))
                continue

            if tag is Tag.EOI:
                continue

            if key_pending:
                self._contract_drift(f"{tag.value} where a pair key was expected", child, text)
                key_pending = False

            if tag is Tag.OBJECT or tag is Tag.ARRAY:
                value = ObjectValue() if tag is Tag.OBJECT else ArrayValue()
            elif tag is Tag.STRING:
                value = StringValue(self._string(child, text))
            elif tag is Tag.NUMBER:
                value = NumberValue(self._number(child, text))
            elif tag is Tag.NULL:
                value = NullValue()
            else:
                value = BoolValue(tag is Tag.TRUE)

            if isinstance(container, ArrayValue):
                container.append(value)
                pending_key = None
            elif pending_key is None:
                self._contract_drift(f"{tag.value} inside an object without a key", child, text)
                continue
            else:
                container.insert(pending_key, value)
                pending_key = None
            count += 1

            if tag is Tag.OBJECT or tag is Tag.ARRAY:
                arena.append(value)
                stack.append(_Frame(child.children, len(arena) - 1))

        debug_log(f"Reduced {count} values ({len(arena)} containers)")
        return root

    def _find_root(self, tree, text):
        """Return the first semantic node in pre-order; it must be a container."""
        expected = "an object" if self.settings.root_kind == "object" else "an object or array"
        stack = [tree]
        while stack:
            node = stack.pop()
            if not isinstance(node, Tree):
                continue
            tag = self.tag_of(node.data)
            if tag is Tag.UNRECOGNIZED:
                if self.settings.strict_tags and node is not tree:
                    raise self._error(ContractError, f"Unrecognized rule {str(node.data)!r}", node, text)
                stack.extend(reversed(node.children))
                continue
            if tag is Tag.EOI:
                continue
            if tag is Tag.OBJECT or (tag is Tag.ARRAY and self.settings.root_kind == "container"):
                return node, tag
            raise self._error(
                RootTypeError,
                f"Document root must be {expected}, found {tag.value}",
                node,
                text,
                suggestion="Make the entry rule derive a container first",
            )
        raise RootTypeError(
            f"Document root must be {expected}, found no semantic value",
            schema_name=self.schema_name,
            suggestion="Name the grammar's container rules 'object' or 'array'",
        )

    def _string(self, node, text) -> str:
        raw = span_text(node, text)
        if len(raw) < 2:
            raise self._error(EncodingError, f"String span {raw!r} is missing its delimiters", node, text)
        inner = raw[1:-1]
        if not self.settings.decode_escapes or '\\' not in inner:
            return inner
        try:
            return decode_escapes(inner)
        except ValueError as e:
            offset, reason = e.args
            raise self._error(EncodingError, reason, node, text, offset=offset + 1) from e

    def _number(self, node, text) -> float:
        raw = span_text(node, text)
        if _NUMBER_RE.fullmatch(raw) is None:
            raise self._error(NumberFormatError, f"Invalid number literal {raw!r}", node, text)
        # Exponents beyond the double range collapse to 0.0 or inf without an error
        return float(raw)

    def _contract_drift(self, message, node, text):
        if self.settings.strict_tags:
            raise self._error(ContractError, message, node, text)
        debug_log(f"Skipped: {message}")

    def _error(self, error_class, message, node, text, offset=0, **kwargs):
        """Build error_class positioned at node's span start plus offset."""
        meta = node.meta
        line_number = column = None
        if not meta.empty:
            if text is not None:
                line_number, column = line_and_column(text, meta.start_pos + offset)
            else:
                line_number, column = meta.line, meta.column
        return error_class(
            message,
            schema_name=self.schema_name,
            line_number=line_number,
            column=column,
            context=get_line_context(text, line_number),
            **kwargs,
        )


def span_text(node, text: Optional[str]) -> str:
    """Matched text of a node: a slice of the input when positions are known,
    otherwise the concatenation of the tokens beneath it."""
    meta = node.meta
    if text is not None and not meta.empty:
        return text[meta.start_pos:meta.end_pos]
    return "".join(str(token) for token in node.scan_values(lambda v: not isinstance(v, Tree) and v is not None))


def decode_escapes(inner: str) -> str:
    """Decode JSON backslash escapes.

    Raises ValueError(offset, reason) for a malformed escape, with offset
    counted from the start of inner.
    """
    out = []
    i = 0
    n = len(inner)
    while i < n:
        ch = inner[i]
        if ch != '\\':
            out.append(ch)
            i += 1
            continue
        if i + 1 >= n:
            raise ValueError(i, "Dangling backslash at end of string")
        esc = inner[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 2
            continue
        if esc != 'u':
            raise ValueError(i, f"Invalid escape sequence '\\{esc}'")
        code = _hex4(inner, i)
        i += 6
        if 0xD800 <= code <= 0xDBFF and inner.startswith('\\u', i):
            low = _hex4(inner, i)
            if 0xDC00 <= low <= 0xDFFF:
                code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                i += 6
        out.append(chr(code))
    return "".join(out)


def _hex4(inner, i):
    digits = inner[i + 2:i + 6]
    if len(digits) != 4 or not set(digits) <= _HEX_DIGITS:
        raise ValueError(i, f"Invalid unicode escape '\\u{digits}'")
    return int(digits, 16)


def reduce_tree(tree, text: Optional[str] = None, settings: Optional[Settings] = None,
                tag_of: Callable[[str], Tag] = Tag.classify) -> Value:
    """Convenience wrapper around TreeReducer.reduce."""
    return TreeReducer(settings, tag_of).reduce(tree, text)
