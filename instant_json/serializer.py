"""
Serializer: Value -> host value or compact JSON text.

Both directions walk the tree with an explicit stack.
"""
import math

from instant_json.value import Value, ValueKind

_ESCAPES = {
    '"': '\\"',
    '\\': '\\\\',
    '\b': '\\b',
    '\f': '\\f',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
}


def escape_string(text: str) -> str:
    """Quote text, escaping the quote, backslash and control characters."""
    out = ['"']
    for ch in text:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch < ' ':
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def format_number(number: float) -> str:
    """Shortest literal that reads back as the same double.

    Integral doubles drop the ".0" repr leaves on them, so -0.0 prints
    as -0. Non-finite doubles have no JSON literal and print as null.
    """
    if not math.isfinite(number):
        return "null"
    text = repr(number)
    if text.endswith(".0"):
        return text[:-2]
    return text


def dumps(value: Value) -> str:
    """Serialize a Value to JSON text without insignificant whitespace."""
    parts = []
    stack = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue
        kind = item.kind
        if kind == ValueKind.OBJECT:
            pending = ["}"]
            entries = list(item.entries.items())
            for i in range(len(entries) - 1, -1, -1):
                key, child = entries[i]
                pending.append(child)
                pending.append(escape_string(key) + ":")
                if i:
                    pending.append(",")
            pending.append("{")
            stack.extend(pending)
        elif kind == ValueKind.ARRAY:
            pending = ["]"]
            for i in range(len(item.items) - 1, -1, -1):
                pending.append(item.items[i])
                if i:
                    pending.append(",")
            pending.append("[")
            stack.extend(pending)
        elif kind == ValueKind.STRING:
            parts.append(escape_string(item.value))
        elif kind == ValueKind.NUMBER:
            parts.append(format_number(item.value))
        elif kind == ValueKind.BOOL:
            parts.append("true" if item.value else "false")
        else:
            parts.append("null")
    return "".join(parts)


def to_native(value: Value):
    """Map a Value onto plain dict/list/str/float/bool/None."""
    holder = []
    stack = [(value, holder, None)]
    while stack:
        item, parent, key = stack.pop()
        kind = item.kind
        if kind == ValueKind.OBJECT:
            native = dict.fromkeys(item.entries)
            stack.extend((child, native, k) for k, child in item.entries.items())
        elif kind == ValueKind.ARRAY:
            native = [None] * len(item.items)
            stack.extend((child, native, i) for i, child in enumerate(item.items))
        else:
            native = item.value

        if key is None:
            parent.append(native)
        else:
            parent[key] = native
    return holder[0]
