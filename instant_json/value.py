"""
Instant JSON value model.

A Value is one of six variants: String, Number, Bool, Null, Array, Object.
Containers exclusively own their children. Comparison and repr walk the tree
with an explicit stack, so documents nested deeper than the interpreter's
recursion limit still compare and print.
"""
from enum import Enum


class ValueKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"


class Value:
    """Base class of the closed value variant."""
    kind = None
    __slots__ = ()

    def is_container(self) -> bool:
        return self.kind in (ValueKind.ARRAY, ValueKind.OBJECT)

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return values_equal(self, other)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __repr__(self):
        return value_repr(self)


class StringValue(Value):
    kind = ValueKind.STRING
    __slots__ = ('value',)

    def __init__(self, value: str):
        self.value = value

    def __hash__(self):
        return hash((self.kind, self.value))


class NumberValue(Value):
    kind = ValueKind.NUMBER
    __slots__ = ('value',)

    def __init__(self, value: float):
        self.value = float(value)

    def __hash__(self):
        return hash((self.kind, self.value))


class BoolValue(Value):
    kind = ValueKind.BOOL
    __slots__ = ('value',)

    def __init__(self, value: bool):
        self.value = bool(value)

    def __hash__(self):
        return hash((self.kind, self.value))


class NullValue(Value):
    kind = ValueKind.NULL
    __slots__ = ()

    @property
    def value(self):
        return None

    def __hash__(self):
        return hash(self.kind)


class ArrayValue(Value):
    """Ordered sequence of values."""
    kind = ValueKind.ARRAY
    __slots__ = ('items',)
    __hash__ = None

    def __init__(self, items=None):
        self.items = list(items) if items is not None else []

    def append(self, value: Value):
        self.items.append(value)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __iter__(self):
        return iter(self.items)


class ObjectValue(Value):
    """Mapping of text keys to values.

    Equality ignores key order; iteration and serialization keep insertion order.
    """
    kind = ValueKind.OBJECT
    __slots__ = ('entries',)
    __hash__ = None

    def __init__(self, entries=None):
        self.entries = dict(entries) if entries is not None else {}

    def insert(self, key: str, value: Value):
        self.entries[key] = value

    def __len__(self):
        return len(self.entries)

    def __getitem__(self, key):
        return self.entries[key]

    def __contains__(self, key):
        return key in self.entries

    def __iter__(self):
        return iter(self.entries)

    def keys(self):
        return self.entries.keys()

    def items(self):
        return self.entries.items()


NULL = NullValue()


def values_equal(left: Value, right: Value) -> bool:
    """Structural equality without recursion."""
    stack = [(left, right)]
    while stack:
        a, b = stack.pop()
        if a is b:
            continue
        if a.kind != b.kind:
            return False
        if a.kind == ValueKind.ARRAY:
            if len(a.items) != len(b.items):
                return False
            stack.extend(zip(a.items, b.items))
        elif a.kind == ValueKind.OBJECT:
            if a.entries.keys() != b.entries.keys():
                return False
            stack.extend((a.entries[k], b.entries[k]) for k in a.entries)
        elif a.kind != ValueKind.NULL and a.value != b.value:
            return False
    return True


def value_repr(value: Value) -> str:
    """Render a debugging representation such as Object{hello: Number(1.0)}."""
    parts = []
    # Work items are either a Value to render or a literal string to emit
    stack = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
        elif item.kind == ValueKind.OBJECT:
            pending = ["}"]
            entries = list(item.entries.items())
            for i in range(len(entries) - 1, -1, -1):
                key, child = entries[i]
                pending.append(child)
                pending.append(f"{key}: " if i == 0 else f", {key}: ")
            pending.append("Object{")
            stack.extend(pending)
        elif item.kind == ValueKind.ARRAY:
            pending = ["]"]
            for i in range(len(item.items) - 1, -1, -1):
                pending.append(item.items[i])
                if i:
                    pending.append(", ")
            pending.append("Array[")
            stack.extend(pending)
        elif item.kind == ValueKind.STRING:
            parts.append(f"String({item.value!r})")
        elif item.kind == ValueKind.NUMBER:
            parts.append(f"Number({item.value!r})")
        elif item.kind == ValueKind.BOOL:
            parts.append(f"Bool({item.value})")
        else:
            parts.append("Null")
    return "".join(parts)


def from_native(obj) -> Value:
    """Build a Value from a host JSON-like object (dict, list, str, number, bool, None)."""
    root_holder = ArrayValue()
    stack = [(obj, root_holder, None)]
    while stack:
        item, parent, key = stack.pop()
        if isinstance(item, Value):
            raise TypeError("from_native expects host objects, not Value instances")
        if isinstance(item, dict):
            node = ObjectValue()
            for k, v in item.items():
                if not isinstance(k, str):
                    raise TypeError(f"Object keys must be str, got {type(k).__name__}")
                # Reserve the slot now so insertion order survives the stack order
                node.entries[k] = NULL
            stack.extend((v, node, k) for k, v in reversed(list(item.items())))
        elif isinstance(item, (list, tuple)):
            node = ArrayValue([NULL] * len(item))
            stack.extend((v, node, i) for i, v in reversed(list(enumerate(item))))
        elif isinstance(item, bool):
            node = BoolValue(item)
        elif isinstance(item, (int, float)):
            node = NumberValue(item)
        elif isinstance(item, str):
            node = StringValue(item)
        elif item is None:
            node = NullValue()
        else:
            raise TypeError(f"Cannot convert {type(item).__name__} to a JSON value")

        if key is None:
            parent.append(node)
        elif isinstance(parent, ObjectValue):
            parent.entries[key] = node
        else:
            parent.items[key] = node
    return root_holder.items[0]
