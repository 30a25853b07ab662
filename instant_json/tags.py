"""
Semantic tags understood by the reducer.

Rule names are resolved to a Tag once, when a grammar is compiled, so the
reducer dispatches on a closed enum instead of comparing rule-name strings.
"""
from enum import Enum


class Tag(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    PAIR = "pair"
    STRING = "string"
    NUMBER = "number"
    NULL = "null"
    TRUE = "true"
    FALSE = "false"
    EOI = "eoi"
    UNRECOGNIZED = ""

    @classmethod
    def classify(cls, rule_name) -> "Tag":
        name = str(rule_name)
        if name in _BY_NAME:
            return _BY_NAME[name]
        return cls.UNRECOGNIZED

    @property
    def is_container(self) -> bool:
        return self in (Tag.OBJECT, Tag.ARRAY)

    @property
    def is_scalar(self) -> bool:
        return self in (Tag.STRING, Tag.NUMBER, Tag.NULL, Tag.TRUE, Tag.FALSE)


_BY_NAME = {tag.value: tag for tag in Tag if tag is not Tag.UNRECOGNIZED}
_BY_NAME["EOI"] = Tag.EOI

# Tags a grammar is expected to provide for full JSON coverage
CONTRACT_TAGS = (Tag.OBJECT, Tag.ARRAY, Tag.PAIR, Tag.STRING, Tag.NUMBER, Tag.NULL)
