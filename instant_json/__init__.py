# Instant JSON - grammar-driven JSON parsing
"""
Core modules for Instant JSON:
- errors: Error taxonomy and Lark error translation
- value: The JSON value model
- registry: Schema name -> compiled grammar
- reducer: Span tree -> value tree
- serializer: Value -> host objects / JSON text
- engine: InstantJson facade tying them together
- grammar: Bundled Lark grammars following the tag contract
- introspection: Tag tables of compiled schemas
"""

from .config import Settings, load_settings
from .engine import InstantJson
from .errors import (
    ContractError,
    ConfigError,
    EncodingError,
    ErrorKind,
    GrammarCompileError,
    InstantJsonError,
    MultipleErrors,
    NumberFormatError,
    ParseError,
    RootTypeError,
    SchemaNotFound,
)
from .grammar import json_grammar
from .reducer import TreeReducer, reduce_tree
from .registry import Program, SchemaRegistry
from .result import Err, Ok, Result
from .serializer import dumps, to_native
from .tags import Tag
from .value import (
    ArrayValue,
    BoolValue,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    Value,
    ValueKind,
    from_native,
)

__all__ = [
    'InstantJson',
    'SchemaRegistry',
    'Program',
    'TreeReducer',
    'reduce_tree',
    'Settings',
    'load_settings',
    'Tag',
    'json_grammar',
    'dumps',
    'to_native',
    'from_native',
    'Value',
    'ValueKind',
    'StringValue',
    'NumberValue',
    'BoolValue',
    'NullValue',
    'ArrayValue',
    'ObjectValue',
    'Result',
    'Ok',
    'Err',
    'ErrorKind',
    'InstantJsonError',
    'GrammarCompileError',
    'MultipleErrors',
    'SchemaNotFound',
    'ParseError',
    'RootTypeError',
    'NumberFormatError',
    'EncodingError',
    'ContractError',
    'ConfigError',
]
