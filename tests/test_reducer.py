"""
Unit tests for instant_json/reducer.py - span tree to value tree.
"""
import pytest
from lark import Token, Tree

from instant_json.config import Settings
from instant_json.engine import InstantJson
from instant_json.errors import (
    ContractError,
    EncodingError,
    NumberFormatError,
    RootTypeError,
)
from instant_json.grammar import json_grammar
from instant_json.reducer import TreeReducer, decode_escapes, reduce_tree
from instant_json.serializer import to_native
from instant_json.tags import Tag
from instant_json.value import (
    ArrayValue,
    BoolValue,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    ValueKind,
)


@pytest.fixture
def ij():
    """Engine with the bundled JSON grammar registered as 'json'."""
    engine = InstantJson()
    engine.register("json", json_grammar)
    return engine


class TestJsonDocuments:
    """Reduction of documents accepted by the bundled JSON grammar."""

    def test_flat_object(self, ij):
        """{"hello":1} becomes Object{hello: Number(1)}."""
        result = ij.parse("json", '{"hello":1}')
        assert result == ObjectValue({"hello": NumberValue(1)})
        assert result.kind == ValueKind.OBJECT

    def test_nested_object(self, ij):
        """Nested objects attach under the pending key."""
        result = ij.parse("json", '{"hello":{"world":1}}')
        assert result == ObjectValue({"hello": ObjectValue({"world": NumberValue(1)})})

    def test_array_of_numbers(self, ij):
        """Arrays append in document order."""
        result = ij.parse("json", '{"hello":[1,2,3]}')
        assert result == ObjectValue({"hello": ArrayValue([NumberValue(1), NumberValue(2), NumberValue(3)])})

    def test_empty_array(self, ij):
        """An empty array is still attached."""
        result = ij.parse("json", '{"items":[]}')
        assert result["items"] == ArrayValue()
        assert len(result["items"]) == 0

    def test_empty_object(self, ij):
        """An empty document object reduces to an empty Object."""
        assert ij.parse("json", "{}") == ObjectValue()

    def test_null(self, ij):
        """null becomes Null."""
        result = ij.parse("json", '{"hello":null}')
        assert result == ObjectValue({"hello": NullValue()})

    def test_booleans(self, ij):
        """true and false become Bool."""
        result = ij.parse("json", '{"t":true,"f":false}')
        assert result["t"] == BoolValue(True)
        assert result["f"] == BoolValue(False)

    def test_container_returns_to_parent(self, ij):
        """After a nested object closes, later pairs go to the outer object."""
        result = ij.parse("json", '{"a":{"b":1},"c":2}')
        assert to_native(result) == {"a": {"b": 1.0}, "c": 2.0}

    def test_mixed_array(self, ij):
        """Arrays hold any mix of values, including containers."""
        result = ij.parse("json", '{"xs":[1,"two",null,true,{"k":[]},[3]]}')
        assert to_native(result) == {"xs": [1.0, "two", None, True, {"k": []}, [3.0]]}

    def test_array_root(self, ij):
        """The default root policy accepts an array document."""
        result = ij.parse("json", '[[1,[2]],3]')
        assert to_native(result) == [[1.0, [2.0]], 3.0]

    def test_whitespace_is_insignificant(self, ij):
        """Whitespace between tokens does not reach the values."""
        result = ij.parse("json", '{\n  "a" : [ 1 , 2 ] ,\n  "b" : "x y"\n}')
        assert to_native(result) == {"a": [1.0, 2.0], "b": "x y"}

    def test_duplicate_keys_keep_last_value(self, ij):
        """A repeated key overwrites the earlier value."""
        assert to_native(ij.parse("json", '{"a":1,"a":2}')) == {"a": 2.0}

    def test_string_escapes_are_decoded(self, ij):
        """JSON escapes in keys and values are decoded."""
        result = ij.parse("json", r'{"k\"ey":"a\\b\ncé😀"}')
        assert result['k"ey'] == StringValue("a\\b\ncé\U0001F600")

    def test_escapes_kept_when_decoding_disabled(self):
        """With decode_escapes off, only the delimiters are stripped."""
        engine = InstantJson(Settings(decode_escapes=False))
        engine.register("json", json_grammar)
        result = engine.parse("json", r'{"a":"x\ny"}')
        assert result["a"] == StringValue(r"x\ny")


class TestNumbers:
    """Numeric literal handling."""

    def test_fraction_and_exponent(self, ij):
        result = ij.parse("json", '{"a":-1.5,"b":2e3,"c":0.25E-2}')
        assert to_native(result) == {"a": -1.5, "b": 2000.0, "c": 0.0025}

    def test_underflow_normalizes_to_zero(self, ij):
        """Exponents below the double range silently become 0.

        Known quirk kept on purpose: no error is raised for the lost precision.
        """
        result = ij.parse("json", '{"val":123.456e-789}')
        assert result == ObjectValue({"val": NumberValue(0)})

    def test_overflow_becomes_infinity(self, ij):
        """Exponents above the double range become inf."""
        result = ij.parse("json", '{"val":1e999}')
        assert result["val"].value == float("inf")

    @pytest.fixture
    def loose_numbers(self):
        """Grammar whose number rule matches more than a numeric literal."""
        engine = InstantJson()
        engine.register("loose", r'''
            root: object
            object: "{" (pair ("," pair)*)? "}"
            pair: string ":" number
            string: ESCAPED_STRING
            number: /[0-9a-z_.+-]+/
            %import common.ESCAPED_STRING
        ''')
        return engine

    def test_unparseable_number_aborts(self, loose_numbers):
        """Text that is not a number literal fails the whole reduction."""
        with pytest.raises(NumberFormatError) as exc_info:
            loose_numbers.parse("loose", '{"ok":1,"bad":12abc}')
        assert "12abc" in exc_info.value.message
        assert exc_info.value.line_number == 1
        assert exc_info.value.column == 15
        assert exc_info.value.schema_name == "loose"

    @pytest.mark.parametrize("literal", ["inf", "nan", "1_000", "1e", "+-1"])
    def test_float_spellings_are_rejected(self, loose_numbers, literal):
        """Only decimal/scientific literals are numbers, not every float() spelling."""
        with pytest.raises(NumberFormatError):
            loose_numbers.parse("loose", '{"a":%s}' % literal)


class TestStrings:
    """String span handling."""

    def test_invalid_escape(self, ij):
        """An unknown escape raises EncodingError positioned at the backslash."""
        with pytest.raises(EncodingError) as exc_info:
            ij.parse("json", r'{"a":"x\q"}')
        assert exc_info.value.line_number == 1
        assert exc_info.value.column == 8

    def test_short_unicode_escape(self, ij):
        with pytest.raises(EncodingError):
            ij.parse("json", r'{"a":"\u12"}')

    def test_invalid_escape_in_key(self, ij):
        with pytest.raises(EncodingError):
            ij.parse("json", r'{"\x":1}')

    def test_decode_escapes_helper(self):
        assert decode_escapes(r'\/\b\f\r\t') == '/\b\f\r\t'
        assert decode_escapes('plain') == 'plain'

    def test_decode_escapes_reports_offset(self):
        with pytest.raises(ValueError) as exc_info:
            decode_escapes('ab\\')
        assert exc_info.value.args[0] == 2

    def test_lone_surrogate_is_kept(self):
        assert decode_escapes(r'\ud800x') == '\ud800x'


class TestRootPolicy:
    """The first semantic node below the entry rule must be a container."""

    def test_scalar_root_is_rejected(self):
        engine = InstantJson()
        engine.register("scalar", '''
            root: string
            string: ESCAPED_STRING
            %import common.ESCAPED_STRING
        ''')
        with pytest.raises(RootTypeError) as exc_info:
            engine.parse("scalar", '"abc"')
        assert "found string" in exc_info.value.message

    def test_reducer_errors_name_the_schema(self):
        engine = InstantJson()
        engine.register("scalar", '''
            root: string
            string: ESCAPED_STRING
            %import common.ESCAPED_STRING
        ''')
        engine.register("simple_schema", 'root: "abc"')
        with pytest.raises(RootTypeError) as exc_info:
            engine.parse("scalar", '"abc"')
        assert exc_info.value.schema_name == "scalar"
        assert "in schema 'scalar'" in str(exc_info.value)
        with pytest.raises(RootTypeError) as exc_info:
            engine.parse("simple_schema", "abc")
        assert "in schema 'simple_schema'" in str(exc_info.value)

    def test_grammar_without_semantic_rules(self):
        """A grammar that matches but produces no values has no root container."""
        engine = InstantJson()
        engine.register("simple_schema", 'root: "abc"')
        tree = engine.registry.lookup("simple_schema").execute("abc")
        assert tree.data == "root"
        with pytest.raises(RootTypeError):
            engine.parse("simple_schema", "abc")

    def test_object_only_policy(self):
        """root_kind='object' rejects an array document."""
        engine = InstantJson(Settings(root_kind="object"))
        engine.register("json", json_grammar)
        assert engine.parse("json", '{"a":[1]}') == ObjectValue({"a": ArrayValue([NumberValue(1)])})
        with pytest.raises(RootTypeError):
            engine.parse("json", "[1]")

    def test_entry_rule_named_as_container(self):
        """When the entry rule itself is tagged object, it is the root."""
        engine = InstantJson(Settings(entry_rule="object"))
        engine.register("direct", '''
            object: "{" (pair ("," pair)*)? "}"
            pair: string ":" number
            string: ESCAPED_STRING
            number: SIGNED_NUMBER
            %import common.ESCAPED_STRING
            %import common.SIGNED_NUMBER
        ''')
        assert to_native(engine.parse("direct", '{"a":1}')) == {"a": 1.0}


WRAPPED_GRAMMAR = r'''
    root: document
    document: object
    object: "{" (member ("," member)*)? "}"
    member: pair
    pair: key ":" value
    key: string
    ?value: string | number | list
    list: "[" (value ("," value)*)? "]" -> array
    string: ESCAPED_STRING
    number: SIGNED_NUMBER
    %import common.ESCAPED_STRING
    %import common.SIGNED_NUMBER
    %import common.WS
    %ignore WS
'''

KEYLESS_GRAMMAR = r'''
    root: object
    object: "{" (number ("," number)*)? "}"
    number: SIGNED_NUMBER
    %import common.SIGNED_NUMBER
'''

PAIRS_IN_ARRAY_GRAMMAR = r'''
    root: array
    array: "[" (pair ("," pair)*)? "]"
    pair: string ":" number
    string: ESCAPED_STRING
    number: SIGNED_NUMBER
    %import common.ESCAPED_STRING
    %import common.SIGNED_NUMBER
'''


class TestTagPolicy:
    """Rules outside the tag contract."""

    def test_wrappers_are_transparent(self):
        """Children of unrecognized rules are still reduced."""
        engine = InstantJson()
        engine.register("wrapped", WRAPPED_GRAMMAR)
        result = engine.parse("wrapped", '{"a": [1, "x"], "b": 2}')
        assert to_native(result) == {"a": [1.0, "x"], "b": 2.0}

    def test_strict_mode_rejects_wrappers(self):
        engine = InstantJson(Settings(strict_tags=True))
        engine.register("wrapped", WRAPPED_GRAMMAR)
        with pytest.raises(ContractError) as exc_info:
            engine.parse("wrapped", '{"a": 1}')
        assert "document" in exc_info.value.message

    def test_keyless_values_are_skipped(self):
        """Values reaching an object without a pair key are dropped."""
        engine = InstantJson()
        engine.register("keyless", KEYLESS_GRAMMAR)
        assert engine.parse("keyless", "{1,2}") == ObjectValue()

    def test_keyless_values_fail_in_strict_mode(self):
        engine = InstantJson(Settings(strict_tags=True))
        engine.register("keyless", KEYLESS_GRAMMAR)
        with pytest.raises(ContractError):
            engine.parse("keyless", "{1,2}")

    def test_strict_mode_accepts_contract_grammar(self):
        engine = InstantJson(Settings(strict_tags=True))
        engine.register("json", json_grammar)
        assert to_native(engine.parse("json", '{"a":[true]}')) == {"a": [True]}

    def test_pair_inside_array_is_reported_per_pair(self, monkeypatch, capsys):
        """The pair's value still lands in the array, with one drift message per pair."""
        monkeypatch.setattr("instant_json.log._VERBOSE", True)
        engine = InstantJson()
        engine.register("pairs", PAIRS_IN_ARRAY_GRAMMAR)
        assert engine.parse("pairs", '["a":1,"b":2]') == ArrayValue([NumberValue(1), NumberValue(2)])
        err = capsys.readouterr().err
        assert err.count("pair inside an array") == 2
        assert "without a value" not in err

    def test_pair_inside_array_fails_in_strict_mode(self):
        engine = InstantJson(Settings(strict_tags=True))
        engine.register("pairs", PAIRS_IN_ARRAY_GRAMMAR)
        with pytest.raises(ContractError) as exc_info:
            engine.parse("pairs", '["a":1]')
        assert exc_info.value.message == "pair inside an array"
        assert exc_info.value.column == 2


def _pair(key, value):
    return Tree("pair", [Tree("string", [Token("ESCAPED_STRING", f'"{key}"')]), value])


class TestHandBuiltTrees:
    """The reducer works on any Lark tree, with or without source positions."""

    def test_tokens_supply_text_without_positions(self):
        tree = Tree("root", [Tree("object", [
            _pair("a", Tree("number", [Token("SIGNED_NUMBER", "1")])),
            _pair("b", Tree("null", [])),
        ])])
        assert to_native(reduce_tree(tree)) == {"a": 1.0, "b": None}

    def test_none_placeholders_are_skipped(self):
        """Lark emits None for unmatched [optional] parts."""
        tree = Tree("root", [Tree("array", [None, Tree("number", [Token("N", "7")]), None])])
        assert reduce_tree(tree) == ArrayValue([NumberValue(7)])

    def test_eoi_is_ignored(self):
        tree = Tree("root", [Tree("object", []), Tree("EOI", [])])
        assert reduce_tree(tree) == ObjectValue()

    def test_custom_tag_table(self):
        """A program's tag table decides dispatch, not the raw rule name."""
        table = {"dict": "object", "entry": "pair", "text": "string", "int": "number"}
        def tag_of(name):
            return Tag.classify(table.get(str(name), str(name)))

        tree = Tree("root", [Tree("dict", [
            Tree("entry", [Tree("text", [Token("S", '"n"')]), Tree("int", [Token("I", "3")])]),
        ])])
        assert TreeReducer(tag_of=tag_of).reduce(tree) == ObjectValue({"n": NumberValue(3)})

    def test_deep_nesting_does_not_recurse(self):
        """Depth is bounded by memory, not by the interpreter's recursion limit."""
        depth = 20000
        node = Tree("array", [Tree("number", [Token("N", "1")])])
        for _ in range(depth):
            node = Tree("array", [node])
        result = reduce_tree(Tree("root", [node]))

        levels = 0
        current = result
        while current.items and current.items[0].kind == ValueKind.ARRAY:
            current = current.items[0]
            levels += 1
        assert levels == depth
        assert current.items == [NumberValue(1)]


class TestDeepDocuments:
    """End-to-end parsing of deep documents through the LALR parser."""

    def test_deep_array_document(self):
        engine = InstantJson(Settings(parser="lalr"))
        engine.register("json", json_grammar)
        depth = 3000
        result = engine.parse("json", "[" * depth + "]" * depth)

        levels = 1
        current = result
        while current.items:
            current = current.items[0]
            levels += 1
        assert levels == depth
