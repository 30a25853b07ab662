"""
Instant JSON grammar library.

Lark grammars that follow the reducer's tag contract: rules named object,
array, pair, string, number, null, true and false become values; every
other rule is a transparent wrapper.
"""

json_grammar = r"""
    root: value

    ?value: object
          | array
          | string
          | number
          | null
          | true
          | false

    object: "{" (pair ("," pair)*)? "}"
    pair: string ":" value
    array: "[" (value ("," value)*)? "]"

    string: ESCAPED_STRING
    number: SIGNED_NUMBER
    null: "null"
    true: "true"
    false: "false"

    %import common.ESCAPED_STRING
    %import common.SIGNED_NUMBER
    %import common.WS
    %ignore WS
"""

# Only accepts an object at the top level
json_object_grammar = json_grammar.replace("root: value", "root: object", 1)

GRAMMARS = {
    "json": json_grammar,
    "json-object": json_object_grammar,
}
