"""
Instant JSON schema introspection.

Reports which rules of a compiled grammar the reducer will treat as values
and which it will pass through, so grammar authors can spot a rule named
"str" where "string" was meant before any document is parsed.
"""
from typing import Dict, List

from instant_json.registry import Program
from instant_json.tags import CONTRACT_TAGS, Tag


def describe_schema(program: Program) -> List[Dict[str, str]]:
    """One entry per rule name, in name order.

    Each entry has the rule name, its semantic tag ("" when unrecognized)
    and the role the reducer gives it.
    """
    rules = []
    for name in sorted(program.tags):
        tag = program.tags[name]
        if tag.is_container:
            role = "container"
        elif tag is Tag.PAIR:
            role = "pair"
        elif tag.is_scalar:
            role = "scalar"
        elif tag is Tag.EOI:
            role = "ignored"
        elif name == program.entry_rule:
            role = "entry"
        else:
            role = "wrapper"
        rules.append({"rule": name, "tag": tag.value, "role": role})
    return rules


def missing_tags(program: Program) -> List[str]:
    """Contract tags the grammar never produces."""
    present = set(program.tags.values())
    return [tag.value for tag in CONTRACT_TAGS if tag not in present]
