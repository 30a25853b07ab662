"""
InstantJson: register grammars once, parse documents with them many times.

    ij = InstantJson()
    ij.register("json", json_grammar)
    ij.parse("json", '{"hello":1}')   # Object{hello: Number(1.0)}
"""
from typing import Dict, List, Optional

from instant_json.config import Settings
from instant_json.errors import InstantJsonError
from instant_json.log import debug_log
from instant_json.reducer import TreeReducer
from instant_json.registry import Program, SchemaRegistry
from instant_json.result import Err, Ok, Result
from instant_json.serializer import dumps, to_native
from instant_json.value import Value


class InstantJson:
    """Owns one SchemaRegistry and runs the parse pipeline against it."""

    def __init__(self, settings: Optional[Settings] = None, registry: Optional[SchemaRegistry] = None):
        self.registry = registry if registry is not None else SchemaRegistry(settings)
        self.settings = self.registry.settings

    def register(self, name: str, grammar_source: str, settings: Optional[Settings] = None) -> Program:
        return self.registry.register(name, grammar_source, settings)

    def register_all(self, grammars: Dict[str, str], settings: Optional[Settings] = None) -> List[Program]:
        return self.registry.register_all(grammars, settings)

    def remove(self, name: str):
        self.registry.remove(name)

    def schemas(self) -> List[str]:
        return self.registry.names()

    def parse(self, name: str, text: str) -> Value:
        """Parse text with the named schema and reduce it to a Value."""
        program = self.registry.lookup(name)
        debug_log(f"Parsing {len(text)} characters with schema {name!r}")
        tree = program.execute(text)
        reducer = TreeReducer(program.settings, program.tag_of, schema_name=name)
        return reducer.reduce(tree, text)

    def parse_native(self, name: str, text: str):
        """Parse and return plain dict/list/str/float/bool/None."""
        return to_native(self.parse(name, text))

    def parse_json(self, name: str, text: str) -> str:
        """Parse and re-serialize as compact JSON text."""
        return dumps(self.parse(name, text))

    def try_register(self, name: str, grammar_source: str) -> Result:
        try:
            return Ok(self.register(name, grammar_source))
        except InstantJsonError as e:
            return Err(e)

    def try_parse(self, name: str, text: str) -> Result:
        try:
            return Ok(self.parse(name, text))
        except InstantJsonError as e:
            return Err(e)

    def close(self):
        """Tear down the registry; every schema becomes unreachable."""
        self.registry.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
