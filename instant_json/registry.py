"""
Schema registry: schema name -> compiled Program.

Grammar text is compiled with Lark. A Program is never mutated after it is
built; re-registering a name swaps in a new Program under the registry lock.
"""
import threading
from types import MappingProxyType
from typing import Dict, List, Optional

from lark import Lark
from lark.exceptions import LarkError

from instant_json.config import Settings
from instant_json.errors import (
    GrammarCompileError,
    MultipleErrors,
    SchemaNotFound,
    from_lark_error,
)
from instant_json.log import debug_log
from instant_json.tags import Tag


class Program:
    """Compiled, immutable form of one schema grammar."""

    __slots__ = ('_name', '_source', '_settings', '_parser', '_tags')

    def __init__(self, name: str, source: str, settings: Settings, parser: Lark):
        self._name = name
        self._source = source
        self._settings = settings
        self._parser = parser
        self._tags = MappingProxyType(build_tag_table(parser))

    @property
    def name(self) -> str:
        return self._name

    @property
    def source(self) -> str:
        return self._source

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def entry_rule(self) -> str:
        return self._settings.entry_rule

    @property
    def tags(self):
        """Read-only mapping of every rule name and alias to its Tag."""
        return self._tags

    def tag_of(self, rule_name) -> Tag:
        tag = self._tags.get(str(rule_name))
        if tag is None:
            # Names Lark synthesises at parse time (e.g. _ambig) are not in the table
            return Tag.classify(rule_name)
        return tag

    def execute(self, text: str):
        """Run the grammar against text and return Lark's tagged span tree."""
        try:
            return self._parser.parse(text)
        except LarkError as e:
            raise from_lark_error(e, text, schema_name=self._name) from e

    def __repr__(self):
        return f"Program({self._name!r}, entry_rule={self.entry_rule!r})"


def build_tag_table(parser: Lark) -> Dict[str, Tag]:
    """Map each rule name (and alias) the parser can emit to its semantic Tag."""
    table = {}
    for rule in parser.rules:
        names = [str(rule.origin.name)]
        if rule.alias:
            names.append(str(rule.alias))
        for name in names:
            # Rules starting with an underscore are inlined and never tag a node
            if name.startswith('_'):
                continue
            table[name] = Tag.classify(name)
    return table


def compile_grammar(name: str, source: str, settings: Settings) -> Program:
    """Compile grammar source into a Program, raising GrammarCompileError."""
    debug_log(f"Compiling schema {name!r} ({settings.parser} parser, entry rule {settings.entry_rule!r})")
    try:
        parser = Lark(
            source,
            start=settings.entry_rule,
            parser=settings.parser,
            lexer=settings.lexer,
            propagate_positions=True,
            maybe_placeholders=False,
        )
    except LarkError as e:
        raise from_lark_error(e, source, schema_name=name, compiling=True) from e
    return Program(name, source, settings, parser)


class SchemaRegistry:
    """Explicit store of compiled programs. Create one, pass it around, clear() it when done."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings if settings is not None else Settings()
        self._programs: Dict[str, Program] = {}
        self._lock = threading.RLock()

    def register(self, name: str, grammar_source: str, settings: Optional[Settings] = None) -> Program:
        """Compile and install a grammar under name, replacing any previous program.

        Compilation happens outside the lock; a failure leaves the registry untouched.
        """
        program = compile_grammar(name, grammar_source, settings or self.settings)
        with self._lock:
            replaced = name in self._programs
            self._programs[name] = program
        debug_log(f"{'Replaced' if replaced else 'Registered'} schema {name!r}")
        return program

    def register_all(self, grammars: Dict[str, str], settings: Optional[Settings] = None) -> List[Program]:
        """Compile every grammar, then install all of them or none.

        Raises MultipleErrors carrying one diagnostic per grammar that failed.
        """
        compiled = []
        errors = []
        for name, source in grammars.items():
            try:
                compiled.append(compile_grammar(name, source, settings or self.settings))
            except GrammarCompileError as e:
                errors.append(e)
        if errors:
            debug_log(f"{len(errors)} of {len(grammars)} grammars failed to compile")
            raise MultipleErrors(errors)
        with self._lock:
            for program in compiled:
                self._programs[program.name] = program
        debug_log(f"Registered {len(compiled)} schemas")
        return compiled

    def lookup(self, name: str) -> Program:
        with self._lock:
            program = self._programs.get(name)
        if program is None:
            raise SchemaNotFound(
                f"No schema registered under {name!r}",
                schema_name=name,
                suggestion="Register the grammar before parsing with it",
            )
        return program

    def remove(self, name: str):
        with self._lock:
            if name not in self._programs:
                raise SchemaNotFound(f"No schema registered under {name!r}", schema_name=name)
            del self._programs[name]
        debug_log(f"Removed schema {name!r}")

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._programs)

    def clear(self):
        with self._lock:
            self._programs.clear()

    def __contains__(self, name):
        with self._lock:
            return name in self._programs

    def __len__(self):
        with self._lock:
            return len(self._programs)
