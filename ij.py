import argparse
import json
import os
import sys

from instant_json.config import load_settings, resolve_settings
from instant_json.engine import InstantJson
from instant_json.errors import InstantJsonError
from instant_json.grammar import GRAMMARS
from instant_json.introspection import describe_schema, missing_tags
from instant_json.log import log, set_verbose

DEFAULT_GRAMMAR = "json"


def read_source(filepath):
    """Read a file, or stdin when filepath is None or '-'."""
    if filepath is None or filepath == "-":
        return sys.stdin.read()
    if not os.path.exists(filepath):
        print(f"Error: File '{filepath}' not found.", file=sys.stderr)
        sys.exit(1)
    with open(filepath, 'r') as f:
        return f.read()


def grammar_source(grammar):
    """A bundled grammar name or a path to a .lark file."""
    if grammar in GRAMMARS:
        return GRAMMARS[grammar]
    return read_source(grammar)


def schema_name(grammar):
    return os.path.splitext(os.path.basename(grammar))[0]


def make_engine(args):
    settings = load_settings(args.config)
    overrides = {}
    if getattr(args, "parser", None):
        overrides["parser"] = args.parser
    if getattr(args, "strict", False):
        overrides["strict_tags"] = True
    return InstantJson(resolve_settings(settings, **overrides))


def cmd_parse(args):
    engine = make_engine(args)
    name = schema_name(args.grammar)
    engine.register(name, grammar_source(args.grammar))
    text = read_source(args.filename)
    if args.native:
        print(json.dumps(engine.parse_native(name, text), indent=2))
    else:
        print(engine.parse_json(name, text))


def cmd_check(args):
    engine = make_engine(args)
    grammars = {schema_name(g): grammar_source(g) for g in args.grammars}
    programs = engine.register_all(grammars)
    for program in programs:
        missing = missing_tags(program)
        if missing:
            log(f"{program.name}: compiled, but never produces: {', '.join(missing)}")
        else:
            log(f"{program.name}: OK")


def cmd_rules(args):
    engine = make_engine(args)
    program = engine.register(schema_name(args.grammar), grammar_source(args.grammar))
    for rule in describe_schema(program):
        print(f"{rule['rule']:<24} {rule['role']:<10} {rule['tag']}")


def main():
    parser = argparse.ArgumentParser(description="Instant JSON CLI")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    parser.add_argument("--config", help="Settings file (default: instant_json.json, then ~/.instant_json/config.json)")
    subparsers = parser.add_subparsers(dest="command")

    parse = subparsers.add_parser("parse", help="Parse a document with a grammar")
    parse.add_argument("filename", nargs="?", default="-", help="Document to parse (default: read from stdin)")
    parse.add_argument("--grammar", default=DEFAULT_GRAMMAR, help="Bundled grammar name or .lark file (default: json)")
    parse.add_argument("--parser", choices=["earley", "lalr"], help="Override the configured Lark parser")
    parse.add_argument("--strict", action="store_true", help="Reject rules outside the tag contract")
    parse.add_argument("--native", action="store_true", help="Pretty-print through the host JSON encoder")

    check = subparsers.add_parser("check", help="Compile grammars and report every failure")
    check.add_argument("grammars", nargs="+")

    rules = subparsers.add_parser("rules", help="Show how each grammar rule is reduced")
    rules.add_argument("grammar")

    args = parser.parse_args()
    set_verbose(args.verbose)

    handlers = {"parse": cmd_parse, "check": cmd_check, "rules": cmd_rules}
    if args.command not in handlers:
        parser.print_help()
        return
    try:
        handlers[args.command](args)
    except InstantJsonError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
