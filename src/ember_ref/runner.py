from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

from .lexer_rd import LexError, tokenize
from .parser_rd import ParseError, parse_expr_fragment, parse_source
from .tree import to_lark
from .utils import configure_logging

USAGE = "usage: ember-parse [--debug] [--tokens | --expr] [FILE | - | SOURCE]"


def render(source: str, mode: str = "program") -> str:
    """Parse *source* and return the printable dump for *mode*."""
    if mode == "tokens":
        return "\n".join(repr(tok) for tok in tokenize(source))

    if mode == "expr":
        node = parse_expr_fragment(source)
    else:
        node = parse_source(source)

    tree = to_lark(node)
    if hasattr(tree, "pretty"):
        return tree.pretty().rstrip("\n")
    return f"{tree.type}\t{tree.value!r}"


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.exists():
        return candidate.read_text(encoding="utf-8")

    return arg


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    mode = "program"
    debug = False
    arg = None

    for token in args:
        if token == "--debug":
            debug = True
            continue

        if token == "--tokens":
            mode = "tokens"
            continue

        if token == "--expr":
            mode = "expr"
            continue

        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        if token.startswith("--"):
            raise SystemExit(f"Unknown flag: {token}\n{USAGE}")

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    configure_logging(debug)
    source = _load_source(arg or "-")

    try:
        print(render(source, mode))
    except (ParseError, LexError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
