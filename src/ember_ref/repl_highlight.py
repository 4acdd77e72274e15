"""prompt_toolkit lexer for live Ember syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as EmberLexer, LexError
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "operator": "",
    "punctuation": "",
}

_KEYWORDS = {TT.LET, TT.RETURN, TT.FUNCTION, TT.IF, TT.ELSE}
_OPERATORS = {
    TT.ASSIGN, TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.NEG,
    TT.EQ, TT.NEQ, TT.LT, TT.GT,
}


def token_group(tok: Tok, next_tok: Tok) -> str:
    """Highlight group for *tok*; identifiers followed by '(' are calls."""
    if tok.type in _KEYWORDS:
        return "keyword"
    if tok.type in (TT.TRUE, TT.FALSE):
        return "boolean"
    if tok.type == TT.INT:
        return "number"
    if tok.type == TT.STRING:
        return "string"
    if tok.type == TT.IDENT:
        return "function" if next_tok.type == TT.LPAR else "identifier"
    if tok.type in _OPERATORS:
        return "operator"
    return "punctuation"


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = EmberLexer(text).tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for tok, next_tok in zip(tokens, tokens[1:]):
        # Columns are 1-based and a single line never wraps.
        start = tok.column - 1
        end = _token_end(text, tok)

        if start > pos:
            result.append(("", text[pos:start]))

        style = GROUP_STYLE.get(token_group(tok, next_tok), "")
        result.append((style, text[start:end]))
        pos = end

    # Trailing unstyled text (comments, whitespace).
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


def _token_end(text: str, tok: Tok) -> int:
    """Offset just past *tok* in *text*."""
    start = tok.column - 1
    if tok.type == TT.STRING:
        # Escapes make the source longer than the value; find the closing quote.
        idx = start + 1
        while idx < len(text) and text[idx] != '"':
            idx += 2 if text[idx] == "\\" else 1
        return min(idx + 1, len(text))

    if tok.type == TT.IDENT or tok.type == TT.INT:
        return start + len(str(tok.value))

    idx = start
    while idx < len(text) and (text[idx].isalnum() or text[idx] == "_"):
        idx += 1
    if idx > start:
        return idx  # keyword
    return start + len(tok.text)


class EmberHighlighter(Lexer):
    """prompt_toolkit Lexer that highlights Ember source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
