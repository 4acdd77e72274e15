"""
Token Types for Ember Parser

Shared between lexer, cursor and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass, field
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    INT = auto()
    STRING = auto()
    IDENT = auto()
    TRUE = auto()
    FALSE = auto()

    # Keywords
    LET = auto()
    RETURN = auto()
    FUNCTION = auto()
    IF = auto()
    ELSE = auto()

    # Operators
    ASSIGN = auto()  # =
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    NEG = auto()  # !

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    GT = auto()

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    COLON = auto()
    SEMI = auto()

    # Special
    EOF = auto()


# Fixed lexemes, used for display of valueless tokens.
LEXEMES = {
    TT.TRUE: "true",
    TT.FALSE: "false",
    TT.LET: "let",
    TT.RETURN: "return",
    TT.FUNCTION: "fn",
    TT.IF: "if",
    TT.ELSE: "else",
    TT.ASSIGN: "=",
    TT.PLUS: "+",
    TT.MINUS: "-",
    TT.STAR: "*",
    TT.SLASH: "/",
    TT.NEG: "!",
    TT.EQ: "==",
    TT.NEQ: "!=",
    TT.LT: "<",
    TT.GT: ">",
    TT.LPAR: "(",
    TT.RPAR: ")",
    TT.LSQB: "[",
    TT.RSQB: "]",
    TT.LBRACE: "{",
    TT.RBRACE: "}",
    TT.COMMA: ",",
    TT.COLON: ":",
    TT.SEMI: ";",
    TT.EOF: "<eof>",
}


@dataclass(frozen=True)
class Tok:
    """Token with position info. Position does not take part in equality."""

    type: TT
    value: Any = None
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)

    @property
    def text(self) -> str:
        if self.type == TT.STRING:
            return f'"{self.value}"'
        if self.value is not None and self.type in (TT.IDENT, TT.INT):
            return str(self.value)
        return LEXEMES.get(self.type, self.type.name)

    def __str__(self):
        return self.text

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


def eof_token(line: int = 0, column: int = 0) -> Tok:
    return Tok(TT.EOF, None, line, column)
