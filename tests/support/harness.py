from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from ember_ref.lexer_rd import LexError, Lexer, tokenize
from ember_ref.parser_rd import (
    ErrorKind,
    ParseError,
    Precedence,
    parse,
    parse_expr_fragment,
    parse_source,
)
from ember_ref.token_types import TT, Tok
from ember_ref.tree import (
    CallExpression,
    Expression,
    ExpressionStatement,
    HashLiteral,
    Identifier,
    IfExpression,
    IndexExpression,
    InfixExpression,
    IntLiteral,
    Program,
    StringLiteral,
)

KEYWORDS = Lexer.KEYWORDS


@dataclass(frozen=True)
class ErrorCase:
    """Source that must fail to parse, with the expected diagnosis."""

    name: str
    source: str
    kind: ErrorKind
    msg: str
    expected: Optional[TT] = None


class CountingSource:
    """Token source over a fixed list that records how often it is pulled."""

    def __init__(self, tokens: Sequence[Tok]):
        self.tokens = list(tokens)
        self.pos = 0
        self.pulls = 0

    def next_token(self) -> Tok:
        self.pulls += 1
        if self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            self.pos += 1
            return tok
        return Tok(TT.EOF)


def toks(*types: TT) -> List[Tok]:
    return [Tok(t) for t in types]


def ident(name: str) -> Tok:
    return Tok(TT.IDENT, name)


def int_tok(value: int) -> Tok:
    return Tok(TT.INT, value)


def parse_program(code: str) -> Program:
    program = parse_source(code)
    assert isinstance(program, Program)
    return program


def single_expr(code: str) -> Expression:
    """Parse *code*, requiring exactly one expression statement."""
    program = parse_program(code)
    assert len(program.statements) == 1, f"expected 1 statement, got {program}"

    stmt = program.statements[0]
    assert isinstance(stmt, ExpressionStatement), f"not an expression: {stmt!r}"
    return stmt.expression


def expect_parse_error(code: str) -> ParseError:
    with pytest.raises(ParseError) as exc_info:
        parse_source(code)
    return exc_info.value


def check_infix(expr: Expression, left: object, op: TT, right: object) -> Optional[str]:
    """Compare an infix node whose operands are plain literals or names."""
    if not isinstance(expr, InfixExpression):
        return f"expected infix, got {type(expr).__name__}"
    if expr.operator.type != op:
        return f"expected operator {op.name}, got {expr.operator.type.name}"

    for side, want in (("left", left), ("right", right)):
        node = getattr(expr, side)
        err = check_leaf(node, want)
        if err is not None:
            return f"{side}: {err}"
    return None


def check_leaf(node: Expression, want: object) -> Optional[str]:
    if isinstance(want, bool):
        got = getattr(node, "value", None)
        return None if got is want else f"expected bool {want}, got {node!r}"
    if isinstance(want, int):
        if not isinstance(node, IntLiteral) or node.value != want:
            return f"expected int {want}, got {node!r}"
        return None
    if isinstance(want, str):
        if not isinstance(node, Identifier) or node.ident.name != want:
            return f"expected identifier {want}, got {node!r}"
        return None
    return f"unsupported expectation {want!r}"


def check_call_index_chain(expr: Expression) -> Optional[str]:
    """f(1, 2)[0]"""
    if not isinstance(expr, IndexExpression):
        return "index node missing"
    call = expr.left
    if not isinstance(call, CallExpression):
        return "call is not the indexed container"
    if check_leaf(call.function, "f") is not None:
        return "callee mismatch"
    args = [a.value for a in call.arguments if isinstance(a, IntLiteral)]
    if args != [1, 2]:
        return f"unexpected args {args}"
    return check_leaf(expr.index, 0)


def check_if_else(expr: Expression) -> Optional[str]:
    if not isinstance(expr, IfExpression):
        return "if node missing"
    if check_infix(expr.condition, "x", TT.LT, "y") is not None:
        return "condition mismatch"
    if len(expr.consequence) != 1 or len(expr.alternative) != 1:
        return "branch sizes mismatch"
    return None


def check_hash_order(expr: Expression) -> Optional[str]:
    if not isinstance(expr, HashLiteral):
        return "hash node missing"
    keys = [k.value for k, _ in expr.pairs if isinstance(k, StringLiteral)]
    if keys != ["one", "two", "three"]:
        return f"keys out of source order: {keys}"
    values = [v.value for _, v in expr.pairs if isinstance(v, IntLiteral)]
    if values != [1, 2, 3]:
        return f"unexpected values {values}"
    return None
