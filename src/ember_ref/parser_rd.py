"""
Recursive Descent Parser for Ember

Structure:
- Lexer: Token stream from source (lexer_rd)
- Cursor: current/peek lookahead over the stream (cursor)
- Parser: Recursive descent for statements, Pratt parsing for expressions
- AST: Frozen dataclasses (tree)
"""

from __future__ import annotations

import logging
from enum import Enum, IntEnum, auto
from typing import List, Optional, Tuple

from .cursor import TokenCursor, Tokens
from .token_types import TT, Tok
from .tree import (
    ArrayLiteral,
    Block,
    BoolLiteral,
    CallExpression,
    Expression,
    ExpressionStatement,
    FunctionExpression,
    HashLiteral,
    Ident,
    Identifier,
    IfExpression,
    IndexExpression,
    InfixExpression,
    IntLiteral,
    LetStatement,
    PrefixExpression,
    Program,
    ReturnStatement,
    Statement,
    StringLiteral,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Errors
# ============================================================================

class ErrorKind(Enum):
    UNEXPECTED_TOKEN = auto()
    NO_PREFIX_RULE = auto()
    MALFORMED_PREFIX = auto()
    MALFORMED_IDENT = auto()
    MALFORMED_AGGREGATE = auto()
    UNTERMINATED = auto()


class ParseError(Exception):
    """Parse error with position info"""
    def __init__(
        self,
        message: str,
        token: Optional[Tok] = None,
        kind: ErrorKind = ErrorKind.UNEXPECTED_TOKEN,
        expected: Optional[TT] = None,
    ):
        self.message = message
        self.token = token
        self.kind = kind
        self.expected = expected
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}"
            if token and token.line else message
        )

# ============================================================================
# Precedence
# ============================================================================

class Precedence(IntEnum):
    LOWEST = auto()
    EQUALS = auto()       # == !=
    LESSGREATER = auto()  # < >
    SUM = auto()          # + -
    PRODUCT = auto()      # * /
    PREFIX = auto()       # !x
    NEGATE = auto()       # -x
    CALL = auto()         # f(x) a[i]

    @classmethod
    def of(cls, tok: Tok) -> Precedence:
        """Binding power of *tok* in infix position; LOWEST if it has none"""
        return PRECEDENCES.get(tok.type, cls.LOWEST)


PRECEDENCES = {
    TT.EQ: Precedence.EQUALS,
    TT.NEQ: Precedence.EQUALS,
    TT.LT: Precedence.LESSGREATER,
    TT.GT: Precedence.LESSGREATER,
    TT.PLUS: Precedence.SUM,
    TT.MINUS: Precedence.SUM,
    TT.STAR: Precedence.PRODUCT,
    TT.SLASH: Precedence.PRODUCT,
    TT.LPAR: Precedence.CALL,
    TT.LSQB: Precedence.CALL,
}

BINARY_OPS = {TT.EQ, TT.NEQ, TT.LT, TT.GT, TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH}

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Recursive descent parser for Ember.

    Expression precedence (lowest to highest):
    1. equality (==, !=)
    2. comparison (<, >)
    3. add (+, -)
    4. mul (*, /)
    5. prefix (!)
    6. negation (-)
    7. postfix (call, index)

    Routines are entered with the first token of their construct as the
    cursor's current token and return with the last token of it current.
    """

    def __init__(self, tokens: Tokens):
        self.cursor = TokenCursor(tokens)

    # ========================================================================
    # Token Navigation
    # ========================================================================

    @property
    def current(self) -> Tok:
        return self.cursor.current

    @property
    def peek(self) -> Tok:
        return self.cursor.peek

    def advance(self) -> Tok:
        return self.cursor.advance()

    def expect_peek(self, token_type: TT, message: str) -> Tok:
        """Step onto the next token if it has the expected type, else raise"""
        if not self.cursor.expect_peek(token_type):
            kind = ErrorKind.UNEXPECTED_TOKEN
            if self.peek.type == TT.EOF:
                kind = ErrorKind.UNTERMINATED
            raise ParseError(
                f"{message} got {self.peek} instead",
                self.peek,
                kind=kind,
                expected=token_type,
            )
        return self.current

    def skip_semi(self):
        """Consume an optional trailing ';'"""
        if self.cursor.peek_is(TT.SEMI):
            self.advance()

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Program:
        """Parse entire program"""
        stmts: List[Statement] = []

        while not self.cursor.at_eof():
            stmts.append(self.parse_statement())
            self.advance()

        logger.debug("parsed program with %d statements", len(stmts))
        return Program(tuple(stmts))

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Statement:
        if self.cursor.check(TT.LET):
            return self.parse_let_stmt()
        if self.cursor.check(TT.RETURN):
            return self.parse_return_stmt()
        return self.parse_expr_stmt()

    def parse_let_stmt(self) -> LetStatement:
        """let <ident> = <expr> [;]"""
        if not self.cursor.expect_peek(TT.IDENT):
            raise ParseError(
                f"expected identifier after 'let', got {self.peek}",
                self.peek,
                kind=ErrorKind.MALFORMED_IDENT,
                expected=TT.IDENT,
            )
        name = self.parse_ident()

        self.expect_peek(TT.ASSIGN, f"expected '=' after 'let {name}',")
        self.advance()

        value = self.parse_expression(Precedence.LOWEST)
        self.skip_semi()
        return LetStatement(name, value)

    def parse_return_stmt(self) -> ReturnStatement:
        """return <expr> [;]"""
        self.advance()

        value = self.parse_expression(Precedence.LOWEST)
        self.skip_semi()
        return ReturnStatement(value)

    def parse_expr_stmt(self) -> ExpressionStatement:
        expr = self.parse_expression(Precedence.LOWEST)
        self.skip_semi()
        return ExpressionStatement(expr)

    def parse_block(self) -> Block:
        """
        Parse statements up to the closing brace.

        Entered with '{' current; returns with the matching '}' current.
        """
        open_tok = self.advance()

        stmts: List[Statement] = []
        while not self.cursor.check(TT.RBRACE):
            if self.cursor.at_eof():
                raise ParseError(
                    f"unterminated block opened at line {open_tok.line}, col {open_tok.column}",
                    self.current,
                    kind=ErrorKind.UNTERMINATED,
                    expected=TT.RBRACE,
                )
            stmts.append(self.parse_statement())
            self.advance()

        return tuple(stmts)

    def parse_ident(self) -> Ident:
        if not self.cursor.check(TT.IDENT):
            raise ParseError(
                f"expected identifier, got {self.current}",
                self.current,
                kind=ErrorKind.MALFORMED_IDENT,
                expected=TT.IDENT,
            )
        return Ident(self.current.value)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expression(self, precedence: Precedence) -> Expression:
        """
        Pratt loop: one prefix rule for the current token, then infix rules
        for as long as the next operator binds tighter than *precedence*.
        """
        left = self.parse_prefix(precedence)

        while (
            not self.cursor.peek_is(TT.SEMI)
            and precedence < Precedence.of(self.peek)
        ):
            self.advance()

            if self.cursor.check(*BINARY_OPS):
                left = self.parse_infix_expr(left)
            elif self.cursor.check(TT.LPAR):
                left = self.parse_call_expr(left)
            elif self.cursor.check(TT.LSQB):
                left = self.parse_index_expr(left)
            else:
                return left

        return left

    def parse_prefix(self, precedence: Precedence) -> Expression:
        tok = self.current

        match tok.type:
            case TT.IDENT:
                return Identifier(self.parse_ident())
            case TT.INT:
                return IntLiteral(tok.value)
            case TT.TRUE:
                return BoolLiteral(True)
            case TT.FALSE:
                return BoolLiteral(False)
            case TT.STRING:
                return StringLiteral(tok.value)
            case TT.NEG | TT.MINUS:
                if precedence > Precedence.PREFIX:
                    raise ParseError(
                        f"'(' expected after prefix '{tok}'",
                        tok,
                        kind=ErrorKind.MALFORMED_PREFIX,
                    )
                return self.parse_prefix_expr()
            case TT.LPAR:
                return self.parse_grouped_expr()
            case TT.IF:
                return self.parse_if_expr()
            case TT.FUNCTION:
                return self.parse_fn_literal()
            case TT.LSQB:
                return self.parse_array_literal()
            case TT.LBRACE:
                return self.parse_hash_literal()
            case TT.EOF:
                raise ParseError(
                    "unexpected end of input",
                    tok,
                    kind=ErrorKind.UNTERMINATED,
                )
            case _:
                raise ParseError(
                    f"no prefix parse rule for {tok}",
                    tok,
                    kind=ErrorKind.NO_PREFIX_RULE,
                )

    def parse_prefix_expr(self) -> PrefixExpression:
        """Parse unary operators: -expr, !expr"""
        op = self.advance()

        # Unary minus binds one level tighter than '!'
        precedence = Precedence.NEGATE if op.type == TT.MINUS else Precedence.PREFIX
        right = self.parse_expression(precedence)
        return PrefixExpression(op, right)

    def parse_infix_expr(self, left: Expression) -> InfixExpression:
        # Right operand at the operator's own level keeps it left-associative
        op = self.advance()
        right = self.parse_expression(Precedence.of(op))
        return InfixExpression(left, op, right)

    def parse_grouped_expr(self) -> Expression:
        """( expr )"""
        self.advance()
        expr = self.parse_expression(Precedence.LOWEST)
        self.expect_peek(TT.RPAR, "expected ')' to close group,")
        return expr

    def parse_if_expr(self) -> IfExpression:
        """
        Parse conditional expression:
        if (cond) { body } [else { body }]
        """
        self.expect_peek(TT.LPAR, "expected '(' after 'if',")
        self.advance()
        condition = self.parse_expression(Precedence.LOWEST)

        self.expect_peek(TT.RPAR, "expected ')' after if condition,")
        self.expect_peek(TT.LBRACE, "expected '{' to open if body,")
        consequence = self.parse_block()

        alternative: Block = ()
        if self.cursor.peek_is(TT.ELSE):
            self.advance()
            self.expect_peek(TT.LBRACE, "expected '{' after 'else',")
            alternative = self.parse_block()

        return IfExpression(condition, consequence, alternative)

    def parse_fn_literal(self) -> FunctionExpression:
        """fn (params) { body }"""
        self.expect_peek(TT.LPAR, "expected '(' after 'fn',")
        params = self.parse_param_list()

        self.expect_peek(TT.LBRACE, "expected '{' to open function body,")
        body = self.parse_block()
        return FunctionExpression(params, body)

    def parse_param_list(self) -> Tuple[Ident, ...]:
        """
        Parse function parameters: ident, ident, ...

        Entered with '(' current; returns with ')' current.
        """
        params: List[Ident] = []
        if self.cursor.peek_is(TT.RPAR):
            self.advance()
            return ()

        self.advance()
        params.append(self.parse_ident())

        while self.cursor.peek_is(TT.COMMA):
            self.advance()  # ,
            self.advance()
            params.append(self.parse_ident())

        self.expect_peek(TT.RPAR, "expected ')' after function parameters,")
        return tuple(params)

    def parse_array_literal(self) -> ArrayLiteral:
        """[ expr, expr, ... ]"""
        elements = self.parse_expr_list(TT.RSQB)
        self.expect_peek(TT.RSQB, "expected ']' to close array,")
        return ArrayLiteral(elements)

    def parse_hash_literal(self) -> HashLiteral:
        """{ key: value, key: value, ... }"""
        open_tok = self.current
        pairs: List[Tuple[Expression, Expression]] = []

        while not self.cursor.peek_is(TT.RBRACE):
            if self.cursor.peek_is(TT.EOF):
                raise ParseError(
                    f"unterminated hash literal opened at line {open_tok.line}, col {open_tok.column}",
                    self.peek,
                    kind=ErrorKind.UNTERMINATED,
                    expected=TT.RBRACE,
                )
            if pairs:
                self.advance()  # ,

            self.advance()
            key = self.parse_expression(Precedence.LOWEST)

            if not self.cursor.expect_peek(TT.COLON):
                kind = ErrorKind.MALFORMED_AGGREGATE
                if self.cursor.peek_is(TT.EOF):
                    kind = ErrorKind.UNTERMINATED
                raise ParseError(
                    f"expected ':' after hash key, got {self.peek}",
                    self.peek,
                    kind=kind,
                    expected=TT.COLON,
                )

            self.advance()
            value = self.parse_expression(Precedence.LOWEST)
            pairs.append((key, value))

            if not self.cursor.peek_is(TT.RBRACE, TT.COMMA):
                kind = ErrorKind.MALFORMED_AGGREGATE
                if self.cursor.peek_is(TT.EOF):
                    kind = ErrorKind.UNTERMINATED
                raise ParseError(
                    f"expected '}}' or ',' after hash entry, got {self.peek}",
                    self.peek,
                    kind=kind,
                )

        self.expect_peek(TT.RBRACE, "expected '}' to close hash,")
        return HashLiteral(tuple(pairs))

    def parse_expr_list(self, end: TT) -> Tuple[Expression, ...]:
        """
        Parse comma-separated expressions up to (not including) *end*.

        The caller consumes the terminator.
        """
        if self.cursor.peek_is(end):
            return ()

        self.advance()
        items = [self.parse_expression(Precedence.LOWEST)]

        while self.cursor.peek_is(TT.COMMA):
            self.advance()  # ,
            self.advance()
            items.append(self.parse_expression(Precedence.LOWEST))

        return tuple(items)

    def parse_call_expr(self, function: Expression) -> CallExpression:
        """callee(args)"""
        args = self.parse_expr_list(TT.RPAR)
        self.expect_peek(TT.RPAR, "expected ')' to close call arguments,")
        return CallExpression(function, args)

    def parse_index_expr(self, left: Expression) -> IndexExpression:
        """container[index]"""
        self.advance()
        index = self.parse_expression(Precedence.LOWEST)
        self.expect_peek(TT.RSQB, "expected ']' to close index,")
        return IndexExpression(left, index)

# ============================================================================
# Entry Points
# ============================================================================

def parse(tokens: Tokens) -> Program:
    """
    Parse a token source into a Program.

    Raises ParseError for the first syntax error; nothing partial is returned.
    """
    return Parser(tokens).parse()


def parse_source(source: str) -> Program:
    """Tokenize and parse Ember source code"""
    from .lexer_rd import Lexer

    return parse(Lexer(source))


def parse_expr_fragment(source: str) -> Expression:
    """
    Parse a standalone expression fragment.
    The whole fragment must be a single expression.
    """
    from .lexer_rd import Lexer

    parser = Parser(Lexer(source))
    expr = parser.parse_expression(Precedence.LOWEST)

    # Ensure we've consumed the entire fragment
    if not parser.cursor.peek_is(TT.EOF):
        raise ParseError("unexpected tokens after expression fragment", parser.peek)
    return expr
