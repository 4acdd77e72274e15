"""AST node classes produced by the Ember parser.

Nodes are frozen dataclasses; child sequences are tuples so a finished tree
cannot be mutated or share structure by accident. ``str(node)`` renders the
node back to fully parenthesized source, and :func:`to_lark` converts a tree
into Lark's ``Tree``/``Token`` shape for ``pretty()`` printing.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Tuple, Union

from lark import Token as LarkToken, Tree as LarkTree
from typing_extensions import TypeAlias

from .token_types import Tok

# Inverse of the lexer's escape table
_STRING_ESCAPES = str.maketrans({
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
})


@dataclass(frozen=True)
class Ident:
    name: str

    def __str__(self) -> str:
        return self.name


# ============================================================================
# Expressions
# ============================================================================

@dataclass(frozen=True)
class Identifier:
    ident: Ident

    def __str__(self) -> str:
        return str(self.ident)


@dataclass(frozen=True)
class IntLiteral:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class BoolLiteral:
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class StringLiteral:
    value: str

    def __str__(self) -> str:
        return f'"{self.value.translate(_STRING_ESCAPES)}"'


@dataclass(frozen=True)
class PrefixExpression:
    operator: Tok
    right: Expression

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


@dataclass(frozen=True)
class InfixExpression:
    left: Expression
    operator: Tok
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class IfExpression:
    condition: Expression
    consequence: Block
    alternative: Block = ()

    def __str__(self) -> str:
        text = f"if {self.condition} {_block_str(self.consequence)}"
        if self.alternative:
            text += f" else {_block_str(self.alternative)}"
        return text


@dataclass(frozen=True)
class FunctionExpression:
    parameters: Tuple[Ident, ...]
    body: Block

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {_block_str(self.body)}"


@dataclass(frozen=True)
class CallExpression:
    function: Expression
    arguments: Tuple[Expression, ...]

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.function}({args})"


@dataclass(frozen=True)
class ArrayLiteral:
    elements: Tuple[Expression, ...]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass(frozen=True)
class IndexExpression:
    left: Expression
    index: Expression

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


@dataclass(frozen=True)
class HashLiteral:
    # Pair order follows the source so output is reproducible
    pairs: Tuple[Tuple[Expression, Expression], ...]

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.pairs) + "}"


Expression: TypeAlias = Union[
    Identifier,
    IntLiteral,
    BoolLiteral,
    StringLiteral,
    PrefixExpression,
    InfixExpression,
    IfExpression,
    FunctionExpression,
    CallExpression,
    ArrayLiteral,
    IndexExpression,
    HashLiteral,
]


# ============================================================================
# Statements
# ============================================================================

@dataclass(frozen=True)
class LetStatement:
    name: Ident
    value: Expression

    def __str__(self) -> str:
        return f"let {self.name} = {self.value};"


@dataclass(frozen=True)
class ReturnStatement:
    value: Expression

    def __str__(self) -> str:
        return f"return {self.value};"


@dataclass(frozen=True)
class ExpressionStatement:
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)


Statement: TypeAlias = Union[LetStatement, ReturnStatement, ExpressionStatement]
Block: TypeAlias = Tuple[Statement, ...]
Node: TypeAlias = Union[Expression, Statement, "Program"]


@dataclass(frozen=True)
class Program:
    statements: Tuple[Statement, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self.statements)


def _block_str(block: Block) -> str:
    if not block:
        return "{ }"
    return "{ " + " ".join(str(s) for s in block) + " }"


# ============================================================================
# Traversal
# ============================================================================

def children(node: Node) -> List[Node]:
    """Direct AST children of *node*, in source order."""
    match node:
        case Program(statements):
            return list(statements)
        case LetStatement(_, value):
            return [value]
        case ReturnStatement(value):
            return [value]
        case ExpressionStatement(expression):
            return [expression]
        case PrefixExpression(_, right):
            return [right]
        case InfixExpression(left, _, right):
            return [left, right]
        case IfExpression(condition, consequence, alternative):
            return [condition, *consequence, *alternative]
        case FunctionExpression(_, body):
            return list(body)
        case CallExpression(function, arguments):
            return [function, *arguments]
        case ArrayLiteral(elements):
            return list(elements)
        case IndexExpression(left, index):
            return [left, index]
        case HashLiteral(pairs):
            return [part for pair in pairs for part in pair]
        case _:
            return []


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal of *node* and all of its descendants."""
    yield node
    for child in children(node):
        yield from walk(child)


# ============================================================================
# Lark rendering
# ============================================================================

def _op_token(tok: Tok) -> LarkToken:
    return LarkToken(tok.type.name, tok.text)


def _block_tree(label: str, block: Block) -> LarkTree:
    return LarkTree(label, [to_lark(s) for s in block])


def to_lark(node: Node) -> Union[LarkTree, LarkToken]:
    """Convert an AST node into Lark's Tree/Token shape.

    Leaves (identifiers and literals) become tokens, everything else a tree
    labelled after the construct, so ``to_lark(program).pretty()`` gives a
    readable dump.
    """
    match node:
        case Program(statements):
            return LarkTree('program', [to_lark(s) for s in statements])
        case LetStatement(name, value):
            return LarkTree('let', [LarkToken('IDENT', name.name), to_lark(value)])
        case ReturnStatement(value):
            return LarkTree('return', [to_lark(value)])
        case ExpressionStatement(expression):
            return LarkTree('expr_stmt', [to_lark(expression)])
        case Identifier(ident):
            return LarkToken('IDENT', ident.name)
        case IntLiteral(value):
            return LarkToken('INT', str(value))
        case BoolLiteral(value):
            return LarkToken('TRUE', 'true') if value else LarkToken('FALSE', 'false')
        case StringLiteral(value):
            return LarkToken('STRING', value)
        case PrefixExpression(operator, right):
            return LarkTree('prefix', [_op_token(operator), to_lark(right)])
        case InfixExpression(left, operator, right):
            return LarkTree('infix', [to_lark(left), _op_token(operator), to_lark(right)])
        case IfExpression(condition, consequence, alternative):
            return LarkTree('if', [
                to_lark(condition),
                _block_tree('consequence', consequence),
                _block_tree('alternative', alternative),
            ])
        case FunctionExpression(parameters, body):
            params = LarkTree('params', [LarkToken('IDENT', p.name) for p in parameters])
            return LarkTree('fn', [params, _block_tree('body', body)])
        case CallExpression(function, arguments):
            args = LarkTree('args', [to_lark(a) for a in arguments])
            return LarkTree('call', [to_lark(function), args])
        case ArrayLiteral(elements):
            return LarkTree('array', [to_lark(e) for e in elements])
        case IndexExpression(left, index):
            return LarkTree('index', [to_lark(left), to_lark(index)])
        case HashLiteral(pairs):
            return LarkTree('hash', [
                LarkTree('pair', [to_lark(k), to_lark(v)]) for k, v in pairs
            ])
        case _:
            raise TypeError(f"not an AST node: {node!r}")
