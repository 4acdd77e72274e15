"""Token cursor: one token of lookahead over a token source."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Union

from typing_extensions import Protocol, TypeAlias

from .token_types import TT, Tok, eof_token

logger = logging.getLogger(__name__)


class TokenSource(Protocol):
    """Anything that hands out tokens on demand, repeating EOF once exhausted."""

    def next_token(self) -> Tok: ...


class TokenStream:
    """Adapt a plain token iterable to the TokenSource interface.

    The stream pads with EOF, so a list without a trailing EOF token is
    still safe to parse.
    """

    def __init__(self, tokens: Iterable[Tok]):
        self._it: Iterator[Tok] = iter(tokens)
        self._eof: Tok | None = None

    def next_token(self) -> Tok:
        if self._eof is not None:
            return self._eof

        tok = next(self._it, None)
        if tok is None:
            tok = eof_token()
        if tok.type == TT.EOF:
            self._eof = tok
        return tok


Tokens: TypeAlias = Union[TokenSource, Iterable[Tok]]


def as_source(tokens: Tokens) -> TokenSource:
    if hasattr(tokens, "next_token"):
        return tokens  # type: ignore[return-value]
    return TokenStream(tokens)  # type: ignore[arg-type]


class TokenCursor:
    """Holds the current and next token of a token source."""

    def __init__(self, tokens: Tokens):
        self._source = as_source(tokens)

        # Prime current and peek
        self._current = self._source.next_token()
        self._peek = self._source.next_token()

    @property
    def current(self) -> Tok:
        return self._current

    @property
    def peek(self) -> Tok:
        return self._peek

    def advance(self) -> Tok:
        """Shift peek into current and pull a fresh peek token.

        EOF is never advanced past: once current is EOF the cursor stays put.
        """
        prev = self._current
        if self._current.type == TT.EOF:
            return prev

        self._current = self._peek
        if self._peek.type != TT.EOF:
            self._peek = self._source.next_token()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self._current.type in types

    def peek_is(self, *types: TT) -> bool:
        """Check if the lookahead token matches any of the given types"""
        return self._peek.type in types

    def at_eof(self) -> bool:
        return self._current.type == TT.EOF

    def expect_peek(self, token_type: TT) -> bool:
        """Advance onto peek if it has the expected type.

        On mismatch nothing is consumed; the caller decides how to report it.
        """
        if self._peek.type == token_type:
            self.advance()
            return True

        logger.debug(
            "expected next token to be %s, got %r instead",
            token_type.name,
            self._peek,
        )
        return False
