"""
Lexer for Ember - Recursive Descent Parser

Tokenizes Ember source code into a stream of tokens.

Features:
- On-demand scanning (one token per next_token() call)
- Position tracking (line, column)
- EOF is sticky: once reached it is returned on every later call
"""

from typing import List

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(Exception):
    """Lexical analysis error"""
    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}")


class Lexer:
    """
    Ember lexer.

    Produces tokens lazily so the parser's cursor can pull them one at a
    time. Whitespace, including newlines, is insignificant.
    """

    # Keyword mapping
    KEYWORDS = {
        'let': TT.LET,
        'return': TT.RETURN,
        'fn': TT.FUNCTION,
        'function': TT.FUNCTION,
        'if': TT.IF,
        'else': TT.ELSE,
        'true': TT.TRUE,
        'false': TT.FALSE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NEG),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        (',', TT.COMMA),
        (':', TT.COLON),
        (';', TT.SEMI),
    ]

    ESCAPES = {
        'n': '\n',
        't': '\t',
        'r': '\r',
        '"': '"',
        '\\': '\\',
    }

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

        # Start of the token being scanned
        self.tok_line = 1
        self.tok_column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def next_token(self) -> Tok:
        """Scan and return the next token, or EOF once input is exhausted"""
        self.skip_trivia()

        self.tok_line = self.line
        self.tok_column = self.column

        if self.pos >= len(self.source):
            return self.emit(TT.EOF, None)

        ch = self.peek()

        # String literals
        if ch == '"':
            return self.scan_string()

        # Numbers
        if ch.isascii() and ch.isdigit():
            return self.scan_number()

        # Identifiers and keywords
        if ch.isalpha() or ch == '_':
            return self.scan_identifier()

        # Operators and punctuation
        return self.scan_operator()

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list ending in EOF"""
        tokens = []
        while True:
            tok = self.next_token()
            tokens.append(tok)
            if tok.type == TT.EOF:
                return tokens

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self) -> Tok:
        """Scan string literal: "..." """
        self.advance()  # Opening quote
        value = ''

        while self.pos < len(self.source) and self.peek() != '"':
            if self.peek() == '\\':
                self.advance()
                if self.pos >= len(self.source):
                    break
                esc = self.advance()
                if esc not in self.ESCAPES:
                    raise LexError(f"Unknown escape sequence '\\{esc}'", self.line, self.column - 2)
                value += self.ESCAPES[esc]
            else:
                ch = self.advance()
                value += ch
                if ch == '\n':
                    self.line += 1
                    self.column = 1

        if self.pos >= len(self.source):
            raise LexError("Unterminated string", self.tok_line, self.tok_column)

        self.advance()  # Closing quote
        return self.emit(TT.STRING, value)

    def scan_number(self) -> Tok:
        """Scan integer literal"""
        value = ''
        while self.peek().isascii() and self.peek().isdigit():
            value += self.advance()

        if self.peek().isalpha() or self.peek() == '_':
            raise LexError("Invalid number suffix", self.tok_line, self.tok_column)

        return self.emit(TT.INT, int(value))

    def scan_identifier(self) -> Tok:
        """Scan identifier or keyword"""
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        # Check if keyword
        token_type = self.KEYWORDS.get(value)
        if token_type is None:
            return self.emit(TT.IDENT, value)
        return self.emit(token_type, None)

    def scan_operator(self) -> Tok:
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                return self.emit(op_type, None)

        ch = self.peek()
        raise LexError(f"Unexpected character '{ch}'", self.line, self.column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            self.column += 1
        return result

    def skip_trivia(self):
        """Skip whitespace, newlines and comments"""
        while self.pos < len(self.source):
            ch = self.peek()
            if ch in (' ', '\t', '\r'):
                self.advance()
            elif ch == '\n':
                self.advance()
                self.line += 1
                self.column = 1
            elif ch == '#' or (ch == '/' and self.peek(1) == '/'):
                self.skip_comment()
            else:
                return

    def skip_comment(self):
        """Skip comment until end of line"""
        while self.peek() not in ('\n', '\0'):
            self.advance()

    def emit(self, token_type: TT, value) -> Tok:
        """Build a token positioned at the start of the current scan"""
        return Tok(
            type=token_type,
            value=value,
            line=self.tok_line,
            column=self.tok_column,
        )


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
