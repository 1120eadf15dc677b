"""Tokenizer for the Navacode language.

The lexer turns source text into a finite sequence of :class:`Token`
records ending with a single EOF token. It is a generator, so tokens are
produced lazily; calling :func:`iter_tokens` again restarts from scratch.
The first unrecognized character raises :class:`LexError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List

from .errors import LexError, Position

KEYWORD = 'KEYWORD'
IDENT = 'IDENT'
NUMBER = 'NUMBER'
OPERATOR = 'OPERATOR'
PUNCT = 'PUNCT'
EOF = 'EOF'

KEYWORDS = frozenset({
    'let', 'be', 'set', 'to', 'if', 'then', 'else', 'while', 'do', 'for',
    'from', 'step', 'define', 'function', 'with', 'as', 'return', 'end',
    'and', 'or', 'not', 'true', 'false',
})

# Two-character operators must be tried before their one-character prefixes.
TWO_CHAR_OPS = frozenset({'==', '!=', '<=', '>='})
SINGLE_CHAR_OPS = frozenset({'=', '<', '>', '+', '-', '*', '/'})
PUNCTUATION = frozenset({'(', ')', ','})

_DIGITS = '0123456789'
_IDENT_START = 'abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_'
_IDENT_CHARS = _IDENT_START + _DIGITS


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    value: Any
    line: int
    column: int

    @property
    def position(self) -> Position:
        return Position(self.line, self.column)

    def describe(self) -> str:
        """Human-readable form used in parser diagnostics."""
        if self.kind == EOF:
            return 'end of input'
        return repr(self.text)


def iter_tokens(source: str) -> Iterator[Token]:
    """Yield the tokens of `source`, finishing with an EOF token."""
    i = 0
    line = 1
    col = 1
    length = len(source)

    def advance(n: int = 1):
        nonlocal i, col, line
        for _ in range(n):
            if i < length and source[i] == '\n':
                line += 1
                col = 1
            else:
                col += 1
            i += 1

    while i < length:
        c = source[i]
        if c.isspace():
            advance()
            continue
        start_i = i
        start_line, start_col = line, col
        if c in _IDENT_START:
            while i < length and source[i] in _IDENT_CHARS:
                advance()
            text = source[start_i:i]
            kind = KEYWORD if text in KEYWORDS else IDENT
            yield Token(kind, text, None, start_line, start_col)
            continue
        if c in _DIGITS:
            while i < length and source[i] in _DIGITS:
                advance()
            is_float = False
            # A fraction needs at least one digit after the dot.
            if i + 1 < length and source[i] == '.' and source[i + 1] in _DIGITS:
                is_float = True
                advance()
                while i < length and source[i] in _DIGITS:
                    advance()
            text = source[start_i:i]
            value = float(text) if is_float else int(text)
            yield Token(NUMBER, text, value, start_line, start_col)
            continue
        pair = source[i:i + 2]
        if pair in TWO_CHAR_OPS:
            advance(2)
            yield Token(OPERATOR, pair, None, start_line, start_col)
            continue
        if c in SINGLE_CHAR_OPS:
            advance()
            yield Token(OPERATOR, c, None, start_line, start_col)
            continue
        if c in PUNCTUATION:
            advance()
            yield Token(PUNCT, c, None, start_line, start_col)
            continue
        raise LexError(f"unrecognized character {c!r}", Position(start_line, start_col))
    yield Token(EOF, '', None, line, col)


def tokenize(source: str) -> List[Token]:
    """Convert source code into a list of tokens."""
    return list(iter_tokens(source))
