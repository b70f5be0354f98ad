"""
Converts expression text into a flat list of tokens.

The lexer knows nothing about functions or variables: an identifier is any
run of letters (including non-ASCII letters such as Greek symbols) or
underscores. Numbers are digit runs with at most one decimal point.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from mexpr.mexpr_errors import LexError

NUMBER = 'number'
IDENT = 'ident'
OPERATOR = 'operator'
LPAREN = 'lparen'
RPAREN = 'rparen'
COMMA = 'comma'

DIGITS = '0123456789'

# Alternate spellings map onto the canonical operator symbol.
OPERATORS: Dict[str, str] = {
    '+': '+',
    '-': '-',
    '*': '*',
    '×': '*',
    '/': '/',
    '÷': '/',
    '^': '^',
    '±': '±',
    '!': '!',
    '%': '%',
}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    line: int = 1
    col: int = 1

    @property
    def loc(self) -> Dict[str, Any]:
        return {'pos': self.pos, 'line': self.line, 'col': self.col, 'text': self.text}

    def is_op(self, *symbols: str) -> bool:
        return self.kind == OPERATOR and self.text in symbols

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.text!r}, pos={self.pos})"


def _is_name_char(c: str) -> bool:
    return c.isalpha() or c == '_'


def tokenize(source: str) -> List[Token]:
    """Splits source into tokens, raising LexError on anything unrecognised."""
    tokens: List[Token] = []
    i = 0
    line, line_start = 1, 0
    n = len(source)

    def loc(at: int) -> Dict[str, Any]:
        return {'pos': at, 'line': line, 'col': at - line_start + 1, 'text': source[at:at + 1]}

    while i < n:
        c = source[i]
        col = i - line_start + 1

        if c == '\n':
            i += 1
            line, line_start = line + 1, i
            continue
        if c.isspace():
            i += 1
            continue

        if c in DIGITS or (c == '.' and i + 1 < n and source[i + 1] in DIGITS):
            start = i
            seen_dot = False
            while i < n and (source[i] in DIGITS or source[i] == '.'):
                if source[i] == '.':
                    if seen_dot:
                        raise LexError('.', loc(i), f"malformed number {source[start:i + 1]!r}: second decimal point")
                    seen_dot = True
                i += 1
            tokens.append(Token(NUMBER, source[start:i], start, line, col))
            continue

        if _is_name_char(c):
            start = i
            while i < n and _is_name_char(source[i]):
                i += 1
            tokens.append(Token(IDENT, source[start:i], start, line, col))
            continue

        match c:
            case '(':
                tokens.append(Token(LPAREN, c, i, line, col))
            case ')':
                tokens.append(Token(RPAREN, c, i, line, col))
            case ',':
                tokens.append(Token(COMMA, c, i, line, col))
            case _ if c in OPERATORS:
                tokens.append(Token(OPERATOR, OPERATORS[c], i, line, col))
            case _:
                raise LexError(c, loc(i))
        i += 1

    return tokens


__all__ = [
    "Token",
    "tokenize",
    "NUMBER",
    "IDENT",
    "OPERATOR",
    "LPAREN",
    "RPAREN",
    "COMMA",
]
