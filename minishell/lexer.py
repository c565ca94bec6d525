"""Splitting a command line into words and operators."""

from __future__ import annotations

import enum
from dataclasses import dataclass

_SYMBOLS = "<|>"


class TokenType(enum.IntEnum):
    UNKNOWN = 0
    WORD = 1
    PIPE = 2
    GREAT = 3
    LESS = 4
    D_GREAT = 5
    D_LESS = 6
    H_DOC = 7


_OPERATORS = (
    (">>", TokenType.D_GREAT),
    ("<<", TokenType.D_LESS),
    (">", TokenType.GREAT),
    ("<", TokenType.LESS),
    ("|", TokenType.PIPE),
)


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str


def is_space(char: str) -> bool:
    """Space, tab, newline, vertical tab, form feed or carriage return."""
    return char == " " or "\t" <= char <= "\r"


def is_symbol(char: str) -> bool:
    """True for the operator characters ``<``, ``|`` and ``>``."""
    return len(char) == 1 and char in _SYMBOLS


def has_unclosed_quotes(line: str) -> bool:
    """True if a single or double quote in *line* is left open."""
    in_single = in_double = False
    for ch in line:
        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
    return in_single or in_double


def _word_end(line: str, start: int) -> int:
    in_single = in_double = False
    pos = start
    while pos < len(line):
        ch = line[pos]
        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif (ch == " " or is_symbol(ch)) and not in_single and not in_double:
            break
        pos += 1
    return pos


def tokenize(line: str) -> list[Token]:
    """Split *line* into word and operator tokens; quotes are kept in words."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(line):
        while pos < len(line) and is_space(line[pos]):
            pos += 1
        if pos >= len(line):
            break
        if is_symbol(line[pos]):
            for text, kind in _OPERATORS:
                if line.startswith(text, pos):
                    tokens.append(Token(kind, text))
                    pos += len(text)
                    break
        else:
            end = _word_end(line, pos)
            tokens.append(Token(TokenType.WORD, line[pos:end]))
            pos = end
    return tokens