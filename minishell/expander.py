"""Substitution of ``$NAME`` and ``$?`` in word tokens."""

from __future__ import annotations

import string
from dataclasses import replace
from typing import Iterable, Iterator, Optional

from minishell.environment import Environment
from minishell.lexer import Token, TokenType

_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")


def variable_length(text: str) -> int:
    """Length of the variable name at the start of *text* (the part after ``$``).

    Returns -1 for empty text, 1 for ``?``, otherwise the number of leading
    letters, digits and underscores.
    """
    if not text:
        return -1
    if text[0] == "?":
        return 1
    length = 0
    for ch in text:
        if ch not in _NAME_CHARS:
            break
        length += 1
    return length


def _expandable(text: str) -> Iterator[tuple[int, int]]:
    """Yield ``(position of $, name length)`` for each variable outside single quotes."""
    in_single = in_double = False
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == "$" and not in_single:
            length = variable_length(text[pos + 1:])
            if length > 0:
                yield pos, length
                pos += 1 + length
                continue
        elif ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        pos += 1


def find_variable(text: str) -> Optional[int]:
    """Position of the first ``$`` that starts an expandable variable, or None."""
    for pos, _ in _expandable(text):
        return pos
    return None


def variable_name(text: str) -> Optional[str]:
    """Name of the first expandable variable in *text*, or None."""
    for pos, length in _expandable(text):
        return text[pos + 1:pos + 1 + length]
    return None


def expand_word(text: str, env: Environment, exit_status: int) -> str:
    """Replace every expandable variable in *text*; unset variables become empty."""
    parts: list[str] = []
    last = 0
    for pos, length in _expandable(text):
        name = text[pos + 1:pos + 1 + length]
        parts.append(text[last:pos])
        if name == "?":
            parts.append(str(exit_status))
        else:
            parts.append(env.get(name) or "")
        last = pos + 1 + length
    parts.append(text[last:])
    return "".join(parts)


def expand(tokens: Iterable[Token], env: Environment, exit_status: int) -> list[Token]:
    """Expand variables in word tokens; other tokens pass through unchanged."""
    return [
        replace(token, value=expand_word(token.value, env, exit_status))
        if token.type is TokenType.WORD
        else token
        for token in tokens
    ]