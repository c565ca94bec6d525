"""Turning tokens into a pipeline of commands with their redirections."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence

from minishell.lexer import Token, TokenType

_REDIRECTIONS = frozenset(
    {TokenType.GREAT, TokenType.D_GREAT, TokenType.LESS, TokenType.D_LESS}
)


class ParseError(Exception):
    """A syntax error in a command line; *token* is where it was found, if anywhere."""

    def __init__(self, token: Optional[Token]) -> None:
        self.token = token
        if token is None:
            message = "parse error unexpected token"
        else:
            message = f"parse error near '{token.value}'"
        super().__init__(message)


@dataclass
class Redirection:
    """A redirection of a command; heredocs are later rewritten to a file."""

    type: TokenType
    target: str


@dataclass
class Command:
    """One stage of a pipeline."""

    args: list[str] = field(default_factory=list)
    redirections: list[Redirection] = field(default_factory=list)


def is_redirection(token_type: TokenType) -> bool:
    """True for ``>``, ``>>``, ``<`` and ``<<``."""
    return token_type in _REDIRECTIONS


def check_syntax(tokens: Iterable[Token]) -> None:
    """Raise ParseError if the token sequence is not a valid pipeline."""
    tokens = list(tokens)
    if not tokens:
        return
    if tokens[0].type is TokenType.PIPE:
        raise ParseError(tokens[0])
    following: list[Optional[Token]] = [*tokens[1:], None]
    for token, nxt in zip(tokens, following):
        if token.type is TokenType.UNKNOWN:
            raise ParseError(token)
        if is_redirection(token.type) and (nxt is None or nxt.type is not TokenType.WORD):
            raise ParseError(nxt)
        if token.type is TokenType.PIPE and (nxt is None or nxt.type is TokenType.PIPE):
            raise ParseError(nxt)


def count_args(tokens: Iterable[Token]) -> int:
    """Number of arguments of the first command: words that are not redirection targets."""
    count = 0
    after_redirection = False
    for token in tokens:
        if token.type is TokenType.PIPE:
            break
        if token.type is TokenType.WORD and not after_redirection:
            count += 1
        elif is_redirection(token.type):
            after_redirection = True
        elif token.type is TokenType.WORD and after_redirection:
            after_redirection = False
    return count


def strip_quotes(text: str) -> str:
    """Remove the quote characters that open or close a quoted part."""
    in_single = in_double = False
    kept: list[str] = []
    for ch in text:
        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        else:
            kept.append(ch)
    return "".join(kept)


def _split_pipeline(tokens: Sequence[Token]) -> Iterator[list[Token]]:
    segment: list[Token] = []
    for token in tokens:
        if token.type is TokenType.PIPE:
            yield segment
            segment = []
        else:
            segment.append(token)
    yield segment


def _build_command(segment: list[Token]) -> Command:
    command = Command()
    stream = iter(segment)
    for token in stream:
        if token.type is TokenType.WORD:
            command.args.append(strip_quotes(token.value))
            continue
        target = next(stream, None)
        if target is None or target.type is not TokenType.WORD:
            raise ParseError(target)
        command.redirections.append(Redirection(token.type, target.value))
    return command


def parse(tokens: Iterable[Token]) -> list[Command]:
    """Build the pipeline described by *tokens*; an empty line gives no commands."""
    tokens = list(tokens)
    if not tokens:
        return []
    check_syntax(tokens)
    return [_build_command(segment) for segment in _split_pipeline(tokens)]