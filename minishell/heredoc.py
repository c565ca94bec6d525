"""Collecting heredoc bodies into temporary files before execution."""

from __future__ import annotations

import os
from typing import Iterable, Optional, TextIO

from minishell.lexer import TokenType
from minishell.parser import Command

_PROMPT = "heredoc> "
_INTERRUPT_STATUS = 130


class HeredocInterrupted(Exception):
    """Reading a heredoc was interrupted; *status* is the shell's new exit status."""

    def __init__(self, status: int = _INTERRUPT_STATUS) -> None:
        self.status = status
        super().__init__(f"heredoc interrupted (status {status})")


def heredoc_filename(index: int) -> str:
    """Name of the temporary file holding the *index*-th heredoc of a line."""
    return f".temp_heredoc_{index}"


def read_heredoc(
    delimiter: str,
    source: TextIO,
    sink: TextIO,
    prompt: Optional[TextIO] = None,
) -> bool:
    """Copy lines from *source* to *sink* until a line equal to *delimiter*.

    The prompt is written to *prompt*, when given, before each line is read.
    Returns True if the delimiter was seen, False if input ended first.
    """
    terminator = delimiter + "\n"
    while True:
        if prompt is not None:
            prompt.write(_PROMPT)
            prompt.flush()
        line = source.readline()
        if not line:
            return False
        if line == terminator:
            return True
        sink.write(line)


def prepare_heredocs(
    commands: Iterable[Command],
    source: TextIO,
    prompt: Optional[TextIO] = None,
) -> Optional[int]:
    """Read every ``<<`` heredoc into a numbered file and point the redirection at it.

    Returns the status of the last heredoc read (0, or 1 if its file could not
    be created), or None if there was none. Raises HeredocInterrupted if reading
    is interrupted.
    """
    status: Optional[int] = None
    index = 1
    for command in commands:
        for redirection in command.redirections:
            if redirection.type is not TokenType.D_LESS:
                continue
            filename = heredoc_filename(index)
            index += 1
            delimiter = redirection.target
            interrupted = False
            try:
                with open(filename, "w", encoding="utf-8") as sink:
                    read_heredoc(delimiter, source, sink, prompt)
                status = 0
            except KeyboardInterrupt:
                interrupted = True
            except OSError:
                status = 1
            redirection.type = TokenType.H_DOC
            redirection.target = filename
            if interrupted:
                if prompt is not None:
                    prompt.write("\n")
                    prompt.flush()
                raise HeredocInterrupted(_INTERRUPT_STATUS)
    return status


def remove_heredocs(commands: Iterable[Command]) -> None:
    """Delete the temporary files of heredoc redirections; missing files are ignored."""
    for command in commands:
        for redirection in command.redirections:
            if redirection.type is TokenType.H_DOC:
                try:
                    os.unlink(redirection.target)
                except OSError:
                    pass