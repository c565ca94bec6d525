"""The interactive loop: read a line, build the pipeline, run it."""

from __future__ import annotations

import os
import signal
import sys
from typing import Iterable, Optional, Sequence, TextIO

from minishell.builtins import ShellExit
from minishell.environment import build_environment
from minishell.executor import execute
from minishell.expander import expand
from minishell.heredoc import HeredocInterrupted, prepare_heredocs, remove_heredocs
from minishell.lexer import has_unclosed_quotes, tokenize
from minishell.parser import Command, ParseError, parse

try:
    import readline as _readline
except ImportError:  # pragma: no cover - platforms without GNU readline
    _readline = None

PROMPT = "minishell> "
_INTERRUPT_STATUS = 130


def _ignore_signal(signum, frame) -> None:
    """Swallow a signal in the shell; started programs get the default action."""


class Shell:
    """Shell state kept across lines: variables and the last exit status."""

    def __init__(self, envp: Optional[Iterable[str]] = None) -> None:
        self.env = build_environment(envp)
        self.env.init_shlvl()
        self.exit_status = 0
        # Where heredoc bodies are read from and where their prompt goes;
        # None means the standard streams at the time of reading.
        self.heredoc_source: Optional[TextIO] = None
        self.heredoc_prompt: Optional[TextIO] = None

    def build(self, line: str) -> Optional[list[Command]]:
        """Turn *line* into commands ready to run, or None if there is nothing to run.

        Syntax errors are reported on standard output; heredocs are read here.
        """
        if has_unclosed_quotes(line):
            print("minishell: unclosed quotes")
            return None
        tokens = expand(tokenize(line), self.env, self.exit_status)
        if not tokens:
            return None
        try:
            commands = parse(tokens)
        except ParseError as exc:
            print(f"minishell: {exc}")
            return None
        source = sys.stdin if self.heredoc_source is None else self.heredoc_source
        prompt = sys.stderr if self.heredoc_prompt is None else self.heredoc_prompt
        try:
            status = prepare_heredocs(commands, source, prompt)
        except HeredocInterrupted as exc:
            self.exit_status = exc.status
            remove_heredocs(commands)
            return None
        if status is not None:
            self.exit_status = status
        return commands

    def run_line(self, line: str) -> int:
        """Build and run *line*; return the new exit status.

        ShellExit from the ``exit`` builtin is passed on to the caller.
        """
        commands = self.build(line)
        if commands is None:
            return self.exit_status
        try:
            self.exit_status = execute(commands, self.env, self.exit_status)
        finally:
            remove_heredocs(commands)
        return self.exit_status

    def loop(self) -> int:
        """Read and run lines until end of input or ``exit``; return the status to exit with."""
        previous_quit = self._install_signals()
        try:
            while True:
                try:
                    line = input(PROMPT)
                except EOFError:
                    return 0
                except KeyboardInterrupt:
                    sys.stdout.write("\n")
                    sys.stdout.flush()
                    self.exit_status = _INTERRUPT_STATUS
                    continue
                if line and "<<" not in line:
                    self._remember(line)
                try:
                    self.run_line(line)
                except ShellExit as exc:
                    return exc.status
                except KeyboardInterrupt:
                    sys.stdout.write("\n")
                    sys.stdout.flush()
                    self.exit_status = _INTERRUPT_STATUS
        finally:
            self._restore_signals(previous_quit)
            if _readline is not None:
                _readline.clear_history()

    @staticmethod
    def _remember(line: str) -> None:
        if _readline is not None:
            _readline.add_history(line)

    @staticmethod
    def _install_signals():
        if not hasattr(signal, "SIGQUIT"):
            return None
        try:
            return signal.signal(signal.SIGQUIT, _ignore_signal)
        except ValueError:
            return None

    @staticmethod
    def _restore_signals(previous) -> None:
        if previous is None or not hasattr(signal, "SIGQUIT"):
            return
        try:
            signal.signal(signal.SIGQUIT, previous)
        except ValueError:
            pass


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start an interactive shell with the process environment; arguments are ignored."""
    shell = Shell(f"{name}={value}" for name, value in os.environ.items())
    return shell.loop()


if __name__ == "__main__":
    sys.exit(main())