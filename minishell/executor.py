"""Running a parsed pipeline: builtins inside the shell, other programs as processes."""

from __future__ import annotations

import contextlib
import io
import os
import subprocess
import sys
import threading
from typing import BinaryIO, Iterable, Iterator, Optional, Sequence, Union

from minishell.builtins import ShellExit, is_builtin, run_builtin
from minishell.environment import Environment
from minishell.lexer import TokenType
from minishell.parser import Command

_INPUT_TYPES = frozenset({TokenType.LESS, TokenType.H_DOC})
_OUTPUT_MODES = {TokenType.GREAT: "wb", TokenType.D_GREAT: "ab"}
_INTERRUPT_STATUSES = frozenset({130, 131})


class CommandError(Exception):
    """A command could not be run; *status* is the exit status it stands for."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(message)


def _access_failure(path: str) -> Optional[int]:
    """127 if *path* does not exist, 126 if it is not executable, else None."""
    if not os.access(path, os.F_OK):
        return 127
    if not os.access(path, os.X_OK):
        return 126
    return None


def _not_runnable(name: str, status: int) -> CommandError:
    if status == 126:
        return CommandError(126, f"minishell: {name}: permission denied")
    return CommandError(127, f"minishell: {name}: command not found")


def resolve_command(name: str, env: Environment) -> str:
    """Return the path of the program *name*, searching PATH when it has no ``/``.

    Raises CommandError with the status the shell reports when it cannot be run.
    """
    if name == ".":
        raise CommandError(2, "minishell: .: filename argument required")
    if name == "..":
        raise CommandError(127, "minishell: ..: command not found")
    if "/" in name:
        failure = _access_failure(name)
        if failure is not None:
            raise _not_runnable(name, failure)
        full = name
    else:
        found: Optional[str] = None
        failure = 127
        for directory in (env.get("PATH") or "").split(":"):
            if not directory:
                continue
            candidate = f"{directory}/{name}"
            failure = _access_failure(candidate)
            if failure is None:
                found = candidate
                break
        if found is None:
            raise _not_runnable(name, failure)
        full = found
    if os.path.isdir(full):
        raise CommandError(126, f"minishell: {full}: is a directory")
    return full


def _open_target(target: str, mode: str) -> BinaryIO:
    try:
        return open(target, mode)
    except OSError as exc:
        reason = os.strerror(exc.errno) if exc.errno else str(exc)
        raise CommandError(1, f"{target}: {reason}") from exc


@contextlib.contextmanager
def open_redirections(
    command: Command,
) -> Iterator[tuple[Optional[BinaryIO], Optional[BinaryIO]]]:
    """Open the files of *command*'s redirections; yield ``(stdin, stdout)``.

    Input redirections are opened first, then output ones, each in order; the
    last of each kind wins. Raises CommandError if a file cannot be opened.
    """
    with contextlib.ExitStack() as stack:
        stdin: Optional[BinaryIO] = None
        stdout: Optional[BinaryIO] = None
        for redirection in command.redirections:
            if redirection.type in _INPUT_TYPES:
                stdin = stack.enter_context(_open_target(redirection.target, "rb"))
        for redirection in command.redirections:
            mode = _OUTPUT_MODES.get(redirection.type)
            if mode is not None:
                stdout = stack.enter_context(_open_target(redirection.target, mode))
        yield stdin, stdout


def exit_status_of(returncode: int) -> int:
    """Shell status of a finished process: 128 plus the signal if it was killed."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def _report(exc: CommandError) -> None:
    sys.stderr.write(exc.message + "\n")
    sys.stderr.flush()


def _flush_standard_streams() -> None:
    sys.stdout.flush()
    sys.stderr.flush()


def _copy_environment(env: Environment) -> Environment:
    copy = Environment()
    for name, value in env.items():
        if value is None:
            copy.declare(name)
        else:
            copy.set(name, value)
    return copy


def _child_environment(env: Environment) -> dict[str, str]:
    return {name: value for name, value in env.items() if value is not None}


def _run_single_builtin(command: Command, env: Environment, last_status: int) -> int:
    try:
        with open_redirections(command) as (_, stdout):
            out = None if stdout is None else io.TextIOWrapper(stdout, encoding="utf-8")
            try:
                return run_builtin(command.args, env, last_status, out=out)
            finally:
                if out is not None:
                    out.flush()
                    out.detach()
    except CommandError as exc:
        _report(exc)
        return 1


def _feed(fd: int, data: bytes) -> None:
    try:
        with open(fd, "wb") as pipe:
            pipe.write(data)
    except OSError:
        pass


def _run_piped_builtin(
    command: Command,
    env: Environment,
    last_status: int,
    stdout: Optional[BinaryIO],
    stdout_fd: Optional[int],
    writers: list[threading.Thread],
) -> int:
    buffer = io.StringIO()
    try:
        status = run_builtin(command.args, _copy_environment(env), last_status, out=buffer)
    except ShellExit as exc:
        status = exc.status
    text = buffer.getvalue()
    if stdout is not None:
        stdout.write(text.encode("utf-8"))
    elif stdout_fd is not None:
        writer = threading.Thread(
            target=_feed, args=(os.dup(stdout_fd), text.encode("utf-8")), daemon=True
        )
        writer.start()
        writers.append(writer)
    else:
        sys.stdout.write(text)
        sys.stdout.flush()
    return status


def _start_stage(
    command: Command,
    env: Environment,
    last_status: int,
    stdin_fd: Optional[int],
    stdout_fd: Optional[int],
    writers: list[threading.Thread],
) -> Union[subprocess.Popen, int]:
    try:
        with open_redirections(command) as (stdin, stdout):
            if not command.args:
                return 0
            if is_builtin(command.args[0]):
                return _run_piped_builtin(
                    command, env, last_status, stdout, stdout_fd, writers
                )
            path = resolve_command(command.args[0], env)
            try:
                return subprocess.Popen(
                    command.args,
                    executable=path,
                    stdin=stdin if stdin is not None else stdin_fd,
                    stdout=stdout if stdout is not None else stdout_fd,
                    env=_child_environment(env),
                )
            except OSError as exc:
                raise CommandError(126, "minishell: Execve error") from exc
    except CommandError as exc:
        _report(exc)
        return exc.status


def _wait(process: subprocess.Popen) -> int:
    while True:
        try:
            return process.wait()
        except KeyboardInterrupt:
            continue


def _run_pipeline(commands: Sequence[Command], env: Environment, last_status: int) -> int:
    _flush_standard_streams()
    results: list[Union[subprocess.Popen, int]] = []
    writers: list[threading.Thread] = []
    previous_read: Optional[int] = None
    try:
        for index, command in enumerate(commands):
            if index == len(commands) - 1:
                read_end: Optional[int] = None
                write_end: Optional[int] = None
            else:
                read_end, write_end = os.pipe()
            try:
                results.append(
                    _start_stage(command, env, last_status, previous_read, write_end, writers)
                )
            finally:
                if write_end is not None:
                    os.close(write_end)
                if previous_read is not None:
                    os.close(previous_read)
            previous_read = read_end
    finally:
        if previous_read is not None:
            os.close(previous_read)

    status = 1
    signalled = False
    for result in results:
        if isinstance(result, int):
            status = result
            continue
        returncode = _wait(result)
        status = exit_status_of(returncode)
        if returncode < 0:
            if not signalled and status in _INTERRUPT_STATUSES:
                sys.stdout.write("\n")
                sys.stdout.flush()
            signalled = True
    for writer in writers:
        writer.join()
    return status


def execute(commands: Iterable[Command], env: Environment, last_status: int) -> int:
    """Run a pipeline and return the shell's new exit status.

    A lone builtin runs inside the shell and may change *env*; ``exit`` then
    raises ShellExit. In a pipeline every stage runs on its own, and the status
    is that of the last stage.
    """
    commands = list(commands)
    if not commands:
        return last_status
    first = commands[0]
    if not first.args:
        try:
            with open_redirections(first):
                pass
        except CommandError as exc:
            _report(exc)
        return last_status
    if len(commands) == 1 and is_builtin(first.args[0]):
        return _run_single_builtin(first, env, last_status)
    return _run_pipeline(commands, env, last_status)