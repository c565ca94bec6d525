"""Commands the shell runs itself: echo, cd, pwd, export, unset, env and exit."""

from __future__ import annotations

import os
import string
import sys
from typing import Optional, Sequence, TextIO

from minishell.environment import Environment, is_valid_identifier

_BUILTINS = frozenset({"cd", "echo", "pwd", "export", "unset", "env", "exit"})
_WHITESPACE = " \t\n\v\f\r"
_LONG_MAX = 2**63 - 1
_LONG_MIN_MAGNITUDE = 2**63


class ShellExit(Exception):
    """Raised by ``exit``: the shell should stop with *status*."""

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"exit {status}")


def _stream(stream: Optional[TextIO], default: TextIO) -> TextIO:
    return default if stream is None else stream


def _describe(exc: OSError) -> str:
    return os.strerror(exc.errno) if exc.errno else str(exc)


def is_builtin(name: Optional[str]) -> bool:
    """True if *name* is a command the shell runs itself."""
    return name in _BUILTINS


def echo(args: Sequence[str], out: Optional[TextIO] = None) -> int:
    """Print the arguments separated by spaces; leading ``-n`` flags drop the newline."""
    out = _stream(out, sys.stdout)
    words = list(args[1:])
    if not words:
        out.write("\n")
        return 0
    start = 0
    suppress_newline = False
    for word in words:
        if len(word) < 2 or word[0] != "-":
            break
        if all(ch == "n" for ch in word[1:]):
            suppress_newline = True
            start += 1
        else:
            # An option that is not -n turns the newline back on.
            suppress_newline = False
            break
    rest = words[start:]
    if rest:
        out.write(" ".join(rest) + ("" if suppress_newline else "\n"))
    return 0


def pwd(out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    """Print the working directory."""
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    try:
        cwd = os.getcwd()
    except OSError as exc:
        err.write(f"pwd: {_describe(exc)}\n")
        return 1
    out.write(f"{cwd}\n")
    return 0


def cd(args: Sequence[str], env: Environment, err: Optional[TextIO] = None) -> int:
    """Change directory to the argument, or to HOME; update OLDPWD and PWD."""
    err = _stream(err, sys.stderr)
    home = env.get("HOME")
    target = args[1] if len(args) > 1 else None
    if target is None and home is None:
        err.write("minishell: cd: Home is not set\n")
        return 1
    try:
        old = os.getcwd()
    except OSError:
        err.write("Cannot get current working directory path\n")
        return 1
    if target is None:
        target = home
    try:
        os.chdir(target)
    except OSError as exc:
        err.write(f"minishell: cd: {target}: {_describe(exc)}\n")
        return 1
    env.set("OLDPWD", old)
    try:
        new = os.getcwd()
    except OSError:
        err.write("Cannot get current working directory path\n")
        return 1
    env.set("PWD", new)
    return 0


def export(
    args: Sequence[str],
    env: Environment,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Set or declare variables; with no arguments list them all, sorted."""
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    if len(args) < 2:
        for line in env.export_lines():
            out.write(line + "\n")
        return 0
    status = 0
    for arg in args[1:]:
        name, sep, value = arg.partition("=")
        if not sep:
            env.declare(arg)
            continue
        if not is_valid_identifier(name):
            err.write(f"minishell: export: {arg}: not a valid identifier\n")
            status = 1
            continue
        env.set(name, value)
    return status


def unset(args: Sequence[str], env: Environment, err: Optional[TextIO] = None) -> int:
    """Remove the named variables."""
    err = _stream(err, sys.stderr)
    status = 0
    for name in args[1:]:
        if not is_valid_identifier(name):
            err.write(f"minishell: unset: {name} not a valid identifier\n")
            status = 1
            continue
        env.remove(name)
    return status


def env_command(env: Environment, out: Optional[TextIO] = None) -> int:
    """Print every variable that has a value."""
    out = _stream(out, sys.stdout)
    for line in env.env_lines():
        out.write(line + "\n")
    return 0


def parse_exit_code(text: str) -> int:
    """Turn the argument of ``exit`` into a status from 0 to 255.

    Surrounding whitespace and one sign are allowed; raises ValueError if the
    text is not a number or does not fit in a 64-bit signed integer.
    """
    rest = text.lstrip(_WHITESPACE)
    sign = 1
    if rest[:1] in ("+", "-"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    digits = len(rest) - len(rest.lstrip(string.digits))
    if digits == 0:
        raise ValueError(f"numeric argument required: {text!r}")
    limit = _LONG_MAX if sign == 1 else _LONG_MIN_MAGNITUDE
    magnitude = 0
    for ch in rest[:digits]:
        magnitude = magnitude * 10 + int(ch)
        if magnitude > limit:
            raise ValueError(f"numeric argument out of range: {text!r}")
    if rest[digits:].strip(_WHITESPACE):
        raise ValueError(f"numeric argument required: {text!r}")
    return (magnitude * sign) & 0xFF


def _looks_numeric(arg: str) -> bool:
    body = arg[1:] if arg[:1] in ("+", "-") else arg
    if arg[:1] in ("+", "-") and not body:
        return False
    return all(ch in string.digits for ch in body)


def _numeric_error(arg: str, err: TextIO) -> None:
    err.write(f"minishell: exit: {arg}: numeric argument required\n")


def exit_command(
    args: Sequence[str],
    last_status: int,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Leave the shell by raising ShellExit; returns 1 on too many arguments."""
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    out.write("exit\n")
    arg = args[1] if len(args) > 1 else None
    if arg is not None and not _looks_numeric(arg):
        _numeric_error(arg, err)
        raise ShellExit(255)
    if len(args) > 2:
        err.write("minishell: exit: too many arguments\n")
        return 1
    if arg is None:
        raise ShellExit(last_status & 0xFF)
    try:
        status = parse_exit_code(arg)
    except ValueError:
        _numeric_error(arg, err)
        status = 255
    raise ShellExit(status)


def run_builtin(
    args: Sequence[str],
    env: Environment,
    last_status: int,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Run the builtin named by ``args[0]`` and return its status."""
    name = args[0] if args else None
    if name == "cd":
        return cd(args, env, err)
    if name == "echo":
        return echo(args, out)
    if name == "pwd":
        return pwd(out, err)
    if name == "export":
        return export(args, env, out, err)
    if name == "unset":
        return unset(args, env, err)
    if name == "env":
        return env_command(env, out)
    if name == "exit":
        return exit_command(args, last_status, out, err)
    raise ValueError(f"not a builtin: {name!r}")