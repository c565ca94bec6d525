"""Shell variables, kept in the order the shell lists them."""

from __future__ import annotations

import string
from typing import Iterable, Iterator, Optional

_WHITESPACE = " \t\n\v\f\r"
_IDENTIFIER_CHARS = frozenset(string.ascii_letters + string.digits + "_")
_LONG_MAX = 2**63 - 1
_LONG_MIN_MAGNITUDE = 2**63


def split_entry(entry: str) -> tuple[str, Optional[str]]:
    """Split ``NAME=value`` on the first ``=``; a bare name has no value."""
    name, sep, value = entry.partition("=")
    if not sep:
        return entry, None
    return name, value


def is_valid_identifier(name: str) -> bool:
    """Return True if *name* may be used as a variable name."""
    if not name or name[0] in string.digits:
        return False
    return all(ch in _IDENTIFIER_CHARS for ch in name)


def _parse_level(text: str) -> Optional[int]:
    """Parse a number the way the shell reads SHLVL, or None if it is not one."""
    rest = text.lstrip(_WHITESPACE)
    sign = 1
    if rest[:1] in ("+", "-"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    digits_end = 0
    while digits_end < len(rest) and rest[digits_end] in string.digits:
        digits_end += 1
    if digits_end == 0:
        return None
    magnitude = 0
    for ch in rest[:digits_end]:
        magnitude = magnitude * 10 + int(ch)
        if sign == 1 and magnitude > _LONG_MAX:
            return None
        if sign == -1 and magnitude > _LONG_MIN_MAGNITUDE:
            return None
    if rest[digits_end:].strip(_WHITESPACE):
        return None
    raw = (magnitude * sign) & 0xFFFFFFFF
    if raw >= 2**31:
        raw -= 2**32
    remainder = abs(raw) % 256
    return -remainder if raw < 0 else remainder


class Environment:
    """Ordered set of shell variables; a variable may be declared without a value."""

    def __init__(self) -> None:
        self._vars: dict[str, Optional[str]] = {}

    def get(self, name: str) -> Optional[str]:
        """Return the value of *name*, or None if unset or declared without value."""
        return self._vars.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def set(self, name: str, value: str) -> None:
        """Give *name* a value, keeping its position if it already exists."""
        self._vars[name] = value

    def declare(self, name: str) -> None:
        """Declare *name* without a value; an existing value is kept."""
        self._vars.setdefault(name, None)

    def remove(self, name: str) -> None:
        """Remove *name* if present."""
        self._vars.pop(name, None)

    def items(self) -> Iterator[tuple[str, Optional[str]]]:
        """Iterate over ``(name, value)`` pairs in listing order."""
        yield from self._vars.items()

    def env_lines(self) -> list[str]:
        """Lines printed by ``env``: only variables that have a value."""
        return [f"{name}={value}" for name, value in self._vars.items() if value is not None]

    def export_lines(self) -> list[str]:
        """Lines printed by ``export`` without arguments, sorted by name."""
        lines = []
        for name, value in sorted(self._vars.items(), key=lambda item: item[0]):
            if value is None:
                lines.append(f"declare -x {name}")
            else:
                lines.append(f'declare -x {name}="{value}"')
        return lines

    def to_envp(self) -> list[str]:
        """Environment strings handed to a started program."""
        return [name if value is None else f"{name}={value}" for name, value in self._vars.items()]

    def init_shlvl(self) -> None:
        """Increment SHLVL, treating a missing or malformed value as 0."""
        level = _parse_level(self.get("SHLVL") or "")
        if level is None:
            level = 0
        self.set("SHLVL", str(level + 1))


def build_environment(envp: Optional[Iterable[str]]) -> Environment:
    """Build an environment from ``NAME=value`` strings.

    Entries are listed last-first, and the last of several entries with the
    same name is the one that counts.
    """
    env = Environment()
    if envp is None:
        return env
    for entry in reversed(list(envp)):
        name, value = split_entry(entry)
        if name in env:
            continue
        if value is None:
            env.declare(name)
        else:
            env.set(name, value)
    return env