"""Shell descriptors: how each target shell wants a command line quoted.

A descriptor is plain configuration. The two operations, quote_argument()
and build_shell_line(), dispatch on the variant:

- PosixShell: /bin/sh -c, every item single-quoted
- CmdShell: cmd.exe /X /C, the whole line wrapped once in double quotes
- RawShell: no shell at all, argv is passed through
- CustomShell: generic quoting with caller supplied characters
"""
from __future__ import annotations

import shlex
from dataclasses import dataclass, replace
from typing import Collection, FrozenSet, List, Optional, Sequence, Tuple

from cmdline import UnsupportedQuoting, is_quoted, join, quote_and_escape
from platforms import Platform

# Bourne shell metacharacters
POSIX_TRIGGER_CHARS: FrozenSet[str] = frozenset(" $;&|<>*?()`#[]{}")

# Replacement for a single quote inside a single-quoted string
POSIX_QUOTE_ESCAPE = "'\"'\"'"


@dataclass(frozen=True)
class _ShellConfig:
    launcher_command: Optional[str] = None
    launcher_flags: Tuple[str, ...] = ()
    arg_quote_char: str = "'"
    escape_char: str = "\\"
    quoting_trigger_chars: FrozenSet[str] = frozenset(" ")
    quoted_arguments_enabled: bool = True
    unconditional_quoting: bool = False
    unrepresentable_chars: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        if len(self.arg_quote_char) != 1 or len(self.escape_char) != 1:
            raise ValueError("quote and escape characters must be single characters")
        # The quote char has to stay escapable inside a quoted argument
        if self.arg_quote_char == self.escape_char:
            raise ValueError(f"quote character {self.arg_quote_char!r} cannot also be the escape character")

    def with_options(self, **changes) -> "Shell":
        return replace(self, **changes)  # type: ignore[return-value]

    @property
    def escaped_chars(self) -> Tuple[str, str]:
        return (self.escape_char, self.arg_quote_char)


@dataclass(frozen=True)
class PosixShell(_ShellConfig):
    launcher_command: Optional[str] = "/bin/sh"
    launcher_flags: Tuple[str, ...] = ("-c",)
    quoting_trigger_chars: FrozenSet[str] = POSIX_TRIGGER_CHARS
    unconditional_quoting: bool = True


@dataclass(frozen=True)
class CmdShell(_ShellConfig):
    launcher_command: Optional[str] = "cmd.exe"
    launcher_flags: Tuple[str, ...] = ("/X", "/C")
    arg_quote_char: str = '"'
    # A line break ends the /C command
    unrepresentable_chars: FrozenSet[str] = frozenset("\r\n")


@dataclass(frozen=True)
class RawShell(_ShellConfig):
    pass


@dataclass(frozen=True)
class CustomShell(_ShellConfig):
    launcher_command: Optional[str] = "/bin/sh"
    launcher_flags: Tuple[str, ...] = ("-c",)


Shell = PosixShell | CmdShell | RawShell | CustomShell

SHELL_NAMES = {
    "posix": PosixShell,
    "sh": PosixShell,
    "cmd": CmdShell,
    "raw": RawShell,
}


def shell_for_name(name: str) -> Shell:
    try:
        return SHELL_NAMES[name.strip().lower()]()
    except KeyError:
        raise ValueError(f"unknown shell {name!r}, expected one of: {', '.join(sorted(SHELL_NAMES))}") from None


def default_shell(platform: Optional[Platform] = None) -> Shell:
    platform = platform or Platform.current()
    return CmdShell() if platform.is_windows else PosixShell()


# --- Quoting ---

def _check_representable(shell: Shell, value: str) -> None:
    bad = sorted(ch for ch in set(value) if ch in shell.unrepresentable_chars)
    if bad:
        raise UnsupportedQuoting(f"{type(shell).__name__} cannot represent {bad!r} in argument {value!r}")


def _is_posix_quoted(raw: str) -> bool:
    # Single-quoted text whose only inner quotes are '"'"' sequences
    return is_quoted(raw, "'") and "'" not in raw[1:-1].replace(POSIX_QUOTE_ESCAPE, "")


def _quote_posix(shell: Shell, raw: str) -> str:
    if not shell.unconditional_quoting:
        if _is_posix_quoted(raw):
            return raw
        # Anything outside [A-Za-z0-9_@%+=:,./-] is quoted whatever the toggle says
        return shlex.quote(raw)
    return "'" + raw.replace("'", POSIX_QUOTE_ESCAPE) + "'"


def _quote_generic(shell: Shell, raw: str, escaped_chars: Sequence[str]) -> str:
    if not shell.quoted_arguments_enabled and not shell.unconditional_quoting:
        return raw
    # An empty argument must survive as a quoted empty string
    force = shell.unconditional_quoting or raw == ""
    return quote_and_escape(
        raw,
        shell.arg_quote_char,
        escaped_chars,
        shell.quoting_trigger_chars,
        shell.escape_char,
        force,
    )


def quote_argument(shell: Shell, raw: str) -> str:
    """Quote one argument the way `shell` expects to read it back."""
    _check_representable(shell, raw)
    match shell:
        case RawShell():
            return raw
        case PosixShell():
            return _quote_posix(shell, raw)
        case CmdShell() | CustomShell():
            return _quote_generic(shell, raw, shell.escaped_chars)
    raise TypeError(f"not a shell descriptor: {shell!r}")


def quote_executable(shell: Shell, executable: str) -> str:
    _check_representable(shell, executable)
    match shell:
        case RawShell():
            return executable
        case PosixShell():
            return _quote_posix(shell, executable)
        case CmdShell() | CustomShell():
            # Paths keep their backslashes, only the quote char is escaped
            return _quote_generic(shell, executable, (shell.arg_quote_char,))
    raise TypeError(f"not a shell descriptor: {shell!r}")


# --- Assembly ---

def _compose(
    shell: Shell,
    executable: Optional[str],
    arguments: Sequence[str],
    literal: Collection[int],
    cd: Optional[str] = None,
) -> str:
    parts: List[str] = []
    if executable is not None:
        parts.append(quote_executable(shell, executable))
    for i, arg in enumerate(arguments):
        parts.append(arg if i in literal else quote_argument(shell, arg))
    line = join(parts, " ")
    if cd is None:
        return line
    return cd + " && " + line if line else cd


def _launcher(shell: Shell) -> List[str]:
    argv: List[str] = []
    if shell.launcher_command is not None:
        argv.append(shell.launcher_command)
    argv.extend(shell.launcher_flags)
    return argv


def build_shell_line(
    shell: Shell,
    executable: Optional[str],
    working_directory: Optional[str] = None,
    arguments: Sequence[str] = (),
    literal: Collection[int] = (),
) -> List[str]:
    """Assemble the argv for running `executable` with `arguments` through `shell`.

    Shell variants return [launcher, *flags, line]; RawShell returns the
    executable followed by the arguments unchanged. Arguments whose index is
    in `literal` are inserted into the line verbatim. POSIX and custom shells
    change into `working_directory` first; cmd.exe leaves it to the launcher.
    """
    match shell:
        case RawShell():
            argv = [] if executable is None else [executable]
            argv.extend(arguments)
            return argv
        case PosixShell():
            cd = None
            if working_directory is not None:
                cd = "cd " + _quote_posix(shell, str(working_directory))
            line = _compose(shell, executable, arguments, literal, cd)
        case CmdShell():
            line = '"' + _compose(shell, executable, arguments, literal) + '"'
        case CustomShell():
            cd = None
            if working_directory is not None:
                cd = "cd " + quote_executable(shell, str(working_directory))
            line = _compose(shell, executable, arguments, literal, cd)
        case _:
            raise TypeError(f"not a shell descriptor: {shell!r}")
    return _launcher(shell) + [line]
