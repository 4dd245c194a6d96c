# module for building command invocations

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from cmdline import InvalidCommand, join, translate_commandline
from platforms import Platform, get_system_env_vars
from shells import Shell, build_shell_line, default_shell

log = logging.getLogger(__name__)


@dataclass
class Arg:
    """One argument; a literal argument is inserted into the shell line as is."""
    value: str
    literal: bool = False


@dataclass(frozen=True)
class LaunchSpec:
    """What a process launcher needs: argv, working directory and environment."""
    argv: List[str]
    cwd: Optional[str]
    env: Dict[str, str]


class Commandline:
    """Accumulates an executable, its arguments and environment overrides.

    Lifecycle:
    - Construct, optionally from a full command line which is split with
      translate_commandline (first token is the executable).
    - Set the working directory, add arguments and environment overrides.
    - Call render() for the argv, environment() for the variables, or
      launch_spec() for both plus the working directory.

    Rendering is a pure function of the accumulated state; it can be called
    any number of times.
    """

    def __init__(
        self,
        command_line: Optional[str] = None,
        shell: Optional[Shell] = None,
        platform: Optional[Platform] = None,
    ) -> None:
        self.platform: Platform = platform or Platform.current()
        self.shell: Optional[Shell] = shell if shell is not None else default_shell(self.platform)
        self.shell_environment_inherited: bool = True
        self._executable: Optional[str] = None
        self._working_directory: Optional[str] = None
        self._args: List[Arg] = []
        self._env_overrides: Dict[str, Optional[str]] = {}

        if command_line is not None:
            tokens = translate_commandline(command_line)
            if tokens:
                self.executable = tokens[0]
                self.add_arguments(tokens[1:])

    # --- Executable / working directory ---
    @property
    def executable(self) -> Optional[str]:
        return self._executable

    @executable.setter
    def executable(self, value: Optional[str]) -> None:
        self._executable = value.strip() if value is not None else None

    @property
    def working_directory(self) -> Optional[str]:
        return self._working_directory

    @working_directory.setter
    def working_directory(self, value: Optional[str | os.PathLike]) -> None:
        self._working_directory = os.fspath(value) if value is not None else None

    # --- Arguments ---
    def create_arg(self, value: str = "", literal: bool = False) -> Arg:
        if value is None:
            raise ValueError("argument value cannot be None")
        arg = Arg(value, literal)
        self._args.append(arg)
        return arg

    def add_argument(self, value: str, literal: bool = False) -> None:
        self.create_arg(value, literal)

    def add_arguments(self, values: Iterable[str]) -> None:
        for v in values:
            self.add_argument(v)

    def add_line(self, line: str) -> None:
        """Split `line` like a command line and append every token as an argument."""
        self.add_arguments(translate_commandline(line))

    @property
    def arguments(self) -> List[str]:
        return [a.value for a in self._args]

    def clear_args(self) -> None:
        self._args.clear()

    # --- Environment ---
    def add_environment(self, name: str, value: Optional[str]) -> None:
        """Override `name` in the rendered environment; a None value removes it."""
        key = self._env_key(name)
        self._env_overrides[key] = value

    def _env_key(self, name: str) -> str:
        return name if self.platform.case_sensitive_env else name.upper()

    def environment(self) -> Dict[str, str]:
        env: Dict[str, Optional[str]] = {}
        if self.shell_environment_inherited:
            env.update(get_system_env_vars(platform=self.platform))
        env.update(self._env_overrides)
        removed = [k for k, v in env.items() if v is None]
        if removed:
            log.debug("Removing environment variables: %s", ", ".join(removed))
        return {k: v for k, v in env.items() if v is not None}

    def get_environment_variables(self) -> List[str]:
        return [f"{k}={v}" for k, v in self.environment().items()]

    # --- Rendering ---
    def render(self) -> List[str]:
        if self.executable is None or not self.executable.strip():
            raise InvalidCommand("no executable set")
        if self.shell is None:
            raise InvalidCommand("no shell descriptor set")
        literal = {i for i, a in enumerate(self._args) if a.literal}
        argv = build_shell_line(
            self.shell,
            self.executable,
            self.working_directory,
            self.arguments,
            literal,
        )
        log.debug("Rendered %s for %s: %r", type(self.shell).__name__, self.executable, argv)
        return argv

    def launch_spec(self) -> LaunchSpec:
        return LaunchSpec(argv=self.render(), cwd=self.working_directory, env=self.environment())

    def __str__(self) -> str:
        return join(self.render(), " ")

    def __repr__(self) -> str:
        return f"Commandline(executable={self.executable!r}, arguments={self.arguments!r}, shell={self.shell!r})"
