#!/usr/bin/env python3

# Entry of pycmdline

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from cmdline import CommandLineError, translate_commandline
from command import Commandline
from platforms import Platform
from shells import SHELL_NAMES, Shell, default_shell, shell_for_name

PROG = "pycmdline"
SHELL_ENV_VAR = "PYCMDLINE_SHELL"


def get_default_shell(force_shell: Optional[str] = None, platform: Optional[Platform] = None) -> tuple[Shell, bool]:
    """Pick the shell descriptor to render with and whether a warning was issued.

    Priority: explicit --shell, then $PYCMDLINE_SHELL, then the platform default.
    """
    warning_issued = False
    platform = platform or Platform.current()

    if force_shell:
        return shell_for_name(force_shell), warning_issued

    configured = os.environ.get(SHELL_ENV_VAR)
    if configured:
        try:
            return shell_for_name(configured), warning_issued
        except ValueError:
            fallback = default_shell(platform)
            print(f"Warning: ${SHELL_ENV_VAR}={configured!r} is not a known shell. Using {type(fallback).__name__}.", file=sys.stderr)
            warning_issued = True
            return fallback, warning_issued

    return default_shell(platform), warning_issued


def _parse_assignment(text: str) -> tuple[str, str]:
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    return name, value


def parse_args(args=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="pycmdline - split a command line and render it for a target shell",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pycmdline 'chmod 755 "my file"'                 # render for the platform shell
  pycmdline --shell cmd 'app --password ;secret'  # render for cmd.exe
  pycmdline --split 'echo "let'"'"'s go"'             # only tokenize
  pycmdline -w /tmp -e FOO=bar --env 'ls -l'      # with working dir and environment

Shells: """ + ", ".join(sorted(SHELL_NAMES)) + f"""
The default shell can be set with ${SHELL_ENV_VAR}.
"""
    )

    parser.add_argument("line", metavar="LINE", help="Command line to split and render")
    parser.add_argument(
        "--shell", "-s",
        metavar="NAME",
        choices=sorted(SHELL_NAMES),
        help="Target shell to render for",
    )
    parser.add_argument("--workdir", "-w", metavar="DIR", help="Working directory for the command")
    parser.add_argument(
        "--set-env", "-e",
        metavar="NAME=VALUE",
        action="append",
        default=[],
        type=_parse_assignment,
        help="Override an environment variable (repeatable)",
    )
    parser.add_argument(
        "--unset-env", "-u",
        metavar="NAME",
        action="append",
        default=[],
        help="Remove an environment variable (repeatable)",
    )
    parser.add_argument("--no-inherit-env", action="store_true", help="Do not start from the current environment")
    parser.add_argument("--split", action="store_true", help="Only split LINE into arguments")
    parser.add_argument("--env", action="store_true", help="Also print the rendered environment")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    return parser.parse_args(args)


def run(ns: argparse.Namespace) -> int:
    if ns.split:
        for token in translate_commandline(ns.line):
            print(repr(token))
        return 0

    shell, _ = get_default_shell(ns.shell)
    cmd = Commandline(ns.line, shell=shell)
    if ns.workdir:
        cmd.working_directory = ns.workdir
    cmd.shell_environment_inherited = not ns.no_inherit_env
    for name, value in ns.set_env:
        cmd.add_environment(name, value)
    for name in ns.unset_env:
        cmd.add_environment(name, None)

    for item in cmd.render():
        print(item)
    if ns.env:
        print()
        for var in cmd.get_environment_variables():
            print(var)
    return 0


def main(args=None) -> int:
    ns = parse_args(args)
    if ns.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    try:
        return run(ns)
    except CommandLineError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
