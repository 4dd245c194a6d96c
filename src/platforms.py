"""Host platform capability and environment snapshots.

Everything that depends on the host OS goes through a Platform value so the
quoting and rendering code can be exercised for any platform from any host.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional

POSIX = "posix"
WINDOWS = "windows"


def _ambient_environ() -> Dict[str, str]:
    return dict(os.environ)


@dataclass(frozen=True)
class Platform:
    """Name of the host family plus a provider for the ambient environment."""
    name: str = POSIX
    environ: Callable[[], Mapping[str, str]] = field(default=_ambient_environ, compare=False)

    @classmethod
    def current(cls) -> "Platform":
        return cls(name=WINDOWS if os.name == "nt" else POSIX)

    @property
    def is_windows(self) -> bool:
        return self.name == WINDOWS

    @property
    def case_sensitive_env(self) -> bool:
        return not self.is_windows


def ensure_case_sensitivity(env: Mapping[str, Optional[str]], preserve_key_case: bool) -> Dict[str, Optional[str]]:
    if preserve_key_case:
        return dict(env)
    return {k.upper(): v for k, v in env.items()}


def get_system_env_vars(case_sensitive: Optional[bool] = None, platform: Optional[Platform] = None) -> Dict[str, str]:
    """Snapshot the ambient environment.

    Keys are upper-cased when the environment is case-insensitive, which is
    the platform default unless `case_sensitive` says otherwise.
    """
    platform = platform or Platform.current()
    if case_sensitive is None:
        case_sensitive = platform.case_sensitive_env
    snapshot = dict(platform.environ())
    return ensure_case_sensitivity(snapshot, case_sensitive)  # type: ignore[return-value]
