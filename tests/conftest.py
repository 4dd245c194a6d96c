import sys
from pathlib import Path

import pytest

# Ensure we can import modules from src/
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from platforms import Platform, POSIX, WINDOWS  # noqa: E402


def _fixed_environ(values):
    def provider():
        return dict(values)
    return provider


@pytest.fixture()
def ambient_env():
    # Snapshot handed to platforms instead of the real os.environ
    return {
        "PATH": "/usr/bin:/bin",
        "HOME": "/home/tester",
        "TEST_SHARED_ENV": "TestValue",
        "MixedCase": "kept",
    }


@pytest.fixture()
def posix_platform(ambient_env):
    return Platform(name=POSIX, environ=_fixed_environ(ambient_env))


@pytest.fixture()
def windows_platform(ambient_env):
    return Platform(name=WINDOWS, environ=_fixed_environ(ambient_env))
