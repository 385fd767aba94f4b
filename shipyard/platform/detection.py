"""Host platform detection and runner label matching.

Matrix entries name the environment they need with a runner label such as
``ubuntu-24.04`` or ``windows-latest``. A local engine can only honour the
labels whose operating system family matches the host it runs on.
"""

from __future__ import annotations

import sys as _sys
from enum import Enum, auto
from functools import lru_cache

__all__ = [
    "Platform",
    "detect_platform",
    "platform_for_runner",
    "runner_matches_host",
    "target_platform",
]


class Platform(Enum):
    """Operating system family."""

    LINUX = auto()
    MACOS = auto()
    WINDOWS = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self == Platform.WINDOWS else ""

    def exe_name(self, name: str) -> str:
        """Executable name with the platform suffix (``foo`` -> ``foo.exe`` on Windows)."""
        return f"{name}{self.exe_suffix}"


# Runner label prefixes, matched case-insensitively.
_RUNNER_PREFIXES: tuple[tuple[str, Platform], ...] = (
    ("ubuntu", Platform.LINUX),
    ("linux", Platform.LINUX),
    ("debian", Platform.LINUX),
    ("windows", Platform.WINDOWS),
    ("macos", Platform.MACOS),
)

_ANY_RUNNER_LABELS = frozenset({"self-hosted", "local", "any"})


@lru_cache(maxsize=1)
def detect_platform() -> Platform:
    """Detect the current operating system (cached)."""
    # NOTE: avoid platform.system() on Windows, it may query WMI.
    system = _sys.platform.lower()
    if system.startswith("linux"):
        return Platform.LINUX
    if system.startswith("darwin"):
        return Platform.MACOS
    if system.startswith(("win32", "cygwin", "msys")):
        return Platform.WINDOWS
    return Platform.UNKNOWN


def platform_for_runner(runs_on: str) -> Platform | None:
    """Map a runner label to its OS family.

    Returns None for labels that run anywhere (``self-hosted``) and
    Platform.UNKNOWN for labels that are not recognised.
    """
    label = runs_on.strip().lower()
    if label in _ANY_RUNNER_LABELS:
        return None
    for prefix, platform in _RUNNER_PREFIXES:
        if label.startswith(prefix):
            return platform
    return Platform.UNKNOWN


def runner_matches_host(runs_on: str, host: Platform | None = None) -> bool:
    expected = platform_for_runner(runs_on)
    if expected is None:
        return True
    return expected == (host or detect_platform())


def target_platform(target: str) -> Platform:
    """OS family a toolchain triple produces binaries for."""
    triple = target.lower()
    if "windows" in triple:
        return Platform.WINDOWS
    if "apple" in triple or "darwin" in triple:
        return Platform.MACOS
    if "linux" in triple or "freebsd" in triple or "netbsd" in triple:
        # BSD binaries follow the same naming and archive rules as Linux ones
        return Platform.LINUX
    return Platform.UNKNOWN
