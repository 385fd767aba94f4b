"""Platform abstraction: host detection and subprocess execution."""

from .detection import Platform, detect_platform, runner_matches_host, target_platform
from .process import ProcessError, run

__all__ = [
    "Platform",
    "ProcessError",
    "detect_platform",
    "run",
    "runner_matches_host",
    "target_platform",
]
