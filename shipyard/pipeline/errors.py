"""Error values for the release pipeline.

Job-local errors (BuildError, PublishError) are recorded on the BuildJob that
produced them and never stop sibling jobs. Gate errors end the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from shipyard.core.config import ConfigurationError

__all__ = [
    "ArtifactMissing",
    "BuildCancelled",
    "BuildError",
    "BuildTimedOut",
    "ConfigurationError",
    "EnvironmentUnavailable",
    "GateError",
    "ManifestMissing",
    "ManifestUploadAmbiguous",
    "PublishError",
    "ReleaseNotFound",
    "ToolMissing",
    "ToolchainFailed",
    "WorkerCrashed",
]


# -----------------------------------------------------------------------------
# Build
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EnvironmentUnavailable:
    runs_on: str
    host: str


@dataclass(frozen=True, slots=True)
class ToolMissing:
    tool: str
    hint: str = "Install Rust via https://rustup.rs/"


@dataclass(frozen=True, slots=True)
class ToolchainFailed:
    target: str
    returncode: int
    detail: str = ""


@dataclass(frozen=True, slots=True)
class BuildTimedOut:
    target: str
    timeout_seconds: float


@dataclass(frozen=True, slots=True)
class ArtifactMissing:
    path: Path


@dataclass(frozen=True, slots=True)
class BuildCancelled:
    reason: str = "interrupted"


@dataclass(frozen=True, slots=True)
class WorkerCrashed:
    detail: str


BuildError = (
    EnvironmentUnavailable
    | ToolMissing
    | ToolchainFailed
    | BuildTimedOut
    | ArtifactMissing
    | BuildCancelled
    | WorkerCrashed
)


# -----------------------------------------------------------------------------
# Publish
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PublishError:
    kind: Literal[
        "gh_missing",
        "gh_auth_required",
        "release_failed",
        "package_failed",
        "upload_failed",
        "list_failed",
    ]
    message: str
    hint: str | None = None


# -----------------------------------------------------------------------------
# Manifest gate
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ManifestMissing:
    path: str
    hint: str = "The manifest must be committed at the repository root before tagging"

    @property
    def message(self) -> str:
        return f"{self.path} missing"


@dataclass(frozen=True, slots=True)
class ManifestUploadAmbiguous:
    path: str
    matches: tuple[str, ...]

    @property
    def message(self) -> str:
        if not self.matches:
            return f"{self.path}: upload matched no file"
        return f"{self.path}: expected exactly one file, matched {len(self.matches)}"


@dataclass(frozen=True, slots=True)
class ReleaseNotFound:
    tag: str

    @property
    def message(self) -> str:
        return f"no release exists for {self.tag} (no platform was published)"


GateError = ManifestMissing | ManifestUploadAmbiguous | ReleaseNotFound | PublishError
