from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path

from shipyard.pipeline.errors import BuildError, GateError, PublishError


@dataclass(frozen=True, slots=True)
class MatrixEntry:
    """One platform to build for. Immutable once the matrix is expanded."""

    platform_name: str
    runs_on: str  # runner label, e.g. ubuntu-24.04
    target: str  # toolchain triple
    active: bool = True


class JobStatus(Enum):
    PENDING = auto()
    RUNNING = auto()
    SUCCEEDED = auto()
    FAILED = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


@dataclass(slots=True)
class BuildJob:
    """State of one build attempt for one matrix entry.

    Only the executor that owns the job mutates it, and it reaches a terminal
    state exactly once.
    """

    entry: MatrixEntry
    status: JobStatus = JobStatus.PENDING
    artifact_path: Path | None = None
    published_name: str | None = None
    error: BuildError | PublishError | None = None

    @property
    def platform_name(self) -> str:
        return self.entry.platform_name

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCEEDED

    def start(self) -> None:
        if self.status != JobStatus.PENDING:
            raise RuntimeError(f"{self.platform_name}: cannot start a {self.status} job")
        self.status = JobStatus.RUNNING

    def built(self, artifact_path: Path) -> None:
        self._require_running()
        self.artifact_path = artifact_path

    def succeed(self, published_name: str | None = None) -> None:
        self._require_running()
        if self.artifact_path is None:
            raise RuntimeError(f"{self.platform_name}: succeeded without an artifact")
        self.published_name = published_name
        self.status = JobStatus.SUCCEEDED

    def fail(self, error: BuildError | PublishError) -> None:
        if self.status.is_terminal:
            raise RuntimeError(f"{self.platform_name}: job already {self.status}")
        self.error = error
        self.status = JobStatus.FAILED

    def _require_running(self) -> None:
        if self.status != JobStatus.RUNNING:
            raise RuntimeError(f"{self.platform_name}: job is {self.status}, not running")


@dataclass(eq=False)
class ReleaseHandle:
    """A release entry in the store, shared by every publisher for one tag.

    ``uploaded_files`` is written from several worker threads; go through
    ``record``/``files`` rather than touching the set directly.
    """

    tag: str
    draft: bool = True
    uploaded_files: set[str] = field(default_factory=set)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, filename: str) -> None:
        with self._lock:
            self.uploaded_files.add(filename)

    def files(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self.uploaded_files)

    def __contains__(self, filename: object) -> bool:
        with self._lock:
            return filename in self.uploaded_files


@dataclass(frozen=True, slots=True)
class UploadAck:
    """Store confirmation of one upload: every remote name that was written."""

    remote_name: str
    files: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ManifestAssertion:
    required_path: str
    present: bool
    matches: tuple[Path, ...] = ()


class GateState(Enum):
    NOT_RUN = auto()
    ASSERTING = auto()
    ATTACHING = auto()
    DONE = auto()
    FAILED = auto()

    def __str__(self) -> str:
        return self.name.lower().replace("_", "-")

    @property
    def is_terminal(self) -> bool:
        return self in (GateState.DONE, GateState.FAILED)


@dataclass(frozen=True, slots=True)
class GateReport:
    state: GateState
    history: tuple[GateState, ...]
    assertion: ManifestAssertion | None = None
    error: GateError | None = None

    @property
    def done(self) -> bool:
        return self.state == GateState.DONE

    def reached(self, state: GateState) -> bool:
        return state in self.history
