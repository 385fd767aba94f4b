"""Manifest gate.

After every build job has finished, the release is only complete once the
manifest file from the checkout is attached to it. The gate refuses to go on
when that file is absent: a release without its manifest is broken even if
every binary built.

    NotRun -> Asserting -> Attaching -> Done
                  |            |
                  +-> Failed <-+
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from shipyard.core.result import Err
from shipyard.output.console import ConsoleProtocol, Style
from shipyard.pipeline.errors import (
    GateError,
    ManifestMissing,
    ManifestUploadAmbiguous,
    ReleaseNotFound,
)
from shipyard.pipeline.fsm import run_state_machine
from shipyard.pipeline.model import GateReport, GateState, ManifestAssertion, ReleaseHandle
from shipyard.pipeline.store import ReleaseStore

_GLOB_CHARS = frozenset("*?[")


@dataclass(frozen=True, slots=True)
class _Session:
    state: GateState
    tag: str
    required_path: str
    assertion: ManifestAssertion | None = None
    manifest: Path | None = None
    handle: ReleaseHandle | None = None
    error: GateError | None = None


def resolve_manifest(root: Path, required_path: str) -> tuple[Path, ...]:
    """Files in the checkout matching ``required_path`` (a path or a glob)."""
    if any(c in _GLOB_CHARS for c in required_path):
        return tuple(p for p in sorted(root.glob(required_path)) if p.is_file())
    candidate = root / required_path
    return (candidate,) if candidate.is_file() else ()


class ManifestGate:
    """Asserts the manifest exists, then attaches it to the existing release.

    One instance serves exactly one pipeline run.
    """

    def __init__(self, *, store: ReleaseStore, checkout_root: Path, console: ConsoleProtocol):
        self._store = store
        self._root = checkout_root
        self._console = console
        self._state = GateState.NOT_RUN

    @property
    def state(self) -> GateState:
        return self._state

    def attach(self, tag: str, required_path: str) -> GateReport:
        if self._state != GateState.NOT_RUN:
            raise RuntimeError(f"manifest gate already ran (state: {self._state})")

        history: list[GateState] = []

        def on_step(session: _Session) -> None:
            self._state = session.state
            history.append(session.state)

        start = _Session(state=GateState.ASSERTING, tag=tag, required_path=required_path)
        on_step(start)

        final = run_state_machine(
            initial_state=start,
            get_step=lambda s: s.state,
            handlers={
                GateState.ASSERTING: self._assert,
                GateState.ATTACHING: self._attach,
            },
            is_terminal=lambda state: state.is_terminal,
            on_step=on_step,
        )
        return GateReport(
            state=final.state,
            history=tuple(history),
            assertion=final.assertion,
            error=final.error,
        )

    def _fail(self, session: _Session, error: GateError) -> _Session:
        return replace(session, state=GateState.FAILED, error=error)

    def _assert(self, s: _Session) -> _Session:
        matches = resolve_manifest(self._root, s.required_path)
        s = replace(
            s,
            assertion=ManifestAssertion(
                required_path=s.required_path,
                present=len(matches) > 0,
                matches=matches,
            ),
        )
        if not matches:
            return self._fail(s, ManifestMissing(path=s.required_path))
        if len(matches) > 1:
            names = tuple(str(p.relative_to(self._root)) for p in matches)
            return self._fail(s, ManifestUploadAmbiguous(path=s.required_path, matches=names))

        found = self._store.find_release(s.tag)
        if isinstance(found, Err):
            return self._fail(s, found.error)
        if found.value is None:
            return self._fail(s, ReleaseNotFound(tag=s.tag))

        return replace(s, state=GateState.ATTACHING, manifest=matches[0], handle=found.value)

    def _attach(self, s: _Session) -> _Session:
        assert s.manifest is not None and s.handle is not None
        name = s.manifest.name

        self._console.print(f"attach {name} -> {s.tag}", Style.DIM)
        ack = self._store.upload_file(s.handle, s.manifest, name)
        if isinstance(ack, Err):
            return self._fail(s, ack.error)

        transferred = ack.value.files
        if len(transferred) != 1 or transferred[0] != name:
            return self._fail(s, ManifestUploadAmbiguous(path=s.required_path, matches=transferred))

        listed = self._store.list_files(s.handle)
        if isinstance(listed, Err):
            return self._fail(s, listed.error)
        if name not in listed.value:
            return self._fail(s, ManifestUploadAmbiguous(path=s.required_path, matches=()))

        s.handle.record(name)
        return replace(s, state=GateState.DONE)
