"""Toolchain adapters.

The engine does not compile anything itself. A Toolchain turns a target
triple into a path to a release-mode, stripped executable, or a BuildError.
"""

from __future__ import annotations

import os
from pathlib import Path
from shutil import which
from typing import Literal, Protocol

from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import ConsoleProtocol, Style
from shipyard.pipeline.errors import (
    ArtifactMissing,
    BuildError,
    BuildTimedOut,
    ToolchainFailed,
    ToolMissing,
)
from shipyard.platform.detection import target_platform
from shipyard.platform.process import run

__all__ = ["CargoToolchain", "Toolchain", "install_hint"]

_INSTALL_HINTS = {
    "cargo": "Install Rust via https://rustup.rs/",
    "cross": "Install cross: cargo install cross --git https://github.com/cross-rs/cross",
}


def install_hint(tool: str) -> str:
    return _INSTALL_HINTS.get(tool, f"Install {tool} and make sure it is on PATH")


class Toolchain(Protocol):
    def build(
        self,
        target: str,
        *,
        work_dir: Path,
        release: bool = True,
        strip: bool = True,
    ) -> Result[Path, BuildError]: ...


class CargoToolchain:
    """Builds a Rust binary with cargo (native) or cross (containerised).

    Each call gets its own ``CARGO_TARGET_DIR`` under ``work_dir`` so that
    concurrent builds never share intermediate outputs.
    """

    def __init__(
        self,
        *,
        source_root: Path,
        executable_name: str,
        console: ConsoleProtocol,
        tool: Literal["cargo", "cross"] = "cargo",
        timeout_seconds: float | None = None,
    ) -> None:
        self._source_root = source_root
        self._executable_name = executable_name
        self._console = console
        self._tool = tool
        self._timeout = timeout_seconds

    def command(self, target: str, *, release: bool = True, strip: bool = True) -> list[str]:
        cmd = [self._tool, "build", "--target", target]
        if release:
            cmd.append("--release")
        if strip:
            # Equivalent to running `strip` on the output, but works for every
            # target the linker supports, including cross builds.
            cmd += ["--config", 'profile.release.strip="symbols"']
        return cmd

    def artifact_path(self, target: str, *, work_dir: Path, release: bool = True) -> Path:
        profile = "release" if release else "debug"
        exe = target_platform(target).exe_name(self._executable_name)
        return work_dir / "target" / target / profile / exe

    def build(
        self,
        target: str,
        *,
        work_dir: Path,
        release: bool = True,
        strip: bool = True,
    ) -> Result[Path, BuildError]:
        if which(self._tool) is None:
            return Err(ToolMissing(tool=self._tool, hint=install_hint(self._tool)))

        work_dir.mkdir(parents=True, exist_ok=True)
        env = dict(os.environ)
        env["CARGO_TARGET_DIR"] = str(work_dir / "target")

        cmd = self.command(target, release=release, strip=strip)
        self._console.print(" ".join(cmd), Style.DIM)
        result = run(cmd, cwd=self._source_root, env=env, timeout=self._timeout)
        if isinstance(result, Err):
            error = result.error
            if error.timed_out:
                return Err(BuildTimedOut(target=target, timeout_seconds=self._timeout or 0.0))
            return Err(
                ToolchainFailed(target=target, returncode=error.returncode, detail=error.tail())
            )

        out = self.artifact_path(target, work_dir=work_dir, release=release)
        if not out.is_file():
            return Err(ArtifactMissing(path=out))
        return Ok(out)
