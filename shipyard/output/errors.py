"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shipyard.core.errors import ErrorCode
from shipyard.output.console import Style
from shipyard.pipeline.errors import (
    ArtifactMissing,
    BuildCancelled,
    BuildError,
    BuildTimedOut,
    EnvironmentUnavailable,
    GateError,
    ManifestMissing,
    ManifestUploadAmbiguous,
    PublishError,
    ReleaseNotFound,
    ToolchainFailed,
    ToolMissing,
    WorkerCrashed,
)

if TYPE_CHECKING:
    from shipyard.output.console import ConsoleProtocol
    from shipyard.pipeline.controller import PipelineReport

__all__ = [
    "describe_job_error",
    "pipeline_exit_code",
    "print_gate_error",
    "print_job_detail",
    "print_summary",
]


def describe_job_error(error: BuildError | PublishError) -> str:
    """One-line description of a job-local failure."""
    match error:
        case EnvironmentUnavailable(runs_on=runs_on, host=host):
            return f"runner '{runs_on}' is not available on this {host} host"
        case ToolMissing(tool=tool):
            return f"{tool}: missing"
        case ToolchainFailed(target=target, returncode=rc):
            return f"build failed for {target} (exit {rc})"
        case BuildTimedOut(target=target, timeout_seconds=t):
            return f"build for {target} timed out after {t:.0f}s"
        case ArtifactMissing(path=path):
            return f"output not found: {path}"
        case BuildCancelled(reason=reason):
            return f"cancelled ({reason})"
        case WorkerCrashed(detail=detail):
            return f"build worker crashed: {detail}"
        case PublishError(message=message):
            return f"publish failed: {message}"
    # Fallback for exhaustiveness
    return str(error)


def print_job_detail(error: BuildError | PublishError, console: ConsoleProtocol) -> None:
    """Hints and captured tool output below the one-line description."""
    match error:
        case ToolMissing(hint=hint):
            console.print(f"hint: {hint}", Style.DIM)
        case ToolchainFailed(detail=detail) if detail:
            console.print(detail, Style.DIM)
        case PublishError(hint=hint) if hint:
            console.print(f"hint: {hint}", Style.DIM)
        case _:
            pass


def print_gate_error(error: GateError, console: ConsoleProtocol) -> None:
    match error:
        case ManifestMissing(path=path, hint=hint):
            console.error(f"{path} missing")
            console.print(f"hint: {hint}", Style.DIM)
        case ManifestUploadAmbiguous(matches=matches):
            console.error(error.message)
            for m in matches:
                console.print(f"  {m}", Style.DIM)
        case ReleaseNotFound():
            console.error(error.message)
        case PublishError(message=message, hint=hint):
            console.error(f"manifest upload failed: {message}")
            if hint:
                console.print(f"hint: {hint}", Style.DIM)


def pipeline_exit_code(report: PipelineReport) -> int:
    """Exit code for a finished run.

    Build failures win over gate failures: a broken platform is the more
    actionable problem.
    """
    if report.ok:
        return int(ErrorCode.OK)
    if report.interrupted or not report.builds_ok:
        return int(ErrorCode.BUILD_ERROR)
    return int(ErrorCode.GATE_ERROR)


def print_summary(report: PipelineReport, console: ConsoleProtocol) -> None:
    console.header("Summary")
    for job in report.jobs:
        if job.succeeded:
            console.success(f"{job.platform_name} ({job.entry.target})")
        elif job.error is not None:
            console.error(f"{job.platform_name}: {describe_job_error(job.error)}")
            print_job_detail(job.error, console)

    if report.release is not None:
        state = "draft" if report.release.draft else "published"
        files = ", ".join(sorted(report.release.files())) or "(none)"
        console.print(f"release {report.release.tag} [{state}]: {files}", Style.DIM)

    if report.gate is not None:
        if report.gate.done:
            console.success(f"manifest attached ({report.gate.state})")
        elif report.gate.error is not None:
            print_gate_error(report.gate.error, console)
