from __future__ import annotations

import json
import shutil
from pathlib import Path

from shipyard.core.result import Err, Ok, Result
from shipyard.pipeline.errors import PublishError
from shipyard.platform.process import ProcessError
from shipyard.platform.process import run as run_process

# GH / API operations
GH_TIMEOUT_SECONDS = 60.0
GH_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

# Every gh call is attempted once. Transient failures are reported with a hint
# to rerun; nothing is retried behind the user's back.
_TRANSIENT_MARKERS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "tls handshake timeout",
    "network is unreachable",
    "http 429",
    "http 500",
    "http 502",
    "http 503",
    "http 504",
)


def is_transient_gh_error(error: ProcessError) -> bool:
    if error.timed_out:
        return True
    text = f"{error.stderr}\n{error.stdout}".lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return "release not found" in text or "http 404" in text


def repo_args(repo: str | None) -> list[str]:
    return ["--repo", repo] if repo else []


def run_gh(
    *, cwd: Path, cmd: list[str], timeout: float = GH_TIMEOUT_SECONDS
) -> Result[str, ProcessError]:
    return run_process(cmd, cwd=cwd, timeout=timeout)


def gh_error_hint(error: ProcessError) -> str | None:
    """The gh stderr, plus a rerun suggestion when the failure looks transient."""
    detail = error.stderr.strip() or None
    if not is_transient_gh_error(error):
        return detail
    rerun = "GitHub looks unreachable; rerun the release once it recovers"
    return f"{detail} ({rerun})" if detail else rerun


def gh_json(*, cwd: Path, cmd: list[str]) -> Result[object, ProcessError]:
    result = run_gh(cwd=cwd, cmd=cmd)
    if isinstance(result, Err):
        return result
    try:
        obj: object = json.loads(result.value)
    except json.JSONDecodeError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=0,
                stdout=result.value,
                stderr=f"invalid JSON from gh: {e}",
            )
        )
    return Ok(obj)


def ensure_gh_available() -> Result[None, PublishError]:
    if shutil.which("gh") is None:
        return Err(
            PublishError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, cwd: Path) -> Result[None, PublishError]:
    result = run_process(["gh", "auth", "status"], cwd=cwd, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Run: gh auth login (or set GH_TOKEN)",
            )
        )
    return Ok(None)
