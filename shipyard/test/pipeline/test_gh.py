"""Tests for shipyard.pipeline.gh module."""

from __future__ import annotations

from pathlib import Path

import pytest

from shipyard.core.result import Err, Ok, Result
from shipyard.pipeline import gh
from shipyard.platform.process import ProcessError


def _err(stderr: str, *, timed_out: bool = False) -> Err[ProcessError]:
    return Err(ProcessError(("gh",), 1, "", stderr, timed_out=timed_out))


class TestClassification:
    def test_transient(self) -> None:
        assert gh.is_transient_gh_error(_err("HTTP 502: Bad Gateway").error)
        assert gh.is_transient_gh_error(_err("", timed_out=True).error)
        assert not gh.is_transient_gh_error(_err("HTTP 401: Bad credentials").error)

    def test_not_found(self) -> None:
        assert gh.is_not_found(_err("release not found").error)
        assert gh.is_not_found(_err("HTTP 404: Not Found").error)
        assert not gh.is_not_found(_err("repository not found in cache").error)

    def test_repo_args(self) -> None:
        assert gh.repo_args(None) == []
        assert gh.repo_args("acme/tool") == ["--repo", "acme/tool"]


class TestSingleAttempt:
    @pytest.mark.parametrize("stderr", ["HTTP 503", "connection reset by peer", "HTTP 502"])
    def test_transient_errors_are_not_retried(
        self, stderr: str, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[list[str]] = []

        def fake_run(cmd: list[str], **kwargs: object) -> Result[str, ProcessError]:
            calls.append(cmd)
            return _err(stderr)

        monkeypatch.setattr(gh, "run_process", fake_run)

        result = gh.run_gh(cwd=tmp_path, cmd=["gh", "release", "view", "v1.0.0"])

        assert isinstance(result, Err)
        assert len(calls) == 1

    def test_json_read_runs_once(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[list[str]] = []

        def fake_run(cmd: list[str], **kwargs: object) -> Result[str, ProcessError]:
            calls.append(cmd)
            return _err("", timed_out=True)

        monkeypatch.setattr(gh, "run_process", fake_run)

        result = gh.gh_json(cwd=tmp_path, cmd=["gh", "release", "view", "v1.0.0"])

        assert isinstance(result, Err)
        assert len(calls) == 1


class TestErrorHint:
    def test_permanent_error_keeps_stderr(self) -> None:
        assert gh.gh_error_hint(_err("HTTP 401: Bad credentials\n").error) == (
            "HTTP 401: Bad credentials"
        )

    def test_transient_error_suggests_rerun(self) -> None:
        hint = gh.gh_error_hint(_err("HTTP 502: Bad Gateway").error)
        assert hint is not None
        assert hint.startswith("HTTP 502: Bad Gateway")
        assert "rerun" in hint

    def test_timeout_without_stderr(self) -> None:
        hint = gh.gh_error_hint(_err("", timed_out=True).error)
        assert hint is not None and "rerun" in hint

    def test_empty_stderr(self) -> None:
        assert gh.gh_error_hint(_err("").error) is None


class TestJson:
    def test_invalid_json(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(gh, "run_process", lambda cmd, **kwargs: Ok("not json"))

        result = gh.gh_json(cwd=tmp_path, cmd=["gh", "api"])

        assert isinstance(result, Err)
        assert "invalid JSON" in result.error.stderr
