from __future__ import annotations

from pathlib import Path

import pytest
import typer

from shipyard.core.errors import ErrorCode
from shipyard.pipeline.preflight import CheckResult, PreflightReport

from ._helpers import console_of, make_ctx


def _patch_report(monkeypatch: pytest.MonkeyPatch, *, report: PreflightReport) -> None:
    import shipyard.cli.commands.check as check_cmd

    class FakeChecker:
        def __init__(self, **_: object) -> None:
            pass

        def run(self) -> PreflightReport:
            return report

    monkeypatch.setattr(check_cmd, "PreflightChecker", FakeChecker)


def test_check_exits_on_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import shipyard.cli.commands.check as check_cmd

    ctx = make_ctx(tmp_path)
    monkeypatch.setattr(check_cmd, "build_context", lambda: ctx)
    _patch_report(
        monkeypatch,
        report=PreflightReport(
            project=[CheckResult.error("manifest", "tool.ron missing", hint="commit it")],
            matrix=[],
            tools=[],
        ),
    )

    with pytest.raises(typer.Exit) as exc:
        check_cmd.check(local=False)

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
    assert console_of(ctx).find("hint: commit it")


def test_check_warnings_do_not_fail(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import shipyard.cli.commands.check as check_cmd

    ctx = make_ctx(tmp_path)
    monkeypatch.setattr(check_cmd, "build_context", lambda: ctx)
    _patch_report(
        monkeypatch,
        report=PreflightReport(
            project=[CheckResult.success("manifest", "tool.ron")],
            matrix=[CheckResult.warning("windows", "disabled")],
            tools=[],
        ),
    )

    check_cmd.check(local=False)

    assert console_of(ctx).find("windows: disabled")
