from __future__ import annotations

from pathlib import Path

import pytest
import typer

from shipyard.cli.context import CLIContext
from shipyard.core.errors import ErrorCode
from shipyard.pipeline.errors import ToolchainFailed

from ..pipeline._fakes import FakeToolchain
from ._helpers import CONFIG, console_of, make_ctx


def _patch(
    monkeypatch: pytest.MonkeyPatch, ctx: CLIContext, toolchain: FakeToolchain | None = None
) -> FakeToolchain:
    import shipyard.cli.commands.run_cmd as run_cmd

    fake = toolchain or FakeToolchain(executable_name="tool")
    monkeypatch.setattr(run_cmd, "build_context", lambda: ctx)
    monkeypatch.setattr(run_cmd, "CargoToolchain", lambda **_: fake)
    monkeypatch.delenv("GITHUB_REF", raising=False)
    return fake


def _run(**overrides: object) -> None:
    import shipyard.cli.commands.run_cmd as run_cmd

    args: dict[str, object] = {
        "ref": "refs/tags/v1.0.0",
        "only": [],
        "store": None,
        "jobs": None,
        "dry_run": False,
    }
    args.update(overrides)
    run_cmd.run(**args)  # type: ignore[arg-type]


def test_release_run_succeeds(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_ctx(tmp_path)
    fake = _patch(monkeypatch, ctx)

    _run()

    release = tmp_path / "releases" / "v1.0.0"
    assert sorted(p.name for p in release.iterdir() if not p.name.startswith(".")) == [
        "tool-aarch64-apple-darwin.tar.gz",
        "tool-x86_64-unknown-linux-gnu.tar.gz",
        "tool.ron",
    ]
    assert sorted(fake.calls) == ["aarch64-apple-darwin", "x86_64-unknown-linux-gnu"]
    assert console_of(ctx).find("manifest attached")


def test_missing_manifest_exits_with_gate_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx = make_ctx(tmp_path, manifest=False)
    _patch(monkeypatch, ctx)

    with pytest.raises(typer.Exit) as exc:
        _run()

    assert exc.value.exit_code == int(ErrorCode.GATE_ERROR)
    assert console_of(ctx).find("tool.ron missing")


def test_build_failure_exits_with_build_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    ctx = make_ctx(tmp_path)
    failing = FakeToolchain(
        executable_name="tool",
        failures={"aarch64-apple-darwin": ToolchainFailed("aarch64-apple-darwin", 101)},
    )
    _patch(monkeypatch, ctx, failing)

    with pytest.raises(typer.Exit) as exc:
        _run()

    assert exc.value.exit_code == int(ErrorCode.BUILD_ERROR)


def test_only_selects_platforms(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_ctx(tmp_path)
    fake = _patch(monkeypatch, ctx)

    _run(only=["linux"], ref="refs/heads/main")

    assert fake.calls == ["x86_64-unknown-linux-gnu"]
    assert not (tmp_path / "releases").exists()


def test_unknown_platform_is_user_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_ctx(tmp_path)
    fake = _patch(monkeypatch, ctx)

    with pytest.raises(typer.Exit) as exc:
        _run(only=["windows"])

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert fake.calls == []


def test_ref_falls_back_to_github_ref(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_ctx(tmp_path)
    _patch(monkeypatch, ctx)
    monkeypatch.setenv("GITHUB_REF", "refs/tags/v2.0.0")

    _run(ref=None)

    assert (tmp_path / "releases" / "v2.0.0" / "tool.ron").is_file()


def test_missing_ref_is_user_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_ctx(tmp_path)
    _patch(monkeypatch, ctx)

    with pytest.raises(typer.Exit) as exc:
        _run(ref=None)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_invalid_store_is_user_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_ctx(tmp_path)
    _patch(monkeypatch, ctx)

    with pytest.raises(typer.Exit) as exc:
        _run(store="s3")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_dry_run_builds_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import shipyard.cli.commands.run_cmd as run_cmd

    ctx = make_ctx(tmp_path)
    monkeypatch.setattr(run_cmd, "build_context", lambda: ctx)

    _run(dry_run=True)

    console = console_of(ctx)
    assert console.find("release: v1.0.0 (draft, store=local)")
    assert console.find("-> tool-x86_64-unknown-linux-gnu.tar.gz")
    assert console.find("then attach tool.ron")
    assert not (tmp_path / "releases").exists()


def test_shared_target_is_rejected_before_building(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config = CONFIG + (
        "\n[[matrix.platform]]\n"
        'os-name = "linux-self-hosted"\n'
        'runs-on = "self-hosted"\n'
        'target = "x86_64-unknown-linux-gnu"\n'
    )
    ctx = make_ctx(tmp_path, config=config)
    fake = _patch(monkeypatch, ctx)

    with pytest.raises(typer.Exit) as exc:
        _run()

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert fake.calls == []
    assert not (tmp_path / "releases").exists()
    assert console_of(ctx).find("duplicate matrix target")
