from __future__ import annotations

from pathlib import Path

import pytest
import typer

from shipyard.cli.context import build_context, make_store
from shipyard.core.checkout import ROOT_ENV_VAR
from shipyard.core.errors import ErrorCode
from shipyard.pipeline.store import GhReleaseStore, LocalReleaseStore

from ._helpers import make_ctx


def test_build_context_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    make_ctx(tmp_path)
    monkeypatch.setenv(ROOT_ENV_VAR, str(tmp_path))

    ctx = build_context()

    assert ctx.checkout.root == tmp_path.resolve()
    assert ctx.config.project.executable_name == "tool"


def test_no_checkout_is_env_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ROOT_ENV_VAR, str(tmp_path))

    with pytest.raises(typer.Exit) as exc:
        build_context()

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)


def test_bad_config_is_user_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "shipyard.toml").write_text("[project]\n", encoding="utf-8")
    monkeypatch.setenv(ROOT_ENV_VAR, str(tmp_path))

    with pytest.raises(typer.Exit) as exc:
        build_context()

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_make_store(tmp_path: Path) -> None:
    ctx = make_ctx(tmp_path)

    local = make_store(ctx)
    assert isinstance(local, LocalReleaseStore)
    assert local.root == tmp_path / "releases"
    assert isinstance(make_store(ctx, kind="github"), GhReleaseStore)
