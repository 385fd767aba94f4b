"""Tests for shipyard.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from shipyard.core.config import (
    DEFAULT_BUILD_TIMEOUT_SECONDS,
    DEFAULT_MANIFEST,
    PipelineConfig,
    PlatformConfig,
    ReleaseConfig,
    load_config,
)
from shipyard.core.result import Err, Ok

FULL_CONFIG = """
[project]
executable-name = "connector"
manifest = "connector.ron"

[release]
draft = false
store = "local"
repo = "acme/connector"
local-dir = "out/releases"

[build]
tool = "cross"
timeout-seconds = 600
max-workers = 2
work-dir = "out/build"

[[matrix.platform]]
os-name = "linux"
runs-on = "ubuntu-24.04"
target = "x86_64-unknown-linux-gnu"

[[matrix.platform]]
os-name = "windows"
runs-on = "windows-latest"
target = "x86_64-pc-windows-msvc"
active = false
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "shipyard.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestDefaults:
    def test_release_defaults_to_draft_on_github(self) -> None:
        config = ReleaseConfig()
        assert config.draft is True
        assert config.store == "github"
        assert config.repo is None

    def test_platform_frozen(self) -> None:
        platform = PlatformConfig(os_name="linux", runs_on="ubuntu-latest", target="t")
        with pytest.raises(AttributeError):
            platform.active = False  # type: ignore[misc]


class TestFromDict:
    def test_minimal(self) -> None:
        config = PipelineConfig.from_dict({"project": {"executable-name": "tool"}})
        assert config.project.executable_name == "tool"
        assert config.project.manifest == DEFAULT_MANIFEST
        assert config.build.tool == "cargo"
        assert config.build.timeout_seconds == DEFAULT_BUILD_TIMEOUT_SECONDS
        assert config.build.max_workers == 0
        assert config.platforms == ()

    def test_executable_name_required(self) -> None:
        with pytest.raises(ValueError, match="executable-name"):
            PipelineConfig.from_dict({"project": {}})

    def test_rejects_unknown_store(self) -> None:
        with pytest.raises(ValueError, match="store"):
            PipelineConfig.from_dict(
                {"project": {"executable-name": "t"}, "release": {"store": "s3"}}
            )

    def test_rejects_unknown_tool(self) -> None:
        with pytest.raises(ValueError, match="tool"):
            PipelineConfig.from_dict(
                {"project": {"executable-name": "t"}, "build": {"tool": "make"}}
            )

    def test_rejects_negative_workers(self) -> None:
        with pytest.raises(ValueError, match="max-workers"):
            PipelineConfig.from_dict(
                {"project": {"executable-name": "t"}, "build": {"max-workers": -1}}
            )

    @pytest.mark.parametrize("timeout", [0, -5])
    def test_rejects_non_positive_timeout(self, timeout: int) -> None:
        with pytest.raises(ValueError, match="timeout-seconds"):
            PipelineConfig.from_dict(
                {"project": {"executable-name": "t"}, "build": {"timeout-seconds": timeout}}
            )

    def test_platform_missing_fields_are_named(self) -> None:
        data = {
            "project": {"executable-name": "t"},
            "matrix": {"platform": [{"os-name": "linux"}]},
        }
        with pytest.raises(ValueError, match="runs-on, target"):
            PipelineConfig.from_dict(data)

    def test_platform_must_be_table(self) -> None:
        data = {"project": {"executable-name": "t"}, "matrix": {"platform": ["linux"]}}
        with pytest.raises(ValueError, match="must be a table"):
            PipelineConfig.from_dict(data)


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, FULL_CONFIG))

        assert isinstance(result, Ok)
        config = result.value
        assert config.project.manifest == "connector.ron"
        assert config.release.draft is False
        assert config.release.store == "local"
        assert config.release.repo == "acme/connector"
        assert config.release.local_dir == "out/releases"
        assert config.build.tool == "cross"
        assert config.build.timeout_seconds == 600.0
        assert config.build.max_workers == 2
        assert config.build.work_dir == "out/build"
        assert [p.os_name for p in config.platforms] == ["linux", "windows"]
        assert config.platforms[0].active is True
        assert config.platforms[1].active is False

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "shipyard.toml")

        assert isinstance(result, Err)
        assert "not found" in result.error.message
        assert result.error.path == tmp_path / "shipyard.toml"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "[project\n"))

        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_invalid_structure(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, '[project]\nmanifest = "m.ron"\n'))

        assert isinstance(result, Err)
        assert "executable-name" in result.error.message

    def test_wrong_type_for_bool(self, tmp_path: Path) -> None:
        content = '[project]\nexecutable-name = "t"\n[release]\ndraft = "yes"\n'
        result = load_config(_write(tmp_path, content))

        # get_bool ignores non-bool values, so the default applies
        assert isinstance(result, Ok)
        assert result.value.release.draft is True
