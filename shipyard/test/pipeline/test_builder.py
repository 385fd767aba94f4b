"""Tests for shipyard.pipeline.builder module."""

from __future__ import annotations

from pathlib import Path

from shipyard.output.console import MockConsole
from shipyard.pipeline.builder import BuildExecutor, job_dir_name
from shipyard.pipeline.errors import EnvironmentUnavailable, PublishError, ToolchainFailed
from shipyard.pipeline.model import JobStatus, MatrixEntry
from shipyard.pipeline.publisher import ArtifactPublisher
from shipyard.pipeline.store import LocalReleaseStore
from shipyard.platform.detection import Platform

from ._fakes import LINUX, FakeToolchain, FlakyUploadStore


def _executor(
    tmp_path: Path,
    toolchain: FakeToolchain,
    *,
    store: LocalReleaseStore | None = None,
    tag: str | None = "v1.0.0",
    host: Platform = Platform.LINUX,
) -> BuildExecutor:
    console = MockConsole()
    publisher = ArtifactPublisher(
        store=store or LocalReleaseStore(tmp_path / "releases"),
        staging_dir=tmp_path / "dist",
        console=console,
    )
    return BuildExecutor(
        toolchain=toolchain,
        publisher=publisher,
        executable_name="tool",
        work_root=tmp_path / "work",
        console=console,
        tag=tag,
        host=host,
    )


def test_job_dir_name() -> None:
    assert job_dir_name("linux") == "linux"
    assert job_dir_name("linux musl/arm") == "linux_musl_arm"


class TestBuildExecutor:
    def test_builds_and_publishes(self, tmp_path: Path) -> None:
        job = _executor(tmp_path, FakeToolchain()).run(LINUX)

        assert job.status == JobStatus.SUCCEEDED
        assert job.published_name == "tool-x86_64-unknown-linux-gnu.tar.gz"
        assert job.artifact_path is not None
        assert job.artifact_path.is_relative_to(tmp_path / "work" / "linux")

    def test_build_only_without_tag(self, tmp_path: Path) -> None:
        job = _executor(tmp_path, FakeToolchain(), tag=None).run(LINUX)

        assert job.succeeded
        assert job.published_name is None
        assert not (tmp_path / "releases").exists()

    def test_build_failure(self, tmp_path: Path) -> None:
        error = ToolchainFailed(target=LINUX.target, returncode=101)
        toolchain = FakeToolchain(failures={LINUX.target: error})

        job = _executor(tmp_path, toolchain).run(LINUX)

        assert job.status == JobStatus.FAILED
        assert job.error == error
        assert job.published_name is None

    def test_publish_failure_fails_job(self, tmp_path: Path) -> None:
        store = FlakyUploadStore(
            tmp_path / "releases", fail_names={"tool-x86_64-unknown-linux-gnu.tar.gz"}
        )

        job = _executor(tmp_path, FakeToolchain(), store=store).run(LINUX)

        assert job.status == JobStatus.FAILED
        assert isinstance(job.error, PublishError)
        assert job.artifact_path is not None

    def test_incompatible_runner(self, tmp_path: Path) -> None:
        toolchain = FakeToolchain()
        entry = MatrixEntry(
            platform_name="windows", runs_on="windows-latest", target="x86_64-pc-windows-msvc"
        )

        job = _executor(tmp_path, toolchain, host=Platform.LINUX).run(entry)

        assert job.status == JobStatus.FAILED
        assert job.error == EnvironmentUnavailable(runs_on="windows-latest", host="linux")
        assert toolchain.calls == []
