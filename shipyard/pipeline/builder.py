from __future__ import annotations

import re
from pathlib import Path

from shipyard.core.result import Err
from shipyard.output.console import ConsoleProtocol
from shipyard.pipeline.errors import EnvironmentUnavailable
from shipyard.pipeline.model import BuildJob, MatrixEntry
from shipyard.pipeline.publisher import ArtifactPublisher
from shipyard.pipeline.toolchain import Toolchain
from shipyard.platform.detection import Platform, detect_platform, runner_matches_host

_UNSAFE_DIR_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def job_dir_name(platform_name: str) -> str:
    return _UNSAFE_DIR_CHARS.sub("_", platform_name) or "_"


class BuildExecutor:
    """Runs one matrix entry end to end: build, then publish its own artifact.

    Publishing happens inside the job as soon as the binary exists, so fast
    platforms reach the release before slow ones finish compiling. When
    ``tag`` is None (not a release trigger) the job builds only.
    """

    def __init__(
        self,
        *,
        toolchain: Toolchain,
        publisher: ArtifactPublisher | None,
        executable_name: str,
        work_root: Path,
        console: ConsoleProtocol,
        tag: str | None = None,
        host: Platform | None = None,
    ) -> None:
        self._toolchain = toolchain
        self._publisher = publisher
        self._executable_name = executable_name
        self._work_root = work_root
        self._console = console
        self._tag = tag
        self._host = host or detect_platform()

    def run(self, entry: MatrixEntry) -> BuildJob:
        return self.execute(BuildJob(entry=entry))

    def execute(self, job: BuildJob) -> BuildJob:
        """Drive ``job`` from Pending to a terminal state."""
        entry = job.entry
        job.start()

        if not runner_matches_host(entry.runs_on, self._host):
            job.fail(EnvironmentUnavailable(runs_on=entry.runs_on, host=str(self._host)))
            return job

        self._console.info(f"{entry.platform_name}: building {entry.target}")
        work_dir = self._work_root / job_dir_name(entry.platform_name)
        built = self._toolchain.build(entry.target, work_dir=work_dir, release=True, strip=True)
        if isinstance(built, Err):
            job.fail(built.error)
            return job

        artifact = built.value
        job.built(artifact)

        if self._tag is None or self._publisher is None:
            job.succeed()
            return job

        published = self._publisher.publish_asset(
            tag=self._tag,
            executable_name=self._executable_name,
            artifact_path=artifact,
            target=entry.target,
        )
        if isinstance(published, Err):
            job.fail(published.error)
            return job

        job.succeed(published_name=published.value.name)
        return job
