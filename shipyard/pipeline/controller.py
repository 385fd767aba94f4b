from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import ConsoleProtocol, Style
from shipyard.output.errors import describe_job_error
from shipyard.pipeline.builder import BuildExecutor
from shipyard.pipeline.errors import BuildCancelled, PublishError, WorkerCrashed
from shipyard.pipeline.gate import ManifestGate
from shipyard.pipeline.model import BuildJob, GateReport, MatrixEntry, ReleaseHandle
from shipyard.pipeline.store import ReleaseStore
from shipyard.pipeline.trigger import Trigger


@dataclass(frozen=True, slots=True)
class PipelineReport:
    trigger: Trigger
    jobs: tuple[BuildJob, ...]
    gate: GateReport | None = None
    release: ReleaseHandle | None = None
    interrupted: bool = False

    @property
    def succeeded_jobs(self) -> tuple[BuildJob, ...]:
        return tuple(j for j in self.jobs if j.succeeded)

    @property
    def failed_jobs(self) -> tuple[BuildJob, ...]:
        return tuple(j for j in self.jobs if not j.succeeded)

    @property
    def builds_ok(self) -> bool:
        """All active entries succeeded; partial success counts as failure."""
        return bool(self.jobs) and not self.failed_jobs

    @property
    def gate_ok(self) -> bool:
        if self.gate is None:
            return not self.trigger.is_release or not self.succeeded_jobs
        return self.gate.done

    @property
    def ok(self) -> bool:
        return self.builds_ok and self.gate_ok and not self.interrupted


class PipelineController:
    """Runs one release: parallel builds, a full join, then the manifest gate."""

    def __init__(
        self,
        *,
        executor: BuildExecutor,
        store: ReleaseStore,
        gate: ManifestGate,
        manifest_path: str,
        console: ConsoleProtocol,
        max_workers: int = 0,
    ) -> None:
        self._executor = executor
        self._store = store
        self._gate = gate
        self._manifest_path = manifest_path
        self._console = console
        self._max_workers = max_workers

    def run(self, trigger: Trigger, entries: tuple[MatrixEntry, ...]) -> PipelineReport:
        jobs = tuple(BuildJob(entry=e) for e in entries)
        interrupted = self._run_jobs(jobs)

        if interrupted:
            return PipelineReport(trigger=trigger, jobs=jobs, interrupted=True)

        found = self._current_release(trigger, jobs)
        if isinstance(found, Err):
            self._console.error(f"release lookup failed: {found.error.message}")
            if found.error.hint:
                self._console.print(f"hint: {found.error.hint}", Style.DIM)
            return PipelineReport(trigger=trigger, jobs=jobs)
        release = found.value

        if not trigger.is_release or trigger.tag is None:
            ref = trigger.ref or "(no ref)"
            self._console.info(f"{ref} is not a release tag; manifest gate skipped")
            return PipelineReport(trigger=trigger, jobs=jobs, release=release)

        if release is None:
            # Nothing was published in this run. A release left over from an
            # earlier run must not receive the manifest.
            self._console.warning("no platform published; manifest gate skipped")
            return PipelineReport(trigger=trigger, jobs=jobs)

        failed = [j.platform_name for j in jobs if not j.succeeded]
        if failed:
            self._console.warning(
                f"manifest gate skipped, incomplete release (failed: {', '.join(failed)})"
            )
            return PipelineReport(trigger=trigger, jobs=jobs, release=release)

        self._console.header(f"Manifest gate: {self._manifest_path}")
        gate = self._gate.attach(trigger.tag, self._manifest_path)
        return PipelineReport(trigger=trigger, jobs=jobs, gate=gate, release=release)

    def _run_jobs(self, jobs: tuple[BuildJob, ...]) -> bool:
        """Run every job to a terminal state. Returns True if interrupted."""
        workers = self._max_workers or len(jobs)
        with ThreadPoolExecutor(
            max_workers=max(1, workers), thread_name_prefix="build"
        ) as pool:
            futures: dict[Future[BuildJob], BuildJob] = {
                pool.submit(self._executor.execute, job): job for job in jobs
            }
            try:
                for future in as_completed(futures):
                    job = futures[future]
                    try:
                        future.result()
                    except Exception as e:  # noqa: BLE001 - isolate crashed workers
                        if not job.status.is_terminal:
                            job.fail(WorkerCrashed(detail=f"{type(e).__name__}: {e}"))
                    self._report_job(job)
            except KeyboardInterrupt:
                pool.shutdown(wait=True, cancel_futures=True)
                for job in jobs:
                    if not job.status.is_terminal:
                        job.fail(BuildCancelled())
                return True
        return False

    def _report_job(self, job: BuildJob) -> None:
        if job.succeeded:
            suffix = f" -> {job.published_name}" if job.published_name else ""
            self._console.success(f"{job.platform_name}{suffix}")
            return
        if job.error is not None:
            self._console.error(f"{job.platform_name}: {describe_job_error(job.error)}")

    def _current_release(
        self, trigger: Trigger, jobs: tuple[BuildJob, ...]
    ) -> Result[ReleaseHandle | None, PublishError]:
        if trigger.tag is None or not any(j.published_name for j in jobs):
            return Ok(None)
        return self._store.find_release(trigger.tag)
