"""Preflight checks run by `shipyard check` before a release is attempted."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from shutil import which

from shipyard.core.checkout import Checkout
from shipyard.core.config import PipelineConfig, StoreKind
from shipyard.core.result import Err
from shipyard.pipeline.gate import resolve_manifest
from shipyard.pipeline.gh import ensure_gh_auth, ensure_gh_available
from shipyard.pipeline.matrix import TargetMatrix
from shipyard.pipeline.toolchain import install_hint
from shipyard.platform.detection import Platform, detect_platform, runner_matches_host


class CheckStatus(Enum):
    OK = auto()
    WARNING = auto()
    """Usable, but some platforms or features will not work here."""
    ERROR = auto()


@dataclass(frozen=True, slots=True)
class CheckResult:
    name: str
    status: CheckStatus
    message: str
    hint: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status == CheckStatus.ERROR

    @classmethod
    def success(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.OK, message=message)

    @classmethod
    def warning(cls, name: str, message: str, hint: str | None = None) -> CheckResult:
        return cls(name=name, status=CheckStatus.WARNING, message=message, hint=hint)

    @classmethod
    def error(cls, name: str, message: str, hint: str | None = None) -> CheckResult:
        return cls(name=name, status=CheckStatus.ERROR, message=message, hint=hint)


@dataclass(frozen=True, slots=True)
class PreflightReport:
    project: list[CheckResult]
    matrix: list[CheckResult]
    tools: list[CheckResult]

    def all(self) -> list[CheckResult]:
        return [*self.project, *self.matrix, *self.tools]

    def has_errors(self) -> bool:
        return any(r.is_error for r in self.all())


class PreflightChecker:
    def __init__(
        self,
        *,
        checkout: Checkout,
        config: PipelineConfig,
        store: StoreKind | None = None,
        host: Platform | None = None,
    ) -> None:
        self._checkout = checkout
        self._config = config
        self._store = store or config.release.store
        self._host = host or detect_platform()

    def run(self) -> PreflightReport:
        return PreflightReport(
            project=self.check_project(),
            matrix=self.check_matrix(),
            tools=self.check_tools(),
        )

    def check_project(self) -> list[CheckResult]:
        manifest = self._config.project.manifest
        matches = resolve_manifest(self._checkout.root, manifest)
        results = [
            CheckResult.success("executable", self._config.project.executable_name),
        ]
        if not matches:
            results.append(
                CheckResult.error(
                    "manifest",
                    f"{manifest} missing",
                    hint="The release gate refuses to finish without it",
                )
            )
        elif len(matches) > 1:
            results.append(
                CheckResult.error(
                    "manifest",
                    f"{manifest} matches {len(matches)} files",
                    hint="Use a path that names exactly one file",
                )
            )
        else:
            rel = matches[0].relative_to(self._checkout.root)
            results.append(CheckResult.success("manifest", str(rel)))
        return results

    def check_matrix(self) -> list[CheckResult]:
        matrix = TargetMatrix.from_config(self._config.platforms)
        expanded = matrix.expand()
        if isinstance(expanded, Err):
            return [CheckResult.error("matrix", expanded.error.message, expanded.error.hint)]

        results: list[CheckResult] = []
        for entry in expanded.value:
            if runner_matches_host(entry.runs_on, self._host):
                results.append(CheckResult.success(entry.platform_name, entry.target))
            else:
                results.append(
                    CheckResult.warning(
                        entry.platform_name,
                        f"{entry.target} needs runner '{entry.runs_on}'",
                        hint=f"this host is {self._host}; the job will fail here",
                    )
                )
        for entry in matrix.disabled:
            results.append(CheckResult.warning(entry.platform_name, "disabled"))
        return results

    def check_tools(self) -> list[CheckResult]:
        tool = self._config.build.tool
        results: list[CheckResult] = []
        if which(tool) is None:
            results.append(CheckResult.error(tool, "missing", hint=install_hint(tool)))
        else:
            results.append(CheckResult.success(tool, "found"))

        if self._store == "local":
            local = self._checkout.resolve(self._config.release.local_dir)
            results.append(CheckResult.success("store", f"local ({local})"))
            return results

        available = ensure_gh_available()
        if isinstance(available, Err):
            results.append(CheckResult.error("gh", "missing", hint=available.error.hint))
            return results
        auth = ensure_gh_auth(cwd=self._checkout.root)
        if isinstance(auth, Err):
            results.append(CheckResult.error("gh", "not authenticated", hint=auth.error.hint))
        else:
            results.append(CheckResult.success("gh", "authenticated"))
        return results
