from __future__ import annotations

import typer

from shipyard.cli.commands._helpers import resolve_trigger, unwrap_or_exit
from shipyard.cli.context import CLIContext, build_context, make_store
from shipyard.core.config import StoreKind
from shipyard.core.errors import ErrorCode
from shipyard.output.console import Style
from shipyard.output.errors import pipeline_exit_code, print_summary
from shipyard.pipeline.builder import BuildExecutor
from shipyard.pipeline.controller import PipelineController
from shipyard.pipeline.gate import ManifestGate
from shipyard.pipeline.matrix import TargetMatrix
from shipyard.pipeline.model import MatrixEntry
from shipyard.pipeline.publisher import ArtifactPublisher, asset_name
from shipyard.pipeline.toolchain import CargoToolchain
from shipyard.pipeline.trigger import Trigger


def run(
    ref: str | None = typer.Option(
        None,
        "--ref",
        help="Git ref that triggered the run (default: $GITHUB_REF).",
    ),
    only: list[str] = typer.Option(
        [],
        "--only",
        help="Build only these platforms (repeatable).",
    ),
    store: str | None = typer.Option(
        None,
        "--store",
        help="Release store: github or local (default: [release] store).",
    ),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Parallel builds."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the plan and exit."),
) -> None:
    """Build every platform, publish to the release, then attach the manifest."""
    ctx = build_context()
    config = ctx.config

    matrix = TargetMatrix.from_config(config.platforms)
    entries = unwrap_or_exit(matrix.select(only), ctx)
    trigger = resolve_trigger(ref, ctx)
    store_kind = _store_kind(store, ctx)

    if dry_run:
        _print_plan(ctx, trigger, entries, store_kind or config.release.store)
        return

    release_store = make_store(ctx, kind=store_kind)
    work_root = ctx.checkout.resolve(config.build.work_dir)
    toolchain = CargoToolchain(
        source_root=ctx.checkout.root,
        executable_name=config.project.executable_name,
        console=ctx.console,
        tool=config.build.tool,
        timeout_seconds=config.build.timeout_seconds,
    )
    publisher = ArtifactPublisher(
        store=release_store,
        staging_dir=work_root / "dist",
        console=ctx.console,
        draft=config.release.draft,
    )
    executor = BuildExecutor(
        toolchain=toolchain,
        publisher=publisher,
        executable_name=config.project.executable_name,
        work_root=work_root,
        console=ctx.console,
        tag=trigger.tag if trigger.is_release else None,
    )
    controller = PipelineController(
        executor=executor,
        store=release_store,
        gate=ManifestGate(
            store=release_store,
            checkout_root=ctx.checkout.root,
            console=ctx.console,
        ),
        manifest_path=config.project.manifest,
        console=ctx.console,
        max_workers=jobs or config.build.max_workers,
    )

    ctx.console.header(f"Release {trigger.tag or trigger.ref}")
    report = controller.run(trigger, entries)
    print_summary(report, ctx.console)

    code = pipeline_exit_code(report)
    if code != int(ErrorCode.OK):
        raise typer.Exit(code=code)


def _store_kind(value: str | None, ctx: CLIContext) -> StoreKind | None:
    if value is None:
        return None
    if value == "github":
        return "github"
    if value == "local":
        return "local"
    ctx.console.error(f"invalid --store: {value}")
    ctx.console.print("hint: use github or local", Style.DIM)
    raise typer.Exit(code=int(ErrorCode.USER_ERROR))


def _print_plan(
    ctx: CLIContext,
    trigger: Trigger,
    entries: tuple[MatrixEntry, ...],
    store_kind: StoreKind,
) -> None:
    config = ctx.config
    console = ctx.console
    console.header("Plan")
    console.print(f"ref: {trigger.ref}", Style.DIM)
    if trigger.is_release:
        state = "draft" if config.release.draft else "published"
        console.print(f"release: {trigger.tag} ({state}, store={store_kind})")
    else:
        console.print("release: none (not a release tag)")

    toolchain = CargoToolchain(
        source_root=ctx.checkout.root,
        executable_name=config.project.executable_name,
        console=console,
        tool=config.build.tool,
    )
    for entry in entries:
        console.print(f"{entry.platform_name} [{entry.runs_on}] {entry.target}", Style.BOLD)
        console.print("  " + " ".join(toolchain.command(entry.target)), Style.DIM)
        if trigger.is_release:
            console.print(f"  -> {asset_name(config.project.executable_name, entry.target)}")

    if trigger.is_release:
        console.print(f"then attach {config.project.manifest}", Style.DIM)
