from __future__ import annotations

import typer

from shipyard.cli.context import CLIContext, build_context
from shipyard.core.errors import ErrorCode
from shipyard.output.console import Style
from shipyard.pipeline.preflight import CheckResult, CheckStatus, PreflightChecker


def check(
    local: bool = typer.Option(False, "--local", help="Check against the local release store."),
) -> None:
    """Check config, matrix and tools before releasing."""
    ctx = build_context()

    checker = PreflightChecker(
        checkout=ctx.checkout,
        config=ctx.config,
        store="local" if local else None,
    )
    report = checker.run()

    ctx.console.print(f"checkout: {ctx.checkout.root}", Style.DIM)

    _print_group(ctx, "Project", report.project)
    _print_group(ctx, "Matrix", report.matrix)
    _print_group(ctx, "Tools", report.tools)

    if report.has_errors():
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))


def _print_group(ctx: CLIContext, title: str, results: list[CheckResult]) -> None:
    console = ctx.console
    console.header(title)
    for r in results:
        console.print(f"{r.name}: {r.message}", _style_for_status(r.status))
        if r.hint and r.status != CheckStatus.OK:
            console.print(f"hint: {r.hint}", Style.DIM)


def _style_for_status(status: CheckStatus) -> Style:
    if status == CheckStatus.OK:
        return Style.SUCCESS
    if status == CheckStatus.WARNING:
        return Style.WARNING
    return Style.ERROR
