from __future__ import annotations

import typer

from shipyard.cli.commands._helpers import unwrap_or_exit
from shipyard.cli.context import build_context
from shipyard.output.console import Style
from shipyard.pipeline.matrix import TargetMatrix
from shipyard.pipeline.publisher import asset_name


def matrix(
    show_all: bool = typer.Option(False, "--all", help="Include disabled platforms."),
) -> None:
    """List the platforms a release builds for."""
    ctx = build_context()
    target_matrix = TargetMatrix.from_config(ctx.config.platforms)
    entries = unwrap_or_exit(target_matrix.expand(), ctx)
    exe = ctx.config.project.executable_name

    for entry in entries:
        ctx.console.print(f"{entry.platform_name}: {entry.target} on {entry.runs_on}")
        ctx.console.print(f"  {asset_name(exe, entry.target)}", Style.DIM)

    if show_all:
        for entry in target_matrix.disabled:
            ctx.console.print(f"{entry.platform_name}: {entry.target} (disabled)", Style.DIM)

    ctx.console.print(f"{len(entries)} active", Style.DIM)
