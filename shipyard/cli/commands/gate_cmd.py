from __future__ import annotations

from typing import Literal

import typer

from shipyard.cli.commands._helpers import exit_with_code
from shipyard.cli.context import build_context, make_store
from shipyard.core.errors import ErrorCode
from shipyard.output.errors import print_gate_error
from shipyard.pipeline.gate import ManifestGate
from shipyard.pipeline.trigger import is_release_tag


def gate(
    tag: str = typer.Option(..., "--tag", help="Existing release tag (e.g. v1.2.3)."),
    manifest: str | None = typer.Option(
        None,
        "--manifest",
        help="Manifest path or glob (default: [project] manifest).",
    ),
    local: bool = typer.Option(False, "--local", help="Use the local release store."),
) -> None:
    """Attach the manifest to an existing release.

    For finishing a release whose builds already succeeded, e.g. after the
    manifest was missing on the first run.
    """
    ctx = build_context()
    if not is_release_tag(tag):
        ctx.console.error(f"not a release tag: {tag}")
        exit_with_code(int(ErrorCode.USER_ERROR))

    kind: Literal["local"] | None = "local" if local else None
    store = make_store(ctx, kind=kind)
    required = manifest or ctx.config.project.manifest

    manifest_gate = ManifestGate(store=store, checkout_root=ctx.checkout.root, console=ctx.console)
    report = manifest_gate.attach(tag, required)
    if report.done:
        ctx.console.success(f"{required} attached to {tag}")
        return

    if report.error is not None:
        print_gate_error(report.error, ctx.console)
    exit_with_code(int(ErrorCode.GATE_ERROR))
