from __future__ import annotations

from dataclasses import dataclass

import typer

from shipyard.core.checkout import Checkout, detect_checkout
from shipyard.core.config import PipelineConfig, StoreKind, load_config
from shipyard.core.errors import ErrorCode
from shipyard.core.result import Err
from shipyard.output.console import ConsoleProtocol, RichConsole
from shipyard.pipeline.store import GhReleaseStore, LocalReleaseStore, ReleaseStore


@dataclass(frozen=True, slots=True)
class CLIContext:
    checkout: Checkout
    config: PipelineConfig
    console: ConsoleProtocol


def build_context() -> CLIContext:
    checkout_result = detect_checkout()
    if isinstance(checkout_result, Err):
        typer.echo(f"error: {checkout_result.error.message}", err=True)
        if checkout_result.error.hint:
            typer.echo(f"hint: {checkout_result.error.hint}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    checkout = checkout_result.value
    config_result = load_config(checkout.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(checkout=checkout, config=config_result.value, console=RichConsole())


def make_store(ctx: CLIContext, *, kind: StoreKind | None = None) -> ReleaseStore:
    """Release store selected by --store, falling back to [release] store."""
    selected = kind or ctx.config.release.store
    if selected == "local":
        return LocalReleaseStore(ctx.checkout.resolve(ctx.config.release.local_dir))
    return GhReleaseStore(
        cwd=ctx.checkout.root,
        console=ctx.console,
        repo=ctx.config.release.repo,
    )
