"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from shipyard.core.errors import ErrorCode
from shipyard.core.result import Err, Result
from shipyard.output.console import Style
from shipyard.pipeline.trigger import Trigger, trigger_from_env

if TYPE_CHECKING:
    from shipyard.cli.context import CLIContext

T = TypeVar("T")
E = TypeVar("E")


def unwrap_or_exit(
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.USER_ERROR,
) -> T:
    """Return the Ok value, or print the error and exit.

    Expects error objects to have a 'message' and an optional 'hint' attribute.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
    return result.value


def resolve_trigger(ref: str | None, ctx: CLIContext) -> Trigger:
    """Trigger from --ref, else from GITHUB_REF."""
    if ref:
        return Trigger.from_ref(ref)
    from_env = trigger_from_env()
    if from_env is None:
        ctx.console.error("no ref given")
        ctx.console.print("hint: pass --ref refs/tags/vX.Y.Z or set GITHUB_REF", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))
    return from_env


def exit_with_code(code: int) -> NoReturn:
    raise typer.Exit(code=code)
