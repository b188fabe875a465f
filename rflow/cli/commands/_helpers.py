"""Shared helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import typer

from rflow.core.errors import ErrorCode
from rflow.core.result import Err, Result
from rflow.output.console import Style
from rflow.release.errors import ReleaseError
from rflow.release.infra.gh import ensure_gh_available
from rflow.release.view.render import to_json, write_outputs

if TYPE_CHECKING:
    from rflow.cli.context import CLIContext

ENV_GITHUB_OUTPUT = "GITHUB_OUTPUT"

_ENV_KINDS = frozenset({"gh_missing", "config_invalid", "repository_missing", "event_missing"})
_NETWORK_KINDS = frozenset({"gh_failed", "intent_failed"})
_IO_KINDS = frozenset({"git_failed", "tag_failed", "stamp_file_missing", "stamp_failed"})


def release_error_code(kind: str) -> ErrorCode:
    if kind in _ENV_KINDS:
        return ErrorCode.ENV_ERROR
    if kind in _NETWORK_KINDS:
        return ErrorCode.NETWORK_ERROR
    if kind in _IO_KINDS:
        return ErrorCode.IO_ERROR
    return ErrorCode.USER_ERROR


def exit_release(error: ReleaseError, ctx: CLIContext) -> NoReturn:
    ctx.console.error(error.message)
    if error.hint:
        ctx.console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(release_error_code(error.kind)))


def exit_on_error[T](result: Result[T, ReleaseError], ctx: CLIContext) -> None:
    """Exit with the error's code if result is Err, otherwise return."""
    if isinstance(result, Err):
        exit_release(result.error, ctx)


def require_gh(ctx: CLIContext) -> None:
    exit_on_error(ensure_gh_available(), ctx)


def emit_payload(
    ctx: CLIContext,
    payload: Mapping[str, object],
    *,
    as_json: bool,
    output: Path | None,
) -> None:
    """Print ``--json`` to stdout and append step outputs when requested."""
    if as_json:
        typer.echo(to_json(payload))

    target = output
    if target is None:
        env_output = (ctx.env.get(ENV_GITHUB_OUTPUT) or "").strip()
        target = Path(env_output) if env_output else None
    if target is None:
        return

    try:
        write_outputs(target, payload)
    except OSError as e:
        ctx.console.error(f"failed to write outputs to {target}: {e}")
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))
