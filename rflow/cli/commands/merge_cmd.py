from __future__ import annotations

from pathlib import Path

import typer

from rflow.cli.commands._helpers import emit_payload, exit_on_error, require_gh
from rflow.cli.context import CLIContext, build_context
from rflow.core.errors import ErrorCode
from rflow.core.result import Err
from rflow.release.contracts import MergeEvent
from rflow.release.flow.merge import MergeRun, run_merge
from rflow.release.resolve.event import read_event
from rflow.release.view.render import render_context, render_guardrails, render_merge_result


def _load_event(ctx: CLIContext, event: Path | None) -> MergeEvent:
    loaded = read_event(event, ctx.env)
    exit_on_error(loaded, ctx)
    assert not isinstance(loaded, Err)
    return loaded.value


def _evaluate(ctx: CLIContext, event: Path | None, *, execute: bool) -> MergeRun:
    require_gh(ctx)
    merge_event = _load_event(ctx, event)
    ran = run_merge(
        merge_event,
        services_for=ctx.services_for,
        main_branch=ctx.config.main_branch,
        execute=execute,
    )
    exit_on_error(ran, ctx)
    assert not isinstance(ran, Err)

    run = ran.value
    render_context(run.context, ctx.console)
    render_guardrails(run.report, ctx.console)
    if not run.report.passed:
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    return run


def merge(
    event: Path | None = typer.Option(
        None, "--event", help="Event JSON (default: $GITHUB_EVENT_PATH)"
    ),
    root: Path | None = typer.Option(None, "--root", help="Repository checkout (default: cwd)"),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON on stdout"),
    output: Path | None = typer.Option(
        None, "--output", help="Append key=value outputs here (default: $GITHUB_OUTPUT)"
    ),
) -> None:
    """Release whatever a merged pull request calls for."""
    ctx = build_context(root=root, config_path=config)
    run = _evaluate(ctx, event, execute=True)
    if run.result is None:
        return

    render_merge_result(run.result, ctx.console)
    emit_payload(ctx, run.result.as_dict(), as_json=as_json, output=output)


def check(
    event: Path | None = typer.Option(
        None, "--event", help="Event JSON (default: $GITHUB_EVENT_PATH)"
    ),
    root: Path | None = typer.Option(None, "--root", help="Repository checkout (default: cwd)"),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """Resolve the release context and evaluate guardrails (no side effects)."""
    ctx = build_context(root=root, config_path=config)
    _evaluate(ctx, event, execute=False)
