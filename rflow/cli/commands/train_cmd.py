from __future__ import annotations

from pathlib import Path

import typer

from rflow.cli.commands._helpers import emit_payload, exit_on_error, exit_release, require_gh
from rflow.cli.context import build_context
from rflow.core.result import Err
from rflow.release.errors import ReleaseError
from rflow.release.flow.train import start_train
from rflow.release.resolve.event import ENV_REPOSITORY
from rflow.release.view.render import render_train_result

train_app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Release trains (dev branch + draft intent).",
)


@train_app.command("start")
def start(
    version: str = typer.Argument(..., help="Version to start, e.g. 1.4.0"),
    base: str | None = typer.Option(
        None, "--base", help="Base ref (default: latest stable tag, else main)"
    ),
    repo: str | None = typer.Option(
        None, "--repo", help="owner/name (default: $GITHUB_REPOSITORY)"
    ),
    root: Path | None = typer.Option(None, "--root", help="Repository checkout (default: cwd)"),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON on stdout"),
    output: Path | None = typer.Option(
        None, "--output", help="Append key=value outputs here (default: $GITHUB_OUTPUT)"
    ),
) -> None:
    """Create dev/vX.Y.Z and its draft intent atomically."""
    ctx = build_context(root=root, config_path=config)

    repository = repo or (ctx.env.get(ENV_REPOSITORY) or "").strip()
    if not repository:
        exit_release(
            ReleaseError(
                kind="repository_missing",
                message="repository context missing",
                hint=f"Pass --repo owner/name or set {ENV_REPOSITORY}",
            ),
            ctx,
        )
    require_gh(ctx)

    started = start_train(version, ctx.services_for(repository), base=base)
    exit_on_error(started, ctx)
    assert not isinstance(started, Err)

    render_train_result(started.value, ctx.console)
    emit_payload(ctx, started.value.as_dict(), as_json=as_json, output=output)
