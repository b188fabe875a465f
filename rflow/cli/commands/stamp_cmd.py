from __future__ import annotations

from pathlib import Path

import typer

from rflow.cli.commands._helpers import exit_on_error, exit_release
from rflow.cli.context import build_context
from rflow.core.result import Err
from rflow.output.console import Style
from rflow.release.domain.versions import normalize_version, parse_version
from rflow.release.errors import ReleaseError
from rflow.release.infra.stamping import FileStamper


def stamp(
    version: str = typer.Argument(..., help="Base version, e.g. 1.4.0"),
    pre: str | None = typer.Option(None, "--pre", help="Prerelease label, e.g. alpha.2"),
    root: Path | None = typer.Option(None, "--root", help="Repository checkout (default: cwd)"),
    config: Path | None = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """Stamp configured version files locally (no commit)."""
    ctx = build_context(root=root, config_path=config)

    if parse_version(version) is None:
        exit_release(
            ReleaseError(
                kind="invalid_input",
                message=f"invalid version: {version}",
                hint="Expected MAJOR.MINOR.PATCH, e.g. 1.4.0",
            ),
            ctx,
        )
    if not ctx.config.version_files:
        ctx.console.warning("no version_files configured; nothing to stamp")
        return

    stamper = FileStamper(repo_root=ctx.root, files=ctx.config.version_files)
    reports = stamper.stamp(normalize_version(version), pre)
    exit_on_error(reports, ctx)
    assert not isinstance(reports, Err)

    for report in reports.value:
        label = f"{report.version}-{report.pre_release}" if report.pre_release else report.version
        if report.updated:
            ctx.console.success(f"{report.file_path} ({report.file_type}): {label}")
        else:
            ctx.console.print(f"{report.file_path}: already {label}", Style.DIM)
