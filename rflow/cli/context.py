from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import typer

from rflow.core.config import CONFIG_FILE_NAME, FlowConfig, load_config
from rflow.core.errors import ErrorCode
from rflow.core.result import Err
from rflow.git.repository import Repository
from rflow.output.console import ConsoleProtocol, RichConsole
from rflow.release.flow.ports import ReleaseServices
from rflow.release.infra.gh import GhHosting
from rflow.release.infra.stamping import FileStamper
from rflow.release.infra.tagging import GitTaggingBackend


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: FlowConfig
    console: ConsoleProtocol
    env: Mapping[str, str]

    def services_for(self, repository: str) -> ReleaseServices:
        """Production collaborators for ``repository`` checked out at ``root``."""
        repo = Repository(self.root)
        return ReleaseServices(
            config=self.config,
            hosting=GhHosting(workspace_root=self.root, repo=repository),
            vcs=repo,
            tagging=GitTaggingBackend(
                repo=repo,
                remote=self.config.remote,
                console=self.console,
            ),
            stamper=FileStamper(repo_root=self.root, files=self.config.version_files),
            console=self.console,
        )


def build_context(*, root: Path | None = None, config_path: Path | None = None) -> CLIContext:
    try:
        resolved = (root or Path.cwd()).expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --root: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if config_path is None:
        default = resolved / CONFIG_FILE_NAME
        config_path = default if default.is_file() else None

    env = dict(os.environ)
    config_result = load_config(config_path, env=env)
    if isinstance(config_result, Err):
        typer.echo(f"error: invalid config: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        root=resolved,
        config=config_result.value,
        # stdout is reserved for --json
        console=RichConsole(stderr=True),
        env=env,
    )
