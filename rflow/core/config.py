"""Typed configuration loading and access.

Configuration comes from an optional ``.release-flow.toml`` at the repository
root, overlaid by environment variables set by the CI runner. Deep release
logic never reads the environment: it receives a ``FlowConfig``.

Example ``.release-flow.toml``::

    main_branch = "main"
    commit_marker = "[skip ci]"

    [freeze]
    active = false

    [ci]
    self_check_names = ["release"]

    [[version_files]]
    path = "package.json"
    kind = "json"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal, cast

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_list,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "CiConfig",
    "CommitIdentity",
    "ConfigError",
    "FlowConfig",
    "FreezeConfig",
    "VersionFile",
    "VersionFileKind",
    "apply_environment",
    "is_truthy",
    "load_config",
]

CONFIG_FILE_NAME = ".release-flow.toml"

ENV_FEATURE_FREEZE = "RELEASE_FEATURE_FREEZE"
ENV_FREEZE_OVERRIDE = "RELEASE_FREEZE_OVERRIDE"
ENV_JOB = "GITHUB_JOB"

VersionFileKind = Literal["json", "toml", "xml", "text"]
_VERSION_FILE_KINDS: frozenset[str] = frozenset({"json", "toml", "xml", "text"})

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def is_truthy(value: str | None) -> bool:
    """Interpret an environment flag value."""
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class FreezeConfig:
    """Global feature freeze state (guardrail G5)."""

    active: bool = False
    override_active: bool = False


@dataclass(frozen=True, slots=True)
class CiConfig:
    """Which PR checks belong to this workflow and must not gate it (G4).

    Attributes:
        self_check_names: Exact check names to ignore.
        self_check_patterns: Substrings matched after folding case, spaces,
            hyphens and underscores.
    """

    self_check_names: tuple[str, ...] = ()
    self_check_patterns: tuple[str, ...] = ("release-flow",)


@dataclass(frozen=True, slots=True)
class CommitIdentity:
    name: str = "release-flow[bot]"
    email: str = "release-flow[bot]@users.noreply.github.com"


@dataclass(frozen=True, slots=True)
class VersionFile:
    """A project file whose version field gets stamped on release.

    ``pattern`` is only used by the ``text`` kind: a regex with exactly one
    capture group around the version.
    """

    path: str
    kind: VersionFileKind
    pattern: str | None = None


@dataclass(frozen=True, slots=True)
class FlowConfig:
    """Main configuration container."""

    main_branch: str = "main"
    remote: str = "origin"
    commit_marker: str = "[skip ci]"
    backflow_label: str = "backflow"
    freeze: FreezeConfig = field(default_factory=FreezeConfig)
    ci: CiConfig = field(default_factory=CiConfig)
    identity: CommitIdentity = field(default_factory=CommitIdentity)
    version_files: tuple[VersionFile, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[FlowConfig, ConfigError]:
        """Create FlowConfig from a mapping (parsed TOML)."""
        freeze: StrDict = get_table(data, "freeze") or {}
        ci: StrDict = get_table(data, "ci") or {}
        identity: StrDict = get_table(data, "identity") or {}

        files = _parse_version_files(get_list(data, "version_files") or [])
        if isinstance(files, Err):
            return files

        defaults = CiConfig()
        default_identity = CommitIdentity()
        return Ok(
            cls(
                main_branch=get_str(data, "main_branch") or "main",
                remote=get_str(data, "remote") or "origin",
                commit_marker=get_str(data, "commit_marker") or "[skip ci]",
                backflow_label=get_str(data, "backflow_label") or "backflow",
                freeze=FreezeConfig(
                    active=get_bool(freeze, "active") or False,
                    override_active=get_bool(freeze, "override") or False,
                ),
                ci=CiConfig(
                    self_check_names=tuple(get_str_list(ci, "self_check_names") or ()),
                    self_check_patterns=tuple(
                        get_str_list(ci, "self_check_patterns") or defaults.self_check_patterns
                    ),
                ),
                identity=CommitIdentity(
                    name=get_str(identity, "name") or default_identity.name,
                    email=get_str(identity, "email") or default_identity.email,
                ),
                version_files=files.value,
            )
        )


def _parse_version_files(items: list[object]) -> Result[tuple[VersionFile, ...], ConfigError]:
    out: list[VersionFile] = []
    for index, item in enumerate(items):
        table = as_str_dict(item)
        if table is None:
            return Err(ConfigError(f"version_files[{index}] must be a table"))

        path = get_str(table, "path")
        kind = get_str(table, "kind")
        if path is None or kind is None:
            return Err(ConfigError(f"version_files[{index}] needs 'path' and 'kind'"))
        if kind not in _VERSION_FILE_KINDS:
            return Err(
                ConfigError(
                    f"version_files[{index}]: unknown kind '{kind}' "
                    f"(expected one of {', '.join(sorted(_VERSION_FILE_KINDS))})"
                )
            )

        pattern = get_str(table, "pattern")
        if kind == "text" and pattern is None:
            return Err(ConfigError(f"version_files[{index}]: kind 'text' requires 'pattern'"))

        out.append(VersionFile(path=path, kind=cast(VersionFileKind, kind), pattern=pattern))
    return Ok(tuple(out))


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def apply_environment(config: FlowConfig, env: Mapping[str, str]) -> FlowConfig:
    """Overlay CI environment flags on top of file configuration."""
    freeze = config.freeze
    if ENV_FEATURE_FREEZE in env:
        freeze = replace(freeze, active=is_truthy(env.get(ENV_FEATURE_FREEZE)))
    if ENV_FREEZE_OVERRIDE in env:
        freeze = replace(freeze, override_active=is_truthy(env.get(ENV_FREEZE_OVERRIDE)))

    ci = config.ci
    job = (env.get(ENV_JOB) or "").strip()
    if job and job not in ci.self_check_names:
        ci = replace(ci, self_check_names=(*ci.self_check_names, job))

    return replace(config, freeze=freeze, ci=ci)


def load_config(
    path: Path | None,
    *,
    env: Mapping[str, str] | None = None,
) -> Result[FlowConfig, ConfigError]:
    """Load configuration from ``path`` (optional) and the environment.

    Args:
        path: TOML file; a missing default file is not an error, pass None to
            skip the file entirely.
        env: Environment mapping (defaults to ``os.environ``).

    Returns:
        Ok(FlowConfig) on success, Err(ConfigError) on failure
    """
    base = FlowConfig()
    if path is not None:
        data = _parse_toml(path)
        if isinstance(data, Err):
            return data
        parsed = FlowConfig.from_dict(data.value)
        if isinstance(parsed, Err):
            return Err(ConfigError(parsed.error.message, path=path))
        base = parsed.value

    return Ok(apply_environment(base, os.environ if env is None else env))
