"""Tests for rflow.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from rflow.core.config import (
    CiConfig,
    FlowConfig,
    FreezeConfig,
    VersionFile,
    apply_environment,
    is_truthy,
    load_config,
)
from rflow.core.result import Err, Ok


class TestDefaults:
    def test_flow_defaults(self) -> None:
        config = FlowConfig()
        assert config.main_branch == "main"
        assert config.remote == "origin"
        assert config.commit_marker == "[skip ci]"
        assert config.freeze == FreezeConfig(active=False, override_active=False)
        assert config.ci.self_check_patterns == ("release-flow",)
        assert config.version_files == ()

    def test_frozen(self) -> None:
        config = FlowConfig()
        with pytest.raises(AttributeError):
            config.main_branch = "trunk"  # type: ignore[misc]


class TestFromDict:
    def test_full_document(self) -> None:
        result = FlowConfig.from_dict(
            {
                "main_branch": "trunk",
                "freeze": {"active": True, "override": True},
                "ci": {"self_check_names": ["release"], "self_check_patterns": ["rflow"]},
                "identity": {"name": "bot"},
                "version_files": [
                    {"path": "package.json", "kind": "json"},
                    {"path": "VERSION", "kind": "text", "pattern": "(.+)"},
                ],
            }
        )

        assert isinstance(result, Ok)
        config = result.value
        assert config.main_branch == "trunk"
        assert config.freeze == FreezeConfig(active=True, override_active=True)
        assert config.ci == CiConfig(self_check_names=("release",), self_check_patterns=("rflow",))
        assert config.identity.name == "bot"
        assert config.identity.email.endswith("@users.noreply.github.com")
        assert config.version_files == (
            VersionFile(path="package.json", kind="json"),
            VersionFile(path="VERSION", kind="text", pattern="(.+)"),
        )

    def test_unknown_file_kind(self) -> None:
        result = FlowConfig.from_dict({"version_files": [{"path": "a.yaml", "kind": "yaml"}]})

        assert isinstance(result, Err)
        assert "unknown kind 'yaml'" in result.error.message

    def test_text_kind_needs_pattern(self) -> None:
        result = FlowConfig.from_dict({"version_files": [{"path": "VERSION", "kind": "text"}]})

        assert isinstance(result, Err)
        assert "requires 'pattern'" in result.error.message

    def test_entry_must_be_table(self) -> None:
        result = FlowConfig.from_dict({"version_files": ["package.json"]})

        assert isinstance(result, Err)


class TestEnvironment:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("true", True), ("1", True), ("YES", True), ("false", False), ("", False), (None, False)],
    )
    def test_is_truthy(self, value: str | None, expected: bool) -> None:
        assert is_truthy(value) is expected

    def test_freeze_flags(self) -> None:
        config = apply_environment(
            FlowConfig(),
            {"RELEASE_FEATURE_FREEZE": "true", "RELEASE_FREEZE_OVERRIDE": "1"},
        )

        assert config.freeze.active is True
        assert config.freeze.override_active is True

    def test_env_can_lift_file_freeze(self) -> None:
        base = FlowConfig(freeze=FreezeConfig(active=True))

        config = apply_environment(base, {"RELEASE_FEATURE_FREEZE": "false"})

        assert config.freeze.active is False

    def test_unset_env_keeps_file_values(self) -> None:
        base = FlowConfig(freeze=FreezeConfig(active=True))

        assert apply_environment(base, {}).freeze.active is True

    def test_job_name_is_a_self_check(self) -> None:
        config = apply_environment(FlowConfig(), {"GITHUB_JOB": "release"})

        assert config.ci.self_check_names == ("release",)

    def test_job_name_not_duplicated(self) -> None:
        base = FlowConfig(ci=CiConfig(self_check_names=("release",)))

        config = apply_environment(base, {"GITHUB_JOB": "release"})

        assert config.ci.self_check_names == ("release",)


class TestLoadConfig:
    def test_without_file(self) -> None:
        result = load_config(None, env={})

        assert result == Ok(FlowConfig())

    def test_reads_toml(self, tmp_path: Path) -> None:
        path = tmp_path / ".release-flow.toml"
        path.write_text(
            'main_branch = "trunk"\n\n[[version_files]]\npath = "Cargo.toml"\nkind = "toml"\n',
            encoding="utf-8",
        )

        result = load_config(path, env={"RELEASE_FEATURE_FREEZE": "on"})

        assert isinstance(result, Ok)
        assert result.value.main_branch == "trunk"
        assert result.value.version_files == (VersionFile(path="Cargo.toml", kind="toml"),)
        assert result.value.freeze.active is True

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / ".release-flow.toml"
        path.write_text("main_branch = ", encoding="utf-8")

        result = load_config(path, env={})

        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml", env={})

        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_content_carries_path(self, tmp_path: Path) -> None:
        path = tmp_path / ".release-flow.toml"
        path.write_text('[[version_files]]\npath = "x"\n', encoding="utf-8")

        result = load_config(path, env={})

        assert isinstance(result, Err)
        assert result.error.path == path
