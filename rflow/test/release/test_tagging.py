from __future__ import annotations

from dataclasses import dataclass, field
from typing import cast

from rflow.core.result import Err, Ok, Result
from rflow.git.repository import GitError, Repository
from rflow.output.console import MockConsole
from rflow.release.infra.tagging import GitTaggingBackend


@dataclass
class FakeRepo:
    tags: dict[str, str] = field(default_factory=dict)
    head: str = "a" * 40
    fail_push: bool = False
    calls: list[str] = field(default_factory=list)

    def fetch_tags(self, remote: str) -> Result[None, GitError]:
        self.calls.append("fetch")
        return Ok(None)

    def list_tags(self, pattern: str) -> Result[list[str], GitError]:
        prefix = pattern.rstrip("*")
        return Ok(sorted(t for t in self.tags if t.startswith(prefix)))

    def tag_exists(self, tag: str) -> Result[bool, GitError]:
        return Ok(tag in self.tags)

    def create_tag(
        self,
        tag: str,
        *,
        ref: str = "HEAD",
        message: str | None = None,
        force: bool = False,
    ) -> Result[None, GitError]:
        self.calls.append(f"tag{' --force' if force else ''} {tag}")
        self.tags[tag] = self.head if ref == "HEAD" else ref
        return Ok(None)

    def push_tag(self, remote: str, tag: str, *, force: bool = False) -> Result[None, GitError]:
        self.calls.append(f"push{' --force' if force else ''} {tag}")
        if self.fail_push:
            return Err(GitError(command="push", message="rejected"))
        return Ok(None)

    def resolve_commit(self, ref: str) -> Result[str, GitError]:
        return Ok(self.tags.get(ref, self.head))


def _backend(repo: FakeRepo) -> GitTaggingBackend:
    return GitTaggingBackend(repo=cast(Repository, repo), remote="origin", console=MockConsole())


def test_next_prerelease_number_reads_fetched_tags() -> None:
    repo = FakeRepo(tags={"v1.0.0-beta.1": "x", "v1.0.0-beta2": "y", "v1.0.0-alpha.9": "z"})

    result = _backend(repo).next_prerelease_number("v1.0.0", "beta")

    assert result == Ok(3)
    assert repo.calls == ["fetch"]


def test_prerelease_tag_has_no_smart_tags() -> None:
    repo = FakeRepo()

    result = _backend(repo).create_tags("v1.0.0-beta.1")

    assert isinstance(result, Ok)
    assert result.value.all == ("v1.0.0-beta.1",)
    assert repo.calls == ["fetch", "tag v1.0.0-beta.1", "push v1.0.0-beta.1"]


def test_stable_tag_moves_smart_tags_to_same_commit() -> None:
    repo = FakeRepo()

    result = _backend(repo).create_tags("v2.3.1")

    assert isinstance(result, Ok)
    assert result.value.all == ("v2.3.1", "v2", "v2.3")
    assert repo.tags["v2"] == repo.tags["v2.3.1"]
    assert "push --force v2" in repo.calls
    assert "push --force v2.3" in repo.calls


def test_existing_version_tag_is_reused() -> None:
    published = "b" * 40
    repo = FakeRepo(tags={"v2.3.1": published})

    result = _backend(repo).create_tags("v2.3.1")

    assert isinstance(result, Ok)
    assert "tag v2.3.1" not in repo.calls
    assert repo.tags["v2.3"] == published


def test_push_failure_is_tag_error() -> None:
    repo = FakeRepo(fail_push=True)

    result = _backend(repo).create_tags("v1.0.0-alpha.1")

    assert isinstance(result, Err)
    assert result.error.kind == "tag_failed"
    assert result.error.hint == "rejected"
