"""Collaborator interfaces the release flows depend on.

Production wiring lives in the CLI (gh CLI, git checkout, version files);
tests provide in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from rflow.core.config import FlowConfig
from rflow.core.result import Result
from rflow.git.repository import GitError
from rflow.output.console import ConsoleProtocol
from rflow.release.domain.model import (
    BranchProbe,
    CheckRun,
    PullRequestRef,
    ReleaseRecord,
    TagSet,
)
from rflow.release.domain.versions import PrereleaseKind
from rflow.release.errors import ReleaseError
from rflow.release.infra.stamping import StampReport


class HostingClient(Protocol):
    def list_releases(self) -> Result[list[ReleaseRecord], ReleaseError]: ...

    def create_release(
        self,
        *,
        tag: str,
        title: str,
        notes: str,
        target: str,
        draft: bool = False,
        prerelease: bool = False,
    ) -> Result[ReleaseRecord, ReleaseError]: ...

    def publish_release(
        self, *, release_id: int, tag: str, target: str
    ) -> Result[ReleaseRecord, ReleaseError]: ...

    def release_url_for_tag(self, tag: str) -> Result[str, ReleaseError]: ...

    def list_pull_requests(
        self, *, head: str, base: str
    ) -> Result[list[PullRequestRef], ReleaseError]: ...

    def create_pull_request(
        self,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
        labels: tuple[str, ...] = (),
        draft: bool = False,
    ) -> Result[str, ReleaseError]: ...

    def ensure_label(self, name: str, description: str) -> Result[None, ReleaseError]: ...

    def pull_request_checks(self, number: int) -> Result[list[CheckRun], ReleaseError]: ...

    def branch_exists(self, branch: str) -> BranchProbe: ...


class VersionControl(Protocol):
    def configure_identity(self, name: str, email: str) -> Result[None, GitError]: ...

    def fetch_tags(self, remote: str) -> Result[None, GitError]: ...

    def tag_exists(self, tag: str) -> Result[bool, GitError]: ...

    def resolve_commit(self, ref: str) -> Result[str, GitError]: ...

    def describe_latest_tag(
        self, pattern: str, *, exclude: str | None = None, ref: str = "HEAD"
    ) -> str | None: ...

    def create_branch(self, name: str, base: str) -> Result[None, GitError]: ...

    def delete_branch(self, name: str) -> Result[None, GitError]: ...

    def push_branch(self, remote: str, name: str) -> Result[None, GitError]: ...

    def push_head(self, remote: str, branch: str) -> Result[None, GitError]: ...

    def delete_remote_branch(self, remote: str, name: str) -> Result[None, GitError]: ...

    def add(self, paths: list[str]) -> Result[None, GitError]: ...

    def commit(self, message: str) -> Result[str, GitError]: ...


class TaggingBackend(Protocol):
    def next_prerelease_number(
        self, version: str, kind: PrereleaseKind
    ) -> Result[int, ReleaseError]: ...

    def create_tags(self, tag: str) -> Result[TagSet, ReleaseError]: ...


class Stamper(Protocol):
    def stamp(
        self, version: str, pre_release: str | None
    ) -> Result[list[StampReport], ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class ReleaseServices:
    """Everything a flow needs for one repository."""

    config: FlowConfig
    hosting: HostingClient
    vcs: VersionControl
    tagging: TaggingBackend
    stamper: Stamper
    console: ConsoleProtocol


def git_failure(message: str, e: GitError) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=message, hint=e.message)
