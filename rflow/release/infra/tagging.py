"""Tagging backend over git.

Creates the immutable version tag and, for stable versions, moves the
``vMAJOR`` / ``vMAJOR.MINOR`` smart tags to the same commit. Re-running after a
partial release is safe: an existing version tag is reused, never recreated.
"""

from __future__ import annotations

from rflow.core.result import Err, Ok, Result
from rflow.git.repository import GitError, Repository
from rflow.output.console import ConsoleProtocol, Style
from rflow.release.domain.model import TagSet
from rflow.release.domain.versions import (
    PrereleaseKind,
    next_prerelease_number,
    parse_stable_tag,
    prerelease_tag_glob,
)
from rflow.release.errors import ReleaseError


def _tag_error(message: str, e: GitError) -> ReleaseError:
    return ReleaseError(kind="tag_failed", message=message, hint=e.message)


class GitTaggingBackend:
    def __init__(self, *, repo: Repository, remote: str, console: ConsoleProtocol) -> None:
        self._repo = repo
        self._remote = remote
        self._console = console

    def next_prerelease_number(
        self, version: str, kind: PrereleaseKind
    ) -> Result[int, ReleaseError]:
        fetched = self._repo.fetch_tags(self._remote)
        if isinstance(fetched, Err):
            return Err(_tag_error("failed to fetch tags", fetched.error))

        tags = self._repo.list_tags(prerelease_tag_glob(version, kind))
        if isinstance(tags, Err):
            return Err(_tag_error(f"failed to list {kind} tags of {version}", tags.error))
        return Ok(next_prerelease_number(tags.value, version=version, kind=kind))

    def create_tags(self, tag: str) -> Result[TagSet, ReleaseError]:
        """Create and push ``tag``; add smart tags when it is a stable version."""
        fetched = self._repo.fetch_tags(self._remote)
        if isinstance(fetched, Err):
            return Err(_tag_error("failed to fetch tags", fetched.error))

        exists = self._repo.tag_exists(tag)
        if isinstance(exists, Err):
            return Err(_tag_error(f"failed to look up tag {tag}", exists.error))

        if exists.value:
            self._console.print(f"tag {tag} already exists; reusing it", Style.DIM)
        else:
            self._console.print(f"git tag {tag}", Style.DIM)
            created = self._repo.create_tag(tag, message=f"Release {tag}")
            if isinstance(created, Err):
                return Err(_tag_error(f"failed to create tag {tag}", created.error))
            pushed = self._repo.push_tag(self._remote, tag)
            if isinstance(pushed, Err):
                return Err(_tag_error(f"failed to push tag {tag}", pushed.error))

        semver = parse_stable_tag(tag)
        if semver is None:
            return Ok(TagSet(primary=tag))

        commit = self._repo.resolve_commit(tag)
        if isinstance(commit, Err):
            return Err(_tag_error(f"failed to resolve tag {tag}", commit.error))

        aliases: list[str] = []
        for alias in semver.smart_tags():
            self._console.print(f"git tag --force {alias} {commit.value[:8]}", Style.DIM)
            moved = self._repo.create_tag(alias, ref=commit.value, force=True)
            if isinstance(moved, Err):
                return Err(_tag_error(f"failed to move smart tag {alias}", moved.error))
            pushed = self._repo.push_tag(self._remote, alias, force=True)
            if isinstance(pushed, Err):
                return Err(_tag_error(f"failed to push smart tag {alias}", pushed.error))
            aliases.append(alias)

        return Ok(TagSet(primary=tag, aliases=tuple(aliases)))
