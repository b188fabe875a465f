"""Context Resolver: merge event -> ReleaseContext.

Phase and version come from branch names alone; only the draft intent lookup
reaches out to the release-hosting API.
"""

from __future__ import annotations

from collections.abc import Callable

from rflow.core.result import Err, Ok, Result
from rflow.release.contracts import MergeEvent
from rflow.release.domain.branches import BranchInfo, classify, main_branches_for
from rflow.release.domain.model import (
    DraftIntent,
    Phase,
    ReleaseContext,
    ReleaseRecord,
    infer_phase,
)
from rflow.release.domain.versions import extract_version
from rflow.release.errors import ReleaseError

ReleaseLister = Callable[[str], Result[list[ReleaseRecord], ReleaseError]]

_PHASE_HINT = (
    "Expected target dev/vX.Y.Z (alpha), release/vX.Y.Z (beta, or freeze from dev/vX.Y.Z), "
    "or main/master or the configured main branch (stable)"
)


def resolve_phase(source: BranchInfo, target: BranchInfo) -> Result[Phase, ReleaseError]:
    phase = infer_phase(source, target)
    if phase is None:
        return Err(
            ReleaseError(
                kind="phase_unknown",
                message=f"cannot determine release phase for {source.name} -> {target.name}",
                hint=_PHASE_HINT,
            )
        )
    return Ok(phase)


def resolve_version(source: BranchInfo, target: BranchInfo) -> Result[str, ReleaseError]:
    """Version from the target branch, falling back to the source branch."""
    version = target.version or extract_version(target.name) or extract_version(source.name)
    if version is None:
        return Err(
            ReleaseError(
                kind="version_missing",
                message=f"no X.Y.Z version in {target.name} or {source.name}",
                hint="Stable merges must come from a release/vX.Y.Z (or hotfix/vX.Y.Z) branch",
            )
        )
    return Ok(version)


def find_draft_intent(releases: list[ReleaseRecord], version: str) -> DraftIntent | None:
    for release in releases:
        if release.draft and release.tag_name == version:
            return release.as_intent()
    return None


def resolve_context(
    event: MergeEvent,
    *,
    list_releases: ReleaseLister,
    main_branch: str | None = None,
) -> Result[ReleaseContext, ReleaseError]:
    """Build the ReleaseContext for one merge.

    Args:
        event: The merge descriptor.
        list_releases: Lists releases of a repository (``owner/name``).
        main_branch: Configured main branch, accepted as a stable target in
            addition to ``main`` and ``master``.
    """
    mains = main_branches_for(main_branch)
    source = classify(event.source_branch, main_branches=mains)
    target = classify(event.target_branch, main_branches=mains)

    phase = resolve_phase(source, target)
    if isinstance(phase, Err):
        return phase

    version = resolve_version(source, target)
    if isinstance(version, Err):
        return version

    if not event.repository:
        return Err(
            ReleaseError(
                kind="repository_missing",
                message="repository context missing",
                hint="The event has no repository.full_name; set GITHUB_REPOSITORY=owner/name",
            )
        )

    releases = list_releases(event.repository)
    if isinstance(releases, Err):
        return releases

    return Ok(
        ReleaseContext(
            phase=phase.value,
            version=version.value,
            source=source,
            target=target,
            intent=find_draft_intent(releases.value, version.value),
            repository=event.repository,
            pull_request_id=event.pull_request_id,
        )
    )
