from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from rflow.release.domain.branches import BranchInfo, BranchKind


class Phase(StrEnum):
    ALPHA = "alpha"
    BETA = "beta"
    FREEZE = "freeze"
    STABLE = "stable"


class BranchProbe(StrEnum):
    """Answer to "does this branch exist?" when the question can fail."""

    EXISTS = "exists"
    NOT_FOUND = "not_found"
    QUERY_FAILED = "query_failed"


@dataclass(frozen=True, slots=True)
class DraftIntent:
    """An unpublished release record that declares a planned version.

    ``id`` is the release-hosting handle used to publish it later.
    """

    id: int
    tag_name: str
    target_branch: str
    url: str
    is_published: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """A release as listed by the release-hosting API."""

    id: int
    tag_name: str
    name: str
    target_commitish: str
    draft: bool
    prerelease: bool
    url: str
    body: str = ""
    created_at: str | None = None

    def as_intent(self) -> DraftIntent:
        return DraftIntent(
            id=self.id,
            tag_name=self.tag_name,
            target_branch=self.target_commitish,
            url=self.url,
            is_published=not self.draft,
        )


@dataclass(frozen=True, slots=True)
class PullRequestRef:
    number: int
    head: str
    base: str
    url: str


@dataclass(frozen=True, slots=True)
class CheckRun:
    """One entry of a pull request's aggregated CI status.

    ``conclusion`` is None while the check is still pending.
    """

    name: str
    conclusion: str | None


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Everything known about one merge, resolved once per invocation."""

    phase: Phase
    version: str
    source: BranchInfo
    target: BranchInfo
    intent: DraftIntent | None
    repository: str
    pull_request_id: int | None

    @property
    def source_branch(self) -> str:
        return self.source.name

    @property
    def target_branch(self) -> str:
        return self.target.name


def infer_phase(source: BranchInfo, target: BranchInfo) -> Phase | None:
    """Map a (source, target) pair to a release phase, or None if unknown."""
    if target.kind is BranchKind.DEV:
        return Phase.ALPHA
    if target.kind is BranchKind.RELEASE:
        if source.kind is BranchKind.DEV:
            return Phase.FREEZE
        return Phase.BETA
    if target.kind is BranchKind.MAIN:
        return Phase.STABLE
    return None


@dataclass(frozen=True, slots=True)
class GuardrailResult:
    """Outcome of one guardrail.

    A skipped guardrail counts as passed but is reported separately.
    """

    id: str
    name: str
    passed: bool
    skipped: bool = False
    message: str = ""

    @classmethod
    def ok(cls, id: str, name: str, message: str) -> GuardrailResult:
        return cls(id=id, name=name, passed=True, message=message)

    @classmethod
    def skip(cls, id: str, name: str, message: str) -> GuardrailResult:
        return cls(id=id, name=name, passed=True, skipped=True, message=message)

    @classmethod
    def fail(cls, id: str, name: str, message: str) -> GuardrailResult:
        return cls(id=id, name=name, passed=False, message=message)


@dataclass(frozen=True, slots=True)
class GuardrailReport:
    passed: bool
    validated: tuple[str, ...]
    failed: GuardrailResult | None
    details: tuple[GuardrailResult, ...]


@dataclass(frozen=True, slots=True)
class PrereleaseOutcome:
    """Alpha or beta executor result."""

    phase: Phase
    release_url: str
    tags_created: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FreezeOutcome:
    phase: Phase = Phase.FREEZE


@dataclass(frozen=True, slots=True)
class StableOutcome:
    release_url: str
    tags_created: tuple[str, ...]
    backflow_prs: tuple[str, ...] = field(default_factory=tuple)
    phase: Phase = Phase.STABLE


type PhaseOutcome = PrereleaseOutcome | FreezeOutcome | StableOutcome


@dataclass(frozen=True, slots=True)
class TagSet:
    """Tags reported by the tagging backend: the version tag plus smart tags."""

    primary: str
    aliases: tuple[str, ...] = ()

    @property
    def all(self) -> tuple[str, ...]:
        return (self.primary, *self.aliases)
