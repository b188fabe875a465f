"""Records crossing the boundary between the CLI and release flows."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MergeEvent:
    """The parts of a merged pull request event that drive a release."""

    source_branch: str
    target_branch: str
    repository: str | None
    pull_request_id: int | None


@dataclass(frozen=True, slots=True)
class MergeResult:
    """Outcome of the merge-triggered entry point."""

    phase: str
    version: str
    release_url: str | None
    tags_created: tuple[str, ...]
    backflow_prs: tuple[str, ...]
    guardrails_validated: tuple[str, ...]
    source_branch: str
    target_branch: str

    def as_dict(self) -> dict[str, object]:
        return {
            "phase": self.phase,
            "version": self.version,
            "releaseUrl": self.release_url,
            "tagsCreated": list(self.tags_created),
            "backflowPRs": list(self.backflow_prs),
            "guardrailsValidated": list(self.guardrails_validated),
            "sourceBranch": self.source_branch,
            "targetBranch": self.target_branch,
        }


@dataclass(frozen=True, slots=True)
class TrainResult:
    """Outcome of release-train initiation."""

    dev_branch: str
    intent_url: str
    base_commit: str

    def as_dict(self) -> dict[str, object]:
        return {
            "devBranch": self.dev_branch,
            "intentUrl": self.intent_url,
            "baseCommit": self.base_commit,
        }
