"""Error type for the release bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "event_missing",
    "repository_missing",
    "phase_unknown",
    "version_missing",
    "invalid_input",
    "config_invalid",
    "gh_missing",
    "gh_failed",
    "git_failed",
    "tag_failed",
    "stamp_file_missing",
    "stamp_failed",
    "train_blocked",
    "intent_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    ``hint`` carries the remediation: what the operator should do before
    re-running. It is rendered verbatim by the CLI.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
