"""Branch naming contract.

All branch-name pattern matching lives here. A branch is classified once per
invocation and guardrails work on the resulting ``BranchInfo``.
"""

from __future__ import annotations

import re
from collections.abc import Collection
from dataclasses import dataclass
from enum import StrEnum

MAIN_BRANCHES: frozenset[str] = frozenset({"main", "master"})

_DEV_RE = re.compile(r"^dev/(v\d+\.\d+\.\d+)$")
_RELEASE_RE = re.compile(r"^release/(v\d+\.\d+\.\d+)$")
_FEATURE_RE = re.compile(r"^feature/.+")
_FIX_RE = re.compile(r"^(fix|hotfix)/.+")


class BranchKind(StrEnum):
    FEATURE = "feature"
    FIX = "fix"
    DEV = "dev"
    RELEASE = "release"
    MAIN = "main"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class BranchInfo:
    name: str
    kind: BranchKind
    # Only set for DEV and RELEASE branches.
    version: str | None = None


def classify(name: str, *, main_branches: Collection[str] = MAIN_BRANCHES) -> BranchInfo:
    """Classify a branch name into one of the known kinds.

    ``main_branches`` names the integration branches that receive stable merges.
    """
    branch = name.strip()
    if branch in main_branches:
        return BranchInfo(name=branch, kind=BranchKind.MAIN)

    m = _DEV_RE.match(branch)
    if m is not None:
        return BranchInfo(name=branch, kind=BranchKind.DEV, version=m.group(1))

    m = _RELEASE_RE.match(branch)
    if m is not None:
        return BranchInfo(name=branch, kind=BranchKind.RELEASE, version=m.group(1))

    if _FEATURE_RE.match(branch):
        return BranchInfo(name=branch, kind=BranchKind.FEATURE)
    if _FIX_RE.match(branch):
        return BranchInfo(name=branch, kind=BranchKind.FIX)
    return BranchInfo(name=branch, kind=BranchKind.UNKNOWN)


def dev_branch(version: str) -> str:
    return f"dev/{version}"


def release_branch(version: str) -> str:
    return f"release/{version}"


def is_dev_branch(name: str) -> bool:
    return _DEV_RE.match(name.strip()) is not None


def main_branches_for(main_branch: str | None) -> frozenset[str]:
    """The default main names plus the configured one."""
    if not main_branch:
        return MAIN_BRANCHES
    return MAIN_BRANCHES | {main_branch.strip()}
