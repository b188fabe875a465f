"""Guardrail engine for merge-triggered releases.

Five guardrails run in a fixed order (G1 -> G5) and evaluation stops at the
first failure. Operators diagnose a refused release from the failure message
alone, so every failure states what failed, why, and how to fix it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from rflow.core.config import CiConfig, FreezeConfig
from rflow.core.result import Err, Result
from rflow.release.domain.branches import BranchKind, dev_branch, release_branch
from rflow.release.domain.model import (
    BranchProbe,
    CheckRun,
    GuardrailReport,
    GuardrailResult,
    Phase,
    ReleaseContext,
)
from rflow.release.errors import ReleaseError

PASSING_CONCLUSIONS: frozenset[str] = frozenset({"SUCCESS", "SKIPPED", "NEUTRAL"})


class GuardrailProbes(Protocol):
    """External state the guardrails need to read."""

    def branch_exists(self, branch: str) -> BranchProbe: ...

    def pull_request_checks(self, number: int) -> Result[list[CheckRun], ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class GuardrailInputs:
    context: ReleaseContext
    freeze: FreezeConfig
    ci: CiConfig
    probes: GuardrailProbes


Guardrail = Callable[[GuardrailInputs], GuardrailResult]


def _fold(name: str) -> str:
    return "".join(ch for ch in name.lower() if ch not in " -_")


def is_self_check(check_name: str, ci: CiConfig) -> bool:
    """True if a check belongs to the workflow currently running."""
    if any(check_name.strip() == n.strip() for n in ci.self_check_names):
        return True
    folded = _fold(check_name)
    return any(_fold(p) and _fold(p) in folded for p in ci.self_check_patterns)


def check_draft_intent(inputs: GuardrailInputs) -> GuardrailResult:
    gid, name = "G1", "Draft intent exists"
    ctx = inputs.context
    if ctx.phase not in (Phase.ALPHA, Phase.BETA, Phase.STABLE):
        return GuardrailResult.skip(gid, name, f"not applicable to {ctx.phase} phase")

    if ctx.intent is not None:
        return GuardrailResult.ok(
            gid, name, f"draft intent #{ctx.intent.id} found for {ctx.version}"
        )

    return GuardrailResult.fail(
        gid,
        name,
        f"No draft intent found for {ctx.version}.\n"
        f"Why: every release train must be declared by a draft release whose tag is "
        f"{ctx.version} before {ctx.phase} releases can be cut from it.\n"
        "Fix:\n"
        f"  1. Start the train: rflow train start {ctx.version}\n"
        f"     or create the draft by hand: gh release create {ctx.version} --draft "
        f'--target {dev_branch(ctx.version)} --title "Intent: {ctx.version}"\n'
        "  2. Re-run this workflow.",
    )


def check_feature_freeze_per_version(inputs: GuardrailInputs) -> GuardrailResult:
    gid, name = "G2", "Feature branch freeze"
    ctx = inputs.context
    if ctx.phase is not Phase.ALPHA:
        return GuardrailResult.skip(gid, name, f"not applicable to {ctx.phase} phase")

    if ctx.source.kind is not BranchKind.FEATURE:
        return GuardrailResult.ok(gid, name, f"{ctx.source_branch} is not a feature branch")

    stabilization = release_branch(ctx.version)
    match inputs.probes.branch_exists(stabilization):
        case BranchProbe.NOT_FOUND:
            return GuardrailResult.ok(gid, name, f"{stabilization} does not exist yet")
        case BranchProbe.QUERY_FAILED:
            return GuardrailResult.ok(
                gid,
                name,
                f"could not query {stabilization}; freeze check bypassed, "
                "branch protection on the remote remains authoritative",
            )
        case BranchProbe.EXISTS:
            return GuardrailResult.fail(
                gid,
                name,
                f"Feature branch {ctx.source_branch} cannot merge into "
                f"{ctx.target_branch}: {ctx.version} is feature-frozen.\n"
                f"Why: {stabilization} exists, so {ctx.version} is in stabilization "
                "and only accepts fixes.\n"
                "Fix:\n"
                "  1. Retarget this work to the next version's dev branch, or\n"
                f"  2. If this is a fix, rename the branch to fix/... and merge it "
                f"into {stabilization}.",
            )


def check_fixes_only(inputs: GuardrailInputs) -> GuardrailResult:
    gid, name = "G3", "Only fixes during stabilization"
    ctx = inputs.context
    if ctx.phase is not Phase.BETA:
        return GuardrailResult.skip(gid, name, f"not applicable to {ctx.phase} phase")

    if ctx.source.kind is BranchKind.FIX:
        return GuardrailResult.ok(gid, name, f"{ctx.source_branch} is a fix branch")

    return GuardrailResult.fail(
        gid,
        name,
        f"{ctx.source_branch} cannot merge into {ctx.target_branch}: "
        "only fix/* or hotfix/* branches are accepted during stabilization.\n"
        f"Why: {ctx.target_branch} is producing beta releases of {ctx.version}.\n"
        "Fix:\n"
        f"  1. If this is a bug fix, recreate it as fix/<topic> from {ctx.target_branch}.\n"
        f"  2. Otherwise merge it into {dev_branch(ctx.version)} or a later train.",
    )


def check_ci_status(inputs: GuardrailInputs) -> GuardrailResult:
    gid, name = "G4", "CI status"
    ctx = inputs.context
    if ctx.phase is not Phase.STABLE:
        return GuardrailResult.skip(gid, name, f"not applicable to {ctx.phase} phase")

    if ctx.pull_request_id is None:
        return GuardrailResult.ok(
            gid,
            name,
            "no pull request number in event; CI check bypassed, "
            "branch protection on the remote remains authoritative",
        )

    checks = inputs.probes.pull_request_checks(ctx.pull_request_id)
    if isinstance(checks, Err):
        return GuardrailResult.ok(
            gid,
            name,
            f"could not read CI status for PR #{ctx.pull_request_id} "
            f"({checks.error.message}); check bypassed, branch protection on the "
            "remote remains authoritative",
        )

    relevant = [c for c in checks.value if not is_self_check(c.name, inputs.ci)]
    pending = [c.name for c in relevant if not c.conclusion]
    failing = [
        f"{c.name} ({c.conclusion})"
        for c in relevant
        if c.conclusion and c.conclusion.upper() not in PASSING_CONCLUSIONS
    ]

    if pending:
        return GuardrailResult.fail(
            gid,
            name,
            f"CI is still running on PR #{ctx.pull_request_id}: {', '.join(pending)}.\n"
            "Why: a stable release is only cut from a fully green pull request.\n"
            "Fix:\n"
            "  1. Wait for the pending checks to finish.\n"
            "  2. Re-run this workflow.",
        )
    if failing:
        return GuardrailResult.fail(
            gid,
            name,
            f"CI failed on PR #{ctx.pull_request_id}: {', '.join(failing)}.\n"
            "Why: a stable release is only cut from a fully green pull request.\n"
            "Fix:\n"
            f"  1. Fix the failing checks on {ctx.source_branch}.\n"
            "  2. Re-run the checks, then re-run this workflow.",
        )

    return GuardrailResult.ok(
        gid, name, f"{len(relevant)} check(s) green on PR #{ctx.pull_request_id}"
    )


def check_global_freeze(inputs: GuardrailInputs) -> GuardrailResult:
    gid, name = "G5", "Global feature freeze"
    ctx = inputs.context
    freeze = inputs.freeze
    if not freeze.active:
        return GuardrailResult.ok(gid, name, "no global freeze")
    if freeze.override_active:
        return GuardrailResult.ok(
            gid, name, "global freeze is active but bypassed by the freeze override"
        )
    if ctx.source.kind is BranchKind.FEATURE:
        return GuardrailResult.fail(
            gid,
            name,
            f"Global feature freeze is active: {ctx.source_branch} cannot be merged.\n"
            "Why: RELEASE_FEATURE_FREEZE is set for this repository.\n"
            "Fix:\n"
            "  1. Wait until the freeze is lifted, or\n"
            "  2. Have a maintainer set RELEASE_FREEZE_OVERRIDE=true for this run.",
        )
    return GuardrailResult.ok(
        gid, name, f"global freeze is active; {ctx.source_branch} is not a feature branch"
    )


GUARDRAILS: tuple[Guardrail, ...] = (
    check_draft_intent,
    check_feature_freeze_per_version,
    check_fixes_only,
    check_ci_status,
    check_global_freeze,
)


def evaluate_guardrails(
    context: ReleaseContext,
    *,
    freeze: FreezeConfig,
    ci: CiConfig,
    probes: GuardrailProbes,
) -> GuardrailReport:
    """Run G1..G5 in order, stopping at the first failure."""
    inputs = GuardrailInputs(context=context, freeze=freeze, ci=ci, probes=probes)
    details: list[GuardrailResult] = []
    for guardrail in GUARDRAILS:
        result = guardrail(inputs)
        details.append(result)
        if not result.passed:
            return GuardrailReport(
                passed=False,
                validated=_validated(details),
                failed=result,
                details=tuple(details),
            )

    return GuardrailReport(
        passed=True,
        validated=_validated(details),
        failed=None,
        details=tuple(details),
    )


def _validated(details: list[GuardrailResult]) -> tuple[str, ...]:
    return tuple(r.id for r in details if r.passed and not r.skipped)
