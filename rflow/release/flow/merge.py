"""Merge-triggered release: resolve context, run guardrails, execute the phase."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from rflow.core.result import Err, Ok, Result
from rflow.release.contracts import MergeEvent, MergeResult
from rflow.release.domain.guardrails import evaluate_guardrails
from rflow.release.domain.model import (
    FreezeOutcome,
    GuardrailReport,
    Phase,
    PhaseOutcome,
    PrereleaseOutcome,
    ReleaseContext,
    StableOutcome,
)
from rflow.release.errors import ReleaseError
from rflow.release.flow.ports import ReleaseServices, git_failure
from rflow.release.flow.prerelease import run_prerelease
from rflow.release.flow.stable import run_stable
from rflow.release.resolve.context import resolve_context

ServicesFactory = Callable[[str], ReleaseServices]


@dataclass(frozen=True, slots=True)
class MergeRun:
    context: ReleaseContext
    report: GuardrailReport
    # None when guardrails failed or execution was not requested.
    result: MergeResult | None = None


def to_merge_result(
    context: ReleaseContext, report: GuardrailReport, outcome: PhaseOutcome
) -> MergeResult:
    """Flatten a phase outcome into the common result record."""
    release_url: str | None = None
    tags: tuple[str, ...] = ()
    backflow: tuple[str, ...] = ()
    match outcome:
        case PrereleaseOutcome():
            release_url = outcome.release_url
            tags = outcome.tags_created
        case StableOutcome():
            release_url = outcome.release_url
            tags = outcome.tags_created
            backflow = outcome.backflow_prs
        case FreezeOutcome():
            pass

    return MergeResult(
        phase=str(context.phase),
        version=context.version,
        release_url=release_url,
        tags_created=tags,
        backflow_prs=backflow,
        guardrails_validated=report.validated,
        source_branch=context.source_branch,
        target_branch=context.target_branch,
    )


def execute_phase(
    context: ReleaseContext, services: ReleaseServices
) -> Result[PhaseOutcome, ReleaseError]:
    if context.phase is Phase.FREEZE:
        services.console.success(
            f"{context.source_branch} -> {context.target_branch}: feature freeze recorded"
        )
        return Ok(FreezeOutcome())

    identity = services.config.identity
    configured = services.vcs.configure_identity(identity.name, identity.email)
    if isinstance(configured, Err):
        return Err(git_failure("failed to configure commit identity", configured.error))

    match context.phase:
        case Phase.ALPHA:
            return run_prerelease(context, "alpha", services)
        case Phase.BETA:
            return run_prerelease(context, "beta", services)
        case _:
            return run_stable(context, services)


def run_merge(
    event: MergeEvent,
    *,
    services_for: ServicesFactory,
    main_branch: str | None = None,
    execute: bool = True,
) -> Result[MergeRun, ReleaseError]:
    """Run the merge-triggered flow for one event.

    Args:
        event: The merge descriptor.
        services_for: Builds collaborators for a repository (``owner/name``).
        main_branch: Configured main branch (stable target besides main/master).
        execute: False to stop after guardrail evaluation (no side effects).
    """
    context = resolve_context(
        event,
        list_releases=lambda repo: services_for(repo).hosting.list_releases(),
        main_branch=main_branch,
    )
    if isinstance(context, Err):
        return context
    ctx = context.value

    services = services_for(ctx.repository)
    report = evaluate_guardrails(
        ctx,
        freeze=services.config.freeze,
        ci=services.config.ci,
        probes=services.hosting,
    )
    if not report.passed or not execute:
        return Ok(MergeRun(context=ctx, report=report))

    outcome = execute_phase(ctx, services)
    if isinstance(outcome, Err):
        return outcome

    result = to_merge_result(ctx, report, outcome.value)
    return Ok(MergeRun(context=ctx, report=report, result=result))
