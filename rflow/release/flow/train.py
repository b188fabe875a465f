"""Release-Train Initiator.

Declares a new train atomically: a ``dev/vX.Y.Z`` branch plus a draft intent
targeting it. Either both exist afterwards or neither does.

Checks, in order (first failure wins):
- PD-1: no draft intent already declares the version
- PD-2: the version tag does not exist
- PD-3: the dev branch does not exist
- PD-4: the base reference resolves to a commit
"""

from __future__ import annotations

from rflow.core.result import Err, Ok, Result
from rflow.output.console import Style
from rflow.release.contracts import TrainResult
from rflow.release.domain.branches import dev_branch
from rflow.release.domain.model import BranchProbe
from rflow.release.domain.versions import normalize_version, parse_version
from rflow.release.errors import ReleaseError
from rflow.release.flow.ports import ReleaseServices, git_failure

# Latest stable tag: vX.Y.Z without a prerelease suffix.
_STABLE_TAG_GLOB = "v[0-9]*.[0-9]*.[0-9]*"
_PRERELEASE_TAG_GLOB = "*-*"


def _blocked(check: str, message: str, hint: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="train_blocked", message=f"{check}: {message}", hint=hint))


def _intent_notes(version: str, branch: str, base: str, sha: str) -> str:
    return "\n".join(
        [
            f"Release intent for **{version}**.",
            "",
            f"- Development branch: `{branch}` (from `{base}` @ {sha[:12]})",
            f"- Alpha releases are cut on every merge into `{branch}`.",
            f"- Publishing this draft is done by the stable release of {version}.",
        ]
    )


def resolve_base(services: ReleaseServices, base: str | None) -> str:
    """The requested base, else the latest stable tag, else the main branch."""
    if base:
        return base
    latest = services.vcs.describe_latest_tag(_STABLE_TAG_GLOB, exclude=_PRERELEASE_TAG_GLOB)
    return latest or services.config.main_branch


def _rollback(services: ReleaseServices, branch: str, *, remote_created: bool) -> None:
    """Best-effort removal of the dev branch; failures are only reported."""
    console = services.console
    remote = services.config.remote

    if remote_created:
        console.print(f"git push {remote} --delete {branch}", Style.DIM)
        deleted = services.vcs.delete_remote_branch(remote, branch)
        if isinstance(deleted, Err):
            console.warning(
                f"rollback: could not delete remote branch {branch} ({deleted.error.message}); "
                f"delete it by hand: git push {remote} --delete {branch}"
            )

    console.print(f"git branch -D {branch}", Style.DIM)
    deleted_local = services.vcs.delete_branch(branch)
    if isinstance(deleted_local, Err):
        console.warning(
            f"rollback: could not delete local branch {branch} ({deleted_local.error.message})"
        )


def check_preconditions(
    version: str, base: str | None, services: ReleaseServices
) -> Result[tuple[str, str], ReleaseError]:
    """Run PD-1..PD-4; return the resolved (base ref, base commit)."""
    hosting = services.hosting
    vcs = services.vcs
    branch = dev_branch(version)

    releases = hosting.list_releases()
    if isinstance(releases, Err):
        return releases
    for release in releases.value:
        if release.draft and release.tag_name == version:
            return _blocked(
                "PD-1",
                f"a draft intent for {version} already exists ({release.url})",
                f"The {version} train is already declared; merge work into "
                f"{release.target_commitish or branch} instead",
            )

    fetched = vcs.fetch_tags(services.config.remote)
    if isinstance(fetched, Err):
        return Err(git_failure("failed to fetch tags", fetched.error))
    tagged = vcs.tag_exists(version)
    if isinstance(tagged, Err):
        return Err(git_failure(f"failed to look up tag {version}", tagged.error))
    if tagged.value:
        return _blocked(
            "PD-2",
            f"tag {version} already exists",
            f"{version} was already released; start a train for a later version",
        )

    match hosting.branch_exists(branch):
        case BranchProbe.EXISTS:
            return _blocked(
                "PD-3",
                f"branch {branch} already exists",
                f"Delete {branch} if it is stale, or create the draft intent by hand: "
                f"gh release create {version} --draft --target {branch}",
            )
        case BranchProbe.QUERY_FAILED:
            return _blocked(
                "PD-3",
                f"could not verify that {branch} does not exist",
                "Check gh authentication and network access, then retry",
            )
        case BranchProbe.NOT_FOUND:
            pass

    base_ref = resolve_base(services, base)
    sha = vcs.resolve_commit(base_ref)
    if isinstance(sha, Err):
        return _blocked(
            "PD-4",
            f"base reference '{base_ref}' does not resolve to a commit",
            "Pass --base with an existing tag, branch or sha (fetch it first in CI)",
        )
    return Ok((base_ref, sha.value))


def start_train(
    version: str,
    services: ReleaseServices,
    *,
    base: str | None = None,
) -> Result[TrainResult, ReleaseError]:
    """Create ``dev/<version>`` and its draft intent, or nothing at all."""
    console = services.console
    remote = services.config.remote

    if parse_version(version) is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"invalid version: {version}",
                hint="Expected MAJOR.MINOR.PATCH, e.g. 1.4.0",
            )
        )
    version = normalize_version(version)
    branch = dev_branch(version)
    console.header(f"Start train {version}")

    checked = check_preconditions(version, base, services)
    if isinstance(checked, Err):
        return checked
    base_ref, sha = checked.value

    console.print(f"git branch {branch} {base_ref} ({sha[:8]})", Style.DIM)
    created = services.vcs.create_branch(branch, sha)
    if isinstance(created, Err):
        return Err(git_failure(f"failed to create {branch}", created.error))

    console.print(f"git push {remote} {branch}", Style.DIM)
    pushed = services.vcs.push_branch(remote, branch)
    if isinstance(pushed, Err):
        _rollback(services, branch, remote_created=False)
        return Err(git_failure(f"failed to push {branch}", pushed.error))

    console.print(f"create draft intent {version} -> {branch}", Style.DIM)
    intent = services.hosting.create_release(
        tag=version,
        title=f"Intent: {version}",
        notes=_intent_notes(version, branch, base_ref, sha),
        target=branch,
        draft=True,
        prerelease=False,
    )
    if isinstance(intent, Err):
        console.warning(f"draft intent creation failed; rolling back {branch}")
        _rollback(services, branch, remote_created=True)
        return Err(
            ReleaseError(
                kind="intent_failed",
                message=intent.error.message,
                hint=intent.error.hint,
            )
        )

    console.success(f"train {version} started: {intent.value.url}")
    return Ok(TrainResult(dev_branch=branch, intent_url=intent.value.url, base_commit=sha))
