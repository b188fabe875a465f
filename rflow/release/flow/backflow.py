"""Backflow: propagate a stable release into every open train.

After a stable release, each unpublished draft intent that targets a
``dev/vX.Y.Z`` branch gets a draft pull request from the main branch into that
dev branch. Trains are processed independently: one failing train is reported
and skipped, never aborting the others.
"""

from __future__ import annotations

from rflow.core.result import Err
from rflow.output.console import Style
from rflow.release.domain.branches import is_dev_branch
from rflow.release.domain.model import BranchProbe, ReleaseRecord
from rflow.release.flow.ports import ReleaseServices

_LABEL_DESCRIPTION = "Syncs a stable release back into an open release train"


def open_trains(releases: list[ReleaseRecord]) -> list[ReleaseRecord]:
    """Unpublished draft intents targeting a dev branch."""
    return [r for r in releases if r.draft and is_dev_branch(r.target_commitish)]


def _title(released: str, train: ReleaseRecord) -> str:
    return f"Backflow {released} into {train.tag_name} ({train.target_commitish})"


def _body(released: str, train: ReleaseRecord, main_branch: str) -> str:
    branch = train.target_commitish
    return "\n".join(
        [
            f"Automated backflow of stable release **{released}** into the "
            f"**{train.tag_name}** train.",
            "",
            "## Scope",
            f"- Brings every change released in {released} (including hotfixes and the "
            f"version stamp) from `{main_branch}` into `{branch}`.",
            f"- Does not publish anything for {train.tag_name}; the train continues "
            "with its own alpha/beta cycle.",
            "",
            "## Resolving conflicts",
            "This PR is opened as a draft. If GitHub reports conflicts:",
            "",
            "```",
            "git fetch origin",
            f"git checkout -b backflow/{released}-into-{train.tag_name} origin/{branch}",
            f"git merge origin/{main_branch}",
            "# resolve conflicts; keep the train's version fields",
            "git commit",
            f"git push origin HEAD:{branch}",
            "```",
            "",
            "Then close this PR, or mark it ready for review once it merges cleanly.",
        ]
    )


def run_backflow(
    released_version: str, services: ReleaseServices, *, head: str | None = None
) -> list[str]:
    """Open backflow PRs and return their URLs.

    ``head`` is the branch the release was cut from (default: the configured
    main branch).
    """
    console = services.console
    hosting = services.hosting
    main_branch = head or services.config.main_branch
    label = services.config.backflow_label

    console.header(f"Backflow {released_version}")
    releases = hosting.list_releases()
    if isinstance(releases, Err):
        console.warning(
            f"backflow skipped: could not list draft intents ({releases.error.pretty()}); "
            f"open PRs from {main_branch} into the dev/* branches by hand"
        )
        return []

    trains = open_trains(releases.value)
    if not trains:
        console.print("no open release trains", Style.DIM)
        return []

    labels: tuple[str, ...] = (label,)
    labelled = hosting.ensure_label(label, _LABEL_DESCRIPTION)
    if isinstance(labelled, Err):
        console.warning(f"could not ensure label '{label}'; creating PRs without it")
        labels = ()

    created: list[str] = []
    for train in trains:
        branch = train.target_commitish

        match hosting.branch_exists(branch):
            case BranchProbe.NOT_FOUND:
                console.warning(f"{train.tag_name}: {branch} no longer exists; skipped")
                continue
            case BranchProbe.QUERY_FAILED:
                console.warning(f"{train.tag_name}: could not check {branch}; skipped")
                continue
            case BranchProbe.EXISTS:
                pass

        existing = hosting.list_pull_requests(head=main_branch, base=branch)
        if isinstance(existing, Err):
            console.warning(
                f"{train.tag_name}: could not list PRs into {branch} "
                f"({existing.error.message}); skipped to avoid a duplicate"
            )
            continue
        if existing.value:
            pr = existing.value[0]
            console.print(f"{train.tag_name}: backflow PR #{pr.number} already open", Style.DIM)
            continue

        console.print(f"gh pr create --base {branch} --head {main_branch} --draft", Style.DIM)
        url = hosting.create_pull_request(
            head=main_branch,
            base=branch,
            title=_title(released_version, train),
            body=_body(released_version, train, main_branch),
            labels=labels,
            draft=True,
        )
        if isinstance(url, Err):
            console.warning(f"{train.tag_name}: {url.error.pretty()}")
            continue

        console.success(f"{train.tag_name}: {url.value}")
        created.append(url.value)

    return created
