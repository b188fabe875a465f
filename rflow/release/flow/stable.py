"""Stable executor.

Ordering matters: the release record is published (or created) before smart
tags are requested, because publishing a draft makes the hosting side create
the bare version tag. The tagging backend then finds that tag and only moves
the ``vX`` / ``vX.Y`` aliases.
"""

from __future__ import annotations

from rflow.core.result import Err, Ok, Result
from rflow.output.console import Style
from rflow.release.domain.model import ReleaseContext, StableOutcome
from rflow.release.errors import ReleaseError
from rflow.release.flow.backflow import run_backflow
from rflow.release.flow.ports import ReleaseServices
from rflow.release.flow.version_commit import stamp_commit_push


def _publish_record(
    context: ReleaseContext, services: ReleaseServices
) -> Result[str, ReleaseError]:
    hosting = services.hosting
    console = services.console
    target = context.target_branch
    version = context.version

    if context.intent is not None:
        intent = context.intent
        console.print(f"publish draft intent #{intent.id} as {version}", Style.DIM)
        published = hosting.publish_release(
            release_id=intent.id,
            tag=version,
            target=target,
        )
        if isinstance(published, Err):
            return published
        return Ok(intent.url)

    console.warning(f"no draft intent for {version}; creating the release directly")
    notes = f"Stable release {version}."
    if context.pull_request_id is not None:
        notes += f"\n\nMerged in #{context.pull_request_id}."
    created = hosting.create_release(
        tag=version,
        title=version,
        notes=notes,
        target=target,
        draft=False,
        prerelease=False,
    )
    if isinstance(created, Err):
        return created
    return Ok(created.value.url)


def run_stable(
    context: ReleaseContext, services: ReleaseServices
) -> Result[StableOutcome, ReleaseError]:
    console = services.console
    version = context.version
    console.header(f"Stable {version}")

    committed = stamp_commit_push(
        services,
        version=version,
        pre_release=None,
        branch=context.target_branch,
    )
    if isinstance(committed, Err):
        return committed

    url = _publish_record(context, services)
    if isinstance(url, Err):
        return url

    tags = services.tagging.create_tags(version)
    if isinstance(tags, Err):
        return tags

    console.success(f"{version} released: {url.value}")
    backflow = run_backflow(version, services, head=context.target_branch)
    return Ok(
        StableOutcome(
            release_url=url.value,
            tags_created=tags.value.all,
            backflow_prs=tuple(backflow),
        )
    )
