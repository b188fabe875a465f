"""Alpha and beta executors.

Both phases cut a numbered prerelease of the train's version: the next free
``-alpha.N`` / ``-beta.N`` tag, stamped files, and a prerelease record.
"""

from __future__ import annotations

from rflow.core.result import Err, Ok, Result
from rflow.output.console import Style
from rflow.release.domain.model import Phase, PrereleaseOutcome, ReleaseContext
from rflow.release.domain.versions import Prerelease, PrereleaseKind, prerelease_tag
from rflow.release.errors import ReleaseError
from rflow.release.flow.ports import ReleaseServices
from rflow.release.flow.version_commit import stamp_commit_push


def _notes(context: ReleaseContext, tag: str) -> str:
    lines = [f"Pre-release {tag} of the {context.version} train."]
    if context.pull_request_id is not None:
        lines.append(f"Cut from #{context.pull_request_id} ({context.source_branch}).")
    return "\n\n".join(lines)


def run_prerelease(
    context: ReleaseContext,
    kind: PrereleaseKind,
    services: ReleaseServices,
) -> Result[PrereleaseOutcome, ReleaseError]:
    console = services.console
    version = context.version

    number = services.tagging.next_prerelease_number(version, kind)
    if isinstance(number, Err):
        return number

    pre = Prerelease(kind=kind, number=number.value)
    tag = prerelease_tag(version, pre)
    console.header(f"{kind.capitalize()} {tag}")

    tags = services.tagging.create_tags(tag)
    if isinstance(tags, Err):
        return tags

    committed = stamp_commit_push(
        services,
        version=version,
        pre_release=pre.stamp_label,
        branch=context.target_branch,
    )
    if isinstance(committed, Err):
        return committed

    console.print(f"create prerelease {tag} -> {context.target_branch}", Style.DIM)
    release = services.hosting.create_release(
        tag=tag,
        title=tag,
        notes=_notes(context, tag),
        target=context.target_branch,
        draft=False,
        prerelease=True,
    )
    if isinstance(release, Err):
        # A retried run may find the record already created by the first attempt.
        existing = services.hosting.release_url_for_tag(tag)
        if isinstance(existing, Err):
            return release
        console.warning(f"release {tag} already exists; reusing {existing.value}")
        url = existing.value
    else:
        url = release.value.url

    console.success(f"{tag} released: {url}")
    return Ok(
        PrereleaseOutcome(
            phase=Phase.ALPHA if kind == "alpha" else Phase.BETA,
            release_url=url,
            tags_created=tags.value.all,
        )
    )
