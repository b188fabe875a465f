from __future__ import annotations

from rflow.core.result import Err, Ok, Result
from rflow.output.console import Style
from rflow.release.domain.versions import stamp_version
from rflow.release.errors import ReleaseError
from rflow.release.flow.ports import ReleaseServices, git_failure


def stamp_commit_push(
    services: ReleaseServices,
    *,
    version: str,
    pre_release: str | None,
    branch: str,
) -> Result[str | None, ReleaseError]:
    """Stamp version files, commit with the CI-skip marker, push to ``branch``.

    Returns the new commit sha, or None when no file changed.
    """
    config = services.config
    console = services.console

    reports = services.stamper.stamp(version, pre_release)
    if isinstance(reports, Err):
        return reports

    changed = [r.file_path for r in reports.value if r.updated]
    stamped = stamp_version(version, pre_release)
    if not changed:
        console.print(f"version files already at {stamped}; nothing to commit", Style.DIM)
        return Ok(None)

    for path in changed:
        console.print(f"stamped {path} -> {stamped}", Style.DIM)

    added = services.vcs.add(changed)
    if isinstance(added, Err):
        return Err(git_failure("failed to stage version files", added.error))

    message = f"chore(release): {stamped} {config.commit_marker}".strip()
    console.print(f"git commit -m '{message}'", Style.DIM)
    sha = services.vcs.commit(message)
    if isinstance(sha, Err):
        return Err(git_failure("failed to commit version files", sha.error))

    console.print(f"git push {config.remote} HEAD:{branch}", Style.DIM)
    pushed = services.vcs.push_head(config.remote, branch)
    if isinstance(pushed, Err):
        return Err(git_failure(f"failed to push version bump to {branch}", pushed.error))

    return Ok(sha.value)
