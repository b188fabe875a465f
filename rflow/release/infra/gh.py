from __future__ import annotations

import json
import shutil
from dataclasses import dataclass
from pathlib import Path
from time import sleep
from urllib.parse import quote

from rflow.core.result import Err, Ok, Result
from rflow.core.structured import as_obj_list, as_str_dict, get_bool, get_int, get_str
from rflow.platform.process import ProcessError
from rflow.platform.process import run as run_process
from rflow.release.domain.model import BranchProbe, CheckRun, PullRequestRef, ReleaseRecord
from rflow.release.errors import ReleaseError
from rflow.release.infra.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_RELEASES_MAX_PAGES,
    GH_RELEASES_PAGE_SIZE,
    GH_TIMEOUT_SECONDS,
)

# StatusContext states that mean "not finished yet".
_PENDING_STATES = frozenset({"PENDING", "EXPECTED", "QUEUED", "IN_PROGRESS", "WAITING"})


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return "http 404" in text or "not found" in text


def run_gh_read(
    *,
    workspace_root: Path,
    cmd: list[str],
    message: str,
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ReleaseError]:
    """Run an idempotent gh command, retrying transient failures."""
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=workspace_root, timeout=timeout)
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(ReleaseError(kind="gh_failed", message=message, hint=error.detail() or hint))

    return Err(ReleaseError(kind="gh_failed", message=message, hint=hint))


def run_gh_write(
    *,
    workspace_root: Path,
    cmd: list[str],
    message: str,
) -> Result[str, ReleaseError]:
    """Run a mutating gh command once; writes are never retried blindly."""
    result = run_process(cmd, cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(ReleaseError(kind="gh_failed", message=message, hint=result.error.detail()))
    return result


def _parse_json(text: str, *, what: str) -> Result[object, ReleaseError]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(ReleaseError(kind="gh_failed", message=f"{what} returned invalid JSON: {e}"))
    return Ok(obj)


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/ and set GH_TOKEN",
            )
        )
    return Ok(None)


def gh_api_json(*, workspace_root: Path, endpoint: str) -> Result[object, ReleaseError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "api", endpoint],
        message=f"gh api failed: {endpoint}",
        hint=endpoint,
    )
    if isinstance(result, Err):
        return result
    return _parse_json(result.value, what=f"gh api {endpoint}")


def _parse_release(obj: object) -> ReleaseRecord | None:
    d = as_str_dict(obj)
    if d is None:
        return None

    release_id = get_int(d, "id")
    draft = get_bool(d, "draft")
    prerelease = get_bool(d, "prerelease")
    if release_id is None or draft is None or prerelease is None:
        return None

    return ReleaseRecord(
        id=release_id,
        tag_name=get_str(d, "tag_name") or "",
        name=get_str(d, "name") or "",
        target_commitish=get_str(d, "target_commitish") or "",
        draft=draft,
        prerelease=prerelease,
        url=get_str(d, "html_url") or "",
        body=get_str(d, "body") or "",
        created_at=get_str(d, "created_at"),
    )


def list_releases(*, workspace_root: Path, repo: str) -> Result[list[ReleaseRecord], ReleaseError]:
    """All releases of ``repo``, drafts included (drafts need push access)."""
    out: list[ReleaseRecord] = []
    for page in range(1, GH_RELEASES_MAX_PAGES + 1):
        obj = gh_api_json(
            workspace_root=workspace_root,
            endpoint=f"repos/{repo}/releases?per_page={GH_RELEASES_PAGE_SIZE}&page={page}",
        )
        if isinstance(obj, Err):
            return obj

        raw = as_obj_list(obj.value)
        if raw is None:
            return Err(
                ReleaseError(kind="gh_failed", message=f"unexpected releases payload: {repo}")
            )

        for item in raw:
            release = _parse_release(item)
            if release is not None:
                out.append(release)

        if len(raw) < GH_RELEASES_PAGE_SIZE:
            break

    return Ok(out)


def create_release(
    *,
    workspace_root: Path,
    repo: str,
    tag: str,
    title: str,
    notes: str,
    target: str,
    draft: bool,
    prerelease: bool,
) -> Result[ReleaseRecord, ReleaseError]:
    result = run_gh_write(
        workspace_root=workspace_root,
        cmd=[
            "gh",
            "api",
            "--method",
            "POST",
            f"repos/{repo}/releases",
            "-f",
            f"tag_name={tag}",
            "-f",
            f"target_commitish={target}",
            "-f",
            f"name={title}",
            "-f",
            f"body={notes}",
            "-F",
            f"draft={str(draft).lower()}",
            "-F",
            f"prerelease={str(prerelease).lower()}",
        ],
        message=f"failed to create release {tag} in {repo}",
    )
    if isinstance(result, Err):
        return result
    return _release_from_payload(result.value, what=f"release {tag}")


def publish_release(
    *,
    workspace_root: Path,
    repo: str,
    release_id: int,
    tag: str,
    target: str,
) -> Result[ReleaseRecord, ReleaseError]:
    """Turn a draft into a published release, re-asserting tag and target."""
    result = run_gh_write(
        workspace_root=workspace_root,
        cmd=[
            "gh",
            "api",
            "--method",
            "PATCH",
            f"repos/{repo}/releases/{release_id}",
            "-F",
            "draft=false",
            "-f",
            f"tag_name={tag}",
            "-f",
            f"target_commitish={target}",
        ],
        message=f"failed to publish draft release #{release_id} ({tag})",
    )
    if isinstance(result, Err):
        return result
    return _release_from_payload(result.value, what=f"release #{release_id}")


def _release_from_payload(text: str, *, what: str) -> Result[ReleaseRecord, ReleaseError]:
    obj = _parse_json(text, what=what)
    if isinstance(obj, Err):
        return obj
    release = _parse_release(obj.value)
    if release is None:
        return Err(ReleaseError(kind="gh_failed", message=f"unexpected payload for {what}"))
    return Ok(release)


def release_url_for_tag(*, workspace_root: Path, repo: str, tag: str) -> Result[str, ReleaseError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "release", "view", tag, "--repo", repo, "--json", "url"],
        message=f"no release found for {tag}",
        hint=repo,
    )
    if isinstance(result, Err):
        return result

    obj = _parse_json(result.value, what="gh release view")
    if isinstance(obj, Err):
        return obj
    data = as_str_dict(obj.value)
    url = get_str(data, "url") if data is not None else None
    if url is None:
        return Err(ReleaseError(kind="gh_failed", message=f"missing url for release {tag}"))
    return Ok(url)


def list_pull_requests(
    *,
    workspace_root: Path,
    repo: str,
    head: str,
    base: str,
) -> Result[list[PullRequestRef], ReleaseError]:
    """Open pull requests from ``head`` into ``base``."""
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=[
            "gh",
            "pr",
            "list",
            "--repo",
            repo,
            "--head",
            head,
            "--base",
            base,
            "--state",
            "open",
            "--json",
            "number,headRefName,baseRefName,url",
        ],
        message=f"failed to list pull requests {head} -> {base}",
        hint=repo,
    )
    if isinstance(result, Err):
        return result

    obj = _parse_json(result.value, what="gh pr list")
    if isinstance(obj, Err):
        return obj
    raw = as_obj_list(obj.value)
    if raw is None:
        return Err(ReleaseError(kind="gh_failed", message="unexpected gh pr list payload"))

    out: list[PullRequestRef] = []
    for item in raw:
        d = as_str_dict(item)
        if d is None:
            continue
        number = get_int(d, "number")
        if number is None:
            continue
        out.append(
            PullRequestRef(
                number=number,
                head=get_str(d, "headRefName") or head,
                base=get_str(d, "baseRefName") or base,
                url=get_str(d, "url") or "",
            )
        )
    return Ok(out)


def create_pull_request(
    *,
    workspace_root: Path,
    repo: str,
    head: str,
    base: str,
    title: str,
    body: str,
    labels: tuple[str, ...] = (),
    draft: bool = False,
) -> Result[str, ReleaseError]:
    cmd = [
        "gh",
        "pr",
        "create",
        "--repo",
        repo,
        "--base",
        base,
        "--head",
        head,
        "--title",
        title,
        "--body",
        body,
    ]
    for label in labels:
        cmd += ["--label", label]
    if draft:
        cmd.append("--draft")

    result = run_gh_write(
        workspace_root=workspace_root,
        cmd=cmd,
        message=f"failed to create PR {head} -> {base}",
    )
    if isinstance(result, Err):
        return result

    url = result.value.strip().splitlines()[-1] if result.value.strip() else ""
    if not url.startswith("https://"):
        return Err(
            ReleaseError(kind="gh_failed", message="unexpected gh pr create output", hint=url)
        )
    return Ok(url)


def ensure_label(
    *,
    workspace_root: Path,
    repo: str,
    name: str,
    description: str,
    color: str = "0e8a16",
) -> Result[None, ReleaseError]:
    result = run_gh_write(
        workspace_root=workspace_root,
        cmd=[
            "gh",
            "label",
            "create",
            name,
            "--repo",
            repo,
            "--description",
            description,
            "--color",
            color,
            "--force",
        ],
        message=f"failed to create label '{name}'",
    )
    if isinstance(result, Err):
        return result
    return Ok(None)


def _parse_check(obj: object) -> CheckRun | None:
    d = as_str_dict(obj)
    if d is None:
        return None

    # CheckRun entries carry name/conclusion, StatusContext entries context/state.
    name = get_str(d, "name") or get_str(d, "context")
    if name is None:
        return None

    conclusion = get_str(d, "conclusion")
    if conclusion is None:
        state = get_str(d, "state")
        if state is not None and state.upper() not in _PENDING_STATES:
            conclusion = state
    return CheckRun(name=name, conclusion=conclusion.upper() if conclusion else None)


def pull_request_checks(
    *,
    workspace_root: Path,
    repo: str,
    number: int,
) -> Result[list[CheckRun], ReleaseError]:
    result = run_gh_read(
        workspace_root=workspace_root,
        cmd=["gh", "pr", "view", str(number), "--repo", repo, "--json", "statusCheckRollup"],
        message=f"failed to read CI status of PR #{number}",
        hint=repo,
    )
    if isinstance(result, Err):
        return result

    obj = _parse_json(result.value, what="gh pr view")
    if isinstance(obj, Err):
        return obj
    data = as_str_dict(obj.value)
    raw = as_obj_list(data.get("statusCheckRollup")) if data is not None else None
    if raw is None:
        return Err(ReleaseError(kind="gh_failed", message="unexpected statusCheckRollup payload"))

    return Ok([c for c in (_parse_check(item) for item in raw) if c is not None])


def branch_exists(*, workspace_root: Path, repo: str, branch: str) -> BranchProbe:
    endpoint = f"repos/{repo}/branches/{quote(branch, safe='')}"
    result = run_process(["gh", "api", endpoint], cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    match result:
        case Ok(_):
            return BranchProbe.EXISTS
        case Err(e) if _is_not_found(e):
            return BranchProbe.NOT_FOUND
        case Err(_):
            return BranchProbe.QUERY_FAILED


@dataclass(frozen=True, slots=True)
class GhHosting:
    """Release-hosting collaborator bound to one repository."""

    workspace_root: Path
    repo: str

    def list_releases(self) -> Result[list[ReleaseRecord], ReleaseError]:
        return list_releases(workspace_root=self.workspace_root, repo=self.repo)

    def create_release(
        self,
        *,
        tag: str,
        title: str,
        notes: str,
        target: str,
        draft: bool = False,
        prerelease: bool = False,
    ) -> Result[ReleaseRecord, ReleaseError]:
        return create_release(
            workspace_root=self.workspace_root,
            repo=self.repo,
            tag=tag,
            title=title,
            notes=notes,
            target=target,
            draft=draft,
            prerelease=prerelease,
        )

    def publish_release(
        self, *, release_id: int, tag: str, target: str
    ) -> Result[ReleaseRecord, ReleaseError]:
        return publish_release(
            workspace_root=self.workspace_root,
            repo=self.repo,
            release_id=release_id,
            tag=tag,
            target=target,
        )

    def release_url_for_tag(self, tag: str) -> Result[str, ReleaseError]:
        return release_url_for_tag(workspace_root=self.workspace_root, repo=self.repo, tag=tag)

    def list_pull_requests(
        self, *, head: str, base: str
    ) -> Result[list[PullRequestRef], ReleaseError]:
        return list_pull_requests(
            workspace_root=self.workspace_root, repo=self.repo, head=head, base=base
        )

    def create_pull_request(
        self,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
        labels: tuple[str, ...] = (),
        draft: bool = False,
    ) -> Result[str, ReleaseError]:
        return create_pull_request(
            workspace_root=self.workspace_root,
            repo=self.repo,
            head=head,
            base=base,
            title=title,
            body=body,
            labels=labels,
            draft=draft,
        )

    def ensure_label(self, name: str, description: str) -> Result[None, ReleaseError]:
        return ensure_label(
            workspace_root=self.workspace_root, repo=self.repo, name=name, description=description
        )

    def pull_request_checks(self, number: int) -> Result[list[CheckRun], ReleaseError]:
        return pull_request_checks(
            workspace_root=self.workspace_root, repo=self.repo, number=number
        )

    def branch_exists(self, branch: str) -> BranchProbe:
        return branch_exists(workspace_root=self.workspace_root, repo=self.repo, branch=branch)
