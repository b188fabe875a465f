"""Git repository abstraction.

The version-control collaborator of release-flow: branches, tags, ref
resolution, commits and pushes on the checkout the workflow runs in. All
operations return Result types.

Usage:
    repo = Repository(Path("."))

    match repo.resolve_commit("v1.2.0"):
        case Ok(sha):
            print(f"v1.2.0 is {sha}")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rflow.core.result import Err, Ok, Result
from rflow.platform.process import ProcessError
from rflow.platform.process import run as run_process

# Local operations (tag, rev-parse, commit, branch)
GIT_TIMEOUT_SECONDS = 30.0
# Network-bound operations (fetch, push)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GIT_NETWORK_TIMEOUT_SECONDS",
    "GIT_TIMEOUT_SECONDS",
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


def _git_error(command: str, e: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=e.stderr.strip() or e.stdout.strip() or fallback,
        returncode=e.returncode,
    )


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def configure_identity(self, name: str, email: str) -> Result[None, GitError]:
        """Set the commit identity for this repository only."""
        for key, value in (("user.name", name), ("user.email", email)):
            result = self._run(["config", key, value])
            if isinstance(result, Err):
                return Err(_git_error(f"config {key}", result.error, "git config failed"))
        return Ok(None)

    def fetch_tags(self, remote: str) -> Result[None, GitError]:
        result = self._run(["fetch", remote, "--tags", "--force", "--prune-tags"])
        if isinstance(result, Err):
            return Err(_git_error("fetch --tags", result.error, "fetch failed"))
        return Ok(None)

    def list_tags(self, pattern: str) -> Result[list[str], GitError]:
        """List local tags matching a glob."""
        result = self._run(["tag", "--list", pattern])
        match result:
            case Err(e):
                return Err(_git_error("tag --list", e, "git tag failed"))
            case Ok(stdout):
                return Ok([line.strip() for line in stdout.splitlines() if line.strip()])

    def tag_exists(self, tag: str) -> Result[bool, GitError]:
        result = self.list_tags(tag)
        if isinstance(result, Err):
            return result
        return Ok(tag in result.value)

    def create_tag(
        self,
        tag: str,
        *,
        ref: str = "HEAD",
        message: str | None = None,
        force: bool = False,
    ) -> Result[None, GitError]:
        """Create an annotated tag (lightweight when ``message`` is None)."""
        args = ["tag"]
        if force:
            args.append("--force")
        if message is not None:
            args += ["--annotate", "--message", message]
        args += [tag, ref]

        result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(f"tag {tag}", result.error, "git tag failed"))
        return Ok(None)

    def push_tag(self, remote: str, tag: str, *, force: bool = False) -> Result[None, GitError]:
        args = ["push", remote, f"refs/tags/{tag}:refs/tags/{tag}"]
        if force:
            args.insert(1, "--force")
        result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(f"push {tag}", result.error, "push failed"))
        return Ok(None)

    def resolve_commit(self, ref: str) -> Result[str, GitError]:
        """Resolve any ref (branch, tag, sha) to a full commit sha."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        match result:
            case Err(e):
                return Err(_git_error(f"rev-parse {ref}", e, f"not a valid commit: {ref}"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def describe_latest_tag(
        self,
        pattern: str,
        *,
        exclude: str | None = None,
        ref: str = "HEAD",
    ) -> str | None:
        """Most recent tag reachable from ``ref`` matching the glob ``pattern``.

        Returns None when no tag matches or describe fails.
        """
        args = ["describe", "--tags", "--abbrev=0", "--match", pattern]
        if exclude is not None:
            args += ["--exclude", exclude]
        args.append(ref)

        result = self._run(args)
        match result:
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    def create_branch(self, name: str, base: str) -> Result[None, GitError]:
        result = self._run(["branch", name, base])
        if isinstance(result, Err):
            return Err(_git_error(f"branch {name}", result.error, "git branch failed"))
        return Ok(None)

    def delete_branch(self, name: str) -> Result[None, GitError]:
        result = self._run(["branch", "-D", name])
        if isinstance(result, Err):
            return Err(_git_error(f"branch -D {name}", result.error, "git branch failed"))
        return Ok(None)

    def push_branch(self, remote: str, name: str) -> Result[None, GitError]:
        result = self._run(["push", remote, f"refs/heads/{name}:refs/heads/{name}"])
        if isinstance(result, Err):
            return Err(_git_error(f"push {name}", result.error, "push failed"))
        return Ok(None)

    def push_head(self, remote: str, branch: str) -> Result[None, GitError]:
        """Push the current HEAD to ``branch`` on ``remote``."""
        result = self._run(["push", remote, f"HEAD:refs/heads/{branch}"])
        if isinstance(result, Err):
            return Err(_git_error(f"push HEAD:{branch}", result.error, "push failed"))
        return Ok(None)

    def delete_remote_branch(self, remote: str, name: str) -> Result[None, GitError]:
        result = self._run(["push", remote, "--delete", name])
        if isinstance(result, Err):
            return Err(_git_error(f"push --delete {name}", result.error, "push failed"))
        return Ok(None)

    def add(self, paths: list[str]) -> Result[None, GitError]:
        result = self._run(["add", "--", *paths])
        if isinstance(result, Err):
            return Err(_git_error("add", result.error, "git add failed"))
        return Ok(None)

    def commit(self, message: str) -> Result[str, GitError]:
        """Commit staged changes and return the new HEAD sha."""
        result = self._run(["commit", "--message", message])
        if isinstance(result, Err):
            return Err(_git_error("commit", result.error, "git commit failed"))
        return self.resolve_commit("HEAD")

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "push"}
            else GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
