"""Git operations on the release checkout."""

from .repository import GitError, Repository

__all__ = ["GitError", "Repository"]
