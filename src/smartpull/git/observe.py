"""Read-only inspection of repository state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from smartpull.core.models import StatusSummary

from .facade import GitCommandError

if TYPE_CHECKING:
    from smartpull.io.logging import StructuredLogger

    from .facade import GitFacade


class DetachedHeadError(RuntimeError):
    """Raised when HEAD does not point at a named branch."""


def parse_porcelain_status(output: str) -> StatusSummary:
    """Count staged, unstaged and untracked entries in ``git status --porcelain=v1 -b``."""
    branch: str | None = None
    staged = unstaged = untracked = 0
    for line in output.splitlines():
        if not line:
            continue
        if line.startswith("## "):
            branch = _parse_branch_header(line[3:])
            continue
        index_flag, worktree_flag = line[0], line[1] if len(line) > 1 else " "
        if index_flag == "?" and worktree_flag == "?":
            untracked += 1
            continue
        if index_flag == "!":
            continue
        if index_flag != " ":
            staged += 1
        if worktree_flag != " ":
            unstaged += 1
    return StatusSummary(
        branch=branch,
        staged_count=staged,
        unstaged_count=unstaged,
        untracked_count=untracked,
    )


def _parse_branch_header(header: str) -> str | None:
    if header.startswith(("No commits yet on ", "Initial commit on ")):
        return header.rsplit(" ", 1)[-1]
    if header.startswith("HEAD (no branch)"):
        return None
    return header.split("...", 1)[0].split(" ", 1)[0] or None


class RepoObserver:
    """Query status, branch and unmerged files through a non-dry-run facade.

    Nothing is cached: every call re-reads the repository.
    """

    def __init__(self, facade: GitFacade, *, logger: StructuredLogger) -> None:
        """Wrap ``facade`` for read-only queries."""
        self.facade = facade
        self.logger = logger

    def status_summary(self) -> StatusSummary:
        """Return counts of local modifications and the current branch."""
        result = self.facade.run(["git", "status", "--porcelain=v1", "--branch"])
        return parse_porcelain_status(result.stdout)

    def current_branch(self) -> str:
        """Return the checked out branch name."""
        result = self.facade.run(["git", "rev-parse", "--abbrev-ref", "HEAD"])
        branch = result.stdout.strip()
        if not branch or branch == "HEAD":
            message = "HEAD is detached; pass --branch or check out a branch first."
            raise DetachedHeadError(message)
        return branch

    def unmerged_files(self) -> list[str]:
        """Return repository-relative paths git reports as unmerged."""
        try:
            result = self.facade.run(["git", "diff", "--name-only", "--diff-filter=U"])
        except GitCommandError as exc:
            self.logger.warning("unable to list unmerged files", error=exc.stderr.strip())
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]


__all__ = ["DetachedHeadError", "RepoObserver", "parse_porcelain_status"]
