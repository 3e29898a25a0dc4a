"""Fetch and merge helpers used by the pull cascade.

Every helper raises :class:`~smartpull.git.facade.GitCommandError` when git
exits non-zero; callers decide whether the failure was a conflict.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smartpull.git.facade import GitFacade
    from smartpull.io.logging import StructuredLogger

NON_INTERACTIVE_ENV: dict[str, str] = {"GIT_EDITOR": "true"}


def fetch_branch(facade: GitFacade, logger: StructuredLogger, *, remote: str, branch: str) -> None:
    """Fetch ``branch`` from ``remote``."""
    logger.info("fetching", remote=remote, branch=branch)
    facade.run(["git", "fetch", remote, branch])


def merge_fast_forward(facade: GitFacade, logger: StructuredLogger, upstream: str) -> None:
    """Advance the current branch to ``upstream`` without creating a merge commit."""
    logger.info("attempting fast-forward", upstream=upstream)
    facade.run(["git", "merge", "--ff-only", upstream])


def merge_upstream(facade: GitFacade, logger: StructuredLogger, upstream: str) -> None:
    """Merge ``upstream`` into the current branch."""
    logger.info("attempting merge", upstream=upstream)
    facade.run(["git", "merge", "--no-edit", upstream])


def commit_merge(facade: GitFacade, logger: StructuredLogger, message: str) -> None:
    """Conclude an in-progress merge whose conflicts are all staged."""
    logger.info("committing merge", message=message)
    facade.run(["git", "commit", "-m", message], env=NON_INTERACTIVE_ENV)


__all__ = [
    "NON_INTERACTIVE_ENV",
    "commit_merge",
    "fetch_branch",
    "merge_fast_forward",
    "merge_upstream",
]
