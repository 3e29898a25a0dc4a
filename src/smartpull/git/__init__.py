"""Git command execution and repository inspection."""

from .facade import GitCommandError, GitFacade
from .observe import DetachedHeadError, RepoObserver, parse_porcelain_status

__all__ = [
    "DetachedHeadError",
    "GitCommandError",
    "GitFacade",
    "RepoObserver",
    "parse_porcelain_status",
]
