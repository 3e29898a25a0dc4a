"""Action helpers orchestrating git operations for the pull cascade."""

from .conflict import (
    ConflictPartition,
    ConflictResolution,
    auto_resolve_conflicts,
    classify_conflict,
    merge_version_conflict,
    resolve_conflict,
)
from .lockfile import LockFileRegenerator
from .rebase import rebase_abort, rebase_continue, rebase_onto_upstream
from .safety import StashGuard
from .sync import commit_merge, fetch_branch, merge_fast_forward, merge_upstream

__all__ = [
    "ConflictPartition",
    "ConflictResolution",
    "LockFileRegenerator",
    "StashGuard",
    "auto_resolve_conflicts",
    "classify_conflict",
    "commit_merge",
    "fetch_branch",
    "merge_fast_forward",
    "merge_upstream",
    "merge_version_conflict",
    "rebase_abort",
    "rebase_continue",
    "rebase_onto_upstream",
    "resolve_conflict",
]
