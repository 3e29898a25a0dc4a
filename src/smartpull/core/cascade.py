"""State machine driving a single smart pull.

The cascade always tries the least invasive strategy first: fast-forward, then
rebase, then merge. Conflicts reported by rebase or merge are classified and,
where possible, resolved mechanically. Terminal states are handled in one place
(:meth:`PullCascade._finalise`) so stash restoration and lock regeneration follow
the same rules for every exit path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from smartpull.actions.conflict import auto_resolve_conflicts
from smartpull.actions.rebase import rebase_abort, rebase_continue, rebase_onto_upstream
from smartpull.actions.sync import commit_merge, fetch_branch, merge_fast_forward, merge_upstream
from smartpull.core.models import PullOutcome, PullStrategy
from smartpull.git.facade import GitCommandError
from smartpull.git.observe import DetachedHeadError

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from smartpull.actions.lockfile import LockFileRegenerator
    from smartpull.actions.safety import StashGuard
    from smartpull.git.facade import GitFacade
    from smartpull.git.observe import RepoObserver
    from smartpull.io.logging import StructuredLogger


DEFAULT_REMOTE = "origin"
MERGE_COMMIT_TEMPLATE = "Merge {upstream} (auto-resolved by smartpull)"
DRY_RUN_PREFIX = "[dry-run] "


class CascadeState(StrEnum):
    """States visited by one pull invocation."""

    init = "init"
    stashed = "stashed"
    fetched = "fetched"
    fast_forward = "fast-forward"
    rebase = "rebase"
    merge = "merge"
    resolved = "resolved"
    paused_for_manual = "paused-for-manual"
    failed = "failed"


TERMINAL_STATES: frozenset[CascadeState] = frozenset(
    {CascadeState.resolved, CascadeState.paused_for_manual, CascadeState.failed},
)


@dataclass(slots=True)
class CascadeRun:
    """Mutable bookkeeping for one invocation, owned by the cascade."""

    remote: str
    branch: str | None = None
    did_stash: bool = False
    strategy: PullStrategy = PullStrategy.failed
    had_conflicts: bool = False
    auto_resolved: tuple[str, ...] = ()
    manual_required: tuple[str, ...] = ()
    message: str = ""
    next_command: str | None = None
    restore_stash_on_failure: bool = False
    history: list[CascadeState] = field(default_factory=list)

    @property
    def upstream(self) -> str:
        """Return the remote-tracking ref being pulled."""
        return f"{self.remote}/{self.branch}"


def _describe_failure(exc: BaseException) -> str:
    if isinstance(exc, GitCommandError):
        return exc.stderr.strip() or str(exc)
    return str(exc)


class PullCascade:
    """Run fast-forward, rebase and merge in order until one succeeds."""

    def __init__(
        self,
        *,
        action_facade: GitFacade,
        observer: RepoObserver,
        logger: StructuredLogger,
        stash_guard: StashGuard,
        lock_regenerator: LockFileRegenerator,
        repo_path: Path,
        remote: str = DEFAULT_REMOTE,
        branch: str | None = None,
        dry_run: bool = False,
    ) -> None:
        """Wire the cascade to its collaborators."""
        self.facade = action_facade
        self.observer = observer
        self.logger = logger
        self.stash_guard = stash_guard
        self.lock_regenerator = lock_regenerator
        self.repo_path = repo_path
        self.remote = remote or DEFAULT_REMOTE
        self.branch = branch
        self.dry_run = dry_run
        self.last_run: CascadeRun | None = None
        self._handlers: dict[CascadeState, Callable[[CascadeRun], CascadeState]] = {
            CascadeState.init: self._on_init,
            CascadeState.stashed: self._on_stashed,
            CascadeState.fetched: self._on_fetched,
            CascadeState.fast_forward: self._on_fast_forward,
            CascadeState.rebase: self._on_rebase,
            CascadeState.merge: self._on_merge,
        }

    def run(self) -> PullOutcome:
        """Execute the cascade and return its terminal outcome; never raises git failures."""
        run = CascadeRun(remote=self.remote, branch=self.branch)
        self.last_run = run
        state = CascadeState.init
        while state not in TERMINAL_STATES:
            run.history.append(state)
            state = self.transition(state, run)
        run.history.append(state)
        return self._finalise(state, run)

    def transition(self, state: CascadeState, run: CascadeRun) -> CascadeState:
        """Perform the work attached to ``state`` and return the next state."""
        handler = self._handlers[state]
        try:
            return handler(run)
        except (GitCommandError, DetachedHeadError, OSError) as exc:
            detail = _describe_failure(exc)
            self.logger.error("pull aborted", state=state.value, error=detail)
            run.strategy = PullStrategy.failed
            run.message = f"Pull failed: {detail}"
            return CascadeState.failed

    def _on_init(self, run: CascadeRun) -> CascadeState:
        current = self.observer.current_branch() if run.branch is None else None
        run.branch = run.branch or current
        self.logger.info("starting pull", remote=run.remote, branch=run.branch, dry_run=self.dry_run)
        run.did_stash = self.stash_guard.stash_if_needed()
        return CascadeState.stashed

    def _on_stashed(self, run: CascadeRun) -> CascadeState:
        try:
            fetch_branch(self.facade, self.logger, remote=run.remote, branch=str(run.branch))
        except GitCommandError as exc:
            detail = _describe_failure(exc)
            self.logger.warning("fetch failed", remote=run.remote, branch=run.branch, error=detail)
            run.strategy = PullStrategy.failed
            run.message = f"Fetch failed: {detail}"
            run.restore_stash_on_failure = True
            return CascadeState.failed
        return CascadeState.fetched

    def _on_fetched(self, _: CascadeRun) -> CascadeState:
        return CascadeState.fast_forward

    def _on_fast_forward(self, run: CascadeRun) -> CascadeState:
        try:
            merge_fast_forward(self.facade, self.logger, run.upstream)
        except GitCommandError as exc:
            self.logger.info("fast-forward not possible; trying rebase", error=_describe_failure(exc))
            return CascadeState.rebase
        run.strategy = PullStrategy.fast_forward
        run.message = "Fast-forward merge successful"
        return CascadeState.resolved

    def _on_rebase(self, run: CascadeRun) -> CascadeState:
        try:
            rebase_onto_upstream(self.facade, self.logger, run.upstream)
        except GitCommandError as exc:
            conflicted = self.observer.unmerged_files()
            if not conflicted:
                self.logger.info(
                    "rebase failed without conflicts; aborting and trying merge",
                    error=_describe_failure(exc),
                )
                rebase_abort(self.facade, self.logger)
                return CascadeState.merge
            self.logger.info("rebase stopped on conflicts", count=len(conflicted))
            return self._resolve_conflicts(
                run,
                strategy=PullStrategy.rebase,
                label="Rebase",
                next_command="git rebase --continue",
                conclude=lambda: rebase_continue(self.facade, self.logger),
            )
        run.strategy = PullStrategy.rebase
        run.message = "Rebase successful"
        return CascadeState.resolved

    def _on_merge(self, run: CascadeRun) -> CascadeState:
        try:
            merge_upstream(self.facade, self.logger, run.upstream)
        except GitCommandError as exc:
            conflicted = self.observer.unmerged_files()
            if not conflicted:
                detail = _describe_failure(exc)
                self.logger.error("merge failed without conflicts", error=detail)
                run.strategy = PullStrategy.failed
                run.message = "Pull failed - unable to merge or rebase"
                return CascadeState.failed
            self.logger.info("merge stopped on conflicts", count=len(conflicted))
            message = MERGE_COMMIT_TEMPLATE.format(upstream=run.upstream)
            return self._resolve_conflicts(
                run,
                strategy=PullStrategy.merge,
                label="Merge",
                next_command="git commit",
                conclude=lambda: commit_merge(self.facade, self.logger, message),
            )
        run.strategy = PullStrategy.merge
        run.message = "Merge successful"
        return CascadeState.resolved

    def _resolve_conflicts(
        self,
        run: CascadeRun,
        *,
        strategy: PullStrategy,
        label: str,
        next_command: str,
        conclude: Callable[[], None],
    ) -> CascadeState:
        partition = auto_resolve_conflicts(
            self.facade,
            self.observer,
            self.logger,
            repo_path=self.repo_path,
            dry_run=self.dry_run,
        )
        run.had_conflicts = True
        run.strategy = strategy
        run.auto_resolved = partition.resolved

        if partition.manual:
            run.manual_required = partition.manual
            run.next_command = next_command
            run.message = f"{label} paused: {len(partition.manual)} files need manual conflict resolution"
            self.logger.warning(
                "conflicts require manual resolution",
                count=len(partition.manual),
                files=list(partition.manual),
            )
            self.logger.info("resolve the listed files, then run the next command", command=next_command)
            return CascadeState.paused_for_manual

        self.logger.info("all conflicts auto-resolved", strategy=strategy.value, count=len(partition.resolved))
        try:
            conclude()
        except GitCommandError as exc:
            detail = _describe_failure(exc)
            self.logger.error("could not conclude after auto-resolution", strategy=strategy.value, error=detail)
            run.strategy = PullStrategy.failed
            run.next_command = next_command
            run.message = f"{label} could not be completed after auto-resolution: {detail}"
            return CascadeState.failed

        run.message = f"{label} successful with {len(partition.resolved)} auto-resolved conflicts"
        return CascadeState.resolved

    def _finalise(self, state: CascadeState, run: CascadeRun) -> PullOutcome:
        stash_applied = False
        if state is CascadeState.resolved:
            self.lock_regenerator.regenerate(run.auto_resolved)
            stash_applied = self.stash_guard.apply_stash_if_needed(run.did_stash)
        elif state is CascadeState.failed and run.restore_stash_on_failure:
            stash_applied = self.stash_guard.apply_stash_if_needed(run.did_stash)

        stash_preserved = run.did_stash and not stash_applied
        if stash_preserved:
            self.logger.warning("local changes are still stashed", hint="git stash pop")

        manual_required = run.manual_required if state is CascadeState.paused_for_manual else ()
        message = f"{DRY_RUN_PREFIX}{run.message}" if self.dry_run else run.message
        outcome = PullOutcome(
            success=state is CascadeState.resolved,
            had_conflicts=run.had_conflicts,
            auto_resolved=run.auto_resolved,
            manual_required=manual_required,
            stash_applied=stash_applied,
            stash_preserved=stash_preserved,
            strategy=run.strategy,
            message=message,
            next_command=run.next_command,
            dry_run=self.dry_run,
        )
        log = self.logger.info if outcome.success else self.logger.warning
        log("pull finished", state=state.value, strategy=outcome.strategy.value, success=outcome.success)
        return outcome


__all__ = [
    "DEFAULT_REMOTE",
    "MERGE_COMMIT_TEMPLATE",
    "TERMINAL_STATES",
    "CascadeRun",
    "CascadeState",
    "PullCascade",
]
