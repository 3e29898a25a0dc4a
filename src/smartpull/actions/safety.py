"""Stash local modifications around a pull and restore them afterwards."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from smartpull.git.facade import GitCommandError

if TYPE_CHECKING:
    from collections.abc import Callable

    from smartpull.git.facade import GitFacade
    from smartpull.git.observe import RepoObserver
    from smartpull.io.logging import StructuredLogger


STASH_MESSAGE_PREFIX = "smartpull-auto-stash"


@dataclass(slots=True)
class StashHandle:
    """The stash entry created by one pull invocation."""

    message: str
    consumed: bool = False


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class StashGuard:
    """Own at most one stash entry for the lifetime of a pull.

    The guard only ever pops the entry it pushed itself; it never drops a stash,
    so a failed restore leaves the user's changes in ``git stash list``.
    """

    def __init__(
        self,
        facade: GitFacade,
        observer: RepoObserver,
        logger: StructuredLogger,
        *,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        """Create a guard issuing mutations through ``facade``."""
        self.facade = facade
        self.observer = observer
        self.logger = logger
        self._clock = clock
        self.handle: StashHandle | None = None

    @property
    def is_preserved(self) -> bool:
        """Return ``True`` when a stash created by this guard is still in the stash list."""
        return self.handle is not None and not self.handle.consumed

    def stash_if_needed(self) -> bool:
        """Stash staged and unstaged modifications, returning whether a stash was created."""
        status = self.observer.status_summary()
        if not status.has_local_changes:
            return False

        message = f"{STASH_MESSAGE_PREFIX}-{self._clock()}"
        self.logger.info(
            "stashing local changes before pull",
            staged=status.staged_count,
            unstaged=status.unstaged_count,
            stash=message,
        )
        self.facade.run(["git", "stash", "push", "-m", message])
        self.handle = StashHandle(message=message)
        return True

    def apply_stash_if_needed(self, did_stash: bool) -> bool:
        """Pop the stash created by :meth:`stash_if_needed`, returning whether it was restored."""
        if not did_stash:
            return False

        handle = self.handle
        self.logger.info("restoring stashed changes", stash=handle.message if handle else None)
        try:
            self.facade.run(["git", "stash", "pop"])
        except GitCommandError as exc:
            self.logger.warning(
                "stash pop reported conflicts; stash preserved for manual restore",
                error=exc.stderr.strip() or str(exc),
                stash=handle.message if handle else None,
            )
            return False

        if handle is not None:
            handle.consumed = True
        return True


__all__ = ["STASH_MESSAGE_PREFIX", "StashGuard", "StashHandle"]
