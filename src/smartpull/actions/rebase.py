"""Rebase helpers used by the pull cascade."""

from __future__ import annotations

from typing import TYPE_CHECKING

from smartpull.git.facade import GitCommandError

from .sync import NON_INTERACTIVE_ENV

if TYPE_CHECKING:
    from smartpull.git.facade import GitFacade
    from smartpull.io.logging import StructuredLogger


def rebase_onto_upstream(facade: GitFacade, logger: StructuredLogger, upstream: str) -> None:
    """Replay local commits on top of ``upstream``."""
    logger.info("attempting rebase", upstream=upstream)
    facade.run(["git", "rebase", upstream], env=NON_INTERACTIVE_ENV)


def rebase_continue(facade: GitFacade, logger: StructuredLogger) -> None:
    """Continue a rebase whose conflicts have been staged."""
    logger.info("continuing rebase")
    facade.run(["git", "rebase", "--continue"], env=NON_INTERACTIVE_ENV)


def rebase_abort(facade: GitFacade, logger: StructuredLogger) -> bool:
    """Abort an in-progress rebase, returning ``False`` when git refuses."""
    logger.info("aborting rebase")
    try:
        facade.run(["git", "rebase", "--abort"])
    except GitCommandError as exc:
        logger.warning("rebase abort failed", error=exc.stderr.strip() or str(exc))
        return False
    return True


__all__ = ["rebase_abort", "rebase_continue", "rebase_onto_upstream"]
