"""Regenerate package lock files after they were resolved mechanically."""

from __future__ import annotations

from typing import TYPE_CHECKING

from smartpull.git.facade import GitCommandError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from smartpull.git.facade import GitFacade
    from smartpull.io.logging import StructuredLogger


DEFAULT_INSTALL_COMMAND: tuple[str, ...] = ("npm", "install")


def needs_lock_regeneration(paths: Iterable[str]) -> bool:
    """Return ``True`` when any of ``paths`` is an npm lock file."""
    return any(path == "package-lock.json" or path.endswith("/package-lock.json") for path in paths)


class LockFileRegenerator:
    """Run the package manager installer once a lock file was auto-resolved."""

    def __init__(
        self,
        facade: GitFacade,
        logger: StructuredLogger,
        *,
        install_command: Sequence[str] = DEFAULT_INSTALL_COMMAND,
    ) -> None:
        """Create a regenerator that runs ``install_command`` through ``facade``."""
        self.facade = facade
        self.logger = logger
        self.install_command = tuple(install_command)

    def regenerate(self, auto_resolved: Iterable[str]) -> bool:
        """Regenerate lock files if needed; failures are logged and never raised."""
        if not needs_lock_regeneration(auto_resolved):
            return False

        self.logger.info("regenerating package-lock.json", command=list(self.install_command))
        try:
            self.facade.run(list(self.install_command))
        except GitCommandError as exc:
            self.logger.warning("lock file regeneration failed", error=exc.stderr.strip() or str(exc))
            return False
        except OSError as exc:
            self.logger.warning("lock file regeneration failed", error=str(exc))
            return False

        self.logger.info("lock file regenerated")
        return True


__all__ = ["DEFAULT_INSTALL_COMMAND", "LockFileRegenerator", "needs_lock_regeneration"]
