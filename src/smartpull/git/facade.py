"""Thin wrapper around ``subprocess`` for running git and helper commands."""

from __future__ import annotations

import os
import subprocess
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from smartpull.io.logging import StructuredLogger


class GitCommandError(RuntimeError):
    """Raised when a command exits with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """Capture the failing command and its output."""
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip() or stdout.strip() or f"exit status {returncode}"
        message = f"{' '.join(self.command)} failed: {detail}"
        super().__init__(message)


class GitFacade:
    """Execute argument vectors inside a repository without shell interpretation.

    When ``dry_run`` is enabled, commands are recorded in :attr:`command_history`
    and reported as successful without being executed. Read-only inspection should
    therefore go through a facade created with ``dry_run=False``.
    """

    def __init__(
        self,
        *,
        repo_path: Path,
        logger: StructuredLogger,
        dry_run: bool = False,
    ) -> None:
        """Bind the facade to ``repo_path``."""
        self.repo_path = repo_path
        self.logger = logger
        self.dry_run = dry_run
        self.command_history: list[dict[str, Any]] = []

    def run(
        self,
        args: Sequence[str],
        *,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run ``args`` in the repository and return the completed process.

        Raises :class:`GitCommandError` for non-zero exits when ``check`` is true.
        ``OSError`` from a missing executable propagates unchanged.
        """
        command = [str(part) for part in args]
        if self.dry_run:
            self.logger.debug("dry-run command", command=command)
            self._record(command, returncode=0)
            return subprocess.CompletedProcess(command, 0, "", "")

        merged_env = None
        if env:
            merged_env = {**os.environ, **env}

        self.logger.debug("running command", command=command)
        try:
            completed = subprocess.run(
                command,
                cwd=self.repo_path,
                env=merged_env,
                text=True,
                capture_output=True,
                check=False,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            self._record(command, returncode=None)
            raise GitCommandError(command, -1, "", f"timed out after {exc.timeout} seconds") from exc

        self._record(command, returncode=completed.returncode)
        if check and completed.returncode != 0:
            raise GitCommandError(command, completed.returncode, completed.stdout, completed.stderr)
        return completed

    def _record(self, command: list[str], *, returncode: int | None) -> None:
        self.command_history.append(
            {"command": list(command), "returncode": returncode, "dry_run": self.dry_run},
        )


__all__ = ["GitCommandError", "GitFacade"]
