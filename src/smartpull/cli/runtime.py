"""Helpers shared across CLI commands for configuring and running a pull."""

from __future__ import annotations

import io
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

from smartpull.actions.lockfile import LockFileRegenerator
from smartpull.actions.safety import StashGuard
from smartpull.core.cascade import PullCascade
from smartpull.core.models import Config, PullSettings
from smartpull.git.facade import GitFacade
from smartpull.git.observe import RepoObserver
from smartpull.io import EnvironmentSettings, StructuredLogger, apply_environment, load_config

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(slots=True)
class PullContext:
    """Container bundling CLI dependencies for one pull."""

    repo_path: Path
    config: Config
    logger: StructuredLogger
    action_facade: GitFacade
    observer_facade: GitFacade
    observer: RepoObserver

    def build_cascade(self) -> PullCascade:
        """Return a cascade wired to this context."""
        stash_guard = StashGuard(self.action_facade, self.observer, self.logger)
        regenerator = LockFileRegenerator(
            self.action_facade,
            self.logger,
            install_command=self.config.lockfile.install_command,
        )
        return PullCascade(
            action_facade=self.action_facade,
            observer=self.observer,
            logger=self.logger,
            stash_guard=stash_guard,
            lock_regenerator=regenerator,
            repo_path=self.repo_path,
            remote=self.config.pull.remote,
            branch=self.config.pull.branch,
            dry_run=self.config.dry_run,
        )


def default_config() -> Config:
    """Return the configuration used when no config file is provided."""
    return Config()


def load_cli_config(
    config_path: Path | None,
    *,
    settings: EnvironmentSettings | None = None,
    remote: str | None = None,
    branch: str | None = None,
    dry_run: bool | None = None,
) -> Config:
    """Resolve configuration from file, environment and CLI flags, in rising priority."""
    config = default_config() if config_path is None else load_config(path=config_path)
    config = apply_environment(config, settings or EnvironmentSettings())

    pull_updates: dict[str, object] = {}
    if remote:
        pull_updates["remote"] = remote
    if branch:
        pull_updates["branch"] = branch
    updates: dict[str, object] = {}
    if pull_updates:
        updates["pull"] = PullSettings.model_validate({**config.pull.model_dump(), **pull_updates})
    if dry_run is not None:
        updates["dry_run"] = dry_run
    if not updates:
        return config
    return config.model_copy(update=updates)


def build_pull_context(
    repo_path: Path,
    config: Config,
    *,
    json_logs: bool,
    silence_logs: bool,
    mcp_server: bool = False,
) -> PullContext:
    """Assemble the context required by the pull command."""
    stream = io.StringIO() if silence_logs else sys.stderr
    logger = StructuredLogger(name="smartpull.cli", json_mode=json_logs, stream=stream)
    if mcp_server:
        logger.set_level(logging.ERROR)
    observer_facade = GitFacade(repo_path=repo_path, logger=logger, dry_run=False)
    action_facade = GitFacade(repo_path=repo_path, logger=logger, dry_run=config.dry_run)
    observer = RepoObserver(observer_facade, logger=logger)
    return PullContext(
        repo_path=repo_path,
        config=config,
        logger=logger,
        action_facade=action_facade,
        observer_facade=observer_facade,
        observer=observer,
    )


__all__ = [
    "PullContext",
    "build_pull_context",
    "default_config",
    "load_cli_config",
]
