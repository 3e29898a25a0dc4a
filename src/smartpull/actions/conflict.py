"""Classify and mechanically resolve conflicted paths."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from smartpull.core.models import ResolutionStrategy
from smartpull.git.facade import GitCommandError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from smartpull.git.facade import GitFacade
    from smartpull.git.observe import RepoObserver
    from smartpull.io.logging import StructuredLogger


LOCK_FILE_NAMES: frozenset[str] = frozenset({"package-lock.json", "yarn.lock", "pnpm-lock.yaml"})

# Ordered: the first matching rule wins.
_PREFIX_RULES: tuple[tuple[str, ResolutionStrategy], ...] = (
    ("dist/", ResolutionStrategy.take_theirs_regenerate),
    ("coverage/", ResolutionStrategy.take_theirs),
    ("node_modules/", ResolutionStrategy.take_theirs),
)
_SUFFIX_RULES: tuple[tuple[str, ResolutionStrategy], ...] = (
    (".js.map", ResolutionStrategy.take_theirs_regenerate),
    (".d.ts", ResolutionStrategy.take_theirs_regenerate),
)

_THEIRS_STRATEGIES: frozenset[ResolutionStrategy] = frozenset(
    {
        ResolutionStrategy.regenerate_lock,
        ResolutionStrategy.take_theirs,
        ResolutionStrategy.take_theirs_regenerate,
    },
)

_CONFLICT_START = "<<<<<<<"
_CONFLICT_END = ">>>>>>>"
_OURS_REGION = re.compile(r"<<<<<<< .*?\n(.*?)=======\n", re.DOTALL)
_THEIRS_REGION = re.compile(r"=======\n(.*?)>>>>>>> ", re.DOTALL)
_CONFLICT_BLOCK = re.compile(r"<<<<<<< [^\n]*\n.*?=======\n(.*?)>>>>>>> [^\n]*\n", re.DOTALL)
_VERSION_FIELD = re.compile(r'"version":\s*"([^"]+)"')
_RELEASE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, slots=True)
class ConflictResolution:
    """Outcome of resolving one conflicted path."""

    path: str
    strategy: ResolutionStrategy
    resolved: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ConflictPartition:
    """Conflicted paths split by whether they were resolved automatically."""

    resolved: tuple[str, ...] = ()
    manual: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class VersionMerge:
    """Result of :func:`merge_version_conflict`."""

    content: str | None
    ours_version: str | None = None
    theirs_version: str | None = None
    selected_version: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Return ``True`` when merged content is available."""
        return self.content is not None


def is_package_manifest(path: str) -> bool:
    """Return ``True`` for ``package.json`` at the root or in a subdirectory."""
    return path == "package.json" or path.endswith("/package.json")


def is_lock_file(path: str) -> bool:
    """Return ``True`` when the final path component names a known lock file."""
    return path.rsplit("/", 1)[-1] in LOCK_FILE_NAMES


def classify_conflict(path: str) -> ResolutionStrategy:
    """Map a repository-relative ``path`` to its resolution strategy."""
    if is_lock_file(path):
        return ResolutionStrategy.regenerate_lock
    for prefix, strategy in _PREFIX_RULES:
        if path.startswith(prefix):
            return strategy
    for suffix, strategy in _SUFFIX_RULES:
        if path.endswith(suffix):
            return strategy
    return ResolutionStrategy.manual


def _release_key(version: str) -> tuple[int, int, int] | None:
    """Return the numeric release of ``version`` with prerelease and build data removed."""
    release = version.strip().split("+", 1)[0].split("-", 1)[0]
    match = _RELEASE.match(release)
    if match is None:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch)


def select_higher_version(ours: str, theirs: str) -> str | None:
    """Return the higher of two versions, preferring ``theirs`` on equal releases.

    Returns ``None`` when either side is not a ``MAJOR.MINOR.PATCH`` version.
    """
    ours_key = _release_key(ours)
    theirs_key = _release_key(theirs)
    if ours_key is None or theirs_key is None:
        return None
    return ours if ours_key > theirs_key else theirs


def merge_version_conflict(content: str) -> VersionMerge:
    """Resolve a manifest conflict that differs only in its ``version`` field.

    This is a narrow heuristic, not a JSON merge. Each conflict block is replaced
    by its incoming ("theirs") region and the first ``"version"`` field is set to
    the higher of the two versions. Any other difference between the regions is
    discarded in favour of theirs, so callers must only use it for manifests.
    """
    if _CONFLICT_START not in content or _CONFLICT_END not in content:
        return VersionMerge(content=None, error="Not a conflict file")

    ours_match = _OURS_REGION.search(content)
    theirs_match = _THEIRS_REGION.search(content)
    if ours_match is None or theirs_match is None:
        return VersionMerge(content=None, error="Cannot parse conflict markers")

    ours_version = _VERSION_FIELD.search(ours_match.group(1))
    theirs_version = _VERSION_FIELD.search(theirs_match.group(1))
    if ours_version is None or theirs_version is None:
        return VersionMerge(content=None, error="Complex conflict - not just version")

    ours_value = ours_version.group(1)
    theirs_value = theirs_version.group(1)
    selected = select_higher_version(ours_value, theirs_value)
    if selected is None:
        return VersionMerge(
            content=None,
            ours_version=ours_value,
            theirs_version=theirs_value,
            error=f"Unparsable versions: ours={ours_value!r} theirs={theirs_value!r}",
        )

    merged = _CONFLICT_BLOCK.sub(lambda match: match.group(1), content)
    if _CONFLICT_START in merged or _CONFLICT_END in merged:
        return VersionMerge(
            content=None,
            ours_version=ours_value,
            theirs_version=theirs_value,
            error="Conflict markers remain after merge",
        )
    merged = _VERSION_FIELD.sub(lambda _: f'"version": "{selected}"', merged, count=1)
    return VersionMerge(
        content=merged,
        ours_version=ours_value,
        theirs_version=theirs_value,
        selected_version=selected,
    )


def resolve_version_bump(
    facade: GitFacade,
    logger: StructuredLogger,
    path: str,
    *,
    repo_path: Path,
) -> ConflictResolution:
    """Rewrite a conflicted manifest with the higher version and stage it."""
    target = Path(repo_path) / path
    try:
        content = target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return ConflictResolution(path, ResolutionStrategy.version_bump, resolved=False, error=str(exc))

    merge = merge_version_conflict(content)
    if merge.content is None:
        logger.info("version conflict left for manual resolution", path=path, reason=merge.error)
        return ConflictResolution(path, ResolutionStrategy.version_bump, resolved=False, error=merge.error)

    try:
        target.write_text(merge.content, encoding="utf-8")
        facade.run(["git", "add", "--", path])
    except GitCommandError as exc:
        return ConflictResolution(
            path,
            ResolutionStrategy.version_bump,
            resolved=False,
            error=exc.stderr.strip() or str(exc),
        )
    except OSError as exc:
        return ConflictResolution(path, ResolutionStrategy.version_bump, resolved=False, error=str(exc))

    logger.info("resolved version conflict", path=path, version=merge.selected_version)
    return ConflictResolution(path, ResolutionStrategy.version_bump, resolved=True)


def resolve_conflict(
    facade: GitFacade,
    logger: StructuredLogger,
    path: str,
    strategy: ResolutionStrategy,
    *,
    repo_path: Path,
    dry_run: bool = False,
) -> ConflictResolution:
    """Apply ``strategy`` to ``path`` and report whether it was resolved."""
    try:
        strategy = ResolutionStrategy(strategy)
    except ValueError:
        return ConflictResolution(
            path,
            ResolutionStrategy.manual,
            resolved=False,
            error=f"Unknown resolution strategy: {strategy!r}",
        )
    if strategy is ResolutionStrategy.manual:
        return ConflictResolution(path, strategy, resolved=False, error="Requires manual resolution")

    if dry_run:
        logger.info("would resolve conflict", path=path, strategy=strategy.value)
        return ConflictResolution(path, strategy, resolved=True)

    if strategy is ResolutionStrategy.version_bump:
        return resolve_version_bump(facade, logger, path, repo_path=repo_path)

    if strategy in _THEIRS_STRATEGIES:
        try:
            facade.run(["git", "checkout", "--theirs", "--", path])
            facade.run(["git", "add", "--", path])
        except GitCommandError as exc:
            logger.warning("failed to accept incoming version", path=path, error=exc.stderr.strip())
            return ConflictResolution(path, strategy, resolved=False, error=exc.stderr.strip() or str(exc))
        logger.info("accepted incoming version", path=path, strategy=strategy.value)
        return ConflictResolution(path, strategy, resolved=True)

    return ConflictResolution(path, strategy, resolved=False, error="Unsupported resolution strategy")


def strategy_for_path(path: str) -> ResolutionStrategy:
    """Return the strategy the cascade uses for ``path``, routing manifests to version bumps."""
    if is_package_manifest(path):
        return ResolutionStrategy.version_bump
    return classify_conflict(path)


def auto_resolve_conflicts(
    facade: GitFacade,
    observer: RepoObserver,
    logger: StructuredLogger,
    *,
    repo_path: Path,
    dry_run: bool = False,
) -> ConflictPartition:
    """Resolve every currently unmerged path that matches an automatic strategy."""
    return partition_resolutions(
        [
            resolve_conflict(
                facade,
                logger,
                path,
                strategy_for_path(path),
                repo_path=repo_path,
                dry_run=dry_run,
            )
            for path in observer.unmerged_files()
        ],
    )


def partition_resolutions(resolutions: Sequence[ConflictResolution]) -> ConflictPartition:
    """Split ``resolutions`` into resolved and manual paths, preserving order."""
    resolved = tuple(item.path for item in resolutions if item.resolved)
    manual = tuple(item.path for item in resolutions if not item.resolved)
    return ConflictPartition(resolved=resolved, manual=manual)


__all__ = [
    "LOCK_FILE_NAMES",
    "ConflictPartition",
    "ConflictResolution",
    "VersionMerge",
    "auto_resolve_conflicts",
    "classify_conflict",
    "is_lock_file",
    "is_package_manifest",
    "merge_version_conflict",
    "partition_resolutions",
    "resolve_conflict",
    "resolve_version_bump",
    "select_higher_version",
    "strategy_for_path",
]
