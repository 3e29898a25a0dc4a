from __future__ import annotations

import io
import subprocess
from typing import TYPE_CHECKING
from unittest.mock import call

import pytest

from smartpull.actions.safety import STASH_MESSAGE_PREFIX, StashGuard
from smartpull.git.facade import GitCommandError, GitFacade
from smartpull.git.observe import RepoObserver
from smartpull.io.logging import StructuredLogger

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def _completed(stdout: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(["git"], 0, stdout, "")


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> StructuredLogger:
    return StructuredLogger(name="test", stream=log_stream)


def _guard(mocker: MockerFixture, logger: StructuredLogger, status: str) -> tuple[StashGuard, object]:
    facade = mocker.create_autospec(GitFacade, instance=True)

    def run_side_effect(args: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        if args[:2] == ["git", "status"]:
            return _completed(status)
        return _completed()

    facade.run.side_effect = run_side_effect
    observer = RepoObserver(facade, logger=logger)
    return StashGuard(facade, observer, logger, clock=lambda: 1700000000000), facade


def test_stash_if_needed_skips_clean_tree(mocker: MockerFixture, logger: StructuredLogger) -> None:
    """A clean working tree never creates a stash."""
    guard, facade = _guard(mocker, logger, "## main...origin/main\n")

    assert guard.stash_if_needed() is False
    assert guard.handle is None
    assert facade.run.call_args_list == [call(["git", "status", "--porcelain=v1", "--branch"])]


def test_stash_if_needed_ignores_untracked_files(mocker: MockerFixture, logger: StructuredLogger) -> None:
    """Untracked files alone do not count as local changes."""
    guard, _ = _guard(mocker, logger, "## main\n?? notes.txt\n")

    assert guard.stash_if_needed() is False


def test_stash_if_needed_pushes_named_stash(mocker: MockerFixture, logger: StructuredLogger) -> None:
    """Modified files are stashed under a recognisable timestamped message."""
    guard, facade = _guard(mocker, logger, "## main\n M src/app.ts\nA  src/new.ts\n")

    assert guard.stash_if_needed() is True

    expected = f"{STASH_MESSAGE_PREFIX}-1700000000000"
    facade.run.assert_called_with(["git", "stash", "push", "-m", expected])
    assert guard.handle is not None
    assert guard.handle.message == expected
    assert guard.is_preserved


def test_apply_stash_if_needed_is_noop_without_stash(mocker: MockerFixture, logger: StructuredLogger) -> None:
    """Nothing is popped when this run did not stash."""
    guard, facade = _guard(mocker, logger, "## main\n")

    assert guard.apply_stash_if_needed(did_stash=False) is False
    facade.run.assert_not_called()


def test_apply_stash_if_needed_pops_and_consumes(mocker: MockerFixture, logger: StructuredLogger) -> None:
    """A successful pop marks the stash as consumed."""
    guard, facade = _guard(mocker, logger, "## main\n M a.txt\n")
    guard.stash_if_needed()

    assert guard.apply_stash_if_needed(did_stash=True) is True
    facade.run.assert_called_with(["git", "stash", "pop"])
    assert not guard.is_preserved


def test_apply_stash_if_needed_preserves_stash_on_conflict(
    mocker: MockerFixture,
    logger: StructuredLogger,
    log_stream: io.StringIO,
) -> None:
    """A failed pop is logged as a warning and never drops the stash."""
    guard, facade = _guard(mocker, logger, "## main\n M a.txt\n")
    guard.stash_if_needed()

    def fail_pop(args: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        if args == ["git", "stash", "pop"]:
            raise GitCommandError(args, 1, stderr="CONFLICT (content): Merge conflict in a.txt\n")
        return _completed()

    facade.run.side_effect = fail_pop

    assert guard.apply_stash_if_needed(did_stash=True) is False
    assert guard.is_preserved
    assert "WARNING stash pop reported conflicts" in log_stream.getvalue()
    commands = [tuple(item.args[0]) for item in facade.run.call_args_list]
    assert ("git", "stash", "drop") not in commands
