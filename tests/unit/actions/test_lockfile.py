from __future__ import annotations

import io
import subprocess
from typing import TYPE_CHECKING

import pytest

from smartpull.actions.lockfile import LockFileRegenerator, needs_lock_regeneration
from smartpull.git.facade import GitCommandError, GitFacade
from smartpull.io.logging import StructuredLogger

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> StructuredLogger:
    return StructuredLogger(name="test", stream=log_stream)


@pytest.mark.parametrize(
    ("paths", "expected"),
    [
        (["package-lock.json"], True),
        (["dist/index.js", "packages/web/package-lock.json"], True),
        (["yarn.lock"], False),
        (["package-lock.json.orig"], False),
        ([], False),
    ],
)
def test_needs_lock_regeneration(paths: list[str], expected: bool) -> None:
    """Only npm lock files trigger regeneration."""
    assert needs_lock_regeneration(paths) is expected


def test_regenerate_runs_install_command(mocker: MockerFixture, logger: StructuredLogger) -> None:
    """The configured installer runs once when a lock file was auto-resolved."""
    facade = mocker.create_autospec(GitFacade, instance=True)
    facade.run.return_value = subprocess.CompletedProcess(["npm"], 0, "", "")
    regenerator = LockFileRegenerator(facade, logger, install_command=("pnpm", "install"))

    assert regenerator.regenerate(["package-lock.json", "dist/a.js"]) is True
    facade.run.assert_called_once_with(["pnpm", "install"])


def test_regenerate_skips_without_lock_file(mocker: MockerFixture, logger: StructuredLogger) -> None:
    """No installer runs when no lock file was touched."""
    facade = mocker.create_autospec(GitFacade, instance=True)
    regenerator = LockFileRegenerator(facade, logger)

    assert regenerator.regenerate(["dist/a.js"]) is False
    facade.run.assert_not_called()


def test_regenerate_logs_installer_failure(
    mocker: MockerFixture,
    logger: StructuredLogger,
    log_stream: io.StringIO,
) -> None:
    """A failing installer is a warning, not an error."""
    facade = mocker.create_autospec(GitFacade, instance=True)
    facade.run.side_effect = GitCommandError(["npm", "install"], 1, stderr="npm ERR! network\n")
    regenerator = LockFileRegenerator(facade, logger)

    assert regenerator.regenerate(["package-lock.json"]) is False
    assert "WARNING lock file regeneration failed" in log_stream.getvalue()
    assert "npm ERR! network" in log_stream.getvalue()


def test_regenerate_logs_missing_installer(
    mocker: MockerFixture,
    logger: StructuredLogger,
    log_stream: io.StringIO,
) -> None:
    """A missing executable is reported without raising."""
    facade = mocker.create_autospec(GitFacade, instance=True)
    facade.run.side_effect = FileNotFoundError(2, "No such file or directory", "npm")
    regenerator = LockFileRegenerator(facade, logger)

    assert regenerator.regenerate(["package-lock.json"]) is False
    assert "WARNING lock file regeneration failed" in log_stream.getvalue()
