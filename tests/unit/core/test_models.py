from __future__ import annotations

import pytest
from pydantic import ValidationError

from smartpull.core.models import Config, PullOutcome, PullSettings, PullStrategy, StatusSummary


def test_outcome_rejects_success_with_manual_conflicts() -> None:
    with pytest.raises(ValidationError, match="manual conflicts"):
        PullOutcome(
            success=True,
            manual_required=("src/app.ts",),
            strategy=PullStrategy.rebase,
            message="Rebase successful",
        )


def test_outcome_rejects_restored_stash_with_manual_conflicts() -> None:
    with pytest.raises(ValidationError, match="restored stash"):
        PullOutcome(
            success=False,
            manual_required=("src/app.ts",),
            stash_applied=True,
            strategy=PullStrategy.merge,
            message="Merge paused",
        )


def test_outcome_rejects_success_without_strategy() -> None:
    with pytest.raises(ValidationError, match="must name the strategy"):
        PullOutcome(success=True, strategy=PullStrategy.failed, message="ok")


def test_outcome_counts_conflicts() -> None:
    outcome = PullOutcome(
        success=False,
        had_conflicts=True,
        auto_resolved=("package-lock.json", "dist/a.js"),
        manual_required=("src/app.ts",),
        stash_preserved=True,
        strategy=PullStrategy.rebase,
        message="Rebase paused: 1 files need manual conflict resolution",
        next_command="git rebase --continue",
    )

    assert outcome.conflict_count == 3


def test_status_summary_ignores_untracked_files() -> None:
    assert not StatusSummary(untracked_count=4).has_local_changes
    assert StatusSummary(staged_count=1).has_local_changes
    assert StatusSummary(unstaged_count=1).has_local_changes


def test_pull_settings_normalise_values() -> None:
    settings = PullSettings(remote=" upstream ", branch="  ")

    assert settings.remote == "upstream"
    assert settings.branch is None


def test_pull_settings_reject_blank_remote() -> None:
    with pytest.raises(ValidationError, match="remote must not be empty"):
        PullSettings(remote="   ")


def test_config_rejects_unknown_keys() -> None:
    with pytest.raises(ValidationError):
        Config.model_validate({"pull": {"remote": "origin", "strategy": "rebase"}})


def test_config_rejects_empty_install_command() -> None:
    with pytest.raises(ValidationError, match="install_command"):
        Config.model_validate({"lockfile": {"install_command": []}})
