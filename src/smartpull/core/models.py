"""Pydantic models describing pull configuration and outcomes."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PullStrategy(StrEnum):
    """Strategy that produced the terminal state of a pull."""

    fast_forward = "fast-forward"
    rebase = "rebase"
    merge = "merge"
    failed = "failed"


class ResolutionStrategy(StrEnum):
    """How a conflicted path is resolved."""

    regenerate_lock = "regenerate-lock"
    take_theirs = "take-theirs"
    take_theirs_regenerate = "take-theirs-regenerate"
    version_bump = "version-bump"
    manual = "manual"


class StatusSummary(BaseModel):
    """Counts of local modifications reported by ``git status``."""

    branch: str | None = None
    staged_count: int = 0
    unstaged_count: int = 0
    untracked_count: int = 0

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def has_local_changes(self) -> bool:
        """Return ``True`` when tracked files carry staged or unstaged edits."""
        return self.staged_count > 0 or self.unstaged_count > 0


class PullOutcome(BaseModel):
    """Terminal result of a single pull invocation."""

    success: bool
    had_conflicts: bool = False
    auto_resolved: tuple[str, ...] = ()
    manual_required: tuple[str, ...] = ()
    stash_applied: bool = False
    stash_preserved: bool = False
    strategy: PullStrategy
    message: str
    next_command: str | None = None
    dry_run: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _check_terminal_invariants(self) -> PullOutcome:
        """Reject outcomes that would misreport a paused or failed pull."""
        if self.manual_required and (self.success or self.stash_applied):
            message = "Outcomes with manual conflicts must not report success or a restored stash"
            raise ValueError(message)
        if self.success and self.strategy is PullStrategy.failed:
            message = "A successful outcome must name the strategy that succeeded"
            raise ValueError(message)
        return self

    @property
    def conflict_count(self) -> int:
        """Return the total number of conflicted paths seen by the cascade."""
        return len(self.auto_resolved) + len(self.manual_required)


class PullSettings(BaseModel):
    """Remote and branch selection for the pull command."""

    remote: str = "origin"
    branch: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("remote")
    @classmethod
    def _require_remote(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            message = "remote must not be empty"
            raise ValueError(message)
        return stripped

    @field_validator("branch")
    @classmethod
    def _normalise_branch(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class LockfileSettings(BaseModel):
    """Package manager command used to regenerate lock files."""

    install_command: tuple[str, ...] = ("npm", "install")

    model_config = ConfigDict(extra="forbid")

    @field_validator("install_command")
    @classmethod
    def _require_command(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value or not value[0].strip():
            message = "install_command must name an executable"
            raise ValueError(message)
        return value


class Config(BaseModel):
    """Top-level configuration loaded from TOML."""

    pull: PullSettings = Field(default_factory=PullSettings)
    lockfile: LockfileSettings = Field(default_factory=LockfileSettings)
    dry_run: bool = False

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "Config",
    "LockfileSettings",
    "PullOutcome",
    "PullSettings",
    "PullStrategy",
    "ResolutionStrategy",
    "StatusSummary",
]
