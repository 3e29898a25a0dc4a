"""Core data models, the pull state machine and its report."""

from .models import (
    Config,
    LockfileSettings,
    PullOutcome,
    PullSettings,
    PullStrategy,
    ResolutionStrategy,
    StatusSummary,
)
from .report import format_outcome, outcome_to_payload

__all__ = [
    "Config",
    "LockfileSettings",
    "PullOutcome",
    "PullSettings",
    "PullStrategy",
    "ResolutionStrategy",
    "StatusSummary",
    "format_outcome",
    "outcome_to_payload",
]
