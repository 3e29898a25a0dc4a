"""Render pull outcomes for humans and machines."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import PullOutcome

RULE = "═" * 60
SUCCESS_BANNER = "✅ PULL COMPLETE"
ATTENTION_BANNER = "⚠️  PULL NEEDS ATTENTION"


def format_outcome(outcome: PullOutcome) -> str:
    """Return a multi-section report describing ``outcome``."""
    lines: list[str] = [
        "",
        RULE,
        SUCCESS_BANNER if outcome.success else ATTENTION_BANNER,
        RULE,
        "",
        f"Strategy: {outcome.strategy.value}",
        f"Message: {outcome.message}",
    ]

    if outcome.had_conflicts:
        lines.append("")
        lines.append(f"Conflicts detected: {outcome.conflict_count}")
        if outcome.auto_resolved:
            lines.append(f"✓ Auto-resolved: {len(outcome.auto_resolved)}")
            lines.extend(f"   - {path}" for path in outcome.auto_resolved)
        if outcome.manual_required:
            lines.append(f"✗ Manual resolution needed: {len(outcome.manual_required)}")
            lines.extend(f"   - {path}" for path in outcome.manual_required)

    if outcome.next_command and not outcome.success:
        lines.append("")
        lines.append(f"Next step: resolve the files above, then run: {outcome.next_command}")

    if outcome.stash_applied:
        lines.append("")
        lines.append("ℹ️  Local changes have been restored from stash")
    elif outcome.stash_preserved:
        lines.append("")
        lines.append('ℹ️  Local changes are still stashed; run "git stash pop" to restore them')

    if outcome.dry_run:
        lines.append("")
        lines.append("Dry run: no repository changes were made")

    lines.append("")
    lines.append(RULE)
    return "\n".join(lines)


def outcome_to_payload(outcome: PullOutcome) -> dict[str, Any]:
    """Return a JSON serialisable representation of ``outcome``."""
    payload = outcome.model_dump(mode="json")
    payload["conflict_count"] = outcome.conflict_count
    return payload


__all__ = ["ATTENTION_BANNER", "SUCCESS_BANNER", "format_outcome", "outcome_to_payload"]
