"""Human-readable descriptions of state changes between two snapshots."""

from dataclasses import dataclass
from typing import Any

from ..models import TrialAction, TrialState


@dataclass(frozen=True)
class StateChange:
    """One field that changed during a transition."""

    field: str
    before: Any
    after: Any
    significance: str  # high, medium, low

    def describe(self) -> str:
        """Format as a single line."""
        return f"{self.field}: {self.before} -> {self.after} ({self.significance})"


def momentum_significance(delta: int) -> str:
    """Classify a momentum move by size."""
    if abs(delta) >= 10:
        return "high"
    if abs(delta) >= 5:
        return "medium"
    return "low"


def compute_changes(prior: TrialState, current: TrialState) -> list[StateChange]:
    """Compare two snapshots of the same session."""
    changes: list[StateChange] = []

    if current.momentum_score != prior.momentum_score:
        changes.append(StateChange(
            "momentum_score",
            prior.momentum_score,
            current.momentum_score,
            momentum_significance(current.momentum_score - prior.momentum_score),
        ))

    if current.current_phase != prior.current_phase:
        changes.append(StateChange(
            "phase",
            prior.current_phase.value if prior.current_phase else "none",
            current.current_phase.value if current.current_phase else "none",
            "high",
        ))

    if current.current_witness != prior.current_witness:
        changes.append(StateChange(
            "witness",
            prior.current_witness or "none",
            current.current_witness or "none",
            "high",
        ))

    if current.momentum_trend != prior.momentum_trend:
        changes.append(StateChange(
            "momentum_trend",
            prior.momentum_trend.value,
            current.momentum_trend.value,
            "medium",
        ))

    for witness, score in current.witness_credibility.items():
        before = prior.witness_credibility.get(witness)
        if before is not None and before != score:
            changes.append(StateChange(
                f"credibility[{witness}]",
                before,
                score,
                momentum_significance(score - before),
            ))

    return changes


def describe_transition(
    prior: TrialState,
    current: TrialState,
    new_actions: list[TrialAction],
) -> list[str]:
    """Describe what one transition changed, most significant first."""
    order = {"high": 0, "medium": 1, "low": 2}
    changes = sorted(compute_changes(prior, current), key=lambda c: order[c.significance])
    descriptions = [c.describe() for c in changes]

    new_contradictions = current.contradictions[len(prior.contradictions):]
    for c in new_contradictions:
        descriptions.append(
            f"Contradiction {c.id}: {c.witness} on '{c.topic}' "
            f"({c.phase_span}, {c.impeachment_value.value})"
        )

    new_admissions = len(current.key_admissions) - len(prior.key_admissions)
    if new_admissions > 0:
        descriptions.append(f"{new_admissions} key admission(s) recorded")

    if new_actions:
        by_priority: dict[str, int] = {}
        for action in new_actions:
            by_priority[action.priority.value] = by_priority.get(action.priority.value, 0) + 1
        summary = ", ".join(f"{count} {p}" for p, count in sorted(by_priority.items()))
        descriptions.append(f"{len(new_actions)} new action(s): {summary}")

    return descriptions
