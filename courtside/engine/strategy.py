"""End-of-day strategy summary.

Like the derived scores, this is a read-only view over a TrialState for
counsel preparing the next session. Nothing here is persisted.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..models import (
    ActionPriority,
    Contradiction,
    CredibilitySignal,
    KeyAdmission,
    MomentumTrend,
    TrialAction,
    TrialState,
)
from .scores import TrialScores, compute_scores

# Credibility bands for witness assessments
CREDIBLE_THRESHOLD = 60
DAMAGED_THRESHOLD = 40


@dataclass
class WitnessAssessment:
    """Where one witness stands at the end of the day."""

    name: str
    credibility: int
    open_contradictions: int
    outlook: str


@dataclass
class DayStrategy:
    """Summary of the day and what to prepare for the next session."""

    momentum_score: int
    momentum_trend: MomentumTrend
    key_wins: list[KeyAdmission] = field(default_factory=list)
    key_losses: list[KeyAdmission] = field(default_factory=list)
    witnesses: list[WitnessAssessment] = field(default_factory=list)
    impeachment_points: list[Contradiction] = field(default_factory=list)
    urgent_actions: list[TrialAction] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


def assess_witness(name: str, credibility: int, open_contradictions: int) -> WitnessAssessment:
    """Classify a witness by credibility and unused contradictions."""
    if open_contradictions > 0:
        outlook = f"Impeachable - {open_contradictions} unused contradiction(s)"
    elif credibility >= CREDIBLE_THRESHOLD:
        outlook = "Credible"
    elif credibility < DAMAGED_THRESHOLD:
        outlook = "Damaged"
    else:
        outlook = "Contested"

    return WitnessAssessment(
        name=name,
        credibility=credibility,
        open_contradictions=open_contradictions,
        outlook=outlook,
    )


def _top_admissions(
    state: TrialState,
    signal: CredibilitySignal,
    limit: int,
) -> list[KeyAdmission]:
    matching = [k for k in state.key_admissions if k.credibility_signal == signal]
    # Largest swing first; earlier events win ties
    matching.sort(key=lambda k: (-abs(k.momentum_delta), k.event_index))
    return matching[:limit]


def end_of_day_strategy(
    state: TrialState,
    scores: Optional[TrialScores] = None,
    limit: int = 3,
) -> DayStrategy:
    """
    Build the end-of-day strategy for a state.

    Args:
        state: Trial state to summarize
        scores: Precomputed derived scores (computed if omitted)
        limit: Maximum key wins and key losses to report

    Returns:
        DayStrategy
    """
    scores = scores or compute_scores(state)

    unexploited = [c for c in state.contradictions if not c.exploited]
    urgent = [
        a for a in state.pending_actions
        if a.priority in (ActionPriority.P0, ActionPriority.P1)
    ]

    witnesses = [
        assess_witness(
            name,
            score,
            len(state.contradictions_against(name, include_exploited=False)),
        )
        for name, score in sorted(state.witness_credibility.items())
    ]

    recommendations: list[str] = []

    if state.momentum_score < 50:
        recommendations.append("Review testimony transcript for rehabilitation opportunities")
        recommendations.append("Prepare exhibits that counter negative impressions")

    if unexploited:
        recommendations.append(f"Prepare {len(unexploited)} impeachment point(s) for tomorrow")

    if state.momentum_trend == MomentumTrend.DECLINING:
        recommendations.append("Consider witness order adjustments if possible")
        recommendations.append("Review opening theme alignment with evidence presented")

    if urgent:
        recommendations.append(f"Resolve {len(urgent)} open P0/P1 action(s) before the next session")

    for witness in witnesses:
        if witness.outlook == "Damaged":
            recommendations.append(f"Plan rehabilitation on redirect for {witness.name}")

    leverage = scores.settlement_leverage
    recommendations.append(
        f"Update settlement position based on trial developments "
        f"(leverage {leverage.value:.0f}: {leverage.interpretation})"
    )

    return DayStrategy(
        momentum_score=state.momentum_score,
        momentum_trend=state.momentum_trend,
        key_wins=_top_admissions(state, CredibilitySignal.HELPFUL, limit),
        key_losses=_top_admissions(state, CredibilitySignal.HARMFUL, limit),
        witnesses=witnesses,
        impeachment_points=unexploited,
        urgent_actions=urgent,
        recommendations=recommendations,
    )
