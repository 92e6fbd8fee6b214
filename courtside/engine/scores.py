"""Derived trial scores.

Read-only summaries computed from a TrialState for display. They are not
persisted and never feed back into the transition.
"""

from dataclasses import dataclass, field

from ..models import CredibilitySignal, TrialState
from .momentum import clamp_score


@dataclass
class ScoreDriver:
    """One factor contributing to a derived score."""

    factor: str
    value: float
    explanation: str


@dataclass
class DerivedScore:
    """A 0-100 score with its drivers and interpretation."""

    name: str
    value: float
    interpretation: str
    drivers: list[ScoreDriver] = field(default_factory=list)


@dataclass
class TrialScores:
    """All derived scores for one state."""

    cross_exam_vulnerability: DerivedScore
    jury_persuasion: DerivedScore
    settlement_leverage: DerivedScore

    def as_list(self) -> list[DerivedScore]:
        """Scores in display order."""
        return [self.cross_exam_vulnerability, self.jury_persuasion, self.settlement_leverage]


def _bounded(value: float) -> float:
    return float(clamp_score(int(round(value))))


def cross_exam_vulnerability(
    unexploited: int,
    harmful: int,
    events_processed: int,
) -> DerivedScore:
    """Higher means our position is more exposed on cross."""
    value = 30 + unexploited * 10 + harmful * 2
    if events_processed > 0 and harmful / events_processed > 0.3:
        value += 15
    value = _bounded(value)

    if value >= 70:
        interpretation = "High vulnerability - address contradictions urgently"
    elif value >= 50:
        interpretation = "Moderate vulnerability - monitor and prepare responses"
    else:
        interpretation = "Low vulnerability - case holding up well"

    return DerivedScore(
        name="Cross-Exam Vulnerability",
        value=value,
        interpretation=interpretation,
        drivers=[
            ScoreDriver("Unexploited Contradictions", unexploited * 10.0,
                        f"{unexploited} contradiction(s) not yet addressed"),
            ScoreDriver("Harmful Admissions", harmful * 2.0,
                        f"{harmful} harmful key admission(s)"),
        ],
    )


def jury_persuasion(helpful: int, harmful: int, momentum: int) -> DerivedScore:
    """Momentum blended with the balance of key admissions."""
    value = float(momentum)
    total = helpful + harmful
    if total > 0:
        value = (value + helpful / total * 100) / 2
    value = _bounded(value)

    if value >= 70:
        interpretation = "Strong jury appeal - narrative is compelling"
    elif value >= 50:
        interpretation = "Adequate jury appeal - maintain momentum"
    else:
        interpretation = "Jury appeal at risk - strengthen narrative"

    return DerivedScore(
        name="Jury Persuasion",
        value=value,
        interpretation=interpretation,
        drivers=[
            ScoreDriver("Testimony Momentum", float(momentum), f"Current momentum: {momentum}"),
            ScoreDriver("Signal Balance", helpful / total * 100 if total else 50.0,
                        f"{helpful} helpful vs {harmful} harmful admissions"),
        ],
    )


def settlement_leverage(momentum: int, vulnerability: float, jury: float) -> DerivedScore:
    """Weighted blend of momentum, jury appeal and cross-exam resilience."""
    value = _bounded(momentum * 0.3 + jury * 0.4 + (100 - vulnerability) * 0.3)

    if value >= 70:
        interpretation = "Strong settlement position - leverage favorable terms"
    elif value >= 50:
        interpretation = "Moderate leverage - standard negotiation"
    else:
        interpretation = "Weak leverage - consider settlement terms carefully"

    return DerivedScore(
        name="Settlement Leverage",
        value=value,
        interpretation=interpretation,
        drivers=[
            ScoreDriver("Trial Momentum", momentum * 0.3, f"Momentum score: {momentum}"),
            ScoreDriver("Jury Appeal", jury * 0.4, f"Jury persuasion: {jury:.1f}"),
            ScoreDriver("Cross-Exam Resilience", (100 - vulnerability) * 0.3,
                        f"Resilience: {100 - vulnerability:.1f}"),
        ],
    )


def compute_scores(state: TrialState) -> TrialScores:
    """
    Compute derived scores for a state.

    Args:
        state: Trial state to summarize

    Returns:
        TrialScores
    """
    unexploited = sum(1 for c in state.contradictions if not c.exploited)

    helpful = sum(
        1 for k in state.key_admissions
        if k.credibility_signal == CredibilitySignal.HELPFUL
    )
    harmful = sum(
        1 for k in state.key_admissions
        if k.credibility_signal == CredibilitySignal.HARMFUL
    )

    vulnerability = cross_exam_vulnerability(unexploited, harmful, state.events_processed)
    jury = jury_persuasion(helpful, harmful, state.momentum_score)
    leverage = settlement_leverage(state.momentum_score, vulnerability.value, jury.value)

    return TrialScores(
        cross_exam_vulnerability=vulnerability,
        jury_persuasion=jury,
        settlement_leverage=leverage,
    )
