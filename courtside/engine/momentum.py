"""Momentum and witness credibility scoring."""

from dataclasses import dataclass
from typing import Optional

from ..config.settings import MomentumConfig
from ..models import (
    Contradiction,
    CredibilitySignal,
    MomentumTrend,
    TestimonyEvent,
    TrialState,
)

SCORE_MIN = 0
SCORE_MAX = 100


def clamp_score(value: int) -> int:
    """Clamp a score to [0, 100]."""
    return max(SCORE_MIN, min(SCORE_MAX, value))


@dataclass
class MomentumUpdate:
    """Result of applying one event to the momentum score."""

    impact: int  # Signed policy delta before clamping
    previous_score: int
    score: int
    previous_trend: MomentumTrend
    trend: MomentumTrend

    @property
    def applied_delta(self) -> int:
        """Actual change to the score after clamping."""
        return self.score - self.previous_score


class MomentumEngine:
    """Applies the momentum policy to each processed event."""

    def __init__(self, config: Optional[MomentumConfig] = None):
        self.config = config or MomentumConfig()

    def stands_contradicted(
        self,
        state: TrialState,
        event: TestimonyEvent,
        new_contradictions: list[Contradiction],
    ) -> bool:
        """Check if the speaker's statement is undercut by a contradiction."""
        if new_contradictions:
            return True
        existing = state.contradictions_against(
            event.speaker_name,
            topics=event.topic_tags,
            include_exploited=self.config.count_exploited_contradictions,
        )
        return len(existing) > 0

    def signal_delta(self, event: TestimonyEvent, contradicted: bool) -> int:
        """Signed delta from the credibility signal alone."""
        if event.credibility_signal == CredibilitySignal.HELPFUL:
            return self.config.helpful_delta
        if event.credibility_signal == CredibilitySignal.HARMFUL:
            delta = self.config.harmful_delta
            if contradicted:
                delta = int(round(delta * self.config.contradicted_harmful_factor))
            return -delta
        return 0

    def is_adverse(self, witness: str) -> bool:
        """Check if contradicting this witness helps our side.

        An empty ``adverse_witnesses`` list treats every witness as adverse.
        """
        adverse = self.config.adverse_witnesses
        return not adverse or witness in adverse

    def contradiction_delta(
        self,
        contradictions: list[Contradiction],
        adverse_only: bool = False,
    ) -> int:
        """Total bonus for newly detected contradictions.

        Args:
            contradictions: Contradictions to score
            adverse_only: Count only contradictions against adverse witnesses
        """
        return sum(
            self.config.contradiction_bonus.get(c.impeachment_value.value, 0)
            for c in contradictions
            if not adverse_only or self.is_adverse(c.witness)
        )

    def trend_for(self, window: list[int]) -> MomentumTrend:
        """Trend from the net impact over the trailing window."""
        net = sum(window)
        if net > 0:
            return MomentumTrend.IMPROVING
        if net < 0:
            return MomentumTrend.DECLINING
        return MomentumTrend.STABLE

    def apply(
        self,
        state: TrialState,
        event: TestimonyEvent,
        new_contradictions: list[Contradiction],
        contradicted: bool,
    ) -> MomentumUpdate:
        """Update ``momentum_score``, ``momentum_window`` and ``momentum_trend``.

        Args:
            state: State to update (mutated)
            event: Event being processed
            new_contradictions: Contradictions this event created
            contradicted: Whether the speaker stands contradicted

        Returns:
            MomentumUpdate describing the change
        """
        impact = self.signal_delta(event, contradicted) + self.contradiction_delta(
            new_contradictions, adverse_only=True
        )

        previous_score = state.momentum_score
        previous_trend = state.momentum_trend

        state.momentum_score = clamp_score(previous_score + impact)

        window = state.momentum_window + [impact]
        state.momentum_window = window[-max(1, self.config.trend_window):]
        state.momentum_trend = self.trend_for(state.momentum_window)

        return MomentumUpdate(
            impact=impact,
            previous_score=previous_score,
            score=state.momentum_score,
            previous_trend=previous_trend,
            trend=state.momentum_trend,
        )

    def update_credibility(
        self,
        state: TrialState,
        event: TestimonyEvent,
        new_contradictions: list[Contradiction],
        contradicted: bool,
    ) -> Optional[int]:
        """Update the speaker's credibility score.

        Uses the same polarity rule as momentum. Each new contradiction
        costs the witness its impeachment bonus, adverse or not.

        Returns:
            The new credibility score, or None for non-witness speakers
        """
        if not event.is_witness:
            return None

        current = state.witness_credibility.get(event.speaker_name, self.config.credibility_baseline)
        delta = self.signal_delta(event, contradicted) - self.contradiction_delta(new_contradictions)
        score = clamp_score(current + delta)
        state.witness_credibility[event.speaker_name] = score
        return score
