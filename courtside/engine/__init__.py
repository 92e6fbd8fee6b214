"""Incremental trial-state engine."""

from .contradiction import (
    AmountDateComparator,
    ContradictionDetector,
    NegationComparator,
    PolarityOnlyComparator,
    StatementComparator,
    get_comparator,
    impeachment_value_for,
)
from .diff import StateChange, compute_changes, describe_transition
from .momentum import MomentumEngine, MomentumUpdate, clamp_score
from .objections import OBJECTION_RULES, classify_objection_triggers
from .prioritizer import ActionPrioritizer
from .scores import DerivedScore, TrialScores, compute_scores
from .strategy import DayStrategy, WitnessAssessment, end_of_day_strategy
from .trial import BatchResult, TrialEngine, TransitionResult

__all__ = [
    # Contradictions
    "AmountDateComparator",
    "ContradictionDetector",
    "NegationComparator",
    "PolarityOnlyComparator",
    "StatementComparator",
    "get_comparator",
    "impeachment_value_for",
    # Diff
    "StateChange",
    "compute_changes",
    "describe_transition",
    # Momentum
    "MomentumEngine",
    "MomentumUpdate",
    "clamp_score",
    # Actions
    "OBJECTION_RULES",
    "ActionPrioritizer",
    "classify_objection_triggers",
    # Scores
    "DerivedScore",
    "TrialScores",
    "compute_scores",
    # Strategy
    "DayStrategy",
    "WitnessAssessment",
    "end_of_day_strategy",
    # Orchestrator
    "BatchResult",
    "TrialEngine",
    "TransitionResult",
]
