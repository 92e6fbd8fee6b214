"""Data models for Courtside."""

from .action import (
    ActionPriority,
    ActionType,
    TrialAction,
    format_action_id,
)
from .contradiction import (
    Contradiction,
    ContradictionBasis,
    ImpeachmentValue,
    PriorStatement,
)
from .event import (
    CredibilitySignal,
    ObjectionCategory,
    SpeakerRole,
    TestimonyEvent,
    TrialPhase,
)
from .state import (
    KeyAdmission,
    MomentumTrend,
    TrialState,
)

__all__ = [
    # Events
    "CredibilitySignal",
    "ObjectionCategory",
    "SpeakerRole",
    "TestimonyEvent",
    "TrialPhase",
    # Contradictions
    "Contradiction",
    "ContradictionBasis",
    "ImpeachmentValue",
    "PriorStatement",
    # Actions
    "ActionPriority",
    "ActionType",
    "TrialAction",
    "format_action_id",
    # State
    "KeyAdmission",
    "MomentumTrend",
    "TrialState",
]
