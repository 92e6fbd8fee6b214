"""Tactical action models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionPriority(str, Enum):
    """Priority tiers for tactical actions."""

    P0 = "P0"  # Act now
    P1 = "P1"  # Act at the next opening
    P2 = "P2"  # Note for later (closing, redirect)


class ActionType(str, Enum):
    """Kinds of tactical actions."""

    IMPEACHMENT = "impeachment"
    OBJECTION = "objection"
    EXHIBIT = "exhibit"
    REFRAME = "reframe"
    CONCESSION = "concession"
    SIDEBAR_REQUEST = "sidebar_request"


# Prefix for action IDs
ACTION_PREFIX = "ACT"


@dataclass
class TrialAction:
    """A suggested tactical response. Advisory only, not legal advice."""

    id: str
    priority: ActionPriority
    type: ActionType
    target: str
    suggested_language: str
    rationale: str
    evidence_refs: list[str] = field(default_factory=list)
    risk_tradeoff: str = ""
    confidence: float = 0.5
    source_event: int = 0

    def __post_init__(self) -> None:
        self.confidence = min(1.0, max(0.0, float(self.confidence)))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "priority": self.priority.value,
            "type": self.type.value,
            "target": self.target,
            "suggested_language": self.suggested_language,
            "rationale": self.rationale,
            "evidence_refs": list(self.evidence_refs),
            "risk_tradeoff": self.risk_tradeoff,
            "confidence": self.confidence,
            "source_event": self.source_event,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrialAction":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            priority=ActionPriority(data["priority"]),
            type=ActionType(data["type"]),
            target=data["target"],
            suggested_language=data["suggested_language"],
            rationale=data["rationale"],
            evidence_refs=list(data.get("evidence_refs", [])),
            risk_tradeoff=data.get("risk_tradeoff", ""),
            confidence=data.get("confidence", 0.5),
            source_event=int(data.get("source_event", 0)),
        )


def format_action_id(number: int) -> str:
    """Format a sequential action number (e.g., 1 -> "ACT-0001")."""
    return f"{ACTION_PREFIX}-{number:04d}"
