"""Prior statement and contradiction models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .event import CredibilitySignal, TrialPhase, parse_timestamp


class ImpeachmentValue(str, Enum):
    """How useful a contradiction is for discrediting a witness."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def lowered(self) -> "ImpeachmentValue":
        """Return the next tier down (LOW stays LOW)."""
        if self == ImpeachmentValue.HIGH:
            return ImpeachmentValue.MEDIUM
        return ImpeachmentValue.LOW


class ContradictionBasis(str, Enum):
    """What made two statements conflict."""

    POLARITY = "polarity"  # helpful vs harmful on the same topic
    TEXT = "text"  # flagged by a statement comparator


@dataclass(frozen=True)
class PriorStatement:
    """A witness statement on one topic, retained for comparison."""

    event_index: int
    speaker_name: str
    topic: str
    text: str
    phase: TrialPhase
    timestamp: datetime
    credibility_signal: CredibilitySignal

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "event_index": self.event_index,
            "speaker_name": self.speaker_name,
            "topic": self.topic,
            "text": self.text,
            "phase": self.phase.value,
            "timestamp": self.timestamp.isoformat(),
            "credibility_signal": self.credibility_signal.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriorStatement":
        """Create from dictionary."""
        return cls(
            event_index=int(data["event_index"]),
            speaker_name=data["speaker_name"],
            topic=data["topic"],
            text=data["text"],
            phase=TrialPhase(data["phase"]),
            timestamp=parse_timestamp(data["timestamp"]),
            credibility_signal=CredibilitySignal(data["credibility_signal"]),
        )


@dataclass(frozen=True)
class Contradiction:
    """A conflict between two statements by the same witness on one topic.

    Instances are frozen: only ``exploited`` may change, and only by
    replacing the record through ``TrialState.mark_contradiction_exploited``.

    Attributes:
        id: Identifier (e.g., "CTR-0001")
        topic: Topic tag both statements address
        detected_at: Timestamp of the detecting statement
        witness: Speaker who made both statements
        statement_a: The incoming, contradicting statement
        statement_b: The earlier statement it conflicts with
        impeachment_value: Usefulness tier for impeachment
        basis: Whether polarity or text comparison flagged the conflict
        exploited: Set once counsel has used the contradiction
    """

    id: str
    topic: str
    detected_at: datetime
    witness: str
    statement_a: PriorStatement
    statement_b: PriorStatement
    impeachment_value: ImpeachmentValue
    basis: ContradictionBasis = ContradictionBasis.POLARITY
    exploited: bool = False

    @property
    def phase_span(self) -> str:
        """Describe the phases the contradiction spans (e.g., "direct -> cross")."""
        return f"{self.statement_b.phase.value} -> {self.statement_a.phase.value}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "topic": self.topic,
            "detected_at": self.detected_at.isoformat(),
            "witness": self.witness,
            "statement_a": self.statement_a.to_dict(),
            "statement_b": self.statement_b.to_dict(),
            "impeachment_value": self.impeachment_value.value,
            "basis": self.basis.value,
            "exploited": self.exploited,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contradiction":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            topic=data["topic"],
            detected_at=parse_timestamp(data["detected_at"]),
            witness=data["witness"],
            statement_a=PriorStatement.from_dict(data["statement_a"]),
            statement_b=PriorStatement.from_dict(data["statement_b"]),
            impeachment_value=ImpeachmentValue(data["impeachment_value"]),
            basis=ContradictionBasis(data.get("basis", "polarity")),
            exploited=bool(data.get("exploited", False)),
        )
