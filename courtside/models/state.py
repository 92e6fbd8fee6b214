"""Trial state aggregate."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from .action import TrialAction, format_action_id
from .contradiction import Contradiction, PriorStatement
from .event import CredibilitySignal, TrialPhase, parse_timestamp


class MomentumTrend(str, Enum):
    """Direction of recent momentum."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


# Prefix for contradiction IDs
CONTRADICTION_PREFIX = "CTR"


@dataclass
class KeyAdmission:
    """A helpful or harmful statement that moved the state significantly."""

    event_index: int
    timestamp: datetime
    speaker_name: str
    credibility_signal: CredibilitySignal
    topic_tags: list[str] = field(default_factory=list)
    excerpt: str = ""
    momentum_delta: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "event_index": self.event_index,
            "timestamp": self.timestamp.isoformat(),
            "speaker_name": self.speaker_name,
            "credibility_signal": self.credibility_signal.value,
            "topic_tags": list(self.topic_tags),
            "excerpt": self.excerpt,
            "momentum_delta": self.momentum_delta,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KeyAdmission":
        """Create from dictionary."""
        return cls(
            event_index=int(data["event_index"]),
            timestamp=parse_timestamp(data["timestamp"]),
            speaker_name=data["speaker_name"],
            credibility_signal=CredibilitySignal(data["credibility_signal"]),
            topic_tags=list(data.get("topic_tags", [])),
            excerpt=data.get("excerpt", ""),
            momentum_delta=int(data.get("momentum_delta", 0)),
        )


@dataclass
class TrialState:
    """Accumulated state of one trial session.

    Mutated only by ``TrialEngine.process`` and the explicit external
    operations below (marking a contradiction exploited, resolving an
    action). ``events_processed`` is the resume cursor.
    """

    session_id: str = field(default_factory=lambda: str(uuid4())[:8])
    started_at: datetime = field(default_factory=datetime.now)
    events_processed: int = 0
    momentum_score: int = 50
    momentum_trend: MomentumTrend = MomentumTrend.STABLE
    momentum_window: list[int] = field(default_factory=list)
    contradictions: list[Contradiction] = field(default_factory=list)
    pending_actions: list[TrialAction] = field(default_factory=list)
    witness_credibility: dict[str, int] = field(default_factory=dict)
    key_admissions: list[KeyAdmission] = field(default_factory=list)
    # speaker -> topic -> statements in stream order
    prior_statements: dict[str, dict[str, list[PriorStatement]]] = field(default_factory=dict)
    surfaced_exhibits: list[str] = field(default_factory=list)
    adverse_streaks: dict[str, int] = field(default_factory=dict)
    actions_issued: int = 0
    current_phase: Optional[TrialPhase] = None
    current_witness: Optional[str] = None
    last_event_at: Optional[datetime] = None

    @classmethod
    def create(cls, baseline: int = 50) -> "TrialState":
        """Start a fresh session at a neutral momentum baseline."""
        return cls(momentum_score=min(100, max(0, baseline)))

    def clone(self) -> "TrialState":
        """Copy the state for a transition.

        Containers are copied and the records inside them are shared; a
        record is replaced, never edited in place. The prior statement index
        is copied one level deep and ``record_statement`` copies the rest on
        write.
        """
        return replace(
            self,
            momentum_window=list(self.momentum_window),
            contradictions=list(self.contradictions),
            pending_actions=list(self.pending_actions),
            witness_credibility=dict(self.witness_credibility),
            key_admissions=list(self.key_admissions),
            prior_statements=dict(self.prior_statements),
            surfaced_exhibits=list(self.surfaced_exhibits),
            adverse_streaks=dict(self.adverse_streaks),
        )

    # Prior statement index

    def statements_for(self, speaker: str, topic: str) -> list[PriorStatement]:
        """Get all retained statements by a speaker on a topic."""
        return self.prior_statements.get(speaker, {}).get(topic, [])

    def record_statement(self, statement: PriorStatement) -> None:
        """Append a statement to the index; earlier entries are kept.

        The touched speaker mapping and topic list are replaced rather than
        mutated, so a state from ``clone`` never alters its source index.
        """
        by_topic = dict(self.prior_statements.get(statement.speaker_name, {}))
        by_topic[statement.topic] = by_topic.get(statement.topic, []) + [statement]
        self.prior_statements[statement.speaker_name] = by_topic

    # Contradictions

    def next_contradiction_id(self) -> str:
        """ID for the next contradiction appended to this state."""
        return f"{CONTRADICTION_PREFIX}-{len(self.contradictions) + 1:04d}"

    def get_contradiction(self, contradiction_id: str) -> Optional[Contradiction]:
        """Get a contradiction by ID."""
        for c in self.contradictions:
            if c.id == contradiction_id:
                return c
        return None

    def contradictions_against(
        self,
        witness: str,
        topics: Optional[tuple[str, ...]] = None,
        include_exploited: bool = True,
    ) -> list[Contradiction]:
        """Get contradictions for a witness, optionally limited to topics."""
        return [
            c for c in self.contradictions
            if c.witness == witness
            and (topics is None or c.topic in topics)
            and (include_exploited or not c.exploited)
        ]

    def mark_contradiction_exploited(self, contradiction_id: str) -> Optional[Contradiction]:
        """Mark a contradiction as used by counsel.

        Returns:
            The updated Contradiction, or None if the ID is unknown
        """
        for i, c in enumerate(self.contradictions):
            if c.id == contradiction_id:
                updated = replace(c, exploited=True)
                self.contradictions[i] = updated
                return updated
        return None

    # Actions

    def next_action_id(self) -> str:
        """Reserve the next action ID."""
        self.actions_issued += 1
        return format_action_id(self.actions_issued)

    def resolve_action(self, action_id: str) -> Optional[TrialAction]:
        """Remove a pending action once handled.

        Returns:
            The removed TrialAction, or None if not pending
        """
        for i, action in enumerate(self.pending_actions):
            if action.id == action_id:
                return self.pending_actions.pop(i)
        return None

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "session_id": self.session_id,
            "started_at": self.started_at.isoformat(),
            "events_processed": self.events_processed,
            "momentum_score": self.momentum_score,
            "momentum_trend": self.momentum_trend.value,
            "momentum_window": list(self.momentum_window),
            "contradictions": [c.to_dict() for c in self.contradictions],
            "pending_actions": [a.to_dict() for a in self.pending_actions],
            "witness_credibility": dict(self.witness_credibility),
            "key_admissions": [k.to_dict() for k in self.key_admissions],
            "prior_statements": {
                speaker: {
                    topic: [s.to_dict() for s in statements]
                    for topic, statements in by_topic.items()
                }
                for speaker, by_topic in self.prior_statements.items()
            },
            "surfaced_exhibits": list(self.surfaced_exhibits),
            "adverse_streaks": dict(self.adverse_streaks),
            "actions_issued": self.actions_issued,
            "current_phase": self.current_phase.value if self.current_phase else None,
            "current_witness": self.current_witness,
            "last_event_at": self.last_event_at.isoformat() if self.last_event_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrialState":
        """Create from dictionary.

        Raises:
            KeyError, ValueError, TypeError: If the data is not a valid state
        """
        events_processed = int(data["events_processed"])
        momentum_score = int(data["momentum_score"])
        if events_processed < 0:
            raise ValueError("events_processed must be non-negative")
        if not 0 <= momentum_score <= 100:
            raise ValueError(f"momentum_score out of range: {momentum_score}")

        prior_statements = {
            speaker: {
                topic: [PriorStatement.from_dict(s) for s in statements]
                for topic, statements in by_topic.items()
            }
            for speaker, by_topic in data.get("prior_statements", {}).items()
        }

        return cls(
            session_id=data["session_id"],
            started_at=datetime.fromisoformat(data["started_at"]),
            events_processed=events_processed,
            momentum_score=momentum_score,
            momentum_trend=MomentumTrend(data.get("momentum_trend", "stable")),
            momentum_window=[int(v) for v in data.get("momentum_window", [])],
            contradictions=[Contradiction.from_dict(c) for c in data.get("contradictions", [])],
            pending_actions=[TrialAction.from_dict(a) for a in data.get("pending_actions", [])],
            witness_credibility={k: int(v) for k, v in data.get("witness_credibility", {}).items()},
            key_admissions=[KeyAdmission.from_dict(k) for k in data.get("key_admissions", [])],
            prior_statements=prior_statements,
            surfaced_exhibits=list(data.get("surfaced_exhibits", [])),
            adverse_streaks={k: int(v) for k, v in data.get("adverse_streaks", {}).items()},
            actions_issued=int(data.get("actions_issued", 0)),
            current_phase=TrialPhase(data["current_phase"]) if data.get("current_phase") else None,
            current_witness=data.get("current_witness"),
            last_event_at=parse_timestamp(data["last_event_at"]) if data.get("last_event_at") else None,
        )
