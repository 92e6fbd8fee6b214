"""Testimony event models."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from ..exceptions import InvalidEventError


class SpeakerRole(str, Enum):
    """Role of the person speaking."""

    WITNESS = "witness"
    ATTORNEY = "attorney"
    JUDGE = "judge"


class TrialPhase(str, Enum):
    """Trial phase during which a statement was made."""

    OPENING = "opening"
    DIRECT = "direct"
    CROSS = "cross"
    REDIRECT = "redirect"
    RECROSS = "recross"
    CLOSING = "closing"
    SIDEBAR = "sidebar"

    @property
    def is_sponsoring(self) -> bool:
        """Examination by the party that called the witness."""
        return self in (TrialPhase.DIRECT, TrialPhase.REDIRECT)

    @property
    def is_examining(self) -> bool:
        """Examination by the opposing party."""
        return self in (TrialPhase.CROSS, TrialPhase.RECROSS)


class CredibilitySignal(str, Enum):
    """Upstream label for whose position a statement supports."""

    NEUTRAL = "neutral"
    HELPFUL = "helpful"
    HARMFUL = "harmful"

    def opposes(self, other: "CredibilitySignal") -> bool:
        """Check if two signals have opposite polarity."""
        return {self, other} == {CredibilitySignal.HELPFUL, CredibilitySignal.HARMFUL}


class ObjectionCategory(str, Enum):
    """Objection trigger categories supplied by upstream classification."""

    HEARSAY = "hearsay"
    SPECULATION = "speculation"
    LEADING = "leading"
    RELEVANCE = "relevance"
    COMPOUND = "compound"
    ARGUMENTATIVE = "argumentative"
    NARRATIVE = "narrative"
    ASSUMES_FACTS = "assumes_facts"
    OPINION = "opinion"


REQUIRED_FIELDS = (
    "timestamp",
    "speaker_role",
    "speaker_name",
    "phase",
    "text",
    "credibility_signal",
)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 instant; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidEventError(f"Unparseable timestamp: {value!r}")
    else:
        raise InvalidEventError(f"Timestamp must be a string, got {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_enum(enum_cls: type[Enum], data: dict[str, Any], key: str) -> Any:
    value = data[key]
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidEventError(f"Invalid {key}: {value!r}")


def _string_tuple(data: dict[str, Any], key: str) -> tuple[str, ...]:
    """Read an optional list of strings, de-duplicated in first-seen order."""
    value = data.get(key)
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        raise InvalidEventError(f"{key} must be a list of strings")

    result: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise InvalidEventError(f"{key} must contain only strings")
        item = item.strip()
        if item and item not in result:
            result.append(item)
    return tuple(result)


@dataclass(frozen=True)
class TestimonyEvent:
    """A single line of the testimony stream.

    Attributes:
        timestamp: When the statement was made
        speaker_role: witness, attorney, or judge
        speaker_name: Name of the speaker
        phase: Trial phase of the statement
        text: Transcript chunk
        credibility_signal: Upstream polarity label
        exhibit_refs: Exhibit identifiers referenced by the statement
        topic_tags: Topics the statement addresses
        objection_triggers: Objection categories flagged upstream
        prejudice_risk: Upstream flag for jury prejudice risk
    """

    timestamp: datetime
    speaker_role: SpeakerRole
    speaker_name: str
    phase: TrialPhase
    text: str
    credibility_signal: CredibilitySignal
    exhibit_refs: tuple[str, ...] = ()
    topic_tags: tuple[str, ...] = ()
    objection_triggers: tuple[ObjectionCategory, ...] = ()
    prejudice_risk: bool = False

    @property
    def is_witness(self) -> bool:
        """Check if the speaker is a testifying witness."""
        return self.speaker_role == SpeakerRole.WITNESS

    @property
    def excerpt(self) -> str:
        """First 100 characters of the statement."""
        if len(self.text) <= 100:
            return self.text
        return self.text[:100] + "..."

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "speaker_role": self.speaker_role.value,
            "speaker_name": self.speaker_name,
            "phase": self.phase.value,
            "text": self.text,
            "credibility_signal": self.credibility_signal.value,
            "exhibit_refs": list(self.exhibit_refs),
            "topic_tags": list(self.topic_tags),
        }
        if self.objection_triggers:
            result["objection_triggers"] = [t.value for t in self.objection_triggers]
        if self.prejudice_risk:
            result["prejudice_risk"] = True
        return result

    @classmethod
    def from_dict(cls, data: Any) -> "TestimonyEvent":
        """Validate and create an event from a decoded JSON record.

        Raises:
            InvalidEventError: If a required field is missing or malformed
        """
        if not isinstance(data, dict):
            raise InvalidEventError("Record must be a JSON object")

        missing = [key for key in REQUIRED_FIELDS if data.get(key) is None]
        if missing:
            raise InvalidEventError(f"Missing required field(s): {', '.join(missing)}")

        speaker_name = data["speaker_name"]
        if not isinstance(speaker_name, str) or not speaker_name.strip():
            raise InvalidEventError("speaker_name must be a non-empty string")

        text = data["text"]
        if not isinstance(text, str):
            raise InvalidEventError("text must be a string")

        triggers: list[ObjectionCategory] = []
        for name in _string_tuple(data, "objection_triggers"):
            try:
                category = ObjectionCategory(name.lower())
            except ValueError:
                continue  # Unknown categories are not actionable
            if category not in triggers:
                triggers.append(category)

        prejudice_risk = data.get("prejudice_risk", False)
        if not isinstance(prejudice_risk, bool):
            raise InvalidEventError("prejudice_risk must be a boolean")

        return cls(
            timestamp=parse_timestamp(data["timestamp"]),
            speaker_role=_parse_enum(SpeakerRole, data, "speaker_role"),
            speaker_name=speaker_name.strip(),
            phase=_parse_enum(TrialPhase, data, "phase"),
            text=text,
            credibility_signal=_parse_enum(CredibilitySignal, data, "credibility_signal"),
            exhibit_refs=_string_tuple(data, "exhibit_refs"),
            topic_tags=_string_tuple(data, "topic_tags"),
            objection_triggers=tuple(triggers),
            prejudice_risk=prejudice_risk,
        )

