"""Contradiction detection against a witness's prior statements.

The detector owns the contract (same speaker, same topic, conflicting
statements). Text comparison is pluggable through ``StatementComparator``
so a stricter semantic comparator can be substituted without touching the
state machine.
"""

import re
from datetime import date, datetime
from typing import Optional, Protocol

from ..exceptions import ConfigError
from ..models import (
    Contradiction,
    ContradictionBasis,
    ImpeachmentValue,
    PriorStatement,
    TestimonyEvent,
    TrialPhase,
    TrialState,
)


class StatementComparator(Protocol):
    """Decides whether an incoming statement conflicts with a prior one."""

    def conflicts(self, prior: PriorStatement, event: TestimonyEvent) -> bool:
        ...


class PolarityOnlyComparator:
    """Comparator that never flags text; only polarity flips count."""

    def conflicts(self, prior: PriorStatement, event: TestimonyEvent) -> bool:
        return False


# Lack-of-recall phrases
RECALL_DENIALS = (
    "don't recall", "do not recall", "don't remember", "do not remember",
    "cannot recall", "can't recall", "can't remember", "no recollection",
)

NEGATIONS = ("not", "never", "didn't", "did not", "wasn't", "was not")


class NegationComparator:
    """Heuristic text comparator.

    Flags a statement when the witness now claims lack of recall about a
    topic they previously spoke to substantively, or when the statement
    negates a two or three word phrase from the prior one ("I signed the
    contract" vs "I never signed the contract").
    """

    def __init__(self, min_phrase_length: int = 6):
        self.min_phrase_length = min_phrase_length

    def conflicts(self, prior: PriorStatement, event: TestimonyEvent) -> bool:
        current = _normalize(event.text)
        previous = _normalize(prior.text)

        if not current or not previous:
            return False

        if _has_recall_denial(current) and not _has_recall_denial(previous):
            return True

        for phrase in _key_phrases(previous, self.min_phrase_length):
            if _is_negated(phrase, previous):
                continue
            if _is_negated(phrase, current):
                return True

        return False


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", re.sub(r"[^\w\s']", " ", text.lower())).strip()


def _has_recall_denial(text: str) -> bool:
    return any(phrase in text for phrase in RECALL_DENIALS)


def _is_negated(phrase: str, text: str) -> bool:
    return any(f"{negation} {phrase}" in text for negation in NEGATIONS)


def _key_phrases(text: str, min_length: int) -> list[str]:
    """Extract two and three word phrases from a statement."""
    words = text.split()
    phrases = []
    for i in range(len(words) - 1):
        phrases.append(f"{words[i]} {words[i + 1]}")
        if i < len(words) - 2:
            phrases.append(f"{words[i]} {words[i + 1]} {words[i + 2]}")
    return [p for p in phrases if len(p) >= min_length]


# Dollar figures: "$12,500", "$40.00", "12,500 dollars", "300 USD"
AMOUNT_PATTERN = re.compile(
    r"\$\s?\d[\d,]*(?:\.\d{2})?|\b\d+(?:,\d{3})*(?:\.\d{2})?\s*(?:dollars|usd)\b",
    re.IGNORECASE,
)

MONTHS = (
    "january|february|march|april|may|june|july|august|september|october|november|december"
    "|jan|feb|mar|apr|jun|jul|aug|sep|sept|oct|nov|dec"
)

# "3/14/2024", "03/14/24", "March 14, 2024", "Mar. 14th 2024"
DATE_PATTERN = re.compile(
    rf"\b\d{{1,2}}/\d{{1,2}}/\d{{2,4}}\b"
    rf"|\b(?:{MONTHS})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}\b",
    re.IGNORECASE,
)

DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%B %d %Y", "%b %d %Y")


def parse_amount(text: str) -> Optional[float]:
    """Parse a matched dollar figure, or None if it has no digits."""
    cleaned = re.sub(r"(?i)dollars|usd|[$,\s]", "", text)
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_date(text: str) -> Optional[date]:
    """Parse a matched date, or None if it is not a real calendar date."""
    cleaned = re.sub(r"(?<=\d)(st|nd|rd|th)\b", "", text, flags=re.IGNORECASE)
    cleaned = re.sub(r"[.,]", "", cleaned)
    cleaned = re.sub(r"(?i)\bsept\b", "Sep", " ".join(cleaned.split()))
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def _first_amount(text: str) -> Optional[float]:
    for match in AMOUNT_PATTERN.finditer(text):
        amount = parse_amount(match.group())
        if amount is not None:
            return amount
    return None


def _first_date(text: str) -> Optional[date]:
    for match in DATE_PATTERN.finditer(text):
        parsed = parse_date(match.group())
        if parsed is not None:
            return parsed
    return None


class AmountDateComparator:
    """Flags statements whose figures or dates disagree with the prior one.

    Compares the first dollar amount in each statement and flags a relative
    difference above ``amount_tolerance``. Compares the first calendar date
    in each statement and flags any difference. Dates in different formats
    ("3/14/2024", "March 14, 2024") compare equal when they name the same day.
    """

    def __init__(self, amount_tolerance: float = 0.2):
        self.amount_tolerance = amount_tolerance

    def amount_discrepancy(self, prior: PriorStatement, event: TestimonyEvent) -> Optional[float]:
        """Relative difference between the two amounts, if both are present."""
        before = _first_amount(prior.text)
        after = _first_amount(event.text)
        if before is None or after is None or before == 0:
            return None
        return abs(after - before) / before

    def date_discrepancy(self, prior: PriorStatement, event: TestimonyEvent) -> bool:
        before = _first_date(prior.text)
        after = _first_date(event.text)
        return before is not None and after is not None and before != after

    def conflicts(self, prior: PriorStatement, event: TestimonyEvent) -> bool:
        difference = self.amount_discrepancy(prior, event)
        if difference is not None and difference > self.amount_tolerance:
            return True
        return self.date_discrepancy(prior, event)


COMPARATORS = {
    "none": PolarityOnlyComparator,
    "negation": NegationComparator,
    "amount_date": AmountDateComparator,
}


def get_comparator(name: str) -> StatementComparator:
    """Build a comparator by configured name."""
    try:
        return COMPARATORS[name.lower()]()
    except KeyError:
        raise ConfigError(
            f"Unknown text comparator '{name}' (expected one of: {', '.join(COMPARATORS)})"
        )


def impeachment_value_for(
    phase_a: TrialPhase,
    phase_b: TrialPhase,
    basis: ContradictionBasis,
) -> ImpeachmentValue:
    """Rank a contradiction by phase distance and basis.

    A conflict spanning the sponsoring and examining sides (direct vs
    cross) is the classic impeachment setup and ranks highest; any other
    pair of different phases ranks medium; a single phase ranks low. A
    conflict found only by text comparison drops one tier.
    """
    if phase_a == phase_b:
        value = ImpeachmentValue.LOW
    elif (phase_a.is_sponsoring and phase_b.is_examining) or (
        phase_a.is_examining and phase_b.is_sponsoring
    ):
        value = ImpeachmentValue.HIGH
    else:
        value = ImpeachmentValue.MEDIUM

    if basis == ContradictionBasis.TEXT:
        value = value.lowered()
    return value


def statement_from_event(event: TestimonyEvent, event_index: int, topic: str) -> PriorStatement:
    """Build the index entry for one topic of an event."""
    return PriorStatement(
        event_index=event_index,
        speaker_name=event.speaker_name,
        topic=topic,
        text=event.text,
        phase=event.phase,
        timestamp=event.timestamp,
        credibility_signal=event.credibility_signal,
    )


class ContradictionDetector:
    """Compares incoming witness statements with the prior statement index."""

    def __init__(self, comparator: Optional[StatementComparator] = None):
        """Initialize the detector.

        Args:
            comparator: Text comparator (default: polarity only)
        """
        self.comparator = comparator or PolarityOnlyComparator()

    def _basis(self, prior: PriorStatement, event: TestimonyEvent) -> Optional[ContradictionBasis]:
        if prior.credibility_signal.opposes(event.credibility_signal):
            return ContradictionBasis.POLARITY
        if self.comparator.conflicts(prior, event):
            return ContradictionBasis.TEXT
        return None

    def detect(
        self,
        state: TrialState,
        event: TestimonyEvent,
        event_index: int,
    ) -> list[Contradiction]:
        """Detect contradictions for an event and update the index.

        Appends new contradictions to ``state.contradictions`` and records
        the event's statements in ``state.prior_statements``. Non-witness
        speakers are neither compared nor indexed.

        Args:
            state: State to update (mutated)
            event: Incoming event
            event_index: Stream position of the event

        Returns:
            Newly created contradictions, at most one per topic
        """
        if not event.is_witness:
            return []

        found: list[Contradiction] = []

        for topic in event.topic_tags:
            best: Optional[tuple[PriorStatement, ContradictionBasis]] = None

            for prior in state.statements_for(event.speaker_name, topic):
                basis = self._basis(prior, event)
                if basis is None:
                    continue
                # Most recent by timestamp, then stream order
                if best is None or (prior.timestamp, prior.event_index) >= (
                    best[0].timestamp,
                    best[0].event_index,
                ):
                    best = (prior, basis)

            current = statement_from_event(event, event_index, topic)

            if best is not None:
                prior, basis = best
                contradiction = Contradiction(
                    id=state.next_contradiction_id(),
                    topic=topic,
                    detected_at=event.timestamp,
                    witness=event.speaker_name,
                    statement_a=current,
                    statement_b=prior,
                    impeachment_value=impeachment_value_for(current.phase, prior.phase, basis),
                    basis=basis,
                )
                state.contradictions.append(contradiction)
                found.append(contradiction)

            state.record_statement(current)

        return found
