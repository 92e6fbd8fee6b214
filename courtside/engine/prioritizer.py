"""Maps engine signals to prioritized tactical actions."""

from typing import Optional

from ..config.settings import ActionConfig
from ..models import (
    ActionPriority,
    ActionType,
    Contradiction,
    CredibilitySignal,
    ImpeachmentValue,
    TestimonyEvent,
    TrialAction,
    TrialState,
)
from .objections import OBJECTION_RULES, classify_objection_triggers, risk_tradeoff_for

IMPEACHMENT_PRIORITY = {
    ImpeachmentValue.HIGH: ActionPriority.P0,
    ImpeachmentValue.MEDIUM: ActionPriority.P1,
    ImpeachmentValue.LOW: ActionPriority.P2,
}

PRIORITY_RANK = {
    ActionPriority.P0: 0,
    ActionPriority.P1: 1,
    ActionPriority.P2: 2,
}


def truncate(text: str, length: int) -> str:
    """Shorten text to ``length`` characters with an ellipsis."""
    if len(text) <= length:
        return text
    return text[:length] + "..."


def last_name(name: str) -> str:
    """Get the last word of a name for courtroom address."""
    parts = name.split()
    return parts[-1] if parts else name


class ActionPrioritizer:
    """Emits TrialActions for one processed event."""

    def __init__(self, config: Optional[ActionConfig] = None):
        self.config = config or ActionConfig()

    def prioritize(
        self,
        state: TrialState,
        event: TestimonyEvent,
        event_index: int,
        new_contradictions: list[Contradiction],
    ) -> list[TrialAction]:
        """Generate actions and append them to ``state.pending_actions``.

        Args:
            state: State to update (mutated)
            event: Event being processed
            event_index: Stream position of the event
            new_contradictions: Contradictions this event created

        Returns:
            Newly emitted actions, most urgent first. Within a priority tier
            they keep rule order.
        """
        actions: list[TrialAction] = []

        for contradiction in new_contradictions:
            actions.append(self._impeachment(contradiction, event_index))

        actions.extend(self._objections(event, event_index))
        actions.extend(self._exhibits(state, event, event_index))

        reframe = self._reframe(state, event, event_index, new_contradictions)
        if reframe:
            actions.append(reframe)

        actions.extend(self._concessions(state, event, event_index))

        if event.prejudice_risk:
            actions.append(self._sidebar(event, event_index))

        # IDs are numbered after the sort so they follow batch order
        actions.sort(key=lambda a: PRIORITY_RANK[a.priority])
        for action in actions:
            action.id = state.next_action_id()

        state.pending_actions.extend(actions)
        return actions

    def _impeachment(
        self,
        contradiction: Contradiction,
        event_index: int,
    ) -> TrialAction:
        value = contradiction.impeachment_value
        earlier = contradiction.statement_b
        later = contradiction.statement_a

        return TrialAction(
            id="",
            priority=IMPEACHMENT_PRIORITY[value],
            type=ActionType.IMPEACHMENT,
            target=contradiction.witness,
            suggested_language=(
                f"{last_name(contradiction.witness)}, on {earlier.phase.value} you testified "
                f"\"{truncate(earlier.text, 60)}\". You just told this jury "
                f"\"{truncate(later.text, 60)}\". Which of those statements is true?"
            ),
            rationale=(
                f"{contradiction.witness} contradicted their own testimony on "
                f"'{contradiction.topic}' ({contradiction.phase_span}, "
                f"{value.value} impeachment value)"
            ),
            evidence_refs=[],
            risk_tradeoff=(
                "May damage rapport with jury if handled aggressively; "
                "witness may offer a plausible explanation"
            ),
            confidence=self.config.impeachment_confidence.get(value.value, 0.5),
            source_event=event_index,
        )

    def _objections(
        self,
        event: TestimonyEvent,
        event_index: int,
    ) -> list[TrialAction]:
        if event.credibility_signal != CredibilitySignal.HARMFUL or event.exhibit_refs:
            return []

        triggers = event.objection_triggers
        if not triggers and self.config.classify_objections:
            triggers = classify_objection_triggers(event.text, event.phase)

        actions = []
        for category in triggers:
            rule = OBJECTION_RULES[category]
            actions.append(TrialAction(
                id="",
                priority=ActionPriority.P1,
                type=ActionType.OBJECTION,
                target=rule.basis,
                suggested_language=rule.suggested_language,
                rationale=(
                    f"Harmful testimony from {event.speaker_name} shows a potential "
                    f"{category.value} issue with no supporting exhibit"
                ),
                evidence_refs=[],
                risk_tradeoff=risk_tradeoff_for(rule),
                confidence=self.config.objection_confidence,
                source_event=event_index,
            ))
        return actions

    def _exhibits(
        self,
        state: TrialState,
        event: TestimonyEvent,
        event_index: int,
    ) -> list[TrialAction]:
        if event.credibility_signal != CredibilitySignal.HELPFUL:
            return []

        actions = []
        for exhibit in event.exhibit_refs:
            if exhibit in state.surfaced_exhibits:
                continue
            state.surfaced_exhibits.append(exhibit)
            actions.append(TrialAction(
                id="",
                priority=ActionPriority.P1,
                type=ActionType.EXHIBIT,
                target=exhibit,
                suggested_language=(
                    f"Let me show the witness what has been marked as {exhibit}. "
                    f"Do you recognize this document?"
                ),
                rationale=(
                    f"{event.speaker_name} gave helpful testimony tied to {exhibit}; "
                    f"publish it while the point is fresh"
                ),
                evidence_refs=[exhibit],
                risk_tradeoff="Confirm foundation and admissibility before publishing to the jury",
                confidence=0.7,
                source_event=event_index,
            ))
        return actions

    def _is_strongly_helpful(self, state: TrialState, event: TestimonyEvent) -> bool:
        if event.phase.is_examining:
            return True

        for topic in event.topic_tags:
            statements = state.statements_for(event.speaker_name, topic)
            helpful = sum(1 for s in statements if s.credibility_signal == CredibilitySignal.HELPFUL)
            harmful = sum(1 for s in statements if s.credibility_signal == CredibilitySignal.HARMFUL)
            if harmful == 0 and helpful >= self.config.reframe_min_consistent:
                return True
        return False

    def _reframe(
        self,
        state: TrialState,
        event: TestimonyEvent,
        event_index: int,
        new_contradictions: list[Contradiction],
    ) -> Optional[TrialAction]:
        if (
            event.credibility_signal != CredibilitySignal.HELPFUL
            or not event.is_witness
            or new_contradictions
            or not self._is_strongly_helpful(state, event)
        ):
            return None

        topics = ", ".join(event.topic_tags) or "this point"
        return TrialAction(
            id="",
            priority=ActionPriority.P2,
            type=ActionType.REFRAME,
            target=event.speaker_name,
            suggested_language=(
                f"Lock in for closing: {event.speaker_name} confirmed "
                f"\"{truncate(event.text, 80)}\" on {topics}."
            ),
            rationale="Strong, uncontested helpful testimony; anchor the narrative around it",
            evidence_refs=list(event.exhibit_refs),
            risk_tradeoff="Over-emphasis may invite rehabilitation on redirect",
            confidence=0.6,
            source_event=event_index,
        )

    def _concessions(
        self,
        state: TrialState,
        event: TestimonyEvent,
        event_index: int,
    ) -> list[TrialAction]:
        actions = []

        for topic in event.topic_tags:
            if event.credibility_signal == CredibilitySignal.HELPFUL:
                state.adverse_streaks.pop(topic, None)
                continue
            if event.credibility_signal != CredibilitySignal.HARMFUL:
                continue

            streak = state.adverse_streaks.get(topic, 0) + 1
            state.adverse_streaks[topic] = streak

            if streak == self.config.concession_streak:
                actions.append(TrialAction(
                    id="",
                    priority=ActionPriority.P2,
                    type=ActionType.CONCESSION,
                    target=topic,
                    suggested_language=(
                        f"Consider conceding the point on '{topic}' and pivoting "
                        f"to stronger ground."
                    ),
                    rationale=(
                        f"{streak} consecutive harmful statements on '{topic}'; "
                        f"continuing to contest it costs credibility"
                    ),
                    evidence_refs=[],
                    risk_tradeoff="A concession cannot be withdrawn; confirm it does not reach an element of the claim",
                    confidence=0.5,
                    source_event=event_index,
                ))
        return actions

    def _sidebar(
        self,
        event: TestimonyEvent,
        event_index: int,
    ) -> TrialAction:
        return TrialAction(
            id="",
            priority=ActionPriority.P1,
            type=ActionType.SIDEBAR_REQUEST,
            target="court",
            suggested_language="Your Honor, may we approach the bench?",
            rationale=(
                f"Potential jury prejudice from {event.speaker_name}'s statement; "
                f"address it outside the jury's presence"
            ),
            evidence_refs=list(event.exhibit_refs),
            risk_tradeoff="Sidebars interrupt flow but may be necessary for prejudice issues",
            confidence=0.7,
            source_event=event_index,
        )
