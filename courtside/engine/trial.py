"""Per-event trial state transition.

``TrialEngine.process`` is the only function that advances a TrialState.
It performs no I/O: reading the stream and persisting state happen in the
session driver.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from ..config.settings import ActionConfig, MomentumConfig, Settings
from ..exceptions import InvalidEventError
from ..models import (
    CredibilitySignal,
    KeyAdmission,
    TestimonyEvent,
    TrialAction,
    TrialState,
)
from ..utils.logging import get_logger
from .contradiction import ContradictionDetector, StatementComparator, get_comparator
from .diff import describe_transition
from .momentum import MomentumEngine
from .prioritizer import ActionPrioritizer

logger = get_logger(__name__)


@dataclass
class TransitionResult:
    """Outcome of processing one event."""

    state: TrialState
    actions: list[TrialAction] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)
    rejected: bool = False


@dataclass
class BatchResult:
    """Outcome of processing a sequence of events in memory."""

    state: TrialState
    actions: list[TrialAction] = field(default_factory=list)
    changes: list[list[str]] = field(default_factory=list)
    rejected: int = 0


class TrialEngine:
    """Composes contradiction detection, momentum and action prioritization."""

    def __init__(
        self,
        momentum_config: Optional[MomentumConfig] = None,
        action_config: Optional[ActionConfig] = None,
        comparator: Optional[StatementComparator] = None,
    ):
        """Initialize the engine.

        Args:
            momentum_config: Momentum and credibility policy
            action_config: Action prioritizer policy
            comparator: Text comparator for contradiction detection
        """
        self.momentum_config = momentum_config or MomentumConfig()
        self.detector = ContradictionDetector(comparator)
        self.momentum = MomentumEngine(self.momentum_config)
        self.prioritizer = ActionPrioritizer(action_config)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrialEngine":
        """Build an engine from application settings."""
        return cls(
            momentum_config=settings.momentum,
            action_config=settings.actions,
            comparator=get_comparator(settings.detection.text_comparator),
        )

    def new_state(self) -> TrialState:
        """Create a fresh session state at the configured baseline."""
        return TrialState.create(baseline=self.momentum_config.baseline)

    def process(
        self,
        state: TrialState,
        event: Union[TestimonyEvent, dict[str, Any]],
    ) -> TransitionResult:
        """
        Advance the state by exactly one event.

        The input state is not modified. An invalid raw record is rejected
        and the input state is returned unchanged.

        Args:
            state: Current state
            event: Validated event or raw decoded record

        Returns:
            TransitionResult with the new state, new actions and change
            descriptions
        """
        if not isinstance(event, TestimonyEvent):
            try:
                event = TestimonyEvent.from_dict(event)
            except InvalidEventError as e:
                logger.warning(f"Rejected invalid event: {e}")
                return TransitionResult(
                    state=state,
                    changes=[f"Rejected invalid event: {e}"],
                    rejected=True,
                )

        new_state = state.clone()
        event_index = new_state.events_processed

        contradictions = self.detector.detect(new_state, event, event_index)
        contradicted = self.momentum.stands_contradicted(new_state, event, contradictions)

        update = self.momentum.apply(new_state, event, contradictions, contradicted)
        self.momentum.update_credibility(new_state, event, contradictions, contradicted)

        new_state.current_phase = event.phase
        if event.is_witness:
            new_state.current_witness = event.speaker_name
        new_state.last_event_at = event.timestamp

        actions = self.prioritizer.prioritize(new_state, event, event_index, contradictions)

        new_state.events_processed += 1

        if event.credibility_signal != CredibilitySignal.NEUTRAL and (
            abs(update.impact) >= self.momentum_config.significant_threshold or contradictions
        ):
            new_state.key_admissions.append(KeyAdmission(
                event_index=event_index,
                timestamp=event.timestamp,
                speaker_name=event.speaker_name,
                credibility_signal=event.credibility_signal,
                topic_tags=list(event.topic_tags),
                excerpt=event.excerpt,
                momentum_delta=update.impact,
            ))

        changes = describe_transition(state, new_state, actions)

        logger.debug(
            f"Event {event_index} ({event.speaker_name}, {event.phase.value}): "
            f"momentum {update.previous_score} -> {update.score}, "
            f"{len(contradictions)} contradiction(s), {len(actions)} action(s)"
        )

        return TransitionResult(state=new_state, actions=actions, changes=changes)

    def process_all(
        self,
        state: TrialState,
        events: Iterable[Union[TestimonyEvent, dict[str, Any]]],
    ) -> BatchResult:
        """Process events in order without persistence (replay and analysis)."""
        result = BatchResult(state=state)
        for event in events:
            transition = self.process(result.state, event)
            if transition.rejected:
                result.rejected += 1
                continue
            result.state = transition.state
            result.actions.extend(transition.actions)
            result.changes.append(transition.changes)
        return result
