"""Resumable driver around the trial engine.

The session owns the boundary I/O: it reads the event stream, slices it at
the persisted cursor, feeds each new event to the engine, and persists the
resulting state before acknowledging the event. Actions are handed to the
rendering callback only after the state that produced them is durable.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..config.settings import PersistenceConfig
from ..exceptions import SourceUnavailableError, StatePersistenceError
from ..models import Contradiction, TrialAction, TrialState
from ..engine.trial import TrialEngine
from ..stream.source import EventSource, RecordWarning
from ..stream.store import StateStore
from ..utils.logging import get_logger

logger = get_logger(__name__)

ActionHandler = Callable[[list[TrialAction], TrialState], None]


@dataclass
class PassResult:
    """Outcome of one read-and-process pass over the stream."""

    processed: int = 0
    actions: list[TrialAction] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)
    warnings: list[RecordWarning] = field(default_factory=list)  # Newly seen only
    source_available: bool = True


class TrialSession:
    """Drives a single trial session: single writer, one event at a time."""

    def __init__(
        self,
        source: EventSource,
        store: StateStore,
        trial_id: str,
        engine: Optional[TrialEngine] = None,
        persistence: Optional[PersistenceConfig] = None,
        on_actions: Optional[ActionHandler] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the session.

        Args:
            source: Testimony stream
            store: State persistence
            trial_id: Identifier of the persisted state
            engine: Trial engine (default policy if omitted)
            persistence: Save retry policy
            on_actions: Callback(actions, state) for each event's new actions
            sleep: Delay function between save retries
        """
        self.source = source
        self.store = store
        self.trial_id = trial_id
        self.engine = engine or TrialEngine()
        self.persistence = persistence or PersistenceConfig()
        self.on_actions = on_actions
        self._sleep = sleep

        self._state: Optional[TrialState] = None
        self._warned_lines: set[int] = set()
        self.warning_count = 0

    @property
    def state(self) -> TrialState:
        """Last durably persisted state."""
        if self._state is None:
            raise RuntimeError("Session not started. Call start() first.")
        return self._state

    @property
    def is_started(self) -> bool:
        """Check if the session has loaded or created its state."""
        return self._state is not None

    def start(self) -> TrialState:
        """Load persisted state, or create and persist a fresh one.

        Raises:
            CorruptStateError: If the persisted state cannot be parsed
            StatePersistenceError: If a fresh state cannot be written
        """
        state = self.store.load(self.trial_id)

        if state is None:
            state = self.engine.new_state()
            self._persist(state)
            logger.info(f"Started new trial session {state.session_id} ({self.trial_id})")
        else:
            logger.info(
                f"Resumed trial session {state.session_id} ({self.trial_id}) "
                f"at event {state.events_processed}"
            )

        self._state = state
        return state

    def _persist(self, state: TrialState) -> None:
        """Save with retries; raise once every attempt has failed."""
        attempts = max(1, self.persistence.max_retries)
        last_error: Optional[StatePersistenceError] = None

        for attempt in range(1, attempts + 1):
            try:
                self.store.save(state, self.trial_id)
                return
            except StatePersistenceError as e:
                last_error = e
                logger.warning(f"State save failed (attempt {attempt}/{attempts}): {e}")
                if attempt < attempts:
                    self._sleep(self.persistence.retry_delay)

        raise StatePersistenceError(
            f"Could not persist trial state after {attempts} attempt(s): {last_error}"
        )

    def _record_warnings(self, warnings: list[RecordWarning]) -> list[RecordWarning]:
        new_warnings = []
        for warning in warnings:
            if warning.line_number in self._warned_lines:
                continue
            self._warned_lines.add(warning.line_number)
            self.warning_count += 1
            new_warnings.append(warning)
            logger.warning(f"Skipped malformed record at {warning}")
        return new_warnings

    def poll_once(self) -> PassResult:
        """
        Read the stream and process every event past the cursor.

        Returns:
            PassResult for this pass

        Raises:
            StatePersistenceError: If a new state could not be persisted;
                the last persisted state remains authoritative
        """
        if self._state is None:
            self.start()

        result = PassResult()

        try:
            read = self.source.read_all()
        except SourceUnavailableError as e:
            logger.warning(f"{e}; will retry on next poll")
            result.source_available = False
            return result

        result.warnings = self._record_warnings(read.warnings)

        pending = read.events[self.state.events_processed:]
        if not pending:
            return result

        logger.info(f"Processing {len(pending)} new event(s) from {self.source.path.name}")

        for event in pending:
            transition = self.engine.process(self.state, event)
            if transition.rejected:
                continue

            self._persist(transition.state)
            self._state = transition.state

            result.processed += 1
            result.actions.extend(transition.actions)
            result.changes.extend(transition.changes)

            if transition.actions and self.on_actions:
                self.on_actions(transition.actions, self._state)

        logger.info(
            f"Cursor at {self.state.events_processed}; momentum "
            f"{self.state.momentum_score} ({self.state.momentum_trend.value})"
        )
        return result

    def flush(self) -> None:
        """Persist the current state (used on shutdown)."""
        if self._state is None:
            return
        self._persist(self._state)
        logger.info(f"Flushed trial state at event {self._state.events_processed}")

    def mark_exploited(self, contradiction_id: str) -> Optional[Contradiction]:
        """Mark a contradiction as used and persist immediately.

        Returns:
            Updated Contradiction, or None if the ID is unknown
        """
        updated_state = self.state.clone()
        contradiction = updated_state.mark_contradiction_exploited(contradiction_id)
        if contradiction is None:
            return None

        self._persist(updated_state)
        self._state = updated_state
        return contradiction

    def resolve_action(self, action_id: str) -> Optional[TrialAction]:
        """Remove a pending action and persist immediately.

        Returns:
            Removed TrialAction, or None if not pending
        """
        updated_state = self.state.clone()
        action = updated_state.resolve_action(action_id)
        if action is None:
            return None

        self._persist(updated_state)
        self._state = updated_state
        return action
