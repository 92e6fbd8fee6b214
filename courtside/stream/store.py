"""Durable storage for trial state.

Each trial session is a single JSON document:
    state_dir/<trial_id>.state.json

Writes go to a temporary file in the same directory which is then renamed
over the target, so a reader never observes a partially written state.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..exceptions import CorruptStateError, InvalidEventError, StatePersistenceError
from ..models import TrialState
from ..utils.logging import get_logger

logger = get_logger(__name__)

# State file suffix
STATE_SUFFIX = ".state.json"


class StateStore:
    """Loads and atomically saves TrialState documents."""

    def __init__(self, state_dir: Path):
        """Initialize the store.

        Args:
            state_dir: Directory holding state files
        """
        self.state_dir = Path(state_dir)

    def path_for(self, trial_id: str) -> Path:
        """Get path to the state file for a trial."""
        return self.state_dir / f"{trial_id}{STATE_SUFFIX}"

    def exists(self, trial_id: str) -> bool:
        """Check if a persisted state exists."""
        return self.path_for(trial_id).exists()

    def load(self, trial_id: str) -> Optional[TrialState]:
        """Load the persisted state for a trial.

        Returns:
            TrialState, or None if no state has been persisted

        Raises:
            CorruptStateError: If the file exists but is not a valid state
        """
        path = self.path_for(trial_id)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptStateError(str(path), f"invalid JSON: {e.msg}")
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptStateError(str(path), str(e))

        if not isinstance(data, dict):
            raise CorruptStateError(str(path), "document is not an object")

        try:
            state = TrialState.from_dict(data)
        except (KeyError, ValueError, TypeError, AttributeError, InvalidEventError) as e:
            raise CorruptStateError(str(path), f"{type(e).__name__}: {e}")

        logger.debug(f"Loaded state for {trial_id} at cursor {state.events_processed}")
        return state

    def save(self, state: TrialState, trial_id: str) -> Path:
        """Atomically write the state for a trial.

        Returns:
            Path to the written state file

        Raises:
            StatePersistenceError: If the write did not complete
        """
        path = self.path_for(trial_id)
        temp_path: Optional[str] = None

        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)

            fd, temp_path = tempfile.mkstemp(
                dir=self.state_dir,
                prefix=f".{trial_id}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, path)
            temp_path = None

        except OSError as e:
            raise StatePersistenceError(f"Failed to write {path}: {e}")

        finally:
            if temp_path is not None:
                try:
                    os.unlink(temp_path)
                except OSError:
                    logger.warning(f"Could not remove temporary file {temp_path}")

        return path

    def delete(self, trial_id: str) -> bool:
        """Delete a persisted state (starts a new session on next run).

        Returns:
            True if deleted, False if not found
        """
        path = self.path_for(trial_id)
        if not path.exists():
            return False

        path.unlink()
        logger.info(f"Deleted trial state {path}")
        return True
