"""Session driver: resumable processing and the polling loop."""

from .runner import PassResult, TrialSession
from .watcher import TrialWatcher

__all__ = [
    "PassResult",
    "TrialSession",
    "TrialWatcher",
]
