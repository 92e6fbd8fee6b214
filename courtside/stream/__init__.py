"""Event stream and state persistence."""

from .source import EventSource, RecordWarning, SourceReadResult
from .store import STATE_SUFFIX, StateStore

__all__ = [
    "EventSource",
    "RecordWarning",
    "SourceReadResult",
    "STATE_SUFFIX",
    "StateStore",
]
