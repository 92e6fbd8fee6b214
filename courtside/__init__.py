"""Courtside - Live trial momentum and tactical action engine."""

__version__ = "0.1.0"

from .models import Contradiction, TestimonyEvent, TrialAction, TrialState

__all__ = [
    "__version__",
    "Contradiction",
    "TestimonyEvent",
    "TrialAction",
    "TrialState",
]
