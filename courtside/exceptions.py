"""Exceptions for the Courtside trial engine."""


class CourtsideError(Exception):
    """Base exception for engine operations."""

    pass


class InvalidEventError(CourtsideError):
    """Raised when a testimony record fails schema validation."""

    def __init__(self, message: str = "Invalid testimony event."):
        super().__init__(message)


class SourceUnavailableError(CourtsideError):
    """Raised when the event stream cannot be read at poll time."""

    def __init__(self, path: str = ""):
        message = f"Event source not available: {path}" if path else "Event source not available."
        super().__init__(message)


class CorruptStateError(CourtsideError):
    """Raised when a persisted trial state exists but cannot be parsed."""

    def __init__(self, path: str = "", reason: str = ""):
        message = f"Persisted trial state is corrupt: {path}" if path else "Persisted trial state is corrupt."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class StatePersistenceError(CourtsideError):
    """Raised when the trial state could not be written durably."""

    def __init__(self, message: str = "Failed to persist trial state."):
        super().__init__(message)


class ConfigError(CourtsideError):
    """Raised when a policy file cannot be read or applied."""

    def __init__(self, message: str = "Invalid configuration."):
        super().__init__(message)
