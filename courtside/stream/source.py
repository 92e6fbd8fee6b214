"""Line-delimited testimony stream reader.

The stream is an append-only JSON Lines file, one testimony record per
line. Each read returns every valid event present at call time in file
order; the caller slices off what it has already processed.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import InvalidEventError, SourceUnavailableError
from ..models import TestimonyEvent
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecordWarning:
    """A skipped line in the stream."""

    line_number: int  # 1-based
    message: str

    def __str__(self) -> str:
        return f"line {self.line_number}: {self.message}"


@dataclass
class SourceReadResult:
    """Valid events and skipped-line warnings from one read."""

    events: list[TestimonyEvent] = field(default_factory=list)
    warnings: list[RecordWarning] = field(default_factory=list)

    @property
    def warning_count(self) -> int:
        """Number of skipped lines."""
        return len(self.warnings)


class EventSource:
    """Reads testimony events from a JSON Lines file."""

    def __init__(self, path: Path):
        """Initialize the source.

        Args:
            path: Path to the JSON Lines stream
        """
        self.path = Path(path)

    def exists(self) -> bool:
        """Check if the stream file is present."""
        return self.path.is_file()

    def read_all(self) -> SourceReadResult:
        """Read every valid event currently in the stream.

        Returns:
            SourceReadResult with events in file order and one warning per
            skipped line

        Raises:
            SourceUnavailableError: If the file is missing or unreadable
        """
        try:
            with open(self.path, "rb") as f:
                lines = f.readlines()
        except OSError:
            raise SourceUnavailableError(str(self.path))

        result = SourceReadResult()

        for line_number, raw in enumerate(lines, start=1):
            # Invalid UTF-8 skips only its own line
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError:
                result.warnings.append(RecordWarning(line_number, "invalid UTF-8"))
                continue
            if not line:
                continue

            # A partially written last line is expected while upstream appends
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                result.warnings.append(RecordWarning(line_number, f"invalid JSON ({e.msg})"))
                continue

            try:
                result.events.append(TestimonyEvent.from_dict(record))
            except InvalidEventError as e:
                result.warnings.append(RecordWarning(line_number, str(e)))

        logger.debug(
            f"Read {len(result.events)} events from {self.path.name} "
            f"({result.warning_count} skipped)"
        )
        return result
