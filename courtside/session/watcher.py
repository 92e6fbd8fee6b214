"""Polling loop for a live testimony stream."""

import threading
from typing import Callable, Optional

from ..utils.logging import get_logger
from .runner import PassResult, TrialSession

logger = get_logger(__name__)


class TrialWatcher:
    """
    Polls the testimony stream and feeds new events to the session.

    Runs in the calling thread. The only suspension point is the wait
    between passes, which ``stop()`` interrupts; on a clean stop the
    current state is flushed before ``run()`` returns.
    """

    def __init__(
        self,
        session: TrialSession,
        poll_interval: float = 2.0,
        on_pass: Optional[Callable[[PassResult], None]] = None,
    ) -> None:
        """
        Initialize the watcher.

        Args:
            session: TrialSession to drive.
            poll_interval: Seconds between stream reads.
            on_pass: Callback after every pass.
        """
        self.session = session
        self.poll_interval = poll_interval
        self.on_pass = on_pass

        self._stop_event = threading.Event()
        self._running = False
        self.passes = 0

    def stop(self) -> None:
        """Request shutdown; safe to call from a signal handler."""
        self._stop_event.set()

    def is_running(self) -> bool:
        """Check if the loop is running."""
        return self._running

    def run(self) -> int:
        """
        Poll until stopped.

        Returns:
            Number of completed passes

        Raises:
            CorruptStateError: If the persisted state cannot be loaded
            StatePersistenceError: If a state write keeps failing
        """
        if not self.session.is_started:
            self.session.start()

        self._running = True
        logger.info(
            f"Watching {self.session.source.path} every {self.poll_interval:.1f}s"
        )

        try:
            while not self._stop_event.is_set():
                result = self.session.poll_once()
                self.passes += 1

                if self.on_pass:
                    self.on_pass(result)

                self._stop_event.wait(self.poll_interval)
        finally:
            self._running = False

        self.session.flush()
        logger.info("Stopped trial watcher")
        return self.passes
