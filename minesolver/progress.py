"""Rate-limited progress reporting and cooperative cancellation."""

import logging
import queue
import threading
import time
from typing import Callable, Dict, List, Optional

from .errors import SolveCancelled
from .utils import Coord

logger = logging.getLogger(__name__)

DEFAULT_REPORT_INTERVAL = 0.1


class ProgressEvent:
    """A human-readable progress message with optional per-square labels."""

    def __init__(
        self, message: str, annotations: Optional[Dict[Coord, str]] = None
    ) -> None:
        self.message: str = message
        self.annotations: Dict[Coord, str] = dict(annotations or {})

    def __repr__(self) -> str:
        return f"ProgressEvent({self.message!r}, {len(self.annotations)} annotations)"


class ProgressChannel:
    """
    Channel passed into a solve to observe its progress and to cancel it.

    The solver calls checkpoint() from its inner loops. At most once per
    `interval` seconds a checkpoint checks the cancellation flag and, if a
    supplier is given, enqueues a fresh event. Cancellation latency is thus
    bounded by the interval. Events are put on an unbounded queue, so the
    solver never blocks on a slow consumer.
    """

    def __init__(
        self,
        interval: float = DEFAULT_REPORT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must be non-negative.")
        self.interval: float = interval
        self._clock = clock
        self._events: "queue.Queue[ProgressEvent]" = queue.Queue()
        self._cancelled = threading.Event()
        self._last_report: Optional[float] = None
        self.checkpoints: int = 0

    def cancel(self) -> None:
        """Request cancellation; honoured at the next due checkpoint."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def checkpoint(self, supplier: Optional[Callable[[], ProgressEvent]] = None) -> None:
        """
        Rate-limited progress report and cancellation check.

        Raises:
            SolveCancelled: If cancellation was requested and the checkpoint
                is due.
        """
        self.checkpoints += 1
        now = self._clock()
        if self._last_report is not None and now - self._last_report < self.interval:
            return

        self._last_report = now
        if self._cancelled.is_set():
            raise SolveCancelled("Solve was cancelled.")
        if supplier is not None:
            self._put(supplier())

    def publish(self, event: ProgressEvent) -> None:
        """Emit an event immediately, bypassing the rate limit."""
        self._put(event)

    def drain(self) -> List[ProgressEvent]:
        """Remove and return every event queued so far."""
        events: List[ProgressEvent] = []
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    def _put(self, event: ProgressEvent) -> None:
        logger.debug("progress: %s", event.message)
        self._events.put_nowait(event)


class _SilentChannel(ProgressChannel):
    """Channel used when the caller passes none; never reports or cancels."""

    def checkpoint(self, supplier: Optional[Callable[[], ProgressEvent]] = None) -> None:
        return None

    def publish(self, event: ProgressEvent) -> None:
        return None


def ensure_channel(channel: Optional[ProgressChannel]) -> ProgressChannel:
    return channel if channel is not None else _SilentChannel()
