"""Periodic process-table polling for psaux."""

import logging
import threading
from dataclasses import dataclass
from queue import Queue
from typing import Any

from psaux.acquire import obtain_parsed, obtain_raw
from psaux.exceptions import AcquisitionError

_logger = logging.getLogger(__name__)

INFO = "info"
ERROR = "error"

MIN_INTERVAL = 0.01


@dataclass(slots=True, frozen=True)
class PollEvent:
    """A published poll result: ``info`` with the records, or ``error``."""

    name: str
    payload: Any


class _Schedule:
    """One started repeating poll with its own cancel flag."""

    __slots__ = ("parsed", "interval", "cancelled", "thread")

    def __init__(self, parsed: bool, interval: float) -> None:
        self.parsed = parsed
        self.interval = interval
        self.cancelled = threading.Event()
        self.thread: threading.Thread | None = None


class Poller:
    """
    Poller that obtains process information at a fixed interval.

    Each schedule runs in its own daemon thread and pushes PollEvents to a
    thread-safe Queue. At most one schedule is active; starting again
    cancels the previous one. A result that completes after its schedule
    was cancelled is dropped rather than published.
    """

    def __init__(
        self,
        update_queue: Queue[PollEvent],
        interval: float = 20.0,
        parsed: bool = True,
    ) -> None:
        """
        Initialize the Poller.

        Args:
            update_queue: Thread-safe queue to push events to.
            interval: Seconds between polls. Default 20.0s.
            parsed: Publish ProcessRecords if True, raw ps lines otherwise.
        """
        self._queue = update_queue
        self._interval = max(MIN_INTERVAL, interval)
        self._parsed = parsed
        self._lock = threading.Lock()
        self._schedule: _Schedule | None = None

    @property
    def interval(self) -> float:
        """Get the default poll interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the default poll interval, used by the next start()."""
        self._interval = max(MIN_INTERVAL, value)

    @property
    def parsed(self) -> bool:
        return self._parsed

    @property
    def is_running(self) -> bool:
        """Check if a schedule is active."""
        schedule = self._schedule
        return schedule is not None and schedule.thread is not None and schedule.thread.is_alive()

    def start(self, parsed: bool | None = None, interval: float | None = None) -> None:
        """
        Start polling, replacing any schedule that is already active.

        Args:
            parsed: Overrides the default set at construction.
            interval: Overrides the default set at construction (seconds).
        """
        schedule = _Schedule(
            parsed=self._parsed if parsed is None else parsed,
            interval=self._interval if interval is None else max(MIN_INTERVAL, interval),
        )
        schedule.thread = threading.Thread(
            target=self._poll_loop,
            args=(schedule,),
            daemon=True,
            name="Poller",
        )

        with self._lock:
            previous = self._schedule
            if previous is not None:
                previous.cancelled.set()
            self._schedule = schedule
            schedule.thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop polling.

        A child process already running is not terminated, but its result
        will not be published.

        Args:
            timeout: How long to wait for the polling thread to stop (seconds).
        """
        with self._lock:
            schedule = self._schedule
            self._schedule = None

        if schedule is None:
            return
        schedule.cancelled.set()
        if schedule.thread is not None and schedule.thread is not threading.current_thread():
            schedule.thread.join(timeout=timeout)

    def _poll_loop(self, schedule: _Schedule) -> None:
        """Polling loop for one schedule, running in its own thread."""
        # Event.wait returns True once cancelled
        while not schedule.cancelled.wait(timeout=schedule.interval):
            event = self._acquire(schedule.parsed)
            self._publish(schedule, event)

    def _acquire(self, parsed: bool) -> PollEvent:
        """Obtain one snapshot, turning failures into an error event."""
        try:
            payload = obtain_parsed() if parsed else obtain_raw()
        except AcquisitionError as e:
            _logger.warning("Process acquisition failed: %s", e)
            return PollEvent(ERROR, e)
        except Exception as e:
            _logger.exception("Unexpected error while polling processes")
            return PollEvent(ERROR, e)
        return PollEvent(INFO, payload)

    def _publish(self, schedule: _Schedule, event: PollEvent) -> None:
        """Push an event unless its schedule was cancelled in the meantime."""
        with self._lock:
            if schedule.cancelled.is_set() or schedule is not self._schedule:
                _logger.debug("Dropping %s result of a cancelled schedule", event.name)
                return
            self._queue.put(event)
