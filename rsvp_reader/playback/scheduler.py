"""Cancellable repeating timers behind a minimal scheduler interface.

WHY: The playback controller needs "call me every N ms until I say stop"
and nothing else. Hiding the clock behind an interface lets tests run in
virtual time (deterministic, instant) and lets hosts use real threads or
whatever timer their framework owns.

HOW: Scheduler is an ABC with one method, schedule_repeating(), that
returns a CancelHandle. Two implementations ship:
  VirtualScheduler   — a manual clock; advance(ms) fires due ticks in order
  ThreadingScheduler — a chain of daemon threading.Timer objects per handle,
                       optionally serialized with the host through a lock

RULES:
- cancel() is idempotent
- A cancelled handle never invokes its callback again, even if the fire
  time has already passed (the flag is checked at fire time)
- Intervals below 1 ms are raised to 1 ms
- ThreadingScheduler runs each tick while holding the optional lock and
  re-checks cancellation after acquiring it, so a host that cancels while
  holding the same lock never sees a late tick
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class CancelHandle:
    """Handle for one scheduled repeating timer."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._on_cancel()

    def _on_cancel(self) -> None:
        """Hook for subclasses that own an underlying timer."""


class Scheduler(ABC):
    """Source of repeating ticks for a playback controller.

    To plug in a host's own timer:
    1. Subclass Scheduler
    2. Implement schedule_repeating() returning a CancelHandle subclass
    3. Make sure callbacks stop as soon as the handle is cancelled
    """

    @abstractmethod
    def schedule_repeating(
        self, interval_ms: int, callback: TickCallback
    ) -> CancelHandle:
        """Call ``callback`` every ``interval_ms`` until the handle is cancelled.

        The first call happens one full interval after scheduling.
        """


# ---------------------------------------------------------------------------
# Virtual time
# ---------------------------------------------------------------------------


class _VirtualTimer(CancelHandle):
    def __init__(self, interval_ms: int, callback: TickCallback, next_fire_ms: int) -> None:
        super().__init__()
        self.interval_ms = interval_ms
        self.callback = callback
        self.next_fire_ms = next_fire_ms


class VirtualScheduler(Scheduler):
    """Deterministic scheduler driven by explicit advance() calls.

    WHY: Timing rules (e.g. a speed change restarts the interval from the
    moment of the change) must be testable exactly, without sleeping.

    HOW: Timers live in a heap ordered by (next fire time, creation order).
    advance() pops due timers one at a time, moves the clock to each fire
    time, and re-queues the timer one interval later. Callbacks may cancel
    or create timers; both are honoured within the same advance() call.

    RULES:
    - now_ms starts at 0 and only moves forward
    - Ticks due at the same instant fire in scheduling order
    - After advance(ms) returns, now_ms is exactly the old now_ms + ms
    """

    def __init__(self) -> None:
        self._now_ms = 0
        self._counter = itertools.count()
        self._heap: List[Tuple[int, int, _VirtualTimer]] = []

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending(self) -> int:
        """Number of live (uncancelled) timers."""
        return sum(1 for _, _, timer in self._heap if not timer.cancelled)

    def next_fire_ms(self) -> Optional[int]:
        self._drop_cancelled()
        if not self._heap:
            return None
        return self._heap[0][0]

    def schedule_repeating(
        self, interval_ms: int, callback: TickCallback
    ) -> CancelHandle:
        interval_ms = max(1, int(interval_ms))
        timer = _VirtualTimer(interval_ms, callback, self._now_ms + interval_ms)
        heapq.heappush(self._heap, (timer.next_fire_ms, next(self._counter), timer))
        return timer

    def advance(self, ms: int) -> int:
        """Move the clock forward by ``ms`` and fire every due tick.

        Returns:
            The number of callbacks invoked.
        """
        if ms < 0:
            raise ValueError("Cannot move a virtual clock backwards")
        target = self._now_ms + ms
        fired = 0
        while True:
            self._drop_cancelled()
            if not self._heap or self._heap[0][0] > target:
                break
            fire_at, _, timer = heapq.heappop(self._heap)
            self._now_ms = fire_at
            timer.next_fire_ms = fire_at + timer.interval_ms
            heapq.heappush(self._heap, (timer.next_fire_ms, next(self._counter), timer))
            timer.callback()
            fired += 1
        self._now_ms = target
        return fired

    def _drop_cancelled(self) -> None:
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)


# ---------------------------------------------------------------------------
# Real time
# ---------------------------------------------------------------------------


class _ThreadedTimer(CancelHandle):
    """A repeating timer built from a chain of one-shot threading.Timer objects.

    Deadlines are anchored to the start time (start + k * interval) so a
    slow callback does not make the schedule drift.
    """

    def __init__(
        self,
        interval_s: float,
        callback: TickCallback,
        lock: Optional[threading.RLock],
    ) -> None:
        super().__init__()
        self._interval_s = interval_s
        self._callback = callback
        self._lock = lock
        self._timer_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._next_deadline = time.monotonic() + interval_s

    def start(self) -> "_ThreadedTimer":
        self._arm()
        return self

    def _arm(self) -> None:
        with self._timer_lock:
            if self._cancelled:
                return
            delay = max(0.0, self._next_deadline - time.monotonic())
            self._timer = threading.Timer(delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        if self._lock is not None:
            with self._lock:
                self._run_once()
        else:
            self._run_once()
        self._next_deadline += self._interval_s
        self._arm()

    def _run_once(self) -> None:
        if self._cancelled:
            return
        try:
            self._callback()
        except Exception:
            logger.exception("Scheduled tick failed")

    def _on_cancel(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class ThreadingScheduler(Scheduler):
    """Scheduler backed by daemon threads.

    WHY: CLI and HTTP hosts have no event loop of their own to tick the
    reader; a background timer thread per playing controller is enough.

    HOW: Each schedule_repeating() call starts an independent timer chain.
    If a lock is given, every tick runs while holding it; hosts take the
    same lock around their own controller calls to serialize all writes.

    RULES:
    - Pass a threading.RLock when the controller is touched from more than
      one thread
    - Exceptions raised by a tick are logged and the timer keeps running
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self.lock = lock

    def schedule_repeating(
        self, interval_ms: int, callback: TickCallback
    ) -> CancelHandle:
        interval_s = max(1, int(interval_ms)) / 1000.0
        return _ThreadedTimer(interval_s, callback, self.lock).start()
