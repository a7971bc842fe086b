"""Reading-session statistics collected from controller events.

WHY: Hosts show per-session stats (words read, time spent, average and
top speed) and may store them. Collecting them by listening to the
controller keeps the state machine free of bookkeeping it does not need.

HOW: SessionTracker subscribes to SPEED_CHANGED on construction, samples
the speed at start and on every change, and reads the start/end position
from the controller. finish() unsubscribes and returns an immutable
ReadingSession.

RULES:
- words_read = max(0, end_index - start_index)
- average_wpm is the integer mean of speed samples
- max_wpm is the largest sample
- Duration comes from an injectable monotonic clock (seconds)
- finish() is idempotent: later calls return the same ReadingSession
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from rsvp_reader.core.timing import format_clock
from rsvp_reader.playback.controller import (
    PlaybackController,
    PlaybackSnapshot,
    ReaderEvent,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadingSession:
    """Statistics for one reading session."""

    words_read: int
    duration_s: float
    average_wpm: int
    max_wpm: int
    start_index: int
    end_index: int
    document_id: Optional[str] = None

    @property
    def duration_formatted(self) -> str:
        return format_clock(self.duration_s)


class SessionTracker:
    """Accumulates statistics for one session of one controller.

    Args:
        controller: A loaded PlaybackController.
        document_id: Optional host identifier copied into the result.
        clock: Returns monotonic seconds; defaults to time.monotonic.
    """

    def __init__(
        self,
        controller: PlaybackController,
        document_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._controller = controller
        self._document_id = document_id
        self._clock = clock
        self._start_time = clock()
        self._start_index = controller.current_index
        self._samples: List[int] = [controller.speed]
        self._result: Optional[ReadingSession] = None
        self._unsubscribe = controller.subscribe(
            ReaderEvent.SPEED_CHANGED, self._on_speed_changed
        )

    def _on_speed_changed(self, snap: PlaybackSnapshot) -> None:
        self._samples.append(snap.speed)

    @property
    def samples(self) -> List[int]:
        return list(self._samples)

    def finish(self) -> ReadingSession:
        if self._result is not None:
            return self._result
        self._unsubscribe()
        end_index = self._controller.current_index
        self._result = ReadingSession(
            words_read=max(0, end_index - self._start_index),
            duration_s=max(0.0, self._clock() - self._start_time),
            average_wpm=sum(self._samples) // len(self._samples),
            max_wpm=max(self._samples),
            start_index=self._start_index,
            end_index=end_index,
            document_id=self._document_id,
        )
        logger.info(
            "Session finished: %d words in %s",
            self._result.words_read, self._result.duration_formatted,
        )
        return self._result
