"""RSVP playback state machine.

WHY: Play, pause, seek, and speed changes interact with a running timer.
Getting them wrong shows up as skipped words, double ticks after a speed
change, or a finished document that keeps "playing". One controller owns
all of that state and every transition, so hosts only send commands and
listen for events.

HOW: The controller holds the word sequence, the current index, the speed,
and two flags (playing, completed). play() asks the injected Scheduler for
a repeating tick at milliseconds_per_word(speed); each tick calls
advance(). Every transition emits ReaderEvents with an immutable
PlaybackSnapshot to subscribed observers.

States (derived from the flags):
  idle      — loaded, not playing, at index 0
  playing   — a tick is scheduled
  paused    — not playing, somewhere past index 0
  completed — the end was reached; terminal until restart() or a reload

RULES:
- Calling any playback operation before load()/load_words() raises
  ReaderNotLoadedError; that is the only error the state machine raises
- Numeric input (index, fraction, speed) is clamped, never rejected
- An empty document loads as completed with current_word == ""
- load(), pause(), stop() and dispose() cancel the tick before returning
- set_speed() while playing cancels and reschedules immediately, so the
  next tick comes one *new* interval after the change
- next() after completion is a no-op; previous() clears completion
- The controller holds no lock: callers on several threads must serialize
  their calls (see ThreadingScheduler's lock)
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from rsvp_reader.config import DEFAULT_WPM, SPEED_STEP, SpeedBounds
from rsvp_reader.core import timing
from rsvp_reader.core.tokenizer import WordSequence, normalize_words, tokenize
from rsvp_reader.playback.scheduler import CancelHandle, Scheduler

logger = logging.getLogger(__name__)


class ReaderNotLoadedError(RuntimeError):
    """A playback operation was called before any document was loaded."""


class PlaybackStatus(str, enum.Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    COMPLETED = "completed"


class ReaderEvent(str, enum.Enum):
    """Events a host can subscribe to.

    RULES:
    - LOADED: a new sequence replaced the old one
    - WORD_CHANGED: current_index changed
    - PLAYBACK_CHANGED: is_playing flipped
    - SPEED_CHANGED: the effective speed changed
    - COMPLETED: the reader reached the end of the document
    """

    LOADED = "loaded"
    WORD_CHANGED = "word_changed"
    PLAYBACK_CHANGED = "playback_changed"
    SPEED_CHANGED = "speed_changed"
    COMPLETED = "completed"


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Read-only copy of the playback state at one moment."""

    current_index: int
    current_word: str
    total_words: int
    speed: int
    is_playing: bool
    is_completed: bool
    status: PlaybackStatus

    @property
    def progress(self) -> float:
        return timing.progress_fraction(self.current_index, self.total_words)

    @property
    def words_remaining(self) -> int:
        return timing.words_remaining(self.current_index, self.total_words)

    @property
    def seconds_remaining(self) -> float:
        return timing.estimated_seconds_remaining(self.words_remaining, self.speed)


Observer = Callable[[PlaybackSnapshot], None]


class PlaybackController:
    """Drives one document through RSVP playback.

    Args:
        scheduler: Source of repeating ticks. The controller never shares
            its handle with anyone else.
        bounds: Allowed speed range, supplied by the caller.
        speed: Initial speed; clamped into ``bounds``. Defaults to
            config.DEFAULT_WPM.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        bounds: Optional[SpeedBounds] = None,
        speed: Optional[int] = None,
    ) -> None:
        self._scheduler = scheduler
        self._bounds = bounds or SpeedBounds()
        self._speed = self._bounds.clamp(DEFAULT_WPM if speed is None else speed)
        self._words: Optional[WordSequence] = None
        self._index = 0
        self._playing = False
        self._completed = False
        self._handle: Optional[CancelHandle] = None
        self._observers: Dict[ReaderEvent, List[Observer]] = {
            event: [] for event in ReaderEvent
        }

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, event: ReaderEvent, callback: Observer) -> Callable[[], None]:
        """Register ``callback`` for ``event``; returns an unsubscribe function."""
        callbacks = self._observers[ReaderEvent(event)]
        callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return _unsubscribe

    def _emit(self, event: ReaderEvent) -> None:
        callbacks = self._observers[event]
        if not callbacks:
            return
        snap = self.snapshot()
        for callback in list(callbacks):
            try:
                callback(snap)
            except Exception:
                logger.exception("Observer for %s failed", event.value)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, text: str) -> None:
        """Tokenize ``text`` and load it, replacing any current document."""
        self._replace_words(tokenize(text))

    def load_words(self, words: Iterable[str]) -> None:
        """Load pre-split words, replacing any current document."""
        self._replace_words(normalize_words(words))

    def _replace_words(self, words: WordSequence) -> None:
        was_playing = self._playing
        self._cancel_timer()
        self._playing = False
        self._words = words
        self._index = 0
        self._completed = len(words) == 0
        logger.info("Loaded %d words", len(words))
        self._emit(ReaderEvent.LOADED)
        if was_playing:
            self._emit(ReaderEvent.PLAYBACK_CHANGED)
        self._emit(ReaderEvent.WORD_CHANGED)

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def play(self) -> None:
        """Start or resume playback; no-op when empty, completed, or playing."""
        words = self._require_words()
        if not words or self._completed or self._playing:
            return
        self._playing = True
        self._start_timer()
        self._emit(ReaderEvent.PLAYBACK_CHANGED)

    def pause(self) -> None:
        self._require_words()
        self._cancel_timer()
        if not self._playing:
            return
        self._playing = False
        self._emit(ReaderEvent.PLAYBACK_CHANGED)

    def toggle_play_pause(self) -> None:
        if self._playing:
            self.pause()
        else:
            self.play()

    def stop(self) -> None:
        """Pause and rewind to the first word."""
        self.pause()
        self._completed = len(self._require_words()) == 0
        self._set_index(0)

    def restart(self) -> None:
        """Rewind to the first word and play from there.

        Same as jump_to(0) followed by play(), except that a one-word
        document is not marked complete before it has been shown, and a
        running tick restarts its interval from the first word.
        """
        words = self._require_words()
        if not words:
            return
        self._completed = False
        self._set_index(0)
        if self._playing:
            self._start_timer()
        else:
            self.play()

    def dispose(self) -> None:
        """Cancel any tick and drop observers. Safe to call repeatedly."""
        self._cancel_timer()
        self._playing = False
        for callbacks in self._observers.values():
            callbacks.clear()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> None:
        """Move one word forward, completing the document at the end.

        This is what every timer tick calls.
        """
        words = self._require_words()
        if self._completed:
            self._cancel_timer()
            return
        if self._index < len(words) - 1:
            self._set_index(self._index + 1)
            return
        self._complete()

    def next(self) -> None:
        self.advance()

    def previous(self) -> None:
        self._require_words()
        if self._index <= 0:
            return
        self._completed = False
        self._set_index(self._index - 1)

    def jump_to(self, index: int) -> None:
        """Move to ``index`` (clamped); landing on the last word marks completion."""
        words = self._require_words()
        if not words:
            return
        last = len(words) - 1
        if isinstance(index, float) and not math.isfinite(index):
            if math.isnan(index):
                index = self._index
            else:
                index = last if index > 0 else 0
        index = max(0, min(int(index), last))
        was_completed = self._completed
        self._completed = index == last
        if self._completed and self._playing:
            self._playing = False
            self._cancel_timer()
            self._emit(ReaderEvent.PLAYBACK_CHANGED)
        self._set_index(index)
        if self._completed and not was_completed:
            self._emit(ReaderEvent.COMPLETED)

    def jump_to_fraction(self, fraction: float) -> None:
        """Move to ``floor(fraction * (total - 1))`` with fraction clamped to [0, 1]."""
        words = self._require_words()
        if not words:
            return
        try:
            fraction = float(fraction)
        except (TypeError, ValueError):
            fraction = 0.0
        if fraction != fraction:  # NaN
            fraction = 0.0
        fraction = max(0.0, min(fraction, 1.0))
        self.jump_to(int(fraction * (len(words) - 1)))

    # ------------------------------------------------------------------
    # Speed
    # ------------------------------------------------------------------

    def set_speed(self, wpm: int) -> None:
        """Set the speed (clamped to bounds); reschedules a running tick now."""
        self._require_words()
        if isinstance(wpm, float) and math.isnan(wpm):
            return
        self._apply_speed(self._bounds.clamp(wpm))

    def increase_speed(self) -> None:
        self.set_speed(self._speed + SPEED_STEP)

    def decrease_speed(self) -> None:
        self.set_speed(self._speed - SPEED_STEP)

    def set_speed_bounds(self, bounds: SpeedBounds) -> None:
        """Replace the allowed range and re-clamp the current speed.

        Hosts call this when the caller's entitlement changes. Allowed
        before load, since it only touches configuration.
        """
        self._bounds = bounds
        self._apply_speed(bounds.clamp(self._speed))

    def _apply_speed(self, wpm: int) -> None:
        if wpm == self._speed:
            return
        logger.debug("Speed %d -> %d wpm", self._speed, wpm)
        self._speed = wpm
        if self._playing:
            self._start_timer()
        self._emit(ReaderEvent.SPEED_CHANGED)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._words is not None

    @property
    def words(self) -> WordSequence:
        return self._require_words()

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_word(self) -> str:
        words = self._words or ()
        if self._index < len(words):
            return words[self._index]
        return ""

    @property
    def total_words(self) -> int:
        return len(self._words or ())

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def bounds(self) -> SpeedBounds:
        return self._bounds

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def is_completed(self) -> bool:
        return self._completed

    @property
    def status(self) -> PlaybackStatus:
        if self._completed:
            return PlaybackStatus.COMPLETED
        if self._playing:
            return PlaybackStatus.PLAYING
        if self._index == 0:
            return PlaybackStatus.IDLE
        return PlaybackStatus.PAUSED

    @property
    def can_increase_speed(self) -> bool:
        return self._speed < self._bounds.max_speed

    @property
    def can_decrease_speed(self) -> bool:
        return self._speed > self._bounds.min_speed

    @property
    def progress(self) -> float:
        return timing.progress_fraction(self._index, self.total_words)

    @property
    def progress_percentage(self) -> str:
        return timing.progress_percentage(self._index, self.total_words)

    @property
    def words_remaining(self) -> int:
        return timing.words_remaining(self._index, self.total_words)

    @property
    def seconds_remaining(self) -> float:
        return timing.estimated_seconds_remaining(self.words_remaining, self._speed)

    @property
    def time_remaining_formatted(self) -> str:
        return timing.format_duration(self.seconds_remaining)

    @property
    def wpm_display(self) -> str:
        return "{} wpm".format(self._speed)

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            current_index=self._index,
            current_word=self.current_word,
            total_words=self.total_words,
            speed=self._speed,
            is_playing=self._playing,
            is_completed=self._completed,
            status=self.status,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_words(self) -> WordSequence:
        if self._words is None:
            raise ReaderNotLoadedError(
                "No document loaded: call load() or load_words() first"
            )
        return self._words

    def _set_index(self, index: int) -> None:
        if index == self._index:
            return
        self._index = index
        self._emit(ReaderEvent.WORD_CHANGED)

    def _complete(self) -> None:
        was_playing = self._playing
        self._cancel_timer()
        self._playing = False
        self._completed = True
        logger.info("Reached end of document (%d words)", self.total_words)
        if was_playing:
            self._emit(ReaderEvent.PLAYBACK_CHANGED)
        self._emit(ReaderEvent.COMPLETED)

    def _start_timer(self) -> None:
        self._cancel_timer()
        interval = timing.milliseconds_per_word(self._speed)
        handle: Optional[CancelHandle] = None

        def _tick() -> None:
            # A tick from a replaced handle must not touch state
            if handle is None or handle is not self._handle or handle.cancelled:
                return
            self.advance()

        handle = self._scheduler.schedule_repeating(interval, _tick)
        self._handle = handle
        logger.debug("Scheduled tick every %d ms", interval)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
