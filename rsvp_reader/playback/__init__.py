"""Playback: the reader state machine and the clocks that drive it.

WHY: Playback is the only stateful, time-dependent part of the engine.
Separating the clock (scheduler.py) from the state machine
(controller.py) lets tests drive playback in virtual time and lets hosts
plug in whatever timer they own.

RULES:
- One controller owns one scheduler handle at a time
- A cancelled handle never delivers another tick
"""

from rsvp_reader.playback.controller import (
    PlaybackController,
    PlaybackSnapshot,
    PlaybackStatus,
    ReaderEvent,
    ReaderNotLoadedError,
)
from rsvp_reader.playback.scheduler import (
    CancelHandle,
    Scheduler,
    ThreadingScheduler,
    VirtualScheduler,
)

__all__ = [
    "CancelHandle",
    "PlaybackController",
    "PlaybackSnapshot",
    "PlaybackStatus",
    "ReaderEvent",
    "ReaderNotLoadedError",
    "Scheduler",
    "ThreadingScheduler",
    "VirtualScheduler",
]
