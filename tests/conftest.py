"""Shared test fixtures for the rsvp_reader test suite.

WHY: Most playback tests need the same setup: a controller on a virtual
clock with a short document loaded. Centralizing it keeps the tests about
behaviour rather than wiring.

HOW: Pytest fixtures provide a VirtualScheduler, a controller bound to it,
and a controller preloaded with THREE_WORDS. EventRecorder collects the
events a controller emits so tests can assert on their order.

RULES:
- Every fixture builds fresh objects (no shared mutable state)
- The default speed is 300 wpm, i.e. one tick every 200 ms
"""

from typing import List, Tuple

import pytest

from rsvp_reader.config import SpeedBounds
from rsvp_reader.playback.controller import (
    PlaybackController,
    PlaybackSnapshot,
    ReaderEvent,
)
from rsvp_reader.playback.scheduler import VirtualScheduler

THREE_WORDS = ("one", "two", "three")


class EventRecorder:
    """Subscribes to every ReaderEvent and records (event, snapshot) pairs."""

    def __init__(self, controller: PlaybackController) -> None:
        self.events: List[Tuple[ReaderEvent, PlaybackSnapshot]] = []
        for event in ReaderEvent:
            controller.subscribe(event, self._make_callback(event))

    def _make_callback(self, event: ReaderEvent):
        def _callback(snap: PlaybackSnapshot) -> None:
            self.events.append((event, snap))
        return _callback

    @property
    def names(self) -> List[ReaderEvent]:
        return [event for event, _ in self.events]

    def count(self, event: ReaderEvent) -> int:
        return sum(1 for e, _ in self.events if e == event)

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def controller(scheduler):
    """A controller at 300 wpm within 100-1500 bounds, nothing loaded."""
    return PlaybackController(scheduler, bounds=SpeedBounds(100, 1500), speed=300)


@pytest.fixture
def loaded(controller):
    """The controller fixture with THREE_WORDS loaded."""
    controller.load_words(THREE_WORDS)
    return controller


@pytest.fixture
def recorder(loaded):
    return EventRecorder(loaded)


@pytest.fixture
def make_recorder():
    """Factory attaching an EventRecorder to any controller."""
    return EventRecorder
