"""Tests for reading-session statistics."""

import pytest

from rsvp_reader.session import ReadingSession, SessionTracker


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class TestSessionTracker:
    def test_words_read_and_duration(self, loaded):
        clock = FakeClock()
        tracker = SessionTracker(loaded, clock=clock)
        loaded.next()
        loaded.next()
        clock.now += 75.5

        result = tracker.finish()
        assert result.words_read == 2
        assert result.start_index == 0
        assert result.end_index == 2
        assert result.duration_s == pytest.approx(75.5)
        assert result.duration_formatted == "1m 15s"

    def test_speed_samples(self, loaded):
        tracker = SessionTracker(loaded, clock=FakeClock())
        loaded.set_speed(600)
        loaded.set_speed(450)

        assert tracker.samples == [300, 600, 450]
        result = tracker.finish()
        assert result.average_wpm == 450
        assert result.max_wpm == 600

    def test_average_is_integer_mean(self, loaded):
        tracker = SessionTracker(loaded, clock=FakeClock())
        loaded.set_speed(301)
        assert tracker.finish().average_wpm == 300

    def test_moving_backwards_counts_zero(self, loaded):
        loaded.jump_to(2)
        tracker = SessionTracker(loaded, clock=FakeClock())
        loaded.jump_to(0)
        assert tracker.finish().words_read == 0

    def test_finish_is_idempotent_and_unsubscribes(self, loaded):
        clock = FakeClock()
        tracker = SessionTracker(loaded, document_id="doc-1", clock=clock)
        first = tracker.finish()
        loaded.set_speed(900)
        clock.now += 10
        assert tracker.finish() is first
        assert tracker.samples == [300]
        assert first.document_id == "doc-1"

    def test_playback_ticks_are_counted(self, loaded, scheduler):
        tracker = SessionTracker(loaded, clock=FakeClock())
        loaded.play()
        scheduler.advance(600)
        assert tracker.finish().words_read == 2


def test_reading_session_is_frozen():
    session = ReadingSession(1, 2.0, 300, 300, 0, 1)
    with pytest.raises(AttributeError):
        session.words_read = 5
