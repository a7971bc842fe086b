"""Unit tests for the in-memory reader session store.

WHY: The store owns every server-side controller. A leaked session keeps a
timer thread alive; a missing lock lets a tick and a request race on the
same controller.

HOW: Tests are organized by concern:
  - TestCreation: create_session basics and the session limit
  - TestRetrieval: get/list and last-access refresh
  - TestDeletion: delete returns statistics and stops playback
  - TestTTLCleanup: expiry of idle sessions
  - TestThreadSafety: concurrent creation doesn't corrupt state

RULES:
- Each test creates its own store with VirtualScheduler clocks
- Expiry is simulated by moving last_access back, never by sleeping
"""

from __future__ import annotations

import threading

import pytest

from rsvp_reader.config import SpeedBounds
from rsvp_reader.playback.scheduler import ThreadingScheduler, VirtualScheduler
from rsvp_reader.server.sessions import ReaderSessionStore


class VirtualFactory:
    """Scheduler factory that remembers the schedulers it built."""

    def __init__(self) -> None:
        self.built = []

    def __call__(self, lock):
        scheduler = VirtualScheduler()
        self.built.append(scheduler)
        return scheduler


@pytest.fixture
def factory():
    return VirtualFactory()


@pytest.fixture
def store(factory):
    return ReaderSessionStore(ttl_seconds=60, max_sessions=3, scheduler_factory=factory)


class TestCreation:
    def test_creates_loaded_controller(self, store):
        session = store.create_session("one two three", SpeedBounds(100, 500), speed=250)
        assert len(session.id) == 32
        assert session.controller.words == ("one", "two", "three")
        assert session.controller.speed == 250
        assert session.created_at == session.last_access
        assert len(store) == 1

    def test_speed_defaults_and_clamps(self, store):
        session = store.create_session("a", SpeedBounds(100, 200), speed=None)
        assert session.controller.speed == 200

    def test_unique_ids(self, store):
        ids = {store.create_session("a", SpeedBounds()).id for _ in range(3)}
        assert len(ids) == 3

    def test_limit_raises_value_error(self, store):
        for _ in range(3):
            store.create_session("a", SpeedBounds())
        with pytest.raises(ValueError, match="Maximum number of reader sessions"):
            store.create_session("a", SpeedBounds())

    def test_default_factory_uses_session_lock(self):
        store = ReaderSessionStore()
        session = store.create_session("a b", SpeedBounds())
        try:
            scheduler = session.controller._scheduler
            assert isinstance(scheduler, ThreadingScheduler)
            assert scheduler.lock is session.lock
        finally:
            store.clear()


class TestRetrieval:
    def test_get_refreshes_last_access(self, store):
        session = store.create_session("a", SpeedBounds())
        session.last_access -= 30
        before = session.last_access
        assert store.get_session(session.id) is session
        assert session.last_access > before

    def test_get_unknown_returns_none(self, store):
        assert store.get_session("missing") is None

    def test_list_in_creation_order(self, store):
        first = store.create_session("a", SpeedBounds())
        second = store.create_session("b", SpeedBounds())
        second.created_at = first.created_at + 1
        assert [s.id for s in store.list_sessions()] == [first.id, second.id]


class TestDeletion:
    def test_delete_returns_stats_and_stops_ticks(self, store, factory):
        session = store.create_session("one two three four", SpeedBounds(), speed=300)
        session.controller.play()
        factory.built[0].advance(400)

        stats = store.delete_session(session.id)
        assert stats.words_read == 2
        assert stats.average_wpm == 300
        assert not session.controller.is_playing
        assert factory.built[0].pending == 0
        assert store.get_session(session.id) is None

    def test_delete_unknown_returns_none(self, store):
        assert store.delete_session("missing") is None

    def test_clear(self, store):
        store.create_session("a", SpeedBounds())
        store.create_session("b", SpeedBounds())
        store.clear()
        assert len(store) == 0


class TestTTLCleanup:
    def test_expires_idle_sessions(self, store):
        idle = store.create_session("a", SpeedBounds())
        fresh = store.create_session("b", SpeedBounds())
        idle.last_access -= 61

        assert store.cleanup_expired() == 1
        assert store.get_session(idle.id) is None
        assert store.get_session(fresh.id) is fresh

    def test_expiry_disposes_playing_controller(self, store, factory):
        session = store.create_session("a b c", SpeedBounds())
        session.controller.play()
        session.last_access -= 120

        store.cleanup_expired()
        assert not session.controller.is_playing
        assert factory.built[0].pending == 0

    def test_nothing_to_expire(self, store):
        store.create_session("a", SpeedBounds())
        assert store.cleanup_expired() == 0


class TestThreadSafety:
    def test_concurrent_creation_respects_limit(self, factory):
        store = ReaderSessionStore(max_sessions=10, scheduler_factory=factory)
        errors = []

        def _create():
            try:
                store.create_session("a b", SpeedBounds())
            except ValueError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=_create) for _ in range(25)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 10
        assert len(errors) == 15
