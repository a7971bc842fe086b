"""Tests for the FastAPI reader API.

WHY: Validates every endpoint: happy paths, 404 for unknown sessions, 422
for invalid input and 429 when the store is full.

HOW: Each test uses the FastAPI TestClient. The module-level session store
is reset before each test and given a VirtualScheduler factory, so
playback only moves when a test advances the clock it captured.

RULES:
- All tests use the FastAPI TestClient (synchronous)
- No real timer threads are started
- Each test is independent; the store is cleared before and after
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from rsvp_reader.playback.scheduler import VirtualScheduler
from rsvp_reader.server.app import app, session_store


class _Clocks:
    def __init__(self) -> None:
        self.built = []

    def __call__(self, lock):
        scheduler = VirtualScheduler()
        self.built.append(scheduler)
        return scheduler


@pytest.fixture(autouse=True)
def clocks():
    """Reset the store and capture every scheduler it builds."""
    original_factory = session_store.scheduler_factory
    original_max = session_store.max_sessions
    factory = _Clocks()
    session_store.clear()
    session_store.scheduler_factory = factory
    yield factory
    session_store.clear()
    session_store.scheduler_factory = original_factory
    session_store.max_sessions = original_max


@pytest.fixture
def client():
    return TestClient(app)


def _create(client, text="one two three", **extra):
    body = {"text": text}
    body.update(extra)
    resp = client.post("/sessions", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Stateless endpoints
# ---------------------------------------------------------------------------


class TestTextEndpoints:
    def test_tokenize(self, client):
        resp = client.post("/tokenize", json={"text": "  Hello,  world!\n"})
        assert resp.status_code == 200
        assert resp.json() == {"words": ["Hello,", "world!"], "count": 2}

    def test_tokenize_requires_text(self, client):
        assert client.post("/tokenize", json={}).status_code == 422

    def test_layout_centered_default(self, client):
        resp = client.post("/layout", json={"word": "people"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["before_text"] == "pe"
        assert data["focal_char"] == "o"
        assert data["after_text"] == "ple"
        assert data["mode"] == "centered_word"
        assert data["horizontal_offset"] == pytest.approx(14.4)

    def test_layout_three_segment_clip(self, client):
        resp = client.post("/layout", json={
            "word": "people",
            "mode": "three_segment",
            "overflow": "clip",
        })
        data = resp.json()
        assert data["mode"] == "three_segment"
        assert data["before_text"] == ""
        assert data["focal_x"] == pytest.approx(9.6)

    def test_layout_named_policy(self, client):
        resp = client.post("/layout", json={"word": "people", "focal_policy": "orp_legacy"})
        assert resp.json()["focal_index"] == 1

    def test_layout_unknown_policy(self, client):
        resp = client.post("/layout", json={"word": "people", "focal_policy": "middle"})
        assert resp.status_code == 400
        assert "Unknown focal policy" in resp.json()["detail"]

    def test_layout_unknown_mode(self, client):
        resp = client.post("/layout", json={"word": "people", "mode": "diagonal"})
        assert resp.status_code == 422

    def test_timing(self, client):
        resp = client.get("/timing", params={"wpm": 300, "current_index": 4, "total_words": 10})
        assert resp.status_code == 200
        assert resp.json() == {
            "milliseconds_per_word": 200,
            "progress": 0.5,
            "progress_percentage": "50%",
            "words_remaining": 5,
            "seconds_remaining": 1.0,
            "time_remaining_formatted": "< 1 min",
        }

    def test_timing_requires_positive_wpm(self, client):
        assert client.get("/timing", params={"wpm": 0}).status_code == 422
        assert client.get("/timing").status_code == 422


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class TestSessionLifecycle:
    def test_create(self, client):
        data = _create(client, wpm=250)
        assert data["status"] == "idle"
        assert data["current_word"] == "one"
        assert data["total_words"] == 3
        assert data["speed"] == 250
        assert data["layout"]["focal_char"] == "o"
        assert not data["is_playing"]

    def test_create_clamps_speed(self, client):
        data = _create(client, wpm=5000, min_speed=100, max_speed=400)
        assert data["speed"] == 400
        assert data["max_speed"] == 400

    def test_create_empty_text_is_completed(self, client):
        data = _create(client, text="   ")
        assert data["status"] == "completed"
        assert data["current_word"] == ""

    def test_create_inverted_bounds(self, client):
        resp = client.post("/sessions", json={"text": "a", "min_speed": 500, "max_speed": 400})
        assert resp.status_code == 422

    def test_create_when_full(self, client):
        session_store.max_sessions = 1
        _create(client)
        resp = client.post("/sessions", json={"text": "again"})
        assert resp.status_code == 429
        assert "Maximum number" in resp.json()["detail"]

    def test_get(self, client):
        created = _create(client)
        resp = client.get("/sessions/{}".format(created["id"]))
        assert resp.status_code == 200
        assert resp.json()["id"] == created["id"]

    def test_play_advances_with_clock(self, client, clocks):
        created = _create(client)
        resp = client.post("/sessions/{}/play".format(created["id"]))
        assert resp.json()["status"] == "playing"

        clocks.built[0].advance(400)
        data = client.get("/sessions/{}".format(created["id"])).json()
        assert data["current_index"] == 2
        assert data["is_playing"]

        clocks.built[0].advance(200)
        data = client.get("/sessions/{}".format(created["id"])).json()
        assert data["status"] == "completed"
        assert not data["is_playing"]

    def test_pause_and_toggle(self, client):
        sid = _create(client)["id"]
        assert client.post("/sessions/{}/toggle".format(sid)).json()["is_playing"]
        assert not client.post("/sessions/{}/pause".format(sid)).json()["is_playing"]
        assert client.post("/sessions/{}/toggle".format(sid)).json()["is_playing"]

    def test_next_and_previous(self, client):
        sid = _create(client)["id"]
        assert client.post("/sessions/{}/next".format(sid)).json()["current_word"] == "two"
        data = client.post("/sessions/{}/next".format(sid)).json()
        assert data["current_word"] == "three"
        assert not data["is_completed"]
        data = client.post("/sessions/{}/next".format(sid)).json()
        assert data["is_completed"]
        data = client.post("/sessions/{}/previous".format(sid)).json()
        assert data["current_word"] == "two"
        assert not data["is_completed"]

    def test_restart(self, client):
        sid = _create(client)["id"]
        client.post("/sessions/{}/jump".format(sid), json={"index": 2})
        data = client.post("/sessions/{}/restart".format(sid)).json()
        assert data["current_index"] == 0
        assert data["status"] == "playing"

    def test_delete_returns_summary(self, client, clocks):
        sid = _create(client)["id"]
        client.post("/sessions/{}/play".format(sid))
        client.post("/sessions/{}/speed".format(sid), json={"wpm": 600})
        clocks.built[0].advance(100)

        resp = client.delete("/sessions/{}".format(sid))
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == sid
        assert data["words_read"] == 1
        assert data["average_wpm"] == 450
        assert data["max_wpm"] == 600
        assert client.get("/sessions/{}".format(sid)).status_code == 404
        assert clocks.built[0].pending == 0


class TestJumpAndSpeed:
    def test_jump_to_index(self, client):
        sid = _create(client, text="a b c d e f g h i j")["id"]
        data = client.post("/sessions/{}/jump".format(sid), json={"index": 4}).json()
        assert data["current_index"] == 4
        assert data["progress"] == pytest.approx(0.5)
        assert data["words_remaining"] == 5

    def test_jump_clamps(self, client):
        sid = _create(client)["id"]
        data = client.post("/sessions/{}/jump".format(sid), json={"index": 99}).json()
        assert data["current_index"] == 2
        assert data["is_completed"]

    def test_jump_to_fraction(self, client):
        sid = _create(client, text="a b c d e f g h i j")["id"]
        data = client.post("/sessions/{}/jump".format(sid), json={"fraction": 0.5}).json()
        assert data["current_index"] == 4

    @pytest.mark.parametrize("body", [{}, {"index": 1, "fraction": 0.5}])
    def test_jump_needs_exactly_one_target(self, client, body):
        sid = _create(client)["id"]
        resp = client.post("/sessions/{}/jump".format(sid), json=body)
        assert resp.status_code == 422

    def test_speed_is_clamped(self, client):
        sid = _create(client, max_speed=800)["id"]
        data = client.post("/sessions/{}/speed".format(sid), json={"wpm": 2000}).json()
        assert data["speed"] == 800

    def test_speed_change_reschedules(self, client, clocks):
        sid = _create(client, text="a b c d e", wpm=300)["id"]
        client.post("/sessions/{}/play".format(sid))
        clocks.built[0].advance(150)
        client.post("/sessions/{}/speed".format(sid), json={"wpm": 600})
        clocks.built[0].advance(100)
        assert client.get("/sessions/{}".format(sid)).json()["current_index"] == 1


class TestNotFound:
    @pytest.mark.parametrize("method, path", [
        ("get", "/sessions/missing"),
        ("post", "/sessions/missing/play"),
        ("post", "/sessions/missing/pause"),
        ("post", "/sessions/missing/toggle"),
        ("post", "/sessions/missing/next"),
        ("post", "/sessions/missing/previous"),
        ("post", "/sessions/missing/restart"),
        ("delete", "/sessions/missing"),
    ])
    def test_unknown_session(self, client, method, path):
        resp = getattr(client, method)(path)
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Session not found: missing"

    def test_unknown_session_speed(self, client):
        resp = client.post("/sessions/missing/speed", json={"wpm": 300})
        assert resp.status_code == 404

    def test_unknown_session_jump(self, client):
        resp = client.post("/sessions/missing/jump", json={"index": 1})
        assert resp.status_code == 404


class TestHealth:
    def test_health(self, client):
        _create(client)
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": "0.1.0", "sessions": 1}
