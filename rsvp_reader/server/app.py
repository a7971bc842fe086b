"""FastAPI application exposing the reader engine over HTTP.

WHY: Web and mobile front ends want the same focal-letter layout, timing
math, and playback state machine without reimplementing them. A small
HTTP API lets them call the engine directly or drive a server-side reader
session and poll its state.

HOW: One FastAPI app with three groups of endpoints:
  text      — stateless tokenize / layout / timing calculations
  sessions  — create a PlaybackController per client, drive it with
              play/pause/navigation/speed calls, and delete it
  health    — liveness check
Sessions live in a module-level ReaderSessionStore; a lifespan task
removes idle sessions every few minutes.

RULES:
- All endpoints have OpenAPI descriptions on every response
- Error responses use a consistent ErrorResponse schema
- Unknown session IDs return 404; a full store returns 429
- Every controller call runs under the session's lock
- Session endpoints are plain ``def`` so the lock is taken in the worker
  threadpool, never on the event loop
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, HTTPException, Query

from rsvp_reader import __version__
from rsvp_reader.config import API_HOST, API_PORT, SpeedBounds
from rsvp_reader.core.focal import DEFAULT_FOCAL_POLICY, get_policy
from rsvp_reader.core.layout import FocalLayout, layout
from rsvp_reader.core.timing import (
    estimated_seconds_remaining,
    format_duration,
    milliseconds_per_word,
    progress_fraction,
    progress_percentage,
    words_remaining,
)
from rsvp_reader.core.tokenizer import tokenize
from rsvp_reader.playback.controller import PlaybackController
from rsvp_reader.server.models import (
    ErrorResponse,
    HealthResponse,
    JumpRequest,
    LayoutRequest,
    LayoutResponse,
    SessionCreateRequest,
    SessionResponse,
    SessionSummaryResponse,
    SpeedRequest,
    TimingResponse,
    TokenizeRequest,
    TokenizeResponse,
)
from rsvp_reader.server.sessions import ReaderSession, ReaderSessionStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = ReaderSessionStore()

_CLEANUP_INTERVAL_SECONDS = 300

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Session not found"}}


async def _periodic_cleanup() -> None:
    """Remove idle sessions every 5 minutes."""
    while True:
        await asyncio.sleep(_CLEANUP_INTERVAL_SECONDS)
        session_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup; stop it and every session on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    session_store.clear()


app = FastAPI(
    lifespan=lifespan,
    title="RSVP Reader API",
    description=(
        "REST API for rapid serial visual presentation reading. Tokenize "
        "text, compute the focal-letter layout of a word and reading-time "
        "estimates, or open a reader session and drive its playback."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _layout_to_response(geometry: FocalLayout) -> LayoutResponse:
    return LayoutResponse(
        before_text=geometry.before_text,
        focal_char=geometry.focal_char,
        after_text=geometry.after_text,
        focal_index=geometry.focal_index,
        horizontal_offset=geometry.horizontal_offset,
        mode=geometry.mode,
        char_width=geometry.char_width,
        anchor_x=geometry.anchor_x,
        focal_x=geometry.focal_x,
        before_slot_width=geometry.before_slot_width,
        after_slot_width=geometry.after_slot_width,
        before_overflow=geometry.before_overflow,
        after_overflow=geometry.after_overflow,
    )


def _session_to_response(session: ReaderSession) -> SessionResponse:
    """Convert a session's controller state to a SessionResponse.

    Must be called with the session lock held.
    """
    controller = session.controller
    return SessionResponse(
        id=session.id,
        status=controller.status,
        current_index=controller.current_index,
        current_word=controller.current_word,
        total_words=controller.total_words,
        speed=controller.speed,
        min_speed=controller.bounds.min_speed,
        max_speed=controller.bounds.max_speed,
        is_playing=controller.is_playing,
        is_completed=controller.is_completed,
        progress=controller.progress,
        words_remaining=controller.words_remaining,
        time_remaining_formatted=controller.time_remaining_formatted,
        layout=_layout_to_response(layout(controller.current_word)),
    )


def _get_session_or_404(session_id: str) -> ReaderSession:
    session = session_store.get_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=404, detail="Session not found: {}".format(session_id)
        )
    return session


def _apply(
    session_id: str, action: Callable[[PlaybackController], None]
) -> SessionResponse:
    """Run ``action`` on the session's controller under its lock."""
    session = _get_session_or_404(session_id)
    with session.lock:
        action(session.controller)
        return _session_to_response(session)


# ---------------------------------------------------------------------------
# Endpoints: Text
# ---------------------------------------------------------------------------


@app.post(
    "/tokenize",
    response_model=TokenizeResponse,
    tags=["text"],
    summary="Split text into words",
    description=(
        "Splits text on whitespace runs. Punctuation stays attached to "
        "its word; empty or whitespace-only text yields no words."
    ),
)
async def tokenize_text(request: TokenizeRequest) -> TokenizeResponse:
    words = tokenize(request.text)
    return TokenizeResponse(words=list(words), count=len(words))


@app.post(
    "/layout",
    response_model=LayoutResponse,
    tags=["text"],
    summary="Lay out one word around its focal letter",
    description=(
        "Returns the before/focal/after segments of a word and the "
        "horizontal geometry that keeps the focal letter on the anchor, "
        "for either the centered-word or three-segment mode."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown focal policy"},
    },
)
async def layout_word(request: LayoutRequest) -> LayoutResponse:
    policy = DEFAULT_FOCAL_POLICY
    if request.focal_policy is not None:
        try:
            policy = get_policy(request.focal_policy)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    geometry = layout(
        request.word,
        font_size=request.font_size,
        char_width_factor=request.char_width_factor,
        anchor_fraction=request.anchor_fraction,
        mode=request.mode,
        track_width=request.track_width,
        policy=policy,
        overflow=request.overflow,
    )
    return _layout_to_response(geometry)


@app.get(
    "/timing",
    response_model=TimingResponse,
    tags=["text"],
    summary="Compute timing and progress metrics",
    description=(
        "Returns the per-word display time for a speed and the progress "
        "and remaining-time estimates for a position in a document."
    ),
)
async def timing(
    wpm: int = Query(description="Reading speed in WPM.", gt=0),
    current_index: int = Query(default=0, description="Index of the current word.", ge=0),
    total_words: int = Query(default=0, description="Number of words in the document.", ge=0),
) -> TimingResponse:
    remaining = words_remaining(current_index, total_words)
    seconds = estimated_seconds_remaining(remaining, wpm)
    return TimingResponse(
        milliseconds_per_word=milliseconds_per_word(wpm),
        progress=progress_fraction(current_index, total_words),
        progress_percentage=progress_percentage(current_index, total_words),
        words_remaining=remaining,
        seconds_remaining=seconds,
        time_remaining_formatted=format_duration(seconds),
    )


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Open a reader session",
    description=(
        "Tokenizes the text into a new playback controller and returns its "
        "initial state. The session is idle until POST /sessions/{id}/play."
    ),
    responses={
        422: {"model": ErrorResponse, "description": "Invalid speed bounds"},
        429: {"model": ErrorResponse, "description": "Too many open sessions"},
    },
)
def create_session(request: SessionCreateRequest) -> SessionResponse:
    try:
        bounds = SpeedBounds(request.min_speed, request.max_speed)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    try:
        session = session_store.create_session(request.text, bounds, speed=request.wpm)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    with session.lock:
        return _session_to_response(session)


@app.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Get reader session state",
    description="Poll this endpoint to follow the current word while playing.",
    responses=_NOT_FOUND,
)
def get_session(session_id: str) -> SessionResponse:
    session = _get_session_or_404(session_id)
    with session.lock:
        return _session_to_response(session)


@app.post(
    "/sessions/{session_id}/play",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Start or resume playback",
    description="No-op when already playing, completed, or the document is empty.",
    responses=_NOT_FOUND,
)
def play_session(session_id: str) -> SessionResponse:
    return _apply(session_id, lambda c: c.play())


@app.post(
    "/sessions/{session_id}/pause",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Pause playback",
    responses=_NOT_FOUND,
)
def pause_session(session_id: str) -> SessionResponse:
    return _apply(session_id, lambda c: c.pause())


@app.post(
    "/sessions/{session_id}/toggle",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Toggle between playing and paused",
    responses=_NOT_FOUND,
)
def toggle_session(session_id: str) -> SessionResponse:
    return _apply(session_id, lambda c: c.toggle_play_pause())


@app.post(
    "/sessions/{session_id}/next",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Advance one word",
    description="Advancing from the last word marks the session completed.",
    responses=_NOT_FOUND,
)
def next_word(session_id: str) -> SessionResponse:
    return _apply(session_id, lambda c: c.next())


@app.post(
    "/sessions/{session_id}/previous",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Go back one word",
    description="Clears the completed flag. No-op at the first word.",
    responses=_NOT_FOUND,
)
def previous_word(session_id: str) -> SessionResponse:
    return _apply(session_id, lambda c: c.previous())


@app.post(
    "/sessions/{session_id}/restart",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Restart from the first word and play",
    responses=_NOT_FOUND,
)
def restart_session(session_id: str) -> SessionResponse:
    return _apply(session_id, lambda c: c.restart())


@app.post(
    "/sessions/{session_id}/jump",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Jump to a word index or a fraction of the document",
    description=(
        "Give exactly one of ``index`` or ``fraction``. Both are clamped to "
        "the document; jumping to the last word completes the session."
    ),
    responses={
        **_NOT_FOUND,
        422: {"model": ErrorResponse, "description": "Neither or both targets given"},
    },
)
def jump_session(session_id: str, request: JumpRequest) -> SessionResponse:
    if (request.index is None) == (request.fraction is None):
        raise HTTPException(
            status_code=422, detail="Give exactly one of 'index' or 'fraction'."
        )
    if request.index is not None:
        return _apply(session_id, lambda c: c.jump_to(request.index))
    return _apply(session_id, lambda c: c.jump_to_fraction(request.fraction))


@app.post(
    "/sessions/{session_id}/speed",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Change reading speed",
    description=(
        "The speed is clamped to the session bounds. A playing session is "
        "rescheduled immediately at the new interval."
    ),
    responses=_NOT_FOUND,
)
def set_session_speed(session_id: str, request: SpeedRequest) -> SessionResponse:
    return _apply(session_id, lambda c: c.set_speed(request.wpm))


@app.delete(
    "/sessions/{session_id}",
    response_model=SessionSummaryResponse,
    tags=["sessions"],
    summary="Close a reader session",
    description=(
        "Stops playback, releases the session, and returns its reading "
        "statistics."
    ),
    responses=_NOT_FOUND,
)
def delete_session(session_id: str) -> SessionSummaryResponse:
    stats = session_store.delete_session(session_id)
    if stats is None:
        raise HTTPException(
            status_code=404, detail="Session not found: {}".format(session_id)
        )
    return SessionSummaryResponse(
        id=session_id,
        words_read=stats.words_read,
        duration_s=stats.duration_s,
        duration_formatted=stats.duration_formatted,
        average_wpm=stats.average_wpm,
        max_wpm=stats.max_wpm,
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, sessions=len(session_store))


def run_api() -> None:
    """Entry point for the rsvp-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    uvicorn.run(app, host=API_HOST, port=API_PORT)
