"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: Each endpoint has its own request and/or response model. Enums from
the core (AnchorMode, OverflowPolicy, PlaybackStatus) are reused so the
API and the engine cannot disagree on their values.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Numeric fields carry no range limits: the engine clamps out-of-range
  speeds, indices, and fractions instead of rejecting them
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from rsvp_reader.config import (
    ANCHOR_FRACTION,
    CHARACTER_WIDTH_FACTOR,
    DEFAULT_FONT_SIZE,
    MAX_WPM,
    MIN_WPM,
    TRACK_WIDTH,
)
from rsvp_reader.core.layout import AnchorMode, OverflowPolicy
from rsvp_reader.playback.controller import PlaybackStatus


# ---------------------------------------------------------------------------
# Stateless calculations
# ---------------------------------------------------------------------------


class TokenizeRequest(BaseModel):
    text: str = Field(description="Plain text to split into words.")


class TokenizeResponse(BaseModel):
    words: List[str] = Field(description="Words in reading order, punctuation attached.")
    count: int = Field(description="Number of words.")


class LayoutRequest(BaseModel):
    """Parameters for laying out one word."""

    word: str = Field(description="The word to lay out.")
    font_size: float = Field(default=DEFAULT_FONT_SIZE, description="Font size in points.")
    char_width_factor: float = Field(
        default=CHARACTER_WIDTH_FACTOR,
        description="Glyph width as a fraction of font size (monospace approximation).",
    )
    anchor_fraction: float = Field(
        default=ANCHOR_FRACTION,
        description="Anchor position as a fraction of track_width (three_segment mode).",
    )
    mode: AnchorMode = Field(default=AnchorMode.CENTERED_WORD, description="Anchoring mode.")
    track_width: float = Field(default=TRACK_WIDTH, description="Track width (three_segment mode).")
    overflow: OverflowPolicy = Field(
        default=OverflowPolicy.EXTEND,
        description="Slot overflow handling (three_segment mode).",
    )
    focal_policy: Optional[str] = Field(
        default=None,
        description="Named focal letter policy (orp, orp_legacy, second_letter).",
    )


class LayoutResponse(BaseModel):
    before_text: str = Field(description="Characters before the focal letter.")
    focal_char: str = Field(description="The focal letter.")
    after_text: str = Field(description="Characters after the focal letter.")
    focal_index: int = Field(description="Index of the focal letter (code points).")
    horizontal_offset: float = Field(description="Offset for the chosen anchoring mode.")
    mode: AnchorMode = Field(description="Anchoring mode used.")
    char_width: float = Field(description="Approximate width of one character.")
    anchor_x: float = Field(description="Anchor x position on the track.")
    focal_x: float = Field(description="x where the focal glyph starts.")
    before_slot_width: float = Field(description="Width available left of the focal glyph.")
    after_slot_width: float = Field(description="Width available right of the focal glyph.")
    before_overflow: float = Field(description="Width of before text that does not fit.")
    after_overflow: float = Field(description="Width of after text that does not fit.")


class TimingResponse(BaseModel):
    milliseconds_per_word: int = Field(description="Display time per word.")
    progress: float = Field(description="Fraction of the document shown (0-1).")
    progress_percentage: str = Field(description="Progress as a percent label.")
    words_remaining: int = Field(description="Words after the current one.")
    seconds_remaining: float = Field(description="Estimated seconds left at this speed.")
    time_remaining_formatted: str = Field(description="Human-readable time left.")


# ---------------------------------------------------------------------------
# Reader sessions
# ---------------------------------------------------------------------------


class SessionCreateRequest(BaseModel):
    """Text and speed policy for a new reader session."""

    text: str = Field(description="Plain text to read.")
    wpm: Optional[int] = Field(default=None, description="Initial speed in WPM (clamped to the bounds).")
    min_speed: int = Field(default=MIN_WPM, description="Lowest allowed speed.")
    max_speed: int = Field(default=MAX_WPM, description="Highest allowed speed.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "text": "Welcome to RSVP reading.",
                "wpm": 300,
                "min_speed": 100,
                "max_speed": 400,
            }
        ]
    }}


class JumpRequest(BaseModel):
    index: Optional[int] = Field(default=None, description="Word index to jump to (clamped).")
    fraction: Optional[float] = Field(
        default=None,
        description="Position as a fraction of the document (clamped to 0-1).",
    )


class SpeedRequest(BaseModel):
    wpm: int = Field(description="New speed in WPM (clamped to the session bounds).")


class SessionResponse(BaseModel):
    """Snapshot of a reader session."""

    id: str = Field(description="Session identifier.")
    status: PlaybackStatus = Field(description="idle, playing, paused or completed.")
    current_index: int = Field(description="Index of the current word.")
    current_word: str = Field(description="The current word, empty for an empty document.")
    total_words: int = Field(description="Number of words in the document.")
    speed: int = Field(description="Current speed in WPM.")
    min_speed: int = Field(description="Lowest allowed speed.")
    max_speed: int = Field(description="Highest allowed speed.")
    is_playing: bool = Field(description="Whether ticks are scheduled.")
    is_completed: bool = Field(description="Whether the end was reached.")
    progress: float = Field(description="Fraction of the document shown (0-1).")
    words_remaining: int = Field(description="Words after the current one.")
    time_remaining_formatted: str = Field(description="Human-readable time left.")
    layout: LayoutResponse = Field(description="Default layout of the current word.")


class SessionSummaryResponse(BaseModel):
    """Reading statistics returned when a session is closed."""

    id: str = Field(description="Session identifier.")
    words_read: int = Field(description="Words advanced during the session.")
    duration_s: float = Field(description="Session length in seconds.")
    duration_formatted: str = Field(description="Session length as 'Xm Ys'.")
    average_wpm: int = Field(description="Mean of the speeds used.")
    max_wpm: int = Field(description="Highest speed used.")


class ErrorResponse(BaseModel):
    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
    sessions: int = Field(description="Number of open reader sessions.")
