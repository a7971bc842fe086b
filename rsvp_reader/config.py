"""Configuration constants, speed bounds, and .env loading.

WHY: Reading speeds, the focal-letter constants, and the display geometry
are product-tunable numbers. Keeping them as plain module-level values
(not buried in logic) makes them easy to find, override per deployment,
and inject into the engine.

HOW: python-dotenv loads the .env file on import. Each constant has a
default and an ``RSVP_*`` environment override. SpeedBounds bundles the
numeric speed range a caller hands to the playback controller.

RULES:
- Every default below can be overridden via an environment variable
- Malformed numeric overrides raise ValueError naming the variable
- The engine never knows *why* a maximum speed applies (free vs paid is
  decided by the caller); it only clamps to the bounds it was given
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "{} must be an integer, got {!r}".format(name, raw)
        ) from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            "{} must be a number, got {!r}".format(name, raw)
        ) from None


# ---------------------------------------------------------------------------
# Reading speed
# ---------------------------------------------------------------------------

MIN_WPM = _env_int("RSVP_MIN_WPM", 100)
MAX_WPM = _env_int("RSVP_MAX_WPM", 1500)
DEFAULT_WPM = _env_int("RSVP_DEFAULT_WPM", 300)
SPEED_STEP = _env_int("RSVP_SPEED_STEP", 10)
"""WPM added or removed by one increase/decrease step."""

# ---------------------------------------------------------------------------
# Focal letter
# ---------------------------------------------------------------------------

FOCAL_RATIO = _env_float("RSVP_FOCAL_RATIO", 0.35)
SHORT_WORD_THRESHOLD = _env_int("RSVP_SHORT_WORD_THRESHOLD", 3)
"""Words with at most this many characters anchor on their first letter."""

FOCAL_POLICY = os.getenv("RSVP_FOCAL_POLICY", "orp")

# ---------------------------------------------------------------------------
# Display geometry
# ---------------------------------------------------------------------------

DEFAULT_FONT_SIZE = _env_float("RSVP_FONT_SIZE", 48.0)
CHARACTER_WIDTH_FACTOR = _env_float("RSVP_CHAR_WIDTH_FACTOR", 0.6)
"""Glyph width as a fraction of font size (monospace approximation)."""

TRACK_WIDTH = _env_float("RSVP_TRACK_WIDTH", 240.0)
"""Width of the focal track: two 120pt guide lines."""

ANCHOR_FRACTION = _env_float("RSVP_ANCHOR_FRACTION", 0.10)
"""Notch position as a fraction of TRACK_WIDTH, measured from the left."""

# ---------------------------------------------------------------------------
# HTTP session store
# ---------------------------------------------------------------------------

SESSION_TTL_SECONDS = _env_int("RSVP_SESSION_TTL_SECONDS", 3600)
MAX_SESSIONS = _env_int("RSVP_MAX_SESSIONS", 100)


@dataclass(frozen=True)
class SpeedBounds:
    """The inclusive WPM range a playback controller may use.

    WHY: The allowed maximum depends on business rules the engine must not
    know about (e.g. a subscription tier). Callers build a SpeedBounds and
    inject it, so the engine only enforces numbers.

    HOW: A frozen dataclass validated on construction. clamp() maps any
    integer into the range.

    RULES:
    - min_speed must be positive
    - min_speed must not exceed max_speed
    - clamp() never raises for out-of-range values
    """

    min_speed: int = MIN_WPM
    max_speed: int = MAX_WPM

    def __post_init__(self) -> None:
        if self.min_speed <= 0:
            raise ValueError(
                "min_speed must be positive, got {}".format(self.min_speed)
            )
        if self.min_speed > self.max_speed:
            raise ValueError(
                "min_speed ({}) exceeds max_speed ({})".format(
                    self.min_speed, self.max_speed
                )
            )

    def clamp(self, wpm: int) -> int:
        """Return ``wpm`` limited to ``[min_speed, max_speed]``.

        Infinities clamp to the nearer bound; NaN gives ``min_speed``.
        """
        if isinstance(wpm, float) and not math.isfinite(wpm):
            if wpm > 0:
                return self.max_speed
            return self.min_speed
        return max(self.min_speed, min(int(wpm), self.max_speed))

    def contains(self, wpm: int) -> bool:
        return self.min_speed <= wpm <= self.max_speed


# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------

API_HOST = os.getenv("RSVP_API_HOST", "127.0.0.1")
API_PORT = _env_int("RSVP_API_PORT", 8000)
