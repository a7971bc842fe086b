"""Reading speed, progress, and time-remaining calculations.

WHY: The player tick interval, the progress bar, and the "time left"
label all derive from the same three numbers (position, word count,
speed). Keeping the formulas in one pure module keeps them consistent
and testable without a running player.

HOW: Plain functions over ints and floats. No state.

RULES:
- milliseconds_per_word: wpm <= 0 → 1000, else 60000 / wpm rounded half-up
- progress_fraction: (index + 1) / total, 0 when total is 0
- words_remaining: max(0, total - index - 1)
- estimated_seconds_remaining: remaining / wpm * 60, 0 when wpm <= 0
- format_duration: < 60s → "< 1 min", < 1h → "N min",
  otherwise "H hr" or "H hr M min" (whole units, truncated)
"""

from __future__ import annotations

import math


def milliseconds_per_word(wpm: int) -> int:
    """Display time of one word in milliseconds at ``wpm``."""
    if wpm <= 0:
        return 1000
    # Half-up rounding; built-in round() would round 312.5 down.
    return int(math.floor(60000.0 / wpm + 0.5))


def seconds_per_word(wpm: int) -> float:
    if wpm <= 0:
        return 1.0
    return 60.0 / wpm


def progress_fraction(current_index: int, total_words: int) -> float:
    """Fraction of the document shown so far, counting the current word.

    A 10-word document at index 4 is at 0.5.
    """
    if total_words <= 0:
        return 0.0
    return (current_index + 1) / total_words


def progress_percentage(current_index: int, total_words: int) -> str:
    return "{}%".format(int(progress_fraction(current_index, total_words) * 100))


def words_remaining(current_index: int, total_words: int) -> int:
    return max(0, total_words - current_index - 1)


def estimated_seconds_remaining(remaining_words: int, wpm: int) -> float:
    """Seconds needed to read ``remaining_words`` at ``wpm``."""
    if wpm <= 0:
        return 0.0
    return remaining_words / wpm * 60.0


def estimated_reading_seconds(word_count: int, wpm: int) -> float:
    """Seconds needed to read a whole document of ``word_count`` words."""
    return estimated_seconds_remaining(word_count, wpm)


def format_duration(seconds: float) -> str:
    """Format a reading-time estimate for display.

    WHY: Estimates are rough, so the label only shows whole minutes and
    hours; anything under a minute collapses to "< 1 min".

    Examples: 45 → "< 1 min", 150 → "2 min", 3600 → "1 hr",
    5400 → "1 hr 30 min".
    """
    total_minutes = int(seconds) // 60 if seconds > 0 else 0
    hours = total_minutes // 60
    minutes = total_minutes % 60

    if hours > 0:
        if minutes > 0:
            return "{} hr {} min".format(hours, minutes)
        return "{} hr".format(hours)

    if total_minutes > 0:
        return "{} min".format(total_minutes)

    return "< 1 min"


def format_clock(seconds: float) -> str:
    """Format an elapsed session duration as "Xm Ys" or "Ys"."""
    total = int(seconds) if seconds > 0 else 0
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return "{}m {}s".format(minutes, secs)
    return "{}s".format(secs)
