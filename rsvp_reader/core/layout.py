"""Per-word display geometry that keeps the focal letter on the anchor.

WHY: If words were simply centred, the focal letter would jump left and
right with every word and the reader's eye would follow it. The layout
engine computes where to draw each word so the focal letter's centre
always sits on the same x position.

HOW: Glyph widths are approximated as ``font_size * char_width_factor``
for every character (a monospace model — real glyph metrics are never
measured, so proportional fonts will be slightly off). The word is split
into before / focal / after at the focal index, then one of two anchoring
modes is applied:

  CENTERED_WORD  — the whole word is centred as a block, then shifted by
                   ``word_center_x - focal_center_x``
  THREE_SEGMENT  — the before text is right-aligned into a fixed left
                   slot ending where the focal glyph starts, the focal
                   glyph sits at ``anchor - char_width / 2``, and the after
                   text is left-aligned into the rest of the track

RULES:
- Characters are Unicode code points, same unit as focal.py
- Empty words produce a degenerate layout (empty strings, zero numbers)
- Out-of-range focal indices are clamped, never raised
- Negative or non-finite sizes are treated as 0; anchor_fraction is
  clamped to [0, 1]
- THREE_SEGMENT overflow is reported and, with OverflowPolicy.CLIP,
  trimmed from the outer ends; it never raises
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from rsvp_reader.config import (
    ANCHOR_FRACTION,
    CHARACTER_WIDTH_FACTOR,
    DEFAULT_FONT_SIZE,
    TRACK_WIDTH,
)
from rsvp_reader.core.focal import DEFAULT_FOCAL_POLICY, FocalPolicy, focal_index


class AnchorMode(str, enum.Enum):
    CENTERED_WORD = "centered_word"
    THREE_SEGMENT = "three_segment"


class OverflowPolicy(str, enum.Enum):
    """What THREE_SEGMENT does with text wider than its slot."""

    EXTEND = "extend"
    CLIP = "clip"


@dataclass(frozen=True)
class FocalLayout:
    """Display geometry for one word.

    RULES:
    - before_text + focal_char + after_text == the displayed word (with
      OverflowPolicy.CLIP the outer segments may be shortened)
    - horizontal_offset, CENTERED_WORD: shift to apply to a centred word
      so its focal glyph centre lands on the anchor
    - horizontal_offset, THREE_SEGMENT: x of the first drawn character
      relative to the left edge of the track (negative when the before
      text spills past the left edge)
    - Slot fields are only populated in THREE_SEGMENT mode
    """

    before_text: str
    focal_char: str
    after_text: str
    focal_index: int
    horizontal_offset: float
    mode: AnchorMode = AnchorMode.CENTERED_WORD
    char_width: float = 0.0
    anchor_x: float = 0.0
    focal_x: float = 0.0
    before_slot_width: float = 0.0
    after_slot_width: float = 0.0
    before_overflow: float = 0.0
    after_overflow: float = 0.0

    @property
    def text(self) -> str:
        return self.before_text + self.focal_char + self.after_text


def _non_negative(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def _clamp_fraction(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return max(0.0, min(value, 1.0))


def split_word(word: str, index: int) -> Tuple[str, str, str]:
    """Split ``word`` into (before, focal, after) around ``index``.

    The index is clamped into the word; an empty word gives three empty
    strings.
    """
    if not word:
        return "", "", ""
    index = max(0, min(index, len(word) - 1))
    return word[:index], word[index], word[index + 1:]


def centered_offset(char_count: int, index: int, char_width: float) -> float:
    """Offset that moves the focal glyph centre onto the word centre.

    ``word_center_x - focal_center_x`` where ``word_center_x`` is
    ``char_count * char_width / 2`` and ``focal_center_x`` is
    ``index * char_width + char_width / 2``.
    """
    if char_count <= 0:
        return 0.0
    word_center_x = (char_count * char_width) / 2
    focal_center_x = index * char_width + char_width / 2
    return word_center_x - focal_center_x


def layout(
    word: str,
    font_size: float = DEFAULT_FONT_SIZE,
    char_width_factor: float = CHARACTER_WIDTH_FACTOR,
    anchor_fraction: float = ANCHOR_FRACTION,
    mode: AnchorMode = AnchorMode.CENTERED_WORD,
    track_width: float = TRACK_WIDTH,
    policy: FocalPolicy = DEFAULT_FOCAL_POLICY,
    overflow: OverflowPolicy = OverflowPolicy.EXTEND,
    index: Optional[int] = None,
) -> FocalLayout:
    """Compute the display geometry for ``word``.

    WHY: Renderers should not reimplement anchoring math; they take the
    three segments and the offset and draw.

    HOW: Resolve the focal index (from ``policy`` unless ``index`` is
    given), split the word, then compute mode-specific geometry.

    Args:
        word: The word to lay out.
        font_size: Font size in points.
        char_width_factor: Glyph width as a fraction of font size.
        anchor_fraction: Notch position as a fraction of ``track_width``
            (THREE_SEGMENT only).
        mode: Anchoring mode.
        track_width: Width of the fixed track (THREE_SEGMENT only).
        policy: Focal letter policy.
        overflow: Slot overflow handling (THREE_SEGMENT only).
        index: Explicit focal index; clamped into the word.

    Returns:
        A FocalLayout. Never raises for numeric input.
    """
    mode = AnchorMode(mode)
    if not word:
        return FocalLayout("", "", "", 0, 0.0, mode=mode)

    char_width = _non_negative(font_size) * _non_negative(char_width_factor)
    if index is None:
        index = focal_index(word, policy)
    index = max(0, min(int(index), len(word) - 1))
    before, focal, after = split_word(word, index)

    if mode == AnchorMode.CENTERED_WORD:
        return FocalLayout(
            before_text=before,
            focal_char=focal,
            after_text=after,
            focal_index=index,
            horizontal_offset=centered_offset(len(word), index, char_width),
            mode=mode,
            char_width=char_width,
        )

    return _three_segment(
        before, focal, after, index, char_width,
        _non_negative(track_width), _clamp_fraction(anchor_fraction),
        OverflowPolicy(overflow),
    )


def _three_segment(
    before: str,
    focal: str,
    after: str,
    index: int,
    char_width: float,
    track_width: float,
    anchor_fraction: float,
    overflow: OverflowPolicy,
) -> FocalLayout:
    """Fit the three segments into a fixed-width track.

    RULES:
    - anchor_x = anchor_fraction * track_width
    - focal_x = anchor_x - char_width / 2 (may be negative on a tiny track)
    - before slot = max(0, focal_x); after slot =
      max(0, track_width - anchor_x - char_width / 2)
    - Overflow is the width of text that does not fit its slot
    - CLIP keeps the characters nearest the focal letter
    """
    half = char_width / 2
    anchor_x = anchor_fraction * track_width
    focal_x = anchor_x - half
    before_slot = max(0.0, focal_x)
    after_slot = max(0.0, track_width - anchor_x - half)

    before_overflow = max(0.0, len(before) * char_width - before_slot)
    after_overflow = max(0.0, len(after) * char_width - after_slot)

    if overflow == OverflowPolicy.CLIP and char_width > 0:
        keep_before = int(math.floor(before_slot / char_width))
        keep_after = int(math.floor(after_slot / char_width))
        before = before[max(0, len(before) - keep_before):] if keep_before else ""
        after = after[:keep_after]

    return FocalLayout(
        before_text=before,
        focal_char=focal,
        after_text=after,
        focal_index=index,
        horizontal_offset=focal_x - len(before) * char_width,
        mode=AnchorMode.THREE_SEGMENT,
        char_width=char_width,
        anchor_x=anchor_x,
        focal_x=focal_x,
        before_slot_width=before_slot,
        after_slot_width=after_slot,
        before_overflow=before_overflow,
        after_overflow=after_overflow,
    )
