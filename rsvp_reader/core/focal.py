"""Focal letter (Optimal Recognition Point) selection.

WHY: The eye recognizes a word fastest when it fixates slightly left of
the word's centre. Anchoring that letter to a fixed screen point lets the
reader keep their eyes still while words change.

HOW: A FocalPolicy holds the tunable constants and the formula variant.
focal_index() applies it to a word's code-point length. Three variants
exist because the product changed its rule over time; all are kept as
named configurations.

RULES:
- Characters are Unicode code points (len(word)); a letter followed by a
  combining accent counts as two characters
- n <= 1 → 0, n <= short_word_threshold → 0 (first letter)
- LENGTH (canonical, "orp"):           floor(n * ratio)
- LENGTH_MINUS_ONE ("orp_legacy"):     floor((n - 1) * ratio)
- SECOND_LETTER ("second_letter"):     1 for any word longer than one char
- The result is always a valid index; an empty word gives 0
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Dict

from rsvp_reader.config import FOCAL_POLICY, FOCAL_RATIO, SHORT_WORD_THRESHOLD

# Guards floor() against products like 20 * 0.35 landing at 6.999...
_EPSILON = 1e-9


class FocalBasis(str, enum.Enum):
    """Which length the focal ratio is applied to."""

    LENGTH = "length"
    LENGTH_MINUS_ONE = "length_minus_one"
    SECOND_LETTER = "second_letter"


@dataclass(frozen=True)
class FocalPolicy:
    """Tunable constants for focal letter selection.

    RULES:
    - ratio: fraction of the word length where the focal letter sits
    - short_word_threshold: words this short anchor on their first letter
    - basis: formula variant, see FocalBasis
    """

    ratio: float = FOCAL_RATIO
    short_word_threshold: int = SHORT_WORD_THRESHOLD
    basis: FocalBasis = FocalBasis.LENGTH


FOCAL_POLICIES: Dict[str, FocalPolicy] = {
    "orp": FocalPolicy(basis=FocalBasis.LENGTH),
    "orp_legacy": FocalPolicy(basis=FocalBasis.LENGTH_MINUS_ONE),
    "second_letter": FocalPolicy(basis=FocalBasis.SECOND_LETTER),
}


def get_policy(name: str) -> FocalPolicy:
    """Look up a named focal policy.

    Raises:
        ValueError: If ``name`` is not a key of FOCAL_POLICIES.
    """
    try:
        return FOCAL_POLICIES[name]
    except KeyError:
        raise ValueError(
            "Unknown focal policy '{}'. Available: {}".format(
                name, ", ".join(sorted(FOCAL_POLICIES))
            )
        ) from None


def _configured_policy(name: str) -> FocalPolicy:
    try:
        return get_policy(name)
    except ValueError as exc:
        raise ValueError("RSVP_FOCAL_POLICY: {}".format(exc)) from None


DEFAULT_FOCAL_POLICY = _configured_policy(FOCAL_POLICY)


def focal_index(word: str, policy: FocalPolicy = DEFAULT_FOCAL_POLICY) -> int:
    """Return the index of the focal letter in ``word``.

    WHY: Both the highlight and the horizontal anchoring depend on one
    agreed letter, so every caller must go through this function.

    HOW: Count code points, handle the short-word cases, then apply the
    policy's formula and clamp into ``[0, n - 1]``.

    Args:
        word: A display word (may carry punctuation).
        policy: The formula variant and constants to use.

    Returns:
        An index with ``0 <= index < max(1, len(word))``.
    """
    n = len(word)
    if n <= 1:
        return 0

    if policy.basis == FocalBasis.SECOND_LETTER:
        return 1

    if n <= policy.short_word_threshold:
        return 0

    if policy.basis == FocalBasis.LENGTH_MINUS_ONE:
        raw = (n - 1) * policy.ratio
    else:
        raw = n * policy.ratio

    if not math.isfinite(raw):
        return 0
    return max(0, min(int(math.floor(raw + _EPSILON)), n - 1))


def focal_char(word: str, policy: FocalPolicy = DEFAULT_FOCAL_POLICY) -> str:
    """Return the focal character, or ``""`` for an empty word."""
    if not word:
        return ""
    return word[focal_index(word, policy)]
