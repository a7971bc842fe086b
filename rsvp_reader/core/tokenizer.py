"""Split raw text into the ordered word sequence shown by the reader.

WHY: RSVP shows one display unit at a time. A display unit is whatever
sits between whitespace, punctuation included, because "people." is read
(and timed, and anchored) as one word.

HOW: str.split() with no separator already splits on runs of any Unicode
whitespace (spaces, tabs, newlines, no-break spaces, line and paragraph
separators) and never yields empty strings.

RULES:
- Punctuation attached to a word stays on that word
- Empty or whitespace-only text yields an empty sequence, not an error
- None is a programmer error and raises TypeError
- The result is a tuple: immutable once built
"""

from __future__ import annotations

from typing import Iterable, Tuple

WordSequence = Tuple[str, ...]


def tokenize(text: str) -> WordSequence:
    """Split ``text`` into words on runs of Unicode whitespace.

    >>> tokenize("  a  b\\nc ")
    ('a', 'b', 'c')
    """
    if text is None:
        raise TypeError("tokenize() requires a string, got None")
    return tuple(text.split())


def normalize_words(words: Iterable[str]) -> WordSequence:
    """Rebuild a word sequence from pre-split words.

    WHY: Callers may hand the controller words they split themselves.
    Entries containing whitespace or nothing at all would break the
    one-display-unit-per-entry invariant.

    HOW: Every entry is re-tokenized and the pieces are concatenated in
    order, so blank entries vanish and multi-word entries are split.
    """
    if words is None:
        raise TypeError("normalize_words() requires an iterable, got None")
    result = []
    for word in words:
        result.extend(tokenize(word))
    return tuple(result)


def word_count(text: str) -> int:
    return len(tokenize(text))
