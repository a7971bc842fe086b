"""Word timeline export: when each word appears at a fixed speed.

WHY: Some consumers (video overlays, subtitle tools, external players)
do not run the live controller; they want the whole playback schedule up
front: each word with its start time, duration, and focal letter.

HOW: build_timeline() walks the word sequence, giving every word
milliseconds_per_word(wpm) and starting it where the previous one ended.
timeline_to_json() serializes the entries and validates the document
against TIMELINE_SCHEMA with jsonschema before returning it.

RULES:
- Word durations are uniform: milliseconds_per_word(wpm)
- start_ms of word i is i * duration
- focal_index uses the same policy as the live display
- Output is validated; jsonschema.ValidationError propagates
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List

import jsonschema

from rsvp_reader.core.focal import DEFAULT_FOCAL_POLICY, FocalPolicy, focal_index
from rsvp_reader.core.timing import milliseconds_per_word

TIMELINE_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["wpm", "word_count", "duration_ms", "words"],
    "additionalProperties": False,
    "properties": {
        "wpm": {"type": "integer", "minimum": 1},
        "word_count": {"type": "integer", "minimum": 0},
        "duration_ms": {"type": "integer", "minimum": 0},
        "words": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["index", "text", "start_ms", "duration_ms", "focal_index"],
                "additionalProperties": False,
                "properties": {
                    "index": {"type": "integer", "minimum": 0},
                    "text": {"type": "string", "minLength": 1},
                    "start_ms": {"type": "integer", "minimum": 0},
                    "duration_ms": {"type": "integer", "minimum": 1},
                    "focal_index": {"type": "integer", "minimum": 0},
                },
            },
        },
    },
}


@dataclass(frozen=True)
class TimelineEntry:
    """One word's slot in the playback schedule."""

    index: int
    text: str
    start_ms: int
    duration_ms: int
    focal_index: int


def build_timeline(
    words: Iterable[str],
    wpm: int,
    policy: FocalPolicy = DEFAULT_FOCAL_POLICY,
) -> List[TimelineEntry]:
    duration = milliseconds_per_word(wpm)
    return [
        TimelineEntry(
            index=i,
            text=word,
            start_ms=i * duration,
            duration_ms=duration,
            focal_index=focal_index(word, policy),
        )
        for i, word in enumerate(words)
    ]


def timeline_to_json(entries: List[TimelineEntry], wpm: int) -> str:
    """Serialize a timeline to a schema-validated JSON document.

    Args:
        entries: Output of build_timeline().
        wpm: The speed the timeline was built for.

    Returns:
        Pretty-printed JSON (UTF-8 characters kept as-is).

    Raises:
        jsonschema.ValidationError: If the document does not match
            TIMELINE_SCHEMA (e.g. wpm <= 0 or an empty word).
    """
    total = entries[-1].start_ms + entries[-1].duration_ms if entries else 0
    document: Dict[str, Any] = {
        "wpm": wpm,
        "word_count": len(entries),
        "duration_ms": total,
        "words": [asdict(entry) for entry in entries],
    }
    jsonschema.validate(instance=document, schema=TIMELINE_SCHEMA)
    return json.dumps(document, indent=2, ensure_ascii=False)
