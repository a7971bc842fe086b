"""RSVP Reader — rapid serial visual presentation speed-reading engine.

WHY: Reading one word at a time at a fixed point removes the eye
movements that slow normal reading down. Hosts (CLI, HTTP API, any UI)
need the same tokenizing, focal-letter and timing rules, so they live in
one engine with no knowledge of how words are rendered.

HOW: Four layers — tokenize (core.tokenizer), position (core.focal and
core.layout), drive (playback.controller with an injected scheduler),
and measure (core.timing, session). The CLI and server packages are thin
hosts over these layers.

RULES:
- Core modules are pure and safe to call from any thread
- The playback controller is the only writer of playback state
- Speed bounds are supplied by the caller, never decided by the engine
- Characters are counted as Unicode code points everywhere
"""

__version__ = "0.1.0"
