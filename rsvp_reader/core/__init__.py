"""Pure reading calculations: tokenizing, focal letters, layout, timing.

WHY: Everything that can be computed without a clock lives here, so the
rules are testable on their own and shareable by every host.

HOW: tokenizer.py turns text into words, focal.py picks the anchor letter,
layout.py turns a word into display geometry, timing.py derives progress
and time estimates from a position and a speed.

RULES:
- No module here holds state or performs I/O
- All modules count characters as Unicode code points
"""
