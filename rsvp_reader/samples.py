"""Built-in sample texts for demos and first-run experiences."""

from __future__ import annotations

DEMO_TITLE = "Welcome to RSVP reading"

DEMO_TEXT = """\
Welcome to RSVP reading.

Right now, you are reading faster than most people do.

This is called Rapid Serial Visual Presentation.

Instead of your eyes travelling across a page, the words come to you.

Most people read around two hundred words per minute. Your eyes lose time
jumping from word to word, and your inner voice holds you back.

Keep your gaze on the highlighted letter. It marks the point where your
brain recognizes each word fastest.

You are already reading at three hundred words per minute.

Want to go faster? Raise the speed a little at a time.

At five hundred words per minute, a book takes a few hours.

Try it. Speed up. See what you can do.
"""

SHORT_DEMO_TEXT = (
    "This is a quick demo of RSVP reading. Focus on the highlighted letter. "
    "Your brain processes words faster than you think."
)
