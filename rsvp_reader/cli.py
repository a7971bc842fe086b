"""Command-line interface for the RSVP reader.

WHY: The engine needs a zero-setup host: check how long a text takes at a
given speed, export a word timeline for another tool, or actually read a
file word by word in the terminal.

HOW: argparse collects the input source (file, ``-`` for stdin, or the
built-in demo) and the actions (--stats, --export, --play). Text is
tokenized once and handed to the pure calculators or to a
PlaybackController driven by a ThreadingScheduler. Terminal playback uses
the THREE_SEGMENT layout with one column per character so the focal
letter stays in a fixed column.

RULES:
- Status and summaries go to stderr; words and exported JSON go to stdout
  only when explicitly requested (--play, --export -)
- With no action flag, --stats is assumed
- Input files are read as UTF-8
- Ctrl-C during --play pauses, prints the session summary, exits 130
- Bad arguments exit 2 (argparse); unreadable input exits 1
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
import threading
from pathlib import Path
from typing import List, Optional

from rsvp_reader.config import DEFAULT_WPM, FOCAL_POLICY, MAX_WPM, MIN_WPM, SpeedBounds
from rsvp_reader.core.focal import FOCAL_POLICIES, FocalPolicy, get_policy
from rsvp_reader.core.layout import AnchorMode, FocalLayout, OverflowPolicy, layout
from rsvp_reader.core.timing import estimated_reading_seconds, format_duration, milliseconds_per_word
from rsvp_reader.core.tokenizer import WordSequence, tokenize
from rsvp_reader.playback.controller import PlaybackController, PlaybackSnapshot, ReaderEvent
from rsvp_reader.playback.scheduler import ThreadingScheduler
from rsvp_reader.samples import DEMO_TEXT, DEMO_TITLE, SHORT_DEMO_TEXT
from rsvp_reader.session import SessionTracker
from rsvp_reader.timeline import build_timeline, timeline_to_json

logger = logging.getLogger(__name__)

_HIGHLIGHT_START = "\033[1;31m"
_HIGHLIGHT_END = "\033[0m"
_CLEAR_LINE = "\r\033[K"


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed immediately."""
    print(msg, file=sys.stderr, flush=True)


def _read_text(args: argparse.Namespace) -> str:
    """Return the text selected by the input arguments.

    RULES:
    - --demo wins over a positional input; "short" picks the one-paragraph text
    - "-" reads stdin
    - Missing or unreadable files print an error and exit 1
    """
    if args.demo:
        _status("Demo: {}".format(DEMO_TITLE))
        return SHORT_DEMO_TEXT if args.demo == "short" else DEMO_TEXT
    if args.input_file == "-":
        return sys.stdin.read()

    path = Path(args.input_file)
    if not path.is_file():
        print("Error: File not found: {}".format(path), file=sys.stderr)
        sys.exit(1)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print("Error: Cannot read {}: {}".format(path, e), file=sys.stderr)
        sys.exit(1)


def render_line(
    word: str,
    policy: FocalPolicy,
    width: int,
    anchor_fraction: float,
    color: bool = True,
) -> str:
    """Render ``word`` into a terminal line with its focal letter in a fixed column.

    WHY: A terminal is a monospace track, so the layout engine's character
    width model is exact here (one column per character).

    HOW: Lay the word out in THREE_SEGMENT mode on a ``width``-column track
    with OverflowPolicy.CLIP, then pad on the left by the offset rounded
    half-up. The focal letter lands in column ``floor(anchor_fraction * width)``
    for every word that fits the track.
    """
    geometry: FocalLayout = layout(
        word,
        font_size=1.0,
        char_width_factor=1.0,
        anchor_fraction=anchor_fraction,
        mode=AnchorMode.THREE_SEGMENT,
        track_width=float(width),
        policy=policy,
        overflow=OverflowPolicy.CLIP,
    )
    if not geometry.focal_char:
        return ""
    pad = max(0, int(math.floor(geometry.horizontal_offset + 0.5)))
    focal = geometry.focal_char
    if color:
        focal = "{}{}{}".format(_HIGHLIGHT_START, focal, _HIGHLIGHT_END)
    return " " * pad + geometry.before_text + focal + geometry.after_text


def _print_stats(words: WordSequence, wpm: int) -> None:
    seconds = estimated_reading_seconds(len(words), wpm)
    _status("Words: {}".format(len(words)))
    _status("Speed: {} wpm ({} ms per word)".format(wpm, milliseconds_per_word(wpm)))
    _status("Estimated reading time: {}".format(format_duration(seconds)))


def _export(words: WordSequence, wpm: int, policy: FocalPolicy, target: str) -> None:
    content = timeline_to_json(build_timeline(words, wpm, policy), wpm)
    if target == "-":
        sys.stdout.write(content + "\n")
        return
    path = Path(target)
    path.write_text(content, encoding="utf-8")
    _status("Saved timeline: {}".format(path))


def _play(
    words: WordSequence,
    wpm: int,
    bounds: SpeedBounds,
    policy: FocalPolicy,
    width: int,
    anchor_fraction: float,
    color: bool,
) -> None:
    """Read ``words`` in the terminal until the end or Ctrl-C.

    HOW: The controller ticks on a ThreadingScheduler sharing ``lock`` with
    this thread; WORD_CHANGED redraws the line, COMPLETED sets ``done``.
    The main thread only waits, so Ctrl-C lands here and pauses under the
    lock before the summary is printed.
    """
    lock = threading.RLock()
    done = threading.Event()
    controller = PlaybackController(ThreadingScheduler(lock=lock), bounds=bounds, speed=wpm)

    def _draw(snap: PlaybackSnapshot) -> None:
        line = render_line(snap.current_word, policy, width, anchor_fraction, color)
        sys.stdout.write(_CLEAR_LINE + line)
        sys.stdout.flush()

    interrupted = False
    with lock:
        controller.load_words(words)
        tracker = SessionTracker(controller)
        controller.subscribe(ReaderEvent.WORD_CHANGED, _draw)
        controller.subscribe(ReaderEvent.COMPLETED, lambda snap: done.set())
        _draw(controller.snapshot())
        controller.play()
        if controller.is_completed:
            done.set()

    try:
        while not done.wait(0.1):
            pass
    except KeyboardInterrupt:
        interrupted = True

    with lock:
        session = tracker.finish()
        controller.dispose()

    sys.stdout.write("\n")
    sys.stdout.flush()
    _status("Read {} words in {} at {} wpm average".format(
        session.words_read, session.duration_formatted, session.average_wpm,
    ))
    if interrupted:
        _status("Paused at word {} of {}.".format(
            controller.current_index + 1, controller.total_words,
        ))
        sys.exit(130)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Positional: input_file (optional when --demo is given)
    - Actions: --stats, --export PATH, --play (combinable)
    - Speed: --wpm, --min-wpm, --max-wpm
    - Display: --focal-policy, --width, --anchor, --no-color
    """
    parser = argparse.ArgumentParser(
        prog="rsvp-reader",
        description="Speed-read text one word at a time (RSVP), estimate "
                    "reading time, or export a word timeline.",
    )

    parser.add_argument(
        "input_file",
        nargs="?",
        default=None,
        help="UTF-8 text file to read, or '-' for stdin.",
    )
    parser.add_argument(
        "--demo",
        nargs="?",
        const="full",
        default=None,
        choices=["full", "short"],
        help="Use the built-in demo text (full or short) instead of a file.",
    )

    parser.add_argument(
        "--wpm",
        type=int,
        default=DEFAULT_WPM,
        help="Reading speed in words per minute (default: %(default)s).",
    )
    parser.add_argument(
        "--min-wpm",
        type=int,
        default=MIN_WPM,
        help="Lowest allowed speed (default: %(default)s).",
    )
    parser.add_argument(
        "--max-wpm",
        type=int,
        default=MAX_WPM,
        help="Highest allowed speed (default: %(default)s).",
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print word count and estimated reading time (default action).",
    )
    parser.add_argument(
        "--export",
        default=None,
        metavar="PATH",
        help="Write the word timeline as JSON to PATH ('-' for stdout).",
    )
    parser.add_argument(
        "--play",
        action="store_true",
        help="Read the text word by word in the terminal.",
    )

    parser.add_argument(
        "--focal-policy",
        choices=sorted(FOCAL_POLICIES),
        default=FOCAL_POLICY if FOCAL_POLICY in FOCAL_POLICIES else "orp",
        help="Focal letter rule (default: %(default)s).",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=40,
        help="Terminal track width in columns for --play (default: %(default)s).",
    )
    parser.add_argument(
        "--anchor",
        type=float,
        default=0.3,
        help="Focal column as a fraction of --width (default: %(default)s).",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Do not highlight the focal letter with ANSI colors.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.input_file is None and not args.demo:
        parser.error("an input file (or '-' or --demo) is required")

    try:
        bounds = SpeedBounds(args.min_wpm, args.max_wpm)
    except ValueError as e:
        parser.error(str(e))
    wpm = bounds.clamp(args.wpm)
    if wpm != args.wpm:
        _status("Speed {} wpm is outside {}-{}; using {} wpm.".format(
            args.wpm, bounds.min_speed, bounds.max_speed, wpm,
        ))

    policy = get_policy(args.focal_policy)
    words = tokenize(_read_text(args))
    logger.debug("Tokenized %d words", len(words))

    if not (args.stats or args.export or args.play):
        args.stats = True

    if args.stats:
        _print_stats(words, wpm)
    if args.export:
        _export(words, wpm, policy, args.export)
    if args.play:
        if not words:
            _status("Nothing to read: the text contains no words.")
            return
        _play(words, wpm, bounds, policy, max(1, args.width), args.anchor, not args.no_color)


if __name__ == "__main__":
    main()
