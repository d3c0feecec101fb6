# chess_sync/core/time_parser.py
"""
Provides pure, stateless utilities to read PGN clock annotations.

This module handles the `[%clk H:MM:SS.d]` tag found inside PGN comments: it
scans raw PGN text for comment blocks, converts clock strings to seconds and
turns successive clock readings into per-move time spent. Conversion is
deliberately permissive (minutes or seconds of 60 and above are accepted
arithmetically) and never raises on malformed input.

A move with an empty or unparseable clock is not a reading: its time spent is
absent and the side's previous reading stays the reference for its next move.
`clock_to_seconds("")` still returns 0 for callers that want a number.
"""

import re
from typing import Dict, List, Optional

import structlog

from chess_sync.types import Side, TimedHalfMove

logger = structlog.get_logger(__name__)

# Every `{...}` comment block in the movetext, in order of appearance.
COMMENT_PATTERN = re.compile(r"\{([^}]*)\}")

# The clock tag inside a comment. Anything may precede or follow it.
CLK_TAG_PATTERN = re.compile(r"\[%clk\s+([^\]]+)\]")

CLOCK_VALUE_PATTERN = re.compile(
    r"^(?:(?P<h>\d+):)?"         # Optional hours group (e.g., "1:")
    r"(?P<m>\d+):"               # Minutes group (e.g., "05:")
    r"(?P<s>\d+(?:\.\d+)?)$"     # Seconds with optional fraction (e.g., "33.7")
)


def clock_tag_from_comment(comment: Optional[str]) -> str:
    """
    Returns the verbatim clock value of a comment's `[%clk ...]` tag.

    Example: `"[%eval 0.3] [%clk 0:05:33.7]"` → `"0:05:33.7"`.
    Returns an empty string when the comment carries no clock tag.
    """
    if not comment:
        return ""
    match = CLK_TAG_PATTERN.search(comment)
    return match.group(1).strip() if match else ""


def scan_clock_comments(pgn_text: str) -> List[str]:
    """
    Scans raw PGN text for comment blocks and returns one clock value per block.

    The result is positional: entry *i* belongs to the *i*-th comment in the
    text, and is an empty string when that comment has no clock tag.
    """
    return [clock_tag_from_comment(m.group(1)) for m in COMMENT_PATTERN.finditer(pgn_text)]


def clock_to_seconds(clock: str) -> Optional[float]:
    """
    Converts a clock string to the total seconds it represents.

    Handles `"H:MM:SS"`, `"H:MM:SS.s"` and the hour-less `"MM:SS"` form.

    Args:
        clock: The clock string, e.g. `"0:15:00"` or `"1:00:00.5"`.

    Returns:
        `hours*3600 + minutes*60 + seconds` as a float, `0.0` for an empty
        string, or `None` if the string is not a clock value at all.
    """
    if not clock:
        return 0.0

    match = CLOCK_VALUE_PATTERN.match(clock.strip())
    if not match:
        logger.debug("Unparseable clock value.", clock=clock)
        return None

    hours = int(match.group("h") or 0)
    minutes = int(match.group("m"))
    seconds = float(match.group("s"))
    return hours * 3600 + minutes * 60 + seconds


class SideClockTracker:
    """
    Tracks the most recent clock reading of each side during one extraction.

    A new tracker must be created for every game; it is never shared.
    """

    def __init__(self) -> None:
        self._previous: Dict[Side, float] = {}

    def time_spent(self, side: Side, clock: str) -> Optional[float]:
        """
        Records `clock` as `side`'s latest reading and returns the time spent.

        Returns `None` when there is no earlier reading for that side, or when
        `clock` is empty or unparseable (which is then not recorded). A clock
        that went up, e.g. through increment, yields a negative value.
        """
        if not clock:
            return None
        current = clock_to_seconds(clock)
        if current is None:
            return None
        previous = self._previous.get(side)
        self._previous[side] = current
        return None if previous is None else previous - current

    def stamp(self, algebraic: str, side: Side, move_number: int, clock: str) -> TimedHalfMove:
        """Builds the `TimedHalfMove` for one ply and advances the tracker."""
        return TimedHalfMove(
            algebraic=algebraic,
            side=side,
            move_number=move_number,
            clock_remaining=clock,
            time_spent=self.time_spent(side, clock),
        )
