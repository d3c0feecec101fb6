# chess_sync/core/fallback_parser.py
"""
The fallback extraction path: pattern matching over raw movetext.

Used when the rules-aware parser rejects a game. It does not validate legality
and does not need the movetext to be well formed beyond one regular shape per
full move: a move number, white's SAN with its comment, and optionally black's
SAN (possibly preceded by an `N...` marker) with its comment. Clock values are
read from those comments; side alternation is not re-verified.

A move number counts only at the start of the text, after whitespace or right
after a closing brace (`{...}2. Nf3`), so digits inside header values such as
`"2024.01.02"` never start a unit.
"""
import re
from typing import List

from chess_sync.core.time_parser import SideClockTracker, clock_tag_from_comment
from chess_sync.types import Side, TimedHalfMove

# SAN plus the decorations seen in exported games: check, mate, promotion,
# castling dashes and move-quality glyphs.
_SAN = r"[\w+\#=\-!?]+"

MOVE_UNIT_PATTERN = re.compile(
    rf"""
    (?<![^\s}}])(?P<number>\d+)\.\s*
    (?P<white_san>{_SAN})\s*
    \{{(?P<white_comment>[^}}]*)\}}
    (?:
        \s*(?:\d+\.{{3}}\s*)?
        (?P<black_san>{_SAN})\s*
        \{{(?P<black_comment>[^}}]*)\}}
    )?
    """,
    re.VERBOSE,
)


def extract_fallback(pgn_text: str) -> List[TimedHalfMove]:
    """
    Extracts timed half-moves by matching full-move units in the raw text.

    The move number of each half-move is the number literal of its unit.

    Args:
        pgn_text: Raw PGN text.

    Returns:
        The timed half-moves in text order; empty if no unit matches.
    """
    if not pgn_text:
        return []

    tracker = SideClockTracker()
    moves: List[TimedHalfMove] = []
    for unit in MOVE_UNIT_PATTERN.finditer(pgn_text):
        move_number = int(unit.group("number"))
        moves.append(
            tracker.stamp(
                unit.group("white_san"),
                Side.WHITE,
                move_number,
                clock_tag_from_comment(unit.group("white_comment")),
            )
        )
        if unit.group("black_san"):
            moves.append(
                tracker.stamp(
                    unit.group("black_san"),
                    Side.BLACK,
                    move_number,
                    clock_tag_from_comment(unit.group("black_comment")),
                )
            )
    return moves
