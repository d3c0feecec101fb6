# chess_sync/core/pgn_parser.py
"""
The structured extraction path: rules-aware movetext parsing with `python-chess`.

This module acts as an Anti-Corruption Layer around the external `python-chess`
library. `load_move_history` replays the mainline on a fresh board, which
validates every move, and returns a plain list of `HistoryMove` entries.
`extract_structured` pairs that history positionally with the clock comments
scanned from the raw text. Any rejection by the rules engine is raised as a
`PgnParsingError` so the whole path fails as a unit.
"""
import io
import math
from typing import List

import chess
import chess.pgn
import structlog

from chess_sync.core.time_parser import SideClockTracker, scan_clock_comments
from chess_sync.exceptions import PgnParsingError
from chess_sync.types import HistoryMove, MoveHistoryLoader, Side, TimedHalfMove

logger = structlog.get_logger(__name__)


def _move_number_for_ply(ply: int, side: Side) -> int:
    """Calculates the full-move number from a 0-indexed ply and the side that moved."""
    if side is Side.WHITE:
        return math.ceil((ply + 1) / 2)
    return (ply + 1) // 2


def load_move_history(pgn_text: str) -> List[HistoryMove]:
    """
    Loads the first game in `pgn_text` and returns its validated mainline.

    A fresh `chess.pgn` reader and board are used for every call, so calls
    never share move history.

    Args:
        pgn_text: Raw PGN text, including headers and comments.

    Returns:
        One `HistoryMove` per ply, in game order.

    Raises:
        PgnParsingError: If no game is found, the reader reported errors
            (e.g. an illegal or unreadable SAN token), or a move cannot be
            replayed on the board.
    """
    try:
        game = chess.pgn.read_game(io.StringIO(pgn_text))
    except (ValueError, RuntimeError) as e:
        raise PgnParsingError(f"PGN reader failed: {e}") from e

    if game is None:
        raise PgnParsingError("No game found in PGN text.")

    # python-chess records movetext problems instead of raising; any of them
    # means the mainline it built is incomplete.
    if game.errors:
        raise PgnParsingError(f"PGN reader rejected the movetext: {game.errors[0]}")

    # game.board() honours a FEN/SetUp header if present.
    board = game.board()
    history: List[HistoryMove] = []
    try:
        for move in game.mainline_moves():
            side = Side.WHITE if board.turn == chess.WHITE else Side.BLACK
            history.append(HistoryMove(san=board.san(move), side=side))
            board.push(move)
    except (AssertionError, chess.IllegalMoveError, ValueError) as e:
        raise PgnParsingError(f"Illegal move at ply {len(history)}: {e}") from e

    return history


def extract_structured(
    pgn_text: str, history_loader: MoveHistoryLoader = load_move_history
) -> List[TimedHalfMove]:
    """
    Extracts timed half-moves using the rules-aware parser.

    Move *i* of the history is paired with the *i*-th comment's clock value;
    when there are fewer comments than moves, the remaining moves get an empty
    clock string. Surplus comments are ignored.

    Args:
        pgn_text: Raw PGN text.
        history_loader: The rules engine capability. Defaults to `python-chess`.

    Returns:
        The timed half-moves in game order.

    Raises:
        PgnParsingError: If the history loader rejects the movetext.
    """
    history = history_loader(pgn_text)
    clocks = scan_clock_comments(pgn_text)
    if len(clocks) != len(history):
        logger.debug("Clock comment count differs from move count.", moves=len(history), clocks=len(clocks))

    tracker = SideClockTracker()
    moves: List[TimedHalfMove] = []
    for ply, history_move in enumerate(history):
        clock = clocks[ply] if ply < len(clocks) else ""
        moves.append(
            tracker.stamp(
                history_move.san,
                history_move.side,
                _move_number_for_ply(ply, history_move.side),
                clock,
            )
        )
    return moves
