# chess_sync/core/timing_extractor.py
"""
The public entry point for turning raw PGN text into a `ParsedGame`.

`extract` always scans the headers, then tries the structured path and falls
back to pattern matching when the rules engine fails for any reason. It never
raises: its callers import archives in bulk, and one unreadable game must not
stop the batch. Every outcome is tagged with the `ExtractionSource` that
produced the moves.
"""
from typing import List, Optional, Tuple

import structlog

from chess_sync.core.fallback_parser import extract_fallback
from chess_sync.core.pgn_headers import extract_metadata
from chess_sync.core.pgn_parser import extract_structured, load_move_history
from chess_sync.exceptions import PgnParsingError
from chess_sync.types import ExtractionSource, GameMetadata, MoveHistoryLoader, ParsedGame, TimedHalfMove
from chess_sync.utils import metrics

logger = structlog.get_logger(__name__)


def try_structured(
    pgn_text: str, history_loader: MoveHistoryLoader = load_move_history
) -> Optional[List[TimedHalfMove]]:
    """
    Runs the structured path as a unit.

    Returns:
        The timed half-moves, or `None` if the rules engine failed for any
        reason. Partial results are never returned.
    """
    try:
        return extract_structured(pgn_text, history_loader)
    except PgnParsingError as e:
        logger.warning("Structured PGN parse rejected the movetext.", error=str(e))
    except Exception:
        logger.warning("Rules engine failed unexpectedly.", exc_info=True)
    return None


def extract_moves(
    pgn_text: str, history_loader: MoveHistoryLoader = load_move_history
) -> Tuple[ExtractionSource, List[TimedHalfMove]]:
    """
    Runs the structured path and, if it yields nothing usable, the fallback path.

    Returns:
        The tagged outcome: `STRUCTURED` or `FALLBACK` with the moves the
        winning path produced, or `EMPTY` with no moves.
    """
    moves = try_structured(pgn_text, history_loader)
    if moves is not None:
        source = ExtractionSource.STRUCTURED
    else:
        moves = extract_fallback(pgn_text)
        source = ExtractionSource.FALLBACK

    if not moves:
        return ExtractionSource.EMPTY, []
    return source, moves


def extract(pgn_text: Optional[str], history_loader: MoveHistoryLoader = load_move_history) -> ParsedGame:
    """
    Extracts header metadata and timed half-moves from one PGN text.

    Args:
        pgn_text: Raw PGN text. `None` is treated as an empty string.
        history_loader: The rules engine capability used by the structured path.

    Returns:
        A `ParsedGame`. On total failure the move list is empty and the
        metadata holds whatever the header scan produced.
    """
    text = pgn_text or ""
    metadata: GameMetadata = {}
    try:
        metadata = extract_metadata(text)
        source, moves = extract_moves(text, history_loader)
    except Exception:
        logger.error("PGN timing extraction failed, returning empty move list.", exc_info=True)
        source, moves = ExtractionSource.EMPTY, []

    metrics.PGN_EXTRACTIONS_TOTAL.labels(source=source.value).inc()
    logger.debug("Extracted PGN timing.", source=source.value, move_count=len(moves))
    return ParsedGame(metadata=metadata, moves=moves, source=source)
