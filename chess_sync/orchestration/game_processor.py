# chess_sync/orchestration/game_processor.py
"""
Defines the `GameProcessor`, responsible for syncing a single archive game
into the game store.
"""

import asyncio
from typing import Callable, Optional

import structlog

from chess_sync.core.timing_extractor import extract
from chess_sync.services.archive_client import determine_winner
from chess_sync.types import ArchiveGame, GameRepository, GameSyncResult, ParsedGame
from chess_sync.utils import metrics

logger = structlog.get_logger(__name__)


class GameProcessor:
    """Upserts the players of one game, extracts its moves and stores them."""

    def __init__(self, store: GameRepository, extractor: Optional[Callable[[str], ParsedGame]] = None):
        """
        Initializes the GameProcessor.

        Args:
            store: The game store.
            extractor: Turns PGN text into a `ParsedGame`. Defaults to `extract`.
        """
        self._store = store
        self._extractor = extractor or extract

    async def process_game(self, game: ArchiveGame) -> GameSyncResult:
        """
        Syncs one game.

        New games are created together with their moves. For a game that is
        already stored, a missing game mode is backfilled and moves are only
        added if none were stored before.
        """
        await self._store.upsert_player(game.white.username)
        await self._store.upsert_player(game.black.username)

        # Extraction is CPU-bound; keep it off the event loop.
        parsed = await asyncio.to_thread(self._extractor, game.pgn)

        existing = await self._store.get_game(game.url)
        if existing is None:
            await self._store.create_game(game, determine_winner(game), parsed.moves)
            metrics.GAMES_SYNCED_TOTAL.labels(action="created").inc()
            logger.debug("Created game.", moves=len(parsed.moves), source=parsed.source.value)
            return GameSyncResult(game_id=game.url, created=True, moves_written=len(parsed.moves), source=parsed.source)

        if not existing.game_mode and game.time_class:
            await self._store.set_game_mode(game.url, game.time_class)

        written = 0
        if existing.move_count == 0:
            written = await self._store.add_moves(game.url, parsed.moves)

        metrics.GAMES_SYNCED_TOTAL.labels(action="updated").inc()
        logger.debug("Updated existing game.", moves_written=written, source=parsed.source.value)
        return GameSyncResult(game_id=game.url, created=False, moves_written=written, source=parsed.source)
