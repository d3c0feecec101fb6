# chess_sync/orchestration/sync_pool.py
"""
The worker-management engine of the sync workflow.

`GameSyncPool` processes one batch of archive games concurrently, bounded by a
semaphore. Each game runs in its own task with its own correlation id bound to
the structlog context, and a game that fails is logged and reported as failed
without affecting the rest of the batch.
"""

import asyncio
from typing import List, Sequence

import structlog

from chess_sync.exceptions import ChessSyncError
from chess_sync.orchestration.game_processor import GameProcessor
from chess_sync.tracing import CorrelationID, trace_step
from chess_sync.types import ArchiveGame, BatchResult, GameSyncResult
from chess_sync.utils import metrics

logger = structlog.get_logger(__name__)


class GameSyncPool:
    """Manages the concurrent processing of a batch of archive games."""

    def __init__(self, processor: GameProcessor, concurrency: int):
        self._processor = processor
        self._semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _process_one_game_wrapper(self, game: ArchiveGame, cid: CorrelationID) -> GameSyncResult:
        """Processes one game while holding a pool slot, with its correlation id bound."""
        async with self._semaphore:
            with cid.bound():
                return await self._processor.process_game(game)

    @trace_step("run_id")
    async def run(self, games: Sequence[ArchiveGame], run_id: str) -> BatchResult:
        """Processes every game of the batch and collects the outcomes in input order."""
        batch = BatchResult()
        if not games:
            return batch

        tasks: List[asyncio.Task] = []
        for game in games:
            cid = CorrelationID.for_game(run_id, game.url)
            # Each task gets a copy of the current context, so bindings do not leak between games.
            tasks.append(asyncio.create_task(self._process_one_game_wrapper(game, cid)))

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        for game, outcome in zip(games, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, ChessSyncError):
                logger.warning("Skipped game due to a sync error.", game_url=game.url, error=str(outcome))
                metrics.GAMES_SKIPPED_TOTAL.labels(reason=type(outcome).__name__).inc()
                batch.failed_game_ids.append(game.url)
            elif isinstance(outcome, BaseException):
                logger.error("Unhandled exception in game task.", game_url=game.url, exc_info=outcome)
                metrics.GAMES_SKIPPED_TOTAL.labels(reason="unhandled").inc()
                batch.failed_game_ids.append(game.url)
            else:
                batch.results.append(outcome)
        return batch
