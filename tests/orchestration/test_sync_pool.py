# tests/orchestration/test_sync_pool.py
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from chess_sync.exceptions import PersistenceError
from chess_sync.orchestration.game_processor import GameProcessor
from chess_sync.orchestration.sync_pool import GameSyncPool
from chess_sync.types import ExtractionSource, GameSyncResult


def _ok(game):
    return GameSyncResult(game_id=game.url, created=True, moves_written=1, source=ExtractionSource.STRUCTURED)


@pytest.fixture
def mock_processor():
    processor = MagicMock(spec=GameProcessor)
    processor.process_game = AsyncMock(side_effect=_ok)
    return processor


@pytest.mark.asyncio
async def test_run_processes_all_games_in_order(mock_processor, make_archive_game):
    games = [make_archive_game(game_id=str(i)) for i in range(5)]

    batch = await GameSyncPool(mock_processor, concurrency=2).run(games, "run-test")

    assert [r.game_id for r in batch.results] == [g.url for g in games]
    assert batch.failed_game_ids == []
    assert mock_processor.process_game.await_count == 5


@pytest.mark.asyncio
async def test_failed_games_do_not_stop_the_batch(mock_processor, make_archive_game):
    games = [make_archive_game(game_id=str(i)) for i in range(3)]

    async def process(game):
        if game is games[0]:
            raise PersistenceError("disk full")
        if game is games[1]:
            raise RuntimeError("boom")
        return _ok(game)

    mock_processor.process_game.side_effect = process

    batch = await GameSyncPool(mock_processor, concurrency=4).run(games, "run-test")

    assert batch.failed_game_ids == [games[0].url, games[1].url]
    assert [r.game_id for r in batch.results] == [games[2].url]


@pytest.mark.asyncio
async def test_concurrency_is_bounded(mock_processor, make_archive_game):
    active = 0
    peak = 0

    async def process(game):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return _ok(game)

    mock_processor.process_game.side_effect = process
    games = [make_archive_game(game_id=str(i)) for i in range(6)]

    await GameSyncPool(mock_processor, concurrency=2).run(games, "run-test")

    assert peak == 2


@pytest.mark.asyncio
async def test_empty_batch(mock_processor):
    batch = await GameSyncPool(mock_processor, concurrency=2).run([], "run-test")

    assert batch.results == []
    assert batch.failed_game_ids == []
    mock_processor.process_game.assert_not_awaited()
