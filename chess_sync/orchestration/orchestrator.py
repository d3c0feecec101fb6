# chess_sync/orchestration/orchestrator.py
"""
The top-level sync orchestrator.
"""

import uuid

import structlog

from chess_sync.exceptions import ArchiveError
from chess_sync.orchestration.sync_pool import GameSyncPool
from chess_sync.tracing import trace_step
from chess_sync.types import ArchiveClient, GameRepository, SyncReport

logger = structlog.get_logger(__name__)


class SyncOrchestrator:
    """Syncs every archived game of one player into the game store."""

    def __init__(self, archive_client: ArchiveClient, store: GameRepository, pool: GameSyncPool):
        self._archive_client = archive_client
        self._store = store
        self._pool = pool

    @trace_step("archive_url")
    async def _sync_archive(self, archive_url: str, run_id: str, report: SyncReport) -> None:
        try:
            games = await self._archive_client.fetch_archive(archive_url)
        except ArchiveError as e:
            logger.warning("Skipping archive that could not be fetched.", archive_url=archive_url, error=str(e))
            report.warnings.append(f"Failed to fetch archive {archive_url}: {e}")
            return

        batch = await self._pool.run(games, run_id)
        for result in batch.results:
            if result.created:
                report.created += 1
            else:
                report.updated += 1
        report.skipped += len(batch.failed_game_ids)
        report.total_games = report.created + report.updated

    async def run(self, username: str) -> SyncReport:
        """
        Runs a full sync for `username`.

        Archives that cannot be fetched and games that fail to sync are logged,
        counted and skipped. Failing to list the archives at all is fatal and
        propagates as an `ArchiveError`.

        Raises:
            ValueError: If `username` is empty.
        """
        username = (username or "").strip()
        if not username:
            raise ValueError("Username is required")

        run_id = f"run-{uuid.uuid4().hex[:8]}"
        logger.info("Starting sync.", run_id=run_id, username=username)

        await self._store.initialize_db()
        await self._store.get_or_create_player(username)

        report = SyncReport(username=username)
        archives = await self._archive_client.list_archives(username)
        for archive_url in archives:
            await self._sync_archive(archive_url, run_id, report)

        await self._store.touch_last_sync(username)
        logger.info(
            "Sync finished.", run_id=run_id, total_games=report.total_games,
            created=report.created, updated=report.updated, skipped=report.skipped,
        )
        return report
