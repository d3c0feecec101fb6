# chess_sync/containers.py
"""
Defines the Dependency Injection (DI) container for the application.

This module uses the `punq` library to manage the creation and wiring of
all services and components for a sync run. This centralizes the
application's dependency graph, making it more maintainable, testable,
and extensible.
"""

from typing import Optional

import httpx
import punq

from chess_sync.config.settings import SyncConfig
from chess_sync.core.timing_extractor import extract
from chess_sync.orchestration.game_processor import GameProcessor
from chess_sync.orchestration.orchestrator import SyncOrchestrator
from chess_sync.orchestration.sync_pool import GameSyncPool
from chess_sync.persistence.game_store import GameStore
from chess_sync.services.archive_client import ChessComArchiveClient
from chess_sync.types import ArchiveClient, GameRepository


def get_container(sync_config: SyncConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> punq.Container:
    """
    Initializes and returns a DI container configured for a specific sync run.

    Args:
        sync_config: The run configuration.
        transport: Optional HTTP transport for the archive client (used by tests).
    """
    container = punq.Container()

    container.register(SyncConfig, instance=sync_config)

    # The archive client and the store are shared by every component of the run.
    container.register(
        ChessComArchiveClient,
        factory=lambda: ChessComArchiveClient(sync_config.archive_settings, transport=transport),
        scope=punq.Scope.singleton,
    )
    container.register(ArchiveClient, factory=lambda: container.resolve(ChessComArchiveClient))
    container.register(GameStore, factory=lambda: GameStore(sync_config.db_path), scope=punq.Scope.singleton)
    container.register(GameRepository, factory=lambda: container.resolve(GameStore))

    container.register(GameProcessor, factory=lambda: GameProcessor(container.resolve(GameRepository), extract))
    container.register(
        GameSyncPool, factory=lambda: GameSyncPool(container.resolve(GameProcessor), sync_config.concurrency)
    )
    container.register(
        SyncOrchestrator,
        factory=lambda: SyncOrchestrator(
            container.resolve(ArchiveClient), container.resolve(GameRepository), container.resolve(GameSyncPool)
        ),
    )

    return container
