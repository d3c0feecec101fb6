# main.py
"""
The command-line entry point for Chess Sync.

    python main.py sync <username>       Sync a player's archived games into the store.
    python main.py extract <file.pgn>    Print the timed moves of one PGN file as JSON.
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from chess_sync.config.settings import SyncConfig, settings
from chess_sync.containers import get_container
from chess_sync.core.timing_extractor import extract
from chess_sync.exceptions import ChessSyncError
from chess_sync.orchestration.orchestrator import SyncOrchestrator
from chess_sync.services.archive_client import ChessComArchiveClient
from chess_sync.types import SyncReport
from chess_sync.utils.logging_config import setup_logging

logger = structlog.get_logger(__name__)


async def run_sync(config: SyncConfig) -> SyncReport:
    """Wires a container for `config` and runs one sync."""
    container = get_container(config)
    async with container.resolve(ChessComArchiveClient):
        orchestrator: SyncOrchestrator = container.resolve(SyncOrchestrator)
        return await orchestrator.run(config.username)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chess-sync", description=__doc__.splitlines()[1].strip())
    parser.add_argument("--log-level", default=settings.default_log_level)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write JSON logs to this file.")
    parser.add_argument("--json-logs", action="store_true", help="Render console logs as JSON.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Sync a player's archived games.")
    sync_parser.add_argument("username")
    sync_parser.add_argument("--db-path", default=None, help=f"SQLite file (default: {settings.default_db_path}).")
    sync_parser.add_argument("--concurrency", type=int, default=None)

    extract_parser = subparsers.add_parser("extract", help="Print the timed moves of a PGN file as JSON.")
    extract_parser.add_argument("pgn_file", type=Path)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parses arguments, sets up logging and dispatches to the chosen command."""
    args = _build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level, log_file=args.log_file, json_console=args.json_logs)

    if args.command == "extract":
        try:
            pgn_text = args.pgn_file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.error("Could not read PGN file.", path=str(args.pgn_file), error=str(e))
            return 1
        print(json.dumps(extract(pgn_text).to_dict(), indent=2))
        return 0

    config = settings.build_sync_config(args.username, db_path=args.db_path, concurrency=args.concurrency)
    try:
        report = asyncio.run(run_sync(config))
    except (ChessSyncError, ValueError) as e:
        logger.error("Sync failed.", username=args.username, error=str(e))
        return 1

    print(report.message)
    for warning in report.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0

if __name__ == "__main__":
    sys.exit(main())
