# chess_sync/persistence/game_store.py
"""
Data Access Layer for synced games, players and their timed moves.

This service provides a high-level, transactional interface to the SQLite
game store. It encapsulates all SQL and connection handling, opening one
connection per transaction so that concurrent game processors never share a
connection. Games are keyed by their archive URL; moves are keyed by
(game_id, ply), which makes re-running a sync idempotent.
"""
import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Type

import aiosqlite
import structlog

from chess_sync.exceptions import PersistenceError
from chess_sync.types import ArchiveGame, StoredGame, TimedHalfMove
from chess_sync.utils.retry import RetryPolicy, retry_with_backoff

RETRYABLE_DB_EXCEPTIONS: Tuple[Type[Exception], ...] = (aiosqlite.OperationalError,)
STORE_RETRY_POLICY = RetryPolicy(attempts=3, initial_backoff_s=0.2, max_backoff_s=2.0)
logger = structlog.get_logger(__name__)


def _move_rows(game_id: str, moves: List[TimedHalfMove]) -> List[Dict[str, object]]:
    return [
        {
            "game_id": game_id, "ply": ply, "move_number": move.move_number,
            "san": move.algebraic, "color": move.side.code,
            "time_left": move.clock_remaining, "time_spent": move.time_spent,
        }
        for ply, move in enumerate(moves)
    ]


class GameStore:
    """An async, STATELESS Data Access Layer (DAL) for the game store."""

    _SCHEMA: str = """
        PRAGMA journal_mode=WAL;
        PRAGMA foreign_keys = ON;
        CREATE TABLE IF NOT EXISTS players (
            id TEXT PRIMARY KEY, username TEXT NOT NULL UNIQUE, last_sync_time TIMESTAMP
        );
        CREATE TABLE IF NOT EXISTS games (
            id TEXT PRIMARY KEY, time_control TEXT, game_mode TEXT, rated BOOLEAN NOT NULL DEFAULT 0,
            status TEXT, winner TEXT, white_id TEXT NOT NULL, black_id TEXT NOT NULL,
            pgn TEXT NOT NULL, end_time TIMESTAMP,
            FOREIGN KEY (white_id) REFERENCES players(id),
            FOREIGN KEY (black_id) REFERENCES players(id)
        );
        CREATE TABLE IF NOT EXISTS moves (
            move_id INTEGER PRIMARY KEY AUTOINCREMENT, game_id TEXT NOT NULL, ply INTEGER NOT NULL,
            move_number INTEGER NOT NULL, san TEXT NOT NULL, color TEXT NOT NULL,
            time_left TEXT NOT NULL DEFAULT '', time_spent REAL,
            FOREIGN KEY (game_id) REFERENCES games(id) ON DELETE CASCADE, UNIQUE(game_id, ply)
        );
    """

    _INSERT_MOVE_SQL = """INSERT OR IGNORE INTO moves (game_id, ply, move_number, san, color, time_left, time_spent)
                          VALUES (:game_id, :ply, :move_number, :san, :color, :time_left, :time_spent)"""

    def __init__(self, db_path: str):
        self._db_path = Path(db_path)
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def initialize_db(self) -> None:
        """A one-time setup method to create the database and schema if they don't exist."""
        async with self._init_lock:
            if self._initialized:
                return
            logger.debug("Initializing database schema.", db_path=str(self._db_path))
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                async with aiosqlite.connect(self._db_path) as conn:
                    await conn.executescript(self._SCHEMA)
                    await conn.commit()
                self._initialized = True
                logger.info("Database schema initialized successfully.", db_path=str(self._db_path))
            except aiosqlite.Error as e:
                raise PersistenceError(f"Failed to initialize game store at '{self._db_path}'") from e

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(self._db_path, timeout=10)

    @retry_with_backoff(STORE_RETRY_POLICY, retry_on=RETRYABLE_DB_EXCEPTIONS, system="game_store", context_arg="username")
    async def upsert_player(self, username: str) -> None:
        """Creates the player row if it does not exist yet."""
        try:
            async with self._connect() as conn:
                await conn.execute(
                    "INSERT OR IGNORE INTO players (id, username) VALUES (?, ?)", (username, username)
                )
                await conn.commit()
        except aiosqlite.OperationalError:
            raise
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to upsert player '{username}': {e}") from e

    async def get_or_create_player(self, username: str) -> str:
        """Ensures the player exists and returns its id."""
        await self.upsert_player(username)
        return username

    async def get_game(self, game_id: str) -> Optional[StoredGame]:
        """Looks up a stored game together with the number of moves stored for it."""
        sql = """SELECT g.id, g.game_mode, COUNT(m.move_id) AS move_count
                 FROM games g LEFT JOIN moves m ON m.game_id = g.id
                 WHERE g.id = ? GROUP BY g.id"""
        try:
            async with self._connect() as conn:
                conn.row_factory = aiosqlite.Row
                async with conn.execute(sql, (game_id,)) as cursor:
                    row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to read game '{game_id}': {e}") from e
        if row is None:
            return None
        return StoredGame(game_id=row["id"], game_mode=row["game_mode"], move_count=row["move_count"])

    @retry_with_backoff(STORE_RETRY_POLICY, retry_on=RETRYABLE_DB_EXCEPTIONS, system="game_store", context_arg="game")
    async def create_game(self, game: ArchiveGame, winner: Optional[str], moves: List[TimedHalfMove]) -> None:
        """Persists a new game and all of its moves within one atomic transaction."""
        game_row = {
            "id": game.url, "time_control": game.time_control, "game_mode": game.time_class,
            "rated": game.rated, "status": game.white.result, "winner": winner,
            "white_id": game.white.username, "black_id": game.black.username, "pgn": game.pgn,
            "end_time": datetime.fromtimestamp(game.end_time, tz=timezone.utc).isoformat(),
        }
        try:
            async with self._connect() as conn:
                await conn.execute("PRAGMA foreign_keys = ON;")
                await conn.execute(
                    """INSERT INTO games (id, time_control, game_mode, rated, status, winner, white_id, black_id, pgn, end_time)
                       VALUES (:id, :time_control, :game_mode, :rated, :status, :winner, :white_id, :black_id, :pgn, :end_time)""",
                    game_row,
                )
                if moves:
                    await conn.executemany(self._INSERT_MOVE_SQL, _move_rows(game.url, moves))
                await conn.commit()
        except aiosqlite.OperationalError:
            raise
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to create game '{game.url}': {e}") from e

    @retry_with_backoff(STORE_RETRY_POLICY, retry_on=RETRYABLE_DB_EXCEPTIONS, system="game_store", context_arg="game_id")
    async def add_moves(self, game_id: str, moves: List[TimedHalfMove]) -> int:
        """Stores moves for an existing game; plies already stored are left untouched."""
        if not moves:
            return 0
        try:
            async with self._connect() as conn:
                before = conn.total_changes
                await conn.executemany(self._INSERT_MOVE_SQL, _move_rows(game_id, moves))
                await conn.commit()
                return conn.total_changes - before
        except aiosqlite.OperationalError:
            raise
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to add moves to game '{game_id}': {e}") from e

    async def set_game_mode(self, game_id: str, game_mode: str) -> None:
        try:
            async with self._connect() as conn:
                await conn.execute("UPDATE games SET game_mode = ? WHERE id = ?", (game_mode, game_id))
                await conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to set game mode of '{game_id}': {e}") from e

    async def touch_last_sync(self, username: str) -> None:
        """Stamps the player's last sync time with the current UTC time."""
        now = datetime.now(timezone.utc).isoformat()
        try:
            async with self._connect() as conn:
                await conn.execute("UPDATE players SET last_sync_time = ? WHERE username = ?", (now, username))
                await conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to update last sync time of '{username}': {e}") from e

    async def get_moves(self, game_id: str) -> List[Dict[str, object]]:
        """Returns the stored moves of a game in ply order."""
        sql = """SELECT ply, move_number, san, color, time_left, time_spent
                 FROM moves WHERE game_id = ? ORDER BY ply"""
        try:
            async with self._connect() as conn:
                conn.row_factory = aiosqlite.Row
                async with conn.execute(sql, (game_id,)) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to read moves of '{game_id}': {e}") from e
        return [dict(row) for row in rows]

    async def get_last_sync_time(self, username: str) -> Optional[str]:
        try:
            async with self._connect() as conn:
                async with conn.execute("SELECT last_sync_time FROM players WHERE username = ?", (username,)) as cursor:
                    row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to read player '{username}': {e}") from e
        return row[0] if row else None
