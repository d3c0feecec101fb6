# chess_sync/types.py
"""
A central module for shared data structures and service interfaces (Protocols).
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeAlias, runtime_checkable

GameMetadata: TypeAlias = Dict[str, str]

class Side(str, Enum):
    WHITE = "white"; BLACK = "black"

    @property
    def code(self) -> str:
        """The single-letter colour code used in storage ('w' or 'b')."""
        return "w" if self is Side.WHITE else "b"

class ExtractionSource(str, Enum):
    """Which extraction path produced a game's move list."""
    STRUCTURED = "structured"; FALLBACK = "fallback"; EMPTY = "empty"

# --- EXTRACTION CONTRACTS ---

@dataclass(frozen=True, slots=True)
class HistoryMove:
    """One entry of the move history produced by the rules-aware parser."""
    san: str; side: Side

@dataclass(frozen=True, slots=True)
class TimedHalfMove:
    algebraic: str; side: Side; move_number: int; clock_remaining: str
    time_spent: Optional[float] = None

@dataclass(frozen=True)
class ParsedGame:
    metadata: GameMetadata; moves: List[TimedHalfMove]
    source: ExtractionSource = ExtractionSource.EMPTY

    def to_dict(self) -> Dict[str, Any]:
        """Returns a JSON-ready representation of the parsed game."""
        data = asdict(self)
        data["source"] = self.source.value
        for move in data["moves"]:
            move["side"] = move["side"].value
        return data

MoveHistoryLoader: TypeAlias = Callable[[str], List[HistoryMove]]

# --- ARCHIVE CONTRACTS ---

@dataclass(frozen=True, slots=True)
class ArchivePlayer:
    username: str; result: str

@dataclass(frozen=True)
class ArchiveGame:
    url: str; pgn: str; time_control: str; time_class: str; rated: bool
    end_time: int; white: ArchivePlayer; black: ArchivePlayer

# --- PERSISTENCE & REPORTING CONTRACTS ---

@dataclass(frozen=True, slots=True)
class StoredGame:
    game_id: str; game_mode: Optional[str]; move_count: int

@dataclass(frozen=True, slots=True)
class GameSyncResult:
    game_id: str; created: bool; moves_written: int; source: ExtractionSource

@dataclass
class BatchResult:
    """What the sync pool produced for one batch of archive games."""
    results: List[GameSyncResult] = field(default_factory=list)
    failed_game_ids: List[str] = field(default_factory=list)

@dataclass
class SyncReport:
    username: str; total_games: int = 0; created: int = 0; updated: int = 0
    skipped: int = 0; warnings: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Successfully synced {self.total_games} new games for {self.username}"


# --- PROTOCOLS: Abstract Interfaces for Services ---
# These define the "contracts" that concrete service implementations must adhere to.
# They allow the orchestration layer to be tested against in-memory fakes.

@runtime_checkable
class ArchiveClient(Protocol):
    """Defines the abstract interface for the remote game archive."""
    async def list_archives(self, username: str) -> List[str]: ...
    async def fetch_archive(self, archive_url: str) -> List[ArchiveGame]: ...

@runtime_checkable
class GameRepository(Protocol):
    """Defines the abstract interface for the game store."""
    async def initialize_db(self) -> None: ...
    async def get_or_create_player(self, username: str) -> str: ...
    async def upsert_player(self, username: str) -> None: ...
    async def get_game(self, game_id: str) -> Optional[StoredGame]: ...
    async def create_game(self, game: ArchiveGame, winner: Optional[str], moves: List[TimedHalfMove]) -> None: ...
    async def add_moves(self, game_id: str, moves: List[TimedHalfMove]) -> int: ...
    async def set_game_mode(self, game_id: str, game_mode: str) -> None: ...
    async def touch_last_sync(self, username: str) -> None: ...
