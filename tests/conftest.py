# tests/conftest.py
import pytest

from chess_sync.types import ArchiveGame, ArchivePlayer

SCHOLARS_MATE_PGN = """[Event "Live Chess"]
[Site "Chess.com"]
[White "alice"]
[Black "bob"]
[Result "1-0"]
[TimeControl "300"]

1. e4 {[%clk 0:05:00]} 1... e5 {[%clk 0:05:00]} 2. Bc4 {[%clk 0:04:55]} 2... Nc6 {[%clk 0:04:50]} 3. Qh5 {[%clk 0:04:45]} 3... Nf6 {[%clk 0:04:30]} 4. Qxf7# {[%clk 0:04:40]} 1-0
"""


@pytest.fixture
def scholars_mate_pgn():
    return SCHOLARS_MATE_PGN


@pytest.fixture
def make_archive_game():
    """Builds an `ArchiveGame` with sensible defaults; keyword arguments override them."""
    def _make(game_id="1001", pgn=SCHOLARS_MATE_PGN, white="alice", black="bob",
              white_result="win", black_result="checkmated", time_class="blitz"):
        return ArchiveGame(
            url=f"https://www.chess.com/game/live/{game_id}",
            pgn=pgn,
            time_control="300",
            time_class=time_class,
            rated=True,
            end_time=1700000000,
            white=ArchivePlayer(username=white, result=white_result),
            black=ArchivePlayer(username=black, result=black_result),
        )
    return _make
