# tests/core/test_pgn_parser.py
from unittest.mock import MagicMock

import pytest

from chess_sync.core.pgn_parser import extract_structured, load_move_history
from chess_sync.exceptions import PgnParsingError
from chess_sync.types import HistoryMove, Side


def test_load_move_history_simple_game():
    pgn_string = """
[Event "Test Game"]
[White "Player A"]
[Black "Player B"]
[Result "1-0"]

1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 1-0
"""
    history = load_move_history(pgn_string)

    assert [m.san for m in history] == ["e4", "e5", "Nf3", "Nc6", "Bb5", "a6"]
    assert [m.side for m in history] == [Side.WHITE, Side.BLACK] * 3


def test_load_move_history_from_fen():
    pgn_string = """
[Event "Test Game From FEN"]
[Result "*"]
[FEN "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"]
[SetUp "1"]

2. Nf3 Nc6 3. Bb5 a6 *
"""
    history = load_move_history(pgn_string)
    assert [m.san for m in history] == ["Nf3", "Nc6", "Bb5", "a6"]


def test_load_move_history_rejects_illegal_move():
    with pytest.raises(PgnParsingError):
        load_move_history("1. e4 e5 2. Ke3 Nc6 *")


def test_load_move_history_rejects_text_without_game():
    with pytest.raises(PgnParsingError):
        load_move_history("")


def test_load_move_history_is_independent_between_calls():
    first = load_move_history("1. d4 d5 *")
    second = load_move_history("1. e4 c5 *")
    assert [m.san for m in first] == ["d4", "d5"]
    assert [m.san for m in second] == ["e4", "c5"]


def test_extract_structured_pairs_clocks_and_numbers(scholars_mate_pgn):
    moves = extract_structured(scholars_mate_pgn)

    assert [m.algebraic for m in moves] == ["e4", "e5", "Bc4", "Nc6", "Qh5", "Nf6", "Qxf7#"]
    assert [m.move_number for m in moves] == [1, 1, 2, 2, 3, 3, 4]
    assert [m.side for m in moves] == [Side.WHITE, Side.BLACK] * 3 + [Side.WHITE]
    assert moves[0].clock_remaining == "0:05:00"
    assert moves[0].time_spent is None
    assert moves[1].time_spent is None
    assert moves[2].time_spent == pytest.approx(5.0)
    assert moves[5].time_spent == pytest.approx(20.0)
    assert moves[6].time_spent == pytest.approx(5.0)


def test_extract_structured_pads_missing_clocks():
    moves = extract_structured("1. e4 {[%clk 0:10:00]} e5 2. Nf3 *")

    assert [m.clock_remaining for m in moves] == ["0:10:00", "", ""]
    assert all(m.time_spent is None for m in moves)


def test_extract_structured_ignores_surplus_comments():
    loader = MagicMock(return_value=[HistoryMove(san="e4", side=Side.WHITE)])
    moves = extract_structured("{[%clk 0:01:00]} {[%clk 0:00:59]} {[%clk 0:00:58]}", loader)

    assert len(moves) == 1
    assert moves[0].clock_remaining == "0:01:00"


def test_extract_structured_uses_injected_history_loader():
    loader = MagicMock(return_value=[
        HistoryMove(san="e4", side=Side.WHITE),
        HistoryMove(san="e5", side=Side.BLACK),
    ])
    moves = extract_structured("anything {[%clk 0:01:00]} {[%clk 0:01:00]}", loader)

    loader.assert_called_once_with("anything {[%clk 0:01:00]} {[%clk 0:01:00]}")
    assert [(m.algebraic, m.move_number) for m in moves] == [("e4", 1), ("e5", 1)]


def test_extract_structured_propagates_loader_rejection():
    loader = MagicMock(side_effect=PgnParsingError("bad"))
    with pytest.raises(PgnParsingError):
        extract_structured("1. e4 *", loader)
