# tests/core/test_pgn_headers.py
from chess_sync.core.pgn_headers import extract_metadata


def test_extract_metadata_reads_all_tags(scholars_mate_pgn):
    metadata = extract_metadata(scholars_mate_pgn)
    assert metadata == {
        "Event": "Live Chess",
        "Site": "Chess.com",
        "White": "alice",
        "Black": "bob",
        "Result": "1-0",
        "TimeControl": "300",
    }


def test_later_duplicate_tag_wins():
    assert extract_metadata('[White "first"]\n[White "second"]')["White"] == "second"


def test_headers_need_not_be_line_anchored():
    metadata = extract_metadata('  [White "A"] [Black "B"]\n1. e4 *')
    assert metadata == {"White": "A", "Black": "B"}


def test_escaped_quotes_and_empty_values():
    metadata = extract_metadata('[Event "The \\"Open\\""]\n[Site ""]')
    assert metadata["Event"] == 'The "Open"'
    assert metadata["Site"] == ""


def test_no_headers():
    assert extract_metadata("1. e4 e5 *") == {}
    assert extract_metadata("") == {}
