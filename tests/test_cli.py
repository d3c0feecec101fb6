# tests/test_cli.py
import json
from unittest.mock import AsyncMock

import pytest

import main
from chess_sync.exceptions import ArchiveFetchError
from chess_sync.types import SyncReport


def test_extract_prints_json(tmp_path, capsys, scholars_mate_pgn):
    pgn_file = tmp_path / "game.pgn"
    pgn_file.write_text(scholars_mate_pgn, encoding="utf-8")

    assert main.main(["extract", str(pgn_file)]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["source"] == "structured"
    assert data["metadata"]["White"] == "alice"
    assert len(data["moves"]) == 7
    assert data["moves"][0]["side"] == "white"


def test_extract_missing_file_fails(tmp_path):
    assert main.main(["extract", str(tmp_path / "missing.pgn")]) == 1


def test_sync_prints_report(monkeypatch, tmp_path, capsys):
    report = SyncReport(username="alice", total_games=2, created=2, warnings=["Failed to fetch archive x"])
    run_sync = AsyncMock(return_value=report)
    monkeypatch.setattr(main, "run_sync", run_sync)

    code = main.main(["sync", "alice", "--db-path", str(tmp_path / "cli.db"), "--concurrency", "2"])

    assert code == 0
    config = run_sync.await_args.args[0]
    assert config.username == "alice"
    assert config.db_path == str(tmp_path / "cli.db")
    assert config.concurrency == 2
    captured = capsys.readouterr()
    assert "Successfully synced 2 new games for alice" in captured.out
    assert "warning: Failed to fetch archive x" in captured.err


def test_sync_failure_returns_error_code(monkeypatch):
    monkeypatch.setattr(main, "run_sync", AsyncMock(side_effect=ArchiveFetchError("HTTP 404", "url", 404)))
    assert main.main(["sync", "nobody"]) == 1


def test_command_is_required():
    with pytest.raises(SystemExit):
        main.main([])
