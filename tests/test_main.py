# tests/test_main.py
import json

import pytest

from main import build_parser, main

GAMES = """
[Event "Casual"]
[White "Alice"]
[Black "Bob"]
[Date "2025.05.01"]
[Result "1-0"]

1. e4 e5 2. Nf3 Nc6 3. Bc4 Bc5 4. c3 Nf6 5. d4 exd4 6. cxd4 Bb4+ 7. Bd2 Bxd2+ 1-0

[Event "Casual"]
[White "Carol"]
[Black "Dave"]
[Date "2025.05.02"]
[Result "1/2-1/2"]

1. d4 d5 2. c4 c6 3. Nf3 Nf6 4. Nc3 dxc4 1/2-1/2
"""

@pytest.fixture
def pgn_file(tmp_path):
    path = tmp_path / "games.pgn"
    path.write_text(GAMES)
    return path

def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])

def test_index_then_analyze_json(pgn_file, tmp_path, capsys):
    corpus = tmp_path / "corpus.json"

    assert main(["--log-level", "WARNING", "index", str(pgn_file), str(corpus)]) == 0
    assert len(json.loads(corpus.read_text())["entries"]) == 2
    capsys.readouterr()

    assert main(["--log-level", "WARNING", "analyze", str(pgn_file), "--corpus", str(corpus), "--json"]) == 0
    reports = json.loads(capsys.readouterr().out)

    assert [report["id"] for report in reports] == [
        "local_Alice_vs_Bob_2025.05.01", "local_Carol_vs_Dave_2025.05.02",
    ]
    assert reports[0]["matches"][0]["pattern_id"] == "local_Alice_vs_Bob_2025.05.01"
    assert reports[0]["matches"][0]["similarity"] == 1.0
    assert reports[0]["prediction"]["prediction_available"] is True

def test_analyze_text_at_live_position(pgn_file, capsys):
    assert main(["--log-level", "WARNING", "analyze", str(pgn_file), "--position", "4"]) == 0
    out = capsys.readouterr().out
    assert "=== local_Alice_vs_Bob_2025.05.01 ===" in out
    assert "Moves       : 4" in out
    assert "Prediction unavailable" in out

def test_raw_analyze_reports_malformed_token(tmp_path):
    path = tmp_path / "bad.pgn"
    path.write_text("1. e4 e5 2. Ke3")
    assert main(["--log-level", "CRITICAL", "analyze", str(path), "--raw"]) == 1

def test_missing_input_fails(tmp_path):
    assert main(["--log-level", "CRITICAL", "analyze", str(tmp_path / "absent.pgn")]) == 1

MIXED_GAMES = GAMES.split("[Event \"Casual\"]\n[White \"Carol\"]")[0] + """
[Event "Casual"]
[White "Erin"]
[Black "Frank"]
[Date "2025.05.03"]
[Result "0-1"]

1. e4 e5 2. Ke3 Nc6 0-1
"""

def test_analyze_keeps_good_games_when_one_is_malformed(tmp_path, capsys):
    # Arrange
    path = tmp_path / "mixed.pgn"
    path.write_text(MIXED_GAMES)

    # Act
    exit_code = main(["--log-level", "CRITICAL", "analyze", str(path), "--json"])
    reports = json.loads(capsys.readouterr().out)

    # Assert
    assert exit_code == 0
    assert [report["id"] for report in reports] == [
        "local_Alice_vs_Bob_2025.05.01", "local_Erin_vs_Frank_2025.05.03",
    ]
    assert "prediction" in reports[0]
    assert "error" not in reports[0]
    assert reports[1]["offset"] == 2
    assert "PGN reader error" in reports[1]["error"]

def test_analyze_text_marks_skipped_game(tmp_path, capsys):
    path = tmp_path / "mixed.pgn"
    path.write_text(MIXED_GAMES)

    assert main(["--log-level", "CRITICAL", "analyze", str(path)]) == 0
    out = capsys.readouterr().out
    assert "=== local_Alice_vs_Bob_2025.05.01 ===" in out
    assert "=== local_Erin_vs_Frank_2025.05.03 ===" in out
    assert "Skipped: PGN reader error" in out
