# tests/services/test_pgn_service.py
import pytest

from chess_patterns.exceptions import PgnServiceError
from chess_patterns.services.pgn_service import PgnService

TWO_GAMES = """
[Event "Game 1"]
[White "A"]
[Black "B"]
[Result "1-0"]

1. e4 e5 1-0

[Event "Game 2"]
[White "C"]
[Black "D"]
[Result "0-1"]

1. d4 d5 0-1
"""

@pytest.mark.parametrize("headers, expected", [
    ({"Site": "https://lichess.org/AbCdEfGh"}, "lichess_AbCdEfGh"),
    ({"Link": "https://www.chess.com/game/live/123456", "Site": "Chess.com"}, "chesscom_123456"),
    ({"White": "Magnus Carlsen", "Black": "Hikaru", "Date": "2025.01.01"}, "local_Magnus_Carlsen_vs_Hikaru_2025.01.01"),
    ({}, "local_Unknown_vs_Unknown_0000.00.00"),
])
def test_extract_game_id(headers, expected):
    assert PgnService.extract_game_id(headers) == expected

@pytest.mark.asyncio
async def test_stream_games(tmp_path):
    path = tmp_path / "games.pgn"
    path.write_text(TWO_GAMES)

    games = [game async for game in PgnService().stream_games(path)]

    assert [game.headers["Event"] for game in games] == ["Game 1", "Game 2"]

@pytest.mark.asyncio
async def test_stream_missing_file_raises(tmp_path):
    with pytest.raises(PgnServiceError):
        async for _ in PgnService().stream_games(tmp_path / "absent.pgn"):
            pass

@pytest.mark.asyncio
async def test_read_record(tmp_path):
    path = tmp_path / "game.pgn"
    path.write_text(TWO_GAMES)
    assert await PgnService().read_record(path) == TWO_GAMES

@pytest.mark.asyncio
async def test_read_missing_record_raises(tmp_path):
    with pytest.raises(PgnServiceError):
        await PgnService().read_record(tmp_path / "absent.pgn")
