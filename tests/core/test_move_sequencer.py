# tests/core/test_move_sequencer.py
import io

import chess
import chess.pgn
import pytest

from chess_patterns.core.move_sequencer import (sequence_game, sequence_moves,
                                                split_record, tokenize_movetext)
from chess_patterns.exceptions import MalformedSequenceError
from chess_patterns.types import (DRAW, PRIMARY_WINS, SECONDARY_WINS, Side,
                                  SpecialKind)

RUY_LOPEZ = """
[Event "Test Game"]
[Site "Test Site"]
[Date "2025.01.01"]
[Round "?"]
[White "Player A"]
[Black "Player B"]
[Result "1-0"]

1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 1-0
"""

def test_sequence_simple_game():
    sequence = sequence_moves(RUY_LOPEZ)

    assert sequence.metadata.white_player == "Player A"
    assert sequence.metadata.black_player == "Player B"
    assert sequence.metadata.result == "1-0"
    assert sequence.metadata.event == "Test Game"
    assert len(sequence) == 6
    assert sequence.outcome == PRIMARY_WINS
    assert [r.index for r in sequence.records] == [1, 2, 3, 4, 5, 6]
    assert [r.side for r in sequence.records[:2]] == [Side.PRIMARY, Side.SECONDARY]
    assert sequence.initial_fen == chess.STARTING_FEN
    assert sequence.records[-1].fen_after == sequence.final_fen
    assert len(sequence.initial_occupants) == 32

def test_sequence_bare_movetext_uses_trailing_result():
    sequence = sequence_moves("1. d4 d5 2. c4 dxc4 0-1")
    assert len(sequence) == 4
    assert sequence.outcome == SECONDARY_WINS
    assert sequence.records[3].capture

def test_sequence_unfinished_game_has_no_outcome():
    sequence = sequence_moves("1. e4 e5 *")
    assert sequence.outcome is None

def test_sequence_draw():
    sequence = sequence_moves('[Result "1/2-1/2"]\n\n1. e4 e5 1/2-1/2')
    assert sequence.outcome == DRAW

def test_sequence_ignores_comments_variations_and_annotations():
    movetext = "1. e4 {best by test} e5 (1... c5 2. Nf3 (2. c3 d5)) 2. Nf3 ; a comment\nNc6 $1 3. Bb5!? a6?? *"
    sequence = sequence_moves(movetext)
    assert [r.san for r in sequence.records] == ["e4", "e5", "Nf3", "Nc6", "Bb5", "a6"]

def test_sequence_from_fen_tag():
    pgn_string = """
[Event "Test Game From FEN"]
[Result "*"]
[FEN "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"]
[SetUp "1"]

2. Nf3 Nc6 3. Bb5 a6 *
"""
    sequence = sequence_moves(pgn_string)
    assert len(sequence) == 4
    assert sequence.initial_fen == "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"
    assert sequence.records[0].index == 1

def test_explicit_initial_fen_wins_over_tag():
    sequence = sequence_moves('[FEN "8/8/8/8/8/8/8/8 w - - 0 1"]\n\n1. a8=Q', initial_fen="8/P7/8/8/8/8/8/k1K5 w - - 0 1")
    record = sequence.records[0]
    assert record.special_kind is SpecialKind.PROMOTION
    assert record.promotion_kind == "q"

def test_sequence_falls_back_to_uci():
    sequence = sequence_moves("e2e4 e7e5 g1f3")
    assert [r.uci for r in sequence.records] == ["e2e4", "e7e5", "g1f3"]

def test_sequence_castling_and_en_passant():
    sequence = sequence_moves("1. e4 c5 2. e5 d5 3. exd6 Nf6 4. Nf3 e6 5. Bc4 Be7 6. O-O")
    assert sequence.records[4].special_kind is SpecialKind.EN_PASSANT
    castle = sequence.records[-1]
    assert castle.special_kind is SpecialKind.CASTLE
    assert castle.to_square == chess.G1

def test_illegal_token_reports_offset():
    with pytest.raises(MalformedSequenceError) as exc_info:
        sequence_moves("1. e4 e5 2. Ke3 Nc6")
    assert exc_info.value.offset == 2
    assert exc_info.value.token == "Ke3"
    assert "offset 2" in str(exc_info.value)

def test_garbage_token_reports_offset():
    with pytest.raises(MalformedSequenceError) as exc_info:
        sequence_moves("1. e4 xyzzy")
    assert exc_info.value.offset == 1

def test_null_move_is_rejected():
    with pytest.raises(MalformedSequenceError) as exc_info:
        sequence_moves("1. e4 --")
    assert exc_info.value.offset == 1

def test_invalid_fen_reports_negative_offset():
    with pytest.raises(MalformedSequenceError) as exc_info:
        sequence_moves("1. e4", initial_fen="not a fen")
    assert exc_info.value.offset == -1

def test_empty_record_gives_empty_sequence():
    sequence = sequence_moves("")
    assert len(sequence) == 0
    assert sequence.final_fen == sequence.initial_fen

def test_prefix_truncates_and_drops_outcome():
    sequence = sequence_moves(RUY_LOPEZ)
    prefix = sequence.prefix(3)
    assert len(prefix) == 3
    assert prefix.final_fen == sequence.records[2].fen_after
    assert prefix.outcome is None
    assert sequence.prefix(0).final_fen == sequence.initial_fen
    assert sequence.prefix(100) is sequence

def test_split_record_and_tokenize():
    tags, movetext = split_record('[White "A \\"B\\""]\n% escape line\n1. e4 e5 1-0')
    tokens, result = tokenize_movetext(movetext)
    assert tags == {"White": 'A "B"'}
    assert tokens == ["e4", "e5"]
    assert result == "1-0"

@pytest.mark.parametrize("tags, opening, eco", [
    ('[Opening "Sicilian Defense"]\n[ECO "B20"]', "Sicilian Defense", "B20"),
    ('[Event "Sicilian Defense Blitz Arena"]\n[Opening "?"]\n[ECO "?"]', None, None),
    ('[Event "Casual"]', None, None),
])
def test_opening_and_eco_tags(tags, opening, eco):
    metadata = sequence_moves(tags + "\n\n1. e4 c5").metadata
    assert metadata.opening == opening
    assert metadata.eco == eco

def test_sequence_game_from_reader():
    game = chess.pgn.read_game(io.StringIO(RUY_LOPEZ))
    sequence = sequence_game(game)
    assert len(sequence) == 6
    assert sequence.outcome == PRIMARY_WINS
    assert sequence == sequence_moves(RUY_LOPEZ)

def test_sequence_game_with_reader_errors_raises():
    game = chess.pgn.read_game(io.StringIO("1. e4 e5 2. Ke3 Nc6 1-0"))
    with pytest.raises(MalformedSequenceError) as exc_info:
        sequence_game(game)
    assert exc_info.value.offset == 2
