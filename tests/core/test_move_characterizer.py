# tests/core/test_move_characterizer.py
import chess
import pytest
from chess_patterns.core.move_characterizer import characterize_move
from chess_patterns.types import Side, SpecialKind

def test_characterize_quiet_move():
    board = chess.Board()
    move = chess.Move.from_uci("e2e4")
    record = characterize_move(board, move, 1)
    assert record.index == 1
    assert record.from_square == chess.E2
    assert record.to_square == chess.E4
    assert record.piece_kind == "p"
    assert record.side is Side.PRIMARY
    assert not record.capture
    assert record.special_kind is SpecialKind.NONE
    assert record.san == "e4"
    assert record.uci == "e2e4"
    assert record.affected_squares == (chess.E2, chess.E4)

def test_characterize_capture():
    board = chess.Board("rnbqkbnr/ppp1pppp/8/3p4/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2")
    move = chess.Move.from_uci("e4d5")
    record = characterize_move(board, move, 3)
    assert record.capture
    assert record.captured_kind == "p"

def test_characterize_does_not_mutate_board():
    board = chess.Board()
    fen_before = board.fen()
    characterize_move(board, chess.Move.from_uci("g1f3"), 1)
    assert board.fen() == fen_before

def test_characterize_castle():
    board = chess.Board("rnbqk2r/pppp1ppp/5n2/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4")
    move = chess.Move.from_uci("e1g1")
    record = characterize_move(board, move, 7)
    assert record.special_kind is SpecialKind.CASTLE
    assert record.piece_kind == "k"
    assert record.to_square == chess.G1
    assert record.extra_squares == (chess.H1, chess.F1)

def test_characterize_chess960_castle_normalises_destination():
    board = chess.Board("rnbqk2r/pppp1ppp/5n2/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4", chess960=True)
    move = chess.Move.from_uci("e1h1")
    record = characterize_move(board, move, 7)
    assert record.special_kind is SpecialKind.CASTLE
    assert record.to_square == chess.G1
    assert record.extra_squares == (chess.H1, chess.F1)

def test_characterize_promotion():
    board = chess.Board("8/P7/8/8/8/8/8/k1K5 w - - 0 1")
    move = chess.Move.from_uci("a7a8q")
    record = characterize_move(board, move, 1)
    assert record.special_kind is SpecialKind.PROMOTION
    assert record.piece_kind == "p"
    assert record.promotion_kind == "q"

def test_characterize_en_passant():
    board = chess.Board("rnbqkbnr/pp1ppppp/8/2p5/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2")
    board.push(chess.Move.from_uci("e4e5"))
    board.push(chess.Move.from_uci("d7d5"))
    move = chess.Move.from_uci("e5d6")
    record = characterize_move(board, move, 5)
    assert record.special_kind is SpecialKind.EN_PASSANT
    assert record.capture
    assert record.captured_kind == "p"
    assert record.extra_squares == (chess.D5,)

def test_characterize_empty_from_square_raises():
    board = chess.Board()
    with pytest.raises(ValueError):
        characterize_move(board, chess.Move.from_uci("e3e4"), 1)
