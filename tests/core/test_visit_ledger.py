# tests/core/test_visit_ledger.py
import chess
import pytest

from chess_patterns.core.move_sequencer import sequence_moves
from chess_patterns.core.palette import ColorPalette
from chess_patterns.core.visit_ledger import BOARD_SQUARES, VisitLedger, build_ledger
from chess_patterns.types import Side, SpecialKind, Visit

SCHOLARS_MATE = "1. e4 e5 2. Bc4 Nc6 3. Qh5 Nf6 4. Qxf7# 1-0"

def test_empty_sequence_gives_empty_ledger():
    ledger = build_ledger(sequence_moves(""))
    assert ledger.total_visits() == 0
    assert ledger.max_move_index() == 0

def test_one_visit_per_move_plus_setup_visits():
    # Arrange
    sequence = sequence_moves(SCHOLARS_MATE)
    targeted = {record.to_square for record in sequence.records}
    untouched_occupied = [o for o in sequence.initial_occupants if o.square not in targeted]

    # Act
    ledger = build_ledger(sequence)

    # Assert
    setup_visits = [v for _, v in ledger.iter_visits() if v.move_index == 0]
    move_visits = [v for _, v in ledger.iter_visits() if v.move_index > 0]
    assert len(move_visits) == len(sequence)
    assert len(setup_visits) == len(untouched_occupied)
    assert ledger.max_move_index() == 7

def test_targeted_starting_square_gets_no_setup_visit():
    ledger = build_ledger(sequence_moves(SCHOLARS_MATE))
    # f7 starts occupied by a black pawn and is the target of Qxf7#.
    visits = ledger.visits(chess.F7)
    assert len(visits) == 1
    assert visits[0].piece_kind == "q"
    assert visits[0].side is Side.PRIMARY
    assert visits[0].move_index == 7

def test_captures_never_remove_visits():
    ledger = build_ledger(sequence_moves("1. e4 d5 2. exd5 Qxd5"))
    visits = ledger.visits(chess.D5)
    assert [(v.piece_kind, v.side, v.move_index) for v in visits] == [
        ("p", Side.SECONDARY, 2), ("p", Side.PRIMARY, 3), ("q", Side.SECONDARY, 4),
    ]

def test_setup_visits_come_before_move_visits():
    ledger = build_ledger(sequence_moves("1. Nf3 Nf6 2. Ng1 Ng8"))
    visits = ledger.visits(chess.G1)
    assert [v.move_index for v in visits] == [3]
    # a1 is occupied, never targeted, so it holds exactly one setup visit.
    assert [v.move_index for v in ledger.visits(chess.A1)] == [0]

def test_promoted_pawn_arrives_as_promoted_piece():
    sequence = sequence_moves("1. a8=N", initial_fen="8/P7/8/8/8/8/8/k1K5 w - - 0 1")
    ledger = build_ledger(sequence)
    assert ledger.visits(chess.A8)[0].piece_kind == "n"

def test_rebuilding_is_idempotent():
    sequence = sequence_moves(SCHOLARS_MATE)
    first, second = build_ledger(sequence), build_ledger(sequence)
    assert first == second
    assert first.snapshot() == second.snapshot()
    assert first is not second

def test_record_visit_is_append_only():
    # Arrange
    ledger = VisitLedger()
    first = Visit(piece_kind="n", side=Side.PRIMARY, move_index=1, color="#fff")
    second = Visit(piece_kind="q", side=Side.SECONDARY, move_index=2, color="#000")

    # Act
    ledger.record_visit(chess.E4, first)
    before = ledger.snapshot()
    ledger.record_visit(chess.E4, second)

    # Assert
    assert ledger.visits(chess.E4) == (first, second)
    assert before[chess.E4] == (first,)

def test_cell_bounds_and_parity():
    ledger = VisitLedger()
    assert not ledger.cell(chess.A1).is_light
    assert ledger.cell(chess.B1).is_light
    with pytest.raises(IndexError):
        ledger.cell(BOARD_SQUARES)

def test_as_grid_is_rank_major_from_rank_eight():
    grid = VisitLedger().as_grid()
    assert len(grid) == 8 and all(len(row) == 8 for row in grid)
    assert grid[0][0].square == chess.A8
    assert grid[7][7].square == chess.H1

def test_visits_are_painted_by_palette():
    palette = ColorPalette(primary={"p": "white-pawn"}, secondary={}, fallback="grey")
    ledger = build_ledger(sequence_moves("1. e4 Nf6"), palette)
    assert ledger.visits(chess.E4)[0].color == "white-pawn"
    assert ledger.visits(chess.F6)[0].color == "grey"

def test_move_visits_carry_capture_and_special_kind():
    ledger = build_ledger(sequence_moves("1. e4 d5 2. exd5 Nf6 3. Nf3 Nxd5 4. Be2 e6 5. O-O"))

    assert [v.captured_kind for v in ledger.visits(chess.D5)] == [None, "p", "p"]
    assert ledger.visits(chess.G1)[-1].special_kind is SpecialKind.CASTLE
    assert all(v.special_kind is SpecialKind.NONE for v in ledger.visits(chess.A1))
