# chess_patterns/core/move_characterizer.py
"""
Provides a pure function to turn a legal move into an immutable `MoveRecord`.

This module is a stateless component in the functional core. It takes a board
state and a move and returns the factual, non-interpretive properties of that
move (moving piece, capture, castling, en passant, promotion). The board is
read, never mutated.
"""

from typing import Optional, Tuple

import chess

from chess_patterns.core.chess_utils import piece_kind_of, side_of
from chess_patterns.types import MoveRecord, PieceKind, SpecialKind, Square


def _castling_squares(board: chess.Board, move: chess.Move) -> Tuple[Square, Tuple[Square, ...]]:
    """
    Returns the king's destination and the rook's (from, to) squares.

    python-chess encodes Chess960 castling as king-takes-rook; the king's
    destination is normalised to the g- or c-file either way.
    """
    rank = chess.square_rank(move.from_square)
    kingside = board.is_kingside_castling(move)
    king_to = chess.square(6 if kingside else 2, rank)
    rook_to = chess.square(5 if kingside else 3, rank)

    target = board.piece_at(move.to_square)
    if target is not None and target.piece_type == chess.ROOK and target.color == board.turn:
        rook_from = move.to_square
    else:
        rook_from = chess.square(7 if kingside else 0, rank)
    return king_to, (rook_from, rook_to)


def characterize_move(board: chess.Board, move: chess.Move, index: int) -> MoveRecord:
    """
    Describes a legal move played from the given position.

    Args:
        board: The `chess.Board` object representing the position *before* the move.
        move: A move that is legal in `board`.
        index: The 1-based position of the move in its sequence.

    Returns:
        A `MoveRecord` whose `fen_after` is left empty; the caller fills it
        after pushing the move.
    """
    piece = board.piece_at(move.from_square)
    if piece is None:
        raise ValueError(f"No piece on {chess.square_name(move.from_square)} for move {move.uci()}.")

    special = SpecialKind.NONE
    to_square = move.to_square
    extra: Tuple[Square, ...] = ()
    captured: Optional[PieceKind] = None
    promotion: Optional[PieceKind] = None

    if board.is_castling(move):
        special = SpecialKind.CASTLE
        to_square, extra = _castling_squares(board, move)
    elif board.is_en_passant(move):
        special = SpecialKind.EN_PASSANT
        captured_square = chess.square(chess.square_file(move.to_square), chess.square_rank(move.from_square))
        extra = (captured_square,)
        captured = "p"
    else:
        target = board.piece_at(move.to_square)
        if target is not None:
            captured = piece_kind_of(target.piece_type)

    if move.promotion is not None:
        special = SpecialKind.PROMOTION
        promotion = piece_kind_of(move.promotion)

    return MoveRecord(
        index=index,
        from_square=move.from_square,
        to_square=to_square,
        piece_kind=piece_kind_of(piece.piece_type),
        side=side_of(piece.color),
        capture=board.is_capture(move),
        special_kind=special,
        san=board.san(move),
        uci=move.uci(),
        captured_kind=captured,
        promotion_kind=promotion,
        extra_squares=extra,
    )
