# chess_patterns/core/chess_utils.py
"""
Provides a collection of pure, stateless functions for chess-related calculations.

This module acts as the "math library" for the chess domain: board geometry
(quadrants, center squares), side and piece conversions, and result tags. It
has no dependencies on other parts of this application except for the data
contracts defined in `types.py`.
"""

from typing import Dict, Final, FrozenSet, Optional

import chess

from chess_patterns.types import (DRAW, PRIMARY_WINS, SECONDARY_WINS, Outcome,
                                  PieceKind, Side, Square)

# The four central squares. They overlap the quadrants.
CENTER_SQUARES: Final[FrozenSet[Square]] = frozenset({chess.D4, chess.E4, chess.D5, chess.E5})

QUADRANT_NAMES: Final = ("q1", "q2", "q3", "q4")

_RESULT_OUTCOMES: Final[Dict[str, Outcome]] = {
    "1-0": PRIMARY_WINS,
    "0-1": SECONDARY_WINS,
    "1/2-1/2": DRAW,
}

RESULT_TOKENS: Final[FrozenSet[str]] = frozenset(_RESULT_OUTCOMES) | {"*"}


def quadrant_of(square: Square) -> str:
    """
    Returns the quadrant name of a square.

    q1 and q2 are the upper half of the board (ranks 5-8), q3 and q4 the lower
    half; q1 and q3 are the left files (a-d), q2 and q4 the right files (e-h).
    """
    upper = chess.square_rank(square) >= 4
    right = chess.square_file(square) >= 4
    if upper:
        return "q2" if right else "q1"
    return "q4" if right else "q3"

def is_center(square: Square) -> bool:
    return square in CENTER_SQUARES

def is_light_square(square: Square) -> bool:
    """a1 is dark; parity of file + rank decides the rest."""
    return (chess.square_file(square) + chess.square_rank(square)) % 2 == 1

def side_of(color: chess.Color) -> Side:
    return Side.PRIMARY if color == chess.WHITE else Side.SECONDARY

def piece_kind_of(piece_type: chess.PieceType) -> PieceKind:
    return chess.piece_symbol(piece_type)

def outcome_from_result(result: Optional[str]) -> Optional[Outcome]:
    """Maps a PGN result tag to an outcome label. Unfinished or unknown results map to None."""
    if not result:
        return None
    return _RESULT_OUTCOMES.get(result.strip())
