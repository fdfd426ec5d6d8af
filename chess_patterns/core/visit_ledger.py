# chess_patterns/core/visit_ledger.py
"""
The Visit Ledger: a per-square, append-only record of every piece arrival.

The ledger is a fixed arena of 64 cells indexed by `python-chess` square
numbers (0 = a1 ... 63 = h8). Each cell owns its list of visits; visits are
immutable and are never removed, not even by captures. A ledger is built per
call and is not shared between threads.
"""
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple

import chess
import structlog

from chess_patterns.core.chess_utils import is_light_square
from chess_patterns.core.palette import ColorPalette
from chess_patterns.types import MoveSequence, Square, Visit

logger = structlog.get_logger(__name__)

BOARD_SQUARES = 64


@dataclass
class Cell:
    square: Square
    is_light: bool
    visits: List[Visit] = field(default_factory=list)


class VisitLedger:
    """A fixed 64-cell board of append-only visit lists."""

    def __init__(self) -> None:
        self._cells: Tuple[Cell, ...] = tuple(
            Cell(square=square, is_light=is_light_square(square)) for square in range(BOARD_SQUARES)
        )

    def cell(self, square: Square) -> Cell:
        if not 0 <= square < BOARD_SQUARES:
            raise IndexError(f"Square {square} is outside the board.")
        return self._cells[square]

    def visits(self, square: Square) -> Tuple[Visit, ...]:
        return tuple(self.cell(square).visits)

    def record_visit(self, square: Square, visit: Visit) -> None:
        """Appends a visit to a square. Existing visits are never touched."""
        self.cell(square).visits.append(visit)

    def iter_visits(self) -> Iterator[Tuple[Square, Visit]]:
        """Yields `(square, visit)` pairs in square order, then insertion order."""
        for cell in self._cells:
            for visit in cell.visits:
                yield cell.square, visit

    def total_visits(self) -> int:
        return sum(len(cell.visits) for cell in self._cells)

    def max_move_index(self) -> int:
        return max((visit.move_index for _, visit in self.iter_visits()), default=0)

    def snapshot(self) -> Tuple[Tuple[Visit, ...], ...]:
        """An immutable copy of every cell's visits, suitable for equality checks."""
        return tuple(tuple(cell.visits) for cell in self._cells)

    def as_grid(self) -> List[List[Cell]]:
        """An 8x8 view, rank 8 first, file a first, the way a board is drawn."""
        return [
            [self._cells[chess.square(file_index, rank_index)] for file_index in range(8)]
            for rank_index in range(7, -1, -1)
        ]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VisitLedger):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        return f"VisitLedger(visits={self.total_visits()})"


def build_ledger(sequence: MoveSequence, palette: Optional[ColorPalette] = None) -> VisitLedger:
    """
    Replays a move sequence into a fresh ledger.

    Every move adds exactly one visit, on its destination square, carrying what
    it captured and any special kind. When the sequence has at least one move,
    every square occupied at the start and never targeted by a move first
    receives a setup visit with `move_index` 0, so pieces that never move still
    register presence.
    """
    palette = palette or ColorPalette.from_settings()
    ledger = VisitLedger()
    if not sequence.records:
        return ledger

    targeted: Set[Square] = {record.to_square for record in sequence.records}
    for occupant in sequence.initial_occupants:
        if occupant.square in targeted:
            continue
        ledger.record_visit(occupant.square, Visit(
            piece_kind=occupant.piece_kind, side=occupant.side, move_index=0,
            color=palette.color_for(occupant.side, occupant.piece_kind),
        ))

    for record in sequence.records:
        # A promoted pawn arrives as the promoted piece.
        kind = record.promotion_kind or record.piece_kind
        ledger.record_visit(record.to_square, Visit(
            piece_kind=kind, side=record.side, move_index=record.index,
            color=palette.color_for(record.side, kind),
            captured_kind=record.captured_kind, special_kind=record.special_kind,
        ))

    logger.debug("Built visit ledger.", moves=len(sequence), visits=ledger.total_visits())
    return ledger
