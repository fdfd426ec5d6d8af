# chess_patterns/adapters/chess_adapter.py
"""
The chess implementation of the `DomainAdapter` protocol.

It wires the move sequencer, visit ledger, signature extractor and the chess
archetype registry together. The domain-agnostic matcher and predictor only
ever see what this adapter returns.
"""
from typing import Any, Optional, TYPE_CHECKING

import chess.pgn

from chess_patterns.adapters.chess_archetypes import CHESS_DOMAIN, build_chess_registry
from chess_patterns.core import pattern_matcher
from chess_patterns.core.archetype_classifier import classify_archetype
from chess_patterns.core.move_sequencer import sequence_game, sequence_moves
from chess_patterns.core.palette import ColorPalette
from chess_patterns.core.signature_extractor import extract_signature
from chess_patterns.core.visit_ledger import VisitLedger, build_ledger
from chess_patterns.types import ArchetypeRegistry, MoveSequence, TemporalSignature

if TYPE_CHECKING:
    from chess_patterns.config.settings import EngineSettings, MatchWeights


class ChessDomainAdapter:
    """Adapts chess games (PGN text or `chess.pgn.Game`) to the pattern engine."""

    domain = CHESS_DOMAIN

    def __init__(self, settings: Optional["EngineSettings"] = None,
                 registry: Optional[ArchetypeRegistry] = None):
        if settings is None:
            from chess_patterns.config.settings import EngineSettings
            settings = EngineSettings()
        self._settings = settings
        self._registry = registry or build_chess_registry()
        self._palette = ColorPalette.from_settings(settings.palette)

    @property
    def archetype_registry(self) -> ArchetypeRegistry:
        return self._registry

    def parse_input(self, raw_record: Any) -> MoveSequence:
        """
        Accepts PGN/movetext, a `chess.pgn.Game`, or an already built sequence.

        Raises:
            MalformedSequenceError: On the first unplayable token.
            TypeError: For any other input type.
        """
        if isinstance(raw_record, MoveSequence):
            return raw_record
        if isinstance(raw_record, chess.pgn.Game):
            return sequence_game(raw_record)
        if isinstance(raw_record, str):
            return sequence_moves(raw_record)
        raise TypeError(f"Cannot parse a chess record of type {type(raw_record).__name__}.")

    def sequence_length(self, sequence: MoveSequence) -> int:
        return len(sequence)

    def truncate(self, sequence: MoveSequence, position: int) -> MoveSequence:
        return sequence.prefix(position)

    def build_ledger(self, sequence: MoveSequence) -> VisitLedger:
        return build_ledger(sequence, self._palette)

    def extract_signature(self, sequence: MoveSequence) -> TemporalSignature:
        ledger = self.build_ledger(sequence)
        return self.extract_from_ledger(ledger, len(sequence))

    def extract_from_ledger(self, ledger: VisitLedger, total_moves: int) -> TemporalSignature:
        return extract_signature(ledger, total_moves, self._registry, self._settings.extraction)

    def classify_archetype(self, signature: TemporalSignature) -> str:
        return classify_archetype(signature, self._registry)

    def calculate_similarity(self, a: TemporalSignature, b: TemporalSignature,
                             weights: Optional["MatchWeights"] = None) -> float:
        return pattern_matcher.calculate_similarity(a, b, weights or self._settings.matching.weights)
