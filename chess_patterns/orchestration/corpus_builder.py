# chess_patterns/orchestration/corpus_builder.py
"""
Defines the `CorpusBuilder`, which indexes a PGN file into corpus entries.

Each finished game is sequenced, its signature extracted, and the pair stored
with the game's outcome under the game's id. Games that cannot be replayed,
have no final result, or are already in the corpus are skipped and counted.
"""

from pathlib import Path
from typing import Optional, TYPE_CHECKING

import structlog

from chess_patterns.exceptions import MalformedSequenceError
from chess_patterns.statistics import StatisticsTracker, StatKey
from chess_patterns.types import CorpusEntry, MoveSequence
from chess_patterns.utils.metrics import CORPUS_GAMES_INDEXED_TOTAL

if TYPE_CHECKING:
    import chess.pgn
    from chess_patterns.adapters.chess_adapter import ChessDomainAdapter
    from chess_patterns.services.corpus_store import CorpusStore
    from chess_patterns.services.pgn_service import PgnService

logger = structlog.get_logger(__name__)


class CorpusBuilder:
    """Turns a stream of PGN games into corpus entries."""

    def __init__(
        self,
        adapter: "ChessDomainAdapter",
        pgn_service: "PgnService",
        stats: Optional[StatisticsTracker] = None,
    ):
        self._adapter = adapter
        self._pgn_service = pgn_service
        self._stats = stats or StatisticsTracker()

    @property
    def stats(self) -> StatisticsTracker:
        return self._stats

    def build_entry(self, game: "chess.pgn.Game") -> Optional[CorpusEntry]:
        """
        Builds a corpus entry for one game, or returns None when the game has
        no decisive-or-drawn result to learn from.

        Raises:
            MalformedSequenceError: If the game's mainline cannot be replayed.
        """
        sequence: MoveSequence = self._adapter.parse_input(game)
        if sequence.outcome is None:
            return None

        signature = self._adapter.extract_signature(sequence)
        if signature.is_degenerate:
            self._stats.add_stat(StatKey.DEGENERATE_SIGNATURES)

        metadata = sequence.metadata
        return CorpusEntry(
            pattern_id=self._pgn_service.extract_game_id(game.headers),
            signature=signature,
            outcome=sequence.outcome,
            metadata={
                "white": metadata.white_player, "black": metadata.black_player,
                "event": metadata.event, "date": metadata.date,
                "eco": metadata.eco, "opening": metadata.opening,
                "total_moves": len(sequence),
            },
        )

    async def index_file(self, pgn_filepath: Path, store: "CorpusStore") -> int:
        """
        Adds every usable game in a PGN file to the store.

        Returns:
            The number of entries added.
        """
        self._stats.set_corpus_path(str(store.path))
        added = 0
        async for game in self._pgn_service.stream_games(pgn_filepath):
            self._stats.add_stat(StatKey.GAMES_READ)
            game_id = self._pgn_service.extract_game_id(game.headers)
            if game_id in store:
                self._stats.record_skip(StatKey.SKIPPED_DUPLICATE)
                continue
            try:
                entry = self.build_entry(game)
            except MalformedSequenceError as e:
                logger.warning("Skipping game with malformed moves.", game_id=game_id, offset=e.offset, error=str(e))
                self._stats.record_skip(StatKey.SKIPPED_MALFORMED)
                continue
            if entry is None:
                self._stats.record_skip(StatKey.SKIPPED_NO_RESULT)
                continue

            store.add(entry)
            added += 1
            self._stats.add_stat(StatKey.GAMES_INDEXED)
            CORPUS_GAMES_INDEXED_TOTAL.inc()
            logger.debug("Indexed game.", game_id=game_id, archetype=entry.signature.archetype)

        logger.info("Indexing finished.", path=str(pgn_filepath), added=added)
        return added
