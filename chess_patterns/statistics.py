"""
Manages statistics tracking for corpus indexing runs.

This module provides the StatisticsTracker class, a centralized component
for aggregating and reporting counts from an indexing run. It is designed
to be simple and robust, using a type-safe Enum for keys.
"""
import os
from collections import Counter
from enum import Enum, auto
from typing import Dict

import structlog

logger = structlog.get_logger(__name__)


class StatKey(Enum):
    """Enumeration for keys used in the StatisticsTracker for type safety."""
    GAMES_READ = auto()
    GAMES_INDEXED = auto()
    GAMES_SKIPPED_TOTAL = auto()
    SKIPPED_MALFORMED = auto()
    SKIPPED_NO_RESULT = auto()
    SKIPPED_DUPLICATE = auto()
    DEGENERATE_SIGNATURES = auto()


# A mapping for user-friendly display names, decoupled from the keys.
STAT_DISPLAY_NAMES: Dict[StatKey, str] = {
    StatKey.GAMES_READ: "Total Games Read from PGN",
    StatKey.GAMES_INDEXED: "Games Added to Corpus",
    StatKey.GAMES_SKIPPED_TOTAL: "Total Games Skipped",
    StatKey.SKIPPED_MALFORMED: "  - Skipped (Malformed Move Data)",
    StatKey.SKIPPED_NO_RESULT: "  - Skipped (No Decisive Result Tag)",
    StatKey.SKIPPED_DUPLICATE: "  - Skipped (Pattern Already in Corpus)",
    StatKey.DEGENERATE_SIGNATURES: "Signatures With No Activity",
}


class StatisticsTracker:
    """
    A stateful class to aggregate and report statistics for an indexing run.
    """

    def __init__(self):
        """Initializes the StatisticsTracker with all counters set to zero."""
        self.stats: Counter[StatKey] = Counter()
        self.corpus_path: str = ""
        self.reset()
        logger.debug("StatisticsTracker initialized.")

    def reset(self) -> None:
        """Resets all statistics to their initial state for a new run."""
        self.stats.clear()
        self.corpus_path = ""

    def add_stat(self, key: StatKey, count: int = 1) -> None:
        """Increments a statistic by a given amount."""
        self.stats[key] += count

    def record_skip(self, key: StatKey) -> None:
        """Increments a skip reason together with the skipped total."""
        self.stats[key] += 1
        self.stats[StatKey.GAMES_SKIPPED_TOTAL] += 1

    def set_corpus_path(self, path: str) -> None:
        """Stores the path to the corpus file for final reporting."""
        self.corpus_path = os.path.abspath(path)

    def as_dict(self) -> Dict[str, int]:
        return {key.name.lower(): self.stats.get(key, 0) for key in StatKey}

    def log_summary(self) -> None:
        """Logs a formatted summary of all collected statistics for the run."""
        logger.info("\n" + "=" * 12 + " Indexing Run Summary " + "=" * 12)

        # Iterating through the enum provides a defined order.
        for key in StatKey:
            if key in self.stats:
                display_text = STAT_DISPLAY_NAMES.get(key, key.name.replace("_", " ").title())
                logger.info(f"{display_text:<40}: {self.stats[key]:>6}")

        logger.info("-" * 48)

        num_indexed = self.stats.get(StatKey.GAMES_INDEXED, 0)
        if self.corpus_path:
            logger.info(f"Corpus File ({num_indexed} new entries): '{self.corpus_path}'")

        logger.info("=" * 48)
