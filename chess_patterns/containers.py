# chess_patterns/containers.py
"""
Defines the Dependency Injection (DI) container for the application.

This module uses the `punq` library to manage the creation and wiring of
the adapter, engine, services and corpus builder. This centralizes the
application's dependency graph, making it more maintainable, testable,
and extensible.
"""

from pathlib import Path
from typing import Optional

import punq

from chess_patterns.adapters.chess_adapter import ChessDomainAdapter
from chess_patterns.config.settings import EngineSettings, Settings
from chess_patterns.orchestration.corpus_builder import CorpusBuilder
from chess_patterns.orchestration.engine import PatternEngine
from chess_patterns.services.corpus_store import CorpusStore
from chess_patterns.services.pgn_service import PgnService
from chess_patterns.statistics import StatisticsTracker


def get_container(app_settings: Settings, corpus_path: Optional[Path] = None) -> punq.Container:
    """
    Initializes and returns a DI container configured for one command run.
    """
    container = punq.Container()
    engine_settings = app_settings.engine
    corpus_file = Path(corpus_path or app_settings.default_corpus_path)

    # Register instances that are created outside the container's control.
    container.register(Settings, instance=app_settings)
    container.register(EngineSettings, instance=engine_settings)

    # The adapter and the statistics tracker are shared by everything resolved
    # from this container.
    container.register(
        ChessDomainAdapter, factory=lambda: ChessDomainAdapter(engine_settings), scope=punq.Scope.singleton
    )
    container.register(StatisticsTracker, scope=punq.Scope.singleton)
    container.register(PgnService)
    container.register(CorpusStore, factory=lambda: CorpusStore(corpus_file), scope=punq.Scope.singleton)

    container.register(
        PatternEngine, factory=lambda: PatternEngine(container.resolve(ChessDomainAdapter), engine_settings)
    )
    container.register(
        CorpusBuilder,
        factory=lambda: CorpusBuilder(
            container.resolve(ChessDomainAdapter),
            container.resolve(PgnService),
            container.resolve(StatisticsTracker),
        ),
    )

    return container
