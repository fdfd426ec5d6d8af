# chess_patterns/orchestration/engine.py
"""
Defines the `PatternEngine`, the single entry point to the pattern pipeline.

The engine is domain-agnostic. It is constructed with a `DomainAdapter` and
exposes a uniform surface: parse, extract, classify, compare, search and
predict, plus `analyze`, which runs all of them in order through the staged
pipeline.
"""

import time
import uuid
from typing import Any, Iterable, List, Optional, Sequence, TYPE_CHECKING

import structlog

from chess_patterns.core import pattern_matcher, trajectory_predictor
from chess_patterns.exceptions import ConfigurationError
from chess_patterns.orchestration.pipeline_factory import create_pipeline
from chess_patterns.tracing import CorrelationID
from chess_patterns.types import (AnalysisContext, AnalysisReport, CorpusEntry,
                                  DomainAdapter, Outcome, PatternMatch,
                                  ProcessingStage, TemporalSignature,
                                  TrajectoryPrediction)
from chess_patterns.utils.metrics import PIPELINE_DURATION_SECONDS

if TYPE_CHECKING:
    from chess_patterns.config.settings import EngineSettings, MatchWeights

logger = structlog.get_logger(__name__)


class PatternEngine:
    """Runs the parse, extract, match and predict pipeline for one domain."""

    def __init__(
        self,
        adapter: DomainAdapter,
        settings: Optional["EngineSettings"] = None,
        pipeline: Optional[List[ProcessingStage]] = None,
    ):
        """
        Initializes the PatternEngine.

        Args:
            adapter: The domain adapter selected for this engine.
            settings: Engine settings. Defaults to `EngineSettings()`.
            pipeline: A pre-constructed list of stages. Built from the adapter
                      and settings when omitted.

        Raises:
            ConfigurationError: If `adapter` does not satisfy `DomainAdapter`.
        """
        if not isinstance(adapter, DomainAdapter):
            raise ConfigurationError(f"{type(adapter).__name__} does not implement the DomainAdapter protocol.")
        if settings is None:
            from chess_patterns.config.settings import EngineSettings
            settings = EngineSettings()
        self._adapter = adapter
        self._settings = settings
        self._pipeline = pipeline if pipeline is not None else create_pipeline(adapter, settings)
        self._run_id = uuid.uuid4().hex

    @property
    def adapter(self) -> DomainAdapter:
        return self._adapter

    @property
    def settings(self) -> "EngineSettings":
        return self._settings

    # --- Uniform surface ---

    def parse_input(self, raw_record: Any) -> Any:
        return self._adapter.parse_input(raw_record)

    def extract_signature(self, sequence: Any) -> TemporalSignature:
        return self._adapter.extract_signature(sequence)

    def classify_archetype(self, signature: TemporalSignature) -> str:
        return self._adapter.classify_archetype(signature)

    def calculate_similarity(self, a: TemporalSignature, b: TemporalSignature,
                             weights: Optional["MatchWeights"] = None) -> float:
        return self._adapter.calculate_similarity(a, b, weights)

    def find_similar_patterns(
        self,
        target: TemporalSignature,
        corpus: Iterable[CorpusEntry],
        min_similarity: Optional[float] = None,
        limit: Optional[int] = None,
        weights: Optional["MatchWeights"] = None,
        archetype_filter: Optional[str] = None,
        outcome_filter: Optional[Outcome] = None,
    ) -> List[PatternMatch]:
        matching = self._settings.matching
        return pattern_matcher.find_similar_patterns(
            target, corpus,
            min_similarity=matching.min_similarity if min_similarity is None else min_similarity,
            limit=matching.limit if limit is None else limit,
            weights=weights or matching.weights,
            archetype_filter=archetype_filter,
            outcome_filter=outcome_filter,
        )

    def predict_trajectory(
        self,
        signature: TemporalSignature,
        matches: Sequence[PatternMatch],
        current_position: Optional[int] = None,
        total_expected_length: Optional[int] = None,
    ) -> TrajectoryPrediction:
        return trajectory_predictor.predict_trajectory(
            signature, matches,
            current_position=current_position,
            total_expected_length=total_expected_length,
            registry=self._adapter.archetype_registry,
            settings=self._settings.prediction,
        )

    # --- Full pipeline ---

    def analyze(
        self,
        raw_record: Any,
        corpus: Optional[Iterable[CorpusEntry]] = None,
        current_position: Optional[int] = None,
        total_expected_length: Optional[int] = None,
        record_id: str = "record",
    ) -> AnalysisReport:
        """
        Runs every pipeline stage over one raw record.

        Args:
            raw_record: Anything the adapter's `parse_input` accepts.
            corpus: Historical entries to match against. May be empty.
            current_position: When set, only the first `current_position`
                moves are analysed and the prediction looks ahead from there.
            total_expected_length: The expected final length for prediction.
            record_id: A label used in log context.

        Raises:
            MalformedSequenceError: If the record cannot be parsed. No later
                stage raises.
        """
        correlation = CorrelationID(run_id=self._run_id, record_id=record_id)
        context = AnalysisContext(
            raw_record=raw_record,
            corpus=list(corpus or []),
            current_position=current_position,
            total_expected_length=total_expected_length,
        )
        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(**correlation.as_dict()):
            for stage in self._pipeline:
                context = stage.execute(context)
        PIPELINE_DURATION_SECONDS.observe(time.perf_counter() - started)

        logger.info(
            "Analysis complete.", record=correlation.short_id,
            fingerprint=context.signature.fingerprint, archetype=context.signature.archetype,
            matches=len(context.matches), prediction_available=context.prediction.prediction_available,
        )
        return AnalysisReport(
            sequence=context.sequence,
            ledger=context.ledger,
            signature=context.signature,
            matches=context.matches,
            prediction=context.prediction,
        )
