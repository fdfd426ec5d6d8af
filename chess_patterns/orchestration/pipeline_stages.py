# chess_patterns/orchestration/pipeline_stages.py
"""
Defines the individual, sequential stages of the analysis pipeline.

Each stage is a class that conforms to the `ProcessingStage` protocol. It
performs one well-defined part of the workflow: parsing the raw record,
extracting its signature, matching it against the corpus, or projecting its
trajectory. The pipeline is executed by passing a mutable `AnalysisContext`
from one stage to the next, with each stage reading from and writing to it.
"""

from typing import TYPE_CHECKING

import structlog

from chess_patterns.core.pattern_matcher import find_similar_patterns
from chess_patterns.core.trajectory_predictor import predict_trajectory
from chess_patterns.tracing import trace_stage
from chess_patterns.types import (AnalysisContext, DomainAdapter, LedgerAdapter,
                                  ProcessingStage)

if TYPE_CHECKING:
    from chess_patterns.config.settings import MatchingSettings, PredictionSettings

logger = structlog.get_logger(__name__)


class ParseStage(ProcessingStage):
    """Turns the raw record into a domain sequence, truncated for live prediction."""
    def __init__(self, adapter: DomainAdapter):
        self._adapter = adapter

    @trace_stage
    def execute(self, context: AnalysisContext) -> AnalysisContext:
        sequence = self._adapter.parse_input(context.raw_record)
        full_length = self._adapter.sequence_length(sequence)

        if context.current_position is not None:
            position = max(0, min(context.current_position, full_length))
            if context.total_expected_length is None:
                context.total_expected_length = full_length
            if position < full_length:
                logger.debug("Truncating sequence for live prediction.", position=position, length=full_length)
                sequence = self._adapter.truncate(sequence, position)
            context.current_position = position

        context.sequence = sequence
        return context

class ExtractionStage(ProcessingStage):
    """Builds the visit ledger (when the adapter exposes one) and the signature."""
    def __init__(self, adapter: DomainAdapter):
        self._adapter = adapter

    @trace_stage
    def execute(self, context: AnalysisContext) -> AnalysisContext:
        if isinstance(self._adapter, LedgerAdapter):
            context.ledger = self._adapter.build_ledger(context.sequence)
            length = self._adapter.sequence_length(context.sequence)
            context.signature = self._adapter.extract_from_ledger(context.ledger, length)
        else:
            context.signature = self._adapter.extract_signature(context.sequence)
        return context

class MatchingStage(ProcessingStage):
    """Finds the closest historical patterns in the corpus."""
    def __init__(self, settings: "MatchingSettings"):
        self._settings = settings

    @trace_stage
    def execute(self, context: AnalysisContext) -> AnalysisContext:
        context.matches = find_similar_patterns(
            context.signature, context.corpus,
            min_similarity=self._settings.min_similarity,
            limit=self._settings.limit,
            weights=self._settings.weights,
        )
        return context

class PredictionStage(ProcessingStage):
    """Projects the trajectory from the signature and its matches."""
    def __init__(self, adapter: DomainAdapter, settings: "PredictionSettings"):
        self._adapter = adapter
        self._settings = settings

    @trace_stage
    def execute(self, context: AnalysisContext) -> AnalysisContext:
        position = context.current_position
        if position is None:
            position = self._adapter.sequence_length(context.sequence)
        context.prediction = predict_trajectory(
            context.signature, context.matches,
            current_position=position,
            total_expected_length=context.total_expected_length,
            registry=self._adapter.archetype_registry,
            settings=self._settings,
        )
        return context
