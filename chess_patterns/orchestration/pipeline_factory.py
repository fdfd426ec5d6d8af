# chess_patterns/orchestration/pipeline_factory.py
"""
A factory for creating the analysis pipeline.

This module's sole responsibility is to construct and return the list of
`ProcessingStage` objects in the correct sequential order. It keeps the engine
facade free of any knowledge about individual stage constructors.
"""

from typing import List, TYPE_CHECKING

from chess_patterns.orchestration.pipeline_stages import (
    ExtractionStage, MatchingStage, ParseStage, PredictionStage
)
from chess_patterns.types import DomainAdapter, ProcessingStage

if TYPE_CHECKING:
    from chess_patterns.config.settings import EngineSettings

def create_pipeline(adapter: DomainAdapter, settings: "EngineSettings") -> List[ProcessingStage]:
    """
    Builds and returns the list of processing stages in their correct execution order.
    """
    return [
        ParseStage(adapter),
        ExtractionStage(adapter),
        MatchingStage(settings.matching),
        PredictionStage(adapter, settings.prediction),
    ]
