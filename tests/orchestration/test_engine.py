# tests/orchestration/test_engine.py
from unittest.mock import MagicMock

import pytest

from chess_patterns.adapters.chess_adapter import ChessDomainAdapter
from chess_patterns.config.settings import EngineSettings
from chess_patterns.exceptions import ConfigurationError, MalformedSequenceError
from chess_patterns.orchestration.engine import PatternEngine
from chess_patterns.orchestration.pipeline_factory import create_pipeline
from chess_patterns.types import DRAW, PRIMARY_WINS, CorpusEntry

ITALIAN = "1. e4 e5 2. Nf3 Nc6 3. Bc4 Bc5 4. c3 Nf6 5. d4 exd4 6. cxd4 Bb4+ 7. Bd2 Bxd2+ 8. Nbxd2 d5 1-0"
SLAV = "1. d4 d5 2. c4 c6 3. Nf3 Nf6 4. Nc3 dxc4 5. a4 Bf5 6. e3 e6 7. Bxc4 Bb4 8. O-O O-O 1/2-1/2"

@pytest.fixture
def engine() -> PatternEngine:
    return PatternEngine(ChessDomainAdapter())

def test_engine_rejects_non_adapter():
    with pytest.raises(ConfigurationError):
        PatternEngine(object())

def test_analyze_without_corpus(engine):
    report = engine.analyze(ITALIAN)

    assert len(report.sequence) == 16
    assert report.ledger is not None
    assert report.signature.total_moves == 16
    assert report.matches == []
    assert report.prediction.prediction_available is False
    assert report.prediction.outcome_probabilities == {}

def test_analyze_finds_itself_in_corpus(engine):
    # Arrange
    own = engine.extract_signature(engine.parse_input(ITALIAN))
    other = engine.extract_signature(engine.parse_input(SLAV))
    corpus = [
        CorpusEntry(pattern_id="slav", signature=other, outcome=DRAW),
        CorpusEntry(pattern_id="italian", signature=own, outcome=PRIMARY_WINS),
    ]

    # Act
    report = engine.analyze(ITALIAN, corpus, record_id="italian-replay")

    # Assert
    assert report.matches[0].pattern_id == "italian"
    assert report.matches[0].similarity == 1.0
    assert report.prediction.prediction_available
    assert report.prediction.predicted_outcome in (PRIMARY_WINS, DRAW)
    assert report.signature == own

def test_live_position_truncates_and_looks_ahead(engine):
    report = engine.analyze(ITALIAN, current_position=6)

    assert len(report.sequence) == 6
    assert report.signature.total_moves == 6
    assert report.prediction.lookahead_horizon <= 10
    assert all(6 <= m.predicted_index <= 16 for m in report.prediction.milestones)

def test_live_position_beyond_length_is_clamped(engine):
    report = engine.analyze(ITALIAN, current_position=99)
    assert len(report.sequence) == 16
    assert report.prediction.milestones == ()

def test_malformed_record_aborts(engine):
    with pytest.raises(MalformedSequenceError) as exc_info:
        engine.analyze("1. e4 e5 2. Qxf7")
    assert exc_info.value.offset == 2

def test_uniform_surface_delegates(engine):
    sequence = engine.parse_input(ITALIAN)
    signature = engine.extract_signature(sequence)
    corpus = [CorpusEntry(pattern_id="a", signature=signature, outcome=PRIMARY_WINS)]

    assert engine.classify_archetype(signature) == signature.archetype
    assert engine.calculate_similarity(signature, signature) == 1.0
    assert [m.pattern_id for m in engine.find_similar_patterns(signature, corpus)] == ["a"]
    assert engine.find_similar_patterns(signature, corpus, outcome_filter=DRAW) == []
    prediction = engine.predict_trajectory(signature, engine.find_similar_patterns(signature, corpus))
    assert prediction.predicted_outcome == PRIMARY_WINS

def test_engine_runs_custom_pipeline():
    # Arrange
    adapter = ChessDomainAdapter()
    spy = MagicMock()
    spy.execute.side_effect = lambda context: context
    pipeline = create_pipeline(adapter, EngineSettings()) + [spy]
    engine = PatternEngine(adapter, pipeline=pipeline)

    # Act
    report = engine.analyze(ITALIAN)

    # Assert
    spy.execute.assert_called_once()
    context = spy.execute.call_args.args[0]
    assert context.signature is report.signature
