# tests/core/test_trajectory_predictor.py
import numpy as np
import pytest

from chess_patterns.adapters.chess_archetypes import build_chess_registry
from chess_patterns.config.settings import PredictionSettings
from chess_patterns.core.trajectory_predictor import (
    assess_sustainability,
    calculate_divergence,
    feature_vector,
    generate_milestones,
    predict_trajectory,
)
from chess_patterns.types import (DRAW, PRIMARY_WINS, PatternMatch, RiskLevel,
                                  Trend)

SETTINGS = PredictionSettings()

def _matches(signatures_and_outcomes):
    return [
        PatternMatch(pattern_id=f"p{i}", signature=signature, outcome=outcome, similarity=similarity)
        for i, (signature, outcome, similarity) in enumerate(signatures_and_outcomes)
    ]

def test_empty_matches_give_unavailable_prediction(make_signature):
    # Act
    prediction = predict_trajectory(make_signature(), [])

    # Assert
    assert prediction.outcome_probabilities == {}
    assert prediction.prediction_available is False
    assert prediction.predicted_outcome is None
    assert prediction.divergence is None
    assert prediction.sample_size == 0
    assert prediction.sustainability.sustainable is True
    assert prediction.sustainability.risk_level is RiskLevel.MEDIUM
    assert "No historical cohort" in prediction.sustainability.reason
    assert "Prediction unavailable" in prediction.guidance

def test_prediction_from_cohort(make_signature):
    target = make_signature(archetype="central_domination")
    matches = _matches([
        (make_signature(archetype="central_domination"), PRIMARY_WINS, 0.9),
        (make_signature(archetype="central_domination"), PRIMARY_WINS, 0.8),
        (make_signature(archetype="central_domination"), DRAW, 0.7),
    ])

    prediction = predict_trajectory(target, matches, registry=build_chess_registry())

    assert prediction.prediction_available
    assert prediction.predicted_outcome == PRIMARY_WINS
    assert prediction.outcome_probabilities[PRIMARY_WINS] == pytest.approx(1.7 / 2.4)
    assert prediction.divergence == 0.0
    assert prediction.sample_size == 3
    assert 0.0 < prediction.confidence <= 1.0
    assert "Central Domination" in prediction.guidance
    assert "historically successful 62% of the time" in prediction.guidance

def test_defaults_for_position_and_expected_length(make_signature):
    prediction = predict_trajectory(make_signature(total_moves=40), [])
    # No registry: confidence = 0.5 * 0.4, lookahead = floor(80 * 0.2).
    assert prediction.confidence == pytest.approx(0.2)
    assert prediction.lookahead_horizon == 16

def test_lookahead_is_bounded_by_remaining_moves(make_signature):
    prediction = predict_trajectory(make_signature(), [], current_position=75, total_expected_length=80)
    assert prediction.lookahead_horizon == 5

# --- Divergence ---

def test_feature_vector_is_scaled(make_signature):
    vector = feature_vector(make_signature(levels=(1.0, 2.0, 4.0), momentum=-1.0, intensity=0.3))
    assert vector.shape == (9,)
    assert np.all((vector >= 0) & (vector <= 1))
    assert vector[4:7].tolist() == [0.25, 0.5, 1.0]
    assert vector[-1] == 0.0

def test_divergence_from_opposite_cohort(make_signature):
    target = make_signature(quadrants=(1.0, 0.0, 0.0, 0.0), levels=(1.0, 0.0, 0.0), intensity=1.0, momentum=-1.0)
    other = make_signature(quadrants=(0.0, 0.0, 0.0, 1.0), levels=(0.0, 0.0, 1.0), intensity=0.0, momentum=1.0)
    divergence = calculate_divergence(target, _matches([(other, DRAW, 0.5)]))
    assert divergence == pytest.approx(np.sqrt(6 / 9))

def test_divergence_without_matches_is_none(make_signature):
    assert calculate_divergence(make_signature(), []) is None

# --- Sustainability ---

def test_volatile_is_unsustainable(make_signature):
    result = assess_sustainability(make_signature(trend=Trend.VOLATILE), 0.0, SETTINGS)
    assert (result.sustainable, result.risk_level) == (False, RiskLevel.HIGH)

def test_high_divergence_is_unsustainable(make_signature):
    result = assess_sustainability(make_signature(), 0.5, SETTINGS)
    assert (result.sustainable, result.risk_level) == (False, RiskLevel.HIGH)
    assert "0.50" in result.reason

def test_collapsing_is_unsustainable(make_signature):
    result = assess_sustainability(make_signature(trend=Trend.DECLINING, momentum=-0.6), None, SETTINGS)
    assert (result.sustainable, result.risk_level) == (False, RiskLevel.HIGH)

def test_burnout_is_medium_risk(make_signature):
    result = assess_sustainability(make_signature(trend=Trend.ACCELERATING, intensity=0.9), 0.1, SETTINGS)
    assert (result.sustainable, result.risk_level) == (False, RiskLevel.MEDIUM)

def test_on_pattern_is_low_risk(make_signature):
    result = assess_sustainability(make_signature(trend=Trend.ACCELERATING, intensity=0.5), 0.1, SETTINGS)
    assert (result.sustainable, result.risk_level) == (True, RiskLevel.LOW)

def test_moderate_divergence_is_medium_risk(make_signature):
    result = assess_sustainability(make_signature(), 0.25, SETTINGS)
    assert (result.sustainable, result.risk_level) == (True, RiskLevel.MEDIUM)
    assert "moderate divergence" in result.reason

# --- Milestones ---

def test_milestones_are_sorted_and_capped(make_signature, surge_at):
    signature = make_signature(archetype="kingside_attack", moments=[surge_at(10), surge_at(30), surge_at(70), surge_at(75)])
    definition = build_chess_registry().definition_for("kingside_attack")

    milestones = generate_milestones(signature, 20, 80, definition)

    assert [m.predicted_index for m in milestones] == [30, 35, 50, 62, 70]
    assert milestones[3].event == "Kingside Attack Phase"
    assert milestones[3].recommendation == "Press the attack while maintaining defense"
    assert milestones[0].recommendation == "Prepare for surge"

def test_no_archetype_phase_near_the_end(make_signature):
    milestones = generate_milestones(make_signature(), 75, 80, None)
    assert [m.event for m in milestones] == ["Critical Decision Point", "Trajectory Confirmation"]

def test_no_milestones_past_expected_length(make_signature):
    assert generate_milestones(make_signature(), 80, 80, None) == ()
