# chess_patterns/core/trajectory_predictor.py
"""
Projects a likely trajectory and outcome from a signature and its matched
historical cohort.

This module follows a "Prepare, Decide, Render" pattern: cohort statistics are
computed first (outcome probabilities, divergence, confidence), a prioritized
rule table then decides sustainability, and finally milestones and guidance
text are rendered. Every function is total: an empty cohort yields an empty
probability map and `prediction_available = False`, never an error.
"""

import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np
import structlog

from chess_patterns.core.pattern_matcher import (calculate_match_confidence,
                                                 calculate_outcome_probabilities,
                                                 most_likely_outcome)
from chess_patterns.types import (ArchetypeDefinition, Milestone, PatternMatch,
                                  RiskLevel, Sustainability, TemporalSignature,
                                  TrajectoryPrediction, Trend)
from chess_patterns.utils.metrics import PREDICTIONS_UNAVAILABLE_TOTAL

if TYPE_CHECKING:
    from chess_patterns.config.settings import PredictionSettings
    from chess_patterns.types import ArchetypeRegistry

logger = structlog.get_logger(__name__)

DEFAULT_RECOMMENDATION = "Continue current strategy with vigilance"
MAX_MILESTONES = 5

# --- 1. PREPARE: Cohort Statistics ---

def feature_vector(signature: TemporalSignature) -> np.ndarray:
    """
    Scales a signature onto `[0, 1]` features: q1..q4, the phase levels
    relative to their peak, intensity and `(momentum + 1) / 2`.
    """
    qp, tf = signature.quadrant_profile, signature.temporal_flow
    levels = np.array(tf.levels(), dtype=float)
    peak = levels.max()
    shape = levels / peak if peak > 0 else np.zeros(3)
    return np.concatenate([
        np.array(qp.as_tuple(), dtype=float),
        shape,
        np.array([signature.intensity, (tf.momentum + 1.0) / 2.0]),
    ])

def calculate_divergence(signature: TemporalSignature, matches: Sequence[PatternMatch]) -> Optional[float]:
    """
    Root-mean-square distance between the signature and the centroid of its
    matches, in `[0, 1]`. `None` when there are no matches.
    """
    if not matches:
        return None
    centroid = np.mean([feature_vector(match.signature) for match in matches], axis=0)
    difference = feature_vector(signature) - centroid
    return float(np.clip(np.sqrt(np.mean(difference ** 2)), 0.0, 1.0))

# --- 2. DECIDE: Sustainability Rules ---

SustainabilityRule = Tuple[
    str, Callable[[TemporalSignature, Optional[float], "PredictionSettings"], bool],
    bool, RiskLevel, Callable[[TemporalSignature, Optional[float]], str]
]

def _is_volatile(sig, divergence, cfg) -> bool:
    return sig.temporal_flow.trend is Trend.VOLATILE

def _is_off_pattern(sig, divergence, cfg) -> bool:
    return divergence is not None and divergence >= cfg.high_divergence

def _is_collapsing(sig, divergence, cfg) -> bool:
    return sig.temporal_flow.trend is Trend.DECLINING and sig.temporal_flow.momentum <= -0.5

def _is_burning_out(sig, divergence, cfg) -> bool:
    return sig.temporal_flow.trend is Trend.ACCELERATING and sig.intensity > 0.8

def _is_on_pattern(sig, divergence, cfg) -> bool:
    return (
        sig.temporal_flow.trend in (Trend.STABLE, Trend.ACCELERATING)
        and divergence is not None and divergence <= cfg.low_divergence
    )

def _has_no_cohort(sig, divergence, cfg) -> bool:
    return divergence is None

# Ordered by priority; the first rule that matches decides.
SUSTAINABILITY_RULES: List[SustainabilityRule] = [
    ("volatile", _is_volatile, False, RiskLevel.HIGH,
     lambda s, d: f"Volatile activity (momentum {s.temporal_flow.momentum:+.2f}) rarely holds its course"),
    ("off_pattern", _is_off_pattern, False, RiskLevel.HIGH,
     lambda s, d: f"Trajectory diverges {d:.2f} from its historical cohort"),
    ("collapsing", _is_collapsing, False, RiskLevel.HIGH,
     lambda s, d: f"Declining activity with momentum {s.temporal_flow.momentum:+.2f} is losing steam"),
    ("burning_out", _is_burning_out, False, RiskLevel.MEDIUM,
     lambda s, d: f"Accelerating at intensity {s.intensity:.2f} risks burnout"),
    ("on_pattern", _is_on_pattern, True, RiskLevel.LOW,
     lambda s, d: f"{s.temporal_flow.trend.value.capitalize()} trajectory within {d:.2f} of its historical cohort"),
    ("no_cohort", _has_no_cohort, True, RiskLevel.MEDIUM,
     lambda s, d: "No historical cohort to compare against"),
]

def assess_sustainability(
    signature: TemporalSignature, divergence: Optional[float], settings: "PredictionSettings"
) -> Sustainability:
    for _name, detector, sustainable, risk, reason in SUSTAINABILITY_RULES:
        if detector(signature, divergence, settings):
            return Sustainability(sustainable=sustainable, reason=reason(signature, divergence), risk_level=risk)
    return Sustainability(
        sustainable=True,
        reason=f"{signature.temporal_flow.trend.value.capitalize()} trajectory with moderate divergence ({divergence:.2f})",
        risk_level=RiskLevel.MEDIUM,
    )

# --- 3. RENDER: Milestones and Guidance ---

def _title(label: str) -> str:
    return " ".join(word.capitalize() for word in label.split("_"))

def generate_milestones(
    signature: TemporalSignature,
    current_position: int,
    total_expected_length: int,
    definition: Optional[ArchetypeDefinition],
) -> Tuple[Milestone, ...]:
    """Decision points at 25%, 50% and 70% of the remaining moves, plus upcoming critical moments."""
    remaining = total_expected_length - current_position
    if remaining <= 0:
        return ()

    milestones: List[Milestone] = [
        Milestone(
            predicted_index=math.floor(current_position + remaining * 0.25),
            event="Critical Decision Point", probability=0.75,
            impact=0.8 if signature.intensity > 0.6 else 0.5,
            recommendation="Maintain momentum" if signature.temporal_flow.trend is Trend.ACCELERATING
            else "Consider strategic pivot",
        ),
        Milestone(
            predicted_index=math.floor(current_position + remaining * 0.5),
            event="Trajectory Confirmation", probability=0.65, impact=0.6,
            recommendation="Evaluate if current pattern holds",
        ),
    ]
    if signature.archetype and remaining > 10:
        recommendation = definition.recommendation if definition and definition.recommendation else DEFAULT_RECOMMENDATION
        milestones.append(Milestone(
            predicted_index=math.floor(current_position + remaining * 0.7),
            event=f"{_title(signature.archetype)} Phase", probability=0.7, impact=0.7,
            recommendation=recommendation,
        ))
    upcoming = [m for m in signature.critical_moments if m.index > current_position][:2]
    for moment in upcoming:
        milestones.append(Milestone(
            predicted_index=moment.index, event=moment.description,
            probability=moment.severity, impact=moment.severity,
            recommendation=f"Prepare for {moment.type.value}",
        ))

    # sorted() is stable, so milestones at the same index keep insertion order.
    return tuple(sorted(milestones, key=lambda m: m.predicted_index)[:MAX_MILESTONES])

_TREND_GUIDANCE: Dict[Trend, str] = {
    Trend.ACCELERATING: "Momentum is building - capitalize on current trajectory",
    Trend.DECLINING: "Activity declining - consider repositioning or intervention",
    Trend.VOLATILE: "High volatility detected - exercise caution",
    Trend.STABLE: "Stable trajectory - maintain current course",
}

def generate_guidance(
    signature: TemporalSignature,
    definition: Optional[ArchetypeDefinition],
    probabilities: Dict[str, float],
) -> str:
    parts: List[str] = []
    if definition is not None:
        parts.append(f'Pattern matches "{definition.name}" archetype')
        if definition.historical_win_rate > 0.6:
            parts.append(f"historically successful {round(definition.historical_win_rate * 100)}% of the time")
    parts.append(_TREND_GUIDANCE[signature.temporal_flow.trend])
    if signature.dominant_force.value != "balanced":
        parts.append(f"{signature.dominant_force.value.capitalize()} force has initiative")
    if not probabilities:
        parts.append("Prediction unavailable: no historical cohort matched")
    else:
        top_outcome, top_probability = max(probabilities.items(), key=lambda item: item[1])
        if top_probability > 0.5:
            parts.append(f"{round(top_probability * 100)}% trajectory toward {_title(top_outcome)}")
    return ". ".join(parts) + "."

# --- Public API ---

def predict_trajectory(
    signature: TemporalSignature,
    matches: Sequence[PatternMatch],
    current_position: Optional[int] = None,
    total_expected_length: Optional[int] = None,
    registry: Optional["ArchetypeRegistry"] = None,
    settings: Optional["PredictionSettings"] = None,
) -> TrajectoryPrediction:
    """
    Builds a trajectory prediction from a signature and its matches.

    Args:
        signature: The (possibly partial) signature being projected.
        matches: The matched historical cohort, best first. May be empty.
        current_position: Moves played so far. Defaults to the signature's length.
        total_expected_length: Expected final length. Defaults to the larger of
            the current position and the configured default.
        registry: Supplies the archetype definition used for confidence and guidance.
        settings: Prediction weights and thresholds.

    Returns:
        The prediction. With no matches, `outcome_probabilities` is empty,
        `divergence` is None and `prediction_available` is False.
    """
    if settings is None:
        from chess_patterns.config.settings import PredictionSettings
        settings = PredictionSettings()
    if current_position is None:
        current_position = signature.total_moves
    if total_expected_length is None:
        total_expected_length = max(current_position, settings.default_expected_length)

    probabilities = calculate_outcome_probabilities(matches)
    divergence = calculate_divergence(signature, matches)
    definition = registry.definition_for(signature.archetype) if registry is not None else None

    match_confidence = calculate_match_confidence(matches, settings.min_sample_size)
    archetype_confidence = definition.confidence if definition is not None else 0.5
    confidence = (
        match_confidence * settings.match_confidence_weight
        + archetype_confidence * settings.archetype_confidence_weight
    )
    remaining = max(total_expected_length - current_position, 0)
    lookahead = min(remaining, math.floor(settings.max_lookahead * confidence))

    best = most_likely_outcome(matches)
    available = bool(probabilities)
    if not available:
        PREDICTIONS_UNAVAILABLE_TOTAL.inc()
        logger.info("Trajectory prediction unavailable; no historical cohort.", fingerprint=signature.fingerprint)

    return TrajectoryPrediction(
        outcome_probabilities=probabilities,
        divergence=divergence,
        sustainability=assess_sustainability(signature, divergence, settings),
        prediction_available=available,
        predicted_outcome=best[0] if best else None,
        confidence=confidence,
        milestones=generate_milestones(signature, current_position, total_expected_length, definition),
        lookahead_horizon=lookahead,
        sample_size=len(matches),
        guidance=generate_guidance(signature, definition, probabilities),
    )
