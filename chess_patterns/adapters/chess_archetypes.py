# chess_patterns/adapters/chess_archetypes.py
"""
The chess archetype registry: ordered detection rules plus the descriptive
table (win rates, predicted outcome, lookahead) for every archetype.

This follows a "Prepare, Decide" pattern. Small helpers read the signature,
pure predicates decide, and `ARCHETYPE_PIPELINE` orders them by priority. The
first predicate that matches names the archetype. Every predicate needs some
activity to fire, so an all-zero signature always falls through to `unknown`.
"""

from dataclasses import replace
from typing import Callable, Dict, List, Tuple

from chess_patterns.core.archetype_classifier import build_registry
from chess_patterns.types import (DRAW, PRIMARY_WINS, ArchetypeDefinition,
                                  ArchetypeRegistry, DominantForce,
                                  FlowDirection, MomentType, TemporalSignature,
                                  Trend)

CHESS_DOMAIN = "chess"
REGISTRY_VERSION = "1.0"
DEFAULT_ARCHETYPE = "unknown"

# --- 1. PREPARE: Signature Readers ---

def _has_activity(sig: TemporalSignature) -> bool:
    return sig.intensity > 0 and sig.quadrant_profile.total > 0

def _kingside_share(sig: TemporalSignature) -> float:
    return sig.quadrant_profile.q2 + sig.quadrant_profile.q4

def _queenside_share(sig: TemporalSignature) -> float:
    return sig.quadrant_profile.q1 + sig.quadrant_profile.q3

# --- 2. DECIDE: Archetype Detection Rules ---

def _is_sacrificial_attack(sig: TemporalSignature) -> bool:
    """Many sharp swings, at least one of them a breakthrough."""
    return (
        _has_activity(sig)
        and len(sig.critical_moments) >= 4
        and any(m.type is MomentType.BREAKTHROUGH for m in sig.critical_moments)
    )

def _is_open_tactical(sig: TemporalSignature) -> bool:
    return _has_activity(sig) and sig.temporal_flow.trend is Trend.VOLATILE and len(sig.critical_moments) >= 3

def _is_kingside_attack(sig: TemporalSignature) -> bool:
    return _has_activity(sig) and _kingside_share(sig) >= 0.6 and sig.flow_direction is FlowDirection.FORWARD

def _is_queenside_expansion(sig: TemporalSignature) -> bool:
    return _has_activity(sig) and _queenside_share(sig) >= 0.6

def _is_central_domination(sig: TemporalSignature) -> bool:
    return _has_activity(sig) and sig.quadrant_profile.center >= 0.2

def _is_positional_squeeze(sig: TemporalSignature) -> bool:
    return _has_activity(sig) and sig.temporal_flow.trend is Trend.ACCELERATING and sig.temporal_flow.momentum > 0.2

def _is_endgame_technique(sig: TemporalSignature) -> bool:
    return _has_activity(sig) and sig.temporal_flow.trend is Trend.DECLINING and sig.intensity < 0.5

def _is_prophylactic_defense(sig: TemporalSignature) -> bool:
    return _has_activity(sig) and sig.dominant_force is DominantForce.SECONDARY

def _is_closed_maneuvering(sig: TemporalSignature) -> bool:
    return (
        _has_activity(sig)
        and sig.temporal_flow.trend is Trend.STABLE
        and sig.intensity < 0.35
        and not sig.critical_moments
        and sig.flow_direction in (FlowDirection.LATERAL, FlowDirection.CHAOTIC)
    )

def _is_piece_harmony(sig: TemporalSignature) -> bool:
    return (
        _has_activity(sig)
        and sig.dominant_force is DominantForce.BALANCED
        and sig.temporal_flow.trend is Trend.STABLE
        and sig.intensity >= 0.35
    )

# A data-driven pipeline of archetypes, defined by priority order.
ARCHETYPE_PIPELINE: List[Tuple[str, Callable[[TemporalSignature], bool], str]] = [
    ("sacrificial_attack", _is_sacrificial_attack, "Four or more critical moments including a breakthrough."),
    ("open_tactical", _is_open_tactical, "Volatile activity with three or more critical moments."),
    ("kingside_attack", _is_kingside_attack, "At least 60% of activity on files e-h, flowing forward."),
    ("queenside_expansion", _is_queenside_expansion, "At least 60% of activity on files a-d."),
    ("central_domination", _is_central_domination, "At least 20% of activity on d4, e4, d5 and e5."),
    ("positional_squeeze", _is_positional_squeeze, "Accelerating activity with momentum above 0.2."),
    ("endgame_technique", _is_endgame_technique, "Declining activity at moderate intensity."),
    ("prophylactic_defense", _is_prophylactic_defense, "The secondary side carries most of the activity."),
    ("closed_maneuvering", _is_closed_maneuvering, "Quiet, stable, low-intensity regrouping without critical moments."),
    ("piece_harmony", _is_piece_harmony, "Balanced, stable and sustained activity from both sides."),
]

# --- Descriptive Table ---

ARCHETYPE_DEFINITIONS: Tuple[ArchetypeDefinition, ...] = (
    ArchetypeDefinition("kingside_attack", "Kingside Attack", "Concentrated piece activity toward the enemy king",
                        historical_win_rate=0.58, predicted_outcome=PRIMARY_WINS, confidence=0.58, lookahead_moves=15),
    ArchetypeDefinition("queenside_expansion", "Queenside Expansion", "Systematic territorial gain on the a-d files",
                        historical_win_rate=0.54, predicted_outcome=PRIMARY_WINS, confidence=0.54, lookahead_moves=20),
    ArchetypeDefinition("central_domination", "Central Domination", "Dense control of the d4-e5 complex",
                        historical_win_rate=0.62, predicted_outcome=PRIMARY_WINS, confidence=0.62, lookahead_moves=25),
    ArchetypeDefinition("prophylactic_defense", "Prophylactic Defense", "Counter-reactive play preventing opponent threats",
                        historical_win_rate=0.48, predicted_outcome=DRAW, confidence=0.48, lookahead_moves=30),
    ArchetypeDefinition("piece_harmony", "Piece Harmony", "Coordinated piece placement with overlapping activity",
                        historical_win_rate=0.60, predicted_outcome=PRIMARY_WINS, confidence=0.60, lookahead_moves=18),
    ArchetypeDefinition("closed_maneuvering", "Closed Maneuvering", "Slow positional regrouping",
                        historical_win_rate=0.52, predicted_outcome=DRAW, confidence=0.52, lookahead_moves=35),
    ArchetypeDefinition("open_tactical", "Open Tactical Battle", "High piece activity, captures and exchanges",
                        historical_win_rate=0.53, predicted_outcome=DRAW, confidence=0.53, lookahead_moves=8),
    ArchetypeDefinition("endgame_technique", "Endgame Technique", "Precise maneuvering with few pieces",
                        historical_win_rate=0.58, predicted_outcome=PRIMARY_WINS, confidence=0.58, lookahead_moves=40),
    ArchetypeDefinition("sacrificial_attack", "Sacrificial Attack", "Material sacrifice for initiative",
                        historical_win_rate=0.56, predicted_outcome=PRIMARY_WINS, confidence=0.56, lookahead_moves=6),
    ArchetypeDefinition("positional_squeeze", "Positional Squeeze", "Gradual space restriction",
                        historical_win_rate=0.61, predicted_outcome=PRIMARY_WINS, confidence=0.61, lookahead_moves=28),
    ArchetypeDefinition(DEFAULT_ARCHETYPE, "Unclassified Pattern", "Novel or hybrid strategic approach",
                        historical_win_rate=0.50, predicted_outcome=DRAW, confidence=0.5, lookahead_moves=5),
)

ARCHETYPE_RECOMMENDATIONS: Dict[str, str] = {
    "kingside_attack": "Press the attack while maintaining defense",
    "queenside_expansion": "Expand territorial control",
    "central_domination": "Leverage central control for flexibility",
    "open_tactical": "Calculate carefully, avoid simplification",
    "sacrificial_attack": "Keep the initiative; the material is already spent",
    "positional_squeeze": "Tighten the bind before opening lines",
    "endgame_technique": "Convert with precise, unhurried technique",
    "prophylactic_defense": "Neutralise threats before seeking counterplay",
    "closed_maneuvering": "Regroup patiently and prepare a pawn break",
    "piece_harmony": "Keep the pieces coordinated and look for a plan",
}

DEFAULT_RECOMMENDATION = "Continue current strategy with vigilance"

def recommendation_for(archetype: str) -> str:
    return ARCHETYPE_RECOMMENDATIONS.get(archetype, DEFAULT_RECOMMENDATION)

def build_chess_registry() -> ArchetypeRegistry:
    """Builds the ordered chess archetype registry."""
    return build_registry(
        domain=CHESS_DOMAIN,
        version=REGISTRY_VERSION,
        pipeline=ARCHETYPE_PIPELINE,
        default_label=DEFAULT_ARCHETYPE,
        definitions=tuple(replace(d, recommendation=recommendation_for(d.label)) for d in ARCHETYPE_DEFINITIONS),
    )
