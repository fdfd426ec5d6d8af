# tests/conftest.py
from typing import Callable

import pytest

from chess_patterns.types import (CorpusEntry, CriticalMoment, DominantForce,
                                  FlowDirection, MomentType, QuadrantProfile, TemporalFlow,
                                  TemporalSignature, Trend)

def _make_signature(
    archetype: str = "piece_harmony",
    quadrants=(0.25, 0.25, 0.25, 0.25),
    levels=(1.0, 1.0, 1.0),
    trend: Trend = Trend.STABLE,
    momentum: float = 0.0,
    intensity: float = 0.5,
    moments=(),
    force: DominantForce = DominantForce.BALANCED,
    direction: FlowDirection = FlowDirection.FORWARD,
    total_moves: int = 40,
) -> TemporalSignature:
    q1, q2, q3, q4 = quadrants
    opening, midgame, endgame = levels
    return TemporalSignature(
        fingerprint="EP-00000000",
        quadrant_profile=QuadrantProfile(q1=q1, q2=q2, q3=q3, q4=q4),
        temporal_flow=TemporalFlow(opening=opening, midgame=midgame, endgame=endgame, trend=trend, momentum=momentum),
        archetype=archetype,
        intensity=intensity,
        critical_moments=tuple(moments),
        dominant_force=force,
        flow_direction=direction,
        total_moves=total_moves,
    )

@pytest.fixture
def make_signature() -> Callable[..., TemporalSignature]:
    """A factory for hand-built signatures. Keyword arguments override the defaults."""
    return _make_signature

@pytest.fixture
def make_entry() -> Callable[..., CorpusEntry]:
    def factory(pattern_id: str, outcome: str, **signature_fields) -> CorpusEntry:
        return CorpusEntry(pattern_id=pattern_id, signature=_make_signature(**signature_fields), outcome=outcome)
    return factory

@pytest.fixture
def surge_at() -> Callable[[int], CriticalMoment]:
    def factory(index: int, severity: float = 0.6) -> CriticalMoment:
        return CriticalMoment(index=index, type=MomentType.SURGE, severity=severity, description=f"Surge at move {index}")
    return factory
