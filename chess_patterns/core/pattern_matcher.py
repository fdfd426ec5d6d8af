# chess_patterns/core/pattern_matcher.py
"""
Scores temporal signatures against each other and searches a corpus for the
closest historical patterns.

Nothing here knows about chess: signatures are compared through their
quadrant profile, temporal flow, intensity, archetype label, flow direction
and dominant force only. Every similarity lies in `[0, 1]` and identical
signatures score exactly 1.0.
"""

import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from chess_patterns.config.settings import MatchWeights
from chess_patterns.types import (CorpusEntry, Outcome, PatternMatch,
                                  TemporalSignature)
from chess_patterns.utils.metrics import (CANDIDATES_SCORED_TOTAL,
                                          EMPTY_MATCH_RESULTS_TOTAL)

logger = structlog.get_logger(__name__)

DEFAULT_WEIGHTS = MatchWeights()

# --- Per-dimension similarity ---

def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))

def archetype_similarity(a: TemporalSignature, b: TemporalSignature) -> float:
    return 1.0 if a.archetype == b.archetype else 0.0

def quadrant_similarity(a: TemporalSignature, b: TemporalSignature) -> float:
    """One minus half the L1 distance between the two quadrant distributions."""
    distance = sum(abs(x - y) for x, y in zip(a.quadrant_profile.as_tuple(), b.quadrant_profile.as_tuple()))
    return _clamp(1.0 - distance / 2.0)

def temporal_similarity(a: TemporalSignature, b: TemporalSignature) -> float:
    """
    Blends phase shape (50%), trend agreement (30%) and momentum closeness (20%).

    Phase shape compares the three phase levels relative to the largest of
    them, so two games with the same rhythm but different volume still agree.
    """
    levels_a, levels_b = a.temporal_flow.levels(), b.temporal_flow.levels()
    peak = max(max(levels_a), max(levels_b))
    if peak > 0:
        mean_diff = sum(abs(x - y) for x, y in zip(levels_a, levels_b)) / 3.0
        shape = _clamp(1.0 - mean_diff / peak)
    else:
        shape = 1.0
    trend = 1.0 if a.temporal_flow.trend is b.temporal_flow.trend else 0.0
    momentum = _clamp(1.0 - abs(a.temporal_flow.momentum - b.temporal_flow.momentum) / 2.0)
    return math.fsum((0.5 * shape, 0.3 * trend, 0.2 * momentum))

def intensity_similarity(a: TemporalSignature, b: TemporalSignature) -> float:
    return _clamp(1.0 - abs(a.intensity - b.intensity))

def flow_similarity(a: TemporalSignature, b: TemporalSignature) -> float:
    direction = 1.0 if a.flow_direction is b.flow_direction else 0.0
    force = 1.0 if a.dominant_force is b.dominant_force else 0.0
    return 0.5 * direction + 0.5 * force

def calculate_similarity(
    a: TemporalSignature, b: TemporalSignature, weights: Optional[MatchWeights] = None
) -> float:
    """Weighted mean of the per-dimension similarities, clamped to `[0, 1]`."""
    weights = weights or DEFAULT_WEIGHTS
    parts = (
        (weights.archetype, archetype_similarity(a, b)),
        (weights.quadrant, quadrant_similarity(a, b)),
        (weights.temporal, temporal_similarity(a, b)),
        (weights.intensity, intensity_similarity(a, b)),
        (weights.flow, flow_similarity(a, b)),
    )
    total_weight = math.fsum(weight for weight, _ in parts)
    score = math.fsum(weight * value for weight, value in parts) / total_weight
    return _clamp(score)

# --- Corpus search ---

def find_similar_patterns(
    target: TemporalSignature,
    corpus: Iterable[CorpusEntry],
    min_similarity: float = 0.6,
    limit: int = 10,
    weights: Optional[MatchWeights] = None,
    archetype_filter: Optional[str] = None,
    outcome_filter: Optional[Outcome] = None,
) -> List[PatternMatch]:
    """
    Returns corpus entries scoring at least `min_similarity`, best first.

    Ties keep corpus order. An empty corpus, or one with no qualifying entry,
    gives an empty list.

    Args:
        target: The signature being matched.
        corpus: Historical entries with known outcomes.
        min_similarity: Entries scoring below this are discarded.
        limit: The maximum number of matches returned.
        weights: Dimension weights. Defaults to `MatchWeights()`.
        archetype_filter: When set, only entries with this archetype are scored.
        outcome_filter: When set, only entries with this outcome are scored.
    """
    scored: List[PatternMatch] = []
    candidates = 0
    for entry in corpus:
        if archetype_filter is not None and entry.signature.archetype != archetype_filter:
            continue
        if outcome_filter is not None and entry.outcome != outcome_filter:
            continue
        candidates += 1
        similarity = calculate_similarity(target, entry.signature, weights)
        if similarity >= min_similarity:
            scored.append(PatternMatch(
                pattern_id=entry.pattern_id, signature=entry.signature, outcome=entry.outcome,
                similarity=similarity, metadata=dict(entry.metadata),
            ))
    CANDIDATES_SCORED_TOTAL.inc(candidates)

    # list.sort is stable, so equal scores keep corpus order.
    scored.sort(key=lambda match: match.similarity, reverse=True)
    matches = scored[:max(limit, 0)]

    if not matches:
        reason = "empty_corpus" if candidates == 0 else "below_threshold"
        EMPTY_MATCH_RESULTS_TOTAL.labels(reason=reason).inc()
        logger.info("No historical pattern matched.", fingerprint=target.fingerprint,
                    candidates=candidates, reason=reason, min_similarity=min_similarity)
    else:
        logger.debug("Matched historical patterns.", fingerprint=target.fingerprint,
                     candidates=candidates, matches=len(matches), best=matches[0].similarity)
    return matches

# --- Match statistics ---

def calculate_outcome_probabilities(matches: Sequence[PatternMatch]) -> Dict[Outcome, float]:
    """
    Similarity-weighted outcome frequencies, summing to 1.

    When every similarity is 0 the plain frequency is used. No matches gives
    an empty mapping.
    """
    if not matches:
        return {}
    totals: Dict[Outcome, float] = {}
    for match in matches:
        totals[match.outcome] = totals.get(match.outcome, 0.0) + match.similarity
    weight_sum = math.fsum(totals.values())
    if weight_sum <= 0:
        totals = {}
        for match in matches:
            totals[match.outcome] = totals.get(match.outcome, 0.0) + 1.0
        weight_sum = float(len(matches))
    return {outcome: weight / weight_sum for outcome, weight in totals.items()}

def most_likely_outcome(matches: Sequence[PatternMatch]) -> Optional[Tuple[Outcome, float]]:
    """The `(outcome, probability)` pair with the highest probability; ties go to the first seen."""
    probabilities = calculate_outcome_probabilities(matches)
    if not probabilities:
        return None
    outcome = max(probabilities, key=probabilities.__getitem__)
    return outcome, probabilities[outcome]

def calculate_pattern_diversity(matches: Sequence[PatternMatch]) -> float:
    """
    How varied the matched cohort is, in `[0, 1]`.

    The mean of archetype and outcome variety, each measured as
    `(distinct - 1) / (n - 1)`. Fewer than two matches have no diversity.
    """
    count = len(matches)
    if count < 2:
        return 0.0
    archetypes = len({match.signature.archetype for match in matches})
    outcomes = len({match.outcome for match in matches})
    return ((archetypes - 1) / (count - 1) + (outcomes - 1) / (count - 1)) / 2.0

def calculate_match_confidence(matches: Sequence[PatternMatch], min_sample_size: int = 5) -> float:
    """
    Confidence in a cohort from its size (40%), mean similarity (40%) and
    consensus (20%, the inverse of diversity).
    """
    if not matches:
        return 0.0
    sample = min(1.0, len(matches) / max(min_sample_size, 1))
    mean_similarity = math.fsum(match.similarity for match in matches) / len(matches)
    consensus = 1.0 - calculate_pattern_diversity(matches)
    return _clamp(0.4 * sample + 0.4 * mean_similarity + 0.2 * consensus)
