# chess_patterns/core/signature_extractor.py
"""
Derives a fixed-shape `TemporalSignature` from a visit ledger.

Every function here is pure and total: a ledger with no activity yields an
all-zero signature rather than an error. Temporal measures (phase levels,
trend, momentum, critical moments, flow direction) only look at visits made
by moves, never at setup visits (`move_index` 0). Spatial measures (quadrant
profile, intensity, dominant force) include them.

The activity weight of one visit is

    (piece_weight + capture_weight * captured_weight + special_bonus)
        * (1 + recency_weight * move_index / total_moves)

so with the default settings a quiet pawn push weighs 1 and a queen taking a
rook weighs 14. Critical moments are found on the activity series averaged
over a trailing window of `activity_window` moves.
"""
import warnings
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np
import structlog

from chess_patterns.core.archetype_classifier import classify_archetype
from chess_patterns.core.chess_utils import QUADRANT_NAMES, is_center, quadrant_of
from chess_patterns.core.fingerprint import compute_fingerprint
from chess_patterns.exceptions import DegenerateSignatureWarning
from chess_patterns.types import (CriticalMoment, DominantForce, FlowDirection,
                                  MomentType, QuadrantProfile, Side, SpecialKind,
                                  Square, TemporalFlow, TemporalSignature,
                                  Trend, Visit)
from chess_patterns.utils.metrics import (DEGENERATE_SIGNATURES_TOTAL,
                                          SIGNATURES_EXTRACTED_TOTAL)

if TYPE_CHECKING:
    from chess_patterns.config.settings import ExtractionSettings
    from chess_patterns.core.visit_ledger import VisitLedger
    from chess_patterns.types import ArchetypeRegistry

logger = structlog.get_logger(__name__)

Window = Tuple[int, int]


def _settings_or_default(settings: Optional["ExtractionSettings"]) -> "ExtractionSettings":
    if settings is None:
        from chess_patterns.config.settings import ExtractionSettings
        return ExtractionSettings()
    return settings

def visit_weight(visit: Visit, total_moves: int, settings: "ExtractionSettings") -> float:
    base = settings.piece_weights.get(visit.piece_kind, 1.0)
    if visit.captured_kind is not None:
        base += settings.capture_weight * settings.piece_weights.get(visit.captured_kind, 1.0)
    if visit.special_kind is not SpecialKind.NONE:
        base += settings.special_move_bonus
    if total_moves <= 0 or settings.recency_weight == 0:
        return base
    return base * (1.0 + settings.recency_weight * visit.move_index / total_moves)

def phase_windows(total_moves: int) -> List[Window]:
    """
    Splits moves `1..N` into opening, midgame and endgame windows (inclusive bounds).

    Each window is `N // 3` moves long and the remainder goes to the last one.
    Below three moves every phase is the whole game.
    """
    if total_moves < 3:
        return [(1, total_moves)] * 3
    base = total_moves // 3
    return [(1, base), (base + 1, 2 * base), (2 * base + 1, total_moves)]

def _profile_from(weighted: Iterable[Tuple[Square, float]]) -> QuadrantProfile:
    sums = dict.fromkeys(QUADRANT_NAMES, 0.0)
    center = 0.0
    for square, weight in weighted:
        sums[quadrant_of(square)] += weight
        if is_center(square):
            center += weight
    total = sum(sums.values())
    if total <= 0:
        return QuadrantProfile()
    return QuadrantProfile(center=center / total, **{name: share / total for name, share in sums.items()})

def calculate_quadrant_profile(
    ledger: "VisitLedger",
    total_moves: int,
    settings: Optional["ExtractionSettings"] = None,
    window: Optional[Window] = None,
) -> QuadrantProfile:
    """
    Normalized activity per quadrant. `q1..q4` sum to 1, or are all 0 when
    there is no activity.

    With `window` set, only move visits whose index falls inside it count.
    """
    settings = _settings_or_default(settings)
    weighted = (
        (square, visit_weight(visit, total_moves, settings))
        for square, visit in ledger.iter_visits()
        if window is None or window[0] <= visit.move_index <= window[1]
    )
    return _profile_from(weighted)

def activity_series(
    ledger: "VisitLedger", total_moves: int, settings: Optional["ExtractionSettings"] = None
) -> np.ndarray:
    """
    Per-move activity as an array of length `N + 1`.

    Slot 0 is always 0; slot `i` holds the weight of visits made by move `i`.
    """
    settings = _settings_or_default(settings)
    series = np.zeros(max(total_moves, 0) + 1, dtype=float)
    for _, visit in ledger.iter_visits():
        if 1 <= visit.move_index <= total_moves:
            series[visit.move_index] += visit_weight(visit, total_moves, settings)
    return series

def smooth_activity(series: np.ndarray, window: int) -> np.ndarray:
    """
    Trailing mean of a per-move series over `window` moves.

    Slot 0 stays 0. The first moves average over however many moves exist so far.
    """
    series = np.asarray(series, dtype=float)
    if window <= 1 or len(series) <= 1:
        return series.copy()
    moves = series[1:]
    means = [moves[max(0, i - window + 1):i + 1].mean() for i in range(len(moves))]
    return np.concatenate(([0.0], means))

def _classify_trend(levels: np.ndarray, settings: "ExtractionSettings") -> Trend:
    mean = float(levels.mean())
    if mean <= 0:
        return Trend.STABLE
    a, b, c = (levels / mean).tolist()
    tol = settings.trend_tolerance
    if b >= a - tol and c >= b - tol and c - a > tol:
        return Trend.ACCELERATING
    if b <= a + tol and c <= b + tol and a - c > tol:
        return Trend.DECLINING
    if float(np.var(levels / mean)) <= settings.stable_variance:
        return Trend.STABLE
    return Trend.VOLATILE

def calculate_temporal_flow(series: np.ndarray, settings: Optional["ExtractionSettings"] = None) -> TemporalFlow:
    """Phase levels, trend and momentum from a per-move activity series."""
    settings = _settings_or_default(settings)
    total_moves = len(series) - 1
    if total_moves <= 0:
        return TemporalFlow()

    levels = np.array([
        series[start:end + 1].sum() / (end - start + 1)
        for start, end in phase_windows(total_moves)
    ])
    trend = _classify_trend(levels, settings)
    _, midgame, endgame = levels.tolist()
    peak = max(midgame, endgame)
    momentum = (endgame - midgame) / peak if peak > 0 else 0.0
    return TemporalFlow(
        opening=float(levels[0]), midgame=float(midgame), endgame=float(endgame),
        trend=trend, momentum=float(np.clip(momentum, -1.0, 1.0)),
    )

def _describe_moment(moment_type: MomentType, index: int, ratio: float, from_rest: bool) -> str:
    change = "from no activity" if from_rest else f"{ratio:.0%}"
    if moment_type is MomentType.BREAKTHROUGH:
        return f"Breakthrough at move {index}: activity rose {change}"
    if moment_type is MomentType.PIVOT:
        return f"Pivot at move {index}: activity reversed direction ({change})"
    if moment_type is MomentType.SURGE:
        return f"Surge at move {index}: activity rose {change}"
    return f"Drop at move {index}: activity fell {change}"

def detect_critical_moments(
    series: Sequence[float], settings: Optional["ExtractionSettings"] = None
) -> Tuple[CriticalMoment, ...]:
    """
    Scans moves `2..N` once, left to right, for relative activity changes above
    the critical threshold. Returned indices are strictly increasing.
    """
    settings = _settings_or_default(settings)
    moments: List[CriticalMoment] = []
    last_index: Optional[int] = None
    last_rising = False

    for i in range(2, len(series)):
        previous = float(series[i - 1])
        delta = float(series[i]) - previous
        if delta == 0:
            continue
        ratio = abs(delta) / max(previous, settings.epsilon)
        if ratio <= settings.critical_threshold:
            continue

        rising = delta > 0
        if last_index == i - 1 and last_rising != rising:
            moment_type = MomentType.PIVOT
        elif rising and ratio >= settings.breakthrough_ratio:
            moment_type = MomentType.BREAKTHROUGH
        else:
            moment_type = MomentType.SURGE if rising else MomentType.DROP

        moments.append(CriticalMoment(
            index=i, type=moment_type,
            severity=min(1.0, ratio / settings.breakthrough_ratio),
            description=_describe_moment(moment_type, i, ratio, previous <= settings.epsilon),
        ))
        last_index, last_rising = i, rising

    return tuple(moments)

def calculate_intensity(
    ledger: "VisitLedger", total_moves: int, settings: Optional["ExtractionSettings"] = None
) -> float:
    """Total activity weight, setup visits included, scaled into `[0, 1]`."""
    settings = _settings_or_default(settings)
    total = sum(visit_weight(visit, total_moves, settings) for _, visit in ledger.iter_visits())
    return float(np.clip(total / settings.intensity_saturation, 0.0, 1.0))

def side_activity(
    ledger: "VisitLedger", total_moves: int, settings: Optional["ExtractionSettings"] = None
) -> Tuple[float, float]:
    settings = _settings_or_default(settings)
    primary = secondary = 0.0
    for _, visit in ledger.iter_visits():
        weight = visit_weight(visit, total_moves, settings)
        if visit.side is Side.PRIMARY:
            primary += weight
        else:
            secondary += weight
    return primary, secondary

def determine_dominant_force(primary: float, secondary: float, balance_threshold: float = 0.1) -> DominantForce:
    total = primary + secondary
    if total <= 0:
        return DominantForce.BALANCED
    balance = (primary - secondary) / total
    if balance > balance_threshold:
        return DominantForce.PRIMARY
    if balance < -balance_threshold:
        return DominantForce.SECONDARY
    return DominantForce.BALANCED

def determine_flow_direction(
    early: QuadrantProfile, late: QuadrantProfile, threshold: float = 0.25
) -> FlowDirection:
    """
    Compares where activity sat in the opening window against the endgame window.

    Forward means activity moved up the board (towards rank 8), lateral that it
    moved across files. Ties between the two axes go to forward.
    """
    def vertical(p: QuadrantProfile) -> float:
        return (p.q1 + p.q2) - (p.q3 + p.q4)

    def horizontal(p: QuadrantProfile) -> float:
        return (p.q2 + p.q4) - (p.q1 + p.q3)

    forward_shift = vertical(late) - vertical(early)
    lateral_shift = horizontal(late) - horizontal(early)
    if abs(forward_shift) < threshold and abs(lateral_shift) < threshold:
        return FlowDirection.CHAOTIC
    if abs(forward_shift) >= abs(lateral_shift):
        return FlowDirection.FORWARD if forward_shift > 0 else FlowDirection.BACKWARD
    return FlowDirection.LATERAL

def extract_signature(
    ledger: "VisitLedger",
    total_moves: Optional[int],
    registry: "ArchetypeRegistry",
    settings: Optional["ExtractionSettings"] = None,
) -> TemporalSignature:
    """
    Computes every signature component, classifies the draft against the
    registry and fingerprints the result.

    Args:
        ledger: The replayed visit ledger.
        total_moves: The sequence length `N`. Defaults to the highest move
                     index in the ledger.
        registry: The archetype rules used for classification.
        settings: Thresholds and weights. Defaults to `ExtractionSettings()`.

    Returns:
        The signature. A ledger with no activity gives an all-zero signature
        flagged `is_degenerate`, and a `DegenerateSignatureWarning` is emitted.
    """
    settings = _settings_or_default(settings)
    if total_moves is None:
        total_moves = ledger.max_move_index()

    series = activity_series(ledger, total_moves, settings)
    windows = phase_windows(total_moves)
    primary, secondary = side_activity(ledger, total_moves, settings)
    degenerate = primary + secondary <= 0

    draft = TemporalSignature(
        fingerprint="",
        quadrant_profile=calculate_quadrant_profile(ledger, total_moves, settings),
        temporal_flow=calculate_temporal_flow(series, settings),
        archetype=registry.default_label,
        intensity=calculate_intensity(ledger, total_moves, settings),
        critical_moments=detect_critical_moments(smooth_activity(series, settings.activity_window), settings),
        dominant_force=determine_dominant_force(primary, secondary, settings.balance_threshold),
        flow_direction=determine_flow_direction(
            calculate_quadrant_profile(ledger, total_moves, settings, window=windows[0]),
            calculate_quadrant_profile(ledger, total_moves, settings, window=windows[-1]),
            settings.direction_threshold,
        ),
        total_moves=total_moves,
        is_degenerate=degenerate,
    )

    archetype = classify_archetype(draft, registry)
    fingerprint = compute_fingerprint(
        draft.quadrant_profile, draft.temporal_flow, archetype, draft.intensity,
        settings.fingerprint_precision,
    )
    signature = replace(draft, archetype=archetype, fingerprint=fingerprint)

    SIGNATURES_EXTRACTED_TOTAL.labels(archetype=archetype).inc()
    if degenerate:
        DEGENERATE_SIGNATURES_TOTAL.inc()
        logger.warning("Extracted a signature with no activity.", fingerprint=fingerprint, total_moves=total_moves)
        warnings.warn(
            f"Signature {fingerprint} was extracted from a sequence with no activity.",
            DegenerateSignatureWarning, stacklevel=2,
        )
    else:
        logger.debug(
            "Extracted signature.", fingerprint=fingerprint, archetype=archetype,
            trend=signature.temporal_flow.trend.value, moments=len(signature.critical_moments),
        )
    return signature
