# chess_patterns/core/fingerprint.py
"""
Deterministic fingerprints for temporal signatures.

A fingerprint is a CRC-32 over a canonical, quantised text rendering of the
signature's quadrant profile, temporal flow, archetype and intensity. Values
that agree after rounding to `precision` decimals share a fingerprint, so
floating-point noise below the quantisation step never changes it.
"""
import zlib
from typing import Final

from chess_patterns.types import QuadrantProfile, TemporalFlow

FINGERPRINT_PREFIX: Final[str] = "EP-"


def quantize(value: float, precision: int) -> str:
    """Renders a float with a fixed number of decimals. Negative zero renders as zero."""
    rounded = round(value, precision)
    if rounded == 0:
        rounded = 0.0
    return f"{rounded:.{precision}f}"


def canonical_encoding(
    profile: QuadrantProfile, flow: TemporalFlow, archetype: str, intensity: float, precision: int
) -> str:
    """
    The canonical text a fingerprint is computed over.

    Field order is fixed; `center`, critical moments and the derived force and
    direction labels are not part of it.
    """
    fields = (
        ("q1", quantize(profile.q1, precision)),
        ("q2", quantize(profile.q2, precision)),
        ("q3", quantize(profile.q3, precision)),
        ("q4", quantize(profile.q4, precision)),
        ("opening", quantize(flow.opening, precision)),
        ("midgame", quantize(flow.midgame, precision)),
        ("endgame", quantize(flow.endgame, precision)),
        ("trend", flow.trend.value),
        ("momentum", quantize(flow.momentum, precision)),
        ("archetype", archetype),
        ("intensity", quantize(intensity, precision)),
    )
    return "|".join(f"{name}={value}" for name, value in fields)


def compute_fingerprint(
    profile: QuadrantProfile, flow: TemporalFlow, archetype: str, intensity: float, precision: int = 3
) -> str:
    """Returns the `EP-XXXXXXXX` fingerprint (upper-case hex CRC-32 of the canonical encoding)."""
    encoded = canonical_encoding(profile, flow, archetype, intensity, precision).encode("utf-8")
    return f"{FINGERPRINT_PREFIX}{zlib.crc32(encoded) & 0xFFFFFFFF:08X}"
