# chess_patterns/config/settings.py
"""
Configuration settings for the chess-patterns engine, powered by Pydantic.

This module centralizes all tunable parameters, default values, and configuration
schemas. Using Pydantic allows for type-safe, self-documenting configuration
that can be loaded from environment variables, providing a clear separation of
configuration from code.
"""
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chess_patterns.types import PIECE_KINDS

# --- Nested Models for Configuration Schemas ---

# Pawn units in PIECE_KINDS order; the king weighs 2.
_PIECE_VALUES = (1.0, 3.0, 3.0, 5.0, 9.0, 2.0)

def _default_piece_weights() -> Dict[str, float]:
    return dict(zip(PIECE_KINDS, _PIECE_VALUES))

class ExtractionSettings(BaseModel):
    """
    Thresholds and constants used when turning a visit ledger into a signature.

    A visit weighs the value of the arriving piece, plus the value of whatever it
    captured and a flat bonus for castling, en passant and promotion. The recency
    bias is off by default. Setting every piece weight to 1 and both bonuses to 0
    reduces activity to a plain visit count.
    """
    model_config = ConfigDict(frozen=True)

    critical_threshold: float = Field(0.5, gt=0, description="Relative activity change (theta) above which a move is a critical moment.")
    breakthrough_ratio: float = Field(2.0, gt=0, description="Relative rise at or above which a surge is reported as a breakthrough. Also the severity scale.")
    epsilon: float = Field(1e-9, gt=0, description="Floor for the previous activity level when computing relative change.")
    trend_tolerance: float = Field(0.1, ge=0, description="Tolerance on mean-normalised phase levels when judging monotonic trends.")
    stable_variance: float = Field(0.01, ge=0, description="Maximum population variance of the normalised phase levels for a 'stable' trend.")
    balance_threshold: float = Field(0.1, ge=0, lt=1, description="Share imbalance below which neither side is considered dominant.")
    direction_threshold: float = Field(0.25, ge=0, description="Minimum shift in quadrant balance for a directional flow.")
    intensity_saturation: float = Field(600.0, gt=0, description="Total activity weight that maps to an intensity of 1.0.")
    recency_weight: float = Field(0.0, ge=0, description="Extra weight given to later moves: weight * (1 + recency * index / total).")
    capture_weight: float = Field(1.0, ge=0, description="Multiplier on the captured piece's weight added to a capturing visit.")
    special_move_bonus: float = Field(1.0, ge=0, description="Flat weight added for castling, en passant and promotion.")
    activity_window: int = Field(2, ge=1, description="Trailing window, in moves, the activity series is averaged over before critical moments are detected.")
    piece_weights: Dict[str, float] = Field(default_factory=_default_piece_weights, description="Activity weight per piece kind symbol.")
    fingerprint_precision: int = Field(3, ge=0, le=8, description="Decimal places floats are quantised to before fingerprinting.")

    @field_validator('piece_weights')
    @classmethod
    def validate_piece_weights(cls, value: Dict[str, float]) -> Dict[str, float]:
        """Ensures every kind is known, every weight is non-negative and missing kinds keep their default."""
        unknown = set(value) - set(PIECE_KINDS)
        if unknown:
            raise ValueError(f"Configuration error: unknown piece kinds {sorted(unknown)}.")
        if any(weight < 0 for weight in value.values()):
            raise ValueError("Configuration error: piece weights must be non-negative.")
        return {**_default_piece_weights(), **value}

class MatchWeights(BaseModel):
    """Relative weight of each similarity dimension. Normalised at scoring time."""
    model_config = ConfigDict(frozen=True)

    archetype: float = Field(0.25, ge=0)
    quadrant: float = Field(0.25, ge=0)
    temporal: float = Field(0.25, ge=0)
    intensity: float = Field(0.15, ge=0)
    flow: float = Field(0.10, ge=0)

    @model_validator(mode='after')
    def validate_not_all_zero(self) -> 'MatchWeights':
        """Ensures at least one dimension carries weight."""
        if self.total <= 0:
            raise ValueError("Configuration error: at least one match weight must be positive.")
        return self

    @property
    def total(self) -> float:
        return self.archetype + self.quadrant + self.temporal + self.intensity + self.flow

class MatchingSettings(BaseModel):
    """Controls corpus search."""
    model_config = ConfigDict(frozen=True)

    min_similarity: float = Field(0.6, ge=0, le=1, description="Candidates scoring below this are discarded.")
    limit: int = Field(10, ge=0, description="Maximum number of matches returned.")
    weights: MatchWeights = Field(default_factory=MatchWeights)

class PredictionSettings(BaseModel):
    """Controls trajectory prediction and sustainability assessment."""
    model_config = ConfigDict(frozen=True)

    match_confidence_weight: float = Field(0.6, ge=0, le=1)
    archetype_confidence_weight: float = Field(0.4, ge=0, le=1)
    max_lookahead: int = Field(80, ge=0, description="Upper bound on the lookahead horizon in moves.")
    min_sample_size: int = Field(5, ge=1, description="Number of matches needed for full sample confidence.")
    low_divergence: float = Field(0.15, ge=0, description="Divergence at or below which a stable trajectory is sustainable with low risk.")
    high_divergence: float = Field(0.35, ge=0, description="Divergence at or above which a trajectory is unsustainable.")
    default_expected_length: int = Field(80, ge=1, description="Assumed total length when the caller gives none.")

    @model_validator(mode='after')
    def validate_divergence_thresholds(self) -> 'PredictionSettings':
        """Ensures the low divergence threshold does not exceed the high one."""
        if self.low_divergence > self.high_divergence:
            raise ValueError("Configuration error: low_divergence must not exceed high_divergence.")
        return self

class PaletteSettings(BaseModel):
    """Visit colors per side and piece kind. Warm tones for the primary side, cool for the secondary."""
    model_config = ConfigDict(frozen=True)

    primary: Dict[str, str] = Field(default_factory=lambda: {
        "k": "#B91C1C", "q": "#DC2626", "r": "#EA580C",
        "b": "#F59E0B", "n": "#FACC15", "p": "#FDE68A",
    })
    secondary: Dict[str, str] = Field(default_factory=lambda: {
        "k": "#1E3A8A", "q": "#1D4ED8", "r": "#0E7490",
        "b": "#7C3AED", "n": "#0D9488", "p": "#93C5FD",
    })
    fallback: str = Field("#9CA3AF", description="Color used for piece kinds missing from the maps.")

class EngineSettings(BaseModel):
    """Groups all settings used by the pattern engine."""
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    prediction: PredictionSettings = Field(default_factory=PredictionSettings)
    palette: PaletteSettings = Field(default_factory=PaletteSettings)

# --- Main Application Settings Class ---

class Settings(BaseSettings):
    """
    Main configuration class for the application.

    It loads settings from environment variables with the prefix 'CHESS_PATTERNS_'.
    Nested models can be configured using a double underscore delimiter, e.g.,
    `CHESS_PATTERNS_ENGINE__MATCHING__MIN_SIMILARITY=0.7`.
    """
    model_config = SettingsConfigDict(env_prefix='CHESS_PATTERNS_', env_nested_delimiter='__')

    engine: EngineSettings = Field(default_factory=EngineSettings)
    default_corpus_path: str = "data/corpus.json"
    default_log_level: str = "INFO"
    default_log_file: str = "logs/chess_patterns.log"

# A singleton instance of the settings, accessible throughout the application.
settings = Settings()
