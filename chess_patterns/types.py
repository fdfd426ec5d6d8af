# chess_patterns/types.py
"""
A central module for shared data structures and service interfaces (Protocols).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (Any, Callable, Dict, List, Mapping, Optional, Protocol,
                    Tuple, TYPE_CHECKING, TypeAlias, runtime_checkable)

if TYPE_CHECKING:
    from chess_patterns.config.settings import MatchWeights
    from chess_patterns.core.visit_ledger import VisitLedger

FEN: TypeAlias = str
Square: TypeAlias = int
PieceKind: TypeAlias = str
Outcome: TypeAlias = str

PIECE_KINDS: Tuple[PieceKind, ...] = ("p", "n", "b", "r", "q", "k")

class Side(str, Enum):
    PRIMARY = "primary"; SECONDARY = "secondary"

class SpecialKind(str, Enum):
    NONE = "none"; CASTLE = "castle"; EN_PASSANT = "en_passant"; PROMOTION = "promotion"

class Trend(str, Enum):
    STABLE = "stable"; ACCELERATING = "accelerating"
    DECLINING = "declining"; VOLATILE = "volatile"

class MomentType(str, Enum):
    SURGE = "surge"; DROP = "drop"; PIVOT = "pivot"; BREAKTHROUGH = "breakthrough"

class DominantForce(str, Enum):
    PRIMARY = "primary"; SECONDARY = "secondary"; BALANCED = "balanced"

class FlowDirection(str, Enum):
    FORWARD = "forward"; LATERAL = "lateral"; BACKWARD = "backward"; CHAOTIC = "chaotic"

class RiskLevel(str, Enum):
    LOW = "low"; MEDIUM = "medium"; HIGH = "high"

# Outcome labels used by the chess domain.
PRIMARY_WINS: Outcome = "primary_wins"
SECONDARY_WINS: Outcome = "secondary_wins"
DRAW: Outcome = "draw"

# --- SEQUENCE CONTRACTS ---

@dataclass(frozen=True, slots=True)
class GameMetadata:
    white_player: str = "Unknown Player"; black_player: str = "Unknown Player"
    result: str = "*"; event: str = "Unknown Event"; site: str = "Unknown Site"
    date: str = "????.??.??"; opening: Optional[str] = None; eco: Optional[str] = None

@dataclass(frozen=True, slots=True)
class MoveRecord:
    """A single replayed move. `index` is 1-based and is the only temporal axis."""
    index: int
    from_square: Square
    to_square: Square
    piece_kind: PieceKind
    side: Side
    capture: bool
    special_kind: SpecialKind
    san: str
    uci: str
    captured_kind: Optional[PieceKind] = None
    promotion_kind: Optional[PieceKind] = None
    fen_after: FEN = ""
    # Extra squares touched by castling (rook) or en passant (captured pawn).
    extra_squares: Tuple[Square, ...] = ()

    @property
    def affected_squares(self) -> Tuple[Square, ...]:
        return (self.from_square, self.to_square) + self.extra_squares

@dataclass(frozen=True, slots=True)
class InitialOccupant:
    square: Square; piece_kind: PieceKind; side: Side

@dataclass(frozen=True)
class MoveSequence:
    records: Tuple[MoveRecord, ...]
    initial_fen: FEN
    final_fen: FEN
    initial_occupants: Tuple[InitialOccupant, ...]
    metadata: GameMetadata = field(default_factory=GameMetadata)
    outcome: Optional[Outcome] = None

    def __len__(self) -> int:
        return len(self.records)

    def prefix(self, move_count: int) -> "MoveSequence":
        """Returns the sequence truncated to its first `move_count` moves."""
        move_count = max(0, min(move_count, len(self.records)))
        if move_count == len(self.records):
            return self
        final_fen = self.records[move_count - 1].fen_after if move_count else self.initial_fen
        return MoveSequence(
            records=self.records[:move_count],
            initial_fen=self.initial_fen,
            final_fen=final_fen,
            initial_occupants=self.initial_occupants,
            metadata=self.metadata,
            outcome=None,
        )

# --- LEDGER CONTRACTS ---

@dataclass(frozen=True, slots=True)
class Visit:
    """One arrival on a square. Setup visits carry no capture and no special kind."""
    piece_kind: PieceKind; side: Side; move_index: int; color: str
    captured_kind: Optional[PieceKind] = None
    special_kind: SpecialKind = SpecialKind.NONE

# --- SIGNATURE CONTRACTS ---

@dataclass(frozen=True, slots=True)
class QuadrantProfile:
    """
    Normalized activity across the four board quadrants.

    q1: files a-d, ranks 5-8    q2: files e-h, ranks 5-8
    q3: files a-d, ranks 1-4    q4: files e-h, ranks 1-4

    `center` is the share of activity on d4, e4, d5 and e5. It overlaps the
    quadrants and is not part of their sum.
    """
    q1: float = 0.0; q2: float = 0.0; q3: float = 0.0; q4: float = 0.0
    center: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.q1, self.q2, self.q3, self.q4)

    @property
    def total(self) -> float:
        return self.q1 + self.q2 + self.q3 + self.q4

@dataclass(frozen=True, slots=True)
class TemporalFlow:
    opening: float = 0.0; midgame: float = 0.0; endgame: float = 0.0
    trend: Trend = Trend.STABLE; momentum: float = 0.0

    def levels(self) -> Tuple[float, float, float]:
        return (self.opening, self.midgame, self.endgame)

@dataclass(frozen=True, slots=True)
class CriticalMoment:
    index: int; type: MomentType; severity: float; description: str

@dataclass(frozen=True)
class TemporalSignature:
    fingerprint: str
    quadrant_profile: QuadrantProfile
    temporal_flow: TemporalFlow
    archetype: str
    intensity: float
    critical_moments: Tuple[CriticalMoment, ...]
    dominant_force: DominantForce
    flow_direction: FlowDirection
    total_moves: int = 0
    is_degenerate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dictionary for the persistence layer."""
        qp, tf = self.quadrant_profile, self.temporal_flow
        return {
            "fingerprint": self.fingerprint,
            "quadrant_profile": {"q1": qp.q1, "q2": qp.q2, "q3": qp.q3, "q4": qp.q4, "center": qp.center},
            "temporal_flow": {
                "opening": tf.opening, "midgame": tf.midgame, "endgame": tf.endgame,
                "trend": tf.trend.value, "momentum": tf.momentum,
            },
            "archetype": self.archetype,
            "intensity": self.intensity,
            "critical_moments": [
                {"index": m.index, "type": m.type.value, "severity": m.severity, "description": m.description}
                for m in self.critical_moments
            ],
            "dominant_force": self.dominant_force.value,
            "flow_direction": self.flow_direction.value,
            "total_moves": self.total_moves,
            "is_degenerate": self.is_degenerate,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TemporalSignature":
        """Create from a dictionary produced by `to_dict`."""
        tf = data["temporal_flow"]
        return cls(
            fingerprint=data["fingerprint"],
            quadrant_profile=QuadrantProfile(**data["quadrant_profile"]),
            temporal_flow=TemporalFlow(
                opening=tf["opening"], midgame=tf["midgame"], endgame=tf["endgame"],
                trend=Trend(tf["trend"]), momentum=tf["momentum"],
            ),
            archetype=data["archetype"],
            intensity=data["intensity"],
            critical_moments=tuple(
                CriticalMoment(index=m["index"], type=MomentType(m["type"]),
                               severity=m["severity"], description=m["description"])
                for m in data.get("critical_moments", [])
            ),
            dominant_force=DominantForce(data["dominant_force"]),
            flow_direction=FlowDirection(data["flow_direction"]),
            total_moves=data.get("total_moves", 0),
            is_degenerate=data.get("is_degenerate", False),
        )

# --- ARCHETYPE CONTRACTS ---

SignaturePredicate: TypeAlias = Callable[[TemporalSignature], bool]

@dataclass(frozen=True, slots=True)
class ArchetypeRule:
    label: str; predicate: SignaturePredicate; description: str = ""

@dataclass(frozen=True, slots=True)
class ArchetypeDefinition:
    label: str; name: str; description: str
    historical_win_rate: float = 0.5
    predicted_outcome: Optional[Outcome] = None
    confidence: float = 0.5
    lookahead_moves: int = 5
    recommendation: str = ""

@dataclass(frozen=True)
class ArchetypeRegistry:
    """An ordered, domain-scoped set of classification rules. The first match wins."""
    domain: str
    version: str
    rules: Tuple[ArchetypeRule, ...]
    default_label: str
    definitions: Mapping[str, ArchetypeDefinition] = field(default_factory=dict)

    def definition_for(self, label: str) -> Optional[ArchetypeDefinition]:
        return self.definitions.get(label)

    @property
    def labels(self) -> List[str]:
        return [rule.label for rule in self.rules] + [self.default_label]

# --- MATCHING & PREDICTION CONTRACTS ---

@dataclass(frozen=True)
class CorpusEntry:
    pattern_id: str
    signature: TemporalSignature
    outcome: Outcome
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern_id": self.pattern_id, "outcome": self.outcome,
            "metadata": dict(self.metadata), "signature": self.signature.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CorpusEntry":
        return cls(
            pattern_id=data["pattern_id"], outcome=data["outcome"],
            metadata=dict(data.get("metadata", {})),
            signature=TemporalSignature.from_dict(data["signature"]),
        )

@dataclass(frozen=True)
class PatternMatch:
    pattern_id: str
    signature: TemporalSignature
    outcome: Outcome
    similarity: float
    metadata: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True, slots=True)
class Sustainability:
    sustainable: bool; reason: str; risk_level: RiskLevel

@dataclass(frozen=True, slots=True)
class Milestone:
    predicted_index: int; event: str; probability: float; impact: float
    recommendation: str

@dataclass(frozen=True)
class TrajectoryPrediction:
    outcome_probabilities: Dict[Outcome, float]
    divergence: Optional[float]
    sustainability: Sustainability
    prediction_available: bool
    predicted_outcome: Optional[Outcome] = None
    confidence: float = 0.0
    milestones: Tuple[Milestone, ...] = ()
    lookahead_horizon: int = 0
    sample_size: int = 0
    guidance: str = ""

@dataclass(frozen=True)
class AnalysisReport:
    sequence: Any
    ledger: Optional["VisitLedger"]
    signature: TemporalSignature
    matches: List[PatternMatch]
    prediction: TrajectoryPrediction

@dataclass
class AnalysisContext:
    """The mutable state handed from one pipeline stage to the next."""
    raw_record: Any
    corpus: List[CorpusEntry]
    current_position: Optional[int] = None
    total_expected_length: Optional[int] = None
    sequence: Any = None
    ledger: Optional["VisitLedger"] = None
    signature: Optional[TemporalSignature] = None
    matches: List[PatternMatch] = field(default_factory=list)
    prediction: Optional[TrajectoryPrediction] = None


# --- PROTOCOLS: Abstract Interfaces ---
# These define the "contracts" that concrete implementations must adhere to.
# They enable dependency inversion and allow for easy fakes in tests.

@runtime_checkable
class DomainAdapter(Protocol):
    """
    The boundary between a sequential domain and the domain-agnostic matcher
    and predictor. Anything that can turn raw input into a state sequence and
    extract, classify and compare signatures for its domain satisfies it.
    """
    domain: str

    @property
    def archetype_registry(self) -> ArchetypeRegistry: ...
    def parse_input(self, raw_record: Any) -> Any: ...
    def sequence_length(self, sequence: Any) -> int: ...
    def truncate(self, sequence: Any, position: int) -> Any: ...
    def extract_signature(self, sequence: Any) -> TemporalSignature: ...
    def classify_archetype(self, signature: TemporalSignature) -> str: ...
    def calculate_similarity(
        self, a: TemporalSignature, b: TemporalSignature, weights: Optional["MatchWeights"] = None
    ) -> float: ...

class ProcessingStage(Protocol):
    """Protocol for a single, named stage in the analysis pipeline."""
    def execute(self, context: AnalysisContext) -> AnalysisContext: ...

@runtime_checkable
class LedgerAdapter(Protocol):
    """An adapter that also exposes the intermediate visit ledger of its domain."""
    def build_ledger(self, sequence: Any) -> "VisitLedger": ...
    def extract_from_ledger(self, ledger: "VisitLedger", total_moves: int) -> TemporalSignature: ...
