"""Pydantic schemas for strict data contracts across the leg and parlay engines."""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from configs.parlay_config import PARLAY_CONFIG


class StatType(str, Enum):
    """Tracked player statistics, in leg-generation priority order."""

    PASS_YARDS = "pass_yards"
    RUSH_YARDS = "rush_yards"
    REC_YARDS = "rec_yards"
    RECEPTIONS = "receptions"
    PASS_TDS = "pass_tds"


class ConfidenceLevel(str, Enum):
    """Confidence band derived from smoothed probability."""

    SPECULATIVE = "Speculative"
    FAIR = "Fair"
    STRONG = "Strong"
    ELITE = "Elite"


class GameLog(BaseModel):
    """One player-game observation in canonical shape.

    Tracked stats are Optional only before normalization; the normalizer
    fills absent values with 0. ``extras`` is a diagnostic passthrough for
    unrecognised source fields and is never read by the engines.
    """

    player_id: str = ""
    player_name: Optional[str] = None
    game_date: str = ""
    game_id: Optional[str] = None
    week: Optional[int] = None
    season: Optional[int] = None
    team: Optional[str] = None
    opponent: Optional[str] = None
    position: Optional[str] = None
    snaps: Optional[float] = None

    # Tracked stats
    pass_yards: Optional[float] = None
    rush_yards: Optional[float] = None
    rec_yards: Optional[float] = None
    receptions: Optional[float] = None
    pass_tds: Optional[float] = None

    # Usage inputs for the touches proxy
    targets: Optional[float] = None
    rush_attempts: Optional[float] = None

    extras: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def stat_value(self, stat_type: StatType) -> Optional[float]:
        """Value of a tracked stat for this game."""
        return getattr(self, StatType(stat_type).value)


class Leg(BaseModel):
    """A candidate proposition: player stat at or above a threshold.

    ``smoothed_prob`` drives every decision; ``raw_prob`` is display only.
    """

    player_id: str
    player_name: Optional[str] = None
    stat_type: StatType
    threshold: float
    raw_prob: float
    smoothed_prob: float
    confidence: ConfidenceLevel
    sample_size: int
    last_n_game_values: Tuple[float, ...] = ()
    consistency: Optional[float] = None  # Std dev of values (lower = steadier)
    reason: Optional[str] = None

    # Context from the most recent game used
    game_id: Optional[str] = None
    game_date: Optional[str] = None
    team: Optional[str] = None
    opponent: Optional[str] = None
    position: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class PenaltyBreakdown(BaseModel):
    """One structural-dependence adjustment applied to a parlay."""

    type: str
    amount: float  # Fractional reduction (0.15 = 15%)
    reason: str

    model_config = ConfigDict(frozen=True)


class Parlay(BaseModel):
    """A fixed-size set of legs with naive and correlation-adjusted probability."""

    legs: Tuple[Leg, ...]
    naive_probability: float
    penalties: Tuple[PenaltyBreakdown, ...] = ()
    adjusted_probability: float

    model_config = ConfigDict(frozen=True)

    @property
    def average_leg_probability(self) -> float:
        if not self.legs:
            return 0.0
        return sum(leg.smoothed_prob for leg in self.legs) / len(self.legs)


class PlayerStatus(BaseModel):
    """Eligibility snapshot for a player in a given week."""

    player_id: str
    team: Optional[str] = None
    is_active: bool
    is_on_bye: bool
    has_recent_snaps: bool
    current_week: Optional[int] = None

    model_config = ConfigDict(frozen=True)


class ParlayOptions(BaseModel):
    """Options for parlay enumeration.

    ``leg_count`` values of 1 or above the maximum are clamped into
    [min_legs, max_legs]; zero or negative counts are rejected.
    """

    leg_count: int = PARLAY_CONFIG.default_leg_count
    min_leg_prob: float = PARLAY_CONFIG.min_leg_prob
    single_game: bool = False
    game_id: Optional[str] = None
    allow_same_game: bool = False
    allow_same_team_stack: bool = False  # Reject QB/WR same-team pairs when False

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def force_same_game_for_single_game(cls, data: Any) -> Any:
        """Single-game mode always allows same-game legs."""
        if isinstance(data, dict) and data.get("single_game"):
            data = {**data, "allow_same_game": True}
        return data

    @field_validator("leg_count")
    @classmethod
    def clamp_leg_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"leg_count must be a positive integer, got {v}")
        return max(PARLAY_CONFIG.min_legs, min(PARLAY_CONFIG.max_legs, v))

    @field_validator("min_leg_prob")
    @classmethod
    def validate_min_leg_prob(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"min_leg_prob must be within [0, 1], got {v}")
        return v


class CustomLegInput(BaseModel):
    """User-supplied leg for pricing an arbitrary parlay."""

    player_id: str
    game_id: Optional[str] = None
    team: Optional[str] = None
    market: str
    threshold: float
    probability: float

    @field_validator("probability")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"probability must be within [0, 1], got {v}")
        return v


class ImportedOdd(BaseModel):
    """One externally quoted line with implied and de-vigged probabilities."""

    player_name: str
    stat_type: str
    line: float
    over_odds: Optional[float] = None
    under_odds: Optional[float] = None
    book: str = "Unknown"
    over_implied_prob: Optional[float] = None
    under_implied_prob: Optional[float] = None
    fair_implied_prob: Optional[float] = None


class MatchedLeg(BaseModel):
    """An imported odd matched to a model leg."""

    imported_odd: ImportedOdd
    leg: Leg
    edge: float  # smoothed_prob - fair_implied_prob
    line_diff: float
