"""
Leg Generation Configuration
============================

Tuning parameters for the probability engine. Thresholds are alt-line style
(safer, lower lines first) and the Beta-Binomial prior pulls small samples
toward a/(a+b) = 0.667.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class LegConfig:
    """Configuration for per-player leg generation."""

    # Filters
    min_probability: float = 0.80  # Smoothed probability floor
    min_sample_size: int = 6
    bulk_min_sample_size: int = 4  # Used when scanning a whole slate
    min_touches_per_game: float = 5.0
    min_stat_values: int = 4  # Stat skipped with fewer numeric values
    near_miss_limit: int = 20  # Best legs just under the floor to report

    # Beta-Binomial shrinkage: (k + a) / (n + a + b)
    beta_a: float = 4.0
    beta_b: float = 2.0

    # RB touches estimate when rush attempts are missing
    yards_per_carry_estimate: float = 4.5

    # Confidence bands on smoothed probability (lower edge inclusive)
    elite_floor: float = 0.85
    strong_floor: float = 0.75
    fair_floor: float = 0.65

    thresholds: Dict[str, Tuple[float, ...]] = field(default_factory=lambda: {
        'pass_yards': (150, 175, 200, 225),
        'rush_yards': (25, 40, 50, 60),
        'rec_yards': (25, 40, 50, 60),
        'receptions': (2, 3, 4, 5),
        'pass_tds': (1,),
    })

    @property
    def prior_mean(self) -> float:
        return self.beta_a / (self.beta_a + self.beta_b)


# Default configuration instance
LEG_CONFIG = LegConfig()
