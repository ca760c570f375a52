"""
Parlay Generation Configuration
===============================

Centralized configuration for parlay enumeration and correlation penalties.
Penalties are multiplicative discounts on the naive joint probability.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParlayConfig:
    """Configuration for parlay combination and correlation penalties."""

    # Leg limits
    min_legs: int = 2
    max_legs: int = 8
    default_leg_count: int = 3

    # Leg filter
    min_leg_prob: float = 0.80

    # Output
    default_top_n: int = 20

    # Correlation penalties (multiplier per extra leg, or flat for stacks)
    same_game_factor: float = 0.90
    same_team_factor: float = 0.95
    qb_receiver_stack_factor: float = 0.85

    # Enumeration is C(pool, leg_count); warn past this many subsets
    combination_warning_threshold: int = 1_000_000


# Default configuration instance
PARLAY_CONFIG = ParlayConfig()
