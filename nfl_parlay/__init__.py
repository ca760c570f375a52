"""NFL Parlay Toolkit.

Player prop legs from recent game logs (Beta-Binomial smoothed hit rates),
activity filtering, and correlation-adjusted parlay generation.
"""

__version__ = "0.1.0"
__author__ = "NFL Parlay Team"

from nfl_parlay.models.leg_probability import generate_legs
from nfl_parlay.parlay.generator import generate_parlays, get_top_parlays

__all__ = ["generate_legs", "generate_parlays", "get_top_parlays"]
