"""
NFL Parlay Models
"""

from .leg_probability import (
    beta_binomial_smooth,
    calculate_average_touches,
    calculate_probability,
    filter_logs_by_position,
    generate_legs,
    generate_legs_for_players,
    get_confidence_level,
    select_near_misses,
)

__all__ = [
    'beta_binomial_smooth',
    'calculate_average_touches',
    'calculate_probability',
    'filter_logs_by_position',
    'generate_legs',
    'generate_legs_for_players',
    'get_confidence_level',
    'select_near_misses',
]
