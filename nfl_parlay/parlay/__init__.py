"""NFL Parlay System - Combination enumeration, correlation penalties, and odds matching."""

from .correlation import calculate_parlay_penalties, violates_same_team_stack
from .custom_legs import evaluate_custom_parlay
from .generator import generate_parlays, get_top_parlays, is_valid_parlay
from .odds_import import match_odds_to_legs, parse_odds_csv

__all__ = [
    "calculate_parlay_penalties",
    "violates_same_team_stack",
    "evaluate_custom_parlay",
    "generate_parlays",
    "get_top_parlays",
    "is_valid_parlay",
    "match_odds_to_legs",
    "parse_odds_csv",
]
