"""
Correlation Penalty Engine
==========================

Discounts the naive joint probability of a parlay (product of smoothed leg
probabilities) for structural dependence between legs.

Penalties are multipliers on a running factor that starts at 1.0:
- Same game:  0.90 ** (count - 1) per game key shared by 2+ legs
- Same team:  0.95 ** (count - 1) per team shared by 2+ legs
- QB/WR stack: flat 0.85 per team holding a QB pass-yards leg AND a
  WR/TE rec-yards leg

Multiplication commutes, so the order rules are applied in does not change the
adjusted probability.

The stacking predicate used to REJECT combinations (``violates_same_team_stack``)
is a separate knob from the stack PENALTY: when stacking is allowed the pair
survives enumeration but is still discounted here.
"""

from collections import OrderedDict
from typing import Dict, List, Sequence, Tuple

import numpy as np

from configs.parlay_config import PARLAY_CONFIG, ParlayConfig
from nfl_parlay.constants import (
    PASSING_POSITIONS,
    PENALTY_QB_WR_STACK,
    PENALTY_SAME_GAME,
    PENALTY_SAME_TEAM,
    RECEIVING_ROLE_POSITIONS,
    UNKNOWN_GAME_KEY,
)
from nfl_parlay.schemas import Leg, PenaltyBreakdown, StatType


def game_key(leg: Leg) -> str:
    """Game identifier, falling back to game date, then 'unknown'."""
    return leg.game_id or leg.game_date or UNKNOWN_GAME_KEY


def is_qb_passing_yards(leg: Leg) -> bool:
    return leg.stat_type == StatType.PASS_YARDS and (leg.position or "").upper() in PASSING_POSITIONS


def is_receiver_receiving_yards(leg: Leg) -> bool:
    return leg.stat_type == StatType.REC_YARDS and (leg.position or "").upper() in RECEIVING_ROLE_POSITIONS


def violates_same_team_stack(leg1: Leg, leg2: Leg, allow_same_team_stack: bool) -> bool:
    """True when a same-team QB pass-yards / WR-TE rec-yards pair is disallowed."""
    if allow_same_team_stack:
        return False
    if not leg1.team or not leg2.team or leg1.team != leg2.team:
        return False
    return (
        (is_qb_passing_yards(leg1) and is_receiver_receiving_yards(leg2))
        or (is_qb_passing_yards(leg2) and is_receiver_receiving_yards(leg1))
    )


def naive_joint_probability(legs: Sequence[Leg]) -> float:
    """Product of smoothed leg probabilities (independence assumption)."""
    return float(np.prod([leg.smoothed_prob for leg in legs]))


def _count_by(keys: Sequence[str]) -> Dict[str, int]:
    counts: Dict[str, int] = OrderedDict()
    for key in keys:
        counts[key] = counts.get(key, 0) + 1
    return counts


def calculate_parlay_penalties(
    legs: Sequence[Leg],
    config: ParlayConfig = PARLAY_CONFIG,
) -> Tuple[float, List[PenaltyBreakdown]]:
    """Correlation-adjusted joint probability and the penalties applied.

    Args:
        legs: Parlay legs
        config: Penalty factors

    Returns:
        (adjusted_probability, penalties); penalties is empty when no
        structural dependence is detected.
    """
    base_probability = naive_joint_probability(legs)
    penalties: List[PenaltyBreakdown] = []
    multiplier = 1.0

    # Same game
    for key, count in _count_by([game_key(leg) for leg in legs]).items():
        if count > 1:
            factor = config.same_game_factor ** (count - 1)
            multiplier *= factor
            amount = round(1 - factor, 6)
            penalties.append(PenaltyBreakdown(
                type=PENALTY_SAME_GAME,
                amount=amount,
                reason=f"{count} legs from same game ({key}) - {amount * 100:.1f}% penalty",
            ))

    # Same team
    team_legs: Dict[str, List[Leg]] = OrderedDict()
    for leg in legs:
        if leg.team:
            team_legs.setdefault(leg.team, []).append(leg)

    for team, members in team_legs.items():
        count = len(members)
        if count > 1:
            factor = config.same_team_factor ** (count - 1)
            multiplier *= factor
            amount = round(1 - factor, 6)
            penalties.append(PenaltyBreakdown(
                type=PENALTY_SAME_TEAM,
                amount=amount,
                reason=f"{count} legs from {team} - {amount * 100:.1f}% penalty",
            ))

    # QB pass yards + WR/TE rec yards, once per team
    for team, members in team_legs.items():
        if any(is_qb_passing_yards(leg) for leg in members) and any(
            is_receiver_receiving_yards(leg) for leg in members
        ):
            factor = config.qb_receiver_stack_factor
            multiplier *= factor
            amount = round(1 - factor, 6)
            penalties.append(PenaltyBreakdown(
                type=PENALTY_QB_WR_STACK,
                amount=amount,
                reason=f"QB pass yards + WR/TE rec yards from {team} - {amount * 100:.0f}% penalty",
            ))

    adjusted_probability = max(base_probability * multiplier, 0.0)
    return adjusted_probability, penalties
