"""Parlay combination engine - enumerate, validate and rank fixed-size leg sets.

Enumeration is C(pool, leg_count): exponential in the leg-pool size. Callers
are expected to keep the pool small (``min_leg_prob``, single-game mode) before
calling; a warning is logged when the subset count gets large.
"""

import itertools
import logging
import math
from typing import Iterator, List, Optional, Sequence, Tuple

from configs.parlay_config import PARLAY_CONFIG, ParlayConfig
from nfl_parlay.parlay.correlation import (
    calculate_parlay_penalties,
    game_key,
    naive_joint_probability,
    violates_same_team_stack,
)
from nfl_parlay.schemas import Leg, Parlay, ParlayOptions

logger = logging.getLogger(__name__)


def iter_leg_combinations(legs: Sequence[Leg], size: int) -> Iterator[Tuple[Leg, ...]]:
    """Lazily yield every size-``size`` subset of ``legs`` (order irrelevant)."""
    return itertools.combinations(legs, size)


def is_valid_parlay(
    legs: Sequence[Leg],
    leg_count: int,
    allow_same_game: bool,
    allow_same_team_stack: bool,
) -> bool:
    """Structural constraints for a candidate subset.

    - exactly ``leg_count`` legs
    - distinct player ids
    - one leg per game key unless same-game legs are allowed
    - no QB pass-yards / WR-TE rec-yards same-team pair unless stacking is allowed
    """
    if len(legs) != leg_count:
        return False

    player_ids = [leg.player_id for leg in legs]
    if len(set(player_ids)) != len(player_ids):
        return False

    if not allow_same_game:
        game_keys = [game_key(leg) for leg in legs]
        if len(set(game_keys)) != len(game_keys):
            return False

    if not allow_same_team_stack:
        for leg1, leg2 in itertools.combinations(legs, 2):
            if violates_same_team_stack(leg1, leg2, allow_same_team_stack):
                return False

    return True


def build_parlay(legs: Sequence[Leg], config: ParlayConfig = PARLAY_CONFIG) -> Parlay:
    """Score a leg set with the correlation penalty engine."""
    adjusted_probability, penalties = calculate_parlay_penalties(legs, config)
    return Parlay(
        legs=tuple(legs),
        naive_probability=naive_joint_probability(legs),
        penalties=tuple(penalties),
        adjusted_probability=adjusted_probability,
    )


def _parlay_sort_key(parlay: Parlay) -> Tuple[float, float]:
    return (-parlay.adjusted_probability, -parlay.average_leg_probability)


def select_leg_pool(candidate_legs: Sequence[Leg], options: ParlayOptions) -> List[Leg]:
    """Apply the probability floor and, in single-game mode, the game filter."""
    pool = [leg for leg in candidate_legs if leg.smoothed_prob >= options.min_leg_prob]
    if options.single_game and options.game_id:
        pool = [leg for leg in pool if leg.game_id == options.game_id]
    return pool


def generate_parlays(
    candidate_legs: Sequence[Leg],
    options: Optional[ParlayOptions] = None,
    config: ParlayConfig = PARLAY_CONFIG,
) -> List[Parlay]:
    """Generate every valid parlay, ranked.

    Args:
        candidate_legs: Legs from the probability engine
        options: Enumeration options (defaults: 3 legs, 0.80 floor, cross-game, no stacks)
        config: Penalty factors and enumeration warning threshold

    Returns:
        Parlays sorted by adjusted probability desc, then mean leg
        probability desc. Empty when no valid combination exists.
    """
    options = options or ParlayOptions()
    pool = select_leg_pool(candidate_legs, options)

    subset_count = math.comb(len(pool), options.leg_count)
    if subset_count > config.combination_warning_threshold:
        logger.warning(
            f"Enumerating {subset_count:,} combinations from {len(pool)} legs; "
            f"tighten min_leg_prob or use single-game mode to shrink the pool"
        )

    parlays: List[Parlay] = []
    for combo in iter_leg_combinations(pool, options.leg_count):
        if is_valid_parlay(
            combo,
            options.leg_count,
            options.allow_same_game,
            options.allow_same_team_stack,
        ):
            parlays.append(build_parlay(combo, config))

    parlays.sort(key=_parlay_sort_key)
    logger.debug(
        f"{len(parlays)} valid {options.leg_count}-leg parlays from "
        f"{subset_count} combinations ({len(pool)} legs in pool)"
    )
    return parlays


def get_top_parlays(
    candidate_legs: Sequence[Leg],
    top_n: int = PARLAY_CONFIG.default_top_n,
    options: Optional[ParlayOptions] = None,
    config: ParlayConfig = PARLAY_CONFIG,
) -> List[Parlay]:
    """Top ``top_n`` parlays; ranking needs the full enumeration first."""
    if top_n < 0:
        raise ValueError(f"top_n must be non-negative, got {top_n}")
    return generate_parlays(candidate_legs, options, config)[:top_n]
