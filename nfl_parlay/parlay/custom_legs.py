"""Price an arbitrary user-built parlay with the same penalty rules as generated ones."""

import logging
from typing import Iterable, List, Mapping, Union

from configs.parlay_config import PARLAY_CONFIG, ParlayConfig
from nfl_parlay.constants import MARKET_POSITIONS
from nfl_parlay.models.leg_probability import get_confidence_level
from nfl_parlay.parlay.generator import build_parlay
from nfl_parlay.schemas import CustomLegInput, Leg, Parlay, StatType

logger = logging.getLogger(__name__)


def leg_from_input(leg_input: CustomLegInput) -> Leg:
    """Build a Leg from a market/probability pair.

    Unknown markets fall back to pass yards. Position is inferred from the
    market so the stack penalty can fire; the supplied probability is used as
    both smoothed and raw probability.
    """
    try:
        stat_type = StatType(leg_input.market)
    except ValueError:
        logger.warning(f"Unknown market '{leg_input.market}', treating as pass_yards")
        stat_type = StatType.PASS_YARDS

    return Leg(
        player_id=leg_input.player_id,
        stat_type=stat_type,
        threshold=leg_input.threshold,
        raw_prob=leg_input.probability,
        smoothed_prob=leg_input.probability,
        confidence=get_confidence_level(leg_input.probability),
        sample_size=0,
        game_id=leg_input.game_id,
        team=leg_input.team,
        position=MARKET_POSITIONS.get(stat_type.value),
    )


def evaluate_custom_parlay(
    inputs: Iterable[Union[CustomLegInput, Mapping]],
    config: ParlayConfig = PARLAY_CONFIG,
) -> Parlay:
    """Base probability, penalties and adjusted probability for user-supplied legs.

    Raises:
        ValueError: If no legs are supplied
    """
    legs: List[Leg] = [
        leg_from_input(item if isinstance(item, CustomLegInput) else CustomLegInput(**item))
        for item in inputs
    ]
    if not legs:
        raise ValueError("legs must contain at least one leg")
    return build_parlay(legs, config)
