"""
Leg Probability Engine
======================

Turns a player's recent game logs into candidate legs ("X gets 50+ rec yards")
with a calibrated hit probability.

Theory:
-------
A raw hit rate k/n is noisy for the 4-8 game windows we work with: a 3-for-3
streak reads as 100%. Each (stat, threshold) pair is therefore treated as a
Bernoulli process with a Beta(a, b) prior, and the posterior mean is used:

    smoothed = (k + a) / (n + a + b)

With a=4, b=2 estimates are pulled toward a/(a+b) = 0.667. The raw rate is
kept on the leg for display only; filtering, sorting and parlay math all use
the smoothed value.

Selection:
----------
Stats are walked in declared priority order and thresholds ascending. The first
(lowest) threshold that clears both the sample-size and probability bars is
kept and higher thresholds for that stat are skipped, so a player yields at
most one leg per stat.
"""

import logging
import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from configs.leg_config import LEG_CONFIG, LegConfig
from nfl_parlay.constants import (
    RECEIVING_ROLE_POSITIONS,
    RUSHING_ROLE_POSITIONS,
)
from nfl_parlay.data.stats_schema import sort_by_date_desc
from nfl_parlay.schemas import ConfidenceLevel, GameLog, Leg, StatType

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def beta_binomial_smooth(
    successes: int,
    sample_size: int,
    beta_a: float = LEG_CONFIG.beta_a,
    beta_b: float = LEG_CONFIG.beta_b,
) -> float:
    """Posterior mean of a Beta(a, b)-Binomial hit rate."""
    return (successes + beta_a) / (sample_size + beta_a + beta_b)


def get_confidence_level(smoothed_prob: float, config: LegConfig = LEG_CONFIG) -> ConfidenceLevel:
    """Map smoothed probability to a confidence band (lower edges inclusive)."""
    if smoothed_prob >= config.elite_floor:
        return ConfidenceLevel.ELITE
    if smoothed_prob >= config.strong_floor:
        return ConfidenceLevel.STRONG
    if smoothed_prob >= config.fair_floor:
        return ConfidenceLevel.FAIR
    return ConfidenceLevel.SPECULATIVE


def _numeric_values(game_logs: Sequence[GameLog], stat_type: StatType) -> List[float]:
    values = []
    for log in game_logs:
        value = log.stat_value(stat_type)
        if value is not None and not math.isnan(value):
            values.append(float(value))
    return values


def calculate_average_touches(game_logs: Sequence[GameLog], config: LegConfig = LEG_CONFIG) -> Optional[float]:
    """Average per-game touches for the player's role.

    RB: rush attempts (or rush_yards / 4.5 when attempts are missing) + receptions.
    WR/TE: targets, falling back to receptions.
    Any other position has no touches proxy and returns None (exempt). This
    includes a missing or unrecognised position, which is therefore not
    treated as zero touches and filtered out.

    Only games with a positive touch count enter the average.
    """
    if not game_logs:
        return 0.0

    position = (game_logs[0].position or "").upper()
    if position not in RUSHING_ROLE_POSITIONS and position not in RECEIVING_ROLE_POSITIONS:
        return None

    total_touches = 0.0
    games_with_data = 0

    for log in game_logs:
        touches = 0.0
        if position in RUSHING_ROLE_POSITIONS:
            if log.rush_attempts is not None:
                touches += log.rush_attempts
            elif log.rush_yards is not None:
                touches += _round_half_up(log.rush_yards / config.yards_per_carry_estimate)
            touches += log.receptions or 0.0
        else:
            if log.targets is not None:
                touches = log.targets
            else:
                touches = log.receptions or 0.0

        if touches > 0:
            total_touches += touches
            games_with_data += 1

    return total_touches / games_with_data if games_with_data else 0.0


def calculate_probability(
    game_logs: Sequence[GameLog],
    stat_type: StatType,
    threshold: float,
    config: LegConfig = LEG_CONFIG,
) -> Dict:
    """Raw and smoothed hit probability for one (stat, threshold).

    Returns:
        Dict with raw_prob, smoothed_prob, sample_size, values, consistency
    """
    values = _numeric_values(game_logs, stat_type)
    if not values:
        return {
            'raw_prob': 0.0,
            'smoothed_prob': 0.0,
            'sample_size': 0,
            'values': [],
            'consistency': 0.0,
        }

    sample_size = len(values)
    successes = sum(1 for value in values if value >= threshold)

    return {
        'raw_prob': successes / sample_size,
        'smoothed_prob': beta_binomial_smooth(successes, sample_size, config.beta_a, config.beta_b),
        'sample_size': sample_size,
        'values': values,
        'consistency': float(np.std(values)),  # population std dev
    }


def generate_leg_reason(
    stat_type: StatType,
    threshold: float,
    raw_prob: float,
    sample_size: int,
    values: Sequence[float],
    most_recent_value: float,
) -> str:
    """One-to-two sentence justification: hit rate, average gap, last game."""
    hit_rate = _round_half_up(raw_prob * 100)
    average = float(np.mean(values))
    avg_diff = average - threshold
    stat_display = StatType(stat_type).value.replace('_', ' ')

    if avg_diff >= 0:
        avg_text = f"{_round_half_up(avg_diff)} above"
    else:
        avg_text = f"{abs(_round_half_up(avg_diff))} below"
    recent_text = 'hit' if most_recent_value >= threshold else 'missed'

    return (
        f"Hit {hit_rate}% over last {sample_size} games, averaging "
        f"{_round_half_up(average)} {stat_display} ({avg_text} threshold). "
        f"Most recent: {_round_half_up(most_recent_value)} {stat_display} ({recent_text})."
    )


def _leg_sort_key(leg: Leg) -> Tuple[float, float]:
    return (-leg.smoothed_prob, leg.consistency or 0.0)


def _validate_filters(
    last_n: Optional[int],
    min_probability: float,
    min_sample_size: int,
    min_touches_per_game: float,
) -> None:
    if last_n is not None and last_n < 1:
        raise ValueError(f"last_n must be a positive integer, got {last_n}")
    if not 0.0 <= min_probability <= 1.0:
        raise ValueError(f"min_probability must be within [0, 1], got {min_probability}")
    if min_sample_size < 1:
        raise ValueError(f"min_sample_size must be at least 1, got {min_sample_size}")
    if min_touches_per_game < 0:
        raise ValueError(f"min_touches_per_game must be non-negative, got {min_touches_per_game}")


def generate_legs(
    player_id: str,
    player_name: Optional[str],
    game_logs: Sequence[GameLog],
    last_n: Optional[int] = None,
    min_probability: float = LEG_CONFIG.min_probability,
    min_sample_size: int = LEG_CONFIG.min_sample_size,
    min_touches_per_game: float = LEG_CONFIG.min_touches_per_game,
    config: LegConfig = LEG_CONFIG,
) -> List[Leg]:
    """Generate candidate legs for one player.

    Args:
        player_id: Player identifier
        player_name: Optional display name
        game_logs: Normalized game logs for the player (any order)
        last_n: Use only the most recent N games (None = all)
        min_probability: Smoothed probability floor
        min_sample_size: Minimum games with a numeric value
        min_touches_per_game: Usage floor for RB/WR/TE roles
        config: Thresholds and shrinkage parameters

    Returns:
        Legs sorted by smoothed probability desc, then consistency asc.
        Empty when the player has no logs, too little usage, or no stat
        clears its bar.
    """
    _validate_filters(last_n, min_probability, min_sample_size, min_touches_per_game)

    sorted_logs = sort_by_date_desc(game_logs)
    if last_n is not None:
        sorted_logs = sorted_logs[:last_n]
    if not sorted_logs:
        return []

    avg_touches = calculate_average_touches(sorted_logs, config)
    if avg_touches is not None and avg_touches < min_touches_per_game:
        logger.debug(
            f"Skipping {player_id}: {avg_touches:.1f} touches/game < {min_touches_per_game}"
        )
        return []

    most_recent_log = sorted_logs[0]
    legs: List[Leg] = []

    for stat_type in StatType:
        thresholds = config.thresholds.get(stat_type.value, ())
        if len(_numeric_values(sorted_logs, stat_type)) < config.min_stat_values:
            continue

        for threshold in thresholds:
            result = calculate_probability(sorted_logs, stat_type, threshold, config)
            if (
                result['sample_size'] < min_sample_size
                or result['smoothed_prob'] < min_probability
                or not result['values']
            ):
                continue

            values = result['values']
            reason = generate_leg_reason(
                stat_type,
                threshold,
                result['raw_prob'],
                result['sample_size'],
                values,
                values[0],
            )
            legs.append(Leg(
                player_id=player_id,
                player_name=player_name,
                stat_type=stat_type,
                threshold=threshold,
                raw_prob=result['raw_prob'],
                smoothed_prob=result['smoothed_prob'],
                confidence=get_confidence_level(result['smoothed_prob'], config),
                sample_size=result['sample_size'],
                last_n_game_values=values,
                consistency=result['consistency'],
                reason=reason,
                game_id=most_recent_log.game_id,
                game_date=most_recent_log.game_date,
                team=most_recent_log.team,
                opponent=most_recent_log.opponent,
                position=most_recent_log.position,
            ))
            # Lowest qualifying threshold wins
            break

    legs.sort(key=_leg_sort_key)
    return legs


def group_logs_by_player(game_logs: Iterable[GameLog]) -> Tuple[List[Dict[str, Optional[str]]], Dict[str, List[GameLog]]]:
    """Split logs per player.

    Returns:
        (players, logs_by_player) where players keep first-seen order and
        carry the first non-empty display name.
    """
    logs_by_player: Dict[str, List[GameLog]] = OrderedDict()
    names: Dict[str, Optional[str]] = {}

    for log in game_logs:
        if not log.player_id:
            continue
        logs_by_player.setdefault(log.player_id, []).append(log)
        if not names.get(log.player_id) and log.player_name:
            names[log.player_id] = log.player_name

    players = [{'id': player_id, 'name': names.get(player_id)} for player_id in logs_by_player]
    return players, logs_by_player


def generate_legs_for_players(
    players: Iterable[Mapping[str, Optional[str]]],
    logs_by_player: Mapping[str, Sequence[GameLog]],
    last_n: Optional[int] = None,
    min_probability: float = LEG_CONFIG.min_probability,
    min_sample_size: int = LEG_CONFIG.min_sample_size,
    min_touches_per_game: float = LEG_CONFIG.min_touches_per_game,
    config: LegConfig = LEG_CONFIG,
) -> List[Leg]:
    """Run ``generate_legs`` per player and merge under the same ordering.

    Expects logs already restricted to active players
    (see ``nfl_parlay.filters.activity.filter_active_players``).
    """
    all_legs: List[Leg] = []
    player_count = 0

    for player in players:
        player_count += 1
        player_id = player['id']
        all_legs.extend(generate_legs(
            player_id,
            player.get('name'),
            logs_by_player.get(player_id, []),
            last_n=last_n,
            min_probability=min_probability,
            min_sample_size=min_sample_size,
            min_touches_per_game=min_touches_per_game,
            config=config,
        ))

    all_legs.sort(key=_leg_sort_key)
    logger.info(f"Generated {len(all_legs)} legs across {player_count} players")
    return all_legs


def filter_logs_by_position(game_logs: Iterable[GameLog], positions: Iterable[str]) -> List[GameLog]:
    """Keep the logs of players whose position is in ``positions``.

    A player's position is the first one recorded in their logs. Players with
    no recorded position are kept. An empty ``positions`` keeps everything.
    """
    logs = list(game_logs)
    wanted = {position.strip().upper() for position in positions if position.strip()}
    if not wanted:
        return logs

    player_positions: Dict[str, str] = {}
    for log in logs:
        if log.player_id and log.position and log.player_id not in player_positions:
            player_positions[log.player_id] = log.position.upper()

    kept = [
        log for log in logs
        if log.player_id not in player_positions or player_positions[log.player_id] in wanted
    ]
    logger.info(f"Position filter {sorted(wanted)}: kept {len(kept)} of {len(logs)} game logs")
    return kept


def select_near_misses(
    unfiltered_legs: Iterable[Leg],
    min_probability: float,
    limit: int = LEG_CONFIG.near_miss_limit,
) -> List[Leg]:
    """Best legs that fell short of ``min_probability``.

    Args:
        unfiltered_legs: Legs generated with no probability floor
        min_probability: The floor the caller applied
        limit: Maximum number of near misses

    Returns:
        Legs below the floor, highest smoothed probability first
    """
    below = [leg for leg in unfiltered_legs if leg.smoothed_prob < min_probability]
    below.sort(key=_leg_sort_key)
    return below[:limit]
