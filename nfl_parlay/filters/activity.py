"""
Player Activity Filter

Gates which players' legs are considered for a given week:
- Bye: the player's team has no log at that week/season anywhere in the log set
- Recent snaps: both of the player's two most recent games (by date, ignoring
  week/season) have a positive snap count

Active = not on bye AND has recent snaps.
"""

import logging
import math
from typing import Iterable, List, Sequence, Set

from nfl_parlay.data.stats_schema import sort_by_date_desc
from nfl_parlay.schemas import GameLog, PlayerStatus

logger = logging.getLogger(__name__)

RECENT_GAMES_REQUIRED = 2


def get_bye_week_teams(game_logs: Iterable[GameLog], week: int, season: int) -> Set[str]:
    """Teams seen in the log set that have no game at (week, season)."""
    all_teams: Set[str] = set()
    teams_with_games: Set[str] = set()

    for log in game_logs:
        if not log.team:
            continue
        all_teams.add(log.team)
        if log.week == week and log.season == season:
            teams_with_games.add(log.team)

    return all_teams - teams_with_games


def _has_snaps(log: GameLog) -> bool:
    return log.snaps is not None and not math.isnan(log.snaps) and log.snaps > 0


def has_snaps_in_last_n_games(
    game_logs: Iterable[GameLog],
    player_id: str,
    n: int = RECENT_GAMES_REQUIRED,
) -> bool:
    """True only if each of the player's last ``n`` games has positive snaps."""
    recent = sort_by_date_desc(log for log in game_logs if log.player_id == player_id)[:n]
    if len(recent) < n:
        return False
    return all(_has_snaps(log) for log in recent)


def _player_status(
    game_logs: Sequence[GameLog],
    player_id: str,
    week: int,
    bye_teams: Set[str],
) -> PlayerStatus:
    player_logs = [log for log in game_logs if log.player_id == player_id]
    if not player_logs:
        return PlayerStatus(
            player_id=player_id,
            is_active=False,
            is_on_bye=False,
            has_recent_snaps=False,
            current_week=week,
        )

    team = player_logs[0].team
    is_on_bye = bool(team) and team in bye_teams
    has_recent_snaps = has_snaps_in_last_n_games(player_logs, player_id)

    return PlayerStatus(
        player_id=player_id,
        team=team,
        is_active=not is_on_bye and has_recent_snaps,
        is_on_bye=is_on_bye,
        has_recent_snaps=has_recent_snaps,
        current_week=week,
    )


def is_player_active(
    game_logs: Sequence[GameLog],
    player_id: str,
    week: int,
    season: int,
) -> PlayerStatus:
    """Eligibility snapshot for one player.

    Args:
        game_logs: Full log set (all players, all weeks available)
        player_id: Player to check
        week: Target week
        season: Target season

    Returns:
        PlayerStatus for the player
    """
    bye_teams = get_bye_week_teams(game_logs, week, season)
    return _player_status(game_logs, player_id, week, bye_teams)


def get_player_statuses(
    game_logs: Sequence[GameLog],
    player_ids: Iterable[str],
    week: int,
    season: int,
) -> List[PlayerStatus]:
    bye_teams = get_bye_week_teams(game_logs, week, season)
    return [_player_status(game_logs, player_id, week, bye_teams) for player_id in player_ids]


def filter_active_players(game_logs: Sequence[GameLog], week: int, season: int) -> List[GameLog]:
    """Keep only logs belonging to players active at (week, season)."""
    player_ids = list(dict.fromkeys(log.player_id for log in game_logs if log.player_id))
    statuses = get_player_statuses(game_logs, player_ids, week, season)
    active_ids = {status.player_id for status in statuses if status.is_active}

    logger.info(
        f"Activity filter week {week}/{season}: {len(active_ids)} of {len(player_ids)} players active"
    )
    return [log for log in game_logs if log.player_id in active_ids]
