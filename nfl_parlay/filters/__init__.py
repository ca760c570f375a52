"""Player activity filtering module."""

from .activity import (
    filter_active_players,
    get_bye_week_teams,
    get_player_statuses,
    has_snaps_in_last_n_games,
    is_player_active,
)

__all__ = [
    'filter_active_players',
    'get_bye_week_teams',
    'get_player_statuses',
    'has_snaps_in_last_n_games',
    'is_player_active',
]
